"""
Result value objects returned by the validator, planner and facade.

Every object here is frozen and freshly built per call. ``to_dict`` and
``from_dict`` produce and read the camelCase wire shape shared with the
remote validation endpoint.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .constants import IssueKind, Severity


@dataclass(frozen=True)
class ValidationOptions:
    include_warnings: bool = True
    validate_connections: bool = True
    check_cycles: bool = True

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "ValidationOptions":
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise ValueError(f"Validation options must be an object, got {type(data).__name__}")
        return cls(
            include_warnings=bool(data.get('includeWarnings', True)),
            validate_connections=bool(data.get('validateConnections', True)),
            check_cycles=bool(data.get('checkCycles', True)),
        )

    def to_dict(self) -> Dict[str, bool]:
        return {
            'includeWarnings': self.include_warnings,
            'validateConnections': self.validate_connections,
            'checkCycles': self.check_cycles,
        }


@dataclass(frozen=True)
class ValidationIssue:
    kind: IssueKind
    severity: Severity
    message: str
    node_id: Optional[str] = None
    edge_id: Optional[str] = None
    port_id: Optional[str] = None
    node_ids: Tuple[str, ...] = ()
    suggestion: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR

    def concerns_node(self, node_id: str) -> bool:
        return self.node_id == node_id or node_id in self.node_ids

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'type': self.kind.value,
            'severity': self.severity.value,
            'message': self.message,
        }
        optional = {
            'nodeId': self.node_id,
            'edgeId': self.edge_id,
            'portId': self.port_id,
            'suggestion': self.suggestion,
        }
        data.update({key: value for key, value in optional.items() if value is not None})
        if self.node_ids:
            data['nodeIds'] = list(self.node_ids)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ValidationIssue":
        return cls(
            kind=IssueKind(data.get('type') or data['kind']),
            severity=Severity(data['severity']),
            message=str(data.get('message', '')),
            node_id=data.get('nodeId'),
            edge_id=data.get('edgeId'),
            port_id=data.get('portId'),
            node_ids=tuple(data.get('nodeIds') or ()),
            suggestion=data.get('suggestion'),
        )


@dataclass(frozen=True)
class ValidationStats:
    total_nodes: int = 0
    connected_nodes: int = 0
    isolated_nodes: int = 0
    execution_order: Optional[Tuple[str, ...]] = None
    parallel_groups: Optional[Tuple[Tuple[str, ...], ...]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'totalNodes': self.total_nodes,
            'connectedNodes': self.connected_nodes,
            'isolatedNodes': self.isolated_nodes,
        }
        if self.execution_order is not None:
            data['executionOrder'] = list(self.execution_order)
        if self.parallel_groups is not None:
            data['parallelGroups'] = [list(group) for group in self.parallel_groups]
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ValidationStats":
        order = data.get('executionOrder')
        groups = data.get('parallelGroups')
        return cls(
            total_nodes=int(data['totalNodes']),
            connected_nodes=int(data['connectedNodes']),
            isolated_nodes=int(data['isolatedNodes']),
            execution_order=tuple(order) if order is not None else None,
            parallel_groups=tuple(tuple(g) for g in groups) if groups is not None else None,
        )


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    issues: Tuple[ValidationIssue, ...] = ()
    stats: ValidationStats = field(default_factory=ValidationStats)

    @classmethod
    def from_issues(cls, issues, stats: ValidationStats) -> "ValidationResult":
        issues = tuple(issues)
        return cls(
            valid=not any(issue.is_error for issue in issues),
            issues=issues,
            stats=stats,
        )

    @classmethod
    def unavailable(cls, message: str = "Failed to validate graph - please try again") -> "ValidationResult":
        issue = ValidationIssue(
            kind=IssueKind.VALIDATION_UNAVAILABLE,
            severity=Severity.ERROR,
            message=message,
        )
        return cls(valid=False, issues=(issue,), stats=ValidationStats())

    def to_dict(self) -> Dict[str, Any]:
        return {
            'valid': self.valid,
            'issues': [issue.to_dict() for issue in self.issues],
            'stats': self.stats.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ValidationResult":
        return cls(
            valid=bool(data['valid']),
            issues=tuple(ValidationIssue.from_dict(raw) for raw in data.get('issues') or ()),
            stats=ValidationStats.from_dict(data['stats']),
        )


@dataclass(frozen=True)
class ExecutionOrderResult:
    """
    Topological order plus parallel layers.

    When ``has_cycles`` is set, ``order`` and ``parallel_groups`` only cover
    the nodes scheduled before the cycle blocked progress. Groups list their
    members in graph declaration order, but membership is what matters.
    """

    order: Tuple[str, ...] = ()
    parallel_groups: Tuple[Tuple[str, ...], ...] = ()
    has_cycles: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'order': list(self.order),
            'parallelGroups': [list(group) for group in self.parallel_groups],
            'hasCycles': self.has_cycles,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ExecutionOrderResult":
        return cls(
            order=tuple(data['order']),
            parallel_groups=tuple(tuple(group) for group in data['parallelGroups']),
            has_cycles=bool(data['hasCycles']),
        )


@dataclass(frozen=True)
class PortCompatibilityResult:
    compatible: bool
    source_type: str
    target_type: str
    reason: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'compatible': self.compatible,
            'sourceType': self.source_type,
            'targetType': self.target_type,
            'reason': self.reason,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PortCompatibilityResult":
        return cls(
            compatible=bool(data['compatible']),
            source_type=str(data['sourceType']),
            target_type=str(data['targetType']),
            reason=str(data.get('reason') or ''),
        )


def has_blocking_issues(result: ValidationResult) -> bool:
    return any(issue.is_error for issue in result.issues)


def filter_issues_by_severity(result: ValidationResult, severity) -> List[ValidationIssue]:
    severity = Severity(severity)
    return [issue for issue in result.issues if issue.severity == severity]


def get_issues_for_node(result: ValidationResult, node_id: str) -> List[ValidationIssue]:
    """Issues scoped to the node, including aggregated issues listing it as a member."""
    return [issue for issue in result.issues if issue.concerns_node(node_id)]
