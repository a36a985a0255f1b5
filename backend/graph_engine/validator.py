"""
Structural validation of graph snapshots emitted by the canvas.
"""

from __future__ import annotations

import logging
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from .compatibility import PortCompatibilityMatrix, get_default_matrix
from .constants import DEFAULT_STANDALONE_CATEGORIES, IssueKind, Severity
from .context import CancellationToken, check_cancelled
from .results import ValidationIssue, ValidationOptions, ValidationResult, ValidationStats
from .schema import Graph, Node
from .topology import GraphTopology

logger = logging.getLogger(__name__)


class StructuralValidator:
    """
    Runs every structural check over a snapshot and merges the findings.

    Checks are independent: a failing check never prevents the others from
    running, so the editor can show every problem at once. Malformed graphs
    come back as issues; only corrupt snapshots raise (from ``Graph``).
    """

    def __init__(
        self,
        matrix: Optional[PortCompatibilityMatrix] = None,
        standalone_categories: Optional[Iterable[str]] = None,
    ):
        self.matrix = matrix or get_default_matrix()
        if standalone_categories is None:
            standalone_categories = DEFAULT_STANDALONE_CATEGORIES
        self.standalone_categories: FrozenSet[str] = frozenset(standalone_categories)

    def validate(
        self,
        graph: Graph,
        options: Optional[ValidationOptions] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ValidationResult:
        options = options or ValidationOptions()
        topology = GraphTopology(graph)

        issues: List[ValidationIssue] = []
        issues.extend(self._check_required_inputs(graph, topology, cancel_token))
        if options.validate_connections:
            issues.extend(self._check_connections(graph, cancel_token))
        if options.check_cycles:
            issues.extend(self._check_cycles(topology, cancel_token))
        isolated_issues = self._check_isolated(graph, topology)
        issues.extend(isolated_issues)

        total = len(graph.nodes)
        stats = ValidationStats(
            total_nodes=total,
            connected_nodes=total - len(isolated_issues),
            isolated_nodes=len(isolated_issues),
        )

        if not options.include_warnings:
            issues = [issue for issue in issues if issue.severity == Severity.ERROR]

        result = ValidationResult.from_issues(issues, stats)
        logger.debug(
            "Validated graph: %d nodes, %d edges, %d issues, valid=%s",
            total, len(graph.edges), len(result.issues), result.valid
        )
        return result

    def _check_required_inputs(
        self,
        graph: Graph,
        topology: GraphTopology,
        cancel_token: Optional[CancellationToken],
    ) -> List[ValidationIssue]:
        issues = []
        for node in graph.nodes.values():
            check_cancelled(cancel_token)
            connected_ports = {edge.target_port_id for edge in topology.incoming[node.id]}
            for port in node.inputs:
                if port.required and port.id not in connected_ports:
                    issues.append(ValidationIssue(
                        kind=IssueKind.MISSING_REQUIRED_INPUT,
                        severity=Severity.ERROR,
                        message=f"{self._describe(node)} is missing required input '{port.name}'",
                        node_id=node.id,
                        port_id=port.id,
                        suggestion=f"Connect a {port.port_type} output to '{port.name}'",
                    ))
        return issues

    def _check_connections(
        self,
        graph: Graph,
        cancel_token: Optional[CancellationToken],
    ) -> List[ValidationIssue]:
        issues = []
        seen_targets: Dict[Tuple[str, str], str] = {}

        for edge in graph.edges.values():
            check_cancelled(cancel_token)
            source_port = graph.source_port(edge)
            target_port = graph.target_port(edge)

            if not self.matrix.compatible(source_port.port_type, target_port.port_type):
                issues.append(ValidationIssue(
                    kind=IssueKind.PORT_INCOMPATIBLE,
                    severity=Severity.ERROR,
                    message=(
                        f"Incompatible connection {edge.source_node_id}:{source_port.id} -> "
                        f"{edge.target_node_id}:{target_port.id} "
                        f"({source_port.port_type} -> {target_port.port_type})"
                    ),
                    node_id=edge.target_node_id,
                    edge_id=edge.id,
                    port_id=target_port.id,
                    suggestion=self._compatibility_hint(source_port.port_type, target_port.port_type),
                ))

            key = (edge.target_node_id, target_port.id)
            if key in seen_targets and not target_port.accepts_multiple:
                issues.append(ValidationIssue(
                    kind=IssueKind.MULTIPLE_CONNECTIONS,
                    severity=Severity.ERROR,
                    message=(
                        f"Input '{target_port.name}' on node {edge.target_node_id} already has "
                        f"a connection (edge {seen_targets[key]})"
                    ),
                    node_id=edge.target_node_id,
                    edge_id=edge.id,
                    port_id=target_port.id,
                ))
            seen_targets.setdefault(key, edge.id)

        return issues

    def check_connection(
        self,
        graph: Graph,
        source_node_id: Optional[str],
        target_node_id: Optional[str],
        source_port_id: Optional[str] = None,
        target_port_id: Optional[str] = None,
        allow_self_connection: bool = False,
    ) -> Optional[ValidationIssue]:
        """
        Check a connection the user is about to draw against the current graph.

        Missing handles mean the node's first port, as the editor draws them.
        Returns the first problem found, or ``None`` when the edge may be added.
        """
        if not source_node_id or not target_node_id:
            return self._rejected("Missing source or target")

        if not allow_self_connection and source_node_id == target_node_id:
            return ValidationIssue(
                kind=IssueKind.CYCLE_DETECTED,
                severity=Severity.ERROR,
                message="Cannot connect a node to itself",
                node_id=source_node_id,
                node_ids=(source_node_id,),
            )

        source = graph.nodes.get(source_node_id)
        target = graph.nodes.get(target_node_id)
        if source is None or target is None:
            return self._rejected("Source or target node not found")

        source_port = source.output_port(source_port_id) if source_port_id else next(iter(source.outputs), None)
        target_port = target.input_port(target_port_id) if target_port_id else next(iter(target.inputs), None)
        if source_port is None:
            missing = f"output '{source_port_id}'" if source_port_id else "outputs"
            return self._rejected(f"{self._describe(source)} has no {missing}", source.id, source_port_id)
        if target_port is None:
            missing = f"input '{target_port_id}'" if target_port_id else "inputs"
            return self._rejected(f"{self._describe(target)} has no {missing}", target.id, target_port_id)

        result = self.matrix.explain(source_port.port_type, target_port.port_type)
        if not result.compatible:
            return ValidationIssue(
                kind=IssueKind.PORT_INCOMPATIBLE,
                severity=Severity.ERROR,
                message=f"Incompatible types: {result.reason}",
                node_id=target.id,
                port_id=target_port.id,
                suggestion=self._compatibility_hint(source_port.port_type, target_port.port_type),
            )

        if not target_port.accepts_multiple:
            existing = GraphTopology(graph).connections_into(target.id, target_port.id)
            if existing:
                return ValidationIssue(
                    kind=IssueKind.MULTIPLE_CONNECTIONS,
                    severity=Severity.ERROR,
                    message="Target port already has a connection",
                    node_id=target.id,
                    edge_id=existing[0].id,
                    port_id=target_port.id,
                    suggestion=f"Remove edge {existing[0].id} first",
                )
        return None

    def _compatibility_hint(self, source_type: str, target_type: str) -> Optional[str]:
        for port_type in (source_type, target_type):
            if not self.matrix.is_known(port_type):
                return f"Port type '{port_type}' is not registered"
        accepted = [t for t in self.matrix.accepted_sources(target_type) if t != target_type]
        if accepted:
            return f"'{target_type}' also accepts: {', '.join(accepted)}"
        return None

    @staticmethod
    def _rejected(message: str, node_id: Optional[str] = None, port_id: Optional[str] = None) -> ValidationIssue:
        return ValidationIssue(
            kind=IssueKind.PORT_INCOMPATIBLE,
            severity=Severity.ERROR,
            message=message,
            node_id=node_id,
            port_id=port_id,
        )

    @staticmethod
    def _check_cycles(
        topology: GraphTopology,
        cancel_token: Optional[CancellationToken],
    ) -> List[ValidationIssue]:
        cycles = topology.find_cycles(cancel_token)
        if not cycles:
            return []

        members = list(dict.fromkeys(node_id for cycle in cycles for node_id in cycle))
        described = "; ".join(" -> ".join(cycle + cycle[:1]) for cycle in cycles)
        return [ValidationIssue(
            kind=IssueKind.CYCLE_DETECTED,
            severity=Severity.ERROR,
            message=f"Graph contains {len(cycles)} cycle(s): {described}",
            node_ids=tuple(members),
            suggestion="Remove one connection from each cycle",
        )]

    def _check_isolated(self, graph: Graph, topology: GraphTopology) -> List[ValidationIssue]:
        issues = []
        for node in graph.nodes.values():
            if topology.in_degree(node.id) or topology.out_degree(node.id):
                continue
            if node.category in self.standalone_categories:
                continue
            issues.append(ValidationIssue(
                kind=IssueKind.ISOLATED_NODE,
                severity=Severity.WARNING,
                message=f"{self._describe(node)} is not connected to any other node",
                node_id=node.id,
            ))
        return issues

    @staticmethod
    def _describe(node: Node) -> str:
        return f"Node '{node.label}' ({node.id})" if node.label else f"Node {node.id}"
