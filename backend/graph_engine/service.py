"""
Graph Validation Service - the single entry point for validation and planning.

Policy:
- Try the remote endpoint first when one is configured and the caller names a
  workflow, so clients sharing a board see the same answer
- On any remote failure, fall back to the local validator/planner/matrix,
  strictly after the remote attempt has ended
- If the local path fails too, return a well-formed degraded result instead
  of raising, so the editor always has something to render
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Hashable, Mapping, Optional, Tuple, TypeVar, Union

from .adapters import LocalValidationAdapter, RemoteValidationAdapter, RemoteValidationError
from .cache import ResultCache
from .constants import IssueKind, Severity
from .context import CancellationToken, OperationCancelled
from .results import (
    ExecutionOrderResult,
    PortCompatibilityResult,
    ValidationIssue,
    ValidationOptions,
    ValidationResult,
    filter_issues_by_severity,
    get_issues_for_node,
    has_blocking_issues,
)
from .schema import GraphModelError, coerce_graph
from .validator import StructuralValidator

logger = logging.getLogger(__name__)

T = TypeVar('T')

OptionsLike = Union[ValidationOptions, Mapping[str, Any], None]


class GraphValidationService:
    """Strategy selector over the remote and local adapters."""

    def __init__(
        self,
        local: Optional[LocalValidationAdapter] = None,
        remote: Optional[RemoteValidationAdapter] = None,
        cache: Optional[ResultCache] = None,
    ):
        self.local = local or LocalValidationAdapter()
        self.remote = remote
        self.cache = cache

    @classmethod
    def from_config(cls) -> "GraphValidationService":
        import config

        local = LocalValidationAdapter(
            validator=StructuralValidator(standalone_categories=config.STANDALONE_NODE_CATEGORIES)
        )
        remote = None
        if config.VALIDATION_API_URL:
            remote = RemoteValidationAdapter(config.VALIDATION_API_URL, timeout=config.VALIDATION_TIMEOUT)
        cache = ResultCache(config.VALIDATION_CACHE_TTL) if config.VALIDATION_CACHE_TTL > 0 else None
        return cls(local=local, remote=remote, cache=cache)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def validate_graph(
        self,
        graph,
        workflow_id: Optional[str] = None,
        options: OptionsLike = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ValidationResult:
        """
        Validate a graph snapshot.

        Checks for missing required inputs, incompatible or doubled-up
        connections, cycles and isolated nodes. Never raises for a bad graph;
        the worst case is a single ``VALIDATION_UNAVAILABLE`` error.
        """
        try:
            options = self._coerce_options(options)
        except ValueError as e:
            logger.error("Cannot validate workflow %s: %s", workflow_id, e)
            return ValidationResult.unavailable()
        return self._run(
            'validate',
            workflow_id,
            self._cache_key('validate', graph, options.to_dict()),
            remote_call=lambda: self.remote.validate(workflow_id, graph, options),
            local_call=lambda: self.local.validate(graph, options, cancel_token),
            fallback=ValidationResult.unavailable,
        )

    def check_port_compatibility(
        self,
        source_type: str,
        target_type: str,
        workflow_id: Optional[str] = None,
    ) -> PortCompatibilityResult:
        return self._run(
            'compatibility check',
            workflow_id,
            ('compatibility', source_type, target_type) if self.cache else None,
            remote_call=lambda: self.remote.check_compatibility(workflow_id, source_type, target_type),
            local_call=lambda: self.local.check_compatibility(source_type, target_type),
            fallback=lambda: PortCompatibilityResult(
                compatible=False,
                source_type=source_type,
                target_type=target_type,
                reason="Compatibility check unavailable",
            ),
        )

    def get_execution_order(
        self,
        graph,
        workflow_id: Optional[str] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ExecutionOrderResult:
        """Topological order with parallel groups; check ``has_cycles`` before trusting it."""
        return self._run(
            'execution order',
            workflow_id,
            self._cache_key('execution-order', graph),
            remote_call=lambda: self.remote.execution_order(workflow_id, graph),
            local_call=lambda: self.local.execution_order(graph, cancel_token),
            fallback=ExecutionOrderResult,
        )

    def validate_connection(self, source_type: str, target_type: str) -> Optional[ValidationIssue]:
        """Local check of a single prospective connection, for drag-time feedback."""
        result = self.local.check_compatibility(source_type, target_type)
        if result.compatible:
            return None
        return ValidationIssue(
            kind=IssueKind.PORT_INCOMPATIBLE,
            severity=Severity.ERROR,
            message=result.reason or f"Cannot connect {source_type} to {target_type}",
        )

    def check_connection(
        self,
        graph,
        source_node_id: Optional[str],
        target_node_id: Optional[str],
        source_port_id: Optional[str] = None,
        target_port_id: Optional[str] = None,
    ) -> Optional[ValidationIssue]:
        """
        Check a proposed edge against the current graph before it is drawn.

        Rejects self-connections, unknown nodes or ports, incompatible types
        and a second edge into a single-connection input.
        """
        try:
            return self.local.check_connection(
                graph, source_node_id, target_node_id, source_port_id, target_port_id
            )
        except GraphModelError as e:
            logger.error("Cannot check connection %s -> %s: %s", source_node_id, target_node_id, e)
            return ValidationResult.unavailable().issues[0]

    def invalidate(self, workflow_id: Optional[str] = None) -> None:
        if self.cache is not None:
            self.cache.invalidate(workflow_id)

    # Pure projections over an existing result
    has_blocking_issues = staticmethod(has_blocking_issues)
    filter_issues_by_severity = staticmethod(filter_issues_by_severity)
    get_issues_for_node = staticmethod(get_issues_for_node)

    # ------------------------------------------------------------------
    # Strategy selection
    # ------------------------------------------------------------------

    def _run(
        self,
        operation: str,
        workflow_id: Optional[str],
        cache_key: Optional[Hashable],
        remote_call: Callable[[], T],
        local_call: Callable[[], T],
        fallback: Callable[[], T],
    ) -> T:
        if cache_key is not None:
            cached = self.cache.get(workflow_id, cache_key)
            if cached is not None:
                logger.debug("Cache hit for %s (workflow %s)", operation, workflow_id)
                return cached

        result, reusable = self._compute(operation, workflow_id, remote_call, local_call, fallback)
        if cache_key is not None and reusable:
            self.cache.set(workflow_id, cache_key, result)
        return result

    def _compute(
        self,
        operation: str,
        workflow_id: Optional[str],
        remote_call: Callable[[], T],
        local_call: Callable[[], T],
        fallback: Callable[[], T],
    ) -> Tuple[T, bool]:
        if self.remote is not None and workflow_id:
            try:
                return remote_call(), True
            except RemoteValidationError as e:
                logger.warning(
                    "Remote %s failed for workflow %s, falling back to local: %s",
                    operation, workflow_id, e
                )

        try:
            return local_call(), True
        except OperationCancelled:
            raise
        except GraphModelError as e:
            logger.error("Cannot run %s for workflow %s: %s", operation, workflow_id, e)
        except Exception as e:
            logger.exception("Local %s failed for workflow %s: %s", operation, workflow_id, e)
        return fallback(), False

    def _cache_key(self, operation: str, graph, *extra) -> Optional[Hashable]:
        if self.cache is None:
            return None
        # An unparseable snapshot is simply not cached; the local path reports it
        try:
            fingerprint = coerce_graph(graph).fingerprint()
        except Exception as e:
            logger.debug("No cache key for %s: %s", operation, e)
            return None
        return (operation, fingerprint) + tuple(
            tuple(sorted(item.items())) if isinstance(item, Mapping) else item for item in extra
        )

    @staticmethod
    def _coerce_options(options: OptionsLike) -> ValidationOptions:
        if isinstance(options, ValidationOptions):
            return options
        return ValidationOptions.from_dict(options)
