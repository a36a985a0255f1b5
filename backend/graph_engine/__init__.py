"""
Graph validation package
========================

Provides the building blocks for checking and ordering canvas workflows:

- Port type registry and compatibility matrix
- Immutable graph snapshots and result value objects
- Structural validation and execution planning
- The validation service facade with remote-first, local-fallback policy
"""

from .compatibility import PortCompatibilityMatrix, PortTypeRegistry, get_default_matrix  # noqa: F401
from .constants import IssueKind, Severity  # noqa: F401
from .context import CancellationToken, OperationCancelled  # noqa: F401
from .planner import ExecutionPlanner  # noqa: F401
from .results import (  # noqa: F401
    ExecutionOrderResult,
    PortCompatibilityResult,
    ValidationIssue,
    ValidationOptions,
    ValidationResult,
    filter_issues_by_severity,
    get_issues_for_node,
    has_blocking_issues,
)
from .schema import Edge, Graph, GraphModelError, Node, Port  # noqa: F401
from .service import GraphValidationService  # noqa: F401
from .validator import StructuralValidator  # noqa: F401
