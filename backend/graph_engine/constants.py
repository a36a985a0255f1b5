"""
Constants shared across the graph validation runtime.
"""

from enum import Enum


ANY_PORT_TYPE = "any"


class IssueKind(str, Enum):
    MISSING_REQUIRED_INPUT = "MISSING_REQUIRED_INPUT"
    PORT_INCOMPATIBLE = "PORT_INCOMPATIBLE"
    MULTIPLE_CONNECTIONS = "MULTIPLE_CONNECTIONS"
    CYCLE_DETECTED = "CYCLE_DETECTED"
    ISOLATED_NODE = "ISOLATED_NODE"
    VALIDATION_UNAVAILABLE = "VALIDATION_UNAVAILABLE"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class Endpoints:
    """
    Remote validation routes, relative to the API base URL.

    Shared between the Flask blueprint and the remote adapter so both sides
    agree on where each operation lives.
    """

    VALIDATE = "/api/creative-canvas/boards/{board_id}/validate"
    CHECK_COMPATIBILITY = "/api/creative-canvas/boards/{board_id}/check-compatibility"
    EXECUTION_ORDER = "/api/creative-canvas/boards/{board_id}/execution-order"
    PORT_TYPES = "/api/creative-canvas/port-types"


DEFAULT_STANDALONE_CATEGORIES = frozenset({"output", "annotation"})
