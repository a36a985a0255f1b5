"""
Port type registry and the table-driven compatibility matrix.

Port types form an open set: domain modules register rows mapping a target
type to the source types it accepts, and the registry freezes them into a
read-only matrix. Checking code never needs to change when a domain adds
types.
"""

from __future__ import annotations

import logging
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

from .constants import ANY_PORT_TYPE
from .results import PortCompatibilityResult

logger = logging.getLogger(__name__)


class PortCompatibilityMatrix:
    """
    Answers ``compatible(source_type, target_type)`` in constant time.

    ``any`` is universal in both directions: an ``any`` target accepts every
    source and an ``any`` source feeds every target. Otherwise unknown types
    fail closed.
    """

    def __init__(
        self,
        table: Mapping[str, Iterable[str]],
        domains: Optional[Mapping[str, Iterable[str]]] = None,
    ):
        self._accepts: Dict[str, FrozenSet[str]] = {
            target: frozenset(sources) for target, sources in table.items()
        }
        self._domains: Dict[str, Tuple[str, ...]] = {
            name: tuple(types) for name, types in (domains or {}).items()
        }

    def compatible(self, source_type: Optional[str], target_type: Optional[str]) -> bool:
        if not source_type or not target_type:
            return False
        if ANY_PORT_TYPE in (source_type, target_type):
            return True
        accepted = self._accepts.get(target_type)
        if accepted is None:
            return False
        return source_type in accepted

    def explain(self, source_type: str, target_type: str) -> PortCompatibilityResult:
        compatible = self.compatible(source_type, target_type)
        if compatible:
            reason = f"{source_type} is compatible with {target_type}"
        else:
            reason = f"{source_type} cannot connect to {target_type}"
        return PortCompatibilityResult(
            compatible=compatible,
            source_type=source_type,
            target_type=target_type,
            reason=reason,
        )

    def accepted_sources(self, target_type: str) -> List[str]:
        """Source types a target accepts, sorted; empty for unknown targets."""
        if target_type == ANY_PORT_TYPE:
            return self.known_types()
        return sorted(self._accepts.get(target_type, ()))

    def known_types(self) -> List[str]:
        return sorted(set(self._accepts) | {ANY_PORT_TYPE})

    def is_known(self, port_type: str) -> bool:
        return port_type == ANY_PORT_TYPE or port_type in self._accepts

    @property
    def domains(self) -> Dict[str, List[str]]:
        """Port types grouped by the domain that registered them."""
        return {name: list(types) for name, types in self._domains.items()}

    def to_dict(self) -> Dict[str, List[str]]:
        return {target: sorted(sources) for target, sources in sorted(self._accepts.items())}


class PortTypeRegistry:
    """
    Collects compatibility rows from domain modules before freezing them.

    Every registered type implicitly accepts itself and ``any``.
    """

    def __init__(self):
        self._rows: Dict[str, set] = {}
        self._domains: Dict[str, List[str]] = {}

    def register(self, target_type: str, accepts: Iterable[str] = ()) -> None:
        if not target_type:
            raise ValueError("Port type name must be a non-empty string")
        row = self._rows.setdefault(target_type, {target_type, ANY_PORT_TYPE})
        row.update(accepts)

    def register_domain(self, domain: str, rows: Mapping[str, Iterable[str]]) -> None:
        for target_type, accepts in rows.items():
            self.register(target_type, accepts)
        self._domains.setdefault(domain, []).extend(rows)
        logger.debug("Registered %d port types for domain '%s'", len(rows), domain)

    def build(self) -> PortCompatibilityMatrix:
        unknown = sorted(
            source
            for accepts in self._rows.values()
            for source in accepts
            if source not in self._rows and source != ANY_PORT_TYPE
        )
        if unknown:
            logger.warning("Compatibility rows reference unregistered port types: %s", unknown)
        return PortCompatibilityMatrix(self._rows, domains=self._domains)


_default_matrix: Optional[PortCompatibilityMatrix] = None


def default_registry() -> PortTypeRegistry:
    from .port_domains import DOMAIN_TABLES

    registry = PortTypeRegistry()
    for domain, rows in DOMAIN_TABLES.items():
        registry.register_domain(domain, rows)
    return registry


def get_default_matrix() -> PortCompatibilityMatrix:
    """
    Matrix built from every built-in domain, constructed once and shared.

    The matrix is read-only after construction, so sharing it across
    sessions is safe.
    """
    global _default_matrix
    if _default_matrix is None:
        _default_matrix = default_registry().build()
    return _default_matrix
