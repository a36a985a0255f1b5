"""
Explicit result cache owned by the validation facade.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

logger = logging.getLogger(__name__)

_MISSING = object()


class ResultCache:
    """
    Stores facade results keyed by (workflow id, operation, content key).

    Keys always include a fingerprint of the snapshot, so a hit is the same
    answer a fresh computation would give. Entries expire after ``ttl``
    seconds; ``invalidate`` drops a workflow's entries immediately.
    """

    def __init__(self, ttl: float = 30.0, clock: Callable[[], float] = time.monotonic):
        if ttl <= 0:
            raise ValueError("Cache TTL must be positive")
        self.ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._storage: Dict[Tuple[Optional[str], Hashable], Tuple[float, Any]] = {}

    def get(self, workflow_id: Optional[str], key: Hashable, default: Any = None) -> Any:
        with self._lock:
            entry = self._storage.get((workflow_id, key), _MISSING)
            if entry is _MISSING:
                return default
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._storage[(workflow_id, key)]
                return default
            return value

    def set(self, workflow_id: Optional[str], key: Hashable, value: Any) -> None:
        with self._lock:
            self._storage[(workflow_id, key)] = (self._clock() + self.ttl, value)

    def invalidate(self, workflow_id: Optional[str] = None) -> int:
        """Drop entries for one workflow, or everything when no id is given."""
        with self._lock:
            if workflow_id is None:
                count = len(self._storage)
                self._storage.clear()
            else:
                doomed = [entry for entry in self._storage if entry[0] == workflow_id]
                for entry in doomed:
                    del self._storage[entry]
                count = len(doomed)
        logger.debug("Invalidated %d cached result(s) for workflow %s", count, workflow_id or "*")
        return count

    def clear(self) -> None:
        self.invalidate()

    def __len__(self) -> int:
        with self._lock:
            return len(self._storage)
