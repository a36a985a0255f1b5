"""
Cooperative cancellation shared by the validator and planner.
"""

from __future__ import annotations

import threading
from typing import Optional


class OperationCancelled(Exception):
    """Raised inside a local computation once its token has been cancelled."""


class CancellationToken:
    """
    Flag polled by long-running graph walks.

    Typical graphs are tens of nodes and finish long before anyone could
    cancel; the token matters for the occasional very large board.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelled("Graph computation was cancelled")


def check_cancelled(token: Optional[CancellationToken]) -> None:
    if token is not None:
        token.raise_if_cancelled()
