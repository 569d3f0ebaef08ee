"""Fetch generation counter.

Cancellation is advisory: starting a fetch bumps the epoch, and every step
of an older fetch checks its ticket before it mutates shared state. Stale
work may still finish its network calls, but its results are dropped.
"""

from __future__ import annotations


class StaleFetchError(Exception):
    """Raised inside a fetch whose epoch has been superseded.

    Internal control flow only; the orchestrator swallows it at its boundary.
    """


class FetchEpoch:
    def __init__(self) -> None:
        self._current = 0

    @property
    def current(self) -> int:
        return self._current

    def begin(self) -> int:
        """Start a new generation and return its ticket."""
        self._current += 1
        return self._current

    def is_current(self, ticket: int) -> bool:
        return ticket == self._current

    def ensure_current(self, ticket: int) -> None:
        if ticket != self._current:
            raise StaleFetchError(f"fetch epoch {ticket} superseded by {self._current}")
