"""
Latest-wins tracking for requests that may complete out of order.

A second /show or save issued before the first resolves makes the first
response stale; its result is dropped instead of overwriting newer state.
"""

from __future__ import annotations

import itertools


class RequestTracker:
    def __init__(self) -> None:
        self._counter = itertools.count(1)
        self._latest: dict[str, int] = {}

    def begin(self, key: str) -> int:
        token = next(self._counter)
        self._latest[key] = token
        return token

    def is_current(self, key: str, token: int) -> bool:
        return self._latest.get(key) == token

    def finish(self, key: str, token: int) -> bool:
        """Return True (and forget the key) if ``token`` is still the latest."""
        if not self.is_current(key, token):
            return False
        del self._latest[key]
        return True
