"""Expiring in-process cache used by the permission resolver.

READ-THROUGH WITH A FIXED TTL
------------------------------
  Caller → cache → miss/expired → store → populate cache → return
  Caller → cache → hit          → return (store untouched)

Two invalidation paths cover each other:

  1. TTL: every entry carries an expiry timestamp and is ignored (and
     dropped) once `now() >= expiry`.  Even if an admin path forgets to
     invalidate, a stale decision lives at most one TTL.

  2. Explicit: admin mutations call `delete()` / `clear()` so the next
     lookup goes back to the store immediately.

Values and expiries live in two separate maps, and the clock is injected,
so tests can move time forward without sleeping.

This is process-local state with no locking.  Under asyncio that is safe:
there is no await between reading and writing an entry, so the worst a
burst of concurrent misses can do is issue duplicate store reads.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Generic, TypeVar, overload

from alignex.core.metrics import PERMISSION_CACHE_OPERATIONS

V = TypeVar("V")
D = TypeVar("D")

Clock = Callable[[], float]


class ExpiringCache(Generic[V]):
    """Key/value map whose entries expire `ttl_seconds` after being set."""

    def __init__(
        self,
        name: str,
        ttl_seconds: float,
        *,
        clock: Clock = time.monotonic,
    ) -> None:
        self.name = name
        self._ttl = ttl_seconds
        self._clock = clock
        self._values: dict[str, V] = {}
        self._expiry: dict[str, float] = {}

    @overload
    def get(self, key: str) -> V | None: ...

    @overload
    def get(self, key: str, default: D) -> V | D: ...

    def get(self, key: str, default: object = None) -> object:
        """Return the live value for `key`, or `default` on miss or expiry."""
        expiry = self._expiry.get(key)
        if expiry is None or key not in self._values:
            PERMISSION_CACHE_OPERATIONS.labels(cache=self.name, result="miss").inc()
            return default
        if self._clock() >= expiry:
            self.delete(key)
            PERMISSION_CACHE_OPERATIONS.labels(cache=self.name, result="miss").inc()
            return default
        PERMISSION_CACHE_OPERATIONS.labels(cache=self.name, result="hit").inc()
        return self._values[key]

    def set(self, key: str, value: V) -> None:
        self._values[key] = value
        self._expiry[key] = self._clock() + self._ttl

    def delete(self, key: str) -> None:
        self._values.pop(key, None)
        self._expiry.pop(key, None)

    def clear(self) -> None:
        self._values.clear()
        self._expiry.clear()

    def __len__(self) -> int:
        return len(self._values)
