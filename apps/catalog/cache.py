"""
cache.py — Time-boxed cache for the combined catalog.

The last good value is kept even after it expires or is invalidated, so a
failed refresh can still fall back to it via peek().
"""

import threading
import time
from typing import Any, Callable


class TTLCache:
    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._value: Any = None
        self._stored_at: float | None = None
        self._stale = True
        self._generation = 0

    @property
    def generation(self) -> int:
        """Incremented by every set(); lets waiters see that a refresh landed."""
        with self._lock:
            return self._generation

    def get(self) -> Any:
        """Return the cached value while it is fresh, else None."""
        with self._lock:
            if self._stored_at is None or self._stale:
                return None
            if self._clock() - self._stored_at > self.ttl:
                return None
            return self._value

    def peek(self) -> Any:
        """Return the last value stored, fresh or not (None if never set)."""
        with self._lock:
            return self._value

    def set(self, value: Any) -> None:
        with self._lock:
            self._value = value
            self._stored_at = self._clock()
            self._stale = False
            self._generation += 1

    def invalidate(self) -> None:
        """Force the next get() to miss. The value stays available to peek()."""
        with self._lock:
            self._stale = True

    def age_seconds(self) -> float | None:
        with self._lock:
            if self._stored_at is None:
                return None
            return self._clock() - self._stored_at
