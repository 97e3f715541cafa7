"""
In-process cache for student data validation results.

Validation is pure but runs on every resolution attempt; the cache avoids
repeating it for the same data within a short window. Keys are
``(student_id, StudentBillingData)`` pairs, so editing a student's data
naturally misses the cache.

The clock is injected so tests can move time without sleeping.

Usage:
    from billing.cache import ValidationCache

    cache = ValidationCache(ttl_seconds=30)
    result = cache.get(key)
    if result is None:
        result = validate_student_billing_data(data)
        cache.set(key, result)
"""

from __future__ import annotations

import threading
import time
from typing import TYPE_CHECKING, Callable, Generic, Hashable, TypeVar

if TYPE_CHECKING:
    from typing import Any

V = TypeVar("V")


class ValidationCache(Generic[V]):
    """
    Time-bounded key/value cache.

    Args:
        ttl_seconds: Lifetime of an entry; 0 disables caching
        clock: Monotonic seconds source (default: time.monotonic)
    """

    def __init__(
        self,
        ttl_seconds: float = 30,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must not be negative")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[Hashable, tuple[float, V]] = {}
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> V | None:
        """Return the cached value, or None when absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: Hashable, value: V) -> None:
        if self.ttl_seconds == 0:
            return
        with self._lock:
            self._entries[key] = (self._clock() + self.ttl_seconds, value)

    def invalidate(self, student_id: Any) -> int:
        """
        Drop every entry belonging to one student.

        Returns:
            Number of entries removed
        """
        with self._lock:
            stale = [
                key
                for key in self._entries
                if key == student_id or (isinstance(key, tuple) and key and key[0] == student_id)
            ]
            for key in stale:
                del self._entries[key]
            return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
