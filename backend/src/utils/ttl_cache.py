"""
Key-value cache with a fixed time-to-live.

The clock is injected so expiry can be driven deterministically in tests.
Entries are not refreshed on read: a value stays valid for `ttl_seconds`
after it was stored, then the next `get` drops it.
"""

import time
from typing import Callable, Dict, Generic, Optional, Tuple, TypeVar

V = TypeVar("V")


class TTLCache(Generic[V]):
    """In-memory cache keyed by string with a fixed TTL per entry."""

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        """
        Initialize cache.

        Args:
            ttl_seconds: Time-to-live in seconds
            clock: Zero-argument callable returning the current time in seconds
        """
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[V, float]] = {}

    def _is_expired(self, stored_at: float) -> bool:
        return self._clock() - stored_at >= self.ttl_seconds

    def get(self, key: str) -> Optional[V]:
        """Return the cached value, or None if missing or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None

        value, stored_at = entry
        if self._is_expired(stored_at):
            del self._entries[key]
            return None

        return value

    def set(self, key: str, value: V) -> None:
        self._entries[key] = (value, self._clock())

    def invalidate(self, key: Optional[str] = None) -> None:
        """Drop one key, or every key when called without arguments."""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)
