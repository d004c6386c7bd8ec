"""Unit tests for the TTL cache."""

import pytest

from utils.ttl_cache import TTLCache
from tests.utils import ManualClock


class TestTTLCache:
    """Test expiry driven by an injected clock."""

    def test_get_returns_value_within_ttl(self):
        clock = ManualClock()
        cache = TTLCache(300, clock=clock)
        cache.set("a", 1)

        clock.advance(299)

        assert cache.get("a") == 1

    def test_entry_expires_at_ttl(self):
        clock = ManualClock()
        cache = TTLCache(300, clock=clock)
        cache.set("a", 1)

        clock.advance(300)

        assert cache.get("a") is None
        assert len(cache) == 0

    def test_read_does_not_refresh_entry(self):
        clock = ManualClock()
        cache = TTLCache(300, clock=clock)
        cache.set("a", 1)

        clock.advance(200)
        assert cache.get("a") == 1
        clock.advance(150)

        assert cache.get("a") is None

    def test_missing_key(self):
        assert TTLCache(10).get("missing") is None

    def test_invalidate_single_key(self):
        cache = TTLCache(300, clock=ManualClock())
        cache.set("a", 1)
        cache.set("b", 2)

        cache.invalidate("a")

        assert cache.get("a") is None
        assert cache.get("b") == 2

    def test_invalidate_all(self):
        cache = TTLCache(300, clock=ManualClock())
        cache.set("a", 1)
        cache.set("b", 2)

        cache.invalidate()

        assert len(cache) == 0

    def test_rejects_non_positive_ttl(self):
        with pytest.raises(ValueError):
            TTLCache(0)
