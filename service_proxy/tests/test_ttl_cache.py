"""
Unit tests for the per-method TTL cache.
"""

import pytest

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from service_proxy.app.caching.ttl_cache import MethodTTLCache


class FakeClock:
    """Manually advanced clock returning seconds."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def advance_ms(self, ms: float):
        self.now += ms / 1000.0

    def __call__(self) -> float:
        return self.now


class TestMethodTTLCache:
    """Test cases for MethodTTLCache."""

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def cache(self, clock):
        return MethodTTLCache({"getVersion": 120000, "getLatestBlockhash": 5000}, clock=clock)

    def test_get_missing_key(self, cache):
        """Test reading a key that was never stored."""
        assert cache.get("getVersion") is None

    def test_add_and_get_within_ttl(self, cache, clock):
        """Test a stored value is returned until its TTL elapses."""
        assert cache.add("getVersion", b'{"result":"X"}') is True

        clock.advance_ms(1000)
        assert cache.get("getVersion") == b'{"result":"X"}'

    def test_entry_valid_at_exact_expiry_boundary(self, cache, clock):
        """Test an entry is still valid when now equals timestamp + ttl."""
        cache.add("getLatestBlockhash", b"hash")

        clock.advance_ms(5000)
        assert cache.get("getLatestBlockhash") == b"hash"

    def test_expired_entry_is_cleared_on_read(self, cache, clock):
        """Test lazy invalidation of expired entries."""
        cache.add("getLatestBlockhash", b"hash")

        clock.advance_ms(5001)
        assert cache.get("getLatestBlockhash") is None
        assert len(cache) == 0
        assert cache.stats()["expirations"] == 1

    def test_add_ignores_unconfigured_key(self, cache):
        """Test values for methods without a TTL are never stored."""
        assert cache.add("getBalance", b"42") is False
        assert cache.get("getBalance") is None
        assert len(cache) == 0

    @pytest.mark.parametrize("empty", [b"", "", None])
    def test_add_ignores_empty_value(self, cache, empty):
        """Test empty payloads are never cached."""
        assert cache.add("getVersion", empty) is False
        assert len(cache) == 0

    def test_add_overwrites_with_fresh_timestamp(self, cache, clock):
        """Test a second write replaces the value and restarts the TTL."""
        cache.add("getLatestBlockhash", b"first")
        clock.advance_ms(4000)
        cache.add("getLatestBlockhash", b"second")

        clock.advance_ms(4000)
        assert cache.get("getLatestBlockhash") == b"second"
        assert len(cache) == 1

    def test_is_cacheable(self, cache):
        """Test cacheability is membership in the TTL mapping."""
        assert cache.is_cacheable("getVersion") is True
        assert cache.is_cacheable("sendTransaction") is False
        assert cache.is_cacheable(None) is False
        assert cache.is_cacheable(["getVersion"]) is False

    def test_ttls_are_read_only(self):
        """Test the TTL mapping cannot be mutated after construction."""
        ttls = {"getVersion": 1000}
        cache = MethodTTLCache(ttls)
        ttls["getSlot"] = 1000

        assert cache.is_cacheable("getSlot") is False
        with pytest.raises(TypeError):
            cache.ttls["getSlot"] = 1000  # type: ignore[index]

    def test_stats_counts_hits_and_misses(self, cache):
        """Test hit/miss accounting."""
        cache.get("getVersion")
        cache.add("getVersion", b"v")
        cache.get("getVersion")
        cache.get("getVersion")

        stats = cache.stats()
        assert stats["hits"] == 2
        assert stats["misses"] == 1
        assert stats["entries"] == 1
