"""
Unit tests for ResponseCache and make_cache_key.

Tests cover:
- Set/get round trip and TTL expiry (lazy eviction on read)
- Cached None values distinguished from misses
- Prefix clears, invalidation and purge
- Stable content-addressed keys
- Hit/miss/eviction metrics
"""

import pytest

from model_orchestrator.cache import CacheEntry, ResponseCache, make_cache_key
from model_orchestrator.observability import (
    CACHE_EVICTIONS_TOTAL,
    CACHE_HITS_TOTAL,
    CACHE_MISSES_TOTAL,
)


class TestGetSet:
    """Basic cache behavior."""

    def test_round_trip_within_ttl(self, clock):
        cache = ResponseCache(default_ttl=60.0, clock=clock)
        cache.set("k", {"text": "hello"})
        clock.advance(59.0)
        assert cache.get("k") == {"text": "hello"}

    def test_absent_after_ttl(self, clock):
        cache = ResponseCache(default_ttl=60.0, clock=clock)
        cache.set("k", "v")
        clock.advance(60.5)
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_entry_at_exact_ttl_still_valid(self, clock):
        cache = ResponseCache(default_ttl=60.0, clock=clock)
        cache.set("k", "v")
        clock.advance(60.0)
        assert cache.get("k") == "v"

    def test_per_entry_ttl(self, clock):
        cache = ResponseCache(default_ttl=300.0, clock=clock)
        cache.set("short", 1, ttl=1.0)
        cache.set("long", 2)
        clock.advance(2.0)
        assert cache.get("short") is None
        assert cache.get("long") == 2

    def test_set_overwrites(self, clock):
        cache = ResponseCache(clock=clock)
        cache.set("k", "old")
        cache.set("k", "new")
        assert cache.get("k") == "new"
        assert len(cache) == 1

    def test_overwrite_refreshes_timestamp(self, clock):
        cache = ResponseCache(default_ttl=10.0, clock=clock)
        cache.set("k", "v1")
        clock.advance(8.0)
        cache.set("k", "v2")
        clock.advance(8.0)
        assert cache.get("k") == "v2"

    def test_lookup_distinguishes_cached_none(self, clock):
        cache = ResponseCache(clock=clock)
        cache.set("none", None)
        assert cache.lookup("none") == (True, None)
        assert cache.lookup("missing") == (False, None)

    def test_contains_respects_expiry(self, clock):
        cache = ResponseCache(default_ttl=5.0, clock=clock)
        cache.set("k", "v")
        assert "k" in cache
        clock.advance(6.0)
        assert "k" not in cache

    def test_invalid_ttls_rejected(self, clock):
        with pytest.raises(ValueError):
            ResponseCache(default_ttl=0)
        cache = ResponseCache(clock=clock)
        with pytest.raises(ValueError):
            cache.set("k", "v", ttl=-1)

    def test_cache_entry_expiry(self):
        entry = CacheEntry(key="k", value="v", stored_at=100.0, ttl=10.0)
        assert entry.is_expired(110.0) is False
        assert entry.is_expired(110.1) is True


class TestRemoval:
    """Clearing, invalidation and purging."""

    def test_clear_all(self, clock):
        cache = ResponseCache(clock=clock)
        cache.set("a", 1)
        cache.set("b", 2)
        assert cache.clear() == 2
        assert len(cache) == 0

    def test_clear_prefix(self, clock):
        cache = ResponseCache(clock=clock)
        cache.set("req:chat_assistant:1", 1)
        cache.set("req:chat_assistant:2", 2)
        cache.set("req:bulk_content:3", 3)
        assert cache.clear("req:chat_assistant:") == 2
        assert cache.get("req:bulk_content:3") == 3

    def test_invalidate(self, clock):
        cache = ResponseCache(clock=clock)
        cache.set("k", "v")
        assert cache.invalidate("k") is True
        assert cache.invalidate("k") is False

    def test_purge_expired(self, clock):
        cache = ResponseCache(default_ttl=10.0, clock=clock)
        cache.set("old", 1)
        clock.advance(5.0)
        cache.set("new", 2)
        clock.advance(6.0)
        assert cache.purge_expired() == 1
        assert len(cache) == 1
        assert cache.stats.evictions == 1


class TestStatsAndMetrics:
    """Counters kept on the cache and exported to the collector."""

    def test_stats(self, clock):
        cache = ResponseCache(default_ttl=1.0, clock=clock)
        cache.set("k", "v")
        cache.get("k")
        cache.get("missing")
        clock.advance(2.0)
        cache.get("k")

        assert cache.stats.hits == 1
        assert cache.stats.misses == 2
        assert cache.stats.evictions == 1
        assert cache.stats.hit_ratio == pytest.approx(1 / 3)

    def test_metrics_recorded(self, clock, metrics):
        cache = ResponseCache(default_ttl=1.0, clock=clock, metrics_collector=metrics)
        cache.set("k", "v")
        cache.get("k")
        clock.advance(2.0)
        cache.get("k")

        assert metrics.get_counter(CACHE_HITS_TOTAL) == 1
        assert metrics.get_counter(CACHE_MISSES_TOTAL) == 1
        assert metrics.get_counter(CACHE_EVICTIONS_TOTAL) == 1


class TestMakeCacheKey:
    """Content-addressed keys."""

    def test_key_is_stable_across_dict_order(self):
        first = make_cache_key("chat_assistant", {"a": 1, "b": [1, 2]}, "gpt-4o")
        second = make_cache_key("chat_assistant", {"b": [1, 2], "a": 1}, "gpt-4o")
        assert first == second

    def test_key_format(self):
        key = make_cache_key("bulk_content", "prompt", "gpt-4o-mini")
        namespace, task, digest = key.split(":")
        assert namespace == "req"
        assert task == "bulk_content"
        assert len(digest) == 64

    def test_key_changes_with_model_and_payload(self):
        base = make_cache_key("chat_assistant", "hi", "gpt-4o")
        assert make_cache_key("chat_assistant", "hi", "gpt-4o-mini") != base
        assert make_cache_key("chat_assistant", "hello", "gpt-4o") != base

    def test_non_json_values_accepted(self):
        key = make_cache_key("chat_assistant", {"when": object}, "gpt-4o")
        assert key.startswith("req:chat_assistant:")

    def test_custom_namespace(self):
        assert make_cache_key("t", "p", "m", namespace="brand").startswith("brand:t:")
