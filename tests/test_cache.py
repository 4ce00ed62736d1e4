"""Tests for cache module."""

import asyncio

import pytest

from stoch_screener.cache import TTLCache


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return TTLCache(ttl_seconds=1800, clock=clock)


class TestCacheGetSet:
    """Tests for get/set round trips."""

    def test_get_after_set_returns_value(self, cache):
        """get immediately after set returns the stored payload."""
        cache.set(("BBCA", 100), "series")
        assert cache.get(("BBCA", 100)) == "series"

    def test_missing_key_returns_none(self, cache):
        assert cache.get(("XXXX", 100)) is None

    def test_set_overwrites(self, cache):
        cache.set("k", 1)
        cache.set("k", 2)
        assert cache.get("k") == 2
        assert len(cache) == 1

    def test_entry_valid_until_ttl(self, cache, clock):
        """Exactly at TTL the entry is still served."""
        cache.set("k", 1)
        clock.now = 1800
        assert cache.get("k") == 1

    def test_expired_get_returns_none_and_evicts(self, cache, clock):
        """After TTL, get returns None and removes the entry."""
        cache.set("k", 1)
        clock.now = 1801

        assert cache.get("k") is None
        assert len(cache) == 0

    def test_has_and_delete(self, cache):
        cache.set("k", 1)
        assert cache.has("k")
        assert cache.delete("k") is True
        assert cache.delete("k") is False
        assert not cache.has("k")

    def test_clear(self, cache):
        cache.set("a", 1)
        cache.set("b", 2)
        cache.clear()
        assert len(cache) == 0


class TestClearExpired:
    """Tests for the expiry sweep."""

    def test_removes_only_expired(self, cache, clock):
        cache.set("old", 1)
        clock.now = 1000
        cache.set("new", 2)
        clock.now = 2000

        removed = cache.clear_expired()

        assert removed == 1
        assert cache.get("new") == 2
        assert cache.get("old") is None

    def test_nothing_to_remove(self, cache):
        cache.set("a", 1)
        assert cache.clear_expired() == 0


class TestGetStats:
    """Tests for cache statistics."""

    def test_counts_hits_misses_and_expired(self, cache, clock):
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a")
        cache.get("missing")
        clock.now = 1900

        stats = cache.get_stats()

        assert stats["total_entries"] == 2
        assert stats["expired_entries"] == 2
        assert stats["valid_entries"] == 0
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["oldest_entry_seconds"] == 1900

    def test_empty_cache_stats(self, cache):
        stats = cache.get_stats()
        assert stats["total_entries"] == 0
        assert stats["oldest_entry_seconds"] is None


class TestSweeper:
    """Tests for the background sweep task."""

    def test_sweeper_removes_expired_entries(self):
        cache = TTLCache(ttl_seconds=0.01)

        async def run():
            cache.set("a", 1)
            task = cache.start_sweeper(interval=0.02)
            await asyncio.sleep(0.1)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task
            return len(cache)

        assert asyncio.run(run()) == 0
