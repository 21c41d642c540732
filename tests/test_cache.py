"""Tests for the in-memory TTL response cache.

Covers:
- Lazy expiry on read
- FIFO (insertion-order) eviction at capacity
- Bulk sweep and the background sweeper task
"""

from __future__ import annotations

import asyncio

import pytest

from wpcontent.utils.cache import ResponseCache
from tests.mocks.mock_wordpress import FakeClock


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return ResponseCache(max_size=3, clock=clock)


class TestGetSet:

    def test_roundtrip(self, cache):
        cache.set("/posts?page=1", {"ok": True}, 60)
        assert cache.get("/posts?page=1") == {"ok": True}

    def test_missing_key(self, cache):
        assert cache.get("/nope") is None

    def test_valid_at_exact_ttl(self, cache, clock):
        cache.set("k", "v", 60)
        clock.advance(60)
        assert cache.get("k") == "v"

    def test_expired_entry_deleted_on_read(self, cache, clock):
        cache.set("k", "v", 60)
        clock.advance(60.5)
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_overwrite_replaces_entry_and_ttl(self, cache, clock):
        cache.set("k", "old", 10)
        clock.advance(8)
        cache.set("k", "new", 10)
        clock.advance(8)
        assert cache.get("k") == "new"

    def test_contains_is_expiry_aware(self, cache, clock):
        cache.set("k", "v", 5)
        assert "k" in cache
        clock.advance(6)
        assert "k" not in cache

    def test_falsy_values_are_cached(self, cache):
        cache.set("empty", [], 60)
        assert cache.get("empty") == []
        assert "empty" in cache


class TestEviction:

    def test_oldest_inserted_evicted_first(self, cache):
        for key in ("a", "b", "c"):
            cache.set(key, key, 60)
        cache.set("d", "d", 60)
        assert cache.get("a") is None
        assert [cache.get(k) for k in ("b", "c", "d")] == ["b", "c", "d"]

    def test_reads_do_not_protect_from_eviction(self, cache):
        """FIFO, not LRU: reading the oldest key does not save it."""
        for key in ("a", "b", "c"):
            cache.set(key, key, 60)
        cache.get("a")
        cache.set("d", "d", 60)
        assert cache.get("a") is None

    def test_overwrite_at_capacity_evicts_nothing(self, cache):
        for key in ("a", "b", "c"):
            cache.set(key, key, 60)
        cache.set("b", "B", 60)
        assert len(cache) == 3
        assert cache.get("a") == "a"
        assert cache.get("b") == "B"

    def test_size_never_exceeds_max(self, cache):
        for i in range(20):
            cache.set(f"k{i}", i, 60)
            assert len(cache) <= 3


class TestDeleteClearSweep:

    def test_delete_reports_removal(self, cache):
        cache.set("k", "v", 60)
        assert cache.delete("k") is True
        assert cache.delete("k") is False

    def test_clear(self, cache):
        cache.set("a", 1, 60)
        cache.set("b", 2, 60)
        cache.clear()
        assert len(cache) == 0

    def test_sweep_removes_only_expired(self, cache, clock):
        cache.set("short", 1, 10)
        cache.set("long", 2, 100)
        clock.advance(50)
        assert cache.sweep() == 1
        assert len(cache) == 1
        assert cache.get("long") == 2


class TestSweeper:

    @pytest.mark.asyncio
    async def test_background_sweep_removes_unread_entries(self, cache, clock):
        cache.set("never-read", 1, 10)
        clock.advance(11)
        cache.start_sweeper(interval=0.01)
        try:
            for _ in range(50):
                if len(cache) == 0:
                    break
                await asyncio.sleep(0.01)
            assert len(cache) == 0
        finally:
            await cache.stop_sweeper()

    @pytest.mark.asyncio
    async def test_start_is_idempotent_and_stop_cancels(self, cache):
        cache.start_sweeper(interval=60)
        first = cache._sweeper
        cache.start_sweeper(interval=60)
        assert cache._sweeper is first
        assert cache.sweeper_running

        await cache.stop_sweeper()
        assert not cache.sweeper_running
        assert first.cancelled()

    @pytest.mark.asyncio
    async def test_stop_without_start(self, cache):
        await cache.stop_sweeper()
        assert not cache.sweeper_running
