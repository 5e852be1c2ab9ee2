"""Tests for the resolution cache."""

import asyncio
from unittest.mock import MagicMock, PropertyMock

import pytest

from locatorengine.cache import CachePerformanceAnalyzer, ResolutionCache
from locatorengine.models import (
    CacheStats,
    ElementDescriptor,
    LogicalFilters,
    ResolutionStrategy,
    ResolvedHandle,
)

URL = "https://app.test/login"


def _handle(url: str = URL, description: str = "Submit button") -> ResolvedHandle:
    locator = MagicMock(name="locator")
    locator.page.url = url
    return ResolvedHandle(
        locator=locator,
        strategy=ResolutionStrategy.DIRECT,
        description=description,
    )


def _descriptor(**kwargs) -> ElementDescriptor:
    return ElementDescriptor(
        strategy_kind="testid",
        strategy_value="submit-btn",
        description="Submit button",
        **kwargs,
    )


class TestGetAndSet:
    def test_hit_returns_same_handle(self, cache: ResolutionCache) -> None:
        handle = _handle()
        cache.set("k", handle)
        assert cache.get("k") is handle
        stats = cache.stats()
        assert stats.hits == 1
        assert stats.misses == 0
        assert stats.size == 1

    def test_missing_key_is_a_miss(self, cache: ResolutionCache) -> None:
        assert cache.get("nope") is None
        assert cache.stats().misses == 1

    def test_expired_entry_is_deleted(self, cache: ResolutionCache, clock) -> None:
        cache.set("k", _handle())
        clock.advance(0.5)
        assert cache.get("k") is not None
        clock.advance(0.5)
        assert cache.get("k") is None
        stats = cache.stats()
        assert stats.size == 0
        assert stats.misses == 1
        assert stats.invalidations == 1

    def test_document_change_deletes_entry(self, cache: ResolutionCache) -> None:
        handle = _handle()
        cache.set("k", handle)
        handle.locator.page.url = "https://app.test/dashboard"
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_unreadable_page_deletes_entry(self, cache: ResolutionCache) -> None:
        handle = _handle()
        cache.set("k", handle)
        type(handle.locator).page = PropertyMock(side_effect=RuntimeError("page closed"))
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_explicit_document_identity(self, cache: ResolutionCache) -> None:
        cache.set("k", _handle(), document_identity="https://other.test/")
        assert cache.get("k") is None

    def test_has_does_not_count(self, cache: ResolutionCache) -> None:
        cache.set("k", _handle())
        assert cache.has("k")
        assert not cache.has("missing")
        stats = cache.stats()
        assert stats.hits == 0
        assert stats.misses == 0

    def test_hit_rate(self, cache: ResolutionCache) -> None:
        cache.set("k", _handle())
        cache.get("k")
        cache.get("k")
        cache.get("missing")
        assert cache.stats().hit_rate == 0.67


class TestEviction:
    def test_least_recently_accessed_is_evicted(self, cache: ResolutionCache, clock) -> None:
        for key in ("a", "b", "c"):
            cache.set(key, _handle())
            clock.advance(0.01)
        cache.get("a")
        clock.advance(0.01)

        cache.set("d", _handle())

        assert cache.get("b") is None
        assert cache.get("a") is not None
        assert cache.get("c") is not None
        assert cache.get("d") is not None
        assert cache.stats().evictions == 1
        assert len(cache) == 3

    def test_overwrite_does_not_evict(self, cache: ResolutionCache) -> None:
        for key in ("a", "b", "c"):
            cache.set(key, _handle())
        cache.set("a", _handle())
        assert cache.stats().evictions == 0
        assert len(cache) == 3

    def test_set_max_size_shrinks(self, cache: ResolutionCache, clock) -> None:
        for key in ("a", "b", "c"):
            cache.set(key, _handle())
            clock.advance(0.01)
        cache.set_max_size(1)
        assert len(cache) == 1
        assert cache.has("c")
        assert cache.stats().evictions == 2

    def test_invalid_size_rejected(self) -> None:
        with pytest.raises(ValueError):
            ResolutionCache(max_size=0)


class TestInvalidation:
    def test_invalidate_single_key(self, cache: ResolutionCache) -> None:
        cache.set("k", _handle())
        assert cache.invalidate("k") is True
        assert cache.invalidate("k") is False
        assert cache.stats().invalidations == 1

    def test_invalidate_by_document_is_exact(self, clock) -> None:
        cache = ResolutionCache(max_size=10, clock=clock)
        cache.set("login-1", _handle())
        cache.set("login-2", _handle())
        cache.set("dash", _handle("https://app.test/dashboard"))
        cache.set("login-q", _handle("https://app.test/login?next=/"))

        assert cache.invalidate_by_document(URL) == 2
        assert not cache.has("login-1")
        assert not cache.has("login-2")
        assert cache.has("dash")
        assert cache.has("login-q")

    def test_invalidate_all(self, cache: ResolutionCache) -> None:
        cache.set("a", _handle())
        cache.set("b", _handle())
        assert cache.invalidate_all() == 2
        stats = cache.stats()
        assert stats.size == 0
        assert stats.invalidations == 2


class TestKeys:
    def test_key_prefix(self) -> None:
        key = ResolutionCache.make_key(URL, _descriptor())
        assert key.startswith(f"{URL}::testid::submit-btn::")

    def test_same_descriptor_same_key(self) -> None:
        a = ResolutionCache.make_key(URL, _descriptor())
        b = ResolutionCache.make_key(URL, _descriptor())
        assert a == b

    def test_description_does_not_affect_key(self) -> None:
        other = ElementDescriptor(
            strategy_kind="testid", strategy_value="submit-btn", description="Save"
        )
        assert ResolutionCache.make_key(URL, _descriptor()) == ResolutionCache.make_key(
            URL, other
        )

    def test_filters_widen_key(self) -> None:
        plain = ResolutionCache.make_key(URL, _descriptor())
        filtered = ResolutionCache.make_key(
            URL, _descriptor(filters=LogicalFilters(has_text="Pay"))
        )
        assert plain != filtered

    def test_document_is_part_of_key(self) -> None:
        a = ResolutionCache.make_key(URL, _descriptor())
        b = ResolutionCache.make_key("https://app.test/other", _descriptor())
        assert a != b


class TestCleanup:
    def test_cleanup_expired(self, cache: ResolutionCache, clock) -> None:
        cache.set("old", _handle())
        clock.advance(0.5)
        cache.set("new", _handle())
        clock.advance(0.6)
        assert cache.cleanup_expired() == 1
        assert not cache.has("old")
        assert cache.has("new")

    async def test_background_task_removes_expired(self, clock) -> None:
        cache = ResolutionCache(max_size=5, ttl_ms=1000, cleanup_interval=0.01, clock=clock)
        cache.set("k", _handle())
        clock.advance(2)
        cache.start()
        assert cache.cleanup_running
        await asyncio.sleep(0.05)
        assert len(cache) == 0
        assert len(cache.analyzer) >= 1
        assert cache.analyzer.recent(1)[0].stats.invalidations == 1
        await cache.dispose()
        assert not cache.cleanup_running

    async def test_dispose_resets_state(self, cache: ResolutionCache) -> None:
        cache.start()
        cache.set("k", _handle())
        cache.get("k")
        await cache.dispose()
        stats = cache.stats()
        assert stats.size == 0
        assert stats.hits == 0

    def test_debug_info(self, cache: ResolutionCache) -> None:
        cache.set("k", _handle())
        info = cache.debug_info()
        assert info["total_entries"] == 1
        assert info["config"]["max_size"] == 3
        assert info["entries"][0]["description"] == "Submit button"
        assert info["config"]["auto_cleanup"] is False


class TestPerformanceAnalyzer:
    @staticmethod
    def _stats(hit_rate: float, evictions: int = 0, invalidations: int = 0) -> CacheStats:
        return CacheStats(hit_rate=hit_rate, evictions=evictions, invalidations=invalidations)

    def test_empty_history(self) -> None:
        analyzer = CachePerformanceAnalyzer()
        assert analyzer.average_hit_rate() == 0.0
        assert analyzer.total_evictions() == 0
        assert analyzer.recent() == []

    def test_aggregates(self, clock) -> None:
        analyzer = CachePerformanceAnalyzer(clock=clock)
        analyzer.record(self._stats(0.5, evictions=1, invalidations=2))
        clock.advance(1)
        analyzer.record(self._stats(0.75, evictions=3))
        clock.advance(1)
        analyzer.record(self._stats(0.8, invalidations=4))

        assert analyzer.average_hit_rate() == 0.68
        assert analyzer.total_evictions() == 4
        assert analyzer.total_invalidations() == 6
        recent = analyzer.recent(2)
        assert [snapshot.stats.hit_rate for snapshot in recent] == [0.75, 0.8]
        assert [snapshot.recorded_at for snapshot in recent] == [1001.0, 1002.0]

    def test_history_is_bounded(self) -> None:
        analyzer = CachePerformanceAnalyzer(history_size=100)
        for index in range(105):
            analyzer.record(self._stats(0.0, evictions=index))
        assert len(analyzer) == 100
        assert analyzer.recent(1)[0].stats.evictions == 104
        assert analyzer.recent(200)[0].stats.evictions == 5

    def test_reset(self) -> None:
        analyzer = CachePerformanceAnalyzer()
        analyzer.record(self._stats(1.0))
        analyzer.reset()
        assert len(analyzer) == 0

    async def test_dispose_resets_history(self, cache: ResolutionCache) -> None:
        cache.analyzer.record(cache.stats())
        await cache.dispose()
        assert len(cache.analyzer) == 0

    def test_debug_info_reports_average(self, cache: ResolutionCache) -> None:
        cache.analyzer.record(self._stats(0.4))
        cache.analyzer.record(self._stats(0.6))
        assert cache.debug_info()["average_hit_rate"] == 0.5
