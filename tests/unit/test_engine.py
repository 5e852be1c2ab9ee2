"""Tests for the resolution context."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from locatorengine.ai import AIIdentification, AnthropicElementIdentifier, BaseElementIdentifier
from locatorengine.config import ResolverConfig
from locatorengine.engine import ResolutionContext
from locatorengine.models import AIHint, ElementDescriptor, ResolutionStrategy


def _descriptor(value: str = "submit-btn", **kwargs) -> ElementDescriptor:
    return ElementDescriptor(
        strategy_kind="testid", strategy_value=value, description=f"{value} element", **kwargs
    )


class TestConstruction:
    def test_cache_follows_config(self) -> None:
        context = ResolutionContext(ResolverConfig(cache_max_size=5, cache_ttl_ms=10))
        info = context.cache.debug_info()
        assert info["config"]["max_size"] == 5
        assert info["config"]["ttl_ms"] == 10

    def test_no_api_key_means_no_identifier(self) -> None:
        assert ResolutionContext._build_identifier(ResolverConfig()) is None

    def test_api_key_builds_anthropic_identifier(self) -> None:
        config = ResolverConfig(anthropic_api_key="sk-test", ai_model="test-model")
        with patch("anthropic.AsyncAnthropic") as mock_client_cls:
            identifier = ResolutionContext._build_identifier(config)
        assert isinstance(identifier, AnthropicElementIdentifier)
        mock_client_cls.assert_called_once_with(api_key="sk-test")


class TestLifecycle:
    async def test_async_with_starts_and_stops_cleanup(self) -> None:
        async with ResolutionContext() as context:
            assert context.cache.cleanup_running
        assert not context.cache.cleanup_running

    async def test_stop_releases_cached_handles(self, page, make_locator) -> None:
        page.get_by_test_id.return_value = make_locator(count=1)
        context = ResolutionContext()
        await context.start()
        await context.resolve(page, _descriptor())
        assert context.cache_stats().size == 1

        await context.stop()
        assert context.cache_stats().size == 0


class TestResolve:
    async def test_resolves_and_caches(self, page, make_locator) -> None:
        page.get_by_test_id.return_value = make_locator(count=1)
        context = ResolutionContext()

        first = await context.resolve(page, _descriptor())
        second = await context.resolve(page, _descriptor())

        assert first is second
        assert first.strategy == ResolutionStrategy.DIRECT
        stats = context.cache_stats()
        assert (stats.hits, stats.misses, stats.hit_rate) == (1, 1, 0.5)

    async def test_injected_identifier_heals(self, page, make_locator) -> None:
        page.get_by_test_id.return_value = make_locator(count=0)
        healed = make_locator(count=1)
        identifier = MagicMock(spec=BaseElementIdentifier)
        identifier.identify_by_description = AsyncMock(
            return_value=AIIdentification(locator=healed, confidence=0.9)
        )
        context = ResolutionContext(ai_identifier=identifier)

        handle = await context.resolve(
            page, _descriptor(ai_hint=AIHint(description="the submit button"))
        )
        assert handle.strategy == ResolutionStrategy.AI
        assert handle.locator is healed


class TestInvalidateCache:
    @pytest.fixture
    async def filled(self, page, make_locator) -> ResolutionContext:
        page.get_by_test_id.return_value = make_locator(count=1)
        context = ResolutionContext()
        for value in ("a", "b", "c"):
            await context.resolve(page, _descriptor(value))
        return context

    async def test_invalidate_all(self, filled) -> None:
        assert filled.invalidate_cache() == 3
        assert filled.cache_stats().size == 0

    async def test_invalidate_by_document(self, filled) -> None:
        assert filled.invalidate_cache(document="https://other.test/") == 0
        assert filled.invalidate_cache(document="https://app.test/login") == 3

    async def test_invalidate_single_key(self, filled, page) -> None:
        key = filled.cache.make_key(page.url, _descriptor("b"))
        assert filled.invalidate_cache(key=key) == 1
        assert filled.invalidate_cache(key=key) == 0
        assert filled.cache_stats().size == 2

    async def test_key_and_document_are_exclusive(self, filled) -> None:
        with pytest.raises(ValueError, match="either key or document"):
            filled.invalidate_cache(key="k", document="d")
