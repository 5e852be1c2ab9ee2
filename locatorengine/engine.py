"""ResolutionContext — per-test-run entry point for element resolution."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from locatorengine.ai import AnthropicElementIdentifier, BaseElementIdentifier
from locatorengine.cache import ResolutionCache
from locatorengine.config import ResolverConfig
from locatorengine.logger import get_logger
from locatorengine.orchestrator import ElementResolver

if TYPE_CHECKING:
    from playwright.async_api import Page

    from locatorengine.models import CacheStats, ElementDescriptor, ResolvedHandle

log = get_logger(__name__)


class ResolutionContext:
    """Owns one cache and one resolver for the lifetime of a test run."""

    def __init__(
        self,
        config: ResolverConfig | None = None,
        ai_identifier: BaseElementIdentifier | None = None,
        cache: ResolutionCache | None = None,
    ) -> None:
        self._config = config or ResolverConfig()
        if cache is None:
            cache = ResolutionCache(
                max_size=self._config.cache_max_size,
                ttl_ms=self._config.cache_ttl_ms,
                cleanup_interval=self._config.cache_cleanup_interval,
            )
        self._cache = cache
        self._resolver = ElementResolver(
            cache=self._cache,
            ai_identifier=ai_identifier or self._build_identifier(self._config),
        )

    # --- Lifecycle ---

    async def start(self) -> None:
        """Start background cache cleanup."""
        self._cache.start()
        log.info("resolution_context_started", cache_max_size=self._config.cache_max_size)

    async def stop(self) -> None:
        """Stop cleanup and release every cached handle."""
        await self._cache.dispose()
        log.info("resolution_context_stopped")

    async def __aenter__(self) -> ResolutionContext:
        await self.start()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.stop()

    # --- Resolution ---

    async def resolve(self, page: Page, descriptor: ElementDescriptor) -> ResolvedHandle:
        """Resolve a descriptor on the given page."""
        return await self._resolver.resolve(page, descriptor)

    # --- Cache control ---

    def invalidate_cache(
        self, *, key: str | None = None, document: str | None = None
    ) -> int:
        """Invalidate one key, every entry of one document, or everything.

        Returns the number of entries removed.
        """
        if key is not None and document is not None:
            raise ValueError("Pass either key or document, not both")
        if key is not None:
            return int(self._cache.invalidate(key))
        if document is not None:
            return self._cache.invalidate_by_document(document)
        return self._cache.invalidate_all()

    def cache_stats(self) -> CacheStats:
        return self._cache.stats()

    @property
    def cache(self) -> ResolutionCache:
        return self._cache

    # --- Private helpers ---

    @staticmethod
    def _build_identifier(config: ResolverConfig) -> BaseElementIdentifier | None:
        """Build the Anthropic identifier when an API key is configured."""
        if not config.anthropic_api_key:
            return None
        import anthropic

        client = anthropic.AsyncAnthropic(api_key=config.anthropic_api_key)
        return AnthropicElementIdentifier(client=client, model=config.ai_model)
