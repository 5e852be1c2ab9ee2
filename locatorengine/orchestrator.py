"""Resolution pipeline: cache, primary, advanced, fallback and AI stages."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

from playwright.async_api import expect

from locatorengine.advanced_selectors import SHADOW_DELIMITER, SelectorEngine
from locatorengine.cache import ResolutionCache
from locatorengine.exceptions import (
    AIIdentificationError,
    AmbiguousElementError,
    DescriptorError,
    ElementNotFoundError,
    FrameNotFoundError,
)
from locatorengine.locator_builder import LocatorBuilder
from locatorengine.logger import get_logger
from locatorengine.models import ResolutionStrategy, ResolvedHandle, StrategyKind

if TYPE_CHECKING:
    from playwright.async_api import Locator, Page

    from locatorengine.ai import AIIdentification, BaseElementIdentifier
    from locatorengine.models import ElementDescriptor, SimpleDescriptor, WaitPolicy

log = get_logger(__name__)


def _elapsed_ms(start: float) -> float:
    return round((time.monotonic() - start) * 1000, 2)


class ElementResolver:
    """Resolves element descriptors to locators through an ordered pipeline.

    Stages run strictly in sequence: cache check, primary strategy, advanced
    (spatial/logical/component) selectors, the fallback chain, then AI
    healing. The first stage to produce a locator wins; filters, ``nth`` and
    cardinality rules are applied to it before it is cached.

    Page-state failures inside a stage are logged at debug level and move the
    pipeline on. Descriptor errors and AI failures are raised to the caller.
    """

    def __init__(
        self,
        cache: ResolutionCache | None = None,
        builder: LocatorBuilder | None = None,
        selectors: SelectorEngine | None = None,
        ai_identifier: BaseElementIdentifier | None = None,
    ) -> None:
        self.cache = cache if cache is not None else ResolutionCache()
        self._builder = builder or LocatorBuilder()
        self._selectors = selectors or SelectorEngine(self._builder)
        self._ai = ai_identifier

    async def resolve(self, page: Page, descriptor: ElementDescriptor) -> ResolvedHandle:
        """Resolve ``descriptor`` on ``page``.

        Raises:
            ElementNotFoundError: No stage matched, or zero matches after filtering.
            AmbiguousElementError: Strict descriptor matched more than one element.
            UnsupportedStrategyError: Unknown strategy kind.
            UnsupportedFrameworkError: Unknown component framework.
            IndexOutOfRangeError: ``nth`` index outside the candidate set.
            AIIdentificationError: The AI stage was reached and failed.
        """
        start = time.monotonic()
        log.info(
            "element_resolution_started",
            element=descriptor.description,
            strategy_kind=descriptor.strategy_kind.value,
            strategy_value=descriptor.strategy_value,
        )

        document = page.url
        key = ResolutionCache.make_key(document, descriptor)
        cached = self.cache.get(key)
        if cached is not None:
            log.info(
                "element_cache_hit",
                element=descriptor.description,
                strategy=cached.strategy.value,
            )
            return cached

        try:
            handle = await self._run_pipeline(page, descriptor, start)
        except Exception as exc:
            log.error(
                "element_resolution_failed",
                element=descriptor.description,
                error=str(exc),
                error_type=type(exc).__name__,
                duration_ms=_elapsed_ms(start),
            )
            raise

        self.cache.set(key, handle, document_identity=document)
        log.info(
            "element_resolved",
            element=descriptor.description,
            strategy=handle.strategy.value,
            confidence=handle.confidence,
            fallbacks_used=handle.fallbacks_used,
            duration_ms=handle.resolution_time_ms,
        )
        return handle

    async def _run_pipeline(
        self, page: Page, descriptor: ElementDescriptor, start: float
    ) -> ResolvedHandle:
        locator: Locator | None = None
        strategy = ResolutionStrategy.DIRECT
        confidence = 1.0
        fallbacks_used = 0

        # Spatial descriptors use their primary strategy as the candidate base.
        if descriptor.has_layout:
            log.debug("primary_deferred_to_layout", element=descriptor.description)
        else:
            locator = await self._try_primary(
                page,
                descriptor,
                descriptor.description,
                frame=descriptor.frame,
                shadow_piercing=descriptor.shadow_piercing,
                wait=descriptor.wait,
            )

        if locator is None and descriptor.has_advanced_constraints:
            locator = await self._try_advanced(page, descriptor)
            if locator is not None:
                strategy = descriptor.advanced_strategy

        if locator is None and descriptor.fallbacks:
            found = await self._try_fallbacks(page, descriptor)
            if found is not None:
                locator, fallbacks_used = found
                strategy = ResolutionStrategy.FALLBACK

        if locator is None and descriptor.ai_enabled:
            identification = await self._try_ai(page, descriptor)
            locator = identification.locator
            confidence = identification.confidence
            strategy = ResolutionStrategy.AI

        if locator is None:
            raise ElementNotFoundError(descriptor.description, "all strategies exhausted")

        # AI proposals are built on the page; every other stage on the frame context.
        if strategy == ResolutionStrategy.AI:
            root = page
        else:
            root = self._frame_root(page, descriptor.frame)
        locator = await self._apply_filters(root, locator, descriptor)
        locator = await self._enforce_cardinality(locator, descriptor)

        return ResolvedHandle(
            locator=locator,
            strategy=strategy,
            description=descriptor.description,
            confidence=confidence,
            fallbacks_used=fallbacks_used,
            resolution_time_ms=_elapsed_ms(start),
        )

    # --- Stages ---

    async def _try_primary(
        self,
        page: Page,
        target: SimpleDescriptor,
        description: str,
        *,
        frame: int | str | None = None,
        shadow_piercing: bool = False,
        wait: WaitPolicy | None = None,
    ) -> Locator | None:
        try:
            root = self._frame_root(page, frame)
            locator = self._build_target(root, target, shadow_piercing)

            if wait is not None:
                await self._wait_for(locator, wait)

            if await locator.count() == 0:
                log.debug("primary_locator_empty", element=description)
                return None
            return locator
        except DescriptorError:
            raise
        except Exception as exc:
            log.debug("primary_locator_failed", element=description, error=str(exc))
            return None

    async def _try_advanced(
        self, page: Page, descriptor: ElementDescriptor
    ) -> Locator | None:
        try:
            root = self._frame_root(page, descriptor.frame)
            if descriptor.has_layout:
                base = self._build_target(root, descriptor, descriptor.shadow_piercing)
                # The sentinel is a result: cardinality reports the zero count.
                locator = await self._selectors.resolve_layout(
                    root, base, descriptor.spatial
                )
                if await locator.count() > 0:
                    await self._wait_for(locator, descriptor.wait)
                return locator

            if not descriptor.filters.is_empty:
                locator = self._selectors.resolve_filter(root, descriptor.filters)
            elif descriptor.component is not None:
                locator = self._selectors.resolve_component(root, descriptor.component)
            else:
                return None

            if await locator.count() == 0:
                log.debug(
                    "advanced_selector_empty",
                    element=descriptor.description,
                    strategy=descriptor.advanced_strategy.value,
                )
                return None
            return locator
        except DescriptorError:
            raise
        except Exception as exc:
            log.debug(
                "advanced_selectors_failed",
                element=descriptor.description,
                error=str(exc),
            )
            return None

    async def _try_fallbacks(
        self, page: Page, descriptor: ElementDescriptor
    ) -> tuple[Locator, int] | None:
        for index, fallback in enumerate(descriptor.fallbacks, start=1):
            locator = await self._try_primary(
                page,
                fallback,
                f"{descriptor.description} (fallback {index})",
                frame=descriptor.frame,
            )
            if locator is not None:
                log.info(
                    "fallback_succeeded",
                    element=descriptor.description,
                    fallback_index=index,
                    fallback_value=fallback.strategy_value,
                )
                return locator, index
        return None

    async def _try_ai(
        self, page: Page, descriptor: ElementDescriptor
    ) -> AIIdentification:
        # Only reached when descriptor.ai_enabled, so the hint is populated.
        hint = descriptor.ai_hint
        if self._ai is None:
            raise AIIdentificationError(
                descriptor.description, "No AI identifier configured"
            )

        try:
            result = await self._ai.identify_by_description(
                hint.description, page, hint.confidence_threshold
            )
        except AIIdentificationError as exc:
            raise AIIdentificationError(descriptor.description, exc.detail) from exc
        except Exception as exc:
            raise AIIdentificationError(descriptor.description, str(exc)) from exc

        log.info(
            "ai_identification_succeeded",
            element=descriptor.description,
            ai_description=hint.description,
            confidence=result.confidence,
        )
        return result

    async def _apply_filters(
        self, root: Any, locator: Locator, descriptor: ElementDescriptor
    ) -> Locator:
        if not descriptor.filters.is_empty:
            locator = self._selectors.resolve_filter(root, descriptor.filters, base=locator)
        if descriptor.nth is not None:
            locator = await self._selectors.resolve_nth(
                locator, descriptor.nth, descriptor.description
            )
        return locator

    async def _enforce_cardinality(
        self, locator: Locator, descriptor: ElementDescriptor
    ) -> Locator:
        strict = descriptor.cardinality.strict
        count = await locator.count()
        if count == 0:
            if strict is not False:
                raise ElementNotFoundError(
                    descriptor.description, "no element matched after filtering"
                )
            return locator
        if count > 1:
            if strict is True:
                raise AmbiguousElementError(descriptor.description, count)
            log.debug(
                "multiple_matches_narrowed",
                element=descriptor.description,
                count=count,
            )
            return locator.first
        return locator

    # --- Helpers ---

    def _build_target(
        self, root: Any, target: SimpleDescriptor, shadow_piercing: bool
    ) -> Locator:
        if (
            shadow_piercing
            and target.strategy_kind == StrategyKind.CSS
            and SHADOW_DELIMITER in target.strategy_value
        ):
            return self._selectors.resolve_shadow_selector(root, target.strategy_value)
        return self._builder.build_descriptor(root, target)

    @staticmethod
    def _frame_root(page: Page, frame: int | str | None) -> Any:
        if frame is None:
            return page
        if isinstance(frame, int):
            frames = page.frames
            if 0 <= frame < len(frames):
                return frames[frame]
            raise FrameNotFoundError(frame)
        return page.frame_locator(frame)

    @staticmethod
    async def _wait_for(locator: Locator, wait: WaitPolicy) -> None:
        """Apply each requested wait with its own timeout."""
        timeout = wait.timeout_ms
        if wait.for_visible:
            await locator.first.wait_for(state="visible", timeout=timeout)
        if wait.for_enabled:
            await expect(locator.first).to_be_enabled(timeout=timeout)
