"""Spatial, logical and structural refinements on top of locators."""

from __future__ import annotations

import json
import re
from typing import TYPE_CHECKING, Any

from locatorengine.exceptions import (
    ElementNotFoundError,
    IndexOutOfRangeError,
    UnsupportedFrameworkError,
)
from locatorengine.geometry import BoundingBox, satisfies
from locatorengine.locator_builder import LocatorBuilder
from locatorengine.logger import get_logger
from locatorengine.models import StrategyKind

if TYPE_CHECKING:
    from playwright.async_api import Locator

    from locatorengine.models import (
        ChainStep,
        ComponentSpec,
        LogicalFilters,
        SimpleDescriptor,
        SpatialConstraint,
    )

log = get_logger(__name__)

NO_MATCH_SELECTOR = "xpath=//no-such-element"
SHADOW_DELIMITER = ">>>"

_INTERACTABLE_SELECTORS = (
    "a",
    "button",
    "input",
    "select",
    "textarea",
    "[onclick]",
    '[role="button"]',
    '[role="link"]',
    '[role="checkbox"]',
    '[role="radio"]',
    '[role="combobox"]',
    '[role="textbox"]',
    '[role="searchbox"]',
    '[role="slider"]',
    '[role="switch"]',
    '[contenteditable="true"]',
    '[tabindex]:not([tabindex="-1"])',
)


def _kebab_case(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "-", name).lower()


def _component_props(props: dict[str, Any]) -> str:
    return "".join(f"[{key}={json.dumps(value)}]" for key, value in props.items())


class SelectorEngine:
    """Applies geometric and logical constraints to candidate sets."""

    def __init__(self, builder: LocatorBuilder | None = None) -> None:
        self._builder = builder or LocatorBuilder()

    # --- Spatial ---

    async def resolve_layout(
        self,
        root: Any,
        base: Locator,
        constraints: list[SpatialConstraint],
    ) -> Locator:
        """Narrow ``base`` through each spatial constraint in order.

        Each constraint keeps the first qualifying candidate in document order.
        When nothing qualifies the no-match sentinel is returned instead of
        raising, so the caller's cardinality check reports the failure.
        """
        result = base
        for constraint in constraints:
            match = await self._first_in_relation(root, result, constraint)
            if match is None:
                log.debug(
                    "layout_no_match",
                    relation=constraint.relation.value,
                    target=constraint.target.strategy_value,
                )
                return self.no_match(root)
            result = match
        return result

    async def _first_in_relation(
        self, root: Any, base: Locator, constraint: SpatialConstraint
    ) -> Locator | None:
        reference = self._builder.build_descriptor(root, constraint.target)
        ref_rect = await reference.first.bounding_box()
        if not ref_rect:
            return None
        ref_box = BoundingBox.from_rect(ref_rect)

        for candidate in await base.all():
            rect = await candidate.bounding_box()
            if not rect:
                continue
            if satisfies(
                constraint.relation,
                BoundingBox.from_rect(rect),
                ref_box,
                constraint.max_distance,
            ):
                return candidate
        return None

    @staticmethod
    def no_match(root: Any) -> Locator:
        """Locator guaranteed to match nothing."""
        return root.locator(NO_MATCH_SELECTOR)

    # --- Logical ---

    def resolve_filter(
        self,
        root: Any,
        filters: LogicalFilters,
        base: Locator | None = None,
    ) -> Locator:
        """Narrow ``base`` (every element by default) by the logical filters."""
        locator = base if base is not None else root.locator("*")
        if filters.has_text is not None or filters.has_not_text is not None:
            text_filters: dict[str, str] = {}
            if filters.has_text is not None:
                text_filters["has_text"] = filters.has_text
            if filters.has_not_text is not None:
                text_filters["has_not_text"] = filters.has_not_text
            locator = locator.filter(**text_filters)
        if filters.has_sub_element is not None:
            locator = locator.filter(
                has=self._builder.build_descriptor(root, filters.has_sub_element)
            )
        if filters.lacks_sub_element is not None:
            locator = locator.filter(
                has_not=self._builder.build_descriptor(root, filters.lacks_sub_element)
            )
        return locator

    # --- Components ---

    def resolve_component(self, root: Any, spec: ComponentSpec) -> Locator:
        """Map a framework component reference onto Playwright's component engines."""
        framework = spec.framework.lower()
        if framework == "react":
            return root.locator(f"_react={spec.name}{_component_props(spec.props)}")
        if framework == "vue":
            return root.locator(f"_vue={spec.name}{_component_props(spec.props)}")
        if framework == "angular":
            return root.locator(_kebab_case(spec.name))
        raise UnsupportedFrameworkError(spec.framework)

    # --- Structural navigation ---

    def resolve_shadow_selector(self, root: Any, selector: str) -> Locator:
        """Pierce shadow roots segment by segment on ``>>>``."""
        segments = [s.strip() for s in selector.split(SHADOW_DELIMITER)]
        current = root.locator(segments[0])
        for segment in segments[1:]:
            current = current.locator(segment)
        return current

    def resolve_chain(self, root: Any, steps: list[ChainStep]) -> Locator:
        """Walk parent/child/sibling steps in order starting from ``body``."""
        current = root.locator("body")
        for step in steps:
            if step.type == "parent":
                current = current.locator("xpath=..")
            elif step.type == "child":
                current = current.locator(step.selector or "*")
            else:
                current = current.locator(f"xpath=../{step.selector or '*'}")
        return current

    async def resolve_nth(
        self,
        base: Locator,
        nth: int | str,
        description: str = "",
    ) -> Locator:
        """Select one candidate by ordinal.

        Raises:
            ElementNotFoundError: ``first``/``last`` on an empty candidate set.
            IndexOutOfRangeError: Integer index outside ``0 <= index < count``.
        """
        count = await base.count()
        if nth in ("first", "last"):
            if count == 0:
                raise ElementNotFoundError(
                    description or "nth selection", f"no candidates for nth={nth!r}"
                )
            return base.first if nth == "first" else base.last
        index = int(nth)
        if index < 0 or index >= count:
            raise IndexOutOfRangeError(index, count, description)
        return base.nth(index)

    # --- Search helpers ---

    def combine_selectors(self, root: Any, descriptors: list[SimpleDescriptor]) -> Locator:
        """OR-combine CSS-compatible descriptors into one locator."""
        combined = ", ".join(
            LocatorBuilder.css_equivalent(d.strategy_kind, d.strategy_value)
            for d in descriptors
        )
        return root.locator(combined)

    async def find_by_text_pattern(
        self, root: Any, pattern: re.Pattern[str] | str
    ) -> list[Locator]:
        """Return every element whose text content matches ``pattern``."""
        regex = re.compile(pattern) if isinstance(pattern, str) else pattern
        matches: list[Locator] = []
        for element in await root.locator("*").all():
            try:
                text = await element.text_content()
            except Exception as exc:
                log.debug("text_pattern_element_skipped", error=str(exc))
                continue
            if text and regex.search(text):
                matches.append(element)
        return matches

    async def find_by_attribute(
        self,
        root: Any,
        name: str,
        value: str | re.Pattern[str] | None = None,
    ) -> Locator:
        """Find elements by attribute presence, exact value, or regex value.

        A regex match returns the first matching element, or the no-match
        sentinel when none match.
        """
        if value is None:
            return root.locator(f"[{name}]")
        if isinstance(value, str):
            return root.locator(f'[{name}="{value}"]')
        for element in await root.locator(f"[{name}]").all():
            actual = await element.get_attribute(name)
            if actual and value.search(actual):
                return element
        return self.no_match(root)

    async def find_by_data_attribute(
        self,
        root: Any,
        name: str,
        value: str | re.Pattern[str] | None = None,
    ) -> Locator:
        """``find_by_attribute`` on ``data-<name>``."""
        return await self.find_by_attribute(root, f"data-{name}", value)

    def find_by_accessibility_role(
        self, root: Any, role: str, name: str | None = None
    ) -> Locator:
        value = f"{role}:name={name}" if name else role
        return self._builder.build(root, StrategyKind.ROLE, value)

    def find_by_aria_label(self, root: Any, label: str, exact: bool = True) -> Locator:
        operator = "=" if exact else "*="
        return root.locator(f'[aria-label{operator}"{label}"]')

    def find_interactable(self, root: Any) -> Locator:
        return root.locator(", ".join(_INTERACTABLE_SELECTORS))

    def find_form_elements(self, root: Any, form_selector: str | None = None) -> Locator:
        form = root.locator(form_selector or "form")
        return form.locator('input, select, textarea, button[type="submit"]')
