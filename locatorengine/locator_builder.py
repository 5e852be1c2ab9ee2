"""Strategy dispatch from descriptors to Playwright locators."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from locatorengine.builders import BaseLocatorBuilder
from locatorengine.builders.attributes import (
    AltTextBuilder,
    LabelBuilder,
    PlaceholderBuilder,
    TestIdBuilder,
    TitleBuilder,
)
from locatorengine.builders.role import RoleBuilder
from locatorengine.builders.structural import CSSBuilder, XPathBuilder
from locatorengine.builders.text import TextBuilder, TextPatternBuilder
from locatorengine.exceptions import UnsupportedStrategyError
from locatorengine.models import SimpleDescriptor, StrategyKind

if TYPE_CHECKING:
    from playwright.async_api import Locator


def default_builders() -> list[BaseLocatorBuilder]:
    return [
        CSSBuilder(),
        XPathBuilder(),
        TextBuilder(),
        TextPatternBuilder(),
        RoleBuilder(),
        TestIdBuilder(),
        LabelBuilder(),
        PlaceholderBuilder(),
        TitleBuilder(),
        AltTextBuilder(),
    ]


class LocatorBuilder:
    """Dispatches each strategy kind to exactly one builder."""

    def __init__(self, builders: list[BaseLocatorBuilder] | None = None) -> None:
        self._builders = {b.kind: b for b in builders or default_builders()}
        missing = [k.value for k in StrategyKind if k not in self._builders]
        if missing:
            raise ValueError(f"No locator builder for: {', '.join(missing)}")

    def build(
        self,
        root: Any,
        strategy_kind: StrategyKind | str,
        value: str,
        exact: bool | None = None,
    ) -> Locator:
        """Build a locator for one strategy.

        Raises:
            UnsupportedStrategyError: If ``strategy_kind`` is not a known kind.
        """
        try:
            kind = StrategyKind(strategy_kind)
        except ValueError:
            raise UnsupportedStrategyError(str(strategy_kind)) from None
        return self._builders[kind].build(root, value, exact)

    def build_descriptor(self, root: Any, descriptor: SimpleDescriptor) -> Locator:
        """Build the primary strategy of a descriptor."""
        return self.build(
            root, descriptor.strategy_kind, descriptor.strategy_value, descriptor.exact
        )

    @staticmethod
    def css_equivalent(strategy_kind: StrategyKind | str, value: str) -> str:
        """Return a selector that can be OR-combined with CSS selectors."""
        kind = StrategyKind(strategy_kind)
        if kind == StrategyKind.CSS:
            return value
        if kind == StrategyKind.XPATH:
            raise UnsupportedStrategyError("xpath (cannot be combined with CSS)")
        if kind == StrategyKind.TEXT:
            return f'text="{value}"'
        if kind == StrategyKind.TESTID:
            return f'[data-testid="{value}"]'
        return value
