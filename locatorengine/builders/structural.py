"""CSS and XPath locator builders."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from locatorengine.builders import BaseLocatorBuilder
from locatorengine.models import StrategyKind

if TYPE_CHECKING:
    from playwright.async_api import Locator


class CSSBuilder(BaseLocatorBuilder):
    """Build locators from CSS selectors."""

    @property
    def kind(self) -> StrategyKind:
        return StrategyKind.CSS

    def build(self, root: Any, value: str, exact: bool | None = None) -> Locator:
        return root.locator(value)


class XPathBuilder(BaseLocatorBuilder):
    """Build locators from XPath expressions."""

    @property
    def kind(self) -> StrategyKind:
        return StrategyKind.XPATH

    def build(self, root: Any, value: str, exact: bool | None = None) -> Locator:
        return root.locator(f"xpath={value}")
