"""Text content locator builders."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from locatorengine.builders import BaseLocatorBuilder, exact_kwargs
from locatorengine.models import StrategyKind

if TYPE_CHECKING:
    from playwright.async_api import Locator


class TextBuilder(BaseLocatorBuilder):
    """Build locators matching visible text."""

    @property
    def kind(self) -> StrategyKind:
        return StrategyKind.TEXT

    def build(self, root: Any, value: str, exact: bool | None = None) -> Locator:
        return root.get_by_text(value, **exact_kwargs(exact))


class TextPatternBuilder(BaseLocatorBuilder):
    """Build locators matching visible text against a regular expression."""

    @property
    def kind(self) -> StrategyKind:
        return StrategyKind.TEXT_PATTERN

    def build(self, root: Any, value: str, exact: bool | None = None) -> Locator:
        return root.get_by_text(re.compile(value))
