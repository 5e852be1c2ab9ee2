"""Builders for attribute-backed strategies: test id, label, placeholder, title, alt."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from locatorengine.builders import BaseLocatorBuilder, exact_kwargs
from locatorengine.models import StrategyKind

if TYPE_CHECKING:
    from playwright.async_api import Locator


class TestIdBuilder(BaseLocatorBuilder):
    """Build locators from the configured test id attribute."""

    __test__ = False

    @property
    def kind(self) -> StrategyKind:
        return StrategyKind.TESTID

    def build(self, root: Any, value: str, exact: bool | None = None) -> Locator:
        return root.get_by_test_id(value)


class LabelBuilder(BaseLocatorBuilder):
    """Build locators from associated labels or aria-label."""

    @property
    def kind(self) -> StrategyKind:
        return StrategyKind.LABEL

    def build(self, root: Any, value: str, exact: bool | None = None) -> Locator:
        return root.get_by_label(value, **exact_kwargs(exact))


class PlaceholderBuilder(BaseLocatorBuilder):
    """Build locators from input placeholders."""

    @property
    def kind(self) -> StrategyKind:
        return StrategyKind.PLACEHOLDER

    def build(self, root: Any, value: str, exact: bool | None = None) -> Locator:
        return root.get_by_placeholder(value, **exact_kwargs(exact))


class TitleBuilder(BaseLocatorBuilder):
    """Build locators from title attributes."""

    @property
    def kind(self) -> StrategyKind:
        return StrategyKind.TITLE

    def build(self, root: Any, value: str, exact: bool | None = None) -> Locator:
        return root.get_by_title(value, **exact_kwargs(exact))


class AltTextBuilder(BaseLocatorBuilder):
    """Build locators from image alt text."""

    @property
    def kind(self) -> StrategyKind:
        return StrategyKind.ALT

    def build(self, root: Any, value: str, exact: bool | None = None) -> Locator:
        return root.get_by_alt_text(value, **exact_kwargs(exact))
