"""Locator builder interface and implementations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from playwright.async_api import Locator

    from locatorengine.models import StrategyKind


class BaseLocatorBuilder(ABC):
    """Base class for per-strategy locator builders.

    ``root`` is any object exposing Playwright's query API: a page, a frame,
    a frame locator or a locator.
    """

    @property
    @abstractmethod
    def kind(self) -> StrategyKind:
        """Strategy kind this builder handles."""

    @abstractmethod
    def build(self, root: Any, value: str, exact: bool | None = None) -> Locator:
        """Translate the strategy value into a locator. Never queries the page."""


def exact_kwargs(exact: bool | None) -> dict[str, bool]:
    """Only forward ``exact`` when the descriptor set it."""
    return {} if exact is None else {"exact": exact}
