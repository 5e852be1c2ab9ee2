"""Shared test fixtures for the locator engine."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from locatorengine.cache import ResolutionCache


class FakeClock:
    """Manually advanced monotonic clock, in seconds."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> ResolutionCache:
    """Small cache driven by the fake clock."""
    return ResolutionCache(max_size=3, ttl_ms=1000, clock=clock)


@pytest.fixture
def page() -> MagicMock:
    """Mock Playwright page at a fixed URL."""
    mock_page = MagicMock(name="page")
    mock_page.url = "https://app.test/login"
    mock_page.frames = []
    return mock_page


@pytest.fixture
def make_locator(page: MagicMock):
    """Factory for mock locators attached to the ``page`` fixture."""

    def _make(count: int = 1, box: dict | None = None, name: str = "locator") -> MagicMock:
        locator = MagicMock(name=name)
        locator.page = page
        locator.count = AsyncMock(return_value=count)
        locator.bounding_box = AsyncMock(return_value=box)
        locator.all = AsyncMock(return_value=[])
        return locator

    return _make
