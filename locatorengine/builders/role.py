"""Accessible role locator builder."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from locatorengine.builders import BaseLocatorBuilder
from locatorengine.logger import get_logger
from locatorengine.models import StrategyKind

if TYPE_CHECKING:
    from playwright.async_api import Locator

log = get_logger(__name__)

# Keyword arguments accepted by Playwright's get_by_role.
_ROLE_OPTIONS = frozenset(
    {
        "checked",
        "disabled",
        "exact",
        "expanded",
        "include_hidden",
        "level",
        "name",
        "pressed",
        "selected",
    }
)


def parse_role_value(value: str) -> tuple[str, dict[str, Any]]:
    """Split ``"button:name=Submit,pressed=true"`` into role and options.

    Only the first colon separates the role, so names may contain colons.
    """
    role, _, raw_options = value.partition(":")
    options: dict[str, Any] = {}
    for pair in raw_options.split(","):
        key, sep, raw = pair.strip().partition("=")
        key = key.strip()
        if not sep or not key:
            continue
        if key not in _ROLE_OPTIONS:
            log.debug("role_option_ignored", role=role, option=key)
            continue
        options[key] = _coerce(raw.strip())
    return role.strip(), options


def _coerce(raw: str) -> Any:
    if raw == "true":
        return True
    if raw == "false":
        return False
    if raw.isdigit():
        return int(raw)
    return raw


class RoleBuilder(BaseLocatorBuilder):
    """Build locators from ARIA roles with optional role options."""

    @property
    def kind(self) -> StrategyKind:
        return StrategyKind.ROLE

    def build(self, root: Any, value: str, exact: bool | None = None) -> Locator:
        role, options = parse_role_value(value)
        if exact is not None and "name" in options:
            options.setdefault("exact", exact)
        return root.get_by_role(role, **options)
