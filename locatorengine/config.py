"""Engine configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_AI_MODEL = "claude-sonnet-4-20250514"


@dataclass
class ResolverConfig:
    """Settings for one resolution context."""

    cache_max_size: int = 1000
    cache_ttl_ms: int = 300_000
    cache_cleanup_interval: float = 60.0
    ai_model: str = DEFAULT_AI_MODEL
    anthropic_api_key: str | None = None
    log_level: str = "INFO"
    log_json: bool = False

    @classmethod
    def from_env(cls) -> ResolverConfig:
        """Load config from environment variables."""
        return cls(
            cache_max_size=int(os.environ.get("LOCATOR_CACHE_MAX_SIZE", "1000")),
            cache_ttl_ms=int(os.environ.get("LOCATOR_CACHE_TTL_MS", "300000")),
            cache_cleanup_interval=float(
                os.environ.get("LOCATOR_CACHE_CLEANUP_INTERVAL", "60")
            ),
            ai_model=os.environ.get("LOCATOR_AI_MODEL", DEFAULT_AI_MODEL),
            anthropic_api_key=os.environ.get("ANTHROPIC_API_KEY"),
            log_level=os.environ.get("LOCATOR_LOG_LEVEL", "INFO"),
            log_json=os.environ.get("LOCATOR_LOG_JSON", "false").lower() == "true",
        )
