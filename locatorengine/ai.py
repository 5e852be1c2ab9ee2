"""AI healing: find an element from a natural-language description."""

from __future__ import annotations

import base64
import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from locatorengine.config import DEFAULT_AI_MODEL
from locatorengine.exceptions import AIIdentificationError
from locatorengine.logger import get_logger

if TYPE_CHECKING:
    import anthropic
    from playwright.async_api import Locator, Page

log = get_logger(__name__)

# Tags to strip from DOM snapshots
_STRIP_TAGS = re.compile(
    r"<(script|style|svg|noscript)\b[^>]*>[\s\S]*?</\1>",
    re.IGNORECASE,
)
_STRIP_COMMENTS = re.compile(r"<!--[\s\S]*?-->")
_STRIP_INLINE_STYLE = re.compile(r'\s+style="[^"]*"', re.IGNORECASE)
_MAX_DOM_SIZE = 50_000
_PROMPT_DOM_SIZE = 20_000


def simplify_dom(html: str, max_size: int = _MAX_DOM_SIZE) -> str:
    """Strip scripts, styles, SVGs, comments and inline styles from HTML.

    Keeps tag names, attributes and text. Oversized documents keep their
    head and tail around a truncation marker.
    """
    result = _STRIP_TAGS.sub("", html)
    result = _STRIP_COMMENTS.sub("", result)
    result = _STRIP_INLINE_STYLE.sub("", result)
    result = re.sub(r"\n\s*\n+", "\n", result).strip()

    if len(result) > max_size:
        half = max_size // 2
        result = result[:half] + "\n... [truncated] ...\n" + result[-half:]
    return result


@dataclass(frozen=True)
class AIIdentification:
    """Locator proposed by an AI identifier, with its confidence in [0, 1]."""

    locator: Locator
    confidence: float
    reasoning: str = ""


class BaseElementIdentifier(ABC):
    """Collaborator that heals descriptors the pipeline could not resolve."""

    @abstractmethod
    async def identify_by_description(
        self,
        description: str,
        page: Page,
        confidence_threshold: float = 0.8,
    ) -> AIIdentification:
        """Locate the described element or raise AIIdentificationError."""


class AnthropicElementIdentifier(BaseElementIdentifier):
    """Ask Claude to pick the described element from a screenshot and DOM."""

    def __init__(
        self,
        client: anthropic.AsyncAnthropic | None = None,
        model: str = DEFAULT_AI_MODEL,
    ) -> None:
        self._client = client
        self._model = model

    async def identify_by_description(
        self,
        description: str,
        page: Page,
        confidence_threshold: float = 0.8,
    ) -> AIIdentification:
        if not self._client:
            raise AIIdentificationError(description, "No Anthropic client configured")

        try:
            screenshot = await page.screenshot(type="png")
            dom = simplify_dom(await page.content())
            response = await self._client.messages.create(
                model=self._model,
                max_tokens=1000,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {
                                "type": "image",
                                "source": {
                                    "type": "base64",
                                    "media_type": "image/png",
                                    "data": base64.b64encode(screenshot).decode(),
                                },
                            },
                            {"type": "text", "text": self._build_prompt(description, dom)},
                        ],
                    }
                ],
            )
            result = self._parse_response(description, response.content[0].text)
        except AIIdentificationError:
            raise
        except Exception as exc:
            raise AIIdentificationError(description, f"LLM call failed: {exc}") from exc

        confidence = _normalise_confidence(result.get("confidence"))
        if confidence < confidence_threshold:
            log.info(
                "ai_low_confidence",
                element=description,
                confidence=confidence,
                threshold=confidence_threshold,
            )
            raise AIIdentificationError(
                description,
                f"confidence {confidence:.2f} below threshold {confidence_threshold:.2f}",
            )

        locator = await self._first_matching(page, result)
        if locator is None:
            raise AIIdentificationError(
                description, "proposed selectors match no element"
            )
        return AIIdentification(
            locator=locator,
            confidence=confidence,
            reasoning=result.get("reasoning", ""),
        )

    @staticmethod
    async def _first_matching(page: Page, result: dict[str, Any]) -> Locator | None:
        candidates = []
        if result.get("css"):
            candidates.append(result["css"])
        if result.get("xpath"):
            candidates.append(f"xpath={result['xpath']}")
        for selector in candidates:
            locator = page.locator(selector)
            try:
                if await locator.count() > 0:
                    return locator
            except Exception as exc:
                log.debug("ai_selector_invalid", selector=selector, error=str(exc))
        return None

    @staticmethod
    def _build_prompt(description: str, dom: str) -> str:
        return f"""You are a web automation expert. A UI test cannot find an element on the current page.

## Element the test is looking for
{description}

## Current page DOM (simplified)
{dom[:_PROMPT_DOM_SIZE]}

## Your task
Find the element in the screenshot and DOM that matches the description.
Return ONLY a JSON object (no markdown, no code fences) with:
- css: CSS selector for the element
- xpath: XPath for the element
- confidence: 0-100 how confident you are this is the right element
- reasoning: explain why you chose this element"""

    @staticmethod
    def _parse_response(description: str, text: str) -> dict[str, Any]:
        """Parse the LLM response as JSON."""
        text = text.strip()
        # Strip markdown code fences if present
        if text.startswith("```"):
            lines = text.split("\n")
            text = "\n".join(lines[1:-1])

        try:
            return json.loads(text)
        except json.JSONDecodeError:
            start = text.find("{")
            end = text.rfind("}") + 1
            if start >= 0 and end > start:
                try:
                    return json.loads(text[start:end])
                except json.JSONDecodeError:
                    pass
            raise AIIdentificationError(
                description, f"Could not parse LLM response: {text[:200]}"
            )


def _normalise_confidence(raw: Any) -> float:
    """Map a 0-100 score (or an already normalised one) onto [0, 1]."""
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return 0.0
    if value > 1:
        value /= 100
    return max(0.0, min(1.0, value))
