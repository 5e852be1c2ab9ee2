"""All data models for the locator engine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from playwright.async_api import Locator


# --- Strategy vocabulary ---


class StrategyKind(str, Enum):
    """Primary locator strategies understood by the locator builder."""

    CSS = "css"
    XPATH = "xpath"
    TEXT = "text"
    TEXT_PATTERN = "text_pattern"
    ROLE = "role"
    TESTID = "testid"
    LABEL = "label"
    PLACEHOLDER = "placeholder"
    TITLE = "title"
    ALT = "alt"


class SpatialRelation(str, Enum):
    """Geometric relations between a candidate and a reference element."""

    RIGHT_OF = "right_of"
    LEFT_OF = "left_of"
    ABOVE = "above"
    BELOW = "below"
    NEAR = "near"


class ResolutionStrategy(str, Enum):
    """Pipeline stage that produced a resolved handle."""

    DIRECT = "direct"
    LAYOUT = "layout"
    FILTER = "filter"
    COMPONENT = "component"
    FALLBACK = "fallback"
    AI = "ai"


# --- Descriptor models ---


class SimpleDescriptor(BaseModel):
    """A single strategy with no nested constraints."""

    model_config = ConfigDict(frozen=True)

    strategy_kind: StrategyKind
    strategy_value: str = Field(min_length=1)
    exact: bool | None = None


class SpatialConstraint(BaseModel):
    """Keep only candidates standing in ``relation`` to ``target``."""

    model_config = ConfigDict(frozen=True)

    relation: SpatialRelation
    target: SimpleDescriptor
    max_distance: float | None = Field(default=None, ge=0)


class LogicalFilters(BaseModel):
    """Text and sub-element filters, composed with logical AND."""

    model_config = ConfigDict(frozen=True)

    has_text: str | None = None
    has_not_text: str | None = None
    has_sub_element: SimpleDescriptor | None = None
    lacks_sub_element: SimpleDescriptor | None = None

    @property
    def is_empty(self) -> bool:
        return (
            self.has_text is None
            and self.has_not_text is None
            and self.has_sub_element is None
            and self.lacks_sub_element is None
        )


class ComponentSpec(BaseModel):
    """A UI-framework component reference such as a React component name."""

    model_config = ConfigDict(frozen=True)

    framework: str
    name: str = Field(min_length=1)
    props: dict[str, Any] = Field(default_factory=dict)


class AIHint(BaseModel):
    """Natural-language description used for AI healing."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    description: str | None = None
    confidence_threshold: float = Field(default=0.8, ge=0, le=1)


class WaitPolicy(BaseModel):
    """States to wait for before a primary locator counts as resolved."""

    model_config = ConfigDict(frozen=True)

    for_visible: bool = False
    for_enabled: bool = False
    timeout_ms: float | None = Field(default=None, ge=0)


class Cardinality(BaseModel):
    """How many matches a descriptor tolerates.

    ``strict=True`` rejects multiple matches, ``strict=False`` tolerates zero
    matches, and leaving it unset rejects zero and narrows many to the first.
    ``required`` is descriptive metadata only; the resolver never reads it.
    """

    model_config = ConfigDict(frozen=True)

    strict: bool | None = None
    required: bool | None = None


class ChainStep(BaseModel):
    """One navigation step of a chained selector."""

    model_config = ConfigDict(frozen=True)

    type: Literal["parent", "child", "sibling"]
    selector: str | None = None


class ElementDescriptor(SimpleDescriptor):
    """Declarative description of the element a test wants."""

    description: str
    spatial: list[SpatialConstraint] = Field(default_factory=list)
    filters: LogicalFilters = Field(default_factory=LogicalFilters)
    component: ComponentSpec | None = None
    nth: int | Literal["first", "last"] | None = None
    fallbacks: list[SimpleDescriptor] = Field(default_factory=list)
    ai_hint: AIHint | None = None
    wait: WaitPolicy = Field(default_factory=WaitPolicy)
    frame: int | str | None = None
    shadow_piercing: bool = False
    cardinality: Cardinality = Field(default_factory=Cardinality)

    @field_validator("description")
    @classmethod
    def _description_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("descriptor must have a description")
        return value

    @property
    def has_layout(self) -> bool:
        return bool(self.spatial)

    @property
    def has_advanced_constraints(self) -> bool:
        return self.has_layout or not self.filters.is_empty or self.component is not None

    @property
    def advanced_strategy(self) -> ResolutionStrategy:
        """Label reported when the advanced stage resolves this descriptor."""
        if self.has_layout:
            return ResolutionStrategy.LAYOUT
        if not self.filters.is_empty:
            return ResolutionStrategy.FILTER
        if self.component is not None:
            return ResolutionStrategy.COMPONENT
        return ResolutionStrategy.DIRECT

    @property
    def ai_enabled(self) -> bool:
        return bool(self.ai_hint and self.ai_hint.enabled and self.ai_hint.description)


# --- Resolution results ---


@dataclass(frozen=True)
class ResolvedHandle:
    """A located element plus how the pipeline found it."""

    locator: Locator
    strategy: ResolutionStrategy
    description: str
    confidence: float = 1.0
    fallbacks_used: int = 0
    resolution_time_ms: float = 0.0


@dataclass
class CacheEntry:
    """A cached handle and its bookkeeping."""

    handle: ResolvedHandle
    created_at: float
    last_accessed_at: float
    document_identity: str
    hit_count: int = 0


class CacheStats(BaseModel):
    """Counters reported by the resolution cache."""

    hits: int = 0
    misses: int = 0
    size: int = 0
    hit_rate: float = 0.0
    evictions: int = 0
    invalidations: int = 0
