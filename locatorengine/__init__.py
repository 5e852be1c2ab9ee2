"""Locator Engine — element resolution for browser UI test automation."""

from locatorengine.advanced_selectors import SelectorEngine
from locatorengine.ai import (
    AIIdentification,
    AnthropicElementIdentifier,
    BaseElementIdentifier,
)
from locatorengine.cache import CachePerformanceAnalyzer, ResolutionCache
from locatorengine.config import ResolverConfig
from locatorengine.engine import ResolutionContext
from locatorengine.exceptions import (
    AIIdentificationError,
    AmbiguousElementError,
    DescriptorError,
    ElementNotFoundError,
    FrameNotFoundError,
    IndexOutOfRangeError,
    LocatorEngineError,
    UnsupportedFrameworkError,
    UnsupportedStrategyError,
)
from locatorengine.locator_builder import LocatorBuilder
from locatorengine.models import (
    AIHint,
    Cardinality,
    ComponentSpec,
    ElementDescriptor,
    LogicalFilters,
    ResolutionStrategy,
    ResolvedHandle,
    SimpleDescriptor,
    SpatialConstraint,
    SpatialRelation,
    StrategyKind,
    WaitPolicy,
)
from locatorengine.orchestrator import ElementResolver

__version__ = "0.1.0"

__all__ = [
    "AIHint",
    "AIIdentification",
    "AIIdentificationError",
    "AmbiguousElementError",
    "CachePerformanceAnalyzer",
    "AnthropicElementIdentifier",
    "BaseElementIdentifier",
    "Cardinality",
    "ComponentSpec",
    "DescriptorError",
    "ElementDescriptor",
    "ElementNotFoundError",
    "ElementResolver",
    "FrameNotFoundError",
    "IndexOutOfRangeError",
    "LocatorBuilder",
    "LocatorEngineError",
    "LogicalFilters",
    "ResolutionCache",
    "ResolutionContext",
    "ResolutionStrategy",
    "ResolvedHandle",
    "ResolverConfig",
    "SelectorEngine",
    "SimpleDescriptor",
    "SpatialConstraint",
    "SpatialRelation",
    "StrategyKind",
    "UnsupportedFrameworkError",
    "UnsupportedStrategyError",
    "WaitPolicy",
    "__version__",
]
