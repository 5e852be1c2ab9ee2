"""Locator engine exception hierarchy."""


class LocatorEngineError(Exception):
    """Base exception for all locator engine errors."""


class DescriptorError(LocatorEngineError):
    """Raised when a descriptor asks for something the engine cannot do.

    These are never swallowed by a pipeline stage: retrying another strategy
    cannot fix a malformed descriptor.
    """


class UnsupportedStrategyError(DescriptorError):
    """Raised when no locator builder handles a strategy kind."""

    def __init__(self, strategy_kind: str) -> None:
        self.strategy_kind = strategy_kind
        super().__init__(f"Unsupported locator strategy: {strategy_kind}")


class UnsupportedFrameworkError(DescriptorError):
    """Raised for component selectors of an unknown UI framework."""

    def __init__(self, framework: str) -> None:
        self.framework = framework
        super().__init__(f"Unsupported component framework: {framework}")


class IndexOutOfRangeError(DescriptorError):
    """Raised when an nth selection falls outside the candidate set."""

    def __init__(self, index: int, count: int, description: str = "") -> None:
        self.index = index
        self.count = count
        self.description = description
        target = f" for '{description}'" if description else ""
        super().__init__(
            f"Index {index} out of range{target}: {count} candidate(s) matched"
        )


class ElementNotFoundError(LocatorEngineError):
    """Raised when the pipeline cannot produce a matching element."""

    def __init__(self, description: str, detail: str | None = None) -> None:
        self.description = description
        self.detail = detail
        message = f"Unable to locate element: {description}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class AmbiguousElementError(LocatorEngineError):
    """Raised when a strict descriptor matches more than one element."""

    def __init__(self, description: str, count: int) -> None:
        self.description = description
        self.count = count
        super().__init__(f"Multiple elements found ({count}): {description}")


class AIIdentificationError(LocatorEngineError):
    """Raised when the AI identifier cannot heal a descriptor."""

    def __init__(self, description: str, detail: str) -> None:
        self.description = description
        self.detail = detail
        super().__init__(f"AI identification failed for '{description}': {detail}")


class FrameNotFoundError(LocatorEngineError):
    """Raised when a descriptor's frame context is not present on the page."""

    def __init__(self, frame: int | str) -> None:
        self.frame = frame
        super().__init__(f"Frame not found: {frame}")
