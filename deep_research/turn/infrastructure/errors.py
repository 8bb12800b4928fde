"""Error types raised by turn infrastructure."""

from deep_research.core.errors import DeepResearchError


class ModelStreamError(DeepResearchError):
    """Raised when the upstream stream cannot be opened or fails mid-stream."""

    def __init__(self, reason: str, retriable: bool = True) -> None:
        super().__init__(f"Failed to stream model response: {reason}", retriable=retriable)
