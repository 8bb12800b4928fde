"""Base exception class for all deep-research-specific errors."""


class DeepResearchError(Exception):
    """Base class for all deep-research errors."""

    def __init__(self, message: str, retriable: bool = False) -> None:
        super().__init__(message)
        self.retriable = retriable
