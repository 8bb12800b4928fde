"""Error types raised when reading requests or writing answers to disk."""

from pathlib import Path

from deep_research.core.errors import DeepResearchError


class InputFileError(DeepResearchError):
    """Raised when a request file cannot be read."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f"Failed to read file {path}: {reason}")


class OutputFileError(DeepResearchError):
    """Raised when an answer or transcript file cannot be written."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f"Failed to write file {path}: {reason}")
