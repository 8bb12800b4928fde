"""Tool executor ports — structural interfaces for side-effecting tool backends."""

from typing import Protocol

from deep_research.tools.domain.fetch import UrlFetchBatch


class UrlFetcher(Protocol):
    """Fetches a batch of URLs concurrently. Never raises for a single bad URL."""

    async def fetch_urls(self, urls: list[str]) -> UrlFetchBatch: ...


class CodeRunner(Protocol):
    """Runs a Python script in an isolated sandbox and returns its stdout.

    Raises:
        CodeExecutionError: if the sandbox cannot run the script or it exits non-zero.
    """

    async def run_code(self, code: str) -> str: ...
