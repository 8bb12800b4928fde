"""ToolObserver port — domain events emitted while tools execute."""

from typing import Protocol


class ToolObserver(Protocol):
    """Observer port for tool execution events."""

    def url_fetch_completed(
        self, url: str, status_code: int, latency_ms: int, size_bytes: int
    ) -> None: ...

    def url_fetch_failed(self, url: str, latency_ms: int, reason: str) -> None: ...

    def sandbox_started(self, sandbox_id: str) -> None: ...

    def sandbox_completed(
        self, sandbox_id: str, exit_code: int | None, duration_ms: int
    ) -> None: ...
