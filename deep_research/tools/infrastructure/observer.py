"""Structlog implementation of the ToolObserver port."""

import structlog


class StructlogToolObserver:
    """Delegates tool domain events to structlog.

    Satisfies the ToolObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def url_fetch_completed(
        self, url: str, status_code: int, latency_ms: int, size_bytes: int
    ) -> None:
        self._log.debug(
            "tool.url_fetch_completed",
            url=url,
            status_code=status_code,
            latency_ms=latency_ms,
            size_bytes=size_bytes,
        )

    def url_fetch_failed(self, url: str, latency_ms: int, reason: str) -> None:
        self._log.warning(
            "tool.url_fetch_failed", url=url, latency_ms=latency_ms, reason=reason
        )

    def sandbox_started(self, sandbox_id: str) -> None:
        self._log.debug("tool.sandbox_started", sandbox_id=sandbox_id)

    def sandbox_completed(
        self, sandbox_id: str, exit_code: int | None, duration_ms: int
    ) -> None:
        self._log.debug(
            "tool.sandbox_completed",
            sandbox_id=sandbox_id,
            exit_code=exit_code,
            duration_ms=duration_ms,
        )
