"""Structlog implementation of the SessionObserver port."""

import structlog


class StructlogSessionObserver:
    """Delegates session logging events to structlog.

    Satisfies the SessionObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def log_write_failed(self, path: str, reason: str) -> None:
        self._log.error("session.log_write_failed", path=path, reason=reason)

    def turn_recorded(self, turn: int, status: str, duration_ms: int) -> None:
        self._log.info(
            "session.turn_recorded", turn=turn, status=status, duration_ms=duration_ms
        )

    def session_log_written(self, path: str, turns: int) -> None:
        self._log.info("session.log_written", path=path, turns=turns)
