"""SessionObserver port — events emitted while the session log is written."""

from typing import Protocol


class SessionObserver(Protocol):
    """Observer port for session logging events.

    Log write failures are reported here instead of being raised, so that a
    broken log directory never loses the turn result returned to the caller.
    """

    def log_write_failed(self, path: str, reason: str) -> None: ...

    def turn_recorded(self, turn: int, status: str, duration_ms: int) -> None: ...

    def session_log_written(self, path: str, turns: int) -> None: ...
