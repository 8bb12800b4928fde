"""TurnObserver port — domain events emitted while a turn is orchestrated."""

from typing import Protocol


class TurnObserver(Protocol):
    """Observer port for turn orchestration events.

    Implementations may log to structlog, record for tests, or emit metrics.
    """

    def sub_turn_started(self, model: str, sub_turn: int, message_count: int) -> None: ...

    def tool_call_started(self, tool_name: str, sub_turn: int) -> None: ...

    def tool_call_completed(
        self, tool_name: str, duration_ms: int, failed: bool
    ) -> None: ...

    def tool_arguments_invalid(self, tool_name: str, reason: str) -> None: ...

    def tool_call_ignored(self, tool_name: str, executed_tool: str) -> None: ...

    def continuation_limit_reached(self, tool_name: str, limit: int) -> None: ...

    def turn_completed(
        self, model: str, sub_turns: int, total_tokens: int | None, cost_usd: float | None
    ) -> None: ...

    def turn_failed(self, model: str, sub_turn: int, reason: str) -> None: ...
