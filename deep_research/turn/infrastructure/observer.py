"""Structlog implementation of the TurnObserver port."""

import structlog


class StructlogTurnObserver:
    """Delegates turn domain events to structlog.

    Satisfies the TurnObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def sub_turn_started(self, model: str, sub_turn: int, message_count: int) -> None:
        self._log.debug(
            "turn.sub_turn_started",
            model=model,
            sub_turn=sub_turn,
            message_count=message_count,
        )

    def tool_call_started(self, tool_name: str, sub_turn: int) -> None:
        self._log.info("turn.tool_call_started", tool_name=tool_name, sub_turn=sub_turn)

    def tool_call_completed(
        self, tool_name: str, duration_ms: int, failed: bool
    ) -> None:
        self._log.info(
            "turn.tool_call_completed",
            tool_name=tool_name,
            duration_ms=duration_ms,
            failed=failed,
        )

    def tool_arguments_invalid(self, tool_name: str, reason: str) -> None:
        self._log.warning("turn.tool_arguments_invalid", tool_name=tool_name, reason=reason)

    def tool_call_ignored(self, tool_name: str, executed_tool: str) -> None:
        self._log.warning(
            "turn.tool_call_ignored", tool_name=tool_name, executed_tool=executed_tool
        )

    def continuation_limit_reached(self, tool_name: str, limit: int) -> None:
        self._log.warning(
            "turn.continuation_limit_reached", tool_name=tool_name, limit=limit
        )

    def turn_completed(
        self, model: str, sub_turns: int, total_tokens: int | None, cost_usd: float | None
    ) -> None:
        self._log.info(
            "turn.completed",
            model=model,
            sub_turns=sub_turns,
            total_tokens=total_tokens,
            cost_usd=cost_usd,
        )

    def turn_failed(self, model: str, sub_turn: int, reason: str) -> None:
        self._log.error("turn.failed", model=model, sub_turn=sub_turn, reason=reason)
