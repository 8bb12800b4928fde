"""FakeTurnObserver — records turn domain events for assertion in tests."""

from dataclasses import dataclass


@dataclass(frozen=True)
class SubTurnStartedEvent:
    model: str
    sub_turn: int
    message_count: int


@dataclass(frozen=True)
class ToolCallStartedEvent:
    tool_name: str
    sub_turn: int


@dataclass(frozen=True)
class ToolCallCompletedEvent:
    tool_name: str
    duration_ms: int
    failed: bool


@dataclass(frozen=True)
class ToolArgumentsInvalidEvent:
    tool_name: str
    reason: str


@dataclass(frozen=True)
class ToolCallIgnoredEvent:
    tool_name: str
    executed_tool: str


@dataclass(frozen=True)
class ContinuationLimitEvent:
    tool_name: str
    limit: int


@dataclass(frozen=True)
class TurnCompletedEvent:
    model: str
    sub_turns: int
    total_tokens: int | None
    cost_usd: float | None


@dataclass(frozen=True)
class TurnFailedEvent:
    model: str
    sub_turn: int
    reason: str


class FakeTurnObserver:
    """Records all emitted turn events as typed frozen dataclasses.

    Event lists use a leading underscore + public property pattern to avoid
    name collision between the list attributes and the Protocol method names.
    """

    def __init__(self) -> None:
        self._sub_turns: list[SubTurnStartedEvent] = []
        self._tool_started: list[ToolCallStartedEvent] = []
        self._tool_completed: list[ToolCallCompletedEvent] = []
        self._arguments_invalid: list[ToolArgumentsInvalidEvent] = []
        self._ignored: list[ToolCallIgnoredEvent] = []
        self._limits: list[ContinuationLimitEvent] = []
        self._completed: list[TurnCompletedEvent] = []
        self._failed: list[TurnFailedEvent] = []

    @property
    def sub_turns(self) -> list[SubTurnStartedEvent]:
        return self._sub_turns

    @property
    def tools_started(self) -> list[ToolCallStartedEvent]:
        return self._tool_started

    @property
    def tools_completed(self) -> list[ToolCallCompletedEvent]:
        return self._tool_completed

    @property
    def arguments_invalid(self) -> list[ToolArgumentsInvalidEvent]:
        return self._arguments_invalid

    @property
    def ignored(self) -> list[ToolCallIgnoredEvent]:
        return self._ignored

    @property
    def limits(self) -> list[ContinuationLimitEvent]:
        return self._limits

    @property
    def completed(self) -> list[TurnCompletedEvent]:
        return self._completed

    @property
    def failed(self) -> list[TurnFailedEvent]:
        return self._failed

    def sub_turn_started(self, model: str, sub_turn: int, message_count: int) -> None:
        self._sub_turns.append(
            SubTurnStartedEvent(model=model, sub_turn=sub_turn, message_count=message_count)
        )

    def tool_call_started(self, tool_name: str, sub_turn: int) -> None:
        self._tool_started.append(ToolCallStartedEvent(tool_name=tool_name, sub_turn=sub_turn))

    def tool_call_completed(self, tool_name: str, duration_ms: int, failed: bool) -> None:
        self._tool_completed.append(
            ToolCallCompletedEvent(tool_name=tool_name, duration_ms=duration_ms, failed=failed)
        )

    def tool_arguments_invalid(self, tool_name: str, reason: str) -> None:
        self._arguments_invalid.append(
            ToolArgumentsInvalidEvent(tool_name=tool_name, reason=reason)
        )

    def tool_call_ignored(self, tool_name: str, executed_tool: str) -> None:
        self._ignored.append(
            ToolCallIgnoredEvent(tool_name=tool_name, executed_tool=executed_tool)
        )

    def continuation_limit_reached(self, tool_name: str, limit: int) -> None:
        self._limits.append(ContinuationLimitEvent(tool_name=tool_name, limit=limit))

    def turn_completed(
        self, model: str, sub_turns: int, total_tokens: int | None, cost_usd: float | None
    ) -> None:
        self._completed.append(
            TurnCompletedEvent(
                model=model,
                sub_turns=sub_turns,
                total_tokens=total_tokens,
                cost_usd=cost_usd,
            )
        )

    def turn_failed(self, model: str, sub_turn: int, reason: str) -> None:
        self._failed.append(TurnFailedEvent(model=model, sub_turn=sub_turn, reason=reason))
