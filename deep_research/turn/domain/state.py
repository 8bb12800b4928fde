"""Per-turn state record and its pure transition function.

The orchestrator owns one ``TurnState`` per turn and threads every classified
item through ``advance``. Keeping the transitions pure makes the state machine
testable without a network or a model client.
"""

from dataclasses import dataclass, replace
from typing import Literal

from deep_research.stream.domain.classifier import ClassifiedItem
from deep_research.stream.domain.events import (
    Created,
    ErrorEvent,
    InProgress,
    OutputDelta,
    StreamEvent,
    ThinkingDelta,
    ToolUse,
)
from deep_research.stream.domain.signals import SubTurnCompleted, ToolArgumentsCompleted
from deep_research.usage.domain.calculator import calculate_usage
from deep_research.usage.domain.usage import UsageRecord, combine_usage

type TurnPhase = Literal[
    "idle",
    "created",
    "in_progress",
    "thinking",
    "responding",
    "tool_pending",
    "tool_executing",
    "complete",
    "error",
]


@dataclass(frozen=True)
class TurnState:
    """Accumulated state of one logical turn.

    ``output_text``, ``reasoning_text`` and ``usage`` span every sub-turn; the
    ``sub_turn_*`` fields and ``pending_call`` are reset when a new upstream
    stream is opened.
    """

    model: str
    phase: TurnPhase = "idle"
    sub_turn: int = 0
    output_text: str = ""
    reasoning_text: str = ""
    sub_turn_output: str = ""
    pending_call: ToolArgumentsCompleted | None = None
    ignored_calls: tuple[str, ...] = ()
    sub_turn_completed: bool = False
    sub_turn_usage: UsageRecord | None = None
    usage: UsageRecord | None = None
    error: ErrorEvent | None = None


def begin_sub_turn(state: TurnState) -> TurnState:
    """Reset the sub-turn fields before opening a new upstream stream."""
    return replace(
        state,
        phase="idle",
        sub_turn=state.sub_turn + 1,
        sub_turn_output="",
        pending_call=None,
        ignored_calls=(),
        sub_turn_completed=False,
        sub_turn_usage=None,
    )


def advance(
    state: TurnState, item: ClassifiedItem
) -> tuple[TurnState, list[StreamEvent]]:
    """Apply one classified item and return the new state plus events to emit."""
    if isinstance(item, Created):
        return replace(state, phase="created"), [item]

    if isinstance(item, InProgress):
        return replace(state, phase="in_progress"), [item]

    if isinstance(item, ThinkingDelta):
        return (
            replace(state, phase="thinking", reasoning_text=state.reasoning_text + item.text),
            [item],
        )

    if isinstance(item, OutputDelta):
        text = item.content if item.content is not None else item.text
        return (
            replace(
                state,
                phase="responding",
                output_text=state.output_text + text,
                sub_turn_output=state.sub_turn_output + text,
            ),
            [item],
        )

    if isinstance(item, ToolUse):
        return state, [item]

    if isinstance(item, ToolArgumentsCompleted):
        # Only the first completed call of a sub-turn is executed.
        if state.pending_call is None:
            return replace(state, phase="tool_pending", pending_call=item), []
        return replace(state, ignored_calls=(*state.ignored_calls, item.tool_name)), []

    if isinstance(item, SubTurnCompleted):
        record = calculate_usage(model=state.model, raw=item.usage)
        return (
            replace(
                state,
                sub_turn_completed=True,
                sub_turn_usage=record,
                usage=combine_usage(state.usage, record),
            ),
            [],
        )

    if isinstance(item, ErrorEvent):
        return replace(state, phase="error", error=item), [item]

    return state, []
