"""FrameClassifier — adapts upstream protocol frames to semantic stream events.

This is the only module that knows upstream frame type names. Frames may be
mappings (raw JSON) or attribute objects (SDK models); both are read through
``_field``. Unknown frame types produce no output, so new upstream event kinds
never break the orchestrator.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

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
from deep_research.usage.domain.usage import TokenUsage

type ClassifiedItem = StreamEvent | ToolArgumentsCompleted | SubTurnCompleted
type FrameHandler = Callable[[Any], list[ClassifiedItem]]

_WEB_SEARCH = "web_search"
_UNKNOWN_TOOL = "unknown"


@dataclass
class _FunctionItem:
    """A function-call output item whose arguments are still streaming."""

    name: str
    call_id: str | None
    arguments: list[str] = field(default_factory=list)


class FrameClassifier:
    """Stateful per-sub-turn classifier.

    Tracks function-call items by item id so that the arguments-complete frame,
    which may omit the tool name, can be attributed to the right tool. Create a
    new instance for every upstream stream.
    """

    def __init__(self) -> None:
        self._function_items: dict[str, _FunctionItem] = {}
        self._handlers: dict[str, FrameHandler] = {
            "response.created": self._on_created,
            "response.in_progress": self._on_in_progress,
            "response.output_item.added": self._on_item_added,
            "response.reasoning_text.delta": self._on_reasoning_delta,
            "response.reasoning_summary_text.delta": self._on_reasoning_delta,
            "response.output_text.delta": self._on_output_delta,
            "response.function_call_arguments.delta": self._on_arguments_delta,
            "response.function_call_arguments.done": self._on_arguments_done,
            "response.web_search_call.in_progress": self._on_web_search_searching,
            "response.web_search_call.searching": self._on_web_search_searching,
            "response.web_search_call.completed": self._on_web_search_completed,
            "response.completed": self._on_completed,
            "response.incomplete": self._on_completed,
            "response.failed": self._on_failed,
            "error": self._on_error,
        }

    def classify(self, frame: Any) -> list[ClassifiedItem]:
        """Translate one frame into zero or more items, preserving delta order.

        Never raises: a malformed frame becomes a ``ToolUse{error}`` when it
        belongs to a function call, and an ``ErrorEvent`` otherwise.
        """
        frame_type = _field(frame, "type") or _field(frame, "event")
        handler = self._handlers.get(frame_type) if isinstance(frame_type, str) else None
        if handler is None:
            return []
        try:
            return handler(frame)
        except (AttributeError, KeyError, TypeError, ValueError, ValidationError) as exc:
            reason = f"malformed '{frame_type}' frame: {exc}"
            if "function_call" in frame_type:
                return [ToolUse(tool_name=_UNKNOWN_TOOL, status="error", content=reason)]
            return [ErrorEvent(message=reason, cause=type(exc).__name__)]

    # ------------------------------------------------------------------
    # Frame handlers
    # ------------------------------------------------------------------

    def _on_created(self, frame: Any) -> list[ClassifiedItem]:
        response = _field(frame, "response")
        return [
            Created(
                response_id=_field(response, "id"),
                model=_field(response, "model"),
            )
        ]

    def _on_in_progress(self, frame: Any) -> list[ClassifiedItem]:
        return [InProgress()]

    def _on_item_added(self, frame: Any) -> list[ClassifiedItem]:
        item = _field(frame, "item")
        item_type = _field(item, "type")
        if item_type == "reasoning":
            return [ThinkingDelta(text="")]
        if item_type == "function_call":
            name = _field(item, "name") or _UNKNOWN_TOOL
            item_id = _field(item, "id") or _field(frame, "item_id") or ""
            self._function_items[item_id] = _FunctionItem(
                name=name, call_id=_field(item, "call_id")
            )
            return [
                ToolUse(tool_name=name, status="processing", content=f"Preparing {name}...")
            ]
        return []

    def _on_reasoning_delta(self, frame: Any) -> list[ClassifiedItem]:
        return [ThinkingDelta(text=_text(frame, "delta"))]

    def _on_output_delta(self, frame: Any) -> list[ClassifiedItem]:
        return [OutputDelta(text=_text(frame, "delta"))]

    def _on_arguments_delta(self, frame: Any) -> list[ClassifiedItem]:
        delta = _text(frame, "delta")
        tracked = self._function_items.get(_field(frame, "item_id") or "")
        if tracked is None:
            return [ToolUse(tool_name=_UNKNOWN_TOOL, status="processing", delta_args=delta)]
        tracked.arguments.append(delta)
        return [ToolUse(tool_name=tracked.name, status="processing", delta_args=delta)]

    def _on_arguments_done(self, frame: Any) -> list[ClassifiedItem]:
        item_id = _field(frame, "item_id") or ""
        tracked = self._function_items.pop(item_id, None)
        name = _field(frame, "name") or (tracked.name if tracked else None)
        if name is None:
            return [
                ToolUse(
                    tool_name=_UNKNOWN_TOOL,
                    status="error",
                    content=f"arguments completed for untracked item '{item_id}'",
                )
            ]
        arguments = _field(frame, "arguments")
        if arguments is None:
            arguments = "".join(tracked.arguments) if tracked else ""
        return [
            ToolArgumentsCompleted(
                item_id=item_id,
                call_id=tracked.call_id if tracked else None,
                tool_name=name,
                arguments=str(arguments),
            )
        ]

    def _on_web_search_searching(self, frame: Any) -> list[ClassifiedItem]:
        return [
            ToolUse(tool_name=_WEB_SEARCH, status="executing", content="Searching the web...")
        ]

    def _on_web_search_completed(self, frame: Any) -> list[ClassifiedItem]:
        return [
            ToolUse(tool_name=_WEB_SEARCH, status="completed", content="Web search completed")
        ]

    def _on_completed(self, frame: Any) -> list[ClassifiedItem]:
        response = _field(frame, "response")
        return [SubTurnCompleted(usage=_token_usage(_field(response, "usage")))]

    def _on_failed(self, frame: Any) -> list[ClassifiedItem]:
        error = _field(_field(frame, "response"), "error")
        message = _field(error, "message") or "upstream response failed"
        return [ErrorEvent(message=str(message), cause=_field(error, "code"))]

    def _on_error(self, frame: Any) -> list[ClassifiedItem]:
        message = _field(frame, "message") or "upstream stream error"
        return [ErrorEvent(message=str(message), cause=_field(frame, "code"))]


def _field(obj: Any, name: str) -> Any:
    """Read *name* from a mapping or an attribute object; None when absent."""
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def _text(frame: Any, name: str) -> str:
    value = _field(frame, name)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise TypeError(f"'{name}' must be a string, got {type(value).__name__}")
    return value


def _token_usage(raw: Any) -> TokenUsage | None:
    """Map upstream usage (Responses API field names) to TokenUsage."""
    if raw is None:
        return None
    return TokenUsage(
        input_tokens=_field(raw, "input_tokens") or 0,
        output_tokens=_field(raw, "output_tokens") or 0,
        total_tokens=_field(raw, "total_tokens"),
        cached_tokens=_field(_field(raw, "input_tokens_details"), "cached_tokens") or 0,
        reasoning_tokens=(
            _field(_field(raw, "output_tokens_details"), "reasoning_tokens") or 0
        ),
    )
