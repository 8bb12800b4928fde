"""StreamEvent — the closed set of semantic events emitted to the caller."""

from typing import Annotated, Literal

from pydantic import BaseModel, Field

from deep_research.tools.domain.fetch import UrlFetchMetrics, UrlFetchResult
from deep_research.usage.domain.usage import UsageRecord

type ToolStatus = Literal["processing", "executing", "completed", "error"]


class Created(BaseModel, frozen=True):
    type: Literal["created"] = "created"
    response_id: str | None = None
    model: str | None = None


class InProgress(BaseModel, frozen=True):
    type: Literal["in_progress"] = "in_progress"


class ThinkingDelta(BaseModel, frozen=True):
    """Reasoning text. An empty ``text`` marks the start of a reasoning item."""

    type: Literal["thinking"] = "thinking"
    text: str = ""


class OutputDelta(BaseModel, frozen=True):
    """Answer text. ``content`` carries a whole block instead of a delta."""

    type: Literal["output"] = "output"
    text: str = ""
    content: str | None = None


class ToolUse(BaseModel, frozen=True):
    type: Literal["tool_use"] = "tool_use"
    tool_name: str
    status: ToolStatus
    content: str | None = None
    delta_args: str | None = None
    url_metrics: list[UrlFetchMetrics] | None = None


class ToolContinuation(BaseModel, frozen=True):
    """Signals that a tool result was folded back and a new sub-turn is starting."""

    type: Literal["tool_continuation"] = "tool_continuation"
    tool_name: str
    tool_result: str
    tool_arguments: str | None = None
    failed: bool = False
    requested_urls: list[str] | None = None
    url_fetch_results: list[UrlFetchResult] | None = None
    usage: UsageRecord | None = None


class ErrorEvent(BaseModel, frozen=True):
    type: Literal["error"] = "error"
    message: str
    cause: str | None = None


class Complete(BaseModel, frozen=True):
    """Terminal event of a turn. ``usage`` is the sum over all sub-turns."""

    type: Literal["complete"] = "complete"
    usage: UsageRecord | None = None
    content: str = ""


type StreamEvent = Annotated[
    Created
    | InProgress
    | ThinkingDelta
    | OutputDelta
    | ToolUse
    | ToolContinuation
    | ErrorEvent
    | Complete,
    Field(discriminator="type"),
]
