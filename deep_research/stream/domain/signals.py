"""Internal classifier signals — consumed by the orchestrator, never emitted to callers."""

from pydantic import BaseModel

from deep_research.usage.domain.usage import TokenUsage


class ToolArgumentsCompleted(BaseModel, frozen=True):
    """A function-call item finished streaming its arguments."""

    item_id: str
    call_id: str | None
    tool_name: str
    arguments: str


class SubTurnCompleted(BaseModel, frozen=True):
    """The upstream finished one response; usage may be absent."""

    usage: TokenUsage | None = None
