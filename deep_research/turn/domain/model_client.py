"""ModelClient port — the upstream streaming model call."""

from collections.abc import AsyncIterator
from typing import Any, Literal, Protocol

from pydantic import BaseModel

from deep_research.conversation.domain.message import ConversationMessage
from deep_research.tools.domain.spec import ToolSpec

type ReasoningEffort = Literal["minimal", "low", "medium", "high"]


class ModelRequest(BaseModel, frozen=True):
    """Everything needed to open one upstream stream (one sub-turn)."""

    model: str
    reasoning_effort: ReasoningEffort
    messages: list[ConversationMessage]
    tools: list[ToolSpec]


class ModelClient(Protocol):
    """Opens a streaming response and yields raw protocol frames in order.

    Raises:
        ModelStreamError: if the stream cannot be opened or breaks mid-way.
    """

    def stream(self, request: ModelRequest) -> AsyncIterator[Any]: ...
