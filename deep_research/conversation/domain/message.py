"""ConversationMessage value object — one entry of a conversation history."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

type Role = Literal["user", "assistant"]


class ConversationMessage(BaseModel, frozen=True):
    """Immutable message exchanged between the user and the model.

    The history is owned by the caller and passed by value into the orchestrator
    on every turn; the orchestrator never mutates it.
    """

    role: Role
    content: str
    timestamp: datetime | None = Field(default=None)

    def to_input_item(self) -> dict[str, str]:
        """Render the message as an upstream input item (timestamp is local-only)."""
        return {"role": self.role, "content": self.content}
