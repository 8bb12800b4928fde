"""Session status states and their display form in the live stats file."""

from typing import Literal

type SessionState = Literal[
    "starting",
    "thinking",
    "tool_calling",
    "fetching_urls",
    "responding",
    "complete",
    "error",
]

type TurnStatus = Literal["complete", "failed", "interrupted"]

STATE_EMOJI: dict[str, str] = {
    "starting": "🔄",
    "thinking": "🤔",
    "tool_calling": "🔧",
    "fetching_urls": "⬇️",
    "responding": "💬",
    "complete": "✅",
    "error": "❌",
}

STATE_LABEL: dict[str, str] = {
    "starting": "Starting...",
    "thinking": "Thinking...",
    "tool_calling": "Calling Tool...",
    "fetching_urls": "Fetching URLs...",
    "responding": "Responding...",
    "complete": "Complete",
    "error": "Error",
}

TURN_STATUS_LABEL: dict[str, str] = {
    "complete": "✅ Complete",
    "failed": "❌ Failed",
    "interrupted": "⚠️ Interrupted",
}
