"""Request-file input and answer / transcript output."""

from collections.abc import Sequence
from pathlib import Path

from deep_research.conversation.domain.message import ConversationMessage
from deep_research.conversation.infrastructure.errors import (
    InputFileError,
    OutputFileError,
)

_SEPARATOR = "---" * 20
_ROLE_LABELS = {"user": "USER", "assistant": "ASSISTANT"}


def read_input_file(path: Path) -> str:
    """Return the trimmed contents of a request file.

    Raises:
        InputFileError: if the file cannot be read.
    """
    try:
        return path.read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise InputFileError(path=path, reason=str(exc)) from exc


def write_output_file(path: Path, content: str) -> None:
    """Write the final answer of a non-interactive run.

    Raises:
        OutputFileError: if the file cannot be written.
    """
    try:
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise OutputFileError(path=path, reason=str(exc)) from exc


def render_conversation(
    conversation: Sequence[ConversationMessage], streaming: bool = False
) -> str:
    """Render a conversation as the markdown transcript written by interactive runs.

    When *streaming* is set and the last message is the assistant's, that
    message is marked as still in progress.
    """
    parts = ["# Conversation History\n\n"]
    last = len(conversation) - 1
    for index, message in enumerate(conversation):
        incomplete = streaming and index == last and message.role == "assistant"
        stamp = message.timestamp.strftime("%Y-%m-%d %H:%M:%S") if message.timestamp else ""
        heading = _ROLE_LABELS[message.role]
        if stamp:
            heading += f" [{stamp}]"
        if incomplete:
            heading += " (STREAMING...)"
        body = message.content
        if incomplete:
            body += "\n\n[Response still streaming...]"
        parts.append(f"{_SEPARATOR}\n{heading}\n{_SEPARATOR}\n\n{body}\n\n")
    return "".join(parts)


def write_conversation_to_file(
    path: Path,
    conversation: Sequence[ConversationMessage],
    streaming: bool = False,
) -> None:
    """Rewrite the transcript at *path*.

    Raises:
        OutputFileError: if the file cannot be written.
    """
    write_output_file(path=path, content=render_conversation(conversation, streaming))
