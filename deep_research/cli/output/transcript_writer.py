"""StreamingTranscriptWriter — keeps the interactive transcript file current."""

from datetime import datetime
from pathlib import Path

from deep_research.conversation.domain.message import ConversationMessage
from deep_research.conversation.infrastructure.transcript import (
    write_conversation_to_file,
)
from deep_research.stream.domain.events import OutputDelta, StreamEvent

# Number of streamed characters between two transcript saves.
SAVE_THRESHOLD_CHARS = 100


class StreamingTranscriptWriter:
    """Rewrites the transcript while an answer streams in.

    The file is saved when a turn starts, every ``SAVE_THRESHOLD_CHARS``
    streamed characters, and once more with the final history.
    """

    def __init__(self, path: Path, threshold: int = SAVE_THRESHOLD_CHARS) -> None:
        self._path = path
        self._threshold = threshold
        self._history: list[ConversationMessage] = []
        self._question: ConversationMessage | None = None
        self._answer = ""
        self._unsaved = 0

    def start(self, history: list[ConversationMessage]) -> None:
        self._history = list(history)
        self._question = None
        write_conversation_to_file(self._path, self._history)

    def begin_turn(self, history: list[ConversationMessage], user_input: str) -> None:
        self._history = list(history)
        self._question = ConversationMessage(
            role="user", content=user_input, timestamp=datetime.now()
        )
        self._answer = ""
        self._unsaved = 0
        write_conversation_to_file(self._path, [*self._history, self._question])

    def on_event(self, event: StreamEvent) -> None:
        if not isinstance(event, OutputDelta):
            return
        text = event.content if event.content is not None else event.text
        self._answer += text
        self._unsaved += len(text)
        if self._unsaved >= self._threshold:
            self._save_partial()

    def finish_turn(self, history: list[ConversationMessage], completed: bool) -> None:
        """Write the settled history; an unanswered question stays visible."""
        self._history = list(history)
        pending = [self._question] if not completed and self._question is not None else []
        write_conversation_to_file(self._path, [*self._history, *pending])
        self._question = None

    def _save_partial(self) -> None:
        self._unsaved = 0
        if self._question is None:
            return
        partial = ConversationMessage(
            role="assistant", content=self._answer, timestamp=datetime.now()
        )
        write_conversation_to_file(
            self._path, [*self._history, self._question, partial], streaming=True
        )
