"""ResearchSession — runs turns against the orchestrator and records them."""

import time
from collections.abc import AsyncIterator
from contextlib import aclosing
from datetime import datetime

from deep_research.config.domain.settings import AppSettings
from deep_research.conversation.domain.message import ConversationMessage
from deep_research.session.domain.status import SessionState, TurnStatus
from deep_research.session.infrastructure.session_logger import SessionLogger
from deep_research.stream.domain.events import (
    Complete,
    ErrorEvent,
    OutputDelta,
    StreamEvent,
    ThinkingDelta,
    ToolContinuation,
    ToolUse,
)
from deep_research.tools.domain.spec import FETCH_URLS, RUN_CODE, RunCodeArguments
from deep_research.turn.application.orchestrator import TurnOrchestrator
from deep_research.usage.domain.usage import UsageRecord, combine_usage


class ResearchSession:
    """Owns the conversation history and the session log of one CLI run.

    Only one turn runs at a time; the history grows by one user/assistant pair
    per completed turn.
    """

    def __init__(
        self,
        orchestrator: TurnOrchestrator,
        logger: SessionLogger,
        settings: AppSettings,
    ) -> None:
        self._orchestrator = orchestrator
        self._logger = logger
        self._settings = settings
        self._history: list[ConversationMessage] = []
        self._state: SessionState | None = None

    @property
    def history(self) -> list[ConversationMessage]:
        return list(self._history)

    @property
    def logger(self) -> SessionLogger:
        return self._logger

    async def submit(self, user_input: str) -> AsyncIterator[StreamEvent]:
        """Stream one turn for *user_input*, logging every event as it passes.

        A turn that ends with an error is still recorded, as failed, with the
        partial reasoning and answer already on disk. A turn abandoned by the
        caller is recorded as interrupted.
        """
        settings = self._settings
        self._logger.start_turn(model=settings.model)
        self._logger.log_request(user_input)
        self._state = None
        asked_at = datetime.now()
        started = time.monotonic()
        partial_usage: UsageRecord | None = None
        finished = False

        events = self._orchestrator.stream_turn(
            model=settings.model,
            reasoning_effort=settings.reasoning_effort,
            user_input=user_input,
            prior_conversation=self._history,
            enabled_tools=settings.tools,
        )
        try:
            async with aclosing(events):
                async for event in events:
                    if isinstance(event, Complete):
                        self._finish(
                            status="complete",
                            usage=event.usage,
                            started=started,
                            answer=event.content,
                        )
                        self._history += [
                            ConversationMessage(
                                role="user", content=user_input, timestamp=asked_at
                            ),
                            ConversationMessage(
                                role="assistant",
                                content=event.content,
                                timestamp=datetime.now(),
                            ),
                        ]
                        finished = True
                    elif isinstance(event, ErrorEvent):
                        self._finish(
                            status="failed",
                            usage=partial_usage,
                            started=started,
                            error=event.message,
                        )
                        finished = True
                    else:
                        if isinstance(event, ToolContinuation):
                            partial_usage = combine_usage(partial_usage, event.usage)
                        self._record(event)
                    yield event
        finally:
            if not finished:
                self._finish(status="interrupted", usage=partial_usage, started=started)

    def close(self) -> None:
        """Write the consolidated ``session.md``."""
        self._logger.create_session_log()

    def record_fatal(self, error: BaseException) -> None:
        """Record an unexpected error and flush ``session.md``."""
        self._logger.log_fatal_error(error)

    def _record(self, event: StreamEvent) -> None:
        if isinstance(event, ThinkingDelta):
            self._set_state("thinking")
            if event.text:
                self._logger.log_reasoning(event.text, append=True)
        elif isinstance(event, OutputDelta):
            self._set_state("responding")
            text = event.content if event.content is not None else event.text
            if text:
                self._logger.log_response(text, append=True)
        elif isinstance(event, ToolUse):
            if event.status == "executing" and event.tool_name == FETCH_URLS.name:
                self._set_state("fetching_urls", progress=event.content)
            elif event.status in ("processing", "executing"):
                self._set_state("tool_calling", progress=event.content)
        elif isinstance(event, ToolContinuation):
            self._record_tool_result(event)

    def _record_tool_result(self, event: ToolContinuation) -> None:
        for result in event.url_fetch_results or []:
            self._logger.log_url_fetch_result(result)
        if event.tool_name == RUN_CODE.name and event.tool_arguments:
            code = RunCodeArguments.model_validate_json(event.tool_arguments).code
            self._logger.log_code_run(
                code=code, output=event.tool_result, failed=event.failed
            )

    def _set_state(self, state: SessionState, progress: str | None = None) -> None:
        if state != self._state:
            self._state = state
            self._logger.set_state(state, progress=progress)

    def _finish(
        self,
        status: TurnStatus,
        usage: UsageRecord | None,
        started: float,
        answer: str | None = None,
        error: str | None = None,
    ) -> None:
        if answer is not None:
            self._logger.log_response(answer)
        self._logger.update_metrics(
            usage=usage, duration_ms=int((time.monotonic() - started) * 1000)
        )
        self._logger.log_turn_stats(status=status, error=error)
