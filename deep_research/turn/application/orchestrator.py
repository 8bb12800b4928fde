"""TurnOrchestrator — drives one logical turn across tool-call continuations."""

import time
from collections.abc import AsyncIterator, Sequence
from dataclasses import replace
from datetime import datetime
from typing import Any

from deep_research.conversation.domain.message import ConversationMessage
from deep_research.core.errors import DeepResearchError
from deep_research.stream.domain.classifier import FrameClassifier
from deep_research.stream.domain.events import (
    Complete,
    ErrorEvent,
    StreamEvent,
    ToolContinuation,
    ToolUse,
)
from deep_research.tools.application.dispatcher import ToolDispatcher
from deep_research.tools.application.gate import select_tools
from deep_research.tools.domain.call import ToolCallRecord
from deep_research.tools.infrastructure.errors import ToolArgumentsError, UnknownToolError
from deep_research.turn.domain.model_client import (
    ModelClient,
    ModelRequest,
    ReasoningEffort,
)
from deep_research.turn.domain.observer import TurnObserver
from deep_research.turn.domain.state import TurnState, advance, begin_sub_turn
from deep_research.turn.infrastructure.errors import ModelStreamError

DEFAULT_MAX_CONTINUATIONS = 8


class TurnOrchestrator:
    """Streams one turn, executing at most one tool per sub-turn.

    A turn is a loop over sub-turns. Each sub-turn opens an upstream stream,
    classifies its frames and forwards the resulting events. When the model
    requested a tool, the tool runs to completion, its result is folded back
    into the conversation as a synthetic assistant/user exchange, and the next
    sub-turn starts. The loop ends with exactly one ``Complete`` or terminal
    ``ErrorEvent``.
    """

    def __init__(
        self,
        model_client: ModelClient,
        dispatcher: ToolDispatcher,
        observer: TurnObserver,
        max_continuations: int = DEFAULT_MAX_CONTINUATIONS,
    ) -> None:
        self._model_client = model_client
        self._dispatcher = dispatcher
        self._observer = observer
        self._max_continuations = max_continuations

    def stream_turn(
        self,
        model: str,
        reasoning_effort: ReasoningEffort,
        user_input: str,
        prior_conversation: Sequence[ConversationMessage],
        enabled_tools: Sequence[str],
    ) -> AsyncIterator[StreamEvent]:
        """Start a fresh turn for *user_input* on top of *prior_conversation*."""
        conversation = [
            *prior_conversation,
            ConversationMessage(role="user", content=user_input, timestamp=datetime.now()),
        ]
        return self.continue_turn(
            model=model,
            reasoning_effort=reasoning_effort,
            conversation=conversation,
            enabled_tools=enabled_tools,
        )

    async def continue_turn(
        self,
        model: str,
        reasoning_effort: ReasoningEffort,
        conversation: Sequence[ConversationMessage],
        enabled_tools: Sequence[str],
    ) -> AsyncIterator[StreamEvent]:
        """Resume a turn from a full conversation whose last message is the user's."""
        tools = select_tools(
            model=model, reasoning_effort=reasoning_effort, requested=enabled_tools
        )
        offered = {spec.name for spec in tools if spec.kind == "function"}
        messages = list(conversation)
        state = TurnState(model=model)
        continuations = 0

        while True:
            state = begin_sub_turn(state)
            self._observer.sub_turn_started(
                model=model, sub_turn=state.sub_turn, message_count=len(messages)
            )
            request = ModelRequest(
                model=model,
                reasoning_effort=reasoning_effort,
                messages=messages,
                tools=tools,
            )

            classifier = FrameClassifier()
            stream = self._model_client.stream(request)
            try:
                async for frame in stream:
                    for item in classifier.classify(frame):
                        state, emitted = advance(state, item)
                        for event in emitted:
                            yield event
                        if state.error is not None:
                            break
                    if state.error is not None:
                        break
            except ModelStreamError as exc:
                self._observer.turn_failed(
                    model=model, sub_turn=state.sub_turn, reason=str(exc)
                )
                cause = exc.__cause__
                yield ErrorEvent(
                    message=str(exc),
                    cause=f"{type(cause).__name__}: {cause}" if cause else None,
                )
                return
            finally:
                await _aclose(stream)

            if state.error is not None:
                self._observer.turn_failed(
                    model=model, sub_turn=state.sub_turn, reason=state.error.message
                )
                return

            call = state.pending_call
            if call is None:
                if not state.sub_turn_completed:
                    reason = "upstream stream ended without a completion frame"
                    self._observer.turn_failed(
                        model=model, sub_turn=state.sub_turn, reason=reason
                    )
                    yield ErrorEvent(message=f"Failed to stream model response: {reason}")
                    return
                yield self._complete(state=state)
                return

            for ignored in state.ignored_calls:
                self._observer.tool_call_ignored(
                    tool_name=ignored, executed_tool=call.tool_name
                )

            if continuations >= self._max_continuations:
                self._observer.continuation_limit_reached(
                    tool_name=call.tool_name, limit=self._max_continuations
                )
                yield ToolUse(
                    tool_name=call.tool_name,
                    status="error",
                    content=(
                        f"continuation limit reached ({self._max_continuations}); "
                        "tool call not executed"
                    ),
                )
                yield self._complete(state=state)
                return

            try:
                arguments = self._dispatcher.parse_arguments(
                    tool_name=call.tool_name,
                    raw_arguments=call.arguments,
                    offered=offered,
                )
            except (ToolArgumentsError, UnknownToolError) as exc:
                self._observer.tool_arguments_invalid(
                    tool_name=call.tool_name, reason=str(exc)
                )
                yield ToolUse(tool_name=call.tool_name, status="error", content=str(exc))
                yield self._complete(state=state)
                return

            state = replace(state, phase="tool_executing")
            self._observer.tool_call_started(
                tool_name=call.tool_name, sub_turn=state.sub_turn
            )
            yield ToolUse(
                tool_name=call.tool_name,
                status="executing",
                content=_describe_call(tool_name=call.tool_name, arguments=arguments),
            )

            start = time.monotonic()
            try:
                record = await self._dispatcher.execute(
                    tool_name=call.tool_name,
                    raw_arguments=call.arguments,
                    arguments=arguments,
                )
            except DeepResearchError as exc:
                record = ToolCallRecord(
                    tool_name=call.tool_name,
                    raw_arguments=call.arguments,
                    execution_result=f"Error: {exc}",
                    failed=True,
                )
                yield ToolUse(tool_name=call.tool_name, status="error", content=str(exc))
            else:
                yield ToolUse(
                    tool_name=call.tool_name,
                    status="completed",
                    content=_describe_result(record=record),
                    url_metrics=[r.metrics for r in record.structured_results] or None,
                )
            self._observer.tool_call_completed(
                tool_name=call.tool_name,
                duration_ms=int((time.monotonic() - start) * 1000),
                failed=record.failed,
            )

            yield ToolContinuation(
                tool_name=record.tool_name,
                tool_result=record.execution_result,
                tool_arguments=record.raw_arguments or None,
                failed=record.failed,
                requested_urls=record.requested_urls or None,
                url_fetch_results=record.structured_results or None,
                usage=state.sub_turn_usage,
            )
            messages = [
                *messages,
                *build_continuation_messages(
                    record=record, assistant_text=state.sub_turn_output
                ),
            ]
            continuations += 1

    def _complete(self, state: TurnState) -> Complete:
        usage = state.usage
        self._observer.turn_completed(
            model=state.model,
            sub_turns=state.sub_turn,
            total_tokens=usage.total_tokens if usage else None,
            cost_usd=usage.cost_usd if usage else None,
        )
        return Complete(usage=usage, content=state.output_text)


def build_continuation_messages(
    record: ToolCallRecord, assistant_text: str = ""
) -> list[ConversationMessage]:
    """Build the synthetic assistant/user exchange that carries a tool result."""
    intent = f"I will use the {record.tool_name} tool."
    assistant = f"{assistant_text.rstrip()}\n\n{intent}" if assistant_text.strip() else intent
    now = datetime.now()
    return [
        ConversationMessage(role="assistant", content=assistant, timestamp=now),
        ConversationMessage(
            role="user",
            content=f"Result of the {record.tool_name} tool:\n\n{record.execution_result}",
            timestamp=now,
        ),
    ]


def _describe_call(tool_name: str, arguments: Any) -> str:
    urls = getattr(arguments, "urls", None)
    if urls is not None:
        return f"Fetching {len(urls)} URL(s)..."
    if tool_name == "run_code":
        return "Running code in sandbox..."
    return f"Running {tool_name}..."


def _describe_result(record: ToolCallRecord) -> str:
    if record.structured_results:
        total = sum(r.metrics.size_bytes for r in record.structured_results)
        return f"Fetched {len(record.structured_results)} URL(s), {total} bytes"
    return f"{record.tool_name} completed"


async def _aclose(stream: AsyncIterator[Any]) -> None:
    aclose = getattr(stream, "aclose", None)
    if aclose is not None:
        await aclose()
