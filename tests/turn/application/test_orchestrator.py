"""Tests for TurnOrchestrator — sub-turn loop, tool dispatch and continuations."""

import json
from collections.abc import Sequence
from typing import Any

from deep_research.conversation.domain.message import ConversationMessage
from deep_research.stream.domain.events import (
    Complete,
    Created,
    ErrorEvent,
    InProgress,
    OutputDelta,
    StreamEvent,
    ThinkingDelta,
    ToolContinuation,
    ToolUse,
)
from deep_research.tools.application.dispatcher import ToolDispatcher
from deep_research.turn.application.orchestrator import (
    TurnOrchestrator,
    build_continuation_messages,
)
from deep_research.turn.infrastructure.errors import ModelStreamError
from deep_research.tools.domain.call import ToolCallRecord
from tests.stream import frames
from tests.tools.fake_executors import FakeCodeRunner, FakeUrlFetcher
from tests.turn.fake_model_client import FakeModelClient
from tests.turn.fake_observer import FakeTurnObserver


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_orchestrator(
    scripts: Sequence[Sequence[Any]],
    fetcher: FakeUrlFetcher | None = None,
    runner: FakeCodeRunner | None = None,
    max_continuations: int = 8,
) -> tuple[TurnOrchestrator, FakeModelClient, FakeTurnObserver]:
    client = FakeModelClient(scripts=scripts)
    observer = FakeTurnObserver()
    orchestrator = TurnOrchestrator(
        model_client=client,
        dispatcher=ToolDispatcher(
            url_fetcher=fetcher or FakeUrlFetcher(),
            code_runner=runner or FakeCodeRunner(),
        ),
        observer=observer,
        max_continuations=max_continuations,
    )
    return orchestrator, client, observer


async def _collect(
    orchestrator: TurnOrchestrator,
    user_input: str = "What is 2+2?",
    tools: Sequence[str] = ("all",),
    prior: Sequence[ConversationMessage] = (),
    model: str = "gpt-5",
) -> list[StreamEvent]:
    return [
        event
        async for event in orchestrator.stream_turn(
            model=model,
            reasoning_effort="high",
            user_input=user_input,
            prior_conversation=prior,
            enabled_tools=tools,
        )
    ]


def _answer(*parts: str, usage: tuple[int, int] = (10, 5)) -> list[dict[str, Any]]:
    return [
        frames.created(),
        frames.in_progress(),
        frames.reasoning_item_added(),
        frames.reasoning_delta("Adding numbers."),
        *(frames.output_delta(part) for part in parts),
        frames.completed(input_tokens=usage[0], output_tokens=usage[1]),
    ]


def _tool_sub_turn(calls: list[dict[str, Any]], preamble: str = "") -> list[Any]:
    script: list[Any] = [frames.created(), frames.in_progress()]
    if preamble:
        script.append(frames.output_delta(preamble))
    return [*script, *calls, frames.completed()]


def _of_type[T](events: list[StreamEvent], kind: type[T]) -> list[T]:
    return [event for event in events if isinstance(event, kind)]


# ---------------------------------------------------------------------------
# Turns without tools
# ---------------------------------------------------------------------------


class TestPlainTurn:
    async def test_event_sequence_without_tools(self) -> None:
        orchestrator, _, _ = _make_orchestrator(scripts=[_answer("The answer is ", "4")])

        events = await _collect(orchestrator, tools=())

        assert isinstance(events[0], Created)
        assert isinstance(events[1], InProgress)
        assert isinstance(events[2], ThinkingDelta)
        assert isinstance(events[-1], Complete)
        assert "4" in "".join(e.text for e in _of_type(events, OutputDelta))

    async def test_exactly_one_complete(self) -> None:
        orchestrator, _, _ = _make_orchestrator(scripts=[_answer("4")])

        events = await _collect(orchestrator)

        assert len(_of_type(events, Complete)) == 1
        assert _of_type(events, ErrorEvent) == []

    async def test_complete_content_equals_concatenated_deltas(self) -> None:
        orchestrator, _, _ = _make_orchestrator(scripts=[_answer("a", "b", "c")])

        events = await _collect(orchestrator)

        complete = events[-1]
        assert isinstance(complete, Complete)
        assert complete.content == "".join(e.text for e in _of_type(events, OutputDelta))

    async def test_complete_carries_priced_usage(self) -> None:
        orchestrator, _, observer = _make_orchestrator(scripts=[_answer("4", usage=(100, 50))])

        events = await _collect(orchestrator)

        complete = events[-1]
        assert isinstance(complete, Complete)
        assert complete.usage is not None
        assert complete.usage.total_tokens == 150
        assert complete.usage.cost_usd is not None
        assert observer.completed[0].total_tokens == 150

    async def test_request_contains_prior_conversation_and_user_message(self) -> None:
        prior = [
            ConversationMessage(role="user", content="hi"),
            ConversationMessage(role="assistant", content="hello"),
        ]
        orchestrator, client, _ = _make_orchestrator(scripts=[_answer("4")])

        await _collect(orchestrator, prior=prior)

        messages = client.requests[0].messages
        assert [m.content for m in messages] == ["hi", "hello", "What is 2+2?"]
        assert messages[-1].role == "user"

    async def test_enabled_tools_are_declared(self) -> None:
        orchestrator, client, _ = _make_orchestrator(scripts=[_answer("4")])

        await _collect(orchestrator, tools=["fetch_urls"])

        assert [t.name for t in client.requests[0].tools] == ["fetch_urls"]


# ---------------------------------------------------------------------------
# Tool continuations
# ---------------------------------------------------------------------------


class TestFetchContinuation:
    async def test_successful_fetch_continues_with_result(self) -> None:
        fetcher = FakeUrlFetcher(pages={"example.com": "Example Domain"})
        orchestrator, client, _ = _make_orchestrator(
            scripts=[
                _tool_sub_turn(frames.fetch_call(["example.com"])),
                _answer("It says Example Domain."),
            ],
            fetcher=fetcher,
        )

        events = await _collect(orchestrator, user_input="fetch example.com")

        tool_events = _of_type(events, ToolUse)
        executing = [e for e in tool_events if e.status == "executing"]
        completed = [e for e in tool_events if e.status == "completed"]
        assert len(executing) == 1
        assert len(completed) == 1
        assert completed[0].url_metrics is not None
        assert completed[0].url_metrics[0].url == "example.com"
        assert completed[0].url_metrics[0].size_bytes > 0

        continuation = _of_type(events, ToolContinuation)
        assert len(continuation) == 1
        assert "Example Domain" in continuation[0].tool_result
        assert continuation[0].requested_urls == ["example.com"]

        continuation_index = events.index(continuation[0])
        assert isinstance(events[continuation_index + 1], Created)
        assert isinstance(events[-1], Complete)
        assert len(client.requests) == 2

    async def test_continuation_request_carries_synthetic_exchange(self) -> None:
        fetcher = FakeUrlFetcher(pages={"example.com": "Example Domain"})
        orchestrator, client, _ = _make_orchestrator(
            scripts=[
                _tool_sub_turn(frames.fetch_call(["example.com"])),
                _answer("done"),
            ],
            fetcher=fetcher,
        )

        await _collect(orchestrator, user_input="fetch example.com")

        messages = client.requests[1].messages
        assert messages[-2].role == "assistant"
        assert "fetch_urls" in messages[-2].content
        assert messages[-1].role == "user"
        assert "Example Domain" in messages[-1].content

    async def test_usage_is_summed_across_sub_turns(self) -> None:
        orchestrator, _, observer = _make_orchestrator(
            scripts=[
                _tool_sub_turn(frames.fetch_call(["example.com"])),
                _answer("done", usage=(20, 10)),
            ],
            fetcher=FakeUrlFetcher(pages={"example.com": "x"}),
        )

        events = await _collect(orchestrator)

        continuation = _of_type(events, ToolContinuation)[0]
        complete = events[-1]
        assert isinstance(complete, Complete)
        assert continuation.usage is not None
        assert complete.usage is not None
        assert complete.usage.total_tokens == continuation.usage.total_tokens + 30
        assert observer.completed[0].sub_turns == 2

    async def test_failed_url_is_folded_into_result(self) -> None:
        orchestrator, _, _ = _make_orchestrator(
            scripts=[
                _tool_sub_turn(frames.fetch_call(["bad://url"])),
                _answer("Could not fetch it."),
            ],
        )

        events = await _collect(orchestrator)

        continuation = _of_type(events, ToolContinuation)[0]
        assert continuation.url_fetch_results is not None
        result = continuation.url_fetch_results[0]
        assert result.metrics.size_bytes == 0
        assert result.content.startswith("Error fetching")
        assert isinstance(events[-1], Complete)


class TestToolFailures:
    async def test_invalid_json_arguments_complete_without_continuation(self) -> None:
        calls = [
            frames.function_call_added(name="fetch_urls"),
            frames.arguments_done("{not json"),
        ]
        orchestrator, client, observer = _make_orchestrator(
            scripts=[_tool_sub_turn(calls, preamble="Let me look.")]
        )

        events = await _collect(orchestrator)

        errors = [e for e in _of_type(events, ToolUse) if e.status == "error"]
        assert len(errors) == 1
        assert errors[0].tool_name == "fetch_urls"
        assert _of_type(events, ToolContinuation) == []
        assert isinstance(events[-1], Complete)
        assert events[-1].content == "Let me look."
        assert len(client.requests) == 1
        assert len(observer.arguments_invalid) == 1

    async def test_schema_mismatch_is_an_argument_error(self) -> None:
        calls = [
            frames.function_call_added(name="run_code"),
            frames.arguments_done(json.dumps({"source": "print(1)"})),
        ]
        orchestrator, _, observer = _make_orchestrator(scripts=[_tool_sub_turn(calls)])

        events = await _collect(orchestrator)

        assert isinstance(events[-1], Complete)
        assert observer.arguments_invalid[0].tool_name == "run_code"

    async def test_execution_error_continues_with_error_text(self) -> None:
        calls = [
            frames.function_call_added(name="run_code"),
            frames.arguments_done(json.dumps({"code": "1/0"})),
        ]
        runner = FakeCodeRunner(failure="ZeroDivisionError")
        orchestrator, client, observer = _make_orchestrator(
            scripts=[_tool_sub_turn(calls), _answer("The code failed.")],
            runner=runner,
        )

        events = await _collect(orchestrator)

        assert any(e.status == "error" for e in _of_type(events, ToolUse))
        continuation = _of_type(events, ToolContinuation)[0]
        assert continuation.failed
        assert "ZeroDivisionError" in continuation.tool_result
        assert continuation.tool_arguments == json.dumps({"code": "1/0"})
        assert isinstance(events[-1], Complete)
        assert "ZeroDivisionError" in client.requests[1].messages[-1].content
        assert observer.tools_completed[0].failed

    async def test_run_code_success(self) -> None:
        calls = [
            frames.function_call_added(name="run_code"),
            frames.arguments_done(json.dumps({"code": "print(4)"})),
        ]
        runner = FakeCodeRunner(stdout="4\n")
        orchestrator, _, _ = _make_orchestrator(
            scripts=[_tool_sub_turn(calls), _answer("4")], runner=runner
        )

        events = await _collect(orchestrator)

        assert runner.calls == ["print(4)"]
        assert _of_type(events, ToolContinuation)[0].tool_result == "4\n"


class TestDispatchPolicy:
    async def test_only_first_call_is_executed(self) -> None:
        fetcher = FakeUrlFetcher(pages={"a.com": "A"})
        runner = FakeCodeRunner(stdout="ran")
        calls = [
            *frames.fetch_call(["a.com"], item_id="fc_1"),
            frames.function_call_added(name="run_code", item_id="fc_2"),
            frames.arguments_done(json.dumps({"code": "x"}), item_id="fc_2"),
        ]
        orchestrator, _, observer = _make_orchestrator(
            scripts=[_tool_sub_turn(calls), _answer("done")],
            fetcher=fetcher,
            runner=runner,
        )

        events = await _collect(orchestrator)

        assert fetcher.calls == [["a.com"]]
        assert runner.calls == []
        assert len(_of_type(events, ToolContinuation)) == 1
        assert observer.ignored[0].tool_name == "run_code"
        assert observer.ignored[0].executed_tool == "fetch_urls"

    async def test_continuation_limit_stops_tool_loop(self) -> None:
        fetcher = FakeUrlFetcher(pages={"a.com": "A"})
        orchestrator, client, observer = _make_orchestrator(
            scripts=[_tool_sub_turn(frames.fetch_call(["a.com"])) for _ in range(3)],
            fetcher=fetcher,
            max_continuations=2,
        )

        events = await _collect(orchestrator)

        assert len(_of_type(events, ToolContinuation)) == 2
        assert len(client.requests) == 3
        last_tool = _of_type(events, ToolUse)[-1]
        assert last_tool.status == "error"
        assert "continuation limit" in (last_tool.content or "")
        assert isinstance(events[-1], Complete)
        assert observer.limits[0].limit == 2

    async def test_call_to_tool_not_enabled_is_rejected(self) -> None:
        fetcher = FakeUrlFetcher(pages={"example.com": "Example Domain"})
        orchestrator, client, observer = _make_orchestrator(
            scripts=[
                _tool_sub_turn(frames.fetch_call(["example.com"]), preamble="Checking.")
            ],
            fetcher=fetcher,
        )

        events = await _collect(orchestrator, tools=("web_search",))

        assert [t.name for t in client.requests[0].tools] == ["web_search"]
        assert fetcher.calls == []
        assert _of_type(events, ToolContinuation) == []
        errors = [e for e in _of_type(events, ToolUse) if e.status == "error"]
        assert errors[0].tool_name == "fetch_urls"
        assert isinstance(events[-1], Complete)
        assert events[-1].content == "Checking."
        assert len(client.requests) == 1
        assert observer.arguments_invalid[0].tool_name == "fetch_urls"

    async def test_function_tools_are_rejected_for_deep_research_model(self) -> None:
        fetcher = FakeUrlFetcher(pages={"example.com": "Example Domain"})
        orchestrator, client, _ = _make_orchestrator(
            scripts=[_tool_sub_turn(frames.fetch_call(["example.com"]))],
            fetcher=fetcher,
        )

        events = await _collect(orchestrator, model="o3-deep-research")

        assert all(t.kind == "hosted" for t in client.requests[0].tools)
        assert fetcher.calls == []
        assert _of_type(events, ToolContinuation) == []
        assert isinstance(events[-1], Complete)
        assert len(client.requests) == 1


# ---------------------------------------------------------------------------
# Stream errors
# ---------------------------------------------------------------------------


class TestStreamErrors:
    async def test_transport_error_is_terminal_error_event(self) -> None:
        cause = ConnectionError("connection reset")
        error = ModelStreamError(reason="connection reset")
        error.__cause__ = cause
        orchestrator, _, observer = _make_orchestrator(
            scripts=[[frames.created(), frames.output_delta("par"), error]]
        )

        events = await _collect(orchestrator)

        assert isinstance(events[-1], ErrorEvent)
        assert "connection reset" in events[-1].message
        assert events[-1].cause is not None
        assert "ConnectionError" in events[-1].cause
        assert _of_type(events, Complete) == []
        assert len(observer.failed) == 1

    async def test_failed_frame_ends_turn_with_error(self) -> None:
        orchestrator, client, _ = _make_orchestrator(
            scripts=[[frames.created(), frames.failed(message="overloaded")]]
        )

        events = await _collect(orchestrator)

        assert events[-1] == ErrorEvent(message="overloaded", cause="server_error")
        assert len(client.requests) == 1

    async def test_stream_ending_without_completion_is_an_error(self) -> None:
        orchestrator, _, _ = _make_orchestrator(
            scripts=[[frames.created(), frames.output_delta("4")]]
        )

        events = await _collect(orchestrator)

        assert isinstance(events[-1], ErrorEvent)
        assert _of_type(events, Complete) == []


class TestContinueTurn:
    async def test_resumes_from_serialized_conversation(self) -> None:
        orchestrator, client, _ = _make_orchestrator(scripts=[_answer("resumed")])
        conversation = [ConversationMessage(role="user", content="go on")]

        events = [
            event
            async for event in orchestrator.continue_turn(
                model="gpt-5",
                reasoning_effort="low",
                conversation=conversation,
                enabled_tools=[],
            )
        ]

        assert isinstance(events[-1], Complete)
        assert client.requests[0].messages == conversation
        assert client.requests[0].reasoning_effort == "low"


class TestBuildContinuationMessages:
    def test_assistant_text_is_kept_before_intent(self) -> None:
        record = ToolCallRecord(
            tool_name="fetch_urls", raw_arguments="{}", execution_result="page"
        )

        assistant, user = build_continuation_messages(record, assistant_text="Checking.")

        assert assistant.content == "Checking.\n\nI will use the fetch_urls tool."
        assert user.content == "Result of the fetch_urls tool:\n\npage"
