"""LiteLLMResponsesClient — streams reasoning model responses via LiteLLM."""

from collections.abc import AsyncIterator
from typing import Any

import litellm

from deep_research.turn.domain.model_client import ModelRequest
from deep_research.turn.infrastructure.errors import ModelStreamError


class LiteLLMResponsesClient:
    """ModelClient backed by ``litellm.aresponses`` with ``stream=True``.

    Reasoning summaries are requested so that thinking text is streamed as
    deltas alongside the answer.
    """

    def __init__(self, api_key: str | None = None) -> None:
        litellm.suppress_debug_info = True
        self._api_key = api_key

    async def stream(self, request: ModelRequest) -> AsyncIterator[Any]:
        """Yield raw frames for *request*.

        Raises:
            ModelStreamError: on any failure opening or iterating the stream.
        """
        kwargs: dict[str, Any] = {
            "model": request.model,
            "input": [message.to_input_item() for message in request.messages],
            "reasoning": {"effort": request.reasoning_effort, "summary": "auto"},
            "stream": True,
        }
        if request.tools:
            kwargs["tools"] = [spec.to_declaration() for spec in request.tools]
        if self._api_key:
            kwargs["api_key"] = self._api_key

        try:
            response = await litellm.aresponses(**kwargs)
            async for frame in response:
                yield frame
        except Exception as exc:
            # litellm maps provider failures onto openai exception types and a
            # few of its own; all of them end the sub-turn the same way.
            raise ModelStreamError(reason=str(exc) or type(exc).__name__) from exc
