"""ToolDispatcher — validates tool arguments and runs the matching executor."""

from collections.abc import Collection

from pydantic import BaseModel, ValidationError

from deep_research.tools.domain.call import ToolCallRecord
from deep_research.tools.domain.ports import CodeRunner, UrlFetcher
from deep_research.tools.domain.spec import (
    TOOL_SPECS,
    FetchUrlsArguments,
    RunCodeArguments,
)
from deep_research.tools.infrastructure.errors import ToolArgumentsError, UnknownToolError


class ToolDispatcher:
    """Routes a parsed tool call to the executor that implements it."""

    def __init__(self, url_fetcher: UrlFetcher, code_runner: CodeRunner) -> None:
        self._url_fetcher = url_fetcher
        self._code_runner = code_runner

    def parse_arguments(
        self, tool_name: str, raw_arguments: str, offered: Collection[str]
    ) -> BaseModel:
        """Validate *raw_arguments* (a JSON document) against the tool's schema.

        *offered* names the function tools declared to the model for this turn.

        Raises:
            UnknownToolError: if *tool_name* was not offered or is not locally
                executable.
            ToolArgumentsError: if the payload is not valid JSON or does not match.
        """
        spec = TOOL_SPECS.get(tool_name)
        if spec is None or spec.arguments_model is None or tool_name not in offered:
            raise UnknownToolError(tool_name=tool_name)
        try:
            return spec.arguments_model.model_validate_json(raw_arguments or "{}")
        except ValidationError as exc:
            raise ToolArgumentsError(tool_name=tool_name, reason=_summarize(exc)) from exc

    async def execute(
        self, tool_name: str, raw_arguments: str, arguments: BaseModel
    ) -> ToolCallRecord:
        """Run the tool and return its record.

        Raises:
            CodeExecutionError: if ``run_code`` fails; URL fetch failures are
                folded into the per-URL results instead.
        """
        if isinstance(arguments, FetchUrlsArguments):
            batch = await self._url_fetcher.fetch_urls(urls=list(arguments.urls))
            return ToolCallRecord(
                tool_name=tool_name,
                raw_arguments=raw_arguments,
                execution_result=batch.combined_text,
                structured_results=batch.results,
                requested_urls=list(arguments.urls),
            )
        if isinstance(arguments, RunCodeArguments):
            stdout = await self._code_runner.run_code(code=arguments.code)
            return ToolCallRecord(
                tool_name=tool_name,
                raw_arguments=raw_arguments,
                execution_result=stdout,
            )
        raise UnknownToolError(tool_name=tool_name)


def _summarize(exc: ValidationError) -> str:
    """Collapse a pydantic ValidationError into a single line."""
    parts: list[str] = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        parts.append(f"{location}: {error['msg']}" if location else error["msg"])
    return "; ".join(parts)
