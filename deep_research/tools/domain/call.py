"""ToolCallRecord — one executed tool invocation within a turn."""

from pydantic import BaseModel, Field

from deep_research.tools.domain.fetch import UrlFetchResult


class ToolCallRecord(BaseModel, frozen=True):
    """The outcome of one tool call, consumed to build the continuation request.

    ``execution_result`` is the text handed back to the model. When execution
    failed it holds the error message and ``failed`` is True.
    """

    tool_name: str
    raw_arguments: str
    execution_result: str
    structured_results: list[UrlFetchResult] = Field(default_factory=list)
    requested_urls: list[str] = Field(default_factory=list)
    failed: bool = False
