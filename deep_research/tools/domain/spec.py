"""Tool declarations, tool names and their argument schemas."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

type ToolName = Literal["fetch_urls", "run_code", "web_search"]
type ToolSelection = Literal["fetch_urls", "run_code", "web_search", "all"]

ALL_TOOLS = "all"


class FetchUrlsArguments(BaseModel, frozen=True):
    """Arguments the model must supply to ``fetch_urls``."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    urls: list[str] = Field(description="Array of URLs to fetch content from")


class RunCodeArguments(BaseModel, frozen=True):
    """Arguments the model must supply to ``run_code``."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    code: str = Field(description="Python code to execute")


class ToolSpec(BaseModel, frozen=True):
    """A tool declaration offered to the model.

    Function tools are executed locally and carry an ``arguments_model``; hosted
    tools run on the provider side and only surface progress frames.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: ToolName
    kind: Literal["function", "hosted"]
    description: str = ""
    arguments_model: type[BaseModel] | None = None

    def to_declaration(self) -> dict[str, Any]:
        """Render the declaration in the upstream Responses API shape."""
        if self.kind == "hosted":
            return {"type": "web_search_preview"}
        assert self.arguments_model is not None  # function tools always have one
        return {
            "type": "function",
            "name": self.name,
            "description": self.description,
            "parameters": self.arguments_model.model_json_schema(),
        }


FETCH_URLS = ToolSpec(
    name="fetch_urls",
    kind="function",
    description=(
        "Fetch content from one or more URLs and return them in markdown format. "
        "Prefer this tool if you need to obtain contents of 1 or more URLs. It works "
        "with regular websites and PDFs, e.g. https://arxiv.org/pdf/YYMM.xxxxx "
        "returns the paper in markdown format."
    ),
    arguments_model=FetchUrlsArguments,
)

RUN_CODE = ToolSpec(
    name="run_code",
    kind="function",
    description=(
        "Runs supplied Python3 code as a stand-alone script and returns its "
        "standard output."
    ),
    arguments_model=RunCodeArguments,
)

WEB_SEARCH = ToolSpec(name="web_search", kind="hosted")

TOOL_SPECS: dict[str, ToolSpec] = {
    spec.name: spec for spec in (FETCH_URLS, RUN_CODE, WEB_SEARCH)
}
