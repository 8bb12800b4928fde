"""AppSettings — runtime configuration of the research client."""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from deep_research.tools.domain.spec import ALL_TOOLS, TOOL_SPECS
from deep_research.turn.domain.model_client import ReasoningEffort

DEFAULT_MODEL = "gpt-5"
DEFAULT_FETCH_PROXY_URL = "http://127.0.0.1:3000/"
DEFAULT_SANDBOX_APP_NAME = "deep-research-sandbox"
DEFAULT_SANDBOX_IMAGE = "python:3.13-slim"


class AppSettings(BaseModel, frozen=True):
    """Settings resolved from defaults, an optional YAML file and CLI options."""

    model: str = Field(default=DEFAULT_MODEL, min_length=1)
    reasoning_effort: ReasoningEffort = "high"
    tools: list[str] = Field(default_factory=lambda: [ALL_TOOLS], min_length=1)
    fetch_proxy_url: str = Field(default=DEFAULT_FETCH_PROXY_URL, min_length=1)
    max_continuations: int = Field(default=8, ge=0)
    log_root: Path = Path(".")
    sandbox_app_name: str = Field(default=DEFAULT_SANDBOX_APP_NAME, min_length=1)
    sandbox_image: str = Field(default=DEFAULT_SANDBOX_IMAGE, min_length=1)

    @field_validator("tools")
    @classmethod
    def _known_tools(cls, tools: list[str]) -> list[str]:
        unknown = [t for t in tools if t != ALL_TOOLS and t not in TOOL_SPECS]
        if unknown:
            raise ValueError(f"unknown tools: {', '.join(unknown)}")
        return tools

    @field_validator("fetch_proxy_url")
    @classmethod
    def _trailing_slash(cls, url: str) -> str:
        return url if url.endswith("/") else f"{url}/"
