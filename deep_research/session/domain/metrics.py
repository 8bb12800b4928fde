"""Per-turn and cumulative session metrics."""

from datetime import datetime

from pydantic import BaseModel, Field

from deep_research.session.domain.status import TurnStatus
from deep_research.tools.domain.fetch import UrlFetchMetrics
from deep_research.usage.domain.usage import UsageRecord


class TurnMetrics(BaseModel):
    """Mutable metrics for the turn currently being recorded."""

    number: int = Field(ge=1)
    model: str
    started_at: datetime
    duration_ms: int = 0
    usage: UsageRecord | None = None
    url_fetches: list[UrlFetchMetrics] = Field(default_factory=list)


class TurnSummary(BaseModel, frozen=True):
    """One finalized row of the interactions summary."""

    number: int
    status: TurnStatus
    model: str
    started_at: datetime
    duration_ms: int
    input_tokens: int
    output_tokens: int
    cached_tokens: int
    thinking_tokens: int
    cost_usd: float | None
    url_count: int
    error: str | None = None


class CumulativeMetrics(BaseModel):
    """Running totals over the whole session; only ever incremented."""

    total_turns: int = 0
    finished_turns: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    cached_tokens: int = 0
    thinking_tokens: int = 0
    cost_usd: float = 0.0
    url_fetches: int = 0
    turns: list[TurnSummary] = Field(default_factory=list)

    def add_usage(self, usage: UsageRecord) -> None:
        self.input_tokens += usage.prompt_tokens
        self.output_tokens += usage.completion_tokens
        self.cached_tokens += usage.cached_tokens
        self.thinking_tokens += usage.thinking_tokens
        if usage.cost_usd is not None:
            self.cost_usd += usage.cost_usd
