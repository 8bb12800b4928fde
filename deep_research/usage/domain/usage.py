"""Token usage value objects — raw counts from the upstream and the derived record."""

from pydantic import BaseModel, Field


class TokenUsage(BaseModel, frozen=True):
    """Vendor-neutral raw token counts reported by the upstream for one sub-turn.

    Produced by the stream classifier so that upstream field names never leak
    past it. ``input_tokens`` includes ``cached_tokens`` and ``output_tokens``
    includes ``reasoning_tokens``, matching how the upstream reports them.
    """

    input_tokens: int = Field(ge=0)
    output_tokens: int = Field(ge=0)
    total_tokens: int | None = Field(default=None, ge=0)
    cached_tokens: int = Field(default=0, ge=0)
    reasoning_tokens: int = Field(default=0, ge=0)


class UsageRecord(BaseModel, frozen=True):
    """Normalized usage for a sub-turn or an aggregated turn.

    Derived by ``calculate_usage`` and combined additively with ``+``; never
    constructed by hand outside of those two paths.
    """

    prompt_tokens: int = Field(ge=0)
    completion_tokens: int = Field(ge=0)
    total_tokens: int = Field(ge=0)
    cached_tokens: int = Field(ge=0)
    thinking_tokens: int = Field(ge=0)
    cost_usd: float | None = None

    def __add__(self, other: "UsageRecord") -> "UsageRecord":
        if self.cost_usd is None and other.cost_usd is None:
            cost: float | None = None
        else:
            cost = (self.cost_usd or 0.0) + (other.cost_usd or 0.0)
        return UsageRecord(
            prompt_tokens=self.prompt_tokens + other.prompt_tokens,
            completion_tokens=self.completion_tokens + other.completion_tokens,
            total_tokens=self.total_tokens + other.total_tokens,
            cached_tokens=self.cached_tokens + other.cached_tokens,
            thinking_tokens=self.thinking_tokens + other.thinking_tokens,
            cost_usd=cost,
        )


def combine_usage(
    current: UsageRecord | None, addition: UsageRecord | None
) -> UsageRecord | None:
    """Add two optional records; a missing side contributes nothing."""
    if current is None:
        return addition
    if addition is None:
        return current
    return current + addition
