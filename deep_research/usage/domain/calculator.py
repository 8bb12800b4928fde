"""calculate_usage — pure mapping from raw token counts to a UsageRecord."""

from deep_research.usage.domain.pricing import lookup_pricing
from deep_research.usage.domain.usage import TokenUsage, UsageRecord


def calculate_usage(model: str, raw: TokenUsage | None) -> UsageRecord | None:
    """Normalize *raw* usage for *model* and attach a cost estimate when priced.

    Returns None when the upstream reported no usage for the sub-turn. For an
    unknown model the token counts are still returned but ``cost_usd`` is None.

    Cost is ``uncached_input * price_in + cached * price_in * discount +
    output * price_out`` where ``uncached_input = input - cached``.
    """
    if raw is None:
        return None

    total = (
        raw.total_tokens
        if raw.total_tokens is not None
        else raw.input_tokens + raw.output_tokens
    )

    cost: float | None = None
    pricing = lookup_pricing(model)
    if pricing is not None:
        cached = min(raw.cached_tokens, raw.input_tokens)
        uncached = raw.input_tokens - cached
        cost = (
            uncached * pricing.input
            + cached * pricing.input * pricing.cache_discount_factor
            + raw.output_tokens * pricing.output
        )

    return UsageRecord(
        prompt_tokens=raw.input_tokens,
        completion_tokens=raw.output_tokens,
        total_tokens=total,
        cached_tokens=raw.cached_tokens,
        thinking_tokens=raw.reasoning_tokens,
        cost_usd=cost,
    )
