"""Static per-model price table (USD per token)."""

from pydantic import BaseModel, Field

# Cached input tokens are billed at a tenth of the regular input price.
CACHE_DISCOUNT_FACTOR = 0.1


class ModelPricing(BaseModel, frozen=True):
    input: float = Field(ge=0.0)
    output: float = Field(ge=0.0)
    cache_discount_factor: float = Field(default=CACHE_DISCOUNT_FACTOR, ge=0.0, le=1.0)


MODEL_PRICING: dict[str, ModelPricing] = {
    "gpt-5": ModelPricing(input=1.25 / 1_000_000, output=10.0 / 1_000_000),
    "gpt-5-mini": ModelPricing(input=0.25 / 1_000_000, output=2.0 / 1_000_000),
    "gpt-5-nano": ModelPricing(input=0.05 / 1_000_000, output=0.40 / 1_000_000),
    "o3": ModelPricing(input=0.5 / 1_000_000, output=1.5 / 1_000_000),
    "o3-deep-research": ModelPricing(input=1.0 / 1_000_000, output=3.0 / 1_000_000),
    "o3-pro": ModelPricing(input=2.0 / 1_000_000, output=6.0 / 1_000_000),
}


def lookup_pricing(model: str) -> ModelPricing | None:
    """Return pricing for *model*, accepting a ``provider/`` prefix; None if unknown."""
    if model in MODEL_PRICING:
        return MODEL_PRICING[model]
    _, _, bare = model.rpartition("/")
    return MODEL_PRICING.get(bare)
