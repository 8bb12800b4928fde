"""URL fetch value objects — per-URL result and timing/size metrics."""

from pydantic import BaseModel, Field


class UrlFetchMetrics(BaseModel, frozen=True):
    url: str
    latency_ms: int = Field(ge=0)
    size_bytes: int = Field(ge=0)
    size_formatted: str


class UrlFetchResult(BaseModel, frozen=True):
    """The outcome of fetching one URL. Failures carry an error string as content."""

    url: str
    content: str
    metrics: UrlFetchMetrics


class UrlFetchBatch(BaseModel, frozen=True):
    """All results of one ``fetch_urls`` call, in input order."""

    combined_text: str
    results: list[UrlFetchResult] = Field(default_factory=list)


def format_bytes(size: int) -> str:
    """Format a byte count as B, KB, MB (one decimal) or GB (two decimals)."""
    if size < 1024:
        return f"{size}B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f}KB"
    if size < 1024 * 1024 * 1024:
        return f"{size / (1024 * 1024):.1f}MB"
    return f"{size / (1024 * 1024 * 1024):.2f}GB"
