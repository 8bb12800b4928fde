"""Formatting helpers shared by the session log files."""

from datetime import UTC, datetime


def format_turn_number(number: int) -> str:
    """Zero-pad a turn number to five digits."""
    return f"{number:05d}"


def format_duration(ms: int) -> str:
    """Format milliseconds as '850ms', '12s', '3min 4s' or '1h 2min'."""
    if ms < 1000:
        return f"{ms}ms"
    seconds = ms // 1000
    if seconds < 60:
        return f"{seconds}s"
    minutes, remaining_seconds = divmod(seconds, 60)
    if minutes < 60:
        return f"{minutes}min {remaining_seconds}s"
    hours, remaining_minutes = divmod(minutes, 60)
    return f"{hours}h {remaining_minutes}min"


def format_timestamp(moment: datetime) -> str:
    """Render *moment* as an ISO 8601 UTC timestamp with milliseconds."""
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def session_dir_name(started_at: datetime) -> str:
    """Build ``logs-<timestamp>`` with ':' and '.' replaced so it is path-safe."""
    stamp = format_timestamp(started_at).replace(":", "-").replace(".", "-")
    return f"logs-{stamp}"


def format_cost(cost_usd: float) -> str:
    return f"${cost_usd:.4f}"
