"""SessionLogger — markdown audit trail for one research session.

Layout of ``<root>/logs-<timestamp>/``:

    stats.md                          live cumulative summary
    session.md                        consolidated report, written at the end
    {N}-request.md                    user input of turn N
    {N}-response.md                   streamed answer (appended, then finalized)
    {N}-response-reasoning.md         streamed reasoning (appended)
    {N}-tool-fetch_url-{k}.md         one file per fetched URL
    {N}-tool-run_code.md              submitted code and captured output
    {N}-stats.md                      per-turn statistics

Every write goes straight to disk. Write failures are reported to the
SessionObserver and never raised, so a broken log directory cannot lose the
turn result the caller is about to receive.
"""

import traceback
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

from deep_research.session.domain.formatting import (
    format_cost,
    format_duration,
    format_timestamp,
    format_turn_number,
    session_dir_name,
)
from deep_research.session.domain.metrics import (
    CumulativeMetrics,
    TurnMetrics,
    TurnSummary,
)
from deep_research.session.domain.observer import SessionObserver
from deep_research.session.domain.status import (
    STATE_EMOJI,
    STATE_LABEL,
    TURN_STATUS_LABEL,
    SessionState,
    TurnStatus,
)
from deep_research.tools.domain.fetch import UrlFetchResult
from deep_research.usage.domain.usage import UsageRecord

type Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(UTC)


class SessionLogger:
    """Writes one numbered file set per turn plus the session-level summaries.

    Turn numbers start at 1, increase by one per ``start_turn`` call and are
    never reused. Cumulative counters only grow.
    """

    def __init__(
        self,
        root: Path,
        observer: SessionObserver,
        clock: Clock | None = None,
    ) -> None:
        self._clock = clock or _utc_now
        self._observer = observer
        self._started_at = self._clock()
        self._session_dir = root / session_dir_name(self._started_at)
        self._turn_count = 0
        self._totals = CumulativeMetrics()
        self._current: TurnMetrics | None = None
        self._code_runs = 0
        self._url_fetches = 0
        self._state: SessionState = "starting"
        self._progress: str | None = None
        self._fatal_error: str | None = None

    @property
    def session_dir(self) -> Path:
        return self._session_dir

    @property
    def turn_number(self) -> int:
        return self._turn_count

    @property
    def totals(self) -> CumulativeMetrics:
        return self._totals

    # ------------------------------------------------------------------
    # Turn lifecycle
    # ------------------------------------------------------------------

    def start_turn(self, model: str) -> int:
        """Open a new numbered turn and return its number."""
        self._turn_count += 1
        self._totals.total_turns += 1
        self._current = TurnMetrics(
            number=self._turn_count, model=model, started_at=self._clock()
        )
        self._code_runs = 0
        self._url_fetches = 0
        self._state = "starting"
        self._progress = None
        self.update_global_stats()
        return self._turn_count

    def log_request(self, content: str) -> None:
        self._write(self._turn_file("request"), content)

    def log_response(self, content: str, append: bool = False) -> None:
        self._write(self._turn_file("response"), content, append=append)

    def log_reasoning(self, content: str, append: bool = False) -> None:
        self._write(self._turn_file("response-reasoning"), content, append=append)

    def log_url_fetch_result(self, result: UrlFetchResult) -> int:
        """Write one fetched URL to its own file; returns its index within the turn."""
        self._url_fetches += 1
        index = self._url_fetches
        if self._current is not None:
            self._current.url_fetches.append(result.metrics)
        self._totals.url_fetches += 1

        body = (
            f"# URL Fetch Result {index}\n\n"
            f"**URL:** {result.url}\n"
            f"**Latency:** {result.metrics.latency_ms}ms\n"
            f"**Size:** {result.metrics.size_formatted}\n\n"
            "---\n\n"
            f"{result.content}"
        )
        self._write(self._turn_file(f"tool-fetch_url-{index}"), body)
        self.update_global_stats()
        return index

    def log_code_run(self, code: str, output: str, failed: bool = False) -> None:
        """Record one sandboxed code run; several runs in a turn share a file."""
        self._code_runs += 1
        heading = "Error" if failed else "Output"
        section = (
            f"## Run {self._code_runs}\n\n"
            f"### Code\n\n```python\n{code}\n```\n\n"
            f"### {heading}\n\n```\n{output}\n```\n\n"
        )
        if self._code_runs == 1:
            self._write(self._turn_file("tool-run_code"), f"# Code Execution\n\n{section}")
        else:
            self._write(self._turn_file("tool-run_code"), section, append=True)

    def update_metrics(self, usage: UsageRecord | None, duration_ms: int) -> None:
        """Attach the turn's usage and duration; adds the usage to the totals."""
        if self._current is None:
            return
        self._current.duration_ms = duration_ms
        if usage is not None:
            self._current.usage = usage
            self._totals.add_usage(usage)

    def log_turn_stats(self, status: TurnStatus = "complete", error: str | None = None) -> None:
        """Finalize the current turn: write ``{N}-stats.md`` and its summary row."""
        current = self._current
        if current is None:
            return

        self._write(self._turn_file("stats"), _render_turn_stats(current, status, error))

        usage = current.usage
        self._totals.turns.append(
            TurnSummary(
                number=current.number,
                status=status,
                model=current.model,
                started_at=current.started_at,
                duration_ms=current.duration_ms,
                input_tokens=usage.prompt_tokens if usage else 0,
                output_tokens=usage.completion_tokens if usage else 0,
                cached_tokens=usage.cached_tokens if usage else 0,
                thinking_tokens=usage.thinking_tokens if usage else 0,
                cost_usd=usage.cost_usd if usage else None,
                url_count=len(current.url_fetches),
                error=error,
            )
        )
        self._totals.finished_turns += 1
        self._current = None
        self._state = "complete" if status == "complete" else "error"
        self._progress = None
        self._observer.turn_recorded(
            turn=current.number, status=status, duration_ms=current.duration_ms
        )
        self.update_global_stats()

    def set_state(self, state: SessionState, progress: str | None = None) -> None:
        self._state = state
        self._progress = progress
        self.update_global_stats()

    # ------------------------------------------------------------------
    # Session-level documents
    # ------------------------------------------------------------------

    def update_global_stats(self) -> None:
        """Rewrite ``stats.md`` from the in-memory counters."""
        now = self._clock()
        totals = self._totals
        lines = [
            "# Session Statistics",
            f"**Started:** {format_timestamp(self._started_at)}",
            f"**Log Directory:** {self._session_dir}",
            "",
            "## Current Status",
            f"**State:** {STATE_EMOJI[self._state]} {STATE_LABEL[self._state]}",
            f"**Current Turn:** {format_turn_number(self._turn_count)}",
        ]
        if self._progress:
            lines.append(f"**Progress:** {self._progress}")
        lines += [
            f"**Elapsed Time:** {format_duration(_elapsed_ms(self._started_at, now))}",
            "",
            "## Session Totals",
            f"**Total Duration:** {format_duration(_elapsed_ms(self._started_at, now))}",
            f"**Total Turns:** {totals.total_turns} ({totals.finished_turns} finished"
            + (", 1 in progress)" if self._current is not None else ")"),
            f"**Total Tokens:** {totals.input_tokens + totals.output_tokens:,}",
            f"- Input: {totals.input_tokens:,}",
            f"- Output: {totals.output_tokens:,}",
        ]
        if totals.cached_tokens > 0:
            lines.append(f"- Cached: {totals.cached_tokens:,}")
        if totals.thinking_tokens > 0:
            lines.append(f"**Total Thinking Tokens:** {totals.thinking_tokens:,}")
        if totals.cost_usd > 0:
            lines.append(f"**Total Cost:** {format_cost(totals.cost_usd)}")
        lines += [f"**Total URL Fetches:** {totals.url_fetches}", ""]

        if totals.turns or self._current is not None:
            lines += [
                "## Interactions Summary",
                "| # | Status | Duration | Input | Output | Cached | URLs |",
                "|---|--------|----------|-------|--------|--------|------|",
            ]
            for turn in totals.turns:
                lines.append(
                    f"| {format_turn_number(turn.number)} "
                    f"| {TURN_STATUS_LABEL[turn.status]} "
                    f"| {format_duration(turn.duration_ms)} "
                    f"| {turn.input_tokens} | {turn.output_tokens} "
                    f"| {turn.cached_tokens} | {turn.url_count} |"
                )
            if self._current is not None:
                elapsed = _elapsed_ms(self._current.started_at, now)
                lines.append(
                    f"| {format_turn_number(self._current.number)} | 🔄 In Progress "
                    f"| {format_duration(elapsed)} | ... | ... | ... | ... |"
                )

        self._write(self._session_dir / "stats.md", "\n".join(lines) + "\n")

    def log_fatal_error(self, error: BaseException) -> None:
        """Record an unexpected error and write ``session.md`` so it is not lost."""
        self._fatal_error = "".join(traceback.format_exception(error)).rstrip()
        if self._current is not None:
            self.log_turn_stats(status="failed", error=f"{type(error).__name__}: {error}")
        self.create_session_log()

    def create_session_log(self) -> None:
        """Assemble ``session.md`` by reading the per-turn files back from disk."""
        now = self._clock()
        totals = self._totals
        response_ms = sum(turn.duration_ms for turn in totals.turns)
        parts = [
            "# Deep Research Session Log\n\n",
            f"**Session Started:** {format_timestamp(self._started_at)}\n",
            f"**Session Duration:** {format_duration(_elapsed_ms(self._started_at, now))}\n",
            f"**Total Response Time:** {format_duration(response_ms)}\n\n",
            "## Session Summary\n\n",
            f"- **Total Interactions:** {totals.total_turns}\n",
            f"- **Total Input Tokens:** {totals.input_tokens:,}\n",
            f"- **Total Output Tokens:** {totals.output_tokens:,}\n",
            f"- **Total Cached Tokens:** {totals.cached_tokens:,}\n",
            f"- **Total Thinking Tokens:** {totals.thinking_tokens:,}\n",
            f"- **Total Cost:** {format_cost(totals.cost_usd)}\n",
            f"- **Total URL Fetches:** {totals.url_fetches}\n\n",
        ]

        summaries = {turn.number: turn for turn in totals.turns}
        for number in range(1, self._turn_count + 1):
            parts.append(f"---\n\n## Interaction {number}\n\n")
            summary = summaries.get(number)
            if summary is not None:
                parts.append(_render_summary_metadata(summary))

            for title, suffix in (
                ("Request", "request"),
                ("Reasoning", "response-reasoning"),
                ("Response", "response"),
            ):
                content = self._read(self._turn_file(suffix, number=number))
                if content is not None:
                    parts.append(f"### {title}\n\n{content}\n\n")

            if summary is not None and summary.url_count > 0:
                parts.append("### URL Fetch Details\n\n")
                for index in range(1, summary.url_count + 1):
                    name = self._turn_file(f"tool-fetch_url-{index}", number=number).name
                    parts.append(f"- [{name}](./{name})\n")
                parts.append("\n")

        if self._fatal_error is not None:
            parts.append(f"---\n\n## Fatal Error\n\n```\n{self._fatal_error}\n```\n")

        path = self._session_dir / "session.md"
        if self._write(path, "".join(parts)):
            self._observer.session_log_written(path=str(path), turns=self._turn_count)

    # ------------------------------------------------------------------
    # File helpers
    # ------------------------------------------------------------------

    def _turn_file(self, suffix: str, number: int | None = None) -> Path:
        turn = self._turn_count if number is None else number
        return self._session_dir / f"{format_turn_number(turn)}-{suffix}.md"

    def _write(self, path: Path, content: str, append: bool = False) -> bool:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("a" if append else "w", encoding="utf-8", newline="") as f:
                f.write(content)
        except OSError as exc:
            self._observer.log_write_failed(path=str(path), reason=str(exc))
            return False
        return True

    def _read(self, path: Path) -> str | None:
        if not path.exists():
            return None
        try:
            with path.open(encoding="utf-8", newline="") as f:
                return f.read()
        except OSError as exc:
            self._observer.log_write_failed(path=str(path), reason=str(exc))
            return None


def _elapsed_ms(start: datetime, end: datetime) -> int:
    return max(0, int((end - start).total_seconds() * 1000))


def _render_turn_stats(current: TurnMetrics, status: TurnStatus, error: str | None) -> str:
    lines = [
        f"# Interaction {format_turn_number(current.number)} Statistics",
        "",
        f"**Timestamp:** {format_timestamp(current.started_at)}",
        f"**Model:** {current.model}",
        f"**Status:** {TURN_STATUS_LABEL[status]}",
        f"**Duration:** {format_duration(current.duration_ms)}",
    ]
    if error:
        lines.append(f"**Error:** {error}")
    lines.append("")

    usage = current.usage
    if usage is not None:
        input_line = f"- Input: {usage.prompt_tokens}"
        if usage.cached_tokens > 0:
            input_line += f" (cached: {usage.cached_tokens})"
        lines += ["## Tokens", input_line, f"- Output: {usage.completion_tokens}"]
        if usage.thinking_tokens > 0:
            lines.append(f"- Thinking: {usage.thinking_tokens}")
        lines.append(f"- Total: {usage.total_tokens}")
        if usage.cost_usd is not None:
            lines.append(f"- Cost: {format_cost(usage.cost_usd)}")
        lines.append("")

    lines.append("## URL Fetches")
    if current.url_fetches:
        for index, fetch in enumerate(current.url_fetches, start=1):
            lines += [
                f"{index}. **{fetch.url}**",
                f"   - Latency: {fetch.latency_ms}ms",
                f"   - Size: {fetch.size_formatted}",
            ]
    else:
        lines.append("None")
    return "\n".join(lines) + "\n"


def _render_summary_metadata(summary: TurnSummary) -> str:
    text = (
        f"**Timestamp:** {format_timestamp(summary.started_at)}\n"
        f"**Model:** {summary.model}\n"
        f"**Status:** {TURN_STATUS_LABEL[summary.status]}\n"
        f"**Duration:** {format_duration(summary.duration_ms)}\n"
        f"**Tokens:** Input: {summary.input_tokens}, Output: {summary.output_tokens}, "
        f"Cached: {summary.cached_tokens}\n"
    )
    if summary.url_count > 0:
        text += f"**URL Fetches:** {summary.url_count}\n"
    if summary.error:
        text += f"**Error:** {summary.error}\n"
    return text + "\n"
