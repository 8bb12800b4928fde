"""LiveTurnRenderer — renders one streaming turn with Rich Live."""

from __future__ import annotations

from rich.console import Console, Group, RenderableType
from rich.live import Live
from rich.markdown import Markdown
from rich.panel import Panel
from rich.spinner import Spinner
from rich.text import Text

from deep_research.stream.domain.events import (
    Complete,
    Created,
    ErrorEvent,
    InProgress,
    OutputDelta,
    StreamEvent,
    ThinkingDelta,
    ToolContinuation,
    ToolUse,
)

# Only the tail of the reasoning is kept on screen.
_THINKING_TAIL_CHARS = 1200

_TOOL_STYLES: dict[str, tuple[str, str]] = {
    "processing": ("…", "yellow"),
    "executing": ("⚙", "cyan"),
    "completed": ("✔", "green"),
    "error": ("✘", "red"),
}


class TurnView:
    """Accumulates the visible state of one turn and renders it.

    Kept separate from the Live wrapper so rendering can be exercised without
    a terminal.
    """

    def __init__(self) -> None:
        self.waiting = False
        self.thinking = ""
        self.thinking_active = False
        self.answer = ""
        self.tool_lines: list[tuple[str, str, str]] = []
        self.error: ErrorEvent | None = None
        self.complete: Complete | None = None

    def apply(self, event: StreamEvent) -> None:
        if isinstance(event, (Created, InProgress)):
            self.waiting = True
        elif isinstance(event, ThinkingDelta):
            self.waiting = False
            self.thinking_active = True
            self.thinking += event.text
        elif isinstance(event, OutputDelta):
            self.waiting = False
            self.thinking_active = False
            self.answer += event.content if event.content is not None else event.text
        elif isinstance(event, ToolUse):
            if event.delta_args is not None and event.content is None:
                return
            self.waiting = False
            line = (event.tool_name, event.status, event.content or event.status)
            # A tool's progress updates its own line until it finishes.
            if (
                self.tool_lines
                and self.tool_lines[-1][0] == event.tool_name
                and self.tool_lines[-1][1] in ("processing", "executing")
            ):
                self.tool_lines[-1] = line
            else:
                self.tool_lines.append(line)
        elif isinstance(event, ToolContinuation):
            # The answer so far belongs to the previous sub-turn; keep it and
            # separate the continuation from it.
            if self.answer and not self.answer.endswith("\n\n"):
                self.answer += "\n\n"
            self.thinking = ""
        elif isinstance(event, ErrorEvent):
            self.waiting = False
            self.error = event
        elif isinstance(event, Complete):
            self.waiting = False
            self.thinking_active = False
            self.complete = event

    def render(self) -> RenderableType:
        parts: list[RenderableType] = []
        if self.waiting:
            parts.append(Spinner("dots", text=Text("Waiting for the model...", style="dim")))
        if self.thinking_active and self.thinking:
            parts.append(
                Panel(
                    Text(self.thinking[-_THINKING_TAIL_CHARS:], style="dim italic"),
                    title="thinking",
                    border_style="dim",
                )
            )
        for tool_name, status, content in self.tool_lines:
            marker, style = _TOOL_STYLES[status]
            parts.append(Text.assemble((f"{marker} ", style), (f"{tool_name}: ", "bold"), content))
        if self.answer:
            parts.append(Markdown(self.answer))
        if self.error is not None:
            body = self.error.message
            if self.error.cause:
                body += f"\n\n{self.error.cause}"
            parts.append(Panel(Text(body, style="red"), title="error", border_style="red"))
        if self.complete is not None and self.complete.usage is not None:
            usage = self.complete.usage
            summary = f"{usage.prompt_tokens} in · {usage.completion_tokens} out"
            if usage.thinking_tokens:
                summary += f" · {usage.thinking_tokens} thinking"
            if usage.cost_usd is not None:
                summary += f" · ${usage.cost_usd:.4f}"
            parts.append(Text(summary, style="dim"))
        return Group(*parts)


class LiveTurnRenderer:
    """Context manager that redraws a TurnView on every event.

    Pass ``disabled=True`` to suppress all terminal output (useful in tests).
    """

    def __init__(self, console: Console | None = None, disabled: bool = False) -> None:
        self._console = console or Console()
        self._disabled = disabled
        self._live: Live | None = None
        self.view = TurnView()

    def __enter__(self) -> LiveTurnRenderer:
        if not self._disabled:
            self._live = Live(
                self.view.render(),
                console=self._console,
                refresh_per_second=12,
                vertical_overflow="visible",
            )
            self._live.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        if self._live is not None:
            self._live.update(self.view.render(), refresh=True)
            self._live.stop()
            self._live = None

    def handle(self, event: StreamEvent) -> None:
        self.view.apply(event)
        if self._live is not None:
            self._live.update(self.view.render())
