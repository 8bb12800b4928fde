"""CLI entrypoint for deep-research — typer app streaming answers to the terminal."""

import asyncio
import os
import sys
from pathlib import Path

import structlog
import typer
from dotenv import load_dotenv
from rich.console import Console

from deep_research.cli.output.transcript_writer import StreamingTranscriptWriter
from deep_research.cli.render.live_renderer import LiveTurnRenderer
from deep_research.config.domain.settings import AppSettings
from deep_research.config.infrastructure.observer import StructlogConfigObserver
from deep_research.config.infrastructure.yaml_loader import YamlSettingsLoader
from deep_research.conversation.infrastructure.transcript import (
    read_input_file,
    write_output_file,
)
from deep_research.core.errors import DeepResearchError
from deep_research.session.application.session import ResearchSession
from deep_research.session.infrastructure.observer import StructlogSessionObserver
from deep_research.session.infrastructure.session_logger import SessionLogger
from deep_research.stream.domain.events import Complete
from deep_research.tools.application.dispatcher import ToolDispatcher
from deep_research.tools.infrastructure.httpx_fetcher import HttpxUrlFetcher
from deep_research.tools.infrastructure.modal_sandbox import ModalCodeRunner
from deep_research.tools.infrastructure.observer import StructlogToolObserver
from deep_research.turn.application.orchestrator import TurnOrchestrator
from deep_research.turn.infrastructure.litellm_client import LiteLLMResponsesClient
from deep_research.turn.infrastructure.observer import StructlogTurnObserver

app = typer.Typer(add_completion=False)

_EXIT_WORDS = frozenset({"exit", "quit"})
_LOG_LEVELS = {"debug": 10, "info": 20, "warning": 30, "error": 40}


def _configure_structlog(log_format: str, log_level: str) -> None:
    """Configure structlog to write to stderr in the requested format."""
    if log_format == "console":
        renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer()
    elif log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        typer.echo(
            f"Invalid log format: {log_format!r}. Must be 'console' or 'json'.",
            err=True,
        )
        raise typer.Exit(code=1)

    level = _LOG_LEVELS.get(log_level.lower())
    if level is None:
        typer.echo(
            f"Invalid log level: {log_level!r}. Must be one of "
            f"{', '.join(_LOG_LEVELS)}.",
            err=True,
        )
        raise typer.Exit(code=1)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def _build_session(settings: AppSettings, api_key: str) -> ResearchSession:
    """Wire the concrete adapters into a ResearchSession."""
    tool_observer = StructlogToolObserver()
    dispatcher = ToolDispatcher(
        url_fetcher=HttpxUrlFetcher(
            proxy_base_url=settings.fetch_proxy_url, observer=tool_observer
        ),
        code_runner=ModalCodeRunner(
            app_name=settings.sandbox_app_name,
            image=settings.sandbox_image,
            observer=tool_observer,
        ),
    )
    orchestrator = TurnOrchestrator(
        model_client=LiteLLMResponsesClient(api_key=api_key),
        dispatcher=dispatcher,
        observer=StructlogTurnObserver(),
        max_continuations=settings.max_continuations,
    )
    logger = SessionLogger(root=settings.log_root, observer=StructlogSessionObserver())
    return ResearchSession(orchestrator=orchestrator, logger=logger, settings=settings)


async def _run_turn(
    session: ResearchSession,
    user_input: str,
    console: Console,
    transcript: StreamingTranscriptWriter | None = None,
) -> Complete | None:
    """Stream one turn to the terminal; returns the Complete event on success."""
    with LiveTurnRenderer(console=console) as renderer:
        async for event in session.submit(user_input):
            renderer.handle(event)
            if transcript is not None:
                transcript.on_event(event)
    return renderer.view.complete


async def _run_single(
    session: ResearchSession,
    request: str,
    console: Console,
    output_file: Path | None,
) -> bool:
    complete = await _run_turn(session=session, user_input=request, console=console)
    if complete is None:
        return False
    if output_file is not None:
        write_output_file(path=output_file, content=complete.content)
        console.print(f"[green]✅ Output saved to {output_file}[/green]")
    return True


async def _run_interactive(
    session: ResearchSession,
    console: Console,
    output_file: Path | None,
) -> None:
    transcript = (
        StreamingTranscriptWriter(path=output_file) if output_file is not None else None
    )
    if transcript is not None:
        transcript.start(history=session.history)

    console.print("[dim]Type your request, or 'exit' to quit.[/dim]")
    while True:
        try:
            user_input = await asyncio.to_thread(console.input, "[bold cyan]> [/bold cyan]")
        except EOFError:
            return
        user_input = user_input.strip()
        if not user_input:
            continue
        if user_input.lower() in _EXIT_WORDS:
            return

        if transcript is not None:
            transcript.begin_turn(history=session.history, user_input=user_input)
        complete = await _run_turn(
            session=session, user_input=user_input, console=console, transcript=transcript
        )
        if transcript is not None:
            transcript.finish_turn(history=session.history, completed=complete is not None)


@app.command()
def main(
    model: str | None = typer.Option(None, "--model", "-m", help="Model to use"),
    reasoning_effort: str | None = typer.Option(
        None,
        "--reasoning-effort",
        "-r",
        help="Reasoning effort: minimal, low, medium or high",
    ),
    request: str | None = typer.Option(None, "--request", help="Direct request text"),
    request_file: Path | None = typer.Option(
        None, "--request-file", help="Path to a file containing the request"
    ),
    output_file: Path | None = typer.Option(
        None, "--output-file", "-o", help="Path to save the answer or transcript"
    ),
    tools: list[str] | None = typer.Option(
        None,
        "--tools",
        "-t",
        help="Tools to enable: web_search, run_code, fetch_urls or all (repeatable)",
    ),
    config_path: Path | None = typer.Option(
        None, "--config", help="Path to a settings YAML file"
    ),
    max_continuations: int | None = typer.Option(
        None, "--max-continuations", help="Maximum tool continuations per turn"
    ),
    log_dir: Path | None = typer.Option(
        None, "--log-dir", help="Directory in which the session log folder is created"
    ),
    log_format: str = typer.Option(
        "console", "--log-format", help="Log format: 'console' or 'json'"
    ),
    log_level: str = typer.Option(
        "warning", "--log-level", help="Log level: debug, info, warning or error"
    ),
) -> None:
    """Ask a reasoning model a question and stream its research to the terminal."""
    _configure_structlog(log_format=log_format, log_level=log_level)
    load_dotenv()
    console = Console()

    api_key = os.environ.get("OPENAI_API_KEY")
    if not api_key:
        typer.echo("❌ Error: OPENAI_API_KEY not found in environment variables", err=True)
        typer.echo("Please add OPENAI_API_KEY to your environment or .env file", err=True)
        raise typer.Exit(code=1)

    if request is not None and request_file is not None:
        typer.echo("--request and --request-file are mutually exclusive.", err=True)
        raise typer.Exit(code=1)

    loader = YamlSettingsLoader(observer=StructlogConfigObserver())
    try:
        settings = loader.load(
            path=config_path,
            overrides={
                "model": model,
                "reasoning_effort": reasoning_effort,
                "tools": tools or None,
                "max_continuations": max_continuations,
                "log_root": log_dir,
            },
        )
    except DeepResearchError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc

    session = _build_session(settings=settings, api_key=api_key)
    try:
        if request_file is not None:
            request = read_input_file(path=request_file)

        if request is not None:
            succeeded = asyncio.run(
                _run_single(
                    session=session,
                    request=request,
                    console=console,
                    output_file=output_file,
                )
            )
            session.close()
            if not succeeded:
                sys.exit(1)
        else:
            asyncio.run(
                _run_interactive(session=session, console=console, output_file=output_file)
            )
            session.close()

    except KeyboardInterrupt:
        typer.echo("Interrupted.", err=True)
        session.close()
        sys.exit(1)
    except DeepResearchError as exc:
        typer.echo(str(exc), err=True)
        session.record_fatal(exc)
        sys.exit(1)
    except Exception as exc:  # noqa: BLE001
        typer.echo(f"Unexpected error: {exc}\nPlease report this bug.", err=True)
        session.record_fatal(exc)
        sys.exit(1)


if __name__ == "__main__":
    app()
