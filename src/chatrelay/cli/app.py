"""Main CLI application using Typer."""
import asyncio
import contextlib
import signal
from pathlib import Path

import httpx
import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..client import ChatSession
from ..events import OPEN_MOVIE_PANEL, EventBus
from ..log import configure_logging
from ..movies import DIRECTOR, MoviePanel
from ..transcript import Message, TranscriptStore
from .providers import get_llm, get_settings, get_storage

# Load environment variables
load_dotenv()

app = typer.Typer(
    name="chatrelay",
    help="Chat with an LLM through a streaming relay backend",
    no_args_is_help=True,
    add_completion=True,
)

console = Console()

EXIT_WORDS = ("exit", "quit", "q")


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", "-h", help="Bind address (default: CHAT_HOST)"),
    port: int | None = typer.Option(None, "--port", "-p", help="Port (default: CHAT_PORT)"),
    mode: str | None = typer.Option(
        None,
        "--mode",
        "-m",
        help="Reply mode: 'stream' (SSE) or 'json' (default: CHAT_RESPONSE_MODE)"
    ),
):
    """Run the backend serving POST /api/chat."""
    import uvicorn

    from ..server import create_app

    settings = get_settings()
    if mode is not None:
        if mode not in ("stream", "json"):
            console.print(f"[red]Error: unknown mode '{mode}' (use 'stream' or 'json')[/red]")
            raise typer.Exit(code=1)
        settings = settings.model_copy(update={"response_mode": mode})
    configure_logging(settings.log_level, console=console)

    llm = get_llm(settings, console)
    api = create_app(settings, llm)
    console.print(
        f"[dim]Serving {settings.provider} ({settings.resolved_model}) "
        f"in {settings.response_mode} mode[/dim]"
    )
    uvicorn.run(
        api,
        host=host or settings.host,
        port=port or settings.port,
        log_level=settings.log_level.lower(),
    )


@app.command(name="tui")
def tui_command(
    server: str | None = typer.Option(None, "--server", "-s", help="Backend URL (default: CHAT_SERVER_URL)"),
    history_path: Path | None = typer.Option(None, "--history", help="Directory for the persisted transcript"),
    ephemeral: bool = typer.Option(False, "--ephemeral", "-e", help="Do not persist the transcript"),
):
    """Launch the interactive TUI chat client."""
    from ..ui import run_textual_tui

    settings = get_settings()
    storage = get_storage(settings, history_path, persist=not ephemeral)

    try:
        asyncio.run(run_textual_tui(server or settings.server_url, storage))
    except KeyboardInterrupt:
        pass


def _print_movies(panel: MoviePanel) -> None:
    table = Table(title=f"Director: {DIRECTOR}", show_header=True)
    table.add_column("Year", style="cyan", justify="right")
    table.add_column("Title", style="bold")
    for movie in panel.movies:
        table.add_row(str(movie.year or ""), movie.title)
    console.print(table)


@app.command()
def chat(
    server: str | None = typer.Option(None, "--server", "-s", help="Backend URL (default: CHAT_SERVER_URL)"),
    history_path: Path | None = typer.Option(None, "--history", help="Directory for the persisted transcript"),
    ephemeral: bool = typer.Option(False, "--ephemeral", "-e", help="Do not persist the transcript"),
):
    """Line-mode chat. Ctrl+C stops a streaming reply; /new starts over."""
    settings = get_settings()
    configure_logging("WARNING", console=console)
    storage = get_storage(settings, history_path, persist=not ephemeral)

    async def _chat():
        bus = EventBus()
        panel = MoviePanel()
        panel.bind(bus)
        bus.subscribe(OPEN_MOVIE_PANEL, lambda **_: _print_movies(panel))

        timeout = httpx.Timeout(60.0, connect=10.0)
        async with httpx.AsyncClient(base_url=server or settings.server_url, timeout=timeout) as client:
            session = ChatSession(client, storage=storage, bus=bus)
            printed = 0

            def _echo(messages: list[Message]) -> None:
                nonlocal printed
                open_message = session.transcript.open_message
                if open_message is None:
                    return
                console.print(open_message.content[printed:], end="", markup=False, highlight=False)
                printed = len(open_message.content)

            session.transcript.subscribe(_echo)

            if len(session.transcript):
                console.print(f"[dim]Restored {len(session.transcript)} messages. /new to start over.[/dim]")
            console.print(Panel("Type a message. /new clears the chat, /exit quits.", title="chatrelay"))

            loop = asyncio.get_running_loop()
            while True:
                try:
                    user_input = await asyncio.to_thread(console.input, "[bold yellow]You:[/bold yellow] ")
                except (KeyboardInterrupt, EOFError):
                    console.print("\n[dim]Goodbye![/dim]")
                    break

                text = user_input.strip()
                if not text:
                    continue
                if text.lower().lstrip("/") in EXIT_WORDS:
                    console.print("[dim]Goodbye![/dim]")
                    break
                if text == "/new":
                    session.new_chat()
                    console.print("[dim]Started a new chat.[/dim]")
                    continue

                printed = 0
                console.print("[bold green]Assistant:[/bold green] ", end="")
                with contextlib.suppress(NotImplementedError):
                    loop.add_signal_handler(signal.SIGINT, session.stop)
                try:
                    await session.send(text)
                finally:
                    with contextlib.suppress(NotImplementedError):
                        loop.remove_signal_handler(signal.SIGINT)

                last = session.transcript.last
                if last is not None and last.role == "assistant" and printed == 0:
                    # Whole (non-streamed) reply
                    console.print(last.content, markup=False, highlight=False)
                else:
                    console.print()

                if session.error:
                    console.print(f"[red]Error: {session.error}[/red]")
                    if session.error_hint:
                        console.print(f"[dim]{session.error_hint}[/dim]")

    asyncio.run(_chat())


@app.command()
def history(
    history_path: Path | None = typer.Option(None, "--history", help="Directory for the persisted transcript"),
):
    """Show the persisted transcript."""
    settings = get_settings()
    store = TranscriptStore(get_storage(settings, history_path))
    messages = store.load()

    if not messages:
        console.print("[dim]No saved conversation.[/dim]")
        return

    table = Table(title="Saved conversation", show_header=True, show_lines=True)
    table.add_column("#", style="dim", justify="right")
    table.add_column("Role", style="cyan")
    table.add_column("Content")
    for i, message in enumerate(messages, 1):
        table.add_row(str(i), message.role, message.content)
    console.print(table)


@app.command()
def clear(
    history_path: Path | None = typer.Option(None, "--history", help="Directory for the persisted transcript"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete the persisted transcript."""
    if not yes and not typer.confirm("Delete the saved conversation?"):
        console.print("[dim]Aborted.[/dim]")
        return

    settings = get_settings()
    TranscriptStore(get_storage(settings, history_path)).clear()
    console.print("[green]Conversation cleared.[/green]")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
