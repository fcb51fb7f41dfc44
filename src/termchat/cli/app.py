"""Main CLI application using Typer."""
import asyncio
import logging
import signal
from contextlib import contextmanager
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from ..config import ChatSettings, load_settings
from ..errors import StoreUnavailable
from ..render import render_text
from ..session import ChatSession
from ..store import Role, conversation_id_for
from .providers import get_client, get_store

# Load environment variables
load_dotenv()

# Create Typer app
app = typer.Typer(
    name="termchat",
    help="Terminal chat client for local LLM servers with persistent conversations",
    no_args_is_help=True,
    add_completion=True,
)

# Console for rich output
console = Console()

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    """Send log records through rich on stderr."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def install_resize_notice(con: Console) -> None:
    """Report the new width whenever the terminal is resized."""
    if not hasattr(signal, "SIGWINCH"):
        return

    def _on_resize(signum, frame):
        logger.info("Terminal resized to %d columns", con.width)
        con.print(f"\n[dim]Terminal resized to {con.width} columns[/dim]")

    signal.signal(signal.SIGWINCH, _on_resize)


@contextmanager
def interrupt_on_sigint():
    """Raise KeyboardInterrupt on SIGINT, even while blocked reading input.

    asyncio.run leaves a non-default SIGINT handler in place.
    """
    def _on_interrupt(signum, frame):
        raise KeyboardInterrupt

    previous = signal.signal(signal.SIGINT, _on_interrupt)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


@app.command()
def chat(
    name: str | None = typer.Option(
        None,
        "--name",
        "-n",
        help="Display name (prompted for when omitted)"
    ),
    store: str | None = typer.Option(
        None,
        "--store",
        "-s",
        help="Conversation store: 'sqlite' (persistent) or 'memory' (session-only)"
    ),
    store_path: Path | None = typer.Option(
        None,
        "--store-path",
        help="Path for the SQLite database (only with --store sqlite)"
    ),
    url: str | None = typer.Option(
        None,
        "--url",
        "-u",
        help="Chat completions URL of the inference server"
    ),
    model: str | None = typer.Option(
        None,
        "--model",
        "-m",
        help="Model to request (defaults to the server's loaded model)"
    ),
    timeout: float | None = typer.Option(
        None,
        "--timeout",
        "-t",
        help="Request timeout in seconds (default: wait forever)"
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Log level: debug, info, warning, or error"
    ),
):
    """Start an interactive chat session.

    Type 'history' or 'load' to reload the conversation, 'new' or 'reset'
    to start a fresh one, and 'quit' or 'exit' to leave.
    """
    settings = load_settings(
        store_backend=store,
        store_path=store_path,
        inference_url=url,
        model=model,
        timeout=timeout,
        log_level=log_level,
    )
    configure_logging(settings.log_level)

    async def _chat():
        conversation_store = get_store(settings)

        try:
            console.print(f"[cyan]Connecting to {conversation_store.backend_type} store...[/cyan]")
            await conversation_store.connect()
            console.print("[green]Store connected[/green]")
        except StoreUnavailable as e:
            console.print(f"[red]Error connecting to store: {escape(str(e))}[/red]")
            raise typer.Exit(code=1)

        client = get_client(settings)
        console.print(f"[cyan]Chatting with {settings.assistant_name} at {settings.inference_url}[/cyan]")
        console.print("[dim]Commands: history/load, new/reset, quit/exit[/dim]")

        session = ChatSession(
            conversation_store,
            client,
            console=console,
            assistant_name=settings.assistant_name,
            mirror_size=settings.mirror_size,
            server_url=settings.inference_url,
        )
        await session.run(user_name=name)

    install_resize_notice(console)
    try:
        with interrupt_on_sigint():
            asyncio.run(_chat())
    except KeyboardInterrupt:
        console.print("\n[yellow]Received interrupt. Shutting down...[/yellow]")
        raise typer.Exit(code=0)


@app.command()
def health(
    url: str | None = typer.Option(
        None,
        "--url",
        "-u",
        help="Chat completions URL of the inference server"
    ),
):
    """Check the conversation store and the inference server."""
    settings = load_settings(inference_url=url)
    configure_logging(settings.log_level)

    async def _health(settings: ChatSettings):
        all_healthy = True

        conversation_store = get_store(settings)
        try:
            await conversation_store.connect()
            console.print(f"[green]+[/green] Store ({conversation_store.backend_type}): OK")
        except StoreUnavailable as e:
            console.print(f"[red]x[/red] Store ({conversation_store.backend_type}): FAILED ({escape(str(e))})")
            all_healthy = False
        finally:
            await conversation_store.disconnect()

        client = get_client(settings)
        llm = client.llm
        try:
            if await llm.health_check():
                console.print(f"[green]+[/green] Inference server: OK ({settings.inference_url})")
            else:
                console.print(f"[red]x[/red] Inference server: NOT REACHABLE ({settings.inference_url})")
                all_healthy = False
        finally:
            await client.close()

        if not all_healthy:
            raise typer.Exit(code=1)

    asyncio.run(_health(settings))


@app.command()
def history(
    name: str = typer.Argument(..., help="Display name whose conversation to show"),
    limit: int = typer.Option(
        20,
        "--limit",
        "-n",
        help="Show only the most recent turns"
    ),
    store_path: Path | None = typer.Option(
        None,
        "--store-path",
        help="Path for the SQLite database"
    ),
):
    """Print the stored conversation for a display name."""
    settings = load_settings(store_path=store_path)
    configure_logging(settings.log_level)

    async def _history():
        conversation_store = get_store(settings)
        try:
            await conversation_store.connect()
        except StoreUnavailable as e:
            console.print(f"[red]Error: {escape(str(e))}[/red]")
            raise typer.Exit(code=1)

        try:
            base_id = conversation_id_for(name)
            conversations = await conversation_store.list_conversations(prefix=base_id)
            turns = await conversation_store.load_history(base_id)

            if conversations:
                table = Table(show_header=False, box=None)
                table.add_column("Conversation", style="bold cyan")
                for conversation_id in conversations:
                    table.add_row(conversation_id)
                console.print(table)

            if not turns:
                console.print(f"[yellow]No messages stored for {base_id}[/yellow]")
                return

            for turn in turns[-limit:]:
                style = "yellow" if turn.role == Role.USER else "magenta"
                stamp = turn.timestamp.strftime("%Y-%m-%d %H:%M:%S")
                console.print(f"\n[{style}]{escape(turn.sender)}[/{style}] [dim]{stamp}[/dim]")
                console.print(render_text(turn.text, console.width))
        finally:
            await conversation_store.disconnect()

    asyncio.run(_history())


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
