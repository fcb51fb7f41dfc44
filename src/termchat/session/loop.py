"""Interactive chat session.

Drives the read loop: prompts for input, dispatches reserved commands,
and runs each chat message through store, inference and renderer. A
failed turn is reported and never ends the session.
"""

import logging
from collections.abc import Callable

from rich.console import Console
from rich.markup import escape
from rich.text import Text

from ..errors import (
    ChatError,
    InferenceTransportError,
    MalformedResponse,
    ParseError,
)
from ..llm import InferenceClient
from ..render import render_text
from ..store import ChatTurn, ConversationStore, Role, conversation_id_for
from .models import Command, LoopSignal, SessionContext, SessionState, parse_command

logger = logging.getLogger(__name__)

RULE_WIDTH = 50
NAME_PROMPT = "[yellow]Enter your name:[/yellow] "
INPUT_PROMPT = "\n[blue]You:[/blue] "


class ChatSession:
    """One user's chat session against a store and an inference server.

    Example:
        session = ChatSession(store, client, console)
        await session.run()
    """

    def __init__(
        self,
        store: ConversationStore,
        client: InferenceClient,
        console: Console | None = None,
        assistant_name: str = "Assistant",
        mirror_size: int = 100,
        read_line: Callable[[str], str] | None = None,
        server_url: str | None = None,
    ):
        self._store = store
        self._client = client
        self._console = console or Console()
        self._assistant_name = assistant_name
        self._mirror_size = mirror_size
        self._read_line = read_line or self._console.input
        self._server_url = server_url
        self._state = SessionState.AWAITING_NAME
        self._context: SessionContext | None = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def context(self) -> SessionContext | None:
        return self._context

    def ask_name(self) -> str:
        """Prompt until a non-empty name is entered.

        Raises:
            EOFError: If input closes before a name is given
        """
        while True:
            name = self._read_line(NAME_PROMPT).strip()
            if name:
                return name

    async def start(self, user_name: str) -> SessionContext:
        """Open the user's conversation and mirror its stored history."""
        self._context = SessionContext.for_user(user_name, self._mirror_size)
        self._console.print(f"\n[green]Hello, {escape(user_name)}![/green]")
        await self.reload_history()
        self._state = SessionState.READY
        return self._context

    async def reload_history(self) -> int:
        """Replace the mirror with the stored history of the current conversation."""
        ctx = self._require_context()
        history = await self._store.load_history(ctx.conversation_id)
        ctx.replace_mirror(history)
        self._console.print(f"[cyan]Loaded {len(history)} previous messages[/cyan]")
        return len(history)

    async def handle_line(self, line: str) -> LoopSignal:
        """Handle one line of user input."""
        ctx = self._require_context()
        command = parse_command(line)

        if command == Command.QUIT:
            self._console.print("\n[green]Goodbye![/green]")
            return LoopSignal.QUIT

        if command == Command.RELOAD:
            await self.reload_history()
            self._console.print("[green]Conversation history loaded![/green]")
            return LoopSignal.CONTINUE

        if command == Command.NEW:
            conversation_id = ctx.start_new_conversation(
                taken=await self._known_conversations(ctx.user_name)
            )
            logger.info("Started conversation %s", conversation_id)
            self._console.print("[green]Started new conversation![/green]")
            return LoopSignal.CONTINUE

        if not line.strip():
            return LoopSignal.CONTINUE

        self._state = SessionState.PROCESSING
        try:
            await self.send_message(line)
        except InferenceTransportError as e:
            self._report_error(e)
            if e.connection_refused:
                self._print_server_help()
        except (MalformedResponse, ParseError) as e:
            self._report_error(e)
            self._console.print("[dim]Raw response:[/dim]")
            self._console.print(Text(e.raw_body, style="dim"))
        except ChatError as e:
            self._report_error(e)
        except Exception as e:
            logger.exception("Unexpected failure while handling a message")
            self._report_error(e)
        finally:
            self._state = SessionState.AWAITING_INPUT

        return LoopSignal.CONTINUE

    async def send_message(self, text: str) -> str:
        """Run one chat message through store, inference and display.

        The user turn is stored and mirrored before the request; the
        assistant turn only once a reply has been parsed.
        """
        ctx = self._require_context()
        prior = list(ctx.mirror)

        user_turn = ChatTurn(
            conversation_id=ctx.conversation_id,
            role=Role.USER,
            text=text,
            sender=ctx.user_name,
        )
        user_id = await self._store.append(user_turn)
        ctx.mirror.append(user_turn)
        self._console.print(f"[dim]message ID {user_id}[/dim]")

        self._console.print(
            f"[dim]Sending {min(len(prior), self._client.history_limit) + 2} messages, "
            f"{len(prior)} in conversation history[/dim]"
        )
        self._console.print(f"[yellow]Waiting for {escape(self._assistant_name)} response...[/yellow]")
        reply = await self._client.ask(ctx.user_name, prior, text)

        assistant_turn = ChatTurn(
            conversation_id=ctx.conversation_id,
            role=Role.ASSISTANT,
            text=reply,
            sender=self._assistant_name,
        )
        reply_id = await self._store.append(assistant_turn)
        ctx.mirror.append(assistant_turn)

        self.display_reply(reply)
        self._console.print(f"[dim]AI response ID {reply_id}[/dim]")
        return reply

    def display_reply(self, reply: str) -> None:
        self._console.print(f"\n[magenta]{escape(self._assistant_name)}:[/magenta]")
        self._console.print("─" * RULE_WIDTH, style="bright_black")
        self._console.print(render_text(reply, self._console.width))
        self._console.print("─" * RULE_WIDTH, style="bright_black")

    async def run(self, user_name: str | None = None) -> None:
        """Run the session until quit or end of input, then release resources."""
        try:
            if user_name is None:
                self._state = SessionState.AWAITING_NAME
                try:
                    user_name = self.ask_name()
                except EOFError:
                    return

            await self.start(user_name)

            while True:
                self._state = SessionState.AWAITING_INPUT
                try:
                    line = self._read_line(INPUT_PROMPT)
                except EOFError:
                    self._console.print("\n[dim]Input closed.[/dim]")
                    break

                if await self.handle_line(line) == LoopSignal.QUIT:
                    break
        finally:
            self._state = SessionState.CLOSING
            await self.close()

    async def close(self) -> None:
        """Release the store connection and the HTTP client."""
        await self._client.close()
        await self._store.disconnect()
        self._console.print("[cyan]Store connection closed[/cyan]")

    async def _known_conversations(self, user_name: str) -> list[str]:
        try:
            return await self._store.list_conversations(prefix=conversation_id_for(user_name))
        except Exception as e:
            logger.warning("Could not list conversations for %s: %s", user_name, e)
            return []

    def _require_context(self) -> SessionContext:
        if self._context is None:
            raise RuntimeError("Session has not been started")
        return self._context

    def _report_error(self, error: Exception) -> None:
        self._console.print(f"[red]Error: {escape(str(error))}[/red]")

    def _print_server_help(self) -> None:
        where = f" at {escape(self._server_url)}" if self._server_url else ""
        self._console.print(f"[red]Cannot connect to the inference server{where}. Make sure:[/red]")
        self._console.print("[yellow]   1. LM Studio (or another OpenAI-compatible server) is running[/yellow]")
        self._console.print(f"[yellow]   2. The {escape(self._assistant_name)} model is loaded[/yellow]")
        self._console.print("[yellow]   3. The local server is enabled on the configured port[/yellow]")
        self._console.print("[yellow]   4. In LM Studio, check Settings > Local Server[/yellow]")
