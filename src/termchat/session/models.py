"""Data structures for the chat session."""

from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from ..store.models import ChatTurn, conversation_id_for, new_conversation_id


class SessionState(str, Enum):
    """Lifecycle of a chat session."""

    AWAITING_NAME = "awaiting_name"
    READY = "ready"
    AWAITING_INPUT = "awaiting_input"
    PROCESSING = "processing"
    CLOSING = "closing"


class Command(str, Enum):
    """Reserved words typed at the chat prompt."""

    QUIT = "quit"
    RELOAD = "reload"
    NEW = "new"


class LoopSignal(str, Enum):
    """What the read loop should do after handling a line."""

    CONTINUE = "continue"
    QUIT = "quit"


COMMAND_WORDS = {
    "quit": Command.QUIT,
    "exit": Command.QUIT,
    "history": Command.RELOAD,
    "load": Command.RELOAD,
    "new": Command.NEW,
    "reset": Command.NEW,
}


def parse_command(line: str) -> Command | None:
    """Match a line against the reserved words, ignoring case and padding."""
    return COMMAND_WORDS.get(line.strip().lower())


@dataclass
class SessionContext:
    """Mutable state of one session, owned by the session loop.

    Attributes:
        user_name: Display name typed at start-up
        conversation_id: Identifier turns are currently appended under
        mirror: Most recent turns, used to build inference context
    """

    user_name: str
    conversation_id: str
    mirror: deque[ChatTurn] = field(default_factory=deque)

    @classmethod
    def for_user(cls, user_name: str, mirror_size: int = 100) -> "SessionContext":
        return cls(
            user_name=user_name,
            conversation_id=conversation_id_for(user_name),
            mirror=deque(maxlen=mirror_size),
        )

    def replace_mirror(self, turns: list[ChatTurn]) -> None:
        self.mirror = deque(turns, maxlen=self.mirror.maxlen)

    def start_new_conversation(self, taken: Iterable[str] = ()) -> str:
        """Switch to a fresh identifier and forget the mirrored turns.

        The new identifier differs from the current one and from taken.
        """
        self.conversation_id = new_conversation_id(
            self.user_name, taken={self.conversation_id, *taken}
        )
        self.mirror = deque(maxlen=self.mirror.maxlen)
        return self.conversation_id
