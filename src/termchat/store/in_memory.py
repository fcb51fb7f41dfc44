"""In-memory conversation store backend.

Simple dict-based storage for session-only chats.
Data is lost when the application exits.
"""

from datetime import datetime
from uuid import uuid4

from .base import ConversationStore
from .models import ChatTurn


class InMemoryConversationStore(ConversationStore):
    """In-memory conversation store (session-only).

    Suitable for throwaway sessions or testing.
    """

    def __init__(self):
        self._turns: dict[str, list[tuple[str, ChatTurn]]] = {}

    async def connect(self) -> None:
        """Open store (no-op for in-memory)."""
        pass

    async def disconnect(self) -> None:
        """Close store (no-op for in-memory)."""
        pass

    async def _insert(self, turn: ChatTurn) -> str:
        turn_id = uuid4().hex
        self._turns.setdefault(turn.conversation_id, []).append((turn_id, turn))
        return turn_id

    async def _fetch(self, conversation_id: str) -> list[ChatTurn]:
        rows = self._turns.get(conversation_id, [])
        return sorted((turn for _, turn in rows), key=lambda t: t.timestamp)

    async def _last_timestamp(self, conversation_id: str) -> datetime | None:
        rows = self._turns.get(conversation_id)
        if not rows:
            return None
        return max(turn.timestamp for _, turn in rows)

    async def list_conversations(self, prefix: str = "") -> list[str]:
        return [cid for cid in self._turns if cid.startswith(prefix)]

    @property
    def backend_type(self) -> str:
        return "memory"
