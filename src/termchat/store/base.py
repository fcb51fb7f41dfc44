"""Abstract base class for conversation store backends.

This module defines the interface for conversation turn storage.
The abstraction hides:
- Storage format (table, dict, etc.)
- Persistence mechanism (file, in-memory)
- Connection management
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta

from ..errors import StoreUnavailable
from .models import ChatTurn, utcnow

logger = logging.getLogger(__name__)

_TICK = timedelta(microseconds=1)


class ConversationStore(ABC):
    """Abstract append-only conversation store.

    Backends implement the raw reads and writes; this class owns the
    timestamp assignment and the degrade-to-empty read policy so every
    backend behaves the same.
    """

    @abstractmethod
    async def connect(self) -> None:
        """Open the backend.

        Raises:
            StoreUnavailable: If the backend cannot be opened
        """

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the backend gracefully."""

    @abstractmethod
    async def _insert(self, turn: ChatTurn) -> str:
        """Write one turn atomically and return its id."""

    @abstractmethod
    async def _fetch(self, conversation_id: str) -> list[ChatTurn]:
        """Read all turns for a conversation in ascending timestamp order."""

    @abstractmethod
    async def _last_timestamp(self, conversation_id: str) -> datetime | None:
        """Return the newest timestamp stored for a conversation."""

    @abstractmethod
    async def list_conversations(self, prefix: str = "") -> list[str]:
        """List conversation ids starting with prefix, oldest first."""

    @property
    @abstractmethod
    def backend_type(self) -> str:
        """Get the backend type identifier."""

    async def append(self, turn: ChatTurn) -> str:
        """Persist one turn and return an opaque id.

        The stored timestamp is the current instant, bumped past the
        conversation's previous turn when the clock has not advanced.

        Raises:
            StoreUnavailable: If the write fails (nothing is persisted)
        """
        try:
            previous = await self._last_timestamp(turn.conversation_id)
            timestamp = utcnow()
            if previous is not None and timestamp <= previous:
                timestamp = previous + _TICK
            stamped = turn.model_copy(update={"timestamp": timestamp})
            turn_id = await self._insert(stamped)
        except StoreUnavailable:
            raise
        except Exception as e:
            raise StoreUnavailable(str(e)) from e

        logger.debug(
            "Stored turn %s (role=%s, conv=%s)",
            turn_id, turn.role.value, turn.conversation_id,
        )
        return turn_id

    async def load_history(self, conversation_id: str) -> list[ChatTurn]:
        """Return every turn of a conversation, oldest first.

        An unreachable backend yields an empty list and a warning
        instead of an exception.
        """
        try:
            return await self._fetch(conversation_id)
        except Exception as e:
            logger.warning(
                "Could not load history for %s from %s store: %s",
                conversation_id, self.backend_type, e,
            )
            return []

    async def __aenter__(self) -> "ConversationStore":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.disconnect()
