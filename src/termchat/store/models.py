"""Data models for the conversation store.

These models define the structure of a chat turn and the rules for
deriving conversation identifiers, independent of the storage backend.
"""

import re
from collections.abc import Collection
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

CONVERSATION_PREFIX = "chat_"

_NON_ALNUM = re.compile(r"[^a-z0-9]")


class Role(str, Enum):
    """Author of a chat turn."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ChatTurn(BaseModel):
    """One message in a conversation.

    Turns are immutable once created. The store assigns the final
    timestamp when the turn is appended.
    """

    model_config = ConfigDict(frozen=True)

    conversation_id: str = Field(description="Conversation the turn belongs to")
    role: Role = Field(description="Who wrote the turn")
    text: str = Field(description="Message content")
    sender: str = Field(description="Display name of the sender")
    timestamp: datetime = Field(default_factory=utcnow)

    def to_document(self) -> dict:
        """Return the stored document shape of this turn."""
        return {
            "conversationId": self.conversation_id,
            "role": self.role.value,
            "text": self.text,
            "sender": self.sender,
            "timestamp": self.timestamp.isoformat(),
        }


def conversation_id_for(name: str) -> str:
    """Derive the base conversation identifier from a display name.

    >>> conversation_id_for("Ana María")
    'chat_anamara'
    """
    return CONVERSATION_PREFIX + _NON_ALNUM.sub("", name.lower())


def new_conversation_id(
    name: str,
    now: datetime | None = None,
    taken: Collection[str] = (),
) -> str:
    """Mint a fresh identifier scoped under the same display name.

    The suffix is the instant in milliseconds, moved forward past any
    identifier in taken.
    """
    base = conversation_id_for(name)
    millis = int((now or utcnow()).timestamp() * 1000)
    while f"{base}_{millis}" in taken:
        millis += 1
    return f"{base}_{millis}"
