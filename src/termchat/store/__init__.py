"""Conversation store module for termchat.

Provides append-only storage of chat turns keyed by conversation id.
"""

from .base import ConversationStore
from .factory import create_conversation_store
from .models import ChatTurn, Role, conversation_id_for, new_conversation_id

__all__ = [
    "ChatTurn",
    "ConversationStore",
    "Role",
    "conversation_id_for",
    "create_conversation_store",
    "new_conversation_id",
]
