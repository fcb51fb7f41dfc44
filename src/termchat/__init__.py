"""
termchat: terminal chat client for local LLM inference servers.

Conversations are persisted per user, replies are rendered with boxed,
width-aware code blocks.
"""

__version__ = "0.1.0"

from .errors import (
    ChatError,
    InferenceError,
    InferenceTransportError,
    MalformedResponse,
    ParseError,
    StoreUnavailable,
)
from .render import render
from .store import ChatTurn, Role, create_conversation_store

__all__ = [
    "ChatError",
    "ChatTurn",
    "InferenceError",
    "InferenceTransportError",
    "MalformedResponse",
    "ParseError",
    "Role",
    "StoreUnavailable",
    "create_conversation_store",
    "render",
]
