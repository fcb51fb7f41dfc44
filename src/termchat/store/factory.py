"""Factory for creating conversation store backends."""

from typing import Any

from .base import ConversationStore


def create_conversation_store(
    backend: str = "sqlite",
    **kwargs: Any
) -> ConversationStore:
    """Create a conversation store backend.

    Args:
        backend: Backend type ("sqlite" or "memory")
        **kwargs: Backend-specific configuration
            For sqlite:
                - path: str | Path (default: ~/.termchat/chats.db)

    Returns:
        ConversationStore instance (not yet connected)

    Raises:
        ValueError: If backend type is not supported
    """
    if backend == "memory":
        from .in_memory import InMemoryConversationStore
        return InMemoryConversationStore()

    elif backend == "sqlite":
        from .sqlite import SQLiteConversationStore
        return SQLiteConversationStore(**kwargs)

    raise ValueError(
        f"Unsupported store backend: {backend}. "
        f"Supported backends: memory, sqlite"
    )
