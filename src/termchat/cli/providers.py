"""Provider factory functions for CLI.

Centralizes creation of the store and the inference client from settings.
Hides configuration details from command implementations.
"""

from ..config import ChatSettings
from ..llm import InferenceClient, create_llm_provider
from ..store import ConversationStore, create_conversation_store


def get_store(settings: ChatSettings) -> ConversationStore:
    """Create the conversation store backend (not yet connected).

    Raises:
        ValueError: If the backend name is unknown
    """
    if settings.store_backend == "sqlite":
        return create_conversation_store("sqlite", path=settings.store_path)
    return create_conversation_store(settings.store_backend)


def get_client(settings: ChatSettings) -> InferenceClient:
    """Create the inference client for the configured local server."""
    llm = create_llm_provider(
        "local",
        url=settings.inference_url,
        model=settings.model,
        timeout=settings.timeout,
    )
    return InferenceClient(
        llm,
        history_limit=settings.history_limit,
        fact_markers=settings.fact_markers,
        temperature=settings.temperature,
        max_tokens=settings.max_tokens,
    )
