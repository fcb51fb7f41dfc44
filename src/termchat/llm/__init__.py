from .base import LLMProvider
from .client import InferenceClient, build_messages, extract_user_facts
from .factory import create_llm_provider
from .models import (
    ChatMessage,
    CompletionFailure,
    CompletionResult,
    CompletionSuccess,
    LLMResponse,
    parse_completion,
)
from .providers import LocalServerProvider

__all__ = [
    "LLMProvider",
    "InferenceClient",
    "build_messages",
    "extract_user_facts",
    "create_llm_provider",
    "ChatMessage",
    "CompletionFailure",
    "CompletionResult",
    "CompletionSuccess",
    "LLMResponse",
    "parse_completion",
    "LocalServerProvider",
]
