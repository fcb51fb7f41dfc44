from typing import Any

from .base import LLMProvider
from .providers import LocalServerProvider


def create_llm_provider(provider: str = "local", **config: Any) -> LLMProvider:
    """Create an LLM provider instance.

    This factory function hides the instantiation logic for different providers.

    Args:
        provider: Provider type ('local', alias 'lmstudio')
        **config: Provider-specific configuration
            For local:
                - url: str (default: 'http://localhost:1234/v1/chat/completions')
                - model: str | None
                - timeout: float | None (default: no timeout)

    Returns:
        Initialized LLM provider instance

    Raises:
        ValueError: If provider type is not supported

    Examples:
        >>> provider = create_llm_provider(
        ...     "local",
        ...     url="http://localhost:1234/v1/chat/completions",
        ... )
    """
    provider_lower = provider.lower()

    if provider_lower in ("local", "lmstudio"):
        return LocalServerProvider(**config)

    raise ValueError(
        f"Unsupported provider: {provider}. "
        f"Supported providers: 'local'"
    )
