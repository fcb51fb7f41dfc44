import logging
from typing import Any

import httpx

from ...errors import InferenceTransportError
from ..base import LLMProvider
from ..models import ChatMessage, CompletionFailure, LLMResponse, parse_completion

logger = logging.getLogger(__name__)

DEFAULT_URL = "http://localhost:1234/v1/chat/completions"


def models_url(completions_url: str) -> str:
    """Derive the /v1/models listing URL from a chat completions URL."""
    base = completions_url.rstrip("/")
    suffix = "/chat/completions"
    if base.endswith(suffix):
        base = base[: -len(suffix)]
    return f"{base}/models"


class LocalServerProvider(LLMProvider):
    """Provider for a local OpenAI-compatible server (LM Studio, llama.cpp, vLLM).

    Hidden design decisions:
    - Raw JSON over HTTP so malformed bodies can be shown verbatim
    - One request per call, no retries and no streaming
    - No timeout unless one is configured
    """

    def __init__(
        self,
        url: str = DEFAULT_URL,
        model: str | None = None,
        timeout: float | None = None,
        **client_kwargs: Any
    ):
        """Initialize local server provider.

        Args:
            url: Full chat completions URL
            model: Model name to request (None lets the server pick its loaded model)
            timeout: Request timeout in seconds (None waits forever)
            **client_kwargs: Additional kwargs for httpx.AsyncClient
        """
        self._url = url
        self._model = model
        self._client = httpx.AsyncClient(timeout=timeout, **client_kwargs)

    @property
    def url(self) -> str:
        return self._url

    @property
    def model(self) -> str | None:
        """Get the default model name."""
        return self._model

    async def chat_completion(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> LLMResponse:
        """Send one non-streaming chat completion request.

        Args:
            messages: Conversation history
            model: Model to use (overrides default)
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            **kwargs: Additional body fields

        Returns:
            LLMResponse with generated content
        """
        body: dict[str, Any] = {
            "messages": [
                {"role": msg.role, "content": msg.content}
                for msg in messages
            ],
            "temperature": temperature,
            "stream": False,
            **kwargs,
        }
        if max_tokens is not None:
            body["max_tokens"] = max_tokens
        model_to_use = model or self._model
        if model_to_use:
            body["model"] = model_to_use

        try:
            resp = await self._client.post(self._url, json=body)
        except httpx.ConnectError as e:
            raise InferenceTransportError(str(e) or "connection refused", self._url, connection_refused=True) from e
        except httpx.TransportError as e:
            raise InferenceTransportError(str(e) or type(e).__name__, self._url) from e

        if resp.status_code >= 400:
            logger.warning("Inference server returned HTTP %s", resp.status_code)

        result = parse_completion(resp.text)
        if isinstance(result, CompletionFailure):
            logger.warning("Unexpected response structure: %s", result.detail)
            raise result.to_exception()

        return result.response

    async def health_check(self) -> bool:
        try:
            resp = await self._client.get(models_url(self._url))
        except httpx.TransportError as e:
            logger.debug("Health check failed: %s", e)
            return False
        return resp.status_code < 400

    async def close(self) -> None:
        await self._client.aclose()
