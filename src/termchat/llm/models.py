import json
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from ..errors import MalformedResponse, ParseError


class ChatMessage(BaseModel):
    """Represents a chat message in a conversation."""

    model_config = ConfigDict(frozen=True)

    role: str = Field(description="Role of the message sender: 'user', 'assistant', or 'system'")
    content: str = Field(description="Content of the message")


class LLMResponse(BaseModel):
    """Response from an LLM provider."""

    model_config = ConfigDict(frozen=True)

    content: str = Field(description="Generated text content")
    model: str = Field(description="Model that generated the response")
    usage: dict[str, int] | None = Field(
        default=None,
        description="Token usage information"
    )


class CompletionSuccess(BaseModel):
    """A response body that carried choices[0].message."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["success"] = "success"
    response: LLMResponse


class CompletionFailure(BaseModel):
    """A response body that could not be turned into a reply."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["parse_error", "shape_error"]
    detail: str
    raw_body: str

    def to_exception(self) -> ParseError | MalformedResponse:
        if self.kind == "parse_error":
            return ParseError(self.detail, self.raw_body)
        return MalformedResponse(self.detail, self.raw_body)


CompletionResult = CompletionSuccess | CompletionFailure


def parse_completion(raw_body: str) -> CompletionResult:
    """Parse a chat completions response body into a tagged result.

    Success requires a JSON object whose first choice holds a message
    with string content. Anything else is reported with the raw body.
    """
    try:
        data: Any = json.loads(raw_body)
    except json.JSONDecodeError as e:
        return CompletionFailure(kind="parse_error", detail=str(e), raw_body=raw_body)

    if not isinstance(data, dict):
        return CompletionFailure(
            kind="shape_error",
            detail=f"expected a JSON object, got {type(data).__name__}",
            raw_body=raw_body,
        )

    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return CompletionFailure(
            kind="shape_error",
            detail=f"no choices in response (keys: {sorted(data)})",
            raw_body=raw_body,
        )

    first = choices[0]
    message = first.get("message") if isinstance(first, dict) else None
    if not isinstance(message, dict):
        return CompletionFailure(
            kind="shape_error",
            detail="first choice has no message",
            raw_body=raw_body,
        )

    content = message.get("content")
    if content is None:
        content = ""
    if not isinstance(content, str):
        return CompletionFailure(
            kind="shape_error",
            detail=f"message content is {type(content).__name__}, not text",
            raw_body=raw_body,
        )

    usage = data.get("usage")
    if isinstance(usage, dict):
        usage = {k: v for k, v in usage.items() if isinstance(v, int)}
    else:
        usage = None

    return CompletionSuccess(
        response=LLMResponse(
            content=content,
            model=str(data.get("model") or "unknown"),
            usage=usage,
        )
    )
