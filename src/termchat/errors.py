"""Error taxonomy for termchat.

Every failure that can happen while handling a single chat turn derives
from ChatError, so the session loop can report it and keep going.
"""


class ChatError(Exception):
    """Base class for chat errors."""


class StoreUnavailable(ChatError):
    """Conversation store could not be opened, read or written."""

    def __init__(self, message: str):
        super().__init__(f"Store unavailable: {message}")


class InferenceError(ChatError):
    """Base class for inference endpoint failures."""


class InferenceTransportError(InferenceError):
    """Network failure reaching the inference endpoint."""

    def __init__(self, message: str, url: str, connection_refused: bool = False):
        super().__init__(f"Cannot reach inference server at {url}: {message}")
        self.url = url
        self.connection_refused = connection_refused


class MalformedResponse(InferenceError):
    """Response body is valid JSON but lacks choices[0].message."""

    def __init__(self, message: str, raw_body: str):
        super().__init__(f"Malformed response: {message}")
        self.raw_body = raw_body


class ParseError(InferenceError):
    """Response body is not valid JSON."""

    def __init__(self, message: str, raw_body: str):
        super().__init__(f"Could not parse response: {message}")
        self.raw_body = raw_body
