"""Runtime configuration.

Settings come from environment variables (a local .env file is loaded by
the CLI) and can be overridden by command line options.
"""

import os
from pathlib import Path

from pydantic import BaseModel, Field

from .llm.client import DEFAULT_FACT_MARKERS, DEFAULT_HISTORY_LIMIT
from .llm.providers.local import DEFAULT_URL
from .store.sqlite import DEFAULT_DB_PATH

DEFAULT_ASSISTANT_NAME = "Llama 3.3-70B"


class ChatSettings(BaseModel):
    """Everything the chat session needs to start."""

    inference_url: str = Field(default=DEFAULT_URL)
    model: str | None = Field(default=None, description="Model name; None uses the server's loaded model")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=1000, ge=1)
    timeout: float | None = Field(default=None, gt=0, description="Seconds; None waits forever")
    store_backend: str = Field(default="sqlite")
    store_path: Path = Field(default=DEFAULT_DB_PATH)
    history_limit: int = Field(default=DEFAULT_HISTORY_LIMIT, ge=0)
    mirror_size: int = Field(default=100, ge=1)
    fact_markers: tuple[str, ...] = Field(default=DEFAULT_FACT_MARKERS)
    assistant_name: str = Field(default=DEFAULT_ASSISTANT_NAME)
    log_level: str = Field(default="warning")


def _optional(name: str) -> str | None:
    value = os.getenv(name)
    return value if value else None


def load_settings(**overrides) -> ChatSettings:
    """Build settings from the environment, then apply non-None overrides.

    Environment variables:
        TERMCHAT_INFERENCE_URL: Chat completions URL (default: http://localhost:1234/v1/chat/completions)
        TERMCHAT_MODEL: Model name (default: server's loaded model)
        TERMCHAT_TEMPERATURE: Sampling temperature (default: 0.7)
        TERMCHAT_MAX_TOKENS: Reply token cap (default: 1000)
        TERMCHAT_TIMEOUT: Request timeout in seconds (default: none)
        TERMCHAT_STORE: Store backend, sqlite or memory (default: sqlite)
        TERMCHAT_STORE_PATH: SQLite file (default: ~/.termchat/chats.db)
        TERMCHAT_HISTORY_LIMIT: Past turns sent with each message (default: 10)
        TERMCHAT_MIRROR_SIZE: Turns kept in memory (default: 100)
        TERMCHAT_FACT_MARKERS: Comma-separated phrases marking user facts
        TERMCHAT_ASSISTANT_NAME: Display name for replies (default: Llama 3.3-70B)
        TERMCHAT_LOG_LEVEL: debug, info, warning or error (default: warning)
    """
    values: dict = {
        "inference_url": _optional("TERMCHAT_INFERENCE_URL"),
        "model": _optional("TERMCHAT_MODEL"),
        "temperature": _optional("TERMCHAT_TEMPERATURE"),
        "max_tokens": _optional("TERMCHAT_MAX_TOKENS"),
        "timeout": _optional("TERMCHAT_TIMEOUT"),
        "store_backend": _optional("TERMCHAT_STORE"),
        "store_path": _optional("TERMCHAT_STORE_PATH"),
        "history_limit": _optional("TERMCHAT_HISTORY_LIMIT"),
        "mirror_size": _optional("TERMCHAT_MIRROR_SIZE"),
        "assistant_name": _optional("TERMCHAT_ASSISTANT_NAME"),
        "log_level": _optional("TERMCHAT_LOG_LEVEL"),
    }
    markers = _optional("TERMCHAT_FACT_MARKERS")
    if markers:
        values["fact_markers"] = tuple(m.strip() for m in markers.split(",") if m.strip())

    values.update({k: v for k, v in overrides.items() if v is not None})
    return ChatSettings(**{k: v for k, v in values.items() if v is not None})
