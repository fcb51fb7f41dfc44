"""Inference client: turns session history into one completion request.

Hides how the context window is assembled: the system prompt, the user
facts pulled from earlier turns, and how many past turns are sent.
"""

import logging
from collections.abc import Sequence

from ..prompts import render_system_prompt
from ..store.models import ChatTurn, Role
from .base import LLMProvider
from .models import ChatMessage

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 10
DEFAULT_FACT_MARKERS = ("name is", "my name")


def extract_user_facts(
    history: Sequence[ChatTurn],
    markers: Sequence[str] = DEFAULT_FACT_MARKERS,
) -> list[str]:
    """Collect hint lines from user turns that mention personal details.

    Only user turns are scanned; matching is a case-insensitive substring
    test, so false negatives are expected.
    """
    lowered = [m.lower() for m in markers]
    facts = []
    for turn in history:
        if turn.role != Role.USER:
            continue
        text = turn.text.lower()
        if any(marker in text for marker in lowered):
            facts.append(f"User mentioned: {turn.text}")
    return facts


def build_messages(
    user_name: str,
    history: Sequence[ChatTurn],
    new_message: str,
    history_limit: int = DEFAULT_HISTORY_LIMIT,
    fact_markers: Sequence[str] = DEFAULT_FACT_MARKERS,
) -> list[ChatMessage]:
    """Build the request messages: system, recent history, new message."""
    system = ChatMessage(
        role=Role.SYSTEM.value,
        content=render_system_prompt(user_name, extract_user_facts(history, fact_markers)),
    )
    window = list(history)[-history_limit:] if history_limit > 0 else []
    return [
        system,
        *(ChatMessage(role=turn.role.value, content=turn.text) for turn in window),
        ChatMessage(role=Role.USER.value, content=new_message),
    ]


class InferenceClient:
    """Asks the inference server for the next assistant reply.

    Stateless with respect to the session: all context is passed per call.
    """

    def __init__(
        self,
        llm: LLMProvider,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        fact_markers: Sequence[str] = DEFAULT_FACT_MARKERS,
        temperature: float = 0.7,
        max_tokens: int | None = 1000,
    ):
        self._llm = llm
        self._history_limit = history_limit
        self._fact_markers = tuple(fact_markers)
        self._temperature = temperature
        self._max_tokens = max_tokens

    @property
    def llm(self) -> LLMProvider:
        return self._llm

    @property
    def history_limit(self) -> int:
        return self._history_limit

    async def ask(
        self,
        user_name: str,
        history: Sequence[ChatTurn],
        new_message: str,
    ) -> str:
        """Send history plus the new message and return the reply text.

        Raises:
            InferenceTransportError: If the server cannot be reached
            ParseError: If the reply is not JSON
            MalformedResponse: If the reply lacks choices[0].message
        """
        messages = build_messages(
            user_name,
            history,
            new_message,
            history_limit=self._history_limit,
            fact_markers=self._fact_markers,
        )
        logger.info(
            "Sending %d messages (%d turns in history)", len(messages), len(history)
        )

        response = await self._llm.chat_completion(
            messages,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )
        if response.usage:
            logger.debug("Token usage: %s", response.usage)
        return response.content

    async def close(self) -> None:
        await self._llm.close()
