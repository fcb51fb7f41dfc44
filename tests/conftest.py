"""Pytest configuration and shared fixtures."""
import io
import json

import httpx
import pytest
from rich.console import Console

from termchat.llm import InferenceClient, LocalServerProvider
from termchat.store import ChatTurn, Role
from termchat.store.in_memory import InMemoryConversationStore
from termchat.store.sqlite import SQLiteConversationStore

SERVER_URL = "http://inference.test/v1/chat/completions"


def completion_body(content: str) -> str:
    """Return a chat completions body carrying one reply."""
    return json.dumps({
        "id": "chatcmpl-1",
        "model": "llama-3.3-70b",
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}}],
        "usage": {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15},
    })


class FakeServer:
    """Scripted OpenAI-compatible server behind httpx.MockTransport.

    Bodies are served in order; the last one repeats. A body that is an
    exception instance is raised instead of answered.
    """

    def __init__(self, *bodies, status_code: int = 200):
        self.bodies = list(bodies) or [completion_body("Hi there!")]
        self.status_code = status_code
        self.requests: list[dict] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(200, json={"data": [{"id": "llama-3.3-70b"}]})

        self.requests.append(json.loads(request.content))
        body = self.bodies.pop(0) if len(self.bodies) > 1 else self.bodies[0]
        if isinstance(body, Exception):
            raise body
        return httpx.Response(self.status_code, text=body)

    def provider(self, **kwargs) -> LocalServerProvider:
        return LocalServerProvider(
            url=SERVER_URL,
            transport=httpx.MockTransport(self.handler),
            **kwargs
        )

    def client(self, **kwargs) -> InferenceClient:
        return InferenceClient(self.provider(), **kwargs)

    @property
    def last_messages(self) -> list[dict]:
        return self.requests[-1]["messages"]


def scripted_input(*lines: str):
    """Return a read_line callable that answers with lines, then EOF."""
    remaining = iter(lines)

    def read_line(prompt: str) -> str:
        try:
            return next(remaining)
        except StopIteration:
            raise EOFError from None

    return read_line


def make_turns(count: int, conversation_id: str = "chat_ana") -> list[ChatTurn]:
    """Alternate user and assistant turns numbered from 0."""
    return [
        ChatTurn(
            conversation_id=conversation_id,
            role=Role.USER if i % 2 == 0 else Role.ASSISTANT,
            text=f"turn {i}",
            sender="Ana" if i % 2 == 0 else "Llama",
        )
        for i in range(count)
    ]


@pytest.fixture
def fake_server():
    """Return a server answering every request with one greeting."""
    return FakeServer()


@pytest.fixture
def output():
    """Return the buffer a test console writes to."""
    return io.StringIO()


@pytest.fixture
def console(output):
    """Return a plain 80-column console writing to a buffer."""
    return Console(file=output, width=80, force_terminal=False, color_system=None)


@pytest.fixture
async def memory_store():
    """Return a connected in-memory store."""
    store = InMemoryConversationStore()
    await store.connect()
    yield store
    await store.disconnect()


@pytest.fixture
async def sqlite_store(tmp_path):
    """Return a connected SQLite store in a temporary directory."""
    store = SQLiteConversationStore(tmp_path / "chats.db")
    await store.connect()
    yield store
    await store.disconnect()


@pytest.fixture(params=["memory", "sqlite"])
async def store(request, tmp_path):
    """Return each connected store backend in turn."""
    if request.param == "memory":
        backend = InMemoryConversationStore()
    else:
        backend = SQLiteConversationStore(tmp_path / "chats.db")
    await backend.connect()
    yield backend
    await backend.disconnect()
