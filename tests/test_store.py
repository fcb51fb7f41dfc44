"""Unit tests for the conversation store module."""
import logging
from datetime import datetime, timezone

import pytest
from hypothesis import given
from hypothesis import strategies as st
from pydantic import ValidationError

from termchat.errors import StoreUnavailable
from termchat.store import (
    ChatTurn,
    ConversationStore,
    Role,
    conversation_id_for,
    create_conversation_store,
    new_conversation_id,
)
from termchat.store.in_memory import InMemoryConversationStore
from termchat.store.sqlite import SQLiteConversationStore

from conftest import make_turns


class TestConversationStoreInterface:
    """Tests for the abstract ConversationStore interface."""

    def test_store_is_abstract(self):
        """Test that ConversationStore cannot be instantiated directly."""
        with pytest.raises(TypeError):
            ConversationStore()  # type: ignore


class TestChatTurn:
    """Tests for ChatTurn model."""

    def test_turn_is_frozen(self):
        """Test that turns cannot be mutated."""
        turn = make_turns(1)[0]

        with pytest.raises(ValidationError):
            turn.text = "changed"  # type: ignore

    def test_document_shape(self):
        """Test the stored document fields."""
        turn = make_turns(1)[0]
        doc = turn.to_document()

        assert set(doc) == {"conversationId", "role", "text", "sender", "timestamp"}
        assert doc["role"] == "user"
        assert doc["conversationId"] == "chat_ana"


class TestConversationIds:
    """Tests for conversation identifier derivation."""

    def test_name_is_normalized(self):
        """Test lowercasing and stripping of non-alphanumerics."""
        assert conversation_id_for("Ana") == "chat_ana"
        assert conversation_id_for("Mary-Jane O'Neil 2") == "chat_maryjaneoneil2"

    def test_new_id_suffixes_instant(self):
        """Test that a new conversation id keeps the base and adds milliseconds."""
        now = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

        assert new_conversation_id("Ana", now) == f"chat_ana_{int(now.timestamp() * 1000)}"

    def test_new_id_skips_taken_instants(self):
        """Test that an id already in use moves to the next millisecond."""
        now = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        millis = int(now.timestamp() * 1000)
        taken = {f"chat_ana_{millis}", f"chat_ana_{millis + 1}"}

        assert new_conversation_id("Ana", now, taken) == f"chat_ana_{millis + 2}"

    @given(st.text(max_size=50))
    def test_id_is_deterministic_and_clean(self, name: str):
        """Property test: ids only hold lowercase letters and digits after the prefix."""
        cid = conversation_id_for(name)

        assert cid == conversation_id_for(name)
        assert cid.startswith("chat_")
        assert all(c in "abcdefghijklmnopqrstuvwxyz0123456789" for c in cid[5:])


class TestStoreBackends:
    """Behaviour shared by every backend."""

    @pytest.mark.asyncio
    async def test_history_is_returned_in_order(self, store):
        """Test that turns come back in append order."""
        for turn in make_turns(6):
            await store.append(turn)

        history = await store.load_history("chat_ana")

        assert [t.text for t in history] == [f"turn {i}" for i in range(6)]
        assert [t.role for t in history][:2] == [Role.USER, Role.ASSISTANT]

    @pytest.mark.asyncio
    async def test_timestamps_strictly_increase(self, store):
        """Test that quick appends still get distinct, ordered timestamps."""
        for turn in make_turns(20):
            await store.append(turn)

        history = await store.load_history("chat_ana")
        stamps = [t.timestamp for t in history]

        assert all(a < b for a, b in zip(stamps, stamps[1:]))

    @pytest.mark.asyncio
    async def test_append_returns_id(self, store):
        """Test that each append yields a distinct id."""
        ids = [await store.append(turn) for turn in make_turns(3)]

        assert len(set(ids)) == 3
        assert all(isinstance(i, str) and i for i in ids)

    @pytest.mark.asyncio
    async def test_unknown_conversation_is_empty(self, store):
        """Test that a conversation with no turns yields an empty list."""
        assert await store.load_history("chat_nobody") == []

    @pytest.mark.asyncio
    async def test_conversations_are_isolated(self, store):
        """Test that turns are keyed by conversation id."""
        await store.append(make_turns(1, "chat_ana")[0])
        await store.append(make_turns(1, "chat_ana_1700000000000")[0])
        await store.append(make_turns(1, "chat_bob")[0])

        assert len(await store.load_history("chat_ana")) == 1
        assert await store.list_conversations("chat_ana") == ["chat_ana", "chat_ana_1700000000000"]


class TestSQLiteStore:
    """Tests specific to the SQLite backend."""

    @pytest.mark.asyncio
    async def test_turns_survive_reconnect(self, tmp_path):
        """Test that history persists across connections."""
        path = tmp_path / "chats.db"
        store = SQLiteConversationStore(path)
        await store.connect()
        for turn in make_turns(3):
            await store.append(turn)
        await store.disconnect()

        reopened = SQLiteConversationStore(path)
        await reopened.connect()
        try:
            history = await reopened.load_history("chat_ana")
        finally:
            await reopened.disconnect()

        assert [t.text for t in history] == ["turn 0", "turn 1", "turn 2"]
        assert history[0].sender == "Ana"
        assert history[0].timestamp.tzinfo is not None

    @pytest.mark.asyncio
    async def test_connect_failure_raises(self, tmp_path):
        """Test that an unopenable path raises StoreUnavailable."""
        store = SQLiteConversationStore(tmp_path)

        with pytest.raises(StoreUnavailable):
            await store.connect()

    @pytest.mark.asyncio
    async def test_unreachable_store_degrades_to_empty(self, tmp_path, caplog):
        """Test that reading a closed store logs a warning and returns nothing."""
        store = SQLiteConversationStore(tmp_path / "chats.db")

        with caplog.at_level(logging.WARNING, logger="termchat.store.base"):
            history = await store.load_history("chat_ana")

        assert history == []
        assert "Could not load history" in caplog.text

    @pytest.mark.asyncio
    async def test_append_to_closed_store_raises(self, tmp_path):
        """Test that writes fail loudly when the store is not open."""
        store = SQLiteConversationStore(tmp_path / "chats.db")

        with pytest.raises(StoreUnavailable):
            await store.append(make_turns(1)[0])


class TestStoreFactory:
    """Tests for store factory."""

    def test_create_memory_store(self):
        """Test creating an in-memory store via factory."""
        store = create_conversation_store("memory")

        assert isinstance(store, InMemoryConversationStore)
        assert store.backend_type == "memory"

    @pytest.mark.asyncio
    async def test_create_sqlite_store(self, tmp_path):
        """Test creating a SQLite store with a custom path."""
        path = tmp_path / "nested" / "x.db"
        store = create_conversation_store("sqlite", path=path)

        assert isinstance(store, SQLiteConversationStore)
        async with store:
            assert path.exists()

    def test_unknown_backend_fails(self):
        """Test that an unsupported backend name raises ValueError."""
        with pytest.raises(ValueError, match="Unsupported store backend"):
            create_conversation_store("mongo")


class TestAppendAtomicity:
    """Tests that failed writes leave nothing behind."""

    @pytest.mark.asyncio
    async def test_failed_insert_is_wrapped(self):
        """Test that backend errors surface as StoreUnavailable."""

        class BrokenStore(InMemoryConversationStore):
            async def _insert(self, turn: ChatTurn) -> str:
                raise OSError("disk full")

        store = BrokenStore()

        with pytest.raises(StoreUnavailable, match="disk full"):
            await store.append(make_turns(1)[0])
        assert await store.load_history("chat_ana") == []
