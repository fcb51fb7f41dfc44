"""SQLite conversation store backend.

Provides persistent turn storage using a SQLite database file.
Uses aiosqlite for async access. Each row is one turn document with the
fields conversation_id, role, text, sender and timestamp.
"""

import logging
from datetime import datetime
from pathlib import Path

import aiosqlite

from ..errors import StoreUnavailable
from .base import ConversationStore
from .models import ChatTurn, Role

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path.home() / ".termchat" / "chats.db"


class SQLiteConversationStore(ConversationStore):
    """SQLite-backed conversation store.

    Stores every turn in a single table, indexed by conversation and
    timestamp. Supports persistent storage across sessions.
    """

    def __init__(self, path: str | Path = DEFAULT_DB_PATH):
        self._db_path = Path(path).expanduser()
        self._connection: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        """Open the database file and create the schema."""
        if self._connection is not None:
            return

        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._connection = await aiosqlite.connect(self._db_path)
            await self._create_schema()
        except (OSError, aiosqlite.Error) as e:
            await self.disconnect()
            raise StoreUnavailable(f"{self._db_path}: {e}") from e

        logger.info("SQLite store opened at %s", self._db_path)

    async def _create_schema(self) -> None:
        """Create database tables."""
        await self._connection.execute("""
            CREATE TABLE IF NOT EXISTS turns (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                conversation_id TEXT NOT NULL,
                role TEXT NOT NULL,
                text TEXT NOT NULL,
                sender TEXT NOT NULL,
                timestamp TEXT NOT NULL
            )
        """)

        await self._connection.execute("""
            CREATE INDEX IF NOT EXISTS idx_turns_conversation
            ON turns(conversation_id, timestamp)
        """)

        await self._connection.commit()

    async def disconnect(self) -> None:
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    def _require_connection(self) -> aiosqlite.Connection:
        if self._connection is None:
            raise StoreUnavailable("store is not connected")
        return self._connection

    async def _insert(self, turn: ChatTurn) -> str:
        conn = self._require_connection()
        try:
            cursor = await conn.execute("""
                INSERT INTO turns
                (conversation_id, role, text, sender, timestamp)
                VALUES (?, ?, ?, ?, ?)
            """, (
                turn.conversation_id,
                turn.role.value,
                turn.text,
                turn.sender,
                turn.timestamp.isoformat(timespec="microseconds"),
            ))
            await conn.commit()
        except aiosqlite.Error:
            await conn.rollback()
            raise
        return str(cursor.lastrowid)

    async def _fetch(self, conversation_id: str) -> list[ChatTurn]:
        conn = self._require_connection()

        async with conn.execute(
            """
            SELECT conversation_id, role, text, sender, timestamp
            FROM turns
            WHERE conversation_id = ?
            ORDER BY timestamp ASC, id ASC
            """,
            (conversation_id,)
        ) as cursor:
            rows = await cursor.fetchall()

        return [
            ChatTurn(
                conversation_id=cid,
                role=Role(role),
                text=text,
                sender=sender,
                timestamp=datetime.fromisoformat(ts),
            )
            for cid, role, text, sender, ts in rows
        ]

    async def _last_timestamp(self, conversation_id: str) -> datetime | None:
        conn = self._require_connection()

        async with conn.execute(
            "SELECT MAX(timestamp) FROM turns WHERE conversation_id = ?",
            (conversation_id,)
        ) as cursor:
            row = await cursor.fetchone()

        if row is None or row[0] is None:
            return None
        return datetime.fromisoformat(row[0])

    async def list_conversations(self, prefix: str = "") -> list[str]:
        conn = self._require_connection()

        async with conn.execute(
            """
            SELECT conversation_id, MIN(timestamp) AS started
            FROM turns
            WHERE substr(conversation_id, 1, length(?)) = ?
            GROUP BY conversation_id
            ORDER BY started ASC
            """,
            (prefix, prefix)
        ) as cursor:
            rows = await cursor.fetchall()

        return [row[0] for row in rows]

    @property
    def backend_type(self) -> str:
        return "sqlite"
