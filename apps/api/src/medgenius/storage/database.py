"""
SQLite document store.

Users and activity entries are kept as JSON documents, with only the
columns needed for lookups and pruning pulled out alongside. Schema
changes are applied once each, in order, and recorded in _migrations.
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncGenerator

import aiosqlite

from medgenius.config import get_settings

# (name, statements); append only, never edit an applied migration
MIGRATIONS: list[tuple[str, tuple[str, ...]]] = [
    (
        "001_create_users",
        (
            """
            CREATE TABLE IF NOT EXISTS users (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id TEXT UNIQUE NOT NULL,
                email TEXT UNIQUE NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                user_json TEXT NOT NULL
            )
            """,
        ),
    ),
    (
        "002_create_activities",
        (
            """
            CREATE TABLE IF NOT EXISTS activities (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                activity_id TEXT UNIQUE NOT NULL,
                user_id TEXT NOT NULL,
                activity_json TEXT NOT NULL
            )
            """,
            "CREATE INDEX IF NOT EXISTS idx_activities_user_id ON activities(user_id, id DESC)",
        ),
    ),
]


class Database:
    """One aiosqlite connection shared by the stores."""

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)
        self._connection: aiosqlite.Connection | None = None

    @property
    def connection(self) -> aiosqlite.Connection:
        if self._connection is None:
            raise RuntimeError("Database not connected")
        return self._connection

    async def connect(self) -> None:
        """Open the database file (creating its directory) and migrate it."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._connection = await aiosqlite.connect(self.db_path)
        self._connection.row_factory = aiosqlite.Row
        await self._connection.execute("PRAGMA journal_mode = WAL")

        await self.migrate()

    async def disconnect(self) -> None:
        if self._connection is not None:
            await self._connection.close()
            self._connection = None

    async def migrate(self) -> list[str]:
        """Apply pending migrations; returns the names applied."""
        conn = self.connection
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS _migrations (
                id INTEGER PRIMARY KEY,
                name TEXT UNIQUE NOT NULL,
                applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
            """
        )

        cursor = await conn.execute("SELECT name FROM _migrations")
        done = {row["name"] for row in await cursor.fetchall()}

        applied = []
        for name, statements in MIGRATIONS:
            if name in done:
                continue
            async with self.transaction() as tx:
                for statement in statements:
                    await tx.execute(statement)
                await tx.execute("INSERT INTO _migrations (name) VALUES (?)", (name,))
            applied.append(name)
        return applied

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[aiosqlite.Connection, None]:
        """Commit on success, roll back on any error."""
        conn = self.connection
        try:
            yield conn
            await conn.commit()
        except Exception:
            await conn.rollback()
            raise

    async def execute(self, query: str, params: tuple[Any, ...] = ()) -> aiosqlite.Cursor:
        return await self.connection.execute(query, params)

    async def commit(self) -> None:
        await self.connection.commit()

    async def fetch_one(self, query: str, params: tuple[Any, ...] = ()) -> dict[str, Any] | None:
        cursor = await self.execute(query, params)
        row = await cursor.fetchone()
        return dict(row) if row else None

    async def fetch_all(self, query: str, params: tuple[Any, ...] = ()) -> list[dict[str, Any]]:
        cursor = await self.execute(query, params)
        return [dict(row) for row in await cursor.fetchall()]


# Global database instance
_database: Database | None = None


async def get_database() -> Database:
    """Get the global database instance, connecting on first use."""
    global _database

    if _database is None:
        _database = Database(get_settings().sqlite_path)
        await _database.connect()

    return _database


async def close_database() -> None:
    global _database

    if _database is not None:
        await _database.disconnect()
        _database = None
