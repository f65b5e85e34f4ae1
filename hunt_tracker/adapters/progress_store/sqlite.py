"""SQLite progress store backed by aiosqlite.

Layout:
  - participants: one row per registration number, created on first scan
  - participant_components: one row per (registration number, code); the
    composite primary key makes INSERT OR IGNORE an atomic add-if-absent

Connection handling:
  - Single long-lived connection opened in initialize(), closed in close()
  - WAL mode so reads proceed while a write is in flight
  - Schema guarded by PRAGMA user_version; unknown versions refuse startup
  - Write transactions and reads share one asyncio.Lock on the shared
    connection, so a read never observes a write that may still roll back
"""

from __future__ import annotations

import asyncio
import logging
import os
from datetime import datetime, timezone
from typing import Optional

import aiosqlite

from hunt_tracker.adapters.progress_store.base import (
    AbstractProgressStore,
    AddResult,
    StoreNotInitializedError,
)

logger = logging.getLogger(__name__)

_CREATE_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS participants (
    registration_number  TEXT PRIMARY KEY,
    created_at           TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS participant_components (
    registration_number  TEXT NOT NULL REFERENCES participants(registration_number),
    code                 TEXT NOT NULL,
    collected_at         TEXT NOT NULL,
    PRIMARY KEY (registration_number, code)
);
"""

_SCHEMA_VERSION = 1

_SQLITE_PREFIX = "sqlite:///"


def parse_sqlite_url(database_url: str) -> str:
    """Turn a ``sqlite:///path`` connection string into a filesystem path.

    Plain paths and ``:memory:`` are passed through unchanged.

    Examples:
        >>> parse_sqlite_url("sqlite:///./data/hunt.db")
        './data/hunt.db'
        >>> parse_sqlite_url("sqlite:////var/lib/hunt.db")
        '/var/lib/hunt.db'
        >>> parse_sqlite_url("sqlite:///:memory:")
        ':memory:'
    """
    if database_url.startswith(_SQLITE_PREFIX):
        return database_url[len(_SQLITE_PREFIX):]
    if "://" in database_url:
        raise ValueError(f"Unsupported database URL scheme: {database_url.split('://')[0]}")
    return database_url


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


class SQLiteProgressStore(AbstractProgressStore):
    """Async SQLite progress store.

    Usage:
        store = SQLiteProgressStore("sqlite:///./data/hunt.db")
        await store.initialize()
        result = await store.add_component("A12345", "abc123")
        await store.close()
    """

    name = "sqlite"

    def __init__(self, database_url: str = "sqlite:///./data/hunt.db") -> None:
        path = parse_sqlite_url(database_url)
        self._db_path: str = path if path == ":memory:" else os.path.expanduser(path)
        self._db: Optional[aiosqlite.Connection] = None
        self._write_lock = asyncio.Lock()

    @property
    def db_path(self) -> str:
        return self._db_path

    async def initialize(self) -> None:
        """Open the connection, enable WAL, and create or verify the schema.

        Raises:
            RuntimeError: If PRAGMA user_version is neither 0 nor the
                supported version.
        """
        if self._db is not None:
            return

        if self._db_path != ":memory:":
            parent_dir = os.path.dirname(self._db_path)
            if parent_dir:
                os.makedirs(parent_dir, exist_ok=True)

        self._db = await aiosqlite.connect(self._db_path)
        self._db.row_factory = aiosqlite.Row
        await self._db.execute("PRAGMA journal_mode=WAL;")
        await self._db.execute("PRAGMA foreign_keys=ON;")

        cursor = await self._db.execute("PRAGMA user_version;")
        row = await cursor.fetchone()
        current_version: int = row[0] if row else 0

        if current_version == 0:
            await self._db.executescript(_CREATE_SCHEMA_SQL)
            await self._db.execute(f"PRAGMA user_version = {_SCHEMA_VERSION};")
            await self._db.commit()
            logger.info(
                "store.schema_created",
                extra={"db_path": self._db_path, "schema_version": _SCHEMA_VERSION},
            )
        elif current_version == _SCHEMA_VERSION:
            logger.info(
                "store.schema_ok",
                extra={"db_path": self._db_path, "schema_version": current_version},
            )
        else:
            await self._db.close()
            self._db = None
            raise RuntimeError(
                f"Unsupported progress database schema version: {current_version}. "
                f"Expected {_SCHEMA_VERSION}; point APP_DATABASE_URL at a fresh file."
            )

    async def close(self) -> None:
        if self._db is not None:
            await self._db.close()
            self._db = None
            logger.debug("store.closed", extra={"db_path": self._db_path})

    def _connection(self) -> aiosqlite.Connection:
        if self._db is None:
            raise StoreNotInitializedError("Progress store not initialized; call initialize() first")
        return self._db

    async def _select_components(self, registration_number: str) -> frozenset[str]:
        cursor = await self._connection().execute(
            "SELECT code FROM participant_components WHERE registration_number = ?",
            (registration_number,),
        )
        rows = await cursor.fetchall()
        return frozenset(row["code"] for row in rows)

    async def add_component(self, registration_number: str, code: str) -> AddResult:
        db = self._connection()
        now = _utcnow()

        async with self._write_lock:
            try:
                await db.execute(
                    "INSERT OR IGNORE INTO participants (registration_number, created_at) "
                    "VALUES (?, ?)",
                    (registration_number, now),
                )
                cursor = await db.execute(
                    "INSERT OR IGNORE INTO participant_components "
                    "(registration_number, code, collected_at) VALUES (?, ?, ?)",
                    (registration_number, code, now),
                )
                added = cursor.rowcount == 1
                await db.commit()
            except (Exception, asyncio.CancelledError):
                await db.rollback()
                raise

            components = await self._select_components(registration_number)

        return AddResult(components=components, added=added)

    async def get_components(self, registration_number: str) -> frozenset[str]:
        # The connection sees its own uncommitted rows; wait out any open write.
        async with self._write_lock:
            return await self._select_components(registration_number)

    async def ping(self) -> None:
        cursor = await self._connection().execute("SELECT 1")
        await cursor.fetchone()
