"""SQLite file backing the persistent document store.

One ``documents`` table holds every collection; a row is a JSON document
addressed by ``(collection, key)``. The connection runs in WAL mode so the
API can read while the scheduler writes.
"""

import os
from typing import Self

import aiosqlite

from trailtrade.logging import get_logger

logger = get_logger(__name__)

SCHEMA_VERSION = 1

_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
)

_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY
);

CREATE TABLE IF NOT EXISTS documents (
    collection TEXT NOT NULL,
    key TEXT NOT NULL,
    document TEXT NOT NULL,
    updated_at INTEGER NOT NULL,
    PRIMARY KEY (collection, key)
);

CREATE INDEX IF NOT EXISTS idx_documents_collection_updated
    ON documents(collection, updated_at);
"""


class TradeStateDatabase:
    """Owns the aiosqlite connection used by SqliteDocumentStore.

    Usage:
        async with TradeStateDatabase("data/trailtrade.db") as database:
            store = SqliteDocumentStore(database)
    """

    def __init__(self, db_path: str = "data/trailtrade.db") -> None:
        self._db_path = db_path
        self._connection: aiosqlite.Connection | None = None

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    @property
    def db(self) -> aiosqlite.Connection:
        """The open connection. Raises RuntimeError before connect()."""
        if self._connection is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._connection

    async def connect(self) -> None:
        """Open the file (creating its directory) and bring the schema up to date."""
        directory = os.path.dirname(self._db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        connection = await aiosqlite.connect(self._db_path)
        for pragma in _PRAGMAS:
            await connection.execute(pragma)
        await connection.executescript(_SCHEMA_SQL)
        await connection.commit()
        self._connection = connection

        await self._record_schema_version()
        logger.info("document_db_connected", db_path=self._db_path)

    async def close(self) -> None:
        if self._connection is None:
            return
        await self._connection.close()
        self._connection = None
        logger.info("document_db_closed", db_path=self._db_path)

    async def _record_schema_version(self) -> None:
        cursor = await self.db.execute("SELECT version FROM schema_version LIMIT 1")
        if await cursor.fetchone() is not None:
            return
        await self.db.execute(
            "INSERT INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,)
        )
        await self.db.commit()
        logger.info("schema_version_set", version=SCHEMA_VERSION)

    async def __aenter__(self) -> Self:
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore[no-untyped-def]
        await self.close()
