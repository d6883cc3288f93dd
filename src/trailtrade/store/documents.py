"""Persistent document store.

Collections of JSON documents stored in SQLite. ``find_one`` matches a
document when every field of the filter equals the document's field.

CRITICAL: Decimal values are stored as strings; callers restore them with Decimal(str(...)).
"""

import json
import time
from abc import ABC, abstractmethod
from typing import Any

import aiosqlite

from trailtrade.exceptions import UpstreamUnavailableError
from trailtrade.logging import get_logger
from trailtrade.store.database import TradeStateDatabase

logger = get_logger(__name__)


class PersistentStore(ABC):
    """Abstract document store."""

    @abstractmethod
    async def find_one(self, collection: str, filter: dict[str, Any]) -> dict | None:
        """Return the first document in ``collection`` matching ``filter``, or None."""
        ...

    @abstractmethod
    async def upsert(self, collection: str, key: str, document: dict[str, Any]) -> None:
        """Insert or replace the document stored under ``key``."""
        ...


class SqliteDocumentStore(PersistentStore):
    """Document store backed by the ``documents`` table of TradeStateDatabase."""

    def __init__(self, database: TradeStateDatabase) -> None:
        self._database = database

    async def find_one(self, collection: str, filter: dict[str, Any]) -> dict | None:
        conditions = ["collection = ?"]
        params: list = [collection]
        for field, value in filter.items():
            conditions.append("json_extract(document, ?) = ?")
            params.extend([f'$."{field}"', value])

        where = " AND ".join(conditions)
        try:
            cursor = await self._database.db.execute(
                f"SELECT document FROM documents WHERE {where} LIMIT 1",
                params,
            )
            row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise UpstreamUnavailableError(f"Failed to query {collection}: {e}") from e

        if row is None:
            return None
        return json.loads(row[0])

    async def upsert(self, collection: str, key: str, document: dict[str, Any]) -> None:
        """Insert or replace the document stored under ``key``.

        The key is written into the document so it can be matched by filter.
        """
        payload = json.dumps({**document, "key": key})
        now_ms = int(time.time() * 1000)
        try:
            await self._database.db.execute(
                "INSERT OR REPLACE INTO documents (collection, key, document, updated_at) "
                "VALUES (?, ?, ?, ?)",
                (collection, key, payload, now_ms),
            )
            await self._database.db.commit()
        except aiosqlite.Error as e:
            raise UpstreamUnavailableError(f"Failed to write {collection}/{key}: {e}") from e
        logger.debug("document_upserted", collection=collection, key=key)
