"""Key-value cache for memoised exchange metadata.

Values are JSON strings. The in-memory implementation is async-safe via
asyncio.Lock and gives each key its own entry, so concurrent evaluations of
different symbols never see each other's values.
"""

import asyncio
from abc import ABC, abstractmethod

from trailtrade.logging import get_logger

logger = get_logger(__name__)


class CacheStore(ABC):
    """Abstract key-value cache holding JSON strings."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the cached JSON string for ``key``, or None on a miss."""
        ...

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store a JSON string under ``key``."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove ``key`` if present."""
        ...


class InMemoryCacheStore(CacheStore):
    """Process-local cache backed by a dict."""

    def __init__(self) -> None:
        self._values: dict[str, str] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> str | None:
        async with self._lock:
            return self._values.get(key)

    async def set(self, key: str, value: str) -> None:
        async with self._lock:
            self._values[key] = value
        logger.debug("cache_set", key=key)

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._values.pop(key, None)
