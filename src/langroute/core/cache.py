"""Route table store module.

This module provides:
- Route table store interface
- Redis implementation sharing compiled tables between workers
- In-memory implementation for tests and single-process use

Stored values are RouteTable exports (plain nested mappings), so restoring
a table never recompiles its templates.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from langroute.core.table import RouteTable

logger = logging.getLogger(__name__)


class RouteTableStore(ABC):
    """Abstract base class for compiled route table storage."""

    @abstractmethod
    async def connect(self) -> None:
        """Open the connection to the backing store."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the connection to the backing store."""
        pass

    @abstractmethod
    async def get(self, key: str) -> Optional[RouteTable]:
        """Retrieve a table.

        Args:
            key: Table key

        Returns:
            RouteTable if found, None otherwise
        """
        pass

    @abstractmethod
    async def set(self, key: str, table: RouteTable, ttl: Optional[int] = None) -> bool:
        """Store a table.

        Args:
            key: Table key
            table: Table to store
            ttl: Expiration in seconds, None to keep it forever

        Returns:
            True if stored successfully, False otherwise
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete a table.

        Args:
            key: Table key

        Returns:
            True if a table was deleted, False otherwise
        """
        pass


class RedisRouteTableStore(RouteTableStore):
    """Redis-based route table store implementation."""

    def __init__(self, redis_url: str, key_prefix: str = "langroute:"):
        """Initialize Redis route table store.

        Args:
            redis_url: Redis connection URL
            key_prefix: Prefix for table keys
        """
        self.redis_url = redis_url
        self.key_prefix = key_prefix
        self.client: Optional[redis.Redis] = None

    async def connect(self) -> None:
        """Connect to Redis."""
        if self.client is None:
            self.client = await redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            logger.info(f"Connected to Redis route table store at {self.redis_url}")

    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        if self.client:
            await self.client.aclose()
            self.client = None
            logger.info("Disconnected from Redis route table store")

    def _table_key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    async def get(self, key: str) -> Optional[RouteTable]:
        if not self.client:
            raise RuntimeError("Route table store not connected")

        try:
            payload = await self.client.get(self._table_key(key))
        except RedisError as e:
            logger.error(f"Failed to get route table {key}: {e}")
            return None

        if not payload:
            return None

        try:
            return RouteTable.from_dict(json.loads(payload))
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Discarding corrupt route table {key}: {e}")
            return None

    async def set(self, key: str, table: RouteTable, ttl: Optional[int] = None) -> bool:
        if not self.client:
            raise RuntimeError("Route table store not connected")

        try:
            await self.client.set(self._table_key(key), json.dumps(table.to_dict()), ex=ttl)
            logger.debug(f"Stored route table {key} ({len(table)} routes)")
            return True
        except RedisError as e:
            logger.error(f"Failed to store route table {key}: {e}")
            return False

    async def delete(self, key: str) -> bool:
        if not self.client:
            raise RuntimeError("Route table store not connected")

        try:
            return bool(await self.client.delete(self._table_key(key)))
        except RedisError as e:
            logger.error(f"Failed to delete route table {key}: {e}")
            return False


class InMemoryRouteTableStore(RouteTableStore):
    """In-memory route table store for testing and development.

    Tables are kept as exports so that every get() returns a fresh copy,
    as the Redis store does.
    """

    def __init__(self) -> None:
        """Initialize in-memory route table store."""
        self.tables: Dict[str, str] = {}

    async def connect(self) -> None:
        """Connect (no-op for in-memory store)."""
        logger.info("In-memory route table store ready")

    async def disconnect(self) -> None:
        """Disconnect (clears stored tables)."""
        self.tables.clear()

    async def get(self, key: str) -> Optional[RouteTable]:
        payload = self.tables.get(key)
        if payload is None:
            return None
        return RouteTable.from_dict(json.loads(payload))

    async def set(self, key: str, table: RouteTable, ttl: Optional[int] = None) -> bool:
        self.tables[key] = json.dumps(table.to_dict())
        return True

    async def delete(self, key: str) -> bool:
        return self.tables.pop(key, None) is not None


def create_store(redis_url: Optional[str]) -> RouteTableStore:
    """Create a route table store (convenience function).

    Args:
        redis_url: Redis connection URL, None or "memory://" for the in-memory store

    Returns:
        RouteTableStore instance
    """
    if not redis_url or redis_url.startswith("memory://"):
        return InMemoryRouteTableStore()
    return RedisRouteTableStore(redis_url)
