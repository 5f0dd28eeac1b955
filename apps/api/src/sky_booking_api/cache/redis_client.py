"""Redis connection pool and the key-value store the booking saga runs on."""

from __future__ import annotations

import abc
import logging

import redis.asyncio as redis

logger = logging.getLogger(__name__)

redis_pool: redis.Redis | None = None


async def init_redis(url: str) -> None:
    """Create the shared Redis connection pool."""
    global redis_pool
    redis_pool = redis.from_url(url, decode_responses=True)
    logger.info("Redis pool initialised: %s", url)


async def close_redis() -> None:
    """Gracefully close the Redis pool."""
    global redis_pool
    if redis_pool is not None:
        await redis_pool.aclose()
        redis_pool = None
        logger.info("Redis pool closed")


async def get_redis_pool() -> redis.Redis:
    """Return the active Redis connection (raises if not initialised)."""
    if redis_pool is None:
        msg = "Redis pool has not been initialised"
        raise RuntimeError(msg)
    return redis_pool


class KeyValueStore(abc.ABC):
    """String key-value store with per-key TTL."""

    @abc.abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the stored value, or None when absent or expired."""

    @abc.abstractmethod
    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store *value* under *key* for *ttl_seconds*."""

    @abc.abstractmethod
    async def keys(self, pattern: str) -> list[str]:
        """Return keys matching a glob-style *pattern*."""


class RedisKeyValueStore(KeyValueStore):
    """:class:`KeyValueStore` backed by a ``redis.asyncio`` client."""

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    async def get(self, key: str) -> str | None:
        raw = await self._client.get(key)
        if raw is None:
            return None
        return raw.decode() if isinstance(raw, bytes) else raw

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        await self._client.set(key, value, ex=ttl_seconds)

    async def keys(self, pattern: str) -> list[str]:
        found: list[str] = []
        async for key in self._client.scan_iter(match=pattern):
            found.append(key.decode() if isinstance(key, bytes) else key)
        return found
