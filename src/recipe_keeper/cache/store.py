"""Small JSON cache on top of the Redis cache database."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import orjson
import redis.asyncio as redis

from recipe_keeper.cache.redis import get_cache_client
from recipe_keeper.observability.logging import get_logger


if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = get_logger(__name__)


class JsonCache:
    """Namespaced JSON values with a TTL.

    Every operation degrades to a cache miss when Redis is unavailable.
    """

    def __init__(self, prefix: str = "recipe-keeper") -> None:
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    async def get(self, key: str) -> Any | None:
        try:
            raw = await get_cache_client().get(self._key(key))
        except (RuntimeError, redis.RedisError):
            logger.debug("Cache unavailable on read", key=key)
            return None
        return orjson.loads(raw) if raw is not None else None

    async def set(self, key: str, value: Any, ttl: int = 300) -> bool:
        try:
            await get_cache_client().setex(self._key(key), ttl, orjson.dumps(value))
        except (RuntimeError, redis.RedisError):
            logger.debug("Cache unavailable on write", key=key)
            return False
        return True

    async def delete(self, key: str) -> bool:
        try:
            deleted = await get_cache_client().delete(self._key(key))
        except (RuntimeError, redis.RedisError):
            return False
        return deleted > 0

    async def get_or_set(
        self,
        key: str,
        producer: Callable[[], Awaitable[Any]],
        ttl: int = 300,
    ) -> Any:
        """Return the cached value, computing and storing it on a miss."""
        cached = await self.get(key)
        if cached is not None:
            logger.debug("Cache hit", key=key)
            return cached
        value = await producer()
        await self.set(key, value, ttl)
        return value


cache = JsonCache()
