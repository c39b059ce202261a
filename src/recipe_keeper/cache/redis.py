"""Redis connection management.

Two logical databases are used: one for short-lived JSON caches and one
for rate-limit windows. Both are optional at runtime; callers treat a
missing client as "feature degraded", never as a hard failure.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool

from recipe_keeper.core.config import get_settings
from recipe_keeper.observability.logging import get_logger


if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = get_logger(__name__)

_cache_client: Redis[Any] | None = None
_rate_limit_client: Redis[Any] | None = None


async def init_redis_pools() -> None:
    """Create the cache and rate-limit clients and verify connectivity.

    Raises:
        redis.ConnectionError: If Redis cannot be reached.
    """
    global _cache_client, _rate_limit_client  # noqa: PLW0603

    settings = get_settings()
    logger.info(
        "Initializing Redis connections",
        host=settings.redis.host,
        port=settings.redis.port,
    )

    _cache_client = redis.Redis(
        connection_pool=ConnectionPool.from_url(
            settings.redis_cache_url, max_connections=20, decode_responses=True
        )
    )
    _rate_limit_client = redis.Redis(
        connection_pool=ConnectionPool.from_url(
            settings.redis_rate_limit_url, max_connections=5, decode_responses=True
        )
    )

    try:
        await _cache_client.ping()
        await _rate_limit_client.ping()
    except redis.ConnectionError:
        logger.exception("Failed to connect to Redis")
        await close_redis_pools()
        raise
    logger.info("Redis connections established")


async def close_redis_pools() -> None:
    """Close both clients and their pools."""
    global _cache_client, _rate_limit_client  # noqa: PLW0603

    for client in (_cache_client, _rate_limit_client):
        if client is not None:
            await client.aclose(close_connection_pool=True)
    _cache_client = None
    _rate_limit_client = None
    logger.info("Redis connections closed")


def get_cache_client() -> Redis[Any]:
    """Get the cache Redis client.

    Raises:
        RuntimeError: If Redis is not initialized.
    """
    if _cache_client is None:
        msg = "Redis cache client not initialized. Call init_redis_pools() first."
        raise RuntimeError(msg)
    return _cache_client


async def check_redis_health() -> dict[str, str]:
    """Ping each Redis database and report its status."""
    results: dict[str, str] = {}
    for name, client in (
        ("redis_cache", _cache_client),
        ("redis_rate_limit", _rate_limit_client),
    ):
        if client is None:
            results[name] = "not_initialized"
            continue
        try:
            await client.ping()
            results[name] = "healthy"
        except (redis.ConnectionError, redis.TimeoutError):
            results[name] = "unhealthy"
    return results
