"""PostgreSQL connection pool management.

The pool pins ``search_path`` to the configured schema so queries can use
unqualified table names, and decodes ``json``/``jsonb`` columns with orjson.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import asyncpg
import orjson

from recipe_keeper.core.config import get_settings
from recipe_keeper.observability.logging import get_logger


if TYPE_CHECKING:
    from asyncpg import Connection, Pool

logger = get_logger(__name__)

_pool: Pool | None = None


def _encode_json(value: object) -> str:
    return orjson.dumps(value).decode()


async def _init_connection(conn: Connection) -> None:
    for type_name in ("json", "jsonb"):
        await conn.set_type_codec(
            type_name,
            encoder=_encode_json,
            decoder=orjson.loads,
            schema="pg_catalog",
        )


async def init_database_pool() -> None:
    """Create the connection pool and verify it with ``SELECT 1``.

    Raises:
        asyncpg.PostgresError: If the database rejects the connection.
        OSError: If the database host is unreachable.
    """
    global _pool  # noqa: PLW0603

    settings = get_settings()
    db = settings.database
    logger.info(
        "Initializing database connection pool",
        host=db.host,
        port=db.port,
        database=db.name,
        schema=db.db_schema,
    )

    _pool = await asyncpg.create_pool(
        host=db.host,
        port=db.port,
        database=db.name,
        user=db.user,
        password=settings.DATABASE_PASSWORD or None,
        min_size=db.min_pool_size,
        max_size=db.max_pool_size,
        command_timeout=db.command_timeout,
        statement_cache_size=db.statement_cache_size,
        ssl="require" if db.ssl else None,
        server_settings={"search_path": f"{db.db_schema},public"},
        init=_init_connection,
    )

    async with _pool.acquire() as conn:
        await conn.fetchval("SELECT 1")
    logger.info("Database connection established")


async def close_database_pool() -> None:
    """Close the connection pool, if open."""
    global _pool  # noqa: PLW0603

    if _pool is not None:
        await _pool.close()
        _pool = None
    logger.info("Database connection pool closed")


def get_database_pool() -> Pool:
    """Get the database connection pool.

    Raises:
        RuntimeError: If pool is not initialized.
    """
    if _pool is None:
        msg = "Database pool not initialized. Call init_database_pool() first."
        raise RuntimeError(msg)
    return _pool


async def check_database_health() -> dict[str, str]:
    """Report whether the pool can run a trivial query."""
    if _pool is None:
        return {"database": "not_initialized"}
    try:
        async with _pool.acquire() as conn:
            await conn.fetchval("SELECT 1")
    except (asyncpg.PostgresError, OSError):
        logger.warning("Database health check failed")
        return {"database": "unhealthy"}
    return {"database": "healthy"}
