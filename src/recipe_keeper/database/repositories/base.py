"""Shared plumbing for asyncpg repositories."""

from __future__ import annotations

from typing import TYPE_CHECKING

import asyncpg

from recipe_keeper.database.connection import get_database_pool


if TYPE_CHECKING:
    from asyncpg import Pool


# SQLSTATEs for objects that only exist once a migration has been applied.
MISSING_OBJECT_ERRORS = (asyncpg.UndefinedTableError, asyncpg.UndefinedFunctionError)


class BaseRepository:
    """Holds an optional pool, falling back to the application pool."""

    def __init__(self, pool: Pool | None = None) -> None:
        """Initialize repository with optional connection pool.

        Args:
            pool: asyncpg connection pool. If None, uses global pool.
        """
        self._pool = pool

    @property
    def pool(self) -> Pool:
        """Get the database connection pool."""
        if self._pool is not None:
            return self._pool
        return get_database_pool()


def build_update(
    fields: dict[str, object],
    allowed: frozenset[str],
    *,
    start: int = 1,
) -> tuple[str, list[object]]:
    """Render ``col = $n`` assignments for whitelisted columns.

    Args:
        fields: Column values to set.
        allowed: Columns callers may update.
        start: Index of the first placeholder.

    Returns:
        The SET clause body and its arguments, in placeholder order.
    """
    assignments: list[str] = []
    args: list[object] = []
    for column, value in fields.items():
        if column not in allowed:
            continue
        args.append(value)
        assignments.append(f"{column} = ${start + len(args) - 1}")
    return ", ".join(assignments), args
