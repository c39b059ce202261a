"""Public share link repository."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from pydantic import BaseModel

from recipe_keeper.database.repositories.base import BaseRepository


if TYPE_CHECKING:
    from asyncpg import Record


class ShareData(BaseModel):
    """A row from ``shared_recipes``."""

    id: UUID
    recipe_id: UUID
    shared_by: UUID | None = None
    share_token: str
    expires_at: datetime | None = None
    view_count: int = 0
    created_at: datetime | None = None


class ShareRepository(BaseRepository):
    """Data access for ``shared_recipes``."""

    async def get_for_recipe(self, recipe_id: UUID) -> ShareData | None:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                SELECT * FROM shared_recipes
                WHERE recipe_id = $1
                ORDER BY created_at ASC
                LIMIT 1
                """,
                recipe_id,
            )
        return self._row_to_share(row) if row else None

    async def list_for_recipe(self, recipe_id: UUID) -> list[ShareData]:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                "SELECT * FROM shared_recipes WHERE recipe_id = $1 ORDER BY created_at",
                recipe_id,
            )
        return [self._row_to_share(row) for row in rows]

    async def get_by_token(self, token: str) -> ShareData | None:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT * FROM shared_recipes WHERE share_token = $1", token
            )
        return self._row_to_share(row) if row else None

    async def create(self, recipe_id: UUID, shared_by: UUID, token: str) -> ShareData:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                INSERT INTO shared_recipes (recipe_id, shared_by, share_token)
                VALUES ($1, $2, $3)
                RETURNING *
                """,
                recipe_id,
                shared_by,
                token,
            )
        return self._row_to_share(row)

    async def delete_for_recipe(self, recipe_id: UUID) -> int:
        async with self.pool.acquire() as conn:
            result = await conn.execute(
                "DELETE FROM shared_recipes WHERE recipe_id = $1", recipe_id
            )
        return int(result.split()[-1])

    async def increment_view_count(self, token: str) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute("SELECT increment_share_view_count(token => $1)", token)

    @staticmethod
    def _row_to_share(row: Record) -> ShareData:
        return ShareData(**dict(row))
