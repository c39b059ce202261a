"""Recipe comment repository."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from pydantic import BaseModel

from recipe_keeper.database.repositories.base import BaseRepository


if TYPE_CHECKING:
    from asyncpg import Record


class CommentData(BaseModel):
    """A row from ``recipe_comments`` with the author's display name."""

    id: UUID
    recipe_id: UUID
    user_id: UUID
    parent_id: UUID | None = None
    content: str
    created_at: datetime
    updated_at: datetime | None = None
    author_name: str | None = None


_SELECT = """
    SELECT c.id, c.recipe_id, c.user_id, c.parent_id, c.content,
           c.created_at, c.updated_at,
           COALESCE(NULLIF(p.full_name, ''), split_part(p.email, '@', 1)) AS author_name
    FROM recipe_comments c
    LEFT JOIN profiles p ON p.id = c.user_id
"""


class CommentRepository(BaseRepository):
    """Data access for ``recipe_comments``."""

    async def list_for_recipe(self, recipe_id: UUID) -> list[CommentData]:
        """All comments on a recipe, oldest first."""
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                f"{_SELECT} WHERE c.recipe_id = $1 ORDER BY c.created_at ASC",  # noqa: S608
                recipe_id,
            )
        return [self._row_to_comment(row) for row in rows]

    async def get(self, comment_id: UUID) -> CommentData | None:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(f"{_SELECT} WHERE c.id = $1", comment_id)  # noqa: S608
        return self._row_to_comment(row) if row else None

    async def create(
        self,
        recipe_id: UUID,
        user_id: UUID,
        content: str,
        parent_id: UUID | None = None,
    ) -> CommentData:
        async with self.pool.acquire() as conn:
            comment_id = await conn.fetchval(
                """
                INSERT INTO recipe_comments (recipe_id, user_id, parent_id, content)
                VALUES ($1, $2, $3, $4)
                RETURNING id
                """,
                recipe_id,
                user_id,
                parent_id,
                content,
            )
            row = await conn.fetchrow(f"{_SELECT} WHERE c.id = $1", comment_id)  # noqa: S608
        return self._row_to_comment(row)

    async def update_content(
        self, comment_id: UUID, user_id: UUID, content: str
    ) -> bool:
        async with self.pool.acquire() as conn:
            result = await conn.execute(
                """
                UPDATE recipe_comments SET content = $3, updated_at = NOW()
                WHERE id = $1 AND user_id = $2
                """,
                comment_id,
                user_id,
                content,
            )
        return result != "UPDATE 0"

    async def delete(self, comment_id: UUID, user_id: UUID) -> bool:
        async with self.pool.acquire() as conn:
            result = await conn.execute(
                "DELETE FROM recipe_comments WHERE id = $1 AND user_id = $2",
                comment_id,
                user_id,
            )
        return result != "DELETE 0"

    @staticmethod
    def _row_to_comment(row: Record) -> CommentData:
        return CommentData(**dict(row))
