"""Recipe gallery image repository."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from pydantic import BaseModel

from recipe_keeper.database.repositories.base import BaseRepository, build_update


if TYPE_CHECKING:
    from asyncpg import Record


class RecipeImageData(BaseModel):
    """A row from ``recipe_images``, plus the owning recipe's user."""

    id: UUID
    recipe_id: UUID
    image_url: str
    caption: str | None = None
    display_order: int = 0
    created_at: datetime | None = None
    owner_id: UUID | None = None


_EDITABLE = frozenset({"caption", "display_order", "image_url"})


class RecipeImageRepository(BaseRepository):
    """Data access for ``recipe_images``."""

    async def list_for_recipe(self, recipe_id: UUID) -> list[RecipeImageData]:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT * FROM recipe_images
                WHERE recipe_id = $1
                ORDER BY display_order ASC
                """,
                recipe_id,
            )
        return [self._row_to_image(row) for row in rows]

    async def get(self, image_id: UUID) -> RecipeImageData | None:
        """Fetch an image together with the owner of its recipe."""
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                SELECT i.*, r.user_id AS owner_id
                FROM recipe_images i
                JOIN recipes r ON r.id = i.recipe_id
                WHERE i.id = $1
                """,
                image_id,
            )
        return self._row_to_image(row) if row else None

    async def add(
        self,
        recipe_id: UUID,
        image_url: str,
        caption: str | None = None,
    ) -> RecipeImageData:
        """Append an image after the current last one."""
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                INSERT INTO recipe_images (recipe_id, image_url, caption, display_order)
                VALUES (
                    $1, $2, $3,
                    (SELECT COALESCE(MAX(display_order), -1) + 1
                     FROM recipe_images WHERE recipe_id = $1)
                )
                RETURNING *
                """,
                recipe_id,
                image_url,
                caption,
            )
        return self._row_to_image(row)

    async def update(
        self, image_id: UUID, fields: dict[str, object]
    ) -> RecipeImageData | None:
        assignments, args = build_update(fields, _EDITABLE, start=2)
        if not assignments:
            return await self.get(image_id)
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                f"UPDATE recipe_images SET {assignments} WHERE id = $1 RETURNING *",  # noqa: S608
                image_id,
                *args,
            )
        return self._row_to_image(row) if row else None

    async def delete(self, image_id: UUID) -> bool:
        async with self.pool.acquire() as conn:
            result = await conn.execute("DELETE FROM recipe_images WHERE id = $1", image_id)
        return result != "DELETE 0"

    @staticmethod
    def _row_to_image(row: Record) -> RecipeImageData:
        return RecipeImageData(**dict(row))
