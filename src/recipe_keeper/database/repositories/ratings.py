"""Recipe rating repository."""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel

from recipe_keeper.database.repositories.base import (
    MISSING_OBJECT_ERRORS,
    BaseRepository,
)
from recipe_keeper.observability.logging import get_logger


logger = get_logger(__name__)


class RatingStats(BaseModel):
    """Aggregate rating for a recipe."""

    average_rating: float | None = None
    rating_count: int = 0


class RatingRepository(BaseRepository):
    """Data access for ``recipe_ratings``."""

    async def get_stats(self, recipe_id: UUID) -> RatingStats:
        """Average and count via ``get_recipe_average_rating``.

        Databases that predate the ratings migration report no ratings
        rather than failing the request.
        """
        try:
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(
                    """
                    SELECT average_rating, rating_count
                    FROM get_recipe_average_rating(recipe_uuid => $1)
                    """,
                    recipe_id,
                )
        except MISSING_OBJECT_ERRORS:
            logger.warning("Ratings schema not migrated", recipe_id=str(recipe_id))
            return RatingStats()
        if row is None:
            return RatingStats()
        average = row["average_rating"]
        return RatingStats(
            average_rating=float(average) if average is not None else None,
            rating_count=row["rating_count"] or 0,
        )

    async def get_user_rating(self, recipe_id: UUID, user_id: UUID) -> int | None:
        try:
            async with self.pool.acquire() as conn:
                return await conn.fetchval(
                    """
                    SELECT rating FROM recipe_ratings
                    WHERE recipe_id = $1 AND user_id = $2
                    """,
                    recipe_id,
                    user_id,
                )
        except MISSING_OBJECT_ERRORS:
            return None

    async def upsert(self, recipe_id: UUID, user_id: UUID, rating: int) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute(
                """
                INSERT INTO recipe_ratings (recipe_id, user_id, rating)
                VALUES ($1, $2, $3)
                ON CONFLICT (recipe_id, user_id)
                DO UPDATE SET rating = EXCLUDED.rating, updated_at = NOW()
                """,
                recipe_id,
                user_id,
                rating,
            )

    async def delete(self, recipe_id: UUID, user_id: UUID) -> bool:
        async with self.pool.acquire() as conn:
            result = await conn.execute(
                "DELETE FROM recipe_ratings WHERE recipe_id = $1 AND user_id = $2",
                recipe_id,
                user_id,
            )
        return result != "DELETE 0"
