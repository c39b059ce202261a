"""Per-serving nutrition cache repository."""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel

from recipe_keeper.database.repositories.base import (
    MISSING_OBJECT_ERRORS,
    BaseRepository,
)
from recipe_keeper.observability.logging import get_logger


logger = get_logger(__name__)

NUTRIENT_COLUMNS = (
    "calories",
    "protein_g",
    "fat_g",
    "carbs_g",
    "fiber_g",
    "sugar_g",
    "sodium_mg",
)


class CachedNutrition(BaseModel):
    """Per-serving values stored for one recipe at one serving count."""

    calories: float = 0
    protein_g: float = 0
    fat_g: float = 0
    carbs_g: float = 0
    fiber_g: float = 0
    sugar_g: float = 0
    sodium_mg: float = 0


class NutritionRepository(BaseRepository):
    """Data access for ``nutrition_cache``.

    Rows are keyed by recipe and the serving count as text. A database
    without the table behaves as an always-empty cache.
    """

    async def get(self, recipe_id: UUID, servings: int) -> CachedNutrition | None:
        try:
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"""
                    SELECT {", ".join(NUTRIENT_COLUMNS)} FROM nutrition_cache
                    WHERE recipe_id = $1 AND servings = $2
                    """,  # noqa: S608
                    recipe_id,
                    str(servings),
                )
        except MISSING_OBJECT_ERRORS:
            logger.warning("Nutrition cache not migrated", recipe_id=str(recipe_id))
            return None
        if row is None:
            return None
        return CachedNutrition(
            **{name: float(row[name] or 0) for name in NUTRIENT_COLUMNS}
        )

    async def upsert(
        self, recipe_id: UUID, servings: int, per_serving: CachedNutrition
    ) -> None:
        values = per_serving.model_dump()
        columns = ", ".join(NUTRIENT_COLUMNS)
        placeholders = ", ".join(f"${i}" for i in range(3, len(NUTRIENT_COLUMNS) + 3))
        updates = ", ".join(f"{name} = EXCLUDED.{name}" for name in NUTRIENT_COLUMNS)
        try:
            async with self.pool.acquire() as conn:
                await conn.execute(
                    f"""
                    INSERT INTO nutrition_cache (recipe_id, servings, {columns})
                    VALUES ($1, $2, {placeholders})
                    ON CONFLICT (recipe_id, servings) DO UPDATE SET {updates}
                    """,  # noqa: S608
                    recipe_id,
                    str(servings),
                    *(values[name] for name in NUTRIENT_COLUMNS),
                )
        except MISSING_OBJECT_ERRORS:
            logger.warning("Nutrition cache not migrated", recipe_id=str(recipe_id))

    async def delete_for_recipe(self, recipe_id: UUID) -> int:
        """Drop every cached serving count for a recipe."""
        try:
            async with self.pool.acquire() as conn:
                result = await conn.execute(
                    "DELETE FROM nutrition_cache WHERE recipe_id = $1", recipe_id
                )
        except MISSING_OBJECT_ERRORS:
            return 0
        return int(result.split()[-1])
