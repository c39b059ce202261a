"""Recipe nutrition schemas."""

from __future__ import annotations

from recipe_keeper.schemas.base import APIResponse


class NutritionValues(APIResponse):
    calories: float = 0
    protein_g: float = 0
    fat_g: float = 0
    carbs_g: float = 0
    fiber_g: float = 0
    sugar_g: float = 0
    sodium_mg: float = 0


class RecipeNutritionResponse(APIResponse):
    """Estimated nutrition for a recipe.

    Cached results report zero for both ingredient counts.
    """

    total: NutritionValues
    per_serving: NutritionValues
    servings: int
    ingredients_processed: int = 0
    ingredients_total: int = 0
    cached: bool = False
