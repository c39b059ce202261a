"""Recipe nutrition from USDA FoodData Central."""

from recipe_keeper.services.nutrition.calculator import (
    NutritionFacts,
    RecipeNutrition,
    calculate_recipe_nutrition,
    parse_servings,
)
from recipe_keeper.services.nutrition.client import FoodMatch, NutritionClient
from recipe_keeper.services.nutrition.exceptions import (
    NutritionError,
    NutritionUnavailableError,
)


__all__ = [
    "FoodMatch",
    "NutritionClient",
    "NutritionError",
    "NutritionFacts",
    "NutritionUnavailableError",
    "RecipeNutrition",
    "calculate_recipe_nutrition",
    "parse_servings",
]
