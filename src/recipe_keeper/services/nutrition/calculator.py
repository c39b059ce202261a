"""Estimate a recipe's nutrition from its ingredient list.

Each line is parsed with the same rules as ingredient scaling, looked up
by name in FoodData Central and converted to grams. Volumes are treated
as having the density of water, and counts ("2 eggs") as one gram each,
so the result is a rough estimate.
"""

from __future__ import annotations

import math
import re
from typing import TYPE_CHECKING

from pydantic import BaseModel

from recipe_keeper.observability.logging import get_logger
from recipe_keeper.parsing import parse_ingredient_line
from recipe_keeper.services.nutrition.exceptions import NutritionError


if TYPE_CHECKING:
    from recipe_keeper.services.nutrition.client import FoodMatch, NutritionClient


logger = get_logger(__name__)

# FoodData Central nutrient ids.
NUTRIENT_IDS = {
    1008: "calories",
    1003: "protein_g",
    1004: "fat_g",
    1005: "carbs_g",
    1079: "fiber_g",
    2000: "sugar_g",
    1093: "sodium_mg",
}

# Reported as whole numbers; everything else to one decimal place.
_WHOLE = frozenset({"calories", "sodium_mg"})

_GRAMS_PER_UNIT = {
    "g": 1.0,
    "gram": 1.0,
    "grams": 1.0,
    "kg": 1000.0,
    "kilogram": 1000.0,
    "kilograms": 1000.0,
    "oz": 28.35,
    "ounce": 28.35,
    "ounces": 28.35,
    "lb": 453.592,
    "lbs": 453.592,
    "pound": 453.592,
    "pounds": 453.592,
    "#": 453.592,
    "ml": 1.0,
    "milliliter": 1.0,
    "milliliters": 1.0,
    "l": 1000.0,
    "liter": 1000.0,
    "liters": 1000.0,
    "c": 240.0,
    "cup": 240.0,
    "cups": 240.0,
    "tbsp": 15.0,
    "tablespoon": 15.0,
    "tablespoons": 15.0,
    "tsp": 5.0,
    "teaspoon": 5.0,
    "teaspoons": 5.0,
    "fl oz": 30.0,
    "pt": 473.0,
    "pint": 473.0,
    "pints": 473.0,
    "qt": 946.0,
    "quart": 946.0,
    "quarts": 946.0,
}

_NUMBER = re.compile(r"\d+")
_NOTE = re.compile(r"\(.*?\)|,.*$")


class NutritionFacts(BaseModel):
    calories: float = 0
    protein_g: float = 0
    fat_g: float = 0
    carbs_g: float = 0
    fiber_g: float = 0
    sugar_g: float = 0
    sodium_mg: float = 0

    def __add__(self, other: NutritionFacts) -> NutritionFacts:
        return NutritionFacts(
            **{
                name: getattr(self, name) + getattr(other, name)
                for name in NutritionFacts.model_fields
            }
        )


class RecipeNutrition(BaseModel):
    total: NutritionFacts
    per_serving: NutritionFacts
    servings: int
    ingredients_processed: int = 0
    ingredients_total: int = 0
    cached: bool = False


def extract_nutrients(food: FoodMatch) -> NutritionFacts:
    """Nutrients per 100 g of ``food``; missing ones are zero."""
    return NutritionFacts(
        **{
            field: food.nutrients[nutrient_id]
            for nutrient_id, field in NUTRIENT_IDS.items()
            if nutrient_id in food.nutrients
        }
    )


def convert_to_grams(quantity: float, unit: str) -> float:
    """Weight of ``quantity`` ``unit``; unknown units count one gram each."""
    normalized = unit.lower().strip().rstrip(".")
    return quantity * _GRAMS_PER_UNIT.get(normalized, 1.0)


def _round_half_up(value: float, digits: int = 0) -> float:
    scale = 10**digits
    return math.floor(value * scale + 0.5) / scale


def scale_nutrition(
    facts: NutritionFacts, base_amount: float, target_amount: float
) -> NutritionFacts:
    factor = target_amount / base_amount
    scaled = {}
    for name in NutritionFacts.model_fields:
        value = getattr(facts, name) * factor
        scaled[name] = _round_half_up(value, 0 if name in _WHOLE else 1)
    return NutritionFacts(**scaled)


def parse_servings(text: str | None, default: int) -> int:
    """First whole number in a servings text such as "4-6 servings"."""
    match = _NUMBER.search(text or "")
    if match is None or int(match.group()) == 0:
        return default
    return int(match.group())


def search_term(ingredient: str) -> str:
    """Ingredient name without preparation notes: "butter, softened" -> "butter"."""
    return _NOTE.sub("", ingredient).strip() or ingredient


async def calculate_recipe_nutrition(
    ingredients: str, servings: int, client: NutritionClient
) -> RecipeNutrition:
    """Add up the nutrition of every ingredient line that can be matched.

    Lines without a quantity, and foods the database does not know, are
    skipped. A failed lookup only skips its own line, unless every lookup
    fails, in which case the last error is raised.

    Raises:
        NutritionError: If no ingredient could be looked up at all.
    """
    lines = [line.strip() for line in ingredients.split("\n") if line.strip()]
    total = NutritionFacts()
    processed = 0
    attempted = 0
    failures: list[NutritionError] = []

    for line in lines:
        parsed = parse_ingredient_line(line)
        if parsed.quantity == 0:
            continue

        attempted += 1
        try:
            food = await client.search_food(search_term(parsed.ingredient))
        except NutritionError as e:
            logger.warning("Nutrition lookup failed", ingredient=line, error=str(e))
            failures.append(e)
            continue
        if food is None:
            logger.debug("No nutrition match", ingredient=line)
            continue

        grams = convert_to_grams(float(parsed.quantity), parsed.unit)
        total += scale_nutrition(extract_nutrients(food), 100, grams)
        processed += 1

    if failures and len(failures) == attempted:
        raise failures[-1]

    logger.info(
        "Recipe nutrition calculated",
        ingredients_processed=processed,
        ingredients_total=len(lines),
        servings=servings,
    )
    total = scale_nutrition(total, 1, 1)
    return RecipeNutrition(
        total=total,
        per_serving=scale_nutrition(total, servings, 1),
        servings=servings,
        ingredients_processed=processed,
        ingredients_total=len(lines),
    )
