"""Ingredient parsing and scaling."""

from recipe_keeper.parsing.ingredient_scaler import (
    ParsedIngredient,
    calculate_multiplier,
    format_quantity,
    parse_ingredient_line,
    parse_quantity,
    scale_ingredient,
    scale_ingredients,
)


__all__ = [
    "ParsedIngredient",
    "calculate_multiplier",
    "format_quantity",
    "parse_ingredient_line",
    "parse_quantity",
    "scale_ingredient",
    "scale_ingredients",
]
