"""Prompt definitions."""

from recipe_keeper.llm.prompts.base import BasePrompt, extract_json_object
from recipe_keeper.llm.prompts.recipe_extraction import (
    ExtractedRecipe,
    RecipeImagePrompt,
    RecipeTextPrompt,
)
from recipe_keeper.llm.prompts.recipe_variation import (
    RecipeVariation,
    RecipeVariationPrompt,
    VariationSet,
    VariationType,
)


__all__ = [
    "BasePrompt",
    "ExtractedRecipe",
    "RecipeImagePrompt",
    "RecipeTextPrompt",
    "RecipeVariation",
    "RecipeVariationPrompt",
    "VariationSet",
    "VariationType",
    "extract_json_object",
]
