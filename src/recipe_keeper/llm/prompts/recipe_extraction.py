"""Prompts that turn recipe cards, photos and PDF text into recipe fields."""

from __future__ import annotations

import re
from typing import Any, ClassVar

from pydantic import BaseModel, field_validator

from recipe_keeper.llm.prompts.base import BasePrompt


CATEGORIES = (
    "Breakfast, Lunch, Dinner, Dessert, Appetizer, Snack, Beverage, Salad, "
    "Soup, Side Dish, Main Course, Baking, Other"
)

REQUIRED_FIELDS = ("title", "ingredients", "instructions")


class ExtractedRecipe(BaseModel):
    """Recipe fields read by the model; any of them may be missing."""

    title: str | None = None
    category: str | None = None
    prep_time: int | None = None
    cook_time: int | None = None
    servings: str | None = None
    ingredients: str | None = None
    instructions: str | None = None
    notes: str | None = None
    source: str | None = None
    rating: int | None = None

    @field_validator("ingredients", "instructions", mode="before")
    @classmethod
    def _join_lines(cls, value: Any) -> Any:
        if isinstance(value, list):
            return "\n".join(str(line) for line in value)
        return value

    @field_validator("servings", mode="before")
    @classmethod
    def _servings_as_text(cls, value: Any) -> Any:
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @field_validator("prep_time", "cook_time", mode="before")
    @classmethod
    def _minutes(cls, value: Any) -> Any:
        if isinstance(value, str):
            number = re.search(r"\d+", value)
            return int(number.group()) if number else None
        return value

    @field_validator("rating", mode="before")
    @classmethod
    def _rating_in_range(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and 1 <= value <= 5:
            return int(value)
        return None

    @property
    def confidence(self) -> float:
        """Share of the required fields the model managed to fill."""
        present = sum(1 for field in REQUIRED_FIELDS if getattr(self, field))
        return present / len(REQUIRED_FIELDS)


_FIELDS = f"""- title: Recipe name/title
- category: Type of dish (choose from: {CATEGORIES})
- prep_time: Preparation time in minutes (number only, no units)
- cook_time: Cooking time in minutes (number only, no units)
- servings: Number of servings or yield (e.g., "4-6 servings")
- ingredients: {{ingredients}}
- instructions: {{instructions}}
- notes: Any tips, substitutions, or special notes
- source: Where the recipe is from (cookbook, website, person's name, etc.)
- rating: If there's a rating visible (1-5), otherwise null"""

_RAW_JSON_ONLY = (
    "IMPORTANT: Return ONLY a valid JSON object. Do not include any markdown "
    "formatting, code blocks, or explanatory text. Just the raw JSON."
)


class RecipeImagePrompt(BasePrompt[ExtractedRecipe]):
    """Read a recipe from one or more photographed pages."""

    output_schema: ClassVar[type[BaseModel]] = ExtractedRecipe
    temperature: ClassVar[float] = 0.1
    top_p: ClassVar[float | None] = 0.95
    top_k: ClassVar[int | None] = 40
    max_tokens: ClassVar[int | None] = 2048

    def format(self, **kwargs: Any) -> str:
        page_count: int = kwargs.get("page_count", 1)
        if page_count > 1:
            fields = _FIELDS.format(
                ingredients="ALL ingredients from ALL images, one per line (use \\n for line breaks)",
                instructions="ALL steps from ALL images (use \\n for line breaks)",
            )
            return (
                f"You are a recipe extraction assistant. These {page_count} images "
                "show different pages of the same recipe (e.g., front and back of a "
                "recipe card). Analyze ALL images together and extract the complete "
                "recipe information into a structured JSON format.\n\n"
                "IMPORTANT: Combine information from ALL images. Don't miss any "
                "ingredients or steps that appear on different pages.\n\n"
                f"Extract the following fields:\n{fields}\n\n{_RAW_JSON_ONLY}"
            )

        fields = _FIELDS.format(
            ingredients="List of ingredients, one per line (use \\n for line breaks)",
            instructions="Step-by-step cooking instructions (use \\n for line breaks)",
        )
        return (
            "You are a recipe extraction assistant. Analyze this recipe image and "
            "extract all recipe information into a structured JSON format.\n\n"
            f"Extract the following fields:\n{fields}\n\n{_RAW_JSON_ONLY}\n\n"
            "If a field cannot be determined from the image, use null for that field."
        )


class RecipeTextPrompt(BasePrompt[ExtractedRecipe]):
    """Read a recipe from text extracted from a PDF or pasted by the user."""

    output_schema: ClassVar[type[BaseModel]] = ExtractedRecipe
    temperature: ClassVar[float] = 0.1
    max_tokens: ClassVar[int | None] = 2048

    def format(self, **kwargs: Any) -> str:
        text: str = kwargs["text"]
        return (
            "You are a recipe extraction assistant. Parse this recipe text and "
            "extract all information into a structured JSON format.\n\n"
            f"Recipe Text:\n{text}\n\n"
            "Extract the following fields (return ONLY valid JSON, no markdown or "
            "explanations):\n"
            "- title: Recipe name/title\n"
            "- category: Type of dish\n"
            "- prep_time: Preparation time in minutes (number only)\n"
            "- cook_time: Cooking time in minutes (number only)\n"
            "- servings: Number of servings\n"
            "- ingredients: List of ingredients (use \\n for line breaks)\n"
            "- instructions: Step-by-step instructions (use \\n for line breaks)\n"
            "- notes: Any tips or notes\n"
            "- source: Recipe source\n"
            "- rating: Rating (1-5) or null\n\n"
            "Return ONLY the JSON object."
        )
