"""Unit tests for recipe extraction prompts.

Tests cover:
- JSON extraction from raw, fenced and chatty replies
- ExtractedRecipe normalization
- Prompt rendering and generation config
"""

from __future__ import annotations

import pytest

from recipe_keeper.llm.exceptions import LLMValidationError
from recipe_keeper.llm.prompts import (
    ExtractedRecipe,
    RecipeImagePrompt,
    RecipeTextPrompt,
    extract_json_object,
)
from tests.fixtures.llm_responses import RECIPE_CARD_JSON


pytestmark = pytest.mark.unit


class TestExtractJsonObject:
    """Tests for extract_json_object."""

    def test_raw_json(self) -> None:
        assert extract_json_object('{"title": "Soup"}') == {"title": "Soup"}

    def test_fenced_json(self) -> None:
        """Should read a ```json fenced block."""
        text = 'Here you go:\n```json\n{"title": "Soup"}\n```\nEnjoy!'

        assert extract_json_object(text) == {"title": "Soup"}

    def test_braces_inside_prose(self) -> None:
        """Should fall back to the outermost brace span."""
        text = 'The recipe is {"title": "Soup", "servings": 4} as requested.'

        assert extract_json_object(text) == {"title": "Soup", "servings": 4}

    @pytest.mark.parametrize("text", ["no json here", "[1, 2, 3]", "{broken"])
    def test_raises_when_no_object(self, text: str) -> None:
        """Should raise LLMValidationError when nothing parses to an object."""
        with pytest.raises(LLMValidationError):
            extract_json_object(text)


class TestExtractedRecipe:
    """Tests for ExtractedRecipe normalization."""

    def test_joins_list_fields(self) -> None:
        recipe = ExtractedRecipe.model_validate(
            {"ingredients": ["1 cup flour", "2 eggs"], "instructions": ["Mix."]}
        )

        assert recipe.ingredients == "1 cup flour\n2 eggs"
        assert recipe.instructions == "Mix."

    def test_numeric_servings_become_text(self) -> None:
        assert ExtractedRecipe.model_validate({"servings": 6}).servings == "6"

    def test_minutes_read_from_text(self) -> None:
        recipe = ExtractedRecipe.model_validate(
            {"prep_time": "about 30 minutes", "cook_time": "overnight"}
        )

        assert recipe.prep_time == 30
        assert recipe.cook_time is None

    @pytest.mark.parametrize(("rating", "expected"), [(4, 4), (0, None), (9, None)])
    def test_rating_outside_range_dropped(
        self, rating: int, expected: int | None
    ) -> None:
        assert ExtractedRecipe.model_validate({"rating": rating}).rating == expected

    def test_confidence_counts_required_fields(self) -> None:
        """Should report the share of title, ingredients and instructions present."""
        full = ExtractedRecipe(title="Pie", ingredients="flour", instructions="Bake")
        partial = ExtractedRecipe(title="Pie")

        assert full.confidence == 1.0
        assert partial.confidence == pytest.approx(1 / 3)
        assert ExtractedRecipe().confidence == 0.0


class TestRecipeImagePrompt:
    """Tests for RecipeImagePrompt."""

    def test_single_page_prompt(self) -> None:
        text = RecipeImagePrompt().format(page_count=1)

        assert "Analyze this recipe image" in text
        assert "images show different pages" not in text

    def test_multi_page_prompt(self) -> None:
        """Should ask the model to combine every page."""
        text = RecipeImagePrompt().format(page_count=3)

        assert "These 3 images" in text
        assert "ALL images" in text

    def test_generation_config(self) -> None:
        config = RecipeImagePrompt().get_generation_config()

        assert config.temperature == 0.1
        assert config.top_p == 0.95
        assert config.top_k == 40
        assert config.max_output_tokens == 2048

    def test_parse_reply(self) -> None:
        recipe = RecipeImagePrompt().parse(f"```json\n{RECIPE_CARD_JSON}\n```")

        assert recipe.title == "Grandma's Apple Pie"
        assert recipe.prep_time == 30
        assert recipe.cook_time == 50
        assert recipe.servings == "8"
        assert recipe.ingredients.startswith("2 1/2 cups flour\n")
        assert recipe.rating == 5


class TestRecipeTextPrompt:
    """Tests for RecipeTextPrompt."""

    def test_embeds_text(self) -> None:
        text = RecipeTextPrompt().format(text="Mix flour and water.")

        assert "Recipe Text:\nMix flour and water." in text

    def test_parse_rejects_non_json(self) -> None:
        with pytest.raises(LLMValidationError):
            RecipeTextPrompt().parse("Sorry, no recipe found.")

    def test_name(self) -> None:
        assert RecipeTextPrompt().name == "RecipeTextPrompt"
