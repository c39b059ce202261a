"""Unit tests for the recipe variation prompt."""

from __future__ import annotations

import pytest

from recipe_keeper.llm.exceptions import LLMValidationError
from recipe_keeper.llm.prompts import (
    RecipeVariationPrompt,
    VariationSet,
    VariationType,
)
from tests.factories.records import RecipeDataFactory


pytestmark = pytest.mark.unit

VARIATION = (
    '{"title": "Vegan Apple Pie", "ingredients": ["2 1/2 cups flour", '
    '"1 cup coconut oil"], "instructions": "Make the crust.\\nBake.", '
    '"prep_time": "20 minutes", "servings": 8, "key_changes": "Coconut oil"}'
)


class TestFormat:
    """Tests for RecipeVariationPrompt.format."""

    def test_includes_recipe_and_count(self) -> None:
        recipe = RecipeDataFactory.build(prep_time=None, notes=None)

        text = RecipeVariationPrompt().format(
            recipe=recipe, variation_type=VariationType.TECHNIQUE, count=2
        )

        assert "Title: Grandma's Apple Pie" in text
        assert "Prep Time: Not specified minutes" in text
        assert "2 1/2 cups flour" in text
        assert "Generate 2 COOKING TECHNIQUE variations" in text
        assert "exactly 2 variations" in text

    def test_dietary_target(self) -> None:
        text = RecipeVariationPrompt().format(
            recipe=RecipeDataFactory.build(),
            variation_type="dietary",
            count=3,
            custom_parameter="gluten-free",
        )

        assert 'MUST be adapted for "gluten-free"' in text

    def test_target_ignored_for_other_types(self) -> None:
        text = RecipeVariationPrompt().format(
            recipe=RecipeDataFactory.build(),
            variation_type="flavor",
            count=3,
            custom_parameter="gluten-free",
        )

        assert "gluten-free" not in text
        assert "FLAVOR PROFILE" in text

    def test_is_creative(self) -> None:
        config = RecipeVariationPrompt().get_generation_config()

        assert config.temperature == 0.7


class TestParse:
    """Tests for RecipeVariationPrompt.parse."""

    def test_object_reply(self) -> None:
        result = RecipeVariationPrompt().parse(f'{{"variations": [{VARIATION}]}}')

        assert isinstance(result, VariationSet)
        variation = result.variations[0]
        assert variation.title == "Vegan Apple Pie"
        assert variation.ingredients == "2 1/2 cups flour\n1 cup coconut oil"
        assert variation.prep_time == 20
        assert variation.servings == "8"
        assert variation.key_changes == ["Coconut oil"]

    def test_fenced_array_reply(self) -> None:
        result = RecipeVariationPrompt().parse(f"```json\n[{VARIATION}]\n```")

        assert [v.title for v in result.variations] == ["Vegan Apple Pie"]

    @pytest.mark.parametrize(
        "reply",
        [
            '{"variations": []}',
            '{"variations": [{"title": "No ingredients"}]}',
            "I can't help with that.",
        ],
    )
    def test_unusable_reply(self, reply: str) -> None:
        with pytest.raises(LLMValidationError):
            RecipeVariationPrompt().parse(reply)
