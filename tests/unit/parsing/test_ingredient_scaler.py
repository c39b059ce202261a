"""Unit tests for ingredient parsing and scaling.

Tests cover:
- Quantity parsing (integers, decimals, fractions, mixed numbers)
- Quantity formatting to kitchen fractions
- Line parsing across the supported line shapes
- Scaling single lines and whole lists
"""

from __future__ import annotations

from fractions import Fraction

import pytest

from recipe_keeper.parsing import (
    calculate_multiplier,
    format_quantity,
    parse_ingredient_line,
    parse_quantity,
    scale_ingredient,
    scale_ingredients,
)


pytestmark = pytest.mark.unit


class TestParseQuantity:
    """Tests for parse_quantity."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("2", Fraction(2)),
            ("0.5", Fraction(1, 2)),
            ("1/2", Fraction(1, 2)),
            ("2 1/4", Fraction(9, 4)),
            ("1-1/2", Fraction(3, 2)),
            (" 3 ", Fraction(3)),
        ],
    )
    def test_parses_supported_forms(self, text: str, expected: Fraction) -> None:
        """Should parse every supported quantity form."""
        assert parse_quantity(text) == expected

    @pytest.mark.parametrize("text", ["", "abc", "1-2", "1/0", "2 1/0"])
    def test_returns_zero_when_unparsable(self, text: str) -> None:
        """Should return 0 for empty, ranged or zero-denominator input."""
        assert parse_quantity(text) == 0


class TestFormatQuantity:
    """Tests for format_quantity."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (Fraction(0), "0"),
            (Fraction(3), "3"),
            (Fraction(3, 4), "3/4"),
            (Fraction(3, 2), "1 1/2"),
            (2.25, "2 1/4"),
            (0.333, "1/3"),
        ],
    )
    def test_formats_as_kitchen_fraction(
        self, value: Fraction | float, expected: str
    ) -> None:
        """Should render whole numbers, fractions and mixed numbers."""
        assert format_quantity(value) == expected

    def test_snaps_to_sixteenths(self) -> None:
        """Should round to the nearest sixteenth when one is close."""
        assert format_quantity(Fraction(313, 1000)) == "5/16"

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (Fraction(1, 32), "1/32"),
            (Fraction(1, 33), "1/33"),
            (Fraction(1, 40), "1/40"),
            (Fraction(1, 1_000_000), "1e-06"),
        ],
    )
    def test_tiny_amounts_never_render_as_zero(
        self, value: Fraction, expected: str
    ) -> None:
        """Should keep a finer fraction when sixteenths would round to 0."""
        assert format_quantity(value) == expected


class TestParseIngredientLine:
    """Tests for parse_ingredient_line."""

    def test_unit_line(self) -> None:
        parsed = parse_ingredient_line("1 1/2 cups all-purpose flour")

        assert parsed.quantity == Fraction(3, 2)
        assert parsed.unit == "cups"
        assert parsed.ingredient == "all-purpose flour"

    def test_pound_sign_unit(self) -> None:
        """Should treat '#' as a pound unit."""
        parsed = parse_ingredient_line("0.25 # thinly sliced ham")

        assert parsed.quantity == Fraction(1, 4)
        assert parsed.unit == "#"
        assert parsed.ingredient == "thinly sliced ham"

    def test_pound_sign_attached(self) -> None:
        parsed = parse_ingredient_line("2# potatoes")

        assert parsed.quantity == 2
        assert parsed.unit == "#"
        assert parsed.ingredient == "potatoes"

    def test_abbreviated_unit_with_parenthetical(self) -> None:
        parsed = parse_ingredient_line("1 c. (8 oz.) ricotta cheese")

        assert parsed.quantity == 1
        assert parsed.unit == "c."
        assert parsed.ingredient == "(8 oz.) ricotta cheese"

    def test_size_word(self) -> None:
        parsed = parse_ingredient_line("2 large eggs")

        assert parsed.quantity == 2
        assert parsed.unit == "large"
        assert parsed.ingredient == "eggs"

    def test_bare_count(self) -> None:
        """Should parse a count with no unit."""
        parsed = parse_ingredient_line("3 eggs")

        assert parsed.quantity == 3
        assert parsed.unit == ""
        assert parsed.ingredient == "eggs"

    def test_line_without_quantity(self) -> None:
        """Should return quantity 0 and the trimmed line as the ingredient."""
        parsed = parse_ingredient_line("  salt to taste ")

        assert parsed.quantity == 0
        assert parsed.unit == ""
        assert parsed.ingredient == "salt to taste"
        assert parsed.original == "salt to taste"

    def test_empty_line(self) -> None:
        parsed = parse_ingredient_line("   ")

        assert parsed.quantity == 0
        assert parsed.ingredient == ""


class TestScaleIngredient:
    """Tests for scale_ingredient and scale_ingredients."""

    def test_doubles_mixed_number(self) -> None:
        assert scale_ingredient("1 1/2 cups flour", 2) == "3 cups flour"

    def test_halves_count(self) -> None:
        assert scale_ingredient("3 eggs", Fraction(1, 2)) == "1 1/2 eggs"

    def test_scales_pound_sign(self) -> None:
        assert scale_ingredient("0.25 # ham", 4) == "1 # ham"

    def test_hyphenated_mixed_number(self) -> None:
        assert scale_ingredient("1-1/2 c flour", 2) == "3 c flour"

    def test_range_left_unchanged(self) -> None:
        """Should not scale a range like '1-2'."""
        assert scale_ingredient("1-2 cups broth", 3) == "1-2 cups broth"

    def test_line_without_quantity_unchanged(self) -> None:
        assert scale_ingredient("salt to taste", 2) == "salt to taste"

    def test_tiny_result_keeps_fraction(self) -> None:
        """Should not scale a small amount down to nothing."""
        assert scale_ingredient("1/8 tsp salt", Fraction(1, 4)) == "1/32 tsp salt"
        assert scale_ingredient("1/4 tsp salt", Fraction(1, 8)) == "1/32 tsp salt"

    @pytest.mark.parametrize(
        "unit",
        [
            "cups", "cup", "c.", "c",
            "tablespoons", "tablespoon", "tbsp", "tsp.",
            "teaspoons", "teaspoon", "tsp",
            "ounces", "ounce", "oz.", "oz",
            "pounds", "pound", "lb.", "lbs", "lb", "#",
            "grams", "gram", "g",
            "ml", "milliliters", "milliliter",
            "liters", "liter", "l",
            "qt", "quarts", "quart",
            "pt", "pints", "pint",
            "large", "medium", "small", "whole",
            "",
        ],
    )
    def test_doubling_preserves_unit(self, unit: str) -> None:
        """Should double the quantity and keep the unit and ingredient."""
        line = f"3/4 {unit} sugar" if unit else "3/4 sugar"
        original = parse_ingredient_line(line)

        doubled = parse_ingredient_line(scale_ingredient(line, 2))

        assert original.unit == unit
        assert doubled.quantity == original.quantity * 2
        assert doubled.unit == original.unit
        assert doubled.ingredient == original.ingredient == "sugar"

    def test_scales_every_line(self) -> None:
        """Should scale each line and keep blank lines in place."""
        text = "2 cups milk\n\n1/2 tsp salt\npepper"

        result = scale_ingredients(text, Fraction(3, 2))

        assert result == "3 cups milk\n\n3/4 tsp salt\npepper"


class TestCalculateMultiplier:
    """Tests for calculate_multiplier."""

    def test_ratio_of_servings(self) -> None:
        assert calculate_multiplier(4, 6) == Fraction(3, 2)

    @pytest.mark.parametrize("original", [0, -2])
    def test_non_positive_original_is_identity(self, original: float) -> None:
        """Should fall back to 1 when the original serving count is unusable."""
        assert calculate_multiplier(original, 8) == 1
