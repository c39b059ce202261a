"""Ingredient line parsing and serving-size scaling.

Pure functions: a regex-based parser pulls ``{quantity, unit, ingredient}``
out of a free-text ingredient line, and the scaler multiplies the quantity
and re-renders it as a kitchen-friendly vulgar fraction.

Example:
    >>> scale_ingredient("1 1/2 cups flour", 2)
    '3 cups flour'
    >>> scale_ingredient("3 eggs", Fraction(1, 2))
    '1 1/2 eggs'
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from fractions import Fraction


# Largest denominator a formatted quantity may use (1/16 is the finest
# common measuring spoon).
MAX_DENOMINATOR = 16
# Denominator cap for amounts below 1/32, which would otherwise snap to 0.
SMALL_MAX_DENOMINATOR = 1000

_QTY = r"([\d\s/.\-]+)"

_HYPHENATED_MIXED = re.compile(r"(\d+)-(\d+/\d+)")
_MIXED = re.compile(r"^(\d+)\s+(\d+)/(\d+)$")
_FRACTION = re.compile(r"^(\d+)/(\d+)$")
_DECIMAL = re.compile(r"^\d+(?:\.\d*)?$|^\.\d+$")

_UNITS = (
    "cups|cup|c\\.|c|"
    "tablespoons|tablespoon|tbsp|tsp\\.|"
    "teaspoons|teaspoon|tsp|"
    "ounces|ounce|oz\\.|oz|"
    "pounds|pound|lb\\.|lbs|lb|#|"
    "grams|gram|g|"
    "ml|milliliters|milliliter|"
    "liters|liter|l|"
    "qt|quarts|quart|"
    "pt|pints|pint"
)

# Tried in order; the first match wins.
_LINE_PATTERNS: tuple[re.Pattern[str], ...] = (
    # "0.25 # thinly sliced ham", "2# potatoes"
    re.compile(rf"^{_QTY}\s*(#)\s+(.+)$"),
    # "1 c. (8 oz.) ricotta cheese"
    re.compile(
        rf"^{_QTY}\s+(c\.|tsp\.|tbsp\.|oz\.|lb\.|lbs\.|qt\.|pt\.)\s*(\([^)]+\)\s+.+)$",
        re.IGNORECASE,
    ),
    # "1 1/2 cups flour", "1-1/2 c flour"
    re.compile(rf"^{_QTY}\s+({_UNITS})\s+(.+)$", re.IGNORECASE),
    # "2 large eggs"
    re.compile(rf"^{_QTY}\s+(large|medium|small|whole)\s+(.+)$", re.IGNORECASE),
    # "3 eggs"
    re.compile(rf"^{_QTY}\s+(.+)$"),
)


@dataclass(frozen=True, slots=True)
class ParsedIngredient:
    """One parsed ingredient line.

    ``quantity`` is zero when the line has no leading amount; ``unit`` is
    empty for bare counts like "3 eggs".
    """

    quantity: Fraction
    unit: str
    ingredient: str
    original: str


def parse_quantity(text: str) -> Fraction:
    """Parse "2", "0.5", "1/2", "2 1/4" or "1-1/2".

    Returns:
        The quantity, or 0 if ``text`` is empty or unparsable.
    """
    normalized = _HYPHENATED_MIXED.sub(r"\1 \2", text.strip(), count=1)
    if not normalized:
        return Fraction(0)

    if match := _MIXED.match(normalized):
        whole, numerator, denominator = (int(g) for g in match.groups())
        if denominator == 0:
            return Fraction(0)
        return whole + Fraction(numerator, denominator)

    if match := _FRACTION.match(normalized):
        numerator, denominator = (int(g) for g in match.groups())
        if denominator == 0:
            return Fraction(0)
        return Fraction(numerator, denominator)

    if _DECIMAL.match(normalized):
        return Fraction(normalized)

    return Fraction(0)


def format_quantity(value: Fraction | float) -> str:
    """Render a quantity as "3", "3/4" or "2 1/4".

    The value is snapped to the nearest fraction with a denominator of at
    most 16 first. A non-zero amount too small to snap keeps a finer
    fraction such as "1/32", so a scaled ingredient never reads "0".
    Non-finite floats fall back to two decimal places.
    """
    if isinstance(value, float) and not math.isfinite(value):
        return f"{value:.2f}".rstrip("0").rstrip(".")

    exact = Fraction(value)
    if exact == 0:
        return "0"
    frac = exact.limit_denominator(MAX_DENOMINATOR)
    if frac == 0:
        frac = exact.limit_denominator(SMALL_MAX_DENOMINATOR)
    if frac == 0:
        return f"{float(exact):.2g}"
    if frac.denominator == 1:
        return str(frac.numerator)

    sign = "-" if frac < 0 else ""
    whole, remainder = divmod(abs(frac.numerator), frac.denominator)
    if whole:
        return f"{sign}{whole} {remainder}/{frac.denominator}"
    return f"{sign}{remainder}/{frac.denominator}"


def parse_ingredient_line(line: str) -> ParsedIngredient:
    """Split an ingredient line into quantity, unit and ingredient.

    A line none of the patterns recognise comes back with quantity 0, no
    unit and the whole (trimmed) line as the ingredient.
    """
    trimmed = line.strip()
    if not trimmed:
        return ParsedIngredient(Fraction(0), "", "", trimmed)

    for pattern in _LINE_PATTERNS:
        match = pattern.match(trimmed)
        if match is None:
            continue
        groups = match.groups()
        quantity = parse_quantity(groups[0])
        if len(groups) == 3:
            return ParsedIngredient(quantity, groups[1], groups[2], trimmed)
        return ParsedIngredient(quantity, "", groups[1], trimmed)

    return ParsedIngredient(Fraction(0), "", trimmed, trimmed)


def scale_ingredient(line: str, multiplier: Fraction | float) -> str:
    """Scale one ingredient line; lines without a quantity are returned as is."""
    parsed = parse_ingredient_line(line)
    if parsed.quantity == 0:
        return line

    scaled = format_quantity(parsed.quantity * Fraction(multiplier))
    if parsed.unit:
        return f"{scaled} {parsed.unit} {parsed.ingredient}"
    return f"{scaled} {parsed.ingredient}"


def scale_ingredients(text: str, multiplier: Fraction | float) -> str:
    """Scale every line of a newline-separated ingredient list."""
    return "\n".join(
        scale_ingredient(line.strip(), multiplier) for line in text.split("\n")
    )


def calculate_multiplier(original_servings: float, new_servings: float) -> Fraction:
    if original_servings <= 0:
        return Fraction(1)
    return Fraction(new_servings) / Fraction(original_servings)
