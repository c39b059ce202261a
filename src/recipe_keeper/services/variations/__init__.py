"""AI recipe variations."""

from recipe_keeper.services.variations.service import (
    VARIATION_FEATURE,
    GeneratedVariations,
    RecipeVariationService,
    VariationAllowance,
)


__all__ = [
    "VARIATION_FEATURE",
    "GeneratedVariations",
    "RecipeVariationService",
    "VariationAllowance",
]
