"""Prompt that asks the model for creative variations of a saved recipe."""

from __future__ import annotations

import re
from enum import StrEnum
from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import BaseModel, Field, field_validator

from recipe_keeper.llm.prompts.base import BasePrompt
from recipe_keeper.llm.prompts.recipe_extraction import ExtractedRecipe


if TYPE_CHECKING:
    from recipe_keeper.database.repositories.recipes import RecipeData


_FENCE = re.compile(r"```(?:json)?")


class VariationType(StrEnum):
    """Kinds of variation a cook can ask for."""

    DIETARY = "dietary"
    CUISINE = "cuisine"
    TECHNIQUE = "technique"
    SEASONAL = "seasonal"
    FLAVOR = "flavor"
    COMPLEXITY = "complexity"


class RecipeVariation(ExtractedRecipe):
    """One variation as written by the model."""

    title: str
    description: str = ""
    ingredients: str
    instructions: str
    key_changes: list[str] = Field(default_factory=list)

    @field_validator("key_changes", mode="before")
    @classmethod
    def _changes_as_list(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [value]
        return value if value is not None else []


class VariationSet(BaseModel):
    variations: list[RecipeVariation] = Field(..., min_length=1)


_INSTRUCTIONS: dict[VariationType, str] = {
    VariationType.DIETARY: """Generate {count} DIETARY variations. Consider:
- Vegan/vegetarian versions (plant-based substitutes)
- Gluten-free adaptations (alternative flours, ingredients)
- Keto/low-carb versions (reduce carbs, increase healthy fats)
- Paleo-friendly (no grains, dairy, legumes)
- Dairy-free options (non-dairy substitutes)
- Low-sodium versions (reduce salt, use herbs/spices)

Focus on maintaining the dish's essence while making it accessible to different \
dietary needs.""",
    VariationType.CUISINE: """Generate {count} CUISINE SWAP variations. Transform \
this recipe into different cultural styles:
- Use authentic spices, cooking methods, and ingredient swaps
- Maintain the core concept (if it's a comfort food, keep it comforting)
- Be creative but culturally respectful

Examples: Lasagna -> Enchiladas, Stir-fry -> Paella, Tacos -> Gyros""",
    VariationType.TECHNIQUE: """Generate {count} COOKING TECHNIQUE variations. \
Change HOW the dish is prepared:
- Baked -> Air fryer, grilled, pan-fried
- Stovetop -> Slow cooker, instant pot, oven
- Deep-fried -> Baked, air-fried (healthier)
- Grilled -> Roasted, broiled

Adjust cooking times and temperatures accordingly. Keep ingredient changes minimal.""",
    VariationType.SEASONAL: """Generate {count} SEASONAL variations. Adapt this \
recipe for different seasons:
- Summer -> Winter (hearty, warm ingredients)
- Winter -> Summer (light, fresh ingredients)
- Use seasonal produce (summer: tomatoes, berries, corn; winter: root vegetables, \
squash, citrus)
- Adjust cooking methods (summer: grilling, salads; winter: braising, roasting)""",
    VariationType.FLAVOR: """Generate {count} FLAVOR PROFILE variations. Enhance or \
transform the taste:
- Add heat (chili peppers, hot sauce, cayenne)
- Add sweetness (honey, maple syrup, caramelized onions)
- Add umami (soy sauce, miso, mushrooms, parmesan)
- Add brightness (citrus, vinegar, fresh herbs)
- Add smokiness (smoked paprika, chipotle, grilled elements)

Focus on bold, complementary flavors that elevate the dish.""",
    VariationType.COMPLEXITY: """Generate {count} variations that adjust \
COMPLEXITY LEVEL:
- Quick weeknight version (30 min or less, fewer ingredients, shortcuts)
- Special occasion version (more steps, premium ingredients, impressive presentation)
- Meal prep friendly (batch cooking, stores well, reheats easily)
- One-pot/one-pan simplification (minimal cleanup)

Keep the core dish recognizable but adjust effort/time/presentation.""",
}

_DIETARY_TARGET = """Generate {count} DIETARY ADAPTATION variations specifically \
for: {target}

IMPORTANT: All {count} variations MUST be adapted for "{target}".

Focus on:
- Proper ingredient substitutions that work for {target}
- Maintaining the dish's flavor and texture
- Clear explanations of what was changed and why

Each variation should offer a different approach while all meeting the {target} \
requirement."""

_OUTPUT_FORMAT = """

Return ONLY a valid JSON object with exactly {count} variations, no markdown:

{{"variations": [
  {{
    "title": "Descriptive variation name",
    "description": "2-3 sentences on what makes this variation special",
    "ingredients": "Complete ingredient list with quantities (use \\n for line breaks)",
    "instructions": "Step-by-step instructions (use \\n for line breaks)",
    "prep_time": 15,
    "cook_time": 30,
    "servings": "4",
    "key_changes": ["Main change 1", "Main change 2"],
    "notes": "Tips for success, substitutions, or serving suggestions"
  }}
]}}

Keep key_changes to 3-5 clear, actionable items and make every variation \
practical for home cooks."""


def _or_unknown(value: object) -> str:
    return str(value) if value not in (None, "") else "Not specified"


class RecipeVariationPrompt(BasePrompt[VariationSet]):
    """Suggest ``count`` variations of one recipe along one axis."""

    output_schema: ClassVar[type[BaseModel]] = VariationSet
    temperature: ClassVar[float] = 0.7
    max_tokens: ClassVar[int | None] = 4096

    def format(self, **kwargs: Any) -> str:
        recipe: RecipeData = kwargs["recipe"]
        variation_type = VariationType(kwargs["variation_type"])
        count: int = kwargs.get("count", 3)
        target: str | None = kwargs.get("custom_parameter")

        if variation_type is VariationType.DIETARY and target:
            instructions = _DIETARY_TARGET.format(count=count, target=target)
        else:
            instructions = _INSTRUCTIONS[variation_type].format(count=count)

        return (
            "You are a professional chef helping home cooks discover creative "
            "variations of their favorite recipes. Analyze the recipe below and "
            f"suggest {count} creative, practical variations.\n\n"
            "Original Recipe:\n"
            f"Title: {recipe.title}\n"
            f"Category: {_or_unknown(recipe.category)}\n"
            f"Prep Time: {_or_unknown(recipe.prep_time)} minutes\n"
            f"Cook Time: {_or_unknown(recipe.cook_time)} minutes\n"
            f"Servings: {_or_unknown(recipe.servings)}\n\n"
            f"Ingredients:\n{recipe.ingredients}\n\n"
            f"Instructions:\n{recipe.instructions}\n\n"
            f"Notes: {recipe.notes or 'None'}\n\n"
            f"{instructions}{_OUTPUT_FORMAT.format(count=count)}"
        )

    def parse(self, raw_response: str) -> VariationSet:
        """Also accept a bare JSON array of variations."""
        cleaned = _FENCE.sub("", raw_response).strip()
        if cleaned.startswith("["):
            return super().parse(f'{{"variations": {cleaned}}}')
        return super().parse(raw_response)
