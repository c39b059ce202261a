"""AI recipe variations.

A saved recipe is sent to Gemini with instructions for one kind of
variation (dietary, cuisine, technique and so on). Free accounts get a
monthly allowance counted in ``usage_tracking.ai_variations_generated``;
premium accounts are unlimited.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from recipe_keeper.database.repositories.usage import ApiUsageRecord
from recipe_keeper.llm.models import GeminiPart
from recipe_keeper.llm.prompts.recipe_variation import RecipeVariationPrompt
from recipe_keeper.observability.logging import get_logger
from recipe_keeper.observability.tracing import add_span_attributes
from recipe_keeper.services.usage.tracker import (
    estimate_cost,
    month_key,
    track_api_usage,
    track_usage,
)


if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from recipe_keeper.core.config.settings import RecipeVariationSettings
    from recipe_keeper.database.repositories.recipes import RecipeData
    from recipe_keeper.database.repositories.usage import UsageRepository
    from recipe_keeper.llm.client.gemini import GeminiClient
    from recipe_keeper.llm.prompts.recipe_variation import (
        RecipeVariation,
        VariationType,
    )

logger = get_logger(__name__)

VARIATION_FEATURE = "ai_variations_generated"
OPERATION = "recipe-variation"


@dataclass(frozen=True, slots=True)
class VariationAllowance:
    can_generate: bool
    is_premium: bool
    used: int
    # None means unlimited.
    limit: int | None
    remaining: int | None


@dataclass(frozen=True, slots=True)
class GeneratedVariations:
    variations: list[RecipeVariation]
    input_tokens: int
    output_tokens: int
    total_tokens: int
    estimated_cost: float


class RecipeVariationService:
    """Generate variations with Gemini and account for them."""

    def __init__(
        self,
        client: GeminiClient,
        usage_repository: UsageRepository,
        settings: RecipeVariationSettings,
    ) -> None:
        self._client = client
        self._usage = usage_repository
        self._settings = settings

    async def check_allowance(
        self, user_id: UUID, *, is_premium: bool, now: datetime | None = None
    ) -> VariationAllowance:
        """How many variations the user may still generate this month."""
        if is_premium:
            return VariationAllowance(
                can_generate=True, is_premium=True, used=0, limit=None, remaining=None
            )

        limit = self._settings.free_monthly_limit
        used = await self._usage.get_feature_count(
            user_id, month_key(now), VARIATION_FEATURE
        )
        return VariationAllowance(
            can_generate=used < limit,
            is_premium=False,
            used=used,
            limit=limit,
            remaining=max(0, limit - used),
        )

    async def generate(
        self,
        user_id: UUID,
        recipe: RecipeData,
        variation_type: VariationType,
        *,
        count: int = 3,
        custom_parameter: str | None = None,
    ) -> GeneratedVariations:
        """Ask the model for ``count`` variations of ``recipe``.

        The model call is recorded in ``api_usage`` even when its reply
        cannot be used; the monthly counter only grows by the number of
        variations actually returned.

        Raises:
            LLMError: If the model call fails or its reply cannot be parsed.
        """
        add_span_attributes(variation_type=str(variation_type), variation_count=count)
        prompt = RecipeVariationPrompt()
        text = prompt.format(
            recipe=recipe,
            variation_type=variation_type,
            count=count,
            custom_parameter=custom_parameter,
        )
        result = await self._client.generate(
            [GeminiPart(text=text)], config=prompt.get_generation_config()
        )
        cost = estimate_cost(
            result.prompt_tokens,
            result.completion_tokens,
            input_per_million=self._settings.input_cost_per_million,
            output_per_million=self._settings.output_cost_per_million,
        )
        await track_api_usage(
            self._usage,
            ApiUsageRecord(
                user_id=user_id,
                service=self._client.model,
                operation=OPERATION,
                input_tokens=result.prompt_tokens,
                output_tokens=result.completion_tokens,
                total_tokens=result.total_tokens,
                estimated_cost=cost,
                metadata={
                    "recipe_id": str(recipe.id),
                    "variation_type": str(variation_type),
                    "count": count,
                    "model": result.model,
                },
            ),
        )

        variations = prompt.parse(result.raw_response).variations[:count]
        await track_usage(
            self._usage, user_id, VARIATION_FEATURE, amount=len(variations)
        )
        logger.info(
            "Recipe variations generated",
            recipe_id=str(recipe.id),
            variation_type=str(variation_type),
            requested=count,
            generated=len(variations),
        )
        return GeneratedVariations(
            variations=variations,
            input_tokens=result.prompt_tokens,
            output_tokens=result.completion_tokens,
            total_tokens=result.total_tokens,
            estimated_cost=cost,
        )
