"""AI recipe import.

Photographed recipe cards, PDF text or pasted text are sent to Gemini, the
reply is parsed leniently into recipe fields and the call is accounted for
in ``api_usage``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from recipe_keeper.database.repositories.usage import ApiUsageRecord
from recipe_keeper.llm.models import GeminiInlineData, GeminiPart
from recipe_keeper.llm.prompts.recipe_extraction import (
    RecipeImagePrompt,
    RecipeTextPrompt,
)
from recipe_keeper.observability.logging import get_logger
from recipe_keeper.observability.tracing import add_span_attributes
from recipe_keeper.schemas.ai import ImportedRecipe, ImportUsage, RecipeImportResponse
from recipe_keeper.services.usage.tracker import (
    estimate_cost,
    track_api_usage,
    track_usage,
)


if TYPE_CHECKING:
    from uuid import UUID

    from recipe_keeper.core.config.settings import RecipeImportSettings
    from recipe_keeper.database.repositories.usage import UsageRepository
    from recipe_keeper.llm.client.gemini import GeminiClient
    from recipe_keeper.llm.models import LLMCompletionResult
    from recipe_keeper.llm.prompts.base import BasePrompt
    from recipe_keeper.llm.prompts.recipe_extraction import ExtractedRecipe
    from recipe_keeper.schemas.ai import ImportImage

logger = get_logger(__name__)


class RecipeImportService:
    """Extract recipes with Gemini and record what each extraction cost."""

    def __init__(
        self,
        client: GeminiClient,
        usage_repository: UsageRepository,
        settings: RecipeImportSettings,
    ) -> None:
        self._client = client
        self._usage = usage_repository
        self._settings = settings

    async def import_images(
        self, user_id: UUID, images: list[ImportImage]
    ) -> RecipeImportResponse:
        """Extract one recipe from one or more photographed pages.

        Raises:
            LLMError: If the model call fails or its reply cannot be parsed.
        """
        prompt = RecipeImagePrompt()
        parts = [
            GeminiPart(text=prompt.format(page_count=len(images))),
            *(
                GeminiPart(
                    inline_data=GeminiInlineData(mime_type=image.mime_type, data=image.data)
                )
                for image in images
            ),
        ]
        operation = "recipe-import-multi" if len(images) > 1 else "recipe-import"
        return await self._run(user_id, prompt, parts, operation, pages=len(images))

    async def import_text(
        self, user_id: UUID, text: str, *, from_pdf: bool = True
    ) -> RecipeImportResponse:
        """Extract a recipe from text.

        Raises:
            LLMError: If the model call fails or its reply cannot be parsed.
        """
        prompt = RecipeTextPrompt()
        parts = [GeminiPart(text=prompt.format(text=text.strip()))]
        operation = "recipe-import-pdf" if from_pdf else "recipe-import-text"
        return await self._run(user_id, prompt, parts, operation, pages=1)

    async def _run(
        self,
        user_id: UUID,
        prompt: BasePrompt[ExtractedRecipe],
        parts: list[GeminiPart],
        operation: str,
        *,
        pages: int,
    ) -> RecipeImportResponse:
        add_span_attributes(import_operation=operation, import_pages=pages)
        result = await self._client.generate(
            parts, config=prompt.get_generation_config()
        )
        cost = estimate_cost(
            result.prompt_tokens,
            result.completion_tokens,
            input_per_million=self._settings.input_cost_per_million,
            output_per_million=self._settings.output_cost_per_million,
        )
        # Tokens were spent even if the reply turns out to be unusable.
        await self._record(user_id, result, operation, cost, pages)

        recipe = prompt.parse(result.raw_response)
        logger.info(
            "Recipe imported",
            operation=operation,
            pages=pages,
            confidence=recipe.confidence,
            total_tokens=result.total_tokens,
        )
        await track_usage(self._usage, user_id, "recipes_imported")

        return RecipeImportResponse(
            recipe=ImportedRecipe.model_validate(recipe.model_dump()),
            confidence=recipe.confidence,
            usage=ImportUsage(
                input_tokens=result.prompt_tokens,
                output_tokens=result.completion_tokens,
                total_tokens=result.total_tokens,
                estimated_cost=cost,
            ),
        )

    async def _record(
        self,
        user_id: UUID,
        result: LLMCompletionResult,
        operation: str,
        cost: float,
        pages: int,
    ) -> None:
        await track_api_usage(
            self._usage,
            ApiUsageRecord(
                user_id=user_id,
                service=self._client.model,
                operation=operation,
                input_tokens=result.prompt_tokens,
                output_tokens=result.completion_tokens,
                total_tokens=result.total_tokens,
                estimated_cost=cost,
                metadata={"pages": pages, "model": result.model},
            ),
        )
