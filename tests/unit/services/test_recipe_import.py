"""Unit tests for RecipeImportService.

Tests cover:
- Image and text prompts sent to the model
- Usage accounting, including unusable replies
- Error propagation
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from recipe_keeper.core.config.settings import RecipeImportSettings
from recipe_keeper.llm.exceptions import LLMRateLimitError, LLMValidationError
from recipe_keeper.llm.models import LLMCompletionResult
from recipe_keeper.schemas.ai import ImportImage
from recipe_keeper.services.recipe_import import RecipeImportService
from tests.conftest import USER_ID
from tests.fixtures.llm_responses import RECIPE_CARD_JSON


pytestmark = pytest.mark.unit


def _completion(text: str) -> LLMCompletionResult:
    return LLMCompletionResult(
        raw_response=text,
        model="gemini-2.0-flash",
        prompt_tokens=1_000_000,
        completion_tokens=100_000,
        total_tokens=1_100_000,
    )


@pytest.fixture
def gemini() -> AsyncMock:
    client = AsyncMock()
    client.model = "gemini-2.0-flash"
    client.generate.return_value = _completion(f"```json\n{RECIPE_CARD_JSON}\n```")
    return client


@pytest.fixture
def usage() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def service(gemini: AsyncMock, usage: AsyncMock) -> RecipeImportService:
    return RecipeImportService(gemini, usage, RecipeImportSettings())


def _image() -> ImportImage:
    return ImportImage(data="aGVsbG8=", mime_type="image/jpeg")


class TestImportImages:
    """Tests for import_images."""

    async def test_single_image(
        self, service: RecipeImportService, gemini: AsyncMock, usage: AsyncMock
    ) -> None:
        response = await service.import_images(USER_ID, [_image()])

        assert response.recipe.title == "Grandma's Apple Pie"
        assert response.recipe.servings == "8"
        assert response.confidence == 1.0
        # 1M input at 0.075 plus 100k output at 0.30
        assert response.usage.estimated_cost == pytest.approx(0.105)

        parts = gemini.generate.await_args.args[0]
        assert len(parts) == 2
        assert "Analyze this recipe image" in parts[0].text
        assert parts[1].inline_data.mime_type == "image/jpeg"

        record = usage.insert_api_usage.await_args.args[0]
        assert record.operation == "recipe-import"
        assert record.user_id == USER_ID
        assert record.metadata == {"pages": 1, "model": "gemini-2.0-flash"}
        usage.increment_feature.assert_awaited_once()
        assert usage.increment_feature.await_args.args[2] == "recipes_imported"

    async def test_multiple_images(
        self, service: RecipeImportService, gemini: AsyncMock, usage: AsyncMock
    ) -> None:
        await service.import_images(USER_ID, [_image(), _image(), _image()])

        parts = gemini.generate.await_args.args[0]
        assert len(parts) == 4
        assert "These 3 images" in parts[0].text
        assert usage.insert_api_usage.await_args.args[0].operation == "recipe-import-multi"


class TestImportText:
    """Tests for import_text."""

    @pytest.mark.parametrize(
        ("from_pdf", "operation"),
        [(True, "recipe-import-pdf"), (False, "recipe-import-text")],
    )
    async def test_operation_names(
        self,
        service: RecipeImportService,
        usage: AsyncMock,
        from_pdf: bool,
        operation: str,
    ) -> None:
        await service.import_text(USER_ID, "Apple pie...", from_pdf=from_pdf)

        assert usage.insert_api_usage.await_args.args[0].operation == operation

    async def test_text_is_trimmed_into_prompt(
        self, service: RecipeImportService, gemini: AsyncMock
    ) -> None:
        await service.import_text(USER_ID, "   Mix and bake.  ")

        parts = gemini.generate.await_args.args[0]
        assert "Recipe Text:\nMix and bake.\n" in parts[0].text

    async def test_partial_recipe_confidence(
        self, service: RecipeImportService, gemini: AsyncMock
    ) -> None:
        gemini.generate.return_value = _completion('{"title": "Stew"}')

        response = await service.import_text(USER_ID, "Stew")

        assert response.confidence == pytest.approx(1 / 3)
        assert response.recipe.ingredients is None


class TestImportFailures:
    """Tests for failure handling."""

    async def test_unparseable_reply_still_recorded(
        self, service: RecipeImportService, gemini: AsyncMock, usage: AsyncMock
    ) -> None:
        """Should account for spent tokens before failing on the reply."""
        gemini.generate.return_value = _completion("Sorry, I can't read that.")

        with pytest.raises(LLMValidationError):
            await service.import_text(USER_ID, "???")

        usage.insert_api_usage.assert_awaited_once()
        usage.increment_feature.assert_not_awaited()

    async def test_model_error_propagates(
        self, service: RecipeImportService, gemini: AsyncMock, usage: AsyncMock
    ) -> None:
        gemini.generate.side_effect = LLMRateLimitError("slow down")

        with pytest.raises(LLMRateLimitError):
            await service.import_images(USER_ID, [_image()])

        usage.insert_api_usage.assert_not_awaited()

    async def test_usage_failure_does_not_fail_import(
        self, service: RecipeImportService, usage: AsyncMock
    ) -> None:
        usage.insert_api_usage.side_effect = RuntimeError("pool not initialized")

        response = await service.import_text(USER_ID, "Apple pie")

        assert response.recipe.title == "Grandma's Apple Pie"
