"""Endpoint tests for AI recipe variations.

Tests cover:
- Monthly allowance and trimming requests to what is left of it
- Model error mapping
- Saving a variation as a linked recipe, filed with its parent by default
- Listing saved variations
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import AsyncMock

import pytest

from recipe_keeper.cache.rate_limit import ActionRateLimiter
from recipe_keeper.core.config.settings import RateLimitActionSettings
from recipe_keeper.database.repositories.subscriptions import SubscriptionData
from recipe_keeper.llm.exceptions import LLMResponseError, LLMValidationError
from recipe_keeper.llm.prompts import RecipeVariation
from recipe_keeper.services.variations import GeneratedVariations, VariationAllowance
from tests.conftest import BOOK_ID, RECIPE_ID, USER_ID
from tests.factories.records import RecipeDataFactory


if TYPE_CHECKING:
    from types import SimpleNamespace

    from fastapi import FastAPI
    from httpx import AsyncClient


pytestmark = pytest.mark.unit

VARIATIONS = f"/api/v1/recipes/{RECIPE_ID}/variations"
ALLOWANCE = "/api/v1/variations/allowance"

FREE = VariationAllowance(
    can_generate=True, is_premium=False, used=3, limit=5, remaining=2
)
UNLIMITED = VariationAllowance(
    can_generate=True, is_premium=True, used=0, limit=None, remaining=None
)


def _generated(*titles: str) -> GeneratedVariations:
    return GeneratedVariations(
        variations=[
            RecipeVariation(
                title=title,
                ingredients="1 cup oat flour",
                instructions="Bake.",
                key_changes=["Oat flour"],
                category="Dessert",
            )
            for title in titles
        ],
        input_tokens=1200,
        output_tokens=300,
        total_tokens=1500,
        estimated_cost=0.0002,
    )


@pytest.fixture
def variations(app: FastAPI) -> AsyncMock:
    service = AsyncMock()
    service.check_allowance.return_value = FREE
    service.generate.return_value = _generated("Gluten-Free Pie", "Oat Crust Pie")
    app.state.recipe_variation_service = service
    return service


@pytest.fixture
def free_plan(repos: SimpleNamespace) -> SimpleNamespace:
    repos.subscriptions.get_for_user.return_value = None
    repos.recipes.get_owned.return_value = RecipeDataFactory.build()
    return repos


class TestAllowance:
    """Tests for GET /variations/allowance."""

    async def test_free_plan(
        self, client: AsyncClient, variations: AsyncMock, free_plan: SimpleNamespace
    ) -> None:
        response = await client.get(ALLOWANCE)

        assert response.status_code == 200
        assert response.json() == {
            "canGenerate": True,
            "isPremium": False,
            "used": 3,
            "limit": 5,
            "remaining": 2,
        }
        variations.check_allowance.assert_awaited_once_with(USER_ID, is_premium=False)

    async def test_active_subscription_is_premium(
        self, client: AsyncClient, variations: AsyncMock, repos: SimpleNamespace
    ) -> None:
        repos.subscriptions.get_for_user.return_value = SubscriptionData(
            user_id=USER_ID, status="active", plan_type="monthly"
        )
        variations.check_allowance.return_value = UNLIMITED

        response = await client.get(ALLOWANCE)

        assert response.json()["remaining"] is None
        variations.check_allowance.assert_awaited_once_with(USER_ID, is_premium=True)

    async def test_unavailable_without_model(
        self, client: AsyncClient, free_plan: SimpleNamespace
    ) -> None:
        response = await client.get(ALLOWANCE)

        assert response.status_code == 503


class TestGenerate:
    """Tests for POST /recipes/{recipeId}/variations."""

    async def test_trims_count_to_allowance(
        self, client: AsyncClient, variations: AsyncMock, free_plan: SimpleNamespace
    ) -> None:
        response = await client.post(
            VARIATIONS,
            json={
                "variationType": "dietary",
                "count": 5,
                "customParameter": "gluten-free",
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert [v["title"] for v in body["variations"]] == [
            "Gluten-Free Pie",
            "Oat Crust Pie",
        ]
        assert body["variations"][0]["keyChanges"] == ["Oat flour"]
        assert body["remaining"] == 0
        assert body["usage"]["totalTokens"] == 1500
        variations.generate.assert_awaited_once()
        call = variations.generate.await_args
        assert call.args[2] == "dietary"
        assert call.kwargs == {"count": 2, "custom_parameter": "gluten-free"}

    async def test_premium_count_untouched(
        self, client: AsyncClient, variations: AsyncMock, free_plan: SimpleNamespace
    ) -> None:
        variations.check_allowance.return_value = UNLIMITED

        response = await client.post(
            VARIATIONS, json={"variationType": "cuisine", "count": 4}
        )

        assert response.json()["remaining"] is None
        assert variations.generate.await_args.kwargs["count"] == 4

    async def test_monthly_limit_reached(
        self, client: AsyncClient, variations: AsyncMock, free_plan: SimpleNamespace
    ) -> None:
        variations.check_allowance.return_value = VariationAllowance(
            can_generate=False, is_premium=False, used=5, limit=5, remaining=0
        )

        response = await client.post(VARIATIONS, json={"variationType": "flavor"})

        assert response.status_code == 403
        detail = response.json()["detail"]
        assert detail["error"] == "VARIATION_LIMIT_REACHED"
        assert "monthly limit of 5 free variations" in detail["message"]
        variations.generate.assert_not_awaited()

    async def test_not_owner(
        self, client: AsyncClient, variations: AsyncMock, repos: SimpleNamespace
    ) -> None:
        repos.recipes.get_owned.return_value = None

        response = await client.post(VARIATIONS, json={"variationType": "flavor"})

        assert response.status_code == 404
        variations.check_allowance.assert_not_awaited()

    @pytest.mark.parametrize(
        "body",
        [
            {"variationType": "fusion"},
            {"variationType": "dietary", "count": 0},
            {"variationType": "dietary", "count": 6},
            {"variationType": "dietary", "customParameter": "x" * 101},
        ],
    )
    async def test_validation(
        self,
        client: AsyncClient,
        variations: AsyncMock,
        free_plan: SimpleNamespace,
        body: dict[str, object],
    ) -> None:
        response = await client.post(VARIATIONS, json=body)

        assert response.status_code == 422

    @pytest.mark.parametrize(
        ("error", "status_code", "code"),
        [
            (LLMValidationError("no JSON"), 422, "VARIATION_PARSE_ERROR"),
            (LLMResponseError("HTTP 500"), 502, "VARIATION_FAILED"),
        ],
    )
    async def test_errors(
        self,
        client: AsyncClient,
        variations: AsyncMock,
        free_plan: SimpleNamespace,
        error: Exception,
        status_code: int,
        code: str,
    ) -> None:
        variations.generate.side_effect = error

        response = await client.post(VARIATIONS, json={"variationType": "technique"})

        assert response.status_code == status_code
        assert response.json()["detail"]["error"] == code

    async def test_daily_rate_limit(
        self,
        app: FastAPI,
        client: AsyncClient,
        variations: AsyncMock,
        free_plan: SimpleNamespace,
    ) -> None:
        app.state.action_limiter = ActionRateLimiter(
            "memory://",
            {
                "variation": RateLimitActionSettings(
                    limit="1/day", label="recipe variation"
                )
            },
            enabled=True,
        )

        first = await client.post(VARIATIONS, json={"variationType": "seasonal"})
        second = await client.post(VARIATIONS, json={"variationType": "seasonal"})

        assert first.status_code == 200
        assert second.status_code == 429
        variations.generate.assert_awaited_once()


class TestSave:
    """Tests for POST /recipes/{recipeId}/variations/save."""

    BODY = {
        "variation": {
            "title": "Gluten-Free Pie",
            "ingredients": "2 cups oat flour",
            "instructions": "Bake.",
            "prepTime": 20,
            "keyChanges": ["Oat flour"],
        },
        "variationType": "dietary",
    }

    @pytest.fixture
    def saved(self, repos: SimpleNamespace) -> SimpleNamespace:
        repos.recipes.get_owned.return_value = RecipeDataFactory.build(
            book_id=BOOK_ID, image_url="https://img.example/pie.jpg"
        )
        repos.recipes.can_create.return_value = True
        repos.recipes.create_variation.return_value = RecipeDataFactory.build(
            id=USER_ID, parent_recipe_id=RECIPE_ID, variation_type="dietary"
        )
        return repos

    async def test_files_with_parent_by_default(
        self, client: AsyncClient, saved: SimpleNamespace
    ) -> None:
        response = await client.post(f"{VARIATIONS}/save", json=self.BODY)

        assert response.status_code == 201
        assert response.json() == {"recipeId": str(USER_ID)}

        parent, fields, variation_type = saved.recipes.create_variation.await_args.args
        assert parent.id == RECIPE_ID
        assert variation_type == "dietary"
        assert saved.recipes.create_variation.await_args.kwargs == {"book_id": BOOK_ID}
        assert fields == {
            "title": "Gluten-Free Pie",
            "ingredients": "2 cups oat flour",
            "instructions": "Bake.",
            "prep_time": 20,
            "cook_time": None,
            "servings": None,
            "notes": "AI-generated dietary variation",
            "category": "Dessert",
            "image_url": "https://img.example/pie.jpg",
        }
        saved.cookbooks.get_role.assert_not_awaited()
        saved.recipes.increment_count.assert_awaited_once_with(USER_ID)
        assert saved.usage.increment_feature.await_args.args[2] == "variations_saved"

    async def test_explicit_null_book_is_unfiled(
        self, client: AsyncClient, saved: SimpleNamespace
    ) -> None:
        response = await client.post(
            f"{VARIATIONS}/save", json={**self.BODY, "bookId": None}
        )

        assert response.status_code == 201
        assert saved.recipes.create_variation.await_args.kwargs == {"book_id": None}

    async def test_other_book_needs_permission(
        self, client: AsyncClient, saved: SimpleNamespace
    ) -> None:
        saved.cookbooks.get_role.return_value = "viewer"

        response = await client.post(
            f"{VARIATIONS}/save", json={**self.BODY, "bookId": str(BOOK_ID)}
        )

        assert response.status_code == 403
        saved.recipes.create_variation.assert_not_awaited()

    async def test_recipe_limit_reached(
        self, client: AsyncClient, saved: SimpleNamespace
    ) -> None:
        saved.recipes.can_create.return_value = False

        response = await client.post(f"{VARIATIONS}/save", json=self.BODY)

        assert response.status_code == 403
        assert response.json()["detail"]["error"] == "RECIPE_LIMIT_REACHED"
        saved.recipes.create_variation.assert_not_awaited()

    async def test_parent_not_owned(
        self, client: AsyncClient, saved: SimpleNamespace
    ) -> None:
        saved.recipes.get_owned.return_value = None

        response = await client.post(f"{VARIATIONS}/save", json=self.BODY)

        assert response.status_code == 404


class TestList:
    """Tests for GET /recipes/{recipeId}/variations."""

    async def test_lists_saved_variations(
        self, client: AsyncClient, repos: SimpleNamespace
    ) -> None:
        repos.recipes.get_owned.return_value = RecipeDataFactory.build()
        repos.recipes.list_variations.return_value = [
            RecipeDataFactory.build(
                id=USER_ID, parent_recipe_id=RECIPE_ID, variation_type="cuisine"
            )
        ]

        response = await client.get(VARIATIONS)

        assert response.status_code == 200
        assert response.json()["count"] == 1
        assert response.json()["recipes"][0]["variationType"] == "cuisine"
        repos.recipes.list_variations.assert_awaited_once_with(RECIPE_ID, USER_ID)

    async def test_not_owner(self, client: AsyncClient, repos: SimpleNamespace) -> None:
        repos.recipes.get_owned.return_value = None

        response = await client.get(VARIATIONS)

        assert response.status_code == 404
