"""Recipe nutrition endpoints.

Provides:
- GET /recipes/{recipeId}/nutrition for estimated nutrition, cached per
  serving count
- DELETE /recipes/{recipeId}/nutrition/cache
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from recipe_keeper.api.dependencies import (
    get_nutrition_client,
    get_nutrition_repository,
    get_recipe_repository,
)
from recipe_keeper.api.v1.endpoints.recipes import RecipeId, recipe_not_found
from recipe_keeper.auth.dependencies import CurrentUser, get_current_user
from recipe_keeper.core.config import Settings, get_settings
from recipe_keeper.database.repositories.nutrition import (
    CachedNutrition,
    NutritionRepository,
)
from recipe_keeper.database.repositories.recipes import (
    RecipeRepository,  # noqa: TC001
)
from recipe_keeper.observability.logging import get_logger
from recipe_keeper.schemas.nutrition import NutritionValues, RecipeNutritionResponse
from recipe_keeper.services.nutrition import (
    NutritionClient,
    NutritionError,
    NutritionFacts,
    NutritionUnavailableError,
    RecipeNutrition,
    calculate_recipe_nutrition,
    parse_servings,
)


logger = get_logger(__name__)

router = APIRouter(tags=["Nutrition"])


def _from_cache(cached: CachedNutrition, servings: int) -> RecipeNutrition:
    per_serving = NutritionFacts(**cached.model_dump())
    total = NutritionFacts(
        **{name: value * servings for name, value in cached.model_dump().items()}
    )
    return RecipeNutrition(
        total=total, per_serving=per_serving, servings=servings, cached=True
    )


def _to_response(nutrition: RecipeNutrition) -> RecipeNutritionResponse:
    return RecipeNutritionResponse(
        total=NutritionValues(**nutrition.total.model_dump()),
        per_serving=NutritionValues(**nutrition.per_serving.model_dump()),
        servings=nutrition.servings,
        ingredients_processed=nutrition.ingredients_processed,
        ingredients_total=nutrition.ingredients_total,
        cached=nutrition.cached,
    )


@router.get(
    "/recipes/{recipeId}/nutrition",
    response_model=RecipeNutritionResponse,
    summary="Estimate a recipe's nutrition",
    description=(
        "Looks up each ingredient in USDA FoodData Central. Without servings "
        "the recipe's own serving count is used. Results are cached per "
        "serving count."
    ),
    responses={
        404: {"description": "Recipe not found"},
        502: {"description": "The nutrition database returned an error"},
        503: {"description": "The nutrition database is unavailable"},
    },
)
async def get_recipe_nutrition(
    recipe_id: RecipeId,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    recipes: Annotated[RecipeRepository, Depends(get_recipe_repository)],
    cache: Annotated[NutritionRepository, Depends(get_nutrition_repository)],
    client: Annotated[NutritionClient, Depends(get_nutrition_client)],
    settings: Annotated[Settings, Depends(get_settings)],
    servings: Annotated[int | None, Query(ge=1, le=1000)] = None,
) -> RecipeNutritionResponse:
    recipe = await recipes.get_owned(recipe_id, user.id)
    if recipe is None:
        raise recipe_not_found()

    if servings is None:
        servings = parse_servings(
            recipe.servings, settings.nutrition.default_servings
        )

    cached = await cache.get(recipe_id, servings)
    if cached is not None:
        return _to_response(_from_cache(cached, servings))

    try:
        nutrition = await calculate_recipe_nutrition(
            recipe.ingredients or "", servings, client
        )
    except NutritionUnavailableError as e:
        logger.warning("Nutrition lookup unavailable", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "error": "SERVICE_UNAVAILABLE",
                "message": "The nutrition database is unavailable",
            },
        ) from None
    except NutritionError as e:
        logger.exception("Nutrition calculation failed")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"error": "NUTRITION_FAILED", "message": str(e)},
        ) from None

    await cache.upsert(
        recipe_id, servings, CachedNutrition(**nutrition.per_serving.model_dump())
    )
    return _to_response(nutrition)


@router.delete(
    "/recipes/{recipeId}/nutrition/cache",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Clear a recipe's cached nutrition",
    description="Owner only. The next request recalculates from the ingredients.",
    responses={404: {"description": "Recipe not found"}},
)
async def clear_nutrition_cache(
    recipe_id: RecipeId,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    recipes: Annotated[RecipeRepository, Depends(get_recipe_repository)],
    cache: Annotated[NutritionRepository, Depends(get_nutrition_repository)],
) -> Response:
    if await recipes.get_owned(recipe_id, user.id) is None:
        raise recipe_not_found()
    removed = await cache.delete_for_recipe(recipe_id)
    logger.info("Nutrition cache cleared", recipe_id=str(recipe_id), removed=removed)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
