"""Recipe rating endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from recipe_keeper.api.dependencies import get_rating_repository, get_recipe_repository
from recipe_keeper.api.v1.endpoints.recipes import RecipeId, recipe_not_found
from recipe_keeper.auth.dependencies import CurrentUser, get_current_user
from recipe_keeper.database.repositories.ratings import (
    RatingRepository,  # noqa: TC001
)
from recipe_keeper.database.repositories.recipes import (
    RecipeRepository,  # noqa: TC001
)
from recipe_keeper.schemas.social import RatingRequest, RatingResponse


router = APIRouter(tags=["Ratings"])


async def _rating_response(
    ratings: RatingRepository, recipe_id: RecipeId, user: CurrentUser
) -> RatingResponse:
    stats = await ratings.get_stats(recipe_id)
    return RatingResponse(
        average_rating=stats.average_rating,
        rating_count=stats.rating_count,
        user_rating=await ratings.get_user_rating(recipe_id, user.id),
    )


@router.get(
    "/recipes/{recipeId}/rating",
    response_model=RatingResponse,
    summary="Get a recipe's rating",
    description="Average and count across all raters, plus the caller's own rating.",
)
async def get_rating(
    recipe_id: RecipeId,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    recipes: Annotated[RecipeRepository, Depends(get_recipe_repository)],
    ratings: Annotated[RatingRepository, Depends(get_rating_repository)],
) -> RatingResponse:
    if await recipes.get_visible(recipe_id, user.id) is None:
        raise recipe_not_found()
    return await _rating_response(ratings, recipe_id, user)


@router.put(
    "/recipes/{recipeId}/rating",
    response_model=RatingResponse,
    summary="Rate a recipe",
    description="Replaces any earlier rating by the caller.",
)
async def rate_recipe(
    recipe_id: RecipeId,
    body: RatingRequest,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    recipes: Annotated[RecipeRepository, Depends(get_recipe_repository)],
    ratings: Annotated[RatingRepository, Depends(get_rating_repository)],
) -> RatingResponse:
    if await recipes.get_visible(recipe_id, user.id) is None:
        raise recipe_not_found()
    await ratings.upsert(recipe_id, user.id, body.rating)
    return await _rating_response(ratings, recipe_id, user)


@router.delete(
    "/recipes/{recipeId}/rating",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove your rating",
)
async def delete_rating(
    recipe_id: RecipeId,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    ratings: Annotated[RatingRepository, Depends(get_rating_repository)],
) -> Response:
    await ratings.delete(recipe_id, user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
