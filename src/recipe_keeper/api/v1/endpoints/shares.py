"""Public share link endpoints.

Owners create a share token for a recipe; anyone holding the link can
open the recipe without signing in until the share expires.
"""

from __future__ import annotations

import secrets
from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, Response, status

from recipe_keeper.api.dependencies import get_recipe_repository, get_share_repository
from recipe_keeper.api.v1.endpoints.recipes import (
    RecipeId,
    recipe_not_found,
    to_recipe_response,
)
from recipe_keeper.auth.dependencies import CurrentUser, get_current_user
from recipe_keeper.core.config import get_settings
from recipe_keeper.database.repositories.recipes import RecipeRepository  # noqa: TC001
from recipe_keeper.database.repositories.shares import ShareData, ShareRepository
from recipe_keeper.observability.logging import get_logger
from recipe_keeper.schemas.recipe import ShareResponse, SharedRecipeResponse


logger = get_logger(__name__)

router = APIRouter(tags=["Sharing"])

# 9 random bytes encode to exactly 12 URL-safe characters.
SHARE_TOKEN_BYTES = 9


def generate_share_token() -> str:
    return secrets.token_urlsafe(SHARE_TOKEN_BYTES)


def _to_response(share: ShareData) -> ShareResponse:
    return ShareResponse(
        id=share.id,
        recipe_id=share.recipe_id,
        share_token=share.share_token,
        share_url=f"{get_settings().app.public_url.rstrip('/')}/share/{share.share_token}",
        expires_at=share.expires_at,
        view_count=share.view_count,
        created_at=share.created_at,
    )


async def _require_owner(
    recipes: RecipeRepository, recipe_id: RecipeId, user: CurrentUser
) -> None:
    if await recipes.get_owned(recipe_id, user.id) is None:
        raise recipe_not_found()


@router.post(
    "/recipes/{recipeId}/share",
    response_model=ShareResponse,
    summary="Create a share link",
    description="Returns the existing link if the recipe is already shared.",
)
async def create_share(
    recipe_id: RecipeId,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    recipes: Annotated[RecipeRepository, Depends(get_recipe_repository)],
    shares: Annotated[ShareRepository, Depends(get_share_repository)],
) -> ShareResponse:
    await _require_owner(recipes, recipe_id, user)

    existing = await shares.get_for_recipe(recipe_id)
    if existing is not None:
        return _to_response(existing)

    share = await shares.create(recipe_id, user.id, generate_share_token())
    logger.info("Share link created", recipe_id=str(recipe_id))
    return _to_response(share)


@router.get(
    "/recipes/{recipeId}/shares",
    response_model=list[ShareResponse],
    summary="List share links",
)
async def list_shares(
    recipe_id: RecipeId,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    recipes: Annotated[RecipeRepository, Depends(get_recipe_repository)],
    shares: Annotated[ShareRepository, Depends(get_share_repository)],
) -> list[ShareResponse]:
    await _require_owner(recipes, recipe_id, user)
    return [_to_response(share) for share in await shares.list_for_recipe(recipe_id)]


@router.delete(
    "/recipes/{recipeId}/share",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Stop sharing a recipe",
)
async def delete_share(
    recipe_id: RecipeId,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    recipes: Annotated[RecipeRepository, Depends(get_recipe_repository)],
    shares: Annotated[ShareRepository, Depends(get_share_repository)],
) -> Response:
    await _require_owner(recipes, recipe_id, user)
    removed = await shares.delete_for_recipe(recipe_id)
    logger.info("Share links removed", recipe_id=str(recipe_id), count=removed)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/shared/{token}",
    response_model=SharedRecipeResponse,
    summary="Open a shared recipe",
    description="Public. Counts a view each time the link is opened.",
    responses={
        404: {"description": "Unknown share link"},
        410: {"description": "Share link has expired"},
    },
)
async def get_shared_recipe(
    token: Annotated[str, Path(min_length=1, max_length=64)],
    recipes: Annotated[RecipeRepository, Depends(get_recipe_repository)],
    shares: Annotated[ShareRepository, Depends(get_share_repository)],
) -> SharedRecipeResponse:
    share = await shares.get_by_token(token)
    if share is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "SHARE_NOT_FOUND", "message": "Shared recipe not found"},
        )
    if share.expires_at is not None and share.expires_at < datetime.now(UTC):
        raise HTTPException(
            status_code=status.HTTP_410_GONE,
            detail={"error": "SHARE_EXPIRED", "message": "This share link has expired"},
        )

    recipe = await recipes.get_by_id(share.recipe_id)
    if recipe is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "SHARE_NOT_FOUND", "message": "Shared recipe not found"},
        )

    await shares.increment_view_count(token)
    return SharedRecipeResponse(
        recipe=to_recipe_response(recipe), view_count=share.view_count + 1
    )
