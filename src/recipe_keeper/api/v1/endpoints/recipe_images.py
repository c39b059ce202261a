"""Recipe gallery image endpoints.

Every recipe has an ordered gallery in addition to its primary
``image_url``. Only the recipe's owner can change the gallery.
"""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, Response, status

from recipe_keeper.api.dependencies import (
    get_recipe_image_repository,
    get_recipe_repository,
)
from recipe_keeper.api.v1.endpoints.recipes import (
    RecipeId,
    recipe_not_found,
    to_recipe_response,
)
from recipe_keeper.auth.dependencies import CurrentUser, get_current_user
from recipe_keeper.database.repositories.recipe_images import (
    RecipeImageData,
    RecipeImageRepository,
)
from recipe_keeper.database.repositories.recipes import RecipeRepository  # noqa: TC001
from recipe_keeper.observability.logging import get_logger
from recipe_keeper.schemas.recipe import (
    AddRecipeImageRequest,
    RecipeImageResponse,
    RecipeResponse,
    UpdateRecipeImageRequest,
)


logger = get_logger(__name__)

router = APIRouter(tags=["Recipe Images"])

ImageId = Annotated[UUID, Path(alias="imageId", description="Gallery image ID")]


def _to_response(image: RecipeImageData) -> RecipeImageResponse:
    return RecipeImageResponse.model_validate(image.model_dump(exclude={"owner_id"}))


async def _owned_image(
    images: RecipeImageRepository,
    recipe_id: UUID,
    image_id: UUID,
    user_id: UUID,
) -> RecipeImageData:
    image = await images.get(image_id)
    if image is None or image.recipe_id != recipe_id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "IMAGE_NOT_FOUND", "message": "Image not found"},
        )
    if image.owner_id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "FORBIDDEN",
                "message": "Only the recipe owner can change its images",
            },
        )
    return image


@router.get(
    "/recipes/{recipeId}/images",
    response_model=list[RecipeImageResponse],
    summary="List gallery images",
)
async def list_images(
    recipe_id: RecipeId,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    recipes: Annotated[RecipeRepository, Depends(get_recipe_repository)],
    images: Annotated[RecipeImageRepository, Depends(get_recipe_image_repository)],
) -> list[RecipeImageResponse]:
    if await recipes.get_visible(recipe_id, user.id) is None:
        raise recipe_not_found()
    return [_to_response(image) for image in await images.list_for_recipe(recipe_id)]


@router.post(
    "/recipes/{recipeId}/images",
    response_model=RecipeImageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a gallery image",
    description="Appends the image after the current last one.",
)
async def add_image(
    recipe_id: RecipeId,
    body: AddRecipeImageRequest,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    recipes: Annotated[RecipeRepository, Depends(get_recipe_repository)],
    images: Annotated[RecipeImageRepository, Depends(get_recipe_image_repository)],
) -> RecipeImageResponse:
    if await recipes.get_owned(recipe_id, user.id) is None:
        raise recipe_not_found()
    image = await images.add(recipe_id, body.image_url, body.caption)
    logger.info("Gallery image added", recipe_id=str(recipe_id), image_id=str(image.id))
    return _to_response(image)


@router.patch(
    "/recipes/{recipeId}/images/{imageId}",
    response_model=RecipeImageResponse,
    summary="Update a gallery image",
    description="Change the caption or position of an image.",
)
async def update_image(
    recipe_id: RecipeId,
    image_id: ImageId,
    body: UpdateRecipeImageRequest,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    images: Annotated[RecipeImageRepository, Depends(get_recipe_image_repository)],
) -> RecipeImageResponse:
    await _owned_image(images, recipe_id, image_id, user.id)
    updated = await images.update(
        image_id, body.model_dump(exclude_unset=True, by_alias=False)
    )
    if updated is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "IMAGE_NOT_FOUND", "message": "Image not found"},
        )
    return _to_response(updated)


@router.delete(
    "/recipes/{recipeId}/images/{imageId}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a gallery image",
)
async def delete_image(
    recipe_id: RecipeId,
    image_id: ImageId,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    images: Annotated[RecipeImageRepository, Depends(get_recipe_image_repository)],
) -> Response:
    await _owned_image(images, recipe_id, image_id, user.id)
    await images.delete(image_id)
    logger.info("Gallery image deleted", recipe_id=str(recipe_id), image_id=str(image_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/recipes/{recipeId}/images/{imageId}/primary",
    response_model=RecipeResponse,
    summary="Use a gallery image as the primary image",
)
async def set_primary_image(
    recipe_id: RecipeId,
    image_id: ImageId,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    recipes: Annotated[RecipeRepository, Depends(get_recipe_repository)],
    images: Annotated[RecipeImageRepository, Depends(get_recipe_image_repository)],
) -> RecipeResponse:
    image = await _owned_image(images, recipe_id, image_id, user.id)
    await recipes.set_image_url(recipe_id, image.image_url)
    recipe = await recipes.get_owned(recipe_id, user.id)
    if recipe is None:
        raise recipe_not_found()
    return to_recipe_response(recipe)
