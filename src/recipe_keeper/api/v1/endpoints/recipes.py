"""Recipe endpoints.

Provides:
- GET/POST /recipes for listing and creating the caller's recipes
- GET/PUT/DELETE /recipes/{recipeId}
- POST /recipes/{recipeId}/favorite
- POST /recipes/{recipeId}/copy for copying or moving into a cookbook
- POST /recipes/move-to-cookbook for filing every unfiled recipe at once
"""

from __future__ import annotations

from typing import Annotated, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Response, status

from recipe_keeper.api.dependencies import (
    get_cookbook_repository,
    get_nutrition_repository,
    get_recipe_repository,
    require_book_permission,
)
from recipe_keeper.auth.dependencies import CurrentUser, get_current_user
from recipe_keeper.auth.permissions import BookPermission
from recipe_keeper.database.exceptions import StoredProcedureMissingError
from recipe_keeper.database.repositories.cookbooks import (
    CookbookRepository,  # noqa: TC001
)
from recipe_keeper.database.repositories.nutrition import (
    NutritionRepository,  # noqa: TC001
)
from recipe_keeper.database.repositories.recipes import (
    RecipeData,
    RecipeRepository,
)
from recipe_keeper.observability.logging import get_logger
from recipe_keeper.schemas.recipe import (
    CopyRecipeRequest,
    CopyRecipeResponse,
    FavoriteRequest,
    MoveToCookbookRequest,
    MoveToCookbookResponse,
    RecipeCategory,
    RecipeCreateRequest,
    RecipeDetailResponse,
    RecipeListResponse,
    RecipeResponse,
    RecipeSummaryResponse,
    RecipeUpdateRequest,
)


logger = get_logger(__name__)

router = APIRouter(tags=["Recipes"])

RecipeId = Annotated[UUID, Path(alias="recipeId", description="Recipe ID")]
SortField = Literal["title", "rating", "cook_time", "source"]


def recipe_not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"error": "RECIPE_NOT_FOUND", "message": "Recipe not found"},
    )


def to_recipe_response(recipe: RecipeData) -> RecipeResponse:
    return RecipeResponse.model_validate(recipe.model_dump())


async def require_recipe_quota(recipes: RecipeRepository, user_id: UUID) -> None:
    """Raise 403 unless the user's plan allows another recipe.

    A database without the quota procedure counts as over the limit.
    """
    try:
        allowed = await recipes.can_create(user_id)
    except StoredProcedureMissingError:
        logger.exception("Recipe limit check unavailable")
        allowed = False
    if not allowed:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "RECIPE_LIMIT_REACHED",
                "message": (
                    "You've reached your recipe limit. "
                    "Upgrade to Premium for unlimited recipes."
                ),
            },
        )


@router.get(
    "/recipes",
    response_model=RecipeListResponse,
    summary="List your recipes",
    description="Recipes the caller owns, newest first unless sortBy is given.",
)
async def list_recipes(
    user: Annotated[CurrentUser, Depends(get_current_user)],
    recipes: Annotated[RecipeRepository, Depends(get_recipe_repository)],
    search: Annotated[str | None, Query(max_length=200)] = None,
    favorites: Annotated[bool, Query()] = False,
    category: Annotated[RecipeCategory | None, Query()] = None,
    book_id: Annotated[UUID | None, Query(alias="bookId")] = None,
    sort_by: Annotated[SortField | None, Query(alias="sortBy")] = None,
) -> RecipeListResponse:
    rows = await recipes.list_for_user(
        user.id,
        search=search.strip() if search else None,
        favorites_only=favorites,
        category=category,
        book_id=book_id,
        sort=sort_by,
    )
    return RecipeListResponse(
        recipes=[to_recipe_response(row) for row in rows],
        count=len(rows),
    )


@router.post(
    "/recipes/move-to-cookbook",
    response_model=MoveToCookbookResponse,
    summary="File unfiled recipes",
    description="Moves every recipe of the caller that has no cookbook into one.",
)
async def move_unfiled_to_cookbook(
    body: MoveToCookbookRequest,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    recipes: Annotated[RecipeRepository, Depends(get_recipe_repository)],
    cookbooks: Annotated[CookbookRepository, Depends(get_cookbook_repository)],
) -> MoveToCookbookResponse:
    await require_book_permission(
        cookbooks, body.book_id, user.id, BookPermission.ADD_RECIPES
    )
    count = await recipes.move_unfiled_to_book(user.id, body.book_id)
    logger.info("Unfiled recipes moved", book_id=str(body.book_id), count=count)
    return MoveToCookbookResponse(count=count)


@router.get(
    "/recipes/{recipeId}",
    response_model=RecipeDetailResponse,
    summary="Get a recipe",
    description=(
        "Returns a recipe the caller owns or can see through a cookbook, "
        "with the recipe it was derived from."
    ),
    responses={404: {"description": "Recipe not found or not visible"}},
)
async def get_recipe(
    recipe_id: RecipeId,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    recipes: Annotated[RecipeRepository, Depends(get_recipe_repository)],
) -> RecipeDetailResponse:
    recipe = await recipes.get_visible(recipe_id, user.id)
    if recipe is None:
        raise recipe_not_found()

    parent = None
    if recipe.parent_recipe_id is not None:
        summary = await recipes.get_summary(recipe.parent_recipe_id)
        if summary is not None:
            parent = RecipeSummaryResponse.model_validate(summary.model_dump())

    return RecipeDetailResponse(recipe=to_recipe_response(recipe), parent_recipe=parent)


@router.post(
    "/recipes",
    response_model=RecipeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a recipe",
    description=(
        "Creates a recipe, optionally filed in a cookbook, with extra gallery "
        "images. Counts against the caller's plan limit."
    ),
    responses={
        403: {
            "description": "Recipe limit reached or no access to the cookbook",
            "content": {
                "application/json": {
                    "example": {
                        "error": "RECIPE_LIMIT_REACHED",
                        "message": "You've reached your recipe limit.",
                    }
                }
            },
        },
        422: {"description": "Request validation error"},
    },
)
async def create_recipe(
    body: RecipeCreateRequest,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    recipes: Annotated[RecipeRepository, Depends(get_recipe_repository)],
    cookbooks: Annotated[CookbookRepository, Depends(get_cookbook_repository)],
) -> RecipeResponse:
    """Create a recipe.

    1. Check the caller may add recipes to the target cookbook
    2. Ask the database whether the caller is under their plan limit
    3. Insert the recipe and its gallery images
    4. Bump the caller's recipe count
    """
    if body.book_id is not None:
        await require_book_permission(
            cookbooks,
            body.book_id,
            user.id,
            BookPermission.ADD_RECIPES,
            message="You don't have permission to add recipes to this cookbook",
        )

    await require_recipe_quota(recipes, user.id)

    fields = body.model_dump(
        exclude={"additional_images"}, exclude_none=True, by_alias=False
    )
    recipe = await recipes.create(
        user.id, fields, additional_images=body.additional_images
    )
    await recipes.increment_count(user.id)

    logger.info(
        "Recipe created",
        recipe_id=str(recipe.id),
        book_id=str(recipe.book_id) if recipe.book_id else None,
        additional_images=len(body.additional_images),
    )
    return to_recipe_response(recipe)


@router.put(
    "/recipes/{recipeId}",
    response_model=RecipeResponse,
    summary="Update a recipe",
    description="Owner only. Omitted fields are left unchanged.",
    responses={404: {"description": "Recipe not found"}},
)
async def update_recipe(
    recipe_id: RecipeId,
    body: RecipeUpdateRequest,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    recipes: Annotated[RecipeRepository, Depends(get_recipe_repository)],
    cookbooks: Annotated[CookbookRepository, Depends(get_cookbook_repository)],
    nutrition: Annotated[NutritionRepository, Depends(get_nutrition_repository)],
) -> RecipeResponse:
    fields = body.model_dump(exclude_unset=True, by_alias=False)
    target_book = fields.get("book_id")
    if target_book is not None:
        await require_book_permission(
            cookbooks,
            target_book,
            user.id,
            BookPermission.ADD_RECIPES,
            message="You don't have permission to add recipes to this cookbook",
        )

    recipe = await recipes.update(recipe_id, user.id, fields)
    if recipe is None:
        raise recipe_not_found()
    if fields.keys() & {"ingredients", "servings"}:
        await nutrition.delete_for_recipe(recipe_id)
    logger.info("Recipe updated", recipe_id=str(recipe_id), fields=sorted(fields))
    return to_recipe_response(recipe)


@router.delete(
    "/recipes/{recipeId}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a recipe",
    description="Owner only.",
    responses={404: {"description": "Recipe not found"}},
)
async def delete_recipe(
    recipe_id: RecipeId,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    recipes: Annotated[RecipeRepository, Depends(get_recipe_repository)],
) -> Response:
    if not await recipes.delete(recipe_id, user.id):
        raise recipe_not_found()
    logger.info("Recipe deleted", recipe_id=str(recipe_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/recipes/{recipeId}/favorite",
    response_model=RecipeResponse,
    summary="Mark or unmark a favourite",
)
async def set_favorite(
    recipe_id: RecipeId,
    body: FavoriteRequest,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    recipes: Annotated[RecipeRepository, Depends(get_recipe_repository)],
) -> RecipeResponse:
    if not await recipes.set_favorite(recipe_id, user.id, is_favorite=body.is_favorite):
        raise recipe_not_found()
    recipe = await recipes.get_owned(recipe_id, user.id)
    if recipe is None:
        raise recipe_not_found()
    return to_recipe_response(recipe)


@router.post(
    "/recipes/{recipeId}/copy",
    response_model=CopyRecipeResponse,
    summary="Copy or move a recipe to a cookbook",
    description=(
        "With move=true the recipe is refiled; otherwise a copy titled "
        '"<title> (Copy)" is created in the target cookbook with its images.'
    ),
)
async def copy_recipe(
    recipe_id: RecipeId,
    body: CopyRecipeRequest,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    recipes: Annotated[RecipeRepository, Depends(get_recipe_repository)],
    cookbooks: Annotated[CookbookRepository, Depends(get_cookbook_repository)],
) -> CopyRecipeResponse:
    if body.target_book_id is not None:
        await require_book_permission(
            cookbooks,
            body.target_book_id,
            user.id,
            BookPermission.ADD_RECIPES,
            message="You don't have permission to add recipes to this cookbook",
        )

    if body.move:
        if not await recipes.move_to_book(recipe_id, user.id, body.target_book_id):
            raise recipe_not_found()
        logger.info("Recipe moved", recipe_id=str(recipe_id))
        return CopyRecipeResponse(recipe_id=recipe_id, moved=True)

    recipe = await recipes.get_visible(recipe_id, user.id)
    if recipe is None:
        raise recipe_not_found()
    new_id = await recipes.copy_to_book(recipe, user.id, body.target_book_id)
    return CopyRecipeResponse(recipe_id=new_id, moved=False)
