"""Recipe, gallery image and share link schemas."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Annotated, Any
from uuid import UUID

from pydantic import AfterValidator, Field, field_validator

from recipe_keeper.schemas.base import APIRequest, APIResponse


class RecipeCategory(StrEnum):
    """Categories a recipe can be filed under."""

    BREAKFAST = "Breakfast"
    LUNCH = "Lunch"
    DINNER = "Dinner"
    DESSERT = "Dessert"
    APPETIZER = "Appetizer"
    SNACK = "Snack"
    BEVERAGE = "Beverage"
    SALAD = "Salad"
    SOUP = "Soup"
    SIDE_DISH = "Side Dish"
    MAIN_COURSE = "Main Course"
    BAKING = "Baking"
    OTHER = "Other"


def _url_or_empty(value: str | None) -> str | None:
    if value is None or value == "":
        return value
    if not value.startswith(("http://", "https://")):
        msg = "Must be a valid URL"
        raise ValueError(msg)
    return value


ImageUrl = Annotated[str | None, AfterValidator(_url_or_empty)]


class PhotoMemory(APIRequest):
    """A captioned photo attached to a recipe's story."""

    url: str
    caption: str | None = None
    year: str | None = None


class RecipeFields(APIRequest):
    """Fields shared by recipe create and update bodies."""

    ingredients: str | None = None
    instructions: str | None = None
    prep_time: int | None = Field(default=None, ge=0)
    cook_time: int | None = Field(default=None, ge=0)
    servings: str | None = None
    category: RecipeCategory | None = None
    source: str | None = None
    notes: str | None = None
    image_url: ImageUrl = None
    rating: int | None = Field(default=None, ge=1, le=5)
    is_favorite: bool | None = None
    story: str | None = None
    family_memories: list[str] | None = None
    photo_memories: list[PhotoMemory] | None = None
    book_id: UUID | None = None


class RecipeCreateRequest(RecipeFields):
    """Body of ``POST /recipes``."""

    title: str = Field(..., min_length=1, max_length=200)
    ingredients: str = Field(..., min_length=1)
    instructions: str = Field(..., min_length=1)
    additional_images: list[str] = Field(default_factory=list)


class RecipeUpdateRequest(RecipeFields):
    """Body of ``PUT /recipes/{id}``; omitted fields are left unchanged."""

    title: str | None = Field(default=None, min_length=1, max_length=200)

    @field_validator("ingredients", "instructions")
    @classmethod
    def _not_blank(cls, value: str | None) -> str | None:
        if value is not None and not value:
            msg = "Must not be empty"
            raise ValueError(msg)
        return value


class RecipeResponse(APIResponse):
    """A stored recipe."""

    id: UUID
    user_id: UUID
    book_id: UUID | None = None
    submitted_by: UUID | None = None
    parent_recipe_id: UUID | None = None
    variation_type: str | None = None
    title: str
    ingredients: str
    instructions: str
    prep_time: int | None = None
    cook_time: int | None = None
    servings: str | None = None
    category: str | None = None
    source: str | None = None
    notes: str | None = None
    image_url: str | None = None
    rating: int | None = None
    is_favorite: bool = False
    story: str | None = None
    family_memories: list[str] | None = None
    photo_memories: list[dict[str, Any]] | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class RecipeSummaryResponse(APIResponse):
    id: UUID
    title: str
    created_at: datetime | None = None


class RecipeDetailResponse(APIResponse):
    """A recipe with the recipe it was derived from, when there is one."""

    recipe: RecipeResponse
    parent_recipe: RecipeSummaryResponse | None = None


class RecipeListResponse(APIResponse):
    recipes: list[RecipeResponse]
    count: int


class FavoriteRequest(APIRequest):
    is_favorite: bool


class MoveToCookbookRequest(APIRequest):
    book_id: UUID


class MoveToCookbookResponse(APIResponse):
    count: int


class CopyRecipeRequest(APIRequest):
    """Copy a recipe into a cookbook, or move it when ``move`` is set."""

    target_book_id: UUID | None = None
    move: bool = False


class CopyRecipeResponse(APIResponse):
    recipe_id: UUID
    moved: bool


# =============================================================================
# Gallery images
# =============================================================================


class RecipeImageResponse(APIResponse):
    id: UUID
    recipe_id: UUID
    image_url: str
    caption: str | None = None
    display_order: int = 0
    created_at: datetime | None = None


class AddRecipeImageRequest(APIRequest):
    image_url: str = Field(..., min_length=1)
    caption: str | None = None

    @field_validator("image_url")
    @classmethod
    def _valid_url(cls, value: str) -> str:
        _url_or_empty(value)
        return value


class UpdateRecipeImageRequest(APIRequest):
    caption: str | None = None
    display_order: int | None = Field(default=None, ge=0)


# =============================================================================
# Public shares
# =============================================================================


class ShareResponse(APIResponse):
    id: UUID
    recipe_id: UUID
    share_token: str
    share_url: str
    expires_at: datetime | None = None
    view_count: int = 0
    created_at: datetime | None = None


class SharedRecipeResponse(APIResponse):
    """A recipe opened through a public link."""

    recipe: RecipeResponse
    view_count: int


# =============================================================================
# Uploads
# =============================================================================


class UploadResponse(APIResponse):
    url: str
    path: str
