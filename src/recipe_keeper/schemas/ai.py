"""Schemas for AI recipe import, image generation and usage reporting."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import Field, model_validator

from recipe_keeper.llm.prompts.recipe_variation import VariationType
from recipe_keeper.schemas.base import APIRequest, APIResponse


# =============================================================================
# Recipe import
# =============================================================================


class ImportImage(APIRequest):
    """One photographed page, base64-encoded."""

    data: str = Field(..., min_length=1)
    mime_type: Literal["image/jpeg", "image/png", "image/webp", "image/heic"]


class RecipeImportRequest(APIRequest):
    """Either photographed pages or text already extracted from a PDF."""

    images: list[ImportImage] | None = Field(default=None, min_length=1, max_length=10)
    text: str | None = Field(default=None, max_length=50_000)
    source: Literal["image", "pdf", "text"] | None = None

    @model_validator(mode="after")
    def _one_input(self) -> RecipeImportRequest:
        has_images = bool(self.images)
        has_text = bool(self.text and self.text.strip())
        if has_images == has_text:
            msg = "Provide either images or text"
            raise ValueError(msg)
        return self


class ImportedRecipe(APIResponse):
    title: str | None = None
    category: str | None = None
    prep_time: int | None = None
    cook_time: int | None = None
    servings: str | None = None
    ingredients: str | None = None
    instructions: str | None = None
    notes: str | None = None
    source: str | None = None
    rating: int | None = None


class ImportUsage(APIResponse):
    input_tokens: int
    output_tokens: int
    total_tokens: int
    estimated_cost: float


class RecipeImportResponse(APIResponse):
    recipe: ImportedRecipe
    confidence: float = Field(..., ge=0, le=1)
    usage: ImportUsage


# =============================================================================
# Image generation
# =============================================================================


class ImageGenerateRequest(APIRequest):
    title: str = Field(..., min_length=1, max_length=200)
    category: str | None = Field(default=None, max_length=50)
    count: int = Field(default=1, ge=1, le=4)


class GeneratedImageResponse(APIResponse):
    success: bool
    image_url: str | None = None
    error: str | None = None


class ImageGenerateResponse(APIResponse):
    images: list[GeneratedImageResponse]


# =============================================================================
# Recipe variations
# =============================================================================


class VariationAllowanceResponse(APIResponse):
    """Monthly variation allowance; limit and remaining are null when unlimited."""

    can_generate: bool
    is_premium: bool
    used: int
    limit: int | None = None
    remaining: int | None = None


class GenerateVariationsRequest(APIRequest):
    variation_type: VariationType
    count: int = Field(default=3, ge=1, le=5)
    # e.g. "vegan" or "gluten-free"; only used for dietary variations.
    custom_parameter: str | None = Field(default=None, max_length=100)


class VariationFields(APIRequest):
    """A variation as suggested by the model, and as sent back to save it."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    ingredients: str = Field(..., min_length=1)
    instructions: str = Field(..., min_length=1)
    prep_time: int | None = Field(default=None, ge=0)
    cook_time: int | None = Field(default=None, ge=0)
    servings: str | None = None
    key_changes: list[str] = Field(default_factory=list)
    notes: str | None = None


class VariationResponse(APIResponse):
    title: str
    description: str = ""
    ingredients: str
    instructions: str
    prep_time: int | None = None
    cook_time: int | None = None
    servings: str | None = None
    key_changes: list[str] = Field(default_factory=list)
    notes: str | None = None


class GenerateVariationsResponse(APIResponse):
    variation_type: str
    variations: list[VariationResponse]
    remaining: int | None = None
    usage: ImportUsage


class SaveVariationRequest(APIRequest):
    """Save a suggested variation as a new recipe.

    When ``bookId`` is omitted the variation is filed with its parent; an
    explicit null leaves it unfiled.
    """

    variation: VariationFields
    variation_type: VariationType
    book_id: UUID | None = None


class SaveVariationResponse(APIResponse):
    recipe_id: UUID


# =============================================================================
# Usage
# =============================================================================


class ServiceUsage(APIResponse):
    count: int = 0
    cost: float = 0.0
    tokens: int = 0


class DailyUsage(APIResponse):
    count: int = 0
    cost: float = 0.0


class UsageRecord(APIResponse):
    id: UUID
    service: str
    operation: str
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    estimated_cost: float = 0.0
    metadata: dict[str, Any] | None = None
    created_at: datetime


class UsageStatsResponse(APIResponse):
    """AI usage over a trailing window of days."""

    days: int
    total_cost: float
    total_tokens: int
    total_imports: int
    by_service: dict[str, ServiceUsage]
    by_day: dict[str, DailyUsage]
    recent_usage: list[UsageRecord]
