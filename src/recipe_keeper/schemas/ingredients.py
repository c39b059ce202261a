"""Ingredient parsing and scaling schemas."""

from __future__ import annotations

from pydantic import Field, model_validator

from recipe_keeper.schemas.base import APIRequest, APIResponse


class ScaleIngredientsRequest(APIRequest):
    """Scale by a serving change or by an explicit multiplier."""

    ingredients: str = Field(..., min_length=1, description="Newline-separated lines")
    original_servings: float | None = Field(default=None, gt=0, allow_inf_nan=False)
    new_servings: float | None = Field(default=None, gt=0, allow_inf_nan=False)
    multiplier: float | None = Field(default=None, gt=0, le=100, allow_inf_nan=False)

    @model_validator(mode="after")
    def _has_scale(self) -> ScaleIngredientsRequest:
        servings = self.original_servings is not None and self.new_servings is not None
        if not servings and self.multiplier is None:
            msg = "Provide originalServings and newServings, or multiplier"
            raise ValueError(msg)
        return self


class ParseIngredientRequest(APIRequest):
    line: str = Field(..., min_length=1, max_length=500)


class ParsedIngredientResponse(APIResponse):
    quantity: str = Field(..., description="Vulgar fraction, e.g. 1 1/2")
    quantity_value: float
    unit: str
    ingredient: str
    original: str


class ScaleIngredientsResponse(APIResponse):
    multiplier: float
    ingredients: str
    lines: list[ParsedIngredientResponse]
