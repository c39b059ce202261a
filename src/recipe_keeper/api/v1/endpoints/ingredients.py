"""Ingredient parsing and scaling endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from recipe_keeper.auth.dependencies import CurrentUser, get_current_user
from recipe_keeper.parsing import (
    ParsedIngredient,
    calculate_multiplier,
    format_quantity,
    parse_ingredient_line,
    scale_ingredients,
)
from recipe_keeper.schemas.ingredients import (
    ParsedIngredientResponse,
    ParseIngredientRequest,
    ScaleIngredientsRequest,
    ScaleIngredientsResponse,
)


router = APIRouter(prefix="/ingredients", tags=["Ingredients"])


def _to_response(parsed: ParsedIngredient) -> ParsedIngredientResponse:
    return ParsedIngredientResponse(
        quantity=format_quantity(parsed.quantity),
        quantity_value=float(parsed.quantity),
        unit=parsed.unit,
        ingredient=parsed.ingredient,
        original=parsed.original,
    )


@router.post(
    "/scale",
    response_model=ScaleIngredientsResponse,
    summary="Scale an ingredient list",
    description=(
        "Multiplies every leading quantity by newServings / originalServings, "
        "or by an explicit multiplier. Lines without a quantity are unchanged."
    ),
)
async def scale(
    body: ScaleIngredientsRequest,
    _user: Annotated[CurrentUser, Depends(get_current_user)],
) -> ScaleIngredientsResponse:
    if body.multiplier is not None:
        multiplier = body.multiplier
    else:
        multiplier = calculate_multiplier(body.original_servings, body.new_servings)

    scaled = scale_ingredients(body.ingredients, multiplier)
    return ScaleIngredientsResponse(
        multiplier=round(float(multiplier), 4),
        ingredients=scaled,
        lines=[
            _to_response(parse_ingredient_line(line))
            for line in scaled.split("\n")
            if line.strip()
        ],
    )


@router.post(
    "/parse",
    response_model=ParsedIngredientResponse,
    summary="Parse one ingredient line",
)
async def parse(
    body: ParseIngredientRequest,
    _user: Annotated[CurrentUser, Depends(get_current_user)],
) -> ParsedIngredientResponse:
    return _to_response(parse_ingredient_line(body.line))
