"""Promo code redemption endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from recipe_keeper.api.dependencies import get_promo_code_repository
from recipe_keeper.auth.dependencies import CurrentUser, get_current_user
from recipe_keeper.database.exceptions import StoredProcedureMissingError
from recipe_keeper.database.repositories.promo_codes import (
    PromoCodeRepository,  # noqa: TC001
)
from recipe_keeper.observability.logging import get_logger
from recipe_keeper.schemas.billing import (
    ActivePromoResponse,
    PromoApplyRequest,
    PromoApplyResponse,
)


logger = get_logger(__name__)

router = APIRouter(prefix="/promo", tags=["Promo Codes"])

_PROMO_FIELDS = ("promo_code", "promo_name", "max_recipes", "expires_at")


@router.post(
    "/apply",
    response_model=PromoApplyResponse,
    summary="Redeem a promo code",
    responses={400: {"description": "Code invalid, expired or already used"}},
)
async def apply_promo_code(
    body: PromoApplyRequest,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    promo_codes: Annotated[PromoCodeRepository, Depends(get_promo_code_repository)],
) -> PromoApplyResponse:
    try:
        result = await promo_codes.apply(user.id, body.code)
    except StoredProcedureMissingError:
        logger.exception("Promo code procedure unavailable")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "error": "SERVICE_UNAVAILABLE",
                "message": "Promo codes are not available right now",
            },
        ) from None

    if not result.get("success"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "INVALID_PROMO_CODE",
                "message": result.get("error") or "Invalid promo code",
            },
        )

    logger.info("Promo code applied", promo_code=result.get("promo_code"))
    return PromoApplyResponse(
        success=True, **{key: result.get(key) for key in _PROMO_FIELDS}
    )


@router.get(
    "/active",
    response_model=ActivePromoResponse,
    summary="Get your active promo code",
)
async def get_active_promo(
    user: Annotated[CurrentUser, Depends(get_current_user)],
    promo_codes: Annotated[PromoCodeRepository, Depends(get_promo_code_repository)],
) -> ActivePromoResponse:
    active = await promo_codes.get_active(user.id)
    if active is None:
        return ActivePromoResponse(has_promo=False)
    return ActivePromoResponse(
        has_promo=True, **{key: active.get(key) for key in _PROMO_FIELDS}
    )
