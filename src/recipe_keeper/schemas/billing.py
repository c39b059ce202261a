"""Subscription, checkout and promo code schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from recipe_keeper.schemas.base import APIRequest, APIResponse


class SubscriptionResponse(APIResponse):
    """The caller's plan and how much of its recipe quota is left."""

    is_premium: bool
    status: str
    plan_type: str
    recipe_count: int
    recipe_limit: int
    recipes_remaining: int | None = Field(
        default=None, description="Null for unlimited plans"
    )
    current_period_end: datetime | None = None
    referral_code: str | None = None


class CheckoutRequest(APIRequest):
    price_id: str = Field(..., min_length=1)
    referral_code: str | None = None


class CheckoutResponse(APIResponse):
    session_id: str
    url: str | None = None


class PortalResponse(APIResponse):
    url: str


class SubscriptionActionResponse(APIResponse):
    success: bool = True
    cancel_at_period_end: bool


class WebhookAckResponse(APIResponse):
    received: bool = True


# =============================================================================
# Promo codes
# =============================================================================


class PromoApplyRequest(APIRequest):
    code: str = Field(..., min_length=1, max_length=50)


class PromoApplyResponse(APIResponse):
    success: bool
    promo_code: str | None = None
    promo_name: str | None = None
    max_recipes: int | None = None
    expires_at: datetime | None = None


class ActivePromoResponse(APIResponse):
    has_promo: bool
    promo_code: str | None = None
    promo_name: str | None = None
    max_recipes: int | None = None
    expires_at: datetime | None = None
