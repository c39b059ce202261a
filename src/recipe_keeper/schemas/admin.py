"""Admin dashboard, user management and promo code schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import Field

from recipe_keeper.schemas.base import APIRequest, APIResponse
from recipe_keeper.schemas.billing import SubscriptionResponse
from recipe_keeper.schemas.profile import ProfileResponse
from recipe_keeper.schemas.recipe import RecipeSummaryResponse


# =============================================================================
# Dashboard metrics
# =============================================================================


class TierCounts(APIResponse):
    free: int = 0
    monthly: int = 0
    annual: int = 0
    promo: int = 0


class UserMetrics(APIResponse):
    total: int
    active: int = Field(..., description="Users who created a recipe in the last 30 days")
    new_this_month: int
    by_tier: TierCounts


class RecipeMetrics(APIResponse):
    total: int
    this_month: int
    average_per_user: float


class CookbookMetrics(APIResponse):
    total: int
    shared: int
    max_members: int


class SubscriptionMetrics(APIResponse):
    active: int
    canceled: int
    mrr: float
    arr: float
    arpu: float
    ltv: float
    churn_rate: float = Field(..., description="Yearly churn, as a percentage")


class ActivationMetrics(APIResponse):
    activated_users: int
    total_users: int
    activation_rate: float = Field(..., description="Percentage of users with a recipe")


class PromoMetrics(APIResponse):
    active_codes: int
    total_uses: int


class EventMetrics(APIResponse):
    churn_this_month: int
    total_churn: int


class DashboardMetricsResponse(APIResponse):
    users: UserMetrics
    recipes: RecipeMetrics
    cookbooks: CookbookMetrics
    subscriptions: SubscriptionMetrics
    activation: ActivationMetrics
    promos: PromoMetrics
    events: EventMetrics
    generated_at: datetime


# =============================================================================
# Users
# =============================================================================


class AdminUserResponse(APIResponse):
    """A user row in the admin list."""

    id: UUID
    email: str | None = None
    full_name: str | None = None
    created_at: datetime | None = None
    status: str = "free"
    plan_type: str = "free"
    recipe_count: int = 0
    recipe_limit: int = 25


class AdminUserListResponse(APIResponse):
    users: list[AdminUserResponse]
    count: int


class UserPromoCodeResponse(APIResponse):
    id: UUID
    promo_code_id: UUID
    code: str | None = None
    name: str | None = None
    is_active: bool
    applied_at: datetime | None = None
    expires_at: datetime | None = None


class SubscriptionEventResponse(APIResponse):
    id: UUID
    event_type: str
    occurred_at: datetime
    metadata: dict[str, Any] | None = None


class AdminUserDetailResponse(APIResponse):
    profile: ProfileResponse
    subscription: SubscriptionResponse
    recent_recipes: list[RecipeSummaryResponse]
    promo_codes: list[UserPromoCodeResponse]
    events: list[SubscriptionEventResponse]


# =============================================================================
# Promo codes
# =============================================================================


PromoType = Literal["family", "trial", "discount", "limited", "influencer"]


class PromoCodeCreateRequest(APIRequest):
    code: str = Field(..., min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_-]+$")
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = None
    type: PromoType
    max_recipes: int | None = Field(default=None, ge=1)
    max_uses: int | None = Field(default=None, ge=1)
    discount_percent: int | None = Field(default=None, ge=0, le=100)
    duration_days: int | None = Field(default=None, ge=1)
    expires_at: datetime | None = None
    features_enabled: dict[str, Any] | None = None
    is_active: bool = True


class PromoCodeUpdateRequest(APIRequest):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = None
    type: PromoType | None = None
    max_recipes: int | None = Field(default=None, ge=1)
    max_uses: int | None = Field(default=None, ge=1)
    discount_percent: int | None = Field(default=None, ge=0, le=100)
    duration_days: int | None = Field(default=None, ge=1)
    expires_at: datetime | None = None
    features_enabled: dict[str, Any] | None = None
    is_active: bool | None = None


class PromoCodeResponse(APIResponse):
    id: UUID
    code: str
    name: str
    description: str | None = None
    type: str
    max_recipes: int | None = None
    max_uses: int | None = None
    discount_percent: int | None = None
    duration_days: int | None = None
    expires_at: datetime | None = None
    features_enabled: dict[str, Any] | None = None
    is_active: bool = True
    created_by: str | None = None
    created_at: datetime | None = None
    active_uses: int = 0


class PromoCodeListResponse(APIResponse):
    promo_codes: list[PromoCodeResponse]
