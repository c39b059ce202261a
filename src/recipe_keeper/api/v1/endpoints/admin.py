"""Admin endpoints.

Every route requires an admin; each one additionally names the admin
permission it needs. Super admins configured by email pass every check.
"""

from __future__ import annotations

from dataclasses import asdict
from datetime import UTC, datetime
from typing import Annotated, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Response, status

from recipe_keeper.api.dependencies import (
    get_profile_repository,
    get_promo_code_repository,
    get_recipe_repository,
    get_subscription_repository,
)
from recipe_keeper.auth.dependencies import (
    AdminContext,
    RequireAdmin,
    get_admin_repository,
)
from recipe_keeper.auth.permissions import AdminPermission
from recipe_keeper.core.config import Settings, get_settings
from recipe_keeper.database.exceptions import DuplicateRecordError
from recipe_keeper.database.repositories.admin import (
    AdminRepository,
    AdminUserRow,
)
from recipe_keeper.database.repositories.profiles import (
    ProfileRepository,  # noqa: TC001
)
from recipe_keeper.database.repositories.promo_codes import (
    PromoCodeData,
    PromoCodeRepository,
)
from recipe_keeper.database.repositories.recipes import (
    RecipeRepository,  # noqa: TC001
)
from recipe_keeper.database.repositories.subscriptions import (
    SubscriptionRepository,  # noqa: TC001
)
from recipe_keeper.observability.logging import get_logger
from recipe_keeper.schemas.admin import (
    AdminUserDetailResponse,
    AdminUserListResponse,
    AdminUserResponse,
    DashboardMetricsResponse,
    PromoCodeCreateRequest,
    PromoCodeListResponse,
    PromoCodeResponse,
    PromoCodeUpdateRequest,
    SubscriptionEventResponse,
    UserPromoCodeResponse,
)
from recipe_keeper.schemas.billing import SubscriptionResponse
from recipe_keeper.schemas.profile import ProfileResponse
from recipe_keeper.schemas.recipe import RecipeSummaryResponse
from recipe_keeper.services.admin import (
    load_dashboard,
    metrics_csv,
    metrics_rows,
    users_csv,
)
from recipe_keeper.services.billing import subscription_stats


logger = get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])

UserId = Annotated[UUID, Path(alias="userId", description="User ID")]
PromoId = Annotated[UUID, Path(alias="promoId", description="Promo code ID")]

ViewMetrics = Annotated[
    AdminContext, Depends(RequireAdmin(AdminPermission.VIEW_METRICS))
]
ViewUsers = Annotated[AdminContext, Depends(RequireAdmin(AdminPermission.VIEW_USERS))]
ManagePromoCodes = Annotated[
    AdminContext, Depends(RequireAdmin(AdminPermission.MANAGE_PROMO_CODES))
]
ExportData = Annotated[AdminContext, Depends(RequireAdmin(AdminPermission.EXPORT_DATA))]


def _user_response(row: AdminUserRow) -> AdminUserResponse:
    return AdminUserResponse(
        id=row.id,
        email=row.email,
        full_name=row.full_name,
        created_at=row.created_at,
        status=row.status or "free",
        plan_type=row.plan_type or "free",
        recipe_count=row.recipe_count or 0,
        recipe_limit=row.recipe_limit or 25,
    )


def _promo_response(promo: PromoCodeData) -> PromoCodeResponse:
    return PromoCodeResponse.model_validate(promo.model_dump())


def _promo_not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"error": "PROMO_CODE_NOT_FOUND", "message": "Promo code not found"},
    )


def _csv_response(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# =============================================================================
# Dashboard
# =============================================================================


@router.get(
    "/metrics",
    response_model=DashboardMetricsResponse,
    summary="Dashboard metrics",
    description="User, recipe, cookbook, revenue and churn figures.",
)
async def get_metrics(
    admin: ViewMetrics,
    admins: Annotated[AdminRepository, Depends(get_admin_repository)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> DashboardMetricsResponse:
    return await load_dashboard(admins, settings.billing)


# =============================================================================
# Users
# =============================================================================


@router.get(
    "/users",
    response_model=AdminUserListResponse,
    summary="List users",
    description="Newest first. `search` matches email or name.",
)
async def list_users(
    admin: ViewUsers,
    admins: Annotated[AdminRepository, Depends(get_admin_repository)],
    search: Annotated[str | None, Query(max_length=200)] = None,
    tier: Annotated[Literal["free", "monthly", "annual"] | None, Query()] = None,
    limit: Annotated[int, Query(ge=1, le=1000)] = 100,
) -> AdminUserListResponse:
    rows = await admins.list_users(search=search, tier=tier, limit=limit)
    return AdminUserListResponse(
        users=[_user_response(row) for row in rows], count=len(rows)
    )


@router.get(
    "/users/{userId}",
    response_model=AdminUserDetailResponse,
    summary="Get one user",
    description="Profile, subscription, recent recipes, promo codes and billing events.",
    responses={404: {"description": "User not found"}},
)
async def get_user(
    user_id: UserId,
    admin: ViewUsers,
    profiles: Annotated[ProfileRepository, Depends(get_profile_repository)],
    subscriptions: Annotated[
        SubscriptionRepository, Depends(get_subscription_repository)
    ],
    recipes: Annotated[RecipeRepository, Depends(get_recipe_repository)],
    promo_codes: Annotated[PromoCodeRepository, Depends(get_promo_code_repository)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AdminUserDetailResponse:
    profile = await profiles.get(user_id)
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "USER_NOT_FOUND", "message": "User not found"},
        )

    subscription = await subscriptions.get_for_user(user_id)
    stats = subscription_stats(
        subscription, free_limit=settings.billing.free_recipe_limit
    )
    recent = await recipes.list_recent_for_user(user_id, limit=10)
    redemptions = await promo_codes.list_for_user(user_id)
    events = await subscriptions.list_events(user_id, limit=20)

    return AdminUserDetailResponse(
        profile=ProfileResponse.model_validate(profile.model_dump()),
        subscription=SubscriptionResponse(**asdict(stats)),
        recent_recipes=[
            RecipeSummaryResponse.model_validate(recipe.model_dump())
            for recipe in recent
        ],
        promo_codes=[
            UserPromoCodeResponse.model_validate(
                redemption.model_dump(exclude={"user_id"})
            )
            for redemption in redemptions
        ],
        events=[
            SubscriptionEventResponse.model_validate(
                event.model_dump(exclude={"user_id"})
            )
            for event in events
        ],
    )


# =============================================================================
# Promo codes
# =============================================================================


@router.get(
    "/promo-codes",
    response_model=PromoCodeListResponse,
    summary="List promo codes",
)
async def list_promo_codes(
    admin: ManagePromoCodes,
    promo_codes: Annotated[PromoCodeRepository, Depends(get_promo_code_repository)],
) -> PromoCodeListResponse:
    codes = await promo_codes.list_all()
    return PromoCodeListResponse(promo_codes=[_promo_response(code) for code in codes])


@router.post(
    "/promo-codes",
    response_model=PromoCodeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a promo code",
    responses={409: {"description": "Code already exists"}},
)
async def create_promo_code(
    body: PromoCodeCreateRequest,
    admin: ManagePromoCodes,
    promo_codes: Annotated[PromoCodeRepository, Depends(get_promo_code_repository)],
) -> PromoCodeResponse:
    try:
        promo = await promo_codes.create(
            body.model_dump(by_alias=False),
            created_by=admin.user.email or str(admin.user.id),
        )
    except DuplicateRecordError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "error": "PROMO_CODE_EXISTS",
                "message": "A promo code with this code already exists",
            },
        ) from None
    logger.info("Promo code created", code=promo.code)
    return _promo_response(promo)


@router.patch(
    "/promo-codes/{promoId}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Update a promo code",
)
async def update_promo_code(
    promo_id: PromoId,
    body: PromoCodeUpdateRequest,
    admin: ManagePromoCodes,
    promo_codes: Annotated[PromoCodeRepository, Depends(get_promo_code_repository)],
) -> Response:
    fields = body.model_dump(exclude_unset=True, by_alias=False)
    if not await promo_codes.update(promo_id, fields):
        raise _promo_not_found()
    logger.info("Promo code updated", promo_id=str(promo_id), fields=sorted(fields))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete(
    "/promo-codes/{promoId}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a promo code",
)
async def delete_promo_code(
    promo_id: PromoId,
    admin: ManagePromoCodes,
    promo_codes: Annotated[PromoCodeRepository, Depends(get_promo_code_repository)],
) -> Response:
    if not await promo_codes.delete(promo_id):
        raise _promo_not_found()
    logger.info("Promo code deleted", promo_id=str(promo_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =============================================================================
# Exports
# =============================================================================


@router.get(
    "/export/users.csv",
    response_class=Response,
    summary="Export users as CSV",
    responses={200: {"content": {"text/csv": {}}}},
)
async def export_users(
    admin: ExportData,
    admins: Annotated[AdminRepository, Depends(get_admin_repository)],
) -> Response:
    rows = await admins.list_users(limit=100_000)
    stamp = datetime.now(UTC).strftime("%Y-%m-%d")
    return _csv_response(users_csv(rows), f"users-{stamp}.csv")


@router.get(
    "/export/metrics.csv",
    response_class=Response,
    summary="Export dashboard metrics as CSV",
    responses={200: {"content": {"text/csv": {}}}},
)
async def export_metrics(
    admin: ExportData,
    admins: Annotated[AdminRepository, Depends(get_admin_repository)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> Response:
    metrics = await load_dashboard(admins, settings.billing)
    stamp = metrics.generated_at.strftime("%Y-%m-%d")
    return _csv_response(metrics_csv(metrics_rows(metrics)), f"metrics-{stamp}.csv")
