"""FastAPI dependencies for service and repository access.

Clients for external services are created during application startup and
stored in ``app.state``. A client that failed to start is stored as None,
and routes that need it answer 503 instead of failing at import time.
Repositories are cheap and share the global connection pool, so they are
built per request; tests swap them through ``app.dependency_overrides``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated, Any
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status

from recipe_keeper.auth.permissions import BookPermission, has_book_permission
from recipe_keeper.core.config import get_settings
from recipe_keeper.database.repositories import (
    CommentRepository,
    CookbookRepository,
    InvitationRepository,
    NutritionRepository,
    ProfileRepository,
    PromoCodeRepository,
    RatingRepository,
    RecipeImageRepository,
    RecipeRepository,
    ShareRepository,
    SubscriptionRepository,
    UsageRepository,
)
from recipe_keeper.services.email import EmailClient  # noqa: TC001
from recipe_keeper.services.invitations import InvitationService


if TYPE_CHECKING:
    from recipe_keeper.cache.rate_limit import ActionRateLimiter
    from recipe_keeper.services.billing import BillingClient
    from recipe_keeper.services.image_generation import ImageGenerationClient
    from recipe_keeper.services.nutrition import NutritionClient
    from recipe_keeper.services.recipe_import import RecipeImportService
    from recipe_keeper.services.storage import StorageClient
    from recipe_keeper.services.variations import RecipeVariationService


# =============================================================================
# Services from app.state
# =============================================================================


def _service_unavailable(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail={"error": "SERVICE_UNAVAILABLE", "message": message},
    )


def _state(request: Request, name: str) -> Any:
    return getattr(request.app.state, name, None)


async def get_billing_client(request: Request) -> BillingClient:
    """Get the Stripe client from app state.

    Raises:
        HTTPException: 503 if billing is not configured.
    """
    client: BillingClient | None = _state(request, "billing_client")
    if client is None:
        raise _service_unavailable("Billing is not configured")
    return client


async def get_optional_billing_client(request: Request) -> BillingClient | None:
    return _state(request, "billing_client")


async def get_optional_email_client(request: Request) -> EmailClient | None:
    """Email is best effort, so a missing client is passed through as None."""
    return _state(request, "email_client")


async def get_storage_client(request: Request) -> StorageClient:
    """Get the object storage client from app state.

    Raises:
        HTTPException: 503 if storage is not configured.
    """
    client: StorageClient | None = _state(request, "storage_client")
    if client is None:
        raise _service_unavailable("Image storage not available")
    return client


async def get_image_generation_client(request: Request) -> ImageGenerationClient:
    """Get the image generation client from app state.

    Raises:
        HTTPException: 503 if image generation is not configured.
    """
    client: ImageGenerationClient | None = _state(request, "image_generation_client")
    if client is None:
        raise _service_unavailable("Image generation not available")
    return client


async def get_recipe_import_service(request: Request) -> RecipeImportService:
    """Get the AI recipe import service from app state.

    Raises:
        HTTPException: 503 if the model API is not configured.
    """
    service: RecipeImportService | None = _state(request, "recipe_import_service")
    if service is None:
        raise _service_unavailable("Recipe import not available")
    return service


async def get_recipe_variation_service(request: Request) -> RecipeVariationService:
    """Get the AI recipe variation service from app state.

    Raises:
        HTTPException: 503 if the model API is not configured.
    """
    service: RecipeVariationService | None = _state(request, "recipe_variation_service")
    if service is None:
        raise _service_unavailable("Recipe variations not available")
    return service


async def get_nutrition_client(request: Request) -> NutritionClient:
    """Get the USDA FoodData Central client from app state.

    Raises:
        HTTPException: 503 if the client could not start.
    """
    client: NutritionClient | None = _state(request, "nutrition_client")
    if client is None:
        raise _service_unavailable("Nutrition lookup not available")
    return client


async def get_action_limiter(request: Request) -> ActionRateLimiter | None:
    """Named-action limiter, or None when Redis could not be reached."""
    return _state(request, "action_limiter")


# =============================================================================
# Repositories
# =============================================================================


def get_recipe_repository() -> RecipeRepository:
    return RecipeRepository()


def get_recipe_image_repository() -> RecipeImageRepository:
    return RecipeImageRepository()


def get_share_repository() -> ShareRepository:
    return ShareRepository()


def get_cookbook_repository() -> CookbookRepository:
    return CookbookRepository()


def get_invitation_repository() -> InvitationRepository:
    return InvitationRepository()


def get_profile_repository() -> ProfileRepository:
    return ProfileRepository()


def get_subscription_repository() -> SubscriptionRepository:
    return SubscriptionRepository()


def get_promo_code_repository() -> PromoCodeRepository:
    return PromoCodeRepository()


def get_rating_repository() -> RatingRepository:
    return RatingRepository()


def get_comment_repository() -> CommentRepository:
    return CommentRepository()


def get_usage_repository() -> UsageRepository:
    return UsageRepository()


def get_nutrition_repository() -> NutritionRepository:
    return NutritionRepository()


def get_invitation_service(
    cookbooks: Annotated[CookbookRepository, Depends(get_cookbook_repository)],
    invitations: Annotated[InvitationRepository, Depends(get_invitation_repository)],
    profiles: Annotated[ProfileRepository, Depends(get_profile_repository)],
    email: Annotated[EmailClient | None, Depends(get_optional_email_client)],
) -> InvitationService:
    return InvitationService(
        cookbooks,
        invitations,
        profiles,
        email,
        app_url=get_settings().app.public_url,
    )


# =============================================================================
# Rate limiting and access helpers
# =============================================================================


async def enforce_action_limit(
    limiter: ActionRateLimiter | None, action: str, identifier: str
) -> None:
    """Apply a named rate limit; skipped when the limiter is unavailable.

    Raises:
        RateLimitException: 429 when the limit is exceeded.
    """
    if limiter is None:
        return
    await limiter.enforce(action, identifier)


async def require_book_permission(
    cookbooks: CookbookRepository,
    book_id: UUID,
    user_id: UUID,
    permission: BookPermission,
    *,
    message: str = "You don't have permission to do that in this cookbook",
) -> str:
    """Check the caller's role in a cookbook.

    Returns:
        The caller's role.

    Raises:
        HTTPException: 404 if the caller cannot see the book, 403 if their
            role lacks ``permission``.
    """
    role = await cookbooks.get_role(book_id, user_id)
    if role is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "COOKBOOK_NOT_FOUND", "message": "Cookbook not found"},
        )
    if not has_book_permission(role, permission):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "FORBIDDEN", "message": message},
        )
    return role
