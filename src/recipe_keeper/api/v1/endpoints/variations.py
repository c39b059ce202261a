"""AI recipe variation endpoints.

Provides:
- GET /variations/allowance for the caller's monthly allowance
- POST /recipes/{recipeId}/variations to generate variations
- POST /recipes/{recipeId}/variations/save to keep one as a new recipe
- GET /recipes/{recipeId}/variations for the variations already saved
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from recipe_keeper.api.dependencies import (
    enforce_action_limit,
    get_action_limiter,
    get_cookbook_repository,
    get_recipe_repository,
    get_recipe_variation_service,
    get_subscription_repository,
    get_usage_repository,
    require_book_permission,
)
from recipe_keeper.api.v1.endpoints.recipes import (
    RecipeId,
    recipe_not_found,
    require_recipe_quota,
    to_recipe_response,
)
from recipe_keeper.auth.dependencies import CurrentUser, get_current_user
from recipe_keeper.auth.permissions import BookPermission
from recipe_keeper.cache.rate_limit import ActionRateLimiter  # noqa: TC001
from recipe_keeper.database.repositories.cookbooks import (
    CookbookRepository,  # noqa: TC001
)
from recipe_keeper.database.repositories.recipes import (
    RecipeRepository,  # noqa: TC001
)
from recipe_keeper.database.repositories.subscriptions import (
    SubscriptionRepository,  # noqa: TC001
)
from recipe_keeper.database.repositories.usage import UsageRepository  # noqa: TC001
from recipe_keeper.llm.exceptions import (
    LLMError,
    LLMRateLimitError,
    LLMUnavailableError,
    LLMValidationError,
)
from recipe_keeper.observability.logging import get_logger
from recipe_keeper.schemas.ai import (
    GenerateVariationsRequest,
    GenerateVariationsResponse,
    ImportUsage,
    SaveVariationRequest,
    SaveVariationResponse,
    VariationAllowanceResponse,
    VariationResponse,
)
from recipe_keeper.schemas.recipe import RecipeListResponse
from recipe_keeper.services.billing import subscription_stats
from recipe_keeper.services.usage import track_usage
from recipe_keeper.services.variations import (
    RecipeVariationService,  # noqa: TC001
)


logger = get_logger(__name__)

router = APIRouter(tags=["Recipe Variations"])

SAVED_FEATURE = "variations_saved"


async def _is_premium(subscriptions: SubscriptionRepository, user: CurrentUser) -> bool:
    return subscription_stats(await subscriptions.get_for_user(user.id)).is_premium


@router.get(
    "/variations/allowance",
    response_model=VariationAllowanceResponse,
    summary="Get your variation allowance",
    description="Free accounts get a monthly allowance; premium is unlimited.",
)
async def get_allowance(
    user: Annotated[CurrentUser, Depends(get_current_user)],
    service: Annotated[RecipeVariationService, Depends(get_recipe_variation_service)],
    subscriptions: Annotated[
        SubscriptionRepository, Depends(get_subscription_repository)
    ],
) -> VariationAllowanceResponse:
    allowance = await service.check_allowance(
        user.id, is_premium=await _is_premium(subscriptions, user)
    )
    return VariationAllowanceResponse(
        can_generate=allowance.can_generate,
        is_premium=allowance.is_premium,
        used=allowance.used,
        limit=allowance.limit,
        remaining=allowance.remaining,
    )


@router.post(
    "/recipes/{recipeId}/variations",
    response_model=GenerateVariationsResponse,
    summary="Generate variations of a recipe",
    description=(
        "Asks the model for up to five variations of one of your recipes. "
        "Free accounts are held to their monthly allowance, and everyone to "
        "10 requests a day."
    ),
    responses={
        403: {"description": "Monthly variation limit reached"},
        404: {"description": "Recipe not found"},
        422: {"description": "The model's reply could not be parsed"},
        429: {"description": "Too many variation requests"},
        502: {"description": "The model returned an error"},
        503: {"description": "The model is unavailable"},
    },
)
async def generate_variations(
    recipe_id: RecipeId,
    body: GenerateVariationsRequest,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    service: Annotated[RecipeVariationService, Depends(get_recipe_variation_service)],
    recipes: Annotated[RecipeRepository, Depends(get_recipe_repository)],
    subscriptions: Annotated[
        SubscriptionRepository, Depends(get_subscription_repository)
    ],
    limiter: Annotated[ActionRateLimiter | None, Depends(get_action_limiter)],
) -> GenerateVariationsResponse:
    """Generate variations.

    1. Apply the daily request limit
    2. Load the recipe, which must be the caller's own
    3. Check the monthly allowance and trim ``count`` to what is left of it
    4. Call the model; its usage is recorded by the service
    """
    await enforce_action_limit(limiter, "variation", str(user.id))

    recipe = await recipes.get_owned(recipe_id, user.id)
    if recipe is None:
        raise recipe_not_found()

    allowance = await service.check_allowance(
        user.id, is_premium=await _is_premium(subscriptions, user)
    )
    if not allowance.can_generate:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "VARIATION_LIMIT_REACHED",
                "message": (
                    f"You've reached your monthly limit of {allowance.limit} free "
                    "variations. Upgrade to Premium for unlimited variations!"
                ),
            },
        )

    count = body.count
    if allowance.remaining is not None:
        count = min(count, allowance.remaining)

    try:
        result = await service.generate(
            user.id,
            recipe,
            body.variation_type,
            count=count,
            custom_parameter=body.custom_parameter,
        )
    except LLMValidationError as e:
        logger.warning("Recipe variations could not be parsed", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "error": "VARIATION_PARSE_ERROR",
                "message": "Could not read variations from the model's reply",
            },
        ) from None
    except LLMRateLimitError:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "error": "RATE_LIMIT_EXCEEDED",
                "message": "The variation service is busy. Please try again shortly.",
            },
        ) from None
    except LLMUnavailableError as e:
        logger.warning("Recipe variations unavailable", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "error": "SERVICE_UNAVAILABLE",
                "message": "The variation service is unavailable",
            },
        ) from None
    except LLMError as e:
        logger.exception("Recipe variation generation failed")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"error": "VARIATION_FAILED", "message": str(e)},
        ) from None

    remaining = None
    if allowance.remaining is not None:
        remaining = max(0, allowance.remaining - len(result.variations))

    return GenerateVariationsResponse(
        variation_type=body.variation_type,
        variations=[
            VariationResponse.model_validate(
                variation.model_dump(include=set(VariationResponse.model_fields))
            )
            for variation in result.variations
        ],
        remaining=remaining,
        usage=ImportUsage(
            input_tokens=result.input_tokens,
            output_tokens=result.output_tokens,
            total_tokens=result.total_tokens,
            estimated_cost=result.estimated_cost,
        ),
    )


@router.post(
    "/recipes/{recipeId}/variations/save",
    response_model=SaveVariationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Save a variation as a recipe",
    description=(
        "Creates a recipe linked to the one it was derived from. Without "
        "bookId it is filed with its parent; bookId null leaves it unfiled. "
        "Counts against the caller's plan limit."
    ),
    responses={
        403: {"description": "Recipe limit reached or no access to the cookbook"},
        404: {"description": "Recipe not found"},
    },
)
async def save_variation(
    recipe_id: RecipeId,
    body: SaveVariationRequest,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    recipes: Annotated[RecipeRepository, Depends(get_recipe_repository)],
    cookbooks: Annotated[CookbookRepository, Depends(get_cookbook_repository)],
    usage: Annotated[UsageRepository, Depends(get_usage_repository)],
) -> SaveVariationResponse:
    parent = await recipes.get_owned(recipe_id, user.id)
    if parent is None:
        raise recipe_not_found()

    if "book_id" in body.model_fields_set:
        book_id = body.book_id
        if book_id is not None:
            await require_book_permission(
                cookbooks,
                book_id,
                user.id,
                BookPermission.ADD_RECIPES,
                message="You don't have permission to add recipes to this cookbook",
            )
    else:
        book_id = parent.book_id

    await require_recipe_quota(recipes, user.id)

    variation = body.variation
    fields = variation.model_dump(
        include={
            "title",
            "ingredients",
            "instructions",
            "prep_time",
            "cook_time",
            "servings",
        }
    )
    fields["notes"] = variation.notes or f"AI-generated {body.variation_type} variation"
    fields["category"] = parent.category or "Other"
    fields["image_url"] = parent.image_url

    recipe = await recipes.create_variation(
        parent, fields, body.variation_type, book_id=book_id
    )
    await recipes.increment_count(user.id)
    await track_usage(usage, user.id, SAVED_FEATURE)

    logger.info(
        "Recipe variation saved",
        recipe_id=str(recipe.id),
        parent_recipe_id=str(parent.id),
        variation_type=str(body.variation_type),
    )
    return SaveVariationResponse(recipe_id=recipe.id)


@router.get(
    "/recipes/{recipeId}/variations",
    response_model=RecipeListResponse,
    summary="List saved variations of a recipe",
    responses={404: {"description": "Recipe not found"}},
)
async def list_variations(
    recipe_id: RecipeId,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    recipes: Annotated[RecipeRepository, Depends(get_recipe_repository)],
) -> RecipeListResponse:
    if await recipes.get_owned(recipe_id, user.id) is None:
        raise recipe_not_found()
    rows = await recipes.list_variations(recipe_id, user.id)
    return RecipeListResponse(
        recipes=[to_recipe_response(row) for row in rows],
        count=len(rows),
    )
