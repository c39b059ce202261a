"""AI recipe import endpoint."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from recipe_keeper.api.dependencies import (
    enforce_action_limit,
    get_action_limiter,
    get_recipe_import_service,
)
from recipe_keeper.auth.dependencies import CurrentUser, get_current_user
from recipe_keeper.cache.rate_limit import ActionRateLimiter  # noqa: TC001
from recipe_keeper.llm.exceptions import (
    LLMError,
    LLMRateLimitError,
    LLMUnavailableError,
    LLMValidationError,
)
from recipe_keeper.observability.logging import get_logger
from recipe_keeper.schemas.ai import RecipeImportRequest, RecipeImportResponse
from recipe_keeper.services.recipe_import import RecipeImportService  # noqa: TC001


logger = get_logger(__name__)

router = APIRouter(prefix="/imports", tags=["Recipe Import"])


@router.post(
    "/recipe",
    response_model=RecipeImportResponse,
    summary="Extract a recipe from photos or text",
    description=(
        "Send photographed pages as base64 images, or text already extracted "
        "from a PDF. Limited to 10 imports an hour."
    ),
    responses={
        422: {"description": "The model's reply could not be parsed"},
        429: {"description": "Too many imports"},
        502: {"description": "The model returned an error"},
        503: {"description": "The model is unavailable"},
    },
)
async def import_recipe(
    body: RecipeImportRequest,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    service: Annotated[RecipeImportService, Depends(get_recipe_import_service)],
    limiter: Annotated[ActionRateLimiter | None, Depends(get_action_limiter)],
) -> RecipeImportResponse:
    await enforce_action_limit(limiter, "import", str(user.id))

    try:
        if body.images:
            return await service.import_images(user.id, body.images)
        return await service.import_text(
            user.id, body.text or "", from_pdf=body.source != "text"
        )
    except LLMValidationError as e:
        logger.warning("Imported recipe could not be parsed", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "error": "IMPORT_PARSE_ERROR",
                "message": "Could not read a recipe from the input",
            },
        ) from None
    except LLMRateLimitError:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "error": "RATE_LIMIT_EXCEEDED",
                "message": "The import service is busy. Please try again shortly.",
            },
        ) from None
    except LLMUnavailableError as e:
        logger.warning("Recipe import unavailable", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "error": "SERVICE_UNAVAILABLE",
                "message": "The import service is unavailable",
            },
        ) from None
    except LLMError as e:
        logger.exception("Recipe import failed")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"error": "IMPORT_FAILED", "message": str(e)},
        ) from None
