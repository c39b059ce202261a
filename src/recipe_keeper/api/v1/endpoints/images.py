"""AI image generation endpoint."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from recipe_keeper.api.dependencies import (
    enforce_action_limit,
    get_action_limiter,
    get_image_generation_client,
    get_usage_repository,
)
from recipe_keeper.auth.dependencies import CurrentUser, get_current_user
from recipe_keeper.cache.rate_limit import ActionRateLimiter  # noqa: TC001
from recipe_keeper.database.repositories.usage import UsageRepository  # noqa: TC001
from recipe_keeper.observability.logging import get_logger
from recipe_keeper.schemas.ai import (
    GeneratedImageResponse,
    ImageGenerateRequest,
    ImageGenerateResponse,
)
from recipe_keeper.services.image_generation import (
    ImageGenerationClient,  # noqa: TC001
)
from recipe_keeper.services.usage import track_usage


logger = get_logger(__name__)

router = APIRouter(prefix="/images", tags=["Image Generation"])


@router.post(
    "/generate",
    response_model=ImageGenerateResponse,
    summary="Generate recipe photos",
    description=(
        "Generates up to four food photographs for a recipe. Requests for more "
        "than one image are limited to 10 a day."
    ),
    responses={429: {"description": "Too many multi-image requests"}},
)
async def generate_images(
    body: ImageGenerateRequest,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    client: Annotated[ImageGenerationClient, Depends(get_image_generation_client)],
    usage: Annotated[UsageRepository, Depends(get_usage_repository)],
    limiter: Annotated[ActionRateLimiter | None, Depends(get_action_limiter)],
) -> ImageGenerateResponse:
    if body.count > 1:
        await enforce_action_limit(limiter, "image", str(user.id))

    results = await client.generate_variations(body.title, body.category, body.count)
    generated = sum(1 for result in results if result.success)
    if generated:
        await track_usage(usage, user.id, "ai_images_generated")

    logger.info("Images generated", requested=body.count, generated=generated)
    return ImageGenerateResponse(
        images=[
            GeneratedImageResponse.model_validate(result.model_dump())
            for result in results
        ]
    )
