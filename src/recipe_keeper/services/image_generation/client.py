"""fal.ai image generation client.

Calls the synchronous ``fal.run`` endpoint of a FLUX model to produce
appetizing food photography for a recipe.
"""

from __future__ import annotations

import asyncio

import httpx
import orjson
from pydantic import BaseModel

from recipe_keeper.core.config import get_settings
from recipe_keeper.observability.logging import get_logger
from recipe_keeper.services.image_generation.exceptions import (
    ImageGenerationError,
    ImageGenerationResponseError,
    ImageGenerationTimeoutError,
    ImageGenerationUnavailableError,
)


logger = get_logger(__name__)

NEGATIVE_PROMPT = (
    "blurry, low quality, amateur, messy, unappetizing, dark, poorly lit, "
    "text, watermark, logo"
)


def build_prompt(title: str, category: str | None = None) -> str:
    """Food-photography prompt for a recipe title and optional category."""
    dish = f", {category.lower()} dish" if category else ""
    return (
        f"Professional food photography of {title}{dish}. High quality, "
        "appetizing, well-lit, clean background, restaurant quality "
        "presentation, overhead view, 4k, professional food styling"
    )


class GeneratedImage(BaseModel):
    """Outcome of one generation attempt."""

    success: bool
    image_url: str | None = None
    error: str | None = None


class ImageGenerationClient:
    """HTTP client for fal.ai model endpoints."""

    def __init__(self) -> None:
        self._settings = get_settings()
        self._http_client: httpx.AsyncClient | None = None

    async def initialize(self) -> None:
        """Create the HTTP client.

        Raises:
            RuntimeError: If FAL_KEY is not configured.
        """
        if not self._settings.FAL_KEY:
            msg = "FAL_KEY is not configured"
            raise RuntimeError(msg)
        config = self._settings.image_generation
        self._http_client = httpx.AsyncClient(
            base_url=config.url,
            timeout=httpx.Timeout(config.timeout),
            headers={
                "Authorization": f"Key {self._settings.FAL_KEY}",
                "Content-Type": "application/json",
            },
        )
        logger.info("ImageGenerationClient initialized", model=config.model)

    async def shutdown(self) -> None:
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None
        logger.debug("ImageGenerationClient shutdown")

    async def _run_model(self, prompt: str) -> str:
        """Run the model once and return the first image URL.

        Raises:
            ImageGenerationTimeoutError: If the request times out.
            ImageGenerationUnavailableError: If fal.ai is unreachable.
            ImageGenerationResponseError: If no image comes back.
        """
        if not self._http_client:
            msg = "Client not initialized. Call initialize() first."
            raise RuntimeError(msg)

        config = self._settings.image_generation
        payload = {
            "prompt": prompt,
            "negative_prompt": NEGATIVE_PROMPT,
            "image_size": config.image_size,
            "num_inference_steps": config.num_inference_steps,
            "enable_safety_checker": True,
        }

        try:
            response = await self._http_client.post(
                f"/{config.model}", content=orjson.dumps(payload)
            )
        except httpx.TimeoutException as e:
            msg = "Image generation timed out"
            raise ImageGenerationTimeoutError(msg) from e
        except httpx.RequestError as e:
            msg = f"Failed to connect to image generation service: {e}"
            raise ImageGenerationUnavailableError(msg) from e

        if not response.is_success:
            logger.warning(
                "Image generation returned error",
                status_code=response.status_code,
                body=response.text[:200],
            )
            msg = f"Image generation failed with HTTP {response.status_code}"
            raise ImageGenerationResponseError(msg)

        try:
            body = orjson.loads(response.content)
        except orjson.JSONDecodeError as e:
            msg = "Image generation returned an unreadable response"
            raise ImageGenerationResponseError(msg) from e

        images = body.get("images") if isinstance(body, dict) else None
        if not images or not images[0].get("url"):
            msg = "No image generated"
            raise ImageGenerationResponseError(msg)
        return images[0]["url"]

    async def generate(self, title: str, category: str | None = None) -> GeneratedImage:
        """Generate one image; failures are reported in the result."""
        try:
            url = await self._run_model(build_prompt(title, category))
        except ImageGenerationError as e:
            logger.warning("Image generation failed", error=str(e))
            return GeneratedImage(success=False, error=str(e))
        return GeneratedImage(success=True, image_url=url)

    async def generate_variations(
        self, title: str, category: str | None = None, count: int = 1
    ) -> list[GeneratedImage]:
        """Generate ``count`` images concurrently."""
        count = max(1, min(count, self._settings.image_generation.max_variations))
        return list(
            await asyncio.gather(
                *(self.generate(title, category) for _ in range(count))
            )
        )
