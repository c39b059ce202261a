"""AI image generation for recipes."""

from recipe_keeper.services.image_generation.client import (
    GeneratedImage,
    ImageGenerationClient,
    build_prompt,
)
from recipe_keeper.services.image_generation.exceptions import ImageGenerationError


__all__ = [
    "GeneratedImage",
    "ImageGenerationClient",
    "ImageGenerationError",
    "build_prompt",
]
