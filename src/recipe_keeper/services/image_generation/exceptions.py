"""Image generation exceptions."""

from __future__ import annotations


class ImageGenerationError(Exception):
    """Base exception for image generation errors."""


class ImageGenerationUnavailableError(ImageGenerationError):
    """Raised when the image model endpoint cannot be reached."""


class ImageGenerationTimeoutError(ImageGenerationUnavailableError):
    """Raised when the image model does not answer in time."""


class ImageGenerationResponseError(ImageGenerationError):
    """Raised when the image model returns an error or no image."""
