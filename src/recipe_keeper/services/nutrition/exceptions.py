"""Nutrition lookup exceptions."""

from __future__ import annotations


class NutritionError(Exception):
    """Base exception for nutrition lookup errors."""


class NutritionUnavailableError(NutritionError):
    """Raised when FoodData Central cannot be reached."""


class NutritionTimeoutError(NutritionUnavailableError):
    """Raised when FoodData Central does not answer in time."""


class NutritionRateLimitError(NutritionUnavailableError):
    """Raised when the API key has used up its hourly requests."""


class NutritionResponseError(NutritionError):
    """Raised when FoodData Central returns an error or an unreadable body."""
