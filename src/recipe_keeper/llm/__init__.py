"""LLM integration: the Gemini client, its wire models and prompts."""

from recipe_keeper.llm.client import GeminiClient
from recipe_keeper.llm.exceptions import (
    LLMConfigurationError,
    LLMError,
    LLMRateLimitError,
    LLMResponseError,
    LLMTimeoutError,
    LLMUnavailableError,
    LLMValidationError,
)
from recipe_keeper.llm.models import LLMCompletionResult


__all__ = [
    "GeminiClient",
    "LLMCompletionResult",
    "LLMConfigurationError",
    "LLMError",
    "LLMRateLimitError",
    "LLMResponseError",
    "LLMTimeoutError",
    "LLMUnavailableError",
    "LLMValidationError",
]
