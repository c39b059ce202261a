"""LLM client exceptions.

Raised by the Gemini client and caught by the import service or the
endpoint, which turn them into HTTP responses.
"""

from __future__ import annotations


class LLMError(Exception):
    """Base exception for LLM client errors."""


class LLMUnavailableError(LLMError):
    """Raised when the model API cannot be reached."""


class LLMTimeoutError(LLMUnavailableError):
    """Raised when a model request times out.

    A timeout is a form of unavailability, so retries treat both alike.
    """


class LLMResponseError(LLMError):
    """Raised when the model API answers with an error status."""


class LLMValidationError(LLMError):
    """Raised when the model's reply cannot be parsed into the expected shape."""


class LLMRateLimitError(LLMError):
    """Raised when the model API rate limits the request."""


class LLMConfigurationError(LLMError):
    """Raised when the LLM client is misconfigured."""
