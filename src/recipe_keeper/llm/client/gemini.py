"""HTTP client for the Gemini generative language API."""

from __future__ import annotations

import httpx
from aiolimiter import AsyncLimiter

from recipe_keeper.llm.exceptions import (
    LLMConfigurationError,
    LLMRateLimitError,
    LLMResponseError,
    LLMTimeoutError,
    LLMUnavailableError,
)
from recipe_keeper.llm.models import (
    GeminiContent,
    GeminiGenerateRequest,
    GeminiGenerateResponse,
    GeminiGenerationConfig,
    GeminiPart,
    LLMCompletionResult,
)
from recipe_keeper.observability.logging import get_logger


logger = get_logger(__name__)


class GeminiClient:
    """Async client for ``models/{model}:generateContent``.

    Requests are paced by an ``AsyncLimiter`` and transient failures
    (timeouts, connection errors) are retried up to ``max_retries`` times.

    Attributes:
        base_url: API base URL, e.g. ``https://generativelanguage.googleapis.com/v1beta``.
        model: Model name, e.g. ``gemini-2.0-flash``.
        timeout: HTTP request timeout in seconds.
        max_retries: Retries for transient failures.
    """

    DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 60.0,
        max_retries: int = 2,
        requests_per_minute: float = 15.0,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self._http_client: httpx.AsyncClient | None = None
        # One request per (60/rpm) seconds, no initial burst.
        self._rate_limiter = AsyncLimiter(1, 60.0 / requests_per_minute)

    @property
    def generate_url(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    async def initialize(self) -> None:
        """Create the HTTP client.

        Raises:
            LLMConfigurationError: If no API key is configured.
        """
        if self._http_client is not None:
            return
        if not self.api_key:
            msg = "GOOGLE_AI_API_KEY is not configured"
            raise LLMConfigurationError(msg)

        self._http_client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            headers={
                "x-goog-api-key": self.api_key,
                "Content-Type": "application/json",
            },
            limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
        )
        logger.info("GeminiClient initialized", model=self.model, timeout=self.timeout)

    async def shutdown(self) -> None:
        """Close the HTTP client and release connections."""
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
            logger.debug("GeminiClient shutdown")

    async def _execute_with_retry(
        self, request: GeminiGenerateRequest
    ) -> GeminiGenerateResponse:
        if self._http_client is None:
            msg = "Client not initialized. Call initialize() first."
            raise RuntimeError(msg)

        last_exception: Exception | None = None
        payload = request.model_dump(mode="json", exclude_none=True)

        for attempt in range(self.max_retries + 1):
            await self._rate_limiter.acquire()

            try:
                response = await self._http_client.post(self.generate_url, json=payload)

                if response.status_code == 429:
                    retry_after = response.headers.get("retry-after", "60")
                    msg = f"Gemini rate limit exceeded, retry after {retry_after}s"
                    raise LLMRateLimitError(msg)

                response.raise_for_status()
                return GeminiGenerateResponse.model_validate(response.json())

            except httpx.TimeoutException as e:
                last_exception = e
                logger.warning(
                    "Gemini request timeout",
                    attempt=attempt + 1,
                    max_retries=self.max_retries,
                    timeout=self.timeout,
                )
                if attempt < self.max_retries:
                    continue
                msg = f"Gemini timeout after {self.timeout}s"
                raise LLMTimeoutError(msg) from e

            except httpx.HTTPStatusError as e:
                logger.error(
                    "Gemini request failed",
                    status_code=e.response.status_code,
                    model=self.model,
                )
                msg = f"Gemini returned {e.response.status_code}"
                raise LLMResponseError(msg) from e

            except httpx.RequestError as e:
                last_exception = e
                logger.warning(
                    "Gemini connection error",
                    attempt=attempt + 1,
                    max_retries=self.max_retries,
                    error=str(e),
                )
                if attempt < self.max_retries:
                    continue
                msg = f"Cannot connect to Gemini: {e}"
                raise LLMUnavailableError(msg) from e

        msg = "Max retries exceeded"
        raise LLMUnavailableError(msg) from last_exception

    async def generate(
        self,
        parts: list[GeminiPart],
        *,
        config: GeminiGenerationConfig | None = None,
    ) -> LLMCompletionResult:
        """Run one prompt made of text and inline-data parts.

        Args:
            parts: Prompt text followed by any images.
            config: Sampling configuration.

        Returns:
            The reply text and token usage.

        Raises:
            LLMUnavailableError: If Gemini cannot be reached.
            LLMTimeoutError: If the request times out.
            LLMRateLimitError: If Gemini rate limits the request.
            LLMResponseError: If Gemini returns an error.
        """
        request = GeminiGenerateRequest(
            contents=[GeminiContent(parts=parts)],
            generation_config=config,
        )
        response = await self._execute_with_retry(request)
        usage = response.usage_metadata

        logger.debug(
            "Gemini completion",
            model=self.model,
            prompt_tokens=usage.prompt_token_count,
            completion_tokens=usage.candidates_token_count,
        )
        return LLMCompletionResult(
            raw_response=response.text,
            model=response.model_version or self.model,
            prompt_tokens=usage.prompt_token_count,
            completion_tokens=usage.candidates_token_count,
            total_tokens=usage.total_token_count,
        )
