"""Unit tests for GeminiClient.

Tests cover:
- Lifecycle
- Request construction
- Response parsing
- Error handling and retry logic
"""

from __future__ import annotations

import json

import httpx
import pytest
import respx

from recipe_keeper.llm.client.gemini import GeminiClient
from recipe_keeper.llm.exceptions import (
    LLMConfigurationError,
    LLMRateLimitError,
    LLMResponseError,
    LLMTimeoutError,
    LLMUnavailableError,
)
from recipe_keeper.llm.models import (
    GeminiGenerationConfig,
    GeminiInlineData,
    GeminiPart,
)
from tests.fixtures.llm_responses import create_gemini_response


pytestmark = pytest.mark.unit

# High rate limit to disable rate limiting delays in tests
TEST_RATE_LIMIT = 10000.0

GENERATE_URL = (
    "https://generativelanguage.googleapis.com/v1beta/models/"
    "gemini-2.0-flash:generateContent"
)


@pytest.fixture
async def client() -> GeminiClient:
    client = GeminiClient(
        api_key="test-api-key",
        max_retries=1,
        requests_per_minute=TEST_RATE_LIMIT,
    )
    await client.initialize()
    yield client
    await client.shutdown()


class TestGeminiClientInitialization:
    """Tests for client initialization and lifecycle."""

    async def test_initialize_requires_api_key(self) -> None:
        """Should refuse to start without an API key."""
        client = GeminiClient(api_key="", requests_per_minute=TEST_RATE_LIMIT)

        with pytest.raises(LLMConfigurationError):
            await client.initialize()

    async def test_initialize_idempotent(self) -> None:
        """Should be safe to call initialize multiple times."""
        client = GeminiClient(api_key="key", requests_per_minute=TEST_RATE_LIMIT)

        await client.initialize()
        first_client = client._http_client
        await client.initialize()

        assert client._http_client is first_client
        await client.shutdown()

    async def test_shutdown_closes_http_client(self) -> None:
        client = GeminiClient(api_key="key", requests_per_minute=TEST_RATE_LIMIT)

        await client.initialize()
        await client.shutdown()

        assert client._http_client is None

    def test_generate_url_custom_base(self) -> None:
        """Should strip a trailing slash from the base URL."""
        client = GeminiClient(
            api_key="key",
            model="gemini-1.5-pro",
            base_url="https://proxy.example.com/v1/",
            requests_per_minute=TEST_RATE_LIMIT,
        )

        assert (
            client.generate_url
            == "https://proxy.example.com/v1/models/gemini-1.5-pro:generateContent"
        )

    async def test_generate_before_initialize_fails(self) -> None:
        client = GeminiClient(api_key="key", requests_per_minute=TEST_RATE_LIMIT)

        with pytest.raises(RuntimeError, match="not initialized"):
            await client.generate([GeminiPart(text="hi")])


class TestGeminiClientGenerate:
    """Tests for generate method."""

    @respx.mock
    async def test_generate_success(self, client: GeminiClient) -> None:
        """Should return the reply text and token usage."""
        respx.post(GENERATE_URL).mock(
            return_value=httpx.Response(
                200,
                json=create_gemini_response(
                    '{"title": "Soup"}', prompt_tokens=100, completion_tokens=20
                ),
            )
        )

        result = await client.generate([GeminiPart(text="Extract")])

        assert result.raw_response == '{"title": "Soup"}'
        assert result.model == "gemini-2.0-flash"
        assert result.prompt_tokens == 100
        assert result.completion_tokens == 20
        assert result.total_tokens == 120

    @respx.mock
    async def test_request_body_is_camel_case(self, client: GeminiClient) -> None:
        """Should send inline data and generation config in Gemini's casing."""
        route = respx.post(GENERATE_URL).mock(
            return_value=httpx.Response(200, json=create_gemini_response("{}"))
        )

        await client.generate(
            [
                GeminiPart(text="Read this card"),
                GeminiPart(
                    inline_data=GeminiInlineData(mime_type="image/jpeg", data="aGk=")
                ),
            ],
            config=GeminiGenerationConfig(temperature=0.1, max_output_tokens=2048),
        )

        request = route.calls.last.request
        body = json.loads(request.content)
        assert request.headers["x-goog-api-key"] == "test-api-key"
        assert body["contents"][0]["role"] == "user"
        assert body["contents"][0]["parts"][0] == {"text": "Read this card"}
        assert body["contents"][0]["parts"][1] == {
            "inlineData": {"mimeType": "image/jpeg", "data": "aGk="}
        }
        assert body["generationConfig"] == {
            "temperature": 0.1,
            "maxOutputTokens": 2048,
        }

    @respx.mock
    async def test_empty_candidates_give_empty_text(
        self, client: GeminiClient
    ) -> None:
        respx.post(GENERATE_URL).mock(
            return_value=httpx.Response(200, json={"candidates": []})
        )

        result = await client.generate([GeminiPart(text="hi")])

        assert result.raw_response == ""
        assert result.total_tokens == 0


class TestGeminiClientErrors:
    """Tests for error mapping and retries."""

    @respx.mock
    async def test_rate_limited(self, client: GeminiClient) -> None:
        respx.post(GENERATE_URL).mock(
            return_value=httpx.Response(429, headers={"retry-after": "30"})
        )

        with pytest.raises(LLMRateLimitError, match="30s"):
            await client.generate([GeminiPart(text="hi")])

    @respx.mock
    async def test_http_error(self, client: GeminiClient) -> None:
        """Should not retry on an error status."""
        route = respx.post(GENERATE_URL).mock(return_value=httpx.Response(500))

        with pytest.raises(LLMResponseError):
            await client.generate([GeminiPart(text="hi")])

        assert route.call_count == 1

    @respx.mock
    async def test_timeout_retried_then_raised(self, client: GeminiClient) -> None:
        route = respx.post(GENERATE_URL).mock(
            side_effect=httpx.ReadTimeout("timed out")
        )

        with pytest.raises(LLMTimeoutError):
            await client.generate([GeminiPart(text="hi")])

        assert route.call_count == 2

    @respx.mock
    async def test_connection_error_retried_then_raised(
        self, client: GeminiClient
    ) -> None:
        route = respx.post(GENERATE_URL).mock(
            side_effect=httpx.ConnectError("refused")
        )

        with pytest.raises(LLMUnavailableError):
            await client.generate([GeminiPart(text="hi")])

        assert route.call_count == 2

    @respx.mock
    async def test_recovers_after_transient_error(self, client: GeminiClient) -> None:
        """Should succeed when a retry gets through."""
        respx.post(GENERATE_URL).mock(
            side_effect=[
                httpx.ConnectError("refused"),
                httpx.Response(200, json=create_gemini_response("{}")),
            ]
        )

        result = await client.generate([GeminiPart(text="hi")])

        assert result.raw_response == "{}"
