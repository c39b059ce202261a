"""USDA FoodData Central client.

Only the food search endpoint is used: the first match for an ingredient
name carries its nutrient values per 100 g.
"""

from __future__ import annotations

import httpx
import orjson
from aiolimiter import AsyncLimiter
from pydantic import BaseModel, Field

from recipe_keeper.core.config import get_settings
from recipe_keeper.observability.logging import get_logger
from recipe_keeper.services.nutrition.exceptions import (
    NutritionRateLimitError,
    NutritionResponseError,
    NutritionTimeoutError,
    NutritionUnavailableError,
)


logger = get_logger(__name__)


class FoodMatch(BaseModel):
    """A food found by search, with nutrient amounts per 100 g."""

    fdc_id: int
    description: str
    # USDA nutrient id -> amount per 100 g
    nutrients: dict[int, float] = Field(default_factory=dict)


def _to_food(raw: dict) -> FoodMatch:
    nutrients = {
        int(item["nutrientId"]): float(item.get("value") or 0)
        for item in raw.get("foodNutrients") or []
        if "nutrientId" in item
    }
    return FoodMatch(
        fdc_id=raw["fdcId"], description=raw.get("description", ""), nutrients=nutrients
    )


class NutritionClient:
    """HTTP client for the FoodData Central search API."""

    def __init__(self) -> None:
        self._settings = get_settings()
        self._http_client: httpx.AsyncClient | None = None
        # A recipe looks up each of its ingredients back to back, so allow a
        # burst of a full minute's requests.
        self._rate_limiter = AsyncLimiter(
            self._settings.nutrition.requests_per_minute, 60.0
        )

    async def initialize(self) -> None:
        config = self._settings.nutrition
        self._http_client = httpx.AsyncClient(
            base_url=config.url, timeout=httpx.Timeout(config.timeout)
        )
        logger.info("NutritionClient initialized", data_type=config.data_type)

    async def shutdown(self) -> None:
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None
        logger.debug("NutritionClient shutdown")

    async def search_food(self, query: str) -> FoodMatch | None:
        """Return the best match for ``query``, or None when nothing matches.

        Raises:
            NutritionTimeoutError: If the request times out.
            NutritionRateLimitError: If the API key is throttled.
            NutritionUnavailableError: If the API is unreachable.
            NutritionResponseError: If the API answers with an error or a
                body that is not JSON.
        """
        if not self._http_client:
            msg = "Client not initialized. Call initialize() first."
            raise RuntimeError(msg)

        params = {
            "api_key": self._settings.USDA_API_KEY,
            "query": query,
            "pageSize": 1,
            "dataType": self._settings.nutrition.data_type,
        }
        await self._rate_limiter.acquire()
        try:
            response = await self._http_client.get("/foods/search", params=params)
        except httpx.TimeoutException as e:
            msg = "Nutrition lookup timed out"
            raise NutritionTimeoutError(msg) from e
        except httpx.RequestError as e:
            msg = f"Failed to connect to nutrition service: {e}"
            raise NutritionUnavailableError(msg) from e

        if response.status_code == 429:
            msg = "Nutrition service rate limit exceeded"
            raise NutritionRateLimitError(msg)
        if not response.is_success:
            logger.warning(
                "Nutrition lookup returned error",
                status_code=response.status_code,
                body=response.text[:200],
            )
            msg = f"Nutrition lookup failed with HTTP {response.status_code}"
            raise NutritionResponseError(msg)

        try:
            body = orjson.loads(response.content)
        except orjson.JSONDecodeError as e:
            msg = "Nutrition lookup returned an unreadable response"
            raise NutritionResponseError(msg) from e

        foods = body.get("foods") if isinstance(body, dict) else None
        if not foods:
            return None
        try:
            return _to_food(foods[0])
        except (KeyError, TypeError, ValueError) as e:
            msg = "Nutrition lookup returned a malformed food"
            raise NutritionResponseError(msg) from e
