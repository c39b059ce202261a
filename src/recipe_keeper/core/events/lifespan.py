"""Application lifespan event handlers.

Startup order:
- logging and error tracking
- Redis (optional: caching and named rate limits degrade without it)
- the auth provider and the database pool (critical: startup fails without them)
- external service clients (optional: each is stored as None on failure and
  its routes answer 503)
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from recipe_keeper.auth.providers import initialize_auth_provider, shutdown_auth_provider
from recipe_keeper.cache.rate_limit import create_action_limiter
from recipe_keeper.cache.redis import close_redis_pools, init_redis_pools
from recipe_keeper.core.config import Settings, get_settings
from recipe_keeper.database.connection import close_database_pool, init_database_pool
from recipe_keeper.database.repositories import UsageRepository
from recipe_keeper.llm.client.gemini import GeminiClient
from recipe_keeper.observability.error_tracking import (
    setup_error_tracking,
    shutdown_error_tracking,
)
from recipe_keeper.observability.logging import get_logger, setup_logging
from recipe_keeper.observability.tracing import shutdown_tracing
from recipe_keeper.services.billing import BillingClient
from recipe_keeper.services.email import EmailClient
from recipe_keeper.services.image_generation import ImageGenerationClient
from recipe_keeper.services.nutrition import NutritionClient
from recipe_keeper.services.recipe_import import RecipeImportService
from recipe_keeper.services.storage import StorageClient
from recipe_keeper.services.variations import RecipeVariationService


if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from fastapi import FastAPI

logger = get_logger(__name__)

# app.state attributes holding clients with an async shutdown().
_CLIENT_STATE = (
    "billing_client",
    "email_client",
    "storage_client",
    "image_generation_client",
    "gemini_client",
    "nutrition_client",
)


async def _startup(app: FastAPI, settings: Settings) -> None:
    setup_logging(
        log_level=settings.logging.level,
        log_format=settings.logging.format,
        is_development=settings.is_development,
    )
    logger.info(
        "Starting application",
        app_name=settings.app.name,
        environment=settings.APP_ENV,
        debug=settings.app.debug,
    )

    setup_error_tracking(settings)

    redis_available = await _init_redis()

    await _init_auth(settings)
    await _init_database()

    app.state.billing_client = await _init_client("Billing", BillingClient())
    app.state.email_client = await _init_client("Email", EmailClient())
    app.state.storage_client = await _init_client("Storage", StorageClient())
    app.state.image_generation_client = await _init_client(
        "Image generation", ImageGenerationClient()
    )
    app.state.nutrition_client = await _init_client("Nutrition", NutritionClient())
    await _init_recipe_import(app, settings)

    app.state.action_limiter = create_action_limiter() if redis_available else None
    if app.state.action_limiter is None:
        logger.warning("Named rate limits disabled - Redis unavailable")

    logger.info("Application startup complete")


async def _init_redis() -> bool:
    try:
        await init_redis_pools()
    except Exception:
        logger.exception("Failed to initialize Redis - continuing without it")
        return False
    return True


async def _init_auth(settings: Settings) -> None:
    """Initialize the auth provider (critical service)."""
    try:
        await initialize_auth_provider()
        logger.info("Auth provider initialized", mode=settings.auth.mode)
    except Exception:
        logger.exception("Failed to initialize auth provider")
        raise


async def _init_database() -> None:
    """Open the connection pool (critical service)."""
    try:
        await init_database_pool()
    except Exception:
        logger.exception("Failed to initialize database pool")
        raise


async def _init_client(name: str, client: Any) -> Any:
    """Initialize an optional client, returning None if it cannot start."""
    try:
        await client.initialize()
    except Exception:
        logger.exception(
            "Failed to initialize optional client - feature unavailable", client=name
        )
        return None
    return client


async def _init_recipe_import(app: FastAPI, settings: Settings) -> None:
    config = settings.recipe_import
    gemini = await _init_client(
        "Gemini",
        GeminiClient(
            api_key=settings.GOOGLE_AI_API_KEY,
            model=config.model,
            base_url=config.url,
            timeout=config.timeout,
            max_retries=config.max_retries,
            requests_per_minute=config.requests_per_minute,
        ),
    )
    app.state.gemini_client = gemini
    app.state.recipe_import_service = (
        RecipeImportService(gemini, UsageRepository(), config) if gemini else None
    )
    app.state.recipe_variation_service = (
        RecipeVariationService(gemini, UsageRepository(), settings.recipe_variations)
        if gemini
        else None
    )


async def _shutdown(app: FastAPI) -> None:
    logger.info("Shutting down application")

    for name in _CLIENT_STATE:
        client = getattr(app.state, name, None)
        if client is not None:
            await client.shutdown()
            setattr(app.state, name, None)
    app.state.recipe_import_service = None
    app.state.recipe_variation_service = None
    app.state.action_limiter = None

    await shutdown_auth_provider()
    await close_database_pool()
    await close_redis_pools()

    shutdown_tracing()
    shutdown_error_tracking()

    logger.info("Application shutdown complete")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application startup and shutdown.

    Args:
        app: The FastAPI application instance.

    Yields:
        None - control returns to the application to handle requests.
    """
    settings = get_settings()
    await _startup(app, settings)
    yield
    await _shutdown(app)
