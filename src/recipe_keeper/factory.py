"""Application factory for creating FastAPI instances.

This module provides the create_app factory function that:
- Configures the FastAPI application with appropriate settings
- Sets up the middleware stack in the correct order
- Registers exception handlers and the global rate limiter
- Mounts API routers
- Configures tracing and Prometheus metrics
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import ORJSONResponse

from recipe_keeper.api.v1.endpoints import root
from recipe_keeper.api.v1.router import router as v1_router
from recipe_keeper.cache.rate_limit import setup_rate_limiting
from recipe_keeper.core.config import Settings, get_settings
from recipe_keeper.core.events import lifespan
from recipe_keeper.core.exceptions import setup_exception_handlers
from recipe_keeper.core.middleware import LoggingMiddleware, RequestIDMiddleware
from recipe_keeper.observability.metrics import setup_metrics
from recipe_keeper.observability.tracing import setup_tracing


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure a FastAPI application instance.

    Args:
        settings: Optional settings override. If not provided, uses get_settings().

    Returns:
        Configured FastAPI application instance.
    """
    if settings is None:
        settings = get_settings()

    prefix = settings.api.v1_prefix
    docs_enabled = settings.is_non_production

    app = FastAPI(
        title=settings.app.name,
        version=settings.app.version,
        description=(
            "Family Recipe Keeper API - recipes, shared cookbooks, AI import "
            "and subscriptions"
        ),
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url=f"{prefix}/docs" if docs_enabled else None,
        redoc_url=f"{prefix}/redoc" if docs_enabled else None,
        openapi_url=f"{prefix}/openapi.json" if docs_enabled else None,
        debug=settings.app.debug,
    )

    app.state.settings = settings

    setup_exception_handlers(app)

    # Rate limiting middleware is added first so it runs inside the others.
    setup_rate_limiting(app)

    _setup_middleware(app, settings)

    _setup_routers(app, settings)

    # Observability hooks need the routes to exist.
    setup_tracing(app, settings)
    setup_metrics(app)

    return app


def _setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Configure the middleware stack.

    Middleware is executed in reverse order of addition. Order from the
    request's perspective:
    1. RequestIDMiddleware (adds the request id)
    2. LoggingMiddleware (logs requests and responses)
    3. GZipMiddleware (compresses responses)
    4. CORSMiddleware (handles CORS)
    5. SlowAPIMiddleware (global rate limit)
    """
    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=["X-Request-ID", "Retry-After", "X-RateLimit-Remaining"],
        )

    app.add_middleware(GZipMiddleware, minimum_size=1000)

    prefix = settings.api.v1_prefix
    app.add_middleware(
        LoggingMiddleware,
        exclude_paths={
            f"{prefix}/health",
            f"{prefix}/ready",
            f"{prefix}/metrics",
            "/favicon.ico",
        },
    )

    app.add_middleware(RequestIDMiddleware)


def _setup_routers(app: FastAPI, settings: Settings) -> None:
    app.include_router(v1_router, prefix=settings.api.v1_prefix)
    # Service info at the bare root for load balancers.
    app.include_router(root.router)
