"""Health check endpoints.

Provides liveness and readiness checks for orchestrators and load balancers.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from recipe_keeper.cache.redis import check_redis_health
from recipe_keeper.core.config import Settings, get_settings
from recipe_keeper.database.connection import check_database_health
from recipe_keeper.schemas.health import HealthResponse, ReadinessResponse


router = APIRouter(tags=["Health"])

# Redis only backs caches and rate limits, so losing it degrades the service
# without taking it out of rotation.
_CRITICAL_DEPENDENCIES = frozenset({"database"})


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Liveness check",
    description="Basic health check to verify the service is running.",
)
async def health_check(
    settings: Annotated[Settings, Depends(get_settings)],
) -> HealthResponse:
    """Check if the service is alive.

    Does not touch external dependencies.
    """
    return HealthResponse(
        status="healthy",
        version=settings.app.version,
        environment=settings.APP_ENV,
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description="Readiness check verifying the database and Redis are reachable.",
    responses={503: {"description": "A critical dependency is unavailable"}},
)
async def readiness_check(
    response: Response,
    settings: Annotated[Settings, Depends(get_settings)],
) -> ReadinessResponse:
    """Check if the service is ready to handle requests."""
    dependencies = {
        **await check_database_health(),
        **await check_redis_health(),
    }

    critical_down = any(
        state != "healthy"
        for name, state in dependencies.items()
        if name in _CRITICAL_DEPENDENCIES
    )
    all_healthy = all(state == "healthy" for state in dependencies.values())

    if critical_down:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        overall = "not_ready"
    elif all_healthy:
        overall = "ready"
    else:
        overall = "degraded"

    return ReadinessResponse(
        status=overall,
        version=settings.app.version,
        environment=settings.APP_ENV,
        dependencies=dependencies,
    )
