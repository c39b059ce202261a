"""Health, readiness and service info schemas."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import Field

from recipe_keeper.schemas.base import APIResponse


class HealthResponse(APIResponse):
    """Liveness check response."""

    status: str = Field(..., description="Health status", examples=["healthy"])
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="Current server timestamp",
    )
    version: str = Field(..., description="Application version")
    environment: str = Field(..., description="Deployment environment")


class ReadinessResponse(HealthResponse):
    """Readiness check response with per-dependency status."""

    dependencies: dict[str, str] = Field(
        default_factory=dict,
        description="Status of external dependencies",
    )


class RootResponse(APIResponse):
    """Basic service information."""

    service: str = Field(..., examples=["Family Recipe Keeper API"])
    version: str = Field(..., examples=["0.1.0"])
    status: str = Field(..., examples=["operational"])
    docs: str = Field(..., examples=["/api/v1/docs"])
    health: str = Field(..., examples=["/api/v1/health"])
