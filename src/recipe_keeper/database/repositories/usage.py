"""Repository for AI usage accounting.

``api_usage`` holds one row per downstream model call; ``usage_tracking``
holds per-user monthly feature counters.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, field_validator

from recipe_keeper.database.repositories.base import BaseRepository


class ApiUsageRecord(BaseModel):
    """A model call to account for."""

    user_id: UUID
    service: str
    operation: str
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    estimated_cost: float = 0.0
    metadata: dict[str, Any] | None = None


class ApiUsageData(ApiUsageRecord):
    """A stored ``api_usage`` row."""

    id: UUID
    created_at: datetime

    @field_validator("estimated_cost", mode="before")
    @classmethod
    def _decimal_to_float(cls, value: Any) -> Any:
        if isinstance(value, Decimal):
            return float(value)
        return value if value is not None else 0.0


TRACKED_FEATURES = frozenset(
    {
        "ai_images_generated",
        "recipes_imported",
        "ai_variations_generated",
        "variations_saved",
    }
)


class UsageRepository(BaseRepository):
    """Data access for ``api_usage`` and ``usage_tracking``."""

    async def insert_api_usage(self, record: ApiUsageRecord) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute(
                """
                INSERT INTO api_usage (
                    user_id, service, operation, input_tokens, output_tokens,
                    total_tokens, estimated_cost, metadata
                )
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
                """,
                record.user_id,
                record.service,
                record.operation,
                record.input_tokens,
                record.output_tokens,
                record.total_tokens,
                record.estimated_cost,
                record.metadata or {},
            )

    async def increment_feature(
        self, user_id: UUID, month: str, feature: str, *, amount: int = 1
    ) -> None:
        """Add ``amount`` to one monthly feature counter.

        Raises:
            ValueError: If ``feature`` is not a tracked counter column.
        """
        if feature not in TRACKED_FEATURES:
            msg = f"Unknown usage feature: {feature}"
            raise ValueError(msg)
        query = f"""
            INSERT INTO usage_tracking (user_id, month, {feature})
            VALUES ($1, $2, $3)
            ON CONFLICT (user_id, month)
            DO UPDATE SET {feature} = usage_tracking.{feature} + $3,
                          updated_at = NOW()
        """  # noqa: S608
        async with self.pool.acquire() as conn:
            await conn.execute(query, user_id, month, amount)

    async def get_feature_count(self, user_id: UUID, month: str, feature: str) -> int:
        """Current value of one monthly feature counter; 0 if never bumped.

        Raises:
            ValueError: If ``feature`` is not a tracked counter column.
        """
        if feature not in TRACKED_FEATURES:
            msg = f"Unknown usage feature: {feature}"
            raise ValueError(msg)
        query = f"""
            SELECT {feature} FROM usage_tracking
            WHERE user_id = $1 AND month = $2
        """  # noqa: S608
        async with self.pool.acquire() as conn:
            value = await conn.fetchval(query, user_id, month)
        return int(value or 0)

    async def list_since(self, user_id: UUID, since: datetime) -> list[ApiUsageData]:
        """Usage rows for a user since ``since``, newest first."""
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT id, user_id, service, operation, input_tokens, output_tokens,
                       total_tokens, estimated_cost, metadata, created_at
                FROM api_usage
                WHERE user_id = $1 AND created_at >= $2
                ORDER BY created_at DESC
                """,
                user_id,
                since,
            )
        return [ApiUsageData(**dict(row)) for row in rows]
