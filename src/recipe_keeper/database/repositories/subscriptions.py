"""Subscription repository.

One row per user in ``subscriptions``; lifecycle transitions are also
appended to ``subscription_events`` for churn reporting.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

from pydantic import BaseModel

from recipe_keeper.database.repositories.base import BaseRepository
from recipe_keeper.observability.logging import get_logger


if TYPE_CHECKING:
    from asyncpg import Record

logger = get_logger(__name__)


# =============================================================================
# Data Transfer Objects
# =============================================================================


class SubscriptionData(BaseModel):
    """A row from ``subscriptions``."""

    user_id: UUID
    stripe_customer_id: str | None = None
    stripe_subscription_id: str | None = None
    stripe_price_id: str | None = None
    status: str = "free"
    plan_type: str = "free"
    recipe_count: int = 0
    recipe_limit: int = 25
    current_period_start: datetime | None = None
    current_period_end: datetime | None = None
    cancel_at: datetime | None = None
    canceled_at: datetime | None = None
    trial_end: datetime | None = None
    referral_code: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class SubscriptionUpdate(BaseModel):
    """Billing-provider state written onto a user's subscription row."""

    stripe_subscription_id: str
    stripe_customer_id: str | None
    stripe_price_id: str | None
    status: str
    plan_type: str
    recipe_limit: int
    current_period_start: datetime | None = None
    current_period_end: datetime | None = None
    cancel_at: datetime | None = None
    canceled_at: datetime | None = None
    trial_end: datetime | None = None


class SubscriptionEventData(BaseModel):
    """A row from ``subscription_events``."""

    id: UUID
    user_id: UUID
    event_type: str
    occurred_at: datetime
    metadata: dict[str, Any] | None = None


# =============================================================================
# Repository
# =============================================================================


class SubscriptionRepository(BaseRepository):
    """Data access for ``subscriptions`` and ``subscription_events``."""

    async def get_for_user(self, user_id: UUID) -> SubscriptionData | None:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT * FROM subscriptions WHERE user_id = $1", user_id
            )
        return self._row_to_subscription(row) if row else None

    async def save_customer_id(self, user_id: UUID, customer_id: str) -> None:
        """Remember the billing customer for a user, creating the row if needed."""
        async with self.pool.acquire() as conn:
            await conn.execute(
                """
                INSERT INTO subscriptions (user_id, stripe_customer_id)
                VALUES ($1, $2)
                ON CONFLICT (user_id)
                DO UPDATE SET stripe_customer_id = EXCLUDED.stripe_customer_id,
                              updated_at = NOW()
                """,
                user_id,
                customer_id,
            )

    async def apply_update(self, user_id: UUID, update: SubscriptionUpdate) -> None:
        """Overwrite the user's subscription with the provider's current state.

        The write is a full replacement of the provider-owned columns, so
        applying the same update twice leaves the row unchanged.
        """
        values = update.model_dump()
        columns = list(values)
        assignments = ", ".join(f"{column} = EXCLUDED.{column}" for column in columns)
        placeholders = ", ".join(f"${i}" for i in range(2, len(columns) + 2))
        query = f"""
            INSERT INTO subscriptions (user_id, {", ".join(columns)})
            VALUES ($1, {placeholders})
            ON CONFLICT (user_id)
            DO UPDATE SET {assignments}, updated_at = NOW()
        """  # noqa: S608
        async with self.pool.acquire() as conn:
            await conn.execute(query, user_id, *values.values())

    async def mark_canceled(
        self,
        user_id: UUID,
        *,
        free_limit: int,
        canceled_at: datetime,
    ) -> bool:
        """Downgrade a user to the free plan after their subscription ended."""
        async with self.pool.acquire() as conn:
            result = await conn.execute(
                """
                UPDATE subscriptions
                SET status = 'canceled',
                    plan_type = 'free',
                    recipe_limit = $2,
                    canceled_at = $3,
                    updated_at = NOW()
                WHERE user_id = $1
                """,
                user_id,
                free_limit,
                canceled_at,
            )
        return result != "UPDATE 0"

    async def set_status(self, user_id: UUID, status: str) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute(
                """
                UPDATE subscriptions SET status = $2, updated_at = NOW()
                WHERE user_id = $1
                """,
                user_id,
                status,
            )

    async def record_event(
        self,
        user_id: UUID,
        event_type: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute(
                """
                INSERT INTO subscription_events (user_id, event_type, occurred_at, metadata)
                VALUES ($1, $2, NOW(), $3)
                """,
                user_id,
                event_type,
                metadata or {},
            )

    async def list_events(
        self, user_id: UUID, limit: int = 20
    ) -> list[SubscriptionEventData]:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT id, user_id, event_type, occurred_at, metadata
                FROM subscription_events
                WHERE user_id = $1
                ORDER BY occurred_at DESC
                LIMIT $2
                """,
                user_id,
                limit,
            )
        return [SubscriptionEventData(**dict(row)) for row in rows]

    @staticmethod
    def _row_to_subscription(row: Record) -> SubscriptionData:
        return SubscriptionData(**dict(row))
