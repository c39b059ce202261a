"""Repository backing the admin dashboard and user management."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from recipe_keeper.database.repositories.base import BaseRepository


# =============================================================================
# Data Transfer Objects
# =============================================================================


class AdminUserData(BaseModel):
    """A row from ``admin_users``."""

    email: str
    role: str
    permissions: dict[str, Any] = Field(default_factory=dict)
    is_active: bool = True


class DashboardCounts(BaseModel):
    """Raw counts the dashboard metrics are derived from."""

    total_users: int = 0
    active_users: int = 0
    new_users_this_month: int = 0
    users_with_recipes: int = 0
    free_subscriptions: int = 0
    active_monthly: int = 0
    active_annual: int = 0
    canceled_subscriptions: int = 0
    total_subscriptions: int = 0
    promo_users: int = 0
    total_recipes: int = 0
    recipes_this_month: int = 0
    total_cookbooks: int = 0
    shared_cookbooks: int = 0
    max_members: int = 0
    active_promo_codes: int = 0
    churn_last_year: int = 0
    churn_this_month: int = 0
    total_churn: int = 0


class AdminUserRow(BaseModel):
    """A profile joined with its subscription, as listed to admins."""

    id: UUID
    email: str | None = None
    full_name: str | None = None
    created_at: datetime | None = None
    status: str | None = None
    plan_type: str | None = None
    recipe_count: int | None = None
    recipe_limit: int | None = None


USER_TIERS = frozenset({"free", "monthly", "annual"})


# =============================================================================
# Repository
# =============================================================================


class AdminRepository(BaseRepository):
    """Read-mostly queries for admin tooling."""

    async def get_admin_user(self, email: str) -> AdminUserData | None:
        """Return the active ``admin_users`` row for an email, if any."""
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                SELECT email, role, permissions, is_active FROM admin_users
                WHERE lower(email) = lower($1) AND is_active
                LIMIT 1
                """,
                email,
            )
        if row is None:
            return None
        data = dict(row)
        data["permissions"] = data.get("permissions") or {}
        return AdminUserData(**data)

    async def get_dashboard_counts(
        self, month_start: datetime, thirty_days_ago: datetime, year_ago: datetime
    ) -> DashboardCounts:
        """Collect every count the metrics dashboard needs in one round trip."""
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                SELECT
                    (SELECT COUNT(*) FROM profiles) AS total_users,
                    (SELECT COUNT(DISTINCT user_id) FROM recipes
                     WHERE created_at >= $2) AS active_users,
                    (SELECT COUNT(*) FROM profiles
                     WHERE created_at >= $1) AS new_users_this_month,
                    (SELECT COUNT(DISTINCT user_id) FROM recipes) AS users_with_recipes,
                    (SELECT COUNT(*) FROM subscriptions
                     WHERE status IS DISTINCT FROM 'active') AS free_subscriptions,
                    (SELECT COUNT(*) FROM subscriptions
                     WHERE status = 'active' AND plan_type = 'monthly') AS active_monthly,
                    (SELECT COUNT(*) FROM subscriptions
                     WHERE status = 'active' AND plan_type = 'annual') AS active_annual,
                    (SELECT COUNT(*) FROM subscriptions
                     WHERE status = 'canceled') AS canceled_subscriptions,
                    (SELECT COUNT(*) FROM subscriptions) AS total_subscriptions,
                    (SELECT COUNT(*) FROM user_promo_codes WHERE is_active) AS promo_users,
                    (SELECT COUNT(*) FROM recipes) AS total_recipes,
                    (SELECT COUNT(*) FROM recipes
                     WHERE created_at >= $1) AS recipes_this_month,
                    (SELECT COUNT(*) FROM recipe_books) AS total_cookbooks,
                    (SELECT COUNT(*) FROM recipe_books WHERE is_shared) AS shared_cookbooks,
                    (SELECT COALESCE(MAX(n), 0) FROM (
                        SELECT COUNT(*) AS n FROM book_members GROUP BY book_id
                     ) per_book) AS max_members,
                    (SELECT COUNT(*) FROM promo_codes WHERE is_active) AS active_promo_codes,
                    (SELECT COUNT(*) FROM subscription_events
                     WHERE event_type = 'cancelled' AND occurred_at >= $3) AS churn_last_year,
                    (SELECT COUNT(*) FROM subscription_events
                     WHERE event_type = 'cancelled' AND occurred_at >= $1) AS churn_this_month,
                    (SELECT COUNT(*) FROM subscription_events
                     WHERE event_type = 'cancelled') AS total_churn
                """,
                month_start,
                thirty_days_ago,
                year_ago,
            )
        return DashboardCounts(**dict(row))

    async def list_users(
        self,
        *,
        search: str | None = None,
        tier: str | None = None,
        limit: int = 100,
    ) -> list[AdminUserRow]:
        """Profiles with their subscription, newest first.

        ``tier`` is one of ``free`` (anything not active), ``monthly`` or
        ``annual``; ``search`` matches email or full name.
        """
        conditions: list[str] = []
        args: list[Any] = []
        if tier == "free":
            conditions.append("s.status IS DISTINCT FROM 'active'")
        elif tier in USER_TIERS:
            args.append(tier)
            conditions.append(f"s.plan_type = ${len(args)}")
        if search:
            args.append(f"%{search.strip()}%")
            conditions.append(
                f"(p.email ILIKE ${len(args)} OR p.full_name ILIKE ${len(args)})"
            )
        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        args.append(limit)
        query = f"""
            SELECT p.id, p.email, p.full_name, p.created_at,
                   s.status, s.plan_type, s.recipe_count, s.recipe_limit
            FROM profiles p
            LEFT JOIN subscriptions s ON s.user_id = p.id
            {where}
            ORDER BY p.created_at DESC
            LIMIT ${len(args)}
        """  # noqa: S608
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(query, *args)
        return [AdminUserRow(**dict(row)) for row in rows]

