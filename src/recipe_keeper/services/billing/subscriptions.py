"""Subscription status as reported to the user."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from recipe_keeper.database.repositories.subscriptions import SubscriptionData


FREE_RECIPE_LIMIT = 25


@dataclass(frozen=True, slots=True)
class SubscriptionStats:
    is_premium: bool
    status: str
    plan_type: str
    recipe_count: int
    recipe_limit: int
    # None means unlimited.
    recipes_remaining: int | None
    current_period_end: datetime | None = None
    referral_code: str | None = None


def subscription_stats(
    subscription: SubscriptionData | None,
    *,
    free_limit: int = FREE_RECIPE_LIMIT,
) -> SubscriptionStats:
    """Summarise a subscription row, treating a missing row as the free plan."""
    if subscription is None:
        return SubscriptionStats(
            is_premium=False,
            status="free",
            plan_type="free",
            recipe_count=0,
            recipe_limit=free_limit,
            recipes_remaining=free_limit,
        )

    is_premium = subscription.status == "active"
    remaining = (
        None
        if is_premium
        else max(0, subscription.recipe_limit - subscription.recipe_count)
    )
    return SubscriptionStats(
        is_premium=is_premium,
        status=subscription.status,
        plan_type=subscription.plan_type,
        recipe_count=subscription.recipe_count,
        recipe_limit=subscription.recipe_limit,
        recipes_remaining=remaining,
        current_period_end=subscription.current_period_end,
        referral_code=subscription.referral_code,
    )
