"""Unit tests for subscription_stats."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from recipe_keeper.database.repositories.subscriptions import SubscriptionData
from recipe_keeper.services.billing import subscription_stats
from tests.conftest import USER_ID


pytestmark = pytest.mark.unit


class TestSubscriptionStats:
    """Tests for subscription_stats."""

    def test_missing_row_is_free_plan(self) -> None:
        stats = subscription_stats(None, free_limit=25)

        assert stats.is_premium is False
        assert stats.status == "free"
        assert stats.plan_type == "free"
        assert stats.recipe_count == 0
        assert stats.recipe_limit == 25
        assert stats.recipes_remaining == 25

    def test_free_plan_remaining(self) -> None:
        subscription = SubscriptionData(user_id=USER_ID, recipe_count=20, recipe_limit=25)

        stats = subscription_stats(subscription)

        assert stats.recipes_remaining == 5

    def test_remaining_never_negative(self) -> None:
        """Should clamp at zero when the user is over the limit."""
        subscription = SubscriptionData(user_id=USER_ID, recipe_count=30, recipe_limit=25)

        assert subscription_stats(subscription).recipes_remaining == 0

    def test_active_subscription_is_unlimited(self) -> None:
        period_end = datetime(2025, 4, 1, tzinfo=UTC)
        subscription = SubscriptionData(
            user_id=USER_ID,
            status="active",
            plan_type="annual",
            recipe_count=300,
            recipe_limit=999999,
            current_period_end=period_end,
            referral_code="GRANDMA",
        )

        stats = subscription_stats(subscription)

        assert stats.is_premium is True
        assert stats.plan_type == "annual"
        assert stats.recipes_remaining is None
        assert stats.current_period_end == period_end
        assert stats.referral_code == "GRANDMA"

    @pytest.mark.parametrize("status", ["past_due", "trialing", "canceled"])
    def test_only_active_is_premium(self, status: str) -> None:
        subscription = SubscriptionData(user_id=USER_ID, status=status)

        assert subscription_stats(subscription).is_premium is False
