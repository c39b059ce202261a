"""Unit tests for Stripe webhook reconciliation.

Tests cover:
- Signature verification and event decoding
- Status and plan mapping
- Subscription row projection
- Event dispatch outcomes
"""

from __future__ import annotations

import hashlib
import hmac
import time
from datetime import UTC, datetime
from typing import Any
from unittest.mock import AsyncMock

import orjson
import pytest

from recipe_keeper.core.config.settings import BillingSettings
from recipe_keeper.services.billing import (
    WebhookReconciler,
    WebhookSignatureError,
    build_subscription_update,
    construct_event,
    map_subscription_status,
    plan_from_price_id,
)
from tests.conftest import USER_ID


pytestmark = pytest.mark.unit

SECRET = "whsec_test"
PERIOD_START = 1_735_689_600  # 2025-01-01T00:00:00Z
PERIOD_END = 1_738_368_000  # 2025-02-01T00:00:00Z


def _sign(payload: bytes, secret: str = SECRET) -> str:
    timestamp = int(time.time())
    signed = f"{timestamp}.{payload.decode()}".encode()
    digest = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


def _subscription(**overrides: Any) -> dict[str, Any]:
    subscription: dict[str, Any] = {
        "id": "sub_123",
        "object": "subscription",
        "customer": "cus_123",
        "status": "active",
        "metadata": {"user_id": str(USER_ID)},
        "current_period_start": PERIOD_START,
        "current_period_end": PERIOD_END,
        "cancel_at": None,
        "canceled_at": None,
        "trial_end": None,
        "items": {"data": [{"price": {"id": "price_monthly"}}]},
    }
    subscription.update(overrides)
    return subscription


def _event(event_type: str, obj: dict[str, Any]) -> dict[str, Any]:
    return {"id": "evt_1", "type": event_type, "data": {"object": obj}}


@pytest.fixture
def billing_settings() -> BillingSettings:
    return BillingSettings(
        monthly_price_id="price_monthly",
        annual_price_id="price_annual",
        free_recipe_limit=25,
        premium_recipe_limit=999999,
    )


@pytest.fixture
def repository() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def billing_client() -> AsyncMock:
    client = AsyncMock()
    client.retrieve_subscription.return_value = _subscription()
    return client


@pytest.fixture
def reconciler(
    billing_client: AsyncMock,
    repository: AsyncMock,
    billing_settings: BillingSettings,
) -> WebhookReconciler:
    return WebhookReconciler(billing_client, repository, billing_settings)


class TestConstructEvent:
    """Tests for construct_event."""

    def test_valid_signature(self) -> None:
        payload = orjson.dumps(_event("invoice.payment_failed", {"id": "in_1"}))

        event = construct_event(payload, _sign(payload), SECRET)

        assert event["type"] == "invoice.payment_failed"
        assert event["data"]["object"]["id"] == "in_1"

    def test_invalid_signature(self) -> None:
        """Should reject a payload signed with another secret."""
        payload = orjson.dumps(_event("invoice.payment_failed", {}))

        with pytest.raises(WebhookSignatureError):
            construct_event(payload, _sign(payload, "whsec_other"), SECRET)

    def test_tampered_payload(self) -> None:
        payload = orjson.dumps(_event("invoice.payment_failed", {}))
        signature = _sign(payload)

        with pytest.raises(WebhookSignatureError):
            construct_event(payload + b" ", signature, SECRET)


class TestMapping:
    """Tests for status and plan mapping."""

    @pytest.mark.parametrize(
        ("stripe_status", "expected"),
        [
            ("active", "active"),
            ("trialing", "trialing"),
            ("past_due", "past_due"),
            ("canceled", "canceled"),
            ("unpaid", "canceled"),
            ("incomplete_expired", "canceled"),
            ("incomplete", "free"),
            (None, "free"),
        ],
    )
    def test_map_subscription_status(
        self, stripe_status: str | None, expected: str
    ) -> None:
        assert map_subscription_status(stripe_status) == expected

    def test_plan_from_price_id(self, billing_settings: BillingSettings) -> None:
        assert plan_from_price_id("price_monthly", billing_settings) == "monthly"
        assert plan_from_price_id("price_annual", billing_settings) == "annual"
        assert plan_from_price_id("price_unknown", billing_settings) == "free"
        assert plan_from_price_id(None, billing_settings) == "free"

    def test_unconfigured_price_never_matches(self) -> None:
        """An empty configured price id must not match a missing price."""
        assert plan_from_price_id("", BillingSettings()) == "free"


class TestBuildSubscriptionUpdate:
    """Tests for build_subscription_update."""

    def test_active_subscription(self, billing_settings: BillingSettings) -> None:
        update = build_subscription_update(_subscription(), billing_settings)

        assert update.stripe_subscription_id == "sub_123"
        assert update.stripe_customer_id == "cus_123"
        assert update.stripe_price_id == "price_monthly"
        assert update.status == "active"
        assert update.plan_type == "monthly"
        assert update.recipe_limit == 999999
        assert update.current_period_start == datetime(2025, 1, 1, tzinfo=UTC)
        assert update.current_period_end == datetime(2025, 2, 1, tzinfo=UTC)
        assert update.cancel_at is None

    def test_inactive_subscription_gets_free_limit(
        self, billing_settings: BillingSettings
    ) -> None:
        update = build_subscription_update(
            _subscription(status="past_due"), billing_settings
        )

        assert update.status == "past_due"
        assert update.recipe_limit == 25

    def test_period_read_from_item(self, billing_settings: BillingSettings) -> None:
        """Should fall back to the item's billing period."""
        subscription = _subscription(
            current_period_start=None,
            current_period_end=None,
            items={
                "data": [
                    {
                        "price": {"id": "price_annual"},
                        "current_period_start": PERIOD_START,
                        "current_period_end": PERIOD_END,
                    }
                ]
            },
        )

        update = build_subscription_update(subscription, billing_settings)

        assert update.plan_type == "annual"
        assert update.current_period_end == datetime(2025, 2, 1, tzinfo=UTC)

    def test_expanded_customer(self, billing_settings: BillingSettings) -> None:
        update = build_subscription_update(
            _subscription(customer={"id": "cus_expanded"}), billing_settings
        )

        assert update.stripe_customer_id == "cus_expanded"

    def test_no_items(self, billing_settings: BillingSettings) -> None:
        update = build_subscription_update(
            _subscription(items={"data": []}), billing_settings
        )

        assert update.stripe_price_id is None
        assert update.plan_type == "free"


class TestWebhookReconciler:
    """Tests for WebhookReconciler.handle."""

    async def test_unhandled_event_ignored(
        self, reconciler: WebhookReconciler, repository: AsyncMock
    ) -> None:
        outcome = await reconciler.handle(_event("customer.created", {}))

        assert outcome == "ignored"
        repository.apply_update.assert_not_awaited()

    async def test_checkout_completed(
        self,
        reconciler: WebhookReconciler,
        billing_client: AsyncMock,
        repository: AsyncMock,
    ) -> None:
        """Should fetch the subscription and write it to the user's row."""
        session = {
            "mode": "subscription",
            "subscription": "sub_123",
            "metadata": {"user_id": str(USER_ID)},
        }

        outcome = await reconciler.handle(
            _event("checkout.session.completed", session)
        )

        assert outcome == "processed"
        billing_client.retrieve_subscription.assert_awaited_once_with("sub_123")
        user_id, update = repository.apply_update.await_args.args
        assert user_id == USER_ID
        assert update.status == "active"

    async def test_checkout_payment_mode_ignored(
        self, reconciler: WebhookReconciler, billing_client: AsyncMock
    ) -> None:
        outcome = await reconciler.handle(
            _event("checkout.session.completed", {"mode": "payment"})
        )

        assert outcome == "ignored"
        billing_client.retrieve_subscription.assert_not_awaited()

    async def test_checkout_without_user_skipped(
        self, reconciler: WebhookReconciler
    ) -> None:
        outcome = await reconciler.handle(
            _event(
                "checkout.session.completed",
                {"mode": "subscription", "subscription": "sub_123", "metadata": {}},
            )
        )

        assert outcome == "skipped"

    @pytest.mark.parametrize(
        "event_type",
        ["customer.subscription.created", "customer.subscription.updated"],
    )
    async def test_subscription_changed(
        self,
        reconciler: WebhookReconciler,
        repository: AsyncMock,
        event_type: str,
    ) -> None:
        outcome = await reconciler.handle(
            _event(event_type, _subscription(status="trialing"))
        )

        assert outcome == "processed"
        _, update = repository.apply_update.await_args.args
        assert update.status == "trialing"

    async def test_subscription_without_user_skipped(
        self, reconciler: WebhookReconciler, repository: AsyncMock
    ) -> None:
        outcome = await reconciler.handle(
            _event(
                "customer.subscription.updated", _subscription(metadata={"user_id": "x"})
            )
        )

        assert outcome == "skipped"
        repository.apply_update.assert_not_awaited()

    async def test_subscription_deleted(
        self, reconciler: WebhookReconciler, repository: AsyncMock
    ) -> None:
        """Should drop the user to the free plan and log the cancellation."""
        outcome = await reconciler.handle(
            _event("customer.subscription.deleted", _subscription(status="canceled"))
        )

        assert outcome == "processed"
        repository.mark_canceled.assert_awaited_once()
        assert repository.mark_canceled.await_args.kwargs["free_limit"] == 25
        repository.record_event.assert_awaited_once_with(
            USER_ID, "cancelled", {"stripe_subscription_id": "sub_123"}
        )

    async def test_payment_succeeded(
        self,
        reconciler: WebhookReconciler,
        billing_client: AsyncMock,
        repository: AsyncMock,
    ) -> None:
        outcome = await reconciler.handle(
            _event("invoice.payment_succeeded", {"subscription": "sub_123"})
        )

        assert outcome == "processed"
        billing_client.retrieve_subscription.assert_awaited_once_with("sub_123")
        repository.apply_update.assert_awaited_once()

    async def test_payment_succeeded_reads_parent_details(
        self, reconciler: WebhookReconciler, billing_client: AsyncMock
    ) -> None:
        """Should find the subscription under parent.subscription_details."""
        invoice = {
            "parent": {"subscription_details": {"subscription": "sub_456"}},
        }

        await reconciler.handle(_event("invoice.payment_succeeded", invoice))

        billing_client.retrieve_subscription.assert_awaited_once_with("sub_456")

    async def test_one_off_invoice_ignored(
        self, reconciler: WebhookReconciler, billing_client: AsyncMock
    ) -> None:
        outcome = await reconciler.handle(_event("invoice.payment_succeeded", {}))

        assert outcome == "ignored"
        billing_client.retrieve_subscription.assert_not_awaited()

    async def test_payment_failed(
        self, reconciler: WebhookReconciler, repository: AsyncMock
    ) -> None:
        outcome = await reconciler.handle(
            _event("invoice.payment_failed", {"subscription": "sub_123"})
        )

        assert outcome == "processed"
        repository.set_status.assert_awaited_once_with(USER_ID, "past_due")

    async def test_retrieval_needs_billing_client(
        self, repository: AsyncMock, billing_settings: BillingSettings
    ) -> None:
        reconciler = WebhookReconciler(None, repository, billing_settings)

        with pytest.raises(RuntimeError, match="not configured"):
            await reconciler.handle(
                _event("invoice.payment_failed", {"subscription": "sub_123"})
            )
