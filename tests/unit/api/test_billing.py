"""Endpoint tests for billing, promo codes and the Stripe webhook.

Tests cover:
- Subscription status for free and premium users
- Checkout validation, customer reuse and provider failures
- Portal, cancel and reactivate
- Promo code redemption
- Webhook signature checks and handler failures
"""

from __future__ import annotations

import hashlib
import hmac
import time
from typing import TYPE_CHECKING
from unittest.mock import AsyncMock, MagicMock, patch

import orjson
import pytest

from recipe_keeper.database.exceptions import StoredProcedureMissingError
from recipe_keeper.database.repositories.subscriptions import SubscriptionData
from recipe_keeper.services.billing import BillingProviderError
from tests.conftest import USER_ID


if TYPE_CHECKING:
    from types import SimpleNamespace

    from fastapi import FastAPI
    from httpx import AsyncClient


pytestmark = pytest.mark.unit

BILLING = "/api/v1/billing"
WEBHOOK = "/api/v1/webhooks/stripe"


@pytest.fixture
def billing(app: FastAPI) -> AsyncMock:
    client = AsyncMock()
    client.valid_price_ids = {"price_monthly", "price_annual"}
    app.state.billing_client = client
    return client


def _premium(**overrides: object) -> SubscriptionData:
    fields: dict[str, object] = {
        "user_id": USER_ID,
        "stripe_customer_id": "cus_123",
        "stripe_subscription_id": "sub_123",
        "status": "active",
        "plan_type": "monthly",
        "recipe_count": 40,
        "recipe_limit": 999999,
    }
    fields.update(overrides)
    return SubscriptionData(**fields)


class TestSubscription:
    """Tests for GET /billing/subscription."""

    async def test_missing_row_is_free_plan(
        self, client: AsyncClient, repos: SimpleNamespace
    ) -> None:
        repos.subscriptions.get_for_user.return_value = None

        response = await client.get(f"{BILLING}/subscription")

        assert response.json()["planType"] == "free"
        assert response.json()["recipesRemaining"] == 25

    async def test_premium_is_unlimited(
        self, client: AsyncClient, repos: SimpleNamespace
    ) -> None:
        repos.subscriptions.get_for_user.return_value = _premium()

        response = await client.get(f"{BILLING}/subscription")

        assert response.json()["isPremium"] is True
        assert response.json()["recipesRemaining"] is None


class TestCheckout:
    """Tests for POST /billing/checkout."""

    async def test_creates_session(
        self, client: AsyncClient, repos: SimpleNamespace, billing: AsyncMock
    ) -> None:
        repos.subscriptions.get_for_user.return_value = None
        billing.get_or_create_customer.return_value = "cus_new"
        billing.create_checkout_session.return_value = ("cs_123", "https://checkout")

        response = await client.post(
            f"{BILLING}/checkout",
            json={"priceId": "price_annual", "referralCode": "rewardful-1"},
        )

        assert response.json() == {"sessionId": "cs_123", "url": "https://checkout"}
        repos.subscriptions.save_customer_id.assert_awaited_once_with(USER_ID, "cus_new")
        kwargs = billing.create_checkout_session.call_args.kwargs
        assert kwargs["referral_code"] == "rewardful-1"
        assert kwargs["success_url"].endswith("/billing?success=true")

    async def test_unknown_price(self, client: AsyncClient, billing: AsyncMock) -> None:
        response = await client.post(f"{BILLING}/checkout", json={"priceId": "price_x"})

        assert response.status_code == 400
        billing.create_checkout_session.assert_not_awaited()

    async def test_already_subscribed(
        self, client: AsyncClient, repos: SimpleNamespace, billing: AsyncMock
    ) -> None:
        repos.subscriptions.get_for_user.return_value = _premium()

        response = await client.post(
            f"{BILLING}/checkout", json={"priceId": "price_monthly"}
        )

        assert response.status_code == 400
        assert "already" in response.json()["message"]

    async def test_provider_error(
        self, client: AsyncClient, repos: SimpleNamespace, billing: AsyncMock
    ) -> None:
        repos.subscriptions.get_for_user.return_value = None
        billing.get_or_create_customer.side_effect = BillingProviderError("card_error")

        response = await client.post(
            f"{BILLING}/checkout", json={"priceId": "price_monthly"}
        )

        assert response.status_code == 502
        assert response.json()["error"] == "BILLING_PROVIDER_ERROR"

    async def test_not_configured(self, client: AsyncClient) -> None:
        """Should answer 503 when no Stripe client was started."""
        response = await client.post(
            f"{BILLING}/checkout", json={"priceId": "price_monthly"}
        )

        assert response.status_code == 503


class TestManageSubscription:
    """Tests for portal, cancel and reactivate."""

    async def test_portal(
        self, client: AsyncClient, repos: SimpleNamespace, billing: AsyncMock
    ) -> None:
        repos.subscriptions.get_for_user.return_value = _premium()
        billing.create_portal_session.return_value = "https://portal"

        response = await client.post(f"{BILLING}/portal")

        assert response.json() == {"url": "https://portal"}

    async def test_portal_without_customer(
        self, client: AsyncClient, repos: SimpleNamespace, billing: AsyncMock
    ) -> None:
        repos.subscriptions.get_for_user.return_value = None

        response = await client.post(f"{BILLING}/portal")

        assert response.status_code == 400

    @pytest.mark.parametrize(("action", "cancel"), [("cancel", True), ("reactivate", False)])
    async def test_cancel_and_reactivate(
        self,
        client: AsyncClient,
        repos: SimpleNamespace,
        billing: AsyncMock,
        action: str,
        cancel: bool,
    ) -> None:
        repos.subscriptions.get_for_user.return_value = _premium()

        response = await client.post(f"{BILLING}/{action}")

        assert response.json() == {"success": True, "cancelAtPeriodEnd": cancel}
        billing.set_cancel_at_period_end.assert_awaited_once_with(
            "sub_123", cancel=cancel
        )

    async def test_cancel_without_subscription(
        self, client: AsyncClient, repos: SimpleNamespace, billing: AsyncMock
    ) -> None:
        repos.subscriptions.get_for_user.return_value = _premium(
            stripe_subscription_id=None
        )

        response = await client.post(f"{BILLING}/cancel")

        assert response.status_code == 400


class TestPromoCodes:
    """Tests for /promo."""

    async def test_apply(self, client: AsyncClient, repos: SimpleNamespace) -> None:
        repos.promo_codes.apply.return_value = {
            "success": True,
            "promo_code": "FAMILY2025",
            "promo_name": "Family & Friends",
            "max_recipes": 100,
        }

        response = await client.post("/api/v1/promo/apply", json={"code": "FAMILY2025"})

        assert response.json()["maxRecipes"] == 100
        repos.promo_codes.apply.assert_awaited_once_with(USER_ID, "FAMILY2025")

    async def test_invalid_code(
        self, client: AsyncClient, repos: SimpleNamespace
    ) -> None:
        repos.promo_codes.apply.return_value = {
            "success": False,
            "error": "Promo code has expired",
        }

        response = await client.post("/api/v1/promo/apply", json={"code": "OLD"})

        assert response.status_code == 400
        assert response.json()["message"] == "Promo code has expired"

    async def test_procedure_missing(
        self, client: AsyncClient, repos: SimpleNamespace
    ) -> None:
        repos.promo_codes.apply.side_effect = StoredProcedureMissingError(
            "apply_promo_code"
        )

        response = await client.post("/api/v1/promo/apply", json={"code": "FAMILY2025"})

        assert response.status_code == 503

    async def test_no_active_promo(
        self, client: AsyncClient, repos: SimpleNamespace
    ) -> None:
        repos.promo_codes.get_active.return_value = None

        response = await client.get("/api/v1/promo/active")

        assert response.json()["hasPromo"] is False


class TestStripeWebhook:
    """Tests for POST /webhooks/stripe."""

    @staticmethod
    def _signed(event: dict[str, object], secret: str = "whsec_test") -> tuple[bytes, str]:
        payload = orjson.dumps(event)
        timestamp = int(time.time())
        digest = hmac.new(
            secret.encode(), f"{timestamp}.".encode() + payload, hashlib.sha256
        ).hexdigest()
        return payload, f"t={timestamp},v1={digest}"

    @pytest.fixture
    def reconciler(self) -> MagicMock:
        with patch("recipe_keeper.api.v1.endpoints.webhooks.WebhookReconciler") as cls:
            cls.return_value.handle = AsyncMock(return_value="subscription_updated")
            yield cls.return_value

    async def test_missing_signature(self, client: AsyncClient) -> None:
        response = await client.post(WEBHOOK, content=b"{}")

        assert response.status_code == 400
        assert response.json()["message"] == "No signature found"

    async def test_invalid_signature(
        self, client: AsyncClient, reconciler: MagicMock
    ) -> None:
        payload, signature = self._signed({"type": "x"}, secret="whsec_other")

        response = await client.post(
            WEBHOOK, content=payload, headers={"stripe-signature": signature}
        )

        assert response.status_code == 400
        reconciler.handle.assert_not_awaited()

    async def test_reconciles_event(
        self, client: AsyncClient, reconciler: MagicMock
    ) -> None:
        event = {"id": "evt_1", "type": "customer.subscription.updated"}
        payload, signature = self._signed(event)

        response = await client.post(
            WEBHOOK, content=payload, headers={"stripe-signature": signature}
        )

        assert response.json() == {"received": True}
        reconciler.handle.assert_awaited_once_with(event)

    async def test_handler_failure(
        self, client: AsyncClient, reconciler: MagicMock
    ) -> None:
        """Should answer 500 so Stripe retries the delivery."""
        reconciler.handle.side_effect = RuntimeError("db down")
        payload, signature = self._signed({"id": "evt_1", "type": "invoice.paid"})

        response = await client.post(
            WEBHOOK, content=payload, headers={"stripe-signature": signature}
        )

        assert response.status_code == 500
        assert response.json() == {"error": "Webhook handler failed"}
