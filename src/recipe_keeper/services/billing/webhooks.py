"""Stripe webhook reconciliation.

Events are decoded to plain dictionaries and projected onto the user's
``subscriptions`` row. Every handler writes the full provider state, so a
replayed or out-of-order event converges on the same row.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

import orjson

from recipe_keeper.database.repositories.subscriptions import SubscriptionUpdate
from recipe_keeper.observability.logging import get_logger
from recipe_keeper.observability.metrics import BILLING_WEBHOOK_EVENTS
from recipe_keeper.services.billing.client import verify_webhook


if TYPE_CHECKING:
    from recipe_keeper.core.config.settings import BillingSettings
    from recipe_keeper.database.repositories.subscriptions import (
        SubscriptionRepository,
    )
    from recipe_keeper.services.billing.client import BillingClient

logger = get_logger(__name__)

_STATUS_MAP = {
    "active": "active",
    "canceled": "canceled",
    "incomplete_expired": "canceled",
    "unpaid": "canceled",
    "past_due": "past_due",
    "trialing": "trialing",
}


def construct_event(payload: bytes, signature: str, secret: str) -> dict[str, Any]:
    """Verify a webhook payload and decode it.

    Raises:
        WebhookSignatureError: If the signature does not match.
    """
    verify_webhook(payload, signature, secret)
    event: dict[str, Any] = orjson.loads(payload)
    return event


def _field(obj: Any, key: str) -> Any:
    """Read ``key`` from a dict or a ``StripeObject``, or None when absent."""
    if obj is None:
        return None
    try:
        return obj[key]
    except (KeyError, TypeError):
        return None


def _timestamp(value: Any) -> datetime | None:
    if value is None:
        return None
    return datetime.fromtimestamp(int(value), tz=UTC)


def map_subscription_status(stripe_status: str | None) -> str:
    """Project a Stripe subscription status onto the internal status set."""
    return _STATUS_MAP.get(stripe_status or "", "free")


def plan_from_price_id(price_id: str | None, billing: BillingSettings) -> str:
    if price_id and price_id == billing.monthly_price_id:
        return "monthly"
    if price_id and price_id == billing.annual_price_id:
        return "annual"
    return "free"


def _first_item(subscription: Any) -> Any:
    items = _field(_field(subscription, "items"), "data") or []
    return items[0] if items else None


def build_subscription_update(
    subscription: Any, billing: BillingSettings
) -> SubscriptionUpdate:
    """Build the row update for a Stripe subscription object.

    Newer API versions report the billing period on subscription items only,
    so the first item is used when the subscription lacks it.
    """
    item = _first_item(subscription)
    price_id = _field(_field(item, "price"), "id")
    status = map_subscription_status(_field(subscription, "status"))

    period_start = _field(subscription, "current_period_start")
    if period_start is None:
        period_start = _field(item, "current_period_start")
    period_end = _field(subscription, "current_period_end")
    if period_end is None:
        period_end = _field(item, "current_period_end")

    customer = _field(subscription, "customer")
    if not isinstance(customer, str):
        customer = _field(customer, "id")

    return SubscriptionUpdate(
        stripe_subscription_id=_field(subscription, "id"),
        stripe_customer_id=customer,
        stripe_price_id=price_id,
        status=status,
        plan_type=plan_from_price_id(price_id, billing),
        recipe_limit=(
            billing.premium_recipe_limit
            if status == "active"
            else billing.free_recipe_limit
        ),
        current_period_start=_timestamp(period_start),
        current_period_end=_timestamp(period_end),
        cancel_at=_timestamp(_field(subscription, "cancel_at")),
        canceled_at=_timestamp(_field(subscription, "canceled_at")),
        trial_end=_timestamp(_field(subscription, "trial_end")),
    )


def _user_id(obj: Any) -> UUID | None:
    raw = _field(_field(obj, "metadata"), "user_id")
    if not raw:
        return None
    try:
        return UUID(str(raw))
    except ValueError:
        logger.warning("Webhook metadata carries a malformed user_id", user_id=raw)
        return None


def _invoice_subscription_id(invoice: dict[str, Any]) -> str | None:
    subscription = _field(invoice, "subscription")
    if subscription is None:
        details = _field(_field(invoice, "parent"), "subscription_details")
        subscription = _field(details, "subscription")
    if subscription is not None and not isinstance(subscription, str):
        subscription = _field(subscription, "id")
    return subscription


class WebhookReconciler:
    """Apply Stripe events to ``subscriptions`` and ``subscription_events``."""

    def __init__(
        self,
        billing: BillingClient | None,
        repository: SubscriptionRepository,
        settings: BillingSettings,
    ) -> None:
        self._billing = billing
        self._repository = repository
        self._settings = settings

    async def handle(self, event: dict[str, Any]) -> str:
        """Dispatch one event.

        Returns:
            ``processed``, ``skipped`` or ``ignored``; also recorded in metrics.
        """
        event_type = str(event.get("type", ""))
        obj = _field(_field(event, "data"), "object")
        handlers = {
            "checkout.session.completed": self._checkout_completed,
            "customer.subscription.created": self._subscription_changed,
            "customer.subscription.updated": self._subscription_changed,
            "customer.subscription.deleted": self._subscription_deleted,
            "invoice.payment_succeeded": self._payment_succeeded,
            "invoice.payment_failed": self._payment_failed,
        }
        handler = handlers.get(event_type)
        if handler is None:
            logger.info("Unhandled webhook event type", event_type=event_type)
            outcome = "ignored"
        else:
            outcome = await handler(obj)
            logger.info(
                "Webhook event handled",
                event_type=event_type,
                event_id=event.get("id"),
                outcome=outcome,
            )
        BILLING_WEBHOOK_EVENTS.labels(event_type=event_type, outcome=outcome).inc()
        return outcome

    async def _retrieve(self, subscription_id: str) -> Any:
        if self._billing is None:
            msg = "Billing client not configured"
            raise RuntimeError(msg)
        return await self._billing.retrieve_subscription(subscription_id)

    async def _reconcile(self, user_id: UUID, subscription: Any) -> None:
        update = build_subscription_update(subscription, self._settings)
        await self._repository.apply_update(user_id, update)
        logger.info(
            "Subscription reconciled",
            user_id=str(user_id),
            status=update.status,
            plan_type=update.plan_type,
        )

    async def _checkout_completed(self, session: dict[str, Any]) -> str:
        if _field(session, "mode") != "subscription":
            return "ignored"
        user_id = _user_id(session)
        subscription_id = _field(session, "subscription")
        if user_id is None or not subscription_id:
            logger.warning("Checkout session without user_id or subscription")
            return "skipped"
        subscription = await self._retrieve(subscription_id)
        await self._reconcile(user_id, subscription)
        return "processed"

    async def _subscription_changed(self, subscription: dict[str, Any]) -> str:
        user_id = _user_id(subscription)
        if user_id is None:
            logger.warning(
                "Subscription event without user_id",
                subscription_id=_field(subscription, "id"),
            )
            return "skipped"
        await self._reconcile(user_id, subscription)
        return "processed"

    async def _subscription_deleted(self, subscription: dict[str, Any]) -> str:
        user_id = _user_id(subscription)
        if user_id is None:
            logger.warning(
                "Subscription deletion without user_id",
                subscription_id=_field(subscription, "id"),
            )
            return "skipped"
        await self._repository.mark_canceled(
            user_id,
            free_limit=self._settings.free_recipe_limit,
            canceled_at=datetime.now(UTC),
        )
        await self._repository.record_event(
            user_id,
            "cancelled",
            {"stripe_subscription_id": _field(subscription, "id")},
        )
        return "processed"

    async def _payment_succeeded(self, invoice: dict[str, Any]) -> str:
        subscription_id = _invoice_subscription_id(invoice)
        if not subscription_id:
            return "ignored"
        subscription = await self._retrieve(subscription_id)
        user_id = _user_id(subscription)
        if user_id is None:
            logger.warning(
                "Invoice subscription without user_id", subscription_id=subscription_id
            )
            return "skipped"
        await self._reconcile(user_id, subscription)
        return "processed"

    async def _payment_failed(self, invoice: dict[str, Any]) -> str:
        subscription_id = _invoice_subscription_id(invoice)
        if not subscription_id:
            return "ignored"
        subscription = await self._retrieve(subscription_id)
        user_id = _user_id(subscription)
        if user_id is None:
            logger.warning(
                "Invoice subscription without user_id", subscription_id=subscription_id
            )
            return "skipped"
        await self._repository.set_status(user_id, "past_due")
        logger.warning("Subscription payment failed", user_id=str(user_id))
        return "processed"
