"""Stripe billing: checkout, portal and webhook reconciliation."""

from recipe_keeper.services.billing.client import BillingClient, verify_webhook
from recipe_keeper.services.billing.exceptions import (
    BillingError,
    BillingNotConfiguredError,
    BillingProviderError,
    WebhookSignatureError,
)
from recipe_keeper.services.billing.subscriptions import (
    SubscriptionStats,
    subscription_stats,
)
from recipe_keeper.services.billing.webhooks import (
    WebhookReconciler,
    build_subscription_update,
    construct_event,
    map_subscription_status,
    plan_from_price_id,
)


__all__ = [
    "BillingClient",
    "BillingError",
    "BillingNotConfiguredError",
    "BillingProviderError",
    "SubscriptionStats",
    "WebhookReconciler",
    "WebhookSignatureError",
    "build_subscription_update",
    "construct_event",
    "map_subscription_status",
    "plan_from_price_id",
    "subscription_stats",
    "verify_webhook",
]
