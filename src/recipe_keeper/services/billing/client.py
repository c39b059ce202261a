"""Stripe billing client.

Thin async wrapper over ``stripe.StripeClient`` (httpx transport) for the
handful of calls the service makes: customers, Checkout, the customer
portal, and subscription updates.
"""

from __future__ import annotations

from typing import Any

import stripe

from recipe_keeper.core.config import get_settings
from recipe_keeper.observability.logging import get_logger
from recipe_keeper.services.billing.exceptions import (
    BillingNotConfiguredError,
    BillingProviderError,
    WebhookSignatureError,
)


logger = get_logger(__name__)


class BillingClient:
    """Async Stripe client.

    Example:
        ```python
        billing = BillingClient()
        await billing.initialize()
        session = await billing.create_checkout_session(...)
        ```
    """

    def __init__(self) -> None:
        self._settings = get_settings()
        self._client: stripe.StripeClient | None = None

    async def initialize(self) -> None:
        """Create the Stripe client.

        Raises:
            BillingNotConfiguredError: If STRIPE_SECRET_KEY is not set.
        """
        if not self._settings.STRIPE_SECRET_KEY:
            msg = "STRIPE_SECRET_KEY is not configured"
            raise BillingNotConfiguredError(msg)
        self._client = stripe.StripeClient(
            self._settings.STRIPE_SECRET_KEY,
            http_client=stripe.HTTPXClient(timeout=self._settings.billing.timeout),
        )
        logger.info("BillingClient initialized")

    async def shutdown(self) -> None:
        self._client = None
        logger.debug("BillingClient shutdown")

    @property
    def api(self) -> stripe.StripeClient:
        if self._client is None:
            msg = "Client not initialized. Call initialize() first."
            raise RuntimeError(msg)
        return self._client

    @property
    def valid_price_ids(self) -> set[str]:
        prices = {self._settings.billing.monthly_price_id, self._settings.billing.annual_price_id}
        return {price for price in prices if price}

    # -------------------------------------------------------------------------
    # Customers and sessions
    # -------------------------------------------------------------------------

    async def get_or_create_customer(
        self,
        user_id: str,
        email: str | None,
        existing_customer_id: str | None = None,
    ) -> str:
        """Return a Stripe customer id for the user, creating one if needed.

        Raises:
            BillingProviderError: If Stripe fails.
        """
        try:
            if existing_customer_id:
                try:
                    customer = await self.api.customers.retrieve_async(
                        existing_customer_id
                    )
                except stripe.InvalidRequestError:
                    logger.warning("Stored Stripe customer not found, creating new")
                else:
                    if not getattr(customer, "deleted", False):
                        return existing_customer_id

            found = await self.api.customers.search_async(
                params={"query": f"metadata['user_id']:'{user_id}'", "limit": 1}
            )
            if found.data:
                return found.data[0].id

            params: dict[str, Any] = {"metadata": {"user_id": user_id}}
            if email:
                params["email"] = email
            customer = await self.api.customers.create_async(params=params)
        except stripe.StripeError as e:
            logger.warning("Stripe customer lookup failed", error=str(e))
            raise BillingProviderError(str(e)) from e

        logger.info("Stripe customer created", customer_id=customer.id)
        return customer.id

    async def create_checkout_session(
        self,
        *,
        customer_id: str,
        price_id: str,
        user_id: str,
        success_url: str,
        cancel_url: str,
        referral_code: str | None = None,
    ) -> tuple[str, str | None]:
        """Create a subscription-mode Checkout Session.

        Returns:
            The session id and its hosted URL.
        """
        params: dict[str, Any] = {
            "customer": customer_id,
            "mode": "subscription",
            "payment_method_types": ["card"],
            "line_items": [{"price": price_id, "quantity": 1}],
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": {"user_id": user_id},
            "subscription_data": {"metadata": {"user_id": user_id}},
        }
        if referral_code:
            params["discounts"] = [{"coupon": referral_code}]

        try:
            session = await self.api.checkout.sessions.create_async(params=params)
        except stripe.StripeError as e:
            logger.warning("Checkout session creation failed", error=str(e))
            raise BillingProviderError(str(e)) from e
        return session.id, session.url

    async def create_portal_session(self, customer_id: str, return_url: str) -> str:
        try:
            session = await self.api.billing_portal.sessions.create_async(
                params={"customer": customer_id, "return_url": return_url}
            )
        except stripe.StripeError as e:
            logger.warning("Billing portal session creation failed", error=str(e))
            raise BillingProviderError(str(e)) from e
        return session.url

    # -------------------------------------------------------------------------
    # Subscriptions
    # -------------------------------------------------------------------------

    async def retrieve_subscription(self, subscription_id: str) -> Any:
        try:
            return await self.api.subscriptions.retrieve_async(subscription_id)
        except stripe.StripeError as e:
            logger.warning(
                "Subscription lookup failed",
                subscription_id=subscription_id,
                error=str(e),
            )
            raise BillingProviderError(str(e)) from e

    async def set_cancel_at_period_end(
        self, subscription_id: str, *, cancel: bool
    ) -> Any:
        try:
            return await self.api.subscriptions.update_async(
                subscription_id, params={"cancel_at_period_end": cancel}
            )
        except stripe.StripeError as e:
            logger.warning(
                "Subscription update failed",
                subscription_id=subscription_id,
                error=str(e),
            )
            raise BillingProviderError(str(e)) from e


def verify_webhook(payload: bytes, signature: str, secret: str) -> None:
    """Check a webhook's ``Stripe-Signature`` header.

    Raises:
        WebhookSignatureError: If the signature does not match.
    """
    try:
        stripe.WebhookSignature.verify_header(payload.decode("utf-8"), signature, secret)
    except (stripe.SignatureVerificationError, UnicodeDecodeError) as e:
        raise WebhookSignatureError(str(e)) from e
