"""Subscription billing endpoints.

Checkout and the customer portal are hosted by Stripe; these routes only
create sessions and report the locally reconciled subscription state.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from recipe_keeper.api.dependencies import (
    get_billing_client,
    get_subscription_repository,
)
from recipe_keeper.auth.dependencies import CurrentUser, get_current_user
from recipe_keeper.core.config import Settings, get_settings
from recipe_keeper.database.repositories.subscriptions import (
    SubscriptionData,
    SubscriptionRepository,
)
from recipe_keeper.observability.logging import get_logger
from recipe_keeper.schemas.billing import (
    CheckoutRequest,
    CheckoutResponse,
    PortalResponse,
    SubscriptionActionResponse,
    SubscriptionResponse,
)
from recipe_keeper.services.billing import (
    BillingClient,
    BillingProviderError,
    subscription_stats,
)


logger = get_logger(__name__)

router = APIRouter(prefix="/billing", tags=["Billing"])


def _bad_request(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"error": "BAD_REQUEST", "message": message},
    )


def _provider_error(e: BillingProviderError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail={"error": "BILLING_PROVIDER_ERROR", "message": str(e)},
    )


async def _require_subscription(
    subscriptions: SubscriptionRepository, user: CurrentUser
) -> SubscriptionData:
    subscription = await subscriptions.get_for_user(user.id)
    if subscription is None or not subscription.stripe_subscription_id:
        raise _bad_request("No active subscription found")
    return subscription


@router.get(
    "/subscription",
    response_model=SubscriptionResponse,
    summary="Get your subscription",
    description="Users without a subscription row are reported on the free plan.",
)
async def get_subscription(
    user: Annotated[CurrentUser, Depends(get_current_user)],
    subscriptions: Annotated[
        SubscriptionRepository, Depends(get_subscription_repository)
    ],
    settings: Annotated[Settings, Depends(get_settings)],
) -> SubscriptionResponse:
    subscription = await subscriptions.get_for_user(user.id)
    stats = subscription_stats(
        subscription, free_limit=settings.billing.free_recipe_limit
    )
    return SubscriptionResponse(**asdict(stats))


@router.post(
    "/checkout",
    response_model=CheckoutResponse,
    summary="Start a Checkout Session",
    responses={
        400: {"description": "Unknown price or already subscribed"},
        502: {"description": "Stripe request failed"},
        503: {"description": "Billing is not configured"},
    },
)
async def create_checkout(
    body: CheckoutRequest,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    billing: Annotated[BillingClient, Depends(get_billing_client)],
    subscriptions: Annotated[
        SubscriptionRepository, Depends(get_subscription_repository)
    ],
    settings: Annotated[Settings, Depends(get_settings)],
) -> CheckoutResponse:
    if body.price_id not in billing.valid_price_ids:
        raise _bad_request("Invalid price ID")

    subscription = await subscriptions.get_for_user(user.id)
    if subscription is not None and subscription.status == "active":
        raise _bad_request("You already have an active subscription")

    app_url = settings.app.public_url.rstrip("/")
    try:
        customer_id = await billing.get_or_create_customer(
            str(user.id),
            user.email,
            subscription.stripe_customer_id if subscription else None,
        )
        await subscriptions.save_customer_id(user.id, customer_id)
        session_id, url = await billing.create_checkout_session(
            customer_id=customer_id,
            price_id=body.price_id,
            user_id=str(user.id),
            success_url=f"{app_url}/billing?success=true",
            cancel_url=f"{app_url}/billing?canceled=true",
            referral_code=body.referral_code,
        )
    except BillingProviderError as e:
        raise _provider_error(e) from None

    logger.info("Checkout session created", session_id=session_id)
    return CheckoutResponse(session_id=session_id, url=url)


@router.post(
    "/portal",
    response_model=PortalResponse,
    summary="Open the billing portal",
    responses={400: {"description": "No billing account yet"}},
)
async def create_portal(
    user: Annotated[CurrentUser, Depends(get_current_user)],
    billing: Annotated[BillingClient, Depends(get_billing_client)],
    subscriptions: Annotated[
        SubscriptionRepository, Depends(get_subscription_repository)
    ],
    settings: Annotated[Settings, Depends(get_settings)],
) -> PortalResponse:
    subscription = await subscriptions.get_for_user(user.id)
    if subscription is None or not subscription.stripe_customer_id:
        raise _bad_request("No billing account found")

    try:
        url = await billing.create_portal_session(
            subscription.stripe_customer_id,
            f"{settings.app.public_url.rstrip('/')}/billing",
        )
    except BillingProviderError as e:
        raise _provider_error(e) from None
    return PortalResponse(url=url)


@router.post(
    "/cancel",
    response_model=SubscriptionActionResponse,
    summary="Cancel at the end of the billing period",
)
async def cancel_subscription(
    user: Annotated[CurrentUser, Depends(get_current_user)],
    billing: Annotated[BillingClient, Depends(get_billing_client)],
    subscriptions: Annotated[
        SubscriptionRepository, Depends(get_subscription_repository)
    ],
) -> SubscriptionActionResponse:
    subscription = await _require_subscription(subscriptions, user)
    try:
        await billing.set_cancel_at_period_end(
            subscription.stripe_subscription_id, cancel=True
        )
    except BillingProviderError as e:
        raise _provider_error(e) from None
    logger.info("Subscription set to cancel at period end")
    return SubscriptionActionResponse(cancel_at_period_end=True)


@router.post(
    "/reactivate",
    response_model=SubscriptionActionResponse,
    summary="Undo a pending cancellation",
)
async def reactivate_subscription(
    user: Annotated[CurrentUser, Depends(get_current_user)],
    billing: Annotated[BillingClient, Depends(get_billing_client)],
    subscriptions: Annotated[
        SubscriptionRepository, Depends(get_subscription_repository)
    ],
) -> SubscriptionActionResponse:
    subscription = await _require_subscription(subscriptions, user)
    try:
        await billing.set_cancel_at_period_end(
            subscription.stripe_subscription_id, cancel=False
        )
    except BillingProviderError as e:
        raise _provider_error(e) from None
    logger.info("Subscription reactivated")
    return SubscriptionActionResponse(cancel_at_period_end=False)
