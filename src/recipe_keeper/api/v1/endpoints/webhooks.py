"""Stripe webhook receiver."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import ORJSONResponse

from recipe_keeper.api.dependencies import (
    get_optional_billing_client,
    get_subscription_repository,
)
from recipe_keeper.cache.rate_limit import limiter
from recipe_keeper.core.config import Settings, get_settings
from recipe_keeper.database.repositories.subscriptions import (
    SubscriptionRepository,  # noqa: TC001
)
from recipe_keeper.observability.error_tracking import capture_exception
from recipe_keeper.observability.logging import get_logger
from recipe_keeper.schemas.billing import WebhookAckResponse
from recipe_keeper.services.billing import (
    BillingClient,  # noqa: TC001
    WebhookReconciler,
    WebhookSignatureError,
    construct_event,
)


logger = get_logger(__name__)

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


def _bad_signature(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"error": "INVALID_WEBHOOK", "message": message},
    )


@router.post(
    "/stripe",
    response_model=WebhookAckResponse,
    summary="Receive Stripe events",
    description="Verifies the Stripe-Signature header, then reconciles the event.",
    responses={
        400: {"description": "Missing or invalid signature"},
        500: {"description": "Webhook secret missing or handler failed"},
    },
)
@limiter.exempt
async def stripe_webhook(
    request: Request,
    billing: Annotated[BillingClient | None, Depends(get_optional_billing_client)],
    subscriptions: Annotated[
        SubscriptionRepository, Depends(get_subscription_repository)
    ],
    settings: Annotated[Settings, Depends(get_settings)],
) -> WebhookAckResponse | ORJSONResponse:
    payload = await request.body()
    signature = request.headers.get("stripe-signature")
    if not signature:
        raise _bad_signature("No signature found")

    if not settings.STRIPE_WEBHOOK_SECRET:
        logger.error("STRIPE_WEBHOOK_SECRET is not configured")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "WEBHOOK_NOT_CONFIGURED",
                "message": "Webhook secret not configured",
            },
        )

    try:
        event = construct_event(payload, signature, settings.STRIPE_WEBHOOK_SECRET)
    except WebhookSignatureError as e:
        logger.warning("Webhook signature verification failed", error=str(e))
        raise _bad_signature("Invalid signature") from None

    reconciler = WebhookReconciler(billing, subscriptions, settings.billing)
    try:
        await reconciler.handle(event)
    except Exception as e:
        logger.exception("Webhook handler failed", event_type=event.get("type"))
        capture_exception(e, event_type=event.get("type"))
        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Webhook handler failed"},
        )

    return WebhookAckResponse()
