"""Error tracking with Sentry.

Unexpected exceptions are forwarded to Sentry when ``SENTRY_DSN`` is set.
Without a DSN every helper here is a no-op, so callers never need to check
whether error tracking is configured.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from recipe_keeper.observability.logging import get_context, get_logger


if TYPE_CHECKING:
    from recipe_keeper.core.config import Settings

logger = get_logger(__name__)

_SCRUBBED_HEADERS = frozenset({"authorization", "cookie", "stripe-signature"})


def _scrub_event(event: dict[str, Any], _hint: dict[str, Any]) -> dict[str, Any]:
    """Drop cookies and credential headers before an event leaves the process."""
    request = event.get("request")
    if not request:
        return event
    headers = request.get("headers") or {}
    cleaned = {
        key: ("[Filtered]" if key.lower() in _SCRUBBED_HEADERS else value)
        for key, value in headers.items()
    }
    return {**event, "request": {**request, "cookies": None, "headers": cleaned}}


def setup_error_tracking(settings: Settings) -> bool:
    """Initialise the Sentry SDK.

    Args:
        settings: Application settings.

    Returns:
        True when Sentry was initialised.
    """
    config = settings.observability.error_tracking
    if not settings.SENTRY_DSN or not config.enabled:
        logger.info("Error tracking disabled")
        return False

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=config.environment or settings.APP_ENV,
        release=f"{settings.app.name}@{settings.app.version}",
        traces_sample_rate=config.traces_sample_rate,
        integrations=[
            StarletteIntegration(),
            FastApiIntegration(),
            LoggingIntegration(level=logging.WARNING, event_level=None),
        ],
        send_default_pii=False,
        before_send=_scrub_event,
    )
    logger.info("Error tracking initialized", environment=settings.APP_ENV)
    return True


def capture_exception(exc: BaseException, **context: Any) -> None:
    """Report an exception with the request log context attached as tags."""
    with sentry_sdk.new_scope() as scope:
        for key, value in {**get_context(), **context}.items():
            scope.set_tag(key, str(value))
        sentry_sdk.capture_exception(exc)


def capture_message(message: str, level: str = "warning", **context: Any) -> None:
    """Report a noteworthy event that is not an exception."""
    with sentry_sdk.new_scope() as scope:
        for key, value in {**get_context(), **context}.items():
            scope.set_extra(key, value)
        sentry_sdk.capture_message(message, level=level)


def shutdown_error_tracking() -> None:
    """Flush pending events before the process exits."""
    client = sentry_sdk.get_client()
    if client.is_active():
        client.flush(timeout=2.0)


__all__ = [
    "capture_exception",
    "capture_message",
    "setup_error_tracking",
    "shutdown_error_tracking",
]
