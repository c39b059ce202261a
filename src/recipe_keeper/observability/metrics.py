"""Prometheus metrics instrumentation."""

from __future__ import annotations

from typing import TYPE_CHECKING

from prometheus_client import Counter
from prometheus_fastapi_instrumentator import Instrumentator, metrics

from recipe_keeper.core.config import get_settings
from recipe_keeper.observability.logging import get_logger


if TYPE_CHECKING:
    from fastapi import FastAPI

logger = get_logger(__name__)

METRIC_NAMESPACE = "recipe_keeper"

BILLING_WEBHOOK_EVENTS = Counter(
    "billing_webhook_events_total",
    "Billing provider webhook events by type and outcome.",
    ["event_type", "outcome"],
    namespace=METRIC_NAMESPACE,
)

RATE_LIMIT_REJECTIONS = Counter(
    "rate_limit_rejections_total",
    "Requests rejected by a named rate limit.",
    ["action"],
    namespace=METRIC_NAMESPACE,
)


def setup_metrics(app: FastAPI) -> Instrumentator:
    """Instrument HTTP requests and expose ``{prefix}/metrics``.

    Collects request counts, latency histograms and in-flight gauges.
    Health checks and docs are excluded.

    Args:
        app: The FastAPI application instance.

    Returns:
        The configured Instrumentator.
    """
    settings = get_settings()

    if not settings.observability.metrics.enabled:
        logger.info("Metrics collection disabled")
        return Instrumentator()

    prefix = settings.api.v1_prefix
    instrumentator = Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        should_instrument_requests_inprogress=True,
        excluded_handlers=[
            f"{prefix}/health",
            f"{prefix}/ready",
            f"{prefix}/metrics",
            f"{prefix}/openapi.json",
            f"{prefix}/docs",
        ],
        inprogress_name="http_requests_inprogress",
        inprogress_labels=True,
    )
    instrumentator.add(
        metrics.default(
            metric_namespace=METRIC_NAMESPACE,
            metric_subsystem="http",
        )
    )
    instrumentator.instrument(app)

    endpoint = f"{prefix}/metrics"
    instrumentator.expose(app, endpoint=endpoint, include_in_schema=False)
    logger.info("Prometheus metrics configured", endpoint=endpoint)
    return instrumentator


__all__ = ["BILLING_WEBHOOK_EVENTS", "RATE_LIMIT_REJECTIONS", "setup_metrics"]
