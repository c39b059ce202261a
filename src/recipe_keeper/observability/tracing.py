"""OpenTelemetry tracing.

Spans cover incoming requests, Redis calls and outgoing httpx calls to
Stripe, Resend, fal.ai and Gemini. Traces go to an OTLP collector when an
endpoint is configured and to the console in development.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.instrumentation.redis import RedisInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

from recipe_keeper.core.config import get_settings
from recipe_keeper.observability.logging import get_logger


if TYPE_CHECKING:
    from fastapi import FastAPI

    from recipe_keeper.core.config import Settings

logger = get_logger(__name__)


def setup_tracing(app: FastAPI, settings: Settings | None = None) -> bool:
    """Configure the tracer provider and instrument the app.

    Args:
        app: The FastAPI application instance.
        settings: Optional settings override.

    Returns:
        True when tracing was enabled.
    """
    if settings is None:
        settings = get_settings()

    config = settings.observability.tracing
    if not config.enabled:
        logger.info("Tracing disabled")
        return False

    resource = Resource.create(
        {
            "service.name": settings.app.name.lower().replace(" ", "-"),
            "service.version": settings.app.version,
            "deployment.environment": settings.APP_ENV,
        }
    )
    provider = TracerProvider(resource=resource)

    if config.otlp_endpoint:
        exporter = OTLPSpanExporter(endpoint=config.otlp_endpoint, insecure=config.insecure)
        provider.add_span_processor(BatchSpanProcessor(exporter))
        logger.info("OTLP trace exporter configured", endpoint=config.otlp_endpoint)
    elif settings.is_development:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
        logger.info("Console trace exporter configured")

    trace.set_tracer_provider(provider)

    FastAPIInstrumentor.instrument_app(
        app,
        excluded_urls="health,ready,metrics,docs,openapi.json,webhooks/stripe",
    )
    RedisInstrumentor().instrument()
    HTTPXClientInstrumentor().instrument()
    logger.info("OpenTelemetry tracing configured")
    return True


def shutdown_tracing() -> None:
    """Flush pending spans."""
    provider = trace.get_tracer_provider()
    if isinstance(provider, TracerProvider):
        provider.shutdown()
        logger.info("Tracing shutdown complete")


def add_span_attributes(**attributes: str | int | float | bool) -> None:
    """Annotate the current span, if one is recording."""
    span = trace.get_current_span()
    if span.is_recording():
        for key, value in attributes.items():
            span.set_attribute(key, value)


__all__ = [
    "add_span_attributes",
    "setup_tracing",
    "shutdown_tracing",
]
