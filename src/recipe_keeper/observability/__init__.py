"""Observability components: logging, metrics, and error tracking."""

from recipe_keeper.observability.error_tracking import (
    capture_exception,
    capture_message,
    setup_error_tracking,
    shutdown_error_tracking,
)
from recipe_keeper.observability.logging import (
    bind_context,
    clear_context,
    get_context,
    get_logger,
    logger,
    setup_logging,
    unbind_context,
)
from recipe_keeper.observability.metrics import setup_metrics
from recipe_keeper.observability.tracing import (
    add_span_attributes,
    setup_tracing,
    shutdown_tracing,
)


__all__ = [
    "add_span_attributes",
    "bind_context",
    "capture_exception",
    "capture_message",
    "clear_context",
    "get_context",
    "get_logger",
    "logger",
    "setup_error_tracking",
    "setup_logging",
    "setup_metrics",
    "setup_tracing",
    "shutdown_error_tracking",
    "shutdown_tracing",
    "unbind_context",
]
