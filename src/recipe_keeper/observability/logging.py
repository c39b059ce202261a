"""Loguru-based logging.

JSON lines in production, colourised text in development. Request-scoped
fields such as ``request_id`` and ``user_id`` are kept in a ContextVar and
merged into every record emitted while handling that request.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from typing import TYPE_CHECKING

import orjson
from loguru import logger


if TYPE_CHECKING:
    from typing import Any


_log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})

# Third-party loggers that are only interesting when something goes wrong.
_NOISY_LOGGERS = (
    "uvicorn",
    "uvicorn.access",
    "uvicorn.error",
    "httpx",
    "httpcore",
    "asyncio",
    "asyncpg",
    "stripe",
)


class InterceptHandler(logging.Handler):
    """Forward standard library log records into Loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Walk past logging's own frames so Loguru reports the real caller.
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def _exception_fields(record: dict[str, Any]) -> dict[str, Any] | None:
    exc = record["exception"]
    if not exc:
        return None
    return {
        "type": exc.type.__name__ if exc.type else None,
        "value": str(exc.value) if exc.value else None,
    }


def _json_sink(message: Any) -> None:
    """Write one JSON document per record to stdout."""
    record = message.record
    payload: dict[str, Any] = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "message": record["message"],
        "logger": record["extra"].get("name", record["name"]),
        "function": record["function"],
        "line": record["line"],
        **{k: v for k, v in record["extra"].items() if k != "name"},
        **_log_context.get(),
    }
    exception = _exception_fields(record)
    if exception:
        payload["exception"] = exception
    sys.stdout.write(orjson.dumps(payload, default=str).decode() + "\n")
    sys.stdout.flush()


def _dev_format(record: dict[str, Any]) -> str:
    context = _log_context.get()
    context_str = ""
    if context:
        context_str = " | " + " ".join(f"{k}={v}" for k, v in context.items())
    fmt = (
        "<green>{time:HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{extra[name]}</cyan>:<cyan>{line}</cyan>"
        f"{context_str.replace('{', '{{').replace('}', '}}')} - "
        "<level>{message}</level>\n"
    )
    if record["exception"]:
        fmt += "{exception}\n"
    return fmt


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    *,
    is_development: bool = False,
) -> None:
    """Configure Loguru sinks and route stdlib logging through them.

    Args:
        log_level: Minimum level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: ``json`` or ``text``.
        is_development: Force human-readable output regardless of format.
    """
    logger.remove()
    logger.configure(extra={"name": "recipe_keeper"})

    if log_format == "json" and not is_development:
        logger.add(_json_sink, level=log_level.upper(), backtrace=False, diagnose=False)
    else:
        logger.add(
            sys.stdout,
            format=_dev_format,
            level=log_level.upper(),
            colorize=True,
            backtrace=True,
            diagnose=True,
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> Any:
    """Return a Loguru logger bound to ``name`` (usually ``__name__``)."""
    return logger.bind(name=name)


def bind_context(**kwargs: Any) -> None:
    """Attach fields to every log record in the current async context.

    Example:
        bind_context(request_id="abc-123", user_id="user-456")
    """
    _log_context.set({**_log_context.get(), **kwargs})


def clear_context() -> None:
    """Reset the logging context, typically at the start of a request."""
    _log_context.set({})


def unbind_context(*keys: str) -> None:
    """Remove fields from the logging context."""
    current = _log_context.get().copy()
    for key in keys:
        current.pop(key, None)
    _log_context.set(current)


def get_context() -> dict[str, Any]:
    """Return a copy of the current logging context."""
    return _log_context.get().copy()


__all__ = [
    "bind_context",
    "clear_context",
    "get_context",
    "get_logger",
    "logger",
    "setup_logging",
    "unbind_context",
]
