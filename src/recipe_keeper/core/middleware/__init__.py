"""Custom middleware components."""

from recipe_keeper.core.middleware.logging import LoggingMiddleware, get_client_ip
from recipe_keeper.core.middleware.request_id import RequestIDMiddleware


__all__ = [
    "LoggingMiddleware",
    "RequestIDMiddleware",
    "get_client_ip",
]
