"""Transactional email via Resend."""

from recipe_keeper.services.email.client import EmailClient, EmailResult
from recipe_keeper.services.email.exceptions import (
    EmailDeliveryError,
    EmailError,
    EmailUnavailableError,
)


__all__ = [
    "EmailClient",
    "EmailDeliveryError",
    "EmailError",
    "EmailResult",
    "EmailUnavailableError",
]
