"""Email delivery exceptions."""

from __future__ import annotations


class EmailError(Exception):
    """Base exception for email delivery errors."""


class EmailUnavailableError(EmailError):
    """Raised when the email provider cannot be reached."""


class EmailDeliveryError(EmailError):
    """Raised when the email provider rejects a message."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        super().__init__(message)
