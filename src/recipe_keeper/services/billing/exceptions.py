"""Billing exceptions."""

from __future__ import annotations


class BillingError(Exception):
    """Base exception for billing provider errors."""


class BillingNotConfiguredError(BillingError):
    """Raised when billing is used without a Stripe secret key."""


class BillingProviderError(BillingError):
    """Raised when Stripe rejects or fails a request."""


class WebhookSignatureError(BillingError):
    """Raised when a webhook payload fails signature verification."""
