"""Configuration module with YAML and environment variable support."""

from .settings import DUMMY_RESEND_KEY, AuthMode, Settings, get_settings, settings


__all__ = [
    "DUMMY_RESEND_KEY",
    "AuthMode",
    "Settings",
    "get_settings",
    "settings",
]
