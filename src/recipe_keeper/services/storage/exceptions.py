"""Object storage client exceptions."""

from __future__ import annotations


class StorageError(Exception):
    """Base exception for object storage errors."""


class StorageUnavailableError(StorageError):
    """Raised when the storage service cannot be reached."""


class StorageResponseError(StorageError):
    """Raised when the storage service rejects a request."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        super().__init__(message)
