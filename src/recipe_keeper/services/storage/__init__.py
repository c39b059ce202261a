"""Object storage for uploaded recipe images."""

from recipe_keeper.services.storage.client import EXTENSIONS, StorageClient
from recipe_keeper.services.storage.exceptions import (
    StorageError,
    StorageResponseError,
    StorageUnavailableError,
)


__all__ = [
    "EXTENSIONS",
    "StorageClient",
    "StorageError",
    "StorageResponseError",
    "StorageUnavailableError",
]
