"""Supabase Storage client for recipe images.

Talks to the Storage REST API with the service key. Objects live under
``{user_id}/`` in the configured bucket and are served from the public
object URL.
"""

from __future__ import annotations

import httpx
import orjson

from recipe_keeper.core.config import get_settings
from recipe_keeper.observability.logging import get_logger
from recipe_keeper.services.storage.exceptions import (
    StorageResponseError,
    StorageUnavailableError,
)


logger = get_logger(__name__)

EXTENSIONS: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
}


class StorageClient:
    """HTTP client for the Supabase Storage REST API."""

    def __init__(self) -> None:
        self._settings = get_settings()
        self._http_client: httpx.AsyncClient | None = None

    @property
    def bucket(self) -> str:
        return self._settings.storage.bucket

    @property
    def base_url(self) -> str:
        return self._settings.storage.url.rstrip("/")

    async def initialize(self) -> None:
        """Create the HTTP client.

        Raises:
            RuntimeError: If no service key is configured.
        """
        key = self._settings.STORAGE_SERVICE_KEY
        if not key:
            msg = "STORAGE_SERVICE_KEY is not configured"
            raise RuntimeError(msg)
        self._http_client = httpx.AsyncClient(
            base_url=f"{self.base_url}/storage/v1",
            timeout=httpx.Timeout(self._settings.storage.timeout),
            headers={"Authorization": f"Bearer {key}", "apikey": key},
        )
        logger.info("StorageClient initialized", bucket=self.bucket)

    async def shutdown(self) -> None:
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None
        logger.debug("StorageClient shutdown")

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{path}"

    def _client(self) -> httpx.AsyncClient:
        if not self._http_client:
            msg = "Client not initialized. Call initialize() first."
            raise RuntimeError(msg)
        return self._http_client

    async def _request(self, method: str, url: str, **kwargs: object) -> httpx.Response:
        try:
            response = await self._client().request(method, url, **kwargs)  # type: ignore[arg-type]
        except httpx.RequestError as e:
            logger.warning("Storage request failed", method=method, error=str(e))
            msg = f"Failed to connect to storage service: {e}"
            raise StorageUnavailableError(msg) from e

        if not response.is_success:
            logger.warning(
                "Storage service returned error",
                status_code=response.status_code,
                body=response.text[:200],
            )
            raise StorageResponseError(response.status_code, response.text)
        return response

    async def upload(self, path: str, content: bytes, content_type: str) -> str:
        """Store an object and return its public URL.

        Raises:
            StorageUnavailableError: If the service is unreachable.
            StorageResponseError: If the upload is rejected.
        """
        await self._request(
            "POST",
            f"/object/{self.bucket}/{path}",
            content=content,
            headers={
                "Content-Type": content_type,
                "Cache-Control": "3600",
                "x-upsert": "false",
            },
        )
        logger.info("Image uploaded", path=path, size=len(content))
        return self.public_url(path)

    async def delete(self, path: str) -> None:
        await self._request(
            "DELETE",
            f"/object/{self.bucket}",
            content=orjson.dumps({"prefixes": [path]}),
            headers={"Content-Type": "application/json"},
        )
        logger.info("Image deleted", path=path)
