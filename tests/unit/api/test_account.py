"""Endpoint tests for profile, uploads, ingredient tools and health checks.

Tests cover:
- Profile read and rename
- Image upload validation and storage error mapping
- Ownership checks on image deletion
- Ingredient scaling and parsing
- Liveness, readiness and the service root
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import AsyncMock, patch

import pytest

from recipe_keeper.services.storage import StorageUnavailableError
from recipe_keeper.services.storage.exceptions import StorageResponseError
from tests.conftest import OTHER_USER_ID, USER_ID
from tests.factories.records import ProfileDataFactory


if TYPE_CHECKING:
    from types import SimpleNamespace

    from fastapi import FastAPI
    from httpx import AsyncClient


pytestmark = pytest.mark.unit

UPLOADS = "/api/v1/uploads/images"


@pytest.fixture
def storage(app: FastAPI) -> AsyncMock:
    client = AsyncMock()
    client.upload.return_value = "https://storage.example.com/recipe-images/pie.jpg"
    app.state.storage_client = client
    return client


class TestProfile:
    """Tests for /profile."""

    async def test_get(self, client: AsyncClient, repos: SimpleNamespace) -> None:
        repos.profiles.get.return_value = ProfileDataFactory.build(id=USER_ID)

        response = await client.get("/api/v1/profile")

        assert response.status_code == 200
        assert response.json()["id"] == str(USER_ID)
        repos.profiles.get.assert_awaited_once_with(USER_ID)

    async def test_get_missing(self, client: AsyncClient, repos: SimpleNamespace) -> None:
        repos.profiles.get.return_value = None

        response = await client.get("/api/v1/profile")

        assert response.status_code == 404
        assert response.json()["error"] == "PROFILE_NOT_FOUND"

    async def test_rename_strips(
        self, client: AsyncClient, repos: SimpleNamespace
    ) -> None:
        repos.profiles.update_full_name.return_value = ProfileDataFactory.build(
            id=USER_ID, full_name="Rose"
        )

        response = await client.patch("/api/v1/profile", json={"fullName": "  Rose "})

        assert response.json()["fullName"] == "Rose"
        repos.profiles.update_full_name.assert_awaited_once_with(USER_ID, "Rose")

    async def test_rename_requires_name(self, client: AsyncClient) -> None:
        response = await client.patch("/api/v1/profile", json={"fullName": ""})

        assert response.status_code == 422


class TestUploadImage:
    """Tests for POST /uploads/images."""

    async def test_upload(self, client: AsyncClient, storage: AsyncMock) -> None:
        response = await client.post(
            UPLOADS, files={"file": ("pie.png", b"\x89PNG...", "image/png")}
        )

        body = response.json()
        assert response.status_code == 201
        assert body["url"].startswith("https://storage.example.com/")
        assert body["path"].startswith(f"{USER_ID}/")
        assert body["path"].endswith(".png")
        storage.upload.assert_awaited_once_with(body["path"], b"\x89PNG...", "image/png")

    async def test_rejects_type(self, client: AsyncClient, storage: AsyncMock) -> None:
        response = await client.post(
            UPLOADS, files={"file": ("recipe.pdf", b"%PDF", "application/pdf")}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_FILE_TYPE"
        storage.upload.assert_not_awaited()

    async def test_rejects_large_file(
        self, client: AsyncClient, storage: AsyncMock
    ) -> None:
        content = b"0" * (5 * 1024 * 1024 + 1)

        response = await client.post(
            UPLOADS, files={"file": ("huge.jpg", content, "image/jpeg")}
        )

        assert response.status_code == 413
        assert response.json()["error"] == "FILE_TOO_LARGE"

    @pytest.mark.parametrize(
        ("error", "status_code"),
        [
            (StorageUnavailableError("timeout"), 503),
            (StorageResponseError(400, "bucket not found"), 502),
        ],
    )
    async def test_storage_errors(
        self,
        client: AsyncClient,
        storage: AsyncMock,
        error: Exception,
        status_code: int,
    ) -> None:
        storage.upload.side_effect = error

        response = await client.post(
            UPLOADS, files={"file": ("pie.jpg", b"jpeg", "image/jpeg")}
        )

        assert response.status_code == status_code

    async def test_not_configured(self, client: AsyncClient) -> None:
        response = await client.post(
            UPLOADS, files={"file": ("pie.jpg", b"jpeg", "image/jpeg")}
        )

        assert response.status_code == 503


class TestDeleteImage:
    """Tests for DELETE /uploads/images."""

    async def test_own_image(self, client: AsyncClient, storage: AsyncMock) -> None:
        path = f"{USER_ID}/1700000000000.jpg"

        response = await client.delete(UPLOADS, params={"path": path})

        assert response.status_code == 204
        storage.delete.assert_awaited_once_with(path)

    @pytest.mark.parametrize(
        "path",
        [
            f"{OTHER_USER_ID}/1700000000000.jpg",
            f"{USER_ID}/../{OTHER_USER_ID}/1700000000000.jpg",
        ],
    )
    async def test_forbidden(
        self, client: AsyncClient, storage: AsyncMock, path: str
    ) -> None:
        response = await client.delete(UPLOADS, params={"path": path})

        assert response.status_code == 403
        storage.delete.assert_not_awaited()


class TestIngredients:
    """Tests for /ingredients."""

    async def test_scale_by_servings(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/v1/ingredients/scale",
            json={
                "ingredients": "1 1/2 cups flour\n3 eggs\nsalt to taste",
                "originalServings": 4,
                "newServings": 8,
            },
        )

        body = response.json()
        assert body["multiplier"] == 2.0
        assert body["ingredients"] == "3 cups flour\n6 eggs\nsalt to taste"
        assert body["lines"][0]["unit"] == "cups"
        assert body["lines"][0]["quantityValue"] == 3.0

    async def test_scale_by_multiplier(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/v1/ingredients/scale",
            json={"ingredients": "3 eggs", "multiplier": 0.5},
        )

        assert response.json()["ingredients"] == "1 1/2 eggs"

    async def test_scale_requires_factor(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/v1/ingredients/scale",
            json={"ingredients": "3 eggs", "originalServings": 4},
        )

        assert response.status_code == 422

    @pytest.mark.parametrize(
        "factors",
        [
            b'"originalServings": 1, "newServings": Infinity',
            b'"originalServings": Infinity, "newServings": 2',
            b'"multiplier": Infinity',
        ],
    )
    async def test_scale_rejects_infinite_factor(
        self, client: AsyncClient, factors: bytes
    ) -> None:
        """Should answer 422, not 500, when a factor decodes to infinity."""
        response = await client.post(
            "/api/v1/ingredients/scale",
            content=b'{"ingredients": "1 cup flour", ' + factors + b"}",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 422

    async def test_parse(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/v1/ingredients/parse", json={"line": "2 1/4 tsp baking soda"}
        )

        assert response.json() == {
            "quantity": "2 1/4",
            "quantityValue": 2.25,
            "unit": "tsp",
            "ingredient": "baking soda",
            "original": "2 1/4 tsp baking soda",
        }


class TestHealth:
    """Tests for the health checks and service root."""

    async def test_health(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/health")

        body = response.json()
        assert body["status"] == "healthy"
        assert body["environment"] == "test"

    @pytest.mark.parametrize(
        ("database", "redis", "status_code", "overall"),
        [
            ("healthy", "healthy", 200, "ready"),
            ("healthy", "unhealthy", 200, "degraded"),
            ("unhealthy", "healthy", 503, "not_ready"),
        ],
    )
    async def test_ready(
        self,
        client: AsyncClient,
        database: str,
        redis: str,
        status_code: int,
        overall: str,
    ) -> None:
        with (
            patch(
                "recipe_keeper.api.v1.endpoints.health.check_database_health",
                AsyncMock(return_value={"database": database}),
            ),
            patch(
                "recipe_keeper.api.v1.endpoints.health.check_redis_health",
                AsyncMock(return_value={"redis_cache": redis}),
            ),
        ):
            response = await client.get("/api/v1/ready")

        assert response.status_code == status_code
        assert response.json()["status"] == overall

    async def test_root(self, client: AsyncClient) -> None:
        response = await client.get("/")

        assert response.json()["status"] == "operational"
        assert response.json()["docs"] == "/api/v1/docs"
        assert response.json()["health"] == "/api/v1/health"
