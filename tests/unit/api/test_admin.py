"""Endpoint tests for the admin API.

Tests cover:
- Admin and permission checks
- Dashboard metrics and user listing
- User detail
- Promo code management
- CSV exports
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import uuid4

import pytest

from recipe_keeper.database.exceptions import DuplicateRecordError
from recipe_keeper.database.repositories.admin import (
    AdminUserData,
    AdminUserRow,
    DashboardCounts,
)
from recipe_keeper.database.repositories.promo_codes import PromoCodeData
from tests.conftest import OTHER_USER_ID
from tests.factories.records import ProfileDataFactory


if TYPE_CHECKING:
    from types import SimpleNamespace

    from httpx import AsyncClient


pytestmark = pytest.mark.unit

ADMIN = "/api/v1/admin"


@pytest.fixture
def super_admin(repos: SimpleNamespace) -> None:
    repos.admins.get_admin_user.return_value = AdminUserData(
        email="cook@example.com", role="super_admin"
    )


def _promo(**overrides: object) -> PromoCodeData:
    fields: dict[str, object] = {
        "id": uuid4(),
        "code": "FAMILY2025",
        "name": "Family & Friends",
        "type": "family",
        "max_recipes": 100,
        "created_by": "cook@example.com",
    }
    fields.update(overrides)
    return PromoCodeData(**fields)


class TestAdminAccess:
    """Tests for admin gating."""

    async def test_non_admin(self, client: AsyncClient, repos: SimpleNamespace) -> None:
        repos.admins.get_admin_user.return_value = None

        response = await client.get(f"{ADMIN}/metrics")

        assert response.status_code == 403
        assert response.json()["error"] == "ADMIN_REQUIRED"

    async def test_support_cannot_manage_promos(
        self, client: AsyncClient, repos: SimpleNamespace
    ) -> None:
        repos.admins.get_admin_user.return_value = AdminUserData(
            email="cook@example.com", role="support", permissions={"view_users": True}
        )

        listed = await client.get(f"{ADMIN}/users")
        promos = await client.get(f"{ADMIN}/promo-codes")

        assert listed.status_code == 200
        assert promos.status_code == 403
        assert promos.json()["error"] == "PERMISSION_DENIED"


@pytest.mark.usefixtures("super_admin")
class TestDashboard:
    """Tests for metrics and users."""

    async def test_metrics(self, client: AsyncClient, repos: SimpleNamespace) -> None:
        repos.admins.get_dashboard_counts.return_value = DashboardCounts(
            total_users=10, active_monthly=2, active_annual=1, free_subscriptions=7
        )

        response = await client.get(f"{ADMIN}/metrics")

        body = response.json()
        assert response.status_code == 200
        assert body["users"]["total"] == 10
        assert body["users"]["byTier"]["monthly"] == 2

    async def test_list_users_defaults(
        self, client: AsyncClient, repos: SimpleNamespace
    ) -> None:
        """Should report users without a subscription row as free."""
        repos.admins.list_users.return_value = [
            AdminUserRow(id=OTHER_USER_ID, email="nephew@example.com")
        ]

        response = await client.get(f"{ADMIN}/users", params={"tier": "free"})

        user = response.json()["users"][0]
        assert user["planType"] == "free"
        assert user["recipeLimit"] == 25
        repos.admins.list_users.assert_awaited_once_with(
            search=None, tier="free", limit=100
        )

    async def test_user_detail(
        self, client: AsyncClient, repos: SimpleNamespace
    ) -> None:
        repos.profiles.get.return_value = ProfileDataFactory.build(id=OTHER_USER_ID)
        repos.subscriptions.get_for_user.return_value = None
        repos.recipes.list_recent_for_user.return_value = []
        repos.promo_codes.list_for_user.return_value = []
        repos.subscriptions.list_events.return_value = []

        response = await client.get(f"{ADMIN}/users/{OTHER_USER_ID}")

        body = response.json()
        assert body["profile"]["email"] == "nephew@example.com"
        assert body["subscription"]["planType"] == "free"

    async def test_user_detail_missing(
        self, client: AsyncClient, repos: SimpleNamespace
    ) -> None:
        repos.profiles.get.return_value = None

        response = await client.get(f"{ADMIN}/users/{OTHER_USER_ID}")

        assert response.status_code == 404


@pytest.mark.usefixtures("super_admin")
class TestPromoCodeAdmin:
    """Tests for /admin/promo-codes."""

    async def test_create(self, client: AsyncClient, repos: SimpleNamespace) -> None:
        repos.promo_codes.create.return_value = _promo()

        response = await client.post(
            f"{ADMIN}/promo-codes",
            json={
                "code": "FAMILY2025",
                "name": "Family & Friends",
                "type": "family",
                "maxRecipes": 100,
            },
        )

        assert response.status_code == 201
        fields = repos.promo_codes.create.call_args.args[0]
        assert fields["max_recipes"] == 100
        assert repos.promo_codes.create.call_args.kwargs["created_by"] == "cook@example.com"

    async def test_create_duplicate(
        self, client: AsyncClient, repos: SimpleNamespace
    ) -> None:
        repos.promo_codes.create.side_effect = DuplicateRecordError("promo_codes")

        response = await client.post(
            f"{ADMIN}/promo-codes",
            json={"code": "FAMILY2025", "name": "Family", "type": "family"},
        )

        assert response.status_code == 409
        assert response.json()["error"] == "PROMO_CODE_EXISTS"

    @pytest.mark.parametrize("code", ["ab", "has space", "semi;colon"])
    async def test_code_format(self, client: AsyncClient, code: str) -> None:
        response = await client.post(
            f"{ADMIN}/promo-codes",
            json={"code": code, "name": "Family", "type": "family"},
        )

        assert response.status_code == 422

    async def test_update(self, client: AsyncClient, repos: SimpleNamespace) -> None:
        promo_id = uuid4()
        repos.promo_codes.update.return_value = True

        response = await client.patch(
            f"{ADMIN}/promo-codes/{promo_id}", json={"isActive": False}
        )

        assert response.status_code == 204
        repos.promo_codes.update.assert_awaited_once_with(promo_id, {"is_active": False})

    async def test_delete_missing(
        self, client: AsyncClient, repos: SimpleNamespace
    ) -> None:
        repos.promo_codes.delete.return_value = False

        response = await client.delete(f"{ADMIN}/promo-codes/{uuid4()}")

        assert response.status_code == 404
        assert response.json()["error"] == "PROMO_CODE_NOT_FOUND"


@pytest.mark.usefixtures("super_admin")
class TestExports:
    """Tests for CSV exports."""

    async def test_users_csv(self, client: AsyncClient, repos: SimpleNamespace) -> None:
        repos.admins.list_users.return_value = [
            AdminUserRow(
                id=OTHER_USER_ID,
                email="nephew@example.com",
                full_name="Nephew",
                created_at=datetime(2025, 1, 2, tzinfo=UTC),
            )
        ]

        response = await client.get(f"{ADMIN}/export/users.csv")

        assert response.headers["content-type"].startswith("text/csv")
        assert "attachment" in response.headers["content-disposition"]
        lines = response.text.splitlines()
        assert lines[0] == "Email,Name,Status,Plan Type,Recipes,Limit,Joined"
        assert lines[1] == "nephew@example.com,Nephew,free,free,0,25,2025-01-02"

    async def test_metrics_csv(self, client: AsyncClient, repos: SimpleNamespace) -> None:
        repos.admins.get_dashboard_counts.return_value = DashboardCounts(total_users=3)

        response = await client.get(f"{ADMIN}/export/metrics.csv")

        lines = response.text.splitlines()
        assert lines[0] == "Metric,Value"
        assert "Total Users,3" in lines
