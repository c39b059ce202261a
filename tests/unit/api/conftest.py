"""Fixtures for endpoint tests.

Routes run in a real application built by ``create_app``; repositories and
external clients are replaced with mocks through ``dependency_overrides``.
The lifespan is not run, so nothing connects to Postgres or Redis.
"""

from __future__ import annotations

from types import SimpleNamespace
from typing import TYPE_CHECKING
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from recipe_keeper.api import dependencies as deps
from recipe_keeper.auth.dependencies import get_admin_repository, get_current_user
from recipe_keeper.core.config import get_settings
from recipe_keeper.factory import create_app
from tests.fixtures.overrides import provide


if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from fastapi import FastAPI

    from recipe_keeper.auth.dependencies import CurrentUser
    from recipe_keeper.core.config import Settings


@pytest.fixture
def app(test_settings: Settings) -> FastAPI:
    application = create_app(test_settings)
    application.dependency_overrides[get_settings] = provide(test_settings)
    return application


@pytest.fixture
def repos(app: FastAPI) -> SimpleNamespace:
    """Mock repositories wired into the app."""
    mocks = SimpleNamespace(
        recipes=AsyncMock(),
        recipe_images=AsyncMock(),
        shares=AsyncMock(),
        cookbooks=AsyncMock(),
        invitations=AsyncMock(),
        profiles=AsyncMock(),
        subscriptions=AsyncMock(),
        promo_codes=AsyncMock(),
        ratings=AsyncMock(),
        comments=AsyncMock(),
        usage=AsyncMock(),
        nutrition=AsyncMock(),
        admins=AsyncMock(),
    )
    overrides = {
        deps.get_recipe_repository: mocks.recipes,
        deps.get_recipe_image_repository: mocks.recipe_images,
        deps.get_share_repository: mocks.shares,
        deps.get_cookbook_repository: mocks.cookbooks,
        deps.get_invitation_repository: mocks.invitations,
        deps.get_profile_repository: mocks.profiles,
        deps.get_subscription_repository: mocks.subscriptions,
        deps.get_promo_code_repository: mocks.promo_codes,
        deps.get_rating_repository: mocks.ratings,
        deps.get_comment_repository: mocks.comments,
        deps.get_usage_repository: mocks.usage,
        deps.get_nutrition_repository: mocks.nutrition,
        get_admin_repository: mocks.admins,
    }
    for dependency, mock in overrides.items():
        app.dependency_overrides[dependency] = provide(mock)
    return mocks


@pytest.fixture
async def client(
    app: FastAPI, repos: SimpleNamespace, user: CurrentUser
) -> AsyncGenerator[AsyncClient]:
    """Client authenticated as the ``user`` fixture."""
    app.dependency_overrides[get_current_user] = provide(user)
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()
