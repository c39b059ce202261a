"""Shared test fixtures and configuration for the Family Recipe Keeper tests.

This module provides pytest fixtures that are used across multiple test
modules: callers, repository mocks and a mock connection pool.
"""

from __future__ import annotations

import os


# Must be set before any recipe_keeper import builds the settings singleton.
os.environ.setdefault("APP_ENV", "test")

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID

import pytest

from recipe_keeper.auth.dependencies import CurrentUser
from recipe_keeper.core.config import Settings


USER_ID = UUID("11111111-1111-4111-8111-111111111111")
OTHER_USER_ID = UUID("22222222-2222-4222-8222-222222222222")
RECIPE_ID = UUID("33333333-3333-4333-8333-333333333333")
BOOK_ID = UUID("44444444-4444-4444-8444-444444444444")

FIXED_NOW = datetime(2025, 3, 15, 12, 0, tzinfo=UTC)


@pytest.fixture
def user() -> CurrentUser:
    """The authenticated caller most tests act as."""
    return CurrentUser(id=USER_ID, email="cook@example.com", full_name="Grandma Rose")


@pytest.fixture
def other_user() -> CurrentUser:
    return CurrentUser(id=OTHER_USER_ID, email="nephew@example.com")


@pytest.fixture
def test_settings() -> Settings:
    """Settings with billing prices configured."""
    return Settings(
        APP_ENV="test",
        STRIPE_SECRET_KEY="sk_test_123",
        STRIPE_WEBHOOK_SECRET="whsec_test",
        billing={
            "monthly_price_id": "price_monthly",
            "annual_price_id": "price_annual",
        },
    )


@pytest.fixture
def mock_conn() -> AsyncMock:
    """A connection whose query methods are awaitable mocks."""
    conn = AsyncMock()
    conn.fetchval = AsyncMock(return_value=None)
    conn.fetchrow = AsyncMock(return_value=None)
    conn.fetch = AsyncMock(return_value=[])
    conn.execute = AsyncMock(return_value="UPDATE 1")
    return conn


@pytest.fixture
def mock_pool(mock_conn: AsyncMock) -> MagicMock:
    """A pool whose ``acquire()`` context manager yields ``mock_conn``."""
    pool = MagicMock()
    pool.acquire.return_value.__aenter__ = AsyncMock(return_value=mock_conn)
    pool.acquire.return_value.__aexit__ = AsyncMock(return_value=None)
    return pool
