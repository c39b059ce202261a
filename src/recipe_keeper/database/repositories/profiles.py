"""User profile repository.

Profiles mirror the auth provider's users; the provider owns the accounts,
this service only reads them and edits display fields.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from pydantic import BaseModel

from recipe_keeper.database.repositories.base import BaseRepository


if TYPE_CHECKING:
    from asyncpg import Record


class ProfileData(BaseModel):
    """A row from ``profiles``."""

    id: UUID
    email: str | None = None
    full_name: str | None = None
    created_at: datetime | None = None


class ProfileRepository(BaseRepository):
    """Data access for ``profiles``."""

    async def get(self, user_id: UUID) -> ProfileData | None:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT id, email, full_name, created_at FROM profiles WHERE id = $1",
                user_id,
            )
        return self._row_to_profile(row) if row else None

    async def find_by_email(self, email: str) -> ProfileData | None:
        """Case-insensitive lookup by email address."""
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                SELECT id, email, full_name, created_at FROM profiles
                WHERE lower(email) = lower($1)
                LIMIT 1
                """,
                email.strip(),
            )
        return self._row_to_profile(row) if row else None

    async def update_full_name(
        self, user_id: UUID, full_name: str
    ) -> ProfileData | None:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                UPDATE profiles SET full_name = $2, updated_at = NOW()
                WHERE id = $1
                RETURNING id, email, full_name, created_at
                """,
                user_id,
                full_name,
            )
        return self._row_to_profile(row) if row else None

    @staticmethod
    def _row_to_profile(row: Record) -> ProfileData:
        return ProfileData(**dict(row))
