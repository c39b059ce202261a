"""Pending (email-keyed) invitation repository.

Invitations for people without an account are stored here until they sign
up. ``invitation_token`` and ``expires_at`` are generated by the database.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

import asyncpg
from pydantic import BaseModel, field_validator

from recipe_keeper.database.exceptions import DuplicateRecordError
from recipe_keeper.database.repositories.base import BaseRepository


if TYPE_CHECKING:
    from asyncpg import Record


class PendingInvitationData(BaseModel):
    """A row from ``pending_invitations`` with the cookbook name."""

    id: UUID
    email: str
    book_id: UUID
    invited_by: UUID | None = None
    role: str
    invitation_token: str
    expires_at: datetime | None = None
    accepted_at: datetime | None = None
    created_at: datetime | None = None
    book_name: str | None = None

    @field_validator("invitation_token", mode="before")
    @classmethod
    def _token_as_text(cls, value: object) -> str:
        return str(value)


class InvitationRepository(BaseRepository):
    """Data access for ``pending_invitations``."""

    async def create(
        self,
        email: str,
        book_id: UUID,
        invited_by: UUID,
        role: str,
    ) -> PendingInvitationData:
        """Store an invitation for an address that has no account yet.

        Raises:
            DuplicateRecordError: If this address was already invited to the book.
        """
        try:
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(
                    """
                    INSERT INTO pending_invitations (email, book_id, invited_by, role)
                    VALUES (lower($1), $2, $3, $4)
                    RETURNING *
                    """,
                    email.strip(),
                    book_id,
                    invited_by,
                    role,
                )
        except asyncpg.UniqueViolationError as e:
            raise DuplicateRecordError("pending_invitations", e.constraint_name) from e
        return self._row_to_invitation(row)

    async def get_by_token(self, token: str) -> PendingInvitationData | None:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                SELECT i.*, b.name AS book_name
                FROM pending_invitations i
                LEFT JOIN recipe_books b ON b.id = i.book_id
                WHERE i.invitation_token = $1
                """,
                token,
            )
        return self._row_to_invitation(row) if row else None

    async def list_open_for_email(self, email: str) -> list[PendingInvitationData]:
        """Unaccepted, unexpired invitations addressed to ``email``."""
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT i.*, b.name AS book_name
                FROM pending_invitations i
                LEFT JOIN recipe_books b ON b.id = i.book_id
                WHERE lower(i.email) = lower($1)
                  AND i.accepted_at IS NULL
                  AND (i.expires_at IS NULL OR i.expires_at > NOW())
                ORDER BY i.created_at ASC
                """,
                email.strip(),
            )
        return [self._row_to_invitation(row) for row in rows]

    async def mark_accepted(self, invitation_id: UUID) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute(
                "UPDATE pending_invitations SET accepted_at = NOW() WHERE id = $1",
                invitation_id,
            )

    @staticmethod
    def _row_to_invitation(row: Record) -> PendingInvitationData:
        return PendingInvitationData(**dict(row))
