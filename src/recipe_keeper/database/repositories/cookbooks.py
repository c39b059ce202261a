"""Cookbook and membership repository."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

import asyncpg
from pydantic import BaseModel

from recipe_keeper.database.exceptions import DuplicateRecordError
from recipe_keeper.database.repositories.base import BaseRepository, build_update
from recipe_keeper.observability.logging import get_logger


if TYPE_CHECKING:
    from asyncpg import Record

logger = get_logger(__name__)


# =============================================================================
# Data Transfer Objects
# =============================================================================


class CookbookData(BaseModel):
    """A row from ``recipe_books`` with per-caller aggregates."""

    id: UUID
    name: str
    description: str | None = None
    owner_id: UUID
    is_shared: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None
    member_count: int = 0
    recipe_count: int = 0
    user_role: str | None = None


class MemberData(BaseModel):
    """A row from ``book_members`` joined with the member's profile."""

    id: UUID
    book_id: UUID
    user_id: UUID
    role: str
    invited_by: UUID | None = None
    joined_at: datetime | None = None
    email: str | None = None
    full_name: str | None = None


_EDITABLE = frozenset({"name", "description", "is_shared"})

_BOOK_WITH_COUNTS = """
    SELECT
        b.*,
        CASE WHEN b.owner_id = $1 THEN 'owner' ELSE m.role END AS user_role,
        (SELECT COUNT(*) FROM book_members bm WHERE bm.book_id = b.id) AS member_count,
        (SELECT COUNT(*) FROM recipes r WHERE r.book_id = b.id) AS recipe_count
    FROM recipe_books b
    LEFT JOIN book_members m ON m.book_id = b.id AND m.user_id = $1
"""


# =============================================================================
# Repository
# =============================================================================


class CookbookRepository(BaseRepository):
    """Data access for ``recipe_books`` and ``book_members``."""

    async def list_for_user(self, user_id: UUID) -> list[CookbookData]:
        """Books the user owns (oldest first), then books they joined."""
        query = f"""
            {_BOOK_WITH_COUNTS}
            WHERE b.owner_id = $1 OR m.user_id IS NOT NULL
            ORDER BY (b.owner_id = $1) DESC, b.created_at ASC
        """  # noqa: S608
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(query, user_id)
        return [self._row_to_book(row) for row in rows]

    async def get_for_user(self, book_id: UUID, user_id: UUID) -> CookbookData | None:
        """Fetch a book with the caller's role; ``user_role`` is None for outsiders."""
        query = f"{_BOOK_WITH_COUNTS} WHERE b.id = $2"  # noqa: S608
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(query, user_id, book_id)
        return self._row_to_book(row) if row else None

    async def get_role(self, book_id: UUID, user_id: UUID) -> str | None:
        """Return the user's role in a book, or None if they are not a member."""
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                SELECT
                    CASE WHEN b.owner_id = $2 THEN 'owner' ELSE m.role END AS role
                FROM recipe_books b
                LEFT JOIN book_members m ON m.book_id = b.id AND m.user_id = $2
                WHERE b.id = $1
                """,
                book_id,
                user_id,
            )
        return row["role"] if row else None

    async def create(
        self, owner_id: UUID, name: str, description: str | None
    ) -> CookbookData:
        """Create a book and enrol the creator as its owner."""
        async with self.pool.acquire() as conn, conn.transaction():
            row = await conn.fetchrow(
                """
                INSERT INTO recipe_books (name, description, owner_id)
                VALUES ($1, $2, $3)
                RETURNING *
                """,
                name,
                description,
                owner_id,
            )
            await conn.execute(
                """
                INSERT INTO book_members (book_id, user_id, role, invited_by)
                VALUES ($1, $2, 'owner', $2)
                ON CONFLICT (book_id, user_id) DO NOTHING
                """,
                row["id"],
                owner_id,
            )
        book = self._row_to_book(row)
        return book.model_copy(update={"member_count": 1, "user_role": "owner"})

    async def update(
        self, book_id: UUID, owner_id: UUID, fields: dict[str, object]
    ) -> bool:
        assignments, args = build_update(fields, _EDITABLE, start=3)
        if not assignments:
            return True
        async with self.pool.acquire() as conn:
            result = await conn.execute(
                f"""
                UPDATE recipe_books SET {assignments}, updated_at = NOW()
                WHERE id = $1 AND owner_id = $2
                """,  # noqa: S608
                book_id,
                owner_id,
                *args,
            )
        return result != "UPDATE 0"

    async def delete(self, book_id: UUID, owner_id: UUID) -> bool:
        async with self.pool.acquire() as conn:
            result = await conn.execute(
                "DELETE FROM recipe_books WHERE id = $1 AND owner_id = $2",
                book_id,
                owner_id,
            )
        return result != "DELETE 0"

    # -------------------------------------------------------------------------
    # Members
    # -------------------------------------------------------------------------

    async def list_members(self, book_id: UUID) -> list[MemberData]:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT m.*, p.email, p.full_name
                FROM book_members m
                LEFT JOIN profiles p ON p.id = m.user_id
                WHERE m.book_id = $1
                ORDER BY m.joined_at ASC
                """,
                book_id,
            )
        return [MemberData(**dict(row)) for row in rows]

    async def get_member(self, member_id: UUID) -> MemberData | None:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                SELECT m.*, p.email, p.full_name
                FROM book_members m
                LEFT JOIN profiles p ON p.id = m.user_id
                WHERE m.id = $1
                """,
                member_id,
            )
        return MemberData(**dict(row)) if row else None

    async def add_member(
        self,
        book_id: UUID,
        user_id: UUID,
        role: str,
        invited_by: UUID | None,
    ) -> None:
        """Enrol a user in a book.

        Raises:
            DuplicateRecordError: If the user is already a member.
        """
        try:
            async with self.pool.acquire() as conn:
                await conn.execute(
                    """
                    INSERT INTO book_members (book_id, user_id, role, invited_by)
                    VALUES ($1, $2, $3, $4)
                    """,
                    book_id,
                    user_id,
                    role,
                    invited_by,
                )
        except asyncpg.UniqueViolationError as e:
            raise DuplicateRecordError("book_members", e.constraint_name) from e

    async def update_member_role(self, member_id: UUID, role: str) -> bool:
        async with self.pool.acquire() as conn:
            result = await conn.execute(
                "UPDATE book_members SET role = $2 WHERE id = $1", member_id, role
            )
        return result != "UPDATE 0"

    async def remove_member(self, member_id: UUID) -> bool:
        async with self.pool.acquire() as conn:
            result = await conn.execute("DELETE FROM book_members WHERE id = $1", member_id)
        return result != "DELETE 0"

    async def leave(self, book_id: UUID, user_id: UUID) -> bool:
        async with self.pool.acquire() as conn:
            result = await conn.execute(
                "DELETE FROM book_members WHERE book_id = $1 AND user_id = $2",
                book_id,
                user_id,
            )
        return result != "DELETE 0"

    @staticmethod
    def _row_to_book(row: Record) -> CookbookData:
        return CookbookData(**dict(row))
