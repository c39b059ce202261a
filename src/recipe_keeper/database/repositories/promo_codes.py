"""Promo code repository.

Redemption rules (usage caps, expiry, one active promo per user) live in
the ``apply_promo_code`` and ``get_active_promo_code`` stored procedures.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

import asyncpg
from pydantic import BaseModel

from recipe_keeper.database.exceptions import (
    DuplicateRecordError,
    StoredProcedureMissingError,
)
from recipe_keeper.database.repositories.base import BaseRepository, build_update


if TYPE_CHECKING:
    from asyncpg import Record


class PromoCodeData(BaseModel):
    """A row from ``promo_codes`` with its active redemption count."""

    id: UUID
    code: str
    name: str
    description: str | None = None
    type: str
    max_recipes: int | None = None
    max_uses: int | None = None
    discount_percent: int | None = None
    duration_days: int | None = None
    expires_at: datetime | None = None
    features_enabled: dict[str, Any] | None = None
    is_active: bool = True
    created_by: str | None = None
    created_at: datetime | None = None
    active_uses: int = 0


class UserPromoCodeData(BaseModel):
    """A user's redemption joined with the code it redeemed."""

    id: UUID
    user_id: UUID
    promo_code_id: UUID
    is_active: bool
    applied_at: datetime | None = None
    expires_at: datetime | None = None
    code: str | None = None
    name: str | None = None


EDITABLE_COLUMNS = frozenset(
    {
        "name",
        "description",
        "type",
        "max_recipes",
        "max_uses",
        "discount_percent",
        "duration_days",
        "expires_at",
        "features_enabled",
        "is_active",
    }
)


def normalize_code(code: str) -> str:
    """Promo codes are stored and matched upper-case."""
    return code.strip().upper()


class PromoCodeRepository(BaseRepository):
    """Data access for ``promo_codes`` and ``user_promo_codes``."""

    async def apply(self, user_id: UUID, code: str) -> dict[str, Any]:
        """Run ``apply_promo_code`` and return its JSON result.

        Raises:
            StoredProcedureMissingError: If the procedure has not been migrated.
        """
        try:
            async with self.pool.acquire() as conn:
                result = await conn.fetchval(
                    "SELECT apply_promo_code(p_user_id => $1, p_code => $2)",
                    user_id,
                    normalize_code(code),
                )
        except asyncpg.UndefinedFunctionError as e:
            raise StoredProcedureMissingError("apply_promo_code") from e
        return result if isinstance(result, dict) else {}

    async def get_active(self, user_id: UUID) -> dict[str, Any] | None:
        """Run ``get_active_promo_code``; None when the user has no promo."""
        async with self.pool.acquire() as conn:
            result = await conn.fetchval(
                "SELECT get_active_promo_code(p_user_id => $1)", user_id
            )
        return result if isinstance(result, dict) and result else None

    async def list_all(self) -> list[PromoCodeData]:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT p.*,
                       (SELECT COUNT(*) FROM user_promo_codes u
                        WHERE u.promo_code_id = p.id AND u.is_active) AS active_uses
                FROM promo_codes p
                ORDER BY p.created_at DESC
                """
            )
        return [self._row_to_promo(row) for row in rows]

    async def create(self, fields: dict[str, Any], created_by: str) -> PromoCodeData:
        """Insert a code, upper-casing it.

        Raises:
            DuplicateRecordError: If the code already exists.
        """
        values = {k: v for k, v in fields.items() if k in EDITABLE_COLUMNS}
        columns = ["code", "created_by", *values]
        args = [normalize_code(fields["code"]), created_by, *values.values()]
        placeholders = ", ".join(f"${i}" for i in range(1, len(args) + 1))
        query = f"""
            INSERT INTO promo_codes ({", ".join(columns)})
            VALUES ({placeholders})
            RETURNING *
        """  # noqa: S608
        try:
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(query, *args)
        except asyncpg.UniqueViolationError as e:
            raise DuplicateRecordError("promo_codes", e.constraint_name) from e
        return self._row_to_promo(row)

    async def update(self, promo_id: UUID, fields: dict[str, Any]) -> bool:
        assignments, args = build_update(fields, EDITABLE_COLUMNS, start=2)
        if not assignments:
            return True
        async with self.pool.acquire() as conn:
            result = await conn.execute(
                f"UPDATE promo_codes SET {assignments} WHERE id = $1",  # noqa: S608
                promo_id,
                *args,
            )
        return result != "UPDATE 0"

    async def delete(self, promo_id: UUID) -> bool:
        async with self.pool.acquire() as conn:
            result = await conn.execute("DELETE FROM promo_codes WHERE id = $1", promo_id)
        return result != "DELETE 0"

    async def list_for_user(self, user_id: UUID) -> list[UserPromoCodeData]:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT u.id, u.user_id, u.promo_code_id, u.is_active,
                       u.applied_at, u.expires_at, p.code, p.name
                FROM user_promo_codes u
                LEFT JOIN promo_codes p ON p.id = u.promo_code_id
                WHERE u.user_id = $1
                ORDER BY u.applied_at DESC NULLS LAST
                """,
                user_id,
            )
        return [UserPromoCodeData(**dict(row)) for row in rows]

    @staticmethod
    def _row_to_promo(row: Record) -> PromoCodeData:
        return PromoCodeData(**dict(row))
