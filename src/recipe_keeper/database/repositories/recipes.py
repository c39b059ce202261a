"""Recipe repository."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

import asyncpg
from pydantic import BaseModel

from recipe_keeper.database.exceptions import StoredProcedureMissingError
from recipe_keeper.database.repositories.base import BaseRepository, build_update
from recipe_keeper.observability.logging import get_logger


if TYPE_CHECKING:
    from asyncpg import Record

logger = get_logger(__name__)


# =============================================================================
# Data Transfer Objects
# =============================================================================


class RecipeData(BaseModel):
    """A row from ``recipes``."""

    id: UUID
    user_id: UUID
    book_id: UUID | None = None
    submitted_by: UUID | None = None
    parent_recipe_id: UUID | None = None
    variation_type: str | None = None
    title: str
    ingredients: str
    instructions: str
    prep_time: int | None = None
    cook_time: int | None = None
    servings: str | None = None
    category: str | None = None
    source: str | None = None
    notes: str | None = None
    image_url: str | None = None
    rating: int | None = None
    is_favorite: bool = False
    story: str | None = None
    family_memories: list[str] | None = None
    photo_memories: list[dict[str, Any]] | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class RecipeSummary(BaseModel):
    """Just enough of a recipe to link to it."""

    id: UUID
    title: str
    created_at: datetime | None = None


# Columns a client may write directly.
EDITABLE_COLUMNS = frozenset(
    {
        "title",
        "ingredients",
        "instructions",
        "prep_time",
        "cook_time",
        "servings",
        "category",
        "source",
        "notes",
        "image_url",
        "rating",
        "is_favorite",
        "story",
        "family_memories",
        "photo_memories",
        "book_id",
    }
)

# Columns carried over when a recipe is copied.
_COPY_COLUMNS = (
    "ingredients",
    "instructions",
    "prep_time",
    "cook_time",
    "servings",
    "category",
    "source",
    "notes",
    "image_url",
    "rating",
    "is_favorite",
    "story",
    "family_memories",
    "photo_memories",
    "parent_recipe_id",
    "variation_type",
)

_SORT_ORDERS = {
    "title": "title ASC",
    "rating": "rating DESC NULLS LAST",
    "cook_time": "cook_time ASC NULLS LAST",
    "source": "source ASC NULLS LAST",
}
_DEFAULT_ORDER = "created_at DESC"


# =============================================================================
# Repository
# =============================================================================


class RecipeRepository(BaseRepository):
    """Data access for ``recipes`` and the recipe quota procedures."""

    async def list_for_user(
        self,
        user_id: UUID,
        *,
        search: str | None = None,
        favorites_only: bool = False,
        category: str | None = None,
        book_id: UUID | None = None,
        sort: str | None = None,
    ) -> list[RecipeData]:
        """List a user's recipes with optional filters.

        Args:
            user_id: Owner of the recipes.
            search: Case-insensitive substring matched against title,
                ingredients, instructions, source and notes.
            favorites_only: Only return favourites.
            category: Exact category filter.
            book_id: Only recipes filed in this cookbook.
            sort: ``title``, ``rating``, ``cook_time`` or ``source``;
                anything else sorts newest first.

        Returns:
            Matching recipes.
        """
        conditions = ["user_id = $1"]
        args: list[Any] = [user_id]

        if search:
            args.append(f"%{search}%")
            n = len(args)
            conditions.append(
                f"(title ILIKE ${n} OR ingredients ILIKE ${n} OR instructions ILIKE ${n}"
                f" OR source ILIKE ${n} OR notes ILIKE ${n})"
            )
        if favorites_only:
            conditions.append("is_favorite = TRUE")
        if category:
            args.append(category)
            conditions.append(f"category = ${len(args)}")
        if book_id is not None:
            args.append(book_id)
            conditions.append(f"book_id = ${len(args)}")

        order_by = _SORT_ORDERS.get(sort or "", _DEFAULT_ORDER)
        query = f"""
            SELECT * FROM recipes
            WHERE {" AND ".join(conditions)}
            ORDER BY {order_by}
        """  # noqa: S608

        async with self.pool.acquire() as conn:
            rows = await conn.fetch(query, *args)
        return [self._row_to_recipe(row) for row in rows]

    async def get_owned(self, recipe_id: UUID, user_id: UUID) -> RecipeData | None:
        """Fetch a recipe only if ``user_id`` owns it."""
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT * FROM recipes WHERE id = $1 AND user_id = $2",
                recipe_id,
                user_id,
            )
        return self._row_to_recipe(row) if row else None

    async def get_visible(self, recipe_id: UUID, user_id: UUID) -> RecipeData | None:
        """Fetch a recipe the user owns or can see through cookbook membership."""
        query = """
            SELECT r.* FROM recipes r
            WHERE r.id = $1
              AND (
                r.user_id = $2
                OR EXISTS (
                    SELECT 1 FROM book_members m
                    WHERE m.book_id = r.book_id AND m.user_id = $2
                )
              )
        """
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(query, recipe_id, user_id)
        return self._row_to_recipe(row) if row else None

    async def get_by_id(self, recipe_id: UUID) -> RecipeData | None:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow("SELECT * FROM recipes WHERE id = $1", recipe_id)
        return self._row_to_recipe(row) if row else None

    async def get_summary(self, recipe_id: UUID) -> RecipeSummary | None:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT id, title, created_at FROM recipes WHERE id = $1", recipe_id
            )
        return RecipeSummary(**dict(row)) if row else None

    async def list_recent_for_user(
        self, user_id: UUID, limit: int = 10
    ) -> list[RecipeSummary]:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT id, title, created_at FROM recipes
                WHERE user_id = $1
                ORDER BY created_at DESC
                LIMIT $2
                """,
                user_id,
                limit,
            )
        return [RecipeSummary(**dict(row)) for row in rows]

    async def create(
        self,
        user_id: UUID,
        fields: dict[str, Any],
        *,
        additional_images: list[str] | None = None,
    ) -> RecipeData:
        """Insert a recipe and any extra gallery images in one transaction.

        Args:
            user_id: Owner and submitter.
            fields: Column values; unknown columns are ignored.
            additional_images: Image URLs stored in ``recipe_images`` in order.

        Returns:
            The inserted recipe.
        """
        values = {k: v for k, v in fields.items() if k in EDITABLE_COLUMNS}
        columns = ["user_id", "submitted_by", *values.keys()]
        args = [user_id, user_id, *values.values()]
        placeholders = ", ".join(f"${i}" for i in range(1, len(args) + 1))
        query = f"""
            INSERT INTO recipes ({", ".join(columns)})
            VALUES ({placeholders})
            RETURNING *
        """  # noqa: S608

        async with self.pool.acquire() as conn, conn.transaction():
            row = await conn.fetchrow(query, *args)
            if additional_images:
                await conn.executemany(
                    """
                    INSERT INTO recipe_images (recipe_id, image_url, display_order)
                    VALUES ($1, $2, $3)
                    """,
                    [(row["id"], url, index) for index, url in enumerate(additional_images)],
                )
        return self._row_to_recipe(row)

    async def update(
        self,
        recipe_id: UUID,
        user_id: UUID,
        fields: dict[str, Any],
    ) -> RecipeData | None:
        """Update an owned recipe. Returns None if it does not exist or is not owned."""
        assignments, args = build_update(fields, EDITABLE_COLUMNS, start=3)
        if not assignments:
            return await self.get_owned(recipe_id, user_id)
        query = f"""
            UPDATE recipes
            SET {assignments}, updated_at = NOW()
            WHERE id = $1 AND user_id = $2
            RETURNING *
        """  # noqa: S608
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(query, recipe_id, user_id, *args)
        return self._row_to_recipe(row) if row else None

    async def delete(self, recipe_id: UUID, user_id: UUID) -> bool:
        async with self.pool.acquire() as conn:
            result = await conn.execute(
                "DELETE FROM recipes WHERE id = $1 AND user_id = $2",
                recipe_id,
                user_id,
            )
        return result != "DELETE 0"

    async def set_favorite(
        self, recipe_id: UUID, user_id: UUID, *, is_favorite: bool
    ) -> bool:
        async with self.pool.acquire() as conn:
            result = await conn.execute(
                """
                UPDATE recipes SET is_favorite = $3, updated_at = NOW()
                WHERE id = $1 AND user_id = $2
                """,
                recipe_id,
                user_id,
                is_favorite,
            )
        return result != "UPDATE 0"

    async def set_image_url(self, recipe_id: UUID, image_url: str) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute(
                "UPDATE recipes SET image_url = $2, updated_at = NOW() WHERE id = $1",
                recipe_id,
                image_url,
            )

    async def move_unfiled_to_book(self, user_id: UUID, book_id: UUID) -> int:
        """File every recipe without a cookbook into ``book_id``.

        Returns:
            Number of recipes moved.
        """
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                """
                UPDATE recipes SET book_id = $2, updated_at = NOW()
                WHERE user_id = $1 AND book_id IS NULL
                RETURNING id
                """,
                user_id,
                book_id,
            )
        return len(rows)

    async def move_to_book(
        self, recipe_id: UUID, user_id: UUID, book_id: UUID | None
    ) -> bool:
        async with self.pool.acquire() as conn:
            result = await conn.execute(
                """
                UPDATE recipes SET book_id = $3, updated_at = NOW()
                WHERE id = $1 AND user_id = $2
                """,
                recipe_id,
                user_id,
                book_id,
            )
        return result != "UPDATE 0"

    async def copy_to_book(
        self,
        recipe: RecipeData,
        user_id: UUID,
        book_id: UUID | None,
    ) -> UUID:
        """Duplicate a recipe (titled "... (Copy)") with its gallery images.

        Returns:
            ID of the new recipe.
        """
        source = recipe.model_dump()
        columns = ["user_id", "submitted_by", "book_id", "title", *_COPY_COLUMNS]
        args = [
            user_id,
            user_id,
            book_id,
            f"{recipe.title} (Copy)",
            *(source[column] for column in _COPY_COLUMNS),
        ]
        placeholders = ", ".join(f"${i}" for i in range(1, len(args) + 1))
        insert_recipe = f"""
            INSERT INTO recipes ({", ".join(columns)})
            VALUES ({placeholders})
            RETURNING id
        """  # noqa: S608

        async with self.pool.acquire() as conn, conn.transaction():
            new_id: UUID = await conn.fetchval(insert_recipe, *args)
            await conn.execute(
                """
                INSERT INTO recipe_images (recipe_id, image_url, caption, display_order)
                SELECT $2, image_url, caption, display_order
                FROM recipe_images WHERE recipe_id = $1
                """,
                recipe.id,
                new_id,
            )
        logger.info("Recipe copied", source_id=str(recipe.id), new_id=str(new_id))
        return new_id

    # -------------------------------------------------------------------------
    # Variations
    # -------------------------------------------------------------------------

    async def create_variation(
        self,
        parent: RecipeData,
        fields: dict[str, Any],
        variation_type: str,
        *,
        book_id: UUID | None,
    ) -> RecipeData:
        """Insert a recipe derived from ``parent``, owned by the parent's owner."""
        values = {k: v for k, v in fields.items() if k in EDITABLE_COLUMNS}
        values["book_id"] = book_id
        columns = [
            "user_id",
            "submitted_by",
            "parent_recipe_id",
            "variation_type",
            *values.keys(),
        ]
        args = [
            parent.user_id,
            parent.user_id,
            parent.id,
            variation_type,
            *values.values(),
        ]
        placeholders = ", ".join(f"${i}" for i in range(1, len(args) + 1))
        query = f"""
            INSERT INTO recipes ({", ".join(columns)})
            VALUES ({placeholders})
            RETURNING *
        """  # noqa: S608

        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(query, *args)
        return self._row_to_recipe(row)

    async def list_variations(
        self, parent_id: UUID, user_id: UUID
    ) -> list[RecipeData]:
        """The user's recipes derived from ``parent_id``, newest first."""
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT * FROM recipes
                WHERE parent_recipe_id = $1 AND user_id = $2
                ORDER BY created_at DESC
                """,
                parent_id,
                user_id,
            )
        return [self._row_to_recipe(row) for row in rows]

    # -------------------------------------------------------------------------
    # Quota procedures
    # -------------------------------------------------------------------------

    async def can_create(self, user_id: UUID) -> bool:
        """Ask ``can_create_recipe`` whether the user is under their limit.

        Raises:
            StoredProcedureMissingError: If the procedure has not been migrated.
        """
        try:
            async with self.pool.acquire() as conn:
                allowed = await conn.fetchval(
                    "SELECT can_create_recipe(p_user_id => $1)", user_id
                )
        except asyncpg.UndefinedFunctionError as e:
            raise StoredProcedureMissingError("can_create_recipe") from e
        return bool(allowed)

    async def increment_count(self, user_id: UUID) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute("SELECT increment_recipe_count(p_user_id => $1)", user_id)

    @staticmethod
    def _row_to_recipe(row: Record) -> RecipeData:
        return RecipeData(**dict(row))
