"""Cookbook roles and admin permissions.

Cookbook access is role based: each member of a book holds exactly one
``BookRole`` and the role decides which ``BookPermission``s they have.
Admin access is keyed by email in ``admin_users``; super admins hold every
``AdminPermission``.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from collections.abc import Iterable


class BookRole(StrEnum):
    """A member's role in a cookbook."""

    OWNER = "owner"
    EDITOR = "editor"
    VIEWER = "viewer"


class BookPermission(StrEnum):
    """Actions gated by cookbook role."""

    VIEW_RECIPES = "view_recipes"
    ADD_RECIPES = "add_recipes"
    EDIT_RECIPES = "edit_recipes"
    INVITE_MEMBERS = "invite_members"
    MANAGE_MEMBERS = "manage_members"
    EDIT_BOOK = "edit_book"
    DELETE_BOOK = "delete_book"


BOOK_ROLE_PERMISSIONS: dict[BookRole, frozenset[BookPermission]] = {
    BookRole.OWNER: frozenset(BookPermission),
    BookRole.EDITOR: frozenset(
        {
            BookPermission.VIEW_RECIPES,
            BookPermission.ADD_RECIPES,
            BookPermission.EDIT_RECIPES,
            BookPermission.INVITE_MEMBERS,
        }
    ),
    BookRole.VIEWER: frozenset({BookPermission.VIEW_RECIPES}),
}

# Roles that can be granted through invitations or role changes.
ASSIGNABLE_ROLES = frozenset({BookRole.EDITOR, BookRole.VIEWER})


def has_book_permission(role: BookRole | str | None, permission: BookPermission) -> bool:
    """Check whether a cookbook role grants a permission.

    Args:
        role: The member's role, or None for non-members.
        permission: The permission to check.

    Returns:
        True if the role grants the permission.
    """
    if role is None:
        return False
    try:
        book_role = BookRole(role)
    except ValueError:
        return False
    return permission in BOOK_ROLE_PERMISSIONS[book_role]


class AdminRole(StrEnum):
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    SUPPORT = "support"


class AdminPermission(StrEnum):
    """Admin capabilities stored as keys of ``admin_users.permissions``."""

    MANAGE_PROMO_CODES = "manage_promo_codes"
    VIEW_USERS = "view_users"
    VIEW_METRICS = "view_metrics"
    EXPORT_DATA = "export_data"


def admin_has_permission(
    role: str,
    permissions: dict[str, object],
    permission: AdminPermission | str,
) -> bool:
    """Super admins hold everything; others need ``permissions[perm] is True``."""
    if role == AdminRole.SUPER_ADMIN:
        return True
    return permissions.get(str(permission)) is True


def is_super_admin_email(email: str | None, super_admin_emails: Iterable[str]) -> bool:
    if not email:
        return False
    needle = email.strip().lower()
    return any(needle == candidate.strip().lower() for candidate in super_admin_emails)
