"""Authentication and authorization.

- Pluggable auth providers (local JWT, header, disabled)
- Cookbook roles and admin permissions
- FastAPI security dependencies
"""

from recipe_keeper.auth.dependencies import (
    AdminContext,
    CurrentUser,
    RequireAdmin,
    get_current_user,
)
from recipe_keeper.auth.permissions import (
    AdminPermission,
    BookPermission,
    BookRole,
    has_book_permission,
)


__all__ = [
    "AdminContext",
    "AdminPermission",
    "BookPermission",
    "BookRole",
    "CurrentUser",
    "RequireAdmin",
    "get_current_user",
    "has_book_permission",
]
