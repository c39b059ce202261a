"""FastAPI security dependencies.

The configured auth provider (local_jwt, header, or disabled) validates
the request; ``get_current_user`` turns the result into a ``CurrentUser``
and ``RequireAdmin`` gates the admin surface.
"""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from recipe_keeper.auth.permissions import (
    AdminPermission,
    AdminRole,
    admin_has_permission,
    is_super_admin_email,
)
from recipe_keeper.auth.providers import (
    AuthenticationError,
    AuthResult,
    AuthServiceUnavailableError,
    TokenExpiredError,
    TokenInvalidError,
    get_auth_provider,
)
from recipe_keeper.core.config import get_settings
from recipe_keeper.database.repositories.admin import AdminRepository, AdminUserData
from recipe_keeper.observability.logging import bind_context, get_logger


logger = get_logger(__name__)

bearer_scheme = HTTPBearer(
    scheme_name="JWT",
    description="Access token issued by the auth provider",
    auto_error=False,
)


class CurrentUser(BaseModel):
    """The authenticated caller."""

    id: UUID
    email: str | None = None
    full_name: str | None = None
    roles: list[str] = []

    @classmethod
    def from_auth_result(cls, result: AuthResult) -> CurrentUser:
        return cls(
            id=UUID(result.user_id),
            email=result.email,
            full_name=result.full_name,
            roles=result.roles,
        )

    @property
    def display_name(self) -> str:
        """Name shown to other people, falling back to the email's local part."""
        if self.full_name:
            return self.full_name
        if self.email:
            return self.email.split("@", 1)[0]
        return "Someone"


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": "UNAUTHORIZED", "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_auth_result(
    request: Request,
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ],
) -> AuthResult:
    """Validate the request with the configured auth provider.

    Raises:
        HTTPException: 401 if authentication fails, 503 if the auth
            backend is unavailable.
    """
    token = credentials.credentials if credentials else ""

    try:
        provider = get_auth_provider()
        return await provider.validate_token(token, request)

    except TokenExpiredError:
        raise _unauthorized("Token has expired") from None

    except TokenInvalidError as e:
        raise _unauthorized(str(e) or "Invalid token") from None

    except AuthenticationError as e:
        raise _unauthorized(str(e) or "Authentication failed") from None

    except (AuthServiceUnavailableError, RuntimeError) as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "error": "AUTH_UNAVAILABLE",
                "message": f"Authentication service unavailable: {e}",
            },
        ) from None


async def get_current_user(
    request: Request,
    auth_result: Annotated[AuthResult, Depends(get_auth_result)],
) -> CurrentUser:
    """Primary dependency for protected routes.

    Stores the user on ``request.state.user`` and binds ``user_id`` to the
    log context for the rest of the request.

    Raises:
        HTTPException: 401 if the subject is not a valid user id.
    """
    try:
        user = CurrentUser.from_auth_result(auth_result)
    except ValueError:
        raise _unauthorized("Token subject is not a valid user id") from None

    request.state.user = user
    bind_context(user_id=str(user.id))
    return user


def get_admin_repository() -> AdminRepository:
    return AdminRepository()


class AdminContext(BaseModel):
    """An authenticated admin and what they may do."""

    user: CurrentUser
    role: str
    permissions: dict[str, object] = {}

    def can(self, permission: AdminPermission | str) -> bool:
        return admin_has_permission(self.role, self.permissions, permission)


class RequireAdmin:
    """Dependency requiring an active admin, optionally with a permission.

    Usage:
        @router.get("/admin/metrics")
        async def metrics(
            admin: Annotated[
                AdminContext, Depends(RequireAdmin(AdminPermission.VIEW_METRICS))
            ],
        ): ...
    """

    def __init__(self, permission: AdminPermission | None = None) -> None:
        self.permission = permission

    async def __call__(
        self,
        user: Annotated[CurrentUser, Depends(get_current_user)],
        admins: Annotated[AdminRepository, Depends(get_admin_repository)],
    ) -> AdminContext:
        """Resolve the caller's admin record.

        Raises:
            HTTPException: 403 ``ADMIN_REQUIRED`` for non-admins, 403
                ``PERMISSION_DENIED`` if the permission is missing.
        """
        settings = get_settings()
        if is_super_admin_email(user.email, settings.SUPER_ADMIN_EMAILS):
            return AdminContext(user=user, role=AdminRole.SUPER_ADMIN)

        record: AdminUserData | None = None
        if user.email:
            record = await admins.get_admin_user(user.email)

        if record is None:
            logger.warning("Non-admin attempted admin access")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "error": "ADMIN_REQUIRED",
                    "message": "Admin access required",
                },
            )

        context = AdminContext(
            user=user, role=record.role, permissions=record.permissions
        )
        if self.permission is not None and not context.can(self.permission):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "error": "PERMISSION_DENIED",
                    "message": f"Missing admin permission: {self.permission}",
                },
            )
        return context
