"""Header-based authentication provider.

Trusts ``X-User-*`` headers completely. Only for local development or
behind a gateway that has already authenticated the caller.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from recipe_keeper.auth.providers.exceptions import AuthenticationError
from recipe_keeper.auth.providers.models import AuthResult
from recipe_keeper.observability.logging import get_logger


if TYPE_CHECKING:
    from starlette.requests import Request

logger = get_logger(__name__)


class HeaderAuthProvider:
    """Extracts user information from request headers.

    The user id header is required; email and roles are optional.
    """

    def __init__(
        self,
        user_id_header: str = "X-User-ID",
        email_header: str = "X-User-Email",
        roles_header: str = "X-User-Roles",
        default_roles: list[str] | None = None,
    ) -> None:
        self.user_id_header = user_id_header
        self.email_header = email_header
        self.roles_header = roles_header
        self.default_roles = default_roles or ["authenticated"]

    @property
    def provider_name(self) -> str:
        return "header"

    async def validate_token(
        self,
        _token: str,
        request: Request | None = None,
    ) -> AuthResult:
        """Build the caller from request headers; the token is ignored.

        Raises:
            AuthenticationError: If there is no request or no user id header.
        """
        if request is None:
            msg = "HeaderAuthProvider requires request object for header access"
            raise AuthenticationError(msg)

        user_id = request.headers.get(self.user_id_header)
        if not user_id:
            msg = f"Missing required header: {self.user_id_header}"
            raise AuthenticationError(msg)

        roles_str = request.headers.get(self.roles_header, "")
        roles = [r.strip() for r in roles_str.split(",") if r.strip()]
        if not roles:
            roles = self.default_roles.copy()

        email = request.headers.get(self.email_header) or None

        logger.debug("Authenticated via headers", user_id=user_id, roles=roles)

        return AuthResult(
            user_id=user_id,
            email=email,
            roles=roles,
            token_type="header",  # noqa: S106 - not a password
            raw_claims={"source": "headers"},
        )

    async def initialize(self) -> None:
        logger.info(
            "HeaderAuthProvider initialized",
            user_id_header=self.user_id_header,
            email_header=self.email_header,
        )
        logger.warning(
            "HeaderAuthProvider is enabled - ensure this is only used in "
            "development/testing or behind a trusted gateway"
        )

    async def shutdown(self) -> None:
        logger.debug("HeaderAuthProvider shutdown")
