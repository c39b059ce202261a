"""Authentication provider protocol definition."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable


if TYPE_CHECKING:
    from starlette.requests import Request

    from recipe_keeper.auth.providers.models import AuthResult


@runtime_checkable
class AuthProvider(Protocol):
    """Protocol for authentication providers.

    Providers validate a bearer token (or request headers) and own their
    own startup and shutdown.
    """

    @property
    def provider_name(self) -> str:
        """Return a short name like 'local_jwt' or 'header' for logs."""
        ...

    async def validate_token(
        self,
        token: str,
        request: Request | None = None,
    ) -> AuthResult:
        """Validate a token and return the authenticated user.

        Args:
            token: The bearer token. May be empty for header-based auth.
            request: Request object, for providers that read headers.

        Returns:
            AuthResult describing the caller.

        Raises:
            TokenExpiredError: If the token has expired.
            TokenInvalidError: If the token is malformed or its signature fails.
            AuthenticationError: For other authentication failures.
            AuthServiceUnavailableError: If the auth backend is unreachable.
        """
        ...

    async def initialize(self) -> None:
        """Prepare the provider during application startup.

        Raises:
            ConfigurationError: If the provider is misconfigured.
        """
        ...

    async def shutdown(self) -> None:
        """Release provider resources during application shutdown."""
        ...
