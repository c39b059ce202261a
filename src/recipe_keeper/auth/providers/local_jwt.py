"""Local JWT authentication provider.

Verifies the auth provider's access tokens with the project's shared JWT
secret, so no network call is needed per request. Supabase-style tokens
carry ``aud: authenticated``, ``email`` and ``user_metadata.full_name``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTClaimsError, JWTError

from recipe_keeper.auth.providers.exceptions import (
    ConfigurationError,
    TokenExpiredError,
    TokenInvalidError,
)
from recipe_keeper.auth.providers.models import AuthResult
from recipe_keeper.observability.logging import get_logger


if TYPE_CHECKING:
    from starlette.requests import Request

logger = get_logger(__name__)


def _full_name_from_claims(payload: dict[str, Any]) -> str | None:
    metadata = payload.get("user_metadata") or {}
    name = metadata.get("full_name") or metadata.get("name")
    return name or None


class LocalJWTAuthProvider:
    """Validates JWTs locally using the configured secret key.

    Attributes:
        secret_key: Secret for HS256, or public key for RS256.
        algorithm: JWT signing algorithm.
        issuer: Expected ``iss`` claim, or None to skip the check.
        audience: Accepted ``aud`` values, or None to skip the check.
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        issuer: str | None = None,
        audience: list[str] | None = None,
    ) -> None:
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.issuer = issuer
        self.audience = audience if audience else None

    @property
    def provider_name(self) -> str:
        return "local_jwt"

    def _decode(self, token: str) -> dict[str, Any]:
        decode_kwargs: dict[str, Any] = {"algorithms": [self.algorithm]}
        if self.issuer:
            decode_kwargs["issuer"] = self.issuer

        if not self.audience:
            return jwt.decode(
                token,
                self.secret_key,
                options={"verify_aud": False},
                **decode_kwargs,
            )

        # python-jose accepts a single audience string; try each allowed one.
        last_error: JWTClaimsError | None = None
        for audience in self.audience:
            try:
                return jwt.decode(
                    token, self.secret_key, audience=audience, **decode_kwargs
                )
            except JWTClaimsError as e:
                last_error = e
        raise last_error  # type: ignore[misc]

    async def validate_token(
        self,
        token: str,
        _request: Request | None = None,
    ) -> AuthResult:
        """Validate a JWT locally.

        Raises:
            TokenExpiredError: If the token has expired.
            TokenInvalidError: If the token is malformed or its signature fails.
        """
        if not token:
            msg = "Missing bearer token"
            raise TokenInvalidError(msg)

        try:
            payload = self._decode(token)
        except ExpiredSignatureError as e:
            logger.debug("Token expired during local validation")
            msg = "Token has expired"
            raise TokenExpiredError(msg) from e
        except JWTClaimsError as e:
            logger.warning("JWT claims validation failed", error=str(e))
            raise TokenInvalidError(str(e)) from e
        except JWTError as e:
            logger.warning("JWT validation failed", error=str(e))
            msg = "Invalid token"
            raise TokenInvalidError(msg) from e

        user_id = payload.get("sub")
        if not user_id:
            msg = "Token missing 'sub' claim"
            raise TokenInvalidError(msg)

        role = payload.get("role")
        roles = payload.get("roles") or ([role] if role else [])

        return AuthResult(
            user_id=user_id,
            email=payload.get("email") or None,
            full_name=_full_name_from_claims(payload),
            roles=roles,
            permissions=payload.get("permissions", []),
            token_type="access",  # noqa: S106 - not a password
            expires_at=payload.get("exp"),
            raw_claims=payload,
        )

    async def initialize(self) -> None:
        if not self.secret_key:
            msg = "JWT secret key is not configured"
            raise ConfigurationError(msg)

        logger.info(
            "LocalJWTAuthProvider initialized",
            algorithm=self.algorithm,
            issuer_validation=self.issuer is not None,
            audience_validation=self.audience is not None,
        )

    async def shutdown(self) -> None:
        logger.debug("LocalJWTAuthProvider shutdown")
