"""Authentication provider models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class AuthResult(BaseModel):
    """Result of successful token validation.

    The same shape is returned whichever provider validated the request,
    so handlers never care how the caller was authenticated.

    Attributes:
        user_id: Auth-provider user id (the ``sub`` claim).
        email: The user's email address, when the token carries one.
        full_name: Display name from the token's user metadata.
        roles: Role names assigned to the user.
        permissions: Permission strings for fine-grained access control.
        token_type: Kind of credential that was validated.
        expires_at: Token expiration timestamp (``exp``).
        raw_claims: Original token claims for debugging and auditing.
    """

    user_id: str = Field(..., description="User identifier from token 'sub' claim")
    email: str | None = Field(default=None, description="User email")
    full_name: str | None = Field(default=None, description="User display name")
    roles: list[str] = Field(default_factory=list, description="User roles")
    permissions: list[str] = Field(default_factory=list, description="User permissions")
    token_type: str = Field(default="access", description="Type of validated token")
    expires_at: int | None = Field(default=None, description="Expiration timestamp")
    raw_claims: dict[str, Any] = Field(
        default_factory=dict,
        description="Original token claims",
    )

    model_config = {"frozen": True}
