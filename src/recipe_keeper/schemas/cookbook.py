"""Cookbook, membership and invitation schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import EmailStr, Field

from recipe_keeper.schemas.base import APIRequest, APIResponse


AssignableRole = Literal["editor", "viewer"]
MemberRole = Literal["owner", "editor", "viewer"]


class CookbookCreateRequest(APIRequest):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)


class CookbookUpdateRequest(APIRequest):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    is_shared: bool | None = None


class CookbookResponse(APIResponse):
    """A cookbook as seen by the caller."""

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


class CookbookListResponse(APIResponse):
    cookbooks: list[CookbookResponse]


class MemberResponse(APIResponse):
    id: UUID
    book_id: UUID
    user_id: UUID
    role: str
    invited_by: UUID | None = None
    joined_at: datetime | None = None
    email: str | None = None
    full_name: str | None = None


class CookbookDetailResponse(APIResponse):
    cookbook: CookbookResponse
    members: list[MemberResponse]


class MemberRoleRequest(APIRequest):
    role: MemberRole


# =============================================================================
# Invitations
# =============================================================================


class InviteRequest(APIRequest):
    email: EmailStr
    role: AssignableRole = "editor"


class InviteResponse(APIResponse):
    """Outcome of an invitation.

    ``is_pending`` is true when the invitee has no account yet and was sent
    a sign-up link instead of being added directly.
    """

    success: bool = True
    is_pending: bool
    email_sent: bool
    message: str


class InvitationDetailsResponse(APIResponse):
    email: str
    cookbook_name: str
    role: str


class AcceptInvitationRequest(APIRequest):
    token: str = Field(..., min_length=1)


class AcceptInvitationResponse(APIResponse):
    book_id: UUID
    cookbook_name: str | None = None


class AcceptPendingResponse(APIResponse):
    accepted: int
