"""Cookbook invitations for existing users and people without an account."""

from recipe_keeper.services.invitations.exceptions import (
    AlreadyInvitedError,
    AlreadyMemberError,
    CookbookNotFoundError,
    InvitationAcceptedError,
    InvitationEmailMismatchError,
    InvitationError,
    InvitationExpiredError,
    InvitationNotFoundError,
    InvitePermissionError,
)
from recipe_keeper.services.invitations.service import InvitationService


__all__ = [
    "AlreadyInvitedError",
    "AlreadyMemberError",
    "CookbookNotFoundError",
    "InvitationAcceptedError",
    "InvitationEmailMismatchError",
    "InvitationError",
    "InvitationExpiredError",
    "InvitationNotFoundError",
    "InvitationService",
    "InvitePermissionError",
]
