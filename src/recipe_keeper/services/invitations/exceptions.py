"""Invitation flow exceptions."""

from __future__ import annotations


class InvitationError(Exception):
    """Base exception for invitation errors."""


class CookbookNotFoundError(InvitationError):
    """The cookbook does not exist."""


class InvitePermissionError(InvitationError):
    """The inviter may not invite members to this cookbook."""


class AlreadyInvitedError(InvitationError):
    """The address already has a pending invitation to this cookbook."""


class AlreadyMemberError(InvitationError):
    """The invitee already belongs to this cookbook."""


class InvitationNotFoundError(InvitationError):
    """No invitation matches the token."""


class InvitationAcceptedError(InvitationError):
    """The invitation has already been used."""


class InvitationExpiredError(InvitationError):
    """The invitation is past its expiry."""


class InvitationEmailMismatchError(InvitationError):
    """The invitation was addressed to a different email."""
