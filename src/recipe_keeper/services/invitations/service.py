"""Cookbook invitation flow.

Inviting an address that already has an account adds the member straight
away and sends a notification. Inviting an address without an account
stores a pending invitation and sends a sign-up link carrying its token;
the invitation is accepted after sign-up, either explicitly with the token
or in bulk for the user's email on login.

Email delivery is best effort: a failed send is reported back as
``email_sent=False`` and never fails the invitation itself.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from recipe_keeper.auth.permissions import BookPermission, has_book_permission
from recipe_keeper.database.exceptions import DuplicateRecordError
from recipe_keeper.observability.logging import get_logger
from recipe_keeper.schemas.cookbook import (
    AcceptInvitationResponse,
    InvitationDetailsResponse,
    InviteResponse,
)
from recipe_keeper.services.invitations.exceptions import (
    AlreadyInvitedError,
    AlreadyMemberError,
    CookbookNotFoundError,
    InvitationAcceptedError,
    InvitationEmailMismatchError,
    InvitationExpiredError,
    InvitationNotFoundError,
    InvitePermissionError,
)


if TYPE_CHECKING:
    from uuid import UUID

    from recipe_keeper.auth.dependencies import CurrentUser
    from recipe_keeper.database.repositories.cookbooks import (
        CookbookData,
        CookbookRepository,
    )
    from recipe_keeper.database.repositories.invitations import (
        InvitationRepository,
        PendingInvitationData,
    )
    from recipe_keeper.database.repositories.profiles import ProfileRepository
    from recipe_keeper.services.email.client import EmailClient

logger = get_logger(__name__)


def _is_expired(invitation: PendingInvitationData, now: datetime) -> bool:
    return invitation.expires_at is not None and invitation.expires_at < now


class InvitationService:
    """Send and accept cookbook invitations."""

    def __init__(
        self,
        cookbooks: CookbookRepository,
        invitations: InvitationRepository,
        profiles: ProfileRepository,
        email: EmailClient | None,
        app_url: str,
    ) -> None:
        self._cookbooks = cookbooks
        self._invitations = invitations
        self._profiles = profiles
        self._email = email
        self._app_url = app_url.rstrip("/")

    # -------------------------------------------------------------------------
    # Sending
    # -------------------------------------------------------------------------

    async def invite(
        self,
        inviter: CurrentUser,
        book_id: UUID,
        email: str,
        role: str,
    ) -> InviteResponse:
        """Invite ``email`` to a cookbook with ``role``.

        Raises:
            InvitePermissionError: If the inviter is not an owner or editor.
            CookbookNotFoundError: If the cookbook does not exist.
            AlreadyInvitedError: If the address has a pending invitation.
            AlreadyMemberError: If the invitee is already a member.
        """
        inviter_role = await self._cookbooks.get_role(book_id, inviter.id)
        if not has_book_permission(inviter_role, BookPermission.INVITE_MEMBERS):
            msg = "Only owners and editors can invite members"
            raise InvitePermissionError(msg)

        book = await self._cookbooks.get_for_user(book_id, inviter.id)
        if book is None:
            msg = "Cookbook not found"
            raise CookbookNotFoundError(msg)

        invitee = await self._profiles.find_by_email(email)
        if invitee is None:
            return await self._invite_new_user(inviter, book, email, role)
        return await self._add_existing_user(inviter, book, invitee.id, email, role)

    async def _invite_new_user(
        self,
        inviter: CurrentUser,
        book: CookbookData,
        email: str,
        role: str,
    ) -> InviteResponse:
        try:
            invitation = await self._invitations.create(email, book.id, inviter.id, role)
        except DuplicateRecordError:
            msg = "This email has already been invited to this cookbook"
            raise AlreadyInvitedError(msg) from None

        email_sent = await self._notify(
            inviter,
            book,
            email=email,
            role=role,
            accept_url=f"{self._app_url}/signup?invitation={invitation.invitation_token}",
            is_pending=True,
        )
        logger.info(
            "Pending invitation created",
            book_id=str(book.id),
            role=role,
            email_sent=email_sent,
        )
        return InviteResponse(
            is_pending=True,
            email_sent=email_sent,
            message=f"Invitation sent to {email}. They'll join once they sign up.",
        )

    async def _add_existing_user(
        self,
        inviter: CurrentUser,
        book: CookbookData,
        invitee_id: UUID,
        email: str,
        role: str,
    ) -> InviteResponse:
        try:
            await self._cookbooks.add_member(book.id, invitee_id, role, inviter.id)
        except DuplicateRecordError:
            msg = "User is already a member of this cookbook"
            raise AlreadyMemberError(msg) from None

        email_sent = await self._notify(
            inviter,
            book,
            email=email,
            role=role,
            accept_url=f"{self._app_url}/cookbooks/{book.id}/accept",
            is_pending=False,
        )
        logger.info(
            "Member added to cookbook",
            book_id=str(book.id),
            member_id=str(invitee_id),
            role=role,
            email_sent=email_sent,
        )
        return InviteResponse(
            is_pending=False,
            email_sent=email_sent,
            message=f"{email} has been added to {book.name}",
        )

    async def _notify(
        self,
        inviter: CurrentUser,
        book: CookbookData,
        *,
        email: str,
        role: str,
        accept_url: str,
        is_pending: bool,
    ) -> bool:
        if self._email is None:
            logger.warning("Email client unavailable - invitation email skipped")
            return False
        result = await self._email.send_cookbook_invitation(
            to=email,
            inviter_name=inviter.display_name,
            cookbook_name=book.name,
            role=role,
            accept_url=accept_url,
            is_pending=is_pending,
            recipes_count=book.recipe_count,
        )
        return result.sent

    # -------------------------------------------------------------------------
    # Accepting
    # -------------------------------------------------------------------------

    async def details(self, token: str) -> InvitationDetailsResponse:
        """Describe a pending invitation for the sign-up page.

        Raises:
            InvitationNotFoundError: If the token is unknown.
            InvitationAcceptedError: If it was already accepted.
            InvitationExpiredError: If it has expired.
        """
        invitation = await self._invitations.get_by_token(token)
        if invitation is None:
            msg = "Invitation not found"
            raise InvitationNotFoundError(msg)
        if invitation.accepted_at is not None:
            msg = "This invitation has already been accepted"
            raise InvitationAcceptedError(msg)
        if _is_expired(invitation, datetime.now(UTC)):
            msg = "This invitation has expired"
            raise InvitationExpiredError(msg)

        return InvitationDetailsResponse(
            email=invitation.email,
            cookbook_name=invitation.book_name or "a cookbook",
            role=invitation.role,
        )

    async def accept(self, user: CurrentUser, token: str) -> AcceptInvitationResponse:
        """Accept one invitation on behalf of the signed-in user.

        Raises:
            InvitationNotFoundError: If the token is unknown or already used.
            InvitationEmailMismatchError: If it was sent to another address.
            InvitationExpiredError: If it has expired.
        """
        invitation = await self._invitations.get_by_token(token)
        if invitation is None or invitation.accepted_at is not None:
            msg = "Invitation not found or already accepted"
            raise InvitationNotFoundError(msg)
        if (user.email or "").strip().lower() != invitation.email.strip().lower():
            msg = "This invitation was sent to a different email address"
            raise InvitationEmailMismatchError(msg)
        if _is_expired(invitation, datetime.now(UTC)):
            msg = "This invitation has expired"
            raise InvitationExpiredError(msg)

        await self._join(user.id, invitation)
        logger.info("Invitation accepted", book_id=str(invitation.book_id))
        return AcceptInvitationResponse(
            book_id=invitation.book_id,
            cookbook_name=invitation.book_name,
        )

    async def accept_pending(self, user: CurrentUser) -> int:
        """Accept every open invitation addressed to the user's email.

        Returns:
            How many invitations were accepted.
        """
        if not user.email:
            return 0
        invitations = await self._invitations.list_open_for_email(user.email)
        for invitation in invitations:
            await self._join(user.id, invitation)
        if invitations:
            logger.info("Pending invitations accepted", count=len(invitations))
        return len(invitations)

    async def _join(self, user_id: UUID, invitation: PendingInvitationData) -> None:
        try:
            await self._cookbooks.add_member(
                invitation.book_id, user_id, invitation.role, invitation.invited_by
            )
        except DuplicateRecordError:
            logger.debug("Already a member", book_id=str(invitation.book_id))
        await self._invitations.mark_accepted(invitation.id)
