"""Unit tests for InvitationService.

Tests cover:
- Inviting existing users and people without an account
- Permission and duplicate checks
- Invitation details and acceptance
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest
from freezegun import freeze_time

from recipe_keeper.auth.dependencies import CurrentUser
from recipe_keeper.database.exceptions import DuplicateRecordError
from recipe_keeper.services.email.client import EmailResult
from recipe_keeper.services.invitations import (
    AlreadyInvitedError,
    AlreadyMemberError,
    CookbookNotFoundError,
    InvitationAcceptedError,
    InvitationEmailMismatchError,
    InvitationExpiredError,
    InvitationNotFoundError,
    InvitationService,
    InvitePermissionError,
)
from tests.conftest import BOOK_ID, FIXED_NOW, OTHER_USER_ID
from tests.factories.records import (
    CookbookDataFactory,
    PendingInvitationFactory,
    ProfileDataFactory,
)


pytestmark = pytest.mark.unit

APP_URL = "https://recipes.example.com/"


@pytest.fixture
def cookbooks() -> AsyncMock:
    repository = AsyncMock()
    repository.get_role.return_value = "owner"
    repository.get_for_user.return_value = CookbookDataFactory.build()
    return repository


@pytest.fixture
def invitations() -> AsyncMock:
    repository = AsyncMock()
    repository.create.return_value = PendingInvitationFactory.build(
        invitation_token="tok123"
    )
    return repository


@pytest.fixture
def profiles() -> AsyncMock:
    repository = AsyncMock()
    repository.find_by_email.return_value = None
    return repository


@pytest.fixture
def email() -> AsyncMock:
    client = AsyncMock()
    client.send_cookbook_invitation.return_value = EmailResult(sent=True)
    return client


@pytest.fixture
def service(
    cookbooks: AsyncMock,
    invitations: AsyncMock,
    profiles: AsyncMock,
    email: AsyncMock,
) -> InvitationService:
    return InvitationService(cookbooks, invitations, profiles, email, APP_URL)


@pytest.fixture
def invitee() -> CurrentUser:
    return CurrentUser(id=OTHER_USER_ID, email="Nephew@Example.com")


class TestInvite:
    """Tests for InvitationService.invite."""

    async def test_new_user_gets_pending_invitation(
        self,
        service: InvitationService,
        user: CurrentUser,
        invitations: AsyncMock,
        email: AsyncMock,
    ) -> None:
        response = await service.invite(user, BOOK_ID, "nephew@example.com", "viewer")

        assert response.is_pending is True
        assert response.email_sent is True
        invitations.create.assert_awaited_once_with(
            "nephew@example.com", BOOK_ID, user.id, "viewer"
        )
        kwargs = email.send_cookbook_invitation.await_args.kwargs
        assert kwargs["accept_url"] == (
            "https://recipes.example.com/signup?invitation=tok123"
        )
        assert kwargs["inviter_name"] == "Grandma Rose"
        assert kwargs["recipes_count"] == 3
        assert kwargs["is_pending"] is True

    async def test_existing_user_added_directly(
        self,
        service: InvitationService,
        user: CurrentUser,
        cookbooks: AsyncMock,
        profiles: AsyncMock,
        email: AsyncMock,
    ) -> None:
        profile = ProfileDataFactory.build(id=OTHER_USER_ID)
        profiles.find_by_email.return_value = profile

        response = await service.invite(user, BOOK_ID, "nephew@example.com", "editor")

        assert response.is_pending is False
        assert "Sunday Dinners" in response.message
        cookbooks.add_member.assert_awaited_once_with(
            BOOK_ID, OTHER_USER_ID, "editor", user.id
        )
        kwargs = email.send_cookbook_invitation.await_args.kwargs
        assert kwargs["accept_url"].endswith(f"/cookbooks/{BOOK_ID}/accept")

    @pytest.mark.parametrize("role", ["viewer", None])
    async def test_viewers_cannot_invite(
        self,
        service: InvitationService,
        user: CurrentUser,
        cookbooks: AsyncMock,
        role: str | None,
    ) -> None:
        cookbooks.get_role.return_value = role

        with pytest.raises(InvitePermissionError):
            await service.invite(user, BOOK_ID, "x@example.com", "viewer")

    async def test_missing_cookbook(
        self, service: InvitationService, user: CurrentUser, cookbooks: AsyncMock
    ) -> None:
        cookbooks.get_for_user.return_value = None

        with pytest.raises(CookbookNotFoundError):
            await service.invite(user, BOOK_ID, "x@example.com", "viewer")

    async def test_already_invited(
        self, service: InvitationService, user: CurrentUser, invitations: AsyncMock
    ) -> None:
        invitations.create.side_effect = DuplicateRecordError("pending_invitations")

        with pytest.raises(AlreadyInvitedError):
            await service.invite(user, BOOK_ID, "x@example.com", "viewer")

    async def test_already_member(
        self,
        service: InvitationService,
        user: CurrentUser,
        cookbooks: AsyncMock,
        profiles: AsyncMock,
    ) -> None:
        profiles.find_by_email.return_value = ProfileDataFactory.build()
        cookbooks.add_member.side_effect = DuplicateRecordError("book_members")

        with pytest.raises(AlreadyMemberError):
            await service.invite(user, BOOK_ID, "x@example.com", "viewer")

    async def test_without_email_client(
        self,
        cookbooks: AsyncMock,
        invitations: AsyncMock,
        profiles: AsyncMock,
        user: CurrentUser,
    ) -> None:
        """Should still invite, reporting that no email went out."""
        service = InvitationService(cookbooks, invitations, profiles, None, APP_URL)

        response = await service.invite(user, BOOK_ID, "x@example.com", "viewer")

        assert response.email_sent is False
        invitations.create.assert_awaited_once()


class TestDetails:
    """Tests for InvitationService.details."""

    async def test_open_invitation(
        self, service: InvitationService, invitations: AsyncMock
    ) -> None:
        invitations.get_by_token.return_value = PendingInvitationFactory.build()

        details = await service.details("tok")

        assert details.email == "nephew@example.com"
        assert details.cookbook_name == "Sunday Dinners"
        assert details.role == "viewer"

    async def test_unknown_token(
        self, service: InvitationService, invitations: AsyncMock
    ) -> None:
        invitations.get_by_token.return_value = None

        with pytest.raises(InvitationNotFoundError):
            await service.details("nope")

    async def test_accepted(
        self, service: InvitationService, invitations: AsyncMock
    ) -> None:
        invitations.get_by_token.return_value = PendingInvitationFactory.build(
            accepted_at=datetime.now(UTC)
        )

        with pytest.raises(InvitationAcceptedError):
            await service.details("tok")

    async def test_expired(
        self, service: InvitationService, invitations: AsyncMock
    ) -> None:
        invitations.get_by_token.return_value = PendingInvitationFactory.build(
            expires_at=datetime.now(UTC) - timedelta(minutes=1)
        )

        with pytest.raises(InvitationExpiredError):
            await service.details("tok")

    async def test_expiry_boundary(
        self, service: InvitationService, invitations: AsyncMock
    ) -> None:
        """Should stay valid up to and including its expiry instant."""
        invitations.get_by_token.return_value = PendingInvitationFactory.build(
            expires_at=FIXED_NOW
        )

        with freeze_time(FIXED_NOW):
            details = await service.details("tok")
        with freeze_time(FIXED_NOW + timedelta(seconds=1)), pytest.raises(
            InvitationExpiredError
        ):
            await service.details("tok")

        assert details.role == "viewer"


class TestAccept:
    """Tests for accept and accept_pending."""

    async def test_accept_matches_email_case_insensitively(
        self,
        service: InvitationService,
        invitations: AsyncMock,
        cookbooks: AsyncMock,
        invitee: CurrentUser,
    ) -> None:
        invitation = PendingInvitationFactory.build()
        invitations.get_by_token.return_value = invitation

        response = await service.accept(invitee, "tok")

        assert response.book_id == BOOK_ID
        assert response.cookbook_name == "Sunday Dinners"
        cookbooks.add_member.assert_awaited_once_with(
            BOOK_ID, OTHER_USER_ID, "viewer", invitation.invited_by
        )
        invitations.mark_accepted.assert_awaited_once_with(invitation.id)

    async def test_accept_other_email(
        self, service: InvitationService, invitations: AsyncMock, user: CurrentUser
    ) -> None:
        invitations.get_by_token.return_value = PendingInvitationFactory.build()

        with pytest.raises(InvitationEmailMismatchError):
            await service.accept(user, "tok")

    async def test_accept_used_token(
        self,
        service: InvitationService,
        invitations: AsyncMock,
        invitee: CurrentUser,
    ) -> None:
        invitations.get_by_token.return_value = PendingInvitationFactory.build(
            accepted_at=datetime.now(UTC)
        )

        with pytest.raises(InvitationNotFoundError):
            await service.accept(invitee, "tok")

    async def test_accept_expired(
        self,
        service: InvitationService,
        invitations: AsyncMock,
        invitee: CurrentUser,
    ) -> None:
        invitations.get_by_token.return_value = PendingInvitationFactory.build(
            expires_at=datetime.now(UTC) - timedelta(days=1)
        )

        with pytest.raises(InvitationExpiredError):
            await service.accept(invitee, "tok")

    async def test_accept_when_already_member(
        self,
        service: InvitationService,
        invitations: AsyncMock,
        cookbooks: AsyncMock,
        invitee: CurrentUser,
    ) -> None:
        """Should still mark the invitation accepted."""
        invitation = PendingInvitationFactory.build()
        invitations.get_by_token.return_value = invitation
        cookbooks.add_member.side_effect = DuplicateRecordError("book_members")

        await service.accept(invitee, "tok")

        invitations.mark_accepted.assert_awaited_once_with(invitation.id)

    async def test_accept_pending(
        self,
        service: InvitationService,
        invitations: AsyncMock,
        invitee: CurrentUser,
    ) -> None:
        invitations.list_open_for_email.return_value = PendingInvitationFactory.batch(2)

        accepted = await service.accept_pending(invitee)

        assert accepted == 2
        assert invitations.mark_accepted.await_count == 2

    async def test_accept_pending_without_email(
        self, service: InvitationService, invitations: AsyncMock
    ) -> None:
        accepted = await service.accept_pending(CurrentUser(id=OTHER_USER_ID))

        assert accepted == 0
        invitations.list_open_for_email.assert_not_awaited()
