"""Cookbook and membership endpoints.

A cookbook has exactly one owner. Other members are editors or viewers;
only the owner can change the book itself or manage its members.
"""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, Response, status

from recipe_keeper.api.dependencies import (
    enforce_action_limit,
    get_action_limiter,
    get_cookbook_repository,
    get_invitation_service,
    require_book_permission,
)
from recipe_keeper.auth.dependencies import CurrentUser, get_current_user
from recipe_keeper.auth.permissions import BookPermission, BookRole
from recipe_keeper.cache.rate_limit import ActionRateLimiter  # noqa: TC001
from recipe_keeper.database.repositories.cookbooks import (
    CookbookData,
    CookbookRepository,
    MemberData,
)
from recipe_keeper.observability.logging import get_logger
from recipe_keeper.schemas.cookbook import (
    CookbookCreateRequest,
    CookbookDetailResponse,
    CookbookListResponse,
    CookbookResponse,
    CookbookUpdateRequest,
    InviteRequest,
    InviteResponse,
    MemberResponse,
    MemberRoleRequest,
)
from recipe_keeper.services.invitations import (
    AlreadyInvitedError,
    AlreadyMemberError,
    CookbookNotFoundError,
    InvitationService,
    InvitePermissionError,
)


logger = get_logger(__name__)

router = APIRouter(tags=["Cookbooks"])

BookId = Annotated[UUID, Path(alias="bookId", description="Cookbook ID")]
MemberId = Annotated[UUID, Path(alias="memberId", description="Membership ID")]


def _book_not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"error": "COOKBOOK_NOT_FOUND", "message": "Cookbook not found"},
    )


def _to_response(book: CookbookData) -> CookbookResponse:
    return CookbookResponse.model_validate(book.model_dump())


def _member_response(member: MemberData) -> MemberResponse:
    return MemberResponse.model_validate(member.model_dump())


async def _book_member(
    cookbooks: CookbookRepository, book_id: UUID, member_id: UUID
) -> MemberData:
    member = await cookbooks.get_member(member_id)
    if member is None or member.book_id != book_id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "MEMBER_NOT_FOUND", "message": "Member not found"},
        )
    return member


def _owner_role_change() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={
            "error": "INVALID_ROLE_CHANGE",
            "message": "Members cannot be changed to or from the owner role",
        },
    )


# =============================================================================
# Cookbooks
# =============================================================================


@router.get(
    "/cookbooks",
    response_model=CookbookListResponse,
    summary="List your cookbooks",
    description="Books you own (oldest first), then books you are a member of.",
)
async def list_cookbooks(
    user: Annotated[CurrentUser, Depends(get_current_user)],
    cookbooks: Annotated[CookbookRepository, Depends(get_cookbook_repository)],
) -> CookbookListResponse:
    books = await cookbooks.list_for_user(user.id)
    seen: set[UUID] = set()
    unique: list[CookbookResponse] = []
    for book in books:
        if book.id in seen:
            continue
        seen.add(book.id)
        unique.append(_to_response(book))
    return CookbookListResponse(cookbooks=unique)


@router.post(
    "/cookbooks",
    response_model=CookbookResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a cookbook",
)
async def create_cookbook(
    body: CookbookCreateRequest,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    cookbooks: Annotated[CookbookRepository, Depends(get_cookbook_repository)],
) -> CookbookResponse:
    book = await cookbooks.create(user.id, body.name, body.description or None)
    logger.info("Cookbook created", book_id=str(book.id))
    return _to_response(book)


@router.get(
    "/cookbooks/{bookId}",
    response_model=CookbookDetailResponse,
    summary="Get a cookbook with its members",
    responses={404: {"description": "Cookbook not found or you are not a member"}},
)
async def get_cookbook(
    book_id: BookId,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    cookbooks: Annotated[CookbookRepository, Depends(get_cookbook_repository)],
) -> CookbookDetailResponse:
    book = await cookbooks.get_for_user(book_id, user.id)
    if book is None or book.user_role is None:
        raise _book_not_found()
    members = await cookbooks.list_members(book_id)
    return CookbookDetailResponse(
        cookbook=_to_response(book),
        members=[_member_response(member) for member in members],
    )


@router.patch(
    "/cookbooks/{bookId}",
    response_model=CookbookResponse,
    summary="Update a cookbook",
    description="Owner only.",
)
async def update_cookbook(
    book_id: BookId,
    body: CookbookUpdateRequest,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    cookbooks: Annotated[CookbookRepository, Depends(get_cookbook_repository)],
) -> CookbookResponse:
    await require_book_permission(
        cookbooks,
        book_id,
        user.id,
        BookPermission.EDIT_BOOK,
        message="Only the owner can edit this cookbook",
    )
    await cookbooks.update(
        book_id, user.id, body.model_dump(exclude_unset=True, by_alias=False)
    )
    book = await cookbooks.get_for_user(book_id, user.id)
    if book is None:
        raise _book_not_found()
    return _to_response(book)


@router.delete(
    "/cookbooks/{bookId}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a cookbook",
    description="Owner only.",
)
async def delete_cookbook(
    book_id: BookId,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    cookbooks: Annotated[CookbookRepository, Depends(get_cookbook_repository)],
) -> Response:
    await require_book_permission(
        cookbooks,
        book_id,
        user.id,
        BookPermission.DELETE_BOOK,
        message="Only the owner can delete this cookbook",
    )
    await cookbooks.delete(book_id, user.id)
    logger.info("Cookbook deleted", book_id=str(book_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =============================================================================
# Members
# =============================================================================


@router.patch(
    "/cookbooks/{bookId}/members/{memberId}",
    response_model=MemberResponse,
    summary="Change a member's role",
    description="Owner only. The owner role cannot be granted or taken away.",
)
async def update_member_role(
    book_id: BookId,
    member_id: MemberId,
    body: MemberRoleRequest,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    cookbooks: Annotated[CookbookRepository, Depends(get_cookbook_repository)],
) -> MemberResponse:
    await require_book_permission(
        cookbooks,
        book_id,
        user.id,
        BookPermission.MANAGE_MEMBERS,
        message="Only the owner can manage members",
    )
    member = await _book_member(cookbooks, book_id, member_id)
    if BookRole.OWNER in (member.role, body.role):
        raise _owner_role_change()

    await cookbooks.update_member_role(member_id, body.role)
    logger.info("Member role changed", book_id=str(book_id), role=body.role)
    return _member_response(member.model_copy(update={"role": body.role}))


@router.delete(
    "/cookbooks/{bookId}/members/{memberId}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a member",
    description="Owner only. The owner cannot be removed.",
)
async def remove_member(
    book_id: BookId,
    member_id: MemberId,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    cookbooks: Annotated[CookbookRepository, Depends(get_cookbook_repository)],
) -> Response:
    await require_book_permission(
        cookbooks,
        book_id,
        user.id,
        BookPermission.MANAGE_MEMBERS,
        message="Only the owner can manage members",
    )
    member = await _book_member(cookbooks, book_id, member_id)
    if member.role == BookRole.OWNER:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "CANNOT_REMOVE_OWNER",
                "message": "The cookbook owner cannot be removed",
            },
        )

    await cookbooks.remove_member(member_id)
    logger.info("Member removed", book_id=str(book_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/cookbooks/{bookId}/leave",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Leave a cookbook",
    description="Any member except the owner.",
)
async def leave_cookbook(
    book_id: BookId,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    cookbooks: Annotated[CookbookRepository, Depends(get_cookbook_repository)],
) -> Response:
    role = await cookbooks.get_role(book_id, user.id)
    if role is None:
        raise _book_not_found()
    if role == BookRole.OWNER:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "OWNER_CANNOT_LEAVE",
                "message": "The owner cannot leave their own cookbook",
            },
        )
    await cookbooks.leave(book_id, user.id)
    logger.info("Left cookbook", book_id=str(book_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =============================================================================
# Invitations
# =============================================================================


@router.post(
    "/cookbooks/{bookId}/invite",
    response_model=InviteResponse,
    summary="Invite someone to a cookbook",
    description=(
        "Adds an existing user straight away, or emails a sign-up link to an "
        "address without an account. Limited to 10 invitations an hour."
    ),
    responses={
        400: {"description": "Already invited or already a member"},
        403: {"description": "Only owners and editors can invite"},
        404: {"description": "Cookbook not found"},
        429: {"description": "Too many invitations"},
    },
)
async def invite_member(
    book_id: BookId,
    body: InviteRequest,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    service: Annotated[InvitationService, Depends(get_invitation_service)],
    limiter: Annotated[ActionRateLimiter | None, Depends(get_action_limiter)],
) -> InviteResponse:
    await enforce_action_limit(limiter, "invitation", str(user.id))

    try:
        return await service.invite(user, book_id, str(body.email), body.role)
    except InvitePermissionError as e:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "FORBIDDEN", "message": str(e)},
        ) from None
    except CookbookNotFoundError:
        raise _book_not_found() from None
    except (AlreadyInvitedError, AlreadyMemberError) as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "ALREADY_INVITED", "message": str(e)},
        ) from None
