"""Invitation lookup and acceptance endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from recipe_keeper.api.dependencies import (
    enforce_action_limit,
    get_action_limiter,
    get_invitation_service,
)
from recipe_keeper.auth.dependencies import CurrentUser, get_current_user
from recipe_keeper.cache.rate_limit import ActionRateLimiter  # noqa: TC001
from recipe_keeper.core.middleware.logging import get_client_ip
from recipe_keeper.schemas.cookbook import (
    AcceptInvitationRequest,
    AcceptInvitationResponse,
    AcceptPendingResponse,
    InvitationDetailsResponse,
)
from recipe_keeper.services.invitations import (
    InvitationAcceptedError,
    InvitationEmailMismatchError,
    InvitationExpiredError,
    InvitationNotFoundError,
    InvitationService,
)


router = APIRouter(prefix="/invitations", tags=["Invitations"])


def _not_found(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"error": "INVITATION_NOT_FOUND", "message": message},
    )


def _gone(code: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_410_GONE,
        detail={"error": code, "message": message},
    )


@router.get(
    "/details",
    response_model=InvitationDetailsResponse,
    summary="Look up an invitation",
    description="Public. Used by the sign-up page to show what was shared.",
    responses={
        400: {"description": "Token missing"},
        404: {"description": "Unknown token"},
        410: {"description": "Already accepted or expired"},
        429: {"description": "Too many lookups"},
    },
)
async def get_invitation_details(
    request: Request,
    service: Annotated[InvitationService, Depends(get_invitation_service)],
    limiter: Annotated[ActionRateLimiter | None, Depends(get_action_limiter)],
    token: Annotated[str | None, Query()] = None,
) -> InvitationDetailsResponse:
    await enforce_action_limit(limiter, "auth", get_client_ip(request))

    if not token:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "BAD_REQUEST", "message": "Token is required"},
        )

    try:
        return await service.details(token)
    except InvitationNotFoundError as e:
        raise _not_found(str(e)) from None
    except InvitationAcceptedError as e:
        raise _gone("INVITATION_ACCEPTED", str(e)) from None
    except InvitationExpiredError as e:
        raise _gone("INVITATION_EXPIRED", str(e)) from None


@router.post(
    "/accept",
    response_model=AcceptInvitationResponse,
    summary="Accept an invitation",
    responses={
        403: {"description": "Invitation was sent to another email address"},
        404: {"description": "Unknown or already accepted"},
        410: {"description": "Expired"},
    },
)
async def accept_invitation(
    body: AcceptInvitationRequest,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    service: Annotated[InvitationService, Depends(get_invitation_service)],
) -> AcceptInvitationResponse:
    try:
        return await service.accept(user, body.token)
    except InvitationNotFoundError as e:
        raise _not_found(str(e)) from None
    except InvitationEmailMismatchError as e:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "EMAIL_MISMATCH", "message": str(e)},
        ) from None
    except InvitationExpiredError as e:
        raise _gone("INVITATION_EXPIRED", str(e)) from None


@router.post(
    "/accept-pending",
    response_model=AcceptPendingResponse,
    summary="Accept every open invitation for your email",
    description="Called after login so invitations sent before sign-up take effect.",
)
async def accept_pending_invitations(
    user: Annotated[CurrentUser, Depends(get_current_user)],
    service: Annotated[InvitationService, Depends(get_invitation_service)],
) -> AcceptPendingResponse:
    accepted = await service.accept_pending(user)
    return AcceptPendingResponse(accepted=accepted)
