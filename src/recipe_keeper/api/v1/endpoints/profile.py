"""Profile endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from recipe_keeper.api.dependencies import get_profile_repository
from recipe_keeper.auth.dependencies import CurrentUser, get_current_user
from recipe_keeper.database.repositories.profiles import (
    ProfileData,
    ProfileRepository,
)
from recipe_keeper.schemas.profile import ProfileResponse, ProfileUpdateRequest


router = APIRouter(prefix="/profile", tags=["Profile"])


def _profile_not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"error": "PROFILE_NOT_FOUND", "message": "Profile not found"},
    )


def _to_response(profile: ProfileData) -> ProfileResponse:
    return ProfileResponse.model_validate(profile.model_dump())


@router.get("", response_model=ProfileResponse, summary="Get your profile")
async def get_profile(
    user: Annotated[CurrentUser, Depends(get_current_user)],
    profiles: Annotated[ProfileRepository, Depends(get_profile_repository)],
) -> ProfileResponse:
    profile = await profiles.get(user.id)
    if profile is None:
        raise _profile_not_found()
    return _to_response(profile)


@router.patch("", response_model=ProfileResponse, summary="Update your name")
async def update_profile(
    body: ProfileUpdateRequest,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    profiles: Annotated[ProfileRepository, Depends(get_profile_repository)],
) -> ProfileResponse:
    profile = await profiles.update_full_name(user.id, body.full_name.strip())
    if profile is None:
        raise _profile_not_found()
    return _to_response(profile)
