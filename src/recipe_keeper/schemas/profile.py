"""Profile schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field

from recipe_keeper.schemas.base import APIRequest, APIResponse


class ProfileResponse(APIResponse):
    id: UUID
    email: str | None = None
    full_name: str | None = None
    created_at: datetime | None = None


class ProfileUpdateRequest(APIRequest):
    full_name: str = Field(..., min_length=1, max_length=100)
