"""Rating and comment schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field

from recipe_keeper.schemas.base import APIRequest, APIResponse


class RatingRequest(APIRequest):
    rating: int = Field(..., ge=1, le=5)


class RatingResponse(APIResponse):
    average_rating: float | None = None
    rating_count: int = 0
    user_rating: int | None = None


class CommentCreateRequest(APIRequest):
    content: str = Field(..., min_length=1, max_length=1000)
    parent_id: UUID | None = None


class CommentUpdateRequest(APIRequest):
    content: str = Field(..., min_length=1, max_length=1000)


class CommentResponse(APIResponse):
    """A comment with its replies nested beneath it."""

    id: UUID
    recipe_id: UUID
    user_id: UUID
    parent_id: UUID | None = None
    content: str
    author_name: str | None = None
    created_at: datetime
    updated_at: datetime | None = None
    replies: list[CommentResponse] = Field(default_factory=list)


class CommentThreadResponse(APIResponse):
    comments: list[CommentResponse]
    count: int
