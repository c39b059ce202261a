"""AI usage reporting endpoint."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from recipe_keeper.api.dependencies import get_usage_repository
from recipe_keeper.auth.dependencies import CurrentUser, get_current_user
from recipe_keeper.database.repositories.usage import UsageRepository  # noqa: TC001
from recipe_keeper.schemas.ai import UsageStatsResponse
from recipe_keeper.services.usage import summarize_usage


router = APIRouter(prefix="/usage", tags=["Usage"])


@router.get(
    "/stats",
    response_model=UsageStatsResponse,
    summary="Your AI usage",
    description="Token counts and estimated cost over the last `days` days.",
)
async def get_usage_stats(
    user: Annotated[CurrentUser, Depends(get_current_user)],
    usage: Annotated[UsageRepository, Depends(get_usage_repository)],
    days: Annotated[int, Query(ge=1, le=365)] = 30,
) -> UsageStatsResponse:
    since = datetime.now(UTC) - timedelta(days=days)
    rows = await usage.list_since(user.id, since)
    return summarize_usage(rows, days)
