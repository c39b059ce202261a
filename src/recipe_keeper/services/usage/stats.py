"""Aggregate ``api_usage`` rows into the usage dashboard."""

from __future__ import annotations

from typing import TYPE_CHECKING

from recipe_keeper.schemas.ai import (
    DailyUsage,
    ServiceUsage,
    UsageRecord,
    UsageStatsResponse,
)


if TYPE_CHECKING:
    from collections.abc import Sequence

    from recipe_keeper.database.repositories.usage import ApiUsageData


RECENT_LIMIT = 10


def summarize_usage(rows: Sequence[ApiUsageData], days: int) -> UsageStatsResponse:
    """Totals, per-service and per-day breakdowns, and the latest calls.

    Args:
        rows: Usage rows inside the window, in any order.
        days: Window length, echoed back to the caller.
    """
    by_service: dict[str, ServiceUsage] = {}
    by_day: dict[str, DailyUsage] = {}
    total_cost = 0.0
    total_tokens = 0
    total_imports = 0

    for row in rows:
        total_cost += row.estimated_cost
        total_tokens += row.total_tokens
        if "import" in row.operation:
            total_imports += 1

        service = by_service.setdefault(row.service, ServiceUsage())
        service.count += 1
        service.cost += row.estimated_cost
        service.tokens += row.total_tokens

        day = by_day.setdefault(row.created_at.date().isoformat(), DailyUsage())
        day.count += 1
        day.cost += row.estimated_cost

    recent = sorted(rows, key=lambda row: row.created_at, reverse=True)[:RECENT_LIMIT]
    return UsageStatsResponse(
        days=days,
        total_cost=round(total_cost, 6),
        total_tokens=total_tokens,
        total_imports=total_imports,
        by_service=by_service,
        by_day=dict(sorted(by_day.items())),
        recent_usage=[
            UsageRecord.model_validate(row.model_dump(exclude={"user_id"}))
            for row in recent
        ],
    )
