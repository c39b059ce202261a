"""Best-effort AI usage accounting.

Tracking never fails the request that triggered it: errors are logged
and swallowed.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

import asyncpg

from recipe_keeper.observability.logging import get_logger


if TYPE_CHECKING:
    from uuid import UUID

    from recipe_keeper.database.repositories.usage import ApiUsageRecord, UsageRepository

logger = get_logger(__name__)


def month_key(now: datetime | None = None) -> str:
    """``YYYY-MM`` key of the month ``now`` falls in."""
    return (now or datetime.now(UTC)).strftime("%Y-%m")


def estimate_cost(
    input_tokens: int,
    output_tokens: int,
    *,
    input_per_million: float,
    output_per_million: float,
) -> float:
    """USD cost of a model call at per-million-token prices."""
    return (
        input_tokens * input_per_million / 1_000_000
        + output_tokens * output_per_million / 1_000_000
    )


async def track_api_usage(repository: UsageRepository, record: ApiUsageRecord) -> bool:
    """Insert one ``api_usage`` row.

    Returns:
        True if the row was written.
    """
    try:
        await repository.insert_api_usage(record)
    except (asyncpg.PostgresError, OSError, RuntimeError) as e:
        logger.warning(
            "Failed to track API usage",
            service=record.service,
            operation=record.operation,
            error=str(e),
        )
        return False
    return True


async def track_usage(
    repository: UsageRepository,
    user_id: UUID,
    feature: str,
    now: datetime | None = None,
    *,
    amount: int = 1,
) -> bool:
    """Add ``amount`` to the user's monthly counter for ``feature``.

    Returns:
        True if the counter was incremented.
    """
    try:
        await repository.increment_feature(
            user_id, month_key(now), feature, amount=amount
        )
    except (asyncpg.PostgresError, OSError, RuntimeError, ValueError) as e:
        logger.warning(
            "Failed to track feature usage",
            user_id=str(user_id),
            feature=feature,
            error=str(e),
        )
        return False
    return True
