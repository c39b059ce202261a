"""CSV exports for admins."""

from __future__ import annotations

import csv
import io
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from collections.abc import Iterable

    from recipe_keeper.database.repositories.admin import AdminUserRow


USER_COLUMNS = ("Email", "Name", "Status", "Plan Type", "Recipes", "Limit", "Joined")
METRIC_COLUMNS = ("Metric", "Value")


def to_csv(header: Iterable[str], rows: Iterable[Iterable[object]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(rows)
    return buffer.getvalue()


def user_rows(users: Iterable[AdminUserRow]) -> list[tuple[object, ...]]:
    """One export row per user; users without a subscription row are free."""
    return [
        (
            user.email or "",
            user.full_name or "",
            user.status or "free",
            user.plan_type or "free",
            user.recipe_count or 0,
            user.recipe_limit or 25,
            user.created_at.date().isoformat() if user.created_at else "",
        )
        for user in users
    ]


def users_csv(users: Iterable[AdminUserRow]) -> str:
    return to_csv(USER_COLUMNS, user_rows(users))


def metrics_csv(rows: Iterable[tuple[str, str]]) -> str:
    return to_csv(METRIC_COLUMNS, rows)
