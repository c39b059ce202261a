"""AI usage tracking and reporting."""

from recipe_keeper.services.usage.stats import summarize_usage
from recipe_keeper.services.usage.tracker import (
    estimate_cost,
    month_key,
    track_api_usage,
    track_usage,
)


__all__ = [
    "estimate_cost",
    "month_key",
    "summarize_usage",
    "track_api_usage",
    "track_usage",
]
