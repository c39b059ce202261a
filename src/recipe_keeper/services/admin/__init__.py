"""Admin dashboard metrics and exports."""

from recipe_keeper.services.admin.export import metrics_csv, users_csv
from recipe_keeper.services.admin.metrics import (
    build_dashboard,
    load_dashboard,
    metric_windows,
    metrics_rows,
)


__all__ = [
    "build_dashboard",
    "load_dashboard",
    "metric_windows",
    "metrics_csv",
    "metrics_rows",
    "users_csv",
]
