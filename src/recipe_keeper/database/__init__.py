"""PostgreSQL database layer.

This module provides:
- Connection pool management
- Repository classes for data access
- Health check utilities
"""

from recipe_keeper.database.connection import (
    check_database_health,
    close_database_pool,
    get_database_pool,
    init_database_pool,
)
from recipe_keeper.database.exceptions import (
    DuplicateRecordError,
    RepositoryError,
    StoredProcedureMissingError,
)


__all__ = [
    "DuplicateRecordError",
    "RepositoryError",
    "StoredProcedureMissingError",
    "check_database_health",
    "close_database_pool",
    "get_database_pool",
    "init_database_pool",
]
