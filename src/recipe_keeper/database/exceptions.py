"""Errors raised by repositories."""

from __future__ import annotations


class RepositoryError(Exception):
    """Base class for data-access errors."""


class DuplicateRecordError(RepositoryError):
    """An insert hit a unique constraint (SQLSTATE 23505)."""

    def __init__(self, table: str, constraint: str | None = None) -> None:
        self.table = table
        self.constraint = constraint
        super().__init__(f"Duplicate record in {table}")


class StoredProcedureMissingError(RepositoryError):
    """A stored procedure the service relies on has not been migrated."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Stored procedure {name} does not exist")
