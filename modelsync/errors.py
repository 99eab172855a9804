"""
Error taxonomy for modelsync.

Configuration errors are fatal and never retried. Migration errors abort the
remainder of a run and leave the database and the snapshot store as they
were at the point of failure. ``NoChangesError`` is the "nothing to do"
sentinel of a migration run and is not a ``MigrationError``.
"""

from __future__ import annotations

from typing import Optional


class ModelSyncError(Exception):
    """Base class for every error raised by modelsync."""


class ConfigurationError(ModelSyncError):
    """Raised for unrecoverable configuration problems."""


class TagError(ConfigurationError):
    """Raised when a field annotation cannot be parsed.

    Attributes:
        field: Name of the offending field
        tag: The raw annotation string
    """

    def __init__(self, field: str, tag: str, message: str = "invalid tag"):
        self.field = field
        self.tag = tag
        super().__init__(f"{message} on field '{field}': {tag!r}")


class ModelDefinitionError(ConfigurationError):
    """Raised when a model cannot be described as a table."""


class SnapshotNameError(ConfigurationError):
    """Raised when a snapshot file name carries an unparseable timestamp."""

    def __init__(self, filename: str):
        self.filename = filename
        super().__init__(f"failed to parse migration file name: {filename}")


class MigrationError(ModelSyncError):
    """Raised when a migration run fails."""


class StatementError(MigrationError):
    """Raised when a DDL/DML statement fails during a migration run.

    Attributes:
        operation: Short description of what was attempted (e.g. "create table")
        target: Table, column (``table.column``) or relation (``from_to``) name
        statement: SQL text that failed, when known
    """

    def __init__(
        self,
        operation: str,
        target: str,
        cause: BaseException,
        statement: Optional[str] = None,
    ):
        self.operation = operation
        self.target = target
        self.statement = statement
        super().__init__(f"failed to {operation} {target}: {cause}")

    def to_dict(self) -> dict:
        """Convert to dict for JSON serialization."""
        return {
            "error": "statement_failed",
            "operation": self.operation,
            "target": self.target,
            "statement": self.statement,
            "message": str(self),
        }


class SnapshotIOError(MigrationError):
    """Raised when a snapshot file cannot be read, parsed or written."""


class NoChangesError(ModelSyncError):
    """Raised when a migration run found nothing to apply."""

    def __init__(self, message: str = "no migrations to run"):
        super().__init__(message)


class QueryError(ModelSyncError):
    """Raised when a query cannot be built from the given description."""
