"""
modelsync

A lightweight ORM for dataclass models with automatic schema migrations.
"""

import importlib.metadata

__version__ = importlib.metadata.version("modelsync")

from .database import Database, ExecResult, is_duplicate_key_error
from .differ import SchemaDiff, diff_schemas
from .enums import DBType, Operator, RelationKind
from .errors import (
    ConfigurationError,
    MigrationError,
    ModelDefinitionError,
    ModelSyncError,
    NoChangesError,
    QueryError,
    SnapshotIOError,
    SnapshotNameError,
    StatementError,
    TagError,
)
from .fields import Float32, Int8, Int16, Int32, Int64, db_field
from .migrations import MigrationResult, MigrationRunner
from .modelset import ModelSet
from .queries import Filter, Filters, QuerySet
from .schema import Column, Migration, Relation, Table

__all__ = [
    "Column",
    "ConfigurationError",
    "DBType",
    "Database",
    "ExecResult",
    "Filter",
    "Filters",
    "Float32",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "Migration",
    "MigrationError",
    "MigrationResult",
    "MigrationRunner",
    "ModelDefinitionError",
    "ModelSet",
    "ModelSyncError",
    "NoChangesError",
    "Operator",
    "QueryError",
    "QuerySet",
    "Relation",
    "RelationKind",
    "SchemaDiff",
    "SnapshotIOError",
    "SnapshotNameError",
    "StatementError",
    "Table",
    "TagError",
    "db_field",
    "diff_schemas",
    "is_duplicate_key_error",
]
