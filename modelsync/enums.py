"""
Canonical enums for modelsync.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class DBType(str, Enum):
    """Logical column types.

    INTEGER is used only by the SQLite type map, where integer primary keys
    alias the rowid. The MySQL family never produces it.
    """

    VARCHAR = "VARCHAR"
    TEXT = "TEXT"
    INT = "INT"
    INTEGER = "INTEGER"
    BOOLEAN = "BOOLEAN"
    TINYINT = "TINYINT"
    SMALLINT = "SMALLINT"
    BIGINT = "BIGINT"
    FLOAT = "FLOAT"
    DOUBLE = "DOUBLE"
    DATETIME = "DATETIME"
    BLOB = "BLOB"
    FOREIGN_KEY = "FOREIGN KEY"


class RelationKind(str, Enum):
    """Kinds of relation between two tables.

    FOREIGN_KEY is a many-to-many link through a junction table,
    ONE_TO_ONE a foreign-key constraint on the "from" table. ONE_TO_MANY is
    recognised but skipped when added to or removed from an existing table.
    """

    FOREIGN_KEY = "FOREIGN_KEY"
    ONE_TO_ONE = "ONE_TO_ONE"
    ONE_TO_MANY = "ONE_TO_MANY"

    @classmethod
    def parse(cls, value: str) -> Optional["RelationKind"]:
        """Map an annotation spelling (``FK``, ``onetoone``, ...) to a kind."""
        return _RELATION_ALIASES.get(value.strip().lower())


_RELATION_ALIASES = {
    "fk": RelationKind.FOREIGN_KEY,
    "foreignkey": RelationKind.FOREIGN_KEY,
    "foreign_key": RelationKind.FOREIGN_KEY,
    "1t1": RelationKind.ONE_TO_ONE,
    "onetoone": RelationKind.ONE_TO_ONE,
    "one_to_one": RelationKind.ONE_TO_ONE,
    "otm": RelationKind.ONE_TO_MANY,
    "onetomany": RelationKind.ONE_TO_MANY,
    "one_to_many": RelationKind.ONE_TO_MANY,
}


class Operator(str, Enum):
    """Comparison operators accepted by query filters."""

    IN = "IN"
    EQ = "="
    NE = "!="
    GT = ">"
    GTE = ">="
    LT = "<"
    LTE = "<="
    LIKE = "LIKE"
