"""
SQL dialects supported by modelsync.

A dialect owns the mapping from a field's primitive kind to a logical column
type, the bound-parameter placeholder and the auto-increment primary key
used for junction tables.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

from .enums import DBType
from .errors import ConfigurationError

# Primitive kinds produced by modelsync.fields.
STRING = "string"
INT = "int"
INT8 = "int8"
INT16 = "int16"
INT32 = "int32"
INT64 = "int64"
FLOAT32 = "float32"
FLOAT64 = "float64"
BOOL = "bool"
TIME = "time"
BYTES = "bytes"
UNKNOWN = "unknown"


@dataclass(frozen=True)
class Dialect:
    """Dialect-specific rendering rules."""

    name: str
    types: Dict[str, DBType]
    fallback: DBType
    placeholder: str
    auto_pk: str
    aliases: tuple = field(default_factory=tuple)

    def column_type(self, kind: str) -> str:
        """Return the logical column type for a primitive kind."""
        return self.types.get(kind, self.fallback).value


MYSQL = Dialect(
    name="mysql",
    types={
        STRING: DBType.VARCHAR,
        INT: DBType.INT,
        BOOL: DBType.BOOLEAN,
        INT8: DBType.TINYINT,
        INT16: DBType.SMALLINT,
        INT32: DBType.INT,
        INT64: DBType.BIGINT,
        FLOAT32: DBType.FLOAT,
        FLOAT64: DBType.DOUBLE,
        TIME: DBType.DATETIME,
        BYTES: DBType.BLOB,
    },
    fallback=DBType.VARCHAR,
    placeholder="%s",
    auto_pk="BIGINT PRIMARY KEY AUTO_INCREMENT",
    aliases=("mysql", "mariadb", "mssql", "sqlserver"),
)

SQLITE = Dialect(
    name="sqlite",
    types={
        STRING: DBType.TEXT,
        INT: DBType.INTEGER,
        BOOL: DBType.BOOLEAN,
        INT8: DBType.INTEGER,
        INT16: DBType.INTEGER,
        INT32: DBType.INTEGER,
        INT64: DBType.INTEGER,
        FLOAT32: DBType.FLOAT,
        FLOAT64: DBType.FLOAT,
        TIME: DBType.DATETIME,
        BYTES: DBType.BLOB,
    },
    fallback=DBType.TEXT,
    placeholder="?",
    auto_pk="INTEGER PRIMARY KEY AUTOINCREMENT",
    aliases=("sqlite", "sqlite3"),
)

_DIALECTS = {alias: dialect for dialect in (MYSQL, SQLITE) for alias in dialect.aliases}


def get_dialect(name: str) -> Dialect:
    """Look up a dialect by name (``mysql``, ``mariadb``, ``sqlite``, ...).

    Raises:
        ConfigurationError: If the dialect is not supported
    """
    try:
        return _DIALECTS[name.lower()]
    except KeyError:
        raise ConfigurationError(
            f"Unsupported dialect: {name}. Supported: {', '.join(sorted(_DIALECTS))}"
        ) from None


def dialect_for_url(url: str) -> Dialect:
    """Pick the dialect matching a SQLAlchemy URL's backend."""
    backend = url.split(":", 1)[0].split("+", 1)[0]
    return get_dialect(backend)
