"""
Database handle.

Owns the SQLAlchemy engine, the registry of models taking part in
migrations, and the model-level query helpers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

import structlog
from sqlalchemy import Engine, inspect
from sqlalchemy.engine import Row
from sqlalchemy.exc import DBAPIError

from .config import Settings, get_settings
from .dialects import Dialect, dialect_for_url, get_dialect
from .engine import create_database_engine
from .fields import (
    columns,
    get_value,
    new_model,
    resolve_model,
    scan,
    set_value,
    table_name,
)
from .modelset import ModelSet
from .queries import Filter, Filters, QuerySet, insert_query, update_query
from .relations import RelationService
from .schema import Migration
from .snapshots import create_snapshot_store

logger = structlog.get_logger()

MYSQL_DUPLICATE_ENTRY = 1062


@dataclass
class ExecResult:
    """Outcome of a data-modifying statement."""

    rows_affected: int
    last_insert_id: Optional[int]


def is_duplicate_key_error(exc: BaseException, number: int = MYSQL_DUPLICATE_ENTRY) -> bool:
    """Whether an exception is a unique-key violation.

    Recognises MySQL error ``number`` (1062 by default) and SQLite's
    ``UNIQUE constraint failed``, with or without SQLAlchemy wrapping.
    """
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        exc = exc.orig
    args = getattr(exc, "args", ())
    if args and args[0] == number:
        return True
    return "UNIQUE constraint failed" in str(exc)


class Database:
    """Connection handle and model registry.

    Usage:
        db = Database("sqlite:///app.db", migrations_dir="./migrations/")
        db.register(User)
        db.migrate()
        users = db.filter(User, Filter("name", "John"))
    """

    def __init__(
        self,
        url: Optional[str] = None,
        *,
        engine: Optional[Engine] = None,
        dialect: Optional[str] = None,
        settings: Optional[Settings] = None,
        migrations_dir: Optional[str] = None,
        limit: Optional[int] = None,
    ):
        settings = settings or get_settings()
        self.engine = engine or create_database_engine(url, settings)
        backend = self.engine.url.get_backend_name()
        self.dialect: Dialect = get_dialect(dialect) if dialect else dialect_for_url(backend)
        self.migrations_dir = migrations_dir or settings.migrations_dir
        self.snapshot_store = create_snapshot_store(self.migrations_dir)
        self.limit = limit if limit is not None else settings.query_limit
        self.models: List[type] = []
        self.latest_migration: Optional[Migration] = None
        self.relations = RelationService(self)
        self.logger = logger.bind(database=self.name)

    @property
    def name(self) -> str:
        return self.engine.url.database or ""

    def __str__(self) -> str:
        return f"Database: {self.name}"

    # Connection

    def connect(self) -> None:
        """Open a pooled connection and check it is alive."""
        self.ping()
        self.logger.info("database_connected", dialect=self.dialect.name)

    def close(self) -> None:
        self.engine.dispose()
        self.logger.info("database_closed")

    def ping(self) -> None:
        with self.engine.connect() as conn:
            conn.exec_driver_sql("SELECT 1")

    def exec(self, sql: str, *args: Any) -> ExecResult:
        """Execute a statement in its own transaction."""
        self.logger.debug("sql_exec", sql=sql, args=len(args))
        with self.engine.begin() as conn:
            if args:
                result = conn.exec_driver_sql(sql, tuple(args))
            else:
                result = conn.exec_driver_sql(sql)
            return ExecResult(rows_affected=result.rowcount, last_insert_id=result.lastrowid)

    def query(self, sql: str, *args: Any) -> List[Row]:
        self.logger.debug("sql_query", sql=sql, args=len(args))
        with self.engine.connect() as conn:
            if args:
                result = conn.exec_driver_sql(sql, tuple(args))
            else:
                result = conn.exec_driver_sql(sql)
            return list(result.fetchall())

    def query_row(self, sql: str, *args: Any) -> Optional[Row]:
        rows = self.query(sql, *args)
        return rows[0] if rows else None

    # Registry and migrations

    def register(self, model: type, fields: Optional[Mapping[str, str]] = None) -> None:
        """Add a model to the registry used by migrate().

        Args:
            model: Dataclass model
            fields: Optional explicit ``{field_name: tag}`` annotations

        Raises:
            ConfigurationError: If the model description is malformed
        """
        schema = resolve_model(model, fields)
        self.models.append(schema.model)
        self.logger.debug("model_registered", table=schema.table_name)

    def all_models(self) -> List[type]:
        """Registered models, in registration order."""
        return list(self.models)

    def migrate(self):
        """Run one migration cycle; see MigrationRunner.run()."""
        from .migrations import MigrationRunner

        return MigrationRunner(self).run()

    def plan(self):
        from .migrations import MigrationRunner

        return MigrationRunner(self).plan()

    def new_qs(self, model: Any = None) -> QuerySet:
        return QuerySet(self, model)

    # Model queries

    def insert_model(self, model: Any) -> Any:
        """Insert a model instance and store the generated id on it.

        An unset (falsy) id is left to the database.
        """
        names = [c for c in columns(model) if c != "id" or get_value(model, c)]
        values = [get_value(model, c) for c in names]
        sql = insert_query(table_name(model), names, self.dialect.placeholder)
        result = self.exec(sql, *values)
        if result.last_insert_id:
            set_value(model, "id", result.last_insert_id)
        return model

    def update_model(self, model: Any) -> Any:
        """Write every column of a model instance to the row with its id."""
        names = [c for c in columns(model) if c != "id"]
        values = [get_value(model, c) for c in names]
        p = self.dialect.placeholder
        sql = update_query(table_name(model), names, f"id = {p}", p)
        self.exec(sql, *values, get_value(model, "id"))
        return model

    def filter(self, model: Any, *filters: Filter) -> ModelSet:
        return self.filter_with_limit(model, self.limit, *filters)

    def filter_with_limit(self, model: Any, limit: int, *filters: Filter) -> ModelSet:
        """Rows matching any of the filters, newest id first.

        Returns an empty ModelSet when no filter is given.
        """
        where, values = Filters(filters).query(False, self.dialect.placeholder)
        if not where:
            return ModelSet()
        sql = f"SELECT * FROM {table_name(model)}{where} ORDER BY id DESC LIMIT {limit}"
        return ModelSet(self._scan_rows(model, self.query(sql, *values)))

    def all_query(self, model: Any, *exclude: str) -> str:
        """SELECT for every row of a model's table, newest id first."""
        names = [c for c in columns(model) if c not in exclude]
        return (
            f"SELECT {', '.join(names)} FROM {table_name(model)} "
            f"ORDER BY id DESC LIMIT {self.limit}"
        )

    def all_model(self, model: Any, *exclude: str) -> ModelSet:
        names = [c for c in columns(model) if c not in exclude]
        rows = self.query(self.all_query(model, *exclude))
        return ModelSet(self._scan_rows(model, rows, names))

    def _scan_rows(
        self, model: Any, rows: List[Row], include: Optional[List[str]] = None
    ) -> List[Any]:
        return [scan(row, new_model(model), include) for row in rows]

    def count(self, table: str, *filters: Filter) -> int:
        where, values = Filters(filters).query(True, self.dialect.placeholder)
        row = self.query_row(f"SELECT COUNT(*) FROM {table}{where}", *values)
        return int(row[0]) if row is not None else 0

    def drop_table(self, table: str) -> None:
        self.exec(f"DROP TABLE {table}")

    def column_value(self, model: Any, column: str, id: Any) -> Any:
        """Value of one column of the row with ``id``, or None."""
        p = self.dialect.placeholder
        row = self.query_row(f"SELECT {column} FROM {table_name(model)} WHERE id = {p}", id)
        return row[0] if row is not None else None

    # Introspection

    def db_tables(self) -> List[str]:
        return inspect(self.engine).get_table_names()

    def db_columns(self, table: str) -> List[str]:
        return [c["name"] for c in inspect(self.engine).get_columns(table)]

    def db_columns_with_type(self, table: str) -> Dict[str, str]:
        return {
            c["name"]: str(c["type"]) for c in inspect(self.engine).get_columns(table)
        }
