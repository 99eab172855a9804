"""
Query building.

Filters render a WHERE clause with bound placeholders, QuerySet assembles a
statement fluently and executes it through its Database, and the
``*_query`` helpers build plain CRUD statements.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, List, Optional, Sequence, Tuple

from .enums import Operator
from .errors import QueryError
from .fields import new_model, scan, table_name

if TYPE_CHECKING:
    from sqlalchemy.engine import Row

    from .database import Database
    from .modelset import ModelSet


def _operator(op: Any) -> str:
    if isinstance(op, Operator):
        return op.value
    return str(op).strip().upper()


@dataclass
class Filter:
    """A single ``column <operator> value`` condition."""

    column: str
    value: Any
    operator: str = Operator.EQ.value


class Filters(list):
    """Ordered list of Filter conditions."""

    def add(self, column: str, op: Any, value: Any) -> "Filters":
        self.append(Filter(column=column, value=value, operator=_operator(op)))
        return self

    def get(self, column: str) -> Any:
        for f in self:
            if f.column == column:
                return f.value
        return None

    def has(self, column: str) -> bool:
        return any(f.column == column for f in self)

    def remove(self, column: str) -> "Filters":
        """Drop the first filter on ``column``."""
        for i, f in enumerate(self):
            if f.column == column:
                del self[i]
                break
        return self

    def query(self, and_: bool = True, placeholder: str = "?") -> Tuple[str, List[Any]]:
        """Render the WHERE clause and its bound values.

        Returns ``("", [])`` when there are no filters or a filter has no
        operator.
        """
        if not self:
            return "", []

        joiner = " AND " if and_ else " OR "
        clauses = []
        values: List[Any] = []
        for f in self:
            if not f.operator:
                return "", []
            if f.operator == Operator.IN.value:
                items = list(f.value)
                marks = ", ".join(placeholder for _ in items)
                clauses.append(f"{f.column} IN ({marks})")
                values.extend(items)
            else:
                clauses.append(f"{f.column} {f.operator} {placeholder}")
                values.append(f.value)
        return " WHERE " + joiner.join(clauses), values


def create_table_query(table: str, columns: Sequence[str]) -> str:
    return f"CREATE TABLE {table} ({', '.join(columns)})"


def insert_query(table: str, columns: Sequence[str], placeholder: str = "?") -> str:
    marks = ", ".join(placeholder for _ in columns)
    return f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({marks})"


def update_query(
    table: str, columns: Sequence[str], where: str, placeholder: str = "?"
) -> str:
    assignments = ", ".join(f"{column} = {placeholder}" for column in columns)
    return f"UPDATE {table} SET {assignments} WHERE {where}"


def delete_query(table: str, where: str) -> str:
    return f"DELETE FROM {table} WHERE {where}"


def select_query(table: str, columns: Sequence[str], where: str = "") -> str:
    sql = f"SELECT {', '.join(columns)} FROM {table}"
    if where:
        sql += f" WHERE {where}"
    return sql


def select_one_query(table: str, column: str, where: str = "") -> str:
    return select_query(table, [column], where)


def build_query(
    statements: Sequence[str],
    filters: Filters,
    limit: int = 0,
    offset: int = 0,
    placeholder: str = "?",
) -> Tuple[str, List[Any]]:
    """Join statements, append filters and the LIMIT/OFFSET clause."""
    where, values = filters.query(True, placeholder)
    sql = " ".join(statements) + where
    if limit > 0:
        sql += f" LIMIT {limit} OFFSET {offset}"
    return sql, values


class QuerySet:
    """Fluent statement builder bound to a Database.

    Usage:
        qs = QuerySet(db, User).all().where("id", Operator.IN, [1, 2, 3])
        users = qs.multi_model()
    """

    def __init__(self, db: "Database", model: Any = None):
        self.db = db
        self.model = model
        self.statements: List[str] = []
        self.filters = Filters()
        self.selected: List[str] = []
        self.sql = ""
        self._limit = db.limit
        self._offset = 0
        self.page_size = 0

    def add(self, statement: str) -> "QuerySet":
        self.statements.append(statement)
        return self

    def add_filters(self, filters: Sequence[Filter]) -> "QuerySet":
        self.filters.extend(filters)
        return self

    def query(self) -> Tuple[str, List[Any]]:
        """Generate the SQL text and the values to bind."""
        limit = self.page_size if self.page_size > 0 else self._limit
        self.sql, values = build_query(
            self.statements, self.filters, limit, self._offset, self.db.dialect.placeholder
        )
        return self.sql, values

    def clear(self) -> "QuerySet":
        self.statements = []
        self.filters = Filters()
        return self

    def all(self) -> "QuerySet":
        self.add("SELECT *")
        if self.model is not None:
            self.from_()
        return self

    def count(self) -> "QuerySet":
        return self.add("SELECT COUNT(*)")

    def select(self, *columns: str) -> "QuerySet":
        for column in columns:
            if column not in self.selected:
                self.selected.append(column)
        return self.add(f"SELECT {', '.join(columns)}")

    def group_by(self, *columns: str) -> "QuerySet":
        return self.add(f"GROUP BY {', '.join(columns)}")

    def raw(self, sql: str) -> Tuple[str, List[Any]]:
        """Append raw SQL and return the generated query."""
        self.add(sql)
        return self.query()

    def where(self, column: str, op: Any, value: Any) -> "QuerySet":
        self.filters.add(column, op, value)
        return self

    def from_(self, table: Optional[str] = None) -> "QuerySet":
        if table is None:
            if self.model is None:
                raise QueryError("no model provided, cannot infer table name")
            table = table_name(self.model)
        return self.add(f"FROM {table}")

    def order_by(self, column: str, order: str = "ASC") -> "QuerySet":
        return self.add(f"ORDER BY {column} {order}")

    def limit(self, limit: int) -> "QuerySet":
        self._limit = limit
        return self

    def offset(self, offset: int) -> "QuerySet":
        self._offset = offset
        return self

    def join(self, table: str, column: str, value: Any, op: str = "=") -> "QuerySet":
        return self.add(f"JOIN {table} ON {column} {op} {value}")

    def get(self, id: Optional[int] = None) -> "QuerySet":
        """Select a single row, optionally by id."""
        self._setup()
        if id is not None:
            self.where("id", Operator.EQ, id)
        return self.limit(1)

    def exec(self) -> List["Row"]:
        sql, values = self.query()
        return self.db.query(sql, *values)

    def exec_row(self) -> Optional["Row"]:
        sql, values = self.query()
        return self.db.query_row(sql, *values)

    def exec_one(self) -> Optional["Row"]:
        self.limit(1)
        return self.exec_row()

    def _require_model(self, model: Any) -> Any:
        if model is not None:
            self.model = model
        if self.model is None:
            raise QueryError("no model provided")
        return self.model

    def multi_model(self, model: Any = None) -> "ModelSet":
        """Execute and scan every row into a fresh model instance."""
        from .modelset import ModelSet

        model = self._require_model(model)
        include = self.selected or None
        return ModelSet(scan(row, new_model(model), include) for row in self.exec())

    def single_model(self, model: Any = None) -> Any:
        """Execute and scan the first row.

        Raises:
            QueryError: If the query returned no row
        """
        model = self._require_model(model)
        row = self.exec_one()
        if row is None:
            raise QueryError("no results found")
        return scan(row, new_model(model), self.selected or None)

    def page(self, page: int) -> "ModelSet":
        """Fetch one page of ``page_size`` rows (pages start at 1)."""
        self._setup()
        self.offset((page - 1) * self.page_size)
        return self.multi_model()

    def _setup(self) -> None:
        if len(self.statements) < 2 and self.model is not None:
            self.clear().all()
        elif len(self.statements) < 2:
            raise QueryError(
                "no model provided, cannot infer table name, please use from_()"
            )
