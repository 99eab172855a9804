"""
Relations between tables.

FOREIGN_KEY relations are many-to-many links stored in a ``<from>_<to>``
junction table. ONE_TO_ONE relations are a ``fk_<to>`` constraint on the
"from" table. ONE_TO_MANY statements exist but the migration engine does not
issue them. Relations of a newly created table all get a junction table.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, List

from .dialects import Dialect
from .fields import get_value, new_model, scan, table_name

if TYPE_CHECKING:
    from .database import Database


def create_fk_table_sql(from_table: str, to_table: str, dialect: Dialect) -> str:
    return (
        f"CREATE TABLE IF NOT EXISTS {from_table}_{to_table} ("
        f"id {dialect.auto_pk}, "
        f"{from_table}_id BIGINT, "
        f"{to_table}_id BIGINT, "
        f"FOREIGN KEY ({from_table}_id) REFERENCES {from_table}(id), "
        f"FOREIGN KEY ({to_table}_id) REFERENCES {to_table}(id))"
    )


def drop_fk_table_sql(from_table: str, to_table: str) -> str:
    return f"DROP TABLE IF EXISTS {from_table}_{to_table}"


def alter_one_to_one_sql(from_table: str, to_table: str) -> str:
    return (
        f"ALTER TABLE {from_table} ADD CONSTRAINT fk_{to_table} "
        f"FOREIGN KEY ({to_table}_id) REFERENCES {to_table}(id)"
    )


def alter_drop_one_to_one_sql(from_table: str, to_table: str) -> str:
    return f"ALTER TABLE {from_table} DROP FOREIGN KEY fk_{to_table}"


def alter_one_to_many_sql(from_table: str, to_table: str) -> str:
    return (
        f"ALTER TABLE {to_table} ADD CONSTRAINT fk_{from_table} "
        f"FOREIGN KEY ({from_table}_id) REFERENCES {from_table}(id)"
    )


def alter_drop_one_to_many_sql(from_table: str, to_table: str) -> str:
    return f"ALTER TABLE {to_table} DROP FOREIGN KEY fk_{from_table}"


class RelationService:
    """Relation DDL and row helpers bound to a Database.

    Usage:
        relations = RelationService(db)
        relations.create_fk_table("user", "group")
        relations.insert_fk(user, group)
    """

    def __init__(self, db: "Database"):
        self.db = db

    # DDL

    def create_fk_table(self, from_table: str, to_table: str) -> None:
        self.db.exec(create_fk_table_sql(from_table, to_table, self.db.dialect))

    def drop_fk_table(self, from_table: str, to_table: str) -> None:
        self.db.exec(drop_fk_table_sql(from_table, to_table))

    def alter_one_to_one(self, from_table: str, to_table: str) -> None:
        self.db.exec(alter_one_to_one_sql(from_table, to_table))

    def alter_drop_one_to_one(self, from_table: str, to_table: str) -> None:
        self.db.exec(alter_drop_one_to_one_sql(from_table, to_table))

    def alter_one_to_many(self, from_table: str, to_table: str) -> None:
        self.db.exec(alter_one_to_many_sql(from_table, to_table))

    def alter_drop_one_to_many(self, from_table: str, to_table: str) -> None:
        self.db.exec(alter_drop_one_to_many_sql(from_table, to_table))

    # Rows

    def insert_fk(self, from_model: Any, to_model: Any) -> None:
        """Link two rows through their junction table."""
        f, t = table_name(from_model), table_name(to_model)
        p = self.db.dialect.placeholder
        self.db.exec(
            f"INSERT INTO {f}_{t} ({f}_id, {t}_id) VALUES ({p}, {p})",
            get_value(from_model, "id"),
            get_value(to_model, "id"),
        )

    def delete_fk(self, from_model: Any, to_model: Any) -> None:
        f, t = table_name(from_model), table_name(to_model)
        p = self.db.dialect.placeholder
        self.db.exec(
            f"DELETE FROM {f}_{t} WHERE {f}_id = {p} AND {t}_id = {p}",
            get_value(from_model, "id"),
            get_value(to_model, "id"),
        )

    def select_fk(self, from_model: Any, to_model: Any) -> List[Any]:
        """Rows of ``to_model``'s table linked to ``from_model``."""
        f, t = table_name(from_model), table_name(to_model)
        p = self.db.dialect.placeholder
        rows = self.db.query(
            f"SELECT * FROM {t} WHERE id IN "
            f"(SELECT {t}_id FROM {f}_{t} WHERE {f}_id = {p})",
            get_value(from_model, "id"),
        )
        return [scan(row, new_model(to_model)) for row in rows]

    def select_fk_reverse(self, from_model: Any, to_model: Any) -> List[Any]:
        """Rows of ``from_model``'s table linked to ``to_model``."""
        f, t = table_name(from_model), table_name(to_model)
        p = self.db.dialect.placeholder
        rows = self.db.query(
            f"SELECT * FROM {f} WHERE id IN "
            f"(SELECT {f}_id FROM {f}_{t} WHERE {t}_id = {p})",
            get_value(to_model, "id"),
        )
        return [scan(row, new_model(from_model)) for row in rows]

    def get_one_to_one(self, from_model: Any, to_model: Any) -> List[Any]:
        f, t = table_name(from_model), table_name(to_model)
        rows = self.db.query(f"SELECT * FROM {f} WHERE {t}_id IS NOT NULL")
        return [scan(row, new_model(from_model)) for row in rows]

    def get_one_to_many(self, from_model: Any, to_model: Any) -> List[Any]:
        f, t = table_name(from_model), table_name(to_model)
        rows = self.db.query(f"SELECT * FROM {f} WHERE {t}_id IS NULL")
        return [scan(row, new_model(from_model)) for row in rows]
