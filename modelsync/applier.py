"""
Migration applier.

Executes a SchemaDiff against a Database in a fixed order:

1. create missing tables
2. create a junction table for every relation of the tables created in step 1
3. add missing columns (skipped for tables created in step 1)
4. create missing relations of existing tables
5. modify different columns
6. drop removed tables (relations to or from them first)
7. drop removed columns
8. drop removed relations

The first failing statement aborts the run. Nothing is rolled back.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Sequence, Set

import structlog

from .differ import SchemaDiff
from .enums import RelationKind
from .errors import StatementError
from .relations import RelationService
from .schema import Column, Relation, Table

if TYPE_CHECKING:
    from .database import Database

logger = structlog.get_logger()


class MigrationApplier:
    """Applies change-sets through the Database capability.

    Usage:
        applier = MigrationApplier(db)
        operations = applier.apply(diff)
    """

    def __init__(self, db: "Database"):
        self.db = db
        self.relations = RelationService(db)
        self.operations = 0
        self.created: Set[str] = set()

    def _run(self, operation: str, target: str, action: Callable[[], object]) -> None:
        try:
            action()
        except Exception as e:
            logger.error("migration_statement_failed", operation=operation, target=target)
            raise StatementError(operation, target, e) from e
        self.operations += 1

    def _exec(self, operation: str, target: str, sql: str) -> None:
        try:
            self.db.exec(sql)
        except Exception as e:
            logger.error("migration_statement_failed", operation=operation, target=target)
            raise StatementError(operation, target, e, statement=sql) from e
        self.operations += 1

    def create_table(self, table: Table) -> None:
        self._exec("create table", table.name, table.render())
        self.created.add(table.name)

    def add_column(self, column: Column) -> None:
        if column.table in self.created:
            logger.debug("column_skipped_new_table", table=column.table, column=column.name)
            return
        logger.debug("column_adding", table=column.table, column=column.name)
        self._exec(
            "add column",
            f"{column.table}.{column.name}",
            f"ALTER TABLE {column.table} ADD COLUMN {column.render()}",
        )

    def modify_column(self, column: Column) -> None:
        logger.debug("column_updating", table=column.table, column=column.name)
        self._exec(
            "update column",
            f"{column.table}.{column.name}",
            f"ALTER TABLE {column.table} MODIFY COLUMN {column.render()}",
        )

    def drop_table(self, table: Table, inbound: Sequence[Relation] = ()) -> None:
        """Drop a table after the relations to and from it.

        The table's own relations lose their junction table, whatever their
        kind, mirroring how they were created. ``inbound`` are removed
        relations of other tables pointing at it.
        """
        for relation in table.relations:
            self.drop_relation_table(relation)
        for relation in inbound:
            self.drop_relation(relation)
        logger.debug("table_removing", table=table.name)
        self._exec("drop table", table.name, f"DROP TABLE {table.name}")

    def drop_column(self, column: Column) -> None:
        logger.debug("column_removing", table=column.table, column=column.name)
        self._exec(
            "remove column",
            f"{column.table}.{column.name}",
            f"ALTER TABLE {column.table} DROP COLUMN {column.name}",
        )

    def create_relation_table(self, relation: Relation) -> None:
        """Junction table for a relation, whatever its kind."""
        f, t = relation.from_table, relation.to_table
        logger.debug("relation_table_creating", from_table=f, to_table=t)
        self._run("create relation table for", f"{f} and {t}", lambda: self.relations.create_fk_table(f, t))

    def drop_relation_table(self, relation: Relation) -> None:
        f, t = relation.from_table, relation.to_table
        logger.debug("relation_table_dropping", from_table=f, to_table=t)
        self._run("drop relation table for", f"{f} and {t}", lambda: self.relations.drop_fk_table(f, t))

    def create_relation(self, relation: Relation) -> None:
        f, t = relation.from_table, relation.to_table
        target = f"{f} and {t}"
        if relation.type == RelationKind.FOREIGN_KEY:
            self.create_relation_table(relation)
        elif relation.type == RelationKind.ONE_TO_ONE:
            logger.debug("relation_constraint_creating", from_table=f, to_table=t)
            self._run("create relation for", target, lambda: self.relations.alter_one_to_one(f, t))
        else:
            logger.debug("relation_skipped", from_table=f, to_table=t, kind=relation.type.value)

    def drop_relation(self, relation: Relation) -> None:
        f, t = relation.from_table, relation.to_table
        target = f"{f} and {t}"
        if relation.type == RelationKind.FOREIGN_KEY:
            self.drop_relation_table(relation)
        elif relation.type == RelationKind.ONE_TO_ONE:
            logger.debug("relation_constraint_dropping", from_table=f, to_table=t)
            self._run("drop relation for", target, lambda: self.relations.alter_drop_one_to_one(f, t))
        else:
            logger.debug("relation_skipped", from_table=f, to_table=t, kind=relation.type.value)

    def apply(self, diff: SchemaDiff) -> int:
        """Execute every change-set in order.

        Returns:
            Number of statements executed

        Raises:
            StatementError: On the first failing statement
        """
        for table in diff.missing_tables:
            self.create_table(table)
        for table in diff.missing_tables:
            for relation in table.relations:
                self.create_relation_table(relation)
        for column in diff.missing_columns:
            self.add_column(column)
        for relation in diff.missing_relations:
            self.create_relation(relation)
        for column in diff.different_columns:
            self.modify_column(column)

        removed_relations = list(diff.removed_relations)
        for table in diff.removed_tables:
            inbound = [r for r in removed_relations if r.to_table == table.name]
            removed_relations = [r for r in removed_relations if r.to_table != table.name]
            self.drop_table(table, inbound)
        for column in diff.removed_columns:
            self.drop_column(column)
        for relation in removed_relations:
            self.drop_relation(relation)

        logger.debug("migrations_applied", operations=self.operations)
        return self.operations
