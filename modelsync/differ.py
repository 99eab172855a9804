"""
Schema differ.

Compares the schema extracted from the registered models against the last
persisted snapshot and produces seven disjoint change-sets. Tables, columns
and relations are matched by key (table name, column name, unordered pair of
table names), so declaration order never matters and an addition plus a
removal in the same table are both reported.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

import structlog

from .schema import Column, Migration, Relation, Table

logger = structlog.get_logger()


@dataclass
class SchemaDiff:
    """Everything that has to change to bring the database up to date."""

    missing_tables: List[Table] = field(default_factory=list)
    missing_columns: List[Column] = field(default_factory=list)
    missing_relations: List[Relation] = field(default_factory=list)
    different_columns: List[Column] = field(default_factory=list)
    removed_tables: List[Table] = field(default_factory=list)
    removed_columns: List[Column] = field(default_factory=list)
    removed_relations: List[Relation] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not any(
            (
                self.missing_tables,
                self.missing_columns,
                self.missing_relations,
                self.different_columns,
                self.removed_tables,
                self.removed_columns,
                self.removed_relations,
            )
        )

    def summary(self) -> Dict[str, int]:
        return {
            "missing_tables": len(self.missing_tables),
            "missing_columns": len(self.missing_columns),
            "missing_relations": len(self.missing_relations),
            "different_columns": len(self.different_columns),
            "removed_tables": len(self.removed_tables),
            "removed_columns": len(self.removed_columns),
            "removed_relations": len(self.removed_relations),
        }


def _diff_columns(current: Table, persisted: Table, diff: SchemaDiff) -> None:
    old = persisted.column_map()
    new = current.column_map()

    for column in current.columns:
        previous = old.get(column.name)
        if previous is None:
            logger.debug("column_missing", table=current.name, column=column.name)
            diff.missing_columns.append(column)
        elif previous.render() != column.render():
            logger.debug("column_different", table=current.name, column=column.name)
            diff.different_columns.append(column)

    for column in persisted.columns:
        if column.name not in new:
            logger.debug("column_removed", table=current.name, column=column.name)
            diff.removed_columns.append(column)


def _diff_relations(current: Table, persisted: Table, diff: SchemaDiff) -> None:
    old = persisted.relation_map()
    new = current.relation_map()

    for relation in current.relations:
        if relation.key not in old:
            logger.debug(
                "relation_missing", from_table=relation.from_table, to_table=relation.to_table
            )
            diff.missing_relations.append(relation)

    for relation in persisted.relations:
        if relation.key not in new:
            logger.debug(
                "relation_removed", from_table=relation.from_table, to_table=relation.to_table
            )
            diff.removed_relations.append(relation)


def diff_schemas(current: Migration, persisted: Migration) -> SchemaDiff:
    """Compute the change-sets between two snapshots.

    Args:
        current: Schema extracted from the registered models
        persisted: Last persisted snapshot (empty on the first run)

    Returns:
        SchemaDiff; relations of missing tables travel with the table and are
        not repeated in ``missing_relations``
    """
    diff = SchemaDiff()
    old_tables = persisted.table_map()
    new_tables = current.table_map()

    for table in current.tables:
        previous = old_tables.get(table.name)
        if previous is None:
            logger.debug("table_missing", table=table.name)
            diff.missing_tables.append(table)
            continue
        _diff_columns(table, previous, diff)
        _diff_relations(table, previous, diff)

    for table in persisted.tables:
        if table.name not in new_tables:
            logger.debug("table_removed", table=table.name)
            diff.removed_tables.append(table)

    return diff
