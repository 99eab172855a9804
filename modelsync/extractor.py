"""
Schema extraction: registered model -> Table.
"""

from __future__ import annotations

from typing import Any, List, Union

import structlog

from .dialects import MYSQL, Dialect, get_dialect
from .enums import RelationKind
from .errors import ModelDefinitionError
from .fields import FieldSpec, resolve_model
from .schema import Column, Relation, Table
from .tags import strip_relation_prefix

logger = structlog.get_logger()

DialectLike = Union[Dialect, str, None]


def _dialect(dialect: DialectLike) -> Dialect:
    if dialect is None:
        return MYSQL
    if isinstance(dialect, str):
        return get_dialect(dialect)
    return dialect


def field_to_column(table: str, spec: FieldSpec, dialect: DialectLike = None) -> Column:
    """Build a Column from a field declaration.

    An explicit ``TYPE`` annotation wins over the dialect mapping.
    """
    tags = spec.tags
    column_type = tags.type() or _dialect(dialect).column_type(spec.kind)
    return Column(
        table=table,
        name=spec.column,
        type=column_type,
        length=tags.length(),
        nullable=tags.nullable(),
        unique=tags.unique(),
        primary=tags.primary(),
        index=tags.index(),
        auto=tags.auto(),
        default=tags.default(),
        raw=tags.raw(),
        tags=dict(tags),
    )


def field_to_relation(table: str, spec: FieldSpec) -> Relation:
    """Build a Relation from a ``rel_<table>`` field.

    Raises:
        ModelDefinitionError: If RELTYPE names an unknown relation kind
    """
    rel_type = spec.tags.rel_type()
    kind = RelationKind.parse(rel_type) if rel_type else RelationKind.FOREIGN_KEY
    if kind is None:
        raise ModelDefinitionError(
            f"unknown relation type {rel_type!r} on field '{spec.name}' of table '{table}'"
        )
    return Relation(from_table=table, to_table=strip_relation_prefix(spec.name), type=kind)


def migration_columns(model: Any, dialect: DialectLike = None) -> List[Column]:
    """Columns of a model, in declaration order."""
    schema = resolve_model(model)
    return [field_to_column(schema.table_name, spec, dialect) for spec in schema.columns]


def migration_relations(model: Any) -> List[Relation]:
    """Relations declared by a model, in declaration order."""
    schema = resolve_model(model)
    return [field_to_relation(schema.table_name, spec) for spec in schema.relations]


def model_to_table(model: Any, dialect: DialectLike = None) -> Table:
    """Describe a registered model as a Table."""
    schema = resolve_model(model)
    table = Table(
        name=schema.table_name,
        columns=migration_columns(model, dialect),
        relations=migration_relations(model),
    )
    logger.debug(
        "schema_extracted",
        table=table.name,
        columns=len(table.columns),
        relations=len(table.relations),
    )
    return table


def column_types(model: Any, dialect: DialectLike = None) -> List[str]:
    """Logical column types of a model, aligned with fields.columns()."""
    return [column.type for column in migration_columns(model, dialect)]
