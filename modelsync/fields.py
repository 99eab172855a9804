"""
Explicit model schema description.

Models are dataclasses with a table name. Persisted fields carry their
annotation in the dataclass field metadata::

    @dataclass
    class User:
        __tablename__ = "user"

        id: Int64 = db_field("PRIMARY:true,AUTO:true", default=0)
        name: str = db_field("LENGTH:255", default="")
        rel_profile: Optional["Profile"] = db_field("RELTYPE:ONETOONE", default=None)

The description is resolved once, when the model is registered, into a
ModelSchema that the extractor and the row helpers read from.
"""

from __future__ import annotations

import dataclasses
import types
import typing
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, List, Mapping, NewType, Optional, Sequence, Union

from . import dialects
from .errors import ModelDefinitionError
from .tags import TAG, ModelTags, is_relation_name, parse_tag, tag_valid

# Width markers for integer and float columns.
Int8 = NewType("Int8", int)
Int16 = NewType("Int16", int)
Int32 = NewType("Int32", int)
Int64 = NewType("Int64", int)
Float32 = NewType("Float32", float)

_MARKER_KINDS = {
    Int8: dialects.INT8,
    Int16: dialects.INT16,
    Int32: dialects.INT32,
    Int64: dialects.INT64,
    Float32: dialects.FLOAT32,
}

# bool before int: bool is an int subclass.
_TYPE_KINDS = (
    (bool, dialects.BOOL),
    (str, dialects.STRING),
    (int, dialects.INT),
    (float, dialects.FLOAT64),
    (datetime, dialects.TIME),
    (date, dialects.TIME),
    (bytes, dialects.BYTES),
    (bytearray, dialects.BYTES),
)

_SCHEMA_ATTR = "__modelsync_schema__"

# Optional[X] and X | None
_UNION_ORIGINS = tuple(
    origin for origin in (Union, getattr(types, "UnionType", None)) if origin is not None
)


def db_field(tag: str, **kwargs: Any) -> Any:
    """Declare a persisted dataclass field with its annotation.

    Accepts the same keyword arguments as ``dataclasses.field``.
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[TAG] = tag
    return dataclasses.field(metadata=metadata, **kwargs)


@dataclass(frozen=True)
class FieldSpec:
    """One declared field of a model."""

    name: str
    kind: str
    tag: Optional[str]
    tags: ModelTags
    is_relation: bool

    @property
    def column(self) -> str:
        return self.name.lower()

    @property
    def valid(self) -> bool:
        return tag_valid(self.tag)


@dataclass(frozen=True)
class ModelSchema:
    """Resolved description of a model class."""

    model: type
    table_name: str
    fields: List[FieldSpec]

    @property
    def persisted(self) -> List[FieldSpec]:
        """Fields with a valid annotation, in declaration order."""
        return [f for f in self.fields if f.valid]

    @property
    def columns(self) -> List[FieldSpec]:
        return [f for f in self.persisted if not f.is_relation]

    @property
    def relations(self) -> List[FieldSpec]:
        return [f for f in self.persisted if f.is_relation]

    def field_for_column(self, column: str) -> Optional[FieldSpec]:
        for spec in self.persisted:
            if spec.name.lower() == column.lower():
                return spec
        return None


def model_class(model: Any) -> type:
    """Return the dataclass type behind a model class or instance.

    Raises:
        ModelDefinitionError: If the model is not a dataclass
    """
    cls = model if isinstance(model, type) else type(model)
    if not dataclasses.is_dataclass(cls):
        raise ModelDefinitionError(
            f"model must be a dataclass or dataclass instance, got {cls.__name__}"
        )
    return cls


def table_name(model: Any) -> str:
    """Return the table name declared by a model."""
    cls = model_class(model)
    name = getattr(cls, "__tablename__", None)
    if name is None and callable(getattr(cls, "table_name", None)):
        name = cls.table_name()
    if not name:
        raise ModelDefinitionError(f"model {cls.__name__} does not declare a table name")
    return name


def primitive_kind(annotation: Any) -> str:
    """Map a field's type annotation to a primitive kind."""
    origin = typing.get_origin(annotation)
    if origin in _UNION_ORIGINS:
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return primitive_kind(args[0])
        return dialects.UNKNOWN
    if isinstance(annotation, str):
        name = annotation.strip()
        if name.startswith("Optional[") and name.endswith("]"):
            name = name[len("Optional["):-1]
        return _NAMED_KINDS.get(name.split(".")[-1], dialects.UNKNOWN)
    if annotation in _MARKER_KINDS:
        return _MARKER_KINDS[annotation]
    if isinstance(annotation, type):
        for python_type, kind in _TYPE_KINDS:
            if issubclass(annotation, python_type):
                return kind
    return dialects.UNKNOWN


_NAMED_KINDS = {
    "str": dialects.STRING,
    "int": dialects.INT,
    "bool": dialects.BOOL,
    "float": dialects.FLOAT64,
    "datetime": dialects.TIME,
    "date": dialects.TIME,
    "bytes": dialects.BYTES,
    "bytearray": dialects.BYTES,
    "Int8": dialects.INT8,
    "Int16": dialects.INT16,
    "Int32": dialects.INT32,
    "Int64": dialects.INT64,
    "Float32": dialects.FLOAT32,
}


def _type_hints(cls: type) -> dict:
    """Resolved field annotations; empty when a forward reference is unresolvable."""
    try:
        return typing.get_type_hints(cls)
    except NameError:
        return {}


def resolve_model(model: Any, fields: Optional[Mapping[str, str]] = None) -> ModelSchema:
    """Resolve and cache the schema description of a model.

    Args:
        model: Dataclass model class or instance
        fields: Optional explicit ``{field_name: tag}`` mapping replacing the
            annotations stored in the field metadata

    Raises:
        ModelDefinitionError: If the model is not a dataclass or has no table name
        TagError: If an annotation is malformed
    """
    cls = model_class(model)
    cached = cls.__dict__.get(_SCHEMA_ATTR)
    if cached is not None and fields is None:
        return cached

    hints = _type_hints(cls)
    specs = []
    for f in dataclasses.fields(cls):
        tag = fields.get(f.name) if fields is not None else f.metadata.get(TAG)
        relation = is_relation_name(f.name)
        tags = parse_tag(tag, f.name) if tag_valid(tag) else ModelTags()
        kind = dialects.UNKNOWN if relation else primitive_kind(hints.get(f.name, f.type))
        specs.append(
            FieldSpec(name=f.name, kind=kind, tag=tag, tags=tags, is_relation=relation)
        )

    schema = ModelSchema(model=cls, table_name=table_name(cls), fields=specs)
    setattr(cls, _SCHEMA_ATTR, schema)
    return schema


def columns(model: Any) -> List[str]:
    """Ordered, lower-cased column names of a model (relation fields skipped)."""
    return [spec.column for spec in resolve_model(model).columns]


def get_value(model: Any, column: str) -> Any:
    """Read a column value from a model instance (case-insensitive)."""
    spec = resolve_model(model).field_for_column(column)
    if spec is None or spec.is_relation:
        return None
    return getattr(model, spec.name)


def set_value(model: Any, column: str, value: Any) -> None:
    """Write a column value on a model instance (case-insensitive)."""
    spec = resolve_model(model).field_for_column(column)
    if spec is None or spec.is_relation:
        return
    setattr(model, spec.name, value)


def new_model(model: Any) -> Any:
    """Create a fresh instance of a model's class.

    Raises:
        ModelDefinitionError: If the model has required fields without defaults
    """
    cls = model_class(model)
    try:
        return cls()
    except TypeError as e:
        raise ModelDefinitionError(
            f"model {cls.__name__} must be constructible without arguments: {e}"
        ) from e


def scan(row: Sequence[Any], model: Any, include: Optional[Sequence[str]] = None) -> Any:
    """Assign a result row to a model's columns, in column order.

    Args:
        row: Positional row values
        model: Model instance to fill
        include: Columns present in the row; defaults to every column

    Returns:
        The filled model instance
    """
    names = list(include) if include else columns(model)
    for column, value in zip(names, row):
        set_value(model, column, value)
    return model
