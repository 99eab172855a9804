"""
Tests for model field declarations and schema extraction.

Verifies:
- Column extraction order, naming and exclusion rules
- Dialect type mapping and TYPE overrides
- Relation extraction and RELTYPE handling
- Row helpers (columns, get_value, set_value, scan, new_model)
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

import pytest

from modelsync import dialects
from modelsync.enums import RelationKind
from modelsync.errors import ModelDefinitionError, TagError
from modelsync.extractor import column_types, model_to_table
from modelsync.fields import (
    Float32,
    Int8,
    Int16,
    Int64,
    columns,
    db_field,
    get_value,
    new_model,
    primitive_kind,
    resolve_model,
    scan,
    set_value,
    table_name,
)
from modelsync.schema import Relation


@dataclass
class Article:
    __tablename__ = "article"

    ID: Int64 = db_field("PRIMARY:true,AUTO:true", default=0)
    Title: str = db_field("LENGTH:100", default="")
    Body: str = db_field("TYPE:TEXT,NULLABLE:true", default="")
    Views: int = db_field("DEFAULT:0", default=0)
    Draft: bool = db_field("+", default=False)
    cache: str = db_field("-", default="")
    note: str = ""
    rel_author: Optional[int] = db_field("RELTYPE:ONETOONE", default=None)
    rel_category: Optional[int] = db_field("+", default=None)


@dataclass
class Reading:
    @classmethod
    def table_name(cls) -> str:
        return "reading"

    id: int = db_field("PRIMARY:true", default=0)
    small: Int8 = db_field("+", default=0)
    medium: Int16 = db_field("+", default=0)
    ratio: Float32 = db_field("+", default=0.0)
    value: float = db_field("+", default=0.0)
    taken_at: Optional[datetime] = db_field("NULLABLE:true", default=None)
    payload: bytes = db_field("+", default=b"")
    labels: List[str] = db_field("+", default_factory=list)


class TestColumnExtraction:
    """Tests for model_to_table() columns."""

    def test_columns_in_declaration_order(self):
        table = model_to_table(Article)

        assert table.name == "article"
        assert [c.name for c in table.columns] == ["id", "title", "body", "views", "draft"]

    def test_excluded_fields_never_appear(self):
        names = [c.name for c in model_to_table(Article).columns]

        assert "cache" not in names
        assert "note" not in names

    def test_mysql_types_and_override(self):
        assert column_types(Article) == ["BIGINT", "VARCHAR", "TEXT", "INT", "BOOLEAN"]

    def test_sqlite_types(self):
        assert column_types(Article, "sqlite") == [
            "INTEGER", "TEXT", "TEXT", "INTEGER", "BOOLEAN"
        ]

    def test_attributes_from_tags(self):
        cols = model_to_table(Article).column_map()

        assert cols["id"].primary and cols["id"].auto
        assert cols["title"].length == 100
        assert cols["body"].nullable
        assert cols["views"].default == "0"
        assert cols["id"].render() == "id BIGINT NOT NULL PRIMARY KEY AUTO_INCREMENT"
        assert cols["title"].render() == "title VARCHAR(100) NOT NULL"

    def test_width_markers(self):
        assert column_types(Reading) == [
            "INT", "TINYINT", "SMALLINT", "FLOAT", "DOUBLE", "DATETIME", "BLOB", "VARCHAR"
        ]

    def test_table_name_classmethod(self):
        assert table_name(Reading) == "reading"
        assert table_name(Reading()) == "reading"


class TestRelationExtraction:
    """Tests for relation fields."""

    def test_relations(self):
        table = model_to_table(Article)

        assert table.relations == [
            Relation(from_table="article", to_table="author", type=RelationKind.ONE_TO_ONE),
            Relation(from_table="article", to_table="category", type=RelationKind.FOREIGN_KEY),
        ]

    def test_relation_fields_are_not_columns(self):
        assert "rel_author" not in columns(Article)
        assert "author" not in columns(Article)

    def test_unknown_reltype_raises(self):
        @dataclass
        class Broken:
            __tablename__ = "broken"
            id: int = db_field("PRIMARY:true", default=0)
            rel_thing: Optional[int] = db_field("RELTYPE:MANY_TO_MANY", default=None)

        with pytest.raises(ModelDefinitionError, match="MANY_TO_MANY"):
            model_to_table(Broken)


class TestResolveModel:
    """Tests for resolve_model()."""

    def test_not_a_dataclass(self):
        class Plain:
            __tablename__ = "plain"

        with pytest.raises(ModelDefinitionError):
            resolve_model(Plain)

    def test_missing_table_name(self):
        @dataclass
        class Nameless:
            id: int = db_field("PRIMARY:true", default=0)

        with pytest.raises(ModelDefinitionError, match="table name"):
            resolve_model(Nameless)

    def test_malformed_tag(self):
        @dataclass
        class Malformed:
            __tablename__ = "malformed"
            id: int = db_field("PRIMARY", default=0)

        with pytest.raises(TagError):
            resolve_model(Malformed)

    def test_explicit_field_mapping(self):
        @dataclass
        class Untagged:
            __tablename__ = "untagged"
            id: int = 0
            name: str = ""
            secret: str = ""

        schema = resolve_model(Untagged, {"id": "PRIMARY:true", "name": "LENGTH:32"})

        assert [f.column for f in schema.columns] == ["id", "name"]
        assert model_to_table(Untagged).column_map()["name"].length == 32

    def test_schema_is_cached(self):
        assert resolve_model(Article) is resolve_model(Article())

    def test_string_annotations_are_resolved(self):
        @dataclass
        class Quoted:
            __tablename__ = "quoted"
            id: "Int64" = db_field("PRIMARY:true", default=0)
            title: "Optional[str]" = db_field("NULLABLE:true", default=None)

        kinds = {f.name: f.kind for f in resolve_model(Quoted).fields}

        assert kinds == {"id": dialects.INT64, "title": dialects.STRING}

    def test_unresolvable_forward_reference_falls_back_to_names(self):
        @dataclass
        class Pending:
            __tablename__ = "pending"
            id: "int" = db_field("PRIMARY:true", default=0)
            owner: "NotDeclaredYet" = db_field("+", default=None)

        kinds = {f.name: f.kind for f in resolve_model(Pending).fields}

        assert kinds == {"id": dialects.INT, "owner": dialects.UNKNOWN}


class TestPrimitiveKind:
    """Tests for primitive_kind()."""

    @pytest.mark.parametrize(
        "annotation,kind",
        [
            (str, dialects.STRING),
            (bool, dialects.BOOL),
            (int, dialects.INT),
            (float, dialects.FLOAT64),
            (datetime, dialects.TIME),
            (bytearray, dialects.BYTES),
            (Int64, dialects.INT64),
            (Optional[str], dialects.STRING),
            ("Optional[int]", dialects.INT),
            (List[int], dialects.UNKNOWN),
            (dict, dialects.UNKNOWN),
        ],
    )
    def test_kinds(self, annotation, kind):
        assert primitive_kind(annotation) == kind


class TestRowHelpers:
    """Tests for the helpers used by the query layer."""

    def test_columns(self):
        assert columns(Article) == ["id", "title", "body", "views", "draft"]

    def test_get_and_set_value_case_insensitive(self):
        article = Article(ID=3, Title="Hello")

        assert get_value(article, "id") == 3
        assert get_value(article, "TITLE") == "Hello"
        assert get_value(article, "missing") is None

        set_value(article, "title", "Bye")
        assert article.Title == "Bye"

    def test_scan(self):
        article = scan((7, "Title", "Body", 12, True), new_model(Article))

        assert article.ID == 7
        assert article.Views == 12
        assert article.Draft is True

    def test_scan_with_selected_columns(self):
        article = scan(("Only title",), Article(), include=["title"])

        assert article.Title == "Only title"
        assert article.ID == 0

    def test_new_model_requires_defaults(self):
        @dataclass
        class Required:
            __tablename__ = "required"
            id: int = db_field("PRIMARY:true")

        with pytest.raises(ModelDefinitionError):
            new_model(Required)
