"""
Schema snapshot model.

A Migration is the comparable description of every tracked table, column and
relation. It is rebuilt from the registered models before every run and
persisted as JSON after every run that changed something. Field aliases keep
the persisted keys (``Name``, ``Columns``, ``From``, ...) stable.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from .enums import RelationKind

if TYPE_CHECKING:
    from .database import Database

DEFAULT_DIRECTORY = "./migrations/"


class Column(BaseModel):
    """A single column of a table.

    Invariants:
    - Columns are never mutated after construction.
    - Two columns are the same iff render() returns the same text.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    table: str = Field(..., alias="Table")
    name: str = Field(..., alias="Name")
    default: str = Field(default="", alias="Default")
    type: str = Field(..., alias="Type")
    raw: str = Field(default="", alias="Raw")
    length: int = Field(default=0, alias="Length")
    nullable: bool = Field(default=False, alias="Nullable")
    unique: bool = Field(default=False, alias="Unique")
    primary: bool = Field(default=False, alias="Primary")
    index: bool = Field(default=False, alias="Index")
    auto: bool = Field(default=False, alias="Auto")
    tags: Dict[str, str] = Field(default_factory=dict, alias="Tags")

    def render(self) -> str:
        """Render the column definition used in CREATE/ALTER statements.

        A raw fragment replaces every structured modifier.
        """
        sql = f"{self.name} {self.type}"
        if self.raw:
            return f"{sql} {self.raw}"
        if self.length > 0:
            sql += f"({self.length})"
        sql += " NULL" if self.nullable else " NOT NULL"
        if self.unique:
            sql += " UNIQUE"
        if self.primary:
            sql += " PRIMARY KEY"
        if self.index:
            sql += " INDEX"
        if self.auto:
            sql += " AUTO_INCREMENT"
        if self.default:
            sql += f" DEFAULT {self.default}"
        return sql

    def __str__(self) -> str:
        return self.render()


class Relation(BaseModel):
    """Directional edge between two tables.

    Relations compare by the unordered pair of table names; the kind does
    not take part in the comparison.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_table: str = Field(..., alias="From")
    to_table: str = Field(..., alias="To")
    type: RelationKind = Field(default=RelationKind.FOREIGN_KEY, alias="Type")

    @property
    def key(self) -> FrozenSet[str]:
        return frozenset((self.from_table, self.to_table))

    @property
    def junction_table(self) -> str:
        return f"{self.from_table}_{self.to_table}"


class Table(BaseModel):
    """A table with its ordered columns and its relations."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(..., alias="Name")
    columns: List[Column] = Field(default_factory=list, alias="Columns")
    relations: List[Relation] = Field(default_factory=list, alias="Relations")

    def render(self) -> str:
        """Render the CREATE TABLE statement."""
        body = ", ".join(column.render() for column in self.columns)
        return f"CREATE TABLE {self.name} ({body})"

    def column_map(self) -> Dict[str, Column]:
        return {column.name: column for column in self.columns}

    def relation_map(self) -> Dict[FrozenSet[str], Relation]:
        return {relation.key: relation for relation in self.relations}

    def __str__(self) -> str:
        return self.render()


class Migration(BaseModel):
    """Schema snapshot: every tracked table, in registration order.

    In memory a Migration also knows the models it was built from and the
    Database that owns it. Neither is part of the persisted snapshot.
    """

    model_config = ConfigDict(populate_by_name=True)

    tables: List[Table] = Field(default_factory=list, alias="Tables")
    directory: str = Field(default=DEFAULT_DIRECTORY, alias="Directory")

    _database: Any = PrivateAttr(default=None)
    _models: List[Any] = PrivateAttr(default_factory=list)

    @classmethod
    def from_models(
        cls,
        models: List[Any],
        dialect: Any = None,
        database: Optional["Database"] = None,
        directory: str = DEFAULT_DIRECTORY,
    ) -> "Migration":
        """Build the current snapshot from registered models."""
        from .extractor import model_to_table

        migration = cls(
            tables=[model_to_table(model, dialect) for model in models],
            directory=directory,
        )
        migration._models = list(models)
        migration._database = database
        return migration

    @property
    def database(self) -> Optional["Database"]:
        return self._database

    @property
    def models(self) -> List[Any]:
        return self._models

    def table_map(self) -> Dict[str, Table]:
        return {table.name: table for table in self.tables}

    def to_snapshot(self) -> Dict[str, Any]:
        """Persisted form; Database and Models are opaque and written as null."""
        data = self.model_dump(mode="json", by_alias=True)
        return {
            "Database": None,
            "Tables": data["Tables"],
            "Models": None,
            "Directory": data["Directory"],
        }

    @classmethod
    def from_snapshot(cls, data: Dict[str, Any]) -> "Migration":
        """Rebuild a Migration from its persisted form."""
        return cls.model_validate(
            {
                "Tables": data.get("Tables") or [],
                "Directory": data.get("Directory") or DEFAULT_DIRECTORY,
            }
        )
