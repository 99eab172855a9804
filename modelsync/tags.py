"""
Field annotation parsing.

An annotation is a comma separated list of ``KEY:VALUE`` pairs, e.g.
``"LENGTH:255,NULLABLE:true"``. A bare ``+`` token is ignored. Absent
annotations and the ``"-"`` annotation exclude a field from the schema.

Typed accessors follow a default-on-error policy: a missing or unparseable
value yields the type's zero value (``0``, ``False`` or ``""``). They never
raise.
"""

from __future__ import annotations

from typing import Optional

from .errors import TagError

# Metadata key under which db_field() stores the annotation.
TAG = "modelsync"

# Prefix marking a relation field (e.g. ``rel_profile``).
RELATION_PREFIX = "rel_"

LENGTH = "LENGTH"
NULLABLE = "NULLABLE"
UNIQUE = "UNIQUE"
PRIMARY = "PRIMARY"
INDEX = "INDEX"
AUTO = "AUTO"
DEFAULT = "DEFAULT"
RELTYPE = "RELTYPE"
RAW = "RAW"
TYPE = "TYPE"

KNOWN_KEYS = frozenset(
    {LENGTH, NULLABLE, UNIQUE, PRIMARY, INDEX, AUTO, DEFAULT, RELTYPE, RAW, TYPE}
)

_TRUE_VALUES = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE_VALUES = {"0", "f", "F", "FALSE", "false", "False"}


def _parse_bool(value: str) -> Optional[bool]:
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    return None


class ModelTags(dict):
    """Parsed annotation of a single field."""

    def get_value(self, key: str) -> str:
        return self.get(key, "")

    def has(self, key: str) -> bool:
        return key in self

    def _flag(self, key: str) -> bool:
        parsed = _parse_bool(self.get_value(key))
        return bool(parsed)

    def length(self) -> int:
        """Column length, 0 when absent or not an integer."""
        try:
            return int(self.get_value(LENGTH))
        except ValueError:
            return 0

    def nullable(self) -> bool:
        return self._flag(NULLABLE)

    def unique(self) -> bool:
        return self._flag(UNIQUE)

    def primary(self) -> bool:
        return self._flag(PRIMARY)

    def index(self) -> bool:
        return self._flag(INDEX)

    def auto(self) -> bool:
        """Whether the column is auto-incrementing."""
        return self._flag(AUTO)

    def default(self) -> str:
        """Default value, rendered verbatim after ``DEFAULT``."""
        return self.get_value(DEFAULT)

    def rel_type(self) -> str:
        return self.get_value(RELTYPE)

    def raw(self) -> str:
        """Raw SQL that replaces every other column modifier.

        Example::

            id: int = db_field("RAW:NOT NULL PRIMARY KEY AUTO_INCREMENT")
        """
        return self.get_value(RAW)

    def type(self) -> str:
        return self.get_value(TYPE)


def tag_valid(tag: Optional[str]) -> bool:
    """Return True when the annotation marks a persisted field."""
    return tag is not None and tag != "" and tag != "-"


def parse_tag(tag: str, field: str = "<unknown>") -> ModelTags:
    """Parse an annotation string into ModelTags.

    Raises:
        TagError: If a token is neither ``+`` nor a ``KEY:VALUE`` pair
    """
    tags = ModelTags()
    for token in tag.split(","):
        if token == "+":
            continue
        key, sep, value = token.partition(":")
        if not sep:
            raise TagError(field, tag)
        tags[key] = value
    return tags


def is_relation_name(name: str) -> bool:
    """Relation fields are recognised by their ``rel_`` name prefix."""
    return name.lower().startswith(RELATION_PREFIX)


def strip_relation_prefix(name: str) -> str:
    return name[len(RELATION_PREFIX):]
