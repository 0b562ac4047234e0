"""
Shared vocabularies for the Via DSL: scalar kinds, association kinds,
action statuses, and the canonical type-name table.
"""

from __future__ import annotations

from enum import Enum


class ScalarKind(str, Enum):
    """Canonical scalar kinds every DSL type name resolves to."""

    STRING = "string"
    TEXT = "text"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    FLOAT = "float"
    DECIMAL = "decimal"
    DATETIME = "datetime"
    DATE = "date"
    UUID = "uuid"
    JSON = "json"


class AssociationKind(str, Enum):
    """Association flavours supported inside a model block."""

    BELONGS_TO = "belongs_to"
    HAS_MANY = "has_many"
    POLYMORPHIC = "polymorphic"


class ActionStatus(str, Enum):
    """Ownership of a controller action."""

    DEFAULT = "default"
    OVERRIDDEN = "overridden"
    EJECTED = "ejected"


# Lower-cased DSL spelling -> canonical kind
TYPE_ALIASES: dict[str, ScalarKind] = {
    "string": ScalarKind.STRING,
    "str": ScalarKind.STRING,
    "text": ScalarKind.TEXT,
    "bool": ScalarKind.BOOLEAN,
    "boolean": ScalarKind.BOOLEAN,
    "int": ScalarKind.INTEGER,
    "integer": ScalarKind.INTEGER,
    "i32": ScalarKind.INTEGER,
    "i64": ScalarKind.INTEGER,
    "float": ScalarKind.FLOAT,
    "f64": ScalarKind.FLOAT,
    "decimal": ScalarKind.DECIMAL,
    "datetime": ScalarKind.DATETIME,
    "timestamp": ScalarKind.DATETIME,
    "date": ScalarKind.DATE,
    "uuid": ScalarKind.UUID,
    "json": ScalarKind.JSON,
}

CRUD_ACTIONS: tuple[str, ...] = ("index", "show", "create", "update", "destroy")

# Actions that operate on a single record and therefore take an id
MEMBER_ACTIONS = frozenset({"show", "update", "destroy"})

RESPONSE_FORMATS = frozenset({"html", "json"})

DEFAULT_RESPONSE_FORMATS: tuple[str, ...] = ("json",)

PRIMARY_KEY = "id"


def lookup_scalar_kind(type_name: str) -> ScalarKind | None:
    """Return the canonical kind for a DSL type name, or None if unknown."""
    return TYPE_ALIASES.get(type_name.lower())
