"""
Model-side IR types: storage fields, associations, and client fields.

The IR keeps two views of every model:

- ``fields``: the storage representation, every column the backend model
  must declare (including ``serialize: false`` columns).
- ``client_fields``: the client-visible shape, already filtered and renamed
  for consumers outside the backend.

Emitters pick the view they need; neither re-derives visibility.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from ..ast import DefaultValue, ExternalRef
from ..types import AssociationKind, ScalarKind


class FieldOrigin(str, Enum):
    """Where a storage column comes from."""

    PRIMARY_KEY = "primary_key"
    DECLARED = "declared"
    FOREIGN_KEY = "foreign_key"
    POLYMORPHIC_TYPE = "polymorphic_type"
    POLYMORPHIC_ID = "polymorphic_id"


class ClientShape(str, Enum):
    """How a client field is represented."""

    SCALAR = "scalar"
    REFERENCE = "reference"
    POLYMORPHIC = "polymorphic"


class FieldIR(BaseModel):
    """
    One storage column.

    Attributes:
        name: Column name (snake_case)
        client_name: Name on the client side, or None for hidden columns
        kind: Canonical scalar kind
        nullable: Whether the column accepts null
        serialize: False for columns that never leave the backend
        origin: Declared field, primary key, or derived from an association
        association: Owning association for derived columns
        choices: Allowed values (polymorphic type columns only)
    """

    name: str
    client_name: str | None
    kind: ScalarKind
    nullable: bool = False
    serialize: bool = True
    has_default: bool = False
    default: DefaultValue = None
    origin: FieldOrigin = FieldOrigin.DECLARED
    association: str | None = None
    choices: list[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class AssociationIR(BaseModel):
    """A resolved association and the storage columns it contributes."""

    name: str
    kind: AssociationKind
    targets: list[str]
    nullable: bool = False
    columns: list[str] = Field(default_factory=list)
    client_name: str | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def polymorphic(self) -> bool:
        return self.kind == AssociationKind.POLYMORPHIC


class ClientFieldIR(BaseModel):
    """
    One client-visible property.

    Scalar fields map 1:1 to a storage column. References expose a
    ``<assoc>Id`` number; polymorphic associations expose a discriminated
    ``{type, id}`` union over ``targets``.
    """

    name: str
    shape: ClientShape
    nullable: bool = False
    kind: ScalarKind | None = None
    columns: list[str] = Field(default_factory=list)
    targets: list[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class ModelIR(BaseModel):
    fields: list[FieldIR]
    associations: list[AssociationIR] = Field(default_factory=list)
    client_fields: list[ClientFieldIR] = Field(default_factory=list)
    ejected: ExternalRef | None = None

    model_config = ConfigDict(frozen=True)

    def get_field(self, name: str) -> FieldIR | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def get_association(self, name: str) -> AssociationIR | None:
        for a in self.associations:
            if a.name == name:
                return a
        return None

    @property
    def client_field_names(self) -> list[str]:
        return [cf.name for cf in self.client_fields]

    @property
    def hidden_fields(self) -> list[FieldIR]:
        return [f for f in self.fields if not f.serialize]
