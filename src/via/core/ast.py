"""
Abstract syntax tree for `.via` files.

The parser lowers every construct straight into these frozen nodes. Block
kinds form a closed set of tagged variants (the ``kind`` literal) so that
code walking the tree can match on them exhaustively.

Nodes still carry raw, unresolved names: type names are strings, association
targets may be missing, and params profiles refer to fields by name. The
resolver turns them into a typed shape.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from .types import ActionStatus, AssociationKind

DefaultValue = str | int | float | bool | None


class Node(BaseModel):
    """Base for all AST nodes: every node remembers where it started."""

    line: int = 1
    column: int = 1

    model_config = ConfigDict(frozen=True)


class ExternalRef(BaseModel):
    """
    Pointer to hand-written code that owns an ejected unit.

    Written in the DSL as ``"path/to/module.py:symbol"``; the symbol part is
    optional for models and controllers.
    """

    path: str
    symbol: str | None = None

    model_config = ConfigDict(frozen=True)

    @classmethod
    def parse(cls, raw: str) -> ExternalRef:
        path, _, symbol = raw.partition(":")
        return cls(path=path.strip(), symbol=symbol.strip() or None)

    def __str__(self) -> str:
        return f"{self.path}:{self.symbol}" if self.symbol else self.path


# =============================================================================
# Model block
# =============================================================================


class FieldDecl(Node):
    """``field summary?: String serialize: false default: "x"``"""

    kind: Literal["field"] = "field"
    name: str
    type_name: str
    optional: bool = False
    type_optional: bool = False
    serialize: bool | None = None
    has_default: bool = False
    default: DefaultValue = None


class AssociationDecl(Node):
    """``belongs_to author``, ``has_many comments: Comment``,
    ``belongs_to subject: polymorphic [Post, Image]``."""

    kind: Literal["association"] = "association"
    association: AssociationKind
    name: str
    optional: bool = False
    target: str | None = None
    candidates: list[str] = Field(default_factory=list)


ModelMember = Annotated[FieldDecl | AssociationDecl, Field(discriminator="kind")]


class ModelBlock(Node):
    kind: Literal["model"] = "model"
    members: list[ModelMember] = Field(default_factory=list)
    ejected: ExternalRef | None = None

    @property
    def declared_fields(self) -> list[FieldDecl]:
        return [m for m in self.members if isinstance(m, FieldDecl)]

    @property
    def associations(self) -> list[AssociationDecl]:
        return [m for m in self.members if isinstance(m, AssociationDecl)]


# =============================================================================
# Controller block
# =============================================================================


class ParamEntry(Node):
    name: str
    optional: bool = False


class ParamsProfileDecl(Node):
    """A named entry list inside ``params { }``; ``editable`` is the macro form."""

    kind: Literal["profile"] = "profile"
    name: str
    entries: list[ParamEntry] = Field(default_factory=list)


class ParamsBlock(Node):
    kind: Literal["params"] = "params"
    profiles: list[ParamsProfileDecl] = Field(default_factory=list)


class RespondWithDecl(Node):
    kind: Literal["respond_with"] = "respond_with"
    formats: list[str] = Field(default_factory=list)


class ActionsDecl(Node):
    """``actions auto_crud [except [...]]`` or ``actions [index, show]``."""

    kind: Literal["actions"] = "actions"
    auto_crud: bool = True
    names: list[str] = Field(default_factory=list)
    excluded: list[str] = Field(default_factory=list)


class ActionDecl(Node):
    """``action publish``, ``action show overridden``,
    ``action show ejected "app/handlers/posts.py:show"``."""

    kind: Literal["action"] = "action"
    name: str
    status: ActionStatus = ActionStatus.DEFAULT
    reference: ExternalRef | None = None


ControllerItem = Annotated[
    ParamsBlock | RespondWithDecl | ActionsDecl | ActionDecl,
    Field(discriminator="kind"),
]


class ControllerBlock(Node):
    kind: Literal["controller"] = "controller"
    items: list[ControllerItem] = Field(default_factory=list)
    ejected: ExternalRef | None = None


# =============================================================================
# Resource / file
# =============================================================================

ResourceBlock = Annotated[ModelBlock | ControllerBlock, Field(discriminator="kind")]


class ResourceDecl(Node):
    """One ``resource Name { ... }`` declaration, blocks kept in source order."""

    name: str
    file: Path
    blocks: list[ResourceBlock] = Field(default_factory=list)

    @property
    def models(self) -> list[ModelBlock]:
        return [b for b in self.blocks if isinstance(b, ModelBlock)]

    @property
    def controllers(self) -> list[ControllerBlock]:
        return [b for b in self.blocks if isinstance(b, ControllerBlock)]


class SourceFile(BaseModel):
    """Parser output for a single `.via` file."""

    path: Path
    resources: list[ResourceDecl] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)
