"""
Type and nullability resolution for Via resources.

Walks the AST of a batch and produces a resolved, typed shape per resource:

1. Canonical scalar kinds for every field
2. Nullability from the ``?`` marker (never from a missing default)
3. Association targets (explicit, inferred, or polymorphic candidates)
4. ``editable`` expansion into ``create`` and ``update`` profiles
5. Action sets, response formats, and ejection ownership

All state shared between resources lives in an explicit ``ProjectContext``;
each resource is resolved independently so the batch can be resolved on a
thread pool.
"""

from __future__ import annotations

import keyword
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Literal

from . import ast
from .errors import (
    ViaError,
    make_consistency_error,
    make_resolution_error,
)
from .naming import association_target_candidates
from .types import (
    CRUD_ACTIONS,
    DEFAULT_RESPONSE_FORMATS,
    PRIMARY_KEY,
    RESPONSE_FORMATS,
    ActionStatus,
    AssociationKind,
    ScalarKind,
    lookup_scalar_kind,
)

logger = logging.getLogger(__name__)

EDITABLE = "editable"


# =============================================================================
# Resolved shapes
# =============================================================================


@dataclass(frozen=True)
class ResolvedField:
    name: str
    kind: ScalarKind
    nullable: bool
    serialize: bool = True
    has_default: bool = False
    default: ast.DefaultValue = None


@dataclass(frozen=True)
class ResolvedAssociation:
    name: str
    kind: AssociationKind
    targets: tuple[str, ...]
    nullable: bool = False


@dataclass(frozen=True)
class ResolvedParam:
    """One entry of a params profile, pointing at a field or association."""

    name: str
    member: Literal["field", "association"]
    required: bool


@dataclass(frozen=True)
class ResolvedProfile:
    name: str
    params: tuple[ResolvedParam, ...]
    expanded_from: str | None = None


@dataclass(frozen=True)
class ResolvedAction:
    name: str
    crud: bool
    status: ActionStatus = ActionStatus.DEFAULT
    reference: ast.ExternalRef | None = None


@dataclass(frozen=True)
class ResolvedController:
    profiles: tuple[ResolvedProfile, ...]
    formats: tuple[str, ...]
    actions: tuple[ResolvedAction, ...]
    ejected: ast.ExternalRef | None = None


@dataclass(frozen=True)
class ResolvedResource:
    """Fully typed resource, ready for IR construction."""

    name: str
    source: PurePosixPath
    fields: tuple[ResolvedField, ...]
    associations: tuple[ResolvedAssociation, ...]
    model_ejected: ast.ExternalRef | None = None
    controller: ResolvedController | None = None


# =============================================================================
# Project context
# =============================================================================


@dataclass
class ProjectContext:
    """
    Name -> declaration table for one batch.

    Built once before resolution and only read afterwards, which is what
    makes per-resource resolution safe to run in parallel.
    """

    resources: dict[str, ast.ResourceDecl] = field(default_factory=dict)

    @classmethod
    def build(cls, sources: list[ast.SourceFile]) -> tuple[ProjectContext, list[ViaError]]:
        """Index every resource of the batch, reporting duplicate names."""
        context = cls()
        errors: list[ViaError] = []
        for source in sources:
            for decl in source.resources:
                existing = context.resources.get(decl.name)
                if existing is not None:
                    errors.append(
                        make_consistency_error(
                            f"Duplicate resource '{decl.name}' "
                            f"(first declared in {existing.file}:{existing.line})",
                            decl.file,
                            decl.line,
                            decl.column,
                            resource=decl.name,
                        )
                    )
                    continue
                context.resources[decl.name] = decl
        return context, errors

    def knows(self, name: str) -> bool:
        return name in self.resources


# =============================================================================
# Per-resource resolution
# =============================================================================


class ResourceResolver:
    """Resolves one ResourceDecl against a ProjectContext, collecting every error."""

    def __init__(self, decl: ast.ResourceDecl, context: ProjectContext):
        self.decl = decl
        self.context = context
        self.errors: list[ViaError] = []
        self._fields: dict[str, ResolvedField] = {}
        self._associations: dict[str, ResolvedAssociation] = {}
        # Declared members that failed to resolve; already reported once
        self._unresolved: set[str] = set()

    def resolution_error(self, message: str, node: ast.Node | None = None) -> None:
        node = node or self.decl
        self.errors.append(
            make_resolution_error(
                message,
                self.decl.file,
                node.line,
                node.column,
                resource=self.decl.name,
            )
        )

    def check_identifier(self, name: str, what: str, node: ast.Node | None = None) -> bool:
        """Reject names that would be reserved words in the generated Python package."""
        if keyword.iskeyword(name):
            self.resolution_error(
                f"{what} name '{name}' is a reserved word in generated Python code",
                node,
            )
            return False
        return True

    def consistency_error(self, message: str, node: ast.Node | None = None) -> None:
        node = node or self.decl
        self.errors.append(
            make_consistency_error(
                message,
                self.decl.file,
                node.line,
                node.column,
                resource=self.decl.name,
            )
        )

    def resolve(self) -> ResolvedResource | None:
        """Return the resolved resource, or None if any error was recorded."""
        models = self.decl.models
        controllers = self.decl.controllers

        self.check_identifier(self.decl.name, "Resource")
        if not models:
            self.consistency_error(f"Resource '{self.decl.name}' has no model block")
        for extra in models[1:]:
            self.consistency_error("A resource may declare only one model block", extra)
        for extra in controllers[1:]:
            self.consistency_error("A resource may declare only one controller block", extra)

        model = models[0] if models else ast.ModelBlock()
        self._resolve_model(model)
        if model.ejected is not None:
            self._check_reference(model.ejected, model)

        controller = None
        if controllers:
            controller = self._resolve_controller(controllers[0])

        if self.errors:
            return None

        return ResolvedResource(
            name=self.decl.name,
            source=PurePosixPath(self.decl.file.as_posix()),
            fields=tuple(self._fields.values()),
            associations=tuple(self._associations.values()),
            model_ejected=self._with_default_symbol(model.ejected, self.decl.name),
            controller=controller,
        )

    # -------------------------------------------------------------------------
    # Model
    # -------------------------------------------------------------------------

    def _resolve_model(self, model: ast.ModelBlock) -> None:
        seen: set[str] = set()
        for member in model.members:
            if member.name == PRIMARY_KEY:
                self.consistency_error(
                    f"'{PRIMARY_KEY}' is implicit on every model and cannot be declared",
                    member,
                )
                continue
            if member.name in seen:
                self.consistency_error(
                    f"Duplicate member '{member.name}' in model '{self.decl.name}'",
                    member,
                )
                continue
            seen.add(member.name)

            if isinstance(member, ast.FieldDecl):
                resolved_field = None
                if self.check_identifier(member.name, "Field", member):
                    resolved_field = self._resolve_field(member)
                if resolved_field is None:
                    self._unresolved.add(member.name)
                else:
                    self._fields[member.name] = resolved_field
            else:
                resolved_assoc = None
                if self.check_identifier(member.name, "Association", member):
                    resolved_assoc = self._resolve_association(member)
                if resolved_assoc is None:
                    self._unresolved.add(member.name)
                else:
                    self._associations[member.name] = resolved_assoc

    def _resolve_field(self, decl: ast.FieldDecl) -> ResolvedField | None:
        kind = lookup_scalar_kind(decl.type_name)
        if kind is None:
            self.resolution_error(
                f"Unknown type '{decl.type_name}' for field '{decl.name}' "
                f"of resource '{self.decl.name}'",
                decl,
            )
            return None

        nullable = decl.optional or decl.type_optional
        if decl.has_default and not _default_fits(kind, decl.default, nullable):
            self.resolution_error(
                f"Default {decl.default!r} is not a valid {kind.value} value "
                f"for field '{decl.name}'",
                decl,
            )
            return None

        return ResolvedField(
            name=decl.name,
            kind=kind,
            nullable=nullable,
            serialize=decl.serialize is not False,
            has_default=decl.has_default,
            default=decl.default,
        )

    def _resolve_association(self, decl: ast.AssociationDecl) -> ResolvedAssociation | None:
        if decl.association == AssociationKind.POLYMORPHIC:
            return self._resolve_polymorphic(decl)

        if decl.target is not None:
            if not self.context.knows(decl.target):
                self.resolution_error(
                    f"Association '{decl.name}' targets unknown resource '{decl.target}'",
                    decl,
                )
                return None
            target = decl.target
        else:
            candidates = association_target_candidates(decl.name)
            known = [c for c in candidates if self.context.knows(c)]
            if not known:
                self.resolution_error(
                    f"Cannot infer target of association '{decl.name}': none of "
                    f"{', '.join(candidates)} is a known resource; declare it explicitly "
                    f"as '{decl.association.value} {decl.name}: <Resource>'",
                    decl,
                )
                return None
            if len(known) > 1:
                self.resolution_error(
                    f"Ambiguous target for association '{decl.name}': both "
                    f"{' and '.join(known)} exist; declare the target explicitly",
                    decl,
                )
                return None
            target = known[0]

        return ResolvedAssociation(
            name=decl.name,
            kind=decl.association,
            targets=(target,),
            nullable=decl.optional,
        )

    def _resolve_polymorphic(self, decl: ast.AssociationDecl) -> ResolvedAssociation | None:
        if not decl.candidates:
            self.resolution_error(
                f"Polymorphic association '{decl.name}' needs at least one candidate resource",
                decl,
            )
            return None

        ok = True
        seen: set[str] = set()
        for candidate in decl.candidates:
            if candidate in seen:
                self.resolution_error(
                    f"Candidate '{candidate}' is listed twice in polymorphic "
                    f"association '{decl.name}'",
                    decl,
                )
                ok = False
            elif not self.context.knows(candidate):
                self.resolution_error(
                    f"Polymorphic association '{decl.name}' lists unknown resource '{candidate}'",
                    decl,
                )
                ok = False
            seen.add(candidate)

        if not ok:
            return None
        return ResolvedAssociation(
            name=decl.name,
            kind=AssociationKind.POLYMORPHIC,
            targets=tuple(decl.candidates),
            nullable=decl.optional,
        )

    # -------------------------------------------------------------------------
    # Controller
    # -------------------------------------------------------------------------

    def _resolve_controller(self, block: ast.ControllerBlock) -> ResolvedController:
        params_blocks = [i for i in block.items if isinstance(i, ast.ParamsBlock)]
        respond_blocks = [i for i in block.items if isinstance(i, ast.RespondWithDecl)]
        actions_blocks = [i for i in block.items if isinstance(i, ast.ActionsDecl)]
        action_lines = [i for i in block.items if isinstance(i, ast.ActionDecl)]

        for extra in params_blocks[1:]:
            self.consistency_error("A controller may declare only one params block", extra)
        for extra in respond_blocks[1:]:
            self.consistency_error("A controller may declare 'respond_with' only once", extra)
        for extra in actions_blocks[1:]:
            self.consistency_error("A controller may declare 'actions' only once", extra)

        if block.ejected is not None:
            self._check_reference(block.ejected, block)

        profiles = self._resolve_profiles(params_blocks[0]) if params_blocks else ()
        formats = (
            self._resolve_formats(respond_blocks[0]) if respond_blocks else DEFAULT_RESPONSE_FORMATS
        )
        actions = self._resolve_actions(actions_blocks[0] if actions_blocks else None, action_lines)

        return ResolvedController(
            profiles=profiles,
            formats=formats,
            actions=actions,
            ejected=self._with_default_symbol(block.ejected, "routes"),
        )

    def _resolve_profiles(self, block: ast.ParamsBlock) -> tuple[ResolvedProfile, ...]:
        profiles: dict[str, ResolvedProfile] = {}

        def add(profile: ResolvedProfile, node: ast.Node) -> None:
            if profile.name in profiles:
                self.consistency_error(f"Duplicate params profile '{profile.name}'", node)
                return
            profiles[profile.name] = profile

        for decl in block.profiles:
            members = self._check_entries(decl)
            if members is None:
                continue
            if decl.name == EDITABLE:
                create, update = expand_editable(decl, members)
                add(create, decl)
                add(update, decl)
            else:
                add(_explicit_profile(decl, members), decl)

        return tuple(profiles.values())

    def _check_entries(
        self, decl: ast.ParamsProfileDecl
    ) -> list[ResolvedField | ResolvedAssociation] | None:
        """Map profile entries to model members; None if any entry is invalid."""
        members: list[ResolvedField | ResolvedAssociation] = []
        seen: set[str] = set()
        ok = True
        for entry in decl.entries:
            if entry.name in seen:
                self.consistency_error(
                    f"Field '{entry.name}' is listed twice in params profile '{decl.name}'",
                    entry,
                )
                ok = False
                continue
            seen.add(entry.name)

            if entry.name in self._unresolved:
                ok = False
                continue
            member = self._fields.get(entry.name) or self._associations.get(entry.name)
            if member is None:
                self.resolution_error(
                    f"Params profile '{decl.name}' references unknown field '{entry.name}' "
                    f"on model '{self.decl.name}'",
                    entry,
                )
                ok = False
            elif (
                isinstance(member, ResolvedAssociation)
                and member.kind == AssociationKind.HAS_MANY
            ):
                self.resolution_error(
                    f"has_many association '{entry.name}' cannot be a parameter",
                    entry,
                )
                ok = False
            elif isinstance(member, ResolvedField) and not member.serialize:
                self.resolution_error(
                    f"Field '{entry.name}' is marked 'serialize: false' and cannot be "
                    f"exposed through params profile '{decl.name}'",
                    entry,
                )
                ok = False
            else:
                members.append(member)
        return members if ok else None

    def _resolve_formats(self, decl: ast.RespondWithDecl) -> tuple[str, ...]:
        formats: list[str] = []
        for fmt in decl.formats:
            if fmt not in RESPONSE_FORMATS:
                self.resolution_error(
                    f"Unknown response format '{fmt}' (expected one of "
                    f"{', '.join(sorted(RESPONSE_FORMATS))})",
                    decl,
                )
            elif fmt in formats:
                self.consistency_error(f"Response format '{fmt}' is listed twice", decl)
            else:
                formats.append(fmt)
        if not decl.formats:
            self.resolution_error("'respond_with' needs at least one format", decl)
        return tuple(formats)

    def _resolve_actions(
        self,
        decl: ast.ActionsDecl | None,
        lines: list[ast.ActionDecl],
    ) -> tuple[ResolvedAction, ...]:
        if decl is None or decl.auto_crud:
            excluded = decl.excluded if decl else []
            self._check_crud_names(excluded, decl)
            enabled = [a for a in CRUD_ACTIONS if a not in excluded]
        else:
            self._check_crud_names(decl.names, decl)
            enabled = [a for a in CRUD_ACTIONS if a in decl.names]

        actions: dict[str, ResolvedAction] = {
            name: ResolvedAction(name=name, crud=True) for name in enabled
        }
        custom: dict[str, ResolvedAction] = {}
        declared: set[str] = set()

        for line in lines:
            if line.name in declared:
                self.consistency_error(f"Action '{line.name}' is declared twice", line)
                continue
            declared.add(line.name)
            if not self.check_identifier(line.name, "Action", line):
                continue

            if line.reference is not None:
                self._check_reference(line.reference, line)
            reference = self._with_default_symbol(line.reference, line.name)

            if line.name in CRUD_ACTIONS:
                if line.name not in actions:
                    self.resolution_error(
                        f"Action '{line.name}' is not enabled for this controller",
                        line,
                    )
                    continue
                actions[line.name] = ResolvedAction(
                    name=line.name,
                    crud=True,
                    status=line.status,
                    reference=reference,
                )
            else:
                custom[line.name] = ResolvedAction(
                    name=line.name,
                    crud=False,
                    status=line.status,
                    reference=reference,
                )

        return tuple(actions.values()) + tuple(custom.values())

    def _check_crud_names(self, names: list[str], node: ast.Node | None) -> None:
        seen: set[str] = set()
        for name in names:
            if name not in CRUD_ACTIONS:
                self.resolution_error(
                    f"Unknown CRUD action '{name}' (expected one of {', '.join(CRUD_ACTIONS)})",
                    node,
                )
            elif name in seen:
                self.consistency_error(f"Action '{name}' is listed twice", node)
            seen.add(name)

    # -------------------------------------------------------------------------
    # Ejection
    # -------------------------------------------------------------------------

    def _check_reference(self, ref: ast.ExternalRef, node: ast.Node) -> None:
        path = PurePosixPath(ref.path)
        if path.is_absolute() or ".." in path.parts:
            self.resolution_error(
                f"Ejection reference '{ref}' must be a path relative to the project root",
                node,
            )
        elif path.suffix != ".py":
            self.resolution_error(
                f"Ejection reference '{ref}' must point at a .py file",
                node,
            )
        if ref.symbol is not None and not ref.symbol.isidentifier():
            self.resolution_error(f"Ejection symbol '{ref.symbol}' is not an identifier", node)
        elif ref.symbol is not None:
            self.check_identifier(ref.symbol, "Ejection symbol", node)

    @staticmethod
    def _with_default_symbol(ref: ast.ExternalRef | None, symbol: str) -> ast.ExternalRef | None:
        if ref is None or ref.symbol:
            return ref
        return ast.ExternalRef(path=ref.path, symbol=symbol)


# =============================================================================
# Profile helpers
# =============================================================================


def _member_kind(member: ResolvedField | ResolvedAssociation) -> Literal["field", "association"]:
    return "field" if isinstance(member, ResolvedField) else "association"


def _has_default(member: ResolvedField | ResolvedAssociation) -> bool:
    return isinstance(member, ResolvedField) and member.has_default


def expand_editable(
    decl: ast.ParamsProfileDecl,
    members: list[ResolvedField | ResolvedAssociation],
) -> tuple[ResolvedProfile, ResolvedProfile]:
    """
    Expand ``editable { ... }`` into ``create`` and ``update`` profiles.

    Both profiles list the same members in the same order. ``create``
    requires a member unless it is nullable or has a default; ``update``
    makes every member optional.
    """
    create = ResolvedProfile(
        name="create",
        params=tuple(
            ResolvedParam(
                name=m.name,
                member=_member_kind(m),
                required=not m.nullable and not _has_default(m),
            )
            for m in members
        ),
        expanded_from=decl.name,
    )
    update = ResolvedProfile(
        name="update",
        params=tuple(
            ResolvedParam(name=m.name, member=_member_kind(m), required=False) for m in members
        ),
        expanded_from=decl.name,
    )
    return create, update


def _explicit_profile(
    decl: ast.ParamsProfileDecl,
    members: list[ResolvedField | ResolvedAssociation],
) -> ResolvedProfile:
    optional_entries = {e.name for e in decl.entries if e.optional}
    return ResolvedProfile(
        name=decl.name,
        params=tuple(
            ResolvedParam(
                name=m.name,
                member=_member_kind(m),
                required=not (m.name in optional_entries or m.nullable or _has_default(m)),
            )
            for m in members
        ),
    )


def _default_fits(kind: ScalarKind, value: ast.DefaultValue, nullable: bool) -> bool:
    if value is None:
        return nullable
    if kind == ScalarKind.JSON:
        return True
    if kind == ScalarKind.BOOLEAN:
        return isinstance(value, bool)
    if isinstance(value, bool):
        return False
    if kind == ScalarKind.INTEGER:
        return isinstance(value, int)
    if kind in (ScalarKind.FLOAT, ScalarKind.DECIMAL):
        return isinstance(value, (int, float)) or (
            kind == ScalarKind.DECIMAL and isinstance(value, str)
        )
    return isinstance(value, str)


# =============================================================================
# Batch entry point
# =============================================================================


def resolve_batch(
    sources: list[ast.SourceFile],
    max_workers: int | None = None,
) -> tuple[list[ResolvedResource], list[ViaError]]:
    """
    Resolve every resource of a batch.

    Resources are resolved concurrently; the result list is always in
    input order (file order, then declaration order) regardless of which
    worker finishes first.

    Returns:
        Tuple of (resolved resources, collected errors). When errors is
        non-empty the resource list only holds the resources that resolved.
    """
    context, errors = ProjectContext.build(sources)
    decls = list(context.resources.values())
    if not decls:
        return [], errors

    results: list[ResolvedResource | None] = [None] * len(decls)
    per_resource_errors: list[list[ViaError]] = [[] for _ in decls]

    def work(decl: ast.ResourceDecl) -> tuple[ResolvedResource | None, list[ViaError]]:
        resolver = ResourceResolver(decl, context)
        return resolver.resolve(), resolver.errors

    workers = max_workers or min(8, len(decls))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {executor.submit(work, decl): index for index, decl in enumerate(decls)}
        for future in as_completed(futures):
            index = futures[future]
            results[index], per_resource_errors[index] = future.result()

    for resource_errors in per_resource_errors:
        errors.extend(resource_errors)

    resolved = [r for r in results if r is not None]
    logger.debug(f"Resolved {len(resolved)}/{len(decls)} resource(s)")
    return resolved, errors


__all__ = [
    "ProjectContext",
    "ResolvedAction",
    "ResolvedAssociation",
    "ResolvedController",
    "ResolvedField",
    "ResolvedParam",
    "ResolvedProfile",
    "ResolvedResource",
    "ResourceResolver",
    "expand_editable",
    "resolve_batch",
]
