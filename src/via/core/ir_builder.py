"""
IR construction from resolved resources.

``build_ir_document`` is a pure function of its input: the same resolved
batch always yields an IRDocument that dumps to the same bytes.

Column layout per model:

1. ``id`` (implicit integer primary key)
2. declared fields, in declaration order
3. association columns, in association declaration order
   (``<name>_id`` for belongs_to; ``<name>_type`` + ``<name>_id`` for
   polymorphic; nothing for has_many)

Client names are camelCase throughout (``published_at`` -> ``publishedAt``,
``belongs_to author`` -> ``authorId``). Storage names stay snake_case, and the
backend models alias them to the client names.
"""

from __future__ import annotations

import logging

from .errors import BatchError, ConsistencyError, ViaError
from .ir import (
    ActionIR,
    AssociationIR,
    ClientFieldIR,
    ClientShape,
    ControllerIR,
    FieldIR,
    FieldOrigin,
    IRDocument,
    ModelIR,
    ParamIR,
    ParamsProfileIR,
    ResourceIR,
)
from .naming import camel_case, pascal_case, pluralize, snake_case
from .resolver import (
    ResolvedAction,
    ResolvedAssociation,
    ResolvedController,
    ResolvedProfile,
    ResolvedResource,
)
from .types import MEMBER_ACTIONS, PRIMARY_KEY, AssociationKind, ScalarKind

logger = logging.getLogger(__name__)

# CRUD action -> (HTTP method, member route, body profile)
CRUD_ROUTES: dict[str, tuple[str, bool, str | None]] = {
    "index": ("GET", False, None),
    "show": ("GET", True, None),
    "create": ("POST", False, "create"),
    "update": ("PATCH", True, "update"),
    "destroy": ("DELETE", True, None),
}


def association_client_name(assoc: ResolvedAssociation) -> str | None:
    """``author`` -> ``authorId``; polymorphic ``subject`` -> ``subject``."""
    if assoc.kind == AssociationKind.BELONGS_TO:
        return camel_case(assoc.name) + "Id"
    if assoc.kind == AssociationKind.POLYMORPHIC:
        return camel_case(assoc.name)
    return None


def profile_type_name(resource: str, profile: str) -> str:
    """``Post`` + ``create`` -> ``PostCreateParams``."""
    return f"{resource}{pascal_case(profile)}Params"


# =============================================================================
# Model
# =============================================================================


def _association_columns(assoc: ResolvedAssociation) -> list[FieldIR]:
    if assoc.kind == AssociationKind.BELONGS_TO:
        return [
            FieldIR(
                name=f"{assoc.name}_id",
                client_name=association_client_name(assoc),
                kind=ScalarKind.INTEGER,
                nullable=assoc.nullable,
                origin=FieldOrigin.FOREIGN_KEY,
                association=assoc.name,
            )
        ]
    if assoc.kind == AssociationKind.POLYMORPHIC:
        return [
            FieldIR(
                name=f"{assoc.name}_type",
                client_name=None,
                kind=ScalarKind.STRING,
                nullable=assoc.nullable,
                origin=FieldOrigin.POLYMORPHIC_TYPE,
                association=assoc.name,
                choices=list(assoc.targets),
            ),
            FieldIR(
                name=f"{assoc.name}_id",
                client_name=None,
                kind=ScalarKind.INTEGER,
                nullable=assoc.nullable,
                origin=FieldOrigin.POLYMORPHIC_ID,
                association=assoc.name,
            ),
        ]
    return []


def _client_field(f: FieldIR) -> ClientFieldIR:
    return ClientFieldIR(
        name=f.client_name or f.name,
        shape=ClientShape.SCALAR,
        nullable=f.nullable,
        kind=f.kind,
        columns=[f.name],
    )


def build_model_ir(resource: ResolvedResource) -> ModelIR:
    """
    Build the storage and client views of a resource's model.

    Raises:
        ConsistencyError: If a derived column or client name collides with
            another member of the model
    """
    fields: list[FieldIR] = [
        FieldIR(
            name=PRIMARY_KEY,
            client_name=PRIMARY_KEY,
            kind=ScalarKind.INTEGER,
            origin=FieldOrigin.PRIMARY_KEY,
        )
    ]
    client_fields: list[ClientFieldIR] = [_client_field(fields[0])]

    for rf in resource.fields:
        field_ir = FieldIR(
            name=rf.name,
            client_name=camel_case(rf.name) if rf.serialize else None,
            kind=rf.kind,
            nullable=rf.nullable,
            serialize=rf.serialize,
            has_default=rf.has_default,
            default=rf.default,
        )
        fields.append(field_ir)
        if rf.serialize:
            client_fields.append(_client_field(field_ir))

    associations: list[AssociationIR] = []
    for assoc in resource.associations:
        columns = _association_columns(assoc)
        client_name = association_client_name(assoc)
        associations.append(
            AssociationIR(
                name=assoc.name,
                kind=assoc.kind,
                targets=list(assoc.targets),
                nullable=assoc.nullable,
                columns=[c.name for c in columns],
                client_name=client_name,
            )
        )
        fields.extend(columns)
        if client_name is None:
            continue
        if assoc.kind == AssociationKind.POLYMORPHIC:
            client_fields.append(
                ClientFieldIR(
                    name=client_name,
                    shape=ClientShape.POLYMORPHIC,
                    nullable=assoc.nullable,
                    columns=[c.name for c in columns],
                    targets=list(assoc.targets),
                )
            )
        else:
            client_fields.append(
                ClientFieldIR(
                    name=client_name,
                    shape=ClientShape.REFERENCE,
                    nullable=assoc.nullable,
                    kind=ScalarKind.INTEGER,
                    columns=[c.name for c in columns],
                    targets=list(assoc.targets),
                )
            )

    _check_collisions(resource, fields, client_fields)

    return ModelIR(
        fields=fields,
        associations=associations,
        client_fields=client_fields,
        ejected=resource.model_ejected,
    )


def _check_collisions(
    resource: ResolvedResource,
    fields: list[FieldIR],
    client_fields: list[ClientFieldIR],
) -> None:
    seen: dict[str, FieldIR] = {}
    for f in fields:
        other = seen.get(f.name)
        if other is not None:
            culprit = f if f.association else other
            raise ConsistencyError(
                f"{resource.source}: column '{f.name}' of association "
                f"'{culprit.association}' collides with another member of "
                f"resource '{resource.name}'"
            )
        seen[f.name] = f

    client_names: set[str] = set()
    for cf in client_fields:
        if cf.name in client_names:
            raise ConsistencyError(
                f"{resource.source}: client field '{cf.name}' is produced twice "
                f"in resource '{resource.name}'"
            )
        client_names.add(cf.name)


# =============================================================================
# Controller
# =============================================================================


def _build_profile(
    resource: ResolvedResource,
    profile: ResolvedProfile,
    model: ModelIR,
) -> ParamsProfileIR:
    params: list[ParamIR] = []
    for p in profile.params:
        if p.member == "association":
            assoc = model.get_association(p.name)
            client_name = assoc.client_name if assoc and assoc.client_name else p.name
        else:
            client_name = camel_case(p.name)
        params.append(
            ParamIR(
                name=p.name,
                client_name=client_name,
                source=p.member,
                required=p.required,
            )
        )
    return ParamsProfileIR(
        name=profile.name,
        type_name=profile_type_name(resource.name, profile.name),
        params=params,
        expanded_from=profile.expanded_from,
    )


def _build_action(action: ResolvedAction, profiles: set[str]) -> ActionIR:
    if action.crud:
        method, member, body = CRUD_ROUTES[action.name]
        path = "/{id}" if action.name in MEMBER_ACTIONS else "/"
    else:
        method, member = "POST", True
        body = action.name
        path = f"/{{id}}/{action.name}"

    return ActionIR(
        name=action.name,
        crud=action.crud,
        method=method,
        path=path,
        member=member,
        body_profile=body if body in profiles else None,
        status=action.status,
        reference=action.reference,
    )


def build_controller_ir(
    resource: ResolvedResource,
    controller: ResolvedController,
    model: ModelIR,
) -> ControllerIR:
    profiles = [_build_profile(resource, p, model) for p in controller.profiles]
    profile_names = {p.name for p in profiles}
    return ControllerIR(
        formats=list(controller.formats),
        profiles=profiles,
        actions=[_build_action(a, profile_names) for a in controller.actions],
        ejected=controller.ejected,
    )


# =============================================================================
# Document
# =============================================================================


def build_resource_ir(resource: ResolvedResource) -> ResourceIR:
    model = build_model_ir(resource)
    controller = None
    if resource.controller is not None:
        controller = build_controller_ir(resource, resource.controller, model)

    module = snake_case(resource.name)
    return ResourceIR(
        name=resource.name,
        source=resource.source.as_posix(),
        module=module,
        table=pluralize(module),
        model=model,
        controller=controller,
    )


def build_ir_document(resources: list[ResolvedResource]) -> IRDocument:
    """
    Assemble the IR document for a resolved batch.

    Args:
        resources: Resolved resources, already in input order

    Raises:
        BatchError: If any resource has colliding columns or client names
    """
    built: dict[str, ResourceIR] = {}
    errors: list[ViaError] = []
    for resource in resources:
        try:
            built[resource.name] = build_resource_ir(resource)
        except ConsistencyError as e:
            errors.append(e)

    if errors:
        raise BatchError(errors)

    logger.debug(f"Built IR for {len(built)} resource(s)")
    return IRDocument(resources=built)
