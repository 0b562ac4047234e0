"""
TypeScript type stack for Via.

Renders client-facing declarations from the IR's client view:

    <types_dir>/models/<module>.ts   <Resource>, <Resource><Profile>Params
    <types_dir>/index.ts             re-exports every module

Only ``client_fields`` are rendered, so ``serialize: false`` columns can
never leak into client types.
"""

from __future__ import annotations

from via.core.errors import EmissionError
from via.core.ir import ClientFieldIR, ClientShape, IRDocument, ParamIR, ResourceIR
from via.core.naming import pascal_case
from via.core.types import ScalarKind
from via.stacks import Backend, BackendCapabilities
from via.stacks.base import GENERATED_HEADER, Generator, GeneratorResult, RenderOptions

TYPE_MAPPING: dict[ScalarKind, str] = {
    ScalarKind.STRING: "string",
    ScalarKind.TEXT: "string",
    ScalarKind.BOOLEAN: "boolean",
    ScalarKind.INTEGER: "number",
    ScalarKind.FLOAT: "number",
    ScalarKind.DECIMAL: "string",
    ScalarKind.DATETIME: "string",
    ScalarKind.DATE: "string",
    ScalarKind.UUID: "string",
    ScalarKind.JSON: "unknown",
}


def _header(title: str, source: str | None = None) -> list[str]:
    lines = ["/**", f" * {title}", f" * {GENERATED_HEADER}"]
    if source:
        lines.append(f" * Source: {source}")
    lines.append(" */")
    return lines


def ref_type_name(resource: ResourceIR, association: str) -> str:
    """``Comment`` + ``subject`` -> ``CommentSubjectRef``."""
    return f"{resource.name}{pascal_case(association)}Ref"


def polymorphic_union(targets: list[str]) -> str:
    """``["Post", "Image"]`` -> ``{ type: "Post"; id: number } | { type: "Image"; id: number }``."""
    return " | ".join(f'{{ type: "{t}"; id: number }}' for t in targets)


def client_field_type(resource: ResourceIR, cf: ClientFieldIR) -> str:
    if cf.shape == ClientShape.POLYMORPHIC:
        for assoc in resource.model.associations:
            if assoc.client_name == cf.name:
                return ref_type_name(resource, assoc.name)
        raise EmissionError(f"Client field '{cf.name}' has no association on {resource.name}")
    if cf.kind is None:
        return "number" if cf.shape == ClientShape.REFERENCE else "unknown"
    return TYPE_MAPPING[cf.kind]


def param_type(resource: ResourceIR, param: ParamIR) -> str:
    model = resource.model
    if param.source == "field":
        field = model.get_field(param.name)
        if field is None:
            raise EmissionError(f"Params entry '{param.name}' has no field on {resource.name}")
        return TYPE_MAPPING[field.kind]

    assoc = model.get_association(param.name)
    if assoc is None:
        raise EmissionError(
            f"Params entry '{param.name}' has no association on {resource.name}"
        )
    if assoc.polymorphic:
        return ref_type_name(resource, assoc.name)
    return "number"


def generate_resource_types(resource: ResourceIR) -> str:
    """Render ``models/<module>.ts`` for one resource."""
    lines = _header(f"{resource.name} types.", resource.source)
    lines.append("")

    for assoc in resource.model.associations:
        if assoc.polymorphic:
            lines.append(
                f"export type {ref_type_name(resource, assoc.name)} = "
                f"{polymorphic_union(assoc.targets)};"
            )
            lines.append("")

    lines.append(f"export interface {resource.name} {{")
    for cf in resource.model.client_fields:
        marker = "?" if cf.nullable else ""
        lines.append(f"  {cf.name}{marker}: {client_field_type(resource, cf)};")
    lines.append("}")

    if resource.controller is not None:
        for profile in resource.controller.profiles:
            lines.append("")
            lines.append(f"export interface {profile.type_name} {{")
            for param in profile.params:
                marker = "" if param.required else "?"
                lines.append(f"  {param.client_name}{marker}: {param_type(resource, param)};")
            lines.append("}")

    return "\n".join(lines) + "\n"


def generate_index(resources: list[ResourceIR]) -> str:
    lines = _header("Client types for every Via resource.")
    lines.append("")
    for module in sorted(r.module for r in resources):
        lines.append(f'export * from "./models/{module}";')
    return "\n".join(lines) + "\n"


class TypesGenerator(Generator):
    """Renders ``<types_dir>``."""

    def generate(self) -> GeneratorResult:
        result = GeneratorResult()
        root = self.options.types_dir.strip("/")
        resources = self.document.resource_list

        for resource in resources:
            result.add_file(f"{root}/models/{resource.module}.ts", generate_resource_types(resource))
        result.add_file(f"{root}/index.ts", generate_index(resources))
        return result


class TypeScriptBackend(Backend):
    """Type stack rendering TypeScript declarations."""

    def render(self, document: IRDocument, options: RenderOptions) -> GeneratorResult:
        return TypesGenerator(document, options).generate()

    def get_capabilities(self) -> BackendCapabilities:
        return BackendCapabilities(
            name="typescript",
            description="TypeScript interfaces for models and params profiles",
            kind="types",
            output_formats=["ts"],
        )


__all__ = ["TypeScriptBackend", "TypesGenerator"]
