"""
FastAPI stack model generation.

Renders one pydantic module per resource containing:
- the storage model ``<Resource>`` (every column, hidden ones excluded
  from dumps)
- polymorphic reference variants and their ``<Resource><Assoc>Ref`` union
- one ``<Resource><Profile>Params`` request body per params profile
"""

from __future__ import annotations

import json
from textwrap import dedent

from via.core.errors import EmissionError
from via.core.ir import FieldIR, ParamIR, ParamsProfileIR, ResourceIR
from via.stacks.base import GENERATED_HEADER, Generator, GeneratorResult

from .utils import (
    ImportSet,
    external_import,
    field_call,
    python_literal,
    python_type,
    ref_alias_name,
    ref_variant_name,
)


def _literal_annotation(values: list[str], imports: ImportSet) -> str:
    imports.add_stdlib("typing", "Literal")
    return "Literal[" + ", ".join(json.dumps(v) for v in values) + "]"


def _field_annotation(field: FieldIR, imports: ImportSet) -> str:
    if field.choices:
        return _literal_annotation(field.choices, imports)
    imports.add_scalar(field.kind)
    return python_type(field.kind)


def _attribute(
    name: str,
    annotation: str,
    default: str | None = None,
    **field_kwargs: str,
) -> str:
    if field_kwargs:
        if default is not None:
            field_kwargs = {"default": default, **field_kwargs}
        return f"    {name}: {annotation} = {field_call(**field_kwargs)}"
    if default is not None:
        return f"    {name}: {annotation} = {default}"
    return f"    {name}: {annotation}"


def render_storage_field(field: FieldIR, imports: ImportSet) -> str:
    """Render one column of the storage model."""
    annotation = _field_annotation(field, imports)
    if field.nullable:
        annotation += " | None"

    default: str | None = None
    if field.has_default:
        default = python_literal(field.default)
    elif field.nullable:
        default = "None"

    kwargs: dict[str, str] = {}
    if field.client_name and field.client_name != field.name:
        kwargs["alias"] = json.dumps(field.client_name)
    if not field.serialize:
        kwargs["exclude"] = "True"
    return _attribute(field.name, annotation, default, **kwargs)


def render_param(resource: ResourceIR, param: ParamIR, imports: ImportSet) -> str:
    """Render one params-profile entry as a request-body attribute."""
    model = resource.model
    alias: str | None = None

    if param.source == "field":
        field = model.get_field(param.name)
        if field is None:
            raise EmissionError(f"Params entry '{param.name}' has no field on {resource.name}")
        name = field.name
        annotation = _field_annotation(field, imports)
    else:
        assoc = model.get_association(param.name)
        if assoc is None:
            raise EmissionError(
                f"Params entry '{param.name}' has no association on {resource.name}"
            )
        if assoc.polymorphic:
            name = assoc.name
            annotation = ref_alias_name(resource, assoc)
        else:
            name = f"{assoc.name}_id"
            annotation = "int"
    if param.client_name != name:
        alias = json.dumps(param.client_name)

    default = None if param.required else "None"
    if not param.required:
        annotation += " | None"
    if alias:
        return _attribute(name, annotation, default, alias=alias)
    return _attribute(name, annotation, default)


def _needs_alias_config(lines: list[str]) -> bool:
    return any("alias=" in line for line in lines)


def _class_block(name: str, docstring: str, body: list[str]) -> list[str]:
    lines = [f"class {name}(BaseModel):", f'    """{docstring}"""', ""]
    if _needs_alias_config(body):
        lines.append("    model_config = ConfigDict(populate_by_name=True)")
        lines.append("")
    lines.extend(body or ["    pass"])
    while lines[-1] == "":
        lines.pop()
    return lines


def generate_polymorphic_refs(resource: ResourceIR, imports: ImportSet) -> list[str]:
    """Render ``{type, id}`` variants plus the discriminated union alias."""
    lines: list[str] = []
    for assoc in resource.model.associations:
        if not assoc.polymorphic:
            continue
        variants: list[str] = []
        for target in assoc.targets:
            variant = ref_variant_name(resource, assoc, target)
            variants.append(variant)
            body = [
                f"    type: {_literal_annotation([target], imports)}",
                "    id: int",
            ]
            lines.extend(_class_block(variant, f"Reference to a {target}.", body))
            lines.extend(["", ""])

        alias = ref_alias_name(resource, assoc)
        if len(variants) == 1:
            lines.append(f"{alias} = {variants[0]}")
        else:
            imports.add_stdlib("typing", "Annotated")
            lines.append(
                f"{alias} = Annotated[{' | '.join(variants)}, Field(discriminator=\"type\")]"
            )
        lines.extend(["", ""])
    return lines


def generate_storage_model(resource: ResourceIR, imports: ImportSet) -> list[str]:
    body = [render_storage_field(f, imports) for f in resource.model.fields]
    return _class_block(resource.name, f"Storage model for {resource.name}.", body)


def generate_params_model(
    resource: ResourceIR,
    profile: ParamsProfileIR,
    imports: ImportSet,
) -> list[str]:
    body = [render_param(resource, p, imports) for p in profile.params]
    doc = f"Request body for the '{profile.name}' params profile."
    return _class_block(profile.type_name, doc, body)


def exported_names(resource: ResourceIR) -> list[str]:
    """Public names of a resource's model module, in render order."""
    names = [resource.name]
    for assoc in resource.model.associations:
        if assoc.polymorphic:
            names.append(ref_alias_name(resource, assoc))
    if resource.controller is not None:
        names.extend(p.type_name for p in resource.controller.profiles)
    return names


def generate_resource_module(resource: ResourceIR) -> str:
    """Render ``models/<module>.py`` for one resource."""
    imports = ImportSet()
    blocks: list[str] = []

    ejected = resource.model.ejected
    if ejected is not None:
        imports.add_local(external_import(ejected, resource.name))

    ref_lines = generate_polymorphic_refs(resource, imports)
    blocks.extend(ref_lines)

    if ejected is None:
        blocks.extend(generate_storage_model(resource, imports))
        blocks.extend(["", ""])
    else:
        blocks.insert(0, f"# ejected: {resource.name} is implemented in {ejected}")
        blocks.insert(1, "")

    if resource.controller is not None:
        for profile in resource.controller.profiles:
            blocks.extend(generate_params_model(resource, profile, imports))
            blocks.extend(["", ""])

    body = "\n".join(blocks)
    if "(BaseModel):" in body:
        imports.add_third_party("pydantic", "BaseModel")
    if "ConfigDict(" in body:
        imports.add_third_party("pydantic", "ConfigDict")
    if "Field(" in body:
        imports.add_third_party("pydantic", "Field")

    header = dedent(f'''
        """
        {resource.name} model.
        {GENERATED_HEADER}
        Source: {resource.source}
        """
    ''').strip()

    parts = [header, "", *imports.render(), "", ""]
    parts.append(body.rstrip())
    names = ", ".join(json.dumps(n) for n in exported_names(resource))
    parts.extend(["", "", f"__all__ = [{names}]"])
    return "\n".join(parts) + "\n"


def generate_models_init(document_resources: list[ResourceIR]) -> str:
    lines = [
        '"""',
        "Generated models.",
        GENERATED_HEADER,
        '"""',
        "",
    ]
    exports: list[str] = []
    for resource in sorted(document_resources, key=lambda r: r.module):
        names = exported_names(resource)
        exports.extend(names)
        lines.append(f"from .{resource.module} import {', '.join(names)}")

    lines.append("")
    lines.append("__all__ = [")
    for name in exports:
        lines.append(f'    "{name}",')
    lines.append("]")
    return "\n".join(lines) + "\n"


class ModelsGenerator(Generator):
    """Renders ``<package>/models``."""

    def generate(self) -> GeneratorResult:
        result = GeneratorResult()
        root = f"{self.options.package}/models"
        resources = self.document.resource_list

        for resource in resources:
            result.add_file(f"{root}/{resource.module}.py", generate_resource_module(resource))
            if resource.model.ejected is not None:
                result.add_ejected(resource.model.ejected)

        result.add_file(f"{root}/__init__.py", generate_models_init(resources))
        return result
