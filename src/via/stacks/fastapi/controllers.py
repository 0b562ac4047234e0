"""
FastAPI stack controller generation.

Renders one router module per resource that declares a controller. Each
module exposes ``router`` and ``routes()``; handlers return a placeholder
payload describing the action, the supplied id, and the request body.
"""

from __future__ import annotations

import keyword
from textwrap import dedent

from via.core.errors import EmissionError
from via.core.ir import ActionIR, ResourceIR
from via.core.types import ActionStatus
from via.stacks.base import GENERATED_HEADER, Generator, GeneratorResult

from .utils import ImportSet, external_import

RESERVED_HANDLER_NAMES = frozenset({"router", "routes", "RESOURCE", "FORMATS"})

ACTION_DOCS = {
    "index": "List {name} records.",
    "show": "Show one {name}.",
    "create": "Create a {name}.",
    "update": "Update a {name}.",
    "destroy": "Destroy a {name}.",
}


def _route_path(action: ActionIR) -> str:
    return "" if action.path == "/" else action.path


def _ejected_alias(action: ActionIR) -> str:
    return f"{action.name}_ejected"


def generate_handler(resource: ResourceIR, action: ActionIR) -> list[str]:
    """Render one generated handler function."""
    if action.name in RESERVED_HANDLER_NAMES:
        raise EmissionError(
            f"Action '{action.name}' on {resource.name} clashes with a generated module name"
        )
    if keyword.iskeyword(action.name):
        raise EmissionError(f"Action '{action.name}' on {resource.name} is a Python keyword")

    profile = None
    if resource.controller is not None and action.body_profile:
        profile = resource.controller.get_profile(action.body_profile)

    params = ["ctx: Request"]
    if action.member:
        params.append("id: int")
    if profile is not None:
        params.append(f"params: {profile.type_name}")

    doc = ACTION_DOCS.get(action.name, "Run the '{action}' action on a {name}.").format(
        name=resource.name, action=action.name
    )

    payload = [f'"resource": "{resource.name}"', f'"action": "{action.name}"']
    if action.member:
        payload.append('"id": id')
    if profile is not None:
        payload.append(
            '"payload": params.model_dump(mode="json", by_alias=True, exclude_unset=True)'
        )

    lines = [
        f'@router.{action.method.lower()}("{_route_path(action)}")',
        f"def {action.name}({', '.join(params)}) -> dict[str, Any]:",
        f'    """{doc}"""',
        "    return {",
    ]
    lines.extend(f"        {item}," for item in payload)
    lines.append("    }")
    return lines


def generate_skipped_action(action: ActionIR) -> list[str]:
    """Marker (and route registration for ejected handlers) for a skipped action."""
    if action.status == ActionStatus.OVERRIDDEN:
        return [f"# overridden: '{action.name}' is provided by hand-written code and not generated"]

    if action.reference is None:
        raise EmissionError(f"Ejected action '{action.name}' has no external reference")
    return [
        f"# ejected: '{action.name}' is implemented in {action.reference}",
        (
            f'router.add_api_route("{_route_path(action)}", {_ejected_alias(action)}, '
            f'methods=["{action.method}"], name="{action.name}")'
        ),
    ]


def generate_controller_module(resource: ResourceIR) -> str:
    """Render ``controllers/<module>.py`` for one resource."""
    controller = resource.controller
    if controller is None:
        raise EmissionError(f"{resource.name} has no controller to render")

    if controller.ejected is not None:
        return _generate_ejected_controller(resource)

    imports = ImportSet()
    imports.add_third_party("fastapi", "APIRouter")

    if controller.generated_actions:
        imports.add_third_party("fastapi", "Request")
        imports.add_stdlib("typing", "Any")

    blocks: list[list[str]] = []
    body_types: list[str] = []
    for action in controller.actions:
        if action.generated:
            blocks.append(generate_handler(resource, action))
            profile = controller.get_profile(action.body_profile) if action.body_profile else None
            if profile is not None and profile.type_name not in body_types:
                body_types.append(profile.type_name)
        else:
            if action.status == ActionStatus.EJECTED and action.reference is not None:
                imports.add_local(external_import(action.reference, _ejected_alias(action)))
            blocks.append(generate_skipped_action(action))

    if body_types:
        imports.add_local(f"from ..models.{resource.module} import {', '.join(sorted(body_types))}")

    formats = ", ".join(f'"{f}"' for f in controller.formats)
    if len(controller.formats) == 1:
        formats += ","

    header = dedent(f'''
        """
        {resource.name} controller.
        {GENERATED_HEADER}
        Source: {resource.source}
        """
    ''').strip()

    lines = [header, "", *imports.render(), ""]
    lines.append(f'RESOURCE = "{resource.name}"')
    lines.append(f"FORMATS: tuple[str, ...] = ({formats})")
    lines.append("")
    lines.append(f'router = APIRouter(prefix="/{resource.table}", tags=["{resource.name}"])')

    for block in blocks:
        lines.extend(["", ""])
        lines.extend(block)

    lines.extend(["", ""])
    lines.extend(
        [
            "def routes() -> APIRouter:",
            f'    """Router exposing every {resource.name} action."""',
            "    return router",
            "",
            "",
            '__all__ = ["FORMATS", "RESOURCE", "router", "routes"]',
        ]
    )
    return "\n".join(lines) + "\n"


def _generate_ejected_controller(resource: ResourceIR) -> str:
    controller = resource.controller
    if controller is None or controller.ejected is None:
        raise EmissionError(f"{resource.name} has no ejected controller to import")
    ref = controller.ejected

    return "\n".join(
        [
            '"""',
            f"{resource.name} controller (ejected).",
            GENERATED_HEADER,
            f"Source: {resource.source}",
            '"""',
            "",
            external_import(ref, "routes"),
            "",
            f"# ejected: {resource.name} controller is implemented in {ref}",
            "",
            '__all__ = ["routes"]',
        ]
    ) + "\n"


def generate_controllers_init(resources: list[ResourceIR]) -> str:
    modules = [r.module for r in resources]
    lines = [
        '"""',
        "Generated controllers.",
        GENERATED_HEADER,
        '"""',
        "",
        "from fastapi import APIRouter, FastAPI",
        "",
        f"from . import {', '.join(sorted(modules))}",
        "",
        "ROUTERS: tuple[APIRouter, ...] = (",
    ]
    lines.extend(f"    {module}.routes()," for module in modules)
    lines.append(")")
    lines.extend(
        dedent('''


            def register_routes(app: FastAPI) -> None:
                """Mount every generated router on the host application."""
                for router in ROUTERS:
                    app.include_router(router)


            __all__ = ["ROUTERS", "register_routes"]
        ''').rstrip().split("\n")[1:]
    )
    return "\n".join(lines) + "\n"


class ControllersGenerator(Generator):
    """Renders ``<package>/controllers`` for resources with a controller."""

    def generate(self) -> GeneratorResult:
        result = GeneratorResult()
        root = f"{self.options.package}/controllers"
        resources = [r for r in self.document.resource_list if r.controller is not None]
        if not resources:
            return result

        for resource in resources:
            controller = resource.controller
            result.add_file(f"{root}/{resource.module}.py", generate_controller_module(resource))
            if controller.ejected is not None:
                result.add_ejected(controller.ejected)
            for action in controller.actions:
                if action.reference is not None:
                    result.add_ejected(action.reference)

        result.add_file(f"{root}/__init__.py", generate_controllers_init(resources))
        return result
