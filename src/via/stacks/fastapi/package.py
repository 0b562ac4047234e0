"""
FastAPI stack package scaffolding.

Renders the aggregation entry point of the generated package and the
generator-owned dependency manifest.
"""

from __future__ import annotations

from via.core.ir import IRDocument
from via.stacks.base import GENERATED_HEADER, Generator, GeneratorResult, RenderOptions

PYDANTIC_REQUIREMENT = "pydantic>=2"
FASTAPI_REQUIREMENT = "fastapi"


def has_routers(document: IRDocument) -> bool:
    return any(r.controller is not None for r in document.resource_list)


def required_dependencies(document: IRDocument) -> list[str]:
    """Exactly the distributions the rendered package imports."""
    deps = [PYDANTIC_REQUIREMENT]
    if has_routers(document):
        deps.insert(0, FASTAPI_REQUIREMENT)
    return deps


def generate_pyproject(document: IRDocument, options: RenderOptions) -> str:
    packages = [options.package, f"{options.package}.models"]
    if has_routers(document):
        packages.append(f"{options.package}.controllers")

    lines = [
        f"# {GENERATED_HEADER}",
        "",
        "[build-system]",
        'requires = ["setuptools>=61"]',
        'build-backend = "setuptools.build_meta"',
        "",
        "[project]",
        f'name = "{options.project_name}"',
        f'version = "{options.project_version}"',
        'requires-python = ">=3.11"',
        "dependencies = [",
    ]
    lines.extend(f'    "{dep}",' for dep in required_dependencies(document))
    lines.append("]")
    lines.append("")
    lines.append("[tool.setuptools]")
    lines.append("packages = [" + ", ".join(f'"{p}"' for p in packages) + "]")
    return "\n".join(lines) + "\n"


def generate_package_init(document: IRDocument, options: RenderOptions) -> str:
    lines = [
        '"""',
        f"{options.package}: backend package rendered from .via resources.",
        GENERATED_HEADER,
        "",
        "Mount it on a host application with ``register_routes(app)``.",
        '"""',
        "",
    ]
    if has_routers(document):
        lines.extend(
            [
                "from . import models",
                "from .controllers import ROUTERS, register_routes",
                "",
                '__all__ = ["ROUTERS", "models", "register_routes"]',
            ]
        )
    else:
        lines.extend(
            [
                "from typing import Any",
                "",
                "from . import models",
                "",
                "ROUTERS: tuple[Any, ...] = ()",
                "",
                "",
                "def register_routes(app: Any) -> None:",
                '    """No resource declares a controller; nothing to mount."""',
                "",
                "",
                '__all__ = ["ROUTERS", "models", "register_routes"]',
            ]
        )
    return "\n".join(lines) + "\n"


class PackageGenerator(Generator):
    """Renders ``pyproject.toml`` and ``<package>/__init__.py``."""

    def generate(self) -> GeneratorResult:
        result = GeneratorResult()
        result.add_file("pyproject.toml", generate_pyproject(self.document, self.options))
        result.add_file(
            f"{self.options.package}/__init__.py",
            generate_package_init(self.document, self.options),
        )
        return result
