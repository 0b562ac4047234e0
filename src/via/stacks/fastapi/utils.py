"""
Utility functions for the FastAPI stack.

Contains type mappings, import bookkeeping, and naming helpers.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from via.core.naming import pascal_case
from via.core.types import ScalarKind

if TYPE_CHECKING:
    from via.core.ast import DefaultValue, ExternalRef
    from via.core.ir import AssociationIR, ResourceIR


# Scalar kind -> (annotation, import module, import name)
TYPE_MAPPING: dict[ScalarKind, tuple[str, str | None, str | None]] = {
    ScalarKind.STRING: ("str", None, None),
    ScalarKind.TEXT: ("str", None, None),
    ScalarKind.BOOLEAN: ("bool", None, None),
    ScalarKind.INTEGER: ("int", None, None),
    ScalarKind.FLOAT: ("float", None, None),
    ScalarKind.DECIMAL: ("Decimal", "decimal", "Decimal"),
    ScalarKind.DATETIME: ("datetime", "datetime", "datetime"),
    ScalarKind.DATE: ("date", "datetime", "date"),
    ScalarKind.UUID: ("UUID", "uuid", "UUID"),
    ScalarKind.JSON: ("Any", "typing", "Any"),
}


class ImportSet:
    """Collects ``from module import name`` lines and renders them sorted."""

    def __init__(self) -> None:
        self._stdlib: dict[str, set[str]] = {}
        self._third_party: dict[str, set[str]] = {}
        self._local: list[str] = []

    def add_stdlib(self, module: str, name: str) -> None:
        self._stdlib.setdefault(module, set()).add(name)

    def add_third_party(self, module: str, name: str) -> None:
        self._third_party.setdefault(module, set()).add(name)

    def add_local(self, line: str) -> None:
        if line not in self._local:
            self._local.append(line)

    def add_scalar(self, kind: ScalarKind) -> None:
        _, module, name = TYPE_MAPPING[kind]
        if module and name:
            self.add_stdlib(module, name)

    def render(self) -> list[str]:
        groups: list[list[str]] = []
        for table in (self._stdlib, self._third_party):
            if table:
                groups.append(
                    [
                        f"from {module} import {', '.join(sorted(names))}"
                        for module, names in sorted(table.items())
                    ]
                )
        if self._local:
            groups.append(sorted(self._local))

        lines: list[str] = []
        for group in groups:
            if lines:
                lines.append("")
            lines.extend(group)
        return lines


def python_type(kind: ScalarKind) -> str:
    return TYPE_MAPPING[kind][0]


def python_literal(value: DefaultValue) -> str:
    """Render a DSL default literal as Python source (double-quoted strings)."""
    if isinstance(value, str):
        return json.dumps(value)
    return repr(value)


def module_path(ref: ExternalRef) -> str:
    """``app/handlers/posts.py`` -> ``app.handlers.posts``."""
    path = ref.path[: -len(".py")] if ref.path.endswith(".py") else ref.path
    parts = [p for p in path.split("/") if p and p != "."]
    if parts and parts[-1] == "__init__":
        parts.pop()
    return ".".join(parts)


def external_import(ref: ExternalRef, alias: str) -> str:
    """Import line binding an ejected symbol under ``alias``."""
    symbol = ref.symbol or alias
    if symbol == alias:
        return f"from {module_path(ref)} import {symbol}"
    return f"from {module_path(ref)} import {symbol} as {alias}"


def ref_variant_name(resource: ResourceIR, assoc: AssociationIR, target: str) -> str:
    """``Comment`` + ``subject`` + ``Post`` -> ``CommentSubjectPost``."""
    return f"{resource.name}{pascal_case(assoc.name)}{target}"


def ref_alias_name(resource: ResourceIR, assoc: AssociationIR) -> str:
    """``Comment`` + ``subject`` -> ``CommentSubjectRef``."""
    return f"{resource.name}{pascal_case(assoc.name)}Ref"


def field_call(**kwargs: str) -> str:
    """Render ``Field(...)`` from pre-rendered keyword values."""
    args = ", ".join(f"{k}={v}" for k, v in kwargs.items())
    return f"Field({args})"
