"""
Top-level IR document and its durable JSON form.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..errors import ViaError
from .controllers import ControllerIR
from .fields import ModelIR

IR_SCHEMA_VERSION = 1


class ResourceIR(BaseModel):
    """Resolved shape of one resource, shared by every emitter."""

    name: str
    source: str
    module: str
    table: str
    model: ModelIR
    controller: ControllerIR | None = None

    model_config = ConfigDict(frozen=True)


class IRDocument(BaseModel):
    """
    Snapshot of a whole batch.

    ``resources`` preserves input order (file order, then declaration order);
    dict insertion order carries through to the JSON artifact.
    """

    schema_version: Literal[1] = IR_SCHEMA_VERSION
    generator: Literal["via"] = "via"
    resources: dict[str, ResourceIR] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @property
    def resource_list(self) -> list[ResourceIR]:
        return list(self.resources.values())

    def get_resource(self, name: str) -> ResourceIR | None:
        return self.resources.get(name)


def dump_ir(document: IRDocument) -> str:
    """Serialize to pretty, deterministic JSON with a trailing newline."""
    data = document.model_dump(mode="json")
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def load_ir_document(source: str | Path) -> IRDocument:
    """
    Load an IR document from JSON text or a file path.

    Raises:
        ViaError: If the file cannot be read or is not a valid IR document
    """
    if isinstance(source, Path):
        try:
            text = source.read_text(encoding="utf-8")
        except OSError as e:
            raise ViaError(f"Failed to read IR document at {source}: {e}") from e
    else:
        text = source

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ViaError(f"IR document is not valid JSON: {e}") from e

    version = data.get("schema_version") if isinstance(data, dict) else None
    if version != IR_SCHEMA_VERSION:
        raise ViaError(
            f"Unsupported IR schema version {version!r} (expected {IR_SCHEMA_VERSION})"
        )

    try:
        return IRDocument.model_validate(data)
    except ValidationError as e:
        raise ViaError(f"Invalid IR document: {e}") from e
