"""
Project configuration.

Parses ``via.toml`` at the project root into typed settings. Every section
is optional; a missing file yields the defaults.

Example::

    [project]
    name = "blog"

    [paths]
    app = "app"
    out = "generated"

    [backend]
    stack = "fastapi"
    package = "blog_api"

    [types]
    enabled = true
    dir = "ts"
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigError

MANIFEST_NAME = "via.toml"


class ProjectConfig(BaseModel):
    name: str = "via-app"
    version: str = "0.1.0"

    model_config = ConfigDict(frozen=True, extra="forbid")


class PathsConfig(BaseModel):
    """Input and output locations, relative to the project root."""

    app: str = "app"
    out: str = "generated"
    ir: str | None = None  # defaults to <out>/via.ir.json

    model_config = ConfigDict(frozen=True, extra="forbid")


class BackendConfig(BaseModel):
    stack: str = "fastapi"
    package: str = "via_generated"

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("package")
    @classmethod
    def validate_package(cls, v: str) -> str:
        """The generated package must be importable."""
        if not v.isidentifier():
            raise ValueError(f"Backend package '{v}' is not a valid Python identifier")
        return v


class TypesConfig(BaseModel):
    enabled: bool = True
    dir: str = "ts"

    model_config = ConfigDict(frozen=True, extra="forbid")


class ViaConfig(BaseModel):
    """Settings loaded from via.toml."""

    project: ProjectConfig = Field(default_factory=ProjectConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    backend: BackendConfig = Field(default_factory=BackendConfig)
    types: TypesConfig = Field(default_factory=TypesConfig)

    model_config = ConfigDict(frozen=True, extra="forbid")


def load_config(path: Path) -> ViaConfig:
    """
    Load project configuration from via.toml.

    Args:
        path: Path to via.toml

    Returns:
        ViaConfig with parsed values or defaults if the file does not exist

    Raises:
        ConfigError: If the file is unreadable, not valid TOML, or has
            unknown sections or invalid values
    """
    if not path.exists():
        return ViaConfig()

    try:
        with open(path, "rb") as f:
            data: dict[str, Any] = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"Failed to read {path}: {e}") from e

    try:
        return ViaConfig.model_validate(data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigError(f"Invalid {path.name}: {problems}") from e
