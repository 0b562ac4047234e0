"""
Regeneration run configuration.

Merges via.toml settings with command-line overrides into absolute paths
and validates that the output root can be safely replaced wholesale.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from via.core.errors import ConfigError
from via.core.manifest import ViaConfig
from via.stacks.base import RenderOptions

IR_FILENAME = "via.ir.json"


@dataclass(frozen=True)
class RegenerationConfig:
    """
    Everything one regeneration run needs.

    Attributes:
        project_root: Directory ejection references are relative to
        app_dir: Input root scanned for .via files
        out_dir: Generated-output root (replaced wholesale on every write)
        ir_path: Where the IR snapshot is written
        backend: Backend stack name
        types: Type stack name, or None to skip client types
        render: Options shared by every generator
        max_workers: Thread pool size for resolution (None = automatic)
    """

    project_root: Path
    app_dir: Path
    out_dir: Path
    ir_path: Path
    backend: str = "fastapi"
    types: str | None = "typescript"
    render: RenderOptions = RenderOptions()
    max_workers: int | None = None

    @classmethod
    def from_manifest(
        cls,
        project_root: Path,
        manifest: ViaConfig | None = None,
        app: Path | None = None,
        out: Path | None = None,
        ir: Path | None = None,
        max_workers: int | None = None,
    ) -> RegenerationConfig:
        """
        Build a run configuration.

        Command-line values (``app``, ``out``, ``ir``) override via.toml;
        relative paths are resolved against ``project_root``.
        """
        manifest = manifest or ViaConfig()
        root = project_root.resolve()

        def absolute(value: Path | str) -> Path:
            path = Path(value)
            return (path if path.is_absolute() else root / path).resolve()

        app_dir = absolute(app if app is not None else manifest.paths.app)
        out_dir = absolute(out if out is not None else manifest.paths.out)
        if ir is not None:
            ir_path = absolute(ir)
        elif manifest.paths.ir:
            ir_path = absolute(manifest.paths.ir)
        else:
            ir_path = out_dir / IR_FILENAME

        config = cls(
            project_root=root,
            app_dir=app_dir,
            out_dir=out_dir,
            ir_path=ir_path,
            backend=manifest.backend.stack,
            types="typescript" if manifest.types.enabled else None,
            render=RenderOptions(
                package=manifest.backend.package,
                types_dir=manifest.types.dir,
                project_name=manifest.project.name,
                project_version=manifest.project.version,
            ),
            max_workers=max_workers,
        )
        config.validate()
        return config

    def validate(self) -> None:
        """
        Refuse layouts where replacing the output root would destroy inputs.

        Raises:
            ConfigError: If the output root is the project root, contains
                the project root, or contains the input root
        """
        if self.out_dir == self.project_root or self.project_root.is_relative_to(self.out_dir):
            raise ConfigError(
                f"Output root {self.out_dir} must be a subdirectory of the project root"
            )
        if self.app_dir.is_relative_to(self.out_dir):
            raise ConfigError(
                f"Input root {self.app_dir} lies inside the output root {self.out_dir}"
            )
        if self.ir_path.suffix == ".via":
            raise ConfigError(f"IR path {self.ir_path} would be picked up as a .via source")

    @property
    def ir_inside_output(self) -> bool:
        return self.ir_path.is_relative_to(self.out_dir)
