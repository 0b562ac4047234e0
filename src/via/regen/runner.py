"""
Regeneration runner - orchestrates the full Via pipeline.

discover -> parse -> resolve -> IR -> {backend, types} -> diff -> commit

Nothing is written unless every stage succeeds. Parse and resolution
errors are collected across the whole batch and raised together as a
BatchError before any rendering starts.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from via.core.ast import ExternalRef, SourceFile
from via.core.errors import BatchError, ConfigError, EmissionError
from via.core.fileset import discover_via_files
from via.core.ir import IRDocument, dump_ir
from via.core.ir_builder import build_ir_document
from via.core.parser import parse_files
from via.core.resolver import resolve_batch
from via.stacks import get_backend
from via.stacks.base import GeneratorResult

from .changes import OutputChangeSet, detect_output_changes
from .config import RegenerationConfig
from .staging import commit_tree, write_file_atomic

logger = logging.getLogger(__name__)


@dataclass
class CheckResult:
    """Outcome of the front half of the pipeline (no rendering)."""

    files: list[Path] = field(default_factory=list)
    sources: list[SourceFile] = field(default_factory=list)
    document: IRDocument = field(default_factory=IRDocument)

    @property
    def resource_count(self) -> int:
        return len(self.document.resources)


@dataclass
class RegenerationResult:
    """
    Result of a regeneration run.

    Attributes:
        check: Parsed sources and the IR document
        files: Rendered tree, keyed by path relative to the output root
        ir_json: Serialized IR snapshot
        changes: Diff of the rendered tree against the existing output root
        written: True if the output root was replaced
        ir_written: True if an external IR file was rewritten
        dry_run: True if the run was not allowed to write
    """

    check: CheckResult
    files: dict[PurePosixPath, str] = field(default_factory=dict)
    ir_json: str = ""
    changes: OutputChangeSet = field(default_factory=OutputChangeSet)
    written: bool = False
    ir_written: bool = False
    dry_run: bool = False
    warnings: list[str] = field(default_factory=list)

    @property
    def document(self) -> IRDocument:
        return self.check.document

    @property
    def file_count(self) -> int:
        return len(self.files)


class RegenerationRunner:
    """
    Coordinates one batch run.

    The runner owns exactly one directory, ``config.out_dir``, plus the IR
    file. Everything else, including every ejected reference, is read-only.
    """

    def __init__(self, config: RegenerationConfig):
        self.config = config

    # -------------------------------------------------------------------------
    # Front half
    # -------------------------------------------------------------------------

    def discover(self) -> list[Path]:
        if not self.config.app_dir.is_dir():
            raise ConfigError(f"Input root {self.config.app_dir} does not exist")
        files = discover_via_files(self.config.app_dir, exclude=[self.config.out_dir])
        logger.info(f"Discovered {len(files)} .via file(s) under {self.config.app_dir}")
        return files

    def check(self) -> CheckResult:
        """
        Parse, resolve, and build the IR without rendering anything.

        Raises:
            BatchError: With every parse, resolution, and consistency error
        """
        files = self.discover()
        sources, errors = parse_files(files, root=self.config.project_root)
        resolved, resolve_errors = resolve_batch(sources, max_workers=self.config.max_workers)
        errors.extend(resolve_errors)
        if errors:
            logger.info(f"Aborting: {len(errors)} error(s) collected")
            raise BatchError(errors)

        document = build_ir_document(resolved)
        logger.info(f"Resolved {len(document.resources)} resource(s)")
        return CheckResult(files=files, sources=sources, document=document)

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def render(self, document: IRDocument) -> GeneratorResult:
        """
        Render every stack concurrently into one in-memory tree.

        Both stacks must succeed; the first failure is re-raised.
        """
        stacks = [self.config.backend]
        if self.config.types:
            stacks.append(self.config.types)
        backends = [get_backend(name) for name in stacks]

        combined = GeneratorResult()
        with ThreadPoolExecutor(max_workers=len(backends)) as executor:
            futures = [executor.submit(b.render, document, self.config.render) for b in backends]
            results = [future.result() for future in futures]

        for name, result in zip(stacks, results, strict=True):
            logger.debug(f"Stack '{name}' rendered {len(result.files)} file(s)")
            combined.merge(result)
        return combined

    def check_ejection_safety(self, refs: list[ExternalRef]) -> list[str]:
        """
        Ensure no ejected reference points into a generator-owned location.

        Returns:
            Warnings for references whose file does not exist yet

        Raises:
            EmissionError: If a reference resolves inside the output root,
                escapes the project root, or is the IR file
        """
        root = self.config.project_root
        warnings: list[str] = []
        for ref in refs:
            target = (root / ref.path).resolve()
            if not target.is_relative_to(root):
                raise EmissionError(f"Ejected reference '{ref}' escapes the project root")
            if target.is_relative_to(self.config.out_dir):
                raise EmissionError(
                    f"Ejected reference '{ref}' lies inside the generated output root "
                    f"{self.config.out_dir}; hand-written code must live outside it"
                )
            if target == self.config.ir_path:
                raise EmissionError(f"Ejected reference '{ref}' points at the IR snapshot")
            if not target.is_file():
                warnings.append(f"Ejected reference '{ref}' does not exist yet")
        return warnings

    # -------------------------------------------------------------------------
    # Full run
    # -------------------------------------------------------------------------

    def run(self, dry_run: bool = False) -> RegenerationResult:
        """
        Run the whole pipeline.

        Args:
            dry_run: Render and diff, but never write

        Returns:
            RegenerationResult describing the rendered tree and what changed

        Raises:
            BatchError: If any source fails to parse or resolve
            EmissionError: If rendering or writing fails
        """
        check = self.check()
        document = check.document

        rendered = self.render(document)
        ejection_warnings = self.check_ejection_safety(rendered.ejected)

        ir_json = dump_ir(document)
        files = dict(rendered.files)
        if self.config.ir_inside_output:
            rel = PurePosixPath(self.config.ir_path.relative_to(self.config.out_dir).as_posix())
            if rel in files:
                raise EmissionError(f"IR path {self.config.ir_path} collides with a generated file")
            files[rel] = ir_json

        changes = detect_output_changes(files, self.config.out_dir)
        result = RegenerationResult(
            check=check,
            files=dict(sorted(files.items())),
            ir_json=ir_json,
            changes=changes,
            dry_run=dry_run,
            warnings=ejection_warnings,
        )
        logger.info(f"Output diff: {changes.summary()}")

        if dry_run:
            return result

        if not changes.is_empty():
            commit_tree(files, self.config.out_dir)
            result.written = True
            logger.info(f"Wrote {len(files)} file(s) into {self.config.out_dir}")

        if not self.config.ir_inside_output:
            result.ir_written = self._write_external_ir(ir_json)

        return result

    def _write_external_ir(self, ir_json: str) -> bool:
        path = self.config.ir_path
        if path.is_file() and path.read_text(encoding="utf-8") == ir_json:
            return False
        write_file_atomic(path, ir_json)
        logger.info(f"Wrote IR snapshot to {path}")
        return True


def regenerate(config: RegenerationConfig, dry_run: bool = False) -> RegenerationResult:
    """Convenience wrapper around ``RegenerationRunner(config).run()``."""
    return RegenerationRunner(config).run(dry_run=dry_run)


__all__ = [
    "CheckResult",
    "RegenerationResult",
    "RegenerationRunner",
    "regenerate",
]
