"""
Via CLI Utilities.

Shared helpers for CLI commands: version, logging, diagnostics, and
loading the run configuration.
"""

import logging
import platform
from pathlib import Path

import typer
from rich.console import Console

from via._version import get_version
from via.core.errors import BatchError, ViaError, format_diagnostic
from via.core.manifest import MANIFEST_NAME, load_config
from via.regen import RegenerationConfig

console = Console()

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def version_callback(value: bool) -> None:
    """Display version and environment information."""
    if value:
        typer.echo(f"via {get_version()}")
        typer.echo(f"Python {platform.python_version()} ({platform.python_implementation()})")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    """WARNING by default, INFO with --verbose."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format=LOG_FORMAT,
    )
    logging.getLogger("via").setLevel(logging.INFO if verbose else logging.WARNING)


def load_run_config(
    project_dir: Path,
    app: Path | None = None,
    out: Path | None = None,
    ir: Path | None = None,
) -> RegenerationConfig:
    """
    Load via.toml from ``project_dir`` and apply command-line overrides.

    Raises:
        ConfigError: If via.toml is invalid or the layout is unsafe
    """
    manifest = load_config(project_dir / MANIFEST_NAME)
    return RegenerationConfig.from_manifest(project_dir, manifest, app=app, out=out, ir=ir)


def report_error(error: ViaError) -> None:
    """Print diagnostics to stderr."""
    if isinstance(error, BatchError):
        for diagnostic in error.errors:
            typer.echo(format_diagnostic(diagnostic), err=True)
            typer.echo("", err=True)
        noun = "error" if len(error.errors) == 1 else "errors"
        typer.echo(f"{len(error.errors)} {noun} found; nothing was generated", err=True)
    else:
        typer.echo(format_diagnostic(error), err=True)
