"""
Generation commands for Via CLI.

- gen: run the full pipeline and write the generated-output root
- check: parse and resolve every resource without rendering
- ir: print or write the IR snapshot
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.markup import escape
from rich.table import Table

from via.core.errors import ViaError
from via.core.ir import dump_ir
from via.regen import CheckResult, RegenerationResult, RegenerationRunner

from .utils import console, load_run_config, report_error

STATUS_STYLES = {"added": "green", "modified": "yellow", "removed": "red"}


def _print_resources(check: CheckResult) -> None:
    typer.echo(f"Parsed {check.resource_count} resource(s)")
    for resource in check.document.resource_list:
        typer.echo(f" - {resource.name} (from {resource.source})")


def _print_changes(result: RegenerationResult) -> None:
    entries = result.changes.entries()
    if not entries:
        return
    table = Table(title="Generated output changes")
    table.add_column("Status")
    table.add_column("Path")
    for status, path in entries:
        style = STATUS_STYLES[status]
        table.add_row(f"[{style}]{status}[/{style}]", escape(path.as_posix()))
    console.print(table)


def gen_command(
    project_dir: Path = typer.Option(  # noqa: B008
        Path("."),
        "--project",
        "-p",
        help="Project directory containing via.toml (default: current directory)",
    ),
    app: Path | None = typer.Option(  # noqa: B008
        None, "--app", help="Input root scanned for .via files (default: app)"
    ),
    out: Path | None = typer.Option(  # noqa: B008
        None, "--out", help="Generated-output root (default: generated)"
    ),
    ir: Path | None = typer.Option(  # noqa: B008
        None, "--ir", help="IR snapshot path (default: <out>/via.ir.json)"
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Show what would change without writing anything"
    ),
) -> None:
    """
    Generate the backend package, client types, and IR snapshot.

    Output is written all-or-nothing: any parse or resolution error aborts
    the run with the output root untouched.
    """
    try:
        config = load_run_config(project_dir, app=app, out=out, ir=ir)
        result = RegenerationRunner(config).run(dry_run=dry_run)
    except ViaError as e:
        report_error(e)
        raise typer.Exit(code=1)

    _print_resources(result.check)
    for warning in result.warnings:
        typer.echo(f"Warning: {warning}", err=True)

    if dry_run:
        _print_changes(result)
        typer.echo(f"Dry run: {result.changes.summary()}; nothing was written")
        return

    if result.written:
        _print_changes(result)
        typer.echo(f"Wrote {result.file_count} generated file(s) into {config.out_dir}")
    else:
        typer.echo(f"Output up to date: {config.out_dir}")
    if result.ir_written:
        typer.echo(f"Wrote IR snapshot to {config.ir_path}")


def check_command(
    project_dir: Path = typer.Option(  # noqa: B008
        Path("."),
        "--project",
        "-p",
        help="Project directory containing via.toml (default: current directory)",
    ),
    app: Path | None = typer.Option(  # noqa: B008
        None, "--app", help="Input root scanned for .via files (default: app)"
    ),
) -> None:
    """
    Parse and resolve every .via file, reporting all errors.

    Nothing is rendered or written.
    """
    try:
        config = load_run_config(project_dir, app=app)
        check = RegenerationRunner(config).check()
    except ViaError as e:
        report_error(e)
        raise typer.Exit(code=1)

    _print_resources(check)
    typer.echo(f"OK: parsed {check.resource_count} resource(s)")


def ir_command(
    project_dir: Path = typer.Option(  # noqa: B008
        Path("."),
        "--project",
        "-p",
        help="Project directory containing via.toml (default: current directory)",
    ),
    app: Path | None = typer.Option(  # noqa: B008
        None, "--app", help="Input root scanned for .via files (default: app)"
    ),
    output: Path | None = typer.Option(  # noqa: B008
        None, "--output", "-o", help="Write the IR here instead of printing it"
    ),
) -> None:
    """
    Print the IR document for the current sources as JSON.
    """
    try:
        config = load_run_config(project_dir, app=app)
        check = RegenerationRunner(config).check()
    except ViaError as e:
        report_error(e)
        raise typer.Exit(code=1)

    ir_json = dump_ir(check.document)
    if output is None:
        typer.echo(ir_json, nl=False)
        return

    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(ir_json, encoding="utf-8")
    except OSError as e:
        typer.echo(f"Error: cannot write {output}: {e}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Wrote IR for {check.resource_count} resource(s) to {output}")
