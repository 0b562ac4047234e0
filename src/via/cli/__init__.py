"""
Via CLI Package.

- generate.py: gen, check, and ir commands
- stacks.py: stack listing
- utils.py: Shared utilities
"""

import sys

import typer

from via.cli.generate import check_command, gen_command, ir_command
from via.cli.stacks import stacks_command
from via.cli.utils import configure_logging, version_callback

app = typer.Typer(
    help="""Via – resource DSL compiler

Reads .via resources and generates a FastAPI/pydantic backend package,
TypeScript client types, and an IR snapshot.
""",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    version: bool | None = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and environment information",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log pipeline progress"),
) -> None:
    """Via CLI main callback for global options."""
    configure_logging(verbose)


app.command(name="gen")(gen_command)
app.command(name="check")(check_command)
app.command(name="ir")(ir_command)
app.command(name="stacks")(stacks_command)


def main(argv: list[str] | None = None) -> None:
    app(args=argv, standalone_mode=True)


__all__ = ["app", "main"]


if __name__ == "__main__":
    main(sys.argv[1:])
