"""
Stack listing command for Via CLI.
"""

from rich.table import Table

from via.stacks import get_registry

from .utils import console


def stacks_command() -> None:
    """
    List available code-generation stacks.
    """
    registry = get_registry()
    table = Table(title="Available stacks")
    table.add_column("Name", style="bold")
    table.add_column("Kind")
    table.add_column("Outputs")
    table.add_column("Description")

    for name in registry.list_backends():
        caps = registry.get(name).get_capabilities()
        table.add_row(name, caps.kind, ", ".join(caps.output_formats), caps.description)

    console.print(table)
