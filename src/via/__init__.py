"""
Via: a resource DSL compiler.

Parses `.via` resource definitions and generates a backend package,
client type declarations, and a durable IR snapshot from one source.
"""

from via._version import get_version

__version__ = get_version()

__all__ = ["__version__"]
