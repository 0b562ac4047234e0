"""
Error types for Via parsing, resolution, and code generation.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path


class ViaError(Exception):
    """Base exception for all Via errors."""

    category = "error"

    def __init__(self, message: str, context: ErrorContext | None = None):
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            return f"{self.context.format()}\n{self.message}"
        return self.message

    @property
    def file(self) -> Path | None:
        return self.context.file if self.context else None


class ParseError(ViaError):
    """
    Raised when `.via` source text cannot be tokenized or parsed.

    Examples:
    - Unexpected characters or tokens
    - Unmatched braces
    - Unterminated string literals
    """

    category = "syntax error"


class ResolutionError(ViaError):
    """
    Raised when a parsed resource cannot be resolved.

    Examples:
    - Unknown type name on a field
    - Unknown field referenced from a params profile
    - Unresolved or ambiguous association target
    - Empty or invalid polymorphic candidate list
    """

    category = "resolution error"


class ConsistencyError(ViaError):
    """
    Raised when declarations contradict each other.

    Examples:
    - Duplicate resource names across a batch
    - Duplicate field names within a model
    - Duplicate params profiles or actions
    """

    category = "consistency error"


class EmissionError(ViaError):
    """
    Raised when generated output cannot be written.

    Examples:
    - Unwritable output directory
    - Generated path escaping the output root
    - Ejected reference located inside the output root
    """

    category = "emission error"


class ConfigError(ViaError):
    """Raised when via.toml cannot be read or is invalid."""

    category = "config error"


class BatchError(ViaError):
    """
    Aggregate of every diagnostic collected for a batch.

    Raised by the regeneration runner before any output is written, so
    that all parse and resolution errors are reported together.
    """

    def __init__(self, errors: Iterable[ViaError]):
        self.errors = list(errors)
        noun = "error" if len(self.errors) == 1 else "errors"
        summary = f"{len(self.errors)} {noun} found; nothing was generated"
        super().__init__("\n\n".join([summary, *(format_diagnostic(e) for e in self.errors)]))


@dataclass
class ErrorContext:
    """
    Context information for an error, including source location.

    Attributes:
        file: Path to the source file where error occurred
        line: Line number (1-indexed)
        column: Column number (1-indexed)
        snippet: Optional code snippet showing the error location
        resource: Optional resource name where error occurred
    """

    file: Path
    line: int
    column: int
    snippet: str | None = None
    resource: str | None = None

    def format(self) -> str:
        """
        Format error context as a human-readable string.

        Returns:
            Formatted string like: "app/post.via:10:5 in resource Post"
        """
        location = f"{self.file}:{self.line}:{self.column}"
        if self.resource:
            location += f" in resource {self.resource}"

        if self.snippet:
            return f"{location}\n{self._format_snippet()}"
        return location

    def _format_snippet(self) -> str:
        """Format code snippet with line numbers and error marker."""
        if not self.snippet:
            return ""

        lines = self.snippet.split("\n")
        formatted = []

        # Snippet shows up to 2 lines before the error line
        start_line = max(1, self.line - 2)

        for i, line in enumerate(lines):
            line_num = start_line + i
            prefix = f"{line_num:4d} | "
            formatted.append(prefix + line)

            if line_num == self.line:
                marker_pos = len(prefix) + self.column - 1
                formatted.append(" " * marker_pos + "^^^")

        return "\n".join(formatted)


def extract_snippet(text: str, line: int, before: int = 2) -> str:
    """Return the source lines leading up to and including ``line``."""
    lines = text.splitlines()
    start = max(1, line - before)
    return "\n".join(lines[start - 1 : line])


def format_diagnostic(error: ViaError) -> str:
    """Render one diagnostic as ``<category>: <location>\\n<message>``."""
    return f"{error.category}: {error}"


def make_parse_error(
    message: str,
    file: Path,
    line: int,
    column: int,
    snippet: str | None = None,
) -> ParseError:
    """
    Helper to create a ParseError with context.

    Args:
        message: Error description
        file: Source file path
        line: Line number (1-indexed)
        column: Column number (1-indexed)
        snippet: Optional code snippet

    Returns:
        ParseError with context attached
    """
    context = ErrorContext(file=file, line=line, column=column, snippet=snippet)
    return ParseError(message, context)


def make_resolution_error(
    message: str,
    file: Path | None = None,
    line: int | None = None,
    column: int | None = None,
    resource: str | None = None,
) -> ResolutionError:
    """Helper to create a ResolutionError with optional context."""
    if file and line and column:
        context = ErrorContext(file=file, line=line, column=column, resource=resource)
        return ResolutionError(message, context)
    return ResolutionError(message)


def make_consistency_error(
    message: str,
    file: Path | None = None,
    line: int | None = None,
    column: int | None = None,
    resource: str | None = None,
) -> ConsistencyError:
    """Helper to create a ConsistencyError with optional context."""
    if file and line and column:
        context = ErrorContext(file=file, line=line, column=column, resource=resource)
        return ConsistencyError(message, context)
    return ConsistencyError(message)
