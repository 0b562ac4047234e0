import logging
from pathlib import Path

from . import ast
from .dsl_parser_impl import parse_via
from .errors import ParseError, ViaError, make_parse_error

logger = logging.getLogger(__name__)


def parse_file(path: Path, display_path: Path | None = None) -> ast.SourceFile:
    """
    Read and parse a single `.via` file.

    Args:
        path: File to read
        display_path: Path recorded in diagnostics and on the AST
            (defaults to ``path``)

    Raises:
        ParseError: If the file cannot be read or parsed
    """
    shown = display_path or path
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise ParseError(f"Failed to read Via file at {shown}: {e}") from e
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        # Position the diagnostic at the first byte that failed to decode
        head = raw[: e.start].decode("utf-8", errors="replace")
        line = head.count("\n") + 1
        column = len(head) - (head.rfind("\n") + 1) + 1
        raise make_parse_error(
            f"Via file is not valid UTF-8: {e.reason} (byte 0x{raw[e.start]:02x})",
            shown,
            line,
            column,
        ) from e
    return parse_via(text, shown)


def parse_files(
    files: list[Path],
    root: Path | None = None,
) -> tuple[list[ast.SourceFile], list[ViaError]]:
    """
    Parse a batch of `.via` files.

    Parsing is fail-fast within a file and best-effort across files: every
    file is attempted and all syntax errors are returned together.

    Args:
        files: Files to parse, in batch order
        root: Optional input root; paths are recorded relative to it so the
            resulting AST does not depend on where the project lives

    Returns:
        Tuple of (parsed files in input order, collected errors)
    """
    parsed: list[ast.SourceFile] = []
    errors: list[ViaError] = []

    for f in files:
        display = f.relative_to(root) if root and f.is_relative_to(root) else f
        try:
            parsed.append(parse_file(f, display))
        except ParseError as e:
            logger.debug(f"Parse failed for {display}")
            errors.append(e)

    return parsed, errors
