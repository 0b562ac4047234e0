"""
Staged, all-or-nothing writes of the generated-output root.

The full tree is written into a temporary sibling of the output root and
then swapped in with directory renames, so the output root is only ever
observed in its previous or its new complete state.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path, PurePosixPath

from via.core.errors import EmissionError

logger = logging.getLogger(__name__)


def write_tree(files: dict[PurePosixPath, str], root: Path) -> None:
    """Write every rendered file under ``root``."""
    for rel, content in sorted(files.items()):
        target = (root / rel).resolve()
        if not target.is_relative_to(root.resolve()):
            raise EmissionError(f"Generated path '{rel}' escapes the output root")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8", newline="\n")


def commit_tree(files: dict[PurePosixPath, str], output_root: Path) -> None:
    """
    Replace ``output_root`` with exactly ``files``.

    Raises:
        EmissionError: If staging or the swap fails; the previous output
            root is left in place
    """
    parent = output_root.parent
    try:
        parent.mkdir(parents=True, exist_ok=True)
        staging = Path(tempfile.mkdtemp(prefix=f".{output_root.name}.staging-", dir=parent))
    except OSError as e:
        raise EmissionError(f"Cannot create staging directory next to {output_root}: {e}") from e

    try:
        write_tree(files, staging)
        _swap(staging, output_root)
    except OSError as e:
        shutil.rmtree(staging, ignore_errors=True)
        raise EmissionError(f"Failed to write generated output to {output_root}: {e}") from e
    except EmissionError:
        shutil.rmtree(staging, ignore_errors=True)
        raise


def _swap(staging: Path, output_root: Path) -> None:
    if not output_root.exists():
        os.replace(staging, output_root)
        logger.debug(f"Created {output_root}")
        return

    backup = Path(tempfile.mkdtemp(prefix=f".{output_root.name}.previous-", dir=output_root.parent))
    backup.rmdir()
    os.replace(output_root, backup)
    try:
        os.replace(staging, output_root)
    except OSError:
        os.replace(backup, output_root)
        raise
    shutil.rmtree(backup, ignore_errors=True)
    logger.debug(f"Swapped new tree into {output_root}")


def write_file_atomic(path: Path, content: str) -> None:
    """Write a single file via a temporary sibling and ``os.replace``."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(content)
        os.replace(tmp, path)
    except OSError as e:
        raise EmissionError(f"Failed to write {path}: {e}") from e
