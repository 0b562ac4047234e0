"""
Change detection for regeneration.

Compares the rendered in-memory tree with what is currently on disk under
the output root, file by file.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath


@dataclass
class OutputChangeSet:
    """
    Describes how a rendered tree differs from the existing output root.

    All paths are relative to the output root.
    """

    added: set[PurePosixPath] = field(default_factory=set)
    modified: set[PurePosixPath] = field(default_factory=set)
    removed: set[PurePosixPath] = field(default_factory=set)
    unchanged: set[PurePosixPath] = field(default_factory=set)

    def is_empty(self) -> bool:
        """Check if there are no changes."""
        return not self.added and not self.modified and not self.removed

    def summary(self) -> str:
        """Get human-readable summary of changes."""
        if self.is_empty():
            return f"No changes ({len(self.unchanged)} file(s) up to date)"
        parts = []
        if self.added:
            parts.append(f"{len(self.added)} added")
        if self.modified:
            parts.append(f"{len(self.modified)} modified")
        if self.removed:
            parts.append(f"{len(self.removed)} removed")
        if self.unchanged:
            parts.append(f"{len(self.unchanged)} unchanged")
        return ", ".join(parts)

    def entries(self) -> list[tuple[str, PurePosixPath]]:
        """``(status, path)`` pairs sorted by path, unchanged files omitted."""
        items = [("added", p) for p in self.added]
        items += [("modified", p) for p in self.modified]
        items += [("removed", p) for p in self.removed]
        return sorted(items, key=lambda item: item[1])


def existing_files(root: Path) -> dict[PurePosixPath, Path]:
    """Map of every file under ``root`` keyed by its relative POSIX path."""
    if not root.is_dir():
        return {}
    files: dict[PurePosixPath, Path] = {}
    for path in root.rglob("*"):
        if path.is_file():
            files[PurePosixPath(path.relative_to(root).as_posix())] = path
    return files


def detect_output_changes(rendered: dict[PurePosixPath, str], root: Path) -> OutputChangeSet:
    """
    Diff a rendered tree against the output root.

    Files are compared byte-for-byte after UTF-8 encoding.
    """
    changes = OutputChangeSet()
    on_disk = existing_files(root)

    for rel, content in rendered.items():
        current = on_disk.get(rel)
        if current is None:
            changes.added.add(rel)
        elif current.read_bytes() == content.encode("utf-8"):
            changes.unchanged.add(rel)
        else:
            changes.modified.add(rel)

    changes.removed = set(on_disk) - set(rendered)
    return changes
