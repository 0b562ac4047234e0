from pathlib import Path

VIA_SUFFIX = ".via"


def discover_via_files(root: Path, exclude: list[Path] | None = None) -> list[Path]:
    """
    Find every `.via` file under ``root``.

    The result is sorted so batch order (and therefore IR and output order)
    never depends on filesystem iteration order. Files under any ``exclude``
    directory are skipped.
    """
    base = root.resolve()
    if not base.exists():
        return []

    excluded = [e.resolve() for e in exclude or []]
    files: list[Path] = []
    for p in base.rglob(f"*{VIA_SUFFIX}"):
        if not p.is_file():
            continue
        if any(p.is_relative_to(e) for e in excluded):
            continue
        files.append(p)
    return sorted(set(files))
