"""Shared pytest fixtures for Via tests."""

import shutil
from collections.abc import Callable
from pathlib import Path

import pytest

from via.core.dsl_parser_impl import parse_via
from via.core.ir import IRDocument
from via.core.ir_builder import build_ir_document
from via.core.resolver import resolve_batch
from via.regen import RegenerationConfig
from via.stacks.base import RenderOptions


@pytest.fixture
def fixtures_dir() -> Path:
    """Return path to fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def blog_source_dir(fixtures_dir: Path) -> Path:
    """Return path to the sample blog project."""
    return fixtures_dir / "blog"


@pytest.fixture
def blog_project(tmp_path: Path, blog_source_dir: Path) -> Path:
    """Copy the sample blog project into a scratch directory."""
    project = tmp_path / "blog"
    shutil.copytree(blog_source_dir, project)
    return project


@pytest.fixture
def blog_config(blog_project: Path) -> RegenerationConfig:
    """Run configuration for the scratch blog project (no via.toml overrides)."""
    return RegenerationConfig.from_manifest(blog_project)


@pytest.fixture
def compile_document() -> Callable[..., IRDocument]:
    """
    Return a helper compiling ``{"app/x.via": text}`` into an IR document.

    Resolution errors are raised as the first collected error.
    """

    def _compile(sources: dict[str, str]) -> IRDocument:
        parsed = [parse_via(text, Path(name)) for name, text in sources.items()]
        resolved, errors = resolve_batch(parsed)
        if errors:
            raise errors[0]
        return build_ir_document(resolved)

    return _compile


@pytest.fixture
def blog_document(
    blog_source_dir: Path, compile_document: Callable[..., IRDocument]
) -> IRDocument:
    """IR document for the sample blog, compiled in discovery order."""
    app = blog_source_dir / "app"
    sources = {
        f"app/{path.name}": path.read_text(encoding="utf-8") for path in sorted(app.glob("*.via"))
    }
    return compile_document(sources)


@pytest.fixture
def render_options() -> RenderOptions:
    return RenderOptions(package="blog_api", project_name="blog")


@pytest.fixture
def write_resources() -> Callable[[Path, dict[str, str]], None]:
    """Return a helper writing ``{"post.via": text}`` files under a directory."""

    def _write(app_dir: Path, resources: dict[str, str]) -> None:
        app_dir.mkdir(parents=True, exist_ok=True)
        for name, text in resources.items():
            (app_dir / name).write_text(text, encoding="utf-8")

    return _write


@pytest.fixture
def snapshot_tree() -> Callable[[Path], dict[str, bytes]]:
    """Return a helper mapping every file under a root to its bytes."""

    def _snapshot(root: Path) -> dict[str, bytes]:
        if not root.exists():
            return {}
        return {
            p.relative_to(root).as_posix(): p.read_bytes()
            for p in sorted(root.rglob("*"))
            if p.is_file()
        }

    return _snapshot
