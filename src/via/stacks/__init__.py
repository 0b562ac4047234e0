"""
Code-generation stacks for Via.

A stack renders the IR document into one family of artifacts: a backend
package or a set of client type declarations. Stacks only render; writing
to disk is the regeneration runner's job.
"""

import importlib
import inspect
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from ..core.errors import ConfigError
from ..core.ir import IRDocument
from .base import GeneratorResult, RenderOptions

logger = logging.getLogger(__name__)


@dataclass
class BackendCapabilities:
    """
    Describes what a stack renders.

    Used for introspection and CLI help text.
    """

    name: str
    description: str
    kind: Literal["backend", "types"]
    output_formats: list[str]  # e.g., ["py", "toml"]


class Backend(ABC):
    """
    Abstract base class for all Via stacks.

    Minimal interface: render the whole IR document into memory.
    """

    @abstractmethod
    def render(self, document: IRDocument, options: RenderOptions) -> GeneratorResult:
        """
        Render artifacts from the IR document.

        Args:
            document: IR document (read-only)
            options: Shared render options

        Raises:
            EmissionError: If rendering fails
        """
        pass

    def get_capabilities(self) -> BackendCapabilities:
        """
        Get stack capabilities for introspection.

        Override to provide stack metadata.
        """
        return BackendCapabilities(
            name=self.__class__.__name__,
            description="No description provided",
            kind="backend",
            output_formats=["unknown"],
        )


class BackendRegistry:
    """
    Registry for stacks.

    Supports:
    - Manual registration via register()
    - Auto-discovery of stacks in this package
    - Lookup by name
    """

    def __init__(self) -> None:
        self._backends: dict[str, type[Backend]] = {}

    def register(self, name: str, backend_class: type[Backend]) -> None:
        """
        Register a stack class.

        Raises:
            ConfigError: If name already registered or class invalid
        """
        if name in self._backends:
            raise ConfigError(
                f"Stack '{name}' is already registered. Cannot register {backend_class.__name__}."
            )

        if not issubclass(backend_class, Backend):
            raise ConfigError(f"Stack class {backend_class.__name__} must extend Backend")

        self._backends[name] = backend_class

    def get(self, name: str) -> Backend:
        """
        Get a stack instance by name.

        Raises:
            ConfigError: If stack not found
        """
        if name not in self._backends:
            available = ", ".join(self.list_backends()) or "none"
            raise ConfigError(f"Stack '{name}' not found. Available stacks: {available}")

        return self._backends[name]()

    def list_backends(self) -> list[str]:
        return sorted(self._backends)

    def discover(self) -> None:
        """
        Auto-discover stacks in this package.

        Single-file stacks (typescript.py) and package stacks
        (fastapi/__init__.py) are registered under their module name.
        """
        stacks_dir = Path(__file__).parent

        for py_file in stacks_dir.glob("*.py"):
            if py_file.name.startswith("_"):
                continue
            self._try_register_module(py_file.stem)

        for subdir in sorted(stacks_dir.iterdir()):
            if not subdir.is_dir() or subdir.name.startswith(("_", ".")):
                continue
            if subdir.name == "base" or not (subdir / "__init__.py").exists():
                continue
            self._try_register_module(subdir.name)

    def _try_register_module(self, module_name: str) -> None:
        """Try to import and register a stack module."""
        if module_name in self._backends:
            return

        try:
            module = importlib.import_module(f"via.stacks.{module_name}")
        except ImportError as e:
            logger.debug(f"Skipping stack module '{module_name}': {e}")
            return

        for _name, obj in inspect.getmembers(module, inspect.isclass):
            if issubclass(obj, Backend) and obj is not Backend and obj.__module__.startswith(
                module.__name__
            ):
                if module_name not in self._backends:
                    self.register(module_name, obj)


# Global registry instance
_registry: BackendRegistry | None = None


def get_registry() -> BackendRegistry:
    """
    Get the global stack registry.

    Performs auto-discovery on first call.
    """
    global _registry
    if _registry is None:
        _registry = BackendRegistry()
        _registry.discover()
    return _registry


def get_backend(name: str) -> Backend:
    """Get a stack instance by name."""
    return get_registry().get(name)


def list_backends() -> list[str]:
    """List all available stack names."""
    return get_registry().list_backends()


__all__ = [
    "Backend",
    "BackendCapabilities",
    "BackendRegistry",
    "GeneratorResult",
    "RenderOptions",
    "get_backend",
    "get_registry",
    "list_backends",
]
