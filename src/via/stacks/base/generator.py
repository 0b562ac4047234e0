"""
Base generator classes for modular code generation.

Generators render one aspect of the output from the IR document:
- ModelsGenerator: pydantic models
- ControllersGenerator: FastAPI routers
- TypesGenerator: TypeScript declarations
- etc.

Generators never touch the filesystem. They return file contents keyed by
a path relative to the output root; the regeneration runner decides when
and where the tree is written.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import PurePosixPath

from ...core.ast import ExternalRef
from ...core.errors import EmissionError
from ...core.ir import IRDocument

GENERATED_HEADER = "Generated by via from .via sources - DO NOT EDIT."


@dataclass(frozen=True)
class RenderOptions:
    """
    Knobs shared by every generator.

    Attributes:
        package: Import name of the generated backend package
        types_dir: Directory (relative to the output root) for .ts files
        project_name: Distribution name written to the dependency manifest
        project_version: Version written to the dependency manifest
    """

    package: str = "via_generated"
    types_dir: str = "ts"
    project_name: str = "via-app"
    project_version: str = "0.1.0"


@dataclass
class GeneratorResult:
    """
    Result from a generator execution.

    Attributes:
        files: Rendered file contents keyed by path relative to the output root
        ejected: External references the rendered code imports from
    """

    files: dict[PurePosixPath, str] = field(default_factory=dict)
    ejected: list[ExternalRef] = field(default_factory=list)

    def add_file(self, path: str | PurePosixPath, content: str) -> None:
        """
        Record a rendered file.

        Raises:
            EmissionError: If the path is absolute, escapes the output root,
                or was already rendered
        """
        rel = PurePosixPath(path)
        if rel.is_absolute() or ".." in rel.parts or not rel.parts:
            raise EmissionError(f"Generated path '{rel}' escapes the output root")
        if rel in self.files:
            raise EmissionError(f"Generated path '{rel}' is rendered twice")
        self.files[rel] = content if content.endswith("\n") else content + "\n"

    def add_ejected(self, ref: ExternalRef) -> None:
        if ref not in self.ejected:
            self.ejected.append(ref)

    def merge(self, other: "GeneratorResult") -> None:
        """Merge another result into this one."""
        for path, content in other.files.items():
            self.add_file(path, content)
        for ref in other.ejected:
            self.add_ejected(ref)


class Generator(ABC):
    """
    Base class for all generators.

    Example:
        class ModelsGenerator(Generator):
            def generate(self) -> GeneratorResult:
                result = GeneratorResult()
                for resource in self.document.resource_list:
                    result.add_file(f"models/{resource.module}.py", render(resource))
                return result
    """

    def __init__(self, document: IRDocument, options: RenderOptions | None = None):
        """
        Initialize generator.

        Args:
            document: IR document to render (read-only)
            options: Shared render options
        """
        self.document = document
        self.options = options or RenderOptions()

    @abstractmethod
    def generate(self) -> GeneratorResult:
        """
        Render artifacts.

        Returns:
            GeneratorResult with rendered files
        """
        pass


class CompositeGenerator(Generator):
    """
    Generator that runs multiple sub-generators and merges their output.

    Example:
        class FastAPIGenerator(CompositeGenerator):
            def get_generators(self) -> list[Generator]:
                return [
                    ModelsGenerator(self.document, self.options),
                    ControllersGenerator(self.document, self.options),
                ]
    """

    @abstractmethod
    def get_generators(self) -> list[Generator]:
        """
        Get the list of sub-generators to run.

        Returns:
            List of Generator instances
        """
        pass

    def generate(self) -> GeneratorResult:
        """
        Run all sub-generators and merge results.

        Returns:
            Combined GeneratorResult from all sub-generators
        """
        combined = GeneratorResult()
        for generator in self.get_generators():
            combined.merge(generator.generate())
        return combined
