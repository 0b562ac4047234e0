"""
Shared building blocks for code-generation stacks.
"""

from .generator import (
    GENERATED_HEADER,
    CompositeGenerator,
    Generator,
    GeneratorResult,
    RenderOptions,
)

__all__ = [
    "GENERATED_HEADER",
    "CompositeGenerator",
    "Generator",
    "GeneratorResult",
    "RenderOptions",
]
