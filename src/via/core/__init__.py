"""Core Via functionality: lexer, parser, AST, resolver, IR, and project configuration."""

from . import ir
from .errors import (
    BatchError,
    ConfigError,
    ConsistencyError,
    EmissionError,
    ErrorContext,
    ParseError,
    ResolutionError,
    ViaError,
)
from .ir_builder import build_ir_document
from .manifest import ViaConfig, load_config
from .parser import parse_file, parse_files
from .resolver import ProjectContext, resolve_batch

__all__ = [
    "ir",
    "BatchError",
    "ConfigError",
    "ConsistencyError",
    "EmissionError",
    "ErrorContext",
    "ParseError",
    "ProjectContext",
    "ResolutionError",
    "ViaError",
    "ViaConfig",
    "build_ir_document",
    "load_config",
    "parse_file",
    "parse_files",
    "resolve_batch",
]
