"""
Via DSL Parser Package.

The parser is built using mixins to separate parsing logic by block kind.
Each mixin lowers its construct directly into the typed nodes of
``via.core.ast``.

The main exports are:
- Parser: The complete parser class
- parse_via: Convenience function to parse source text

Usage:
    from via.core.dsl_parser_impl import parse_via

    source_file = parse_via(text, path)
"""

from pathlib import Path

from .. import ast
from ..lexer import TokenType, tokenize
from .base import BaseParser
from .controller import ControllerParserMixin
from .model import ModelParserMixin
from .resource import ResourceParserMixin


class Parser(
    BaseParser,
    ResourceParserMixin,
    ModelParserMixin,
    ControllerParserMixin,
):
    """
    Complete Via DSL parser.

    - ResourceParserMixin: ``resource`` declarations
    - ModelParserMixin: fields and associations
    - ControllerParserMixin: params, respond_with, actions
    """

    def parse(self) -> ast.SourceFile:
        """
        Parse the whole file.

        Returns:
            SourceFile with every resource in declaration order

        Raises:
            ParseError: On the first syntax error; no partial tree is returned
        """
        resources: list[ast.ResourceDecl] = []

        while not self.match(TokenType.EOF):
            self.skip_separators()
            if self.match(TokenType.EOF):
                break
            if not self.match(TokenType.RESOURCE):
                token = self.current_token()
                raise self.error(f"Expected 'resource', found {token.describe()}", token)
            resources.append(self.parse_resource())

        return ast.SourceFile(path=self.file, resources=resources)


def parse_via(text: str, file: Path) -> ast.SourceFile:
    """
    Parse Via source text into an AST.

    Args:
        text: Source text
        file: Path used for diagnostics and recorded on each resource

    Returns:
        Parsed SourceFile
    """
    tokens = tokenize(text, file)
    parser = Parser(tokens, file, text)
    return parser.parse()


__all__ = ["Parser", "parse_via"]
