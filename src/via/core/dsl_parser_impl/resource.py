"""
Resource declaration parsing for the Via DSL.
"""

from typing import TYPE_CHECKING, Any

from .. import ast
from ..lexer import TokenType


class ResourceParserMixin:
    """
    Mixin providing ``resource Name { ... }`` parsing.

    Note: This mixin expects to be combined with BaseParser via multiple inheritance.
    """

    if TYPE_CHECKING:
        expect: Any
        match: Any
        error: Any
        current_token: Any
        skip_separators: Any
        file: Any
        parse_model: Any
        parse_controller: Any

    def parse_resource(self) -> ast.ResourceDecl:
        start = self.expect(TokenType.RESOURCE)
        name = self.expect(TokenType.IDENTIFIER, "a resource name")
        if not name.value[0].isupper():
            raise self.error(
                f"Resource name '{name.value}' must start with an uppercase letter",
                name,
            )
        self.expect(TokenType.LBRACE, f"'{{' after resource '{name.value}'")

        blocks: list[ast.ModelBlock | ast.ControllerBlock] = []
        while not self.match(TokenType.RBRACE):
            self.skip_separators()
            if self.match(TokenType.RBRACE):
                break
            if self.match(TokenType.MODEL):
                blocks.append(self.parse_model())
            elif self.match(TokenType.CONTROLLER):
                blocks.append(self.parse_controller())
            else:
                token = self.current_token()
                raise self.error(
                    f"Expected 'model', 'controller' or '}}', found {token.describe()}",
                    token,
                )

        self.expect(TokenType.RBRACE)
        return ast.ResourceDecl(
            name=name.value,
            file=self.file,
            blocks=blocks,
            line=start.line,
            column=start.column,
        )
