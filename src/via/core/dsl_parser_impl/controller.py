"""
Controller block parsing for the Via DSL.

Handles ``controller { ... }`` blocks: params profiles, ``respond_with``
format lists, the ``actions`` declaration and individual ``action`` lines
(including override and ejection markers).
"""

from typing import TYPE_CHECKING, Any

from .. import ast
from ..lexer import TokenType
from ..types import ActionStatus


class ControllerParserMixin:
    """
    Mixin providing controller block parsing.

    Note: This mixin expects to be combined with BaseParser via multiple inheritance.
    """

    if TYPE_CHECKING:
        expect: Any
        advance: Any
        match: Any
        accept: Any
        error: Any
        current_token: Any
        skip_separators: Any
        expect_identifier_or_keyword: Any
        parse_identifier_list: Any
        parse_ejection_marker: Any

    def parse_controller(self) -> ast.ControllerBlock:
        """Parse ``controller [ejected "..."] { item* }``."""
        start = self.expect(TokenType.CONTROLLER)
        ejected = self.parse_ejection_marker()
        self.expect(TokenType.LBRACE, "'{' to open the controller block")

        items: list[Any] = []
        while not self.match(TokenType.RBRACE):
            self.skip_separators()
            if self.match(TokenType.RBRACE):
                break

            if self.match(TokenType.PARAMS):
                items.append(self.parse_params())
            elif self.match(TokenType.RESPOND_WITH):
                items.append(self.parse_respond_with())
            elif self.match(TokenType.ACTIONS):
                items.append(self.parse_actions())
            elif self.match(TokenType.ACTION):
                items.append(self.parse_action())
            else:
                token = self.current_token()
                raise self.error(
                    "Expected 'params', 'respond_with', 'actions', 'action' or '}', "
                    f"found {token.describe()}",
                    token,
                )
            self.skip_separators()

        self.expect(TokenType.RBRACE)
        return ast.ControllerBlock(
            items=items,
            ejected=ejected,
            line=start.line,
            column=start.column,
        )

    def parse_params(self) -> ast.ParamsBlock:
        """Parse ``params { profile { a, b? } ... }``."""
        start = self.expect(TokenType.PARAMS)
        self.expect(TokenType.LBRACE, "'{' to open the params block")

        profiles: list[ast.ParamsProfileDecl] = []
        while not self.match(TokenType.RBRACE):
            self.skip_separators()
            if self.match(TokenType.RBRACE):
                break
            profiles.append(self.parse_params_profile())
            self.skip_separators()

        self.expect(TokenType.RBRACE)
        return ast.ParamsBlock(profiles=profiles, line=start.line, column=start.column)

    def parse_params_profile(self) -> ast.ParamsProfileDecl:
        name = self.expect_identifier_or_keyword("params profile name (e.g. 'editable')")
        self.expect(TokenType.LBRACE, f"'{{' after profile '{name.value}'")

        entries: list[ast.ParamEntry] = []
        while not self.match(TokenType.RBRACE):
            entry = self.expect_identifier_or_keyword("field name")
            optional = self.accept(TokenType.QUESTION)
            entries.append(
                ast.ParamEntry(
                    name=entry.value,
                    optional=optional,
                    line=entry.line,
                    column=entry.column,
                )
            )
            if not self.accept(TokenType.COMMA):
                break

        self.expect(TokenType.RBRACE, "',' or '}' in params profile")
        return ast.ParamsProfileDecl(
            name=name.value,
            entries=entries,
            line=name.line,
            column=name.column,
        )

    def parse_respond_with(self) -> ast.RespondWithDecl:
        """Parse ``respond_with [html, json]`` or ``respond_with json``."""
        start = self.expect(TokenType.RESPOND_WITH)
        if self.match(TokenType.LBRACKET):
            formats = [t.value for t in self.parse_identifier_list("response format")]
        else:
            formats = [self.expect_identifier_or_keyword("response format").value]
        return ast.RespondWithDecl(formats=formats, line=start.line, column=start.column)

    def parse_actions(self) -> ast.ActionsDecl:
        """Parse ``actions auto_crud [except [...]]`` or ``actions [a, b]``."""
        start = self.expect(TokenType.ACTIONS)

        if self.accept(TokenType.AUTO_CRUD):
            excluded: list[str] = []
            if self.accept(TokenType.EXCEPT):
                excluded = [t.value for t in self.parse_identifier_list("action name")]
            return ast.ActionsDecl(
                auto_crud=True,
                excluded=excluded,
                line=start.line,
                column=start.column,
            )

        if self.match(TokenType.LBRACKET):
            names = [t.value for t in self.parse_identifier_list("action name")]
            return ast.ActionsDecl(
                auto_crud=False,
                names=names,
                line=start.line,
                column=start.column,
            )

        token = self.current_token()
        raise self.error(f"Expected 'auto_crud' or '[', found {token.describe()}", token)

    def parse_action(self) -> ast.ActionDecl:
        """Parse ``action name [overridden | ejected "path.py:symbol"]``."""
        start = self.expect(TokenType.ACTION)
        name = self.expect_identifier_or_keyword("action name")

        if self.accept(TokenType.OVERRIDDEN):
            return ast.ActionDecl(
                name=name.value,
                status=ActionStatus.OVERRIDDEN,
                line=start.line,
                column=start.column,
            )

        reference = self.parse_ejection_marker()
        return ast.ActionDecl(
            name=name.value,
            status=ActionStatus.EJECTED if reference else ActionStatus.DEFAULT,
            reference=reference,
            line=start.line,
            column=start.column,
        )
