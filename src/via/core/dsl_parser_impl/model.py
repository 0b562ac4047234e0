"""
Model block parsing for the Via DSL.

Handles ``model { ... }`` blocks: field declarations with their optional
markers and attributes, and ``belongs_to`` / ``has_many`` associations.
"""

from typing import TYPE_CHECKING, Any

from .. import ast
from ..lexer import TokenType
from ..types import AssociationKind


class ModelParserMixin:
    """
    Mixin providing model block parsing.

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

    def parse_model(self) -> ast.ModelBlock:
        """Parse ``model [ejected "..."] { member* }``."""
        start = self.expect(TokenType.MODEL)
        ejected = self.parse_ejection_marker()
        self.expect(TokenType.LBRACE, "'{' to open the model block")

        members: list[ast.FieldDecl | ast.AssociationDecl] = []
        while not self.match(TokenType.RBRACE):
            self.skip_separators()
            if self.match(TokenType.RBRACE):
                break

            if self.match(TokenType.FIELD):
                members.append(self.parse_field())
            elif self.match(TokenType.BELONGS_TO):
                members.append(self.parse_belongs_to())
            elif self.match(TokenType.HAS_MANY):
                members.append(self.parse_has_many())
            else:
                token = self.current_token()
                raise self.error(
                    f"Expected 'field', 'belongs_to', 'has_many' or '}}', found {token.describe()}",
                    token,
                )
            self.skip_separators()

        self.expect(TokenType.RBRACE)
        return ast.ModelBlock(
            members=members,
            ejected=ejected,
            line=start.line,
            column=start.column,
        )

    def parse_field(self) -> ast.FieldDecl:
        """Parse ``field name[?]: Type[?] (serialize: bool | default: literal)*``."""
        start = self.expect(TokenType.FIELD)
        name = self.expect_identifier_or_keyword("field name")
        optional = self.accept(TokenType.QUESTION)
        self.expect(TokenType.COLON, f"':' after field name '{name.value}'")
        type_token = self.expect(TokenType.IDENTIFIER, "a type name")
        type_optional = self.accept(TokenType.QUESTION)

        serialize: bool | None = None
        has_default = False
        default: ast.DefaultValue = None

        while self.match(TokenType.SERIALIZE, TokenType.DEFAULT):
            attr = self.advance()
            self.expect(TokenType.COLON, f"':' after '{attr.value}'")
            if attr.type == TokenType.SERIALIZE:
                if serialize is not None:
                    raise self.error("Duplicate 'serialize' attribute", attr)
                serialize = self.parse_bool()
            else:
                if has_default:
                    raise self.error("Duplicate 'default' attribute", attr)
                has_default = True
                default = self.parse_literal()

        return ast.FieldDecl(
            name=name.value,
            type_name=type_token.value,
            optional=optional,
            type_optional=type_optional,
            serialize=serialize,
            has_default=has_default,
            default=default,
            line=start.line,
            column=start.column,
        )

    def parse_belongs_to(self) -> ast.AssociationDecl:
        """Parse ``belongs_to name[?] [: Target | : polymorphic [A, B]]``."""
        start = self.expect(TokenType.BELONGS_TO)
        name = self.expect_identifier_or_keyword("association name")
        optional = self.accept(TokenType.QUESTION)

        if not self.accept(TokenType.COLON):
            return ast.AssociationDecl(
                association=AssociationKind.BELONGS_TO,
                name=name.value,
                optional=optional,
                line=start.line,
                column=start.column,
            )

        if self.accept(TokenType.POLYMORPHIC):
            candidates = [t.value for t in self.parse_identifier_list("candidate resource")]
            return ast.AssociationDecl(
                association=AssociationKind.POLYMORPHIC,
                name=name.value,
                optional=optional,
                candidates=candidates,
                line=start.line,
                column=start.column,
            )

        target = self.expect(TokenType.IDENTIFIER, "a target resource name or 'polymorphic'")
        return ast.AssociationDecl(
            association=AssociationKind.BELONGS_TO,
            name=name.value,
            optional=optional,
            target=target.value,
            line=start.line,
            column=start.column,
        )

    def parse_has_many(self) -> ast.AssociationDecl:
        """Parse ``has_many name [: Target]``."""
        start = self.expect(TokenType.HAS_MANY)
        name = self.expect_identifier_or_keyword("association name")
        target = None
        if self.accept(TokenType.COLON):
            target = self.expect(TokenType.IDENTIFIER, "a target resource name").value
        return ast.AssociationDecl(
            association=AssociationKind.HAS_MANY,
            name=name.value,
            target=target,
            line=start.line,
            column=start.column,
        )

    def parse_bool(self) -> bool:
        token = self.current_token()
        if self.accept(TokenType.TRUE):
            return True
        if self.accept(TokenType.FALSE):
            return False
        raise self.error(f"Expected 'true' or 'false', found {token.describe()}", token)

    def parse_literal(self) -> ast.DefaultValue:
        """Parse a default value: string, number, boolean or null."""
        token = self.current_token()
        if token.type == TokenType.STRING:
            return self.advance().value
        if token.type == TokenType.NUMBER:
            self.advance()
            try:
                return float(token.value) if "." in token.value else int(token.value)
            except ValueError:
                raise self.error(f"Invalid number literal '{token.value}'", token) from None
        if token.type in (TokenType.TRUE, TokenType.FALSE):
            return self.parse_bool()
        if self.accept(TokenType.NULL):
            return None
        raise self.error(f"Expected a literal value, found {token.describe()}", token)
