"""
Base parser class for the Via DSL.

Provides common token manipulation and utility methods used by all parser mixins.
"""

from pathlib import Path

from ..ast import ExternalRef
from ..errors import ParseError, extract_snippet, make_parse_error
from ..lexer import KEYWORDS, Token, TokenType


class BaseParser:
    """
    Base parser class with token manipulation utilities.

    This class provides the foundation for recursive descent parsing,
    including token navigation, matching, and error generation.
    """

    def __init__(self, tokens: list[Token], file: Path, text: str = ""):
        """
        Initialize parser.

        Args:
            tokens: List of tokens from lexer
            file: Source file path (for error reporting)
            text: Original source text (for error snippets)
        """
        self.tokens = tokens
        self.file = file
        self.text = text
        self.pos = 0

    def current_token(self) -> Token:
        """Get current token."""
        if self.pos >= len(self.tokens):
            return self.tokens[-1]  # EOF
        return self.tokens[self.pos]

    def peek_token(self, offset: int = 1) -> Token:
        """Peek ahead at token."""
        pos = self.pos + offset
        if pos >= len(self.tokens):
            return self.tokens[-1]
        return self.tokens[pos]

    def advance(self) -> Token:
        """Consume and return current token."""
        token = self.current_token()
        if token.type != TokenType.EOF:
            self.pos += 1
        return token

    def error(self, message: str, token: Token | None = None) -> ParseError:
        """Build a ParseError located at ``token`` (default: current token)."""
        token = token or self.current_token()
        return make_parse_error(
            message,
            self.file,
            token.line,
            token.column,
            snippet=extract_snippet(self.text, token.line) if self.text else None,
        )

    def expect(self, token_type: TokenType, what: str | None = None) -> Token:
        """
        Expect a specific token type and consume it.

        Raises:
            ParseError: If token doesn't match
        """
        token = self.current_token()
        if token.type != token_type:
            expected = what or f"'{token_type.value}'"
            raise self.error(f"Expected {expected}, found {token.describe()}", token)
        return self.advance()

    def expect_identifier_or_keyword(self, what: str = "identifier") -> Token:
        """
        Expect an identifier, accepting keywords in name positions.

        Field and action names such as ``default`` or ``action`` are legal,
        so any keyword token is accepted where a name is expected.
        """
        token = self.current_token()
        if token.type == TokenType.IDENTIFIER or (
            token.type != TokenType.STRING and token.value in KEYWORDS
        ):
            return self.advance()
        raise self.error(f"Expected {what}, found {token.describe()}", token)

    def match(self, *token_types: TokenType) -> bool:
        """Check if current token matches any of the given types."""
        return self.current_token().type in token_types

    def accept(self, token_type: TokenType) -> bool:
        """Consume the current token if it matches; report whether it did."""
        if self.match(token_type):
            self.advance()
            return True
        return False

    def skip_separators(self) -> None:
        """Skip optional ``;`` statement separators."""
        while self.match(TokenType.SEMICOLON):
            self.advance()

    def parse_identifier_list(self, what: str) -> list[Token]:
        """Parse ``[a, b, c]`` (trailing comma allowed)."""
        self.expect(TokenType.LBRACKET)
        items: list[Token] = []
        while not self.match(TokenType.RBRACKET):
            items.append(self.expect_identifier_or_keyword(what))
            if not self.accept(TokenType.COMMA):
                break
        self.expect(TokenType.RBRACKET, f"',' or ']' after {what}")
        return items

    def parse_ejection_marker(self) -> ExternalRef | None:
        """Parse an optional ``ejected "path.py[:symbol]"`` clause."""
        if not self.match(TokenType.EJECTED):
            return None
        self.advance()
        token = self.expect(TokenType.STRING, 'a quoted reference like "app/posts.py:show"')
        if not token.value.strip():
            raise self.error("Ejection reference must not be empty", token)
        return ExternalRef.parse(token.value)

