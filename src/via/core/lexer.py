"""
Lexer/Tokenizer for the Via DSL.

Converts raw `.via` text into a stream of tokens with source location tracking.
Blocks are brace-delimited, so whitespace and newlines carry no meaning.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .errors import ParseError, extract_snippet, make_parse_error


class TokenType(Enum):
    """Token types in the Via DSL."""

    # Literals
    IDENTIFIER = "identifier"
    STRING = "string"
    NUMBER = "number"

    # Block keywords
    RESOURCE = "resource"
    MODEL = "model"
    CONTROLLER = "controller"
    PARAMS = "params"

    # Model keywords
    FIELD = "field"
    BELONGS_TO = "belongs_to"
    HAS_MANY = "has_many"
    POLYMORPHIC = "polymorphic"
    SERIALIZE = "serialize"
    DEFAULT = "default"

    # Controller keywords
    RESPOND_WITH = "respond_with"
    ACTIONS = "actions"
    ACTION = "action"
    AUTO_CRUD = "auto_crud"
    EXCEPT = "except"
    EJECTED = "ejected"
    OVERRIDDEN = "overridden"

    # Literal keywords
    TRUE = "true"
    FALSE = "false"
    NULL = "null"

    # Punctuation
    LBRACE = "{"
    RBRACE = "}"
    LBRACKET = "["
    RBRACKET = "]"
    COLON = ":"
    COMMA = ","
    SEMICOLON = ";"
    QUESTION = "?"

    EOF = "end of file"


KEYWORDS = {
    "resource",
    "model",
    "controller",
    "params",
    "field",
    "belongs_to",
    "has_many",
    "polymorphic",
    "serialize",
    "default",
    "respond_with",
    "actions",
    "action",
    "auto_crud",
    "except",
    "ejected",
    "overridden",
    "true",
    "false",
    "null",
}

PUNCTUATION = {
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    ":": TokenType.COLON,
    ",": TokenType.COMMA,
    ";": TokenType.SEMICOLON,
    "?": TokenType.QUESTION,
}


@dataclass(frozen=True)
class Token:
    """
    A single token in the DSL.

    Attributes:
        type: Type of token
        value: String value of the token
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """

    type: TokenType
    value: str
    line: int
    column: int

    def describe(self) -> str:
        """Human-readable form used in expected-vs-found messages."""
        if self.type == TokenType.EOF:
            return "end of file"
        if self.type == TokenType.STRING:
            return f'string "{self.value}"'
        return f"'{self.value}'"

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"


class Lexer:
    """
    Lexer for the Via DSL.

    Converts source text into a stream of tokens and checks brace balance
    so that an unmatched brace is reported before any parsing happens.
    """

    def __init__(self, text: str, file: Path):
        """
        Initialize lexer.

        Args:
            text: Source text to tokenize
            file: Source file path (for error reporting)
        """
        self.text = text
        self.file = file
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens: list[Token] = []
        self.brace_stack: list[Token] = []

    def current_char(self) -> str | None:
        """Get current character or None if at end."""
        if self.pos >= len(self.text):
            return None
        return self.text[self.pos]

    def peek_char(self, offset: int = 1) -> str | None:
        """Peek ahead at character."""
        pos = self.pos + offset
        if pos >= len(self.text):
            return None
        return self.text[pos]

    def advance(self) -> None:
        """Move to next character, updating line/column."""
        if self.pos < len(self.text):
            if self.text[self.pos] == "\n":
                self.line += 1
                self.column = 1
            else:
                self.column += 1
            self.pos += 1

    def error(self, message: str, line: int, column: int) -> ParseError:
        return make_parse_error(
            message,
            self.file,
            line,
            column,
            snippet=extract_snippet(self.text, line),
        )

    def skip_line_comment(self) -> None:
        """Skip comment (from // or # to end of line)."""
        while self.current_char() and self.current_char() != "\n":
            self.advance()

    def skip_block_comment(self) -> None:
        """Skip a /* ... */ comment."""
        start_line, start_col = self.line, self.column
        self.advance()
        self.advance()
        while True:
            ch = self.current_char()
            if ch is None:
                raise self.error("Unterminated block comment", start_line, start_col)
            if ch == "*" and self.peek_char() == "/":
                self.advance()
                self.advance()
                return
            self.advance()

    def read_string(self) -> str:
        """Read a double-quoted string."""
        start_line = self.line
        start_col = self.column
        self.advance()  # opening quote

        chars = []
        while True:
            current = self.current_char()
            if current is None or current == "\n":
                raise self.error("Unterminated string literal", start_line, start_col)
            if current == '"':
                break
            if current == "\\":
                self.advance()
                escape_char = self.current_char()
                if escape_char == "n":
                    chars.append("\n")
                elif escape_char == "t":
                    chars.append("\t")
                elif escape_char is not None:
                    chars.append(escape_char)
                self.advance()
            else:
                chars.append(current)
                self.advance()

        self.advance()  # closing quote
        return "".join(chars)

    def read_number(self) -> str:
        """Read an integer or decimal literal, with optional leading minus."""
        chars = []
        if self.current_char() == "-":
            chars.append("-")
            self.advance()
        current = self.current_char()
        while current and (current.isdigit() or current == "."):
            chars.append(current)
            self.advance()
            current = self.current_char()
        return "".join(chars)

    def read_identifier(self) -> str:
        """Read an identifier or keyword."""
        chars = []
        current = self.current_char()
        while current and (current.isalnum() or current == "_"):
            chars.append(current)
            self.advance()
            current = self.current_char()
        return "".join(chars)

    def _track_brace(self, token: Token) -> None:
        if token.type == TokenType.LBRACE:
            self.brace_stack.append(token)
        elif token.type == TokenType.RBRACE:
            if not self.brace_stack:
                raise self.error("Unmatched '}' (no block is open)", token.line, token.column)
            self.brace_stack.pop()

    def tokenize(self) -> list[Token]:
        """
        Tokenize the entire source text.

        Returns:
            List of tokens terminated by EOF

        Raises:
            ParseError: If syntax error encountered
        """
        while True:
            ch = self.current_char()
            if ch is None:
                break

            if ch in (" ", "\t", "\r", "\n"):
                self.advance()
                continue

            if ch == "#" or (ch == "/" and self.peek_char() == "/"):
                self.skip_line_comment()
                continue

            if ch == "/" and self.peek_char() == "*":
                self.skip_block_comment()
                continue

            token_line = self.line
            token_col = self.column

            if ch == '"':
                value = self.read_string()
                self.tokens.append(Token(TokenType.STRING, value, token_line, token_col))

            elif ch.isdigit() or (ch == "-" and (self.peek_char() or "").isdigit()):
                value = self.read_number()
                self.tokens.append(Token(TokenType.NUMBER, value, token_line, token_col))

            elif ch.isalpha() or ch == "_":
                value = self.read_identifier()
                token_type = TokenType(value) if value in KEYWORDS else TokenType.IDENTIFIER
                self.tokens.append(Token(token_type, value, token_line, token_col))

            elif ch in PUNCTUATION:
                self.advance()
                token = Token(PUNCTUATION[ch], ch, token_line, token_col)
                self._track_brace(token)
                self.tokens.append(token)

            else:
                raise self.error(f"Unexpected character: {ch!r}", token_line, token_col)

        if self.brace_stack:
            opener = self.brace_stack[-1]
            raise self.error(
                "Unmatched '{' (block is never closed)",
                opener.line,
                opener.column,
            )

        self.tokens.append(Token(TokenType.EOF, "", self.line, self.column))
        return self.tokens


def tokenize(text: str, file: Path) -> list[Token]:
    """
    Convenience function to tokenize Via text.

    Args:
        text: Source text
        file: Source file path

    Returns:
        List of tokens
    """
    lexer = Lexer(text, file)
    return lexer.tokenize()
