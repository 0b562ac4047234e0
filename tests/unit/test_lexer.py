"""Tests for the Via lexer."""

from pathlib import Path

import pytest

from via.core.errors import ParseError
from via.core.lexer import TokenType, tokenize

FILE = Path("app/post.via")


def types(text: str) -> list[TokenType]:
    return [t.type for t in tokenize(text, FILE)]


class TestTokens:
    def test_keywords_and_identifiers(self):
        tokens = tokenize("resource Post { model { field title: String } }", FILE)

        assert [t.type for t in tokens] == [
            TokenType.RESOURCE,
            TokenType.IDENTIFIER,
            TokenType.LBRACE,
            TokenType.MODEL,
            TokenType.LBRACE,
            TokenType.FIELD,
            TokenType.IDENTIFIER,
            TokenType.COLON,
            TokenType.IDENTIFIER,
            TokenType.RBRACE,
            TokenType.RBRACE,
            TokenType.EOF,
        ]
        assert tokens[1].value == "Post"

    def test_optional_marker_is_its_own_token(self):
        assert types("body?: Text?") == [
            TokenType.IDENTIFIER,
            TokenType.QUESTION,
            TokenType.COLON,
            TokenType.IDENTIFIER,
            TokenType.QUESTION,
            TokenType.EOF,
        ]

    def test_string_escapes(self):
        tokens = tokenize(r'"a \"quoted\" value\n"', FILE)
        assert tokens[0].type == TokenType.STRING
        assert tokens[0].value == 'a "quoted" value\n'

    def test_numbers(self):
        tokens = tokenize("42 -3 1.5", FILE)
        assert [(t.type, t.value) for t in tokens[:-1]] == [
            (TokenType.NUMBER, "42"),
            (TokenType.NUMBER, "-3"),
            (TokenType.NUMBER, "1.5"),
        ]

    def test_positions_are_one_indexed(self):
        tokens = tokenize("resource Post {\n  model {}\n}", FILE)
        model = tokens[3]
        assert model.type == TokenType.MODEL
        assert (model.line, model.column) == (2, 3)

    def test_eof_describes_itself(self):
        eof = tokenize("", FILE)[-1]
        assert eof.type == TokenType.EOF
        assert eof.describe() == "end of file"


class TestComments:
    def test_line_comments_are_skipped(self):
        text = "// leading\nresource # trailing\nPost"
        assert types(text) == [TokenType.RESOURCE, TokenType.IDENTIFIER, TokenType.EOF]

    def test_block_comments_are_skipped(self):
        text = "resource /* { not a brace } */ Post"
        assert types(text) == [TokenType.RESOURCE, TokenType.IDENTIFIER, TokenType.EOF]

    def test_block_comment_keeps_line_numbers(self):
        tokens = tokenize("/* one\ntwo */\nPost", FILE)
        assert tokens[0].line == 3

    def test_unterminated_block_comment(self):
        with pytest.raises(ParseError, match="Unterminated block comment"):
            tokenize("resource /* never closed", FILE)


class TestErrors:
    def test_unmatched_open_brace_points_at_opener(self):
        with pytest.raises(ParseError) as exc_info:
            tokenize("resource Post {\n  model {\n}", FILE)

        err = exc_info.value
        assert "never closed" in str(err)
        assert err.context is not None
        assert (err.context.line, err.context.column) == (1, 15)

    def test_unmatched_close_brace(self):
        with pytest.raises(ParseError, match=r"Unmatched '\}'"):
            tokenize("resource Post { } }", FILE)

    def test_unterminated_string(self):
        with pytest.raises(ParseError, match="Unterminated string literal"):
            tokenize('action show ejected "handlers.py', FILE)

    def test_unexpected_character(self):
        with pytest.raises(ParseError) as exc_info:
            tokenize("resource Post @", FILE)

        assert "Unexpected character: '@'" in str(exc_info.value)
        assert exc_info.value.file == FILE

    def test_error_message_carries_location_and_snippet(self):
        with pytest.raises(ParseError) as exc_info:
            tokenize("resource Post {\n  field x: $\n}", FILE)

        message = str(exc_info.value)
        assert message.startswith("app/post.via:2:12")
        assert "   2 |   field x: $" in message
