"""Tests for the fsmforge DSL lexer."""

from pathlib import Path

import pytest

from fsmforge.core.errors import ParseError
from fsmforge.core.lexer import TokenType, tokenize


def types(text: str) -> list[TokenType]:
    return [t.type for t in tokenize(text, Path("test.fsm"))]


class TestKeywordsAndPunctuation:
    def test_block_keywords(self) -> None:
        assert types("machine transitions methods dynamic") == [
            TokenType.MACHINE,
            TokenType.TRANSITIONS,
            TokenType.METHODS,
            TokenType.DYNAMIC,
            TokenType.EOF,
        ]

    def test_get_and_set_are_identifiers(self) -> None:
        """`get`/`set` stay usable as names; the parser checks them by value."""
        assert types("get set") == [TokenType.IDENTIFIER, TokenType.IDENTIFIER, TokenType.EOF]

    def test_arrows(self) -> None:
        assert types("=> -> = >") == [
            TokenType.FAT_ARROW,
            TokenType.ARROW,
            TokenType.EQUALS,
            TokenType.GREATER_THAN,
            TokenType.EOF,
        ]

    def test_python_operators(self) -> None:
        tokens = tokenize("a <= b != c | d", Path("test.fsm"))
        assert [t.value for t in tokens if t.type == TokenType.OPERATOR] == ["<=", "!=", "|"]

    def test_comments_and_newlines_are_skipped(self) -> None:
        assert types("machine # trailing comment\n  Traffic") == [
            TokenType.MACHINE,
            TokenType.IDENTIFIER,
            TokenType.EOF,
        ]


class TestLifetimes:
    def test_lifetime_in_generic_list(self) -> None:
        tokens = tokenize("Msg<'a, T>", Path("test.fsm"))
        assert tokens[2].type == TokenType.LIFETIME
        assert tokens[2].value == "'a"

    def test_quoted_string_is_not_a_lifetime(self) -> None:
        tokens = tokenize("['a', 'b']", Path("test.fsm"))
        assert [t.type for t in tokens[:4]] == [
            TokenType.LBRACKET,
            TokenType.STRING,
            TokenType.COMMA,
            TokenType.STRING,
        ]
        assert tokens[1].value == "a"


class TestPositions:
    def test_line_and_column(self) -> None:
        tokens = tokenize("machine\n  Traffic", Path("test.fsm"))
        assert (tokens[1].line, tokens[1].column) == (2, 3)

    def test_offsets_slice_the_source(self) -> None:
        text = "State.Green(count) => x"
        tokens = tokenize(text, Path("test.fsm"))
        green = tokens[2]
        assert text[green.start : green.end] == "Green"


class TestErrors:
    def test_unterminated_string(self) -> None:
        with pytest.raises(ParseError, match="Unterminated string"):
            tokenize('"open', Path("test.fsm"))

    def test_unexpected_character(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            tokenize("machine $", Path("bad.fsm"))
        assert "Unexpected character" in str(exc_info.value)
        assert exc_info.value.context is not None
        assert exc_info.value.context.column == 9
        assert str(exc_info.value).endswith("   1 | machine $\n     |         ^")
