"""
Base parser class for the fsmforge DSL.

Provides common token manipulation and utility methods used by all parser mixins.
"""

from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from ..errors import make_parse_error
from ..lexer import Token, TokenType

if TYPE_CHECKING:
    from .. import ir

_OPENERS = {TokenType.LPAREN, TokenType.LBRACKET, TokenType.LBRACE}
_CLOSERS = {TokenType.RPAREN, TokenType.RBRACKET, TokenType.RBRACE}


@runtime_checkable
class ParserProtocol(Protocol):
    """
    Protocol defining the interface available to parser mixins.

    Lets type checkers see BaseParser methods on the mixins once they are
    combined in the final Parser class.
    """

    tokens: list[Token]
    file: Path
    text: str
    pos: int

    def current_token(self) -> Token: ...
    def peek_token(self, offset: int = 1) -> Token: ...
    def advance(self) -> Token: ...
    def expect(self, token_type: TokenType) -> Token: ...
    def expect_identifier(self, what: str = "identifier") -> Token: ...
    def match(self, *token_types: TokenType) -> bool: ...
    def error(self, message: str, token: Token | None = None) -> Exception: ...
    def location(self, token: Token) -> "ir.SourceLocation": ...
    def parse_raw(self, *stops: TokenType, what: str = "expression") -> tuple[str, Token]: ...

    # Methods from other mixins that may be called cross-mixin
    def parse_type(self) -> "ir.TypeRef": ...
    def parse_end_states(self) -> list[str]: ...


class BaseParser:
    """
    Base parser class with token manipulation utilities.

    This class provides the foundation for recursive descent parsing,
    including token navigation, matching, raw source slicing and error
    generation.
    """

    def __init__(self, tokens: list[Token], file: Path, text: str = ""):
        """
        Initialize parser.

        Args:
            tokens: List of tokens from lexer
            file: Source file path (for error reporting)
            text: Source text the tokens were read from (for raw regions)
        """
        self.tokens = tokens
        self.file = file
        self.text = text
        self.pos = 0

    def current_token(self) -> Token:
        """Get current token."""
        if self.pos >= len(self.tokens):
            return self.tokens[-1]  # Return EOF
        return self.tokens[self.pos]

    def peek_token(self, offset: int = 1) -> Token:
        """Peek ahead at token."""
        pos = self.pos + offset
        if pos >= len(self.tokens):
            return self.tokens[-1]  # Return EOF
        return self.tokens[pos]

    def advance(self) -> Token:
        """Consume and return current token."""
        token = self.current_token()
        if token.type != TokenType.EOF:
            self.pos += 1
        return token

    def error(self, message: str, token: Token | None = None) -> Exception:
        """Build a ParseError located at ``token`` (default: current token)."""
        token = token or self.current_token()
        return make_parse_error(
            message,
            self.file,
            token.line,
            token.column,
            width=token.end - token.start,
            text=self.text,
        )

    def describe(self, token: Token) -> str:
        """Human-readable token description for error messages."""
        if token.type == TokenType.EOF:
            return "end of file"
        if token.type == TokenType.IDENTIFIER:
            return f"identifier '{token.value}'"
        return f"'{token.value}'"

    def expect(self, token_type: TokenType) -> Token:
        """
        Expect a specific token type and consume it.

        Raises:
            ParseError: If token doesn't match
        """
        token = self.current_token()
        if token.type != token_type:
            raise self.error(f"Expected '{token_type.value}', got {self.describe(token)}")
        return self.advance()

    def expect_identifier(self, what: str = "identifier") -> Token:
        """Expect an identifier, naming what was expected in the error."""
        token = self.current_token()
        if token.type != TokenType.IDENTIFIER:
            raise self.error(f"Expected {what}, got {self.describe(token)}")
        return self.advance()

    def match(self, *token_types: TokenType) -> bool:
        """Check if current token matches any of the given types."""
        return self.current_token().type in token_types

    def match_value(self, value: str) -> bool:
        """Check if current token is an identifier or operator with ``value``."""
        token = self.current_token()
        return (
            token.type in (TokenType.IDENTIFIER, TokenType.OPERATOR) and token.value == value
        )

    def location(self, token: Token) -> "ir.SourceLocation":
        """Source location of a token."""
        from .. import ir

        return ir.SourceLocation(
            file=str(self.file),
            line=token.line,
            column=token.column,
            width=token.end - token.start,
        )

    def expect_separator(self, closer: TokenType, what: str) -> bool:
        """
        Consume a list separator.

        Returns True when another item follows, False when ``closer`` is next.
        Both `,` and `;` separate items; a trailing separator is allowed.

        Raises:
            ParseError: If neither a separator nor ``closer`` follows
        """
        if self.match(TokenType.COMMA, TokenType.SEMICOLON):
            self.advance()
            return not self.match(closer)
        if self.match(closer):
            return False
        raise self.error(
            f"Expected ',' or '{closer.value}' after {what}, got {self.describe(self.current_token())}"
        )

    def parse_raw(self, *stops: TokenType, what: str = "expression") -> tuple[str, Token]:
        """
        Consume a raw Python region and return its source text.

        Tokens are consumed until one of ``stops`` is found outside any
        bracket pair. The stop token itself is not consumed.

        Returns:
            Tuple of (source text, first token of the region)

        Raises:
            ParseError: If the region is empty, unbalanced, or hits EOF
        """
        first = self.current_token()
        depth = 0
        last: Token | None = None

        while True:
            token = self.current_token()
            if token.type == TokenType.EOF:
                raise self.error(f"Unexpected end of file in {what}", token)
            if depth == 0 and token.type in stops:
                break
            if token.type in _OPENERS:
                depth += 1
            elif token.type in _CLOSERS:
                if depth == 0:
                    raise self.error(f"Unbalanced '{token.value}' in {what}", token)
                depth -= 1
            last = self.advance()

        if last is None:
            raise self.error(f"Expected {what}, got {self.describe(first)}", first)
        return self.text[first.start : last.end].strip(), first
