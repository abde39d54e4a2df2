"""
Type parser mixin for the fsmforge DSL.

Parses type references used by fields, messages and method signatures.

DSL Syntax:

    int
    msgs.Advance
    Request<'a, T>
    dict[str, list[int]]
    Callable[[int], str]
    int | None
    Literal["on", "off"]
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .. import ir
from ..lexer import Token, TokenType


class TypeParserMixin:
    """Parser mixin for type references."""

    if TYPE_CHECKING:
        tokens: list[Token]
        pos: int
        text: str
        expect: Any
        advance: Any
        match: Any
        match_value: Any
        current_token: Any
        expect_identifier: Any
        error: Any
        describe: Any

    def parse_type(self) -> ir.TypeRef:
        """
        Parse a type, including `|` unions.

        Grammar:
            type := atom ("|" atom)*
        """
        first = self.parse_type_atom()
        if not self.match_value("|"):
            return first

        members = [first]
        while self.match_value("|"):
            self.advance()
            members.append(self.parse_type_atom())
        return ir.TypeRef(kind=ir.TypeKind.UNION, params=members)

    def parse_type_atom(self) -> ir.TypeRef:
        """
        Parse a single type term.

        Grammar:
            atom := LIFETIME
                  | STRING | NUMBER
                  | "[" type,* "]"
                  | dotted_name (("<" type,* ">") | ("[" type,* "]"))?
        """
        token = self.current_token()

        if token.type == TokenType.LIFETIME:
            self.advance()
            return ir.TypeRef(kind=ir.TypeKind.LIFETIME, name=token.value)

        if token.type in (TokenType.STRING, TokenType.NUMBER):
            self.advance()
            return ir.TypeRef(kind=ir.TypeKind.LITERAL, name=self.text[token.start : token.end])

        if token.type == TokenType.LBRACKET:
            self.advance()
            params = self.parse_type_params(TokenType.RBRACKET)
            return ir.TypeRef(kind=ir.TypeKind.LIST, params=params)

        name = self.parse_dotted_name("type name")
        params: list[ir.TypeRef] = []
        if self.match(TokenType.LESS_THAN):
            self.advance()
            params = self.parse_type_params(TokenType.GREATER_THAN)
        elif self.match(TokenType.LBRACKET):
            self.advance()
            params = self.parse_type_params(TokenType.RBRACKET)
        return ir.TypeRef(name=name, params=params)

    def parse_type_params(self, closer: TokenType) -> list[ir.TypeRef]:
        """Parse a comma-separated parameter list up to and including ``closer``."""
        params: list[ir.TypeRef] = []
        while not self._at_closer(closer):
            params.append(self.parse_type())
            if self.match(TokenType.COMMA):
                self.advance()
                continue
            break

        if not self._at_closer(closer):
            raise self.error(
                f"Expected ',' or '{closer.value}' in type parameters, "
                f"got {self.describe(self.current_token())}"
            )
        self.advance()
        return params

    def parse_dotted_name(self, what: str = "name") -> str:
        """Parse `a.b.c`."""
        parts = [self.expect_identifier(what).value]
        while self.match(TokenType.DOT):
            self.advance()
            parts.append(self.expect_identifier(what).value)
        return ".".join(parts)

    def _at_closer(self, closer: TokenType) -> bool:
        """
        Check for ``closer``, splitting a `>>` token closing nested generics.
        """
        token = self.current_token()
        if closer == TokenType.GREATER_THAN and token.type == TokenType.OPERATOR:
            if token.value == ">>":
                self.tokens[self.pos : self.pos + 1] = [
                    Token(TokenType.GREATER_THAN, ">", token.line, token.column, token.start, token.start + 1),
                    Token(TokenType.GREATER_THAN, ">", token.line, token.column + 1, token.start + 1, token.end),
                ]
                return True
        return token.type == closer
