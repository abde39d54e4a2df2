"""
Method parser mixin for the fsmforge DSL.

Parses accessor and behaviour declarations targeting one or more states.

DSL Syntax:

    methods Traffic {
        Green => get count: int,
        Green => set count: int,
        Green, Orange, Red => default(False) fn can_pass(self) -> bool,
        [Orange, Red] => default fn wait_time(&self, factor: float) -> float,
    }
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .. import ir
from ..lexer import TokenType


class MethodParserMixin:
    """Parser mixin for `methods` blocks."""

    if TYPE_CHECKING:
        expect: Any
        advance: Any
        match: Any
        match_value: Any
        current_token: Any
        peek_token: Any
        expect_identifier: Any
        expect_separator: Any
        error: Any
        describe: Any
        location: Any
        parse_raw: Any
        parse_type: Any

    def parse_methods_block(self) -> ir.MethodBlockSpec:
        """
        Parse a methods block.

        Grammar:
            METHODS IDENTIFIER "{" (method ("," method)* ","?)? "}"
        """
        keyword = self.expect(TokenType.METHODS)
        machine = self.expect_identifier("machine name").value
        self.expect(TokenType.LBRACE)

        methods: list[ir.MethodSpec] = []
        while not self.match(TokenType.RBRACE):
            methods.append(self.parse_method())
            if not self.expect_separator(TokenType.RBRACE, "method declaration"):
                break

        self.expect(TokenType.RBRACE)
        return ir.MethodBlockSpec(
            machine=machine,
            methods=methods,
            location=self.location(keyword),
        )

    def parse_method(self) -> ir.MethodSpec:
        """
        Parse one method declaration.

        Grammar:
            targets "=>" default? shape
            default := DEFAULT ("(" expr ")")?
            shape := "get" IDENTIFIER ":" type
                   | "set" IDENTIFIER ":" type
                   | fn_signature
        """
        first = self.current_token()
        states = self.parse_method_targets()
        self.expect(TokenType.FAT_ARROW)
        default = self.parse_default_clause()

        if self.match(TokenType.FN):
            signature = self.parse_fn_signature()
            return ir.MethodSpec(
                states=states,
                kind=ir.MethodKind.FN,
                name=signature.name,
                signature=signature,
                default=default,
                location=self.location(first),
            )

        shape = self.current_token()
        if not (self.match_value("get") or self.match_value("set")):
            raise self.error(
                f"Expected `get`, `set` or a `fn` signature, got {self.describe(shape)}"
            )
        self.advance()
        field_name = self.expect_identifier("field name").value
        self.expect(TokenType.COLON)
        field_type = self.parse_type()

        return ir.MethodSpec(
            states=states,
            kind=ir.MethodKind(shape.value),
            name=field_name,
            type=field_type,
            default=default,
            location=self.location(first),
        )

    def parse_method_targets(self) -> list[str]:
        """Parse `A, B, C` or `[A, B, C,]` before the arrow."""
        if self.match(TokenType.LBRACKET):
            self.advance()
            states: list[str] = []
            while not self.match(TokenType.RBRACKET):
                states.append(self.expect_identifier("state name").value)
                if self.match(TokenType.COMMA):
                    self.advance()
                    continue
                break
            self.expect(TokenType.RBRACKET)
            if not states:
                raise self.error("Method must target at least one state")
            return states

        states = [self.expect_identifier("state name").value]
        while self.match(TokenType.COMMA):
            self.advance()
            states.append(self.expect_identifier("state name").value)
        return states

    def parse_default_clause(self) -> ir.DefaultValue:
        """Parse an optional `default` / `default(expr)` prefix."""
        if not self.match(TokenType.DEFAULT):
            return ir.DefaultValue()

        self.advance()
        if not self.match(TokenType.LPAREN):
            return ir.DefaultValue(kind=ir.DefaultKind.DEFAULT)

        self.advance()
        expr, _ = self.parse_raw(TokenType.RPAREN, what="default value")
        self.expect(TokenType.RPAREN)
        return ir.DefaultValue(kind=ir.DefaultKind.VALUE, expr=expr)

    def parse_fn_signature(self) -> ir.FnSignature:
        """
        Parse a method signature.

        Grammar:
            FN IDENTIFIER "(" (receiver ("," arg)* | arg ("," arg)*)? ","? ")" ("->" type)?
            receiver := "&"? "mut"? "self"
            arg := IDENTIFIER (":" type)?
        """
        self.expect(TokenType.FN)
        name = self.expect_identifier("method name").value
        self.expect(TokenType.LPAREN)

        receiver = self.parse_receiver()
        if receiver is not None and not self.match(TokenType.RPAREN):
            self.expect(TokenType.COMMA)

        args: list[ir.ArgSpec] = []
        while not self.match(TokenType.RPAREN):
            arg_name = self.expect_identifier("argument name").value
            arg_type = None
            if self.match(TokenType.COLON):
                self.advance()
                arg_type = self.parse_type()
            args.append(ir.ArgSpec(name=arg_name, type=arg_type))
            if self.match(TokenType.COMMA):
                self.advance()
                continue
            if not self.match(TokenType.RPAREN):
                raise self.error(
                    f"Expected ',' or ')' in argument list, got {self.describe(self.current_token())}"
                )
        self.expect(TokenType.RPAREN)

        returns = None
        if self.match(TokenType.ARROW):
            self.advance()
            returns = self.parse_type()

        return ir.FnSignature(name=name, receiver=receiver, args=args, returns=returns)

    def parse_receiver(self) -> str | None:
        """Parse `self`, `&self`, `&mut self` or `mut self` if present."""
        parts: list[str] = []
        offset = 0
        if self.peek_token(offset).type == TokenType.AMPERSAND:
            parts.append("&")
            offset += 1
        token = self.peek_token(offset)
        if token.type == TokenType.IDENTIFIER and token.value == "mut":
            parts.append("mut ")
            offset += 1
        token = self.peek_token(offset)
        if token.type != TokenType.IDENTIFIER or token.value != "self":
            if parts:
                raise self.error("Expected `self` after receiver modifiers", token)
            return None

        for _ in range(offset + 1):
            self.advance()
        return "".join(parts) + "self"
