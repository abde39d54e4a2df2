"""
Dynamic machine parser mixin for the fsmforge DSL.

Parses runtime-checked machines. Patterns, arm bodies, types and defaults
are Python source and are kept verbatim.

DSL Syntax:

    dynamic TrafficLight(State) {
        { initial: State.Green(0), error: State.BlinkingOrange() }

        attributes { max_passing: int }

        event[next] {
            State.Green(_) => State.Orange(),
            State.Orange() => State.Red(),
            State.Red() => State.Green(0)
        }

        event[pass_car(nb: int) -> int | None: None] {
            State.Green(current) => {
                passed = min(nb, 10 - current)
                if current + passed < 10:
                    return State.Green(current + passed), passed
                (State.Orange(), passed)
            },
            State.Orange() => (State.Red(), min(nb, 1))
        }
    }
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .. import ir
from ..lexer import TokenType


class DynamicParserMixin:
    """Parser mixin for `dynamic` blocks."""

    if TYPE_CHECKING:
        text: str
        expect: Any
        advance: Any
        match: Any
        match_value: Any
        current_token: Any
        expect_identifier: Any
        expect_separator: Any
        error: Any
        describe: Any
        location: Any
        parse_raw: Any

    def parse_dynamic_machine(self) -> ir.DynamicMachineSpec:
        """
        Parse a dynamic machine.

        Grammar:
            DYNAMIC IDENTIFIER "(" expr ")" "{"
                "{" "initial" ":" expr "," "error" ":" expr ","? "}"
                (ATTRIBUTES "{" (IDENTIFIER ":" type),* "}")?
                event_block*
            "}"
        """
        keyword = self.expect(TokenType.DYNAMIC)
        name = self.expect_identifier("machine name").value
        self.expect(TokenType.LPAREN)
        state_type, _ = self.parse_raw(TokenType.RPAREN, what="state type")
        self.expect(TokenType.RPAREN)
        self.expect(TokenType.LBRACE)

        initial, error = self.parse_dynamic_header()

        attributes: list[ir.AttributeSpec] = []
        if self.match(TokenType.ATTRIBUTES):
            self.advance()
            self.expect(TokenType.LBRACE)
            attributes = self.parse_typed_slots(TokenType.RBRACE, "attribute")
            self.expect(TokenType.RBRACE)

        events: list[ir.EventSpec] = []
        while self.match(TokenType.EVENT):
            events.append(self.parse_event())

        if not self.match(TokenType.RBRACE):
            raise self.error(
                f"Expected 'event' or '}}', got {self.describe(self.current_token())}"
            )
        self.advance()

        return ir.DynamicMachineSpec(
            name=name,
            state_type=state_type,
            initial=initial,
            error=error,
            attributes=attributes,
            events=events,
            location=self.location(keyword),
        )

    def parse_dynamic_header(self) -> tuple[str, str]:
        """Parse `{ initial: expr, error: expr }`."""
        self.expect(TokenType.LBRACE)
        values: dict[str, str] = {}

        for key in ("initial", "error"):
            if not self.match_value(key):
                raise self.error(
                    f"Expected '{key}:' in dynamic machine header, "
                    f"got {self.describe(self.current_token())}"
                )
            self.advance()
            self.expect(TokenType.COLON)
            values[key], _ = self.parse_raw(TokenType.COMMA, TokenType.RBRACE, what=f"{key} state")
            if key == "initial":
                self.expect(TokenType.COMMA)
            elif self.match(TokenType.COMMA):
                self.advance()

        self.expect(TokenType.RBRACE)
        return values["initial"], values["error"]

    def parse_typed_slots(self, closer: TokenType, what: str) -> list[ir.AttributeSpec]:
        """Parse `name: Type, ...` up to (not including) ``closer``."""
        slots: list[ir.AttributeSpec] = []
        while not self.match(closer):
            slot_name = self.expect_identifier(f"{what} name").value
            self.expect(TokenType.COLON)
            slot_type, _ = self.parse_raw(TokenType.COMMA, closer, what=f"{what} type")
            slots.append(ir.AttributeSpec(name=slot_name, type=slot_type))
            if self.match(TokenType.COMMA):
                self.advance()
                continue
            break
        return slots

    def parse_event(self) -> ir.EventSpec:
        """
        Parse an event block.

        Grammar:
            EVENT "[" IDENTIFIER ("(" args ")" "->" type ":" expr)? "]"
                "{" arm ("," arm)* ","? "}"
        """
        keyword = self.expect(TokenType.EVENT)
        self.expect(TokenType.LBRACKET)
        name = self.expect_identifier("event name").value

        args: list[ir.AttributeSpec] = []
        returns = None
        default = None
        if self.match(TokenType.LPAREN):
            self.advance()
            args = self.parse_typed_slots(TokenType.RPAREN, "argument")
            self.expect(TokenType.RPAREN)
            self.expect(TokenType.ARROW)
            returns, _ = self.parse_raw(TokenType.COLON, what="return type")
            self.expect(TokenType.COLON)
            default, _ = self.parse_raw(TokenType.RBRACKET, what="default value")
        self.expect(TokenType.RBRACKET)

        self.expect(TokenType.LBRACE)
        arms: list[ir.EventArmSpec] = []
        while not self.match(TokenType.RBRACE):
            arms.append(self.parse_event_arm())
            if not self.expect_separator(TokenType.RBRACE, "event arm"):
                break
        self.expect(TokenType.RBRACE)

        if not arms:
            raise self.error(f"Event '{name}' must declare at least one arm", keyword)

        return ir.EventSpec(
            name=name,
            args=args,
            returns=returns,
            default=default,
            arms=arms,
            location=self.location(keyword),
        )

    def parse_event_arm(self) -> ir.EventArmSpec:
        """
        Parse `pattern => expr` or `pattern => { statements }`.
        """
        pattern, first = self.parse_raw(TokenType.FAT_ARROW, what="state pattern")
        self.expect(TokenType.FAT_ARROW)

        if self.match(TokenType.LBRACE):
            open_brace = self.advance()
            depth = 0
            while depth > 0 or not self.match(TokenType.RBRACE):
                token = self.current_token()
                if token.type == TokenType.EOF:
                    raise self.error("Unexpected end of file in arm block", open_brace)
                if token.type in (TokenType.LPAREN, TokenType.LBRACKET, TokenType.LBRACE):
                    depth += 1
                elif token.type in (TokenType.RPAREN, TokenType.RBRACKET, TokenType.RBRACE):
                    depth -= 1
                self.advance()
            close_brace = self.expect(TokenType.RBRACE)
            body = self.text[open_brace.end : close_brace.start]
            if not body.strip():
                raise self.error("Arm block must not be empty", open_brace)
            return ir.EventArmSpec(
                pattern=pattern,
                body=body,
                is_block=True,
                location=self.location(first),
            )

        body, _ = self.parse_raw(TokenType.COMMA, TokenType.RBRACE, what="arm expression")
        return ir.EventArmSpec(pattern=pattern, body=body, location=self.location(first))
