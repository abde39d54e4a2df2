"""
Transition parser mixin for the fsmforge DSL.

Parses standalone transition blocks and the transition entries shared with
inline state clauses.

DSL Syntax:

    transitions Traffic {
        (Green, Advance) => Orange,
        (Orange, Advance) => Red,
        (Green, PassCar) => [Green, Orange,],
    }
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .. import ir
from ..lexer import TokenType


class TransitionParserMixin:
    """Parser mixin for `transitions` blocks and transition targets."""

    if TYPE_CHECKING:
        expect: Any
        advance: Any
        match: Any
        current_token: Any
        expect_identifier: Any
        expect_separator: Any
        error: Any
        location: Any
        parse_type: Any

    def parse_transitions_block(self) -> ir.TransitionBlockSpec:
        """
        Parse a transitions block.

        Grammar:
            TRANSITIONS IDENTIFIER "{" (transition ("," transition)* ","?)? "}"
        """
        keyword = self.expect(TokenType.TRANSITIONS)
        machine = self.expect_identifier("machine name").value
        self.expect(TokenType.LBRACE)

        transitions: list[ir.TransitionSpec] = []
        while not self.match(TokenType.RBRACE):
            transitions.append(self.parse_transition())
            if not self.expect_separator(TokenType.RBRACE, "transition"):
                break

        self.expect(TokenType.RBRACE)
        return ir.TransitionBlockSpec(
            machine=machine,
            transitions=transitions,
            location=self.location(keyword),
        )

    def parse_transition(self) -> ir.TransitionSpec:
        """
        Parse one fully qualified transition.

        Grammar:
            "(" IDENTIFIER "," type ")" "=>" end_states
        """
        start_token = self.expect(TokenType.LPAREN)
        start = self.expect_identifier("start state").value
        self.expect(TokenType.COMMA)
        message = self.parse_type()
        self.expect(TokenType.RPAREN)
        self.expect(TokenType.FAT_ARROW)
        end = self.parse_end_states()

        return ir.TransitionSpec(
            start=start,
            message=message,
            end=end,
            location=self.location(start_token),
        )

    def parse_end_states(self) -> list[str]:
        """
        Parse a transition target: one state or a bracketed list.

        Grammar:
            IDENTIFIER | "[" IDENTIFIER ("," IDENTIFIER)* ","? "]"

        Raises:
            ParseError: If the bracketed list is empty
        """
        if not self.match(TokenType.LBRACKET):
            return [self.expect_identifier("end state").value]

        open_token = self.advance()
        states: list[str] = []
        while not self.match(TokenType.RBRACKET):
            states.append(self.expect_identifier("end state").value)
            if self.match(TokenType.COMMA):
                self.advance()
                continue
            if not self.match(TokenType.RBRACKET):
                raise self.error("Expected ',' or ']' in end state list")

        self.expect(TokenType.RBRACKET)
        if not states:
            raise self.error("Transition must name at least one end state", open_token)
        return states
