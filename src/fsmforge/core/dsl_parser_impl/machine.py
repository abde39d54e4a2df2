"""
Machine parser mixin for the fsmforge DSL.

Parses machine declarations: states with typed fields and optional inline
transitions whose start state is the enclosing state.

DSL Syntax:

    machine Traffic {
        Green { count: int } => {
            Advance => Orange,
            PassCar => [Green, Orange],
        };
        Orange {};
        Red {} => { Advance => Green };
    }
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .. import ir
from ..lexer import TokenType


class MachineParserMixin:
    """Parser mixin for `machine` blocks."""

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
        parse_transition: Any
        parse_end_states: Any

    def parse_machine(self) -> ir.MachineSpec:
        """
        Parse a machine declaration.

        Grammar:
            MACHINE IDENTIFIER "{" (state_clause (sep state_clause)* sep?)? "}"
            sep := "," | ";"
        """
        keyword = self.expect(TokenType.MACHINE)
        name = self.expect_identifier("machine name").value
        self.expect(TokenType.LBRACE)

        states: list[ir.StateSpec] = []
        transitions: list[ir.TransitionSpec] = []
        while not self.match(TokenType.RBRACE):
            state, inline = self.parse_state_clause()
            states.append(state)
            transitions.extend(inline)
            if not self.expect_separator(TokenType.RBRACE, f"state '{state.name}'"):
                break

        self.expect(TokenType.RBRACE)
        return ir.MachineSpec(
            name=name,
            states=states,
            transitions=transitions,
            location=self.location(keyword),
        )

    def parse_state_clause(self) -> tuple[ir.StateSpec, list[ir.TransitionSpec]]:
        """
        Parse a state and its inline transitions.

        Grammar:
            IDENTIFIER "{" (field ("," field)* ","?)? "}" ("=>" "{" inline_transitions "}")?
        """
        name_token = self.expect_identifier("state name")
        self.expect(TokenType.LBRACE)

        fields: list[ir.FieldSpec] = []
        while not self.match(TokenType.RBRACE):
            field_name = self.expect_identifier("field name").value
            self.expect(TokenType.COLON)
            fields.append(ir.FieldSpec(name=field_name, type=self.parse_type()))
            if not self.expect_separator(TokenType.RBRACE, f"field '{field_name}'"):
                break
        self.expect(TokenType.RBRACE)

        state = ir.StateSpec(
            name=name_token.value,
            fields=fields,
            location=self.location(name_token),
        )

        transitions: list[ir.TransitionSpec] = []
        if self.match(TokenType.FAT_ARROW):
            self.advance()
            transitions = self.parse_inline_transitions(state.name)

        return state, transitions

    def parse_inline_transitions(self, start: str) -> list[ir.TransitionSpec]:
        """
        Parse `{ Message => End, ... }` after a state clause.

        Entries may also use the qualified `(Start, Message) => End` form.
        """
        self.expect(TokenType.LBRACE)

        transitions: list[ir.TransitionSpec] = []
        while not self.match(TokenType.RBRACE):
            if self.match(TokenType.LPAREN):
                transitions.append(self.parse_transition())
            else:
                message_token = self.current_token()
                message = self.parse_type()
                self.expect(TokenType.FAT_ARROW)
                transitions.append(
                    ir.TransitionSpec(
                        start=start,
                        message=message,
                        end=self.parse_end_states(),
                        location=self.location(message_token),
                    )
                )
            if not self.expect_separator(TokenType.RBRACE, "transition"):
                break

        self.expect(TokenType.RBRACE)
        return transitions
