"""
fsmforge DSL Parser Package.

This package provides a modular parser for the fsmforge DSL.
The parser is built using mixins to separate parsing logic by construct type,
making it easier to maintain and extend.

The main exports are:
- Parser: The complete parser class
- parse_dsl: Convenience function to parse DSL text into a ModuleSpec

Usage:
    from fsmforge.core.dsl_parser_impl import parse_dsl

    module = parse_dsl(text, Path("traffic.fsm"))
"""

import logging
from pathlib import Path

from .. import ir
from ..lexer import Token, TokenType, tokenize
from .base import BaseParser
from .dynamic import DynamicParserMixin
from .machine import MachineParserMixin
from .methods import MethodParserMixin
from .transitions import TransitionParserMixin
from .types import TypeParserMixin

logger = logging.getLogger(__name__)


class Parser(
    BaseParser,
    TypeParserMixin,
    MachineParserMixin,
    TransitionParserMixin,
    MethodParserMixin,
    DynamicParserMixin,
):
    """
    Complete fsmforge DSL Parser.

    This class composes all parser mixins:

    - TypeParserMixin: Type references with generic/lifetime parameters
    - MachineParserMixin: Machine declarations and inline transitions
    - TransitionParserMixin: Standalone transition blocks and end-state lists
    - MethodParserMixin: get/set/fn method declarations with defaults
    - DynamicParserMixin: Runtime-checked dynamic machines
    """

    def parse(self) -> ir.ModuleSpec:
        """
        Parse every top-level block.

        Returns:
            ModuleSpec holding the blocks in declaration order

        Raises:
            ParseError: On the first syntax error
        """
        machines: list[ir.MachineSpec] = []
        transition_blocks: list[ir.TransitionBlockSpec] = []
        method_blocks: list[ir.MethodBlockSpec] = []
        dynamic_machines: list[ir.DynamicMachineSpec] = []

        while not self.match(TokenType.EOF):
            if self.match(TokenType.MACHINE):
                machines.append(self.parse_machine())
            elif self.match(TokenType.TRANSITIONS):
                transition_blocks.append(self.parse_transitions_block())
            elif self.match(TokenType.METHODS):
                method_blocks.append(self.parse_methods_block())
            elif self.match(TokenType.DYNAMIC):
                dynamic_machines.append(self.parse_dynamic_machine())
            else:
                raise self.error(
                    "Expected 'machine', 'transitions', 'methods' or 'dynamic', "
                    f"got {self.describe(self.current_token())}"
                )

            # Optional separator between blocks
            while self.match(TokenType.SEMICOLON):
                self.advance()

        return ir.ModuleSpec(
            file=str(self.file),
            machines=machines,
            transition_blocks=transition_blocks,
            method_blocks=method_blocks,
            dynamic_machines=dynamic_machines,
        )


def parse_tokens(tokens: list[Token], file: Path, text: str = "") -> ir.ModuleSpec:
    """
    Parse an already tokenized DSL source.

    Args:
        tokens: Token list ending with EOF
        file: Source file path (for error reporting)
        text: Source text, required when the tokens contain raw Python regions

    Returns:
        Parsed ModuleSpec
    """
    return Parser(tokens, file, text).parse()


def parse_dsl(text: str, file: Path) -> ir.ModuleSpec:
    """
    Tokenize and parse DSL text.

    Args:
        text: DSL source text
        file: Source file path (for error reporting)

    Returns:
        Parsed ModuleSpec

    Raises:
        ParseError: If the text is not valid DSL
    """
    tokens = tokenize(text, file)
    logger.debug("Tokenized %s: %d tokens", file, len(tokens))
    module = parse_tokens(tokens, file, text)
    logger.debug(
        "Parsed %s: %d machine(s), %d dynamic machine(s)",
        file,
        len(module.machines),
        len(module.dynamic_machines),
    )
    return module


__all__ = ["Parser", "parse_dsl", "parse_tokens"]
