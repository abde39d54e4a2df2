"""
Errors raised while compiling state machines.

Errors found in DSL text carry an `ErrorContext`: the position, the machine
and construct being compiled, and (for syntax errors) the offending source
line with the token underlined:

    traffic.fsm:2:11: Expected ',' or '}', got identifier 'int'
       2 |     A { x int }
         |           ^^^
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


class FsmForgeError(Exception):
    """Base exception for all fsmforge errors."""

    def __init__(self, message: str, context: ErrorContext | None = None):
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    @property
    def headline(self) -> str:
        """Position and message on a single line."""
        if self.context:
            return f"{self.context.header()}: {self.message}"
        return self.message

    def _format_message(self) -> str:
        if self.context and self.context.source_line is not None:
            return f"{self.headline}\n{self.context.underline()}"
        return self.headline


class ParseError(FsmForgeError):
    """
    Raised when DSL syntax cannot be parsed.

    Examples:
    - Missing comma or closing brace
    - Empty transition end list
    - Method shape that is not `get`, `set` or `fn`
    """

    pass


class ValidationError(FsmForgeError):
    """
    Raised when a parsed machine fails semantic checks.

    Examples:
    - Transition referencing an undeclared state
    - Duplicate state names
    - A user state named `Error`
    - A transitions/methods block for an unknown machine
    """

    pass


class EmitError(FsmForgeError):
    """
    Raised when an artifact cannot be generated or written.

    Examples:
    - Output directory cannot be created
    - Generated module fails to load
    """

    pass


class DynamicMachineError(FsmForgeError):
    """
    Raised when a dynamic machine definition cannot be compiled.

    Examples:
    - Arm pattern or expression that is not valid Python
    - Attribute type that does not resolve in the supplied namespace
    """

    pass


@dataclass
class ErrorContext:
    """
    Where in the DSL an error was found.

    Attributes:
        file: DSL file
        line: 1-indexed line of the offending token
        column: 1-indexed column of the offending token
        width: Columns to underline
        source_line: Text of ``line``, when the source is at hand
        machine: Machine being compiled
        construct: The state, transition, method or event inside ``machine``,
            e.g. ``"state Green"``
    """

    file: Path
    line: int
    column: int
    width: int = 1
    source_line: str | None = None
    machine: str | None = None
    construct: str | None = None

    def header(self) -> str:
        """`file:line:col (machine M, state S)`"""
        position = f"{self.file}:{self.line}:{self.column}"
        scope = [f"machine {self.machine}"] if self.machine else []
        if self.construct:
            scope.append(self.construct)
        if scope:
            position += f" ({', '.join(scope)})"
        return position

    def underline(self) -> str:
        """The source line under a line-number gutter, with the token marked."""
        if self.source_line is None:
            return ""
        gutter = f"{self.line:4d} | "
        blank = " " * (len(gutter) - 2) + "| "
        marker = " " * (self.column - 1) + "^" * max(self.width, 1)
        return f"{gutter}{self.source_line}\n{blank}{marker}"


def source_line(text: str, line: int) -> str | None:
    """Line ``line`` (1-indexed) of ``text``, or None past the end."""
    lines = text.split("\n")
    if 1 <= line <= len(lines):
        return lines[line - 1]
    return None


def make_parse_error(
    message: str,
    file: Path,
    line: int,
    column: int,
    width: int = 1,
    text: str | None = None,
) -> ParseError:
    """
    Create a ParseError pointing at a token.

    Args:
        message: Error description
        file: Source file path
        line: Line number (1-indexed)
        column: Column number (1-indexed)
        width: Length of the offending token
        text: Full source text, used to show the offending line
    """
    context = ErrorContext(
        file=file,
        line=line,
        column=column,
        width=width,
        source_line=source_line(text, line) if text else None,
    )
    return ParseError(message, context)
