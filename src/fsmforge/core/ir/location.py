"""Positions of DSL constructs, kept on IR nodes for builder errors."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict

from ..errors import ErrorContext


class SourceLocation(BaseModel):
    """
    The head token of a construct: the `machine` keyword, a state name, the
    message of a transition, the first token of a method declaration.
    """

    file: str
    line: int
    column: int
    width: int = 1

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column}"

    def context(self, machine: str | None = None, construct: str | None = None) -> ErrorContext:
        """Error context pointing at this location inside ``machine``."""
        return ErrorContext(
            file=Path(self.file),
            line=self.line,
            column=self.column,
            width=self.width,
            machine=machine,
            construct=construct,
        )
