"""
Machine, state and transition types for fsmforge IR.

Example DSL:
    machine Traffic {
        Green { count: int } => { Advance => Orange, PassCar => [Green, Orange] };
        Orange {};
        Red {} => { Advance => Green };
    }

    transitions Traffic {
        (Orange, Advance) => Red,
    }
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .location import SourceLocation
from .types import TypeRef

# Summand added to every generated union; never user-declared.
ERROR_STATE = "Error"


class FieldSpec(BaseModel):
    """
    A typed field carried by a state.

    A leading underscore marks the field private; the name is emitted as
    declared and the generated constructor takes it without the underscore.
    """

    name: str
    type: TypeRef

    model_config = ConfigDict(frozen=True)

    @property
    def is_private(self) -> bool:
        return self.name.startswith("_")

    @property
    def param_name(self) -> str:
        """Constructor parameter name."""
        return self.name.lstrip("_") or self.name


class StateSpec(BaseModel):
    """One summand of a machine, with its ordered fields."""

    name: str
    fields: list[FieldSpec] = Field(default_factory=list)
    location: SourceLocation | None = None

    model_config = ConfigDict(frozen=True)

    def get_field(self, name: str) -> FieldSpec | None:
        """Get a field by declared name."""
        for field in self.fields:
            if field.name == name:
                return field
        return None


class TransitionSpec(BaseModel):
    """
    A (start, message) => end rule.

    Attributes:
        start: Name of the state accepting the message
        message: Message type, generic parameters unresolved
        end: Ordered, non-empty list of states the transition may produce
    """

    start: str
    message: TypeRef
    end: list[str]
    location: SourceLocation | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def is_multi_target(self) -> bool:
        """Whether the handler chooses among several end states."""
        return len(self.end) > 1


class MachineSpec(BaseModel):
    """
    A machine declaration: name and ordered states.

    Transitions declared inline on state clauses are kept here; standalone
    `transitions` blocks are linked in by the semantic builder.
    """

    name: str
    states: list[StateSpec] = Field(default_factory=list)
    transitions: list[TransitionSpec] = Field(default_factory=list)
    location: SourceLocation | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def state_names(self) -> list[str]:
        return [state.name for state in self.states]

    def get_state(self, name: str) -> StateSpec | None:
        """Get a state by name."""
        for state in self.states:
            if state.name == name:
                return state
        return None


class TransitionBlockSpec(BaseModel):
    """A standalone `transitions <Machine> { ... }` block."""

    machine: str
    transitions: list[TransitionSpec] = Field(default_factory=list)
    location: SourceLocation | None = None

    model_config = ConfigDict(frozen=True)
