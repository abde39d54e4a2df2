"""
Dynamic machine types for fsmforge IR.

A dynamic machine is interpreted at runtime instead of generating new types.
Patterns, expressions and types are kept as Python source text and compiled
by `fsmforge.runtime.dynamic`.

Example DSL:
    dynamic TrafficLight(State) {
        { initial: State.Green(0), error: State.BlinkingOrange() }

        attributes { max_passing: int }

        event[next] {
            State.Green(_) => State.Orange(),
            State.Orange() => State.Red(),
            State.Red() => State.Green(0)
        }

        event[pass_car(nb: int) -> int | None: None] {
            State.Green(current) => (State.Green(current + nb), nb)
        }
    }
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .location import SourceLocation

# Members of every compiled dynamic machine; attributes and events may not reuse them.
DYNAMIC_RESERVED_MEMBERS = frozenset(
    {
        "state",
        "trace",
        "reset",
        "is_invalid",
        "current_state",
        "print_trace",
        "initial_source",
        "attribute_types",
        "event_names",
    }
)


class AttributeSpec(BaseModel):
    """A named, typed slot: machine attribute or event argument."""

    name: str
    type: str

    model_config = ConfigDict(frozen=True)


class EventArmSpec(BaseModel):
    """
    One `pattern => body` arm of an event.

    Attributes:
        pattern: Python structural pattern matched against the current state
        body: Expression (or statement block when `is_block`) producing the
            new state for unit events, or a `(new_state, result)` pair for
            valued events
        is_block: Body was written as `{ statements }` and must `return`
    """

    pattern: str
    body: str
    is_block: bool = False
    location: SourceLocation | None = None

    model_config = ConfigDict(frozen=True)


class EventSpec(BaseModel):
    """
    A named event.

    Unit events have no `returns`; valued events declare arguments, a return
    type and the default returned when no arm matches.
    """

    name: str
    args: list[AttributeSpec] = Field(default_factory=list)
    returns: str | None = None
    default: str | None = None
    arms: list[EventArmSpec] = Field(default_factory=list)
    location: SourceLocation | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def is_valued(self) -> bool:
        return self.returns is not None


class DynamicMachineSpec(BaseModel):
    """
    A runtime-checked machine definition.

    Attributes:
        name: Class name of the compiled machine
        state_type: Expression naming the state type (documentation only)
        initial: Expression evaluated for the initial state
        error: Expression evaluated for the error state
        attributes: Mutable fields supplied at construction and reset
        events: Ordered events
    """

    name: str
    state_type: str
    initial: str
    error: str
    attributes: list[AttributeSpec] = Field(default_factory=list)
    events: list[EventSpec] = Field(default_factory=list)
    location: SourceLocation | None = None

    model_config = ConfigDict(frozen=True)

    def get_event(self, name: str) -> EventSpec | None:
        for event in self.events:
            if event.name == name:
                return event
        return None
