"""
Semantic builder for fsmforge.

Turns a parsed ModuleSpec into the tables the emitters consume:

1. Machine linking (standalone transition and method blocks attach to
   their machine by name)
2. State validation (duplicates, the reserved `Error` name)
3. Transition Table: transitions grouped by message key in insertion order
4. Generic parameter ordering per message (lifetimes first)
5. Method Table: declarations grouped by target state
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from . import ir
from .errors import ValidationError
from .strings import to_snake_case

logger = logging.getLogger(__name__)

# Bare names treated as type variables: T, U, K1, TKey, TValue.
_TYPE_VAR_NAME = re.compile(r"^(?:[A-Z][0-9]*|T[A-Z][A-Za-z0-9]*)$")

# Members every generated machine class defines.
STATIC_RESERVED_MEMBERS = ("state", "error", "is_error", "dispatch")


@dataclass(frozen=True)
class MessageKey:
    """Identity of a message in the Transition Table: base name plus arity."""

    name: str
    arity: int

    def __str__(self) -> str:
        if self.arity:
            return f"{self.name}/{self.arity}"
        return self.name


@dataclass
class TransitionArm:
    """One (start, end-list) pair of a Transition Table entry."""

    start: str
    end: list[str]
    message: ir.TypeRef
    location: ir.SourceLocation | None = None

    @property
    def is_multi_target(self) -> bool:
        return len(self.end) > 1


@dataclass
class MessageEntry:
    """
    All arms reacting to one message.

    Attributes:
        key: Message identity
        message: Type as first written; used for annotations
        arms: Arms in declaration order
        generics: Generic parameters gathered from every occurrence,
            deduplicated, lifetimes first
    """

    key: MessageKey
    message: ir.TypeRef
    arms: list[TransitionArm] = field(default_factory=list)
    generics: list[ir.TypeRef] = field(default_factory=list)

    @property
    def handler_name(self) -> str:
        """Name of the dispatch method and of the per-state handler."""
        return f"on_{to_snake_case(self.key.name)}"

    @property
    def type_name(self) -> str:
        """Runtime class name used for `isinstance` routing."""
        return self.message.name

    @property
    def lifetimes(self) -> list[str]:
        return [g.name for g in self.generics if g.is_lifetime]

    @property
    def type_vars(self) -> list[str]:
        return [g.name for g in self.generics if not g.is_lifetime]

    def add_generics(self, message: ir.TypeRef) -> None:
        """Merge the parameters of one occurrence into the ordered set."""
        seen = {g.render_dsl() for g in self.generics}
        for param in collect_generic_params(message):
            if param.render_dsl() not in seen:
                seen.add(param.render_dsl())
                self.generics.append(param)
        self.generics = order_generic_params(self.generics)


@dataclass
class TransitionTable:
    """
    Transitions of one machine grouped by message.

    Entries keep insertion order; so do the arms inside each entry.
    """

    machine: str
    entries: dict[MessageKey, MessageEntry] = field(default_factory=dict)

    def add(self, transition: ir.TransitionSpec) -> MessageEntry:
        """Add a transition, creating the message entry on first sight."""
        key = MessageKey(transition.message.base_name, transition.message.arity)
        entry = self.entries.get(key)
        if entry is None:
            entry = MessageEntry(key=key, message=transition.message)
            self.entries[key] = entry

        entry.arms.append(
            TransitionArm(
                start=transition.start,
                end=list(transition.end),
                message=transition.message,
                location=transition.location,
            )
        )
        entry.add_generics(transition.message)
        return entry

    @property
    def messages(self) -> list[MessageEntry]:
        """Entries in insertion order."""
        return list(self.entries.values())

    def get(self, name: str) -> MessageEntry | None:
        """Find an entry by message base name."""
        for entry in self.entries.values():
            if entry.key.name == name:
                return entry
        return None

    def edges(self) -> list[tuple[str, str, str]]:
        """
        Flatten to (start, message, end) triples.

        One triple per end state; repeated declarations repeat their edges.
        """
        triples: list[tuple[str, str, str]] = []
        for entry in self.entries.values():
            for arm in entry.arms:
                for end in arm.end:
                    triples.append((arm.start, entry.key.name, end))
        return triples


@dataclass
class MethodTable:
    """
    Method declarations of one machine.

    Attributes:
        by_state: state name -> declarations targeting it, in declaration order
        methods: declarations in declaration order (one wrapper each)
    """

    by_state: dict[str, list[ir.MethodSpec]] = field(default_factory=dict)
    methods: list[ir.MethodSpec] = field(default_factory=list)

    def add(self, method: ir.MethodSpec) -> None:
        self.methods.append(method)
        for state in method.states:
            self.by_state.setdefault(state, []).append(method)

    def for_state(self, state: str) -> list[ir.MethodSpec]:
        return self.by_state.get(state, [])


@dataclass
class MachineModel:
    """A machine together with its semantic tables."""

    spec: ir.MachineSpec
    transitions: TransitionTable
    methods: MethodTable

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def states(self) -> list[ir.StateSpec]:
        return self.spec.states


@dataclass
class SemanticModel:
    """Build result for one DSL file."""

    file: str
    machines: list[MachineModel] = field(default_factory=list)
    dynamic_machines: list[ir.DynamicMachineSpec] = field(default_factory=list)

    def get_machine(self, name: str) -> MachineModel | None:
        for machine in self.machines:
            if machine.name == name:
                return machine
        return None


# =============================================================================
# Generic parameters
# =============================================================================


def collect_generic_params(type_ref: ir.TypeRef) -> list[ir.TypeRef]:
    """
    Collect lifetimes and type variables appearing inside a type's parameters.

    The outer name itself is never a parameter; nested parameters are
    searched recursively (`Msg<'a, list[T]>` yields `'a` and `T`).
    """
    found: list[ir.TypeRef] = []

    def visit(node: ir.TypeRef) -> None:
        if node.is_lifetime:
            found.append(node)
            return
        if node.kind == ir.TypeKind.NAME and not node.params and _TYPE_VAR_NAME.match(node.name):
            found.append(node)
            return
        for child in node.params:
            visit(child)

    for param in type_ref.params:
        visit(param)
    return found


def order_generic_params(params: list[ir.TypeRef]) -> list[ir.TypeRef]:
    """Stable order: lifetimes first, then type parameters."""
    return sorted(params, key=lambda p: 0 if p.is_lifetime else 1)


# =============================================================================
# Validation helpers
# =============================================================================


def _error(
    message: str,
    location: ir.SourceLocation | None,
    machine: str | None = None,
    construct: str | None = None,
) -> ValidationError:
    if location is None:
        return ValidationError(message)
    return ValidationError(message, location.context(machine, construct))


def _raise_collected(errors: list[ValidationError]) -> None:
    if not errors:
        return
    if len(errors) == 1:
        raise errors[0]
    details = "\n".join(f"  - {e.headline}" for e in errors)
    raise ValidationError(f"{len(errors)} validation errors:\n{details}")


def _validate_states(machine: ir.MachineSpec) -> list[ValidationError]:
    errors: list[ValidationError] = []
    seen: set[str] = set()
    for state in machine.states:
        if state.name == ir.ERROR_STATE:
            errors.append(
                _error(
                    f"State name '{ir.ERROR_STATE}' is reserved for the implicit error state",
                    state.location,
                    machine.name,
                    f"state {state.name}",
                )
            )
        elif state.name in seen:
            errors.append(
                _error(
                    f"Duplicate state '{state.name}'",
                    state.location,
                    machine.name,
                    f"state {state.name}",
                )
            )
        seen.add(state.name)

        field_names: set[str] = set()
        for state_field in state.fields:
            if state_field.param_name in field_names:
                errors.append(
                    _error(
                        f"Duplicate field '{state_field.name}' in state '{state.name}'",
                        state.location,
                        machine.name,
                        f"state {state.name}",
                    )
                )
            field_names.add(state_field.param_name)
    return errors


def _validate_transition(
    machine: ir.MachineSpec, transition: ir.TransitionSpec
) -> list[ValidationError]:
    errors: list[ValidationError] = []
    declared = set(machine.state_names)
    for state in [transition.start, *transition.end]:
        if state == ir.ERROR_STATE:
            errors.append(
                _error(
                    f"State '{ir.ERROR_STATE}' is reserved and cannot appear in transitions",
                    transition.location,
                    machine.name,
                    f"state {transition.start}",
                )
            )
        elif state not in declared:
            errors.append(
                _error(
                    f"Unknown state '{state}' in transition "
                    f"({transition.start}, {transition.message}) => {transition.end}",
                    transition.location,
                    machine.name,
                    f"state {transition.start}",
                )
            )
    return errors


def _validate_method(machine: ir.MachineSpec, method: ir.MethodSpec) -> list[ValidationError]:
    errors: list[ValidationError] = []
    for state_name in method.states:
        state = machine.get_state(state_name)
        if state is None:
            errors.append(
                _error(
                    f"Unknown state '{state_name}' in method '{method.name}'",
                    method.location,
                    machine.name,
                    f"method {method.name}",
                )
            )
            continue
        if method.kind != ir.MethodKind.FN and state.get_field(method.name) is None:
            errors.append(
                _error(
                    f"State '{state_name}' has no field '{method.name}'",
                    method.location,
                    machine.name,
                    f"method {method.name}",
                )
            )
    return errors


def wrapper_name(method: ir.MethodSpec) -> str:
    """Name of the machine-level wrapper for a method declaration."""
    if method.kind == ir.MethodKind.FN:
        return method.name
    return f"{method.kind.value}_{method.name.lstrip('_')}"


def _validate_members(
    machine: ir.MachineSpec, table: TransitionTable, methods: MethodTable
) -> list[ValidationError]:
    """Generated machine members (constructors, dispatchers, wrappers) must not clash."""
    errors: list[ValidationError] = []
    members: dict[str, str] = {name: "built-in member" for name in STATIC_RESERVED_MEMBERS}

    def claim(name: str, owner: str, location: ir.SourceLocation | None) -> None:
        previous = members.setdefault(name, owner)
        if previous != owner:
            errors.append(
                _error(
                    f"Generated member '{name}' of {owner} clashes with {previous}",
                    location,
                    machine.name,
                )
            )

    for state in machine.states:
        if state.name == machine.name:
            errors.append(
                _error(
                    f"State '{state.name}' has the same name as its machine",
                    state.location,
                    machine.name,
                    f"state {state.name}",
                )
            )
        claim(to_snake_case(state.name), f"constructor of state '{state.name}'", state.location)
    for entry in table.messages:
        claim(entry.handler_name, f"message '{entry.key}'", entry.arms[0].location)
    for method in methods.methods:
        claim(wrapper_name(method), f"method '{wrapper_name(method)}'", method.location)
    return errors


def _validate_dynamic(machine: ir.DynamicMachineSpec) -> list[ValidationError]:
    errors: list[ValidationError] = []
    names: set[str] = set()
    for attribute in machine.attributes:
        if attribute.name.startswith("_") or attribute.name in ir.DYNAMIC_RESERVED_MEMBERS:
            errors.append(
                _error(
                    f"Attribute name '{attribute.name}' is reserved",
                    machine.location,
                    machine.name,
                    "attributes",
                )
            )
        elif attribute.name in names:
            errors.append(
                _error(
                    f"Duplicate attribute '{attribute.name}'",
                    machine.location,
                    machine.name,
                    "attributes",
                )
            )
        names.add(attribute.name)

    for event in machine.events:
        if event.name.startswith("_") or event.name in ir.DYNAMIC_RESERVED_MEMBERS:
            errors.append(
                _error(
                    f"Event name '{event.name}' is reserved",
                    event.location,
                    machine.name,
                    f"event {event.name}",
                )
            )
        elif event.name in names:
            errors.append(
                _error(
                    f"Event '{event.name}' clashes with an attribute or event of the same name",
                    event.location,
                    machine.name,
                    f"event {event.name}",
                )
            )
        names.add(event.name)
    return errors


# =============================================================================
# Building
# =============================================================================


def build_machine(
    machine: ir.MachineSpec,
    transition_blocks: list[ir.TransitionBlockSpec] | None = None,
    method_blocks: list[ir.MethodBlockSpec] | None = None,
) -> MachineModel:
    """
    Build the Transition and Method Tables of one machine.

    Inline transitions come first, then those of each transitions block in
    the order given.

    Raises:
        ValidationError: If any state reference or declaration is invalid
    """
    errors = _validate_states(machine)

    transitions = [
        *machine.transitions,
        *(t for block in transition_blocks or [] for t in block.transitions),
    ]
    table = TransitionTable(machine=machine.name)
    for transition in transitions:
        errors.extend(_validate_transition(machine, transition))
        table.add(transition)

    method_table = MethodTable(by_state={state.name: [] for state in machine.states})
    wrappers: set[str] = set()
    for block in method_blocks or []:
        for method in block.methods:
            errors.extend(_validate_method(machine, method))
            name = wrapper_name(method)
            if name in wrappers:
                errors.append(
                    _error(
                        f"Method '{name}' declared more than once",
                        method.location,
                        machine.name,
                        f"method {method.name}",
                    )
                )
            wrappers.add(name)
            method_table.add(method)

    errors.extend(_validate_members(machine, table, method_table))
    _raise_collected(errors)

    logger.debug(
        "Built machine %s: %d state(s), %d message(s), %d method(s)",
        machine.name,
        len(machine.states),
        len(table.entries),
        len(method_table.methods),
    )
    return MachineModel(spec=machine, transitions=table, methods=method_table)


def build_module(module: ir.ModuleSpec) -> SemanticModel:
    """
    Build every machine of a parsed file.

    Performs:
    1. Duplicate machine detection (static and dynamic share one namespace)
    2. Linking of transitions/methods blocks to their machine
    3. Per-machine table building and validation

    Raises:
        ValidationError: If a block names an unknown machine or a machine is invalid
    """
    errors: list[ValidationError] = []

    names: set[str] = set()
    for machine in [*module.machines, *module.dynamic_machines]:
        if machine.name in names:
            errors.append(_error(f"Duplicate machine '{machine.name}'", machine.location))
        names.add(machine.name)

    for dynamic in module.dynamic_machines:
        errors.extend(_validate_dynamic(dynamic))

    static_names = {m.name for m in module.machines}
    for block in [*module.transition_blocks, *module.method_blocks]:
        if block.machine not in static_names:
            kind = "transitions" if isinstance(block, ir.TransitionBlockSpec) else "methods"
            errors.append(
                _error(f"Unknown machine '{block.machine}' in {kind} block", block.location)
            )

    _raise_collected(errors)

    model = SemanticModel(file=module.file, dynamic_machines=list(module.dynamic_machines))
    for machine in module.machines:
        model.machines.append(
            build_machine(
                machine,
                [b for b in module.transition_blocks if b.machine == machine.name],
                [b for b in module.method_blocks if b.machine == machine.name],
            )
        )
    return model
