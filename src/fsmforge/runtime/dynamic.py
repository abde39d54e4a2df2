"""
Dynamic machine interpreter.

A `dynamic` block is rendered into a Python class deriving from
`DynamicMachine`. Each event becomes a method running a `match` over the
current state:

- unit events return True when an arm matched, False otherwise
- valued events return the arm's result, or the declared default

An unmatched event moves the machine into its error state and is traced
like any other event. The trace starts with a `("", initial)` entry.
"""

from __future__ import annotations

import ast
import logging
import textwrap
from collections.abc import Mapping
from copy import deepcopy
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, PydanticUserError, create_model

from ..core import ir
from ..core.errors import DynamicMachineError, EmitError
from .loader import load_generated

logger = logging.getLogger(__name__)


class DynamicMachine:
    """
    Base class of compiled dynamic machines.

    Subclasses provide `_initial_state`, `_error_state` and one method per
    event; they are normally produced by `compile_dynamic_machine`.

    Attributes declared in the DSL are validated in strict mode against
    their declared types and deep-copied, so an instance never shares
    mutable values with its caller.
    """

    initial_source: ClassVar[str] = ""
    attribute_types: ClassVar[dict[str, Any]] = {}
    event_names: ClassVar[tuple[str, ...]] = ()
    _attributes_model: ClassVar[type[BaseModel]]

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        fields: dict[str, Any] = {
            name: (annotation, ...) for name, annotation in cls.attribute_types.items()
        }
        cls._attributes_model = create_model(
            f"{cls.__name__}Attributes",
            __config__=ConfigDict(strict=True, extra="forbid", arbitrary_types_allowed=True),
            **fields,
        )

    def __init__(self, *args: Any, **attributes: Any) -> None:
        self._bind_attributes(args, attributes)
        self.state = self._initial_state()
        self.trace: list[tuple[str, Any]] = [("", deepcopy(self.state))]

    def _initial_state(self) -> Any:
        raise NotImplementedError

    def _error_state(self) -> Any:
        raise NotImplementedError

    def _bind_attributes(self, args: tuple[Any, ...], attributes: dict[str, Any]) -> None:
        names = list(self.attribute_types)
        if len(args) > len(names):
            raise TypeError(
                f"{type(self).__name__} takes {len(names)} attribute(s), got {len(args)}"
            )
        for name, value in zip(names, args):
            if name in attributes:
                raise TypeError(f"{type(self).__name__} got attribute '{name}' twice")
            attributes[name] = value

        # Raises pydantic.ValidationError on missing, unknown or mistyped values
        self._attributes_model.model_validate(attributes)
        for name in names:
            setattr(self, name, deepcopy(attributes[name]))

    # -------------------------------------------------------------------------
    # Transitions (called by generated event methods)
    # -------------------------------------------------------------------------

    def _advance(self, event: str, new_state: Any) -> bool:
        self.state = new_state
        self.trace.append((event, deepcopy(new_state)))
        return True

    def _resolve(self, event: str, outcome: tuple[Any, Any]) -> Any:
        new_state, result = outcome
        self._advance(event, new_state)
        return result

    def _fail(self, event: str) -> bool:
        self.state = self._error_state()
        self.trace.append((event, deepcopy(self.state)))
        logger.debug("%s: event %s did not match, entering error state", type(self).__name__, event)
        return False

    # -------------------------------------------------------------------------
    # Inspection
    # -------------------------------------------------------------------------

    def reset(self, *args: Any, **attributes: Any) -> None:
        """Restore the initial state, truncate the trace and replace attributes."""
        self._bind_attributes(args, attributes)
        self.state = self._initial_state()
        self.trace = [("", deepcopy(self.state))]

    def is_invalid(self) -> bool:
        """Whether the machine is in its error state."""
        return bool(self.state == self._error_state())

    def current_state(self) -> Any:
        """A copy of the current state."""
        return deepcopy(self.state)

    def print_trace(self) -> str:
        """
        Render the trace as `<initial> =( event )=> <state> ...`.

        The chain starts with the initial state as written in the DSL.
        """
        parts = [self.initial_source]
        for event, state in self.trace[1:]:
            parts.append(f" =( {event} )=> {state!r}")
        return "".join(parts)

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return (
            self.state == other.state
            and self.trace == other.trace
            and all(getattr(self, n) == getattr(other, n) for n in self.attribute_types)
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        values = ", ".join(f"{n}={getattr(self, n)!r}" for n in self.attribute_types)
        prefix = f"state={self.state!r}"
        return f"{type(self).__name__}({prefix}{', ' + values if values else ''})"


# =============================================================================
# Source rendering
# =============================================================================


def dedent_block(text: str) -> str:
    """
    Normalise an arm block body.

    The text after the opening brace on its own line is stripped; the
    remaining lines are dedented together.
    """
    first, _, rest = text.partition("\n")
    first = first.strip()
    rest = textwrap.dedent(rest).strip("\n")
    if first and rest:
        return f"{first}\n{rest}"
    return (first or rest).rstrip()


def _check_pattern(pattern: str, machine: str, event: str) -> None:
    try:
        ast.parse(f"match _:\n    case {pattern}:\n        pass\n")
    except SyntaxError as e:
        raise DynamicMachineError(
            f"Invalid pattern '{pattern}' in event '{event}' of {machine}: {e.msg}"
        ) from e


def _check_expression(expr: str, what: str, machine: str, event: str | None = None) -> None:
    try:
        ast.parse(expr, mode="eval")
    except SyntaxError as e:
        where = f"event '{event}' of {machine}" if event else machine
        raise DynamicMachineError(f"Invalid {what} '{expr}' in {where}: {e.msg}") from e


class _StepReturns(ast.NodeTransformer):
    """Route each `return X` of an arm block through the machine's step method."""

    def __init__(self, step: str, event: str) -> None:
        self.step = step
        self.event = event

    def visit_Return(self, node: ast.Return) -> ast.Return:
        call = ast.Call(
            func=ast.Attribute(value=ast.Name("self", ast.Load()), attr=self.step, ctx=ast.Load()),
            args=[ast.Constant(self.event), node.value or ast.Constant(None)],
            keywords=[],
        )
        return ast.copy_location(ast.Return(value=call), node)

    # Returns of nested definitions belong to them
    def visit_FunctionDef(self, node: ast.FunctionDef) -> ast.FunctionDef:
        return node

    def visit_AsyncFunctionDef(self, node: ast.AsyncFunctionDef) -> ast.AsyncFunctionDef:
        return node

    def visit_ClassDef(self, node: ast.ClassDef) -> ast.ClassDef:
        return node


def block_statements(body: str, machine: str, event: str, step: str) -> list[str]:
    """
    Turn an arm block into statements of its `case` body.

    The block runs in the event method's own scope, so it may rebind event
    arguments and pattern captures. A trailing expression statement becomes
    the result, and every `return X` becomes `return self.<step>(event, X)`.
    A block that ends without returning falls through to the no-match path.
    """
    source = dedent_block(body)
    try:
        tree = ast.parse("def _arm():\n" + textwrap.indent(source, "    "))
    except SyntaxError as e:
        raise DynamicMachineError(
            f"Invalid block in event '{event}' of {machine}: {e.msg}"
        ) from e

    function = tree.body[0]
    assert isinstance(function, ast.FunctionDef)
    statements = function.body
    last = statements[-1]
    if isinstance(last, ast.Expr):
        statements[-1] = ast.copy_location(ast.Return(value=last.value), last)

    rewriter = _StepReturns(step, event)
    module = ast.Module(body=[rewriter.visit(s) for s in statements], type_ignores=[])
    return ast.unparse(ast.fix_missing_locations(module)).splitlines()


def _event_method(machine: ir.DynamicMachineSpec, event: ir.EventSpec) -> list[str]:
    params = ["self", *(f"{a.name}: {a.type}" for a in event.args)]
    returns = event.returns if event.is_valued else "bool"
    step = "_resolve" if event.is_valued else "_advance"
    lines = [f"def {event.name}({', '.join(params)}) -> {returns}:", "    match self.state:"]

    for arm in event.arms:
        _check_pattern(arm.pattern, machine.name, event.name)
        lines.append(f"        case {arm.pattern}:")
        if arm.is_block:
            lines.extend(
                "            " + line
                for line in block_statements(arm.body, machine.name, event.name, step)
            )
        else:
            _check_expression(arm.body, "arm expression", machine.name, event.name)
            lines.append(f'            return self.{step}("{event.name}", {arm.body})')

    # No arm matched; an irrefutable last arm leaves this unreachable
    if event.is_valued:
        assert event.default is not None
        _check_expression(event.default, "default value", machine.name, event.name)
        lines.append(f'    self._fail("{event.name}")')
        lines.append(f"    return {event.default}")
    else:
        lines.append(f'    return self._fail("{event.name}")')
    return lines


def render_dynamic_source(
    machine: ir.DynamicMachineSpec,
    imports: list[str] | None = None,
    source: str | None = None,
) -> str:
    """
    Render a dynamic machine as a Python module.

    Raises:
        DynamicMachineError: If a pattern, expression or block is not valid Python
    """
    _check_expression(machine.initial, "initial state", machine.name)
    _check_expression(machine.error, "error state", machine.name)
    for slot in [*machine.attributes, *(a for e in machine.events for a in e.args)]:
        _check_expression(slot.type, f"type of '{slot.name}'", machine.name)

    origin = f" from {source}" if source else ""
    lines = [
        '"""',
        f"{machine.name} dynamic machine.",
        "",
        f"Generated by fsmforge{origin}. Do not edit.",
        '"""',
        "",
        "from __future__ import annotations",
        "",
        "from fsmforge.runtime.dynamic import DynamicMachine",
    ]
    if imports:
        lines.append("")
        lines.extend(imports)

    attribute_types = ", ".join(f'"{a.name}": {a.type}' for a in machine.attributes)
    event_names = "".join(f'"{e.name}", ' for e in machine.events)
    lines.extend(
        [
            "",
            "",
            f"class {machine.name}(DynamicMachine):",
            f'    """Dynamic machine over ``{machine.state_type}``."""',
            "",
            f"    initial_source = {machine.initial!r}",
            f"    attribute_types = {{{attribute_types}}}",
            f"    event_names = ({event_names.rstrip(' ')})",
            "",
            f"    def _initial_state(self) -> {machine.state_type}:",
            f"        return {machine.initial}",
            "",
            f"    def _error_state(self) -> {machine.state_type}:",
            f"        return {machine.error}",
        ]
    )
    for event in machine.events:
        lines.append("")
        lines.extend("    " + line for line in _event_method(machine, event))

    return "\n".join(lines) + "\n"


def compile_dynamic_machine(
    machine: ir.DynamicMachineSpec, namespace: Mapping[str, Any] | None = None
) -> type[DynamicMachine]:
    """
    Compile a dynamic machine into a class.

    Args:
        machine: Parsed dynamic machine
        namespace: Names used by patterns, expressions and types (the state
            type, helper functions, attribute types)

    Returns:
        The compiled DynamicMachine subclass

    Raises:
        DynamicMachineError: If the definition is not valid Python or names
            something missing from ``namespace``
    """
    source = render_dynamic_source(machine)
    module_name = f"fsmforge_dynamic.{machine.name.lower()}"
    try:
        module = load_generated(source, module_name, namespace)
    except EmitError as e:
        cause = e.__cause__
        if isinstance(cause, (NameError, AttributeError, PydanticUserError)):
            raise DynamicMachineError(
                f"Cannot compile dynamic machine {machine.name}: {cause}"
            ) from cause
        raise DynamicMachineError(f"Cannot compile dynamic machine {machine.name}: {e.message}") from e

    cls = getattr(module, machine.name)
    logger.debug("Compiled dynamic machine %s with events %s", machine.name, cls.event_names)
    return cls
