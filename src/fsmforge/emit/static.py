"""
Static emitter.

Generates one Python module per machine:

- one dataclass record per state, plus the reserved `Error` record
- `<Machine>Messages`, the union of every message type
- the `<Machine>` dataclass wrapping the current record in `state`
- constructors, `on_<message>` dispatch methods, `dispatch` and method wrappers

Handlers and `fn` methods are stubs on the records; user code supplies
them with `fsmforge.runtime.loader.implement`.
"""

from __future__ import annotations

import logging

from ..core import ir
from ..core.builder import MessageEntry, TransitionArm, wrapper_name
from ..core.strings import to_snake_case
from .base import Generator, GeneratorResult

logger = logging.getLogger(__name__)

INDENT = "    "


def _indent(lines: list[str], level: int = 1) -> list[str]:
    prefix = INDENT * level
    return [f"{prefix}{line}" if line else "" for line in lines]


def _render_type(type_ref: ir.TypeRef | None) -> str:
    return type_ref.render() if type_ref is not None else "None"


def _render_args(args: list[ir.ArgSpec]) -> list[str]:
    return [f"{a.name}: {a.type.render()}" if a.type is not None else a.name for a in args]


def default_expression(method: ir.MethodSpec) -> str:
    """
    Expression returned by a wrapper when the current state is not targeted.

    Bare `default` calls the return type (`int()`, `list[str]()`); optional
    unions default to None and other unions to their first member.
    """
    kind = method.default.kind
    if kind == ir.DefaultKind.VALUE and method.default.expr is not None:
        return method.default.expr
    returns = method.return_type
    if kind == ir.DefaultKind.NONE or returns is None:
        return "None"
    if returns.kind == ir.TypeKind.UNION:
        members = [p for p in returns.params if p.render() != "None"]
        if len(members) < len(returns.params) or not members:
            return "None"
        return f"{members[0].render()}()"
    if returns.render() == "None":
        return "None"
    return f"{returns.render()}()"


class StaticEmitter(Generator):
    """
    Generate `<machine>.py`.

    Creates a module with:
    - State records with field accessors and handler stubs
    - The machine wrapper with constructors and total dispatch methods
    - Method wrappers honouring declared defaults
    """

    def generate(self) -> GeneratorResult:
        """Generate the machine module."""
        result = GeneratorResult()

        for entry in self.machine.transitions.messages:
            seen: set[str] = set()
            for arm in entry.arms:
                if arm.start in seen:
                    result.add_warning(
                        f"{self.machine.name}: transition ({arm.start}, {entry.key.name}) "
                        "declared more than once; the first declaration wins"
                    )
                seen.add(arm.start)

        result.add_artifact(self.artifact_name("py"), self.build_module())
        logger.debug("Emitted module for machine %s", self.machine.name)
        return result

    # -------------------------------------------------------------------------
    # Module layout
    # -------------------------------------------------------------------------

    def build_module(self) -> str:
        """Build complete module content."""
        lines = self._header()

        type_vars = self._type_vars()
        if type_vars:
            lines.extend(f'{name} = TypeVar("{name}")' for name in type_vars)
            lines.extend(["", ""])

        for state in self.machine.states:
            lines.extend(self._state_record(state))
            lines.extend(["", ""])

        lines.extend(self._error_record())
        lines.extend(["", ""])

        lines.extend(self._messages_alias())
        lines.extend(["", ""])

        lines.extend(self._machine_class())
        return "\n".join(lines) + "\n"

    def _header(self) -> list[str]:
        name = self.machine.name
        origin = f" from {self.options.source}" if self.options.source else ""

        typing_names = {"Any", "Optional", "Union"}
        if self._type_vars():
            typing_names.add("TypeVar")
        if not self.machine.transitions.entries:
            typing_names.add("Never")

        lines = [
            '"""',
            f"{name} state machine.",
            "",
            f"Generated by fsmforge{origin}. Do not edit.",
            '"""',
            "",
            "from __future__ import annotations",
            "",
            "from dataclasses import dataclass",
            f"from typing import {', '.join(sorted(typing_names))}",
        ]
        if self.options.imports:
            lines.append("")
            lines.extend(self.options.imports)
        lines.extend(["", ""])
        return lines

    def _type_vars(self) -> list[str]:
        names: list[str] = []
        for entry in self.machine.transitions.messages:
            for name in entry.type_vars:
                if name not in names:
                    names.append(name)
        return names

    def _messages_alias(self) -> list[str]:
        alias = f"{self.machine.name}Messages"
        entries = self.machine.transitions.messages
        if not entries:
            return [f"{alias} = Never"]
        members = ", ".join(f'"{entry.message.render()}"' for entry in entries)
        return [f"{alias} = Union[{members}]"]

    # -------------------------------------------------------------------------
    # State records
    # -------------------------------------------------------------------------

    def _state_record(self, state: ir.StateSpec) -> list[str]:
        lines = [
            "@dataclass",
            f"class {state.name}:",
            f'    """State ``{state.name}`` of ``{self.machine.name}``."""',
        ]

        body: list[str] = []
        if state.fields:
            body.append("")
            body.extend(f"{f.name}: {f.type.render()}" for f in state.fields)

        for method in self.machine.methods.for_state(state.name):
            body.append("")
            body.extend(self._record_method(state, method))

        for entry, arm in self._handled_messages(state.name):
            body.append("")
            body.extend(self._handler_stub(state, entry, arm))

        lines.extend(_indent(body))
        return lines

    def _record_method(self, state: ir.StateSpec, method: ir.MethodSpec) -> list[str]:
        if method.kind == ir.MethodKind.GET:
            return [
                f"def {wrapper_name(method)}(self) -> {_render_type(method.type)}:",
                f"    return self.{method.name}",
            ]

        if method.kind == ir.MethodKind.SET:
            return [
                f"def {wrapper_name(method)}(self, value: {_render_type(method.type)}) -> "
                f"{_render_type(method.type)}:",
                f"    self.{method.name} = value",
                f"    return self.{method.name}",
            ]

        signature = method.signature
        assert signature is not None
        params = _render_args(signature.args)
        lines: list[str] = []
        if signature.receiver is None:
            lines.append("@staticmethod")
        else:
            params.insert(0, "self")
        lines.extend(
            [
                f"def {signature.name}({', '.join(params)}) -> {_render_type(signature.returns)}:",
                f'    raise NotImplementedError("{state.name}.{signature.name}")',
            ]
        )
        return lines

    def _handled_messages(self, state: str) -> list[tuple[MessageEntry, TransitionArm]]:
        """First arm of each message whose start is ``state``."""
        handled = []
        for entry in self.machine.transitions.messages:
            for arm in entry.arms:
                if arm.start == state:
                    handled.append((entry, arm))
                    break
        return handled

    def _handler_stub(
        self, state: ir.StateSpec, entry: MessageEntry, arm: TransitionArm
    ) -> list[str]:
        if arm.is_multi_target:
            returns = self.machine.name
            doc = f"Handle ``{entry.key.name}``; return ``{returns}`` in one of: {', '.join(arm.end)}."
        else:
            returns = arm.end[0]
            doc = f"Handle ``{entry.key.name}``; the machine moves to ``{returns}``."
        return [
            f"def {entry.handler_name}(self, input: {entry.message.render()}) -> {returns}:",
            f'    """{doc}"""',
            f'    raise NotImplementedError("{state.name}.{entry.handler_name}")',
        ]

    def _error_record(self) -> list[str]:
        return [
            "@dataclass",
            f"class {ir.ERROR_STATE}:",
            '    """Absorbing state entered by any undeclared (state, message) pair."""',
        ]

    # -------------------------------------------------------------------------
    # Machine wrapper
    # -------------------------------------------------------------------------

    def _machine_class(self) -> list[str]:
        name = self.machine.name
        summands = [*(s.name for s in self.machine.states), ir.ERROR_STATE]

        lines = [
            "@dataclass",
            f"class {name}:",
            '    """',
            f"    {name} state machine.",
            "",
            f"    ``state`` holds one of: {', '.join(summands)}.",
            '    """',
            "",
            f"    state: Union[{', '.join(summands)}]",
        ]

        body: list[str] = []
        for state in self.machine.states:
            body.append("")
            body.extend(self._constructor(state))

        body.extend(
            [
                "",
                "@staticmethod",
                f"def error() -> {name}:",
                f"    return {name}({ir.ERROR_STATE}())",
                "",
                "def is_error(self) -> bool:",
                f"    return isinstance(self.state, {ir.ERROR_STATE})",
            ]
        )

        for entry in self.machine.transitions.messages:
            body.append("")
            body.extend(self._dispatch_method(entry))

        body.append("")
        body.extend(self._dispatch_router())

        for method in self.machine.methods.methods:
            body.append("")
            body.extend(self._method_wrapper(method))

        lines.extend(_indent(body))
        return lines

    def _constructor(self, state: ir.StateSpec) -> list[str]:
        params = ", ".join(f"{f.param_name}: {f.type.render()}" for f in state.fields)
        values = ", ".join(f.param_name for f in state.fields)
        return [
            "@staticmethod",
            f"def {to_snake_case(state.name)}({params}) -> {self.machine.name}:",
            f"    return {self.machine.name}({state.name}({values}))",
        ]

    def _dispatch_method(self, entry: MessageEntry) -> list[str]:
        machine = self.machine.name
        lines = [f"def {entry.handler_name}(self, input: {entry.message.render()}) -> {machine}:"]

        if entry.generics:
            params = ", ".join(g.name for g in entry.generics)
            lines.append(f'    """Dispatch ``{entry.message.render_dsl()}``. Generic parameters: {params}."""')

        lines.append("    match self.state:")
        emitted: set[str] = set()
        for arm in entry.arms:
            if arm.start in emitted:
                continue
            emitted.add(arm.start)
            lines.append(f"        case {arm.start}() as _current:")
            if arm.is_multi_target:
                lines.append(
                    f"            # {', '.join(arm.end)}: the handler picks the end state; "
                    "membership is not checked"
                )
                lines.append(f"            return _current.{entry.handler_name}(input)")
            else:
                lines.append(f"            return {machine}(_current.{entry.handler_name}(input))")
        lines.extend(
            [
                "        case _:",
                f"            return {machine}.error()",
            ]
        )
        return lines

    def _dispatch_router(self) -> list[str]:
        machine = self.machine.name
        lines = [
            f"def dispatch(self, message: {machine}Messages) -> {machine}:",
            '    """Route ``message`` to its ``on_*`` method; unknown messages lead to Error."""',
        ]
        for entry in self.machine.transitions.messages:
            lines.extend(
                [
                    f"    if isinstance(message, {entry.type_name}):",
                    f"        return self.{entry.handler_name}(message)",
                ]
            )
        lines.append(f"    return {machine}.error()")
        return lines

    def _method_wrapper(self, method: ir.MethodSpec) -> list[str]:
        name = wrapper_name(method)
        returns = _render_type(method.return_type)
        if not method.default.is_default and returns != "None":
            returns = f"Optional[{returns}]"

        if method.kind == ir.MethodKind.GET:
            params, call_args = ["self"], []
        elif method.kind == ir.MethodKind.SET:
            params, call_args = ["self", f"value: {_render_type(method.type)}"], ["value"]
        else:
            assert method.signature is not None
            params = ["self", *_render_args(method.signature.args)]
            call_args = [a.name for a in method.signature.args]

        # The record binding must not shadow an argument
        binding = "_current"
        while binding in call_args:
            binding = f"_{binding}"

        targets = " | ".join(f"{state}()" for state in method.states)
        return [
            f"def {name}({', '.join(params)}) -> {returns}:",
            "    match self.state:",
            f"        case {targets} as {binding}:",
            f"            return {binding}.{name}({', '.join(call_args)})",
            "        case _:",
            f"            return {default_expression(method)}",
        ]
