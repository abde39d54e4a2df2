"""
Tests for parsing machine, transitions and methods blocks.
"""

from pathlib import Path

import pytest

from fsmforge.core import ir
from fsmforge.core.dsl_parser_impl import parse_dsl
from fsmforge.core.errors import ParseError

from ..conftest import HTTP_DSL, TRAFFIC_DSL


def parse(text: str) -> ir.ModuleSpec:
    return parse_dsl(text, Path("test.fsm"))


class TestMachineParsing:
    """Tests for state clauses and inline transitions."""

    def test_states_and_fields(self) -> None:
        module = parse(TRAFFIC_DSL)
        machine = module.get_machine("Traffic")
        assert machine is not None
        assert machine.state_names == ["Green", "Orange", "Red"]

        green = machine.get_state("Green")
        assert green is not None
        assert [(f.name, f.type.render()) for f in green.fields] == [("count", "int")]

    def test_inline_transitions_start_at_enclosing_state(self) -> None:
        machine = parse(TRAFFIC_DSL).machines[0]
        assert [(t.start, t.message.name, t.end) for t in machine.transitions] == [
            ("Green", "Advance", ["Orange"]),
            ("Green", "PassCar", ["Green", "Orange"]),
            ("Orange", "Advance", ["Red"]),
            ("Red", "Advance", ["Green"]),
        ]

    def test_empty_braces_and_comma_separators(self) -> None:
        module = parse("machine M { A {}, B { x: int, }, }")
        machine = module.machines[0]
        assert machine.state_names == ["A", "B"]
        assert machine.states[0].fields == []

    def test_qualified_inline_transition(self) -> None:
        module = parse("machine M { A {} => { (B, Go) => A }; B {}; }")
        transition = module.machines[0].transitions[0]
        assert transition.start == "B"

    def test_private_field_keeps_underscore(self) -> None:
        machine = parse("machine M { A { _secret: str } }").machines[0]
        field = machine.states[0].fields[0]
        assert field.name == "_secret"
        assert field.is_private
        assert field.param_name == "secret"

    def test_locations_are_recorded(self) -> None:
        machine = parse("\nmachine M {\n    A {}\n}").machines[0]
        assert machine.location == ir.SourceLocation(file="test.fsm", line=2, column=1, width=7)
        assert machine.states[0].location.line == 3


class TestTransitionsParsing:
    def test_standalone_block(self) -> None:
        module = parse(HTTP_DSL)
        block = module.transition_blocks[0]
        assert block.machine == "HttpRequest"
        assert len(block.transitions) == 7
        last = block.transitions[-1]
        assert last.end == ["RequestWithBody", "RequestWithChunks"]
        assert last.is_multi_target

    def test_trailing_comma_in_end_list(self) -> None:
        module = parse("transitions M { (A, Go) => [B, C,], }")
        assert module.transition_blocks[0].transitions[0].end == ["B", "C"]

    def test_generic_message_is_recorded_verbatim(self) -> None:
        module = parse("transitions M { (A, Request<'a, T>) => B }")
        message = module.transition_blocks[0].transitions[0].message
        assert message.name == "Request"
        assert [p.name for p in message.params] == ["'a", "T"]
        assert message.params[0].is_lifetime
        assert str(message) == "Request<'a, T>"
        assert message.render() == "Request[T]"

    def test_nested_generics_close_with_double_angle(self) -> None:
        module = parse("transitions M { (A, Batch<list<T>>) => B }")
        message = module.transition_blocks[0].transitions[0].message
        assert message.render_dsl() == "Batch<list<T>>"

    def test_python_generic_spelling(self) -> None:
        module = parse("transitions M { (A, msgs.Envelope[int]) => B }")
        message = module.transition_blocks[0].transitions[0].message
        assert message.name == "msgs.Envelope"
        assert message.base_name == "Envelope"
        assert message.render() == "msgs.Envelope[int]"

    def test_empty_end_list_is_rejected(self) -> None:
        with pytest.raises(ParseError, match="at least one end state"):
            parse("transitions M { (A, Go) => [] }")

    def test_missing_separator_is_rejected(self) -> None:
        with pytest.raises(ParseError, match="Expected ',' or '}'"):
            parse("transitions M { (A, Go) => B (B, Go) => A }")

    def test_missing_closing_brace_is_rejected(self) -> None:
        with pytest.raises(ParseError):
            parse("transitions M { (A, Go) => B")


class TestMethodsParsing:
    def test_get_set_and_fn(self) -> None:
        methods = parse(TRAFFIC_DSL).method_blocks[0].methods
        assert [(m.kind, m.name) for m in methods] == [
            (ir.MethodKind.GET, "count"),
            (ir.MethodKind.SET, "count"),
            (ir.MethodKind.FN, "can_pass"),
        ]

    def test_fn_signature(self) -> None:
        method = parse(TRAFFIC_DSL).method_blocks[0].methods[2]
        assert method.states == ["Green", "Orange", "Red"]
        assert method.signature is not None
        assert method.signature.receiver == "self"
        assert method.return_type is not None
        assert method.return_type.render() == "bool"

    def test_default_clauses(self) -> None:
        module = parse(
            """
            methods M {
                A => get x: int,
                A => default get y: int,
                A => default(-1) get z: int,
            }
            """
        )
        defaults = [m.default for m in module.method_blocks[0].methods]
        assert [d.kind for d in defaults] == [
            ir.DefaultKind.NONE,
            ir.DefaultKind.DEFAULT,
            ir.DefaultKind.VALUE,
        ]
        assert defaults[2].expr == "-1"

    def test_bracketed_targets_and_receivers(self) -> None:
        module = parse("methods M { [A, B,] => fn scale(&mut self, factor: float, tag) -> float }")
        method = module.method_blocks[0].methods[0]
        assert method.states == ["A", "B"]
        assert method.signature.receiver == "&mut self"
        assert [(a.name, a.type.render() if a.type else None) for a in method.signature.args] == [
            ("factor", "float"),
            ("tag", None),
        ]

    def test_fn_without_receiver(self) -> None:
        method = parse("methods M { A => fn build(n: int) }").method_blocks[0].methods[0]
        assert method.signature.receiver is None
        assert method.signature.returns is None

    def test_unknown_shape_is_rejected(self) -> None:
        with pytest.raises(ParseError, match="Expected `get`, `set` or a `fn` signature"):
            parse("methods M { A => fetch x: int }")


class TestTopLevel:
    def test_unknown_block_keyword(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            parse("enum M { }")
        assert "Expected 'machine', 'transitions', 'methods' or 'dynamic'" in str(exc_info.value)

    def test_error_carries_snippet(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            parse("machine M {\n    A { x int }\n}")
        message = str(exc_info.value)
        assert message.startswith("test.fsm:2:11: Expected")
        assert message.endswith("   2 |     A { x int }\n     |           ^^^")
