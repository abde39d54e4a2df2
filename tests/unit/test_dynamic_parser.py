"""Tests for parsing `dynamic` machine blocks."""

from pathlib import Path

import pytest

from fsmforge.core.dsl_parser_impl import parse_dsl
from fsmforge.core.errors import ParseError

from ..conftest import DYNAMIC_TRAFFIC_DSL


def parse_dynamic(text: str):
    module = parse_dsl(text, Path("dynamic.fsm"))
    assert len(module.dynamic_machines) == 1
    return module.dynamic_machines[0]


class TestDynamicHeader:
    def test_name_state_type_and_states(self) -> None:
        machine = parse_dynamic(DYNAMIC_TRAFFIC_DSL)
        assert machine.name == "TrafficLight"
        assert machine.state_type == "State"
        assert machine.initial == "State.Green(0)"
        assert machine.error == "State.BlinkingOrange()"

    def test_attributes(self) -> None:
        machine = parse_dynamic(DYNAMIC_TRAFFIC_DSL)
        assert [(a.name, a.type) for a in machine.attributes] == [("max_passing", "int")]

    def test_attributes_are_optional(self) -> None:
        machine = parse_dynamic(
            "dynamic Door(str) { { initial: 'open', error: 'broken', } event[close] { 'open' => 'closed' } }"
        )
        assert machine.attributes == []
        assert machine.initial == "'open'"

    def test_header_requires_comma_after_initial(self) -> None:
        with pytest.raises(ParseError, match="Expected ','"):
            parse_dynamic("dynamic D(int) { { initial: 0 error: 1 } }")

    def test_header_requires_initial_first(self) -> None:
        with pytest.raises(ParseError, match="Expected 'initial:'"):
            parse_dynamic("dynamic D(int) { { error: 1, initial: 0 } }")


class TestEvents:
    def test_unit_event(self) -> None:
        event = parse_dynamic(DYNAMIC_TRAFFIC_DSL).get_event("next")
        assert event is not None
        assert not event.is_valued
        assert [(arm.pattern, arm.body) for arm in event.arms] == [
            ("State.Green(_)", "State.Orange()"),
            ("State.Orange()", "State.Red()"),
            ("State.Red()", "State.Green(0)"),
        ]

    def test_valued_event_signature(self) -> None:
        event = parse_dynamic(DYNAMIC_TRAFFIC_DSL).get_event("pass_car")
        assert event is not None
        assert event.is_valued
        assert [(a.name, a.type) for a in event.args] == [("nb", "int")]
        assert event.returns == "int | None"
        assert event.default == "None"

    def test_block_arm_keeps_source(self) -> None:
        event = parse_dynamic(DYNAMIC_TRAFFIC_DSL).get_event("pass_car")
        arm = event.arms[0]
        assert arm.is_block
        assert arm.pattern == "State.Green(current)"
        assert "return State.Green(current + passed), passed" in arm.body
        assert arm.body.strip().endswith("(State.Orange(), passed)")

    def test_tuple_expression_arm(self) -> None:
        machine = parse_dynamic(
            """
            dynamic Counter(int) {
                { initial: 0, error: -1 }
                event[add(n: int) -> int: 0] {
                    x if x >= 0 => (x + n, x + n),
                }
            }
            """
        )
        arm = machine.events[0].arms[0]
        assert arm.pattern == "x if x >= 0"
        assert arm.body == "(x + n, x + n)"
        assert not arm.is_block

    def test_event_without_arms_is_rejected(self) -> None:
        with pytest.raises(ParseError, match="at least one arm"):
            parse_dynamic("dynamic D(int) { { initial: 0, error: 1 } event[noop] { } }")

    def test_empty_block_arm_is_rejected(self) -> None:
        with pytest.raises(ParseError, match="must not be empty"):
            parse_dynamic("dynamic D(int) { { initial: 0, error: 1 } event[go] { 0 => { } } }")

    def test_unexpected_member_is_rejected(self) -> None:
        with pytest.raises(ParseError, match="Expected 'event'"):
            parse_dynamic("dynamic D(int) { { initial: 0, error: 1 } state[go] { 0 => 1 } }")
