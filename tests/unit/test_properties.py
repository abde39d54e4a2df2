"""
Property-based tests for generated machines.

Uses Hypothesis to drive machines with arbitrary message sequences and to
fuzz the DSL front end.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from fsmforge.core.dsl_parser_impl import parse_dsl
from fsmforge.core.errors import ParseError
from fsmforge.core.lexer import tokenize
from fsmforge.runtime import compile_dynamic_machine

from ..conftest import DYNAMIC_TRAFFIC_DSL, Advance, PassCar, State, build_source

# =============================================================================
# Strategy Definitions
# =============================================================================

messages = st.lists(
    st.one_of(st.builds(Advance), st.builds(PassCar, st.integers(min_value=0, max_value=20))),
    max_size=30,
)

start_states = st.sampled_from(["green", "orange", "red", "error"])

events = st.lists(
    st.one_of(
        st.just(("next", None)),
        st.tuples(st.just("pass_car"), st.integers(min_value=0, max_value=20)),
    ),
    max_size=30,
)

dsl_words = st.sampled_from(
    [
        "machine", "transitions", "methods", "dynamic", "attributes", "event",
        "fn", "default", "get", "set", "initial", "error", "self", "A", "B", "int",
        "{", "}", "[", "]", "(", ")", ",", ";", ":", "=>", "->", "<", ">", "'a", "|", "&", "0",
    ]
)


def start(traffic, name: str):
    if name == "green":
        return traffic.Traffic.green(0)
    return getattr(traffic.Traffic, name)()


# =============================================================================
# Static machines
# =============================================================================


class TestStaticMachineProperties:
    @given(start_name=start_states, sequence=messages)
    @settings(max_examples=100, suppress_health_check=[HealthCheck.function_scoped_fixture])
    def test_dispatch_is_total(self, traffic, start_name: str, sequence: list) -> None:
        """Every message yields a machine; no sequence raises."""
        machine = start(traffic, start_name)
        records = (traffic.Green, traffic.Orange, traffic.Red, traffic.Error)
        for message in sequence:
            machine = machine.dispatch(message)
            assert isinstance(machine, traffic.Traffic)
            assert isinstance(machine.state, records)

    @given(start_name=start_states, sequence=messages)
    @settings(max_examples=100, suppress_health_check=[HealthCheck.function_scoped_fixture])
    def test_error_is_absorbing(self, traffic, start_name: str, sequence: list) -> None:
        machine = start(traffic, start_name)
        seen_error = machine.is_error()
        for message in sequence:
            machine = machine.dispatch(message)
            if seen_error:
                assert machine.is_error()
            seen_error = seen_error or machine.is_error()

    @given(sequence=messages)
    @settings(max_examples=100, suppress_health_check=[HealthCheck.function_scoped_fixture])
    def test_green_never_holds_ten_cars(self, traffic, sequence: list) -> None:
        machine = traffic.Traffic.green(0)
        for message in sequence:
            machine = machine.dispatch(message)
            if isinstance(machine.state, traffic.Green):
                assert machine.get_count() < 10


# =============================================================================
# Dynamic machines
# =============================================================================


@pytest.fixture(scope="module")
def traffic_light():
    machine = build_source(DYNAMIC_TRAFFIC_DSL).dynamic_machines[0]
    return compile_dynamic_machine(machine, {"State": State})


class TestDynamicMachineProperties:
    @given(max_passing=st.integers(min_value=1, max_value=15), sequence=events)
    @settings(max_examples=100)
    def test_trace_and_absorption(self, traffic_light, max_passing: int, sequence: list) -> None:
        light = traffic_light(max_passing)
        invalid = False
        for name, argument in sequence:
            result = light.next() if name == "next" else light.pass_car(argument)
            if invalid:
                assert light.is_invalid()
                assert result in (False, None)
            invalid = invalid or light.is_invalid()

            state = light.current_state()
            if isinstance(state, State.Green):
                assert state.count < max_passing
            if name == "pass_car" and result is not None:
                assert 0 <= result <= argument

        assert len(light.trace) == len(sequence) + 1
        assert light.trace[0] == ("", State.Green(0))


# =============================================================================
# Front end fuzzing
# =============================================================================


class TestFrontEndFuzzing:
    @given(text=st.text(max_size=200))
    @settings(max_examples=200)
    def test_tokenize_never_crashes(self, text: str) -> None:
        """The lexer either tokenizes or raises ParseError."""
        try:
            tokens = tokenize(text, Path("fuzz.fsm"))
        except ParseError:
            return
        assert tokens[-1].type.name == "EOF"

    @given(words=st.lists(dsl_words, max_size=40))
    @settings(max_examples=200)
    def test_parse_raises_only_parse_errors(self, words: list[str]) -> None:
        """Token soup either parses or raises ParseError."""
        try:
            parse_dsl(" ".join(words), Path("fuzz.fsm"))
        except ParseError:
            pass
