"""Shared pytest fixtures for fsmforge tests."""

from dataclasses import dataclass
from pathlib import Path
from types import ModuleType

import pytest

from fsmforge.core.builder import SemanticModel, build_module
from fsmforge.core.dsl_parser_impl import parse_dsl
from fsmforge.emit import compile_source
from fsmforge.runtime import implement, load_generated

TRAFFIC_DSL = """
# Traffic light: cars pass on green until ten have gone through.
machine Traffic {
    Green { count: int } => {
        Advance => Orange,
        PassCar => [Green, Orange],
    };
    Orange {} => { Advance => Red };
    Red {} => { Advance => Green };
}

methods Traffic {
    Green => get count: int,
    Green => set count: int,
    Green, Orange, Red => default(False) fn can_pass(self) -> bool,
}
"""

HTTP_DSL = """
machine HttpRequest {
    Initial {},
    HasRequestLine { request: RequestLine },
    HasHost { request: RequestLine, host: str },
    HasLength { request: RequestLine, length: int | None },
    HasHostAndLength { request: RequestLine, host: str, length: int | None },
    Request { request: RequestLine, host: str },
    RequestWithBody { request: RequestLine, host: str, remaining: int },
    RequestWithChunks { request: RequestLine, host: str, _chunk: int },
}

transitions HttpRequest {
    (Initial, RequestLine) => HasRequestLine,
    (HasRequestLine, HostHeader) => HasHost,
    (HasRequestLine, LengthHeader) => HasLength,
    (HasHost, LengthHeader) => HasHostAndLength,
    (HasLength, HostHeader) => HasHostAndLength,
    (HasHost, HeaderEnd) => Request,
    (HasHostAndLength, HeaderEnd) => [RequestWithBody, RequestWithChunks],
}

methods HttpRequest {
    HasHost, HasHostAndLength, Request,
        RequestWithBody, RequestWithChunks => get host: str,
    RequestWithChunks => get _chunk: int,
}
"""

DYNAMIC_TRAFFIC_DSL = """
dynamic TrafficLight(State) {
    { initial: State.Green(0), error: State.BlinkingOrange() }

    attributes { max_passing: int }

    event[next] {
        State.Green(_) => State.Orange(),
        State.Orange() => State.Red(),
        State.Red() => State.Green(0)
    }

    event[pass_car(nb: int) -> int | None: None] {
        State.Green(current) => {
            passed = nb if nb + current <= self.max_passing else self.max_passing - current
            if current + passed < self.max_passing:
                return State.Green(current + passed), passed
            (State.Orange(), passed)
        },
        State.Orange() => {
            passed = 1 if nb > 1 else nb
            (State.Red(), passed)
        }
    }
}
"""


# =============================================================================
# Message and state types used by the machines above
# =============================================================================


@dataclass
class Advance:
    pass


@dataclass
class PassCar:
    count: int


@dataclass
class RequestLine:
    pass


@dataclass
class HostHeader:
    host: str


@dataclass
class LengthHeader:
    length: int | None  # None means chunked


@dataclass
class HeaderEnd:
    pass


class State:
    """States of the dynamic traffic light."""

    @dataclass
    class Green:
        count: int

    @dataclass
    class Orange:
        pass

    @dataclass
    class Red:
        pass

    @dataclass
    class BlinkingOrange:
        pass


TRAFFIC_NAMESPACE = {"Advance": Advance, "PassCar": PassCar}
HTTP_NAMESPACE = {
    "RequestLine": RequestLine,
    "HostHeader": HostHeader,
    "LengthHeader": LengthHeader,
    "HeaderEnd": HeaderEnd,
}


def build_source(text: str, file: str = "test.fsm") -> SemanticModel:
    """Helper to parse and build DSL text."""
    return build_module(parse_dsl(text, Path(file)))


@pytest.fixture
def traffic_model() -> SemanticModel:
    return build_source(TRAFFIC_DSL, "traffic.fsm")


@pytest.fixture
def traffic() -> ModuleType:
    """Generated Traffic module with handlers implemented."""
    result = compile_source(TRAFFIC_DSL, Path("traffic.fsm"))
    module = load_generated(result.artifacts["traffic.py"], "fsmforge_tests.traffic", TRAFFIC_NAMESPACE)

    @implement(module.Green)
    class GreenHandlers:
        def on_advance(self, input):
            return module.Orange()

        def on_pass_car(self, input):
            total = self.count + input.count
            if total >= 10:
                return module.Traffic.orange()
            return module.Traffic.green(total)

        def can_pass(self):
            return True

    @implement(module.Orange)
    class OrangeHandlers:
        def on_advance(self, input):
            return module.Red()

        def can_pass(self):
            return False

    @implement(module.Red)
    class RedHandlers:
        def on_advance(self, input):
            return module.Green(0)

        def can_pass(self):
            return False

    return module


@pytest.fixture
def http() -> ModuleType:
    """Generated HttpRequest module with handlers implemented."""
    result = compile_source(HTTP_DSL, Path("http.fsm"))
    module = load_generated(result.artifacts["httprequest.py"], "fsmforge_tests.http", HTTP_NAMESPACE)

    @implement(module.Initial)
    class InitialHandlers:
        def on_request_line(self, input):
            return module.HasRequestLine(input)

    @implement(module.HasRequestLine)
    class HasRequestLineHandlers:
        def on_host_header(self, input):
            return module.HasHost(self.request, input.host)

        def on_length_header(self, input):
            return module.HasLength(self.request, input.length)

    @implement(module.HasHost)
    class HasHostHandlers:
        def on_length_header(self, input):
            return module.HasHostAndLength(self.request, self.host, input.length)

        def on_header_end(self, input):
            return module.Request(self.request, self.host)

    @implement(module.HasLength)
    class HasLengthHandlers:
        def on_host_header(self, input):
            return module.HasHostAndLength(self.request, input.host, self.length)

    @implement(module.HasHostAndLength)
    class HasHostAndLengthHandlers:
        def on_header_end(self, input):
            if self.length is None:
                return module.HttpRequest.request_with_chunks(self.request, self.host, 0)
            return module.HttpRequest.request_with_body(self.request, self.host, self.length)

    return module
