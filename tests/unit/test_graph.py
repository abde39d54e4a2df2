"""Tests for dot graph rendering."""

from fsmforge.emit import EmitOptions, GraphRenderer, render_dot

from ..conftest import HTTP_DSL, build_source


class TestRenderDot:
    def test_traffic_graph(self, traffic_model) -> None:
        dot = render_dot(traffic_model.get_machine("Traffic").transitions)
        assert dot == "\n".join(
            [
                "digraph Traffic {",
                '    Green -> Orange [ label = "Advance" ];',
                '    Orange -> Red [ label = "Advance" ];',
                '    Red -> Green [ label = "Advance" ];',
                '    Green -> Green [ label = "PassCar" ];',
                '    Green -> Orange [ label = "PassCar" ];',
                "}",
            ]
        )

    def test_multi_target_gives_one_edge_per_end(self) -> None:
        dot = render_dot(build_source(HTTP_DSL).get_machine("HttpRequest").transitions)
        assert 'HasHostAndLength -> RequestWithBody [ label = "HeaderEnd" ];' in dot
        assert 'HasHostAndLength -> RequestWithChunks [ label = "HeaderEnd" ];' in dot

    def test_parallel_edges_are_kept(self) -> None:
        model = build_source("machine M { A {} => { Go => A, Go => A } }")
        dot = render_dot(model.machines[0].transitions)
        assert dot.count('A -> A [ label = "Go" ];') == 2

    def test_empty_machine(self) -> None:
        model = build_source("machine M { A {} }")
        assert render_dot(model.machines[0].transitions) == "digraph M {\n}"


class TestGraphRenderer:
    def test_artifact_name(self, traffic_model) -> None:
        result = GraphRenderer(traffic_model.machines[0]).generate()
        assert list(result.artifacts) == ["traffic.dot"]

    def test_disabled_by_options(self, traffic_model) -> None:
        result = GraphRenderer(traffic_model.machines[0], EmitOptions(graph=False)).generate()
        assert result.artifacts == {}

    def test_warns_without_transitions(self) -> None:
        model = build_source("machine M { A {} }")
        result = GraphRenderer(model.machines[0]).generate()
        assert result.warnings == ["Machine M declares no transitions"]
        assert "m.dot" in result.artifacts
