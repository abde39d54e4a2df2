"""
Graph renderer.

Projects a Transition Table onto dot text: one edge per
(start, message, end) triple, multi-target transitions contributing one
edge per target. Parallel edges are kept.
"""

from __future__ import annotations

from ..core.builder import TransitionTable
from .base import Generator, GeneratorResult


def render_dot(table: TransitionTable) -> str:
    """
    Render a Transition Table as a dot digraph.

    Example:
        digraph Traffic {
            Green -> Orange [ label = "Advance" ];
        }
    """
    lines = [f"digraph {table.machine} {{"]
    for start, message, end in table.edges():
        lines.append(f'    {start} -> {end} [ label = "{message}" ];')
    lines.append("}")
    return "\n".join(lines)


class GraphRenderer(Generator):
    """Generate `<machine>.dot`."""

    def generate(self) -> GeneratorResult:
        result = GeneratorResult()
        if not self.options.graph:
            return result

        if not self.machine.transitions.entries:
            result.add_warning(f"Machine {self.machine.name} declares no transitions")
        result.add_artifact(self.artifact_name("dot"), render_dot(self.machine.transitions))
        return result
