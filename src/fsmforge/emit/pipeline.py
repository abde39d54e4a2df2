"""
Compilation pipeline.

parse -> build semantic tables -> emit artifacts, as a pure function of the
DSL text. Persisting artifacts goes through an ArtifactSink.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from ..core.builder import MachineModel, SemanticModel, build_module
from ..core.dsl_parser_impl import parse_dsl
from ..runtime.dynamic import render_dynamic_source
from .base import (
    ArtifactSink,
    CompositeGenerator,
    EmitOptions,
    Generator,
    GeneratorResult,
)
from .graph import GraphRenderer
from .static import StaticEmitter

logger = logging.getLogger(__name__)


class MachineArtifacts(CompositeGenerator):
    """Module and graph of one static machine."""

    def get_generators(self) -> list[Generator]:
        return [
            StaticEmitter(self.machine, self.options),
            GraphRenderer(self.machine, self.options),
        ]


@dataclass
class CompilationResult:
    """
    Everything produced from one DSL file.

    Attributes:
        file: Source file name
        model: Semantic model (machines with their tables)
        artifacts: Artifact name -> text, in generation order
        warnings: Non-fatal findings
    """

    file: str
    model: SemanticModel
    artifacts: dict[str, str] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)

    @property
    def machines(self) -> list[MachineModel]:
        return self.model.machines

    def artifact_for(self, machine: str, suffix: str = "py") -> str | None:
        return self.artifacts.get(f"{machine.lower()}.{suffix}")


def compile_source(text: str, file: Path, options: EmitOptions | None = None) -> CompilationResult:
    """
    Compile DSL text into generated artifacts.

    Static machines yield `<name>.py` and `<name>.dot`; dynamic machines
    yield `<name>.py` holding the compiled DynamicMachine subclass.

    Raises:
        ParseError: On invalid syntax
        ValidationError: On invalid state references or declarations
        DynamicMachineError: On invalid Python inside a dynamic machine
        EmitError: If two machines map to the same artifact name
    """
    options = options or EmitOptions()
    if options.source is None:
        options = EmitOptions(imports=options.imports, graph=options.graph, source=file.name)

    model = build_module(parse_dsl(text, file))

    combined = GeneratorResult()
    for machine in model.machines:
        combined.merge(MachineArtifacts(machine, options).generate())

    for dynamic in model.dynamic_machines:
        dynamic_result = GeneratorResult()
        dynamic_result.add_artifact(
            f"{dynamic.name.lower()}.py",
            render_dynamic_source(dynamic, options.imports, options.source),
        )
        combined.merge(dynamic_result)

    for warning in combined.warnings:
        logger.info("%s: %s", file, warning)
    logger.debug("Compiled %s into %d artifact(s)", file, len(combined.artifacts))

    return CompilationResult(
        file=str(file),
        model=model,
        artifacts=combined.artifacts,
        warnings=combined.warnings,
    )


def compile_file(path: Path, options: EmitOptions | None = None) -> CompilationResult:
    """Read and compile one DSL file."""
    return compile_source(path.read_text(encoding="utf-8"), path, options)


def write_artifacts(result: CompilationResult, sink: ArtifactSink) -> list[str]:
    """
    Persist every artifact of a compilation.

    Returns:
        Names written, in order
    """
    for name, content in result.artifacts.items():
        sink.write(name, content)
    return list(result.artifacts)
