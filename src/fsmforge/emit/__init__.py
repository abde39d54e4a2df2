"""Artifact generation: machine modules, dot graphs and the compile pipeline."""

from .base import (
    ArtifactSink,
    CompositeGenerator,
    DirectorySink,
    EmitOptions,
    Generator,
    GeneratorResult,
    MemorySink,
)
from .graph import GraphRenderer, render_dot
from .pipeline import CompilationResult, compile_file, compile_source, write_artifacts
from .static import StaticEmitter

__all__ = [
    "ArtifactSink",
    "DirectorySink",
    "MemorySink",
    "EmitOptions",
    "Generator",
    "CompositeGenerator",
    "GeneratorResult",
    "StaticEmitter",
    "GraphRenderer",
    "render_dot",
    "CompilationResult",
    "compile_source",
    "compile_file",
    "write_artifacts",
]
