"""
Base generator classes and artifact sinks.

Generators are responsible for creating specific artifacts:
- StaticEmitter: the machine module (`<machine>.py`)
- GraphRenderer: the transition graph (`<machine>.dot`)

Generators are pure: they return artifact text in a GeneratorResult.
Persisting artifacts is the job of an ArtifactSink, so the whole
DSL -> text transform can be tested without touching the filesystem.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, runtime_checkable

from ..core.builder import MachineModel
from ..core.errors import EmitError

logger = logging.getLogger(__name__)


@dataclass
class EmitOptions:
    """
    Options shared by all generators.

    Attributes:
        imports: Lines placed after the standard imports of generated
            modules, typically `from pkg.messages import Advance, PassCar`
        graph: Whether the graph artifact is produced
        source: Name of the DSL file, quoted in generated headers
    """

    imports: list[str] = field(default_factory=list)
    graph: bool = True
    source: str | None = None


@dataclass
class GeneratorResult:
    """
    Result from a generator execution.

    Attributes:
        artifacts: Artifact name -> generated text, in creation order
        warnings: Any warnings to display to user
    """

    artifacts: dict[str, str] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)

    def add_artifact(self, name: str, content: str) -> None:
        """Record a generated artifact; names must be unique."""
        if name in self.artifacts:
            raise EmitError(f"Artifact '{name}' generated twice")
        self.artifacts[name] = content

    def add_warning(self, warning: str) -> None:
        """Record a warning."""
        self.warnings.append(warning)

    def merge(self, other: GeneratorResult) -> None:
        """Merge another result into this one."""
        for name, content in other.artifacts.items():
            self.add_artifact(name, content)
        self.warnings.extend(other.warnings)


class Generator(ABC):
    """
    Base class for all generators.

    A generator creates artifacts for one machine.

    Example:
        class SummaryGenerator(Generator):
            def generate(self) -> GeneratorResult:
                result = GeneratorResult()
                lines = [f"{s.name}" for s in self.machine.states]
                result.add_artifact(self.artifact_name("txt"), "\\n".join(lines))
                return result
    """

    def __init__(self, machine: MachineModel, options: EmitOptions | None = None):
        """
        Initialize generator.

        Args:
            machine: Built machine with its Transition and Method Tables
            options: Shared emission options
        """
        self.machine = machine
        self.options = options or EmitOptions()

    @abstractmethod
    def generate(self) -> GeneratorResult:
        """
        Generate artifacts.

        Returns:
            GeneratorResult with the produced artifacts
        """
        pass

    def artifact_name(self, suffix: str) -> str:
        """`<lowercased machine name>.<suffix>`"""
        return f"{self.machine.name.lower()}.{suffix}"


class CompositeGenerator(Generator):
    """
    Generator that runs multiple sub-generators.

    Example:
        class MachineArtifacts(CompositeGenerator):
            def get_generators(self) -> list[Generator]:
                return [
                    StaticEmitter(self.machine, self.options),
                    GraphRenderer(self.machine, self.options),
                ]
    """

    @abstractmethod
    def get_generators(self) -> list[Generator]:
        """
        Get the list of sub-generators to run.

        Returns:
            List of Generator instances
        """
        pass

    def generate(self) -> GeneratorResult:
        """
        Run all sub-generators and merge results.

        Returns:
            Combined GeneratorResult from all sub-generators
        """
        combined = GeneratorResult()

        for generator in self.get_generators():
            combined.merge(generator.generate())

        return combined


# =============================================================================
# Artifact sinks
# =============================================================================


@runtime_checkable
class ArtifactSink(Protocol):
    """Write target for generated artifacts."""

    def write(self, name: str, content: str) -> None: ...


class DirectorySink:
    """Writes artifacts as files below a root directory."""

    def __init__(self, root: Path):
        self.root = root
        self.written: list[Path] = []

    def write(self, name: str, content: str) -> None:
        path = self.root / name
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise EmitError(f"Cannot write {path}: {e}") from e
        self.written.append(path)
        logger.info("Wrote %s", path)


class MemorySink:
    """Keeps artifacts in a dict; used by tests and `--dry-run` style callers."""

    def __init__(self) -> None:
        self.files: dict[str, str] = {}

    def write(self, name: str, content: str) -> None:
        self.files[name] = content
