import tomllib
from dataclasses import dataclass, field
from pathlib import Path

MANIFEST_NAME = "fsmforge.toml"
SOURCE_SUFFIX = ".fsm"


@dataclass
class SourcesConfig:
    """Where DSL files are looked up."""

    paths: list[str] = field(default_factory=lambda: ["."])  # Files or directories
    pattern: str = f"*{SOURCE_SUFFIX}"


@dataclass
class GenerateConfig:
    """Code generation settings.

    Examples in fsmforge.toml:

        [generate]
        output_dir = "generated"
        graph = true
        imports = ["from traffic.messages import Advance, PassCar"]
    """

    output_dir: str = "generated"
    graph: bool = True  # Also write <machine>.dot
    imports: list[str] = field(default_factory=list)  # Lines added to every module


@dataclass
class ProjectManifest:
    name: str
    version: str
    root: Path
    sources: SourcesConfig = field(default_factory=SourcesConfig)
    generate: GenerateConfig = field(default_factory=GenerateConfig)

    @property
    def output_path(self) -> Path:
        return self.root / self.generate.output_dir

    def source_files(self) -> list[Path]:
        """
        Resolve every DSL file named by `[sources]`, sorted and deduplicated.

        Directories are searched recursively with `sources.pattern`.
        """
        found: list[Path] = []
        for entry in self.sources.paths:
            path = self.root / entry
            if path.is_dir():
                found.extend(path.rglob(self.sources.pattern))
            elif path.is_file():
                found.append(path)
        return sorted(set(found))


def load_manifest(path: Path) -> ProjectManifest:
    data = tomllib.loads(path.read_text(encoding="utf-8"))

    project = data.get("project", {})
    sources_data = data.get("sources", {})
    generate_data = data.get("generate", {})

    sources_config = SourcesConfig(
        paths=sources_data.get("paths", ["."]),
        pattern=sources_data.get("pattern", f"*{SOURCE_SUFFIX}"),
    )

    generate_config = GenerateConfig(
        output_dir=generate_data.get("output_dir", "generated"),
        graph=generate_data.get("graph", True),
        imports=generate_data.get("imports", []),
    )

    return ProjectManifest(
        name=project.get("name", path.parent.name),
        version=project.get("version", "0.1.0"),
        root=path.parent,
        sources=sources_config,
        generate=generate_config,
    )


def find_manifest(start: Path) -> Path | None:
    """Look for fsmforge.toml in ``start`` and its parents."""
    start = start.resolve()
    for directory in [start, *start.parents]:
        candidate = directory / MANIFEST_NAME
        if candidate.is_file():
            return candidate
    return None
