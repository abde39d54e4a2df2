"""
fsmforge commands: check, generate, graph, inspect, build.
"""

import tomllib
from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from fsmforge.core.errors import FsmForgeError
from fsmforge.core.manifest import MANIFEST_NAME, find_manifest, load_manifest
from fsmforge.emit import (
    CompilationResult,
    DirectorySink,
    EmitOptions,
    render_dot,
    write_artifacts,
)

from .utils import compile_or_exit, console, print_success, report_error


def check_command(
    files: Annotated[list[Path], typer.Argument(help="DSL files to check")],
) -> None:
    """
    Parse and validate DSL files without writing anything.
    """
    for path in files:
        result = compile_or_exit(path)
        print_success(
            f"{path}: {len(result.machines)} machine(s), "
            f"{len(result.model.dynamic_machines)} dynamic machine(s)"
        )


def _write(result: CompilationResult, out: Path) -> None:
    sink = DirectorySink(out)
    try:
        write_artifacts(result, sink)
    except FsmForgeError as e:
        report_error(e)
        raise typer.Exit(code=1)
    for path in sink.written:
        typer.echo(f"  {path}")


def generate_command(
    files: Annotated[list[Path], typer.Argument(help="DSL files to compile")],
    out: Annotated[Path, typer.Option("--out", "-o", help="Output directory")] = Path("generated"),
    no_graph: Annotated[bool, typer.Option("--no-graph", help="Skip .dot graphs")] = False,
    imports: Annotated[
        list[str] | None,
        typer.Option("--import", "-i", help="Import line added to generated modules"),
    ] = None,
) -> None:
    """
    Generate machine modules (and dot graphs) from DSL files.
    """
    options = EmitOptions(imports=list(imports or []), graph=not no_graph)
    for path in files:
        result = compile_or_exit(path, options)
        _write(result, out)
    print_success(f"Generated into {out}")


def graph_command(
    file: Annotated[Path, typer.Argument(help="DSL file")],
    machine: Annotated[
        str | None, typer.Option("--machine", "-m", help="Only this machine")
    ] = None,
) -> None:
    """
    Print the transition graph of each machine in dot format.
    """
    result = compile_or_exit(file)
    machines = result.machines
    if machine is not None:
        machines = [m for m in machines if m.name == machine]
        if not machines:
            typer.echo(f"Error: no machine named '{machine}' in {file}", err=True)
            raise typer.Exit(code=1)

    typer.echo("\n\n".join(render_dot(m.transitions) for m in machines))


def inspect_command(
    file: Annotated[Path, typer.Argument(help="DSL file")],
) -> None:
    """
    Show the Transition and Method Tables of every machine.
    """
    result = compile_or_exit(file)

    for model in result.machines:
        table = Table(title=f"{model.name} transitions")
        table.add_column("Message", style="cyan")
        table.add_column("Generics", style="dim")
        table.add_column("Start")
        table.add_column("End")

        for entry in model.transitions.messages:
            generics = ", ".join(g.name for g in entry.generics)
            for arm in entry.arms:
                ends = ", ".join(arm.end)
                table.add_row(
                    entry.key.name,
                    generics,
                    arm.start,
                    f"[yellow]{ends}[/yellow]" if arm.is_multi_target else ends,
                )
        console.print(table)

        if model.methods.methods:
            methods = Table(title=f"{model.name} methods")
            methods.add_column("Method", style="cyan")
            methods.add_column("Kind")
            methods.add_column("States")
            methods.add_column("Default", style="dim")
            for method in model.methods.methods:
                default = method.default.expr or method.default.kind.value
                methods.add_row(method.name, method.kind.value, ", ".join(method.states), default)
            console.print(methods)

    for dynamic in result.model.dynamic_machines:
        events = Table(title=f"{dynamic.name} events (dynamic)")
        events.add_column("Event", style="cyan")
        events.add_column("Returns")
        events.add_column("Arms")
        for event in dynamic.events:
            events.add_row(event.name, event.returns or "bool", str(len(event.arms)))
        console.print(events)


def build_command(
    manifest: Annotated[
        Path | None, typer.Option("--manifest", "-m", help=f"Path to {MANIFEST_NAME}")
    ] = None,
) -> None:
    """
    Compile every DSL file listed in fsmforge.toml.
    """
    manifest_path = manifest or find_manifest(Path.cwd())
    if manifest_path is None or not manifest_path.is_file():
        typer.echo(f"Error: {MANIFEST_NAME} not found", err=True)
        raise typer.Exit(code=1)

    try:
        mf = load_manifest(manifest_path)
    except tomllib.TOMLDecodeError as e:
        typer.echo(f"Error: invalid {manifest_path}: {e}", err=True)
        raise typer.Exit(code=1)

    sources = mf.source_files()
    if not sources:
        typer.echo(f"Error: no {mf.sources.pattern} files found for project {mf.name}", err=True)
        raise typer.Exit(code=1)

    options = EmitOptions(imports=mf.generate.imports, graph=mf.generate.graph)
    for path in sources:
        result = compile_or_exit(path, options)
        _write(result, mf.output_path)
    print_success(f"Built {mf.name}: {len(sources)} file(s) into {mf.output_path}")
