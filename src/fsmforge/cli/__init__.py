"""
fsmforge CLI Package.

- commands.py: check, generate, graph, inspect, build
- utils.py: console, version display, error reporting
"""

import sys

import typer

from .commands import (
    build_command,
    check_command,
    generate_command,
    graph_command,
    inspect_command,
)
from .utils import configure_logging, version_callback

app = typer.Typer(
    help="""fsmforge: finite-state machine code generator

Commands:
  • check, inspect, graph
    → Read DSL files and report
  • generate, build
    → Write machine modules and dot graphs
""",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    version: bool | None = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version information",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """fsmforge CLI main callback for global options."""
    configure_logging(verbose)


app.command(name="check")(check_command)
app.command(name="generate")(generate_command)
app.command(name="graph")(graph_command)
app.command(name="inspect")(inspect_command)
app.command(name="build")(build_command)


def main(argv: list[str] | None = None) -> None:
    app(args=argv, standalone_mode=True)


if __name__ == "__main__":
    main(sys.argv[1:])

__all__ = ["app", "main"]
