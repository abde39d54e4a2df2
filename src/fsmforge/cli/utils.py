"""
fsmforge CLI utilities.

Shared console, version display and error reporting used by the commands.
"""

import logging
import platform
from pathlib import Path

import typer
from rich.console import Console
from rich.style import Style
from rich.text import Text

from fsmforge import __version__
from fsmforge.core.errors import FsmForgeError, ParseError, ValidationError
from fsmforge.emit import CompilationResult, EmitOptions, compile_file

console = Console()

STYLES = {
    "title": Style(color="bright_cyan", bold=True),
    "success": Style(color="green", bold=True),
    "error": Style(color="red", bold=True),
    "warning": Style(color="yellow"),
    "muted": Style(color="bright_black"),
}


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(Text(f"✓ {message}", style=STYLES["success"]))


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(Text(f"⚠ {message}", style=STYLES["warning"]))


def version_callback(value: bool) -> None:
    """Display version and environment information."""
    if value:
        typer.echo(f"fsmforge {__version__}")
        typer.echo(f"Python {platform.python_version()} ({platform.python_implementation()})")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    """Route library logging to stderr; DEBUG with --verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def report_error(error: FsmForgeError) -> None:
    """Print a build-time error the way every command does."""
    if isinstance(error, ParseError):
        typer.echo(f"Parse error: {error}", err=True)
    elif isinstance(error, ValidationError):
        typer.echo(f"Validation error: {error}", err=True)
    else:
        typer.echo(f"Error: {error}", err=True)


def compile_or_exit(path: Path, options: EmitOptions | None = None) -> CompilationResult:
    """Compile one DSL file, exiting with code 1 on any build-time error."""
    if not path.is_file():
        typer.echo(f"Error: {path} not found", err=True)
        raise typer.Exit(code=1)
    try:
        result = compile_file(path, options)
    except FsmForgeError as e:
        report_error(e)
        raise typer.Exit(code=1)

    for warning in result.warnings:
        print_warning(warning)
    return result
