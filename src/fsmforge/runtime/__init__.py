"""Runtime support: dynamic machines and loading of generated modules."""

from .dynamic import DynamicMachine, compile_dynamic_machine, render_dynamic_source
from .loader import implement, load_generated, load_generated_file

__all__ = [
    "DynamicMachine",
    "compile_dynamic_machine",
    "render_dynamic_source",
    "implement",
    "load_generated",
    "load_generated_file",
]
