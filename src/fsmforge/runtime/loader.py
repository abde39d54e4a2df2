"""
Loading generated machine modules.

Generated modules refer to user types (messages, field types) by name.
``load_generated`` executes module text in a fresh module seeded with those
names, so a machine can be compiled and used without writing files;
``load_generated_file`` imports an artifact already on disk.

``implement`` attaches user handlers to generated state records.
"""

from __future__ import annotations

import importlib.util
import logging
import sys
from collections.abc import Callable, Mapping
from pathlib import Path
from types import ModuleType
from typing import Any, TypeVar

from ..core.errors import EmitError

logger = logging.getLogger(__name__)

_T = TypeVar("_T", bound=type)


def load_generated(
    source: str, name: str, namespace: Mapping[str, Any] | None = None
) -> ModuleType:
    """
    Execute generated module text and return the module.

    Args:
        source: Generated Python source
        name: Module name; the module is registered in ``sys.modules`` under it
        namespace: Names made visible to the module before it runs

    Returns:
        The executed module

    Raises:
        EmitError: If the source does not compile or fails while executing
    """
    spec = importlib.util.spec_from_loader(name, loader=None)
    assert spec is not None
    module = importlib.util.module_from_spec(spec)
    module.__dict__.update(namespace or {})

    try:
        code = compile(source, f"<fsmforge:{name}>", "exec")
    except SyntaxError as e:
        raise EmitError(f"Generated module '{name}' is not valid Python: {e}") from e

    sys.modules[name] = module
    try:
        exec(code, module.__dict__)
    except Exception as e:
        del sys.modules[name]
        raise EmitError(f"Generated module '{name}' failed to load: {e}") from e

    logger.debug("Loaded generated module %s", name)
    return module


def load_generated_file(path: Path, name: str | None = None) -> ModuleType:
    """Import a generated artifact from disk."""
    module_name = name or f"fsmforge_generated.{path.stem}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise EmitError(f"Cannot load generated module from {path}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        del sys.modules[module_name]
        raise EmitError(f"Generated module {path} failed to load: {e}") from e
    return module


def implement(record: type) -> Callable[[_T], _T]:
    """
    Class decorator copying handler methods onto a generated record.

    Example:
        @implement(traffic.Green)
        class GreenHandlers:
            def on_advance(self, input):
                return traffic.Orange()

    Dunder attributes of the decorated class are left alone; everything else
    replaces the generated stub of the same name.
    """

    def decorator(impl: _T) -> _T:
        for attr, value in vars(impl).items():
            if attr.startswith("__") and attr.endswith("__"):
                continue
            setattr(record, attr, value)
            logger.debug("Implemented %s.%s", record.__name__, attr)
        return impl

    return decorator
