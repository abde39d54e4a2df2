"""Core fsmforge functionality: lexer, parser, IR, semantic builder, project manifest."""

from . import ir
from .builder import (
    MachineModel,
    MessageKey,
    MethodTable,
    SemanticModel,
    TransitionTable,
    build_machine,
    build_module,
)
from .dsl_parser_impl import parse_dsl
from .errors import (
    DynamicMachineError,
    EmitError,
    ErrorContext,
    FsmForgeError,
    ParseError,
    ValidationError,
)
from .manifest import ProjectManifest, find_manifest, load_manifest

__all__ = [
    "ir",
    "FsmForgeError",
    "ParseError",
    "ValidationError",
    "EmitError",
    "DynamicMachineError",
    "ErrorContext",
    "parse_dsl",
    "build_module",
    "build_machine",
    "MessageKey",
    "TransitionTable",
    "MethodTable",
    "MachineModel",
    "SemanticModel",
    "ProjectManifest",
    "load_manifest",
    "find_manifest",
]
