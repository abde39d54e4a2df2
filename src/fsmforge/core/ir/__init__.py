"""
fsmforge Intermediate Representation (IR) types.

This package contains the grammar model produced by the DSL parser.
Types are organized into logical submodules and re-exported here.
"""

from .dynamic import (
    DYNAMIC_RESERVED_MEMBERS,
    AttributeSpec,
    DynamicMachineSpec,
    EventArmSpec,
    EventSpec,
)
from .location import SourceLocation
from .machine import (
    ERROR_STATE,
    FieldSpec,
    MachineSpec,
    StateSpec,
    TransitionBlockSpec,
    TransitionSpec,
)
from .methods import (
    ArgSpec,
    DefaultKind,
    DefaultValue,
    FnSignature,
    MethodBlockSpec,
    MethodKind,
    MethodSpec,
)
from .module import ModuleSpec
from .types import TypeKind, TypeRef

__all__ = [
    # Location
    "SourceLocation",
    # Types
    "TypeKind",
    "TypeRef",
    # Machine
    "ERROR_STATE",
    "FieldSpec",
    "StateSpec",
    "TransitionSpec",
    "MachineSpec",
    "TransitionBlockSpec",
    # Methods
    "MethodKind",
    "DefaultKind",
    "DefaultValue",
    "ArgSpec",
    "FnSignature",
    "MethodSpec",
    "MethodBlockSpec",
    # Dynamic
    "DYNAMIC_RESERVED_MEMBERS",
    "AttributeSpec",
    "EventArmSpec",
    "EventSpec",
    "DynamicMachineSpec",
    # Module
    "ModuleSpec",
]
