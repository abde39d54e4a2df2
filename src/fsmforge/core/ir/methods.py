"""
Accessor and behaviour method declarations for fsmforge IR.

Example DSL:
    methods Traffic {
        Green => get count: int,
        Green => set count: int,
        Green, Orange, Red => default(False) fn can_pass(self) -> bool,
        [Orange, Red] => fn wait_time(self, factor: float) -> float,
    }
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from .location import SourceLocation
from .types import TypeRef


class MethodKind(str, Enum):
    """Shape of a method declaration."""

    GET = "get"
    SET = "set"
    FN = "fn"


class DefaultKind(str, Enum):
    """What the machine wrapper returns when the current state is not targeted."""

    NONE = "none"  # No default: wrapper returns Optional, None when absent
    DEFAULT = "default"  # Zero value of the return type: `Ret()`
    VALUE = "value"  # Literal expression: `default(expr)`


class DefaultValue(BaseModel):
    """Default clause of a method declaration."""

    kind: DefaultKind = DefaultKind.NONE
    expr: str | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def is_default(self) -> bool:
        """Whether the wrapper returns an unwrapped value."""
        return self.kind != DefaultKind.NONE


class ArgSpec(BaseModel):
    """A function argument: `name: Type` (type optional)."""

    name: str
    type: TypeRef | None = None

    model_config = ConfigDict(frozen=True)


class FnSignature(BaseModel):
    """
    A user method signature, `fn name(self, args) -> Ret`.

    Attributes:
        name: Method name
        receiver: Receiver as written (`self`, `&self`, `&mut self`), None if absent
        args: Arguments after the receiver
        returns: Return type, None when omitted
    """

    name: str
    receiver: str | None = "self"
    args: list[ArgSpec] = Field(default_factory=list)
    returns: TypeRef | None = None

    model_config = ConfigDict(frozen=True)


class MethodSpec(BaseModel):
    """
    A method declared for a set of target states.

    For GET/SET, `name` and `type` describe the field; for FN, `signature`
    holds the full declaration and `name` mirrors its name.
    """

    states: list[str]
    kind: MethodKind
    name: str
    type: TypeRef | None = None
    signature: FnSignature | None = None
    default: DefaultValue = Field(default_factory=DefaultValue)
    location: SourceLocation | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def return_type(self) -> TypeRef | None:
        if self.kind == MethodKind.FN:
            return self.signature.returns if self.signature else None
        return self.type


class MethodBlockSpec(BaseModel):
    """A `methods <Machine> { ... }` block."""

    machine: str
    methods: list[MethodSpec] = Field(default_factory=list)
    location: SourceLocation | None = None

    model_config = ConfigDict(frozen=True)
