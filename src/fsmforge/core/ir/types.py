"""
Type references for fsmforge IR.

Field types, message types and method signatures are kept as small trees so
that generic and lifetime parameters survive parsing unresolved, and so that
both the DSL spelling (`Msg<'a, T>`) and the Python spelling (`Msg[T]`) can
be rendered from the same node.

Example DSL:
    (Idle, Request<'a, T>) => Busy,
    Busy { pending: list[Request<'a, T>], retries: int | None },
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class TypeKind(str, Enum):
    """Shape of a type reference node."""

    NAME = "name"  # Plain or dotted name, optionally with parameters
    LIFETIME = "lifetime"  # 'a
    LIST = "list"  # [A, B] argument lists, e.g. Callable[[int], str]
    UNION = "union"  # A | B
    LITERAL = "literal"  # "x", 3 inside Literal[...]


class TypeRef(BaseModel):
    """
    A reference to a type as written in the DSL.

    Attributes:
        kind: Node shape
        name: Dotted name (NAME), lifetime text (LIFETIME) or literal source (LITERAL)
        params: Generic parameters (NAME) or members (LIST, UNION)
    """

    kind: TypeKind = TypeKind.NAME
    name: str = ""
    params: list[TypeRef] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @property
    def is_lifetime(self) -> bool:
        """Check if this node is a lifetime parameter."""
        return self.kind == TypeKind.LIFETIME

    @property
    def arity(self) -> int:
        """Number of generic parameters, lifetimes included."""
        return len(self.params) if self.kind == TypeKind.NAME else 0

    @property
    def base_name(self) -> str:
        """Last segment of a dotted name (`msgs.Advance` -> `Advance`)."""
        return self.name.rsplit(".", 1)[-1]

    def render(self) -> str:
        """
        Render as a Python type expression.

        Lifetimes have no Python counterpart and are dropped; a name whose
        parameters were all lifetimes renders bare.
        """
        if self.kind == TypeKind.LIFETIME:
            return ""
        if self.kind == TypeKind.LITERAL:
            return self.name
        if self.kind == TypeKind.UNION:
            return " | ".join(p.render() for p in self.params)
        if self.kind == TypeKind.LIST:
            return "[" + ", ".join(p.render() for p in self.params if not p.is_lifetime) + "]"

        params = [p.render() for p in self.params if not p.is_lifetime]
        if not params:
            return self.name
        return f"{self.name}[{', '.join(params)}]"

    def render_dsl(self) -> str:
        """Render back to DSL spelling, lifetimes included."""
        if self.kind in (TypeKind.LIFETIME, TypeKind.LITERAL):
            return self.name
        if self.kind == TypeKind.UNION:
            return " | ".join(p.render_dsl() for p in self.params)
        if self.kind == TypeKind.LIST:
            return "[" + ", ".join(p.render_dsl() for p in self.params) + "]"
        if not self.params:
            return self.name
        return f"{self.name}<{', '.join(p.render_dsl() for p in self.params)}>"

    def __str__(self) -> str:
        return self.render_dsl()


TypeRef.model_rebuild()
