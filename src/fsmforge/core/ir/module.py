"""
Parsed DSL file: every block found in one source, in declaration order.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .dynamic import DynamicMachineSpec
from .machine import MachineSpec, TransitionBlockSpec
from .methods import MethodBlockSpec


class ModuleSpec(BaseModel):
    """Grammar model for one DSL file."""

    file: str
    machines: list[MachineSpec] = Field(default_factory=list)
    transition_blocks: list[TransitionBlockSpec] = Field(default_factory=list)
    method_blocks: list[MethodBlockSpec] = Field(default_factory=list)
    dynamic_machines: list[DynamicMachineSpec] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    def get_machine(self, name: str) -> MachineSpec | None:
        for machine in self.machines:
            if machine.name == name:
                return machine
        return None

    def get_dynamic_machine(self, name: str) -> DynamicMachineSpec | None:
        for machine in self.dynamic_machines:
            if machine.name == name:
                return machine
        return None
