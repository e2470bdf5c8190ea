"""Buff definitions for statforge."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .loader import Catalog


class BuffEffect(BaseModel):
    """
    A single effect within a buff definition.

    Attributes:
        attribute: Attribute key, e.g. 'defense', 'attack', 'moveSpeed'
        value: Flat amount, or percent of the pre-buff value
        type: 'flat' or 'percentage'
    """

    attribute: str = Field(..., description="Attribute key")
    value: float = Field(..., description="Effect amount")
    type: Literal["flat", "percentage"] = Field(default="flat", description="Effect kind")


class BuffDefinition(BaseModel):
    """
    Buff definition loaded from YAML data.

    Attributes:
        id: Unique buff identifier
        name: Display name
        description: Display text
        icon: Display icon
        effects: Attribute effects applied per stack
        duration: Default duration in seconds
        stackable: Whether re-applying adds a stack
        max_stacks: Stack cap
        disable_movement: Locks movement while active
        exclusive_snapshot_debuff: Snapshots and zeroes mobility/regen while active
            and suppresses other buffs' moveSpeed effects
    """

    model_config = ConfigDict(extra="allow")

    id: str = Field(..., description="Unique buff identifier")
    name: str = Field(..., description="Display name")
    description: str = Field(default="", description="Display text")
    icon: str = Field(default="", description="Display icon")
    effects: list[BuffEffect] = Field(default_factory=list, description="Per-stack effects")
    duration: float = Field(default=30, gt=0, description="Default duration in seconds")
    stackable: bool = Field(default=False, description="Whether re-applying stacks")
    max_stacks: int = Field(default=1, ge=1, description="Stack cap")
    disable_movement: bool = Field(default=False, description="Locks movement while active")
    exclusive_snapshot_debuff: bool = Field(
        default=False, description="Snapshot/zero mobility and regen while active"
    )

    @model_validator(mode="after")
    def _single_stack_unless_stackable(self) -> "BuffDefinition":
        if not self.stackable:
            self.max_stacks = 1
        return self


class BuffCatalog(Catalog[BuffDefinition]):
    """Lookup of buff definitions by buff ID."""

    root_key = "buffs"
    template = BuffDefinition

    def get_definition(self, buff_id: str | None) -> BuffDefinition | None:
        """Get a buff definition by ID."""
        return self.get(buff_id)
