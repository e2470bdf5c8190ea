"""Passive skill definitions for statforge."""

from typing import Literal

from pydantic import BaseModel, Field, model_validator

from .loader import Catalog


class TimeCondition(BaseModel):
    """Condition gating a conditional passive bonus."""

    type: Literal["time_of_day"] = Field(default="time_of_day", description="Condition kind")
    value: Literal["day", "night"] = Field(..., description="Time of day the bonus is active")


class PassiveEffect(BaseModel):
    """
    One effect of a passive skill.

    Attributes:
        type: 'attribute_bonus' (flat), 'percentage_modifier' (fraction of the
            current value) or 'conditional_bonus' (flat, or a fraction of attack
            or defense, while the condition holds)
        attribute: Attribute key
        value: Amount before the skill level multiplier
        condition: Required for conditional bonuses
    """

    type: Literal["attribute_bonus", "percentage_modifier", "conditional_bonus"] = Field(
        default="attribute_bonus", description="Effect kind"
    )
    attribute: str = Field(..., description="Attribute key")
    value: float = Field(..., description="Effect amount")
    condition: TimeCondition | None = Field(default=None, description="Gate for conditional bonuses")

    @model_validator(mode="after")
    def _conditional_needs_condition(self) -> "PassiveEffect":
        if self.type == "conditional_bonus" and self.condition is None:
            raise ValueError("conditional_bonus effects require a condition")
        return self


class PassiveSkillDefinition(BaseModel):
    """Passive skill definition loaded from YAML data."""

    id: str = Field(..., description="Unique skill identifier")
    name: str = Field(..., description="Display name")
    description: str = Field(default="", description="Display text")
    effects: list[PassiveEffect] = Field(default_factory=list, description="Skill effects")


class PassiveSkillCatalog(Catalog[PassiveSkillDefinition]):
    """Lookup of passive skill definitions by skill ID."""

    root_key = "passive_skills"
    template = PassiveSkillDefinition

    def get_passive_skill(self, skill_id: str | None) -> PassiveSkillDefinition | None:
        """Get a passive skill definition by ID."""
        return self.get(skill_id)
