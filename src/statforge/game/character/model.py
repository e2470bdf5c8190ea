"""Runtime character state for statforge.

Characters hold canonical inputs (base primaries, level, job, passive skill,
equipment references, active buffs, satiety) next to the computed secondary
fields. Only the attribute engine writes the computed fields.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from uuid import uuid4

from statforge.game.character.attributes import (
    ATTRIBUTE_FIELDS,
    PRIMARY_ATTRIBUTES,
    AttributeKey,
)


class EquipmentSlot(str, Enum):
    """Equipment slots available to every character."""

    WEAPON = "weapon"
    ARMOR = "armor"
    OFFHAND = "offhand"
    ACCESSORY = "accessory"


@dataclass
class ActiveBuff:
    """
    An active buff instance on a character.

    Attributes:
        buff_id: Buff definition ID
        remaining_duration: Seconds until expiry
        stack_count: Current number of stacks (1..max_stacks)
    """

    buff_id: str
    remaining_duration: float
    stack_count: int = 1


@dataclass
class HungerState:
    """
    Satiety meter.

    Attributes:
        current: Current satiety, always within [0, maximum]
        maximum: Satiety capacity, always >= 1
    """

    current: float = 100.0
    maximum: float = 100.0

    def __post_init__(self) -> None:
        """Clamp values into their valid ranges."""
        self.maximum = max(1.0, self.maximum)
        self.current = min(max(0.0, self.current), self.maximum)

    def set_current(self, value: float) -> None:
        """Set current satiety, clamped to [0, maximum]."""
        self.current = min(max(0.0, value), self.maximum)

    def set_maximum(self, value: float) -> None:
        """Set satiety capacity, re-clamping current if needed."""
        self.maximum = max(1.0, value)
        self.current = min(self.current, self.maximum)

    @property
    def ratio(self) -> float:
        """Satiety as a fraction of capacity."""
        return self.current / self.maximum


def _empty_slots() -> dict[EquipmentSlot, str | None]:
    return {slot: None for slot in EquipmentSlot}


@dataclass
class Character:
    """A character's canonical inputs and computed combat stats."""

    name: str
    id: str = field(default_factory=lambda: str(uuid4()))

    # Base primary attributes
    strength: float = 10
    agility: float = 10
    wisdom: float = 10
    skill: float = 10

    # Progression
    level: int = 1
    experience: int = 0
    job_id: str | None = None
    passive_skill_id: str | None = None
    passive_skill_level: int = 1

    # Derived secondary attributes (written by the engine)
    attack: float = 0.0
    defense: float = 0.0
    move_speed: float = 0.0
    dodge_rate: float = 0.0
    crit_rate: float = 0.0
    crit_damage: float = 0.0
    resistance: float = 0.0
    magic_power: float = 0.0
    carry_weight: float = 0.0
    accuracy: float = 0.0
    exp_rate: float = 100.0
    hp_regen: float = 0.0
    mp_regen: float = 0.0
    weight: float = 0.0
    volume: float = 0.0

    # Pools
    current_hp: float = 100.0
    max_hp: float = 100.0
    current_mp: float = 100.0
    max_mp: float = 100.0

    equipment: dict[EquipmentSlot, str | None] = field(default_factory=_empty_slots)
    buffs: dict[str, ActiveBuff] = field(default_factory=dict)
    hunger: HungerState = field(default_factory=HungerState)

    def base_primaries(self) -> dict[AttributeKey, float]:
        """Get base primary attributes keyed by semantic key."""
        return {key: getattr(self, ATTRIBUTE_FIELDS[key]) for key in PRIMARY_ATTRIBUTES}

    def stat_snapshot(self) -> dict[str, Any]:
        """
        Get the computed attribute snapshot handed to UI panels and combat.

        Returns:
            Dictionary of every computed secondary field plus pools
        """
        snapshot: dict[str, Any] = {
            field_name: getattr(self, field_name)
            for key, field_name in ATTRIBUTE_FIELDS.items()
            if key not in PRIMARY_ATTRIBUTES
        }
        snapshot["current_hp"] = self.current_hp
        snapshot["current_mp"] = self.current_mp
        return snapshot

    def __repr__(self) -> str:
        """String representation of Character."""
        return f"<Character(id={self.id}, name='{self.name}', level={self.level})>"
