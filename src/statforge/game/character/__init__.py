"""Character state, attribute vocabulary, and derived stat formulas."""

from .attributes import (
    PRIMARY_ATTRIBUTES,
    AttributeKey,
    apply_stat_bonus,
    calculate_derived_stats,
    normalize_key,
)
from .model import ActiveBuff, Character, EquipmentSlot, HungerState

__all__ = [
    "PRIMARY_ATTRIBUTES",
    "AttributeKey",
    "apply_stat_bonus",
    "calculate_derived_stats",
    "normalize_key",
    "ActiveBuff",
    "Character",
    "EquipmentSlot",
    "HungerState",
]
