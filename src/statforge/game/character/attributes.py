"""Character attributes, derived stat formulas, and the shared stat setter.

This module owns the attribute vocabulary used across statforge: the semantic
attribute keys, the display-name table used by free-text item deltas, the fixed
formula table that turns effective primary attributes into secondary combat
stats, and ``apply_stat_bonus``, the single place that writes a semantic key
into a character field.
"""

import math
from enum import Enum
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from statforge.game.character.model import Character

logger = structlog.get_logger(__name__)


class AttributeKey(str, Enum):
    """Semantic attribute keys as they appear in catalog data."""

    STRENGTH = "strength"
    AGILITY = "agility"
    WISDOM = "wisdom"
    SKILL = "skill"
    ATTACK = "attack"
    DEFENSE = "defense"
    MOVE_SPEED = "moveSpeed"
    DODGE_RATE = "dodgeRate"
    CRIT_RATE = "critRate"
    CRIT_DAMAGE = "critDamage"
    RESISTANCE = "resistance"
    MAGIC_POWER = "magicPower"
    CARRY_WEIGHT = "carryWeight"
    ACCURACY = "accuracy"
    EXP_RATE = "expRate"
    HP_REGEN = "hpRegen"
    MP_REGEN = "mpRegen"
    WEIGHT = "weight"
    VOLUME = "volume"
    MAX_HP = "maxHp"
    MAX_MP = "maxMp"


PRIMARY_ATTRIBUTES: tuple[AttributeKey, ...] = (
    AttributeKey.STRENGTH,
    AttributeKey.AGILITY,
    AttributeKey.WISDOM,
    AttributeKey.SKILL,
)

POOL_ATTRIBUTES: tuple[AttributeKey, ...] = (AttributeKey.MAX_HP, AttributeKey.MAX_MP)

# Fields kept at one decimal place to stop float drift across recomputes
ROUNDED_ATTRIBUTES = frozenset({AttributeKey.HP_REGEN, AttributeKey.MP_REGEN})

# Semantic key -> Character field name
ATTRIBUTE_FIELDS: dict[AttributeKey, str] = {
    AttributeKey.STRENGTH: "strength",
    AttributeKey.AGILITY: "agility",
    AttributeKey.WISDOM: "wisdom",
    AttributeKey.SKILL: "skill",
    AttributeKey.ATTACK: "attack",
    AttributeKey.DEFENSE: "defense",
    AttributeKey.MOVE_SPEED: "move_speed",
    AttributeKey.DODGE_RATE: "dodge_rate",
    AttributeKey.CRIT_RATE: "crit_rate",
    AttributeKey.CRIT_DAMAGE: "crit_damage",
    AttributeKey.RESISTANCE: "resistance",
    AttributeKey.MAGIC_POWER: "magic_power",
    AttributeKey.CARRY_WEIGHT: "carry_weight",
    AttributeKey.ACCURACY: "accuracy",
    AttributeKey.EXP_RATE: "exp_rate",
    AttributeKey.HP_REGEN: "hp_regen",
    AttributeKey.MP_REGEN: "mp_regen",
    AttributeKey.WEIGHT: "weight",
    AttributeKey.VOLUME: "volume",
    AttributeKey.MAX_HP: "max_hp",
    AttributeKey.MAX_MP: "max_mp",
}

# Alternate spellings found in item, buff, job and skill data
KEY_ALIASES: dict[str, AttributeKey] = {
    "technique": AttributeKey.SKILL,
    "hitRate": AttributeKey.ACCURACY,
    "experienceRate": AttributeKey.EXP_RATE,
    "healthRegen": AttributeKey.HP_REGEN,
    "manaRegen": AttributeKey.MP_REGEN,
    "bodyWeight": AttributeKey.WEIGHT,
    "bodySize": AttributeKey.VOLUME,
    "maxHealth": AttributeKey.MAX_HP,
    "maxMana": AttributeKey.MAX_MP,
    "hp": AttributeKey.MAX_HP,
    "mp": AttributeKey.MAX_MP,
}

# Display names used in free-text item deltas such as "攻击力+5,力量+2"
DISPLAY_NAMES: dict[str, AttributeKey] = {
    "力量": AttributeKey.STRENGTH,
    "敏捷": AttributeKey.AGILITY,
    "智慧": AttributeKey.WISDOM,
    "技巧": AttributeKey.SKILL,
    "攻击力": AttributeKey.ATTACK,
    "防御力": AttributeKey.DEFENSE,
    "暴击率": AttributeKey.CRIT_RATE,
    "暴击伤害": AttributeKey.CRIT_DAMAGE,
    "闪避率": AttributeKey.DODGE_RATE,
    "移动速度": AttributeKey.MOVE_SPEED,
    "魔法强度": AttributeKey.MAGIC_POWER,
    "负重": AttributeKey.CARRY_WEIGHT,
    "抗性": AttributeKey.RESISTANCE,
    "经验率": AttributeKey.EXP_RATE,
    "回血": AttributeKey.HP_REGEN,
    "回魔": AttributeKey.MP_REGEN,
    "体重": AttributeKey.WEIGHT,
    "体积": AttributeKey.VOLUME,
    "命中率": AttributeKey.ACCURACY,
    "生命值": AttributeKey.MAX_HP,
    "魔法值": AttributeKey.MAX_MP,
}

# Pool constants
BASE_MAX_HP = 100
HP_PER_LEVEL = 10
BASE_MAX_MP = 100


def normalize_key(name: str | AttributeKey | None) -> AttributeKey | None:
    """
    Resolve a catalog attribute name to its semantic key.

    Accepts canonical keys ("moveSpeed"), snake_case field names ("move_speed"),
    known aliases ("hitRate") and display names ("移动速度").

    Args:
        name: Attribute name as it appears in data

    Returns:
        The matching AttributeKey, or None if the name is unknown
    """
    if name is None:
        return None
    if isinstance(name, AttributeKey):
        return name

    text = str(name).strip()
    if not text:
        return None

    try:
        return AttributeKey(text)
    except ValueError:
        pass

    if text in KEY_ALIASES:
        return KEY_ALIASES[text]
    if text in DISPLAY_NAMES:
        return DISPLAY_NAMES[text]

    for key, field_name in ATTRIBUTE_FIELDS.items():
        if field_name == text:
            return key

    return None


def calculate_derived_stats(effective: dict[AttributeKey, float]) -> dict[AttributeKey, float]:
    """
    Calculate formula-derived secondary stats from effective primary attributes.

    Formulas:
    - attack: 10 + STR
    - defense: 1 + STR + AGI
    - moveSpeed: 50 + AGI
    - dodgeRate: AGI * 0.5
    - critRate: 5 + SKILL * 0.5
    - critDamage: 125 (constant)
    - resistance: WIS * 0.5
    - magicPower: WIS
    - carryWeight: 10 + STR
    - accuracy: 100 + SKILL * 0.5
    - hpRegen: 1 + STR * 0.2
    - mpRegen: 10 + WIS * 0.2
    - weight: 50 + STR
    - volume: 100 (constant)

    Args:
        effective: Effective primary attributes (base plus equipment deltas)

    Returns:
        Dictionary mapping secondary keys to their formula values
    """
    strength = effective.get(AttributeKey.STRENGTH, 0)
    agility = effective.get(AttributeKey.AGILITY, 0)
    wisdom = effective.get(AttributeKey.WISDOM, 0)
    skill = effective.get(AttributeKey.SKILL, 0)

    return {
        AttributeKey.ATTACK: 10 + strength,
        AttributeKey.DEFENSE: 1 + strength + agility,
        AttributeKey.MOVE_SPEED: 50 + agility,
        AttributeKey.DODGE_RATE: agility * 0.5,
        AttributeKey.CRIT_RATE: 5 + skill * 0.5,
        AttributeKey.CRIT_DAMAGE: 125,
        AttributeKey.RESISTANCE: wisdom * 0.5,
        AttributeKey.MAGIC_POWER: wisdom,
        AttributeKey.CARRY_WEIGHT: 10 + strength,
        AttributeKey.ACCURACY: 100 + skill * 0.5,
        AttributeKey.HP_REGEN: 1 + strength * 0.2,
        AttributeKey.MP_REGEN: 10 + wisdom * 0.2,
        AttributeKey.WEIGHT: 50 + strength,
        AttributeKey.VOLUME: 100,
    }


def calculate_max_hp(effective: dict[AttributeKey, float], level: int) -> float:
    """
    Calculate maximum HP before equipment pool deltas.

    Every effective primary point adds one HP; each level past the first adds ten.
    """
    primary_total = sum(effective.get(key, 0) for key in PRIMARY_ATTRIBUTES)
    return BASE_MAX_HP + primary_total + (level - 1) * HP_PER_LEVEL


def calculate_max_mp() -> float:
    """Calculate maximum MP before equipment pool deltas."""
    return BASE_MAX_MP


def get_stat(character: "Character", key: AttributeKey) -> float:
    """Read the character field behind a semantic key."""
    return getattr(character, ATTRIBUTE_FIELDS[key])


def set_stat(character: "Character", key: AttributeKey, value: float) -> float:
    """
    Write a semantic key's field with non-negative clamping.

    Regen fields are kept at one decimal place.

    Returns:
        The value actually stored
    """
    stored = max(0, value)
    if key in ROUNDED_ATTRIBUTES:
        stored = round(stored, 1)
    setattr(character, ATTRIBUTE_FIELDS[key], stored)
    return stored


def apply_stat_bonus(character: "Character", attribute: str | AttributeKey, value: float) -> bool:
    """
    Add a bonus to the field behind a semantic attribute key.

    Args:
        character: Character to modify
        attribute: Attribute name in any form accepted by ``normalize_key``
        value: Signed amount to add

    Returns:
        True if the bonus was applied, False if the attribute is unknown or
        the value is not a finite number
    """
    key = normalize_key(attribute)
    if key is None:
        logger.warning(
            "stat_bonus_unknown_attribute",
            character_id=character.id,
            attribute=str(attribute),
        )
        return False

    if not isinstance(value, (int, float)) or not math.isfinite(value):
        logger.warning(
            "stat_bonus_invalid_value",
            character_id=character.id,
            attribute=key.value,
            value=value,
        )
        return False

    set_stat(character, key, get_stat(character, key) + value)
    return True


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up."""
    return math.floor(value + 0.5)
