"""Job growth and level progression for statforge."""

import math
import random
from typing import TYPE_CHECKING

import structlog

from statforge.game.character.attributes import (
    ATTRIBUTE_FIELDS,
    PRIMARY_ATTRIBUTES,
    AttributeKey,
    normalize_key,
)

if TYPE_CHECKING:
    from statforge.game.catalog.jobs import JobDefinition
    from statforge.game.character.model import Character

logger = structlog.get_logger(__name__)

# Progression constants
BASE_XP_TO_NEXT = 100
XP_GROWTH_FACTOR = 1.2
GROWTH_JITTER = (-1, 0, 1)


def xp_to_next(level: int) -> int:
    """
    Calculate experience needed to advance from a level to the next.

    Uses exponential growth: floor(100 * 1.2^(level - 1)).

    Examples:
        >>> xp_to_next(1)
        100
        >>> xp_to_next(2)
        120
        >>> xp_to_next(5)
        207
    """
    return math.floor(BASE_XP_TO_NEXT * XP_GROWTH_FACTOR ** (max(1, level) - 1))


def split_job_bonus(job: "JobDefinition") -> tuple[dict[AttributeKey, float], dict[AttributeKey, float]]:
    """
    Split a job's attribute bonus into primary and layered parts.

    Returns:
        (primary deltas folded into base attributes, deltas layered on recompute)
    """
    primary: dict[AttributeKey, float] = {}
    layered: dict[AttributeKey, float] = {}

    for name, value in job.attribute_bonus.items():
        key = normalize_key(name)
        if key is None:
            logger.warning("job_bonus_unknown_attribute", job_id=job.id, attribute=name)
            continue
        target = primary if key in PRIMARY_ATTRIBUTES else layered
        target[key] = target.get(key, 0.0) + value

    return primary, layered


def shift_base_primaries(character: "Character", deltas: dict[AttributeKey, float], sign: int) -> None:
    """Add (sign=1) or reverse (sign=-1) primary deltas on a character's base attributes."""
    for key, value in deltas.items():
        field_name = ATTRIBUTE_FIELDS[key]
        setattr(character, field_name, getattr(character, field_name) + sign * value)


def roll_growth(job: "JobDefinition | None", rng: random.Random | None = None) -> dict[AttributeKey, int]:
    """
    Roll primary attribute gains for one level up.

    Each growth rate gets a uniform -1/0/+1 adjustment and never goes below 0.

    Args:
        job: The character's job (no job means no growth)
        rng: Random source, defaults to the module RNG

    Returns:
        Gain per primary attribute
    """
    if job is None:
        return {key: 0 for key in PRIMARY_ATTRIBUTES}

    source = rng or random
    gains: dict[AttributeKey, int] = {}
    for key in PRIMARY_ATTRIBUTES:
        rate = 0
        for name, value in job.growth_rates.items():
            if normalize_key(name) == key:
                rate = value
                break
        gains[key] = max(0, rate + source.choice(GROWTH_JITTER))
    return gains
