"""Satiety meter handling for statforge.

The meter itself is plain state on the character; this module decides when a
change crosses the hunger threshold. The attribute engine reacts to a crossing
by applying or removing the hunger debuff and recomputing.
"""

from enum import Enum
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from statforge.game.character.model import HungerState

logger = structlog.get_logger(__name__)


class HungerCrossing(Enum):
    """Direction a satiety change crossed the hunger threshold."""

    NONE = "none"
    BECAME_HUNGRY = "became_hungry"
    BECAME_FED = "became_fed"


def is_hungry(state: "HungerState", threshold: float) -> bool:
    """Check whether satiety is at or below the hunger threshold."""
    return state.current <= threshold


def _crossing(was_hungry: bool, now_hungry: bool) -> HungerCrossing:
    if now_hungry and not was_hungry:
        return HungerCrossing.BECAME_HUNGRY
    if was_hungry and not now_hungry:
        return HungerCrossing.BECAME_FED
    return HungerCrossing.NONE


def decay(state: "HungerState", amount: float, threshold: float) -> HungerCrossing:
    """
    Reduce satiety.

    Args:
        state: Satiety meter to modify
        amount: Satiety to remove (negative amounts are ignored)
        threshold: Hunger threshold

    Returns:
        Which way the threshold was crossed, if at all
    """
    if amount <= 0:
        return HungerCrossing.NONE
    was_hungry = is_hungry(state, threshold)
    state.set_current(state.current - amount)
    return _crossing(was_hungry, is_hungry(state, threshold))


def restore(state: "HungerState", amount: float, threshold: float) -> HungerCrossing:
    """
    Restore satiety, e.g. after eating.

    Args:
        state: Satiety meter to modify
        amount: Satiety to add (negative amounts are ignored)
        threshold: Hunger threshold

    Returns:
        Which way the threshold was crossed, if at all
    """
    if amount <= 0:
        logger.debug("hunger_restore_ignored", amount=amount)
        return HungerCrossing.NONE
    was_hungry = is_hungry(state, threshold)
    state.set_current(state.current + amount)
    return _crossing(was_hungry, is_hungry(state, threshold))
