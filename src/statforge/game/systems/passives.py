"""Passive skill hook for statforge.

Runs as step six of every recompute and layers a character's passive skill
effects onto the freshly derived stats. Because every recompute starts from
scratch, the hook re-applies the full set of effects each time and stays
idempotent.

Time-conditioned bonuses (e.g. a night-only attack bonus) are gated by an
explicit per-character toggle. Toggles only change through
``set_time_of_day``; the hook never infers them from the character's current
values.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from statforge.game.catalog.passives import (
    PassiveEffect,
    PassiveSkillCatalog,
    PassiveSkillDefinition,
)
from statforge.game.character.attributes import (
    PRIMARY_ATTRIBUTES,
    AttributeKey,
    apply_stat_bonus,
    get_stat,
    normalize_key,
)

if TYPE_CHECKING:
    from statforge.game.character.model import Character

logger = structlog.get_logger(__name__)

LEVEL_MULTIPLIER_STEP = 0.1
FRACTIONAL_CONDITIONAL_ATTRIBUTES = frozenset({AttributeKey.ATTACK, AttributeKey.DEFENSE})
TIMES_OF_DAY = ("day", "night")


@dataclass
class ConditionalBonusToggle:
    """
    Applied/cleared state of one time-conditioned bonus for one character.

    Attributes:
        skill_id: Passive skill providing the bonus
        attribute: Attribute key the bonus targets
        required_time: Time of day the bonus needs
        applied: Whether the bonus is currently switched on
    """

    skill_id: str
    attribute: str
    required_time: str
    applied: bool = False


def level_multiplier(skill_level: int) -> float:
    """Scale factor for a passive skill's effects: +10% per level past the first."""
    return 1 + (max(1, skill_level) - 1) * LEVEL_MULTIPLIER_STEP


class PassiveSkillHook:
    """
    Applies passive skill effects during recompute.

    Instances keep the current time of day and every character's conditional
    toggles. The hook mutates character fields directly and must never trigger
    a recompute itself.
    """

    def __init__(self, catalog: PassiveSkillCatalog | None = None, time_of_day: str = "day") -> None:
        if time_of_day not in TIMES_OF_DAY:
            raise ValueError(f"time_of_day must be one of {TIMES_OF_DAY}, got {time_of_day!r}")
        self.catalog = catalog if catalog is not None else PassiveSkillCatalog()
        self.time_of_day = time_of_day
        self._toggles: dict[str, dict[tuple[str, str], ConditionalBonusToggle]] = {}

    def apply(self, character: "Character") -> None:
        """
        Apply the character's passive skill effects.

        Characters without a passive skill, or whose skill is missing from the
        catalog, are left unchanged.
        """
        if character.passive_skill_id is None:
            self._toggles.pop(character.id, None)
            return

        skill = self.catalog.get_passive_skill(character.passive_skill_id)
        if skill is None:
            logger.warning(
                "passive_skill_unresolved",
                character_id=character.id,
                skill_id=character.passive_skill_id,
            )
            self._toggles.pop(character.id, None)
            return

        toggles = self._sync_toggles(character, skill)
        multiplier = level_multiplier(character.passive_skill_level)

        for effect in skill.effects:
            key = normalize_key(effect.attribute)
            if key is None:
                logger.warning(
                    "passive_effect_unknown_attribute",
                    skill_id=skill.id,
                    attribute=effect.attribute,
                )
                continue
            if key in PRIMARY_ATTRIBUTES:
                logger.warning(
                    "passive_effect_targets_primary", skill_id=skill.id, attribute=key.value
                )
                continue

            amount = self._effect_amount(character, skill, effect, key, multiplier, toggles)
            if amount:
                apply_stat_bonus(character, key, amount)

    def set_time_of_day(
        self, time_of_day: str, characters: Iterable["Character"]
    ) -> list["Character"]:
        """
        Switch the time of day and flip affected conditional toggles.

        Args:
            time_of_day: "day" or "night"
            characters: Characters to re-evaluate

        Returns:
            Characters whose toggles changed and therefore need a recompute
        """
        if time_of_day not in TIMES_OF_DAY:
            raise ValueError(f"time_of_day must be one of {TIMES_OF_DAY}, got {time_of_day!r}")

        self.time_of_day = time_of_day
        changed: list["Character"] = []

        for character in characters:
            flipped = False
            for toggle in self._toggles.get(character.id, {}).values():
                should_apply = toggle.required_time == time_of_day
                if toggle.applied != should_apply:
                    toggle.applied = should_apply
                    flipped = True
                    logger.info(
                        "conditional_bonus_toggled",
                        character_id=character.id,
                        skill_id=toggle.skill_id,
                        attribute=toggle.attribute,
                        applied=should_apply,
                    )
            if flipped:
                changed.append(character)

        return changed

    def toggles_for(self, character: "Character") -> list[ConditionalBonusToggle]:
        """Get a character's conditional toggles."""
        return list(self._toggles.get(character.id, {}).values())

    def forget(self, character: "Character") -> None:
        """Drop all toggle state for a character."""
        self._toggles.pop(character.id, None)

    def _sync_toggles(
        self, character: "Character", skill: PassiveSkillDefinition
    ) -> dict[tuple[str, str], ConditionalBonusToggle]:
        """Register toggles for the skill's conditional effects, dropping stale ones."""
        existing = self._toggles.get(character.id, {})
        toggles: dict[tuple[str, str], ConditionalBonusToggle] = {}

        for effect in skill.effects:
            if effect.type != "conditional_bonus" or effect.condition is None:
                continue
            toggle_key = (skill.id, effect.attribute)
            toggle = existing.get(toggle_key)
            if toggle is None:
                toggle = ConditionalBonusToggle(
                    skill_id=skill.id,
                    attribute=effect.attribute,
                    required_time=effect.condition.value,
                    applied=effect.condition.value == self.time_of_day,
                )
            toggles[toggle_key] = toggle

        self._toggles[character.id] = toggles
        return toggles

    def _effect_amount(
        self,
        character: "Character",
        skill: PassiveSkillDefinition,
        effect: PassiveEffect,
        key: AttributeKey,
        multiplier: float,
        toggles: dict[tuple[str, str], ConditionalBonusToggle],
    ) -> float:
        value = effect.value * multiplier

        if effect.type == "attribute_bonus":
            return value

        if effect.type == "percentage_modifier":
            return get_stat(character, key) * value

        toggle = toggles.get((skill.id, effect.attribute))
        if toggle is None or not toggle.applied:
            return 0.0

        # Fractions of attack/defense are percentages of the current value
        if key in FRACTIONAL_CONDITIONAL_ATTRIBUTES and 0 < effect.value < 1:
            current = get_stat(character, key)
            if current > 0:
                return current * value
        return value
