"""Attribute engine for statforge.

The engine is the only entry point callers use to change anything that feeds a
character's combat stats. Every mutation (equip, unequip, buff apply/remove,
job change, level up, timer tick, time-of-day change) ends in one full,
from-scratch ``recompute``; there is no incremental update path.

Recompute order:

1. reset the experience rate to its baseline
2. effective primaries = base primaries + equipped-item primary deltas
3. secondary stats from the fixed formula table
4. equipment and job secondary deltas layered on top
5. HP/MP pool maxima
6. passive skill hook
7. active buff deltas (hunger suppression, snapshot debuff)
8. clamp current HP/MP to the new maxima
"""

import math
import random
from collections.abc import Iterable

import structlog

from statforge.config import Settings, get_settings
from statforge.game.catalog.buffs import BuffCatalog
from statforge.game.catalog.items import ItemCatalog, ItemInstanceStore
from statforge.game.catalog.jobs import JobCatalog
from statforge.game.catalog.passives import PassiveSkillCatalog
from statforge.game.character.attributes import (
    POOL_ATTRIBUTES,
    PRIMARY_ATTRIBUTES,
    AttributeKey,
    apply_stat_bonus,
    calculate_derived_stats,
    calculate_max_hp,
    calculate_max_mp,
    set_stat,
)
from statforge.game.character.model import Character, EquipmentSlot, HungerState
from statforge.game.systems import hunger as hunger_rules
from statforge.game.systems.buffs import BuffEffectResolver, MovementLockPort
from statforge.game.systems.equipment import EquipmentModifierResolver
from statforge.game.systems.jobs import (
    roll_growth,
    shift_base_primaries,
    split_job_bonus,
    xp_to_next,
)
from statforge.game.systems.ownership import OwnershipRegistry
from statforge.game.systems.passives import PassiveSkillHook

logger = structlog.get_logger(__name__)

EQUIPMENT_SLOT_VALUES = frozenset(slot.value for slot in EquipmentSlot)


class AttributeEngine:
    """
    Coordinates every modifier source into a character's combat stats.

    Collaborators (catalogs, ownership registry, movement port) are injected so
    nothing here relies on global state.
    """

    def __init__(
        self,
        item_catalog: ItemCatalog | None = None,
        buff_catalog: BuffCatalog | None = None,
        job_catalog: JobCatalog | None = None,
        passive_catalog: PassiveSkillCatalog | None = None,
        instance_store: ItemInstanceStore | None = None,
        ownership: OwnershipRegistry | None = None,
        movement_port: MovementLockPort | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the attribute engine."""
        self.settings = settings if settings is not None else get_settings()
        self.item_catalog = item_catalog if item_catalog is not None else ItemCatalog()
        self.buff_catalog = buff_catalog if buff_catalog is not None else BuffCatalog()
        self.job_catalog = job_catalog if job_catalog is not None else JobCatalog()
        self.instance_store = (
            instance_store if instance_store is not None else ItemInstanceStore(self.item_catalog)
        )
        self.ownership = ownership if ownership is not None else OwnershipRegistry()

        self.equipment_resolver = EquipmentModifierResolver(self.item_catalog, self.instance_store)
        self.buff_resolver = BuffEffectResolver(self.buff_catalog, movement_port)
        self.passive_hook = PassiveSkillHook(passive_catalog)

        self._recomputing: set[str] = set()

    @classmethod
    def from_data_dir(cls, settings: Settings | None = None, **kwargs) -> "AttributeEngine":
        """
        Build an engine from the catalog YAML files in ``settings.data_dir``.

        Missing optional catalogs (jobs, passive skills) are treated as empty.

        Raises:
            CatalogLoadError: If the item or buff catalog cannot be read
            CatalogValidationError: If any catalog entry is invalid
        """
        settings = settings if settings is not None else get_settings()
        jobs = (
            JobCatalog.load(settings.jobs_file) if settings.jobs_file.exists() else JobCatalog()
        )
        passives = (
            PassiveSkillCatalog.load(settings.passive_skills_file)
            if settings.passive_skills_file.exists()
            else PassiveSkillCatalog()
        )
        return cls(
            item_catalog=ItemCatalog.load(settings.items_file),
            buff_catalog=BuffCatalog.load(settings.buffs_file),
            job_catalog=jobs,
            passive_catalog=passives,
            settings=settings,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Character lifecycle
    # ------------------------------------------------------------------

    def create_character(
        self,
        name: str,
        *,
        strength: float = 10,
        agility: float = 10,
        wisdom: float = 10,
        skill: float = 10,
        level: int = 1,
        job_id: str | None = None,
        passive_skill_id: str | None = None,
        passive_skill_level: int = 1,
        character_id: str | None = None,
    ) -> Character:
        """
        Create a character with computed stats and full pools.

        A starting job folds its primary bonus into the base attributes, the
        same as a later job change would.
        """
        kwargs = {"id": character_id} if character_id else {}
        character = Character(
            name=name,
            strength=strength,
            agility=agility,
            wisdom=wisdom,
            skill=skill,
            level=level,
            passive_skill_id=passive_skill_id,
            passive_skill_level=passive_skill_level,
            hunger=HungerState(
                current=self.settings.max_hunger, maximum=self.settings.max_hunger
            ),
            **kwargs,
        )

        if job_id is not None:
            job = self.job_catalog.get_job(job_id)
            if job is None:
                logger.warning("starting_job_unresolved", character_id=character.id, job_id=job_id)
            else:
                primary, _ = split_job_bonus(job)
                shift_base_primaries(character, primary, 1)
                character.job_id = job_id

        self.recompute(character)
        character.current_hp = character.max_hp
        character.current_mp = character.max_mp

        logger.info("character_created", character_id=character.id, name=name, job_id=character.job_id)
        return character

    # ------------------------------------------------------------------
    # Recompute pipeline
    # ------------------------------------------------------------------

    def recompute(self, character: Character) -> None:
        """
        Regenerate every computed field of a character from its inputs.

        Idempotent: calling it again with no intervening mutation yields the
        same values. A nested call for the same character (e.g. from the
        passive hook) is refused and logged.
        """
        if character.id in self._recomputing:
            logger.error("recompute_reentered", character_id=character.id)
            return

        self._recomputing.add(character.id)
        try:
            self._run_pipeline(character)
        finally:
            self._recomputing.discard(character.id)

    def _run_pipeline(self, character: Character) -> None:
        # 1. Experience rate is a baseline, never accumulated
        set_stat(character, AttributeKey.EXP_RATE, self.settings.base_exp_rate)

        # 2. Effective primaries
        equipment = self.equipment_resolver.collect(character)
        base = character.base_primaries()
        effective = {key: base[key] + equipment.get(key, 0.0) for key in PRIMARY_ATTRIBUTES}

        # 3. Formula-derived secondaries
        for key, value in calculate_derived_stats(effective).items():
            set_stat(character, key, value)

        # 4. Equipment and job secondary deltas
        layered = {
            key: value for key, value in equipment.items() if key not in PRIMARY_ATTRIBUTES
        }
        for key, value in self._job_layered_bonus(character).items():
            layered[key] = layered.get(key, 0.0) + value

        for key, value in layered.items():
            if key in POOL_ATTRIBUTES:
                continue
            apply_stat_bonus(character, key, value)

        # 5. Pools
        set_stat(
            character,
            AttributeKey.MAX_HP,
            calculate_max_hp(effective, character.level) + layered.get(AttributeKey.MAX_HP, 0.0),
        )
        set_stat(
            character,
            AttributeKey.MAX_MP,
            calculate_max_mp() + layered.get(AttributeKey.MAX_MP, 0.0),
        )

        # 6. Passive skill
        self.passive_hook.apply(character)

        # 7. Buffs
        self.buff_resolver.apply_effects(character)

        # 8. Clamp pools
        character.current_hp = min(max(0.0, character.current_hp), character.max_hp)
        character.current_mp = min(max(0.0, character.current_mp), character.max_mp)

        logger.debug(
            "character_recomputed",
            character_id=character.id,
            attack=character.attack,
            defense=character.defense,
            move_speed=character.move_speed,
            max_hp=character.max_hp,
            max_mp=character.max_mp,
        )

    def snapshot(self, character: Character) -> dict[str, float]:
        """Get the computed attribute snapshot consumers read (panels, combat)."""
        return character.stat_snapshot()

    def _job_layered_bonus(self, character: Character) -> dict[AttributeKey, float]:
        if character.job_id is None:
            return {}
        job = self.job_catalog.get_job(character.job_id)
        if job is None:
            logger.warning("job_unresolved", character_id=character.id, job_id=character.job_id)
            return {}
        _, layered = split_job_bonus(job)
        return layered

    # ------------------------------------------------------------------
    # Equipment
    # ------------------------------------------------------------------

    def equip(
        self, character: Character, slot: EquipmentSlot | str, item_ref: str | None
    ) -> bool:
        """
        Put an item reference into a slot (or clear it with None).

        Args:
            character: Character to equip
            slot: Target slot
            item_ref: Item instance or template ID, or None to unequip

        Returns:
            True if the slot now holds ``item_ref``; False if the slot is
            invalid, the item is unknown, does not fit the slot or is worn by
            another character (nothing is changed)
        """
        try:
            target_slot = EquipmentSlot(slot)
        except ValueError:
            logger.warning("equip_invalid_slot", character_id=character.id, slot=str(slot))
            return False

        if item_ref is not None:
            if not self._fits_slot(character, target_slot, item_ref):
                return False

            owner = self.ownership.get_owner(item_ref)
            if owner is not None and owner != character.id:
                logger.warning(
                    "equip_ownership_conflict",
                    character_id=character.id,
                    item_ref=item_ref,
                    owner_id=owner,
                )
                return False

        previous = character.equipment.get(target_slot)
        if previous is not None and previous != item_ref:
            self.ownership.release(previous, character.id)

        character.equipment[target_slot] = item_ref
        if item_ref is not None:
            self.ownership.set_owner(item_ref, character.id)

        logger.info(
            "equipment_changed",
            character_id=character.id,
            slot=target_slot.value,
            previous_item=previous,
            new_item=item_ref,
        )
        self.recompute(character)
        return True

    def _fits_slot(self, character: Character, slot: EquipmentSlot, item_ref: str) -> bool:
        resolved = self.instance_store.resolve(item_ref)
        item = self.item_catalog.get_item(resolved.item_id) if resolved is not None else None
        if item is None:
            logger.warning("equip_item_unresolved", character_id=character.id, item_ref=item_ref)
            return False

        # Items without an explicit slot fall back to their category
        item_slot = item.equipment_slot or item.type
        if item_slot not in EQUIPMENT_SLOT_VALUES:
            logger.warning(
                "equip_not_equipment",
                character_id=character.id,
                item_ref=item_ref,
                item_type=item.type,
            )
            return False

        if item_slot != slot.value:
            logger.warning(
                "equip_slot_mismatch",
                character_id=character.id,
                item_ref=item_ref,
                slot=slot.value,
                item_slot=item_slot,
            )
            return False
        return True

    def unequip(self, character: Character, slot: EquipmentSlot | str) -> bool:
        """Clear a slot. Equivalent to ``equip(character, slot, None)``."""
        return self.equip(character, slot, None)

    def unequip_all(self, character: Character) -> None:
        """Clear every slot and recompute once."""
        for slot, item_ref in character.equipment.items():
            if item_ref is not None:
                self.ownership.release(item_ref, character.id)
                character.equipment[slot] = None
        self.recompute(character)

    # ------------------------------------------------------------------
    # Buffs
    # ------------------------------------------------------------------

    def apply_buff(self, character: Character, buff_id: str, duration: float | None = None) -> bool:
        """
        Apply a buff (or one more stack of it) and recompute.

        Returns:
            False if the buff ID is unknown (nothing changes)
        """
        if not self.buff_resolver.apply(character, buff_id, duration):
            return False
        self.recompute(character)
        return True

    def remove_buff(self, character: Character, buff_id: str) -> bool:
        """
        Remove a buff and recompute.

        Returns:
            False if the buff was not active
        """
        if not self.buff_resolver.remove(character, buff_id):
            return False
        self.recompute(character)
        return True

    def remove_all_buffs(self, character: Character) -> list[str]:
        """Remove every buff and recompute once."""
        removed = self.buff_resolver.remove_all(character)
        self.recompute(character)
        return removed

    def hunger_snapshot(self, character: Character) -> dict[AttributeKey, float] | None:
        """Get the pre-hunger values captured by the active snapshot debuff."""
        return self.buff_resolver.snapshot(character)

    # ------------------------------------------------------------------
    # Jobs and progression
    # ------------------------------------------------------------------

    def change_job(self, character: Character, job_id: str) -> bool:
        """
        Switch a character's job.

        The previous job's primary bonus is reversed on the base attributes
        before the new job's bonus is added.

        Returns:
            False if the job is unknown (nothing changes)
        """
        new_job = self.job_catalog.get_job(job_id)
        if new_job is None:
            logger.warning("job_change_unknown_job", character_id=character.id, job_id=job_id)
            return False

        previous_id = character.job_id
        if previous_id is not None:
            previous_job = self.job_catalog.get_job(previous_id)
            if previous_job is None:
                logger.warning(
                    "job_change_previous_unresolved",
                    character_id=character.id,
                    job_id=previous_id,
                )
            else:
                previous_primary, _ = split_job_bonus(previous_job)
                shift_base_primaries(character, previous_primary, -1)

        new_primary, _ = split_job_bonus(new_job)
        shift_base_primaries(character, new_primary, 1)
        character.job_id = job_id

        logger.info(
            "job_changed", character_id=character.id, previous_job=previous_id, new_job=job_id
        )
        self.recompute(character)
        return True

    def level_up(self, character: Character, rng: random.Random | None = None) -> dict[AttributeKey, int]:
        """
        Advance one level, growing base primaries by the job's growth rates.

        Returns:
            Gain per primary attribute
        """
        job = self.job_catalog.get_job(character.job_id) if character.job_id else None
        gains = roll_growth(job, rng)

        character.level += 1
        shift_base_primaries(character, {key: float(v) for key, v in gains.items()}, 1)

        logger.info(
            "character_level_up",
            character_id=character.id,
            new_level=character.level,
            gains={key.value: value for key, value in gains.items()},
        )
        self.recompute(character)
        return gains

    def add_experience(
        self, character: Character, amount: int, rng: random.Random | None = None
    ) -> int:
        """
        Award experience, levelling up as many times as it allows.

        Returns:
            Number of levels gained
        """
        if amount <= 0:
            return 0

        character.experience += amount
        levels_gained = 0
        while character.experience >= xp_to_next(character.level):
            character.experience -= xp_to_next(character.level)
            self.level_up(character, rng)
            levels_gained += 1

        return levels_gained

    # ------------------------------------------------------------------
    # Time
    # ------------------------------------------------------------------

    def tick(self, character: Character, delta_time: float) -> None:
        """
        Advance timers for one character.

        Counts down buff durations, removes expired buffs, decays satiety and
        applies or removes the hunger debuff on a threshold crossing. Any such
        change ends in a full recompute.
        """
        if delta_time <= 0:
            return

        had_buffs = bool(character.buffs)
        for buff_id in self.buff_resolver.tick(character, delta_time):
            self.buff_resolver.remove(character, buff_id)
            logger.info("buff_expired", character_id=character.id, buff_id=buff_id)

        crossing = hunger_rules.decay(
            character.hunger,
            self.settings.hunger_decay_per_second * delta_time,
            self.settings.hunger_threshold,
        )
        crossed = self._react_to_hunger(character, crossing)

        # The debuff holds for as long as the meter sits at or below the threshold
        hunger_id = self.settings.hunger_buff_id
        if (
            hunger_rules.is_hungry(character.hunger, self.settings.hunger_threshold)
            and not self.buff_resolver.has_buff(character, hunger_id)
        ) and self.buff_resolver.apply(character, hunger_id, duration=math.inf):
            logger.info("hunger_debuff_restored", character_id=character.id)
            crossed = True

        if had_buffs or crossed:
            self.recompute(character)

    def feed(self, character: Character, amount: float) -> None:
        """Restore satiety, lifting the hunger debuff if the meter recovers."""
        crossing = hunger_rules.restore(character.hunger, amount, self.settings.hunger_threshold)
        if self._react_to_hunger(character, crossing):
            self.recompute(character)

    def _react_to_hunger(self, character: Character, crossing: hunger_rules.HungerCrossing) -> bool:
        hunger_id = self.settings.hunger_buff_id
        if crossing is hunger_rules.HungerCrossing.BECAME_HUNGRY:
            logger.info("character_became_hungry", character_id=character.id)
            return self.buff_resolver.apply(character, hunger_id, duration=math.inf)
        if crossing is hunger_rules.HungerCrossing.BECAME_FED:
            logger.info("character_fed", character_id=character.id)
            return self.buff_resolver.remove(character, hunger_id)
        return False

    def set_time_of_day(self, time_of_day: str, characters: Iterable[Character]) -> list[Character]:
        """
        Change the time of day and recompute characters whose conditional
        passive bonuses flipped.

        Returns:
            The recomputed characters
        """
        changed = self.passive_hook.set_time_of_day(time_of_day, characters)
        for character in changed:
            self.recompute(character)
        logger.info("time_of_day_changed", time_of_day=time_of_day, recomputed=len(changed))
        return changed
