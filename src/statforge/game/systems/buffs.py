"""Buff tracking and buff effect resolution for statforge.

Manages active buffs per character (stacking, durations, expiry) and layers
their effects onto a freshly recomputed character. Two special behaviours live
here:

- Snapshot debuffs (buffs flagged ``exclusive_snapshot_debuff``, e.g. hunger):
  the first time one becomes active the character's move speed, attack and
  regen values are snapshotted, then move speed and regen are forced to zero
  and attack is cut to a quarter. While one is active, moveSpeed effects from
  every other buff are skipped.
- Movement lock: buffs flagged ``disable_movement`` lock movement through the
  movement port while at least one of them is active.

The resolver never recomputes; the attribute engine calls ``apply_effects`` as
part of its pipeline after every mutation made here.
"""

from typing import TYPE_CHECKING, Protocol

import structlog

from statforge.game.catalog.buffs import BuffCatalog, BuffDefinition
from statforge.game.character.attributes import (
    ATTRIBUTE_FIELDS,
    PRIMARY_ATTRIBUTES,
    AttributeKey,
    get_stat,
    normalize_key,
    round_half_up,
    set_stat,
)
from statforge.game.character.model import ActiveBuff

if TYPE_CHECKING:
    from statforge.game.character.model import Character

logger = structlog.get_logger(__name__)

# Fields captured when a snapshot debuff first takes hold
SNAPSHOT_ATTRIBUTES: tuple[AttributeKey, ...] = (
    AttributeKey.MOVE_SPEED,
    AttributeKey.ATTACK,
    AttributeKey.HP_REGEN,
    AttributeKey.MP_REGEN,
)
SNAPSHOT_ATTACK_FACTOR = 0.25


class MovementLockPort(Protocol):
    """Receives movement lock notifications."""

    def set_movement(self, character_id: str, enabled: bool) -> None: ...


class BuffEffectResolver:
    """
    Tracks active buffs and computes their attribute deltas.

    Buff state lives on ``Character.buffs``; the resolver keeps only the
    per-character snapshot taken by snapshot debuffs and which characters it
    has told the movement port to lock.
    """

    def __init__(
        self, buff_catalog: BuffCatalog, movement_port: MovementLockPort | None = None
    ) -> None:
        self.buff_catalog = buff_catalog
        self.movement_port = movement_port
        self._snapshots: dict[str, dict[AttributeKey, float]] = {}
        self._movement_locked: set[str] = set()

    # ------------------------------------------------------------------
    # Buff bookkeeping
    # ------------------------------------------------------------------

    def apply(self, character: "Character", buff_id: str, duration: float | None = None) -> bool:
        """
        Add a buff or a stack of it.

        New buffs start at one stack. Re-applying a stackable buff adds a stack
        up to ``max_stacks``; any re-application refreshes the duration but
        never shortens what is left of it.

        Args:
            character: Target character
            buff_id: Buff definition ID
            duration: Override for the definition's default duration

        Returns:
            True if the buff is active afterwards, False if the ID is unknown
        """
        definition = self.buff_catalog.get_definition(buff_id)
        if definition is None:
            logger.warning("buff_unknown", character_id=character.id, buff_id=buff_id)
            return False

        buff_duration = definition.duration if duration is None else duration
        existing = character.buffs.get(buff_id)

        if existing is None:
            character.buffs[buff_id] = ActiveBuff(
                buff_id=buff_id, remaining_duration=buff_duration, stack_count=1
            )
            logger.info(
                "buff_applied",
                character_id=character.id,
                buff_id=buff_id,
                duration=buff_duration,
            )
        elif definition.stackable and existing.stack_count < definition.max_stacks:
            existing.stack_count += 1
            existing.remaining_duration = max(existing.remaining_duration, buff_duration)
            logger.info(
                "buff_stacked",
                character_id=character.id,
                buff_id=buff_id,
                stacks=existing.stack_count,
                max_stacks=definition.max_stacks,
            )
        else:
            existing.remaining_duration = max(existing.remaining_duration, buff_duration)
            if definition.stackable:
                logger.debug(
                    "buff_stack_capped",
                    character_id=character.id,
                    buff_id=buff_id,
                    max_stacks=definition.max_stacks,
                )
            else:
                logger.debug("buff_refreshed", character_id=character.id, buff_id=buff_id)

        self._sync_movement_lock(character)
        return True

    def remove(self, character: "Character", buff_id: str) -> bool:
        """
        Remove a buff and all of its stacks.

        Removing a snapshot debuff discards its snapshot; the engine then
        recomputes from base rather than restoring stored values.

        Returns:
            True if the buff was active
        """
        removed = character.buffs.pop(buff_id, None)
        if removed is None:
            return False

        definition = self.buff_catalog.get_definition(buff_id)
        if definition is not None and definition.exclusive_snapshot_debuff:
            if not self._snapshot_debuff_active(character):
                self._snapshots.pop(character.id, None)

        self._sync_movement_lock(character)
        logger.info(
            "buff_removed",
            character_id=character.id,
            buff_id=buff_id,
            stacks=removed.stack_count,
        )
        return True

    def remove_all(self, character: "Character") -> list[str]:
        """Remove every buff from a character, returning the removed IDs."""
        removed = list(character.buffs)
        character.buffs.clear()
        self._snapshots.pop(character.id, None)
        self._sync_movement_lock(character)
        if removed:
            logger.info("buffs_cleared", character_id=character.id, buff_ids=removed)
        return removed

    def tick(self, character: "Character", delta_time: float) -> list[str]:
        """
        Count down buff durations.

        Args:
            character: Character whose buffs to age
            delta_time: Elapsed seconds

        Returns:
            IDs of buffs whose duration ran out (not yet removed)
        """
        expired: list[str] = []
        for buff in character.buffs.values():
            buff.remaining_duration -= delta_time
            if buff.remaining_duration <= 0:
                expired.append(buff.buff_id)
        return expired

    def has_buff(self, character: "Character", buff_id: str) -> bool:
        """Check if a character has a specific buff."""
        return buff_id in character.buffs

    def snapshot(self, character: "Character") -> dict[AttributeKey, float] | None:
        """Get the values captured when the active snapshot debuff took hold."""
        snapshot = self._snapshots.get(character.id)
        return dict(snapshot) if snapshot is not None else None

    def is_movement_locked(self, character: "Character") -> bool:
        """Check whether any active buff disables movement."""
        return any(
            definition.disable_movement for _, definition in self._active_definitions(character)
        )

    # ------------------------------------------------------------------
    # Effect resolution
    # ------------------------------------------------------------------

    def effective_deltas(
        self, character: "Character", base_values: dict[AttributeKey, float]
    ) -> dict[AttributeKey, float]:
        """
        Compute the summed deltas of every active buff.

        Flat effects contribute ``value * stacks``; percentage effects contribute
        ``base * value / 100 * stacks`` where ``base`` is the pre-buff value.
        While a snapshot debuff is active, moveSpeed effects from other buffs
        are skipped entirely.

        Args:
            character: Character whose buffs to read
            base_values: Pre-buff field values keyed by attribute

        Returns:
            Total delta per attribute key
        """
        suppress_move_speed = self._snapshot_debuff_active(character)
        deltas: dict[AttributeKey, float] = {}

        for buff, definition in self._active_definitions(character):
            stacks = min(buff.stack_count, definition.max_stacks)
            for effect in definition.effects:
                key = normalize_key(effect.attribute)
                if key is None:
                    logger.warning(
                        "buff_effect_unknown_attribute",
                        buff_id=definition.id,
                        attribute=effect.attribute,
                    )
                    continue

                if (
                    suppress_move_speed
                    and key == AttributeKey.MOVE_SPEED
                    and not definition.exclusive_snapshot_debuff
                ):
                    logger.debug(
                        "buff_effect_suppressed",
                        character_id=character.id,
                        buff_id=definition.id,
                        attribute=key.value,
                    )
                    continue

                if effect.type == "percentage":
                    delta = base_values.get(key, 0.0) * effect.value / 100 * stacks
                else:
                    delta = effect.value * stacks
                deltas[key] = deltas.get(key, 0.0) + delta

        return deltas

    def apply_effects(self, character: "Character") -> None:
        """
        Layer active buff effects onto a freshly recomputed character.

        Must only be called on values produced by a full recompute; it is not
        safe to call twice without recomputing in between.
        """
        base_values = {key: get_stat(character, key) for key in ATTRIBUTE_FIELDS}
        for key, delta in self.effective_deltas(character, base_values).items():
            # Primary fields hold base values; writing there would persist across recomputes
            if key in PRIMARY_ATTRIBUTES:
                logger.warning(
                    "buff_effect_targets_primary", character_id=character.id, attribute=key.value
                )
                continue
            set_stat(character, key, base_values[key] + delta)

        if self._snapshot_debuff_active(character):
            if character.id not in self._snapshots:
                self._snapshots[character.id] = {
                    key: get_stat(character, key) for key in SNAPSHOT_ATTRIBUTES
                }
                logger.info(
                    "snapshot_debuff_engaged",
                    character_id=character.id,
                    snapshot={k.value: v for k, v in self._snapshots[character.id].items()},
                )
            set_stat(character, AttributeKey.MOVE_SPEED, 0)
            set_stat(
                character,
                AttributeKey.ATTACK,
                round_half_up(get_stat(character, AttributeKey.ATTACK) * SNAPSHOT_ATTACK_FACTOR),
            )
            set_stat(character, AttributeKey.HP_REGEN, 0)
            set_stat(character, AttributeKey.MP_REGEN, 0)
        else:
            self._snapshots.pop(character.id, None)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _active_definitions(self, character: "Character") -> list[tuple[ActiveBuff, BuffDefinition]]:
        pairs: list[tuple[ActiveBuff, BuffDefinition]] = []
        for buff in character.buffs.values():
            definition = self.buff_catalog.get_definition(buff.buff_id)
            if definition is None:
                logger.warning(
                    "active_buff_definition_missing",
                    character_id=character.id,
                    buff_id=buff.buff_id,
                )
                continue
            pairs.append((buff, definition))
        return pairs

    def _snapshot_debuff_active(self, character: "Character") -> bool:
        return any(
            definition.exclusive_snapshot_debuff
            for _, definition in self._active_definitions(character)
        )

    def _sync_movement_lock(self, character: "Character") -> None:
        locked = self.is_movement_locked(character)
        was_locked = character.id in self._movement_locked
        if locked == was_locked:
            return

        if locked:
            self._movement_locked.add(character.id)
        else:
            self._movement_locked.discard(character.id)

        logger.info("movement_lock_changed", character_id=character.id, locked=locked)
        if self.movement_port is not None:
            self.movement_port.set_movement(character.id, not locked)
