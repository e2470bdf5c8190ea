"""Tests for runtime character state."""

from statforge.game.character import Character, EquipmentSlot, HungerState
from statforge.game.character.attributes import AttributeKey


class TestCharacter:
    """Tests for the Character dataclass."""

    def test_defaults(self):
        """New characters have primaries of 10 and empty slots."""
        character = Character(name="Kvothe")

        assert character.base_primaries() == {
            AttributeKey.STRENGTH: 10,
            AttributeKey.AGILITY: 10,
            AttributeKey.WISDOM: 10,
            AttributeKey.SKILL: 10,
        }
        assert character.equipment == {slot: None for slot in EquipmentSlot}
        assert character.buffs == {}
        assert character.level == 1

    def test_unique_ids(self):
        """Every character gets its own ID."""
        assert Character(name="A").id != Character(name="B").id

    def test_stat_snapshot_excludes_primaries(self):
        """The snapshot holds computed fields and current pools only."""
        snapshot = Character(name="Test").stat_snapshot()

        assert "strength" not in snapshot
        assert "attack" in snapshot
        assert "move_speed" in snapshot
        assert "max_hp" in snapshot
        assert "current_hp" in snapshot
        assert "current_mp" in snapshot

    def test_repr(self):
        """repr shows name and level."""
        character = Character(name="Denna", id="c-1")
        assert repr(character) == "<Character(id=c-1, name='Denna', level=1)>"


class TestHungerState:
    """Tests for the satiety meter."""

    def test_clamped_on_creation(self):
        """Out-of-range values are clamped."""
        state = HungerState(current=150, maximum=100)
        assert state.current == 100

        state = HungerState(current=-5, maximum=0)
        assert state.maximum == 1
        assert state.current == 0

    def test_set_current_clamps(self):
        """Current satiety stays within [0, maximum]."""
        state = HungerState(current=50, maximum=100)
        state.set_current(120)
        assert state.current == 100
        state.set_current(-1)
        assert state.current == 0

    def test_shrinking_maximum_reclamps_current(self):
        """Lowering capacity pulls current down with it."""
        state = HungerState(current=80, maximum=100)
        state.set_maximum(60)
        assert state.current == 60

    def test_ratio(self):
        """Ratio is current over maximum."""
        assert HungerState(current=25, maximum=100).ratio == 0.25
