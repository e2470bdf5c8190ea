"""Tests for the passive skill hook."""

import pytest

from statforge.game.catalog import PassiveSkillCatalog
from statforge.game.character import Character
from statforge.game.systems.passives import PassiveSkillHook, level_multiplier


@pytest.fixture
def catalog():
    return PassiveSkillCatalog.from_dicts(
        [
            {
                "id": "sturdy",
                "name": "Sturdy",
                "effects": [{"type": "attribute_bonus", "attribute": "defense", "value": 5}],
            },
            {
                "id": "moonlit",
                "name": "Moonlit",
                "effects": [
                    {
                        "type": "conditional_bonus",
                        "attribute": "attack",
                        "value": 0.5,
                        "condition": {"type": "time_of_day", "value": "night"},
                    },
                    {
                        "type": "conditional_bonus",
                        "attribute": "critRate",
                        "value": 4,
                        "condition": {"type": "time_of_day", "value": "night"},
                    },
                ],
            },
            {
                "id": "mighty",
                "name": "Mighty",
                "effects": [{"type": "attribute_bonus", "attribute": "strength", "value": 5}],
            },
        ]
    )


def make_character(**kwargs):
    return Character(name="Test", attack=20, defense=21, crit_rate=10, **kwargs)


class TestLevelMultiplier:
    """Tests for passive skill level scaling."""

    def test_scaling(self):
        """Each level past the first adds 10%."""
        assert level_multiplier(1) == 1
        assert level_multiplier(2) == pytest.approx(1.1)
        assert level_multiplier(6) == pytest.approx(1.5)

    def test_floor(self):
        """Levels below 1 count as level 1."""
        assert level_multiplier(0) == 1


class TestPassiveSkillHook:
    """Tests for applying passive effects."""

    def test_flat_bonus(self, catalog):
        """Flat bonuses add to the current value."""
        character = make_character(passive_skill_id="sturdy")
        PassiveSkillHook(catalog).apply(character)
        assert character.defense == 26

    def test_callable(self, catalog):
        """The hook can be called directly."""
        character = make_character(passive_skill_id="sturdy", passive_skill_level=3)
        PassiveSkillHook(catalog)(character)
        assert character.defense == pytest.approx(21 + 5 * 1.2)

    def test_no_skill(self, catalog):
        """Characters without a skill are unchanged."""
        character = make_character()
        PassiveSkillHook(catalog).apply(character)
        assert character.defense == 21

    def test_primary_effects_skipped(self, catalog):
        """Effects on primaries never touch base attributes."""
        character = make_character(passive_skill_id="mighty")
        PassiveSkillHook(catalog).apply(character)
        assert character.strength == 10

    def test_conditional_off_during_day(self, catalog):
        """Night bonuses do nothing during the day."""
        character = make_character(passive_skill_id="moonlit")
        PassiveSkillHook(catalog, time_of_day="day").apply(character)

        assert character.attack == 20
        assert character.crit_rate == 10

    def test_conditional_on_at_night(self, catalog):
        """Night bonuses apply when created at night."""
        character = make_character(passive_skill_id="moonlit")
        PassiveSkillHook(catalog, time_of_day="night").apply(character)

        # Fractions of attack scale the current value; other keys stay flat
        assert character.attack == pytest.approx(30)
        assert character.crit_rate == 14

    def test_invalid_time_of_day(self, catalog):
        """Only day and night are accepted."""
        with pytest.raises(ValueError):
            PassiveSkillHook(catalog, time_of_day="noon")
        with pytest.raises(ValueError):
            PassiveSkillHook(catalog).set_time_of_day("noon", [])


class TestConditionalToggles:
    """Tests for explicit time-of-day toggles."""

    def test_toggles_registered(self, catalog):
        """Every conditional effect gets a toggle."""
        character = make_character(passive_skill_id="moonlit")
        hook = PassiveSkillHook(catalog)
        hook.apply(character)

        toggles = hook.toggles_for(character)
        assert {t.attribute for t in toggles} == {"attack", "critRate"}
        assert all(not t.applied for t in toggles)

    def test_set_time_flips_toggles(self, catalog):
        """Switching time flips toggles and reports changed characters."""
        owl = make_character(passive_skill_id="moonlit")
        plain = make_character(passive_skill_id="sturdy")
        hook = PassiveSkillHook(catalog)
        hook.apply(owl)
        hook.apply(plain)

        changed = hook.set_time_of_day("night", [owl, plain])

        assert changed == [owl]
        assert all(t.applied for t in hook.toggles_for(owl))

    def test_toggles_not_inferred_from_values(self, catalog):
        """Changing stats by hand never flips a toggle."""
        character = make_character(passive_skill_id="moonlit")
        hook = PassiveSkillHook(catalog)
        hook.apply(character)

        character.attack = 999
        hook.apply(character)

        assert all(not t.applied for t in hook.toggles_for(character))

    def test_toggles_dropped_with_skill(self, catalog):
        """Losing the skill drops its toggles."""
        character = make_character(passive_skill_id="moonlit")
        hook = PassiveSkillHook(catalog)
        hook.apply(character)

        character.passive_skill_id = None
        hook.apply(character)

        assert hook.toggles_for(character) == []

    def test_forget(self, catalog):
        """forget clears a character's toggles."""
        character = make_character(passive_skill_id="moonlit")
        hook = PassiveSkillHook(catalog)
        hook.apply(character)
        hook.forget(character)

        assert hook.toggles_for(character) == []
