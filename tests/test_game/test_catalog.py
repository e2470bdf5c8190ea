"""Tests for catalog loading and validation."""

import pytest
import yaml

from statforge.game.catalog import (
    BuffCatalog,
    CatalogLoadError,
    CatalogValidationError,
    ItemCatalog,
    ItemInstanceStore,
    JobCatalog,
    PassiveSkillCatalog,
)


def write_yaml(path, data):
    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(data, f, allow_unicode=True)
    return path


class TestCatalogLoading:
    """Tests for loading catalogs from YAML files."""

    def test_load_items(self, tmp_path):
        """Items load and index by ID."""
        path = write_yaml(
            tmp_path / "items.yaml",
            {"items": [{"id": "sword", "name": "剑", "effects": "攻击力+5"}]},
        )

        catalog = ItemCatalog.load(path)

        assert len(catalog) == 1
        assert "sword" in catalog
        assert catalog.get_item("sword").effects == "攻击力+5"
        assert catalog.get_item("missing") is None
        assert catalog.get_item(None) is None

    def test_missing_file(self, tmp_path):
        """A missing file raises CatalogLoadError."""
        with pytest.raises(CatalogLoadError, match="File not found"):
            ItemCatalog.load(tmp_path / "nope.yaml")

    def test_empty_file(self, tmp_path):
        """An empty file raises CatalogLoadError."""
        path = tmp_path / "items.yaml"
        path.write_text("", encoding="utf-8")

        with pytest.raises(CatalogLoadError, match="Empty YAML file"):
            ItemCatalog.load(path)

    def test_wrong_root_key(self, tmp_path):
        """A file without the catalog's root key raises CatalogLoadError."""
        path = write_yaml(tmp_path / "buffs.yaml", {"items": []})

        with pytest.raises(CatalogLoadError, match="Missing 'buffs' key"):
            BuffCatalog.load(path)

    def test_root_not_a_list(self, tmp_path):
        """The root key must hold a list."""
        path = write_yaml(tmp_path / "jobs.yaml", {"jobs": {"id": "warrior"}})

        with pytest.raises(CatalogLoadError, match="must be a list"):
            JobCatalog.load(path)

    def test_invalid_yaml(self, tmp_path):
        """Unparseable YAML raises CatalogLoadError."""
        path = tmp_path / "items.yaml"
        path.write_text("items: [unclosed", encoding="utf-8")

        with pytest.raises(CatalogLoadError, match="YAML parsing error"):
            ItemCatalog.load(path)

    def test_duplicate_ids(self):
        """Duplicate IDs raise CatalogValidationError."""
        with pytest.raises(CatalogValidationError, match="Duplicate ID 'speed'"):
            BuffCatalog.from_dicts(
                [{"id": "speed", "name": "A"}, {"id": "speed", "name": "B"}]
            )

    def test_missing_id(self):
        """Entries without an ID are rejected."""
        with pytest.raises(CatalogValidationError, match="missing required field: id"):
            ItemCatalog.from_dicts([{"name": "Nameless"}])

    def test_invalid_entry(self):
        """Entries failing model validation are rejected."""
        with pytest.raises(CatalogValidationError, match="Invalid buffs entry 'broken'"):
            BuffCatalog.from_dicts([{"id": "broken", "name": "Broken", "duration": 0}])

    def test_shipped_catalogs_load(self, settings):
        """The bundled data files are valid."""
        assert len(ItemCatalog.load(settings.items_file)) > 0
        assert len(BuffCatalog.load(settings.buffs_file)) > 0
        assert len(JobCatalog.load(settings.jobs_file)) == 8
        assert len(PassiveSkillCatalog.load(settings.passive_skills_file)) > 0


class TestBuffDefinitions:
    """Tests for buff definition validation."""

    def test_defaults(self):
        """Unspecified fields take their defaults."""
        buff = BuffCatalog.from_dicts([{"id": "b", "name": "B"}]).get_definition("b")

        assert buff.duration == 30
        assert buff.stackable is False
        assert buff.max_stacks == 1
        assert buff.disable_movement is False
        assert buff.exclusive_snapshot_debuff is False
        assert buff.effects == []

    def test_non_stackable_forces_single_stack(self):
        """max_stacks is 1 unless the buff is stackable."""
        buff = BuffCatalog.from_dicts(
            [{"id": "b", "name": "B", "stackable": False, "max_stacks": 5}]
        ).get_definition("b")
        assert buff.max_stacks == 1

    def test_invalid_effect_type(self):
        """Effect types other than flat/percentage are rejected."""
        with pytest.raises(CatalogValidationError):
            BuffCatalog.from_dicts(
                [
                    {
                        "id": "b",
                        "name": "B",
                        "effects": [{"attribute": "attack", "value": 1, "type": "weird"}],
                    }
                ]
            )

    def test_hunger_flag(self, buff_catalog):
        """The shipped hunger buff is a snapshot debuff with no effects."""
        hunger = buff_catalog.get_definition("hunger")
        assert hunger.exclusive_snapshot_debuff is True
        assert hunger.effects == []


class TestItemTemplates:
    """Tests for item template parsing."""

    def test_single_affix_mapping(self):
        """A single affix mapping is accepted in place of a list."""
        catalog = ItemCatalog.from_dicts(
            [{"id": "ring", "name": "Ring", "affixes": {"type": "attack", "value": 2}}]
        )
        affixes = catalog.get_item("ring").affixes

        assert len(affixes) == 1
        assert affixes[0].type == "attack"

    def test_null_sub_stats(self):
        """Null sub_stats become an empty list."""
        catalog = ItemCatalog.from_dicts([{"id": "x", "name": "X", "sub_stats": None}])
        assert catalog.get_item("x").sub_stats == []

    def test_loose_stat_values_survive_loading(self):
        """Malformed stat values load; the equipment resolver skips them later."""
        catalog = ItemCatalog.from_dicts(
            [{"id": "x", "name": "X", "main_stat": {"attribute": "attack", "value": "lots"}}]
        )
        assert catalog.get_item("x").main_stat.value == "lots"


class TestItemInstanceStore:
    """Tests for resolving equipped references."""

    def test_resolve_instance(self, item_catalog):
        """Instance IDs resolve to their base item and affixes."""
        store = ItemInstanceStore(item_catalog)
        store.create("sword-1", "iron_sword", [{"type": "attack", "value": 4}])

        resolved = store.resolve("sword-1")

        assert resolved.item_id == "iron_sword"
        assert resolved.applied_affix[0].value == 4

    def test_resolve_bare_item_id(self, item_catalog):
        """Template IDs resolve with no affixes."""
        resolved = ItemInstanceStore(item_catalog).resolve("iron_sword")

        assert resolved.item_id == "iron_sword"
        assert resolved.applied_affix == []

    def test_resolve_unknown(self, item_catalog):
        """Unknown references resolve to None."""
        store = ItemInstanceStore(item_catalog)
        assert store.resolve("ghost") is None
        assert store.resolve(None) is None

    def test_remove(self, item_catalog):
        """Removed instances no longer resolve."""
        store = ItemInstanceStore(item_catalog)
        store.create("sword-1", "iron_sword")

        assert store.remove("sword-1") is True
        assert store.remove("sword-1") is False
        assert store.resolve("sword-1") is None


class TestPassiveSkillDefinitions:
    """Tests for passive skill validation."""

    def test_conditional_requires_condition(self):
        """Conditional bonuses without a condition are rejected."""
        with pytest.raises(CatalogValidationError):
            PassiveSkillCatalog.from_dicts(
                [
                    {
                        "id": "p",
                        "name": "P",
                        "effects": [
                            {"type": "conditional_bonus", "attribute": "attack", "value": 0.2}
                        ],
                    }
                ]
            )

    def test_invalid_time_of_day(self):
        """Only day and night are valid conditions."""
        with pytest.raises(CatalogValidationError):
            PassiveSkillCatalog.from_dicts(
                [
                    {
                        "id": "p",
                        "name": "P",
                        "effects": [
                            {
                                "type": "conditional_bonus",
                                "attribute": "attack",
                                "value": 0.2,
                                "condition": {"type": "time_of_day", "value": "dusk"},
                            }
                        ],
                    }
                ]
            )
