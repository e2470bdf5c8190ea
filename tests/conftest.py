"""Shared fixtures for all tests."""

from pathlib import Path

import pytest

from statforge.config import Settings, get_settings
from statforge.game.catalog import (
    BuffCatalog,
    ItemCatalog,
    ItemInstanceStore,
    JobCatalog,
    PassiveSkillCatalog,
)
from statforge.game.engine import AttributeEngine
from statforge.game.systems.ownership import OwnershipRegistry

DATA_DIR = Path(__file__).resolve().parent.parent / "data" / "catalog"


class RecordingMovementPort:
    """Movement port that records every notification."""

    def __init__(self):
        self.calls: list[tuple[str, bool]] = []

    def set_movement(self, character_id: str, enabled: bool) -> None:
        self.calls.append((character_id, enabled))


class FixedChoice:
    """Random source whose ``choice`` always returns the same value."""

    def __init__(self, value: int = 0):
        self.value = value

    def choice(self, seq):
        return self.value


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Make every test read fresh settings."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings():
    """Settings pointing at the shipped catalog data."""
    return Settings(data_dir=DATA_DIR)


@pytest.fixture
def item_catalog():
    return ItemCatalog.load(DATA_DIR / "items.yaml")


@pytest.fixture
def buff_catalog():
    return BuffCatalog.load(DATA_DIR / "buffs.yaml")


@pytest.fixture
def job_catalog():
    return JobCatalog.load(DATA_DIR / "jobs.yaml")


@pytest.fixture
def passive_catalog():
    return PassiveSkillCatalog.load(DATA_DIR / "passive_skills.yaml")


@pytest.fixture
def instance_store(item_catalog):
    return ItemInstanceStore(item_catalog)


@pytest.fixture
def ownership():
    return OwnershipRegistry()


@pytest.fixture
def movement_port():
    return RecordingMovementPort()


@pytest.fixture
def engine(
    settings,
    item_catalog,
    buff_catalog,
    job_catalog,
    passive_catalog,
    instance_store,
    ownership,
    movement_port,
):
    """Attribute engine wired to the shipped catalogs."""
    return AttributeEngine(
        item_catalog=item_catalog,
        buff_catalog=buff_catalog,
        job_catalog=job_catalog,
        passive_catalog=passive_catalog,
        instance_store=instance_store,
        ownership=ownership,
        movement_port=movement_port,
        settings=settings,
    )


@pytest.fixture
def hero(engine):
    """Level 1 character with every primary at 10 and nothing equipped."""
    return engine.create_character("Hero")


@pytest.fixture
def steady_rng():
    """Random source that never jitters level-up growth."""
    return FixedChoice(0)
