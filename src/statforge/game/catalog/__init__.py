"""Catalog lookups - items, item instances, buffs, jobs, and passive skills."""

from .buffs import BuffCatalog, BuffDefinition, BuffEffect
from .items import (
    AppliedAffix,
    ItemCatalog,
    ItemInstance,
    ItemInstanceStore,
    ItemTemplate,
    ResolvedItem,
    StatLine,
)
from .jobs import JobCatalog, JobDefinition
from .loader import Catalog, CatalogLoadError, CatalogValidationError, load_yaml_file
from .passives import PassiveEffect, PassiveSkillCatalog, PassiveSkillDefinition, TimeCondition

__all__ = [
    "AppliedAffix",
    "BuffCatalog",
    "BuffDefinition",
    "BuffEffect",
    "Catalog",
    "CatalogLoadError",
    "CatalogValidationError",
    "ItemCatalog",
    "ItemInstance",
    "ItemInstanceStore",
    "ItemTemplate",
    "JobCatalog",
    "JobDefinition",
    "PassiveEffect",
    "PassiveSkillCatalog",
    "PassiveSkillDefinition",
    "ResolvedItem",
    "StatLine",
    "TimeCondition",
    "load_yaml_file",
]
