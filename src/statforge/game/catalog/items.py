"""
Item catalog for statforge.

Item templates describe a base item's stat data; item instances carry
per-copy crafted affixes. The equipment resolver reads both.
"""

from dataclasses import dataclass, field
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .loader import Catalog

logger = structlog.get_logger(__name__)


class StatLine(BaseModel):
    """
    A structured main or sub stat on an item.

    Values are kept loose here; the equipment resolver validates and skips
    malformed lines at resolve time so one bad line never hides the others.
    """

    model_config = ConfigDict(extra="allow")

    attribute: str | None = Field(default=None, description="Attribute key, e.g. 'attack'")
    value: Any = Field(default=None, description="Numeric bonus")
    type: str = Field(default="flat", description="'flat' or 'percentage'")


class AppliedAffix(BaseModel):
    """
    A crafted affix rolled onto an item.

    Attributes:
        type: Attribute key the affix modifies
        value: Bonus amount
        rarity: Display-only rarity tier
        display_name: Display label, e.g. '普通钻研'
        is_percentage: Display-only percentage flag
    """

    model_config = ConfigDict(extra="allow")

    type: str | None = Field(default=None, description="Attribute key")
    value: Any = Field(default=None, description="Bonus amount")
    rarity: str = Field(default="common", description="Display-only rarity")
    display_name: str = Field(default="", description="Display label")
    is_percentage: bool = Field(default=False, description="Display-only percentage flag")


def _as_affix_list(value: Any) -> Any:
    if value is None:
        return []
    if isinstance(value, (dict, AppliedAffix)):
        return [value]
    return value


class ItemTemplate(BaseModel):
    """
    Item definition loaded from YAML data.

    Attributes:
        id: Unique item identifier
        name: Display name
        type: Item category (weapon, armor, accessory, ...)
        equipment_slot: Slot the item fits, if equippable
        rarity: Rarity tier
        effects: Free-text delta expression, e.g. '攻击力+5,力量+2'
        main_attribute: Primary attribute the item is themed around (display only)
        main_stat: Structured main stat
        sub_stats: Structured sub stats
        affixes: Affixes baked into the template
    """

    model_config = ConfigDict(extra="allow")

    id: str = Field(..., description="Unique item identifier")
    name: str = Field(..., description="Display name")
    type: str = Field(default="misc", description="Item category")
    equipment_slot: str | None = Field(default=None, description="Equipment slot")
    rarity: str = Field(default="common", description="Rarity tier")
    effects: str | None = Field(default=None, description="Free-text delta expression")
    main_attribute: str | None = Field(default=None, description="Themed attribute")
    main_stat: StatLine | None = Field(default=None, description="Structured main stat")
    sub_stats: list[StatLine] = Field(default_factory=list, description="Structured sub stats")
    affixes: list[AppliedAffix] = Field(default_factory=list, description="Template affixes")

    @field_validator("affixes", mode="before")
    @classmethod
    def normalize_affixes(cls, value: Any) -> Any:
        """Accept a single affix mapping or null in place of a list."""
        return _as_affix_list(value)

    @field_validator("sub_stats", mode="before")
    @classmethod
    def normalize_sub_stats(cls, value: Any) -> Any:
        """Accept null in place of an empty list."""
        if value is None:
            return []
        return value


class ItemCatalog(Catalog[ItemTemplate]):
    """Lookup of item templates by item ID."""

    root_key = "items"
    template = ItemTemplate

    def get_item(self, item_id: str | None) -> ItemTemplate | None:
        """Get an item template by ID."""
        return self.get(item_id)


class ItemInstance(BaseModel):
    """
    A concrete copy of an item, possibly with crafted affixes.

    Attributes:
        instance_id: Unique instance identifier
        item_id: Template ID of the base item
        applied_affix: Crafted affixes on this copy
    """

    instance_id: str = Field(..., description="Unique instance identifier")
    item_id: str = Field(..., description="Base item template ID")
    applied_affix: list[AppliedAffix] = Field(default_factory=list, description="Crafted affixes")

    @field_validator("applied_affix", mode="before")
    @classmethod
    def normalize_applied_affix(cls, value: Any) -> Any:
        """Accept a single affix mapping or null in place of a list."""
        return _as_affix_list(value)


@dataclass(frozen=True)
class ResolvedItem:
    """An equipped reference resolved back to its base item and instance affixes."""

    item_id: str
    applied_affix: list[AppliedAffix] = field(default_factory=list)


class ItemInstanceStore:
    """
    Registry of item instances.

    Equipment slots hold either an instance ID or a bare item ID; ``resolve``
    maps both back to a base item plus any instance-level affixes.
    """

    def __init__(self, item_catalog: ItemCatalog | None = None) -> None:
        self._catalog = item_catalog
        self._instances: dict[str, ItemInstance] = {}

    def add(self, instance: ItemInstance) -> None:
        """Register an item instance."""
        self._instances[instance.instance_id] = instance

    def create(
        self, instance_id: str, item_id: str, applied_affix: list[dict[str, Any]] | None = None
    ) -> ItemInstance:
        """Create and register an item instance."""
        instance = ItemInstance(
            instance_id=instance_id, item_id=item_id, applied_affix=applied_affix or []
        )
        self.add(instance)
        return instance

    def remove(self, instance_id: str) -> bool:
        """Forget an item instance, e.g. after it was consumed or destroyed."""
        return self._instances.pop(instance_id, None) is not None

    def get(self, instance_id: str) -> ItemInstance | None:
        """Get a registered instance by ID."""
        return self._instances.get(instance_id)

    def resolve(self, ref: str | None) -> ResolvedItem | None:
        """
        Resolve an equipped reference.

        Args:
            ref: Instance ID or item template ID

        Returns:
            ResolvedItem, or None if the reference is unknown
        """
        if not ref:
            return None

        instance = self._instances.get(ref)
        if instance is not None:
            return ResolvedItem(item_id=instance.item_id, applied_affix=list(instance.applied_affix))

        if self._catalog is not None and ref in self._catalog:
            return ResolvedItem(item_id=ref)

        logger.debug("item_reference_unresolved", ref=ref)
        return None
