"""Equipment modifier resolution for statforge.

Turns one equipped item's stat data into a flat list of attribute deltas. Items
can describe their stats three ways, and every shape present is summed:

- a free-text delta expression such as "攻击力+5,力量+2"
- a structured main stat plus sub stats
- crafted affixes, from the template and from the equipped instance

Every value is reported as a flat addend regardless of a line's declared
``type``; percentage lines are not scaled.
"""

import math
import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog

from statforge.game.catalog.items import (
    AppliedAffix,
    ItemCatalog,
    ItemInstanceStore,
    ItemTemplate,
    StatLine,
)
from statforge.game.character.attributes import AttributeKey, normalize_key

if TYPE_CHECKING:
    from statforge.game.character.model import Character

logger = structlog.get_logger(__name__)

# Token separators: ASCII and full-width commas
TOKEN_SEPARATOR = re.compile(r"[,，]")
DELTA_TOKEN = re.compile(
    r"^\s*(?P<name>.+?)\s*(?P<sign>[+-])\s*(?P<number>\d+(?:\.\d+)?)\s*(?P<percent>%)?\s*$"
)

VALID_STAT_TYPES = ("flat", "percentage")

SOURCE_DELTA_STRING = "delta_string"
SOURCE_MAIN_STAT = "main_stat"
SOURCE_SUB_STAT = "sub_stat"
SOURCE_AFFIX = "affix"


@dataclass(frozen=True)
class EquipmentModifier:
    """
    One attribute delta contributed by an equipped item.

    Attributes:
        attribute_key: Attribute the delta applies to
        value: Signed flat amount
        source: Which item shape produced it
        is_percentage: Whether the data declared a percentage (informational)
    """

    attribute_key: AttributeKey
    value: float
    source: str
    is_percentage: bool = False


def parse_delta_string(text: str | None, item_name: str = "Unknown") -> list[EquipmentModifier]:
    """
    Parse a free-text delta expression.

    Tokens look like ``<name><+|-><number>[%]`` separated by commas. Names are
    looked up in the display-name table (canonical keys also work). Unknown names
    and malformed tokens are dropped.

    Args:
        text: Delta expression, e.g. "攻击力+5,力量+2,移动速度-3%"
        item_name: Item name for log context

    Returns:
        Parsed modifiers in token order

    Examples:
        >>> [(m.attribute_key.value, m.value) for m in parse_delta_string("攻击力+5,力量+2")]
        [('attack', 5.0), ('strength', 2.0)]
    """
    if not text:
        return []

    modifiers: list[EquipmentModifier] = []
    for raw_token in TOKEN_SEPARATOR.split(text):
        token = raw_token.strip()
        if not token:
            continue

        match = DELTA_TOKEN.match(token)
        if match is None:
            logger.warning("delta_token_malformed", item=item_name, token=token)
            continue

        key = normalize_key(match.group("name"))
        if key is None:
            logger.warning("delta_token_unknown_attribute", item=item_name, token=token)
            continue

        value = float(match.group("number"))
        if match.group("sign") == "-":
            value = -value

        modifiers.append(
            EquipmentModifier(
                attribute_key=key,
                value=value,
                source=SOURCE_DELTA_STRING,
                is_percentage=match.group("percent") is not None,
            )
        )

    return modifiers


def _valid_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def resolve_stat_line(
    line: StatLine | None, source: str, item_name: str = "Unknown"
) -> EquipmentModifier | None:
    """
    Convert a structured main/sub stat into a modifier.

    Lines with a missing or unknown attribute, a non-numeric, non-finite or
    negative value, or a type other than flat/percentage are skipped.
    """
    if line is None:
        return None

    if not line.attribute:
        logger.warning("stat_line_missing_attribute", item=item_name, source=source)
        return None

    if not _valid_number(line.value):
        logger.warning(
            "stat_line_invalid_value",
            item=item_name,
            source=source,
            attribute=line.attribute,
            value=repr(line.value),
        )
        return None

    if line.value < 0:
        logger.warning(
            "stat_line_negative_value",
            item=item_name,
            source=source,
            attribute=line.attribute,
            value=line.value,
        )
        return None

    if line.type not in VALID_STAT_TYPES:
        logger.warning(
            "stat_line_invalid_type",
            item=item_name,
            source=source,
            attribute=line.attribute,
            stat_type=line.type,
        )
        return None

    key = normalize_key(line.attribute)
    if key is None:
        logger.warning(
            "stat_line_unknown_attribute", item=item_name, source=source, attribute=line.attribute
        )
        return None

    return EquipmentModifier(
        attribute_key=key,
        value=float(line.value),
        source=source,
        is_percentage=line.type == "percentage",
    )


def resolve_affix(affix: AppliedAffix, item_name: str = "Unknown") -> EquipmentModifier | None:
    """Convert a crafted affix into a modifier. Rarity is ignored."""
    key = normalize_key(affix.type)
    if key is None:
        logger.warning("affix_unknown_attribute", item=item_name, attribute=affix.type)
        return None

    if not _valid_number(affix.value):
        logger.warning(
            "affix_invalid_value", item=item_name, attribute=key.value, value=repr(affix.value)
        )
        return None

    return EquipmentModifier(
        attribute_key=key,
        value=float(affix.value),
        source=SOURCE_AFFIX,
        is_percentage=affix.is_percentage,
    )


def sum_modifiers(modifiers: Iterable[EquipmentModifier]) -> dict[AttributeKey, float]:
    """Sum modifiers per attribute key."""
    totals: dict[AttributeKey, float] = {}
    for modifier in modifiers:
        totals[modifier.attribute_key] = totals.get(modifier.attribute_key, 0.0) + modifier.value
    return totals


class EquipmentModifierResolver:
    """
    Resolves equipped item references into attribute deltas.

    The resolver is a pure transform over catalog data: it never touches the
    character's computed fields.
    """

    def __init__(
        self, item_catalog: ItemCatalog, instance_store: ItemInstanceStore | None = None
    ) -> None:
        self.item_catalog = item_catalog
        self.instance_store = (
            instance_store if instance_store is not None else ItemInstanceStore(item_catalog)
        )

    def resolve_template(
        self, item: ItemTemplate, instance_affixes: Iterable[AppliedAffix] = ()
    ) -> list[EquipmentModifier]:
        """
        Collect every modifier an item template (plus instance affixes) provides.

        Args:
            item: Item template
            instance_affixes: Affixes crafted onto the equipped copy

        Returns:
            Modifiers from every present shape, in shape order
        """
        name = item.name or item.id
        modifiers: list[EquipmentModifier] = list(parse_delta_string(item.effects, name))

        main = resolve_stat_line(item.main_stat, SOURCE_MAIN_STAT, name)
        if main is not None:
            modifiers.append(main)

        for line in item.sub_stats:
            sub = resolve_stat_line(line, SOURCE_SUB_STAT, name)
            if sub is not None:
                modifiers.append(sub)

        for affix in [*item.affixes, *instance_affixes]:
            resolved = resolve_affix(affix, name)
            if resolved is not None:
                modifiers.append(resolved)

        if not modifiers:
            logger.debug("item_provides_no_bonuses", item=name)

        return modifiers

    def resolve(self, item_ref: str | None) -> list[EquipmentModifier]:
        """
        Resolve one equipped reference into modifiers.

        Unresolvable references contribute nothing.

        Args:
            item_ref: Instance ID or item template ID

        Returns:
            List of modifiers (empty if the reference cannot be resolved)
        """
        if not item_ref:
            return []

        resolved = self.instance_store.resolve(item_ref)
        if resolved is None:
            logger.warning("equipped_item_unresolved", item_ref=item_ref)
            return []

        item = self.item_catalog.get_item(resolved.item_id)
        if item is None:
            logger.warning(
                "equipped_item_definition_missing", item_ref=item_ref, item_id=resolved.item_id
            )
            return []

        return self.resolve_template(item, resolved.applied_affix)

    def collect(self, character: "Character") -> dict[AttributeKey, float]:
        """
        Sum modifiers from every equipped slot of a character.

        Args:
            character: Character whose equipment to read

        Returns:
            Total delta per attribute key
        """
        modifiers: list[EquipmentModifier] = []
        for slot, item_ref in character.equipment.items():
            if item_ref is None:
                continue
            slot_modifiers = self.resolve(item_ref)
            if not slot_modifiers:
                logger.debug(
                    "slot_contributes_nothing",
                    character_id=character.id,
                    slot=slot.value,
                    item_ref=item_ref,
                )
            modifiers.extend(slot_modifiers)
        return sum_modifiers(modifiers)
