"""Item ownership tracking for statforge.

Tracks which character currently has each item instance equipped so one copy
can never be worn by two characters at once.
"""

import structlog

logger = structlog.get_logger(__name__)


class OwnershipRegistry:
    """Maps equipped item references to the character wearing them."""

    def __init__(self) -> None:
        self._owners: dict[str, str] = {}

    def get_owner(self, item_ref: str) -> str | None:
        """Get the ID of the character wearing an item, if any."""
        return self._owners.get(item_ref)

    def set_owner(self, item_ref: str, character_id: str) -> None:
        """Record that a character now wears an item."""
        previous = self._owners.get(item_ref)
        if previous is not None and previous != character_id:
            logger.warning(
                "ownership_overwritten",
                item_ref=item_ref,
                previous_owner=previous,
                new_owner=character_id,
            )
        self._owners[item_ref] = character_id

    def release(self, item_ref: str, character_id: str | None = None) -> bool:
        """
        Release an item.

        Args:
            item_ref: Equipped item reference
            character_id: If given, only release when this character owns the item

        Returns:
            True if an ownership record was removed
        """
        owner = self._owners.get(item_ref)
        if owner is None:
            return False
        if character_id is not None and owner != character_id:
            return False
        del self._owners[item_ref]
        return True

    def owned_by(self, character_id: str) -> list[str]:
        """Get every item reference a character wears."""
        return [ref for ref, owner in self._owners.items() if owner == character_id]

    def is_available(self, item_ref: str, character_id: str) -> bool:
        """Check whether a character may equip an item."""
        owner = self._owners.get(item_ref)
        return owner is None or owner == character_id

    def __len__(self) -> int:
        return len(self._owners)
