"""Inventory access for ingredient matching."""

from typing import Protocol
from uuid import UUID

from mealer.domain.matching import InventoryItemForMatch


class InventoryRepository(Protocol):
    """Read access to a user's inventory."""

    def list_available_items(
        self, user_id: UUID, limit: int
    ) -> list[InventoryItemForMatch]:
        """Return available inventory items prepared for matching."""
