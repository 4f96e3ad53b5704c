"""Supabase repository for inventory items used in matching."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from mealer.domain.matching import InventoryItemForMatch
from mealer.services.inventory import InventoryRepository

_SELECT = (
    "id, custom_name, quantity, is_available, "
    "product:product_catalog(name_pl), unit:units(name_pl, abbreviation)"
)


@dataclass
class SupabaseInventoryRepository(InventoryRepository):
    """Supabase implementation reading the inventory_items table."""

    client: Client

    def list_available_items(
        self, user_id: UUID, limit: int
    ) -> list[InventoryItemForMatch]:
        """Return available inventory items, newest first."""
        response = (
            self.client.table("inventory_items")
            .select(_SELECT)
            .eq("user_id", str(user_id))
            .eq("is_available", True)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [_parse_item(row) for row in response.data or []]


def _parse_item(row: dict[str, object]) -> InventoryItemForMatch:
    """Flatten an inventory row with its product and unit joins."""
    product = row.get("product") if isinstance(row.get("product"), dict) else {}
    unit = row.get("unit") if isinstance(row.get("unit"), dict) else None
    quantity = row.get("quantity")
    return InventoryItemForMatch(
        id=UUID(str(row["id"])),
        name=_display_name(row.get("custom_name"), product.get("name_pl")),
        quantity=float(quantity) if quantity is not None else None,
        unit=_unit_label(unit),
        is_available=bool(row.get("is_available", True)),
    )


def _display_name(custom_name: object, product_name: object) -> str:
    if isinstance(custom_name, str):
        return custom_name
    if isinstance(product_name, str):
        return product_name
    return "Unknown"


def _unit_label(unit: dict[str, object] | None) -> str | None:
    if unit is None:
        return None
    abbreviation = unit.get("abbreviation")
    if isinstance(abbreviation, str):
        return abbreviation
    name = unit.get("name_pl")
    return name if isinstance(name, str) else None
