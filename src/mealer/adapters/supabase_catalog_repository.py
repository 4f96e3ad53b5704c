"""Supabase repository for product catalog and unit lookups."""

from dataclasses import dataclass

from supabase import Client

from mealer.domain.receipts import CatalogProduct, UnitBrief
from mealer.services.catalog import ProductCatalogRepository

_UNIT_COLUMNS = "id, name_pl, abbreviation"
_FULL_TEXT_OPTIONS = {"type": "web_search", "config": "polish"}
# Characters with meaning in PostgREST filter strings.
_RESERVED = str.maketrans("", "", "%*,()")


@dataclass
class SupabaseProductCatalogRepository(ProductCatalogRepository):
    """Supabase implementation for the product_catalog and units tables."""

    client: Client

    def find_product_full_text(self, name: str) -> CatalogProduct | None:
        """Search the Polish full-text index of product names."""
        response = (
            self.client.table("product_catalog")
            .select("id, name_pl")
            .text_search("search_vector", name, options=_FULL_TEXT_OPTIONS)
            .limit(1)
            .execute()
        )
        return _first_product(response.data)

    def find_product_by_pattern(self, name: str) -> CatalogProduct | None:
        """Return the first product whose name contains the text."""
        term = _pattern_term(name)
        if not term:
            return None
        response = (
            self.client.table("product_catalog")
            .select("id, name_pl")
            .ilike("name_pl", f"%{term}%")
            .limit(1)
            .execute()
        )
        return _first_product(response.data)

    def get_default_unit(self, product_id: int) -> UnitBrief | None:
        """Return the product's default unit, if set."""
        response = (
            self.client.table("product_catalog")
            .select("default_unit_id")
            .eq("id", product_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        unit_id = response.data[0].get("default_unit_id")
        if unit_id is None:
            return None
        unit_response = (
            self.client.table("units")
            .select(_UNIT_COLUMNS)
            .eq("id", unit_id)
            .limit(1)
            .execute()
        )
        return _first_unit(unit_response.data)

    def find_unit_by_hint(self, hint: str) -> UnitBrief | None:
        """Return a unit whose Polish name or abbreviation contains the hint."""
        term = _pattern_term(hint)
        if not term:
            return None
        response = (
            self.client.table("units")
            .select(_UNIT_COLUMNS)
            .or_(f"name_pl.ilike.%{term}%,abbreviation.ilike.%{term}%")
            .limit(1)
            .execute()
        )
        return _first_unit(response.data)


def _pattern_term(value: str) -> str:
    return value.translate(_RESERVED).strip()


def _first_product(rows: list[dict[str, object]] | None) -> CatalogProduct | None:
    if not rows:
        return None
    row = rows[0]
    return CatalogProduct(id=int(row["id"]), name_pl=str(row["name_pl"]))


def _first_unit(rows: list[dict[str, object]] | None) -> UnitBrief | None:
    if not rows:
        return None
    row = rows[0]
    abbreviation = row.get("abbreviation")
    return UnitBrief(
        id=int(row["id"]),
        name_pl=str(row["name_pl"]),
        abbreviation=abbreviation if isinstance(abbreviation, str) else None,
    )
