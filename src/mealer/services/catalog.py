"""Read-only product catalog lookups for scanned receipt lines."""

from dataclasses import dataclass
from typing import Protocol

from mealer.domain.receipts import CatalogProduct, UnitBrief


class ProductCatalogRepository(Protocol):
    """Read access to the product catalog and units tables."""

    def find_product_full_text(self, name: str) -> CatalogProduct | None:
        """Return the best full-text match for a product name."""

    def find_product_by_pattern(self, name: str) -> CatalogProduct | None:
        """Return a product whose name contains the given text."""

    def get_default_unit(self, product_id: int) -> UnitBrief | None:
        """Return the default unit of a product, if it has one."""

    def find_unit_by_hint(self, hint: str) -> UnitBrief | None:
        """Return a unit whose name or abbreviation contains the hint."""


@dataclass
class ProductCatalogService:
    """Match receipt lines to catalog products and units."""

    repository: ProductCatalogRepository

    def match_product(self, name: str) -> CatalogProduct | None:
        """Return a catalog product for a name, trying full-text search first."""
        query = name.strip()
        if not query:
            return None
        return self.repository.find_product_full_text(
            query
        ) or self.repository.find_product_by_pattern(query)

    def suggest_unit(
        self, product: CatalogProduct | None, hint: str | None
    ) -> UnitBrief | None:
        """Return the product's default unit, else a unit matching the hint."""
        if product is not None:
            unit = self.repository.get_default_unit(product.id)
            if unit is not None:
                return unit
        if hint and hint.strip():
            return self.repository.find_unit_by_hint(hint.strip())
        return None
