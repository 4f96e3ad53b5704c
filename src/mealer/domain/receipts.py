"""Models for receipt scan extraction results."""

from dataclasses import dataclass

from pydantic import BaseModel, Field


class ReceiptItem(BaseModel):
    """Single product line read from a receipt."""

    name: str
    quantity: float | None = Field(default=None, ge=0.0)
    unit: str | None = None
    confidence: float = Field(ge=0.0, le=1.0)


class ReceiptExtract(BaseModel):
    """Structured output for receipt extraction."""

    items: list[ReceiptItem]


@dataclass(frozen=True)
class CatalogProduct:
    """Product catalog entry matched to a receipt line."""

    id: int
    name_pl: str


@dataclass(frozen=True)
class UnitBrief:
    """Unit of measure suggested for a receipt line."""

    id: int
    name_pl: str
    abbreviation: str | None


@dataclass(frozen=True)
class ScannedReceiptItem:
    """Receipt line enriched with catalog lookups."""

    name: str
    matched_product: CatalogProduct | None
    quantity: float | None
    suggested_unit: UnitBrief | None
    confidence: float
