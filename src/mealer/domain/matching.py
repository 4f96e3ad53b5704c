"""Domain models for matching recipe ingredients to inventory."""

from dataclasses import dataclass
from enum import Enum
from uuid import UUID


class IngredientStatus(str, Enum):
    """Availability of a recipe ingredient in the user's inventory."""

    AVAILABLE = "available"
    PARTIAL = "partial"
    MISSING = "missing"


@dataclass(frozen=True)
class InventoryItemForMatch:
    """Inventory item reduced to the fields used for matching."""

    id: UUID
    name: str
    quantity: float | None
    unit: str | None
    is_available: bool


@dataclass(frozen=True)
class RecipeIngredient:
    """Ingredient requested by a recipe."""

    name: str
    quantity: float | None = None
    unit: str | None = None


@dataclass(frozen=True)
class MatchedInventoryItem:
    """Summary of the inventory item chosen for an ingredient."""

    id: UUID
    name: str
    quantity: float | None
    unit: str | None


@dataclass(frozen=True)
class IngredientMatchResult:
    """Match outcome for a single recipe ingredient."""

    ingredient_name: str
    status: IngredientStatus
    matched_item: MatchedInventoryItem | None
