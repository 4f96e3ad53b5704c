"""Match recipe ingredients against a user's inventory."""

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from mealer.domain.matching import (
    IngredientMatchResult,
    IngredientStatus,
    InventoryItemForMatch,
    MatchedInventoryItem,
    RecipeIngredient,
)
from mealer.services.similarity import similarity

SIMILARITY_THRESHOLD = 0.6


@dataclass
class IngredientMatcher:
    """Fuzzy matcher that classifies ingredients as available, partial or missing.

    Each ingredient is compared with every inventory item. The item with the
    strictly greatest similarity at or above the threshold wins; ties keep the
    first item in inventory order. An unavailable winner makes the ingredient
    missing.
    """

    threshold: float = SIMILARITY_THRESHOLD
    scorer: Callable[[str, str], float] = similarity

    def match(
        self,
        ingredients: Sequence[RecipeIngredient],
        inventory: Sequence[InventoryItemForMatch],
    ) -> list[IngredientMatchResult]:
        """Return one result per ingredient, in input order."""
        return [self.match_one(ingredient, inventory) for ingredient in ingredients]

    def match_one(
        self,
        ingredient: RecipeIngredient,
        inventory: Sequence[InventoryItemForMatch],
    ) -> IngredientMatchResult:
        """Match a single ingredient."""
        best = self._best_candidate(ingredient.name, inventory)
        if best is None or not best.is_available:
            return IngredientMatchResult(
                ingredient_name=ingredient.name,
                status=IngredientStatus.MISSING,
                matched_item=None,
            )
        return IngredientMatchResult(
            ingredient_name=ingredient.name,
            status=_classify(ingredient, best),
            matched_item=MatchedInventoryItem(
                id=best.id,
                name=best.name,
                quantity=best.quantity,
                unit=best.unit,
            ),
        )

    def _best_candidate(
        self, name: str, inventory: Sequence[InventoryItemForMatch]
    ) -> InventoryItemForMatch | None:
        best: InventoryItemForMatch | None = None
        best_score = 0.0
        for item in inventory:
            score = self.scorer(name, item.name)
            if score >= self.threshold and (best is None or score > best_score):
                best = item
                best_score = score
        return best


def _classify(
    ingredient: RecipeIngredient, item: InventoryItemForMatch
) -> IngredientStatus:
    """Judge quantity sufficiency; unmeasured quantities count as available."""
    if ingredient.quantity is None or item.quantity is None:
        return IngredientStatus.AVAILABLE
    if item.quantity >= ingredient.quantity:
        return IngredientStatus.AVAILABLE
    return IngredientStatus.PARTIAL


def match_ingredients(
    ingredients: Sequence[RecipeIngredient],
    inventory: Sequence[InventoryItemForMatch],
) -> list[IngredientMatchResult]:
    """Match ingredients using the default threshold."""
    return IngredientMatcher().match(ingredients, inventory)
