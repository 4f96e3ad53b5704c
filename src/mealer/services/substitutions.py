"""Ingredient substitution analysis against the user's inventory."""

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from uuid import UUID

from pydantic import ValidationError

from mealer.domain.matching import (
    IngredientMatchResult,
    IngredientStatus,
    InventoryItemForMatch,
    MatchedInventoryItem,
    RecipeIngredient,
)
from mealer.domain.substitutions import (
    IngredientAnalysis,
    Substitution,
    SubstitutionReport,
    SubstitutionSuggestions,
    SuggestionItem,
)
from mealer.domain.usage import FeatureType
from mealer.domain.warnings import DietaryProfile
from mealer.services.inventory import InventoryRepository
from mealer.services.llm import ExternalServiceError, StructuredLLMClient
from mealer.services.matching import IngredientMatcher
from mealer.services.profiles import ProfileService
from mealer.services.usage import UsageService
from mealer.services.warnings import WarningGenerator

_logger = logging.getLogger(__name__)

INVENTORY_CONTEXT_LIMIT = 100

SUBSTITUTION_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "suggestions": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "ingredient": {"type": "string"},
                    "suggestion": {"type": "string"},
                    "substitute_item_id": {
                        "anyOf": [{"type": "string"}, {"type": "null"}]
                    },
                },
                "required": ["ingredient", "suggestion", "substitute_item_id"],
                "additionalProperties": False,
            },
        }
    },
    "required": ["suggestions"],
    "additionalProperties": False,
}

_NO_SUGGESTION = "Brak dostępnych zamienników w Twoim inwentarzu."


@dataclass
class SubstitutionService:
    """Service that analyzes recipe ingredients and proposes substitutes."""

    client: StructuredLLMClient
    usage_service: UsageService
    profile_service: ProfileService
    inventory_repository: InventoryRepository
    model: str
    reasoning_effort: str | None
    store: bool
    matcher: IngredientMatcher = field(default_factory=IngredientMatcher)
    warning_generator: WarningGenerator = field(default_factory=WarningGenerator)

    async def analyze(
        self, user_id: UUID, ingredients: Sequence[RecipeIngredient]
    ) -> SubstitutionReport:
        """Analyze ingredients and count the request against the daily limit."""
        profile = self.profile_service.require_onboarded(user_id)
        self.usage_service.require_allowance(user_id, FeatureType.SUBSTITUTIONS)

        inventory = self.inventory_repository.list_available_items(
            user_id, limit=INVENTORY_CONTEXT_LIMIT
        )
        matches = self.matcher.match(ingredients, inventory)
        lacking = [
            ingredient
            for ingredient, match in zip(ingredients, matches, strict=True)
            if match.status is not IngredientStatus.AVAILABLE
        ]
        suggestions: list[SuggestionItem] = []
        if lacking:
            suggestions = await self._suggest(lacking, inventory, profile.dietary)

        analysis = _build_analysis(
            ingredients,
            matches,
            suggestions,
            inventory,
            allergy_messages=[
                self.warning_generator.allergy_message(ingredient, profile.dietary)
                for ingredient in ingredients
            ],
        )
        warnings = self.warning_generator.generate(ingredients, profile.dietary)

        await self.usage_service.increment_usage(user_id, FeatureType.SUBSTITUTIONS)
        usage = self.usage_service.check_rate_limit(user_id, FeatureType.SUBSTITUTIONS)
        return SubstitutionReport(analysis=analysis, warnings=warnings, usage=usage)

    async def _suggest(
        self,
        ingredients: list[RecipeIngredient],
        inventory: Sequence[InventoryItemForMatch],
        dietary: DietaryProfile,
    ) -> list[SuggestionItem]:
        raw = await self.client.generate(
            model=self.model,
            reasoning_effort=self.reasoning_effort,
            store=self.store,
            prompt=_build_prompt(ingredients, inventory, dietary),
            schema_name="substitution_suggestions",
            schema=SUBSTITUTION_SCHEMA,
        )
        try:
            return SubstitutionSuggestions.model_validate(raw).suggestions
        except ValidationError as exc:
            _logger.exception("Substitution suggestions returned invalid data")
            raise ExternalServiceError("AI service returned invalid data") from exc


def _build_prompt(
    ingredients: list[RecipeIngredient],
    inventory: Sequence[InventoryItemForMatch],
    dietary: DietaryProfile,
) -> str:
    context = {
        "missing_ingredients": [
            {"name": item.name, "quantity": item.quantity, "unit": item.unit}
            for item in ingredients
        ],
        "inventory": [
            {
                "id": str(item.id),
                "name": item.name,
                "quantity": item.quantity,
                "unit": item.unit,
            }
            for item in inventory
        ],
        "allergies": list(dietary.allergies),
        "diets": list(dietary.diets),
        "equipment": list(dietary.equipment),
    }
    return (
        "You help a home cook replace recipe ingredients they lack. "
        "For each missing ingredient suggest, in Polish, how to replace it "
        "using the listed inventory. Never suggest anything that conflicts "
        "with the allergies or diets. Set substitute_item_id to the id of the "
        "inventory item to use, or null when nothing fits.\n"
        f"{json.dumps(context, ensure_ascii=False)}"
    )


def _build_analysis(
    ingredients: Sequence[RecipeIngredient],
    matches: list[IngredientMatchResult],
    suggestions: list[SuggestionItem],
    inventory: Sequence[InventoryItemForMatch],
    allergy_messages: list[str | None],
) -> list[IngredientAnalysis]:
    by_name = {item.ingredient.strip().lower(): item for item in suggestions}
    by_id = {str(item.id): item for item in inventory}
    analysis = []
    for ingredient, match, allergy_message in zip(
        ingredients, matches, allergy_messages, strict=True
    ):
        substitution = None
        if match.status is not IngredientStatus.AVAILABLE:
            substitution = _substitution_for(
                by_name.get(ingredient.name.strip().lower()), by_id
            )
        analysis.append(
            IngredientAnalysis(
                ingredient=ingredient.name,
                status=match.status,
                matched_item=match.matched_item,
                substitution=substitution,
                allergy_warning=allergy_message,
            )
        )
    return analysis


def _substitution_for(
    suggestion: SuggestionItem | None, inventory: dict[str, InventoryItemForMatch]
) -> Substitution:
    if suggestion is None:
        return Substitution(
            available=False, suggestion=_NO_SUGGESTION, substitute_item=None
        )
    substitute = (
        inventory.get(suggestion.substitute_item_id)
        if suggestion.substitute_item_id
        else None
    )
    substitute_item = None
    if substitute is not None:
        substitute_item = MatchedInventoryItem(
            id=substitute.id,
            name=substitute.name,
            quantity=substitute.quantity,
            unit=substitute.unit,
        )
    return Substitution(
        available=substitute_item is not None,
        suggestion=suggestion.suggestion,
        substitute_item=substitute_item,
    )
