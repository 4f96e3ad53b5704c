"""Domain models for ingredient substitution analysis."""

from dataclasses import dataclass

from pydantic import BaseModel

from mealer.domain.matching import IngredientStatus, MatchedInventoryItem
from mealer.domain.usage import RateLimitCheck
from mealer.domain.warnings import RecipeWarning


class SuggestionItem(BaseModel):
    """LLM suggestion for one missing or partial ingredient."""

    ingredient: str
    suggestion: str
    substitute_item_id: str | None = None


class SubstitutionSuggestions(BaseModel):
    """Structured output for substitution suggestions."""

    suggestions: list[SuggestionItem]


@dataclass(frozen=True)
class Substitution:
    """Substitution offered for an ingredient."""

    available: bool
    suggestion: str
    substitute_item: MatchedInventoryItem | None


@dataclass(frozen=True)
class IngredientAnalysis:
    """Analysis of a single recipe ingredient."""

    ingredient: str
    status: IngredientStatus
    matched_item: MatchedInventoryItem | None
    substitution: Substitution | None
    allergy_warning: str | None


@dataclass(frozen=True)
class SubstitutionReport:
    """Full substitution analysis returned to the caller."""

    analysis: list[IngredientAnalysis]
    warnings: list[RecipeWarning]
    usage: RateLimitCheck
