"""Domain models for dietary warnings."""

from dataclasses import dataclass, field
from enum import Enum


class WarningType(str, Enum):
    """Category of a recipe warning."""

    ALLERGY = "allergy"
    DIET = "diet"
    EQUIPMENT = "equipment"


@dataclass(frozen=True)
class RecipeWarning:
    """Warning shown next to a recipe analysis."""

    type: WarningType
    message: str


@dataclass(frozen=True)
class DietaryProfile:
    """Allergies, diets and kitchen equipment declared by a user."""

    allergies: tuple[str, ...] = field(default_factory=tuple)
    diets: tuple[str, ...] = field(default_factory=tuple)
    equipment: tuple[str, ...] = field(default_factory=tuple)
