"""Allergy and diet warnings for recipe ingredients."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType

from mealer.domain.matching import RecipeIngredient
from mealer.domain.warnings import DietaryProfile, RecipeWarning, WarningType

ALLERGEN_KEYWORDS: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "gluten": ("mąka", "chleb", "makaron", "pszenica", "żyto", "jęczmień", "owies"),
        "laktoza": ("mleko", "ser", "jogurt", "śmietana", "masło", "kefir", "twaróg"),
        "orzechy": ("orzechy", "migdały", "orzeszki", "pistacje", "orzech"),
        "jaja": ("jajko", "jajka", "jajo"),
        "ryby": ("ryba", "dorsz", "łosoś", "tuńczyk", "śledź", "makrela"),
        "skorupiaki": ("krewetki", "kraby", "langusty", "małże", "homary"),
        "soja": ("soja", "tofu", "sos sojowy", "miso"),
        "seler": ("seler", "selera"),
        "gorczyca": ("gorczyca", "musztarda"),
        "sezam": ("sezam", "tahini"),
    }
)

DIET_KEYWORDS: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "wegetariańska": (
            "mięso",
            "kurczak",
            "wołowina",
            "wieprzowina",
            "szynka",
            "boczek",
            "kiełbasa",
        ),
        "wegańska": (
            "mięso",
            "kurczak",
            "mleko",
            "ser",
            "jajko",
            "masło",
            "śmietana",
            "miód",
        ),
        "bezglutenowa": ("mąka", "chleb", "makaron", "pszenica"),
        "bezlaktozowa": ("mleko", "ser", "jogurt", "śmietana", "masło"),
    }
)

_ALLERGY_MESSAGE = (
    'Przepis zawiera składnik "{ingredient}" - możliwa alergia na {label}!'
)
_DIET_MESSAGE = 'Przepis zawiera składnik "{ingredient}" - niezgodny z dietą {label}!'


def _freeze(table: Mapping[str, Sequence[str]]) -> Mapping[str, tuple[str, ...]]:
    return MappingProxyType(
        {
            label.lower(): tuple(keyword.lower() for keyword in keywords)
            for label, keywords in table.items()
        }
    )


@dataclass(frozen=True)
class WarningLexicon:
    """Keyword tables mapping allergy and diet labels to ingredient substrings."""

    allergens: Mapping[str, tuple[str, ...]] = field(
        default_factory=lambda: _freeze(ALLERGEN_KEYWORDS)
    )
    diets: Mapping[str, tuple[str, ...]] = field(
        default_factory=lambda: _freeze(DIET_KEYWORDS)
    )

    @classmethod
    def from_tables(
        cls,
        allergens: Mapping[str, Sequence[str]],
        diets: Mapping[str, Sequence[str]],
    ) -> "WarningLexicon":
        """Build a lexicon from plain mappings, normalizing case."""
        return cls(allergens=_freeze(allergens), diets=_freeze(diets))

    def allergy_keywords(self, allergy: str) -> tuple[str, ...]:
        """Return keywords for an allergy, falling back to the label itself."""
        label = allergy.lower()
        return self.allergens.get(label, (label,))

    def diet_keywords(self, diet: str) -> tuple[str, ...]:
        """Return keywords for a diet, falling back to the label itself."""
        label = diet.lower()
        return self.diets.get(label, (label,))


DEFAULT_LEXICON = WarningLexicon()


@dataclass
class WarningGenerator:
    """Flag ingredients that conflict with a user's allergies or diets."""

    lexicon: WarningLexicon = DEFAULT_LEXICON

    def generate(
        self, ingredients: Sequence[RecipeIngredient], profile: DietaryProfile
    ) -> list[RecipeWarning]:
        """Return allergy warnings followed by diet warnings.

        One warning is emitted per (label, ingredient) pair whose lower-cased
        name contains any keyword of the label. Equipment warnings are never
        produced here.
        """
        warnings: list[RecipeWarning] = []
        for allergy in profile.allergies:
            keywords = self.lexicon.allergy_keywords(allergy)
            warnings.extend(
                RecipeWarning(
                    type=WarningType.ALLERGY,
                    message=_ALLERGY_MESSAGE.format(
                        ingredient=ingredient.name, label=allergy
                    ),
                )
                for ingredient in ingredients
                if _contains_any(ingredient.name, keywords)
            )
        for diet in profile.diets:
            keywords = self.lexicon.diet_keywords(diet)
            warnings.extend(
                RecipeWarning(
                    type=WarningType.DIET,
                    message=_DIET_MESSAGE.format(
                        ingredient=ingredient.name, label=diet
                    ),
                )
                for ingredient in ingredients
                if _contains_any(ingredient.name, keywords)
            )
        return warnings

    def allergy_message(
        self, ingredient: RecipeIngredient, profile: DietaryProfile
    ) -> str | None:
        """Return the message for the first allergy the ingredient triggers."""
        for allergy in profile.allergies:
            if _contains_any(ingredient.name, self.lexicon.allergy_keywords(allergy)):
                return _ALLERGY_MESSAGE.format(
                    ingredient=ingredient.name, label=allergy
                )
        return None


def _contains_any(name: str, keywords: Sequence[str]) -> bool:
    lowered = name.lower()
    return any(keyword in lowered for keyword in keywords)


def generate_warnings(
    ingredients: Sequence[RecipeIngredient], profile: DietaryProfile
) -> list[RecipeWarning]:
    """Generate warnings with the default Polish lexicon."""
    return WarningGenerator().generate(ingredients, profile)
