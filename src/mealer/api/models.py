"""Request models for the AI endpoints."""

import re
from typing import Annotated, Literal

from pydantic import BaseModel, Field, StringConstraints, field_validator

from mealer.domain.matching import RecipeIngredient

MAX_IMAGE_SIZE_BYTES = 10 * 1024 * 1024
MAX_RECIPE_INGREDIENTS = 30
MAX_INGREDIENT_NAME_LENGTH = 200

_BASE64_PATTERN = re.compile(r"^[A-Za-z0-9+/]*={0,2}$")

ImageType = Literal["image/jpeg", "image/png", "image/webp", "image/heic", "image/heif"]


def strip_data_url(value: str) -> str:
    """Return the base64 payload of a data URL, or the value unchanged."""
    if "," in value:
        return value.split(",", 1)[1]
    return value


def is_valid_base64(value: str) -> bool:
    """Return True for non-empty base64 text, with or without a data URL prefix."""
    data = strip_data_url(value)
    return bool(data) and _BASE64_PATTERN.match(data) is not None


def estimate_base64_size(value: str) -> int:
    """Estimate the decoded size in bytes of base64 text."""
    data = strip_data_url(value)
    if not data:
        return 0
    padding = len(data) - len(data.rstrip("="))
    return (len(data) * 3) // 4 - padding


class RecipeIngredientPayload(BaseModel):
    """Recipe ingredient submitted for analysis."""

    name: Annotated[
        str,
        StringConstraints(
            strip_whitespace=True, min_length=1, max_length=MAX_INGREDIENT_NAME_LENGTH
        ),
    ]
    quantity: float | None = Field(default=None, gt=0)
    unit: str | None = None

    def to_domain(self) -> RecipeIngredient:
        """Convert to the matcher's ingredient model."""
        return RecipeIngredient(name=self.name, quantity=self.quantity, unit=self.unit)


class SubstitutionsRequest(BaseModel):
    """Body of POST /api/ai/substitutions."""

    recipe_ingredients: list[RecipeIngredientPayload] = Field(
        min_length=1, max_length=MAX_RECIPE_INGREDIENTS
    )


class ReceiptScanRequest(BaseModel):
    """Body of POST /api/ai/scan-receipt."""

    image: str = Field(min_length=1)
    image_type: ImageType

    @field_validator("image")
    @classmethod
    def _validate_image(cls, value: str) -> str:
        if not is_valid_base64(value):
            raise ValueError("Invalid base64 encoding")
        if estimate_base64_size(value) > MAX_IMAGE_SIZE_BYTES:
            limit_mb = MAX_IMAGE_SIZE_BYTES // (1024 * 1024)
            raise ValueError(f"Image size exceeds {limit_mb}MB limit")
        return value
