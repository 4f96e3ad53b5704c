"""Receipt scanning via a vision LLM."""

import logging
from dataclasses import dataclass
from uuid import UUID

from pydantic import ValidationError

from mealer.domain.receipts import (
    ReceiptExtract,
    ReceiptItem,
    ScannedReceiptItem,
)
from mealer.domain.usage import FeatureType, RateLimitCheck
from mealer.services.catalog import ProductCatalogService
from mealer.services.llm import ExternalServiceError, StructuredLLMClient
from mealer.services.usage import UsageService

_logger = logging.getLogger(__name__)

RECEIPT_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "items": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "quantity": {"anyOf": [{"type": "number"}, {"type": "null"}]},
                    "unit": {"anyOf": [{"type": "string"}, {"type": "null"}]},
                    "confidence": {"type": "number", "minimum": 0.0, "maximum": 1.0},
                },
                "required": ["name", "quantity", "unit", "confidence"],
                "additionalProperties": False,
            },
        }
    },
    "required": ["items"],
    "additionalProperties": False,
}

_PROMPT = (
    "Read this grocery receipt. List every food product with its name "
    "written as a plain Polish product name, the purchased quantity, "
    "a unit hint (g, kg, ml, l, szt) and a confidence between 0 and 1. "
    "Skip discounts, deposits, bags and totals."
)


@dataclass(frozen=True)
class ReceiptScanResult:
    """Extracted receipt items and the user's updated scan usage."""

    items: list[ScannedReceiptItem]
    usage: RateLimitCheck


@dataclass
class ReceiptScanService:
    """Service that extracts products from receipt photos."""

    client: StructuredLLMClient
    usage_service: UsageService
    catalog: ProductCatalogService
    model: str
    reasoning_effort: str | None
    store: bool

    async def scan(
        self, user_id: UUID, image_base64: str, image_type: str
    ) -> ReceiptScanResult:
        """Scan a receipt and count it against the user's daily limit."""
        self.usage_service.require_allowance(user_id, FeatureType.RECEIPT_SCANS)
        raw = await self.client.generate(
            model=self.model,
            reasoning_effort=self.reasoning_effort,
            store=self.store,
            prompt=_PROMPT,
            schema_name="receipt_extract",
            schema=RECEIPT_SCHEMA,
            image_data_url=to_data_url(image_base64, image_type),
        )
        try:
            extract = ReceiptExtract.model_validate(raw)
        except ValidationError as exc:
            _logger.exception("Receipt extraction returned invalid data")
            raise ExternalServiceError("AI service returned invalid data") from exc

        items = [self._enrich(item) for item in extract.items]
        await self.usage_service.increment_usage(user_id, FeatureType.RECEIPT_SCANS)
        usage = self.usage_service.check_rate_limit(user_id, FeatureType.RECEIPT_SCANS)
        return ReceiptScanResult(items=items, usage=usage)

    def _enrich(self, item: ReceiptItem) -> ScannedReceiptItem:
        product = self.catalog.match_product(item.name)
        return ScannedReceiptItem(
            name=item.name,
            matched_product=product,
            quantity=item.quantity,
            suggested_unit=self.catalog.suggest_unit(product, item.unit),
            confidence=item.confidence,
        )


def to_data_url(image_base64: str, image_type: str) -> str:
    """Return a data URL, keeping an existing data URL prefix untouched."""
    if image_base64.startswith("data:"):
        return image_base64
    return f"data:{image_type};base64,{image_base64}"
