"""AI feature endpoints: usage, substitutions and receipt scanning."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Header, Request

from mealer.api.models import ReceiptScanRequest, SubstitutionsRequest

if TYPE_CHECKING:
    from mealer.containers import AppContainer
    from mealer.domain.matching import MatchedInventoryItem
    from mealer.domain.receipts import ScannedReceiptItem
    from mealer.domain.substitutions import IngredientAnalysis
    from mealer.domain.usage import UsageCounter

router = APIRouter(prefix="/api/ai", tags=["ai"])


async def current_user(
    request: Request, authorization: str | None = Header(default=None)
) -> UUID:
    """Resolve the authenticated user from the bearer token."""
    container: AppContainer = request.app.state.container
    return container.auth_service.authenticate(authorization)


@router.get("/usage")
async def get_usage(
    request: Request, user_id: UUID = Depends(current_user)
) -> dict[str, object]:
    """Return today's AI usage and limits."""
    container: AppContainer = request.app.state.container
    snapshot = container.usage_service.get_usage_snapshot(user_id)
    return {
        "date": snapshot.usage_date.isoformat(),
        "receipt_scans": _counter_payload(snapshot.receipt_scans),
        "substitutions": _counter_payload(snapshot.substitutions),
    }


@router.post("/substitutions")
async def substitutions(
    body: SubstitutionsRequest,
    request: Request,
    user_id: UUID = Depends(current_user),
) -> dict[str, object]:
    """Analyze recipe ingredients against the user's inventory."""
    container: AppContainer = request.app.state.container
    report = await container.substitution_service.analyze(
        user_id, [item.to_domain() for item in body.recipe_ingredients]
    )
    return {
        "analysis": [_analysis_payload(entry) for entry in report.analysis],
        "warnings": [
            {"type": warning.type.value, "message": warning.message}
            for warning in report.warnings
        ],
        "usage": {
            "substitutions_used_today": report.usage.used,
            "substitutions_remaining": report.usage.remaining,
        },
    }


@router.post("/scan-receipt")
async def scan_receipt(
    body: ReceiptScanRequest,
    request: Request,
    user_id: UUID = Depends(current_user),
) -> dict[str, object]:
    """Extract products from a receipt photo."""
    container: AppContainer = request.app.state.container
    result = await container.receipt_scan_service.scan(
        user_id, body.image, body.image_type
    )
    return {
        "items": [_receipt_item_payload(item) for item in result.items],
        "usage": {
            "scans_used_today": result.usage.used,
            "scans_remaining": result.usage.remaining,
        },
    }


def _receipt_item_payload(item: ScannedReceiptItem) -> dict[str, object]:
    product = None
    if item.matched_product is not None:
        product = {
            "id": item.matched_product.id,
            "name_pl": item.matched_product.name_pl,
        }
    unit = None
    if item.suggested_unit is not None:
        unit = {
            "id": item.suggested_unit.id,
            "name_pl": item.suggested_unit.name_pl,
            "abbreviation": item.suggested_unit.abbreviation,
        }
    return {
        "name": item.name,
        "matched_product": product,
        "quantity": item.quantity,
        "suggested_unit": unit,
        "confidence": item.confidence,
    }


def _counter_payload(counter: UsageCounter) -> dict[str, int]:
    return {
        "used": counter.used,
        "limit": counter.limit,
        "remaining": counter.remaining,
    }


def _item_payload(item: MatchedInventoryItem | None) -> dict[str, object] | None:
    if item is None:
        return None
    return {
        "id": str(item.id),
        "name": item.name,
        "quantity": item.quantity,
        "unit": item.unit,
    }


def _analysis_payload(entry: IngredientAnalysis) -> dict[str, object]:
    substitution = None
    if entry.substitution is not None:
        substitution = {
            "available": entry.substitution.available,
            "suggestion": entry.substitution.suggestion,
            "substitute_item": _item_payload(entry.substitution.substitute_item),
        }
    return {
        "ingredient": entry.ingredient,
        "status": entry.status.value,
        "matched_inventory_item": _item_payload(entry.matched_item),
        "substitution": substitution,
        "allergy_warning": entry.allergy_warning,
    }
