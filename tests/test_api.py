"""Tests for the HTTP API."""

import base64
from uuid import UUID

from fastapi.testclient import TestClient

from mealer.api.app import create_app
from mealer.api.models import MAX_IMAGE_SIZE_BYTES
from mealer.containers import AppContainer
from mealer.domain.receipts import CatalogProduct, UnitBrief
from mealer.domain.usage import FeatureType
from mealer.services.llm import ExternalServiceError
from tests.conftest import (
    TODAY,
    FakeAuthClient,
    FakeLLMClient,
    InMemoryInventoryRepository,
    InMemoryProductCatalogRepository,
    InMemoryProfileRepository,
    record_usage,
)

_TOKEN = "user-token"
_HEADERS = {"Authorization": f"Bearer {_TOKEN}"}
_IMAGE = base64.b64encode(b"fake receipt bytes").decode()


def _client(
    container: AppContainer, auth_client: FakeAuthClient, user_id: UUID
) -> TestClient:
    auth_client.tokens[_TOKEN] = user_id
    return TestClient(create_app(container))


def test_health(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_requests_without_token_are_unauthorized(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    response = client.get("/api/ai/usage")

    assert response.status_code == 401
    assert response.json() == {
        "error": {"code": "UNAUTHORIZED", "message": "Authentication required"}
    }


def test_invalid_token_is_unauthorized(
    container: AppContainer, auth_client: FakeAuthClient, user_id: UUID
) -> None:
    client = _client(container, auth_client, user_id)

    response = client.get(
        "/api/ai/usage", headers={"Authorization": "Bearer something-else"}
    )

    assert response.status_code == 401


def test_usage_endpoint(
    container: AppContainer, auth_client: FakeAuthClient, user_id: UUID
) -> None:
    client = _client(container, auth_client, user_id)
    record_usage(container.usage_service, user_id, FeatureType.RECEIPT_SCANS)

    response = client.get("/api/ai/usage", headers=_HEADERS)

    assert response.status_code == 200
    assert response.json() == {
        "date": TODAY.isoformat(),
        "receipt_scans": {"used": 1, "limit": 5, "remaining": 4},
        "substitutions": {"used": 0, "limit": 10, "remaining": 10},
    }


def test_substitutions_endpoint(
    container: AppContainer,
    auth_client: FakeAuthClient,
    profile_repository: InMemoryProfileRepository,
    inventory_repository: InMemoryInventoryRepository,
    user_id: UUID,
) -> None:
    client = _client(container, auth_client, user_id)
    profile_repository.add(user_id, allergies=("laktoza",))
    milk = inventory_repository.add(user_id, "Mleko", quantity=500, unit="ml")

    response = client.post(
        "/api/ai/substitutions",
        headers=_HEADERS,
        json={
            "recipe_ingredients": [
                {"name": "  Mleko ", "quantity": 1000, "unit": "ml"},
                {"name": "Bazylia"},
            ]
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["analysis"][0] == {
        "ingredient": "Mleko",
        "status": "partial",
        "matched_inventory_item": {
            "id": str(milk.id),
            "name": "Mleko",
            "quantity": 500,
            "unit": "ml",
        },
        "substitution": {
            "available": False,
            "suggestion": "Brak dostępnych zamienników w Twoim inwentarzu.",
            "substitute_item": None,
        },
        "allergy_warning": (
            'Przepis zawiera składnik "Mleko" - możliwa alergia na laktoza!'
        ),
    }
    assert body["analysis"][1]["status"] == "missing"
    assert body["analysis"][1]["matched_inventory_item"] is None
    assert body["warnings"] == [
        {"type": "allergy", "message": body["analysis"][0]["allergy_warning"]}
    ]
    assert body["usage"] == {
        "substitutions_used_today": 1,
        "substitutions_remaining": 9,
    }


def test_substitutions_validation_errors(
    container: AppContainer, auth_client: FakeAuthClient, user_id: UUID
) -> None:
    client = _client(container, auth_client, user_id)

    empty = client.post(
        "/api/ai/substitutions", headers=_HEADERS, json={"recipe_ingredients": []}
    )
    too_many = client.post(
        "/api/ai/substitutions",
        headers=_HEADERS,
        json={"recipe_ingredients": [{"name": f"item {i}"} for i in range(31)]},
    )
    blank_name = client.post(
        "/api/ai/substitutions",
        headers=_HEADERS,
        json={"recipe_ingredients": [{"name": "   "}]},
    )
    bad_quantity = client.post(
        "/api/ai/substitutions",
        headers=_HEADERS,
        json={"recipe_ingredients": [{"name": "Mleko", "quantity": 0}]},
    )

    for response in (empty, too_many, blank_name, bad_quantity):
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"
    assert bad_quantity.json()["error"]["details"][0]["field"] == (
        "recipe_ingredients.0.quantity"
    )


def test_substitutions_require_onboarding(
    container: AppContainer,
    auth_client: FakeAuthClient,
    profile_repository: InMemoryProfileRepository,
    user_id: UUID,
) -> None:
    client = _client(container, auth_client, user_id)
    profile_repository.add(user_id, onboarding_status="pending")

    response = client.post(
        "/api/ai/substitutions",
        headers=_HEADERS,
        json={"recipe_ingredients": [{"name": "Mleko"}]},
    )

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "FORBIDDEN"


def test_substitutions_rate_limited(
    container: AppContainer,
    auth_client: FakeAuthClient,
    profile_repository: InMemoryProfileRepository,
    user_id: UUID,
) -> None:
    client = _client(container, auth_client, user_id)
    profile_repository.add(user_id)
    record_usage(
        container.usage_service, user_id, FeatureType.SUBSTITUTIONS, times=10
    )

    response = client.post(
        "/api/ai/substitutions",
        headers=_HEADERS,
        json={"recipe_ingredients": [{"name": "Mleko"}]},
    )

    assert response.status_code == 429
    assert response.json() == {
        "error": {
            "code": "RATE_LIMITED",
            "message": "Daily substitution limit exceeded. Try again tomorrow",
        }
    }


def test_scan_receipt_endpoint(
    container: AppContainer,
    auth_client: FakeAuthClient,
    llm_client: FakeLLMClient,
    catalog_repository: InMemoryProductCatalogRepository,
    user_id: UUID,
) -> None:
    client = _client(container, auth_client, user_id)
    catalog_repository.products.append(CatalogProduct(id=5, name_pl="Mleko 3.2%"))
    catalog_repository.default_units[5] = UnitBrief(
        id=4, name_pl="litr", abbreviation="l"
    )

    response = client.post(
        "/api/ai/scan-receipt",
        headers=_HEADERS,
        json={"image": _IMAGE, "image_type": "image/jpeg"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["items"] == [
        {
            "name": "Mleko 3.2%",
            "matched_product": {"id": 5, "name_pl": "Mleko 3.2%"},
            "quantity": 1.0,
            "suggested_unit": {"id": 4, "name_pl": "litr", "abbreviation": "l"},
            "confidence": 0.95,
        },
        {
            "name": "Kurczak filet",
            "matched_product": None,
            "quantity": 600.0,
            "suggested_unit": None,
            "confidence": 0.91,
        },
    ]
    assert body["usage"] == {"scans_used_today": 1, "scans_remaining": 4}
    assert llm_client.calls[0]["image_data_url"] == f"data:image/jpeg;base64,{_IMAGE}"


def test_scan_receipt_validation_errors(
    container: AppContainer, auth_client: FakeAuthClient, user_id: UUID
) -> None:
    client = _client(container, auth_client, user_id)
    oversized = "A" * ((MAX_IMAGE_SIZE_BYTES // 3 + 1) * 4)

    invalid = client.post(
        "/api/ai/scan-receipt",
        headers=_HEADERS,
        json={"image": "not base64!", "image_type": "image/jpeg"},
    )
    too_large = client.post(
        "/api/ai/scan-receipt",
        headers=_HEADERS,
        json={"image": oversized, "image_type": "image/jpeg"},
    )
    bad_type = client.post(
        "/api/ai/scan-receipt",
        headers=_HEADERS,
        json={"image": _IMAGE, "image_type": "image/gif"},
    )

    assert invalid.status_code == 400
    assert "Invalid base64 encoding" in invalid.json()["error"]["details"][0]["message"]
    assert too_large.status_code == 400
    assert "Image size exceeds 10MB limit" in (
        too_large.json()["error"]["details"][0]["message"]
    )
    assert bad_type.status_code == 400
    assert bad_type.json()["error"]["details"][0]["field"] == "image_type"


def test_scan_receipt_rate_limited(
    container: AppContainer, auth_client: FakeAuthClient, user_id: UUID
) -> None:
    client = _client(container, auth_client, user_id)
    record_usage(container.usage_service, user_id, FeatureType.RECEIPT_SCANS, times=5)

    response = client.post(
        "/api/ai/scan-receipt",
        headers=_HEADERS,
        json={"image": _IMAGE, "image_type": "image/png"},
    )

    assert response.status_code == 429
    assert response.json()["error"]["message"] == (
        "Daily scan limit exceeded. Try again tomorrow"
    )


def test_external_service_failure_returns_bad_gateway(
    container: AppContainer,
    auth_client: FakeAuthClient,
    llm_client: FakeLLMClient,
    user_id: UUID,
) -> None:
    client = _client(container, auth_client, user_id)
    llm_client.error = ExternalServiceError(
        "AI service temporarily unavailable", status_code=503
    )

    response = client.post(
        "/api/ai/scan-receipt",
        headers=_HEADERS,
        json={"image": _IMAGE, "image_type": "image/webp"},
    )

    assert response.status_code == 502
    assert response.json() == {
        "error": {
            "code": "EXTERNAL_SERVICE_ERROR",
            "message": "AI service temporarily unavailable",
        }
    }
    usage = client.get("/api/ai/usage", headers=_HEADERS).json()
    assert usage["receipt_scans"]["used"] == 0
