"""Shared test fixtures."""

import asyncio
import threading
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from uuid import UUID, uuid4

import pytest

from mealer.config import Settings
from mealer.containers import AppContainer
from mealer.domain.matching import InventoryItemForMatch
from mealer.domain.profiles import UserProfile
from mealer.domain.receipts import CatalogProduct, UnitBrief
from mealer.domain.usage import FeatureType, RateLimitConfig, UsageRecord
from mealer.domain.warnings import DietaryProfile
from mealer.services.auth import AuthClient, AuthService
from mealer.services.catalog import ProductCatalogRepository, ProductCatalogService
from mealer.services.inventory import InventoryRepository
from mealer.services.llm import StructuredLLMClient
from mealer.services.profiles import ProfileRepository, ProfileService
from mealer.services.receipts import ReceiptScanService
from mealer.services.substitutions import SubstitutionService
from mealer.services.usage import (
    RateLimitConfigRepository,
    UsageRecordExistsError,
    UsageRepository,
    UsageService,
)

FIXED_NOW = datetime(2026, 1, 26, 12, 30, tzinfo=UTC)
TODAY = FIXED_NOW.date()


@dataclass
class InMemoryUsageRepository(UsageRepository):
    """In-memory usage repository enforcing one row per user and day."""

    rows: dict[tuple[UUID, date], UsageRecord] = field(default_factory=dict)
    inserts: int = 0
    conflicts: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def get_usage(self, user_id: UUID, usage_date: date) -> UsageRecord | None:
        with self._lock:
            return self.rows.get((user_id, usage_date))

    def insert_usage(self, record: UsageRecord) -> None:
        with self._lock:
            key = (record.user_id, record.usage_date)
            if key in self.rows:
                self.conflicts += 1
                raise UsageRecordExistsError("duplicate key")
            self.inserts += 1
            self.rows[key] = record

    def update_usage(self, current: UsageRecord, updated: UsageRecord) -> bool:
        with self._lock:
            key = (current.user_id, current.usage_date)
            if self.rows.get(key) != current:
                self.conflicts += 1
                return False
            self.rows[key] = updated
            return True


@dataclass
class RacingUsageRepository(InMemoryUsageRepository):
    """Usage repository that makes the first reads of concurrent callers overlap.

    The first ``racers`` reads wait on a barrier after reading, so every racer
    observes the same stored state before any of them writes.
    """

    racers: int = 2
    _barrier: threading.Barrier | None = None
    _pending: int = 0

    def __post_init__(self) -> None:
        self._barrier = threading.Barrier(self.racers, timeout=5)
        self._pending = self.racers

    def get_usage(self, user_id: UUID, usage_date: date) -> UsageRecord | None:
        record = super().get_usage(user_id, usage_date)
        with self._lock:
            wait = self._pending > 0
            if wait:
                self._pending -= 1
        if wait and self._barrier is not None:
            self._barrier.wait()
        return record


@dataclass
class InMemoryRateLimitConfigRepository(RateLimitConfigRepository):
    """Static rate limit configuration."""

    config: RateLimitConfig | None = None

    def get_rate_limits(self) -> RateLimitConfig | None:
        return self.config


@dataclass
class InMemoryProfileRepository(ProfileRepository):
    """In-memory profile repository."""

    profiles: dict[UUID, UserProfile] = field(default_factory=dict)

    def add(
        self,
        user_id: UUID,
        allergies: tuple[str, ...] = (),
        diets: tuple[str, ...] = (),
        onboarding_status: str = "completed",
    ) -> UserProfile:
        profile = UserProfile(
            user_id=user_id,
            onboarding_status=onboarding_status,
            dietary=DietaryProfile(allergies=allergies, diets=diets),
        )
        self.profiles[user_id] = profile
        return profile

    def get_profile(self, user_id: UUID) -> UserProfile | None:
        return self.profiles.get(user_id)


@dataclass
class InMemoryInventoryRepository(InventoryRepository):
    """In-memory inventory keyed by user."""

    items: dict[UUID, list[InventoryItemForMatch]] = field(default_factory=dict)

    def add(
        self,
        user_id: UUID,
        name: str,
        quantity: float | None = None,
        unit: str | None = None,
        is_available: bool = True,
    ) -> InventoryItemForMatch:
        item = InventoryItemForMatch(
            id=uuid4(),
            name=name,
            quantity=quantity,
            unit=unit,
            is_available=is_available,
        )
        self.items.setdefault(user_id, []).append(item)
        return item

    def list_available_items(
        self, user_id: UUID, limit: int
    ) -> list[InventoryItemForMatch]:
        available = [item for item in self.items.get(user_id, []) if item.is_available]
        return available[:limit]


@dataclass
class InMemoryProductCatalogRepository(ProductCatalogRepository):
    """In-memory catalog. Full-text hits are registered explicitly per query."""

    products: list[CatalogProduct] = field(default_factory=list)
    default_units: dict[int, UnitBrief] = field(default_factory=dict)
    units: list[UnitBrief] = field(default_factory=list)
    full_text_hits: dict[str, CatalogProduct] = field(default_factory=dict)

    def find_product_full_text(self, name: str) -> CatalogProduct | None:
        return self.full_text_hits.get(name.lower())

    def find_product_by_pattern(self, name: str) -> CatalogProduct | None:
        needle = name.lower()
        for product in self.products:
            if needle in product.name_pl.lower():
                return product
        return None

    def get_default_unit(self, product_id: int) -> UnitBrief | None:
        return self.default_units.get(product_id)

    def find_unit_by_hint(self, hint: str) -> UnitBrief | None:
        needle = hint.lower()
        for unit in self.units:
            names = (unit.name_pl, unit.abbreviation or "")
            if any(needle in value.lower() for value in names):
                return unit
        return None


@dataclass
class FakeAuthClient(AuthClient):
    """Auth client accepting a fixed set of tokens."""

    tokens: dict[str, UUID] = field(default_factory=dict)

    def get_user_id(self, access_token: str) -> UUID | None:
        return self.tokens.get(access_token)


@dataclass
class FakeLLMClient(StructuredLLMClient):
    """LLM client returning canned payloads per schema name."""

    payloads: dict[str, dict[str, object]] = field(
        default_factory=lambda: {
            "receipt_extract": {
                "items": [
                    {
                        "name": "Mleko 3.2%",
                        "quantity": 1,
                        "unit": "l",
                        "confidence": 0.95,
                    },
                    {
                        "name": "Kurczak filet",
                        "quantity": 600,
                        "unit": "g",
                        "confidence": 0.91,
                    },
                ]
            },
            "substitution_suggestions": {"suggestions": []},
        }
    )
    error: Exception | None = None
    calls: list[dict[str, object]] = field(default_factory=list)

    async def generate(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        prompt: str,
        schema_name: str,
        schema: dict[str, object],
        image_data_url: str | None = None,
    ) -> dict[str, object]:
        self.calls.append(
            {
                "schema_name": schema_name,
                "prompt": prompt,
                "image_data_url": image_data_url,
            }
        )
        if self.error is not None:
            raise self.error
        return self.payloads[schema_name]


async def _no_sleep(_seconds: float) -> None:
    return None


def make_usage_service(
    repository: UsageRepository | None = None,
    config: RateLimitConfig | None = None,
    **kwargs: object,
) -> UsageService:
    return UsageService(
        usage_repository=repository or InMemoryUsageRepository(),
        config_repository=InMemoryRateLimitConfigRepository(config),
        clock=lambda: FIXED_NOW,
        sleep=_no_sleep,
        **kwargs,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
        openai_api_key="openai-key",
    )


@pytest.fixture
def user_id() -> UUID:
    return uuid4()


@pytest.fixture
def usage_repository() -> InMemoryUsageRepository:
    return InMemoryUsageRepository()


@pytest.fixture
def usage_service(usage_repository: InMemoryUsageRepository) -> UsageService:
    return make_usage_service(usage_repository)


@pytest.fixture
def profile_repository() -> InMemoryProfileRepository:
    return InMemoryProfileRepository()


@pytest.fixture
def inventory_repository() -> InMemoryInventoryRepository:
    return InMemoryInventoryRepository()


@pytest.fixture
def llm_client() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture
def auth_client() -> FakeAuthClient:
    return FakeAuthClient()


@pytest.fixture
def substitution_service(
    llm_client: FakeLLMClient,
    usage_service: UsageService,
    profile_repository: InMemoryProfileRepository,
    inventory_repository: InMemoryInventoryRepository,
) -> SubstitutionService:
    return SubstitutionService(
        client=llm_client,
        usage_service=usage_service,
        profile_service=ProfileService(profile_repository),
        inventory_repository=inventory_repository,
        model="gpt-5.2",
        reasoning_effort="low",
        store=False,
    )


@pytest.fixture
def catalog_repository() -> InMemoryProductCatalogRepository:
    return InMemoryProductCatalogRepository()


@pytest.fixture
def receipt_scan_service(
    llm_client: FakeLLMClient,
    usage_service: UsageService,
    catalog_repository: InMemoryProductCatalogRepository,
) -> ReceiptScanService:
    return ReceiptScanService(
        client=llm_client,
        usage_service=usage_service,
        catalog=ProductCatalogService(catalog_repository),
        model="gpt-5.2",
        reasoning_effort="low",
        store=False,
    )


@pytest.fixture
def container(
    settings: Settings,
    auth_client: FakeAuthClient,
    usage_service: UsageService,
    receipt_scan_service: ReceiptScanService,
    substitution_service: SubstitutionService,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        auth_service=AuthService(auth_client),
        usage_service=usage_service,
        receipt_scan_service=receipt_scan_service,
        substitution_service=substitution_service,
        close_resources=close_resources,
    )


def record_usage(
    service: UsageService, user_id: UUID, feature: FeatureType, times: int = 1
) -> None:
    """Count ``times`` uses of a feature."""

    async def run() -> None:
        for _ in range(times):
            await service.increment_usage(user_id, feature)

    asyncio.run(run())
