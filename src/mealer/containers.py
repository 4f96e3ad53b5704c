"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from mealer.adapters.openai_client import OpenAIStructuredClient
from mealer.adapters.supabase_auth_client import SupabaseAuthClient
from mealer.adapters.supabase_catalog_repository import (
    SupabaseProductCatalogRepository,
)
from mealer.adapters.supabase_config_repository import SupabaseConfigRepository
from mealer.adapters.supabase_inventory_repository import (
    SupabaseInventoryRepository,
)
from mealer.adapters.supabase_profile_repository import SupabaseProfileRepository
from mealer.adapters.supabase_usage_repository import SupabaseUsageRepository
from mealer.config import Settings
from mealer.services.auth import AuthService
from mealer.services.catalog import ProductCatalogService
from mealer.services.profiles import ProfileService
from mealer.services.receipts import ReceiptScanService
from mealer.services.substitutions import SubstitutionService
from mealer.services.usage import UsageService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    auth_service: AuthService
    usage_service: UsageService
    receipt_scan_service: ReceiptScanService
    substitution_service: SubstitutionService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    usage_service = UsageService(
        usage_repository=SupabaseUsageRepository(supabase_client),
        config_repository=SupabaseConfigRepository(supabase_client),
        max_attempts=resolved_settings.usage_increment_attempts,
        retry_delay_seconds=resolved_settings.usage_retry_delay_seconds,
    )
    profile_service = ProfileService(SupabaseProfileRepository(supabase_client))
    llm_client = OpenAIStructuredClient.create(resolved_settings.openai_api_key)
    receipt_scan_service = ReceiptScanService(
        client=llm_client,
        usage_service=usage_service,
        catalog=ProductCatalogService(
            SupabaseProductCatalogRepository(supabase_client)
        ),
        model=resolved_settings.openai_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
    )
    substitution_service = SubstitutionService(
        client=llm_client,
        usage_service=usage_service,
        profile_service=profile_service,
        inventory_repository=SupabaseInventoryRepository(supabase_client),
        model=resolved_settings.openai_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
    )

    async def close_resources() -> None:
        await llm_client.client.close()

    return AppContainer(
        settings=resolved_settings,
        auth_service=AuthService(SupabaseAuthClient(supabase_client)),
        usage_service=usage_service,
        receipt_scan_service=receipt_scan_service,
        substitution_service=substitution_service,
        close_resources=close_resources,
    )
