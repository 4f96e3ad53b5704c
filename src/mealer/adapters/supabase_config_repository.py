"""Supabase repository for runtime system configuration."""

from dataclasses import dataclass

from supabase import Client

from mealer.domain.usage import RateLimitConfig
from mealer.services.usage import RateLimitConfigRepository

_RATE_LIMITS_KEY = "rate_limits"


@dataclass
class SupabaseConfigRepository(RateLimitConfigRepository):
    """Reads configuration rows from the system_config table."""

    client: Client

    def get_rate_limits(self) -> RateLimitConfig | None:
        """Return the configured daily limits, or None when unset."""
        response = (
            self.client.table("system_config")
            .select("value")
            .eq("key", _RATE_LIMITS_KEY)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return parse_rate_limits(response.data[0].get("value"))


def parse_rate_limits(value: object) -> RateLimitConfig:
    """Parse the rate_limits JSON value, defaulting invalid fields."""
    defaults = RateLimitConfig()
    if not isinstance(value, dict):
        return defaults
    return RateLimitConfig(
        receipt_scans_per_day=_positive_int(
            value.get("receipt_scans_per_day"), defaults.receipt_scans_per_day
        ),
        substitutions_per_day=_positive_int(
            value.get("substitutions_per_day"), defaults.substitutions_per_day
        ),
    )


def _positive_int(value: object, fallback: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return fallback
    if isinstance(value, float) and not value.is_integer():
        return fallback
    if value < 1:
        return fallback
    return int(value)
