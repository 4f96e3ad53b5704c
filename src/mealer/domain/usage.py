"""Domain models for AI feature usage and rate limits."""

from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
from uuid import UUID


class FeatureType(str, Enum):
    """Metered AI features."""

    RECEIPT_SCANS = "receipt_scans"
    SUBSTITUTIONS = "substitutions"


@dataclass(frozen=True)
class RateLimitConfig:
    """Daily per-user limits for metered features."""

    receipt_scans_per_day: int = 5
    substitutions_per_day: int = 10

    def limit_for(self, feature: FeatureType) -> int:
        """Return the daily limit for a feature."""
        if feature is FeatureType.RECEIPT_SCANS:
            return self.receipt_scans_per_day
        return self.substitutions_per_day


@dataclass(frozen=True)
class UsageRecord:
    """Usage counters for one user on one UTC calendar day."""

    user_id: UUID
    usage_date: date
    receipt_scan_count: int = 0
    substitution_count: int = 0

    def count_for(self, feature: FeatureType) -> int:
        """Return the counter value for a feature."""
        if feature is FeatureType.RECEIPT_SCANS:
            return self.receipt_scan_count
        return self.substitution_count

    def incremented(self, feature: FeatureType) -> "UsageRecord":
        """Return a copy with the feature counter increased by one."""
        if feature is FeatureType.RECEIPT_SCANS:
            return replace(self, receipt_scan_count=self.receipt_scan_count + 1)
        return replace(self, substitution_count=self.substitution_count + 1)


@dataclass(frozen=True)
class RateLimitCheck:
    """Point-in-time rate limit decision."""

    allowed: bool
    used: int
    limit: int
    remaining: int


@dataclass(frozen=True)
class UsageCounter:
    """Used, limit and remaining counts for a feature."""

    used: int
    limit: int
    remaining: int


@dataclass(frozen=True)
class UsageSnapshot:
    """Today's usage for every metered feature."""

    usage_date: date
    receipt_scans: UsageCounter
    substitutions: UsageCounter
