"""AI feature usage tracking and daily rate limiting."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import Protocol
from uuid import UUID

from mealer.domain.usage import (
    FeatureType,
    RateLimitCheck,
    RateLimitConfig,
    UsageCounter,
    UsageRecord,
    UsageSnapshot,
)

_logger = logging.getLogger(__name__)


class UsageRecordExistsError(Exception):
    """Raised by a repository when a usage row for the day already exists."""


class UsageConflictError(Exception):
    """Raised when an increment keeps colliding with concurrent writers."""


class RateLimitExceededError(Exception):
    """Raised when a user has exhausted the daily limit for a feature."""

    def __init__(self, feature: FeatureType, check: RateLimitCheck) -> None:
        super().__init__(
            f"Daily limit for {feature.value} exceeded ({check.used}/{check.limit})"
        )
        self.feature = feature
        self.check = check


class UsageRepository(Protocol):
    """Persistence interface for daily usage rows."""

    def get_usage(self, user_id: UUID, usage_date: date) -> UsageRecord | None:
        """Return the usage row for a user and day, if present."""

    def insert_usage(self, record: UsageRecord) -> None:
        """Insert a new usage row, raising UsageRecordExistsError on conflict."""

    def update_usage(self, current: UsageRecord, updated: UsageRecord) -> bool:
        """Replace counters only if the stored row still equals current."""


class RateLimitConfigRepository(Protocol):
    """Read access to runtime rate limit configuration."""

    def get_rate_limits(self) -> RateLimitConfig | None:
        """Return configured limits, or None when nothing is configured."""


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class UsageService:
    """Service for checking and counting metered AI feature usage."""

    usage_repository: UsageRepository
    config_repository: RateLimitConfigRepository
    max_attempts: int = 5
    retry_delay_seconds: float = 0.05
    clock: Callable[[], datetime] = field(default=_utc_now)
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep)

    def today(self) -> date:
        """Return the current UTC calendar date."""
        return self.clock().astimezone(UTC).date()

    def get_rate_limits(self) -> RateLimitConfig:
        """Return configured limits, falling back to defaults."""
        return self.config_repository.get_rate_limits() or RateLimitConfig()

    def check_rate_limit(self, user_id: UUID, feature: FeatureType) -> RateLimitCheck:
        """Return whether the user may use a feature right now."""
        limits = self.get_rate_limits()
        record = self._usage_today(user_id)
        return _check(record.count_for(feature), limits.limit_for(feature))

    def require_allowance(self, user_id: UUID, feature: FeatureType) -> RateLimitCheck:
        """Return the rate limit check or raise when the limit is exhausted."""
        check = self.check_rate_limit(user_id, feature)
        if not check.allowed:
            _logger.info(
                "Rate limit reached: user_id=%s feature=%s used=%s limit=%s",
                user_id,
                feature.value,
                check.used,
                check.limit,
            )
            raise RateLimitExceededError(feature, check)
        return check

    async def increment_usage(self, user_id: UUID, feature: FeatureType) -> int:
        """Increment today's counter for a feature and return the new value.

        Inserts the day's row on first use and otherwise performs a
        compare-and-set update. Losing a race to a concurrent request triggers
        another read-modify-write attempt, up to ``max_attempts``.
        """
        usage_date = self.today()
        attempt = 0
        while True:
            attempt += 1
            current = self.usage_repository.get_usage(user_id, usage_date)
            if current is None:
                created = UsageRecord(user_id=user_id, usage_date=usage_date)
                created = created.incremented(feature)
                try:
                    self.usage_repository.insert_usage(created)
                except UsageRecordExistsError:
                    _logger.warning(
                        "Usage row created concurrently: user_id=%s date=%s",
                        user_id,
                        usage_date,
                    )
                else:
                    return created.count_for(feature)
            else:
                updated = current.incremented(feature)
                if self.usage_repository.update_usage(current, updated):
                    return updated.count_for(feature)
                _logger.warning(
                    "Usage row changed concurrently: user_id=%s date=%s",
                    user_id,
                    usage_date,
                )
            if attempt >= self.max_attempts:
                _logger.error(
                    "Giving up on usage increment after %s attempts: user_id=%s",
                    attempt,
                    user_id,
                )
                raise UsageConflictError(
                    f"Could not increment {feature.value} usage for user {user_id}"
                )
            await self.sleep(self.retry_delay_seconds * attempt)

    def get_usage_snapshot(self, user_id: UUID) -> UsageSnapshot:
        """Return today's usage and limits for every feature."""
        limits = self.get_rate_limits()
        record = self._usage_today(user_id)
        return UsageSnapshot(
            usage_date=record.usage_date,
            receipt_scans=_counter(
                record.receipt_scan_count, limits.receipt_scans_per_day
            ),
            substitutions=_counter(
                record.substitution_count, limits.substitutions_per_day
            ),
        )

    def _usage_today(self, user_id: UUID) -> UsageRecord:
        usage_date = self.today()
        record = self.usage_repository.get_usage(user_id, usage_date)
        return record or UsageRecord(user_id=user_id, usage_date=usage_date)


def _check(used: int, limit: int) -> RateLimitCheck:
    return RateLimitCheck(
        allowed=used < limit,
        used=used,
        limit=limit,
        remaining=max(0, limit - used),
    )


def _counter(used: int, limit: int) -> UsageCounter:
    return UsageCounter(used=used, limit=limit, remaining=max(0, limit - used))
