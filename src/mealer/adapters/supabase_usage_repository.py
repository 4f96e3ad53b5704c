"""Supabase-backed daily AI usage repository."""

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from postgrest.exceptions import APIError
from supabase import Client

from mealer.domain.usage import UsageRecord
from mealer.services.usage import UsageRecordExistsError, UsageRepository

_UNIQUE_VIOLATION = "23505"


@dataclass
class SupabaseUsageRepository(UsageRepository):
    """Supabase implementation for the ai_usage_log table."""

    client: Client

    def get_usage(self, user_id: UUID, usage_date: date) -> UsageRecord | None:
        """Return the usage row for a user and day, if present."""
        response = (
            self.client.table("ai_usage_log")
            .select("user_id, usage_date, receipt_scan_count, substitution_count")
            .eq("user_id", str(user_id))
            .eq("usage_date", usage_date.isoformat())
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_usage(response.data[0])

    def insert_usage(self, record: UsageRecord) -> None:
        """Insert a usage row, translating unique violations."""
        try:
            response = (
                self.client.table("ai_usage_log")
                .insert(
                    {
                        "user_id": str(record.user_id),
                        "usage_date": record.usage_date.isoformat(),
                        "receipt_scan_count": record.receipt_scan_count,
                        "substitution_count": record.substitution_count,
                    }
                )
                .execute()
            )
        except APIError as exc:
            if exc.code == _UNIQUE_VIOLATION:
                raise UsageRecordExistsError(
                    f"Usage row already exists for {record.user_id} "
                    f"on {record.usage_date.isoformat()}"
                ) from exc
            raise
        if not response.data:
            raise RuntimeError("Failed to create AI usage row")

    def update_usage(self, current: UsageRecord, updated: UsageRecord) -> bool:
        """Update counters only when the stored counters still match current."""
        response = (
            self.client.table("ai_usage_log")
            .update(
                {
                    "receipt_scan_count": updated.receipt_scan_count,
                    "substitution_count": updated.substitution_count,
                }
            )
            .eq("user_id", str(current.user_id))
            .eq("usage_date", current.usage_date.isoformat())
            .eq("receipt_scan_count", current.receipt_scan_count)
            .eq("substitution_count", current.substitution_count)
            .execute()
        )
        return bool(response.data)


def _parse_usage(row: dict[str, object]) -> UsageRecord:
    """Parse an ai_usage_log row into a domain model."""
    return UsageRecord(
        user_id=UUID(str(row["user_id"])),
        usage_date=date.fromisoformat(str(row["usage_date"])),
        receipt_scan_count=int(row.get("receipt_scan_count") or 0),
        substitution_count=int(row.get("substitution_count") or 0),
    )
