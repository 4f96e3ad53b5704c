"""Supabase repository for user profiles."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from mealer.domain.profiles import UserProfile
from mealer.domain.warnings import DietaryProfile
from mealer.services.profiles import ProfileRepository


@dataclass
class SupabaseProfileRepository(ProfileRepository):
    """Supabase implementation for the profiles table."""

    client: Client

    def get_profile(self, user_id: UUID) -> UserProfile | None:
        """Return the profile for a user, if present."""
        response = (
            self.client.table("profiles")
            .select("id, allergies, diets, equipment, onboarding_status")
            .eq("id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        return UserProfile(
            user_id=UUID(str(row["id"])),
            onboarding_status=str(row.get("onboarding_status") or "pending"),
            dietary=DietaryProfile(
                allergies=_string_tuple(row.get("allergies")),
                diets=_string_tuple(row.get("diets")),
                equipment=_string_tuple(row.get("equipment")),
            ),
        )


def _string_tuple(value: object) -> tuple[str, ...]:
    """Coerce a JSONB array into strings, dropping anything else."""
    if not isinstance(value, list):
        return ()
    return tuple(item for item in value if isinstance(item, str))
