"""Domain models for user profiles."""

from dataclasses import dataclass
from uuid import UUID

from mealer.domain.warnings import DietaryProfile

ONBOARDING_COMPLETED = "completed"


@dataclass(frozen=True)
class UserProfile:
    """Profile row with its dietary preferences."""

    user_id: UUID
    onboarding_status: str
    dietary: DietaryProfile

    @property
    def is_onboarded(self) -> bool:
        """Return True once the onboarding wizard has been finished."""
        return self.onboarding_status == ONBOARDING_COMPLETED
