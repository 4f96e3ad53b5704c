"""User profile lookups."""

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from mealer.domain.profiles import UserProfile


class ProfileNotFoundError(Exception):
    """Raised when an authenticated user has no profile row."""


class OnboardingIncompleteError(Exception):
    """Raised when a feature requires a finished onboarding."""


class ProfileRepository(Protocol):
    """Persistence interface for user profiles."""

    def get_profile(self, user_id: UUID) -> UserProfile | None:
        """Return the profile for a user, if present."""


@dataclass
class ProfileService:
    """Application service for profile access."""

    repository: ProfileRepository

    def get_profile(self, user_id: UUID) -> UserProfile:
        """Return the user's profile or raise if it does not exist."""
        profile = self.repository.get_profile(user_id)
        if profile is None:
            raise ProfileNotFoundError(f"Profile not found for user {user_id}")
        return profile

    def require_onboarded(self, user_id: UUID) -> UserProfile:
        """Return the profile of a user who has completed onboarding."""
        profile = self.get_profile(user_id)
        if not profile.is_onboarded:
            raise OnboardingIncompleteError(
                "Complete onboarding before using AI features"
            )
        return profile
