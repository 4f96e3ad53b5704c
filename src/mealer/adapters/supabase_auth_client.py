"""Supabase Auth access token verification."""

import logging
from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from mealer.services.auth import AuthClient

_logger = logging.getLogger(__name__)


@dataclass
class SupabaseAuthClient(AuthClient):
    """Resolve access tokens through Supabase Auth."""

    client: Client

    def get_user_id(self, access_token: str) -> UUID | None:
        """Return the user id for a valid access token."""
        try:
            response = self.client.auth.get_user(access_token)
        except Exception:
            _logger.warning("Supabase rejected access token", exc_info=True)
            return None
        if response is None or response.user is None:
            return None
        return UUID(str(response.user.id))
