"""Access token verification."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

_logger = logging.getLogger(__name__)


class AuthenticationError(Exception):
    """Raised when a request carries no valid access token."""


class AuthClient(Protocol):
    """Interface to the identity provider."""

    def get_user_id(self, access_token: str) -> UUID | None:
        """Return the user id for a valid access token."""


@dataclass
class AuthService:
    """Resolve bearer tokens to user ids."""

    client: AuthClient

    def authenticate(self, authorization: str | None) -> UUID:
        """Return the user id for an ``Authorization: Bearer`` header value."""
        token = _bearer_token(authorization)
        if token is None:
            raise AuthenticationError("Authentication required")
        user_id = self.client.get_user_id(token)
        if user_id is None:
            _logger.warning("Rejected access token")
            raise AuthenticationError("Authentication required")
        return user_id


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
