"""Bearer token verification against the Supabase identity service.

Every relay runs the gate before touching its payload, so a rejected caller
never costs a decode or a model-API call.
"""

from dataclasses import dataclass

import httpx
import structlog
from supabase import AuthError, Client, create_client

from backend.core.config import Settings
from backend.core.errors import Unauthenticated

logger = structlog.get_logger(__name__)

BEARER_SCHEME = "bearer"


@dataclass(frozen=True)
class Identity:
    """Verified caller. Never logged or echoed back."""
    user_id: str

    def __repr__(self) -> str:
        return "Identity(user_id=***)"


class AuthGate:
    """Resolves an Authorization header to an Identity."""

    def __init__(self, client: Client):
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "AuthGate":
        return cls(create_client(settings.supabase_url, settings.supabase_anon_key))

    def resolve(self, authorization: str | None) -> Identity:
        """Exchange the bearer token for a verified identity.

        Args:
            authorization: Raw value of the Authorization header, or None.

        Returns:
            Identity of the token's owner.

        Raises:
            Unauthenticated: Header missing, token rejected, or no user found.
        """
        if not authorization or not authorization.strip():
            logger.info("auth.rejected", reason="missing_header")
            raise Unauthenticated("Missing Authorization header")

        jwt = authorization.strip()
        scheme, _, token = jwt.partition(" ")
        if scheme.lower() == BEARER_SCHEME:
            jwt = token.strip()
        if not jwt:
            logger.info("auth.rejected", reason="empty_token")
            raise Unauthenticated("Missing Authorization header")

        try:
            response = self._client.auth.get_user(jwt)
        except (AuthError, httpx.HTTPError) as e:
            logger.info("auth.rejected", reason="backend_error", error=str(e))
            raise Unauthenticated("Invalid or expired token") from e

        user = getattr(response, "user", None) if response else None
        if user is None or not getattr(user, "id", None):
            logger.info("auth.rejected", reason="no_user")
            raise Unauthenticated("Invalid or expired token")

        logger.debug("auth.ok")
        return Identity(user_id=str(user.id))
