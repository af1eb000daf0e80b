# app/core/identity.py
"""
Identity-service gateway (Supabase Auth admin API).

Kept behind a small class so the provisioning saga depends on two calls
(create / delete) rather than on the whole Supabase client.
"""

import logging
import uuid
from functools import lru_cache

from supabase import AuthError, Client, create_client

from app.core.config import get_settings
from app.core.errors import ConflictError, DependencyError

settings = get_settings()
logger = logging.getLogger(__name__)


@lru_cache
def supabase_admin() -> Client:
    """
    Supabase client authenticated with the service role key.

    Only the backend may hold this key: it bypasses RLS and can manage
    Auth users.

    Raises:
        RuntimeError: SUPABASE_SERVICE_ROLE_KEY is not configured.
    """
    if not settings.SUPABASE_SERVICE_ROLE_KEY:
        raise RuntimeError("Missing SUPABASE_SERVICE_ROLE_KEY in .env")
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)


class IdentityService:
    def __init__(self, client: Client | None = None):
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = supabase_admin()
        return self._client

    def create_user(self, email: str, password: str, full_name: str) -> uuid.UUID:
        """
        Create a pre-confirmed account and return its id.

        Raises:
            ConflictError: email already registered.
            DependencyError: any other Auth API failure.
        """
        try:
            response = self.client.auth.admin.create_user(
                {
                    "email": email,
                    "password": password,
                    "email_confirm": True,
                    "user_metadata": {"full_name": full_name},
                }
            )
        except AuthError as exc:
            if getattr(exc, "status", None) == 422 or "already" in str(exc).lower():
                raise ConflictError("This email is already registered") from exc
            logger.exception("Auth create_user failed for %s", email)
            raise DependencyError("Failed to create the account") from exc

        if response is None or response.user is None:
            raise DependencyError("Failed to create the account")
        return uuid.UUID(str(response.user.id))

    def delete_user(self, user_id: uuid.UUID) -> None:
        self.client.auth.admin.delete_user(str(user_id))


def get_identity_service() -> IdentityService:
    """FastAPI dependency; overridden in tests."""
    return IdentityService()
