# app/core/auth.py
import uuid
from typing import Any

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from sqlmodel import Session

from app.core.config import get_settings
from app.core.errors import AuthenticationError, AuthorizationError
from app.database import get_session
from app.models.profile import Profile

settings = get_settings()

# HTTP Bearer scheme:
# - auto_error=False => a missing Authorization header does not raise here,
#   so public storefront routes can share the same dependency chain.
bearer_scheme = HTTPBearer(auto_error=False)

ROLE_MERCHANT = "merchant"
ROLE_SUPER_ADMIN = "super_admin"


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and verify a Supabase access token (JWT).

    Verification:
      - signature (HS256 using SUPABASE_JWT_SECRET)
      - expiration time (exp)
      - audience is NOT verified (Supabase 'aud' may vary)

    Raises:
        AuthenticationError: if token is invalid/expired.
    """
    try:
        return jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[settings.SUPABASE_JWT_ALG],
            options={"verify_aud": False},
        )
    except JWTError:
        raise AuthenticationError("Invalid or expired token")


def get_current_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> uuid.UUID | None:
    """
    Resolve the caller's Supabase user id from the Bearer token.

    Returns:
        The 'sub' claim as UUID, or None when no token was sent.

    Raises:
        AuthenticationError: token is malformed or has no usable 'sub'.
    """
    if credentials is None:
        return None

    payload = decode_access_token(credentials.credentials)
    sub = payload.get("sub")
    if not sub:
        raise AuthenticationError("Token missing sub")

    # Supabase provides sub as a string; enforce UUID
    try:
        return uuid.UUID(sub)
    except ValueError:
        raise AuthenticationError("Invalid sub in token")


def require_auth(identity: uuid.UUID | None = Depends(get_current_identity)) -> uuid.UUID:
    """
    Enforce authentication and return the caller's user id.
    """
    if identity is None:
        raise AuthenticationError()
    return identity


def get_current_profile(
    identity: uuid.UUID = Depends(require_auth),
    session: Session = Depends(get_session),
) -> Profile:
    """
    Load the caller's profile row.

    Profiles are created by provisioning, never on the fly: an account
    without one is not authorized for anything.
    """
    profile = session.get(Profile, identity)
    if profile is None:
        raise AuthorizationError()
    return profile


def require_super_admin(profile: Profile = Depends(get_current_profile)) -> Profile:
    """
    Enforce role == "super_admin" (merchant onboarding, plan changes).
    """
    if profile.role != ROLE_SUPER_ADMIN:
        raise AuthorizationError()
    return profile


def require_merchant(profile: Profile = Depends(get_current_profile)) -> Profile:
    """
    Enforce role == "merchant" (store settings, catalog, orders).
    """
    if profile.role != ROLE_MERCHANT:
        raise AuthorizationError()
    return profile
