# storefront/core/auth.py
import hmac
from dataclasses import dataclass
from typing import Any

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError

from storefront.core.config import get_settings
from storefront.services.identity import Identity

# HTTP Bearer scheme:
# - auto_error=False => missing Authorization header will NOT raise immediately
#   so we can support "guest" mode (unauthenticated).
bearer_scheme = HTTPBearer(auto_error=False)


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and verify a Supabase access token (JWT).

    Verification:
      - signature (HS256 using SUPABASE_JWT_SECRET)
      - expiration time (exp)
      - audience is NOT verified (Supabase 'aud' may vary)

    Args:
        token: raw JWT from the Authorization header.

    Returns:
        Decoded JWT claims.

    Raises:
        HTTPException(401): if token is invalid/expired.
    """
    settings = get_settings()
    try:
        return jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[settings.SUPABASE_JWT_ALG],
            options={"verify_aud": False},
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )


def identity_from_claims(payload: dict[str, Any]) -> Identity:
    sub = payload.get("sub")
    if not sub:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token missing sub",
        )
    metadata = payload.get("user_metadata") or {}
    return Identity(
        user_id=str(sub),
        email=payload.get("email"),
        display_name=metadata.get("display_name"),
    )


def get_current_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Identity | None:
    """
    Resolve the shopper from a Supabase JWT.

    Returns:
        Identity if authenticated, else None for guests.

    Raises:
        HTTPException(401): if a token is present but invalid.
    """
    if credentials is None:
        return None  # guest mode
    return identity_from_claims(decode_access_token(credentials.credentials))


def require_identity(
    identity: Identity | None = Depends(get_current_identity),
) -> Identity:
    """
    Enforce authentication.

    Raises:
        HTTPException(401): if the caller is a guest.
    """
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return identity


@dataclass(frozen=True)
class AdminPrincipal:
    method: str  # "password" | "token"
    email: str | None = None


def is_admin_email(email: str | None) -> bool:
    if not email:
        return False
    return email.lower() in get_settings().admin_emails


def is_valid_admin_password(password: str | None) -> bool:
    expected = get_settings().ADMIN_PASSWORD
    if not password or not expected:
        return False
    return hmac.compare_digest(password.encode(), expected.encode())


def require_admin(
    x_admin_password: str | None = Header(default=None),
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> AdminPrincipal:
    """
    Authenticate an admin request.

    Accepted credentials (checked in this order):
      1. shared secret in the "x-admin-password" header
      2. Supabase access token whose email is in ADMIN_EMAILS

    Raises:
        HTTPException(401): missing or invalid credentials.
        HTTPException(403): valid token for a non-admin user.
    """
    if x_admin_password is not None:
        if is_valid_admin_password(x_admin_password):
            return AdminPrincipal(method="password")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin password",
        )

    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=(
                "Missing authentication. Provide either "
                "'Authorization: Bearer <token>' or 'x-admin-password' header."
            ),
        )

    payload = decode_access_token(credentials.credentials)
    email = payload.get("email")
    if not is_admin_email(email):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"User {email} is not authorized as admin",
        )
    return AdminPrincipal(method="token", email=email)
