"""Authorization helpers for protected API endpoints.

`get_current_identity` is stateless: it trusts the signed access token and
never touches the database, so rejected requests cost no store access.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from nextup.services.token_service import decode_access_token

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Identity:
    """Identity claims attached to an authenticated request."""

    id: int
    email: str
    is_admin: bool


def identity_from_claims(claims: dict) -> Identity | None:
    try:
        user_id = int(claims["sub"])
    except (KeyError, TypeError, ValueError):
        return None
    return Identity(
        id=user_id,
        email=str(claims.get("email") or ""),
        is_admin=claims.get("is_admin") is True,
    )


async def get_current_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Identity:
    """Resolve the caller from the bearer token (401 if absent, 403 if invalid)."""
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=401,
            detail="Not authorized. No token provided.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    claims = decode_access_token(credentials.credentials)
    identity = identity_from_claims(claims) if claims is not None else None
    if identity is None:
        raise HTTPException(status_code=403, detail="Token invalid or expired.")
    return identity


async def require_admin(identity: Identity = Depends(get_current_identity)) -> Identity:
    """Require an authenticated admin (403 otherwise)."""
    if not identity.is_admin:
        raise HTTPException(status_code=403, detail="Admin privileges required.")
    return identity
