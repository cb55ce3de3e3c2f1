"""Access/refresh token minting and verification (HS256 JWTs)."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from nextup.config import settings

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def _encode(claims: dict[str, Any], *, secret: str, ttl: timedelta) -> str:
    now = datetime.now(UTC)
    payload = {**claims, "iat": now, "exp": now + ttl}
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def _decode(token: str, *, secret: str, token_type: str) -> dict[str, Any] | None:
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[JWT_ALGORITHM],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        logger.info(f"Rejected expired {token_type} token")
        return None
    except jwt.InvalidTokenError as exc:
        logger.warning(f"Rejected invalid {token_type} token: {exc}")
        return None

    if payload.get("type") != token_type:
        return None
    if not str(payload.get("sub", "")).isdigit():
        return None
    return payload


def issue_access_token(*, user_id: int, email: str, is_admin: bool) -> str:
    """Mint a short-lived access token carrying the caller's identity claims."""
    return _encode(
        {
            "sub": str(user_id),
            "email": email,
            "is_admin": bool(is_admin),
            "type": ACCESS_TOKEN_TYPE,
        },
        secret=settings.jwt_secret,
        ttl=timedelta(minutes=settings.access_token_ttl_minutes),
    )


def issue_refresh_token(*, user_id: int) -> str:
    """Mint a long-lived refresh token; it carries only the user id."""
    return _encode(
        {"sub": str(user_id), "type": REFRESH_TOKEN_TYPE},
        secret=settings.refresh_token_secret,
        ttl=timedelta(days=settings.refresh_token_ttl_days),
    )


def decode_access_token(token: str) -> dict[str, Any] | None:
    return _decode(token, secret=settings.jwt_secret, token_type=ACCESS_TOKEN_TYPE)


def decode_refresh_token(token: str) -> dict[str, Any] | None:
    return _decode(
        token, secret=settings.refresh_token_secret, token_type=REFRESH_TOKEN_TYPE
    )
