"""Registration, login and refresh-token routes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from nextup.config import settings
from nextup.models.users import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    TokenResponse,
    UserRead,
)
from nextup.rate_limit import login_attempts_exhausted, record_failed_login
from nextup.schemas.users import User
from nextup.services.token_service import (
    decode_refresh_token,
    issue_access_token,
    issue_refresh_token,
)
from nextup.services.user_service import authenticate_user, create_user, get_user_by_id
from nextup.utils.db_async import get_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

REFRESH_COOKIE_NAME = "refresh"
REFRESH_COOKIE_PATH = "/api/auth"


def _set_refresh_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=REFRESH_COOKIE_NAME,
        value=token,
        max_age=settings.refresh_token_ttl_days * 24 * 60 * 60,
        httponly=True,
        secure=settings.is_prod,
        samesite="strict",
        path=REFRESH_COOKIE_PATH,
    )


def _issue_tokens(response: Response, user: User) -> str:
    assert user.id is not None
    _set_refresh_cookie(response, issue_refresh_token(user_id=user.id))
    return issue_access_token(user_id=user.id, email=user.email, is_admin=user.is_admin)


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    payload: RegisterRequest,
    response: Response,
    db: AsyncSession = Depends(get_session),
) -> AuthResponse:
    """Create an account and sign the new user in."""
    user, error = await create_user(
        db, name=payload.name, email=payload.email, password=payload.password
    )
    if error or user is None:
        raise HTTPException(status_code=409, detail=error or "Registration failed.")

    token = _issue_tokens(response, user)
    return AuthResponse(
        message="Registration successful",
        user=UserRead.model_validate(user),
        token=token,
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    request: Request,
    payload: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_session),
) -> AuthResponse:
    """Exchange credentials for an access token and a refresh cookie."""
    if login_attempts_exhausted(request):
        raise HTTPException(
            status_code=429, detail="Too many failed logins. Try again in 15 minutes."
        )

    user = await authenticate_user(db, email=payload.email, password=payload.password)
    if user is None:
        record_failed_login(request)
        raise HTTPException(status_code=401, detail="Invalid credentials.")

    token = _issue_tokens(response, user)
    logger.info(f"User logged in user_id={user.id}")
    return AuthResponse(
        message="Login successful",
        user=UserRead.model_validate(user),
        token=token,
    )


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_session),
) -> TokenResponse:
    """Rotate the refresh cookie and mint a fresh access token."""
    raw_token = request.cookies.get(REFRESH_COOKIE_NAME)
    if not raw_token:
        raise HTTPException(status_code=401, detail="No refresh token provided.")

    claims = decode_refresh_token(raw_token)
    if claims is None:
        raise HTTPException(status_code=403, detail="Invalid or expired refresh token.")

    # Claims such as is_admin may have changed since login; reload the user.
    user = await get_user_by_id(db, int(claims["sub"]))
    if user is None:
        raise HTTPException(status_code=403, detail="Invalid or expired refresh token.")

    return TokenResponse(token=_issue_tokens(response, user))


@router.post("/logout", status_code=204)
async def logout() -> Response:
    """Clear the refresh cookie."""
    response = Response(status_code=204)
    response.delete_cookie(
        key=REFRESH_COOKIE_NAME,
        path=REFRESH_COOKIE_PATH,
        httponly=True,
        secure=settings.is_prod,
        samesite="strict",
    )
    logger.info("User logged out")
    return response
