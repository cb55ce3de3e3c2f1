"""Request rate limits.

`limiter` applies an application-wide budget per client address through
slowapi's middleware, with the Stripe webhook exempt. Login gets a second,
stricter budget that only failed attempts consume.
"""

from __future__ import annotations

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from limits import parse
from limits.storage import MemoryStorage
from limits.strategies import FixedWindowRateLimiter
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from nextup.config import settings

logger = logging.getLogger(__name__)

limiter = Limiter(
    key_func=get_remote_address,
    application_limits=[settings.rate_limit_default],
    enabled=settings.rate_limit_enabled,
)

LOGIN_FAILURE_LIMIT = parse(settings.login_failure_limit)
_login_failures = FixedWindowRateLimiter(MemoryStorage())


def _login_key(request: Request) -> str:
    return f"login-failures:{get_remote_address(request)}"


def login_attempts_exhausted(request: Request) -> bool:
    """True once this client has used up its failed-login budget."""
    if not limiter.enabled:
        return False
    return not _login_failures.test(LOGIN_FAILURE_LIMIT, _login_key(request))


def record_failed_login(request: Request) -> None:
    if not limiter.enabled:
        return
    _login_failures.hit(LOGIN_FAILURE_LIMIT, _login_key(request))
    logger.info(f"Failed login recorded for {get_remote_address(request)}")


def reset_limits() -> None:
    """Clear every counter."""
    limiter.reset()
    _login_failures.storage.reset()


def rate_limit_exceeded(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 in the same `{"detail": ...}` shape as every other error."""
    logger.warning(f"Rate limit exceeded by {get_remote_address(request)}: {exc.detail}")
    return JSONResponse(
        status_code=429,
        content={"detail": "Too many requests. Try again later."},
    )
