"""Shared pytest configuration.

Settings are built at import time, so safe defaults must be in the
environment before anything under `nextup` is imported.
"""

import os

from dotenv import load_dotenv

load_dotenv()

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENV", "dev")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-with-enough-bytes-for-hs256")
os.environ.setdefault("REFRESH_TOKEN_SECRET", "test-refresh-secret-with-enough-bytes-too")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_nextup")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_nextup")
os.environ.setdefault("STRIPE_PRICE_ID", "price_test_tryout")
os.environ.setdefault("FRONTEND_URL", "http://localhost:5173")
os.environ.setdefault("PASSWORD_HASH_ITERATIONS", "1000")
os.environ.setdefault("AUTO_INIT_DB", "false")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest  # noqa: E402


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Ensure HTTPX uses asyncio backend during tests."""
    return "asyncio"
