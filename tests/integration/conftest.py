"""Integration fixtures: a real database, the app wired to it, and a fake Stripe."""

import os
from pathlib import Path
from typing import AsyncGenerator

import pytest
import pytest_asyncio

from httpx import AsyncClient, ASGITransport
from pydantic import ValidationError
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlmodel import SQLModel

from tests.integration.stripe_fakes import FakeStripeGateway


def _load_database_url(tmp_path: Path) -> str:
    """Resolve the database URL for tests, enforcing an explicit opt-in for Postgres.

    Without TEST_DATABASE_URL the suite runs against a throwaway SQLite file.
    """
    test_db_url = os.getenv("TEST_DATABASE_URL")
    if not test_db_url:
        return f"sqlite+aiosqlite:///{tmp_path / 'nextup-test.db'}"

    pytest_allow_db = int(os.getenv("PYTEST_ALLOW_DB", "0"))
    if pytest_allow_db != 1:
        raise RuntimeError(
            "Running integration tests requires setting PYTEST_ALLOW_DB=1 to"
            " confirm the configured database is safe to mutate."
        )
    return test_db_url


@pytest.fixture()
def database_url(tmp_path: Path) -> str:
    return _load_database_url(tmp_path)


@pytest_asyncio.fixture()
async def async_engine(database_url: str) -> AsyncGenerator[AsyncEngine, None]:
    """Yield an engine with a freshly created schema."""
    from nextup.utils.db_async import _prepare_connection, load_schema_modules

    # Ensure SQLModel metadata is populated before creating tables.
    load_schema_modules()

    url, connect_args = _prepare_connection(database_url)
    engine = create_async_engine(url, echo=False, pool_pre_ping=True, connect_args=connect_args)

    if engine.dialect.name == "sqlite":

        @event.listens_for(engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):  # type: ignore[unused-argument]
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
        await conn.run_sync(SQLModel.metadata.create_all)
    try:
        yield engine
    finally:
        async with engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.drop_all)
        await engine.dispose()


@pytest.fixture()
def session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(async_engine, expire_on_commit=False, class_=AsyncSession)


@pytest_asyncio.fixture()
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Session for test setup and assertions; the app gets its own sessions."""
    async with session_factory() as session:
        yield session


@pytest.fixture()
def stripe_gateway() -> FakeStripeGateway:
    return FakeStripeGateway()


@pytest_asyncio.fixture()
async def app_client(
    session_factory: async_sessionmaker[AsyncSession],
    stripe_gateway: FakeStripeGateway,
) -> AsyncGenerator[AsyncClient, None]:
    """Provide an HTTP client with the application wired to the test database."""
    try:
        from nextup.main import app
    except ValidationError as exc:  # pragma: no cover - guard for misconfigured env
        pytest.skip(f"App configuration failed: {exc}")

    from nextup.services.stripe_client import get_payment_gateway
    from nextup.utils.db_async import get_session

    async def _get_session_override() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = _get_session_override
    app.dependency_overrides[get_payment_gateway] = lambda: stripe_gateway
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
    finally:
        app.dependency_overrides.pop(get_session, None)
        app.dependency_overrides.pop(get_payment_gateway, None)
