"""Integration tests for starting a Stripe Checkout."""

from __future__ import annotations

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from nextup.config import settings
from tests.integration.api_helpers import (
    auth_headers,
    create_season,
    create_tryout,
    create_user,
)
from tests.integration.stripe_fakes import FakeStripeGateway

CHECKOUT_PATH = "/api/payments/checkout"


@pytest.mark.asyncio
class TestCheckout:
    async def test_opens_session_for_active_season(
        self,
        app_client: AsyncClient,
        db_session: AsyncSession,
        stripe_gateway: FakeStripeGateway,
    ):
        user_id = await create_user(db_session, email="player@example.com")
        season_id = await create_season(db_session, name="Fall", is_active=True)

        response = await app_client.post(
            CHECKOUT_PATH, headers=auth_headers(user_id, email="player@example.com")
        )

        assert response.status_code == 201
        body = response.json()
        assert body["id"] == "cs_test_1"
        assert body["url"].endswith("cs_test_1")

        (created,) = stripe_gateway.created
        assert created["client_reference_id"] == f"{user_id}|{season_id}"
        assert created["price_id"] == settings.stripe_price_id
        assert created["customer_email"] == "player@example.com"
        assert created["success_url"].endswith(
            "/payment/success?session_id={CHECKOUT_SESSION_ID}"
        )
        assert created["cancel_url"].endswith("/payment/cancelled")

    async def test_no_active_season_is_404(
        self,
        app_client: AsyncClient,
        db_session: AsyncSession,
        stripe_gateway: FakeStripeGateway,
    ):
        user_id = await create_user(db_session, email="player@example.com")
        await create_season(db_session, name="Spring")

        response = await app_client.post(CHECKOUT_PATH, headers=auth_headers(user_id))

        assert response.status_code == 404
        assert stripe_gateway.created == []

    async def test_already_registered_is_409(
        self,
        app_client: AsyncClient,
        db_session: AsyncSession,
        stripe_gateway: FakeStripeGateway,
    ):
        user_id = await create_user(db_session, email="player@example.com")
        season_id = await create_season(db_session, name="Fall", is_active=True)
        await create_tryout(db_session, user_id=user_id, season_id=season_id)

        response = await app_client.post(CHECKOUT_PATH, headers=auth_headers(user_id))

        assert response.status_code == 409
        assert stripe_gateway.created == []

    async def test_missing_price_is_503(
        self,
        app_client: AsyncClient,
        db_session: AsyncSession,
        monkeypatch: pytest.MonkeyPatch,
    ):
        monkeypatch.setattr(settings, "stripe_price_id", None)
        user_id = await create_user(db_session, email="player@example.com")

        response = await app_client.post(CHECKOUT_PATH, headers=auth_headers(user_id))

        assert response.status_code == 503
