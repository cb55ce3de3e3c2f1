"""Stripe payment routes: checkout creation, webhook receiver, redirect confirmation."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from nextup.models.payments import CheckoutResponse, ConfirmResponse, WebhookAck
from nextup.rate_limit import limiter
from nextup.services.authz import Identity, get_current_identity
from nextup.services.payment_service import (
    CheckoutError,
    confirm_checkout,
    handle_webhook_event,
    start_checkout,
)
from nextup.services.stripe_client import (
    CheckoutSessionNotFound,
    StripeGateway,
    WebhookVerificationError,
    get_payment_gateway,
)
from nextup.utils.db_async import get_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payments", tags=["payments"])

CHECKOUT_ERROR_STATUS = {
    CheckoutError.NO_ACTIVE_SEASON: 404,
    CheckoutError.ALREADY_REGISTERED: 409,
    CheckoutError.NOT_CONFIGURED: 503,
}


@router.post("/webhook", response_model=WebhookAck)
@limiter.exempt
async def stripe_webhook(
    request: Request,
    db: AsyncSession = Depends(get_session),
    gateway: StripeGateway = Depends(get_payment_gateway),
) -> WebhookAck:
    """Stripe webhook receiver (public; authenticated by signature only).

    Once the signature verifies, every business outcome is acknowledged with
    200 so Stripe does not redeliver events we have already handled.
    """
    payload = await request.body()
    try:
        event = gateway.verify_webhook(payload, request.headers.get("stripe-signature"))
    except WebhookVerificationError as exc:
        logger.warning(f"Webhook signature verification failed: {exc}")
        raise HTTPException(status_code=400, detail=f"Webhook Error: {exc}") from exc

    logger.info(f"Stripe webhook verified id={event.get('id')} type={event.get('type')}")
    await handle_webhook_event(db, event)
    return WebhookAck(received=True)


@router.get("/confirm", response_model=ConfirmResponse, response_model_exclude_none=True)
async def confirm(
    session_id: str | None = Query(default=None),
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
    gateway: StripeGateway = Depends(get_payment_gateway),
) -> ConfirmResponse:
    """Confirm a checkout after the client is redirected back from Stripe."""
    if not session_id:
        raise HTTPException(status_code=400, detail="session_id required")

    try:
        outcome = await confirm_checkout(db, gateway, session_id)
    except CheckoutSessionNotFound as exc:
        raise HTTPException(status_code=404, detail="Checkout session not found.") from exc
    if outcome.is_recorded:
        return ConfirmResponse(recorded=True)
    return ConfirmResponse(recorded=False, reason=outcome.value)


@router.post("/checkout", response_model=CheckoutResponse, status_code=201)
async def checkout(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
    gateway: StripeGateway = Depends(get_payment_gateway),
) -> CheckoutResponse:
    """Start a Stripe Checkout for the active season's tryout."""
    session, error = await start_checkout(
        db, gateway, user_id=identity.id, email=identity.email or None
    )
    if error is not None:
        raise HTTPException(status_code=CHECKOUT_ERROR_STATUS[error], detail=error.value)
    assert session is not None
    return CheckoutResponse(id=session.id, url=session.url)
