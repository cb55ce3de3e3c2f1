"""Payment reconciliation for tryout registrations.

Two entry points report a completed Stripe checkout:

* the `checkout.session.completed` webhook (pushed by Stripe, retried on
  any non-2xx response), and
* the client's redirect back from Checkout, which asks us to confirm the
  session by id.

Both hand a `CheckoutSession` to `reconcile_checkout`, which writes the
tryout row with `ON CONFLICT DO NOTHING`. The (user_id, season_id) primary key
is the only coordination between the two paths, so they can race freely.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from nextup.config import settings
from nextup.schemas.base import utcnow
from nextup.schemas.seasons import Season
from nextup.schemas.tryouts import PAYMENT_STATUS_PAID, Tryout
from nextup.schemas.users import User
from nextup.services.stripe_client import (
    CHECKOUT_COMPLETED_EVENT,
    CheckoutSession,
    StripeGateway,
)
from nextup.utils.db_async import dialect_insert

logger = logging.getLogger(__name__)

REFERENCE_SEPARATOR = "|"
# Ids are stored in 32-bit INTEGER columns.
MAX_ID = 2**31 - 1


class ReconcileOutcome(str, Enum):
    RECORDED = "recorded"
    ALREADY_RECORDED = "already_recorded"
    NOT_PAID = "not_paid"
    BAD_REFERENCE = "bad_ref"
    UNKNOWN_REFERENCE = "unknown_ref"

    @property
    def is_recorded(self) -> bool:
        return self in (ReconcileOutcome.RECORDED, ReconcileOutcome.ALREADY_RECORDED)


class CheckoutError(str, Enum):
    NO_ACTIVE_SEASON = "No active season found."
    ALREADY_REGISTERED = "You are already registered for the active season."
    NOT_CONFIGURED = "Checkout is not configured."


@dataclass(frozen=True)
class ClientReference:
    """The `userId|seasonId` pair threaded through Stripe's client_reference_id."""

    user_id: int
    season_id: int

    def __str__(self) -> str:
        return f"{self.user_id}{REFERENCE_SEPARATOR}{self.season_id}"


def _parse_id(raw: str) -> int | None:
    raw = raw.strip()
    if not (raw.isascii() and raw.isdigit()):
        return None
    value = int(raw)
    return value if 0 < value <= MAX_ID else None


def parse_client_reference(raw: str | None) -> ClientReference | None:
    """Parse `"<userId>|<seasonId>"`; anything else (missing, extra pipes, non-ids) is None."""
    if not raw:
        return None
    parts = raw.split(REFERENCE_SEPARATOR)
    if len(parts) != 2:
        return None
    user_id, season_id = (_parse_id(p) for p in parts)
    if user_id is None or season_id is None:
        return None
    return ClientReference(user_id=user_id, season_id=season_id)


async def record_registration(
    db: AsyncSession,
    reference: ClientReference,
    *,
    checkout_session_id: str | None = None,
) -> bool:
    """Insert the paid tryout row; a duplicate is a silent no-op.

    Must run inside the caller's transaction. Returns True if this call
    created the row.
    """
    table = Tryout.__table__  # type: ignore[attr-defined]
    stmt = (
        dialect_insert(db, table)
        .values(
            user_id=reference.user_id,
            season_id=reference.season_id,
            payment_status=PAYMENT_STATUS_PAID,
            checkout_session_id=checkout_session_id or None,
            created_at=utcnow(),
        )
        .on_conflict_do_nothing(index_elements=["user_id", "season_id"])
        .returning(table.c.user_id)
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none() is not None


async def reconcile_checkout(
    db: AsyncSession,
    checkout: CheckoutSession,
) -> ReconcileOutcome:
    """Turn a completed checkout into a tryout registration.

    Unpaid sessions, malformed references and references to missing users or
    seasons are absorbed (no writes). Storage errors propagate.
    """
    if checkout.payment_status != PAYMENT_STATUS_PAID:
        logger.warning(f"Checkout {checkout.id} not paid ({checkout.payment_status}); ignoring")
        return ReconcileOutcome.NOT_PAID

    reference = parse_client_reference(checkout.client_reference_id)
    if reference is None:
        logger.warning(
            f"Checkout {checkout.id} has malformed client_reference_id "
            f"{checkout.client_reference_id!r}"
        )
        return ReconcileOutcome.BAD_REFERENCE

    async with db.begin():
        user_exists = await db.execute(
            select(User.id).where(User.id == reference.user_id)  # type: ignore[arg-type]
        )
        season_exists = await db.execute(
            select(Season.id).where(Season.id == reference.season_id)  # type: ignore[arg-type]
        )
        if user_exists.scalar_one_or_none() is None or season_exists.scalar_one_or_none() is None:
            logger.warning(
                f"Checkout {checkout.id} references unknown user/season "
                f"user_id={reference.user_id} season_id={reference.season_id}"
            )
            return ReconcileOutcome.UNKNOWN_REFERENCE

        created = await record_registration(
            db, reference, checkout_session_id=checkout.id
        )

    if created:
        logger.info(
            f"Payment recorded user_id={reference.user_id} season_id={reference.season_id}"
        )
        return ReconcileOutcome.RECORDED

    logger.info(
        f"Payment already recorded user_id={reference.user_id} "
        f"season_id={reference.season_id}; duplicate ignored"
    )
    return ReconcileOutcome.ALREADY_RECORDED


async def handle_webhook_event(
    db: AsyncSession,
    event: dict[str, Any],
) -> ReconcileOutcome | None:
    """Process an already-verified Stripe event.

    Returns None for event types we do not act on.
    """
    event_type = event.get("type")
    if event_type != CHECKOUT_COMPLETED_EVENT:
        logger.info(f"Unhandled Stripe event type {event_type!r} ({event.get('id')})")
        return None

    session_obj = (event.get("data") or {}).get("object") or {}
    checkout = CheckoutSession.from_stripe(session_obj)
    return await reconcile_checkout(db, checkout)


async def confirm_checkout(
    db: AsyncSession,
    gateway: StripeGateway,
    session_id: str,
) -> ReconcileOutcome:
    """Pull a checkout session from Stripe and reconcile it."""
    checkout = await gateway.retrieve_checkout_session(session_id)
    outcome = await reconcile_checkout(db, checkout)
    logger.info(f"Checkout {session_id} confirmed via redirect: {outcome.value}")
    return outcome


async def start_checkout(
    db: AsyncSession,
    gateway: StripeGateway,
    *,
    user_id: int,
    email: str | None,
) -> tuple[CheckoutSession | None, CheckoutError | None]:
    """Open a Stripe Checkout Session for the active season's tryout fee."""
    if not settings.stripe_price_id:
        return None, CheckoutError.NOT_CONFIGURED

    async with db.begin():
        result = await db.execute(
            select(Season.id).where(Season.is_active.is_(True)).limit(1)  # type: ignore[attr-defined]
        )
        season_id = result.scalar_one_or_none()
        if season_id is None:
            return None, CheckoutError.NO_ACTIVE_SEASON

        existing = await db.execute(
            select(Tryout.user_id).where(
                Tryout.user_id == user_id,  # type: ignore[arg-type]
                Tryout.season_id == season_id,  # type: ignore[arg-type]
            )
        )
        if existing.scalar_one_or_none() is not None:
            return None, CheckoutError.ALREADY_REGISTERED

    reference = ClientReference(user_id=user_id, season_id=season_id)
    frontend = settings.frontend_url.rstrip("/")
    checkout = await gateway.create_checkout_session(
        client_reference_id=str(reference),
        price_id=settings.stripe_price_id,
        customer_email=email,
        success_url=f"{frontend}/payment/success?session_id={{CHECKOUT_SESSION_ID}}",
        cancel_url=f"{frontend}/payment/cancelled",
    )
    logger.info(f"Checkout session {checkout.id} opened for reference {reference}")
    return checkout, None
