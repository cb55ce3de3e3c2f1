"""Paid tryout registrations.

One row per (user, season). Rows are only ever written by the payment
reconciler; the composite primary key is what makes repeated webhook deliveries
and client confirmations collapse into a single record.
"""

from __future__ import annotations

from sqlmodel import Field

from nextup.schemas.base import CreatedAtMixin

PAYMENT_STATUS_PAID = "paid"


class Tryout(CreatedAtMixin, table=True):  # type: ignore[call-arg]
    """Proof that a user paid for a season's tryout."""

    __tablename__ = "tryouts"

    user_id: int = Field(foreign_key="users.id", primary_key=True)
    season_id: int = Field(foreign_key="seasons.id", primary_key=True, index=True)
    payment_status: str = Field(default=PAYMENT_STATUS_PAID, max_length=32)
    checkout_session_id: str | None = Field(default=None, max_length=255)
