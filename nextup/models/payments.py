"""Response models for the payment endpoints."""

from typing import Optional

from sqlmodel import SQLModel


class WebhookAck(SQLModel):
    received: bool = True


class ConfirmResponse(SQLModel):
    recorded: bool
    reason: Optional[str] = None  # "not_paid" | "bad_ref" | "unknown_ref"


class CheckoutResponse(SQLModel):
    id: str
    url: Optional[str] = None
