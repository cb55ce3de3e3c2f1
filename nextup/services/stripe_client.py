"""Stripe wrapper for checkout sessions and webhook verification."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

import stripe

from nextup.config import settings

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED_EVENT = "checkout.session.completed"


class WebhookVerificationError(Exception):
    """The webhook body did not verify against the signing secret."""


class CheckoutSessionNotFound(LookupError):
    """Stripe has no checkout session with the requested id."""


@dataclass(frozen=True)
class CheckoutSession:
    """Provider-neutral view of a Stripe Checkout Session."""

    id: str
    payment_status: Optional[str]
    client_reference_id: Optional[str]
    url: Optional[str] = None

    @classmethod
    def from_stripe(cls, obj: Any) -> "CheckoutSession":
        """Build from a StripeObject or the plain dict inside a webhook event."""
        get = obj.get if isinstance(obj, dict) else lambda key: getattr(obj, key, None)
        return cls(
            id=str(get("id") or ""),
            payment_status=get("payment_status"),
            client_reference_id=get("client_reference_id"),
            url=get("url"),
        )


class StripeGateway:
    """Thin wrapper around the stripe SDK.

    Webhook verification is local (HMAC over the raw body), the other calls hit
    the Stripe API and run in a worker thread because the SDK is blocking.
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        webhook_secret: str | None = None,
    ) -> None:
        self.api_key = api_key or settings.stripe_secret_key
        self.webhook_secret = webhook_secret or settings.stripe_webhook_secret

    def verify_webhook(self, payload: bytes, signature: str | None) -> dict[str, Any]:
        """Verify the Stripe-Signature header against the untouched request body.

        The signature covers the exact bytes Stripe sent, so this must run
        before any JSON parsing.

        Raises:
            WebhookVerificationError: missing/invalid signature or undecodable body.
        """
        if not signature:
            raise WebhookVerificationError("No Stripe-Signature header")
        try:
            body = payload.decode("utf-8")
            stripe.WebhookSignature.verify_header(
                body,
                signature,
                self.webhook_secret,
                tolerance=stripe.Webhook.DEFAULT_TOLERANCE,
            )
        except UnicodeDecodeError as exc:
            raise WebhookVerificationError("Body is not valid UTF-8") from exc
        except stripe.SignatureVerificationError as exc:
            raise WebhookVerificationError(str(exc)) from exc

        try:
            event = json.loads(body)
        except json.JSONDecodeError as exc:
            raise WebhookVerificationError("Body is not valid JSON") from exc
        if not isinstance(event, dict):
            raise WebhookVerificationError("Event payload is not an object")
        return event

    async def retrieve_checkout_session(self, session_id: str) -> CheckoutSession:
        """Fetch a checkout session's payment status from Stripe.

        Raises:
            CheckoutSessionNotFound: Stripe rejected the id.
        """
        try:
            session = await asyncio.to_thread(
                stripe.checkout.Session.retrieve,
                session_id,
                api_key=self.api_key,
            )
        except stripe.InvalidRequestError as exc:
            logger.warning(f"Stripe rejected checkout session lookup {session_id!r}: {exc}")
            raise CheckoutSessionNotFound(session_id) from exc
        return CheckoutSession.from_stripe(session)

    async def create_checkout_session(
        self,
        *,
        client_reference_id: str,
        price_id: str,
        customer_email: str | None,
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        """Create a one-off payment Checkout Session for a single price."""
        params: dict[str, Any] = {
            "mode": "payment",
            "line_items": [{"price": price_id, "quantity": 1}],
            "client_reference_id": client_reference_id,
            "success_url": success_url,
            "cancel_url": cancel_url,
        }
        if customer_email:
            params["customer_email"] = customer_email
        session = await asyncio.to_thread(
            stripe.checkout.Session.create,
            api_key=self.api_key,
            **params,
        )
        return CheckoutSession.from_stripe(session)


_gateway: StripeGateway | None = None


def get_payment_gateway() -> StripeGateway:
    """FastAPI dependency returning the process-wide gateway (lazily created)."""
    global _gateway
    if _gateway is None:
        _gateway = StripeGateway()
    return _gateway
