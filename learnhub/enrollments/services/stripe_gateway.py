"""
Stripe Checkout integration.
"""

import logging
import time
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

import stripe

from learnhub.core.exceptions import ServiceUnavailableError, WebhookSignatureError
from learnhub.enrollments.services.payment_gateway import CheckoutSession, PaymentGateway

logger = logging.getLogger(__name__)

# Stripe rejects expiries closer than 30 minutes by its own clock.
_EXPIRY_SKEW_SECONDS = 60


def to_minor_units(amount: Decimal) -> int:
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class StripeGateway(PaymentGateway):
    """Stripe payment gateway.

    The API key is passed on every call instead of being set on the
    ``stripe`` module, so several gateways can coexist in one process.
    """

    def __init__(
        self,
        secret_key: str,
        webhook_secret: str,
        currency: str = "usd",
        session_ttl_minutes: int = 30,
        webhook_tolerance: int = 300,
    ):
        self._secret_key = secret_key
        self._webhook_secret = webhook_secret
        self.currency = currency.lower()
        self.session_ttl_minutes = session_ttl_minutes
        self.webhook_tolerance = webhook_tolerance

        if not secret_key:
            logger.warning("STRIPE_SECRET_KEY is not set. Payment features will be disabled.")

    @property
    def is_configured(self) -> bool:
        return bool(self._secret_key)

    async def create_checkout_session(
        self,
        amount: Decimal,
        product_name: str,
        customer_email: str,
        metadata: dict[str, str],
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        if not self.is_configured:
            raise ServiceUnavailableError(
                "Payment service is not configured. Please contact support.", service="stripe"
            )

        expires_at = int(time.time()) + self.session_ttl_minutes * 60 + _EXPIRY_SKEW_SECONDS

        try:
            session = stripe.checkout.Session.create(
                api_key=self._secret_key,
                mode="payment",
                payment_method_types=["card"],
                customer_email=customer_email,
                line_items=[
                    {
                        "price_data": {
                            "currency": self.currency,
                            "unit_amount": to_minor_units(amount),
                            "product_data": {"name": product_name},
                        },
                        "quantity": 1,
                    }
                ],
                metadata=metadata,
                success_url=success_url,
                cancel_url=cancel_url,
                payment_intent_data={"receipt_email": customer_email},
                expires_at=expires_at,
            )
        except stripe.StripeError as e:
            logger.error("Stripe checkout session creation failed: %s", e)
            raise ServiceUnavailableError(
                "Payment service is temporarily unavailable", service="stripe"
            ) from e

        return CheckoutSession(session_id=session.id, url=session.url)

    def verify_event(self, payload: bytes, signature: str | None) -> dict[str, Any]:
        if not self._webhook_secret:
            raise WebhookSignatureError("STRIPE_WEBHOOK_SECRET not configured")
        if not signature:
            raise WebhookSignatureError("Missing Stripe-Signature header")

        try:
            event = stripe.Webhook.construct_event(
                payload, signature, self._webhook_secret, tolerance=self.webhook_tolerance
            )
        except stripe.SignatureVerificationError as e:
            raise WebhookSignatureError(f"Invalid signature: {e}") from e
        except ValueError as e:
            raise WebhookSignatureError(f"Invalid JSON payload: {e}") from e

        # Event parsing works on plain dicts so it stays independent of the SDK's object model.
        return event.to_dict()
