"""
Abstract payment gateway interface and factory.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from learnhub.core.config import Settings


@dataclass(frozen=True)
class CheckoutSession:
    session_id: str
    url: str


class PaymentGateway(ABC):
    """Abstract base class for hosted-checkout payment providers."""

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """False when credentials are missing and payments are disabled."""

    @abstractmethod
    async def create_checkout_session(
        self,
        amount: Decimal,
        product_name: str,
        customer_email: str,
        metadata: dict[str, str],
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        """
        Create a hosted checkout session with the provider.

        Args:
            amount: Exact price to charge, in major currency units
            product_name: Line item label shown on the payment page
            customer_email: Prefilled payer email, also the receipt address
            metadata: Echoed back verbatim in the confirmation event
            success_url: URL to redirect after successful payment
            cancel_url: URL to redirect if payment is cancelled

        Raises:
            ServiceUnavailableError: The provider is unconfigured or unreachable
        """

    @abstractmethod
    def verify_event(self, payload: bytes, signature: str | None) -> dict[str, Any]:
        """
        Verify and parse a webhook event from the provider.

        Args:
            payload: Raw request body, exactly as received
            signature: Signature header value

        Returns:
            Decoded event payload

        Raises:
            WebhookSignatureError: If the event cannot be authenticated
        """


def build_payment_gateway(config: Settings) -> PaymentGateway:
    """Build the gateway client once at startup."""
    from learnhub.enrollments.services.stripe_gateway import StripeGateway

    return StripeGateway(
        secret_key=config.STRIPE_SECRET_KEY,
        webhook_secret=config.STRIPE_WEBHOOK_SECRET,
        currency=config.STRIPE_CURRENCY,
        session_ttl_minutes=config.CHECKOUT_SESSION_TTL_MINUTES,
        webhook_tolerance=config.STRIPE_WEBHOOK_TOLERANCE_SECONDS,
    )
