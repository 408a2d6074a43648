"""
Payment Provider Gateway

Thin wrapper around Stripe Checkout. The Stripe SDK is synchronous, so calls
run in a worker thread. Provider failures surface as ServerError; the
gateway never touches local state.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Protocol

import stripe
from fastapi import FastAPI, Request

from edubridge.core.config import settings
from edubridge.core.errors import ConfigurationError, ServerError

logger = logging.getLogger(__name__)

PAID = "paid"


@dataclass(frozen=True)
class CheckoutSession:
    """A newly created checkout session."""

    session_id: str
    url: str


@dataclass(frozen=True)
class ProviderSession:
    """Status of an existing checkout session as reported by the provider."""

    session_id: str
    payment_status: str | None
    metadata: dict[str, str] = field(default_factory=dict)

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PAID


class PaymentGateway(Protocol):
    """Capability contract for the external checkout provider."""

    async def create_checkout_session(
        self,
        *,
        product_name: str,
        amount: Decimal,
        metadata: dict[str, str],
        success_url: str,
        cancel_url: str,
        customer_email: str | None = None,
    ) -> CheckoutSession: ...

    async def retrieve_session(self, session_id: str) -> ProviderSession: ...


def to_minor_units(amount: Decimal) -> int:
    """Convert a currency amount to the integer minor units Stripe expects."""
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _to_plain_dict(obj: Any) -> dict[str, str]:
    if obj is None:
        return {}
    to_dict = getattr(obj, "to_dict", None)
    data = to_dict() if callable(to_dict) else dict(obj)
    return {str(key): str(value) for key, value in data.items()}


class StripePaymentGateway:
    """Payment gateway backed by Stripe Checkout."""

    def __init__(self, api_key: str, currency: str):
        self._api_key = api_key
        self._currency = currency

    async def create_checkout_session(
        self,
        *,
        product_name: str,
        amount: Decimal,
        metadata: dict[str, str],
        success_url: str,
        cancel_url: str,
        customer_email: str | None = None,
    ) -> CheckoutSession:
        params: dict[str, Any] = {
            "mode": "payment",
            "line_items": [
                {
                    "price_data": {
                        "currency": self._currency,
                        "unit_amount": to_minor_units(amount),
                        "product_data": {"name": product_name[:250]},
                    },
                    "quantity": 1,
                }
            ],
            "metadata": metadata,
            "success_url": success_url,
            "cancel_url": cancel_url,
        }
        if customer_email:
            params["customer_email"] = customer_email

        try:
            session = await asyncio.to_thread(
                stripe.checkout.Session.create, api_key=self._api_key, **params
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe checkout creation failed: {e}")
            raise ServerError("Failed to create checkout session.") from e

        return CheckoutSession(session_id=session.id, url=session.url)

    async def retrieve_session(self, session_id: str) -> ProviderSession:
        try:
            session = await asyncio.to_thread(
                stripe.checkout.Session.retrieve, session_id, api_key=self._api_key
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe session lookup failed for {session_id}: {e}")
            raise ServerError("Failed to retrieve checkout session.") from e

        return ProviderSession(
            session_id=session.id,
            payment_status=session.payment_status,
            metadata=_to_plain_dict(session.metadata),
        )


class UnconfiguredPaymentGateway:
    """Placeholder used when no Stripe key is configured. Always fails closed."""

    async def create_checkout_session(self, **kwargs: Any) -> CheckoutSession:
        raise ConfigurationError("Payment provider is not configured.")

    async def retrieve_session(self, session_id: str) -> ProviderSession:
        raise ConfigurationError("Payment provider is not configured.")


def init_payment_gateway(app: FastAPI) -> PaymentGateway:
    """
    Attach the payment gateway to ``app.state``.

    Call this on application startup.
    """
    api_key = settings.stripe_secret_key.get_secret_value()
    if not api_key:
        logger.warning("STRIPE_SECRET_KEY not set - checkout disabled")
        gateway: PaymentGateway = UnconfiguredPaymentGateway()
    else:
        gateway = StripePaymentGateway(api_key=api_key, currency=settings.stripe_currency)

    app.state.payment_gateway = gateway
    return gateway


async def get_payment_gateway(request: Request) -> PaymentGateway:
    """FastAPI dependency returning the process-wide payment gateway."""
    return request.app.state.payment_gateway
