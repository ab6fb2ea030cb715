import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional

import stripe
from fastapi import Request

from plantnet.errors import GatewayError

logger = logging.getLogger(__name__)


@dataclass
class CheckoutSession:
    id: str
    url: Optional[str] = None
    payment_status: Optional[str] = None
    payment_intent: Optional[str] = None
    amount_total: Optional[int] = None     # smallest currency unit
    currency: Optional[str] = None
    customer_email: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)

    @property
    def is_paid(self) -> bool:
        return self.payment_status == "paid"

    @property
    def amount(self) -> Decimal:
        return (Decimal(self.amount_total or 0) / 100).quantize(Decimal("0.01"))


def to_cents(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal("1")))


def _field(obj, name):
    # Stripe objects are dict subclasses; test doubles may only have attributes
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def _session_from_stripe(obj) -> CheckoutSession:
    session_id = _field(obj, "id")
    if not session_id:
        raise GatewayError("Payment gateway returned a session without an id")

    payment_intent = _field(obj, "payment_intent")
    if payment_intent is not None and not isinstance(payment_intent, str):
        # Expanded PaymentIntent object
        payment_intent = _field(payment_intent, "id")

    customer_email = _field(obj, "customer_email")
    if not customer_email:
        details = _field(obj, "customer_details")
        customer_email = _field(details, "email") if details else None

    return CheckoutSession(
        id=session_id,
        url=_field(obj, "url"),
        payment_status=_field(obj, "payment_status"),
        payment_intent=payment_intent,
        amount_total=_field(obj, "amount_total"),
        currency=_field(obj, "currency"),
        customer_email=customer_email,
        metadata=dict(_field(obj, "metadata") or {}),
    )


class StripeGateway:
    def __init__(self, api_key: Optional[str], currency: str = "usd"):
        self.api_key = api_key
        self.currency = currency

    def create_checkout_session(
        self,
        line_items: List[dict],
        customer_email: str,
        success_url: str,
        cancel_url: str,
        metadata: Optional[Dict[str, str]] = None,
    ) -> CheckoutSession:
        try:
            obj = stripe.checkout.Session.create(
                api_key=self.api_key,
                mode="payment",
                line_items=[
                    {
                        "price_data": {
                            "currency": self.currency,
                            "product_data": _product_data(item),
                            "unit_amount": to_cents(item["price"]),
                        },
                        "quantity": item["quantity"],
                    }
                    for item in line_items
                ],
                customer_email=customer_email,
                metadata=metadata or {},
                success_url=success_url,
                cancel_url=cancel_url,
            )
        except stripe.StripeError as exc:
            logger.error("Stripe checkout session creation failed: %s", exc)
            raise GatewayError(f"Could not create checkout session: {exc.user_message or exc}")
        return _session_from_stripe(obj)

    def retrieve_session(self, session_id: str) -> CheckoutSession:
        try:
            obj = stripe.checkout.Session.retrieve(session_id, api_key=self.api_key)
        except stripe.StripeError as exc:
            logger.error("Stripe session lookup failed for %s: %s", session_id, exc)
            raise GatewayError(f"Could not retrieve checkout session: {exc.user_message or exc}")
        return _session_from_stripe(obj)


def _product_data(item: dict) -> dict:
    data = {"name": item["name"]}
    if item.get("description"):
        data["description"] = item["description"]
    if item.get("image"):
        data["images"] = [item["image"]]
    return data


def get_gateway(request: Request) -> StripeGateway:
    return request.app.state.gateway
