"""Typed view over verified Stripe webhook payloads.

Each payload becomes exactly one of the event classes below, and the
webhook service dispatches on the class rather than on the ``type`` string.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any
from uuid import UUID

CHECKOUT_COMPLETED = "checkout.session.completed"
CHECKOUT_EXPIRED = "checkout.session.expired"


@dataclass(frozen=True)
class CheckoutCompleted:
    event_id: str
    session_id: str
    payment_id: str | None
    amount: Decimal
    user_id: UUID
    course_id: UUID
    course_title: str
    customer_email: str | None = None


@dataclass(frozen=True)
class CheckoutExpired:
    event_id: str
    session_id: str | None
    user_id: str | None
    course_id: str | None


@dataclass(frozen=True)
class UnhandledEvent:
    event_id: str
    event_type: str


@dataclass(frozen=True)
class MalformedEvent:
    event_id: str
    event_type: str
    reason: str


GatewayEvent = CheckoutCompleted | CheckoutExpired | UnhandledEvent | MalformedEvent


def parse_gateway_event(raw: dict[str, Any]) -> GatewayEvent:
    event_id = str(raw.get("id") or "")
    event_type = str(raw.get("type") or "")

    data = raw.get("data")
    obj = data.get("object") if isinstance(data, dict) else None

    if event_type == CHECKOUT_COMPLETED:
        if not isinstance(obj, dict):
            return MalformedEvent(event_id, event_type, "missing session object")
        return _parse_completed(event_id, event_type, obj)

    if event_type == CHECKOUT_EXPIRED:
        obj = obj if isinstance(obj, dict) else {}
        metadata = _metadata(obj)
        return CheckoutExpired(
            event_id=event_id,
            session_id=obj.get("id"),
            user_id=metadata.get("user_id"),
            course_id=metadata.get("course_id"),
        )

    return UnhandledEvent(event_id, event_type)


def _parse_completed(event_id: str, event_type: str, obj: dict[str, Any]) -> GatewayEvent:
    session_id = obj.get("id")
    if not session_id:
        return MalformedEvent(event_id, event_type, "missing session id")

    metadata = _metadata(obj)
    try:
        user_id = UUID(str(metadata["user_id"]))
        course_id = UUID(str(metadata["course_id"]))
    except (KeyError, ValueError):
        return MalformedEvent(event_id, event_type, f"missing or invalid metadata in {session_id}")

    amount_total = obj.get("amount_total")
    if amount_total is not None and not isinstance(amount_total, int):
        return MalformedEvent(event_id, event_type, f"invalid amount_total in {session_id}")

    # Expanded objects carry the id under "id".
    payment = obj.get("payment_intent")
    payment_id = payment.get("id") if isinstance(payment, dict) else payment

    details = obj.get("customer_details") or {}
    customer_email = details.get("email") or obj.get("customer_email")

    return CheckoutCompleted(
        event_id=event_id,
        session_id=str(session_id),
        payment_id=payment_id,
        amount=Decimal(amount_total or 0) / 100,
        user_id=user_id,
        course_id=course_id,
        course_title=str(metadata.get("course_title") or ""),
        customer_email=customer_email,
    )


def _metadata(obj: dict[str, Any]) -> dict[str, Any]:
    metadata = obj.get("metadata")
    return metadata if isinstance(metadata, dict) else {}
