"""
Payment gateway webhooks.

Deliveries are acknowledged with 200 in every case except a store failure,
which answers 500 (via ``TransientStoreError``) so Stripe redelivers.
"""

from fastapi import APIRouter, Depends, Header, Request

from learnhub.enrollments.dependencies import get_webhook_service
from learnhub.enrollments.schemas import WebhookAck
from learnhub.enrollments.services.webhook_service import WebhookService

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/stripe", response_model=WebhookAck)
async def stripe_webhook(
    request: Request,
    stripe_signature: str | None = Header(None, alias="Stripe-Signature"),
    service: WebhookService = Depends(get_webhook_service),
) -> WebhookAck:
    # Signature is computed over the raw body.
    payload = await request.body()
    outcome = await service.handle(payload, stripe_signature)
    return WebhookAck(outcome=outcome.value)
