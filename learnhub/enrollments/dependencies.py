from fastapi import Depends, Request
from sqlalchemy.orm import Session

from learnhub.db.session import get_db
from learnhub.enrollments.services.checkout_service import CheckoutService
from learnhub.enrollments.services.enrollment_service import EnrollmentService
from learnhub.enrollments.services.payment_gateway import PaymentGateway
from learnhub.enrollments.services.webhook_service import WebhookService
from learnhub.notifications.receipt_notifier import ReceiptNotifier


def get_payment_gateway(request: Request) -> PaymentGateway:
    """The gateway client built once in the application lifespan."""
    gateway: PaymentGateway = request.app.state.payment_gateway
    return gateway


def get_receipt_notifier() -> ReceiptNotifier:
    return ReceiptNotifier()


def get_enrollment_service(db: Session = Depends(get_db)) -> EnrollmentService:
    return EnrollmentService(db)


def get_checkout_service(
    db: Session = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
) -> CheckoutService:
    return CheckoutService(db, gateway)


def get_webhook_service(
    db: Session = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    notifier: ReceiptNotifier = Depends(get_receipt_notifier),
) -> WebhookService:
    return WebhookService(db, gateway, notifier)
