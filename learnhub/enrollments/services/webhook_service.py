"""Payment-confirmation webhook processing.

The gateway delivers events at least once, possibly late and out of order.
Processing order for a completed checkout:

1. verify the signature (failures are acknowledged, never retried)
2. session id already recorded -> no-op
3. enrollment exists for (user, course) -> attach gateway ids, unless refunded
   or already paid through a different session
4. otherwise create the enrollment at the settled amount
5. send the receipt, best effort

Unique constraints on ``enrollments`` decide races between concurrent
writers. A rejected write is rolled back and steps 2-3 are re-run once.
Store failures raise ``TransientStoreError`` so the gateway redelivers.
"""

import enum
from collections.abc import Awaitable, Callable
from typing import Any

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from learnhub.auth.models.user import User
from learnhub.catalog.services.catalog_reader import CatalogReader
from learnhub.core.exceptions import (
    DuplicateEnrollmentError,
    TransientStoreError,
    WebhookSignatureError,
)
from learnhub.enrollments.models import Enrollment, EnrollmentStatus, PaymentMethod
from learnhub.enrollments.repositories.enrollment_repository import EnrollmentRepository
from learnhub.enrollments.services.gateway_events import (
    CheckoutCompleted,
    CheckoutExpired,
    MalformedEvent,
    UnhandledEvent,
    parse_gateway_event,
)
from learnhub.enrollments.services.payment_gateway import PaymentGateway
from learnhub.notifications.receipt_notifier import ReceiptNotifier

logger = structlog.get_logger(__name__)


class WebhookOutcome(str, enum.Enum):
    REJECTED = "rejected"
    ALREADY_PROCESSED = "already_processed"
    SKIPPED_REFUNDED = "skipped_refunded"
    ATTACHED = "attached"
    DUPLICATE_PAYMENT = "duplicate_payment"
    CREATED = "created"
    EXPIRED_LOGGED = "expired_logged"
    IGNORED = "ignored"
    MALFORMED = "malformed"


class WebhookService:
    def __init__(self, db: Session, gateway: PaymentGateway, notifier: ReceiptNotifier):
        self.db = db
        self.gateway = gateway
        self.notifier = notifier
        self.repo = EnrollmentRepository(db)
        self.catalog = CatalogReader(db)
        self._handlers: dict[type, Callable[[Any], Awaitable[WebhookOutcome]]] = {
            CheckoutCompleted: self._on_checkout_completed,
            CheckoutExpired: self._on_checkout_expired,
            MalformedEvent: self._on_malformed,
            UnhandledEvent: self._on_unhandled,
        }

    async def handle(self, payload: bytes, signature: str | None) -> WebhookOutcome:
        """Process one delivery.

        Raises:
            TransientStoreError: The store failed; the delivery must be retried.
        """
        try:
            raw = self.gateway.verify_event(payload, signature)
        except WebhookSignatureError as e:
            logger.warning("webhook_signature_rejected", reason=str(e), security=True)
            return WebhookOutcome.REJECTED

        event = parse_gateway_event(raw)
        handler = self._handlers[type(event)]
        with structlog.contextvars.bound_contextvars(gateway_event_id=event.event_id):
            return await handler(event)

    async def _on_checkout_completed(self, event: CheckoutCompleted) -> WebhookOutcome:
        log = logger.bind(event_id=event.event_id, session_id=event.session_id)
        log.info("checkout_completed_received")

        try:
            user = self.db.query(User).filter(User.id == event.user_id).first()
            course = self.catalog.get_course(event.course_id)
            if user is None or course is None:
                log.error(
                    "checkout_completed_unknown_reference",
                    user_found=user is not None,
                    course_found=course is not None,
                )
                return WebhookOutcome.MALFORMED

            outcome = self._reconcile(event)
        except SQLAlchemyError as e:
            self.db.rollback()
            log.error("checkout_completed_store_error", error=str(e))
            raise TransientStoreError() from e
        except TransientStoreError:
            log.error("checkout_completed_store_error")
            raise

        log.info("checkout_completed_processed", outcome=outcome.value)

        if outcome is WebhookOutcome.CREATED:
            await self._send_receipt(event, user)
        return outcome

    def _reconcile(self, event: CheckoutCompleted) -> WebhookOutcome:
        try:
            outcome = self._resolve_existing(event)
            if outcome is not None:
                return outcome
            self._create(event)
            return WebhookOutcome.CREATED
        except DuplicateEnrollmentError:
            logger.info(
                "checkout_completed_write_conflict",
                session_id=event.session_id,
                user_id=str(event.user_id),
                course_id=str(event.course_id),
            )

        # Another writer committed first; its row is visible now.
        try:
            outcome = self._resolve_existing(event)
        except DuplicateEnrollmentError as e:
            raise TransientStoreError() from e
        if outcome is None:
            raise TransientStoreError()
        return outcome

    def _resolve_existing(self, event: CheckoutCompleted) -> WebhookOutcome | None:
        if self.repo.get_by_session_id(event.session_id) is not None:
            return WebhookOutcome.ALREADY_PROCESSED

        existing = self.repo.get_by_user_course(event.user_id, event.course_id)
        if existing is None:
            return None

        # A late confirmation must never resurrect a refunded enrollment.
        if existing.is_refunded:
            logger.warning(
                "checkout_completed_skipped_refunded",
                enrollment_id=str(existing.id),
                session_id=event.session_id,
            )
            return WebhookOutcome.SKIPPED_REFUNDED

        if existing.gateway_session_id is not None:
            # The pair was already paid through another session; this charge is extra.
            logger.warning(
                "checkout_completed_duplicate_payment",
                enrollment_id=str(existing.id),
                session_id=event.session_id,
                payment_id=event.payment_id,
                recorded_session_id=existing.gateway_session_id,
                needs_refund=True,
            )
            return WebhookOutcome.DUPLICATE_PAYMENT

        existing.gateway_session_id = event.session_id
        existing.gateway_payment_id = event.payment_id
        existing.payment_method = PaymentMethod.GATEWAY
        self.repo.save(existing)
        return WebhookOutcome.ATTACHED

    def _create(self, event: CheckoutCompleted) -> Enrollment:
        enrollment = Enrollment(
            user_id=event.user_id,
            course_id=event.course_id,
            price=event.amount,
            status=EnrollmentStatus.PENDING,
            progress=0,
            payment_method=PaymentMethod.GATEWAY,
            gateway_session_id=event.session_id,
            gateway_payment_id=event.payment_id,
        )
        return self.repo.add(enrollment)

    async def _send_receipt(self, event: CheckoutCompleted, user: User) -> None:
        try:
            sent = await self.notifier.send_receipt(
                email=user.email,
                name=user.name,
                course_title=event.course_title,
                amount=event.amount,
                payment_id=event.payment_id,
            )
        except Exception as e:
            # The enrollment is committed; a lost receipt must not trigger redelivery.
            logger.exception("receipt_email_failed", session_id=event.session_id, error=str(e))
            return

        if not sent:
            logger.warning("receipt_email_not_sent", session_id=event.session_id)

    async def _on_checkout_expired(self, event: CheckoutExpired) -> WebhookOutcome:
        logger.info(
            "checkout_session_expired",
            event_id=event.event_id,
            session_id=event.session_id,
            user_id=event.user_id,
            course_id=event.course_id,
        )
        return WebhookOutcome.EXPIRED_LOGGED

    async def _on_malformed(self, event: MalformedEvent) -> WebhookOutcome:
        logger.error(
            "webhook_event_malformed",
            event_id=event.event_id,
            event_type=event.event_type,
            reason=event.reason,
        )
        return WebhookOutcome.MALFORMED

    async def _on_unhandled(self, event: UnhandledEvent) -> WebhookOutcome:
        logger.info("webhook_event_ignored", event_id=event.event_id, event_type=event.event_type)
        return WebhookOutcome.IGNORED
