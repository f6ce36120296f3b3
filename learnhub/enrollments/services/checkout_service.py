"""
Checkout orchestration: free courses enroll immediately, paid courses get a
hosted payment page and are enrolled later by the webhook.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from learnhub.auth.models.user import User
from learnhub.core.config import settings
from learnhub.core.exceptions import ServiceUnavailableError
from learnhub.enrollments.models import Enrollment, PaymentMethod
from learnhub.enrollments.services.enrollment_service import EnrollmentService
from learnhub.enrollments.services.payment_gateway import PaymentGateway

logger = logging.getLogger(__name__)


@dataclass
class CheckoutSessionResult:
    free: bool
    session_id: str | None = None
    session_url: str | None = None
    enrollment: Enrollment | None = None


class CheckoutService:
    def __init__(self, db: Session, gateway: PaymentGateway):
        self.db = db
        self.gateway = gateway
        self.enrollments = EnrollmentService(db)

    async def create_checkout_session(self, user: User, course_id: UUID) -> CheckoutSessionResult:
        """
        Start a purchase of one course.

        No enrollment row is written for paid courses; the confirmation
        webhook creates it from the session metadata.

        Raises:
            NotFoundError: Course does not exist
            InvalidStateError: Course is not published
            ConflictError: User already holds an enrollment for the course
            ServiceUnavailableError: Gateway unconfigured or unreachable
        """
        course = self.enrollments.get_enrollable_course(user.id, course_id)

        if course.is_free:
            enrollment = self.enrollments.enroll(
                user.id, course, price=Decimal("0"), payment_method=PaymentMethod.FREE
            )
            return CheckoutSessionResult(free=True, enrollment=enrollment)

        if not self.gateway.is_configured:
            raise ServiceUnavailableError(
                "Payment service is not configured. Please contact support.", service="stripe"
            )

        session = await self.gateway.create_checkout_session(
            amount=course.price,
            product_name=course.title,
            customer_email=user.email,
            metadata={
                "user_id": str(user.id),
                "course_id": str(course.id),
                "course_title": course.title,
            },
            success_url=(
                f"{settings.FRONTEND_URL}/dashboard/checkout/success"
                "?session_id={CHECKOUT_SESSION_ID}"
            ),
            cancel_url=f"{settings.FRONTEND_URL}/dashboard/checkout/{course.id}?canceled=true",
        )

        logger.info(
            "Checkout session %s created for user %s, course %s (%s)",
            session.session_id,
            user.id,
            course.id,
            course.price,
        )
        return CheckoutSessionResult(
            free=False, session_id=session.session_id, session_url=session.url
        )
