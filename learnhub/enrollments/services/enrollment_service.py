import logging
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from learnhub.auth.models.user import User
from learnhub.catalog.services.catalog_reader import CatalogReader, CourseSnapshot
from learnhub.core.datetime_utils import utcnow
from learnhub.core.exceptions import (
    ConflictError,
    DuplicateEnrollmentError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
)
from learnhub.enrollments.models import Enrollment, EnrollmentStatus, PaymentMethod
from learnhub.enrollments.repositories.enrollment_repository import (
    EnrollmentFilters,
    EnrollmentRepository,
)
from learnhub.enrollments.schemas import (
    CheckoutDetailsResponse,
    CourseAccessStatus,
    EnrollmentCreateRequest,
    EnrollmentProgressUpdate,
    EnrollmentStatsResponse,
    EnrollmentStatusUpdate,
    MyEnrollmentStatsResponse,
)

logger = logging.getLogger(__name__)


class EnrollmentService:
    """Synchronous enrollment operations: direct creation and side transitions."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = EnrollmentRepository(db)
        self.catalog = CatalogReader(db)

    # Creation

    def create_enrollment(self, data: EnrollmentCreateRequest) -> Enrollment:
        """Administrative enrollment, optionally at an explicit price."""
        self._get_user(data.user_id)
        course = self.get_enrollable_course(data.user_id, data.course_id)
        price = data.price if data.price is not None else course.price
        return self.enroll(data.user_id, course, price=price)

    def purchase_course(self, user: User, course_id: UUID) -> Enrollment:
        """Owner-facing direct enrollment at the catalog price."""
        course = self.get_enrollable_course(user.id, course_id)
        return self.enroll(user.id, course, price=course.price)

    def get_enrollable_course(self, user_id: UUID, course_id: UUID) -> CourseSnapshot:
        """Course must exist, be published, and not be held by the user already.

        A refunded enrollment still occupies the pair, so re-purchase after a
        refund is a conflict as well.
        """
        course = self.catalog.get_course(course_id)
        if course is None:
            raise NotFoundError("Course not found", resource="course")
        if not course.is_published:
            raise InvalidStateError("Course is not available for purchase", field="course_id")
        if self.repo.get_by_user_course(user_id, course_id) is not None:
            raise ConflictError("User is already enrolled in this course", resource="enrollment")
        return course

    def enroll(
        self,
        user_id: UUID,
        course: CourseSnapshot,
        price: Decimal,
        payment_method: PaymentMethod | None = None,
    ) -> Enrollment:
        """Insert a pending enrollment.

        The pre-check above is advisory; a concurrent insert for the same pair
        is rejected by the store and surfaces as ``DuplicateEnrollmentError``.
        """
        enrollment = Enrollment(
            user_id=user_id,
            course_id=course.id,
            price=price,
            status=EnrollmentStatus.PENDING,
            progress=0,
            payment_method=payment_method,
        )
        enrollment = self.repo.add(enrollment)
        logger.info(
            "Enrollment %s created for user %s in course %s (price=%s, method=%s)",
            enrollment.id,
            user_id,
            course.id,
            price,
            payment_method.value if payment_method else None,
        )
        return enrollment

    def enroll_all(self, user_id: UUID) -> int:
        """Grant a user price-0 access to every published course they do not hold.

        Held pairs are skipped, refunded ones included. Returns the number of
        enrollments created.
        """
        self._get_user(user_id)
        held = {e.course_id for e in self.repo.list_for_user(user_id)}

        created = 0
        for course in self.catalog.list_published():
            if course.id in held:
                continue
            try:
                self.enroll(user_id, course, price=Decimal("0"))
            except DuplicateEnrollmentError:
                logger.info("Course %s was enrolled concurrently for user %s", course.id, user_id)
                continue
            created += 1

        logger.info("Bulk enrollment for user %s created %d enrollments", user_id, created)
        return created

    # Side transitions

    def update_status(self, enrollment_id: UUID, data: EnrollmentStatusUpdate) -> Enrollment:
        enrollment = self.get_enrollment(enrollment_id)

        if data.status == EnrollmentStatus.COMPLETED:
            completed_at = (
                enrollment.completed_at
                if enrollment.status == EnrollmentStatus.COMPLETED
                else None
            )
            enrollment.mark_completed(completed_at or utcnow())
        else:
            enrollment.status = data.status

        return self.repo.save(enrollment)

    def update_progress(
        self, enrollment_id: UUID, user: User, data: EnrollmentProgressUpdate
    ) -> Enrollment:
        enrollment = self.get_enrollment(enrollment_id)

        if enrollment.user_id != user.id and not user.is_admin:
            raise ForbiddenError("You can only update your own progress")
        if enrollment.is_refunded:
            raise InvalidStateError("Enrollment has been refunded", field="status")

        if data.progress == 100 and enrollment.status != EnrollmentStatus.COMPLETED:
            enrollment.mark_completed(utcnow())
        else:
            enrollment.progress = data.progress

        return self.repo.save(enrollment)

    def refund(self, enrollment_id: UUID) -> Enrollment:
        """Status-only terminal transition. The charge itself is reversed elsewhere."""
        enrollment = self.get_enrollment(enrollment_id)
        if enrollment.is_refunded:
            raise ConflictError("Enrollment has already been refunded", resource="enrollment")

        enrollment.status = EnrollmentStatus.REFUNDED
        enrollment = self.repo.save(enrollment)
        logger.info("Enrollment %s refunded", enrollment.id)
        return enrollment

    def delete(self, enrollment_id: UUID) -> None:
        enrollment = self.get_enrollment(enrollment_id)
        self.repo.delete(enrollment)
        logger.info("Enrollment %s deleted", enrollment_id)

    # Reads

    def get_enrollment(self, enrollment_id: UUID) -> Enrollment:
        enrollment = self.repo.get_by_id(enrollment_id)
        if enrollment is None:
            raise NotFoundError("Enrollment not found", resource="enrollment")
        return enrollment

    def get_by_session_id(self, session_id: str, user: User) -> Enrollment:
        """Used by the checkout success page while it waits for the webhook."""
        enrollment = self.repo.get_by_session_id(session_id)
        if enrollment is None:
            raise NotFoundError(
                "Enrollment not found. Payment may still be processing.", resource="enrollment"
            )
        if enrollment.user_id != user.id:
            raise ForbiddenError("Access denied")
        return enrollment

    def courses_with_status(self, user: User) -> list[CourseAccessStatus]:
        held = {e.course_id: e for e in self.repo.list_for_user(user.id)}
        return [
            self._access_status(course, held.get(course.id))
            for course in self.catalog.list_published()
        ]

    def checkout_details(self, user: User, course_id: UUID) -> CheckoutDetailsResponse:
        course = self.catalog.get_course(course_id)
        if course is None:
            raise NotFoundError("Course not found", resource="course")

        enrollment = self.repo.get_by_user_course(user.id, course_id)
        return CheckoutDetailsResponse(
            id=course.id,
            title=course.title,
            slug=course.slug,
            price=course.price,
            is_free=course.is_free,
            is_published=course.is_published,
            is_enrolled=enrollment is not None,
            has_access=_grants_access(enrollment),
            enrollment_id=enrollment.id if enrollment else None,
        )

    def list_enrollments(
        self,
        filters: EnrollmentFilters,
        sort_by: str = "enrolled_at",
        order: str = "desc",
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[Enrollment], int]:
        return self.repo.search(filters, sort_by=sort_by, order=order, page=page, limit=limit)

    def my_enrollments(self, user: User) -> list[Enrollment]:
        return self.repo.list_for_user(user.id)

    def stats(self) -> EnrollmentStatsResponse:
        totals = self.repo.totals()
        completion_rate = round(totals.completed / totals.total * 100) if totals.total else 0
        return EnrollmentStatsResponse(
            total=totals.total,
            pending=totals.pending,
            completed=totals.completed,
            refunded=totals.refunded,
            total_revenue=totals.total_revenue,
            completion_rate=completion_rate,
        )

    def my_stats(self, user: User) -> MyEnrollmentStatsResponse:
        totals = self.repo.user_totals(user.id)
        return MyEnrollmentStatsResponse(
            total_enrolled=totals.total_enrolled,
            in_progress=totals.in_progress,
            completed=totals.completed,
            avg_progress=round(totals.avg_progress),
        )

    def _get_user(self, user_id: UUID) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if user is None:
            raise NotFoundError("User not found", resource="user")
        return user

    @staticmethod
    def _access_status(
        course: CourseSnapshot, enrollment: Enrollment | None
    ) -> CourseAccessStatus:
        if enrollment is None:
            return CourseAccessStatus(
                id=course.id,
                title=course.title,
                slug=course.slug,
                price=course.price,
                is_enrolled=False,
                has_access=False,
            )
        return CourseAccessStatus(
            id=course.id,
            title=course.title,
            slug=course.slug,
            price=course.price,
            is_enrolled=True,
            has_access=_grants_access(enrollment),
            enrollment_id=enrollment.id,
            enrollment_status=enrollment.status,
            progress=enrollment.progress,
            enrolled_at=enrollment.enrolled_at,
        )


def _grants_access(enrollment: Enrollment | None) -> bool:
    # A refunded enrollment still occupies the pair but no longer opens the course.
    return enrollment is not None and not enrollment.is_refunded
