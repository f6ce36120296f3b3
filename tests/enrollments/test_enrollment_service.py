"""
Tests for EnrollmentService - direct enrollment and side transitions.
"""

import uuid
from decimal import Decimal
from unittest.mock import patch

import pytest
from sqlalchemy.orm import Session

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
    EnrollmentCreateRequest,
    EnrollmentProgressUpdate,
    EnrollmentStatusUpdate,
)
from learnhub.enrollments.services.enrollment_service import EnrollmentService
from tests.utils.factories import (
    create_course_factory,
    create_enrollment_factory,
    create_user_factory,
)


class TestCreateEnrollment:
    def test_uses_catalog_price_by_default(self, db_session: Session, test_user, paid_course):
        service = EnrollmentService(db_session)

        enrollment = service.create_enrollment(
            EnrollmentCreateRequest(user_id=test_user.id, course_id=paid_course.id)
        )

        assert enrollment.status == EnrollmentStatus.PENDING
        assert enrollment.progress == 0
        assert enrollment.price == Decimal("49.99")
        assert enrollment.payment_method is None
        assert enrollment.completed_at is None

    def test_price_override(self, db_session: Session, test_user, paid_course):
        service = EnrollmentService(db_session)

        enrollment = service.create_enrollment(
            EnrollmentCreateRequest(
                user_id=test_user.id, course_id=paid_course.id, price=Decimal("10.00")
            )
        )

        assert enrollment.price == Decimal("10.00")

    def test_zero_price_override_is_respected(self, db_session: Session, test_user, paid_course):
        service = EnrollmentService(db_session)

        enrollment = service.create_enrollment(
            EnrollmentCreateRequest(user_id=test_user.id, course_id=paid_course.id, price=0)
        )

        assert enrollment.price == Decimal("0")

    def test_unknown_user(self, db_session: Session, paid_course):
        service = EnrollmentService(db_session)

        with pytest.raises(NotFoundError) as exc_info:
            service.create_enrollment(
                EnrollmentCreateRequest(user_id=uuid.uuid4(), course_id=paid_course.id)
            )
        assert exc_info.value.details == {"resource": "user"}

    def test_unknown_course(self, db_session: Session, test_user):
        service = EnrollmentService(db_session)

        with pytest.raises(NotFoundError) as exc_info:
            service.create_enrollment(
                EnrollmentCreateRequest(user_id=test_user.id, course_id=uuid.uuid4())
            )
        assert exc_info.value.details == {"resource": "course"}

    def test_unpublished_course(self, db_session: Session, test_user, draft_course):
        service = EnrollmentService(db_session)

        with pytest.raises(InvalidStateError):
            service.create_enrollment(
                EnrollmentCreateRequest(user_id=test_user.id, course_id=draft_course.id)
            )

    def test_duplicate_is_conflict(self, db_session: Session, test_user, paid_course):
        service = EnrollmentService(db_session)
        request = EnrollmentCreateRequest(user_id=test_user.id, course_id=paid_course.id)
        service.create_enrollment(request)

        with pytest.raises(ConflictError):
            service.create_enrollment(request)

        assert db_session.query(Enrollment).count() == 1

    def test_repurchase_after_refund_is_conflict(
        self, db_session: Session, test_user, paid_course
    ):
        create_enrollment_factory(
            db_session, test_user, paid_course, status=EnrollmentStatus.REFUNDED
        )
        service = EnrollmentService(db_session)

        with pytest.raises(ConflictError):
            service.purchase_course(test_user, paid_course.id)

    def test_concurrent_insert_rejected_by_store(
        self, db_session: Session, test_user, paid_course
    ):
        """A row committed between the pre-check and the insert is caught by the constraint."""
        create_enrollment_factory(db_session, test_user, paid_course)
        service = EnrollmentService(db_session)

        with patch.object(EnrollmentRepository, "get_by_user_course", return_value=None):
            with pytest.raises(DuplicateEnrollmentError) as exc_info:
                service.purchase_course(test_user, paid_course.id)

        assert exc_info.value.status_code == 409
        assert db_session.query(Enrollment).count() == 1

    def test_purchase_uses_catalog_price(self, db_session: Session, test_user, paid_course):
        service = EnrollmentService(db_session)

        enrollment = service.purchase_course(test_user, paid_course.id)

        assert enrollment.user_id == test_user.id
        assert enrollment.price == Decimal("49.99")


class TestStatusTransitions:
    def test_completed_sets_progress_and_timestamp(
        self, db_session: Session, test_user, paid_course
    ):
        enrollment = create_enrollment_factory(db_session, test_user, paid_course, progress=30)
        service = EnrollmentService(db_session)

        updated = service.update_status(
            enrollment.id, EnrollmentStatusUpdate(status=EnrollmentStatus.COMPLETED)
        )

        assert updated.status == EnrollmentStatus.COMPLETED
        assert updated.progress == 100
        assert updated.completed_at is not None

    def test_admin_may_move_completed_back_to_pending(
        self, db_session: Session, test_user, paid_course
    ):
        enrollment = create_enrollment_factory(
            db_session, test_user, paid_course, status=EnrollmentStatus.COMPLETED, progress=100
        )
        service = EnrollmentService(db_session)

        updated = service.update_status(
            enrollment.id, EnrollmentStatusUpdate(status=EnrollmentStatus.PENDING)
        )

        assert updated.status == EnrollmentStatus.PENDING

    def test_recompleting_keeps_original_timestamp(
        self, db_session: Session, test_user, paid_course
    ):
        enrollment = create_enrollment_factory(
            db_session, test_user, paid_course, status=EnrollmentStatus.COMPLETED, progress=100
        )
        completed_at = enrollment.completed_at
        service = EnrollmentService(db_session)
        service.update_progress(enrollment.id, test_user, EnrollmentProgressUpdate(progress=60))

        updated = service.update_status(
            enrollment.id, EnrollmentStatusUpdate(status=EnrollmentStatus.COMPLETED)
        )

        assert updated.progress == 100
        assert updated.completed_at == completed_at

    def test_unknown_enrollment(self, db_session: Session):
        service = EnrollmentService(db_session)

        with pytest.raises(NotFoundError):
            service.update_status(
                uuid.uuid4(), EnrollmentStatusUpdate(status=EnrollmentStatus.COMPLETED)
            )


class TestProgress:
    def test_reaching_100_auto_completes(self, db_session: Session, test_user, paid_course):
        enrollment = create_enrollment_factory(db_session, test_user, paid_course, progress=40)
        service = EnrollmentService(db_session)

        updated = service.update_progress(
            enrollment.id, test_user, EnrollmentProgressUpdate(progress=100)
        )

        assert updated.status == EnrollmentStatus.COMPLETED
        assert updated.progress == 100
        assert updated.completed_at is not None

    def test_partial_progress_keeps_status(self, db_session: Session, test_user, paid_course):
        enrollment = create_enrollment_factory(db_session, test_user, paid_course)
        service = EnrollmentService(db_session)

        updated = service.update_progress(
            enrollment.id, test_user, EnrollmentProgressUpdate(progress=55)
        )

        assert updated.progress == 55
        assert updated.status == EnrollmentStatus.PENDING
        assert updated.completed_at is None

    def test_lower_progress_does_not_regress_completion(
        self, db_session: Session, test_user, paid_course
    ):
        enrollment = create_enrollment_factory(
            db_session, test_user, paid_course, status=EnrollmentStatus.COMPLETED, progress=100
        )
        service = EnrollmentService(db_session)

        updated = service.update_progress(
            enrollment.id, test_user, EnrollmentProgressUpdate(progress=20)
        )

        assert updated.progress == 20
        assert updated.status == EnrollmentStatus.COMPLETED

    def test_other_user_is_forbidden(self, db_session: Session, test_user, other_user, paid_course):
        enrollment = create_enrollment_factory(db_session, test_user, paid_course)
        service = EnrollmentService(db_session)

        with pytest.raises(ForbiddenError):
            service.update_progress(
                enrollment.id, other_user, EnrollmentProgressUpdate(progress=10)
            )

    def test_admin_may_update(self, db_session: Session, test_user, test_admin, paid_course):
        enrollment = create_enrollment_factory(db_session, test_user, paid_course)
        service = EnrollmentService(db_session)

        updated = service.update_progress(
            enrollment.id, test_admin, EnrollmentProgressUpdate(progress=70)
        )

        assert updated.progress == 70

    def test_refunded_enrollment_is_not_reactivated(
        self, db_session: Session, test_user, paid_course
    ):
        enrollment = create_enrollment_factory(
            db_session, test_user, paid_course, status=EnrollmentStatus.REFUNDED
        )
        service = EnrollmentService(db_session)

        with pytest.raises(InvalidStateError):
            service.update_progress(
                enrollment.id, test_user, EnrollmentProgressUpdate(progress=100)
            )

        db_session.refresh(enrollment)
        assert enrollment.status == EnrollmentStatus.REFUNDED


class TestRefundAndDelete:
    def test_refund_changes_status_only(self, db_session: Session, test_user, paid_course):
        enrollment = create_enrollment_factory(
            db_session,
            test_user,
            paid_course,
            progress=35,
            payment_method=PaymentMethod.GATEWAY,
            gateway_session_id="cs_refund",
            gateway_payment_id="pi_refund",
        )
        service = EnrollmentService(db_session)

        refunded = service.refund(enrollment.id)

        assert refunded.status == EnrollmentStatus.REFUNDED
        assert refunded.price == Decimal("49.99")
        assert refunded.progress == 35
        assert refunded.gateway_session_id == "cs_refund"
        assert refunded.gateway_payment_id == "pi_refund"

    def test_refund_twice_is_conflict(self, db_session: Session, test_user, paid_course):
        enrollment = create_enrollment_factory(db_session, test_user, paid_course)
        service = EnrollmentService(db_session)
        service.refund(enrollment.id)

        with pytest.raises(ConflictError):
            service.refund(enrollment.id)

    def test_delete(self, db_session: Session, test_user, paid_course):
        enrollment = create_enrollment_factory(
            db_session, test_user, paid_course, status=EnrollmentStatus.REFUNDED
        )
        service = EnrollmentService(db_session)

        service.delete(enrollment.id)

        with pytest.raises(NotFoundError):
            service.get_enrollment(enrollment.id)


class TestSessionLookup:
    def test_owner_gets_enrollment(self, db_session: Session, test_user, paid_course):
        create_enrollment_factory(db_session, test_user, paid_course, gateway_session_id="cs_own")
        service = EnrollmentService(db_session)

        enrollment = service.get_by_session_id("cs_own", test_user)

        assert enrollment.course_id == paid_course.id

    def test_missing_session(self, db_session: Session, test_user):
        service = EnrollmentService(db_session)

        with pytest.raises(NotFoundError, match="still be processing"):
            service.get_by_session_id("cs_unknown", test_user)

    def test_other_users_session_is_forbidden(
        self, db_session: Session, test_user, other_user, paid_course
    ):
        create_enrollment_factory(db_session, test_user, paid_course, gateway_session_id="cs_own")
        service = EnrollmentService(db_session)

        with pytest.raises(ForbiddenError):
            service.get_by_session_id("cs_own", other_user)


class TestListingAndStats:
    def test_stats(self, db_session: Session, test_user, other_user):
        course_a = create_course_factory(db_session, price="100.00")
        course_b = create_course_factory(db_session, price="50.00")
        create_enrollment_factory(db_session, test_user, course_a)
        create_enrollment_factory(
            db_session, other_user, course_a, status=EnrollmentStatus.COMPLETED, progress=100
        )
        create_enrollment_factory(
            db_session, test_user, course_b, status=EnrollmentStatus.REFUNDED
        )
        service = EnrollmentService(db_session)

        stats = service.stats()

        assert stats.total == 3
        assert stats.pending == 1
        assert stats.completed == 1
        assert stats.refunded == 1
        assert stats.total_revenue == Decimal("200.00")
        assert stats.completion_rate == 33

    def test_stats_empty(self, db_session: Session):
        stats = EnrollmentService(db_session).stats()

        assert stats.total == 0
        assert stats.completion_rate == 0
        assert stats.total_revenue == Decimal("0.00")

    def test_my_stats_excludes_refunded(self, db_session: Session, test_user):
        courses = [create_course_factory(db_session) for _ in range(3)]
        create_enrollment_factory(db_session, test_user, courses[0], progress=50)
        create_enrollment_factory(
            db_session, test_user, courses[1], status=EnrollmentStatus.COMPLETED, progress=100
        )
        create_enrollment_factory(
            db_session, test_user, courses[2], status=EnrollmentStatus.REFUNDED, progress=10
        )

        stats = EnrollmentService(db_session).my_stats(test_user)

        assert stats.total_enrolled == 2
        assert stats.in_progress == 1
        assert stats.completed == 1
        assert stats.avg_progress == 75

    def test_list_filters_and_paginates(self, db_session: Session):
        course = create_course_factory(db_session)
        users = [create_user_factory(db_session) for _ in range(5)]
        for i, user in enumerate(users):
            create_enrollment_factory(
                db_session,
                user,
                course,
                price=str(10 * (i + 1)),
                status=EnrollmentStatus.REFUNDED if i == 0 else EnrollmentStatus.PENDING,
            )
        service = EnrollmentService(db_session)

        items, total = service.list_enrollments(
            EnrollmentFilters(status=EnrollmentStatus.PENDING, course_id=course.id),
            sort_by="price",
            order="asc",
            page=1,
            limit=3,
        )

        assert total == 4
        assert [e.price for e in items] == [Decimal("20"), Decimal("30"), Decimal("40")]

        items, _ = service.list_enrollments(
            EnrollmentFilters(status=EnrollmentStatus.PENDING),
            sort_by="price",
            order="asc",
            page=2,
            limit=3,
        )
        assert [e.price for e in items] == [Decimal("50")]

    def test_my_enrollments(self, db_session: Session, test_user, other_user, paid_course):
        create_enrollment_factory(db_session, test_user, paid_course)
        create_enrollment_factory(db_session, other_user, paid_course)

        enrollments = EnrollmentService(db_session).my_enrollments(test_user)

        assert len(enrollments) == 1
        assert enrollments[0].course.title == "Paid Course"


class TestCourseAccess:
    def test_courses_with_status(
        self, db_session: Session, test_user, paid_course, free_course, draft_course
    ):
        enrollment = create_enrollment_factory(db_session, test_user, paid_course, progress=40)
        service = EnrollmentService(db_session)

        courses = {c.id: c for c in service.courses_with_status(test_user)}

        assert set(courses) == {paid_course.id, free_course.id}
        held = courses[paid_course.id]
        assert held.is_enrolled is True
        assert held.has_access is True
        assert held.enrollment_id == enrollment.id
        assert held.progress == 40
        assert held.enrolled_at is not None
        not_held = courses[free_course.id]
        assert not_held.is_enrolled is False
        assert not_held.has_access is False
        assert not_held.enrollment_id is None
        assert not_held.progress == 0

    def test_refunded_course_is_held_without_access(
        self, db_session: Session, test_user, paid_course
    ):
        create_enrollment_factory(
            db_session, test_user, paid_course, status=EnrollmentStatus.REFUNDED
        )
        service = EnrollmentService(db_session)

        (course,) = service.courses_with_status(test_user)

        assert course.is_enrolled is True
        assert course.has_access is False
        assert course.enrollment_status == EnrollmentStatus.REFUNDED

    def test_checkout_details_for_unheld_course(
        self, db_session: Session, test_user, paid_course
    ):
        service = EnrollmentService(db_session)

        details = service.checkout_details(test_user, paid_course.id)

        assert details.price == Decimal("49.99")
        assert details.is_free is False
        assert details.is_published is True
        assert details.is_enrolled is False
        assert details.has_access is False
        assert details.enrollment_id is None

    def test_checkout_details_for_held_course(
        self, db_session: Session, test_user, other_user, paid_course
    ):
        enrollment = create_enrollment_factory(db_session, test_user, paid_course)
        service = EnrollmentService(db_session)

        mine = service.checkout_details(test_user, paid_course.id)
        theirs = service.checkout_details(other_user, paid_course.id)

        assert mine.is_enrolled is True
        assert mine.has_access is True
        assert mine.enrollment_id == enrollment.id
        assert theirs.is_enrolled is False

    def test_checkout_details_unknown_course(self, db_session: Session, test_user):
        service = EnrollmentService(db_session)

        with pytest.raises(NotFoundError):
            service.checkout_details(test_user, uuid.uuid4())


class TestEnrollAll:
    def test_enrolls_in_unheld_published_courses_at_zero(
        self, db_session: Session, test_user, paid_course, free_course, draft_course
    ):
        existing = create_course_factory(db_session, price="19.00")
        create_enrollment_factory(db_session, test_user, existing, price="19.00")
        service = EnrollmentService(db_session)

        created = service.enroll_all(test_user.id)

        assert created == 2
        enrollments = {
            e.course_id: e
            for e in db_session.query(Enrollment).filter(Enrollment.user_id == test_user.id)
        }
        assert set(enrollments) == {existing.id, paid_course.id, free_course.id}
        assert enrollments[paid_course.id].price == Decimal("0")
        assert enrollments[paid_course.id].status == EnrollmentStatus.PENDING
        assert enrollments[existing.id].price == Decimal("19.00")

    def test_refunded_pair_is_skipped(self, db_session: Session, test_user, paid_course):
        create_enrollment_factory(
            db_session, test_user, paid_course, status=EnrollmentStatus.REFUNDED
        )
        service = EnrollmentService(db_session)

        assert service.enroll_all(test_user.id) == 0
        assert db_session.query(Enrollment).count() == 1

    def test_second_run_creates_nothing(self, db_session: Session, test_user, paid_course):
        service = EnrollmentService(db_session)

        assert service.enroll_all(test_user.id) == 1
        assert service.enroll_all(test_user.id) == 0

    def test_concurrent_enrollment_is_skipped(
        self, db_session: Session, test_user, paid_course, free_course
    ):
        """A pair taken between the held check and the insert is left alone."""
        create_enrollment_factory(db_session, test_user, paid_course)
        service = EnrollmentService(db_session)

        with patch.object(EnrollmentRepository, "list_for_user", return_value=[]):
            created = service.enroll_all(test_user.id)

        assert created == 1
        assert db_session.query(Enrollment).count() == 2

    def test_unknown_user(self, db_session: Session, paid_course):
        service = EnrollmentService(db_session)

        with pytest.raises(NotFoundError):
            service.enroll_all(uuid.uuid4())
