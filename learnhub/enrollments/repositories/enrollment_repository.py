from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy import case, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session, joinedload

from learnhub.core.exceptions import DuplicateEnrollmentError
from learnhub.core.repository import BaseRepository
from learnhub.enrollments.models import Enrollment, EnrollmentStatus

SORTABLE_FIELDS = {
    "enrolled_at": Enrollment.enrolled_at,
    "price": Enrollment.price,
    "progress": Enrollment.progress,
    "status": Enrollment.status,
}


@dataclass
class EnrollmentFilters:
    status: EnrollmentStatus | None = None
    course_id: UUID | None = None
    user_id: UUID | None = None


@dataclass
class EnrollmentTotals:
    total: int
    pending: int
    completed: int
    refunded: int
    total_revenue: Decimal


@dataclass
class UserEnrollmentTotals:
    total_enrolled: int
    in_progress: int
    completed: int
    avg_progress: float


class EnrollmentRepository(BaseRepository[Enrollment]):
    """Enrollment store.

    The unique constraints on ``enrollments`` are the final arbiter for
    concurrent writers; ``add`` and ``save`` report their violations as
    ``DuplicateEnrollmentError`` after rolling back.
    """

    def __init__(self, db: Session):
        super().__init__(db, Enrollment)

    def get_by_session_id(self, session_id: str) -> Enrollment | None:
        return (
            self.db.query(Enrollment).filter(Enrollment.gateway_session_id == session_id).first()
        )

    def get_by_user_course(self, user_id: UUID, course_id: UUID) -> Enrollment | None:
        return (
            self.db.query(Enrollment)
            .filter(Enrollment.user_id == user_id, Enrollment.course_id == course_id)
            .first()
        )

    def add(self, instance: Enrollment) -> Enrollment:
        try:
            return super().add(instance)
        except IntegrityError as e:
            raise DuplicateEnrollmentError() from e

    def save(self, instance: Enrollment) -> Enrollment:
        try:
            return super().save(instance)
        except IntegrityError as e:
            raise DuplicateEnrollmentError() from e

    def search(
        self,
        filters: EnrollmentFilters,
        sort_by: str = "enrolled_at",
        order: str = "desc",
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[Enrollment], int]:
        """Return one page of enrollments and the total matching the filters."""
        query = self._filtered(filters)
        total = query.count()

        column = SORTABLE_FIELDS.get(sort_by, Enrollment.enrolled_at)
        ordering = column.asc() if order == "asc" else column.desc()

        items = (
            query.options(joinedload(Enrollment.user), joinedload(Enrollment.course))
            .order_by(ordering, Enrollment.id)
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return items, total

    def list_for_user(self, user_id: UUID) -> list[Enrollment]:
        return (
            self.db.query(Enrollment)
            .options(joinedload(Enrollment.course))
            .filter(Enrollment.user_id == user_id)
            .order_by(Enrollment.enrolled_at.desc())
            .all()
        )

    def totals(self) -> EnrollmentTotals:
        row = self.db.query(
            func.count(Enrollment.id),
            func.sum(case((Enrollment.status == EnrollmentStatus.PENDING, 1), else_=0)),
            func.sum(case((Enrollment.status == EnrollmentStatus.COMPLETED, 1), else_=0)),
            func.sum(case((Enrollment.status == EnrollmentStatus.REFUNDED, 1), else_=0)),
            func.sum(
                case((Enrollment.status != EnrollmentStatus.REFUNDED, Enrollment.price), else_=0)
            ),
        ).one()
        return EnrollmentTotals(
            total=row[0] or 0,
            pending=row[1] or 0,
            completed=row[2] or 0,
            refunded=row[3] or 0,
            total_revenue=Decimal(str(row[4] or 0)).quantize(Decimal("0.01")),
        )

    def user_totals(self, user_id: UUID) -> UserEnrollmentTotals:
        # Refunded enrollments do not count toward a learner's dashboard.
        row = (
            self.db.query(
                func.count(Enrollment.id),
                func.sum(case((Enrollment.status == EnrollmentStatus.PENDING, 1), else_=0)),
                func.sum(case((Enrollment.status == EnrollmentStatus.COMPLETED, 1), else_=0)),
                func.avg(Enrollment.progress),
            )
            .filter(
                Enrollment.user_id == user_id,
                Enrollment.status != EnrollmentStatus.REFUNDED,
            )
            .one()
        )
        return UserEnrollmentTotals(
            total_enrolled=row[0] or 0,
            in_progress=row[1] or 0,
            completed=row[2] or 0,
            avg_progress=float(row[3] or 0),
        )

    def _filtered(self, filters: EnrollmentFilters) -> Query[Enrollment]:
        query = self.db.query(Enrollment)
        if filters.status is not None:
            query = query.filter(Enrollment.status == filters.status)
        if filters.course_id is not None:
            query = query.filter(Enrollment.course_id == filters.course_id)
        if filters.user_id is not None:
            query = query.filter(Enrollment.user_id == filters.user_id)
        return query
