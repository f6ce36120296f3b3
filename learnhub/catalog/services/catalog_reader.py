from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from learnhub.catalog.models.course import Course


@dataclass(frozen=True)
class CourseSnapshot:
    """What the enrollment core needs to know about a course at decision time."""

    id: UUID
    title: str
    slug: str
    price: Decimal
    is_published: bool

    @property
    def is_free(self) -> bool:
        return self.price == 0


class CatalogReader:
    """Read-only view of the course catalog. Catalog writes live elsewhere."""

    def __init__(self, db: Session):
        self.db = db

    def get_course(self, course_id: UUID) -> CourseSnapshot | None:
        course = self.db.query(Course).filter(Course.id == course_id).first()
        if course is None:
            return None
        return self._snapshot(course)

    def list_published(self) -> list[CourseSnapshot]:
        """Published courses, newest first."""
        courses = (
            self.db.query(Course)
            .filter(Course.is_published.is_(True))
            .order_by(Course.created_at.desc(), Course.id)
            .all()
        )
        return [self._snapshot(course) for course in courses]

    @staticmethod
    def _snapshot(course: Course) -> CourseSnapshot:
        return CourseSnapshot(
            id=course.id,
            title=course.title,
            slug=course.slug,
            price=Decimal(course.price),
            is_published=course.is_published,
        )
