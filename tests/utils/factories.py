import uuid
from datetime import UTC, datetime
from decimal import Decimal

from faker import Faker
from sqlalchemy.orm import Session

from learnhub.auth.models.user import User
from learnhub.catalog.models.course import Course
from learnhub.enrollments.models import Enrollment, EnrollmentStatus, PaymentMethod

fake = Faker()


def create_user_factory(
    db_session: Session,
    email: str | None = None,
    name: str | None = None,
    role: str = "student",
    is_active: bool = True,
) -> User:
    """
    Factory function to create test users.

    Args:
        db_session: Database session
        email: User email (generates random if None)
        name: User name (generates random if None)
        role: User role ("student" or "admin")
        is_active: Whether user is active

    Returns:
        Created User instance
    """
    user = User(
        id=uuid.uuid4(),
        email=email or fake.unique.email(),
        name=name or fake.name(),
        role=role,
        is_active=is_active,
        created_at=datetime.now(UTC),
        updated_at=datetime.now(UTC),
    )

    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)

    return user


def create_course_factory(
    db_session: Session,
    title: str | None = None,
    price: str | Decimal = "49.99",
    is_published: bool = True,
) -> Course:
    title = title or fake.catch_phrase()
    course = Course(
        id=uuid.uuid4(),
        slug=f"{fake.slug()}-{uuid.uuid4().hex[:6]}",
        title=title,
        price=Decimal(price),
        is_published=is_published,
    )

    db_session.add(course)
    db_session.commit()
    db_session.refresh(course)

    return course


def create_enrollment_factory(
    db_session: Session,
    user: User,
    course: Course,
    price: str | Decimal | None = None,
    status: EnrollmentStatus = EnrollmentStatus.PENDING,
    progress: int = 0,
    payment_method: PaymentMethod | None = None,
    gateway_session_id: str | None = None,
    gateway_payment_id: str | None = None,
) -> Enrollment:
    enrollment = Enrollment(
        user_id=user.id,
        course_id=course.id,
        price=Decimal(price) if price is not None else course.price,
        status=status,
        progress=progress,
        completed_at=datetime.now(UTC) if status == EnrollmentStatus.COMPLETED else None,
        payment_method=payment_method,
        gateway_session_id=gateway_session_id,
        gateway_payment_id=gateway_payment_id,
    )

    db_session.add(enrollment)
    db_session.commit()
    db_session.refresh(enrollment)

    return enrollment
