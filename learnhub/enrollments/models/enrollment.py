import enum
import uuid
from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, Enum, ForeignKey, Index, Numeric, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from learnhub.db.session import Base


class EnrollmentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    REFUNDED = "refunded"


class PaymentMethod(str, enum.Enum):
    FREE = "free"
    GATEWAY = "gateway"


class Enrollment(Base):
    __tablename__ = "enrollments"
    __table_args__ = (
        # Store-level uniqueness; services treat violations as conflicts.
        UniqueConstraint("user_id", "course_id", name="uq_enrollment_user_course"),
        UniqueConstraint("gateway_session_id", name="uq_enrollment_gateway_session"),
        UniqueConstraint("gateway_payment_id", name="uq_enrollment_gateway_payment"),
        CheckConstraint("progress >= 0 AND progress <= 100", name="ck_enrollment_progress_range"),
        Index("ix_enrollments_status_enrolled_at", "status", "enrolled_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4, index=True)
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    course_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("courses.id", ondelete="CASCADE"), index=True
    )

    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    status: Mapped[EnrollmentStatus] = mapped_column(
        Enum(EnrollmentStatus, values_callable=lambda obj: [e.value for e in obj]),
        default=EnrollmentStatus.PENDING,
        index=True,
    )
    progress: Mapped[int] = mapped_column(default=0)

    enrolled_at: Mapped[datetime] = mapped_column(default=lambda: datetime.now(UTC))
    completed_at: Mapped[datetime | None] = mapped_column(default=None)
    updated_at: Mapped[datetime] = mapped_column(
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    payment_method: Mapped[PaymentMethod | None] = mapped_column(
        Enum(PaymentMethod, values_callable=lambda obj: [e.value for e in obj]),
        default=None,
    )
    gateway_session_id: Mapped[str | None] = mapped_column(default=None, index=True)
    gateway_payment_id: Mapped[str | None] = mapped_column(default=None)

    user = relationship("User", backref="enrollments")
    course = relationship("Course", back_populates="enrollments")

    @property
    def is_refunded(self) -> bool:
        return self.status == EnrollmentStatus.REFUNDED

    def mark_completed(self, now: datetime) -> None:
        """Completed and progress 100 always travel together."""
        self.status = EnrollmentStatus.COMPLETED
        self.progress = 100
        self.completed_at = now

    def __repr__(self) -> str:
        return (
            f"<Enrollment(id={self.id}, user_id={self.user_id}, "
            f"course_id={self.course_id}, status={self.status.value})>"
        )
