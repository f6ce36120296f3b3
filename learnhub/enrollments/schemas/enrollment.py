from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from learnhub.core.datetime_utils import UTCDatetime
from learnhub.enrollments.models import EnrollmentStatus, PaymentMethod


class EnrollmentCreateRequest(BaseModel):
    """Administrative enrollment. ``price`` overrides the catalog price."""

    user_id: UUID
    course_id: UUID
    price: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)


class EnrollmentStatusUpdate(BaseModel):
    status: EnrollmentStatus


class EnrollmentProgressUpdate(BaseModel):
    progress: int = Field(..., ge=0, le=100)


class EnrollmentUserSummary(BaseModel):
    id: UUID
    name: str
    email: str

    class Config:
        from_attributes = True


class EnrollmentCourseSummary(BaseModel):
    id: UUID
    title: str
    slug: str

    class Config:
        from_attributes = True


class EnrollmentResponse(BaseModel):
    id: UUID
    user_id: UUID
    course_id: UUID
    price: Decimal
    status: EnrollmentStatus
    progress: int
    payment_method: PaymentMethod | None = None
    gateway_session_id: str | None = None
    gateway_payment_id: str | None = None
    enrolled_at: UTCDatetime
    completed_at: UTCDatetime | None = None
    updated_at: UTCDatetime

    class Config:
        from_attributes = True


class EnrollmentWithCourseResponse(EnrollmentResponse):
    course: EnrollmentCourseSummary


class EnrollmentDetailResponse(EnrollmentResponse):
    user: EnrollmentUserSummary
    course: EnrollmentCourseSummary


class EnrollmentStatsResponse(BaseModel):
    total: int
    pending: int
    completed: int
    refunded: int
    total_revenue: Decimal
    completion_rate: int  # percent of all enrollments


class MyEnrollmentStatsResponse(BaseModel):
    total_enrolled: int
    in_progress: int
    completed: int
    avg_progress: int


class CourseAccessStatus(BaseModel):
    """A published course as seen by one learner."""

    id: UUID
    title: str
    slug: str
    price: Decimal
    is_enrolled: bool
    has_access: bool
    enrollment_id: UUID | None = None
    enrollment_status: EnrollmentStatus | None = None
    progress: int = 0
    enrolled_at: UTCDatetime | None = None


class CheckoutDetailsResponse(BaseModel):
    """What the checkout page needs before it asks for a session."""

    id: UUID
    title: str
    slug: str
    price: Decimal
    is_free: bool
    is_published: bool
    is_enrolled: bool
    has_access: bool
    enrollment_id: UUID | None = None


class EnrollAllRequest(BaseModel):
    user_id: UUID


class EnrollAllResponse(BaseModel):
    enrolled: int
