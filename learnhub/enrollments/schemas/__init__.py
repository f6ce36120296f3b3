"""Enrollment schemas."""

from learnhub.enrollments.schemas.checkout import (
    CheckoutSessionRequest,
    CheckoutSessionResponse,
    WebhookAck,
)
from learnhub.enrollments.schemas.enrollment import (
    CheckoutDetailsResponse,
    CourseAccessStatus,
    EnrollAllRequest,
    EnrollAllResponse,
    EnrollmentCreateRequest,
    EnrollmentDetailResponse,
    EnrollmentProgressUpdate,
    EnrollmentResponse,
    EnrollmentStatsResponse,
    EnrollmentStatusUpdate,
    EnrollmentWithCourseResponse,
    MyEnrollmentStatsResponse,
)

__all__ = [
    "CheckoutDetailsResponse",
    "CheckoutSessionRequest",
    "CheckoutSessionResponse",
    "CourseAccessStatus",
    "EnrollAllRequest",
    "EnrollAllResponse",
    "EnrollmentCreateRequest",
    "EnrollmentDetailResponse",
    "EnrollmentProgressUpdate",
    "EnrollmentResponse",
    "EnrollmentStatsResponse",
    "EnrollmentStatusUpdate",
    "EnrollmentWithCourseResponse",
    "MyEnrollmentStatsResponse",
    "WebhookAck",
]
