from learnhub.enrollments.models.enrollment import Enrollment, EnrollmentStatus, PaymentMethod

__all__ = [
    "Enrollment",
    "EnrollmentStatus",
    "PaymentMethod",
]
