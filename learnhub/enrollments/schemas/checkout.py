"""
Pydantic schemas for checkout.
"""

from uuid import UUID

from pydantic import BaseModel, Field

from learnhub.enrollments.schemas.enrollment import EnrollmentResponse


class CheckoutSessionRequest(BaseModel):
    """Request to start a checkout for one course."""

    course_id: UUID = Field(..., description="Course to purchase")


class CheckoutSessionResponse(BaseModel):
    """Either a hosted payment page to redirect to, or the free enrollment."""

    free: bool = Field(..., description="True when no payment was needed")
    session_id: str | None = Field(default=None, description="Gateway checkout session id")
    session_url: str | None = Field(default=None, description="URL to redirect user for payment")
    enrollment: EnrollmentResponse | None = None


class WebhookAck(BaseModel):
    received: bool = True
    outcome: str
