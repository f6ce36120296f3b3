from fastapi import APIRouter, Depends, Request, Response, status

from learnhub.auth.dependencies import get_current_user
from learnhub.auth.models.user import User
from learnhub.core.config import settings
from learnhub.core.rate_limit import limiter
from learnhub.enrollments.dependencies import get_checkout_service
from learnhub.enrollments.schemas import (
    CheckoutSessionRequest,
    CheckoutSessionResponse,
    EnrollmentResponse,
)
from learnhub.enrollments.services.checkout_service import CheckoutService

router = APIRouter(prefix="/checkout", tags=["checkout"])


@router.post("/session", response_model=CheckoutSessionResponse)
@limiter.limit(settings.CHECKOUT_RATE_LIMIT)
async def create_checkout_session(
    request: Request,
    response: Response,
    checkout_request: CheckoutSessionRequest,
    service: CheckoutService = Depends(get_checkout_service),
    current_user: User = Depends(get_current_user),
) -> CheckoutSessionResponse:
    """Return a payment page URL, or the enrollment itself for free courses (201)."""
    result = await service.create_checkout_session(current_user, checkout_request.course_id)
    if result.free:
        response.status_code = status.HTTP_201_CREATED

    return CheckoutSessionResponse(
        free=result.free,
        session_id=result.session_id,
        session_url=result.session_url,
        enrollment=(
            EnrollmentResponse.model_validate(result.enrollment) if result.enrollment else None
        ),
    )
