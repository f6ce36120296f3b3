from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from learnhub.auth.dependencies import get_current_user, require_admin
from learnhub.auth.models.user import User
from learnhub.core.schemas import PaginatedResponse, paginated_response
from learnhub.enrollments.dependencies import get_enrollment_service
from learnhub.enrollments.models import Enrollment, EnrollmentStatus
from learnhub.enrollments.repositories.enrollment_repository import EnrollmentFilters
from learnhub.enrollments.schemas import (
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
from learnhub.enrollments.services.enrollment_service import EnrollmentService

router = APIRouter(prefix="/enrollments", tags=["enrollments"])


@router.get("", response_model=PaginatedResponse[EnrollmentDetailResponse])
async def list_enrollments(
    status_filter: EnrollmentStatus | None = Query(None, alias="status"),
    course_id: UUID | None = None,
    user_id: UUID | None = None,
    sort_by: Literal["enrolled_at", "price", "progress", "status"] = "enrolled_at",
    order: Literal["asc", "desc"] = "desc",
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    service: EnrollmentService = Depends(get_enrollment_service),
    current_user: User = Depends(require_admin),
) -> PaginatedResponse[EnrollmentDetailResponse]:
    filters = EnrollmentFilters(status=status_filter, course_id=course_id, user_id=user_id)
    items, total = service.list_enrollments(
        filters, sort_by=sort_by, order=order, page=page, limit=limit
    )
    return paginated_response(
        [EnrollmentDetailResponse.model_validate(e) for e in items], total, page, limit
    )


@router.get("/stats", response_model=EnrollmentStatsResponse)
async def get_enrollment_stats(
    service: EnrollmentService = Depends(get_enrollment_service),
    current_user: User = Depends(require_admin),
) -> EnrollmentStatsResponse:
    return service.stats()


@router.get("/me", response_model=list[EnrollmentWithCourseResponse])
async def get_my_enrollments(
    service: EnrollmentService = Depends(get_enrollment_service),
    current_user: User = Depends(get_current_user),
) -> list[Enrollment]:
    return service.my_enrollments(current_user)


@router.get("/me/stats", response_model=MyEnrollmentStatsResponse)
async def get_my_stats(
    service: EnrollmentService = Depends(get_enrollment_service),
    current_user: User = Depends(get_current_user),
) -> MyEnrollmentStatsResponse:
    return service.my_stats(current_user)


@router.get("/session/{session_id}", response_model=EnrollmentWithCourseResponse)
async def get_enrollment_by_session(
    session_id: str,
    service: EnrollmentService = Depends(get_enrollment_service),
    current_user: User = Depends(get_current_user),
) -> Enrollment:
    """Polled by the checkout success page until the payment webhook lands."""
    return service.get_by_session_id(session_id, current_user)


@router.get("/all-courses", response_model=list[CourseAccessStatus])
async def get_all_courses_with_status(
    service: EnrollmentService = Depends(get_enrollment_service),
    current_user: User = Depends(get_current_user),
) -> list[CourseAccessStatus]:
    return service.courses_with_status(current_user)


@router.get("/checkout/{course_id}", response_model=CheckoutDetailsResponse)
async def get_checkout_details(
    course_id: UUID,
    service: EnrollmentService = Depends(get_enrollment_service),
    current_user: User = Depends(get_current_user),
) -> CheckoutDetailsResponse:
    """Read by the checkout page before it requests a payment session."""
    return service.checkout_details(current_user, course_id)


@router.post("/enroll-all", response_model=EnrollAllResponse)
async def enroll_in_all_courses(
    data: EnrollAllRequest,
    response: Response,
    service: EnrollmentService = Depends(get_enrollment_service),
    current_user: User = Depends(require_admin),
) -> EnrollAllResponse:
    """Complimentary access: price-0 enrollments in every published course not yet held."""
    enrolled = service.enroll_all(data.user_id)
    if enrolled:
        response.status_code = status.HTTP_201_CREATED
    return EnrollAllResponse(enrolled=enrolled)


@router.post(
    "/purchase/{course_id}",
    response_model=EnrollmentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def purchase_course(
    course_id: UUID,
    service: EnrollmentService = Depends(get_enrollment_service),
    current_user: User = Depends(get_current_user),
) -> Enrollment:
    return service.purchase_course(current_user, course_id)


@router.get("/{enrollment_id}", response_model=EnrollmentDetailResponse)
async def get_enrollment(
    enrollment_id: UUID,
    service: EnrollmentService = Depends(get_enrollment_service),
    current_user: User = Depends(require_admin),
) -> Enrollment:
    return service.get_enrollment(enrollment_id)


@router.post("", response_model=EnrollmentResponse, status_code=status.HTTP_201_CREATED)
async def create_enrollment(
    data: EnrollmentCreateRequest,
    service: EnrollmentService = Depends(get_enrollment_service),
    current_user: User = Depends(require_admin),
) -> Enrollment:
    return service.create_enrollment(data)


@router.patch("/{enrollment_id}/status", response_model=EnrollmentResponse)
async def update_enrollment_status(
    enrollment_id: UUID,
    data: EnrollmentStatusUpdate,
    service: EnrollmentService = Depends(get_enrollment_service),
    current_user: User = Depends(require_admin),
) -> Enrollment:
    return service.update_status(enrollment_id, data)


@router.patch("/{enrollment_id}/progress", response_model=EnrollmentResponse)
async def update_enrollment_progress(
    enrollment_id: UUID,
    data: EnrollmentProgressUpdate,
    service: EnrollmentService = Depends(get_enrollment_service),
    current_user: User = Depends(get_current_user),
) -> Enrollment:
    return service.update_progress(enrollment_id, current_user, data)


@router.post("/{enrollment_id}/refund", response_model=EnrollmentResponse)
async def refund_enrollment(
    enrollment_id: UUID,
    service: EnrollmentService = Depends(get_enrollment_service),
    current_user: User = Depends(require_admin),
) -> Enrollment:
    return service.refund(enrollment_id)


@router.delete("/{enrollment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_enrollment(
    enrollment_id: UUID,
    service: EnrollmentService = Depends(get_enrollment_service),
    current_user: User = Depends(require_admin),
) -> None:
    service.delete(enrollment_id)
