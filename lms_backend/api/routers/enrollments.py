"""
Enrollment API endpoints.

Routes:
- POST /enrollments - Enroll by access code (student) or directly (admin)
- DELETE /enrollments/{id} - Remove enrollment (admin)

Dependencies: lms_backend.application.services, lms_backend.models
System role: Enrollment HTTP API
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from lms_backend.api.deps.dependencies import get_current_user, get_enrollment_service
from lms_backend.api.routers.router_utils import handle_service_errors
from lms_backend.application.services import EnrollmentService
from lms_backend.boundary.db.models.user_model import UserModel
from lms_backend.models.enrollment import CreateEnrollmentRequest, EnrollmentResponse

router = APIRouter(prefix="/enrollments", tags=["enrollments"])


@router.post("", response_model=EnrollmentResponse, status_code=201)
@handle_service_errors
async def create_enrollment(
    request: CreateEnrollmentRequest,
    user: UserModel = Depends(get_current_user),
    enrollment_service: EnrollmentService = Depends(get_enrollment_service),
) -> EnrollmentResponse:
    """
    Create an enrollment.

    A body with ``access_code`` enrolls the calling student; a body with
    ``student_id`` and ``course_id`` is the admin path and skips
    roll-number gating.

    Raises:
        HTTPException(403): Not eligible, or wrong role for the chosen path
        HTTPException(404): Invalid access code
        HTTPException(409): Already enrolled
    """
    if request.access_code is not None:
        enrollment = await enrollment_service.enroll_by_access_code(user, request.access_code)
    else:
        enrollment = await enrollment_service.admin_create_enrollment(
            user, request.student_id, request.course_id
        )
    return EnrollmentResponse.model_validate(enrollment)


@router.delete("/{enrollment_id}", status_code=204)
@handle_service_errors
async def delete_enrollment(
    enrollment_id: UUID,
    user: UserModel = Depends(get_current_user),
    enrollment_service: EnrollmentService = Depends(get_enrollment_service),
) -> Response:
    await enrollment_service.admin_remove_enrollment(user, enrollment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
