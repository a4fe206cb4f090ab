"""
Curriculum API endpoints.

Routes:
- PATCH /hours/{hour_id} - Update hour
- DELETE /hours/{hour_id} - Delete hour
- POST /hours/{hour_id}/assignments - Create assignment
- POST /assignments/{id}/submit - Submit or resubmit a file
- GET /assignments/{id}/submissions - List submissions
- POST /submissions/{id}/grade - Grade a submission

Dependencies: lms_backend.application.services, lms_backend.models
System role: Curriculum HTTP API
"""

from uuid import UUID

from fastapi import APIRouter, Depends, File, Response, UploadFile, status

from lms_backend.api.deps.dependencies import get_current_user, get_curriculum_service
from lms_backend.api.routers.router_utils import handle_service_errors
from lms_backend.application.services import CurriculumService
from lms_backend.boundary.db.models.user_model import UserModel
from lms_backend.models.curriculum import (
    AssignmentResponse,
    CreateAssignmentRequest,
    GradeSubmissionRequest,
    HourResponse,
    SubmissionResponse,
    SubmissionWithStudentResponse,
    UpdateHourRequest,
)

router = APIRouter(tags=["curriculum"])


@router.patch("/hours/{hour_id}", response_model=HourResponse)
@handle_service_errors
async def update_hour(
    hour_id: UUID,
    request: UpdateHourRequest,
    user: UserModel = Depends(get_current_user),
    curriculum_service: CurriculumService = Depends(get_curriculum_service),
) -> HourResponse:
    hour = await curriculum_service.update_hour(
        user,
        hour_id,
        title=request.title,
        content=request.content,
        order_index=request.order_index,
    )
    return HourResponse.model_validate(hour)


@router.delete("/hours/{hour_id}", status_code=204)
@handle_service_errors
async def delete_hour(
    hour_id: UUID,
    user: UserModel = Depends(get_current_user),
    curriculum_service: CurriculumService = Depends(get_curriculum_service),
) -> Response:
    await curriculum_service.delete_hour(user, hour_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/hours/{hour_id}/assignments", response_model=AssignmentResponse, status_code=201)
@handle_service_errors
async def create_assignment(
    hour_id: UUID,
    request: CreateAssignmentRequest,
    user: UserModel = Depends(get_current_user),
    curriculum_service: CurriculumService = Depends(get_curriculum_service),
) -> AssignmentResponse:
    assignment = await curriculum_service.create_assignment(
        user,
        hour_id,
        title=request.title,
        description=request.description,
        points=request.points,
        due_date=request.due_date,
    )
    return AssignmentResponse.model_validate(assignment)


@router.post("/assignments/{assignment_id}/submit", response_model=SubmissionResponse)
@handle_service_errors
async def submit_assignment(
    assignment_id: UUID,
    file: UploadFile = File(...),
    user: UserModel = Depends(get_current_user),
    curriculum_service: CurriculumService = Depends(get_curriculum_service),
) -> SubmissionResponse:
    """
    Submit a file for an assignment.

    Resubmitting replaces the file and keeps any existing grade.

    Raises:
        HTTPException(403): Caller is not an enrolled student
        HTTPException(422): Disallowed file
        HTTPException(502): Storage failure
    """
    data = await file.read()
    submission = await curriculum_service.submit_assignment(
        user,
        assignment_id,
        filename=file.filename or "",
        content_type=file.content_type,
        data=data,
    )
    return SubmissionResponse.model_validate(submission)


@router.get(
    "/assignments/{assignment_id}/submissions",
    response_model=list[SubmissionWithStudentResponse],
)
@handle_service_errors
async def list_submissions(
    assignment_id: UUID,
    user: UserModel = Depends(get_current_user),
    curriculum_service: CurriculumService = Depends(get_curriculum_service),
) -> list[SubmissionWithStudentResponse]:
    submissions = await curriculum_service.list_submissions(user, assignment_id)
    return [SubmissionWithStudentResponse(**s) for s in submissions]


@router.post("/submissions/{submission_id}/grade", response_model=SubmissionResponse)
@handle_service_errors
async def grade_submission(
    submission_id: UUID,
    request: GradeSubmissionRequest,
    user: UserModel = Depends(get_current_user),
    curriculum_service: CurriculumService = Depends(get_curriculum_service),
) -> SubmissionResponse:
    """
    Grade a submission.

    Raises:
        HTTPException(403): Caller does not teach the course
        HTTPException(422): Grade outside 0..points
    """
    submission = await curriculum_service.grade_submission(
        user,
        submission_id,
        grade=request.grade,
        feedback=request.feedback,
    )
    return SubmissionResponse.model_validate(submission)
