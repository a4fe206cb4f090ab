"""
Course API endpoints.

Routes:
- POST /courses - Create course
- GET /courses - List courses (all, teaching or enrolled)
- GET /courses/lookup - Preview the course behind an access code
- GET /courses/{id} - Course details
- PATCH /courses/{id} - Update course
- DELETE /courses/{id} - Delete course
- GET /courses/{id}/enrollments - Enrollments with student info
- GET /courses/{id}/unenrolled-students - Students not yet enrolled
- GET /courses/{id}/materials - List materials
- POST /courses/{id}/materials - Upload material
- GET /courses/{id}/hours - List hours with assignments
- POST /courses/{id}/hours - Create hour
- GET /courses/{id}/progress - Caller's progress
- POST /courses/{id}/hours/{hour_id}/complete - Mark hour complete

Dependencies: lms_backend.application.services, lms_backend.models
System role: Course management HTTP API
"""

import logging
from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile, status

from lms_backend.api.deps.dependencies import (
    get_course_service,
    get_current_user,
    get_curriculum_service,
    get_enrollment_service,
    get_material_service,
)
from lms_backend.api.routers.router_utils import handle_service_errors
from lms_backend.application.services import (
    CourseService,
    CurriculumService,
    EnrollmentService,
    MaterialService,
)
from lms_backend.boundary.db.models.user_model import UserModel
from lms_backend.models.course import (
    CourseDetailResponse,
    CourseResponse,
    CreateCourseRequest,
    EnrolledCourseResponse,
    UpdateCourseRequest,
)
from lms_backend.models.curriculum import (
    CreateHourRequest,
    HourResponse,
    HourWithAssignmentsResponse,
    ProgressMarkResponse,
    ProgressResponse,
)
from lms_backend.models.enrollment import CourseEnrollmentResponse
from lms_backend.models.material import MaterialResponse
from lms_backend.models.user import UserResponse

from .course_responses import (
    map_course_detail_to_response,
    map_course_to_response,
    map_courses_to_response,
    map_enrolled_courses_to_response,
    map_enrollments_to_response,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/courses", tags=["courses"])


@router.post("", response_model=CourseResponse, status_code=201)
@handle_service_errors
async def create_course(
    request: CreateCourseRequest,
    user: UserModel = Depends(get_current_user),
    course_service: CourseService = Depends(get_course_service),
) -> CourseResponse:
    """
    Create new course.

    Args:
        request: CreateCourseRequest with title, lecturers, access code and roll range
        user: Signed-in lecturer or admin
        course_service: Injected CourseService

    Returns:
        CourseResponse: Created course with lecturer_ids

    Raises:
        HTTPException(403): Caller is not staff
        HTTPException(409): Access code already in use
        HTTPException(422): Invalid roll range or lecturer
    """
    course = await course_service.create_course(
        user,
        title=request.title,
        description=request.description,
        lecturer_ids=request.lecturer_ids,
        access_code=request.access_code,
        roll_no_start=request.roll_no_start,
        roll_no_end=request.roll_no_end,
    )
    return map_course_to_response(course)


@router.get("", response_model=list[CourseResponse])
@handle_service_errors
async def list_courses(
    scope: Literal["all", "teaching"] = Query("all"),
    user: UserModel = Depends(get_current_user),
    course_service: CourseService = Depends(get_course_service),
) -> list[CourseResponse]:
    """
    List courses.

    ``scope=teaching`` lists the caller's own courses (staff only).
    """
    if scope == "teaching":
        courses = await course_service.list_courses_for_lecturer(user)
    else:
        courses = await course_service.list_courses(user)
    return map_courses_to_response(courses)


@router.get("/enrolled", response_model=list[EnrolledCourseResponse])
@handle_service_errors
async def list_enrolled_courses(
    user: UserModel = Depends(get_current_user),
    course_service: CourseService = Depends(get_course_service),
) -> list[EnrolledCourseResponse]:
    """Courses the calling student is enrolled in."""
    courses = await course_service.list_enrolled_courses(user)
    return map_enrolled_courses_to_response(courses)


@router.get("/lookup", response_model=CourseResponse)
@handle_service_errors
async def lookup_course(
    access_code: str = Query(..., min_length=1, max_length=20),
    user: UserModel = Depends(get_current_user),
    course_service: CourseService = Depends(get_course_service),
) -> CourseResponse:
    """Preview the course behind an access code before enrolling."""
    course = await course_service.get_course_by_access_code(user, access_code)
    return map_course_to_response(course)


@router.get("/{course_id}", response_model=CourseDetailResponse)
@handle_service_errors
async def get_course(
    course_id: UUID,
    user: UserModel = Depends(get_current_user),
    course_service: CourseService = Depends(get_course_service),
) -> CourseDetailResponse:
    """
    Get course by ID with lecturer IDs and enrollment count.

    Raises:
        HTTPException(404): Course not found
    """
    course = await course_service.get_course_details(user, course_id)
    return map_course_detail_to_response(course)


@router.patch("/{course_id}", response_model=CourseResponse)
@handle_service_errors
async def update_course(
    course_id: UUID,
    request: UpdateCourseRequest,
    user: UserModel = Depends(get_current_user),
    course_service: CourseService = Depends(get_course_service),
) -> CourseResponse:
    """
    Update course fields present in the body.

    Raises:
        HTTPException(403): Caller does not own the course, or changes lecturers without admin
        HTTPException(404): Course not found
        HTTPException(422): Invalid roll range
    """
    changes = request.model_dump(exclude_unset=True)
    course = await course_service.update_course(user, course_id, **changes)
    return map_course_to_response(course)


@router.delete("/{course_id}", status_code=204)
@handle_service_errors
async def delete_course(
    course_id: UUID,
    user: UserModel = Depends(get_current_user),
    course_service: CourseService = Depends(get_course_service),
) -> Response:
    """
    Delete course with its enrollments, materials and curriculum.

    Raises:
        HTTPException(403): Caller is not the primary lecturer or an admin
        HTTPException(404): Course not found
    """
    await course_service.delete_course(user, course_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{course_id}/enrollments", response_model=list[CourseEnrollmentResponse])
@handle_service_errors
async def list_course_enrollments(
    course_id: UUID,
    user: UserModel = Depends(get_current_user),
    enrollment_service: EnrollmentService = Depends(get_enrollment_service),
) -> list[CourseEnrollmentResponse]:
    """Enrollments of a course (owner or admin)."""
    enrollments = await enrollment_service.list_course_enrollments(user, course_id)
    return map_enrollments_to_response(enrollments)


@router.get("/{course_id}/unenrolled-students", response_model=list[UserResponse])
@handle_service_errors
async def list_unenrolled_students(
    course_id: UUID,
    user: UserModel = Depends(get_current_user),
    enrollment_service: EnrollmentService = Depends(get_enrollment_service),
) -> list[UserResponse]:
    """Students not enrolled in a course (admin only)."""
    students = await enrollment_service.list_unenrolled_students(user, course_id)
    return [UserResponse.model_validate(s) for s in students]


@router.get("/{course_id}/materials", response_model=list[MaterialResponse])
@handle_service_errors
async def list_materials(
    course_id: UUID,
    user: UserModel = Depends(get_current_user),
    material_service: MaterialService = Depends(get_material_service),
) -> list[MaterialResponse]:
    """Materials of a course (enrolled, owner or admin)."""
    materials = await material_service.list_materials(user, course_id)
    return [MaterialResponse.model_validate(m) for m in materials]


@router.post("/{course_id}/materials", response_model=MaterialResponse, status_code=201)
@handle_service_errors
async def upload_material(
    course_id: UUID,
    file: UploadFile = File(...),
    title: str = Form(...),
    description: str | None = Form(None),
    user: UserModel = Depends(get_current_user),
    material_service: MaterialService = Depends(get_material_service),
) -> MaterialResponse:
    """
    Upload a lecture note file.

    Raises:
        HTTPException(403): Caller may not manage the course
        HTTPException(422): Disallowed type or size
        HTTPException(502): Storage failure
    """
    data = await file.read()
    material = await material_service.upload(
        user,
        course_id,
        filename=file.filename or "",
        content_type=file.content_type,
        data=data,
        title=title,
        description=description,
    )
    return MaterialResponse.model_validate(material)


@router.get("/{course_id}/hours", response_model=list[HourWithAssignmentsResponse])
@handle_service_errors
async def list_hours(
    course_id: UUID,
    user: UserModel = Depends(get_current_user),
    curriculum_service: CurriculumService = Depends(get_curriculum_service),
) -> list[HourWithAssignmentsResponse]:
    """Hours in ascending order with their assignments."""
    hours = await curriculum_service.list_hours(user, course_id)
    return [HourWithAssignmentsResponse.model_validate(h) for h in hours]


@router.post("/{course_id}/hours", response_model=HourResponse, status_code=201)
@handle_service_errors
async def create_hour(
    course_id: UUID,
    request: CreateHourRequest,
    user: UserModel = Depends(get_current_user),
    curriculum_service: CurriculumService = Depends(get_curriculum_service),
) -> HourResponse:
    """Add an hour to a course (owner or admin)."""
    hour = await curriculum_service.create_hour(
        user,
        course_id,
        title=request.title,
        content=request.content,
        order_index=request.order_index,
    )
    return HourResponse.model_validate(hour)


@router.get("/{course_id}/progress", response_model=ProgressResponse)
@handle_service_errors
async def get_progress(
    course_id: UUID,
    user: UserModel = Depends(get_current_user),
    curriculum_service: CurriculumService = Depends(get_curriculum_service),
) -> ProgressResponse:
    """Caller's completed hours in a course."""
    progress = await curriculum_service.get_progress(user, course_id)
    return ProgressResponse(**progress)


@router.post(
    "/{course_id}/hours/{hour_id}/complete",
    response_model=ProgressMarkResponse,
)
@handle_service_errors
async def mark_hour_complete(
    course_id: UUID,
    hour_id: UUID,
    user: UserModel = Depends(get_current_user),
    curriculum_service: CurriculumService = Depends(get_curriculum_service),
) -> ProgressMarkResponse:
    """Mark an hour complete for the caller. Repeat calls are no-ops."""
    mark = await curriculum_service.mark_hour_complete(user, course_id, hour_id)
    return ProgressMarkResponse.model_validate(mark)
