"""
Admin API endpoints.

Routes:
- GET /admin/users - List users, optionally by role
- PATCH /admin/users/{id}/role - Change a user's role
- POST /admin/sync-user - Upsert a local user from the identity provider
- GET /admin/lecturers - Users eligible for lecturer assignment
- GET /admin/courses/{id}/lecturers - Lecturers of a course
- POST /admin/courses/{id}/lecturers - Assign a lecturer
- DELETE /admin/courses/{id}/lecturers/{lecturer_id} - Unassign a lecturer
- GET /admin/audit-logs - Paginated audit trail
- GET /admin/audit-logs/users/{id} - Audit entries for one user
- GET /admin/analytics - Platform totals
- GET /admin/analytics/courses/{id} - Course enrollment breakdown
- GET /admin/student-profiles - All student profiles

Every route requires the admin role; the services enforce it.

Dependencies: lms_backend.application.services, lms_backend.models
System role: Administration HTTP API
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from lms_backend.api.deps.dependencies import (
    get_analytics_service,
    get_audit_service,
    get_course_service,
    get_current_user,
    get_profile_service,
    get_user_admin_service,
)
from lms_backend.api.routers.router_utils import handle_service_errors
from lms_backend.application.services import (
    AnalyticsService,
    AuditService,
    CourseService,
    ProfileService,
    UserAdminService,
)
from lms_backend.boundary.db.models.user_model import UserModel, UserRole
from lms_backend.models.admin import (
    AuditLogPage,
    AuditLogResponse,
    CourseAnalyticsResponse,
    GlobalAnalyticsResponse,
)
from lms_backend.models.course import AddLecturerRequest
from lms_backend.models.profile import ProfileWithUserResponse
from lms_backend.models.user import SyncUserRequest, UpdateUserRoleRequest, UserResponse

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/users", response_model=list[UserResponse])
@handle_service_errors
async def list_users(
    role: UserRole | None = Query(None),
    user: UserModel = Depends(get_current_user),
    user_admin_service: UserAdminService = Depends(get_user_admin_service),
) -> list[UserResponse]:
    users = await user_admin_service.list_users(user, role=role)
    return [UserResponse.model_validate(u) for u in users]


@router.patch("/users/{user_id}/role", response_model=UserResponse)
@handle_service_errors
async def update_user_role(
    user_id: str,
    request: UpdateUserRoleRequest,
    user: UserModel = Depends(get_current_user),
    user_admin_service: UserAdminService = Depends(get_user_admin_service),
) -> UserResponse:
    updated = await user_admin_service.update_user_role(user, user_id, request.role)
    return UserResponse.model_validate(updated)


@router.post("/sync-user", response_model=UserResponse)
@handle_service_errors
async def sync_user(
    request: SyncUserRequest,
    user: UserModel = Depends(get_current_user),
    user_admin_service: UserAdminService = Depends(get_user_admin_service),
) -> UserResponse:
    """
    Create or update a local user from the identity provider.

    Raises:
        HTTPException(404): No provider user with that email
        HTTPException(502): Identity provider failure
    """
    synced = await user_admin_service.sync_user(user, request.email, request.role)
    return UserResponse.model_validate(synced)


@router.get("/lecturers", response_model=list[UserResponse])
@handle_service_errors
async def list_lecturers(
    user: UserModel = Depends(get_current_user),
    course_service: CourseService = Depends(get_course_service),
) -> list[UserResponse]:
    lecturers = await course_service.list_lecturers(user)
    return [UserResponse.model_validate(u) for u in lecturers]


@router.get("/courses/{course_id}/lecturers", response_model=list[UserResponse])
@handle_service_errors
async def get_course_lecturers(
    course_id: UUID,
    user: UserModel = Depends(get_current_user),
    course_service: CourseService = Depends(get_course_service),
) -> list[UserResponse]:
    lecturers = await course_service.get_course_lecturers(user, course_id)
    return [UserResponse.model_validate(u) for u in lecturers]


@router.post("/courses/{course_id}/lecturers", status_code=204)
@handle_service_errors
async def add_course_lecturer(
    course_id: UUID,
    request: AddLecturerRequest,
    user: UserModel = Depends(get_current_user),
    course_service: CourseService = Depends(get_course_service),
) -> Response:
    """
    Assign a lecturer to a course.

    Raises:
        HTTPException(409): Lecturer already assigned
        HTTPException(422): Target user is not a lecturer or admin
    """
    await course_service.add_lecturer(user, course_id, request.lecturer_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/courses/{course_id}/lecturers/{lecturer_id}", status_code=204)
@handle_service_errors
async def remove_course_lecturer(
    course_id: UUID,
    lecturer_id: str,
    user: UserModel = Depends(get_current_user),
    course_service: CourseService = Depends(get_course_service),
) -> Response:
    await course_service.remove_lecturer(user, course_id, lecturer_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/audit-logs", response_model=AuditLogPage)
@handle_service_errors
async def list_audit_logs(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    action: str | None = Query(None, max_length=100),
    user: UserModel = Depends(get_current_user),
    audit_service: AuditService = Depends(get_audit_service),
) -> AuditLogPage:
    """
    Page through the audit trail, newest first.

    With ``action`` set, returns the most recent ``limit`` entries for that action.
    """
    if action is not None:
        items = await audit_service.list_audit_logs_by_action(user, action, limit=limit)
        return AuditLogPage(
            items=[AuditLogResponse.model_validate(i) for i in items],
            total=len(items),
            limit=limit,
            offset=0,
        )
    page = await audit_service.list_audit_logs(user, limit=limit, offset=offset)
    return AuditLogPage(
        items=[AuditLogResponse.model_validate(i) for i in page["items"]],
        total=page["total"],
        limit=limit,
        offset=offset,
    )


@router.get("/audit-logs/users/{user_id}", response_model=list[AuditLogResponse])
@handle_service_errors
async def list_user_audit_logs(
    user_id: str,
    limit: int = Query(50, ge=1, le=500),
    user: UserModel = Depends(get_current_user),
    audit_service: AuditService = Depends(get_audit_service),
) -> list[AuditLogResponse]:
    items = await audit_service.list_user_audit_logs(user, user_id, limit=limit)
    return [AuditLogResponse.model_validate(i) for i in items]


@router.get("/analytics", response_model=GlobalAnalyticsResponse)
@handle_service_errors
async def global_analytics(
    user: UserModel = Depends(get_current_user),
    analytics_service: AnalyticsService = Depends(get_analytics_service),
) -> GlobalAnalyticsResponse:
    return GlobalAnalyticsResponse(**await analytics_service.global_analytics(user))


@router.get("/analytics/courses/{course_id}", response_model=CourseAnalyticsResponse)
@handle_service_errors
async def course_analytics(
    course_id: UUID,
    user: UserModel = Depends(get_current_user),
    analytics_service: AnalyticsService = Depends(get_analytics_service),
) -> CourseAnalyticsResponse:
    return CourseAnalyticsResponse(**await analytics_service.course_analytics(user, course_id))


@router.get("/student-profiles", response_model=list[ProfileWithUserResponse])
@handle_service_errors
async def list_student_profiles(
    user: UserModel = Depends(get_current_user),
    profile_service: ProfileService = Depends(get_profile_service),
) -> list[ProfileWithUserResponse]:
    profiles = await profile_service.list_profiles(user)
    return [ProfileWithUserResponse(**p) for p in profiles]
