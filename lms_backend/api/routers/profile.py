"""
Student profile API endpoints.

Routes:
- GET /profile - Caller's profile
- PUT /profile - Create or update the caller's profile (onboarding)

Dependencies: lms_backend.application.services, lms_backend.models
System role: Onboarding HTTP API
"""

from fastapi import APIRouter, Depends

from lms_backend.api.deps.dependencies import get_current_user, get_profile_service
from lms_backend.api.routers.router_utils import handle_service_errors
from lms_backend.application.services import ProfileService
from lms_backend.boundary.db.models.user_model import UserModel
from lms_backend.core.exceptions import NotFoundError
from lms_backend.models.profile import ProfileResponse, UpsertProfileRequest

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("", response_model=ProfileResponse)
@handle_service_errors
async def get_profile(
    user: UserModel = Depends(get_current_user),
    profile_service: ProfileService = Depends(get_profile_service),
) -> ProfileResponse:
    """
    Get the caller's student profile.

    Raises:
        HTTPException(404): Onboarding not started
    """
    profile = await profile_service.get_profile(user)
    if profile is None:
        raise NotFoundError("student_profile", user.id)
    return ProfileResponse.model_validate(profile)


@router.put("", response_model=ProfileResponse)
@handle_service_errors
async def upsert_profile(
    request: UpsertProfileRequest,
    user: UserModel = Depends(get_current_user),
    profile_service: ProfileService = Depends(get_profile_service),
) -> ProfileResponse:
    """
    Complete onboarding or edit the caller's profile.

    Raises:
        HTTPException(403): Caller is not a student
        HTTPException(409): Roll number held by another student
    """
    profile = await profile_service.upsert_profile(
        user,
        roll_no=request.roll_no,
        school=request.school,
        branch=request.branch,
        section=request.section,
    )
    return ProfileResponse.model_validate(profile)
