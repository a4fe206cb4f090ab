"""
Authentication API endpoints.

Routes:
- GET /auth/me - Current user with onboarding state
- POST /auth/signout - Revoke the caller's session at the identity provider

Dependencies: lms_backend.application.services, lms_backend.models
System role: Authentication HTTP API
"""

from fastapi import APIRouter, Depends

from lms_backend.api.deps.dependencies import (
    get_access_token,
    get_current_user,
    get_identity_service,
    get_profile_service,
)
from lms_backend.api.routers.router_utils import handle_service_errors
from lms_backend.application.services import IdentityService, ProfileService
from lms_backend.boundary.db.models.user_model import UserModel
from lms_backend.models.common import MessageResponse
from lms_backend.models.user import CurrentUserResponse, UserResponse

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/me", response_model=CurrentUserResponse)
@handle_service_errors
async def get_me(
    user: UserModel = Depends(get_current_user),
    profile_service: ProfileService = Depends(get_profile_service),
) -> CurrentUserResponse:
    """Signed-in user, provisioned locally on first call."""
    completed = await profile_service.check_onboarding_status(user.id)
    return CurrentUserResponse(
        **UserResponse.model_validate(user).model_dump(),
        onboarding_completed=completed,
    )


@router.post("/signout", response_model=MessageResponse)
@handle_service_errors
async def sign_out(
    user: UserModel = Depends(get_current_user),
    access_token: str | None = Depends(get_access_token),
    identity_service: IdentityService = Depends(get_identity_service),
) -> MessageResponse:
    """End the caller's session."""
    await identity_service.sign_out(user, access_token)
    return MessageResponse(message="Signed out")
