"""
User and identity schemas.

Dependencies: pydantic
System role: User API contracts
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from lms_backend.boundary.db.models.user_model import UserRole


class UserResponse(BaseModel):
    """Local user record."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: str
    role: UserRole
    created_at: datetime


class CurrentUserResponse(UserResponse):
    """Signed-in user with onboarding state."""

    onboarding_completed: bool = False


class UpdateUserRoleRequest(BaseModel):
    """Request schema for an admin role change."""

    role: UserRole


class SyncUserRequest(BaseModel):
    """Request schema for the admin identity sync tool."""

    email: str = Field(..., min_length=3, max_length=320)
    role: UserRole = UserRole.STUDENT
