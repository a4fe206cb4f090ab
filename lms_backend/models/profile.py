"""
Student profile schemas.

Dependencies: pydantic
System role: Onboarding API contracts
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class UpsertProfileRequest(BaseModel):
    """Request schema for onboarding / profile edit."""

    roll_no: str = Field(..., min_length=1, max_length=50)
    school: str | None = Field(None, max_length=200)
    branch: str | None = Field(None, max_length=100)
    section: str | None = Field(None, max_length=50)


class ProfileResponse(BaseModel):
    """Stored student profile."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: str
    roll_no: str | None
    school: str | None
    branch: str | None
    section: str | None
    onboarding_completed_at: datetime | None


class ProfileWithUserResponse(ProfileResponse):
    """Profile joined with the owning user (admin listing)."""

    name: str
    email: str
