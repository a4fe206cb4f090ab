"""
Material (lecture note) schemas.

Dependencies: pydantic
System role: Material API contracts
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class MaterialResponse(BaseModel):
    """Lecture note metadata."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    course_id: UUID
    title: str
    description: str | None
    file_path: str
    file_size: int
    content_type: str | None
    uploaded_by: str | None
    created_at: datetime


class UpdateMaterialRequest(BaseModel):
    """Request schema for editing material metadata."""

    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)


class DownloadGrantResponse(BaseModel):
    """Time-limited download URL."""

    url: str
    expires_at: datetime
    expires_in: int = Field(description="Seconds until the URL expires")
    title: str
    file_name: str
