"""
Course domain models and schemas.

Request/response schemas for course operations.

Dependencies: pydantic
System role: Course API contracts
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class CreateCourseRequest(BaseModel):
    """Request schema for creating a new course."""

    title: str = Field(..., min_length=1, max_length=200, description="Course title")
    description: str | None = Field(None, max_length=5000, description="Course description")
    lecturer_ids: list[str] = Field(default_factory=list, description="Lecturers to assign")
    access_code: str | None = Field(None, description="Optional access code, generated when omitted")
    roll_no_start: int | None = Field(None, description="Lowest roll number allowed to enroll")
    roll_no_end: int | None = Field(None, description="Highest roll number allowed to enroll")


class UpdateCourseRequest(BaseModel):
    """
    Request schema for updating a course.

    Only fields present in the request body are applied. An explicit null
    clears description and roll-number bounds.
    """

    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    lecturer_ids: list[str] | None = Field(None, description="Desired lecturer set (admin only)")
    roll_no_start: int | None = None
    roll_no_end: int | None = None


class CourseResponse(BaseModel):
    """Response schema for course operations."""

    id: uuid.UUID
    title: str
    description: str | None
    access_code: str | None = Field(None, description="Present only for course staff")
    lecturer_id: str | None
    roll_no_start: int | None
    roll_no_end: int | None
    created_at: datetime
    updated_at: datetime
    lecturer_ids: list[str] | None = None


class CourseDetailResponse(CourseResponse):
    """Response schema for course with enrollment count."""

    enrollment_count: int


class EnrolledCourseResponse(CourseResponse):
    """Course as seen by an enrolled student."""

    enrollment_id: uuid.UUID
    enrolled_at: datetime


class AddLecturerRequest(BaseModel):
    """Request schema for assigning a lecturer to a course."""

    lecturer_id: str = Field(..., min_length=1)
