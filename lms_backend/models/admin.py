"""
Admin reporting schemas: audit log and analytics.

Dependencies: pydantic
System role: Admin API contracts
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class AuditLogResponse(BaseModel):
    """One audit log entry."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: UUID
    user_id: str | None
    action: str
    resource_type: str | None
    resource_id: str | None
    metadata: dict[str, Any] | None = Field(None, validation_alias="event_metadata")
    created_at: datetime


class AuditLogPage(BaseModel):
    items: list[AuditLogResponse]
    total: int
    limit: int
    offset: int


class GlobalAnalyticsResponse(BaseModel):
    total_students: int
    total_courses: int
    total_enrollments: int
    total_materials: int


class CourseAnalyticsStudent(BaseModel):
    id: str
    name: str
    email: str
    roll_no: str | None = None
    school: str | None = None
    branch: str | None = None
    section: str | None = None
    enrolled_at: datetime


class CourseAnalyticsResponse(BaseModel):
    course_id: UUID
    course_title: str
    enrollment_count: int
    material_count: int
    students: list[CourseAnalyticsStudent]
