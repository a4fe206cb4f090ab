"""
Curriculum, assignment and progress schemas.

Dependencies: pydantic
System role: Curriculum API contracts
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class CreateHourRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str | None = None
    order_index: int | None = Field(None, ge=0, description="Defaults to the next position")


class UpdateHourRequest(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=200)
    content: str | None = None
    order_index: int | None = Field(None, ge=0)


class CreateAssignmentRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    points: int = Field(100, ge=0)
    due_date: datetime | None = None


class GradeSubmissionRequest(BaseModel):
    grade: int
    feedback: str | None = Field(None, max_length=5000)


class AssignmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    hour_id: UUID
    title: str
    description: str | None
    points: int
    due_date: datetime | None
    created_at: datetime


class HourResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    course_id: UUID
    title: str
    content: str | None
    order_index: int
    created_at: datetime


class HourWithAssignmentsResponse(HourResponse):
    assignments: list[AssignmentResponse] = Field(default_factory=list)


class SubmissionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    assignment_id: UUID
    student_id: str
    file_path: str
    grade: int | None
    feedback: str | None
    submitted_at: datetime
    graded_at: datetime | None


class SubmissionWithStudentResponse(SubmissionResponse):
    student_name: str
    student_email: str


class ProgressMarkResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    student_id: str
    course_id: UUID
    hour_id: UUID
    completed_at: datetime


class ProgressResponse(BaseModel):
    course_id: UUID
    completed_hour_ids: list[UUID]
    completed_count: int
    total_hours: int
