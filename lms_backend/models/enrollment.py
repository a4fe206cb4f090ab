"""
Enrollment schemas.

Dependencies: pydantic
System role: Enrollment API contracts
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator


class CreateEnrollmentRequest(BaseModel):
    """
    Request schema for enrollment.

    Students send ``access_code``; admins send ``student_id`` and ``course_id``.
    """

    access_code: str | None = Field(None, max_length=20)
    student_id: str | None = None
    course_id: UUID | None = None

    @model_validator(mode="after")
    def check_mode(self) -> "CreateEnrollmentRequest":
        if self.access_code is None and (self.student_id is None or self.course_id is None):
            raise ValueError("Provide access_code, or student_id and course_id")
        return self


class EnrollmentResponse(BaseModel):
    """Stored enrollment."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    student_id: str
    course_id: UUID
    enrolled_at: datetime


class EnrolledStudent(BaseModel):
    id: str
    name: str
    email: str
    roll_no: str | None = None


class CourseEnrollmentResponse(BaseModel):
    """Enrollment with student details, as listed for course staff."""

    id: UUID
    course_id: UUID
    enrolled_at: datetime
    student: EnrolledStudent
