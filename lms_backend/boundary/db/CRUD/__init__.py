"""
CRUD operations for database models.

Exports base CRUD class and model-specific CRUD implementations
with pre-instantiated singletons for direct use.

Usage:
    from lms_backend.boundary.db.CRUD import course_crud, enrollment_crud

    # Use singleton instances
    course = await course_crud.get_by_access_code(db, "ABC12345")

    # Or instantiate classes directly for custom behavior
    from lms_backend.boundary.db.CRUD import CourseCRUD
    custom_crud = CourseCRUD()
"""

from lms_backend.boundary.db.CRUD.base_crud import BaseCRUD
from lms_backend.boundary.db.CRUD.user_crud import (
    StudentProfileCRUD,
    UserCRUD,
    student_profile_crud,
    user_crud,
)
from lms_backend.boundary.db.CRUD.course_crud import (
    CourseCRUD,
    CourseLecturerCRUD,
    course_crud,
    course_lecturer_crud,
)
from lms_backend.boundary.db.CRUD.enrollment_crud import EnrollmentCRUD, enrollment_crud
from lms_backend.boundary.db.CRUD.curriculum_crud import (
    AssignmentCRUD,
    CourseHourCRUD,
    ProgressCRUD,
    SubmissionCRUD,
    assignment_crud,
    course_hour_crud,
    progress_crud,
    submission_crud,
)
from lms_backend.boundary.db.CRUD.material_crud import LectureNoteCRUD, lecture_note_crud
from lms_backend.boundary.db.CRUD.audit_log_crud import AuditLogCRUD, audit_log_crud

__all__ = [
    "BaseCRUD",
    "UserCRUD",
    "user_crud",
    "StudentProfileCRUD",
    "student_profile_crud",
    "CourseCRUD",
    "course_crud",
    "CourseLecturerCRUD",
    "course_lecturer_crud",
    "EnrollmentCRUD",
    "enrollment_crud",
    "CourseHourCRUD",
    "course_hour_crud",
    "AssignmentCRUD",
    "assignment_crud",
    "SubmissionCRUD",
    "submission_crud",
    "ProgressCRUD",
    "progress_crud",
    "LectureNoteCRUD",
    "lecture_note_crud",
    "AuditLogCRUD",
    "audit_log_crud",
]
