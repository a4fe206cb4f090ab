"""
Database models package.

Exports:
  - UserModel, UserRole, StudentProfileModel: Identity and profile
  - CourseModel, CourseLecturerModel, EnrollmentModel: Courses and membership
  - CourseHourModel, AssignmentModel, AssignmentSubmissionModel,
    CourseProgressModel: Curriculum
  - LectureNoteModel: Course material metadata
  - AuditLogModel: Append-only audit trail

Dependencies: sqlalchemy, lms_backend.boundary.db.base
System role: Database model definitions for domain entities
"""

from lms_backend.boundary.db.models.user_model import (
    StudentProfileModel,
    UserModel,
    UserRole,
)
from lms_backend.boundary.db.models.course_model import (
    CourseLecturerModel,
    CourseModel,
    EnrollmentModel,
)
from lms_backend.boundary.db.models.curriculum_model import (
    AssignmentModel,
    AssignmentSubmissionModel,
    CourseHourModel,
    CourseProgressModel,
)
from lms_backend.boundary.db.models.material_model import LectureNoteModel
from lms_backend.boundary.db.models.audit_log_model import AuditLogModel

__all__ = [
    "UserModel",
    "UserRole",
    "StudentProfileModel",
    "CourseModel",
    "CourseLecturerModel",
    "EnrollmentModel",
    "CourseHourModel",
    "AssignmentModel",
    "AssignmentSubmissionModel",
    "CourseProgressModel",
    "LectureNoteModel",
    "AuditLogModel",
]
