"""
Database boundary layer: ORM models, CRUD operations, and connection management.

Exports:
  - Base, UUIDMixin, TimestampMixin: Model building blocks
  - get_engine(): Sync engine for schema scripts
  - get_async_engine(), get_async_session_factory(), get_async_db(): Async connection management
  - Domain models and the UserRole enum
  - CRUD singletons (course_crud, enrollment_crud, ...)

Dependencies: sqlalchemy, lms_backend.configs
System role: Database adapter providing persistent storage for users,
courses, enrollments, curriculum, materials and the audit trail.
"""

from lms_backend.boundary.db.base import Base, TimestampMixin, UUIDMixin
from lms_backend.boundary.db.connection import (
    get_async_db,
    get_async_engine,
    get_async_session_factory,
    get_engine,
)
from lms_backend.boundary.db.models import (
    AssignmentModel,
    AssignmentSubmissionModel,
    AuditLogModel,
    CourseHourModel,
    CourseLecturerModel,
    CourseModel,
    CourseProgressModel,
    EnrollmentModel,
    LectureNoteModel,
    StudentProfileModel,
    UserModel,
    UserRole,
)

__all__ = [
    # Base classes
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    # Connection
    "get_engine",
    "get_async_db",
    "get_async_engine",
    "get_async_session_factory",
    # Models
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
