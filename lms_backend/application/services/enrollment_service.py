"""
Enrollment manager.

Self-service enrollment by access code (with optional roll-number range
gating) and admin-directed enrollment management. The unique
(student_id, course_id) constraint is the final arbiter under concurrent
requests; a violation is reported as "already enrolled".

Dependencies: sqlalchemy, lms_backend.boundary.db.CRUD, lms_backend.core
System role: Enrollment use case orchestration
"""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lms_backend.application.services.audit_service import AuditService
from lms_backend.boundary.db.CRUD.course_crud import course_crud
from lms_backend.boundary.db.CRUD.enrollment_crud import enrollment_crud
from lms_backend.boundary.db.CRUD.user_crud import student_profile_crud, user_crud
from lms_backend.boundary.db.models.course_model import CourseModel, EnrollmentModel
from lms_backend.boundary.db.models.user_model import UserModel, UserRole
from lms_backend.core.access_control import AccessControlGuard, CourseOwnership, RoleIn
from lms_backend.core.exceptions import (
    AlreadyEnrolledError,
    NotEligibleError,
    NotFoundError,
    ValidationError,
)
from lms_backend.observability.log_utils import log_with_context

logger = logging.getLogger(__name__)


def roll_range_active(course: CourseModel) -> bool:
    """A range is active when either bound is set."""
    return course.roll_no_start is not None or course.roll_no_end is not None


def check_roll_eligibility(course: CourseModel, roll_no: str | None) -> str | None:
    """
    Check a roll number against the course's range.

    Args:
        course: Target course
        roll_no: Student's roll number as stored on the profile

    Returns:
        None when eligible, otherwise a short reason
    """
    if not roll_range_active(course):
        return None
    if roll_no is None or not roll_no.strip():
        return "roll number required"
    try:
        value = int(roll_no.strip())
    except ValueError:
        return "roll number is not numeric"
    if course.roll_no_start is not None and value < course.roll_no_start:
        return "roll number outside the allowed range"
    if course.roll_no_end is not None and value > course.roll_no_end:
        return "roll number outside the allowed range"
    return None


class EnrollmentService:
    """Enrollment manager."""

    def __init__(self, db: AsyncSession, audit: AuditService) -> None:
        """
        Initialize enrollment service.

        Args:
            db: Async SQLAlchemy session
            audit: Audit logger
        """
        self.db = db
        self.audit = audit
        self.guard = AccessControlGuard(db)

    async def _insert_enrollment(self, student_id: str, course_id: UUID) -> EnrollmentModel:
        if await enrollment_crud.get_by_student_course(self.db, student_id, course_id):
            raise AlreadyEnrolledError(student_id, course_id)
        try:
            enrollment = await enrollment_crud.create(
                self.db, student_id=student_id, course_id=course_id
            )
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise AlreadyEnrolledError(student_id, course_id) from e
        return enrollment

    async def enroll_by_access_code(self, actor: UserModel | None, code: str) -> EnrollmentModel:
        """
        Enroll the signed-in student in the course behind an access code.

        Args:
            actor: Signed-in student
            code: Access code, any casing

        Returns:
            EnrollmentModel: The new enrollment

        Raises:
            ForbiddenError: If actor is not a student
            NotFoundError: If no course matches the code
            AlreadyEnrolledError: If the student is already enrolled
            NotEligibleError: If the roll number is missing or out of range
        """
        await self.guard.require(actor, RoleIn.of(UserRole.STUDENT))
        student_id = actor.id

        if not code or not code.strip():
            raise ValidationError("Access code is required", field="access_code")
        course = await course_crud.get_by_access_code(self.db, code)
        if course is None:
            raise NotFoundError("course", code.strip(), message="Invalid access code")
        course_id = course.id

        if await enrollment_crud.get_by_student_course(self.db, student_id, course_id):
            raise AlreadyEnrolledError(student_id, course_id)

        if roll_range_active(course):
            profile = await student_profile_crud.get_by_user_id(self.db, student_id)
            reason = check_roll_eligibility(course, profile.roll_no if profile else None)
            if reason is not None:
                log_with_context(
                    logger,
                    logging.INFO,
                    "Enrollment rejected by roll number range",
                    course_id=course_id,
                    student_id=student_id,
                    reason=reason,
                )
                raise NotEligibleError(str(course_id), reason)

        enrollment = await self._insert_enrollment(student_id, course_id)
        logger.info(
            "Student enrolled by access code",
            extra={"course_id": str(course_id), "student_id": student_id},
        )
        await self.audit.record(
            student_id,
            "enrollment.created",
            "enrollment",
            enrollment.id,
            {"course_id": course_id, "student_id": student_id, "method": "access_code"},
        )
        return enrollment

    async def admin_create_enrollment(
        self,
        actor: UserModel | None,
        student_id: str,
        course_id: UUID,
    ) -> EnrollmentModel:
        """
        Enroll a student directly (admin only). Roll-number gating does not apply.

        Raises:
            NotFoundError: If the student or course does not exist
            ValidationError: If the target user is not a student
            AlreadyEnrolledError: If the student is already enrolled
        """
        await self.guard.require(actor, RoleIn.of(UserRole.ADMIN))
        actor_id = actor.id

        student = await user_crud.get_by_id(self.db, student_id)
        if student is None:
            raise NotFoundError("user", student_id)
        if student.role != UserRole.STUDENT:
            raise ValidationError("Only students can be enrolled", field="student_id")
        if not await course_crud.exists(self.db, course_id):
            raise NotFoundError("course", course_id)

        enrollment = await self._insert_enrollment(student_id, course_id)
        await self.audit.record(
            actor_id,
            "enrollment.created",
            "enrollment",
            enrollment.id,
            {"course_id": course_id, "student_id": student_id, "method": "admin"},
        )
        return enrollment

    async def admin_remove_enrollment(self, actor: UserModel | None, enrollment_id: UUID) -> None:
        """
        Remove an enrollment (admin only).

        Raises:
            NotFoundError: If the enrollment does not exist
        """
        await self.guard.require(actor, RoleIn.of(UserRole.ADMIN))
        actor_id = actor.id

        enrollment = await enrollment_crud.get_by_id(self.db, enrollment_id)
        if enrollment is None:
            raise NotFoundError("enrollment", enrollment_id)
        metadata = {"student_id": enrollment.student_id, "course_id": enrollment.course_id}

        await enrollment_crud.delete_by_id(self.db, enrollment_id)
        await self.db.commit()

        await self.audit.record(actor_id, "enrollment.deleted", "enrollment", enrollment_id, metadata)

    async def list_unenrolled_students(self, actor: UserModel | None, course_id: UUID) -> list[UserModel]:
        """
        Students not enrolled in a course (admin only).

        Raises:
            NotFoundError: If the course does not exist
        """
        await self.guard.require(actor, RoleIn.of(UserRole.ADMIN))
        if not await course_crud.exists(self.db, course_id):
            raise NotFoundError("course", course_id)
        return list(await enrollment_crud.list_unenrolled_students(self.db, course_id))

    async def list_course_enrollments(
        self,
        actor: UserModel | None,
        course_id: UUID,
    ) -> list[dict[str, Any]]:
        """
        Enrollments of a course with student and profile data (owner or admin).

        Raises:
            NotFoundError: If the course does not exist
            ForbiddenError: If actor does not own the course
        """
        self.guard.require_authenticated(actor)
        course = await course_crud.get_by_id(self.db, course_id)
        if course is None:
            raise NotFoundError("course", course_id)
        await self.guard.require(actor, CourseOwnership(course))

        rows = await enrollment_crud.list_for_course(self.db, course_id)
        return [
            {
                "id": enrollment.id,
                "course_id": enrollment.course_id,
                "enrolled_at": enrollment.enrolled_at,
                "student": {
                    "id": student.id,
                    "name": student.name,
                    "email": student.email,
                    "roll_no": profile.roll_no if profile else None,
                },
            }
            for enrollment, student, profile in rows
        ]
