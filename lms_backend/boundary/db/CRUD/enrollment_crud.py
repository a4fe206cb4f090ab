"""
Enrollment CRUD operations.

Dependencies: sqlalchemy, lms_backend.boundary.db.models
System role: Enrollment persistence operations
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lms_backend.boundary.db.CRUD.base_crud import BaseCRUD
from lms_backend.boundary.db.models.course_model import EnrollmentModel
from lms_backend.boundary.db.models.user_model import (
    StudentProfileModel,
    UserModel,
    UserRole,
)


class EnrollmentCRUD(BaseCRUD[EnrollmentModel]):
    """CRUD operations for EnrollmentModel."""

    def __init__(self) -> None:
        """Initialize EnrollmentCRUD with EnrollmentModel."""
        super().__init__(EnrollmentModel)

    async def get_by_student_course(
        self,
        session: AsyncSession,
        student_id: str,
        course_id: UUID,
    ) -> EnrollmentModel | None:
        """
        Retrieve the enrollment for a (student, course) pair.

        Args:
            session: Async database session
            student_id: Student user ID
            course_id: Course UUID

        Returns:
            EnrollmentModel if the student is enrolled, None otherwise
        """
        stmt = select(EnrollmentModel).where(
            EnrollmentModel.student_id == student_id,
            EnrollmentModel.course_id == course_id,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_course(
        self,
        session: AsyncSession,
        course_id: UUID,
    ) -> Sequence[tuple[EnrollmentModel, UserModel, StudentProfileModel | None]]:
        """
        Enrollments of a course with each student and their profile.

        Args:
            session: Async database session
            course_id: Course UUID

        Returns:
            Sequence of (enrollment, student, profile or None), oldest first
        """
        stmt = (
            select(EnrollmentModel, UserModel, StudentProfileModel)
            .join(UserModel, UserModel.id == EnrollmentModel.student_id)
            .outerjoin(StudentProfileModel, StudentProfileModel.user_id == UserModel.id)
            .where(EnrollmentModel.course_id == course_id)
            .order_by(EnrollmentModel.enrolled_at)
        )
        result = await session.execute(stmt)
        return [tuple(row) for row in result.all()]

    async def list_unenrolled_students(
        self,
        session: AsyncSession,
        course_id: UUID,
    ) -> Sequence[UserModel]:
        """
        Student-role users without an enrollment in the course.

        Args:
            session: Async database session
            course_id: Course UUID

        Returns:
            Sequence of UserModels ordered by name
        """
        enrolled = select(EnrollmentModel.student_id).where(
            EnrollmentModel.course_id == course_id
        )
        stmt = (
            select(UserModel)
            .where(UserModel.role == UserRole.STUDENT, UserModel.id.not_in(enrolled))
            .order_by(UserModel.name)
        )
        result = await session.execute(stmt)
        return result.scalars().all()


enrollment_crud = EnrollmentCRUD()
