"""
Curriculum CRUD operations.

Course hours, assignments, submissions and progress marks.

Dependencies: sqlalchemy, lms_backend.boundary.db.models
System role: Curriculum persistence operations
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from lms_backend.boundary.db.CRUD.base_crud import BaseCRUD
from lms_backend.boundary.db.models.curriculum_model import (
    AssignmentModel,
    AssignmentSubmissionModel,
    CourseHourModel,
    CourseProgressModel,
)
from lms_backend.boundary.db.models.user_model import UserModel


class CourseHourCRUD(BaseCRUD[CourseHourModel]):
    """CRUD operations for CourseHourModel."""

    def __init__(self) -> None:
        """Initialize CourseHourCRUD with CourseHourModel."""
        super().__init__(CourseHourModel)

    async def list_for_course(
        self,
        session: AsyncSession,
        course_id: UUID,
    ) -> Sequence[CourseHourModel]:
        """
        Hours of a course in ascending order_index with assignments loaded.

        Args:
            session: Async database session
            course_id: Course UUID

        Returns:
            Sequence of CourseHourModels with assignments eagerly loaded
        """
        stmt = (
            select(CourseHourModel)
            .where(CourseHourModel.course_id == course_id)
            .options(selectinload(CourseHourModel.assignments))
            .order_by(CourseHourModel.order_index, CourseHourModel.created_at)
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def next_order_index(self, session: AsyncSession, course_id: UUID) -> int:
        """Order index one past the current maximum (0 for an empty course)."""
        stmt = select(func.max(CourseHourModel.order_index)).where(
            CourseHourModel.course_id == course_id
        )
        result = await session.execute(stmt)
        current = result.scalar_one_or_none()
        return 0 if current is None else current + 1


class AssignmentCRUD(BaseCRUD[AssignmentModel]):
    """CRUD operations for AssignmentModel."""

    def __init__(self) -> None:
        """Initialize AssignmentCRUD with AssignmentModel."""
        super().__init__(AssignmentModel)

    async def get_with_hour(
        self,
        session: AsyncSession,
        id: UUID,
    ) -> AssignmentModel | None:
        """
        Retrieve an assignment with its course hour loaded.

        Args:
            session: Async database session
            id: Assignment UUID

        Returns:
            AssignmentModel with ``hour`` loaded, None if not found
        """
        stmt = (
            select(AssignmentModel)
            .where(AssignmentModel.id == id)
            .options(selectinload(AssignmentModel.hour))
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()


class SubmissionCRUD(BaseCRUD[AssignmentSubmissionModel]):
    """CRUD operations for AssignmentSubmissionModel."""

    def __init__(self) -> None:
        """Initialize SubmissionCRUD with AssignmentSubmissionModel."""
        super().__init__(AssignmentSubmissionModel)

    async def get_by_assignment_student(
        self,
        session: AsyncSession,
        assignment_id: UUID,
        student_id: str,
    ) -> AssignmentSubmissionModel | None:
        stmt = select(AssignmentSubmissionModel).where(
            AssignmentSubmissionModel.assignment_id == assignment_id,
            AssignmentSubmissionModel.student_id == student_id,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_assignment(
        self,
        session: AsyncSession,
        assignment_id: UUID,
    ) -> Sequence[tuple[AssignmentSubmissionModel, UserModel]]:
        """
        Submissions for an assignment with the submitting students.

        Args:
            session: Async database session
            assignment_id: Assignment UUID

        Returns:
            Sequence of (submission, student), latest submission first
        """
        stmt = (
            select(AssignmentSubmissionModel, UserModel)
            .join(UserModel, UserModel.id == AssignmentSubmissionModel.student_id)
            .where(AssignmentSubmissionModel.assignment_id == assignment_id)
            .order_by(AssignmentSubmissionModel.submitted_at.desc())
        )
        result = await session.execute(stmt)
        return [tuple(row) for row in result.all()]


class ProgressCRUD(BaseCRUD[CourseProgressModel]):
    """CRUD operations for CourseProgressModel."""

    def __init__(self) -> None:
        """Initialize ProgressCRUD with CourseProgressModel."""
        super().__init__(CourseProgressModel)

    async def get_mark(
        self,
        session: AsyncSession,
        student_id: str,
        course_id: UUID,
        hour_id: UUID,
    ) -> CourseProgressModel | None:
        stmt = select(CourseProgressModel).where(
            CourseProgressModel.student_id == student_id,
            CourseProgressModel.course_id == course_id,
            CourseProgressModel.hour_id == hour_id,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_student_course(
        self,
        session: AsyncSession,
        student_id: str,
        course_id: UUID,
    ) -> Sequence[CourseProgressModel]:
        """Completion marks of a student in a course, oldest first."""
        stmt = (
            select(CourseProgressModel)
            .where(
                CourseProgressModel.student_id == student_id,
                CourseProgressModel.course_id == course_id,
            )
            .order_by(CourseProgressModel.completed_at)
        )
        result = await session.execute(stmt)
        return result.scalars().all()


course_hour_crud = CourseHourCRUD()
assignment_crud = AssignmentCRUD()
submission_crud = SubmissionCRUD()
progress_crud = ProgressCRUD()
