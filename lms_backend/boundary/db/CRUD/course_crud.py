"""
Course CRUD operations.

Provides persistence for CourseModel and the course-lecturer relation,
including the dual-path access code lookup and lecturer-scoped queries.

Dependencies: sqlalchemy, lms_backend.boundary.db.models
System role: Course persistence operations
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from lms_backend.boundary.db.CRUD.base_crud import BaseCRUD
from lms_backend.boundary.db.models.course_model import (
    CourseLecturerModel,
    CourseModel,
    EnrollmentModel,
)


class CourseCRUD(BaseCRUD[CourseModel]):
    """
    CRUD operations for CourseModel.

    Extends BaseCRUD with access code lookup and lecturer/student
    scoped listings.
    """

    def __init__(self) -> None:
        """Initialize CourseCRUD with CourseModel."""
        super().__init__(CourseModel)

    async def get_by_access_code(
        self,
        session: AsyncSession,
        code: str,
    ) -> CourseModel | None:
        """
        Resolve a course by access code.

        Matches case-insensitively first, then falls back to the exact
        stored casing for rows written before codes were normalized.

        Args:
            session: Async database session
            code: Access code as typed by the user

        Returns:
            CourseModel if a course matches, None otherwise
        """
        code = code.strip()
        stmt = select(CourseModel).where(
            func.upper(CourseModel.access_code) == code.upper()
        )
        result = await session.execute(stmt)
        course = result.scalars().first()
        if course is not None:
            return course

        stmt = select(CourseModel).where(CourseModel.access_code == code)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def access_code_exists(self, session: AsyncSession, code: str) -> bool:
        """Case-insensitive existence check for an access code."""
        stmt = select(CourseModel.id).where(
            func.upper(CourseModel.access_code) == code.upper()
        )
        result = await session.execute(stmt)
        return result.first() is not None

    async def list_courses(self, session: AsyncSession) -> Sequence[CourseModel]:
        """All courses, newest first."""
        stmt = select(CourseModel).order_by(CourseModel.created_at.desc())
        result = await session.execute(stmt)
        return result.scalars().all()

    async def list_for_lecturer(
        self,
        session: AsyncSession,
        lecturer_id: str,
    ) -> Sequence[CourseModel]:
        """
        Courses taught by a lecturer.

        Includes courses linked through course_lecturers and courses that
        have no links but still name the lecturer in the legacy pointer.

        Args:
            session: Async database session
            lecturer_id: Lecturer user ID

        Returns:
            Sequence of CourseModels, newest first
        """
        assigned = select(CourseLecturerModel.course_id).where(
            CourseLecturerModel.lecturer_id == lecturer_id
        )
        has_links = (
            select(CourseLecturerModel.course_id)
            .where(CourseLecturerModel.course_id == CourseModel.id)
            .exists()
        )
        stmt = (
            select(CourseModel)
            .where(
                or_(
                    CourseModel.id.in_(assigned),
                    and_(CourseModel.lecturer_id == lecturer_id, ~has_links),
                )
            )
            .order_by(CourseModel.created_at.desc())
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def list_for_student(
        self,
        session: AsyncSession,
        student_id: str,
    ) -> Sequence[tuple[CourseModel, EnrollmentModel]]:
        """
        Courses a student is enrolled in, with the enrollment rows.

        Args:
            session: Async database session
            student_id: Student user ID

        Returns:
            Sequence of (course, enrollment), most recent enrollment first
        """
        stmt = (
            select(CourseModel, EnrollmentModel)
            .join(EnrollmentModel, EnrollmentModel.course_id == CourseModel.id)
            .where(EnrollmentModel.student_id == student_id)
            .order_by(EnrollmentModel.enrolled_at.desc())
        )
        result = await session.execute(stmt)
        return [tuple(row) for row in result.all()]


class CourseLecturerCRUD(BaseCRUD[CourseLecturerModel]):
    """
    CRUD operations for the course-lecturer relation.

    Rows are keyed by (course_id, lecturer_id), so the id-based BaseCRUD
    helpers are replaced by pair-based ones.
    """

    def __init__(self) -> None:
        """Initialize CourseLecturerCRUD with CourseLecturerModel."""
        super().__init__(CourseLecturerModel)

    async def list_links(
        self,
        session: AsyncSession,
        course_id: UUID,
    ) -> Sequence[CourseLecturerModel]:
        """
        Links for a course in assignment order.

        Args:
            session: Async database session
            course_id: Course UUID

        Returns:
            Sequence of links ordered by (created_at, lecturer_id)
        """
        stmt = (
            select(CourseLecturerModel)
            .where(CourseLecturerModel.course_id == course_id)
            .order_by(CourseLecturerModel.created_at, CourseLecturerModel.lecturer_id)
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def list_lecturer_ids(self, session: AsyncSession, course_id: UUID) -> list[str]:
        """Lecturer IDs assigned to a course, in assignment order."""
        return [link.lecturer_id for link in await self.list_links(session, course_id)]

    async def get_link(
        self,
        session: AsyncSession,
        course_id: UUID,
        lecturer_id: str,
    ) -> CourseLecturerModel | None:
        stmt = select(CourseLecturerModel).where(
            CourseLecturerModel.course_id == course_id,
            CourseLecturerModel.lecturer_id == lecturer_id,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def add_links(
        self,
        session: AsyncSession,
        course_id: UUID,
        lecturer_ids: Sequence[str],
    ) -> None:
        """
        Insert links for several lecturers in one flush.

        Args:
            session: Async database session
            course_id: Course UUID
            lecturer_ids: Lecturer IDs to link

        Raises:
            IntegrityError: If a link already exists or a user is missing
        """
        session.add_all(
            CourseLecturerModel(course_id=course_id, lecturer_id=lecturer_id)
            for lecturer_id in lecturer_ids
        )
        await session.flush()

    async def remove_links(
        self,
        session: AsyncSession,
        course_id: UUID,
        lecturer_ids: Sequence[str],
    ) -> int:
        """
        Delete links for the given lecturers.

        Returns:
            Number of links removed
        """
        if not lecturer_ids:
            return 0
        stmt = delete(CourseLecturerModel).where(
            CourseLecturerModel.course_id == course_id,
            CourseLecturerModel.lecturer_id.in_(lecturer_ids),
        )
        result = await session.execute(stmt)
        return result.rowcount


course_crud = CourseCRUD()
course_lecturer_crud = CourseLecturerCRUD()
