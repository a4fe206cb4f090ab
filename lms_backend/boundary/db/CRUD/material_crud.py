"""
Lecture note CRUD operations.

Dependencies: sqlalchemy, lms_backend.boundary.db.models
System role: Course material metadata persistence operations
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lms_backend.boundary.db.CRUD.base_crud import BaseCRUD
from lms_backend.boundary.db.models.material_model import LectureNoteModel


class LectureNoteCRUD(BaseCRUD[LectureNoteModel]):
    """CRUD operations for LectureNoteModel."""

    def __init__(self) -> None:
        """Initialize LectureNoteCRUD with LectureNoteModel."""
        super().__init__(LectureNoteModel)

    async def list_for_course(
        self,
        session: AsyncSession,
        course_id: UUID,
    ) -> Sequence[LectureNoteModel]:
        """
        Materials of a course, newest first.

        Args:
            session: Async database session
            course_id: Course UUID

        Returns:
            Sequence of LectureNoteModels
        """
        stmt = (
            select(LectureNoteModel)
            .where(LectureNoteModel.course_id == course_id)
            .order_by(LectureNoteModel.created_at.desc())
        )
        result = await session.execute(stmt)
        return result.scalars().all()


lecture_note_crud = LectureNoteCRUD()
