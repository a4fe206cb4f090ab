"""
Analytics service.

Admin-only counts across the platform and per-course enrollment
breakdowns.

Dependencies: sqlalchemy, lms_backend.boundary.db.CRUD
System role: Admin reporting
"""

from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from lms_backend.boundary.db.CRUD.course_crud import course_crud
from lms_backend.boundary.db.CRUD.enrollment_crud import enrollment_crud
from lms_backend.boundary.db.CRUD.material_crud import lecture_note_crud
from lms_backend.boundary.db.CRUD.user_crud import user_crud
from lms_backend.boundary.db.models.material_model import LectureNoteModel
from lms_backend.boundary.db.models.user_model import UserModel, UserRole
from lms_backend.core.access_control import AccessControlGuard, RoleIn
from lms_backend.core.exceptions import NotFoundError


class AnalyticsService:
    """Admin analytics over users, courses, enrollments and materials."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.guard = AccessControlGuard(db)

    async def global_analytics(self, actor: UserModel | None) -> dict[str, int]:
        """
        Platform-wide totals.

        Returns:
            dict: total_students, total_courses, total_enrollments, total_materials
        """
        await self.guard.require(actor, RoleIn.of(UserRole.ADMIN))
        return {
            "total_students": await user_crud.count(
                self.db, UserModel.role == UserRole.STUDENT
            ),
            "total_courses": await course_crud.count(self.db),
            "total_enrollments": await enrollment_crud.count(self.db),
            "total_materials": await lecture_note_crud.count(self.db),
        }

    async def course_analytics(
        self,
        actor: UserModel | None,
        course_id: UUID,
    ) -> dict[str, Any]:
        """
        Enrollment breakdown for one course.

        Args:
            actor: Requesting admin
            course_id: Course UUID

        Returns:
            dict: course_id, course_title, enrollment_count, material_count and
            students with their profile school, branch and section

        Raises:
            NotFoundError: If the course does not exist
        """
        await self.guard.require(actor, RoleIn.of(UserRole.ADMIN))
        course = await course_crud.get_by_id(self.db, course_id)
        if course is None:
            raise NotFoundError("course", course_id)

        rows = await enrollment_crud.list_for_course(self.db, course_id)
        students = [
            {
                "id": student.id,
                "name": student.name,
                "email": student.email,
                "roll_no": profile.roll_no if profile else None,
                "school": profile.school if profile else None,
                "branch": profile.branch if profile else None,
                "section": profile.section if profile else None,
                "enrolled_at": enrollment.enrolled_at,
            }
            for enrollment, student, profile in rows
        ]
        material_count = await lecture_note_crud.count(
            self.db, LectureNoteModel.course_id == course_id
        )
        return {
            "course_id": course.id,
            "course_title": course.title,
            "enrollment_count": len(students),
            "material_count": material_count,
            "students": students,
        }
