"""
Test suite for CourseService.

Covers course creation (access codes, lecturer assignment, roll ranges),
lecturer delta updates, deletion rights and cascade, and course reads.

System role: Verification of the course lifecycle manager
"""

from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from lms_backend.application.services import course_service as course_service_module
from lms_backend.application.services.course_service import (
    CourseService,
    normalize_access_code,
    normalize_lecturer_ids,
)
from lms_backend.boundary.db.CRUD.course_crud import course_crud, course_lecturer_crud
from lms_backend.boundary.db.CRUD.enrollment_crud import enrollment_crud
from lms_backend.boundary.db.CRUD.material_crud import lecture_note_crud
from lms_backend.boundary.db.models.audit_log_model import AuditLogModel
from lms_backend.boundary.db.models.course_model import EnrollmentModel
from lms_backend.core.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthenticatedError,
    UpstreamFailureError,
    ValidationError,
)


@pytest.fixture
def service(test_async_db, audit, mock_store, access_code_settings) -> CourseService:
    return CourseService(
        db=test_async_db,
        audit=audit,
        store=mock_store,
        access_codes=access_code_settings,
    )


async def audit_actions(session_factory) -> list[str]:
    async with session_factory() as session:
        result = await session.execute(select(AuditLogModel.action))
        return list(result.scalars().all())


class TestAccessCodeHelpers:
    """Tests for module-level helpers."""

    def test_normalize_access_code_uppercases(self) -> None:
        assert normalize_access_code(" abc12345 ") == "ABC12345"

    def test_normalize_access_code_rejects_symbols(self) -> None:
        with pytest.raises(ValidationError):
            normalize_access_code("ABC-123")

    def test_normalize_lecturer_ids_dedupes_in_order(self) -> None:
        assert normalize_lecturer_ids(["b", " a ", "b", ""]) == ["b", "a"]


class TestCreateCourse:
    """Tests for CourseService.create_course()."""

    async def test_lecturer_becomes_primary_and_assigned(
        self, service: CourseService, lecturer, lecturer2, session_factory
    ) -> None:
        # Act
        result = await service.create_course(
            lecturer, title="Databases", lecturer_ids=[lecturer2.id]
        )

        # Assert
        assert result["lecturer_id"] == lecturer.id
        assert result["lecturer_ids"] == [lecturer.id, lecturer2.id]
        assert len(result["access_code"]) == 8
        assert result["access_code"].isupper() or result["access_code"].isdigit()
        assert "course.created" in await audit_actions(session_factory)

    async def test_admin_creates_course_without_lecturers(self, service, admin) -> None:
        result = await service.create_course(admin, title="Orientation")

        assert result["lecturer_id"] is None
        assert result["lecturer_ids"] == []

    async def test_lecturer_link_failure_keeps_course(
        self, service, lecturer, test_async_db, session_factory
    ) -> None:
        # Act
        with patch.object(
            course_lecturer_crud, "add_links", AsyncMock(side_effect=SQLAlchemyError("link failed"))
        ):
            result = await service.create_course(lecturer, title="Compilers")

        # Assert
        assert result["lecturer_ids"] == []
        assert result["lecturer_id"] is None
        stored = await course_crud.get_by_id(test_async_db, result["id"])
        assert stored is not None
        assert stored.lecturer_id is None
        assert await course_lecturer_crud.list_lecturer_ids(test_async_db, result["id"]) == []
        assert (await audit_actions(session_factory)).count("course.created") == 1

    async def test_student_cannot_create_course(self, service, student) -> None:
        with pytest.raises(ForbiddenError):
            await service.create_course(student, title="Nope")

    async def test_anonymous_cannot_create_course(self, service) -> None:
        with pytest.raises(UnauthenticatedError):
            await service.create_course(None, title="Nope")

    async def test_supplied_code_stored_uppercase(self, service, admin) -> None:
        result = await service.create_course(admin, title="Physics", access_code="phys2024")

        assert result["access_code"] == "PHYS2024"

    async def test_duplicate_code_differing_in_case_conflicts(
        self, service, admin, test_async_db
    ) -> None:
        # Arrange
        await service.create_course(admin, title="First", access_code="ABC12345")

        # Act
        with pytest.raises(ConflictError) as exc_info:
            await service.create_course(admin, title="Second", access_code="abc12345")

        # Assert
        assert exc_info.value.constraint == "duplicate_access_code"
        assert await course_crud.count(test_async_db) == 1

    async def test_generated_code_retries_on_collision(self, service, admin) -> None:
        # Arrange
        await service.create_course(admin, title="Taken", access_code="AAAAAAAA")
        codes = iter(["AAAAAAAA", "BBBBBBBB"])

        # Act
        with patch.object(
            course_service_module, "generate_access_code", side_effect=lambda length: next(codes)
        ):
            result = await service.create_course(admin, title="Fresh")

        # Assert
        assert result["access_code"] == "BBBBBBBB"

    async def test_generated_code_exhaustion_conflicts(self, service, admin) -> None:
        # Arrange
        await service.create_course(admin, title="Taken", access_code="AAAAAAAA")

        # Act / Assert
        with patch.object(
            course_service_module, "generate_access_code", return_value="AAAAAAAA"
        ):
            with pytest.raises(ConflictError) as exc_info:
                await service.create_course(admin, title="Fresh")
        assert exc_info.value.constraint == "duplicate_access_code"

    async def test_reversed_roll_range_rejected(self, service, admin) -> None:
        with pytest.raises(ValidationError):
            await service.create_course(admin, title="X", roll_no_start=200, roll_no_end=100)

    async def test_student_as_lecturer_rejected(self, service, admin, student) -> None:
        with pytest.raises(ValidationError):
            await service.create_course(admin, title="X", lecturer_ids=[student.id])


class TestUpdateCourse:
    """Tests for CourseService.update_course()."""

    async def test_owner_updates_title_and_range(self, service, lecturer) -> None:
        # Arrange
        created = await service.create_course(lecturer, title="Old")

        # Act
        result = await service.update_course(
            lecturer, created["id"], title="New", roll_no_start=100, roll_no_end=200
        )

        # Assert
        assert result["title"] == "New"
        assert (result["roll_no_start"], result["roll_no_end"]) == (100, 200)

    async def test_null_clears_roll_bound(self, service, lecturer) -> None:
        created = await service.create_course(
            lecturer, title="C", roll_no_start=1, roll_no_end=10
        )

        result = await service.update_course(lecturer, created["id"], roll_no_end=None)

        assert result["roll_no_start"] == 1
        assert result["roll_no_end"] is None

    async def test_update_validates_against_stored_bound(self, service, lecturer) -> None:
        created = await service.create_course(lecturer, title="C", roll_no_end=50)

        with pytest.raises(ValidationError):
            await service.update_course(lecturer, created["id"], roll_no_start=60)

    async def test_non_owner_cannot_update(self, service, lecturer, lecturer2) -> None:
        created = await service.create_course(lecturer, title="Mine")

        with pytest.raises(ForbiddenError):
            await service.update_course(lecturer2, created["id"], title="Theirs")

    async def test_lecturer_cannot_change_lecturers(self, service, lecturer, lecturer2) -> None:
        created = await service.create_course(lecturer, title="Mine")

        with pytest.raises(ForbiddenError):
            await service.update_course(
                lecturer, created["id"], lecturer_ids=[lecturer.id, lecturer2.id]
            )

    async def test_lecturer_delta_keeps_unchanged_links(
        self, service, admin, lecturer, lecturer2, test_async_db
    ) -> None:
        # Arrange
        created = await service.create_course(admin, title="C", lecturer_ids=[lecturer.id])
        original = await course_lecturer_crud.get_link(test_async_db, created["id"], lecturer.id)
        original_created_at = original.created_at

        # Act: add lecturer2
        result = await service.update_course(
            admin, created["id"], lecturer_ids=[lecturer.id, lecturer2.id]
        )

        # Assert
        assert sorted(result["lecturer_ids"]) == sorted([lecturer.id, lecturer2.id])
        kept = await course_lecturer_crud.get_link(test_async_db, created["id"], lecturer.id)
        assert kept.created_at == original_created_at
        assert result["lecturer_id"] == lecturer.id

    async def test_lecturer_delta_round_trip_restores_set(
        self, service, admin, lecturer, lecturer2
    ) -> None:
        # Arrange
        created = await service.create_course(admin, title="C", lecturer_ids=[lecturer.id])

        # Act
        await service.update_course(admin, created["id"], lecturer_ids=[lecturer2.id])
        result = await service.update_course(admin, created["id"], lecturer_ids=[lecturer.id])

        # Assert
        assert result["lecturer_ids"] == [lecturer.id]
        assert result["lecturer_id"] == lecturer.id

    async def test_removing_all_lecturers_clears_primary(self, service, admin, lecturer) -> None:
        created = await service.create_course(admin, title="C", lecturer_ids=[lecturer.id])

        result = await service.update_course(admin, created["id"], lecturer_ids=[])

        assert result["lecturer_ids"] == []
        assert result["lecturer_id"] is None

    async def test_anonymous_update_rejected_before_lookup(self, service) -> None:
        with pytest.raises(UnauthenticatedError):
            await service.update_course(None, uuid4(), title="X")

    async def test_update_missing_course_not_found(self, service, admin) -> None:
        with pytest.raises(NotFoundError):
            await service.update_course(admin, uuid4(), title="X")


class TestDeleteCourse:
    """Tests for CourseService.delete_course()."""

    async def test_secondary_lecturer_cannot_delete(
        self, service, admin, lecturer, lecturer2
    ) -> None:
        created = await service.create_course(
            admin, title="C", lecturer_ids=[lecturer.id, lecturer2.id]
        )

        with pytest.raises(ForbiddenError):
            await service.delete_course(lecturer2, created["id"])

    async def test_primary_lecturer_deletes_with_cascade(
        self, service, lecturer, student, test_async_db, mock_store
    ) -> None:
        # Arrange
        created = await service.create_course(lecturer, title="C")
        course_id = created["id"]
        await enrollment_crud.create(test_async_db, student_id=student.id, course_id=course_id)
        await lecture_note_crud.create(
            test_async_db,
            course_id=course_id,
            title="Week 1",
            file_path=f"{course_id}/1-week1.pdf",
            file_size=10,
            content_type="application/pdf",
            uploaded_by=lecturer.id,
        )
        await test_async_db.commit()

        # Act
        await service.delete_course(lecturer, course_id)

        # Assert
        assert await course_crud.get_by_id(test_async_db, course_id) is None
        assert await enrollment_crud.count(test_async_db, EnrollmentModel.course_id == course_id) == 0
        assert await course_lecturer_crud.list_lecturer_ids(test_async_db, course_id) == []
        mock_store.delete.assert_awaited_once_with(f"{course_id}/1-week1.pdf")

    async def test_blob_cleanup_failure_does_not_fail_delete(
        self, service, admin, test_async_db, mock_store
    ) -> None:
        # Arrange
        created = await service.create_course(admin, title="C")
        await lecture_note_crud.create(
            test_async_db,
            course_id=created["id"],
            title="Notes",
            file_path="k/1-notes.pdf",
            file_size=10,
            content_type="application/pdf",
        )
        await test_async_db.commit()
        mock_store.delete.side_effect = UpstreamFailureError("boom", operation="delete")

        # Act
        await service.delete_course(admin, created["id"])

        # Assert
        assert await course_crud.get_by_id(test_async_db, created["id"]) is None


class TestCourseReads:
    """Tests for list and detail reads."""

    async def test_student_list_hides_access_codes(self, service, lecturer, student) -> None:
        await service.create_course(lecturer, title="C")

        courses = await service.list_courses(student)

        assert len(courses) == 1
        assert courses[0]["access_code"] is None

    async def test_owner_list_shows_access_codes(self, service, lecturer, lecturer2) -> None:
        await service.create_course(lecturer, title="Mine")
        await service.create_course(lecturer2, title="Theirs")

        courses = {c["title"]: c for c in await service.list_courses(lecturer)}

        assert courses["Mine"]["access_code"] is not None
        assert courses["Theirs"]["access_code"] is None

    async def test_details_include_counts(self, service, lecturer, student, test_async_db) -> None:
        # Arrange
        created = await service.create_course(lecturer, title="C")
        await enrollment_crud.create(test_async_db, student_id=student.id, course_id=created["id"])
        await test_async_db.commit()

        # Act
        details = await service.get_course_details(student, created["id"])

        # Assert
        assert details["enrollment_count"] == 1
        assert details["lecturer_ids"] == [lecturer.id]

    async def test_list_courses_for_lecturer(self, service, admin, lecturer, lecturer2) -> None:
        await service.create_course(admin, title="A", lecturer_ids=[lecturer.id])
        await service.create_course(admin, title="B", lecturer_ids=[lecturer2.id])

        mine = await service.list_courses_for_lecturer(lecturer)

        assert [c["title"] for c in mine] == ["A"]

    async def test_lecturer_cannot_list_other_lecturers_courses(
        self, service, lecturer, lecturer2
    ) -> None:
        with pytest.raises(ForbiddenError):
            await service.list_courses_for_lecturer(lecturer, lecturer2.id)

    async def test_lookup_by_access_code_is_case_insensitive(self, service, lecturer, student) -> None:
        await service.create_course(lecturer, title="C", access_code="LOOK1234")

        found = await service.get_course_by_access_code(student, "look1234")

        assert found["title"] == "C"
        assert found["access_code"] is None


class TestLecturerAssignment:
    """Tests for add_lecturer / remove_lecturer."""

    async def test_add_duplicate_lecturer_conflicts(self, service, admin, lecturer) -> None:
        created = await service.create_course(admin, title="C", lecturer_ids=[lecturer.id])

        with pytest.raises(ConflictError) as exc_info:
            await service.add_lecturer(admin, created["id"], lecturer.id)

        assert exc_info.value.constraint == "duplicate_lecturer_assignment"

    async def test_add_sets_primary_when_missing(self, service, admin, lecturer) -> None:
        created = await service.create_course(admin, title="C")

        await service.add_lecturer(admin, created["id"], lecturer.id)
        lecturers = await service.get_course_lecturers(admin, created["id"])

        assert [u.id for u in lecturers] == [lecturer.id]
        assert (await service.get_course_details(admin, created["id"]))["lecturer_id"] == lecturer.id

    async def test_remove_moves_primary_to_next_link(
        self, service, admin, lecturer, lecturer2, session_factory
    ) -> None:
        created = await service.create_course(
            admin, title="C", lecturer_ids=[lecturer.id, lecturer2.id]
        )

        await service.remove_lecturer(admin, created["id"], lecturer.id)
        details = await service.get_course_details(admin, created["id"])

        assert details["lecturer_id"] == lecturer2.id
        assert "course.lecturer_removed" in await audit_actions(session_factory)

    async def test_remove_unassigned_not_found(self, service, admin, lecturer) -> None:
        created = await service.create_course(admin, title="C")

        with pytest.raises(NotFoundError):
            await service.remove_lecturer(admin, created["id"], lecturer.id)

    async def test_lecturer_cannot_add_lecturers(self, service, lecturer, lecturer2) -> None:
        created = await service.create_course(lecturer, title="C")

        with pytest.raises(ForbiddenError):
            await service.add_lecturer(lecturer, created["id"], lecturer2.id)
