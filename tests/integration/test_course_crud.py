"""
Integration tests for course, enrollment and profile persistence.

Covers the access code lookup paths, lecturer-scoped listing and the
store-level uniqueness constraints.

System role: Verification of course persistence operations
"""

import pytest
from sqlalchemy.exc import IntegrityError

from lms_backend.boundary.db.CRUD.course_crud import course_crud, course_lecturer_crud
from lms_backend.boundary.db.CRUD.enrollment_crud import enrollment_crud
from lms_backend.boundary.db.CRUD.user_crud import student_profile_crud
from lms_backend.boundary.db.models.user_model import UserRole


class TestAccessCodeLookup:
    """Tests for CourseCRUD.get_by_access_code()."""

    async def test_lookup_ignores_case(self, test_async_db) -> None:
        course = await course_crud.create(test_async_db, title="A", access_code="ABC12345")

        found = await course_crud.get_by_access_code(test_async_db, " abc12345 ")

        assert found.id == course.id

    async def test_legacy_mixed_case_code_resolves(self, test_async_db) -> None:
        course = await course_crud.create(test_async_db, title="Legacy", access_code="MixedCase9")

        assert (await course_crud.get_by_access_code(test_async_db, "MixedCase9")).id == course.id
        assert (await course_crud.get_by_access_code(test_async_db, "MIXEDCASE9")).id == course.id

    async def test_codes_unique_ignoring_case(self, test_async_db) -> None:
        await course_crud.create(test_async_db, title="A", access_code="DUPE1234")

        with pytest.raises(IntegrityError):
            await course_crud.create(test_async_db, title="B", access_code="dupe1234")

    async def test_access_code_exists(self, test_async_db) -> None:
        await course_crud.create(test_async_db, title="A", access_code="EXIST123")

        assert await course_crud.access_code_exists(test_async_db, "exist123") is True
        assert await course_crud.access_code_exists(test_async_db, "OTHER123") is False


class TestLecturerScope:
    """Tests for lecturer-scoped course queries."""

    async def test_links_and_legacy_pointer(self, test_async_db, lecturer, lecturer2) -> None:
        # Arrange
        linked = await course_crud.create(test_async_db, title="Linked", access_code="LINK1234")
        await course_lecturer_crud.add_links(test_async_db, linked.id, [lecturer.id])
        legacy = await course_crud.create(
            test_async_db, title="Legacy", access_code="LEG12345", lecturer_id=lecturer.id
        )
        shadowed = await course_crud.create(
            test_async_db, title="Shadowed", access_code="SHAD1234", lecturer_id=lecturer.id
        )
        await course_lecturer_crud.add_links(test_async_db, shadowed.id, [lecturer2.id])

        # Act
        titles = {c.title for c in await course_crud.list_for_lecturer(test_async_db, lecturer.id)}

        # Assert
        assert titles == {linked.title, legacy.title}

    async def test_duplicate_link_rejected(self, test_async_db, lecturer) -> None:
        course = await course_crud.create(test_async_db, title="C", access_code="LNK12345")
        await course_lecturer_crud.add_links(test_async_db, course.id, [lecturer.id])

        with pytest.raises(IntegrityError):
            await course_lecturer_crud.add_links(test_async_db, course.id, [lecturer.id])

    async def test_remove_links_counts_rows(self, test_async_db, lecturer, lecturer2) -> None:
        course = await course_crud.create(test_async_db, title="C", access_code="RMV12345")
        await course_lecturer_crud.add_links(test_async_db, course.id, [lecturer.id, lecturer2.id])

        removed = await course_lecturer_crud.remove_links(test_async_db, course.id, [lecturer.id])

        assert removed == 1
        assert await course_lecturer_crud.list_lecturer_ids(test_async_db, course.id) == [lecturer2.id]


class TestUniqueness:
    """Store-level uniqueness constraints."""

    async def test_one_enrollment_per_student_and_course(self, test_async_db, student) -> None:
        course = await course_crud.create(test_async_db, title="C", access_code="ENR12345")
        await enrollment_crud.create(test_async_db, student_id=student.id, course_id=course.id)

        with pytest.raises(IntegrityError):
            await enrollment_crud.create(test_async_db, student_id=student.id, course_id=course.id)

    async def test_roll_numbers_unique(self, test_async_db, student, user_factory) -> None:
        other = await user_factory("student-7", UserRole.STUDENT)

        with pytest.raises(IntegrityError):
            await student_profile_crud.create(test_async_db, user_id=other.id, roll_no="150")
