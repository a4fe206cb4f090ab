"""
Test suite for AccessControlGuard.

Tests role checks, course ownership (link table and legacy pointer),
enrollment checks, admin bypass and AnyOf composition.

System role: Verification of authorization rules
"""

import pytest

from lms_backend.boundary.db.CRUD.course_crud import course_crud, course_lecturer_crud
from lms_backend.boundary.db.CRUD.enrollment_crud import enrollment_crud
from lms_backend.boundary.db.models.user_model import UserRole
from lms_backend.core.access_control import (
    STAFF_ROLES,
    AccessControlGuard,
    AnyOf,
    CourseEnrollment,
    CourseOwnership,
    DenialKind,
    RoleIn,
)
from lms_backend.core.exceptions import ForbiddenError, UnauthenticatedError


@pytest.fixture
def guard(test_async_db) -> AccessControlGuard:
    return AccessControlGuard(test_async_db)


@pytest.fixture
async def course(test_async_db, lecturer):
    course = await course_crud.create(
        test_async_db, title="Algorithms", access_code="ALGO2024", lecturer_id=lecturer.id
    )
    await course_lecturer_crud.add_links(test_async_db, course.id, [lecturer.id])
    await test_async_db.commit()
    return course


class TestRoleRequirement:
    """Tests for RoleIn."""

    async def test_no_user_is_unauthenticated(self, guard: AccessControlGuard) -> None:
        # Act
        decision = await guard.authorize(None, RoleIn(STAFF_ROLES))

        # Assert
        assert decision.allowed is False
        assert decision.kind == DenialKind.UNAUTHENTICATED

    async def test_require_without_user_raises_unauthenticated(
        self, guard: AccessControlGuard
    ) -> None:
        with pytest.raises(UnauthenticatedError):
            await guard.require(None, RoleIn.of(UserRole.STUDENT))

    async def test_require_authenticated_rejects_missing_user(self, guard) -> None:
        with pytest.raises(UnauthenticatedError):
            guard.require_authenticated(None)

    async def test_require_authenticated_returns_user(self, guard, student) -> None:
        assert guard.require_authenticated(student) is student

    async def test_student_denied_staff_role(self, guard, student) -> None:
        # Act
        decision = await guard.authorize(student, RoleIn(STAFF_ROLES))

        # Assert
        assert decision.allowed is False
        assert decision.kind == DenialKind.FORBIDDEN
        assert decision.reason == "insufficient_role"

    async def test_require_raises_forbidden_with_reason(self, guard, student) -> None:
        with pytest.raises(ForbiddenError) as exc_info:
            await guard.require(student, RoleIn.of(UserRole.ADMIN))

        assert exc_info.value.details["reason"] == "insufficient_role"

    async def test_lecturer_allowed_staff_role(self, guard, lecturer) -> None:
        assert (await guard.authorize(lecturer, RoleIn(STAFF_ROLES))).allowed


class TestCourseOwnership:
    """Tests for CourseOwnership."""

    async def test_assigned_lecturer_owns_course(self, guard, lecturer, course) -> None:
        assert (await guard.authorize(lecturer, CourseOwnership(course))).allowed

    async def test_unassigned_lecturer_denied(self, guard, lecturer2, course) -> None:
        # Act
        decision = await guard.authorize(lecturer2, CourseOwnership(course))

        # Assert
        assert decision.allowed is False
        assert decision.reason == "not_course_owner"

    async def test_admin_bypasses_ownership(self, guard, admin, course) -> None:
        assert (await guard.authorize(admin, CourseOwnership(course, primary_only=True))).allowed

    async def test_links_take_precedence_over_legacy_pointer(
        self, test_async_db, guard, lecturer, lecturer2
    ) -> None:
        # Arrange: pointer says lecturer, links say lecturer2
        course = await course_crud.create(
            test_async_db, title="Networks", access_code="NETS0001", lecturer_id=lecturer.id
        )
        await course_lecturer_crud.add_links(test_async_db, course.id, [lecturer2.id])
        await test_async_db.commit()

        # Act / Assert
        assert await guard.owns_course(lecturer2, course)
        assert not await guard.owns_course(lecturer, course)

    async def test_legacy_pointer_used_when_no_links(
        self, test_async_db, guard, lecturer
    ) -> None:
        # Arrange
        course = await course_crud.create(
            test_async_db, title="Legacy", access_code="LEGACY01", lecturer_id=lecturer.id
        )
        await test_async_db.commit()

        # Act / Assert
        assert await guard.owns_course(lecturer, course)

    async def test_primary_only_requires_pointer(
        self, test_async_db, guard, lecturer, lecturer2, course
    ) -> None:
        # Arrange
        await course_lecturer_crud.add_links(test_async_db, course.id, [lecturer2.id])
        await test_async_db.commit()

        # Act
        secondary = await guard.authorize(lecturer2, CourseOwnership(course, primary_only=True))
        primary = await guard.authorize(lecturer, CourseOwnership(course, primary_only=True))

        # Assert
        assert secondary.allowed is False
        assert primary.allowed is True


class TestCourseEnrollment:
    """Tests for CourseEnrollment and AnyOf."""

    async def test_enrolled_student_allowed(self, test_async_db, guard, student, course) -> None:
        # Arrange
        await enrollment_crud.create(test_async_db, student_id=student.id, course_id=course.id)
        await test_async_db.commit()

        # Act / Assert
        assert (await guard.authorize(student, CourseEnrollment(course.id))).allowed

    async def test_unenrolled_student_denied(self, guard, student, course) -> None:
        decision = await guard.authorize(student, CourseEnrollment(course.id))

        assert decision.allowed is False
        assert decision.reason == "not_enrolled"

    async def test_admin_bypasses_enrollment(self, guard, admin, course) -> None:
        assert (await guard.authorize(admin, CourseEnrollment(course.id))).allowed

    async def test_any_of_allows_owner_without_enrollment(self, guard, lecturer, course) -> None:
        requirement = AnyOf((CourseEnrollment(course.id), CourseOwnership(course)))

        assert (await guard.authorize(lecturer, requirement)).allowed

    async def test_any_of_joins_reasons_when_all_deny(self, guard, lecturer2, course) -> None:
        # Act
        decision = await guard.authorize(
            lecturer2, AnyOf((CourseEnrollment(course.id), CourseOwnership(course)))
        )

        # Assert
        assert decision.allowed is False
        assert "not_enrolled" in decision.reason
        assert "not_course_owner" in decision.reason
