"""
Test suite for EnrollmentService.

Covers access code enrollment (case-insensitive lookup, duplicate
detection, roll-number gating) and admin enrollment management.

System role: Verification of the enrollment manager
"""

from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
from sqlalchemy import select

from lms_backend.application.services.enrollment_service import (
    EnrollmentService,
    check_roll_eligibility,
)
from lms_backend.boundary.db.CRUD.course_crud import course_crud
from lms_backend.boundary.db.CRUD.enrollment_crud import enrollment_crud
from lms_backend.boundary.db.models.audit_log_model import AuditLogModel
from lms_backend.boundary.db.models.course_model import CourseModel, EnrollmentModel
from lms_backend.boundary.db.models.user_model import UserRole
from lms_backend.core.exceptions import (
    AlreadyEnrolledError,
    ForbiddenError,
    NotEligibleError,
    NotFoundError,
    UnauthenticatedError,
    ValidationError,
)


@pytest.fixture
def service(test_async_db, audit) -> EnrollmentService:
    return EnrollmentService(db=test_async_db, audit=audit)


@pytest.fixture
async def course(test_async_db, lecturer) -> CourseModel:
    course = await course_crud.create(
        test_async_db,
        title="Algorithms",
        access_code="ABC12345",
        lecturer_id=lecturer.id,
    )
    await test_async_db.commit()
    return course


@pytest.fixture
async def ranged_course(test_async_db, lecturer) -> CourseModel:
    course = await course_crud.create(
        test_async_db,
        title="Operating Systems",
        access_code="RANGE100",
        lecturer_id=lecturer.id,
        roll_no_start=100,
        roll_no_end=200,
    )
    await test_async_db.commit()
    return course


class TestRollEligibility:
    """Tests for check_roll_eligibility()."""

    def test_no_range_always_eligible(self) -> None:
        course = CourseModel(title="C", access_code="X1X1")

        assert check_roll_eligibility(course, None) is None

    @pytest.mark.parametrize(
        "roll_no,eligible",
        [("100", True), ("150", True), ("200", True), ("99", False), ("201", False)],
    )
    def test_inclusive_bounds(self, roll_no: str, eligible: bool) -> None:
        course = CourseModel(title="C", access_code="X1X1", roll_no_start=100, roll_no_end=200)

        assert (check_roll_eligibility(course, roll_no) is None) is eligible

    def test_open_upper_bound(self) -> None:
        course = CourseModel(title="C", access_code="X1X1", roll_no_start=100)

        assert check_roll_eligibility(course, "100000") is None

    def test_non_numeric_roll_rejected(self) -> None:
        course = CourseModel(title="C", access_code="X1X1", roll_no_end=10)

        assert check_roll_eligibility(course, "A-12") == "roll number is not numeric"

    def test_missing_roll_rejected(self) -> None:
        course = CourseModel(title="C", access_code="X1X1", roll_no_start=1)

        assert check_roll_eligibility(course, "  ") == "roll number required"


class TestEnrollByAccessCode:
    """Tests for EnrollmentService.enroll_by_access_code()."""

    async def test_lowercase_code_enrolls_once(
        self, service, course, student, test_async_db, session_factory
    ) -> None:
        # Act
        enrollment = await service.enroll_by_access_code(student, "abc12345")

        # Assert
        assert enrollment.course_id == course.id
        assert enrollment.student_id == student.id
        async with session_factory() as session:
            actions = (await session.execute(select(AuditLogModel.action))).scalars().all()
        assert "enrollment.created" in actions

    async def test_second_enrollment_already_enrolled(
        self, service, course, student, test_async_db
    ) -> None:
        # Arrange
        await service.enroll_by_access_code(student, "ABC12345")

        # Act
        with pytest.raises(AlreadyEnrolledError):
            await service.enroll_by_access_code(student, "abc12345")

        # Assert
        count = await enrollment_crud.count(
            test_async_db, EnrollmentModel.course_id == course.id
        )
        assert count == 1

    async def test_unique_constraint_race_reports_already_enrolled(
        self, service, course, student, test_async_db, session_factory
    ) -> None:
        # Arrange: a concurrent request inserted the row after both pre-checks
        course_id = course.id
        await service.enroll_by_access_code(student, "ABC12345")

        # Act
        with patch.object(
            enrollment_crud, "get_by_student_course", AsyncMock(return_value=None)
        ):
            with pytest.raises(AlreadyEnrolledError):
                await service.enroll_by_access_code(student, "abc12345")

        # Assert
        count = await enrollment_crud.count(
            test_async_db, EnrollmentModel.course_id == course_id
        )
        assert count == 1
        async with session_factory() as session:
            actions = (await session.execute(select(AuditLogModel.action))).scalars().all()
        assert actions.count("enrollment.created") == 1

    async def test_unknown_code_not_found(self, service, course, student) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            await service.enroll_by_access_code(student, "NOPE9999")

        assert exc_info.value.message == "Invalid access code"

    async def test_blank_code_rejected(self, service, student) -> None:
        with pytest.raises(ValidationError):
            await service.enroll_by_access_code(student, "   ")

    async def test_lecturer_cannot_self_enroll(self, service, course, lecturer) -> None:
        with pytest.raises(ForbiddenError):
            await service.enroll_by_access_code(lecturer, "ABC12345")

    async def test_roll_inside_range_enrolls(self, service, ranged_course, student) -> None:
        enrollment = await service.enroll_by_access_code(student, "range100")

        assert enrollment.course_id == ranged_course.id

    async def test_roll_outside_range_not_eligible(
        self, service, ranged_course, student2, test_async_db
    ) -> None:
        # Act
        with pytest.raises(NotEligibleError):
            await service.enroll_by_access_code(student2, "RANGE100")

        # Assert
        assert await enrollment_crud.get_by_student_course(
            test_async_db, student2.id, ranged_course.id
        ) is None

    async def test_missing_profile_not_eligible(self, service, ranged_course, user_factory) -> None:
        newcomer = await user_factory("student-3", UserRole.STUDENT)

        with pytest.raises(NotEligibleError):
            await service.enroll_by_access_code(newcomer, "RANGE100")

    async def test_existing_enrollment_reported_before_eligibility(
        self, service, ranged_course, student2, test_async_db
    ) -> None:
        # Arrange: enrolled directly even though out of range
        await enrollment_crud.create(
            test_async_db, student_id=student2.id, course_id=ranged_course.id
        )
        await test_async_db.commit()

        # Act / Assert
        with pytest.raises(AlreadyEnrolledError):
            await service.enroll_by_access_code(student2, "RANGE100")


class TestAdminEnrollment:
    """Tests for admin enrollment management."""

    async def test_admin_bypasses_roll_range(self, service, admin, ranged_course, student2) -> None:
        enrollment = await service.admin_create_enrollment(admin, student2.id, ranged_course.id)

        assert enrollment.student_id == student2.id

    async def test_admin_duplicate_enrollment(self, service, admin, course, student) -> None:
        await service.admin_create_enrollment(admin, student.id, course.id)

        with pytest.raises(AlreadyEnrolledError) as exc_info:
            await service.admin_create_enrollment(admin, student.id, course.id)

        assert exc_info.value.code == "already_enrolled"

    async def test_admin_cannot_enroll_lecturer(self, service, admin, course, lecturer2) -> None:
        with pytest.raises(ValidationError):
            await service.admin_create_enrollment(admin, lecturer2.id, course.id)

    async def test_admin_enroll_unknown_course(self, service, admin, student) -> None:
        with pytest.raises(NotFoundError):
            await service.admin_create_enrollment(admin, student.id, uuid4())

    async def test_lecturer_cannot_use_admin_path(self, service, lecturer, course, student) -> None:
        with pytest.raises(ForbiddenError):
            await service.admin_create_enrollment(lecturer, student.id, course.id)

    async def test_remove_enrollment(self, service, admin, course, student, test_async_db) -> None:
        # Arrange
        enrollment = await service.admin_create_enrollment(admin, student.id, course.id)

        # Act
        await service.admin_remove_enrollment(admin, enrollment.id)

        # Assert
        assert await enrollment_crud.get_by_id(test_async_db, enrollment.id) is None

    async def test_remove_unknown_enrollment(self, service, admin) -> None:
        with pytest.raises(NotFoundError):
            await service.admin_remove_enrollment(admin, uuid4())

    async def test_unenrolled_students(self, service, admin, course, student, student2) -> None:
        await service.admin_create_enrollment(admin, student.id, course.id)

        remaining = await service.list_unenrolled_students(admin, course.id)

        assert [u.id for u in remaining] == [student2.id]


class TestCourseEnrollmentListing:
    """Tests for EnrollmentService.list_course_enrollments()."""

    async def test_owner_sees_roster_with_roll_numbers(
        self, service, admin, lecturer, course, student
    ) -> None:
        await service.admin_create_enrollment(admin, student.id, course.id)

        roster = await service.list_course_enrollments(lecturer, course.id)

        assert len(roster) == 1
        assert roster[0]["student"]["id"] == student.id
        assert roster[0]["student"]["roll_no"] == "150"

    async def test_anonymous_rejected_before_course_lookup(self, service) -> None:
        with pytest.raises(UnauthenticatedError):
            await service.list_course_enrollments(None, uuid4())

    async def test_other_lecturer_forbidden(self, service, lecturer2, course) -> None:
        with pytest.raises(ForbiddenError):
            await service.list_course_enrollments(lecturer2, course.id)
