"""
Test suite for ProfileService.

System role: Verification of student onboarding and profile editing
"""

import logging

import pytest
from sqlalchemy import select

from lms_backend.application.services.profile_service import ProfileService
from lms_backend.boundary.db.models.audit_log_model import AuditLogModel
from lms_backend.boundary.db.models.user_model import UserRole
from lms_backend.core.exceptions import ConflictError, ForbiddenError, ValidationError


@pytest.fixture
def service(test_async_db, audit) -> ProfileService:
    return ProfileService(db=test_async_db, audit=audit)


class TestUpsertProfile:
    """Tests for ProfileService.upsert_profile()."""

    async def test_first_upsert_completes_onboarding(self, service, user_factory) -> None:
        # Arrange
        newcomer = await user_factory("student-9", UserRole.STUDENT)
        assert await service.check_onboarding_status(newcomer.id) is False

        # Act
        profile = await service.upsert_profile(
            newcomer, " 175 ", school="Engineering", branch="CSE", section=" "
        )

        # Assert
        assert profile.roll_no == "175"
        assert profile.section is None
        assert profile.onboarding_completed_at is not None
        assert await service.check_onboarding_status(newcomer.id) is True

    async def test_upsert_at_info_level_logs_and_audits(
        self, service, student, session_factory, caplog
    ) -> None:
        # Arrange
        caplog.set_level(logging.INFO)

        # Act
        await service.upsert_profile(student, "150", school="Science")

        # Assert
        records = [r for r in caplog.records if r.getMessage() == "Student profile saved"]
        assert len(records) == 1
        assert records[0].profile_created == "False"
        async with session_factory() as session:
            actions = (await session.execute(select(AuditLogModel.action))).scalars().all()
        assert actions == ["student_profile.updated"]

    async def test_update_keeps_onboarding_timestamp(self, service, student) -> None:
        before = (await service.get_profile(student)).onboarding_completed_at

        profile = await service.upsert_profile(student, "150", branch="ECE")

        assert profile.branch == "ECE"
        assert profile.onboarding_completed_at == before

    async def test_duplicate_roll_number_conflicts(self, service, student, student2) -> None:
        with pytest.raises(ConflictError) as exc_info:
            await service.upsert_profile(student2, "150")

        assert exc_info.value.constraint == "duplicate_roll_no"

    async def test_blank_roll_number_rejected(self, service, student) -> None:
        with pytest.raises(ValidationError):
            await service.upsert_profile(student, "   ")

    async def test_lecturer_has_no_profile_to_edit(self, service, lecturer) -> None:
        with pytest.raises(ForbiddenError):
            await service.upsert_profile(lecturer, "1")


class TestProfileReads:
    """Tests for profile reads."""

    async def test_lecturer_profile_is_none(self, service, lecturer) -> None:
        assert await service.get_profile(lecturer) is None

    async def test_admin_lists_profiles_with_users(self, service, admin, student, student2) -> None:
        profiles = await service.list_profiles(admin)

        assert {p["roll_no"] for p in profiles} == {"150", "250"}
        assert {p["email"] for p in profiles} == {student.email, student2.email}

    async def test_student_cannot_list_profiles(self, service, student) -> None:
        with pytest.raises(ForbiddenError):
            await service.list_profiles(student)
