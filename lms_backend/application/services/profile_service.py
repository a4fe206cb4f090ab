"""
Student profile service.

Onboarding and profile editing for students, plus the admin listing.
Roll numbers are unique across profiles; a duplicate is reported as a
conflict.

Dependencies: sqlalchemy, lms_backend.boundary.db.CRUD
System role: Student profile use case orchestration
"""

import logging
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lms_backend.application.services.audit_service import AuditService
from lms_backend.boundary.db.base import utcnow
from lms_backend.boundary.db.CRUD.user_crud import student_profile_crud
from lms_backend.boundary.db.models.user_model import (
    StudentProfileModel,
    UserModel,
    UserRole,
)
from lms_backend.core.access_control import AccessControlGuard, RoleIn
from lms_backend.core.exceptions import ConflictError, ValidationError
from lms_backend.observability.log_utils import log_with_context

logger = logging.getLogger(__name__)

DUPLICATE_ROLL_NO = "duplicate_roll_no"


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


class ProfileService:
    """Student profile service."""

    def __init__(self, db: AsyncSession, audit: AuditService) -> None:
        """
        Initialize profile service.

        Args:
            db: Async SQLAlchemy session
            audit: Audit logger
        """
        self.db = db
        self.audit = audit
        self.guard = AccessControlGuard(db)

    async def get_profile(self, actor: UserModel | None) -> StudentProfileModel | None:
        """The actor's own profile, or None if onboarding has not started."""
        await self.guard.require(actor, RoleIn(frozenset(UserRole)))
        return await student_profile_crud.get_by_user_id(self.db, actor.id)

    async def check_onboarding_status(self, user_id: str) -> bool:
        """
        Whether a user has completed onboarding.

        Args:
            user_id: User to check

        Returns:
            bool: True when a profile exists with onboarding_completed_at set
        """
        profile = await student_profile_crud.get_by_user_id(self.db, user_id)
        return profile is not None and profile.onboarding_completed_at is not None

    async def upsert_profile(
        self,
        actor: UserModel | None,
        roll_no: str | None,
        school: str | None = None,
        branch: str | None = None,
        section: str | None = None,
    ) -> StudentProfileModel:
        """
        Create or update the actor's profile and stamp onboarding completion.

        Args:
            actor: Signed-in student
            roll_no: Roll number (unique across profiles)
            school: School name
            branch: Branch / class
            section: Section

        Returns:
            StudentProfileModel: Stored profile

        Raises:
            ForbiddenError: If actor is not a student
            ValidationError: If roll number is missing
            ConflictError: If another profile already holds the roll number
        """
        await self.guard.require(actor, RoleIn.of(UserRole.STUDENT))
        user_id = actor.id

        roll_no = _clean(roll_no)
        if roll_no is None:
            raise ValidationError("Roll number is required", field="roll_no")
        fields = {
            "roll_no": roll_no,
            "school": _clean(school),
            "branch": _clean(branch),
            "section": _clean(section),
        }

        holder = await student_profile_crud.get_by_roll_no(self.db, roll_no)
        if holder is not None and holder.user_id != user_id:
            raise ConflictError(
                "Roll number is already registered to another student",
                DUPLICATE_ROLL_NO,
                {"roll_no": roll_no},
            )

        profile = await student_profile_crud.get_by_user_id(self.db, user_id)
        created = profile is None
        try:
            if profile is None:
                profile = await student_profile_crud.create(
                    self.db,
                    user_id=user_id,
                    onboarding_completed_at=utcnow(),
                    **fields,
                )
            else:
                for field_name, value in fields.items():
                    setattr(profile, field_name, value)
                if profile.onboarding_completed_at is None:
                    profile.onboarding_completed_at = utcnow()
                await self.db.flush()
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise ConflictError(
                "Roll number is already registered to another student",
                DUPLICATE_ROLL_NO,
                {"roll_no": roll_no},
            ) from e

        log_with_context(
            logger,
            logging.INFO,
            "Student profile saved",
            user_id=user_id,
            profile_created=created,
        )
        await self.audit.record(
            user_id,
            "student_profile.updated",
            "student_profile",
            profile.id,
            {**fields, "created": created},
        )
        return profile

    async def list_profiles(self, actor: UserModel | None) -> list[dict[str, Any]]:
        """All student profiles with user details (admin only)."""
        await self.guard.require(actor, RoleIn.of(UserRole.ADMIN))
        rows = await student_profile_crud.list_with_users(self.db)
        return [
            {
                "id": profile.id,
                "user_id": user.id,
                "name": user.name,
                "email": user.email,
                "roll_no": profile.roll_no,
                "school": profile.school,
                "branch": profile.branch,
                "section": profile.section,
                "onboarding_completed_at": profile.onboarding_completed_at,
            }
            for profile, user in rows
        ]
