"""
Access control guard.

Evaluates role, course-ownership and enrollment requirements for a
resolved user. Every service runs its checks through the guard before
reading or mutating domain state.

Rules:
    - No user: always denied with ``sign_in_required``
    - Role: user.role must be in the allowed set
    - Ownership: admin, or assigned via course_lecturers; a course with
      no lecturer links falls back to the legacy ``lecturer_id`` pointer.
      ``primary_only`` restricts to the pointer itself (course deletion).
    - Enrollment: admin, or an enrollment row for (user, course)
    - AnyOf: allowed when any nested requirement allows

Dependencies: sqlalchemy, lms_backend.boundary.db
System role: Authorization for every protected operation
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Union
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from lms_backend.boundary.db.CRUD.course_crud import course_lecturer_crud
from lms_backend.boundary.db.CRUD.enrollment_crud import enrollment_crud
from lms_backend.boundary.db.models.course_model import CourseModel
from lms_backend.boundary.db.models.user_model import UserModel, UserRole
from lms_backend.core.exceptions import ForbiddenError, UnauthenticatedError

logger = logging.getLogger(__name__)

STAFF_ROLES = frozenset({UserRole.LECTURER, UserRole.ADMIN})


class DenialKind(str, Enum):
    """Distinguishes missing sign-in from insufficient rights."""

    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"


@dataclass(frozen=True)
class Decision:
    """Outcome of an authorization check."""

    allowed: bool
    reason: str | None = None
    kind: DenialKind | None = None

    @classmethod
    def allow(cls) -> "Decision":
        return cls(True)

    @classmethod
    def deny(cls, reason: str, kind: DenialKind = DenialKind.FORBIDDEN) -> "Decision":
        return cls(False, reason, kind)


@dataclass(frozen=True)
class RoleIn:
    """User role must be one of ``roles``."""

    roles: frozenset[UserRole]

    @classmethod
    def of(cls, *roles: UserRole) -> "RoleIn":
        return cls(frozenset(roles))


@dataclass(frozen=True)
class CourseOwnership:
    """User must own (teach) the course."""

    course: CourseModel = field(compare=False)
    primary_only: bool = False


@dataclass(frozen=True)
class CourseEnrollment:
    """User must be enrolled in the course."""

    course_id: UUID


@dataclass(frozen=True)
class AnyOf:
    """At least one nested requirement must allow."""

    requirements: tuple["Requirement", ...]


Requirement = Union[RoleIn, CourseOwnership, CourseEnrollment, AnyOf]


class AccessControlGuard:
    """
    Authorization checks backed by the course-lecturer and enrollment tables.

    Args:
        db: Async session used for ownership and enrollment lookups
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def authorize(self, user: UserModel | None, requirement: Requirement) -> Decision:
        """
        Evaluate a requirement for a user.

        Args:
            user: Resolved user, or None when no principal was resolved
            requirement: Requirement to evaluate

        Returns:
            Decision: allowed, or denied with a reason and kind
        """
        if user is None:
            return Decision.deny("sign_in_required", DenialKind.UNAUTHENTICATED)

        if isinstance(requirement, RoleIn):
            if user.role in requirement.roles:
                return Decision.allow()
            return Decision.deny("insufficient_role")

        if isinstance(requirement, CourseOwnership):
            if user.role == UserRole.ADMIN:
                return Decision.allow()
            if await self.owns_course(user, requirement.course, requirement.primary_only):
                return Decision.allow()
            return Decision.deny("not_course_owner")

        if isinstance(requirement, CourseEnrollment):
            if user.role == UserRole.ADMIN:
                return Decision.allow()
            enrollment = await enrollment_crud.get_by_student_course(
                self.db, user.id, requirement.course_id
            )
            if enrollment is not None:
                return Decision.allow()
            return Decision.deny("not_enrolled")

        if isinstance(requirement, AnyOf):
            reasons = []
            for nested in requirement.requirements:
                decision = await self.authorize(user, nested)
                if decision.allowed:
                    return decision
                reasons.append(decision.reason)
            return Decision.deny(" | ".join(r for r in reasons if r))

        raise TypeError(f"Unsupported requirement: {type(requirement).__name__}")

    def require_authenticated(self, user: UserModel | None) -> UserModel:
        """
        Reject a missing principal before any domain row is read.

        Raises:
            UnauthenticatedError: If no user was resolved
        """
        if user is None:
            raise UnauthenticatedError()
        return user

    async def require(self, user: UserModel | None, requirement: Requirement) -> UserModel:
        """
        Evaluate a requirement and raise when it is denied.

        Args:
            user: Resolved user, or None
            requirement: Requirement to evaluate

        Returns:
            UserModel: The authorized user

        Raises:
            UnauthenticatedError: If no user was resolved
            ForbiddenError: If the user lacks role, ownership or enrollment
        """
        decision = await self.authorize(user, requirement)
        if decision.allowed:
            return user

        if decision.kind == DenialKind.UNAUTHENTICATED:
            raise UnauthenticatedError()

        logger.warning(
            "Access denied",
            extra={
                "user_id": user.id,
                "role": user.role.value,
                "reason": decision.reason,
            },
        )
        raise ForbiddenError(details={"reason": decision.reason})

    async def owns_course(
        self,
        user: UserModel,
        course: CourseModel,
        primary_only: bool = False,
    ) -> bool:
        """
        Check whether a user teaches a course, ignoring the admin bypass.

        Args:
            user: User to check
            course: Target course
            primary_only: Only accept the legacy owner pointer

        Returns:
            bool: True if the user owns the course
        """
        if primary_only:
            return course.lecturer_id is not None and course.lecturer_id == user.id

        lecturer_ids = await course_lecturer_crud.list_lecturer_ids(self.db, course.id)
        if lecturer_ids:
            return user.id in lecturer_ids
        return course.lecturer_id is not None and course.lecturer_id == user.id
