"""
Course lifecycle manager.

Coordinates course creation, update and deletion, the course-lecturer
assignment relation, access code generation and course reads.

Write ordering follows the partial-failure policy: the course row is
committed on its own, then the lecturer links. A failed link insert is
logged, the course is kept and its legacy lecturer pointer is cleared.

Dependencies: sqlalchemy, lms_backend.boundary.db.CRUD, lms_backend.core
System role: Course use case orchestration
"""

import logging
import re
import secrets
import string
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lms_backend.application.services.audit_service import AuditService
from lms_backend.boundary.aws.s3_client import S3MaterialStore
from lms_backend.boundary.db.CRUD.course_crud import course_crud, course_lecturer_crud
from lms_backend.boundary.db.CRUD.enrollment_crud import enrollment_crud
from lms_backend.boundary.db.CRUD.material_crud import lecture_note_crud
from lms_backend.boundary.db.CRUD.user_crud import user_crud
from lms_backend.boundary.db.models.course_model import CourseModel, EnrollmentModel
from lms_backend.boundary.db.models.user_model import UserModel, UserRole
from lms_backend.configs.identity import AccessCodeSettings
from lms_backend.core.access_control import (
    STAFF_ROLES,
    AccessControlGuard,
    CourseOwnership,
    RoleIn,
)
from lms_backend.core.exceptions import (
    ConflictError,
    NotFoundError,
    UpstreamFailureError,
    ValidationError,
)
from lms_backend.observability.log_utils import log_exception_with_context

logger = logging.getLogger(__name__)

ACCESS_CODE_ALPHABET = string.ascii_uppercase + string.digits
ACCESS_CODE_PATTERN = re.compile(r"^[A-Z0-9]{4,20}$")
DUPLICATE_ACCESS_CODE = "duplicate_access_code"
DUPLICATE_LECTURER_ASSIGNMENT = "duplicate_lecturer_assignment"

# Sentinel for "field not supplied" in partial updates
UNSET: Any = object()


def generate_access_code(length: int = 8) -> str:
    """Random uppercase alphanumeric access code."""
    return "".join(secrets.choice(ACCESS_CODE_ALPHABET) for _ in range(length))


def normalize_access_code(code: str) -> str:
    """
    Upper-case and validate a caller-supplied access code.

    Raises:
        ValidationError: If the code is not 4-20 alphanumeric characters
    """
    normalized = code.strip().upper()
    if not ACCESS_CODE_PATTERN.match(normalized):
        raise ValidationError(
            "Access code must be 4-20 letters or digits",
            field="access_code",
        )
    return normalized


def normalize_lecturer_ids(lecturer_ids: Sequence[str] | None) -> list[str]:
    """Strip blanks and duplicates, keeping first-seen order."""
    seen: dict[str, None] = {}
    for lecturer_id in lecturer_ids or []:
        lecturer_id = lecturer_id.strip()
        if lecturer_id:
            seen.setdefault(lecturer_id, None)
    return list(seen)


def validate_roll_range(start: int | None, end: int | None) -> None:
    """
    Validate an optional roll-number range.

    Raises:
        ValidationError: If both bounds are set and start > end
    """
    if start is not None and end is not None and start > end:
        raise ValidationError(
            "Roll number range start must not exceed end",
            field="roll_no_start",
            details={"roll_no_start": start, "roll_no_end": end},
        )


def course_to_dict(course: CourseModel, include_access_code: bool = True) -> dict[str, Any]:
    """Serialize a course; access codes are hidden from non-staff readers."""
    return {
        "id": course.id,
        "title": course.title,
        "description": course.description,
        "access_code": course.access_code if include_access_code else None,
        "lecturer_id": course.lecturer_id,
        "roll_no_start": course.roll_no_start,
        "roll_no_end": course.roll_no_end,
        "created_at": course.created_at,
        "updated_at": course.updated_at,
    }


class CourseService:
    """Course lifecycle manager."""

    def __init__(
        self,
        db: AsyncSession,
        audit: AuditService,
        store: S3MaterialStore | None = None,
        access_codes: AccessCodeSettings | None = None,
    ) -> None:
        """
        Initialize course service.

        Args:
            db: Async SQLAlchemy session
            audit: Audit logger
            store: Blob store, used to clean up material files on delete
            access_codes: Access code generation settings
        """
        self.db = db
        self.audit = audit
        self.store = store
        self.access_codes = access_codes or AccessCodeSettings()
        self.guard = AccessControlGuard(db)

    async def get_course_or_404(self, course_id: UUID) -> CourseModel:
        """
        Load a course or raise.

        Raises:
            NotFoundError: If the course does not exist
        """
        course = await course_crud.get_by_id(self.db, course_id)
        if course is None:
            raise NotFoundError("course", course_id)
        return course

    async def _validate_staff_ids(self, lecturer_ids: Sequence[str]) -> None:
        for lecturer_id in lecturer_ids:
            user = await user_crud.get_by_id(self.db, lecturer_id)
            if user is None or user.role not in STAFF_ROLES:
                raise ValidationError(
                    "Lecturer must be an existing lecturer or admin",
                    field="lecturer_ids",
                    details={"lecturer_id": lecturer_id},
                )

    async def _insert_course(
        self,
        title: str,
        description: str | None,
        primary_lecturer_id: str | None,
        access_code: str | None,
        roll_no_start: int | None,
        roll_no_end: int | None,
    ) -> CourseModel:
        """Insert and commit the course row, retrying generated codes on collision."""
        attempts = 1 if access_code else self.access_codes.max_generation_attempts
        for attempt in range(1, attempts + 1):
            code = access_code or generate_access_code(self.access_codes.length)
            if await course_crud.access_code_exists(self.db, code):
                logger.info(
                    "Access code collision",
                    extra={"attempt": attempt, "supplied": access_code is not None},
                )
                continue
            try:
                course = await course_crud.create(
                    self.db,
                    title=title,
                    description=description,
                    access_code=code,
                    lecturer_id=primary_lecturer_id,
                    roll_no_start=roll_no_start,
                    roll_no_end=roll_no_end,
                )
                await self.db.commit()
                return course
            except IntegrityError:
                # Lost a race with a concurrent insert of the same code
                await self.db.rollback()
                logger.info("Access code insert conflict", extra={"attempt": attempt})

        raise ConflictError(
            "Access code is already in use"
            if access_code
            else "Could not generate a unique access code",
            DUPLICATE_ACCESS_CODE,
            {"attempts": attempts},
        )

    async def create_course(
        self,
        actor: UserModel | None,
        title: str,
        description: str | None = None,
        lecturer_ids: Sequence[str] | None = None,
        access_code: str | None = None,
        roll_no_start: int | None = None,
        roll_no_end: int | None = None,
    ) -> dict[str, Any]:
        """
        Create a course and assign its lecturers.

        A lecturer creating a course is always assigned to it and becomes
        its primary lecturer.

        Args:
            actor: Requesting user (lecturer or admin)
            title: Course title
            description: Optional description
            lecturer_ids: Lecturers to assign
            access_code: Optional caller-chosen access code
            roll_no_start: Optional lower roll-number bound
            roll_no_end: Optional upper roll-number bound

        Returns:
            dict: Course data with ``lecturer_ids``

        Raises:
            ForbiddenError: If actor is not a lecturer or admin
            ValidationError: If input is invalid
            ConflictError: If the access code is already in use
        """
        await self.guard.require(actor, RoleIn(STAFF_ROLES))
        actor_id = actor.id

        title = (title or "").strip()
        if not title:
            raise ValidationError("Title is required", field="title")
        validate_roll_range(roll_no_start, roll_no_end)
        code = normalize_access_code(access_code) if access_code else None

        lecturers = normalize_lecturer_ids(lecturer_ids)
        if actor.role == UserRole.LECTURER:
            lecturers = [actor_id] + [lid for lid in lecturers if lid != actor_id]
        await self._validate_staff_ids(lecturers)

        course = await self._insert_course(
            title=title,
            description=description,
            primary_lecturer_id=lecturers[0] if lecturers else None,
            access_code=code,
            roll_no_start=roll_no_start,
            roll_no_end=roll_no_end,
        )
        course_id = course.id
        logger.info(
            "Course created",
            extra={"course_id": str(course_id), "created_by": actor_id},
        )

        assigned: list[str] = []
        if lecturers:
            try:
                await course_lecturer_crud.add_links(self.db, course_id, lecturers)
                await self.db.commit()
                assigned = lecturers
            except Exception as e:
                await self.db.rollback()
                log_exception_with_context(
                    logger,
                    "Lecturer assignment failed after course creation",
                    e,
                    course_id=course_id,
                    lecturer_ids=lecturers,
                )
                # No links were stored, so there is no first assigned lecturer
                course = await course_crud.update_by_id(self.db, course_id, lecturer_id=None)
                await self.db.commit()
                if course is None:
                    raise NotFoundError("course", course_id)

        await self.audit.record(
            actor_id,
            "course.created",
            "course",
            course_id,
            {"title": title, "lecturer_ids": assigned},
        )

        result = course_to_dict(course)
        result["lecturer_ids"] = assigned
        return result

    async def update_course(
        self,
        actor: UserModel | None,
        course_id: UUID,
        title: str = UNSET,
        description: str | None = UNSET,
        lecturer_ids: Sequence[str] | None = UNSET,
        roll_no_start: int | None = UNSET,
        roll_no_end: int | None = UNSET,
    ) -> dict[str, Any]:
        """
        Update course fields and, optionally, its lecturer assignment.

        Only supplied fields change. ``lecturer_ids`` is applied as a delta
        against the current assignment: unchanged links keep their
        timestamps. Changing lecturers is reserved to admins.

        Args:
            actor: Requesting user (course owner or admin)
            course_id: Course UUID
            title: New title
            description: New description (None clears it)
            lecturer_ids: Desired lecturer set
            roll_no_start: New lower bound (None clears it)
            roll_no_end: New upper bound (None clears it)

        Returns:
            dict: Updated course data with ``lecturer_ids``

        Raises:
            NotFoundError: If the course does not exist
            ForbiddenError: If actor does not own the course
            ValidationError: If input is invalid
            ConflictError: If a concurrent change created a duplicate link
        """
        self.guard.require_authenticated(actor)
        course = await self.get_course_or_404(course_id)
        await self.guard.require(actor, CourseOwnership(course))
        actor_id = actor.id

        changes: dict[str, Any] = {}
        if title is not UNSET:
            title = (title or "").strip()
            if not title:
                raise ValidationError("Title cannot be empty", field="title")
            changes["title"] = title
        if description is not UNSET:
            changes["description"] = description
        if roll_no_start is not UNSET:
            changes["roll_no_start"] = roll_no_start
        if roll_no_end is not UNSET:
            changes["roll_no_end"] = roll_no_end
        validate_roll_range(
            changes.get("roll_no_start", course.roll_no_start),
            changes.get("roll_no_end", course.roll_no_end),
        )

        added: list[str] = []
        removed: list[str] = []
        if lecturer_ids is not UNSET:
            await self.guard.require(actor, RoleIn.of(UserRole.ADMIN))
            desired = normalize_lecturer_ids(lecturer_ids)
            current = await course_lecturer_crud.list_lecturer_ids(self.db, course_id)
            added = [lid for lid in desired if lid not in current]
            removed = [lid for lid in current if lid not in desired]
            await self._validate_staff_ids(added)

        try:
            for field_name, value in changes.items():
                setattr(course, field_name, value)
            if removed:
                await course_lecturer_crud.remove_links(self.db, course_id, removed)
            if added:
                await course_lecturer_crud.add_links(self.db, course_id, added)
            if lecturer_ids is not UNSET:
                links = await course_lecturer_crud.list_links(self.db, course_id)
                course.lecturer_id = links[0].lecturer_id if links else None
            await self.db.flush()
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise ConflictError(
                "Lecturer is already assigned to this course",
                DUPLICATE_LECTURER_ASSIGNMENT,
                {"course_id": str(course_id)},
            ) from e

        logger.info(
            "Course updated",
            extra={
                "course_id": str(course_id),
                "fields": sorted(changes),
                "lecturers_added": len(added),
                "lecturers_removed": len(removed),
            },
        )
        metadata: dict[str, Any] = dict(changes)
        if added or removed:
            metadata["lecturers_added"] = added
            metadata["lecturers_removed"] = removed
        await self.audit.record(actor_id, "course.updated", "course", course_id, metadata)

        result = course_to_dict(course)
        result["lecturer_ids"] = await course_lecturer_crud.list_lecturer_ids(self.db, course_id)
        return result

    async def delete_course(self, actor: UserModel | None, course_id: UUID) -> None:
        """
        Delete a course and, through the store cascade, its dependents.

        Material files are removed from blob storage after the course
        row is gone; failures there are logged only.

        Args:
            actor: Requesting user (admin or primary lecturer)
            course_id: Course UUID

        Raises:
            NotFoundError: If the course does not exist
            ForbiddenError: If actor is neither admin nor primary lecturer
        """
        self.guard.require_authenticated(actor)
        course = await self.get_course_or_404(course_id)
        await self.guard.require(actor, CourseOwnership(course, primary_only=True))
        actor_id = actor.id
        title = course.title

        materials = await lecture_note_crud.list_for_course(self.db, course_id)
        file_paths = [m.file_path for m in materials]

        deleted = await course_crud.delete_by_id(self.db, course_id)
        await self.db.commit()
        if not deleted:
            raise NotFoundError("course", course_id)

        logger.info(
            "Course deleted",
            extra={"course_id": str(course_id), "materials": len(file_paths)},
        )
        await self.audit.record(actor_id, "course.deleted", "course", course_id, {"title": title})

        if self.store is not None:
            for path in file_paths:
                try:
                    await self.store.delete(path)
                except UpstreamFailureError as e:
                    log_exception_with_context(
                        logger, "Orphaned material blob", e, s3_key=path, course_id=course_id
                    )

    async def _can_see_access_code(self, actor: UserModel, course: CourseModel) -> bool:
        if actor.role == UserRole.ADMIN:
            return True
        if actor.role != UserRole.LECTURER:
            return False
        return await self.guard.owns_course(actor, course)

    async def list_courses(self, actor: UserModel | None) -> list[dict[str, Any]]:
        """
        List all courses, newest first.

        Access codes are included only for courses the actor manages.

        Args:
            actor: Any signed-in user

        Returns:
            list[dict]: Course data
        """
        await self.guard.require(actor, RoleIn(frozenset(UserRole)))
        courses = await course_crud.list_courses(self.db)

        if actor.role == UserRole.ADMIN:
            visible = {c.id for c in courses}
        elif actor.role == UserRole.LECTURER:
            visible = {c.id for c in await course_crud.list_for_lecturer(self.db, actor.id)}
        else:
            visible = set()
        return [course_to_dict(c, c.id in visible) for c in courses]

    async def get_course_details(self, actor: UserModel | None, course_id: UUID) -> dict[str, Any]:
        """
        Course data with lecturer IDs and enrollment count.

        Args:
            actor: Any signed-in user
            course_id: Course UUID

        Returns:
            dict: Course data plus ``lecturer_ids`` and ``enrollment_count``

        Raises:
            NotFoundError: If the course does not exist
        """
        await self.guard.require(actor, RoleIn(frozenset(UserRole)))
        course = await self.get_course_or_404(course_id)

        result = course_to_dict(course, await self._can_see_access_code(actor, course))
        result["lecturer_ids"] = await course_lecturer_crud.list_lecturer_ids(self.db, course_id)
        result["enrollment_count"] = await enrollment_crud.count(
            self.db, EnrollmentModel.course_id == course_id
        )
        return result

    async def list_courses_for_lecturer(
        self,
        actor: UserModel | None,
        lecturer_id: str | None = None,
    ) -> list[dict[str, Any]]:
        """
        Courses taught by a lecturer (the actor by default).

        Lecturers may only list their own courses; admins may list anyone's.

        Args:
            actor: Requesting lecturer or admin
            lecturer_id: Lecturer to list, defaults to the actor

        Returns:
            list[dict]: Course data
        """
        await self.guard.require(actor, RoleIn(STAFF_ROLES))
        lecturer_id = lecturer_id or actor.id
        if lecturer_id != actor.id:
            await self.guard.require(actor, RoleIn.of(UserRole.ADMIN))
        courses = await course_crud.list_for_lecturer(self.db, lecturer_id)
        return [course_to_dict(c) for c in courses]

    async def list_enrolled_courses(self, actor: UserModel | None) -> list[dict[str, Any]]:
        """
        Courses the actor is enrolled in, with enrollment timestamps.

        Args:
            actor: Signed-in student

        Returns:
            list[dict]: Course data plus ``enrollment_id`` and ``enrolled_at``
        """
        await self.guard.require(actor, RoleIn.of(UserRole.STUDENT))
        rows = await course_crud.list_for_student(self.db, actor.id)
        results = []
        for course, enrollment in rows:
            data = course_to_dict(course, include_access_code=False)
            data["enrollment_id"] = enrollment.id
            data["enrolled_at"] = enrollment.enrolled_at
            results.append(data)
        return results

    async def get_course_by_access_code(self, actor: UserModel | None, code: str) -> dict[str, Any]:
        """
        Preview the course behind an access code.

        Raises:
            NotFoundError: If no course matches the code
        """
        await self.guard.require(actor, RoleIn(frozenset(UserRole)))
        course = await course_crud.get_by_access_code(self.db, code)
        if course is None:
            raise NotFoundError("course", code, message="Invalid access code")
        return course_to_dict(course, include_access_code=False)

    async def get_course_lecturers(self, actor: UserModel | None, course_id: UUID) -> list[UserModel]:
        """
        Lecturers assigned to a course, in assignment order.

        Raises:
            NotFoundError: If the course does not exist
        """
        await self.guard.require(actor, RoleIn(frozenset(UserRole)))
        await self.get_course_or_404(course_id)
        lecturer_ids = await course_lecturer_crud.list_lecturer_ids(self.db, course_id)
        users = [await user_crud.get_by_id(self.db, lid) for lid in lecturer_ids]
        return [u for u in users if u is not None]

    async def list_lecturers(self, actor: UserModel | None) -> list[UserModel]:
        """Users eligible for lecturer assignment (admin only)."""
        await self.guard.require(actor, RoleIn.of(UserRole.ADMIN))
        return list(await user_crud.list_by_roles(self.db, [UserRole.LECTURER, UserRole.ADMIN]))

    async def add_lecturer(
        self,
        actor: UserModel | None,
        course_id: UUID,
        lecturer_id: str,
    ) -> None:
        """
        Assign a lecturer to a course (admin only).

        Raises:
            NotFoundError: If the course does not exist
            ValidationError: If the user is not a lecturer or admin
            ConflictError: If the lecturer is already assigned
        """
        await self.guard.require(actor, RoleIn.of(UserRole.ADMIN))
        actor_id = actor.id
        course = await self.get_course_or_404(course_id)
        await self._validate_staff_ids([lecturer_id])

        if await course_lecturer_crud.get_link(self.db, course_id, lecturer_id) is not None:
            raise ConflictError(
                "Lecturer is already assigned to this course",
                DUPLICATE_LECTURER_ASSIGNMENT,
                {"course_id": str(course_id), "lecturer_id": lecturer_id},
            )

        try:
            await course_lecturer_crud.add_links(self.db, course_id, [lecturer_id])
            if course.lecturer_id is None:
                course.lecturer_id = lecturer_id
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise ConflictError(
                "Lecturer is already assigned to this course",
                DUPLICATE_LECTURER_ASSIGNMENT,
                {"course_id": str(course_id), "lecturer_id": lecturer_id},
            ) from e

        await self.audit.record(
            actor_id,
            "course.lecturer_added",
            "course",
            course_id,
            {"lecturer_id": lecturer_id},
        )

    async def remove_lecturer(
        self,
        actor: UserModel | None,
        course_id: UUID,
        lecturer_id: str,
    ) -> None:
        """
        Unassign a lecturer from a course (admin only).

        The primary lecturer pointer moves to the next earliest link.

        Raises:
            NotFoundError: If the course or the assignment does not exist
        """
        await self.guard.require(actor, RoleIn.of(UserRole.ADMIN))
        actor_id = actor.id
        course = await self.get_course_or_404(course_id)

        removed = await course_lecturer_crud.remove_links(self.db, course_id, [lecturer_id])
        if not removed:
            raise NotFoundError(
                "course_lecturer",
                lecturer_id,
                message="Lecturer is not assigned to this course",
            )

        links = await course_lecturer_crud.list_links(self.db, course_id)
        course.lecturer_id = links[0].lecturer_id if links else None
        await self.db.commit()

        await self.audit.record(
            actor_id,
            "course.lecturer_removed",
            "course",
            course_id,
            {"lecturer_id": lecturer_id},
        )
