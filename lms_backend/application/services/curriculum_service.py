"""
Curriculum and assignment tracker.

Ordered course hours, per-hour assignments, student submissions with
upsert semantics, grading, and idempotent progress marks.

Resubmission replaces the stored file and submission time; any grade and
feedback already given are kept until the submission is graded again.

Dependencies: sqlalchemy, lms_backend.boundary.db.CRUD, lms_backend.boundary.aws
System role: Curriculum use case orchestration
"""

import logging
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lms_backend.application.services.audit_service import AuditService
from lms_backend.application.services.material_service import (
    build_storage_key,
    validate_upload,
)
from lms_backend.boundary.aws.s3_client import S3MaterialStore
from lms_backend.boundary.db.base import utcnow
from lms_backend.boundary.db.CRUD.course_crud import course_crud
from lms_backend.boundary.db.CRUD.curriculum_crud import (
    assignment_crud,
    course_hour_crud,
    progress_crud,
    submission_crud,
)
from lms_backend.boundary.db.models.course_model import CourseModel
from lms_backend.boundary.db.models.curriculum_model import (
    AssignmentModel,
    AssignmentSubmissionModel,
    CourseHourModel,
    CourseProgressModel,
)
from lms_backend.boundary.db.models.user_model import UserModel, UserRole
from lms_backend.configs.storage import StorageSettings
from lms_backend.core.access_control import (
    STAFF_ROLES,
    AccessControlGuard,
    AnyOf,
    CourseEnrollment,
    CourseOwnership,
    RoleIn,
)
from lms_backend.core.exceptions import (
    NotFoundError,
    UpstreamFailureError,
    ValidationError,
)
from lms_backend.observability.log_utils import log_exception_with_context

logger = logging.getLogger(__name__)


class CurriculumService:
    """Curriculum and assignment tracker."""

    def __init__(
        self,
        db: AsyncSession,
        audit: AuditService,
        store: S3MaterialStore,
        settings: StorageSettings,
    ) -> None:
        """
        Initialize curriculum service.

        Args:
            db: Async SQLAlchemy session
            audit: Audit logger
            store: Blob store for submission files
            settings: Storage policy for submission files
        """
        self.db = db
        self.audit = audit
        self.store = store
        self.settings = settings
        self.guard = AccessControlGuard(db)

    # ------------------------------------------------------------------ #
    # Lookups
    # ------------------------------------------------------------------ #

    async def _get_course(self, course_id: UUID) -> CourseModel:
        course = await course_crud.get_by_id(self.db, course_id)
        if course is None:
            raise NotFoundError("course", course_id)
        return course

    async def _get_hour(self, hour_id: UUID) -> tuple[CourseHourModel, CourseModel]:
        hour = await course_hour_crud.get_by_id(self.db, hour_id)
        if hour is None:
            raise NotFoundError("course_hour", hour_id)
        return hour, await self._get_course(hour.course_id)

    async def _get_assignment(self, assignment_id: UUID) -> tuple[AssignmentModel, CourseModel]:
        assignment = await assignment_crud.get_with_hour(self.db, assignment_id)
        if assignment is None:
            raise NotFoundError("assignment", assignment_id)
        return assignment, await self._get_course(assignment.hour.course_id)

    async def _require_owner(self, actor: UserModel | None, course: CourseModel) -> None:
        await self.guard.require(actor, RoleIn(STAFF_ROLES))
        await self.guard.require(actor, CourseOwnership(course))

    async def _require_member(self, actor: UserModel | None, course: CourseModel) -> None:
        await self.guard.require(
            actor,
            AnyOf((CourseEnrollment(course.id), CourseOwnership(course))),
        )

    # ------------------------------------------------------------------ #
    # Course hours
    # ------------------------------------------------------------------ #

    async def list_hours(self, actor: UserModel | None, course_id: UUID) -> list[CourseHourModel]:
        """
        Hours of a course in ascending order_index, assignments included.

        Raises:
            NotFoundError: If the course does not exist
            ForbiddenError: If actor is neither enrolled nor owner
        """
        self.guard.require_authenticated(actor)
        course = await self._get_course(course_id)
        await self._require_member(actor, course)
        return list(await course_hour_crud.list_for_course(self.db, course_id))

    async def create_hour(
        self,
        actor: UserModel | None,
        course_id: UUID,
        title: str,
        content: str | None = None,
        order_index: int | None = None,
    ) -> CourseHourModel:
        """
        Add an hour to a course.

        Args:
            actor: Course owner or admin
            course_id: Course UUID
            title: Hour title
            content: Optional body
            order_index: Position; defaults to one past the current last hour

        Returns:
            CourseHourModel: Created hour
        """
        self.guard.require_authenticated(actor)
        course = await self._get_course(course_id)
        await self._require_owner(actor, course)
        actor_id = actor.id

        title = (title or "").strip()
        if not title:
            raise ValidationError("Title is required", field="title")
        if order_index is None:
            order_index = await course_hour_crud.next_order_index(self.db, course_id)
        elif order_index < 0:
            raise ValidationError("order_index must be non-negative", field="order_index")

        hour = await course_hour_crud.create(
            self.db,
            course_id=course_id,
            title=title,
            content=content,
            order_index=order_index,
        )
        await self.db.commit()

        await self.audit.record(
            actor_id,
            "course_hour.created",
            "course_hour",
            hour.id,
            {"course_id": course_id, "title": title, "order_index": order_index},
        )
        return hour

    async def update_hour(
        self,
        actor: UserModel | None,
        hour_id: UUID,
        title: str | None = None,
        content: str | None = None,
        order_index: int | None = None,
    ) -> CourseHourModel:
        """
        Update an hour's title, content or position (owner or admin).

        Raises:
            NotFoundError: If the hour does not exist
            ValidationError: If nothing to update or a value is invalid
        """
        self.guard.require_authenticated(actor)
        hour, course = await self._get_hour(hour_id)
        await self._require_owner(actor, course)
        actor_id = actor.id

        changes: dict[str, Any] = {}
        if title is not None:
            if not title.strip():
                raise ValidationError("Title cannot be empty", field="title")
            changes["title"] = title.strip()
        if content is not None:
            changes["content"] = content
        if order_index is not None:
            if order_index < 0:
                raise ValidationError("order_index must be non-negative", field="order_index")
            changes["order_index"] = order_index
        if not changes:
            raise ValidationError("No fields to update")

        for field_name, value in changes.items():
            setattr(hour, field_name, value)
        await self.db.flush()
        await self.db.commit()

        await self.audit.record(actor_id, "course_hour.updated", "course_hour", hour_id, changes)
        return hour

    async def delete_hour(self, actor: UserModel | None, hour_id: UUID) -> None:
        """
        Delete an hour with its assignments and progress marks (owner or admin).

        Raises:
            NotFoundError: If the hour does not exist
        """
        self.guard.require_authenticated(actor)
        hour, course = await self._get_hour(hour_id)
        await self._require_owner(actor, course)
        actor_id = actor.id
        metadata = {"course_id": course.id, "title": hour.title}

        await course_hour_crud.delete_by_id(self.db, hour_id)
        await self.db.commit()

        await self.audit.record(actor_id, "course_hour.deleted", "course_hour", hour_id, metadata)

    # ------------------------------------------------------------------ #
    # Assignments, submissions, grading
    # ------------------------------------------------------------------ #

    async def create_assignment(
        self,
        actor: UserModel | None,
        hour_id: UUID,
        title: str,
        description: str | None = None,
        points: int = 100,
        due_date: datetime | None = None,
    ) -> AssignmentModel:
        """
        Add an assignment to a course hour (owner or admin).

        Raises:
            NotFoundError: If the hour does not exist
            ValidationError: If title is blank or points negative
        """
        self.guard.require_authenticated(actor)
        hour, course = await self._get_hour(hour_id)
        await self._require_owner(actor, course)
        actor_id = actor.id

        title = (title or "").strip()
        if not title:
            raise ValidationError("Title is required", field="title")
        if points < 0:
            raise ValidationError("Points must be non-negative", field="points")

        assignment = await assignment_crud.create(
            self.db,
            hour_id=hour_id,
            title=title,
            description=description,
            points=points,
            due_date=due_date,
        )
        await self.db.commit()

        await self.audit.record(
            actor_id,
            "assignment.created",
            "assignment",
            assignment.id,
            {"hour_id": hour_id, "course_id": course.id, "title": title, "points": points},
        )
        return assignment

    async def submit_assignment(
        self,
        actor: UserModel | None,
        assignment_id: UUID,
        filename: str,
        content_type: str | None,
        data: bytes,
    ) -> AssignmentSubmissionModel:
        """
        Submit (or resubmit) a file for an assignment.

        One submission row exists per (assignment, student). Resubmitting
        replaces file_path and submitted_at and keeps grade and feedback.
        The previous file is removed from storage on a best-effort basis.

        Args:
            actor: Enrolled student
            assignment_id: Assignment UUID
            filename: Client filename
            content_type: Client MIME type
            data: File contents

        Returns:
            AssignmentSubmissionModel: Stored submission

        Raises:
            NotFoundError: If the assignment does not exist
            ForbiddenError: If actor is not an enrolled student
            ValidationError: If the file is not allowed
            UpstreamFailureError: If storage or the database write fails
        """
        await self.guard.require(actor, RoleIn.of(UserRole.STUDENT))
        assignment, course = await self._get_assignment(assignment_id)
        await self.guard.require(actor, CourseEnrollment(course.id))
        student_id = actor.id
        course_id = course.id

        validate_upload(self.settings, filename, content_type, len(data))
        key = build_storage_key(f"assignments/{assignment_id}/{student_id}", filename)
        await self.store.upload(data, key, content_type)

        previous_path: str | None = None
        try:
            submission = await submission_crud.get_by_assignment_student(
                self.db, assignment_id, student_id
            )
            if submission is None:
                try:
                    submission = await submission_crud.create(
                        self.db,
                        assignment_id=assignment_id,
                        student_id=student_id,
                        file_path=key,
                        submitted_at=utcnow(),
                    )
                    await self.db.commit()
                except IntegrityError:
                    # A concurrent first submission won; fall through to update it
                    await self.db.rollback()
                    submission = await submission_crud.get_by_assignment_student(
                        self.db, assignment_id, student_id
                    )
                    if submission is None:
                        raise
            if submission.file_path != key:
                previous_path = submission.file_path
                submission.file_path = key
                submission.submitted_at = utcnow()
                await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            try:
                await self.store.delete(key)
            except UpstreamFailureError as cleanup_error:
                log_exception_with_context(
                    logger, "Failed to remove blob after submission error", cleanup_error, s3_key=key
                )
            raise UpstreamFailureError("Failed to record submission", operation="record_submission") from e

        if previous_path:
            try:
                await self.store.delete(previous_path)
            except UpstreamFailureError as e:
                log_exception_with_context(
                    logger, "Failed to remove replaced submission file", e, s3_key=previous_path
                )

        await self.audit.record(
            student_id,
            "assignment.submitted",
            "assignment_submission",
            submission.id,
            {
                "assignment_id": assignment_id,
                "course_id": course_id,
                "resubmission": previous_path is not None,
            },
        )
        return submission

    async def list_submissions(
        self,
        actor: UserModel | None,
        assignment_id: UUID,
    ) -> list[dict[str, Any]]:
        """
        Submissions for an assignment with student info (owner or admin).

        Raises:
            NotFoundError: If the assignment does not exist
        """
        self.guard.require_authenticated(actor)
        assignment, course = await self._get_assignment(assignment_id)
        await self._require_owner(actor, course)

        rows = await submission_crud.list_for_assignment(self.db, assignment_id)
        return [
            {
                "id": submission.id,
                "assignment_id": submission.assignment_id,
                "student_id": submission.student_id,
                "student_name": student.name,
                "student_email": student.email,
                "file_path": submission.file_path,
                "grade": submission.grade,
                "feedback": submission.feedback,
                "submitted_at": submission.submitted_at,
                "graded_at": submission.graded_at,
            }
            for submission, student in rows
        ]

    async def grade_submission(
        self,
        actor: UserModel | None,
        submission_id: UUID,
        grade: int,
        feedback: str | None = None,
    ) -> AssignmentSubmissionModel:
        """
        Grade a submission.

        Args:
            actor: Lecturer owning the course, or admin
            submission_id: Submission UUID
            grade: Score, must satisfy 0 <= grade <= assignment.points
            feedback: Optional feedback text

        Returns:
            AssignmentSubmissionModel: Graded submission

        Raises:
            NotFoundError: If the submission does not exist
            ForbiddenError: If actor may not grade this course
            ValidationError: If grade is out of range
        """
        await self.guard.require(actor, RoleIn(STAFF_ROLES))
        submission = await submission_crud.get_by_id(self.db, submission_id)
        if submission is None:
            raise NotFoundError("submission", submission_id)
        assignment, course = await self._get_assignment(submission.assignment_id)
        await self.guard.require(actor, CourseOwnership(course))
        actor_id = actor.id

        if grade < 0 or grade > assignment.points:
            raise ValidationError(
                f"Grade must be between 0 and {assignment.points}",
                field="grade",
                details={"grade": grade, "points": assignment.points},
            )

        submission.grade = grade
        submission.feedback = feedback
        submission.graded_at = utcnow()
        await self.db.commit()

        await self.audit.record(
            actor_id,
            "submission.graded",
            "assignment_submission",
            submission_id,
            {"assignment_id": assignment.id, "student_id": submission.student_id, "grade": grade},
        )
        return submission

    # ------------------------------------------------------------------ #
    # Progress
    # ------------------------------------------------------------------ #

    async def mark_hour_complete(
        self,
        actor: UserModel | None,
        course_id: UUID,
        hour_id: UUID,
    ) -> CourseProgressModel:
        """
        Mark an hour as completed by the actor. Idempotent.

        A repeat call returns the existing mark; only a newly inserted mark
        is audited.

        Raises:
            NotFoundError: If the course or hour does not exist, or the hour
                belongs to another course
            ForbiddenError: If actor is not enrolled
        """
        self.guard.require_authenticated(actor)
        course = await self._get_course(course_id)
        await self.guard.require(actor, CourseEnrollment(course.id))
        student_id = actor.id

        hour = await course_hour_crud.get_by_id(self.db, hour_id)
        if hour is None or hour.course_id != course_id:
            raise NotFoundError("course_hour", hour_id)

        existing = await progress_crud.get_mark(self.db, student_id, course_id, hour_id)
        if existing is not None:
            return existing

        try:
            mark = await progress_crud.create(
                self.db,
                student_id=student_id,
                course_id=course_id,
                hour_id=hour_id,
            )
            await self.db.commit()
        except IntegrityError:
            # Concurrent duplicate: already complete
            await self.db.rollback()
            mark = await progress_crud.get_mark(self.db, student_id, course_id, hour_id)
            if mark is None:
                raise
            return mark

        await self.audit.record(
            student_id,
            "progress.completed",
            "course_hour",
            hour_id,
            {"course_id": course_id},
        )
        return mark

    async def get_progress(self, actor: UserModel | None, course_id: UUID) -> dict[str, Any]:
        """
        Completed hours of the actor in a course.

        Returns:
            dict: course_id, completed_hour_ids, completed_count, total_hours
        """
        self.guard.require_authenticated(actor)
        course = await self._get_course(course_id)
        await self.guard.require(actor, CourseEnrollment(course.id))

        marks = await progress_crud.list_for_student_course(self.db, actor.id, course_id)
        total = await course_hour_crud.count(self.db, CourseHourModel.course_id == course_id)
        return {
            "course_id": course_id,
            "completed_hour_ids": [m.hour_id for m in marks],
            "completed_count": len(marks),
            "total_hours": total,
        }
