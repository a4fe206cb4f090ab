"""
Material and lecture-note manager.

Uploads course materials to blob storage and records their metadata,
issues time-limited download grants, and removes materials.

Upload ordering: validate, write the blob, then insert metadata. If the
metadata insert fails the blob is deleted again.

Dependencies: sqlalchemy, lms_backend.boundary.aws, lms_backend.boundary.db.CRUD
System role: Course material use case orchestration
"""

import logging
import os
import re
import time
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from lms_backend.application.services.audit_service import AuditService
from lms_backend.boundary.aws.s3_client import S3MaterialStore
from lms_backend.boundary.db.CRUD.course_crud import course_crud
from lms_backend.boundary.db.CRUD.material_crud import lecture_note_crud
from lms_backend.boundary.db.models.course_model import CourseModel
from lms_backend.boundary.db.models.material_model import LectureNoteModel
from lms_backend.boundary.db.models.user_model import UserModel
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
from lms_backend.observability.log_utils import log_exception_with_context, log_with_context

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def validate_upload(
    settings: StorageSettings,
    filename: str,
    content_type: str | None,
    size: int,
) -> None:
    """
    Validate an uploaded file against the storage policy.

    Args:
        settings: Storage settings (allowed types, extensions, max size)
        filename: Client-supplied filename
        content_type: Client-supplied MIME type
        size: File size in bytes

    Raises:
        ValidationError: If type, extension or size is not allowed
    """
    if not filename:
        raise ValidationError("File is required", field="file")
    extension = os.path.splitext(filename)[1].lower()
    if (content_type or "") not in settings.allowed_content_types:
        raise ValidationError(
            "File type is not allowed",
            field="file",
            details={"content_type": content_type},
        )
    if extension not in settings.allowed_extensions:
        raise ValidationError(
            "File extension is not allowed",
            field="file",
            details={"extension": extension},
        )
    if size <= 0:
        raise ValidationError("File is empty", field="file")
    if size > settings.max_file_size:
        raise ValidationError(
            f"File exceeds the maximum size of {settings.max_file_size // (1024 * 1024)} MB",
            field="file",
            details={"size": size, "max_size": settings.max_file_size},
        )


def build_storage_key(prefix: str, filename: str) -> str:
    """Storage key "{prefix}/{epoch_ms}-{sanitized filename}"."""
    safe_name = _UNSAFE_FILENAME_CHARS.sub("_", os.path.basename(filename)).strip("._") or "file"
    return f"{prefix}/{int(time.time() * 1000)}-{safe_name}"


class MaterialService:
    """Material and lecture-note manager."""

    def __init__(
        self,
        db: AsyncSession,
        audit: AuditService,
        store: S3MaterialStore,
        settings: StorageSettings,
    ) -> None:
        """
        Initialize material service.

        Args:
            db: Async SQLAlchemy session
            audit: Audit logger
            store: Blob store for material files
            settings: Storage policy and signed URL expiry
        """
        self.db = db
        self.audit = audit
        self.store = store
        self.settings = settings
        self.guard = AccessControlGuard(db)

    async def _get_course(self, course_id: UUID) -> CourseModel:
        course = await course_crud.get_by_id(self.db, course_id)
        if course is None:
            raise NotFoundError("course", course_id)
        return course

    async def _get_material(self, material_id: UUID) -> tuple[LectureNoteModel, CourseModel]:
        material = await lecture_note_crud.get_by_id(self.db, material_id)
        if material is None:
            raise NotFoundError("material", material_id)
        return material, await self._get_course(material.course_id)

    async def _require_owner(self, actor: UserModel | None, course: CourseModel) -> None:
        await self.guard.require(actor, RoleIn(STAFF_ROLES))
        await self.guard.require(actor, CourseOwnership(course))

    async def upload(
        self,
        actor: UserModel | None,
        course_id: UUID,
        filename: str,
        content_type: str | None,
        data: bytes,
        title: str,
        description: str | None = None,
    ) -> LectureNoteModel:
        """
        Upload a material file and record its metadata.

        Args:
            actor: Requesting lecturer (course owner) or admin
            course_id: Target course UUID
            filename: Client filename
            content_type: Client MIME type
            data: File contents
            title: Display title
            description: Optional description

        Returns:
            LectureNoteModel: Recorded material

        Raises:
            ForbiddenError: If actor may not manage the course
            ValidationError: If the file or title is invalid (no blob written)
            UpstreamFailureError: If blob storage or the metadata insert fails
        """
        await self.guard.require(actor, RoleIn(STAFF_ROLES))
        course = await self._get_course(course_id)
        await self.guard.require(actor, CourseOwnership(course))
        actor_id = actor.id

        title = (title or "").strip()
        if not title:
            raise ValidationError("Title is required", field="title")
        validate_upload(self.settings, filename, content_type, len(data))

        key = build_storage_key(str(course_id), filename)
        await self.store.upload(data, key, content_type)

        try:
            material = await lecture_note_crud.create(
                self.db,
                course_id=course_id,
                title=title,
                description=description,
                file_path=key,
                file_size=len(data),
                content_type=content_type,
                uploaded_by=actor_id,
            )
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            try:
                await self.store.delete(key)
            except UpstreamFailureError as cleanup_error:
                log_exception_with_context(
                    logger, "Failed to remove blob after metadata error", cleanup_error, s3_key=key
                )
            log_exception_with_context(
                logger, "Material metadata insert failed", e, course_id=course_id, s3_key=key
            )
            raise UpstreamFailureError(
                "Failed to save material", operation="record_metadata"
            ) from e

        log_with_context(
            logger,
            logging.INFO,
            "Material uploaded",
            material_id=material.id,
            course_id=course_id,
            size_bytes=len(data),
        )
        await self.audit.record(
            actor_id,
            "material.uploaded",
            "lecture_note",
            material.id,
            {"course_id": course_id, "title": title, "file_size": len(data)},
        )
        return material

    async def get_download_grant(self, actor: UserModel | None, material_id: UUID) -> dict[str, Any]:
        """
        Issue a time-limited download URL for a material.

        Allowed for enrolled students, course lecturers and admins. Every
        grant is audited.

        Args:
            actor: Requesting user
            material_id: Material UUID

        Returns:
            dict: url, expires_at, expires_in, title, file_name

        Raises:
            NotFoundError: If the material does not exist
            ForbiddenError: If actor is neither enrolled nor owner
            UpstreamFailureError: If URL signing fails
        """
        self.guard.require_authenticated(actor)
        material, course = await self._get_material(material_id)
        await self.guard.require(
            actor,
            AnyOf((CourseEnrollment(course.id), CourseOwnership(course))),
        )
        actor_id = actor.id

        expires_in = self.settings.signed_url_expiry
        url, expires_at = await self.store.signed_url(material.file_path, expires_in)

        await self.audit.record(
            actor_id,
            "material.downloaded",
            "lecture_note",
            material_id,
            {"course_id": course.id, "title": material.title},
        )
        return {
            "url": url,
            "expires_at": expires_at,
            "expires_in": expires_in,
            "title": material.title,
            "file_name": material.file_path.rsplit("/", 1)[-1],
        }

    async def delete(self, actor: UserModel | None, material_id: UUID) -> None:
        """
        Delete a material's blob and metadata.

        A failed blob delete is logged and the metadata is removed anyway.

        Raises:
            NotFoundError: If the material does not exist
            ForbiddenError: If actor may not manage the course
        """
        self.guard.require_authenticated(actor)
        material, course = await self._get_material(material_id)
        await self._require_owner(actor, course)
        actor_id = actor.id
        file_path = material.file_path
        metadata = {"course_id": course.id, "title": material.title}

        try:
            await self.store.delete(file_path)
        except UpstreamFailureError as e:
            log_exception_with_context(
                logger, "Blob delete failed; removing metadata anyway", e, s3_key=file_path
            )

        await lecture_note_crud.delete_by_id(self.db, material_id)
        await self.db.commit()

        await self.audit.record(
            actor_id,
            "material.deleted",
            "lecture_note",
            material_id,
            metadata,
        )

    async def list_materials(self, actor: UserModel | None, course_id: UUID) -> list[LectureNoteModel]:
        """
        Materials of a course, newest first (enrolled, owner or admin).

        Raises:
            NotFoundError: If the course does not exist
        """
        self.guard.require_authenticated(actor)
        course = await self._get_course(course_id)
        await self.guard.require(
            actor,
            AnyOf((CourseEnrollment(course.id), CourseOwnership(course))),
        )
        return list(await lecture_note_crud.list_for_course(self.db, course_id))

    async def update_material(
        self,
        actor: UserModel | None,
        material_id: UUID,
        title: str | None = None,
        description: str | None = None,
    ) -> LectureNoteModel:
        """
        Update a material's title or description (owner or admin).

        Raises:
            NotFoundError: If the material does not exist
            ValidationError: If nothing to update or the title is blank
        """
        self.guard.require_authenticated(actor)
        material, course = await self._get_material(material_id)
        await self._require_owner(actor, course)
        actor_id = actor.id

        changes: dict[str, Any] = {}
        if title is not None:
            if not title.strip():
                raise ValidationError("Title cannot be empty", field="title")
            changes["title"] = title.strip()
        if description is not None:
            changes["description"] = description
        if not changes:
            raise ValidationError("No fields to update")

        material = await lecture_note_crud.update_by_id(self.db, material_id, **changes)
        await self.db.commit()

        await self.audit.record(actor_id, "material.updated", "lecture_note", material_id, changes)
        return material
