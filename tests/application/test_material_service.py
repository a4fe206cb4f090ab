"""
Test suite for MaterialService.

Covers upload validation and ordering against the blob store, the
download grant access matrix, deletion and metadata updates.

System role: Verification of the material and lecture-note manager
"""

from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from lms_backend.application.services.material_service import (
    MaterialService,
    build_storage_key,
    validate_upload,
)
from lms_backend.boundary.db.CRUD.course_crud import course_crud, course_lecturer_crud
from lms_backend.boundary.db.CRUD.enrollment_crud import enrollment_crud
from lms_backend.boundary.db.CRUD.material_crud import lecture_note_crud
from lms_backend.boundary.db.models.audit_log_model import AuditLogModel
from lms_backend.boundary.db.models.course_model import CourseModel
from lms_backend.core.exceptions import (
    ForbiddenError,
    NotFoundError,
    UnauthenticatedError,
    UpstreamFailureError,
    ValidationError,
)

PDF = "application/pdf"


@pytest.fixture
def service(test_async_db, audit, mock_store, storage_settings) -> MaterialService:
    return MaterialService(
        db=test_async_db,
        audit=audit,
        store=mock_store,
        settings=storage_settings,
    )


@pytest.fixture
async def course(test_async_db, lecturer) -> CourseModel:
    course = await course_crud.create(
        test_async_db,
        title="Networks",
        access_code="NET12345",
        lecturer_id=lecturer.id,
    )
    await course_lecturer_crud.add_links(test_async_db, course.id, [lecturer.id])
    await test_async_db.commit()
    return course


@pytest.fixture
async def material(service, lecturer, course):
    return await service.upload(
        lecturer, course.id, "week1.pdf", PDF, b"%PDF-1.4 lecture", "Week 1"
    )


async def count_actions(session_factory, action: str) -> int:
    async with session_factory() as session:
        result = await session.execute(
            select(AuditLogModel).where(AuditLogModel.action == action)
        )
        return len(result.scalars().all())


class TestUploadPolicy:
    """Tests for validate_upload() and build_storage_key()."""

    def test_accepts_pdf(self, storage_settings) -> None:
        validate_upload(storage_settings, "notes.PDF", PDF, 1024)

    def test_rejects_executable(self, storage_settings) -> None:
        with pytest.raises(ValidationError):
            validate_upload(storage_settings, "run.exe", "application/x-msdownload", 10)

    def test_rejects_mismatched_extension(self, storage_settings) -> None:
        with pytest.raises(ValidationError):
            validate_upload(storage_settings, "notes.zip", PDF, 10)

    def test_rejects_oversized_file(self, storage_settings) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_upload(storage_settings, "big.pdf", PDF, storage_settings.max_file_size + 1)

        assert exc_info.value.details["max_size"] == storage_settings.max_file_size

    def test_rejects_empty_file(self, storage_settings) -> None:
        with pytest.raises(ValidationError):
            validate_upload(storage_settings, "empty.pdf", PDF, 0)

    def test_storage_key_sanitizes_filename(self) -> None:
        key = build_storage_key("course-1", "../My Notes (v2).pdf")

        prefix, name = key.split("/", 1)
        assert prefix == "course-1"
        assert name.split("-", 1)[1] == "My_Notes_v2_.pdf"


class TestUpload:
    """Tests for MaterialService.upload()."""

    async def test_upload_writes_blob_then_metadata(
        self, service, lecturer, course, mock_store, session_factory
    ) -> None:
        # Act
        material = await service.upload(
            lecturer, course.id, "slides.pdf", PDF, b"data", "Slides", "Intro"
        )

        # Assert
        mock_store.upload.assert_awaited_once()
        data, key, content_type = mock_store.upload.await_args.args
        assert data == b"data"
        assert key.startswith(f"{course.id}/")
        assert material.file_path == key
        assert material.file_size == 4
        assert material.uploaded_by == lecturer.id
        assert await count_actions(session_factory, "material.uploaded") == 1

    async def test_disallowed_type_never_touches_store(
        self, service, lecturer, course, mock_store, test_async_db
    ) -> None:
        # Act
        with pytest.raises(ValidationError):
            await service.upload(
                lecturer, course.id, "tool.exe", "application/x-msdownload", b"MZ", "Tool"
            )

        # Assert
        mock_store.upload.assert_not_awaited()
        assert await lecture_note_crud.list_for_course(test_async_db, course.id) == []

    async def test_blank_title_rejected(self, service, lecturer, course, mock_store) -> None:
        with pytest.raises(ValidationError):
            await service.upload(lecturer, course.id, "a.pdf", PDF, b"x", "  ")

        mock_store.upload.assert_not_awaited()

    async def test_non_owner_cannot_upload(self, service, lecturer2, course, mock_store) -> None:
        with pytest.raises(ForbiddenError):
            await service.upload(lecturer2, course.id, "a.pdf", PDF, b"x", "A")

        mock_store.upload.assert_not_awaited()

    async def test_student_cannot_upload(self, service, student, course) -> None:
        with pytest.raises(ForbiddenError):
            await service.upload(student, course.id, "a.pdf", PDF, b"x", "A")

    async def test_store_failure_records_nothing(
        self, service, lecturer, course, mock_store, test_async_db
    ) -> None:
        # Arrange
        mock_store.upload.side_effect = UpstreamFailureError("S3 down", operation="upload")

        # Act
        with pytest.raises(UpstreamFailureError):
            await service.upload(lecturer, course.id, "a.pdf", PDF, b"x", "A")

        # Assert
        assert await lecture_note_crud.list_for_course(test_async_db, course.id) == []

    async def test_metadata_failure_deletes_written_blob(
        self, service, lecturer, course, mock_store, test_async_db, session_factory
    ) -> None:
        # Arrange
        course_id = course.id

        # Act
        with patch.object(
            lecture_note_crud, "create", AsyncMock(side_effect=SQLAlchemyError("insert failed"))
        ):
            with pytest.raises(UpstreamFailureError) as exc_info:
                await service.upload(lecturer, course_id, "a.pdf", PDF, b"x", "A")

        # Assert
        assert exc_info.value.details["operation"] == "record_metadata"
        _, key, _ = mock_store.upload.await_args.args
        mock_store.delete.assert_awaited_once_with(key)
        assert await lecture_note_crud.list_for_course(test_async_db, course_id) == []
        assert await count_actions(session_factory, "material.uploaded") == 0

    async def test_unknown_course_not_found(self, service, admin) -> None:
        with pytest.raises(NotFoundError):
            await service.upload(admin, uuid4(), "a.pdf", PDF, b"x", "A")


class TestDownloadGrant:
    """Tests for the download grant access matrix."""

    async def test_enrolled_student_receives_grant(
        self, service, material, student, course, test_async_db, mock_store, session_factory
    ) -> None:
        # Arrange
        await enrollment_crud.create(test_async_db, student_id=student.id, course_id=course.id)
        await test_async_db.commit()

        # Act
        grant = await service.get_download_grant(student, material.id)

        # Assert
        assert grant["url"] == "https://test-bucket.s3.amazonaws.com/signed"
        assert grant["expires_in"] == 900
        assert grant["title"] == "Week 1"
        assert grant["file_name"].endswith("week1.pdf")
        mock_store.signed_url.assert_awaited_once_with(material.file_path, 900)
        assert await count_actions(session_factory, "material.downloaded") == 1

    async def test_unenrolled_student_forbidden(self, service, material, student2, mock_store) -> None:
        with pytest.raises(ForbiddenError):
            await service.get_download_grant(student2, material.id)

        mock_store.signed_url.assert_not_awaited()

    async def test_assigned_lecturer_receives_grant(self, service, material, lecturer) -> None:
        grant = await service.get_download_grant(lecturer, material.id)

        assert grant["url"]

    async def test_unassigned_lecturer_forbidden(self, service, material, lecturer2) -> None:
        with pytest.raises(ForbiddenError):
            await service.get_download_grant(lecturer2, material.id)

    async def test_admin_receives_grant(self, service, material, admin) -> None:
        grant = await service.get_download_grant(admin, material.id)

        assert grant["title"] == "Week 1"

    async def test_anonymous_rejected(self, service, material) -> None:
        with pytest.raises(UnauthenticatedError):
            await service.get_download_grant(None, material.id)

    async def test_anonymous_unknown_material_is_unauthenticated(self, service) -> None:
        with pytest.raises(UnauthenticatedError):
            await service.get_download_grant(None, uuid4())

    async def test_unknown_material_not_found(self, service, admin) -> None:
        with pytest.raises(NotFoundError):
            await service.get_download_grant(admin, uuid4())


class TestDeleteAndUpdate:
    """Tests for MaterialService.delete() and update_material()."""

    async def test_delete_removes_blob_and_metadata(
        self, service, material, lecturer, mock_store, test_async_db
    ) -> None:
        await service.delete(lecturer, material.id)

        mock_store.delete.assert_awaited_once_with(material.file_path)
        assert await lecture_note_crud.get_by_id(test_async_db, material.id) is None

    async def test_delete_survives_blob_failure(
        self, service, material, admin, mock_store, test_async_db
    ) -> None:
        mock_store.delete.side_effect = UpstreamFailureError("gone", operation="delete")

        await service.delete(admin, material.id)

        assert await lecture_note_crud.get_by_id(test_async_db, material.id) is None

    async def test_student_cannot_delete(self, service, material, student) -> None:
        with pytest.raises(ForbiddenError):
            await service.delete(student, material.id)

    async def test_update_title(self, service, material, lecturer) -> None:
        updated = await service.update_material(lecturer, material.id, title=" Week One ")

        assert updated.title == "Week One"

    async def test_update_without_fields_rejected(self, service, material, lecturer) -> None:
        with pytest.raises(ValidationError):
            await service.update_material(lecturer, material.id)

    async def test_list_materials_for_enrolled_student(
        self, service, material, student, course, test_async_db
    ) -> None:
        await enrollment_crud.create(test_async_db, student_id=student.id, course_id=course.id)
        await test_async_db.commit()

        materials = await service.list_materials(student, course.id)

        assert [m.id for m in materials] == [material.id]
