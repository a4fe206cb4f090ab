"""
Lecture note (course material) ORM model.

Stores metadata for an uploaded document; the binary lives in blob
storage under ``file_path``.

Dependencies: sqlalchemy, lms_backend.boundary.db.base
System role: Course material metadata persistence
"""

from uuid import UUID

from sqlalchemy import BigInteger, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from lms_backend.boundary.db.base import Base, TimestampMixin, UUIDMixin


class LectureNoteModel(Base, UUIDMixin, TimestampMixin):
    """
    Lecture note ORM model.

    Attributes:
        course_id: Owning course (cascade delete)
        title: Display title
        description: Optional description
        file_path: Blob storage key ({course_id}/{timestamp}-{filename})
        file_size: Size in bytes
        content_type: MIME type accepted at upload
        uploaded_by: Uploading lecturer or admin (nullable once user is gone)
    """

    __tablename__ = "lecture_notes"

    course_id: Mapped[UUID] = mapped_column(
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    file_path: Mapped[str] = mapped_column(
        String(1024),
        nullable=False,
        unique=True,
        doc="Blob storage key",
    )
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    content_type: Mapped[str] = mapped_column(String(255), nullable=False)
    uploaded_by: Mapped[str | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
