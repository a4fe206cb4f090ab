"""
Curriculum ORM models.

Ordered course hours (modules), per-hour assignments, student
submissions and per-hour completion marks.

Dependencies: sqlalchemy, lms_backend.boundary.db.base
System role: Curriculum, assignment and progress persistence
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lms_backend.boundary.db.base import Base, TimestampMixin, UUIDMixin, utcnow


class CourseHourModel(Base, UUIDMixin, TimestampMixin):
    """
    Course hour (curriculum module) ORM model.

    Hours are read in ascending ``order_index``; the index is assigned by
    the caller and is not required to be contiguous.

    Attributes:
        course_id: Owning course (cascade delete)
        title: Hour title
        content: Optional body text
        order_index: Display and progress order within the course

    Relationships:
        assignments: AssignmentModel rows (cascade delete)
    """

    __tablename__ = "course_hours"

    course_id: Mapped[UUID] = mapped_column(
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    course = relationship("CourseModel", back_populates="hours", lazy="raise")
    assignments = relationship(
        "AssignmentModel",
        back_populates="hour",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="AssignmentModel.created_at",
        lazy="raise",
    )


class AssignmentModel(Base, UUIDMixin, TimestampMixin):
    """
    Assignment ORM model, belonging to exactly one course hour.

    Constraints:
        points: CHECK points >= 0
    """

    __tablename__ = "assignments"
    __table_args__ = (
        CheckConstraint("points >= 0", name="points_non_negative"),
    )

    hour_id: Mapped[UUID] = mapped_column(
        ForeignKey("course_hours.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    due_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
    )

    hour = relationship("CourseHourModel", back_populates="assignments", lazy="raise")


class AssignmentSubmissionModel(Base, UUIDMixin):
    """
    Assignment submission ORM model.

    One row per (assignment, student). Resubmitting overwrites
    ``file_path`` and ``submitted_at`` in place; grade and feedback are
    written only by grading.

    Attributes:
        assignment_id: Submitted assignment
        student_id: Submitting student
        file_path: Blob storage key of the submitted file
        grade: Nullable score in [0, assignment.points]
        feedback: Nullable grader feedback
        submitted_at: Last submission time
        graded_at: Last grading time
    """

    __tablename__ = "assignment_submissions"
    __table_args__ = (
        UniqueConstraint(
            "assignment_id",
            "student_id",
            name="uq_assignment_submissions_assignment_student",
        ),
    )

    assignment_id: Mapped[UUID] = mapped_column(
        ForeignKey("assignments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    student_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    file_path: Mapped[str] = mapped_column(String(1024), nullable=False)
    grade: Mapped[int | None] = mapped_column(Integer, nullable=True, default=None)
    feedback: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
    graded_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
    )


class CourseProgressModel(Base, UUIDMixin):
    """
    Course progress ORM model: one row per completed hour per student.

    Constraints:
        (student_id, course_id, hour_id): UNIQUE
    """

    __tablename__ = "course_progress"
    __table_args__ = (
        UniqueConstraint(
            "student_id",
            "course_id",
            "hour_id",
            name="uq_course_progress_student_course_hour",
        ),
    )

    student_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    course_id: Mapped[UUID] = mapped_column(
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
    )
    hour_id: Mapped[UUID] = mapped_column(
        ForeignKey("course_hours.id", ondelete="CASCADE"),
        nullable=False,
    )
    completed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
