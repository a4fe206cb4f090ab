"""
Course ORM models.

Courses, the authoritative course-lecturer assignment relation,
and student enrollments.

Dependencies: sqlalchemy, lms_backend.boundary.db.base
System role: Course, assignment and enrollment persistence
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    Integer,
    PrimaryKeyConstraint,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lms_backend.boundary.db.base import (
    Base,
    CreatedAtMixin,
    TimestampMixin,
    UUIDMixin,
    utcnow,
)


class CourseModel(Base, UUIDMixin, TimestampMixin):
    """
    Course ORM model.

    ``lecturer_id`` is a legacy single-owner pointer kept as a cached
    "first assigned lecturer". Authorization reads the CourseLecturer
    relation and only falls back to the pointer when no links exist.

    Attributes:
        id: UUID primary key (auto-generated)
        title: Course title
        description: Optional course description
        access_code: Self-enrollment code, unique case-insensitively
        lecturer_id: Legacy owner pointer (nullable)
        roll_no_start: Optional lower bound for enrolling roll numbers
        roll_no_end: Optional upper bound for enrolling roll numbers

    Relationships:
        lecturer_links: CourseLecturerModel rows (cascade delete)
        hours: CourseHourModel rows (cascade delete)
    """

    __tablename__ = "courses"

    title: Mapped[str] = mapped_column(String(200), nullable=False)

    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        default=None,
    )

    access_code: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        unique=True,
        doc="Access code for self-service enrollment",
    )

    lecturer_id: Mapped[str | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        default=None,
        doc="Legacy single-owner pointer (first assigned lecturer)",
    )

    roll_no_start: Mapped[int | None] = mapped_column(Integer, nullable=True, default=None)
    roll_no_end: Mapped[int | None] = mapped_column(Integer, nullable=True, default=None)

    # Relationships
    lecturer_links = relationship(
        "CourseLecturerModel",
        back_populates="course",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="raise",
    )
    hours = relationship(
        "CourseHourModel",
        back_populates="course",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="CourseHourModel.order_index",
        lazy="raise",
    )


class CourseLecturerModel(Base, CreatedAtMixin):
    """
    Course-lecturer join row.

    The composite primary key enforces one link per (course, lecturer).
    """

    __tablename__ = "course_lecturers"
    __table_args__ = (PrimaryKeyConstraint("course_id", "lecturer_id"),)

    course_id: Mapped[UUID] = mapped_column(
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
    )
    lecturer_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    course = relationship("CourseModel", back_populates="lecturer_links", lazy="raise")


class EnrollmentModel(Base, UUIDMixin):
    """
    Enrollment ORM model linking a student to a course.

    Constraints:
        (student_id, course_id): UNIQUE; a student cannot double-enroll
    """

    __tablename__ = "enrollments"
    __table_args__ = (
        UniqueConstraint("student_id", "course_id", name="uq_enrollments_student_course"),
    )

    student_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    course_id: Mapped[UUID] = mapped_column(
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    enrolled_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )


# Case-insensitive uniqueness for access codes
Index(
    "uq_courses_access_code_upper",
    func.upper(CourseModel.access_code),
    unique=True,
)
