"""
User and student profile ORM models.

Local mirror of identities issued by the external identity provider,
carrying the role that gates every operation, plus the 1:1 student
profile filled in during onboarding.

Dependencies: sqlalchemy, lms_backend.boundary.db.base
System role: Identity and role persistence
"""

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lms_backend.boundary.db.base import Base, TimestampMixin, UUIDMixin


class UserRole(str, enum.Enum):
    """
    Closed set of application roles.

    STUDENT: Default role for newly provisioned users
    LECTURER: May create courses and manage the courses assigned to them
    ADMIN: Satisfies every ownership and enrollment check
    """

    STUDENT = "student"
    LECTURER = "lecturer"
    ADMIN = "admin"


class UserModel(Base, TimestampMixin):
    """
    User ORM model keyed by the identity provider's opaque user ID.

    Users are provisioned lazily on first authentication (role = student)
    or by the admin sync tool. They are never hard-deleted.

    Attributes:
        id: External identity provider user ID (primary key)
        email: Unique primary email
        name: Display name
        role: UserRole, mutable only by an admin
        profile: Optional StudentProfileModel (students only)
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)

    email: Mapped[str] = mapped_column(
        String(320),
        nullable=False,
        unique=True,
        doc="Primary email from the identity provider",
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    role: Mapped[UserRole] = mapped_column(
        Enum(
            UserRole,
            native_enum=False,
            length=16,
            values_callable=lambda roles: [r.value for r in roles],
        ),
        nullable=False,
        default=UserRole.STUDENT,
        index=True,
    )

    profile = relationship(
        "StudentProfileModel",
        back_populates="user",
        uselist=False,
        lazy="raise",
    )


class StudentProfileModel(Base, UUIDMixin, TimestampMixin):
    """
    Student profile ORM model (1:1 with a student user).

    Attributes:
        user_id: Owning user (unique)
        roll_no: Institution roll number, unique across profiles when set
        school: School name
        branch: Branch / class
        section: Section within the branch
        onboarding_completed_at: Null until onboarding has been completed
    """

    __tablename__ = "student_profiles"

    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    roll_no: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        unique=True,
        doc="Roll number; NULL until onboarding",
    )

    school: Mapped[str | None] = mapped_column(String(255), nullable=True)
    branch: Mapped[str | None] = mapped_column(String(100), nullable=True)
    section: Mapped[str | None] = mapped_column(String(50), nullable=True)

    onboarding_completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
    )

    user = relationship("UserModel", back_populates="profile", lazy="raise")
