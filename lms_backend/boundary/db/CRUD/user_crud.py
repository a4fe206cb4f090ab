"""
User and student profile CRUD operations.

Dependencies: sqlalchemy, lms_backend.boundary.db.models
System role: Identity and profile persistence operations
"""

from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lms_backend.boundary.db.CRUD.base_crud import BaseCRUD
from lms_backend.boundary.db.models.user_model import (
    StudentProfileModel,
    UserModel,
    UserRole,
)


class UserCRUD(BaseCRUD[UserModel]):
    """CRUD operations for UserModel (keyed by external identity ID)."""

    def __init__(self) -> None:
        """Initialize UserCRUD with UserModel."""
        super().__init__(UserModel)

    async def get_by_email(self, session: AsyncSession, email: str) -> UserModel | None:
        """
        Retrieve a user by primary email.

        Args:
            session: Async database session
            email: Email address

        Returns:
            UserModel if found, None otherwise
        """
        stmt = select(UserModel).where(UserModel.email == email)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_users(
        self,
        session: AsyncSession,
        role: UserRole | None = None,
    ) -> Sequence[UserModel]:
        """
        List users, newest first, optionally filtered by role.

        Args:
            session: Async database session
            role: Optional role filter

        Returns:
            Sequence of UserModels
        """
        stmt = select(UserModel).order_by(UserModel.created_at.desc())
        if role is not None:
            stmt = stmt.where(UserModel.role == role)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def list_by_roles(
        self,
        session: AsyncSession,
        roles: Sequence[UserRole],
    ) -> Sequence[UserModel]:
        """Users whose role is in ``roles``, ordered by name."""
        stmt = select(UserModel).where(UserModel.role.in_(roles)).order_by(UserModel.name)
        result = await session.execute(stmt)
        return result.scalars().all()


class StudentProfileCRUD(BaseCRUD[StudentProfileModel]):
    """CRUD operations for StudentProfileModel."""

    def __init__(self) -> None:
        """Initialize StudentProfileCRUD with StudentProfileModel."""
        super().__init__(StudentProfileModel)

    async def get_by_user_id(
        self,
        session: AsyncSession,
        user_id: str,
    ) -> StudentProfileModel | None:
        """
        Retrieve the profile owned by a user.

        Args:
            session: Async database session
            user_id: Owning user ID

        Returns:
            StudentProfileModel if the user has one, None otherwise
        """
        stmt = select(StudentProfileModel).where(StudentProfileModel.user_id == user_id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_roll_no(
        self,
        session: AsyncSession,
        roll_no: str,
    ) -> StudentProfileModel | None:
        stmt = select(StudentProfileModel).where(StudentProfileModel.roll_no == roll_no)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_with_users(
        self,
        session: AsyncSession,
    ) -> Sequence[tuple[StudentProfileModel, UserModel]]:
        """
        List all profiles joined with their users, ordered by roll number.

        Args:
            session: Async database session

        Returns:
            Sequence of (profile, user) rows
        """
        stmt = (
            select(StudentProfileModel, UserModel)
            .join(UserModel, UserModel.id == StudentProfileModel.user_id)
            .order_by(StudentProfileModel.roll_no)
        )
        result = await session.execute(stmt)
        return [tuple(row) for row in result.all()]


user_crud = UserCRUD()
student_profile_crud = StudentProfileCRUD()
