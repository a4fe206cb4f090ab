"""
Base CRUD operations for SQLAlchemy models.

Generic create, read, update, delete and count operations shared by the
user, course, enrollment, curriculum, material and audit CRUD classes.

Dependencies: sqlalchemy
System role: Foundation for all database CRUD operations
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from lms_backend.boundary.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseCRUD(Generic[ModelT]):
    """
    Generic base class for CRUD operations.

    Every CRUD singleton in this package wraps one model through this
    class. Methods flush but never commit; services own the transaction
    and commit at each durable step.

    Type Parameters:
        ModelT: SQLAlchemy model class inheriting from Base

    Attributes:
        model: The SQLAlchemy model class to operate on
    """

    def __init__(self, model: type[ModelT]) -> None:
        """
        Initialize CRUD with target model.

        Args:
            model: SQLAlchemy model class for database operations
        """
        self.model = model

    async def create(self, session: AsyncSession, **kwargs) -> ModelT:
        """
        Create a new record in the database.

        Args:
            session: Async database session
            **kwargs: Model field values

        Returns:
            Created model instance with generated ID and timestamps
        """
        instance = self.model(**kwargs)
        session.add(instance)
        await session.flush()
        await session.refresh(instance)
        return instance

    async def get_by_id(self, session: AsyncSession, id: Any) -> ModelT | None:
        """
        Retrieve a single record by primary key.

        Args:
            session: Async database session
            id: Primary key (UUID for course data, provider id for users)

        Returns:
            Model instance if found, None otherwise
        """
        stmt = select(self.model).where(self.model.id == id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def update_by_id(
        self,
        session: AsyncSession,
        id: Any,
        **kwargs,
    ) -> ModelT | None:
        """
        Update a record by primary key.

        Args:
            session: Async database session
            id: Primary key (UUID for course data, provider id for users)
            **kwargs: Fields to update with new values

        Returns:
            Updated model instance if found, None otherwise
        """
        stmt = (
            update(self.model)
            .where(self.model.id == id)
            .values(**kwargs)
            .returning(self.model)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def delete_by_id(self, session: AsyncSession, id: Any) -> bool:
        """
        Delete a record by primary key.

        Args:
            session: Async database session
            id: Primary key (UUID for course data, provider id for users)

        Returns:
            True if record was deleted, False if not found
        """
        stmt = delete(self.model).where(self.model.id == id)
        result = await session.execute(stmt)
        return result.rowcount > 0

    async def count(self, session: AsyncSession, *criteria) -> int:
        """
        Count records, optionally filtered by column criteria.

        Args:
            session: Async database session
            *criteria: SQLAlchemy filter expressions

        Returns:
            Number of matching records
        """
        stmt = select(func.count()).select_from(self.model)
        if criteria:
            stmt = stmt.where(*criteria)
        result = await session.execute(stmt)
        return int(result.scalar_one())

    async def exists(self, session: AsyncSession, id: Any) -> bool:
        """
        Check if a record exists by primary key.

        Args:
            session: Async database session
            id: Primary key (UUID for course data, provider id for users)

        Returns:
            True if record exists, False otherwise
        """
        stmt = select(self.model.id).where(self.model.id == id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None
