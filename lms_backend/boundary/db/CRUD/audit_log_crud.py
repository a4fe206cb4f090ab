"""
Audit log CRUD operations.

Read-side queries over the append-only audit trail. Writes go through
BaseCRUD.create only; there is no update or delete path in application code.

Dependencies: sqlalchemy, lms_backend.boundary.db.models
System role: Audit trail persistence operations
"""

from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lms_backend.boundary.db.CRUD.base_crud import BaseCRUD
from lms_backend.boundary.db.models.audit_log_model import AuditLogModel


class AuditLogCRUD(BaseCRUD[AuditLogModel]):
    """CRUD operations for AuditLogModel."""

    def __init__(self) -> None:
        """Initialize AuditLogCRUD with AuditLogModel."""
        super().__init__(AuditLogModel)

    async def list_recent(
        self,
        session: AsyncSession,
        limit: int = 50,
        offset: int = 0,
        user_id: str | None = None,
        action: str | None = None,
    ) -> Sequence[AuditLogModel]:
        """
        Audit entries newest first, optionally filtered.

        Args:
            session: Async database session
            limit: Maximum number of entries
            offset: Number of entries to skip
            user_id: Only entries by this user
            action: Only entries with this action

        Returns:
            Sequence of AuditLogModels
        """
        stmt = select(AuditLogModel)
        if user_id is not None:
            stmt = stmt.where(AuditLogModel.user_id == user_id)
        if action is not None:
            stmt = stmt.where(AuditLogModel.action == action)
        stmt = (
            stmt.order_by(AuditLogModel.created_at.desc(), AuditLogModel.id)
            .offset(offset)
            .limit(limit)
        )
        result = await session.execute(stmt)
        return result.scalars().all()


audit_log_crud = AuditLogCRUD()
