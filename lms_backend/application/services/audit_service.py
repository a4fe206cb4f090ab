"""
Audit logger.

Appends one immutable audit record per completed mutating action and
serves the admin read side. Each write runs in its own short session so
that a failed audit write never touches the caller's transaction or the
objects it has loaded. Recording never raises.

Dependencies: sqlalchemy, lms_backend.boundary.db.CRUD
System role: Cross-cutting audit trail
"""

import json
import logging
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lms_backend.boundary.db.CRUD.audit_log_crud import audit_log_crud
from lms_backend.boundary.db.models.audit_log_model import AuditLogModel
from lms_backend.boundary.db.models.user_model import UserModel, UserRole
from lms_backend.core.access_control import AccessControlGuard, RoleIn
from lms_backend.observability.log_utils import log_exception_with_context

logger = logging.getLogger(__name__)


def _normalize_metadata(metadata: dict[str, Any] | None) -> dict[str, Any] | None:
    """Coerce a payload to JSON-safe primitives (UUIDs, datetimes, enums -> str)."""
    if metadata is None:
        return None
    return json.loads(json.dumps(metadata, default=str))


class AuditService:
    """Audit trail writer and reader."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """
        Initialize audit service.

        Args:
            session_factory: Factory for the short-lived audit sessions
        """
        self.session_factory = session_factory

    async def record(
        self,
        user_id: str | None,
        action: str,
        resource_type: str | None = None,
        resource_id: str | UUID | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """
        Append an audit entry. Never raises.

        Args:
            user_id: Acting user, None for system actions
            action: Dot-namespaced verb, e.g. "course.created"
            resource_type: Kind of entity acted upon
            resource_id: Identifier of the entity acted upon
            metadata: Free-form JSON-serializable payload
        """
        try:
            payload = _normalize_metadata(metadata)
            async with self.session_factory() as session:
                await audit_log_crud.create(
                    session,
                    user_id=user_id,
                    action=action,
                    resource_type=resource_type,
                    resource_id=str(resource_id) if resource_id is not None else None,
                    event_metadata=payload,
                )
                await session.commit()
        except Exception as e:
            log_exception_with_context(
                logger,
                "Audit write failed",
                e,
                action=action,
                user_id=user_id,
                resource_type=resource_type,
                resource_id=resource_id,
            )
            return

        logger.debug("Audit recorded", extra={"action": action, "user_id": user_id})

    async def _require_admin(self, session: AsyncSession, actor: UserModel | None) -> None:
        await AccessControlGuard(session).require(actor, RoleIn.of(UserRole.ADMIN))

    async def list_audit_logs(
        self,
        actor: UserModel | None,
        limit: int = 100,
        offset: int = 0,
    ) -> dict[str, Any]:
        """
        Page through the audit trail, newest first (admin only).

        Args:
            actor: Requesting user
            limit: Page size
            offset: Entries to skip

        Returns:
            dict: {"items": list[AuditLogModel], "total": int}

        Raises:
            UnauthenticatedError: If no actor
            ForbiddenError: If actor is not an admin
        """
        async with self.session_factory() as session:
            await self._require_admin(session, actor)
            items = await audit_log_crud.list_recent(session, limit=limit, offset=offset)
            total = await audit_log_crud.count(session)
        return {"items": list(items), "total": total}

    async def list_user_audit_logs(
        self,
        actor: UserModel | None,
        user_id: str,
        limit: int = 50,
    ) -> list[AuditLogModel]:
        """Recent audit entries recorded for one acting user (admin only)."""
        async with self.session_factory() as session:
            await self._require_admin(session, actor)
            return list(await audit_log_crud.list_recent(session, limit=limit, user_id=user_id))

    async def list_audit_logs_by_action(
        self,
        actor: UserModel | None,
        action: str,
        limit: int = 50,
    ) -> list[AuditLogModel]:
        """Recent audit entries for one action (admin only)."""
        async with self.session_factory() as session:
            await self._require_admin(session, actor)
            return list(await audit_log_crud.list_recent(session, limit=limit, action=action))
