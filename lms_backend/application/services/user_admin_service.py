"""
User administration service.

Admin-only user listing, role changes (with a RoleChanged notification)
and the manual identity-provider sync tool.

Dependencies: sqlalchemy, lms_backend.boundary.db.CRUD, lms_backend.boundary.identity
System role: User administration use case orchestration
"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lms_backend.application.notifications import RoleChanged, RoleChangeNotifier
from lms_backend.application.services.audit_service import AuditService
from lms_backend.application.services.identity_service import display_name_for
from lms_backend.boundary.db.base import utcnow
from lms_backend.boundary.db.CRUD.user_crud import user_crud
from lms_backend.boundary.db.models.user_model import UserModel, UserRole
from lms_backend.boundary.identity.stack_auth_client import StackAuthClient
from lms_backend.core.access_control import AccessControlGuard, RoleIn
from lms_backend.core.exceptions import ConflictError, NotFoundError, ValidationError
from lms_backend.observability.log_utils import log_with_context

logger = logging.getLogger(__name__)


class UserAdminService:
    """User administration service."""

    def __init__(
        self,
        db: AsyncSession,
        audit: AuditService,
        notifier: RoleChangeNotifier,
        identity_client: StackAuthClient | None = None,
    ) -> None:
        """
        Initialize user admin service.

        Args:
            db: Async SQLAlchemy session
            audit: Audit logger
            notifier: RoleChanged publisher
            identity_client: Identity provider client (sync tool only)
        """
        self.db = db
        self.audit = audit
        self.notifier = notifier
        self.identity_client = identity_client
        self.guard = AccessControlGuard(db)

    async def list_users(
        self,
        actor: UserModel | None,
        role: UserRole | None = None,
    ) -> list[UserModel]:
        """All users, newest first, optionally filtered by role (admin only)."""
        await self.guard.require(actor, RoleIn.of(UserRole.ADMIN))
        return list(await user_crud.list_users(self.db, role=role))

    async def update_user_role(
        self,
        actor: UserModel | None,
        user_id: str,
        role: UserRole,
    ) -> UserModel:
        """
        Change a user's role (admin only) and publish RoleChanged.

        Args:
            actor: Requesting admin
            user_id: Target user
            role: New role

        Returns:
            UserModel: Updated user

        Raises:
            NotFoundError: If the user does not exist
            ValidationError: If an admin tries to change their own role
        """
        await self.guard.require(actor, RoleIn.of(UserRole.ADMIN))
        actor_id = actor.id
        if user_id == actor_id:
            raise ValidationError("Admins cannot change their own role", field="user_id")

        user = await user_crud.get_by_id(self.db, user_id)
        if user is None:
            raise NotFoundError("user", user_id)
        old_role = user.role
        if old_role == role:
            return user

        user.role = role
        await self.db.commit()

        await self.audit.record(
            actor_id,
            "user.role_updated",
            "user",
            user_id,
            {"old_role": old_role.value, "new_role": role.value},
        )
        await self.notifier.publish(
            RoleChanged(
                user_id=user_id,
                old_role=old_role.value,
                new_role=role.value,
                changed_by=actor_id,
                changed_at=utcnow(),
            )
        )
        return user

    async def sync_user(
        self,
        actor: UserModel | None,
        email: str,
        role: UserRole = UserRole.STUDENT,
    ) -> UserModel:
        """
        Upsert a local user from the identity provider with an explicit role.

        Args:
            actor: Requesting admin
            email: Primary email of the provider user
            role: Role to assign

        Returns:
            UserModel: Created or updated user

        Raises:
            NotFoundError: If no provider user has that email
            ConflictError: If another local user already holds the email
            UpstreamFailureError: If the identity provider fails
        """
        await self.guard.require(actor, RoleIn.of(UserRole.ADMIN))
        actor_id = actor.id
        if self.identity_client is None:
            raise RuntimeError("Identity client is not configured")

        principal = await self.identity_client.find_by_email(email.strip())
        if principal is None:
            raise NotFoundError("user", email, message="User not found at identity provider")

        user = await user_crud.get_by_id(self.db, principal.id)
        created = user is None
        try:
            if user is None:
                user = await user_crud.create(
                    self.db,
                    id=principal.id,
                    email=principal.primary_email or email,
                    name=display_name_for(principal),
                    role=role,
                )
            else:
                user.email = principal.primary_email or user.email
                user.name = display_name_for(principal)
                user.role = role
                await self.db.flush()
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise ConflictError(
                "Email is already linked to another account",
                "uq_users_email",
                {"email": email},
            ) from e

        log_with_context(logger, logging.INFO, "User synced", user_id=user.id, user_created=created)
        await self.audit.record(
            actor_id,
            "user.synced",
            "user",
            user.id,
            {"email": user.email, "role": role.value, "created": created},
        )
        return user
