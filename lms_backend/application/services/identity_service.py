"""
Identity resolver.

Maps an authenticated principal from the identity provider to a local
user row, provisioning the row (role = student) on first sight.

Dependencies: sqlalchemy, lms_backend.boundary.db.CRUD, lms_backend.boundary.identity
System role: Principal -> local user resolution
"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lms_backend.application.services.audit_service import AuditService
from lms_backend.boundary.db.CRUD.user_crud import user_crud
from lms_backend.boundary.db.models.user_model import UserModel, UserRole
from lms_backend.boundary.identity.stack_auth_client import Principal, StackAuthClient
from lms_backend.core.exceptions import (
    ConflictError,
    RestrictedPrincipalError,
    UnauthenticatedError,
)

logger = logging.getLogger(__name__)


def display_name_for(principal: Principal) -> str:
    """Name shown for a principal: display name, then email, then "User"."""
    return principal.display_name or principal.primary_email or "User"


class IdentityService:
    """Identity resolver backed by the users table."""

    def __init__(
        self,
        db: AsyncSession,
        identity_client: StackAuthClient,
        audit: AuditService,
    ) -> None:
        """
        Initialize identity service.

        Args:
            db: Async SQLAlchemy session
            identity_client: Identity provider client
            audit: Audit logger
        """
        self.db = db
        self.identity_client = identity_client
        self.audit = audit

    async def resolve_user(self, principal: Principal) -> UserModel:
        """
        Resolve a principal to its local user, creating it on first sight.

        Args:
            principal: Authenticated principal from the identity provider

        Returns:
            UserModel: Existing or newly provisioned user

        Raises:
            RestrictedPrincipalError: If the principal has not verified its email
            ConflictError: If another user already holds the principal's email
        """
        if principal.is_restricted or not principal.primary_email:
            raise RestrictedPrincipalError(principal.id)

        user = await user_crud.get_by_id(self.db, principal.id)
        if user is not None:
            return user

        try:
            user = await user_crud.create(
                self.db,
                id=principal.id,
                email=principal.primary_email,
                name=display_name_for(principal),
                role=UserRole.STUDENT,
            )
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            # Concurrent first request for the same principal
            user = await user_crud.get_by_id(self.db, principal.id)
            if user is not None:
                return user
            raise ConflictError(
                "Email is already linked to another account",
                "uq_users_email",
                {"user_id": principal.id},
            )

        logger.info(
            "Provisioned user on first sign-in",
            extra={"user_id": user.id, "role": user.role.value},
        )
        await self.audit.record(
            user.id, "user.provisioned", "user", user.id, {"email": user.email}
        )
        return user

    async def resolve_token(self, access_token: str | None) -> UserModel:
        """
        Resolve an access token to a local user.

        Args:
            access_token: Token from the request, or None

        Returns:
            UserModel: Resolved user

        Raises:
            UnauthenticatedError: If the token is missing or rejected
            RestrictedPrincipalError: If the principal is restricted
            UpstreamFailureError: If the identity provider fails
        """
        if not access_token:
            raise UnauthenticatedError()
        principal = await self.identity_client.resolve(access_token)
        if principal is None:
            raise UnauthenticatedError()
        return await self.resolve_user(principal)

    async def sign_out(self, user: UserModel, access_token: str) -> None:
        """
        End the caller's session at the identity provider.

        Args:
            user: Signed-in user
            access_token: Token of the session to revoke
        """
        await self.identity_client.sign_out(access_token)
        await self.audit.record(user.id, "user.signed_out", "user", user.id)
