"""
Dependency injection container.

Factory functions for FastAPI dependencies: process-wide collaborators
(blob store, identity client, audit logger, role-change notifier),
request authentication, and per-request services.

Dependencies: lms_backend.configs, lms_backend.application, lms_backend.boundary
System role: DI container for service injection
"""

from functools import lru_cache

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from lms_backend.application.notifications import RoleChangeNotifier
from lms_backend.application.services import (
    AnalyticsService,
    AuditService,
    CourseService,
    CurriculumService,
    EnrollmentService,
    IdentityService,
    MaterialService,
    ProfileService,
    UserAdminService,
)
from lms_backend.boundary.aws.s3_client import S3MaterialStore
from lms_backend.boundary.db.connection import get_async_db, get_async_session_factory
from lms_backend.boundary.db.models.user_model import UserModel
from lms_backend.boundary.identity.stack_auth_client import StackAuthClient
from lms_backend.configs import Settings, get_settings


class ServiceCache:
    """Container for cached process-wide collaborators."""

    def __init__(self):
        self._store = None
        self._identity_client = None
        self._audit = None
        self._notifier = None

    @property
    def store(self) -> S3MaterialStore:
        """Get cached S3 material store."""
        if self._store is None:
            settings = get_settings()
            self._store = S3MaterialStore(
                bucket=settings.storage.bucket,
                region=settings.storage.region,
            )
        return self._store

    @property
    def identity_client(self) -> StackAuthClient:
        """Get cached identity provider client."""
        if self._identity_client is None:
            self._identity_client = StackAuthClient(get_settings().identity)
        return self._identity_client

    @property
    def audit(self) -> AuditService:
        """Get cached audit logger (writes on its own sessions)."""
        if self._audit is None:
            self._audit = AuditService(get_async_session_factory())
        return self._audit

    @property
    def notifier(self) -> RoleChangeNotifier:
        """Get cached role-change notifier."""
        if self._notifier is None:
            self._notifier = RoleChangeNotifier()
        return self._notifier

    def clear(self) -> None:
        """Clear all cached instances."""
        self._store = None
        self._identity_client = None
        self._audit = None
        self._notifier = None


# Global service cache
_service_cache = ServiceCache()


def get_service_cache() -> ServiceCache:
    """Get service cache singleton."""
    return _service_cache


@lru_cache
def get_settings_dependency() -> Settings:
    """Get settings singleton."""
    return get_settings()


def get_store() -> S3MaterialStore:
    return get_service_cache().store


def get_identity_client() -> StackAuthClient:
    return get_service_cache().identity_client


def get_audit_service() -> AuditService:
    return get_service_cache().audit


def get_notifier() -> RoleChangeNotifier:
    return get_service_cache().notifier


def get_access_token(
    x_stack_access_token: str | None = Header(default=None),
    authorization: str | None = Header(default=None),
) -> str | None:
    """
    Extract the caller's access token.

    Reads ``x-stack-access-token`` first, then ``Authorization: Bearer``.

    Returns:
        str | None: Token, or None when the request carries none
    """
    if x_stack_access_token:
        return x_stack_access_token.strip()
    if authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() == "bearer" and token.strip():
            return token.strip()
    return None


def get_identity_service(
    db: AsyncSession = Depends(get_async_db),
    identity_client: StackAuthClient = Depends(get_identity_client),
    audit: AuditService = Depends(get_audit_service),
) -> IdentityService:
    """
    Get identity service instance.

    Args:
        db: Async database session (injected via Depends)
        identity_client: Identity provider client (injected)
        audit: Audit logger (injected)

    Returns:
        IdentityService: Identity service instance
    """
    return IdentityService(db=db, identity_client=identity_client, audit=audit)


async def get_current_user(
    access_token: str | None = Depends(get_access_token),
    identity_service: IdentityService = Depends(get_identity_service),
) -> UserModel:
    """
    Resolve the request's access token to a local user.

    Raises:
        UnauthenticatedError: If no token or an invalid token was sent
        RestrictedPrincipalError: If the principal is not verified
    """
    return await identity_service.resolve_token(access_token)


def get_course_service(
    db: AsyncSession = Depends(get_async_db),
    audit: AuditService = Depends(get_audit_service),
    store: S3MaterialStore = Depends(get_store),
    settings: Settings = Depends(get_settings_dependency),
) -> CourseService:
    """
    Get course service instance.

    Args:
        db: Async database session (injected via Depends)

    Returns:
        CourseService: Course service instance
    """
    return CourseService(db=db, audit=audit, store=store, access_codes=settings.access_codes)


def get_enrollment_service(
    db: AsyncSession = Depends(get_async_db),
    audit: AuditService = Depends(get_audit_service),
) -> EnrollmentService:
    return EnrollmentService(db=db, audit=audit)


def get_material_service(
    db: AsyncSession = Depends(get_async_db),
    audit: AuditService = Depends(get_audit_service),
    store: S3MaterialStore = Depends(get_store),
    settings: Settings = Depends(get_settings_dependency),
) -> MaterialService:
    """
    Get material service instance.

    Returns:
        MaterialService: Material service with S3 store and storage policy
    """
    return MaterialService(db=db, audit=audit, store=store, settings=settings.storage)


def get_curriculum_service(
    db: AsyncSession = Depends(get_async_db),
    audit: AuditService = Depends(get_audit_service),
    store: S3MaterialStore = Depends(get_store),
    settings: Settings = Depends(get_settings_dependency),
) -> CurriculumService:
    return CurriculumService(db=db, audit=audit, store=store, settings=settings.storage)


def get_profile_service(
    db: AsyncSession = Depends(get_async_db),
    audit: AuditService = Depends(get_audit_service),
) -> ProfileService:
    return ProfileService(db=db, audit=audit)


def get_user_admin_service(
    db: AsyncSession = Depends(get_async_db),
    audit: AuditService = Depends(get_audit_service),
    notifier: RoleChangeNotifier = Depends(get_notifier),
    identity_client: StackAuthClient = Depends(get_identity_client),
) -> UserAdminService:
    return UserAdminService(
        db=db,
        audit=audit,
        notifier=notifier,
        identity_client=identity_client,
    )


def get_analytics_service(db: AsyncSession = Depends(get_async_db)) -> AnalyticsService:
    return AnalyticsService(db=db)
