"""
Shared test fixtures and configuration for entire test suite.

Provides: in-memory SQLite database with enforced foreign keys, audit
service on the same database, seeded users per role, blob store mock
Dependencies: pytest, pytest-asyncio, sqlalchemy, aiosqlite
System role: Test infrastructure and fixture management
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from lms_backend.application.services.audit_service import AuditService
from lms_backend.boundary.aws.s3_client import S3MaterialStore
from lms_backend.boundary.db.base import Base
from lms_backend.boundary.db.CRUD.user_crud import student_profile_crud, user_crud
from lms_backend.boundary.db.models.user_model import UserModel, UserRole
from lms_backend.configs.identity import AccessCodeSettings
from lms_backend.configs.storage import StorageSettings


@pytest.fixture
async def test_engine():
    """
    Create in-memory SQLite async engine with all tables.

    Yields:
        AsyncEngine: Engine sharing one connection (StaticPool)
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    """Session factory configured like the application's."""
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


@pytest.fixture
async def test_async_db(session_factory):
    """
    Create a test database session.

    Yields:
        AsyncSession: Session rolled back after the test
    """
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def audit(session_factory) -> AuditService:
    """Audit service writing to the test database."""
    return AuditService(session_factory)


async def make_user(
    db: AsyncSession,
    user_id: str,
    role: UserRole,
    name: str | None = None,
    roll_no: str | None = None,
) -> UserModel:
    """Insert a user (and optionally a student profile) and commit."""
    user = await user_crud.create(
        db,
        id=user_id,
        email=f"{user_id}@example.edu",
        name=name or user_id.replace("-", " ").title(),
        role=role,
    )
    if roll_no is not None:
        await student_profile_crud.create(
            db,
            user_id=user_id,
            roll_no=roll_no,
            onboarding_completed_at=datetime.now(timezone.utc),
        )
    await db.commit()
    return user


@pytest.fixture
async def admin(test_async_db) -> UserModel:
    return await make_user(test_async_db, "admin-1", UserRole.ADMIN)


@pytest.fixture
async def lecturer(test_async_db) -> UserModel:
    return await make_user(test_async_db, "lecturer-1", UserRole.LECTURER)


@pytest.fixture
async def lecturer2(test_async_db) -> UserModel:
    return await make_user(test_async_db, "lecturer-2", UserRole.LECTURER)


@pytest.fixture
async def student(test_async_db) -> UserModel:
    return await make_user(test_async_db, "student-1", UserRole.STUDENT, roll_no="150")


@pytest.fixture
async def student2(test_async_db) -> UserModel:
    return await make_user(test_async_db, "student-2", UserRole.STUDENT, roll_no="250")


@pytest.fixture
def storage_settings() -> StorageSettings:
    return StorageSettings(bucket="test-bucket", region="us-east-1")


@pytest.fixture
def access_code_settings() -> AccessCodeSettings:
    return AccessCodeSettings(length=8, max_generation_attempts=5)


@pytest.fixture
def mock_store():
    """
    Create mock S3MaterialStore.

    Returns:
        AsyncMock: upload echoes the key; signed_url returns a fixed URL
    """
    store = AsyncMock(spec=S3MaterialStore)

    async def _upload(data, s3_key, content_type):
        return s3_key

    store.upload.side_effect = _upload
    store.signed_url.return_value = (
        "https://test-bucket.s3.amazonaws.com/signed",
        datetime.now(timezone.utc) + timedelta(seconds=900),
    )
    store.delete.return_value = None
    return store


@pytest.fixture
def user_factory(test_async_db):
    """Create extra users on the test session."""

    async def _make(user_id: str, role: UserRole, name: str | None = None, roll_no: str | None = None):
        return await make_user(test_async_db, user_id, role, name=name, roll_no=roll_no)

    return _make
