"""
Fixtures for HTTP-level tests.

Services are replaced with AsyncMocks through ``dependency_overrides``;
the caller is injected by overriding ``get_current_user``.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from lms_backend.api.deps.dependencies import (
    get_course_service,
    get_current_user,
    get_curriculum_service,
    get_enrollment_service,
    get_identity_service,
    get_material_service,
    get_profile_service,
    get_user_admin_service,
)
from lms_backend.api.main import create_app
from lms_backend.application.services import IdentityService
from lms_backend.boundary.db.models.user_model import UserModel, UserRole
from lms_backend.boundary.identity.stack_auth_client import StackAuthClient


def api_user(user_id: str, role: UserRole) -> UserModel:
    """Transient user as returned by authentication."""
    return UserModel(
        id=user_id,
        email=f"{user_id}@example.edu",
        name=user_id.title(),
        role=role,
        created_at=datetime.now(timezone.utc),
    )


@pytest.fixture
def app():
    app = create_app()
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def mock_identity_client():
    return AsyncMock(spec=StackAuthClient)


@pytest.fixture
def services(app, mock_identity_client) -> dict[str, AsyncMock]:
    """Mocked services wired into the app."""
    mocks = {
        "course": AsyncMock(),
        "enrollment": AsyncMock(),
        "material": AsyncMock(),
        "curriculum": AsyncMock(),
        "profile": AsyncMock(),
        "user_admin": AsyncMock(),
    }
    identity = IdentityService(db=AsyncMock(), identity_client=mock_identity_client, audit=AsyncMock())
    app.dependency_overrides[get_identity_service] = lambda: identity
    app.dependency_overrides[get_course_service] = lambda: mocks["course"]
    app.dependency_overrides[get_enrollment_service] = lambda: mocks["enrollment"]
    app.dependency_overrides[get_material_service] = lambda: mocks["material"]
    app.dependency_overrides[get_curriculum_service] = lambda: mocks["curriculum"]
    app.dependency_overrides[get_profile_service] = lambda: mocks["profile"]
    app.dependency_overrides[get_user_admin_service] = lambda: mocks["user_admin"]
    return mocks


@pytest.fixture
def login(app):
    """Authenticate subsequent requests as the given role."""

    def _login(role: UserRole, user_id: str | None = None) -> UserModel:
        user = api_user(user_id or f"{role.value}-1", role)
        app.dependency_overrides[get_current_user] = lambda: user
        return user

    return _login
