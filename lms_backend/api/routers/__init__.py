"""API routers."""

from .admin import router as admin_router
from .auth import router as auth_router
from .courses import router as courses_router
from .curriculum import router as curriculum_router
from .enrollments import router as enrollments_router
from .health import router as health_router
from .materials import router as materials_router
from .profile import router as profile_router

__all__ = [
    "admin_router",
    "auth_router",
    "courses_router",
    "curriculum_router",
    "enrollments_router",
    "health_router",
    "materials_router",
    "profile_router",
]
