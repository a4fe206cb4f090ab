"""
API routes module.

FastAPI routers for all HTTP endpoints.
"""

from fastapi import APIRouter

from .routers import (
    admin_router,
    auth_router,
    courses_router,
    curriculum_router,
    enrollments_router,
    health_router,
    materials_router,
    profile_router,
)

api_router = APIRouter()

# Include all routers
api_router.include_router(health_router)
api_router.include_router(auth_router)
api_router.include_router(profile_router)
api_router.include_router(courses_router)
api_router.include_router(curriculum_router)
api_router.include_router(enrollments_router)
api_router.include_router(materials_router)
api_router.include_router(admin_router)

__all__ = ["api_router"]
