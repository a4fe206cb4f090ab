"""API-specific dependencies."""

# Re-export common dependencies
from .dependencies import (
    get_access_token,
    get_analytics_service,
    get_audit_service,
    get_course_service,
    get_current_user,
    get_curriculum_service,
    get_enrollment_service,
    get_identity_service,
    get_material_service,
    get_profile_service,
    get_service_cache,
    get_user_admin_service,
)

__all__ = [
    "get_access_token",
    "get_analytics_service",
    "get_audit_service",
    "get_course_service",
    "get_current_user",
    "get_curriculum_service",
    "get_enrollment_service",
    "get_identity_service",
    "get_material_service",
    "get_profile_service",
    "get_service_cache",
    "get_settings_dependency",
    "get_user_admin_service",
]
