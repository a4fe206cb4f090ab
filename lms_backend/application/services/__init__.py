"""Service orchestrators."""

from .analytics_service import AnalyticsService
from .audit_service import AuditService
from .course_service import CourseService
from .curriculum_service import CurriculumService
from .enrollment_service import EnrollmentService
from .identity_service import IdentityService
from .material_service import MaterialService
from .profile_service import ProfileService
from .user_admin_service import UserAdminService

__all__ = [
    "AnalyticsService",
    "AuditService",
    "CourseService",
    "CurriculumService",
    "EnrollmentService",
    "IdentityService",
    "MaterialService",
    "ProfileService",
    "UserAdminService",
]
