"""
Core domain module.

Contains the exception hierarchy and the access control guard.
"""

from lms_backend.core.exceptions import (
    AlreadyEnrolledError,
    ConflictError,
    ForbiddenError,
    LMSException,
    NotEligibleError,
    NotFoundError,
    RestrictedPrincipalError,
    UnauthenticatedError,
    UpstreamFailureError,
    ValidationError,
)

__all__ = [
    "AlreadyEnrolledError",
    "ConflictError",
    "ForbiddenError",
    "LMSException",
    "NotEligibleError",
    "NotFoundError",
    "RestrictedPrincipalError",
    "UnauthenticatedError",
    "UpstreamFailureError",
    "ValidationError",
]
