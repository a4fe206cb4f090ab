"""
Exception hierarchy for the LMS backend.

Provides a layered exception structure for domain-specific errors.
All exceptions carry a stable ``code`` and a ``details`` dict so the API
layer can render a precise message without leaking storage internals.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from typing import Any


class LMSException(Exception):
    """Base exception for all LMS application errors."""

    code = "error"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class UnauthenticatedError(LMSException):
    """Raised when no authenticated principal could be resolved."""

    code = "sign_in_required"

    def __init__(self, message: str = "Sign in required") -> None:
        super().__init__(message)


class RestrictedPrincipalError(LMSException):
    """Raised when the principal is authenticated but not yet verified."""

    code = "verification_required"

    def __init__(self, user_id: str, message: str = "Email verification required") -> None:
        super().__init__(message, {"user_id": user_id})


class ForbiddenError(LMSException):
    """Raised when a resolved user lacks the required role, ownership or enrollment."""

    code = "forbidden"

    def __init__(
        self,
        message: str = "You do not have permission to perform this action",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)


class NotEligibleError(ForbiddenError):
    """Raised when a student falls outside a course's roll-number range."""

    code = "not_eligible"

    def __init__(self, course_id: str, reason: str) -> None:
        super().__init__(
            f"Not eligible to enroll in this course: {reason}",
            {"course_id": course_id},
        )


class NotFoundError(LMSException):
    """Raised when a referenced entity does not exist."""

    code = "not_found"

    def __init__(
        self,
        resource_type: str,
        resource_id: Any,
        message: str | None = None,
    ) -> None:
        """
        Initialize not found error.

        Args:
            resource_type: Entity kind (course, enrollment, material, ...)
            resource_id: Identifier that was looked up
            message: Optional override for the default message
        """
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(
            message or f"{resource_type.replace('_', ' ').capitalize()} not found",
            {"resource_type": resource_type, "resource_id": str(resource_id)},
        )


class ConflictError(LMSException):
    """Raised when a uniqueness constraint would be violated."""

    code = "conflict"

    def __init__(
        self,
        message: str,
        constraint: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize conflict error.

        Args:
            message: Human-readable reason for the conflict
            constraint: Name of the uniqueness rule that was hit
            details: Additional context
        """
        details = details or {}
        details["constraint"] = constraint
        self.constraint = constraint
        super().__init__(message, details)


class AlreadyEnrolledError(ConflictError):
    """Raised when a student already holds an enrollment for the course."""

    code = "already_enrolled"

    def __init__(self, student_id: str, course_id: Any) -> None:
        super().__init__(
            "Student is already enrolled in this course",
            "uq_enrollments_student_course",
            {"student_id": student_id, "course_id": str(course_id)},
        )


class ValidationError(LMSException):
    """Raised when input validation fails."""

    code = "validation_error"

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation
            details: Additional context
        """
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class UpstreamFailureError(LMSException):
    """Raised when blob storage or the identity provider fails."""

    code = "upstream_failure"

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize upstream failure error.

        Args:
            message: Error message
            operation: Operation that failed (upload, sign, delete, resolve)
            details: Additional context
        """
        details = details or {}
        if operation:
            details["operation"] = operation
        super().__init__(message, details)
