"""
Router utility functions.

Contains helpers shared by the route modules to keep endpoints thin.
"""

from lms_backend.api.routers.router_utils.error_handling import (
    error_response,
    handle_service_errors,
    lms_exception_handler,
    request_validation_handler,
    status_for,
)

__all__ = [
    "error_response",
    "handle_service_errors",
    "lms_exception_handler",
    "request_validation_handler",
    "status_for",
]
