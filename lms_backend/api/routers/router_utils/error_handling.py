"""
Service error handling utilities.

Maps the domain exception hierarchy to HTTP responses with a uniform
``{"error", "message", "details"}`` body, and provides a decorator for
route handlers plus an app-level handler for errors raised inside
dependencies (e.g. authentication).

Dependencies: fastapi, lms_backend.core.exceptions
System role: Error-to-HTTP translation
"""

import functools
import logging
from typing import Any, Callable, TypeVar

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from lms_backend.core.exceptions import (
    ConflictError,
    ForbiddenError,
    LMSException,
    NotFoundError,
    RestrictedPrincipalError,
    UnauthenticatedError,
    UpstreamFailureError,
    ValidationError,
)
from lms_backend.models.common import ErrorResponse
from lms_backend.observability.log_utils import log_with_context

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

# Most specific first: NotEligibleError is a ForbiddenError,
# AlreadyEnrolledError is a ConflictError.
_STATUS_BY_EXCEPTION: tuple[tuple[type[LMSException], int], ...] = (
    (UnauthenticatedError, status.HTTP_401_UNAUTHORIZED),
    (RestrictedPrincipalError, status.HTTP_403_FORBIDDEN),
    (ForbiddenError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (UpstreamFailureError, status.HTTP_502_BAD_GATEWAY),
)


def status_for(exc: LMSException) -> int:
    """HTTP status code for a domain exception."""
    for exc_type, status_code in _STATUS_BY_EXCEPTION:
        if isinstance(exc, exc_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_code_for(exc: LMSException) -> str:
    """Stable error code; conflicts report the violated rule."""
    if isinstance(exc, ConflictError) and type(exc) is ConflictError:
        return exc.constraint
    return exc.code


def error_response(exc: LMSException) -> JSONResponse:
    """
    Render a domain exception as a JSON error response.

    Args:
        exc: Domain exception

    Returns:
        JSONResponse: Response with mapped status and ErrorResponse body
    """
    body = ErrorResponse(
        error=error_code_for(exc),
        message=exc.message,
        details=jsonable_encoder(exc.details),
    )
    return JSONResponse(status_code=status_for(exc), content=body.model_dump())


async def lms_exception_handler(request: Request, exc: LMSException) -> JSONResponse:
    """App-level handler for domain errors raised outside route bodies."""
    logger.warning(
        "Request failed",
        extra={"path": request.url.path, "error": error_code_for(exc), "details": str(exc.details)},
    )
    return error_response(exc)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Schema validation failures use the same body as ValidationError."""
    logger.info("Request validation failed", extra={"path": request.url.path})
    body = ErrorResponse(
        error="validation_error",
        message="Request validation failed",
        details={"errors": jsonable_encoder(exc.errors())},
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=body.model_dump(),
    )


def handle_service_errors(func: F) -> F:
    """
    Decorator to handle service errors and transform them into HTTP responses.

    This centralizes:
    - Logging of errors with context
    - Mapping the domain exception hierarchy to HTTP status codes
    - Uniform error bodies; unexpected failures become a generic 500
    """

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)

        except LMSException as e:
            log_with_context(
                logger,
                logging.WARNING,
                "Service error",
                endpoint=func.__name__,
                error=error_code_for(e),
                error_message=e.message,
                details=e.details,
            )
            return error_response(e)

        except Exception as e:
            logger.exception(
                "Unexpected failure",
                extra={"endpoint": func.__name__, "error_type": type(e).__name__},
            )
            body = ErrorResponse(
                error="internal_error",
                message="An internal error occurred",
            )
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=body.model_dump(),
            )

    return wrapper  # type: ignore
