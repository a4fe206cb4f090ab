"""
FastAPI application with assembled routers.

Initializes the FastAPI app with all API routers, middleware and the
domain error handler.

Dependencies: fastapi, lms_backend.api.routers, lms_backend.observability
System role: API entry point with router assembly
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from lms_backend.api import api_router
from lms_backend.api.deps.dependencies import get_service_cache
from lms_backend.api.routers.router_utils import (
    lms_exception_handler,
    request_validation_handler,
)
from lms_backend.boundary.db.connection import get_async_engine
from lms_backend.configs import get_settings
from lms_backend.core.exceptions import LMSException
from lms_backend.observability.logger import configure_logging
from lms_backend.observability.middleware import (
    CorrelationMiddleware,
    RequestLoggingMiddleware,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown events.
    """
    # Startup
    configure_logging(get_settings().log_level)
    logger.info("Application startup: logging configured")

    yield

    # Shutdown
    get_service_cache().clear()
    await get_async_engine().dispose()
    logger.info("Application shutdown")


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application with routers.

    Returns:
        FastAPI: Configured application instance with all routers registered
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Role-based learning management API: courses, enrollments, materials and curriculum",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Add observability middleware (added first = last to execute)
    app.add_middleware(CorrelationMiddleware)
    app.add_middleware(RequestLoggingMiddleware)

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Domain errors raised in dependencies (authentication) share the route error body
    app.add_exception_handler(LMSException, lms_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    # Register all routers with /api/v1 prefix for versioning
    app.include_router(api_router, prefix="/api/v1")

    return app


app = create_app()
