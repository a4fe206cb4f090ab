"""
Health check API endpoints.

Routes: GET /health, GET /health/db

Dependencies: sqlalchemy, lms_backend.boundary
System role: Health check HTTP API
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lms_backend.boundary.db.connection import get_async_db

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    message: str


router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic health check."""
    return HealthResponse(status="healthy", message="Server Healthy")


@router.get("/db", response_model=HealthResponse)
async def health_check_db(db: AsyncSession = Depends(get_async_db)):
    """Database health check."""
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("Database health check failed", extra={"error_type": type(e).__name__})
        return JSONResponse(
            status_code=503,
            content=HealthResponse(status="unhealthy", message="Database unreachable").model_dump(),
        )
    return HealthResponse(status="healthy", message="Database connection OK")
