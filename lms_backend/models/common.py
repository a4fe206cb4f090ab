"""
Common response models and utilities.

Generic response wrappers and error schemas.

Dependencies: pydantic
System role: Common API response structures
"""

from typing import Any

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Error response schema returned for every domain failure."""

    error: str = Field(description="Stable error code, e.g. not_found or duplicate_access_code")
    message: str = Field(description="Human-readable error message")
    details: dict[str, Any] = Field(default_factory=dict, description="Additional error context")


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str
