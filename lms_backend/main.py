"""
Server entry point.

Usage:
    python -m lms_backend.main

Dependencies: uvicorn, lms_backend.api
System role: Process launcher
"""

import uvicorn

from lms_backend.api.main import app
from lms_backend.configs import get_settings

__all__ = ["app"]


if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "lms_backend.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
