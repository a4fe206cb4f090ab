"""
Course materials storage configuration.

Settings for the private materials bucket, signed download URLs and the
upload policy (allowed types, extensions and size limit).

Dependencies: pydantic_settings
System role: Blob storage configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Settings for course material blob storage."""

    model_config = SettingsConfigDict(
        env_prefix="S3_MATERIALS_",
        case_sensitive=False,
        extra="ignore",
    )

    bucket: str = Field(
        default="lms-dev-course-materials",
        description="Private S3 bucket for lecture note files",
    )
    region: str = Field(
        default="ap-southeast-2",
        description="AWS region for S3 bucket",
    )
    signed_url_expiry: int = Field(
        default=900,
        ge=60,
        le=3600,
        description="Signed download URL lifetime in seconds (default 15 minutes)",
    )
    max_file_size: int = Field(
        default=10 * 1024 * 1024,
        description="Maximum upload size in bytes",
    )
    allowed_content_types: list[str] = Field(
        default=[
            "application/pdf",
            "application/msword",
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
            "application/vnd.ms-powerpoint",
            "application/vnd.openxmlformats-officedocument.presentationml.presentation",
            "text/plain",
        ],
        description="MIME types accepted for course materials",
    )
    allowed_extensions: list[str] = Field(
        default=[".pdf", ".doc", ".docx", ".ppt", ".pptx", ".txt"],
        description="File extensions accepted for course materials",
    )
