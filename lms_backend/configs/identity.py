"""
Identity provider configuration settings.

Settings for the Stack Auth server API used to resolve access tokens
into authenticated principals.

Dependencies: pydantic_settings
System role: Identity provider configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class IdentitySettings(BaseSettings):
    """Stack Auth server API configuration."""

    model_config = SettingsConfigDict(
        env_prefix="STACK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    api_url: str = Field(
        default="https://api.stack-auth.com",
        description="Stack Auth API base URL",
    )
    project_id: str = Field(default="", description="Stack Auth project ID")
    secret_server_key: str = Field(default="", description="Stack Auth secret server key")
    request_timeout: float = Field(
        default=5.0,
        description="Timeout in seconds for identity provider calls",
    )


class AccessCodeSettings(BaseSettings):
    """Course access code generation settings."""

    model_config = SettingsConfigDict(
        env_prefix="ACCESS_CODE_",
        case_sensitive=False,
        extra="ignore",
    )

    length: int = Field(default=8, description="Generated access code length")
    max_generation_attempts: int = Field(
        default=5,
        description="Regeneration attempts before a collision is surfaced as a conflict",
    )
