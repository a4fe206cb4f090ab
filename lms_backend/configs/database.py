"""
Database configuration settings.

PostgreSQL connection parameters for the LMS store. The sync URL
(psycopg2) is used by the table creation script; the async URL (asyncpg)
backs every request session.

Dependencies: pydantic, pydantic_settings
System role: Persistent store configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from lms_backend.configs.base import BaseSettings


class DatabaseSettings(BaseSettings):
    """PostgreSQL settings read from POSTGRES_* variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="POSTGRES_",
        case_sensitive=False,
        extra="ignore",
    )

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    user: str = Field(default="postgres", description="Database role")
    password: str = Field(default="postgres", description="Database password")
    db: str = Field(default="lms", description="Database name")

    pool_size: int = Field(default=10, ge=1, description="Persistent connections per process")
    max_overflow: int = Field(default=20, ge=0, description="Burst connections above pool_size")
    pool_timeout: int = Field(default=30, ge=1, description="Seconds to wait for a free connection")
    pool_recycle: int = Field(default=1800, description="Recycle connections older than this many seconds")
    echo_sql: bool = Field(default=False, description="Log emitted SQL")

    sslmode: str = Field(default="prefer", description="libpq sslmode (disable, prefer, require)")

    @property
    def database_url(self) -> str:
        """psycopg2 URL for schema scripts."""
        return (
            f"postgresql://{self.user}:{self.password}"
            f"@{self.host}:{self.port}/{self.db}?sslmode={self.sslmode}"
        )

    @property
    def async_database_url(self) -> str:
        """
        asyncpg URL for request sessions.

        asyncpg does not understand ``sslmode``; only ``require`` is
        translated to its ``ssl`` query parameter.
        """
        query = "?ssl=require" if self.sslmode == "require" else ""
        return f"postgresql+asyncpg://{self.user}:{self.password}@{self.host}:{self.port}/{self.db}{query}"
