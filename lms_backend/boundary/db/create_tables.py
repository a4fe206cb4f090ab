"""
Database table creation script.

Creates all tables defined in ORM models using SQLAlchemy metadata.

Dependencies: sqlalchemy, lms_backend.configs
System role: Database schema initialization

Usage:
    python -m lms_backend.boundary.db.create_tables
"""

import logging

from lms_backend.boundary.db.base import Base
from lms_backend.boundary.db.connection import get_engine

# Import all models to register them with Base.metadata
from lms_backend.boundary.db import models  # noqa: F401

logger = logging.getLogger(__name__)


def create_all_tables() -> None:
    """
    Create all database tables from registered ORM models.

    Idempotent: issues CREATE TABLE IF NOT EXISTS for each model, so safe
    to run multiple times. Existing tables remain unchanged.

    Raises:
        SQLAlchemyError: If the connection or table creation fails
    """
    engine = get_engine()
    Base.metadata.create_all(bind=engine)
    logger.info(
        "Database tables created",
        extra={"tables": sorted(Base.metadata.tables.keys())},
    )


def drop_all_tables() -> None:
    """
    Drop all database tables and their data.

    WARNING: Irreversible data loss. Only use in development environments.

    Raises:
        SQLAlchemyError: If the connection or drop fails
    """
    engine = get_engine()
    Base.metadata.drop_all(bind=engine)
    logger.warning("All database tables dropped")


if __name__ == "__main__":
    from lms_backend.observability import configure_logging

    configure_logging()
    create_all_tables()
