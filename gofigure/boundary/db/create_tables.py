"""
Database table creation script.

Creates all tables defined in ORM models using SQLAlchemy metadata.

Dependencies: sqlalchemy, gofigure.configs
System role: Database schema initialization

Usage:
    python -m gofigure.boundary.db.create_tables
"""

import logging

from gofigure.boundary.db.base import Base
from gofigure.boundary.db.connection import get_engine

# Import all models to register them with Base.metadata
from gofigure.boundary.db.models.job_model import JobModel  # noqa: F401

logger = logging.getLogger(__name__)


def create_all_tables() -> None:
    """
    Create all database tables from registered ORM models.

    Idempotent: existing tables remain unchanged.
    """
    engine = get_engine()
    Base.metadata.create_all(bind=engine)
    logger.info("All tables created successfully")


if __name__ == "__main__":
    from gofigure.observability.logger import configure_logging

    configure_logging()
    create_all_tables()
