"""
Initialize the database.

Run this script once to set up the database:
    python init_db.py
"""

import logging

from shortlinks.database import engine, Base, SQLALCHEMY_DATABASE_URL
from shortlinks.models import Link, Click  # noqa: F401  registers tables
from shortlinks.utils.logging import initialize_logging

logger = logging.getLogger("shortlinks.init_db")


def init_database():
    """Create all database tables"""
    logger.info("Creating database tables", extra={'database_url': SQLALCHEMY_DATABASE_URL})
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created: %s", ", ".join(sorted(Base.metadata.tables)))


if __name__ == "__main__":
    initialize_logging()
    init_database()
    print("\nYou can now start the server with:")
    print("    uvicorn shortlinks.main:app --reload")
