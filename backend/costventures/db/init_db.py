"""
Database initialization script.
"""
from costventures.core.config import settings
from costventures.core.logging_config import setup_logging
from costventures.db.session import Database


def init_db(database: Database = None):
    """Create all tables of the configured database."""
    database = database or Database(settings)
    database.create_all()
    return database


if __name__ == "__main__":
    logger = setup_logging(settings.LOG_LEVEL)
    logger.info("Initializing database...")
    init_db().dispose()
    logger.info("Database initialized successfully!")
