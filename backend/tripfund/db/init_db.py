"""
Database initialization script.
"""
import logging
from tripfund.core.config import settings
from tripfund.core.logging_config import setup_logging
from tripfund.db.session import init_db

logger = logging.getLogger(__name__)

if __name__ == "__main__":
    setup_logging(settings.LOG_LEVEL)
    logger.info("Initializing database...")
    init_db()
    logger.info("Database initialized successfully!")
