"""
Database initialization script.

Creates all date market tables in the configured database.
Run this script before starting the API for the first time.

Usage:
    python -m date_market.scripts.init_db [config_path]
"""

import sys
import logging

from date_market.core.config_loader import load_config
from date_market.core.database import create_database, initialize_database
from date_market.models import ALL_MODELS


logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=logging.INFO
)
logger = logging.getLogger(__name__)


def main(config_path: str = "config/config.yaml"):
    """Initialize database and create all tables."""
    try:
        config = load_config(config_path)
        database = create_database(config['database']['url'])

        with database:
            logger.info("Creating database tables...")
            initialize_database(database)
            logger.info(f"Created tables: {', '.join(m._meta.table_name for m in ALL_MODELS)}")

            # Verify tables exist
            logger.info("Verifying tables...")
            tables = database.get_tables()
            logger.info(f"Tables in database: {tables}")

    except Exception as e:
        logger.error(f"Failed to initialize database: {e}", exc_info=True)
        raise


if __name__ == "__main__":
    main(*sys.argv[1:2])
