"""
Database initialization script.
Creates any missing tables from the models, or applies the Alembic
migrations with --migrate.
Run this as: python init_db.py [--migrate]
"""

import argparse
import logging
import sys

# Configure logging
logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger("db-init")

from app.core.config import settings
from app.db.init_db import create_all_tables, init_db

def main():
    parser = argparse.ArgumentParser(description="Initialize the database")
    parser.add_argument("--migrate", action="store_true", help="Apply Alembic migrations instead of create_all")
    args = parser.parse_args()

    logger.info(f"Initializing database at: {settings.DATABASE_URL}")
    if args.migrate:
        init_db()
    elif not create_all_tables():
        logger.error("Database initialization failed")
        sys.exit(1)
    logger.info("Database initialization completed successfully")

if __name__ == "__main__":
    main()
