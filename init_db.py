"""
Database initialization script.
This script applies the Alembic migrations, or creates the tables straight
from the models when run with --create-all.
Run this as: python init_db.py
"""

import argparse
import logging
import sys
from pathlib import Path

# Configure logging
logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger("db-init")

# Add current directory to path to ensure imports work
sys.path.append(str(Path(__file__).parent))

from postdesk.core.config import settings
from postdesk.db.init_db import create_all_tables, init_db

def main() -> bool:
    parser = argparse.ArgumentParser(description="Initialize the Postdesk database")
    parser.add_argument(
        "--create-all",
        action="store_true",
        help="Create tables from the models instead of running migrations"
    )
    args = parser.parse_args()

    logger.info(f"Initializing database at: {settings.DATABASE_URL.split('@')[-1]}")
    if args.create_all:
        return create_all_tables()

    try:
        init_db()
    except Exception:
        return False
    return True

if __name__ == "__main__":
    logger.info("Starting database initialization")
    success = main()
    if success:
        logger.info("Database initialization completed successfully")
    else:
        logger.error("Database initialization failed")
        sys.exit(1)
