#!/usr/bin/env python3
"""Create the MoodScale schema, optionally seeding demo data."""
import argparse
import logging
import os
import sys

# Add project root to Python path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.database import check_database_health
from app.db.init_db import create_sample_data, setup_database

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--sample-data", action="store_true", help="create demo_user with sample mood entries")
    args = parser.parse_args()

    if not check_database_health():
        logger.error("Database is not reachable, check DATABASE_URL")
        return 1

    try:
        setup_database()
        if args.sample_data:
            created = create_sample_data()
            logger.info("Sample data created" if created else "Sample data already present")
    except Exception as e:
        logger.error(f"Migration failed: {str(e)}")
        return 1

    logger.info("Database migration completed")
    return 0


if __name__ == "__main__":
    sys.exit(main())
