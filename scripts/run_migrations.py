#!/usr/bin/env python3
"""
Simple script to create the database tables for local development.
Deployed environments use the Alembic revisions instead.
"""

import asyncio
import logging
import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from dropview.config import settings
from dropview.database import init_db

logger = logging.getLogger("run_migrations")


async def create_tables() -> bool:
    """Create all database tables."""
    logger.info(f"Creating database tables on {settings.database_url}")

    try:
        await init_db()
    except Exception as e:
        logger.error(f"Error creating tables: {e}")
        return False

    logger.info("Database tables created successfully")
    return True


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    ok = asyncio.run(create_tables())
    sys.exit(0 if ok else 1)
