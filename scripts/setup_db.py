#!/usr/bin/env python3
"""Database setup script - runs journal migrations against PostgreSQL."""

import asyncio
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from tradeback.infrastructure.config import get_settings
from tradeback.infrastructure.database import close_pool, get_connection

settings = get_settings()
logging.basicConfig(
    level=settings.log_level,
    format=settings.log_format,
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent.parent / "tradeback" / "infrastructure" / "migrations"


async def run_migrations() -> None:
    """Run all pending migrations."""
    migration_files = sorted(MIGRATIONS_DIR.glob("*.sql"))

    if not migration_files:
        logger.warning("No migration files found in %s", MIGRATIONS_DIR)
        return

    async with get_connection() as conn:
        await conn.execute("""
            CREATE TABLE IF NOT EXISTS schema_migrations (
                version VARCHAR(50) PRIMARY KEY,
                applied_at TIMESTAMP WITH TIME ZONE DEFAULT CURRENT_TIMESTAMP
            )
        """)

        applied = await conn.fetch("SELECT version FROM schema_migrations")
        applied_versions = {row["version"] for row in applied}

        for migration_file in migration_files:
            version = migration_file.stem  # e.g., "001_create_journal_tables"

            if version in applied_versions:
                logger.info("Skipping %s (already applied)", version)
                continue

            logger.info("Applying %s...", version)
            sql = migration_file.read_text()

            async with conn.transaction():
                await conn.execute(sql)
                await conn.execute(
                    "INSERT INTO schema_migrations (version) VALUES ($1)", version
                )

            logger.info("Applied %s", version)

    logger.info("All migrations complete.")


async def main() -> None:
    """Run database setup."""
    try:
        logger.info("Connecting to PostgreSQL...")
        await run_migrations()
    finally:
        await close_pool()


if __name__ == "__main__":
    asyncio.run(main())
