"""Create or upgrade the schema, with a file backup for SQLite databases.

Usage:
    python -m app.migrate

An existing SQLite file is copied to ``notifications_backup.db`` in the
same directory before anything runs. If the migration fails the backup is
copied back and the process exits with status 1.
"""
import asyncio
import logging
import os
import shutil
import sys
from typing import Optional

from .config import settings, get_database_url, sqlite_path
from .database import Database

logger = logging.getLogger(__name__)

BACKUP_NAME = "notifications_backup.db"


def backup_path_for(db_path: str) -> str:
    return os.path.join(os.path.dirname(db_path), BACKUP_NAME)


def create_backup(db_path: Optional[str]) -> Optional[str]:
    """Copy the SQLite file aside. Returns the backup path, or None if nothing was copied."""
    if not db_path or not os.path.exists(db_path):
        logger.info("No existing database file found, creating a new one")
        return None

    backup = backup_path_for(db_path)
    shutil.copyfile(db_path, backup)
    logger.info(f"Database backup created at {backup}")
    return backup


def restore_backup(db_path: str, backup: str):
    shutil.copyfile(backup, db_path)
    logger.info("Database restored from backup")


async def migrate(url: str) -> Optional[str]:
    """Run the migration against ``url``.

    Returns:
        Path of the backup taken, if any
    """
    db_path = sqlite_path(url)
    backup = create_backup(db_path)

    database = Database(url)
    try:
        await database.init()
    except Exception:
        logger.error("Migration failed", exc_info=True)
        await database.close()
        if backup:
            restore_backup(db_path, backup)
        raise

    await database.close()

    logger.info("Migration completed successfully")
    return backup


def main() -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    try:
        asyncio.run(migrate(get_database_url(settings)))
    except Exception:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
