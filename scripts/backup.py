#!/usr/bin/env python3
"""Create, list or restore MoodScale database backups."""
import argparse
import logging
import os
import sys

# Add project root to Python path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.core.config import get_settings
from app.services.backup import DatabaseBackup
from app.utils.exceptions import BackupError

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    subcommands = parser.add_subparsers(dest="command", required=True)
    subcommands.add_parser("create", help="dump the database into BACKUP_PATH")
    subcommands.add_parser("list", help="list backups, newest first")
    restore = subcommands.add_parser("restore", help="restore a backup file")
    restore.add_argument("file", help="backup file name or path")
    args = parser.parse_args()

    backup = DatabaseBackup(get_settings())
    try:
        if args.command == "create":
            path = backup.create_backup()
            logger.info(f"Backup created: {path}")
        elif args.command == "list":
            backups = backup.list_backups()
            if not backups:
                logger.info("No backups found")
            for name in backups:
                print(name)
        elif args.command == "restore":
            backup.restore_backup(args.file)
            logger.info("Backup restored")
    except BackupError as e:
        logger.error(e.message)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
