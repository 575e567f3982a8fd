"""PostgreSQL backups through pg_dump and psql."""

import gzip
import os
import subprocess
from datetime import timedelta
from pathlib import Path
from typing import Dict, List, Optional

from sqlalchemy.engine import make_url

from app.core.config import Settings, settings as default_settings
from app.utils.dates import utcnow
from app.utils.exceptions import BackupError
from app.utils.logging import setup_logger

logger = setup_logger(__name__)

BACKUP_PREFIX = "moodscale_backup_"


class DatabaseBackup:
    """Creates, lists, restores and prunes SQL dumps under BACKUP_PATH."""

    def __init__(self, settings: Settings = default_settings):
        self.enabled = settings.BACKUP_ENABLED
        self.backup_path = Path(settings.BACKUP_PATH)
        self.retention_days = settings.BACKUP_RETENTION_DAYS
        self.compression = settings.BACKUP_COMPRESSION
        self.url = make_url(settings.DATABASE_URL.replace("postgres://", "postgresql://", 1))

    def _connection_args(self) -> List[str]:
        if not self.url.get_backend_name().startswith("postgresql"):
            raise BackupError("Backups require a PostgreSQL database")
        args = []
        if self.url.host:
            args += ["--host", self.url.host]
        if self.url.port:
            args += ["--port", str(self.url.port)]
        if self.url.username:
            args += ["--username", self.url.username]
        args += ["--dbname", self.url.database or "moodscale"]
        return args

    def _environment(self) -> Dict[str, str]:
        # Password goes through the environment, never argv
        env = dict(os.environ)
        if self.url.password:
            env["PGPASSWORD"] = str(self.url.password)
        return env

    def create_backup(self) -> Path:
        """Dump the database and prune expired backups. Returns the new file."""
        if not self.enabled:
            raise BackupError("Backups are disabled")

        self.backup_path.mkdir(parents=True, exist_ok=True)
        timestamp = utcnow().strftime("%Y-%m-%dT%H-%M-%S-%fZ")
        filepath = self.backup_path / f"{BACKUP_PREFIX}{timestamp}.sql"
        command = ["pg_dump", *self._connection_args(), "--no-owner"]
        if self.compression:
            filepath = filepath.with_name(filepath.name + ".gz")
            command += ["--compress", "6"]
        command += ["--file", str(filepath)]

        logger.info(f"Creating database backup {filepath.name}")
        try:
            subprocess.run(command, env=self._environment(), check=True, capture_output=True)
        except (OSError, subprocess.CalledProcessError) as e:
            logger.error(f"Backup failed: {str(e)}")
            raise BackupError("Failed to create database backup") from e

        self.cleanup_old_backups()
        return filepath

    def restore_backup(self, backup_file: str) -> None:
        path = Path(backup_file)
        if not path.is_absolute() and not path.exists():
            path = self.backup_path / path
        if not path.exists():
            raise BackupError("Backup file not found")

        command = ["psql", *self._connection_args(), "--quiet", "--set", "ON_ERROR_STOP=1"]
        logger.info(f"Restoring database backup {path.name}")
        try:
            if path.suffix == ".gz":
                with gzip.open(path, "rb") as dump:
                    subprocess.run(
                        command, input=dump.read(), env=self._environment(),
                        check=True, capture_output=True
                    )
            else:
                subprocess.run(
                    command + ["--file", str(path)], env=self._environment(),
                    check=True, capture_output=True
                )
        except (OSError, subprocess.CalledProcessError) as e:
            logger.error(f"Restore failed: {str(e)}")
            raise BackupError("Failed to restore database backup") from e
        logger.info("Backup restored successfully")

    def list_backups(self) -> List[str]:
        """Backup file names, newest first."""
        if not self.backup_path.is_dir():
            return []
        return sorted(
            (entry.name for entry in self.backup_path.iterdir() if entry.name.startswith(BACKUP_PREFIX)),
            reverse=True
        )

    def cleanup_old_backups(self, now: Optional[float] = None) -> int:
        """Delete backups whose modification time is past the retention period."""
        now = now if now is not None else utcnow().timestamp()
        cutoff = now - timedelta(days=self.retention_days).total_seconds()
        removed = 0
        for name in self.list_backups():
            path = self.backup_path / name
            try:
                if path.stat().st_mtime < cutoff:
                    path.unlink()
                    removed += 1
                    logger.info(f"Deleted old backup: {name}")
            except OSError as e:
                logger.error(f"Error removing backup {name}: {str(e)}")
        return removed
