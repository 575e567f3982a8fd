"""Periodic background maintenance tasks run inside the application lifespan."""

import asyncio
from functools import partial
from typing import Callable, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.database import SessionLocal
from app.monitoring.db_monitor import DatabaseMonitor
from app.services.backup import DatabaseBackup
from app.services.repository import MoodRepository
from app.utils.logging import setup_logger
from app.utils.rate_limiter import FixedWindowRateLimiter

logger = setup_logger(__name__)


class PeriodicTask:
    """Runs run_once() every interval_seconds until stopped. Failures are logged, not fatal."""

    name = "periodic task"

    def __init__(self, interval_seconds: float):
        self.interval_seconds = interval_seconds
        self.running = False
        self._task: Optional[asyncio.Task] = None

    async def run_once(self) -> None:
        raise NotImplementedError

    async def _run_blocking(self, func, *args, **kwargs):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, *args, **kwargs))

    async def run(self) -> None:
        self.running = True
        logger.info(f"Starting {self.name} (interval: {self.interval_seconds}s)")
        while self.running:
            try:
                await self.run_once()
            except Exception as e:
                logger.error(f"Error in {self.name}: {str(e)}")
            await asyncio.sleep(self.interval_seconds)

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        self.running = False
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None


class RateLimitEvictionTask(PeriodicTask):
    name = "rate limit eviction"

    def __init__(self, limiter: FixedWindowRateLimiter, interval_seconds: float = 60):
        super().__init__(interval_seconds)
        self.limiter = limiter

    async def run_once(self) -> None:
        removed = self.limiter.evict_expired()
        if removed:
            logger.debug(f"Evicted {removed} expired rate limit records")


class RecommendationPruneTask(PeriodicTask):
    name = "recommendation pruning"

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        retention_days: Optional[int] = None,
        interval_seconds: float = 24 * 3600
    ):
        super().__init__(interval_seconds)
        self.session_factory = session_factory
        self.retention_days = retention_days or settings.RECOMMENDATION_RETENTION_DAYS

    def _prune(self) -> int:
        db = self.session_factory()
        try:
            return MoodRepository(db).cleanup_old_data(self.retention_days)
        finally:
            db.close()

    async def run_once(self) -> None:
        await self._run_blocking(self._prune)


class DatabaseMonitorTask(PeriodicTask):
    name = "database monitoring"

    def __init__(self, monitor: DatabaseMonitor, interval_seconds: Optional[float] = None):
        super().__init__(interval_seconds or settings.MONITOR_INTERVAL_SECONDS)
        self.monitor = monitor

    async def run_once(self) -> None:
        await self._run_blocking(self.monitor.collect_metrics)


class BackupTask(PeriodicTask):
    name = "scheduled backup"

    def __init__(self, backup: DatabaseBackup, interval_seconds: float = 24 * 3600):
        super().__init__(interval_seconds)
        self.backup = backup

    async def run_once(self) -> None:
        path = await self._run_blocking(self.backup.create_backup)
        logger.info(f"Scheduled backup completed: {path}")
