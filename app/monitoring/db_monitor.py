"""
Database health and latency sampling.
"""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Deque, Dict, List, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from app.database import SessionLocal, timed_health_check
from app.services.repository import MoodRepository
from app.utils.dates import utcnow
from app.utils.logging import setup_logger

logger = setup_logger(__name__)

SLOW_RESPONSE_MS = 5000


@dataclass
class DatabaseMetrics:
    """One health sample"""
    health: bool
    response_time_ms: float
    stats: Optional[Dict[str, Any]]
    timestamp: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "health": self.health,
            "responseTime": round(self.response_time_ms, 2),
            "stats": self.stats,
            "timestamp": self.timestamp.isoformat()
        }


class DatabaseMonitor:
    """Keeps a bounded history of database health samples."""

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        bind: Optional[Engine] = None,
        max_history: int = 100
    ):
        self.session_factory = session_factory
        self.bind = bind
        self.metrics: Deque[DatabaseMetrics] = deque(maxlen=max_history)

    def collect_metrics(self) -> DatabaseMetrics:
        healthy, response_time = timed_health_check(self.bind)
        stats = None
        if healthy:
            db = self.session_factory()
            try:
                stats = MoodRepository(db).get_database_stats()
            except Exception as e:
                logger.error(f"Error collecting database stats: {str(e)}")
                healthy = False
            finally:
                db.close()

        sample = DatabaseMetrics(health=healthy, response_time_ms=response_time, stats=stats)
        self.metrics.append(sample)

        if not sample.health:
            logger.error(f"Database health check failed: {sample.to_dict()}")
        if sample.response_time_ms > SLOW_RESPONSE_MS:
            logger.warning(f"Slow database response: {sample.response_time_ms:.0f}ms")
        return sample

    def get_metrics_history(self) -> List[DatabaseMetrics]:
        return list(self.metrics)

    def get_latest_metrics(self) -> Optional[DatabaseMetrics]:
        return self.metrics[-1] if self.metrics else None

    def get_average_response_time(self, last_n: int = 10) -> float:
        recent = list(self.metrics)[-last_n:]
        if not recent:
            return 0.0
        return sum(sample.response_time_ms for sample in recent) / len(recent)

    def get_health_percentage(self, last_n: int = 10) -> float:
        recent = list(self.metrics)[-last_n:]
        if not recent:
            return 0.0
        return sum(1 for sample in recent if sample.health) / len(recent) * 100
