"""
Monitoring package for database health metrics.
"""

from .db_monitor import DatabaseMonitor, DatabaseMetrics

__all__ = ['DatabaseMonitor', 'DatabaseMetrics']
