#!/usr/bin/env python3
"""Sample database health periodically and print a status report."""
import argparse
import logging
import os
import sys
import time

# Add project root to Python path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.monitoring.db_monitor import DatabaseMonitor

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def print_report(monitor: DatabaseMonitor) -> None:
    latest = monitor.get_latest_metrics()
    if latest is None:
        return
    print("\nDatabase Status Report:")
    print(f"   Health: {'Healthy' if latest.health else 'Unhealthy'}")
    print(f"   Response Time: {latest.response_time_ms:.0f}ms (avg: {monitor.get_average_response_time():.1f}ms)")
    print(f"   Health %: {monitor.get_health_percentage():.1f}%")
    if latest.stats:
        print(f"   Users: {latest.stats['users']}")
        print(f"   Mood Entries: {latest.stats['moodEntries']}")
        print(f"   Music Analysis: {latest.stats['musicAnalysis']}")


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--interval", type=int, default=30, help="seconds between samples")
    args = parser.parse_args()

    monitor = DatabaseMonitor()
    logger.info(f"Starting database monitoring (interval: {args.interval}s)")
    try:
        while True:
            monitor.collect_metrics()
            print_report(monitor)
            time.sleep(args.interval)
    except KeyboardInterrupt:
        logger.info("Stopping database monitoring")
    return 0


if __name__ == "__main__":
    sys.exit(main())
