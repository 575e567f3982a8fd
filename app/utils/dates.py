from datetime import date, datetime, timezone
from typing import Optional

import pytz


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (SQLite returns those) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def local_date(value: datetime, tz_name: str = "UTC") -> date:
    """Calendar date of a timestamp in the given timezone."""
    return as_utc(value).astimezone(pytz.timezone(tz_name)).date()


def today(tz_name: str = "UTC", now: Optional[datetime] = None) -> date:
    return local_date(now or utcnow(), tz_name)
