"""
Trend derivation over a user's mood entries.

Every function here is pure: it takes rows (anything with ``mood_score`` and
``created_at``) and returns plain values, so the dashboard numbers can be
checked without a database.
"""

from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence

from app.utils.dates import as_utc, local_date, today as current_date

NOT_AVAILABLE = "N/A"


def calculate_streak(
    entries: Iterable[Any],
    today: Optional[date] = None,
    tz_name: str = "UTC"
) -> int:
    """
    Count consecutive calendar days with at least one entry, ending today.

    Args:
        entries: Mood entries in any order
        today: Reference day (defaults to the current day in tz_name)
        tz_name: Timezone used to turn timestamps into calendar days

    Returns:
        Number of days in the streak; 0 when there is no entry today
    """
    today = today or current_date(tz_name)
    days = {local_date(entry.created_at, tz_name) for entry in entries}

    streak = 0
    day = today
    while day in days:
        streak += 1
        day -= timedelta(days=1)
    return streak


def get_best_day(entries: Iterable[Any], tz_name: str = "UTC") -> str:
    """Short weekday name ("Mon".."Sun") with the highest mean mood score."""
    totals: Dict[str, List[int]] = {}
    for entry in entries:
        day = local_date(entry.created_at, tz_name).strftime("%a")
        bucket = totals.setdefault(day, [0, 0])
        bucket[0] += entry.mood_score
        bucket[1] += 1

    best_day = NOT_AVAILABLE
    best_average = 0.0
    for day, (total, count) in totals.items():
        average = total / count
        if average > best_average:
            best_average = average
            best_day = day
    return best_day


def calculate_improvement(entries: Sequence[Any]) -> str:
    """
    Percentage change in mean mood between the older and newer half of entries.

    Entries are sorted chronologically and split at floor(n / 2).

    Returns:
        A signed percentage such as "+100.0%" or "-12.5%", or "N/A" with fewer
        than two entries or a zero first-half mean
    """
    if len(entries) < 2:
        return NOT_AVAILABLE

    ordered = sorted(entries, key=lambda entry: as_utc(entry.created_at))
    middle = len(ordered) // 2
    first_half, second_half = ordered[:middle], ordered[middle:]

    first_average = average_mood(first_half)
    second_average = average_mood(second_half)
    if first_average == 0:
        return NOT_AVAILABLE

    improvement = (second_average - first_average) / first_average * 100
    return f"+{improvement:.1f}%" if improvement > 0 else f"{improvement:.1f}%"


def average_mood(entries: Sequence[Any]) -> float:
    if not entries:
        return 0.0
    return sum(entry.mood_score for entry in entries) / len(entries)


def build_user_stats(
    recent_entries: Sequence[Any],
    week_entries: Sequence[Any],
    songs_analyzed: int,
    streak_entries: Optional[Iterable[Any]] = None,
    today: Optional[date] = None,
    tz_name: str = "UTC"
) -> Dict[str, Any]:
    """
    Assemble the dashboard summary.

    Args:
        recent_entries: Newest-first entries; the first one gives the current mood
        week_entries: Entries from the last seven days
        songs_analyzed: Number of stored music analyses
        streak_entries: Entries spanning the streak window (defaults to recent_entries)
    """
    latest = recent_entries[0] if recent_entries else None
    current_mood = (latest.emotions[0] if latest is not None and latest.emotions else "neutral")
    week_average = average_mood(week_entries)
    if streak_entries is None:
        streak_entries = recent_entries
    streak = calculate_streak(streak_entries, today=today, tz_name=tz_name)

    return {
        "current_mood": current_mood,
        "streak": f"{streak} days",
        "songs_analyzed": songs_analyzed,
        "mood_score": f"{week_average:.1f}",
        "average_mood": f"{week_average:.1f}",
        "best_day": get_best_day(week_entries, tz_name=tz_name),
        "improvement": calculate_improvement(week_entries),
    }
