"""
Day-of-week and time-of-day buckets.

Events carry these buckets frozen into their payload at write time, so the
boundaries here define history going forward, never retroactively.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta

# Indexed by date.weekday() (Monday = 0)
DAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

TIMES_OF_DAY = ("morning", "afternoon", "evening", "night")


def now() -> datetime:
    return datetime.now()


def today() -> date:
    return date.today()


def day_of_week(when: datetime | date | None = None) -> str:
    """Lowercase English weekday name."""
    when = when or now()
    return DAY_NAMES[when.weekday()]


def time_of_day(when: datetime | None = None) -> str:
    """Coarse local-hour bucket: morning 5-11, afternoon 12-16, evening 17-20, night otherwise."""
    hour = (when or now()).hour
    if 5 <= hour < 12:
        return "morning"
    if 12 <= hour < 17:
        return "afternoon"
    if 17 <= hour < 21:
        return "evening"
    return "night"


def week_start(day: date) -> date:
    """Most recent Monday on or before ``day``."""
    return day - timedelta(days=day.weekday())


def parse_timestamp(value: str | datetime | date | None) -> datetime | None:
    """Parse an ISO date or datetime string as stored in the database."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, datetime.min.time())
    text = str(value).strip().replace("Z", "")
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    # Stored timestamps are local and naive
    return parsed.replace(tzinfo=None)


__all__ = [
    "DAY_NAMES",
    "TIMES_OF_DAY",
    "day_of_week",
    "now",
    "parse_timestamp",
    "time_of_day",
    "today",
    "week_start",
]
