"""Calendar helpers for resolution-rank.

Pure functions over dates and day keys (YYYY-MM-DD). The only function that
reads the wall clock is now_local(); everything else takes "now" or "today"
as an argument.

Day boundary: the local calendar day of the supplied ``now``. Timestamps are
converted into the timezone of ``now`` before their date is taken, naive
timestamps are assumed to already be in that timezone.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, tzinfo

ONE_DAY = timedelta(days=1)


def now_local(tz: tzinfo | None = None) -> datetime:
    """Return the current time as an aware datetime in tz (or the machine zone)."""
    if tz is not None:
        return datetime.now(tz=tz)
    return datetime.now().astimezone()


def day_key(d: date) -> str:
    """Format a date as a YYYY-MM-DD key."""
    return d.isoformat()


def parse_day(key: str) -> date:
    """Parse a YYYY-MM-DD key to a date object."""
    return date.fromisoformat(key)


def today_key(now: datetime) -> str:
    """Day key of the local calendar day of now."""
    return day_key(now.date())


def _align(timestamp: datetime, now: datetime) -> datetime:
    """Express timestamp in the same timezone convention as now."""
    if timestamp.tzinfo is None:
        if now.tzinfo is not None:
            return timestamp.replace(tzinfo=now.tzinfo)
        return timestamp
    if now.tzinfo is None:
        return timestamp.astimezone().replace(tzinfo=None)
    return timestamp.astimezone(now.tzinfo)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO timestamp or bare day key into a datetime."""
    return datetime.fromisoformat(value)


def local_date(timestamp: str, now: datetime) -> date:
    """Calendar day a timestamp falls on, under now's day boundary."""
    return _align(parse_timestamp(timestamp), now).date()


def days_since(timestamp: str, now: datetime) -> int:
    """Whole days elapsed between timestamp and now (floor division)."""
    elapsed = now - _align(parse_timestamp(timestamp), now)
    return elapsed // ONE_DAY


def date_range(start: date, end: date) -> list[str]:
    """Inclusive ascending day keys from start to end. Empty if start > end."""
    keys: list[str] = []
    current = start
    while current <= end:
        keys.append(day_key(current))
        current += ONE_DAY
    return keys


def start_of_week(today: date) -> date:
    """Monday of today's ISO week. Sunday counts as day 7 of its week."""
    return today - timedelta(days=today.weekday())


def start_of_month(today: date) -> date:
    return today.replace(day=1)


def start_of_quarter(today: date) -> date:
    """First day of the 3-month quarter (Jan/Apr/Jul/Oct) containing today."""
    quarter_month = ((today.month - 1) // 3) * 3 + 1
    return today.replace(month=quarter_month, day=1)


def start_of_year(today: date) -> date:
    return today.replace(month=1, day=1)
