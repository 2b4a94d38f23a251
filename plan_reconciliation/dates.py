"""Calendar helpers shared by the scheduling and adaptation engines.

Weekdays are numbered 0=Sunday .. 6=Saturday, and a plan-week runs
Sunday through Saturday.
"""

from datetime import date, datetime, timedelta
from typing import Iterator, Union

DateLike = Union[date, datetime, str]

WEEKEND_DAYS = (0, 6)
DAY_NAMES = [
    "sunday",
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
]


def to_date(value: DateLike) -> date:
    """Coerce a date, datetime or ISO string to a calendar date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        # Accept both "2025-03-04" and full ISO timestamps
        if "T" in text or " " in text:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        return date.fromisoformat(text)
    raise TypeError(f"Cannot interpret {value!r} as a date")


def day_of_week(value: DateLike) -> int:
    """Weekday index with Sunday as 0."""
    return (to_date(value).weekday() + 1) % 7


def week_start(value: DateLike) -> date:
    """First day (Sunday) of the plan-week containing the date."""
    d = to_date(value)
    return d - timedelta(days=day_of_week(d))


def week_dates(value: DateLike) -> list:
    """The seven dates of the plan-week containing the date."""
    start = week_start(value)
    return [start + timedelta(days=offset) for offset in range(7)]


def is_weekend(value: DateLike) -> bool:
    return day_of_week(value) in WEEKEND_DAYS


def date_range(start: DateLike, end: DateLike) -> Iterator[date]:
    """Yield every date from start to end, both inclusive."""
    current = to_date(start)
    last = to_date(end)
    while current <= last:
        yield current
        current += timedelta(days=1)


def days_between(a: DateLike, b: DateLike) -> int:
    """Absolute number of calendar days between two dates."""
    return abs((to_date(a) - to_date(b)).days)
