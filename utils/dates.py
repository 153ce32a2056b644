"""
Calendar helpers shared by the flexibility and capacity calculators.
"""
from datetime import date, timedelta
from typing import Iterator, Optional, Tuple, Union

from models import Schedule

GRANULARITIES = ("day", "week", "month", "quarter", "year")


def parse_date(value: Union[str, date], context: str = "") -> date:
    """Parse a YYYY-MM-DD string (dates pass through unchanged)."""
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        ctx = f" ({context})" if context else ""
        raise ValueError(f"Cannot parse date{ctx}: {value!r}. Expected YYYY-MM-DD")


def format_date(day: date) -> str:
    return day.isoformat()


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every calendar date from start to end (inclusive)."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def count_working_days(start: date, end: date, schedule: Schedule) -> int:
    """Count days with scheduled hours between start and end (inclusive)."""
    return sum(1 for day in iter_days(start, end) if schedule.hours_on(day) > 0)


def count_available_hours(start: date, end: date, schedule: Schedule) -> float:
    """Sum scheduled hours between start and end (inclusive); 0 if end < start."""
    return sum(schedule.hours_on(day) for day in iter_days(start, end))


def working_days_until(today: date, due: date, schedule: Schedule) -> int:
    """Working days left until due, negative when past due (today not counted then)."""
    if due >= today:
        return count_working_days(today, due, schedule)
    return -max(count_working_days(due, today, schedule) - 1, 0)


def get_week_start(day: date) -> date:
    """Monday of the ISO week containing day."""
    return day - timedelta(days=day.weekday())


def period_key(day: date, granularity: str) -> Tuple[int, ...]:
    """
    Bucket key of the period containing day.

    Args:
        day: Calendar date
        granularity: One of day, week, month, quarter, year

    Returns:
        Tuple that sorts chronologically and is equal for days in the same period
    """
    if granularity == "day":
        return (day.year, day.month, day.day)
    if granularity == "week":
        iso_year, iso_week, _ = day.isocalendar()
        return (iso_year, iso_week)
    if granularity == "month":
        return (day.year, day.month)
    if granularity == "quarter":
        return (day.year, (day.month - 1) // 3 + 1)
    if granularity == "year":
        return (day.year,)
    raise ValueError(f"Unknown granularity {granularity!r}; expected one of {GRANULARITIES}")


def period_label(day: date, granularity: str) -> str:
    """Human readable period name, e.g. 2026-W07, 2026-03, 2026-Q1."""
    key = period_key(day, granularity)
    if granularity == "day":
        return day.isoformat()
    if granularity == "week":
        return f"{key[0]}-W{key[1]:02d}"
    if granularity == "month":
        return f"{key[0]}-{key[1]:02d}"
    if granularity == "quarter":
        return f"{key[0]}-Q{key[1]}"
    return str(key[0])


def date_in_range(day: date, start: Optional[date], end: Optional[date]) -> bool:
    """Inclusive range check; false when either bound is missing."""
    if start is None or end is None:
        return False
    return start <= day <= end
