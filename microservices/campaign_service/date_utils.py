"""
Campaign Date Utilities

Scheduling dates are calendar dates. The dashboard displays them, and
resolves "today", in US Eastern time regardless of where the date came
from or which locale the client runs in.
"""

from datetime import date, datetime, timedelta
from typing import Optional, Tuple, Union
from zoneinfo import ZoneInfo

EASTERN = ZoneInfo("America/New_York")

DEFAULT_ANALYTICS_WINDOW_DAYS = 30

DateInput = Union[date, datetime, str, None]


def now_eastern() -> datetime:
    return datetime.now(tz=EASTERN)


def today_eastern() -> date:
    """Current calendar date in US Eastern"""
    return now_eastern().date()


def to_eastern(value: datetime) -> datetime:
    """
    Convert a datetime to US Eastern.

    Naive datetimes are taken to already be Eastern wall time.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=EASTERN)
    return value.astimezone(EASTERN)


def to_calendar_date(value: DateInput) -> Optional[date]:
    """
    Normalize any stored or submitted scheduling value to a calendar date.

    Accepts a date, a datetime, a "YYYY-MM-DD" string, or a full ISO-8601
    timestamp (legacy rows pinned to noon UTC, "...Z" suffixes included).
    Timestamps are resolved in US Eastern before the date is taken.

    Raises:
        ValueError: unparseable string or unsupported type
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return to_eastern(value).date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if len(text) == 10:
            return date.fromisoformat(text)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return to_eastern(datetime.fromisoformat(text)).date()
    raise ValueError(f"Unsupported date value: {value!r}")


def format_date(value: DateInput) -> Optional[str]:
    """Format as YYYY-MM-DD (the workflow and the API both use this form)"""
    day = to_calendar_date(value)
    return day.isoformat() if day else None


def calendar_position(value: DateInput) -> Optional[Tuple[int, int, int]]:
    """(year, month, day) a scheduled campaign occupies on the calendar grid"""
    day = to_calendar_date(value)
    if day is None:
        return None
    return day.year, day.month, day.day


def is_same_day(left: DateInput, right: DateInput) -> bool:
    a, b = to_calendar_date(left), to_calendar_date(right)
    return a is not None and a == b


def default_date_range(
    days: int = DEFAULT_ANALYTICS_WINDOW_DAYS,
    today: Optional[date] = None,
) -> Tuple[date, date]:
    """The last `days` days, ending today (Eastern)"""
    end = today or today_eastern()
    return end - timedelta(days=days), end


def parse_date_range(
    start: Optional[str],
    end: Optional[str],
    today: Optional[date] = None,
) -> Tuple[date, date]:
    """
    Resolve an analytics date range from query parameters.

    Both absent gives the default window. Exactly one present, an
    unparseable value, or start after end raises ValueError.
    """
    if not start and not end:
        return default_date_range(today=today)
    if not start or not end:
        raise ValueError("startDate and endDate must be provided together")

    start_date = to_calendar_date(start)
    end_date = to_calendar_date(end)
    if start_date > end_date:
        raise ValueError("startDate must not be after endDate")
    return start_date, end_date


__all__ = [
    "EASTERN",
    "DEFAULT_ANALYTICS_WINDOW_DAYS",
    "now_eastern",
    "today_eastern",
    "to_eastern",
    "to_calendar_date",
    "format_date",
    "calendar_position",
    "is_same_day",
    "default_date_range",
    "parse_date_range",
]
