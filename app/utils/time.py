"""Time and month-key utilities."""

from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo

from app.config import settings

LOCAL_TZ = ZoneInfo(settings.TIMEZONE)

MONTH_KEY_FORMAT = "%Y-%m"


def now_local_naive() -> datetime:
    """
    Current time in the service timezone, returned as naive datetime for DB storage.
    """
    return datetime.now(LOCAL_TZ).replace(tzinfo=None)


def today_local() -> date:
    return datetime.now(LOCAL_TZ).date()


def month_key(value: date) -> str:
    """YYYY-MM key of the calendar month containing `value`."""
    return value.strftime(MONTH_KEY_FORMAT)


def parse_month_key(value: str) -> Optional[date]:
    """
    Parse a YYYY-MM key into the first day of that month.

    Returns None when the key is malformed.
    """
    try:
        parsed = datetime.strptime(value, MONTH_KEY_FORMAT)
    except (TypeError, ValueError):
        return None
    # strptime accepts "2024-1"; keys are always zero padded
    if parsed.strftime(MONTH_KEY_FORMAT) != value:
        return None
    return parsed.date()


def month_bounds(key: str) -> tuple[date, date]:
    """First day of the month and first day of the following month."""
    start = parse_month_key(key)
    if start is None:
        raise ValueError(f"Invalid month key: {key!r}")
    if start.month == 12:
        return start, date(start.year + 1, 1, 1)
    return start, date(start.year, start.month + 1, 1)
