"""
Calendar helpers for month keys, periods, and ISO date parsing.

Months are identified by "YYYY-MM" keys throughout the ledger.
"""

import calendar
import re
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Iterator, Optional, Union

from amplop.exceptions import InvalidDateError, InvalidMonthError

MONTH_KEY_PATTERN = re.compile(r"^(?P<year>\d{4})-(?P<month>\d{2})$")

DateLike = Union[date, datetime, str]


@dataclass(frozen=True)
class Period:
    """Inclusive date range."""

    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_date(value: DateLike) -> date:
    """
    Normalize a date-like value to a calendar date.

    Accepts ``date``, ``datetime`` (the date part is kept) and ISO-8601
    strings, either calendar dates ("2024-05-01") or date-times
    ("2024-05-01T10:00:00Z").

    Raises:
        InvalidDateError: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise InvalidDateError(value)

    text = value.strip()
    try:
        if len(text) == 10:
            return date.fromisoformat(text)
        # fromisoformat() only learned the "Z" suffix in 3.11
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return datetime.fromisoformat(text).date()
    except ValueError:
        raise InvalidDateError(value) from None


def parse_timestamp(value: Union[datetime, str, None]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp, returning None for empty values."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        raise InvalidDateError(value) from None


def month_key(day: date) -> str:
    """Get the "YYYY-MM" key of the month containing a date."""
    return f"{day.year:04d}-{day.month:02d}"


def parse_month(key: str) -> tuple[int, int]:
    """
    Parse a "YYYY-MM" key into (year, month).

    Raises:
        InvalidMonthError: If the key is malformed
    """
    if not isinstance(key, str):
        raise InvalidMonthError(key)
    match = MONTH_KEY_PATTERN.match(key)
    if not match:
        raise InvalidMonthError(key)
    year, month = int(match.group("year")), int(match.group("month"))
    if month < 1 or month > 12:
        raise InvalidMonthError(key)
    return year, month


def month_period(key: str) -> Period:
    """Get the inclusive first-to-last day period for a month key."""
    year, month = parse_month(key)
    last_day = calendar.monthrange(year, month)[1]
    return Period(date(year, month, 1), date(year, month, last_day))


def current_month_period(today: Optional[date] = None) -> Period:
    return month_period(month_key(today or date.today()))


def year_to_date_period(today: Optional[date] = None) -> Period:
    today = today or date.today()
    return Period(date(today.year, 1, 1), today)


def months_between(start: date, end: date) -> int:
    """Number of calendar-month boundaries between two dates (end - start)."""
    return (end.year - start.year) * 12 + (end.month - start.month)


def iter_months(start: date, end: date) -> Iterator[str]:
    """Yield month keys from the month of ``start`` through the month of ``end``."""
    year, month = start.year, start.month
    for _ in range(months_between(start, end) + 1):
        yield f"{year:04d}-{month:02d}"
        if month == 12:
            year, month = year + 1, 1
        else:
            month += 1
