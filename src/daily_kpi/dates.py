"""Calendar arithmetic over timezone-free date keys.

Dates are plain `datetime.date` values; month keys are `MonthKey` pairs.
Nothing in this module validates input, callers are expected to pass
well-formed dates.
"""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterator

ISO_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")

FISCAL_YEAR_START_MONTH = 4


@dataclass(frozen=True, order=True)
class MonthKey:
    """A (year, month) truncation of a date, ordered chronologically.

    Attributes:
        year: Four-digit year.
        month: Month number (1-12).
    """
    year: int
    month: int

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


def add_days(d: date, n: int) -> date:
    return d + timedelta(days=n)


def subtract_days(d: date, n: int) -> date:
    return d - timedelta(days=n)


def add_years(d: date, n: int) -> date:
    """Shift a date by `n` years keeping month and day.

    When the day does not exist in the target year (29 Feb in a non-leap
    year) the result is clamped to the last day of the target month, so
    `add_years(date(2024, 2, 29), -1) == date(2023, 2, 28)`.

    Args:
        d: Source date.
        n: Number of years to add (negative to go back).

    Returns:
        The shifted date.
    """
    year = d.year + n
    last_day = calendar.monthrange(year, d.month)[1]
    return date(year, d.month, min(d.day, last_day))


def start_of_week(d: date) -> date:
    """Return the Monday of the week containing `d` (Sunday → previous Monday)."""
    return d - timedelta(days=d.weekday())


def month_key(d: date) -> MonthKey:
    return MonthKey(d.year, d.month)


def add_months(mk: MonthKey, n: int) -> MonthKey:
    """Shift a month key by `n` months, rolling the year as needed."""
    idx = mk.year * 12 + (mk.month - 1) + n
    return MonthKey(idx // 12, idx % 12 + 1)


def month_start(d: date) -> date:
    return d.replace(day=1)


def fiscal_year_start(d: date, start_month: int = FISCAL_YEAR_START_MONTH) -> date:
    """Return the first day of the fiscal year containing `d`.

    The fiscal year starts on day 1 of `start_month` (1 April by default):
    dates in or after that month belong to the fiscal year starting in the
    same calendar year, earlier dates to the one starting the year before.

    Args:
        d: Any date.
        start_month: Month in which the fiscal year begins.

    Returns:
        Fiscal year start date.
    """
    year = d.year if d.month >= start_month else d.year - 1
    return date(year, start_month, 1)


def compare(a: date, b: date) -> int:
    """Three-way comparison of two dates (-1, 0 or 1)."""
    return (a > b) - (a < b)


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every date from `start` to `end` inclusive (nothing if start > end)."""
    for i in range((end - start).days + 1):
        yield start + timedelta(days=i)


def parse_iso_key(s: str) -> date | None:
    """Parse a strict `YYYY-MM-DD` key, returning None when malformed or invalid."""
    m = ISO_RE.match(s)
    if not m:
        return None
    try:
        return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError:
        return None


def format_iso(d: date) -> str:
    return d.isoformat()
