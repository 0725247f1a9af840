# chores/calendar_utils.py

from __future__ import annotations

"""
Local calendar-date arithmetic.

Everything here works on `datetime.date` (no time of day, no timezone).
Differences are computed on ordinal days, never on timestamps.
"""

import calendar
import re
from collections.abc import Iterator
from datetime import MAXYEAR, MINYEAR, date, timedelta

from .chore_models import ValidationError

_ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


def format_iso_date(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def parse_iso_date(value: str | None) -> date | None:
    """Parse YYYY-MM-DD. Returns None for empty or malformed input."""
    if not value:
        return None
    m = _ISO_DATE_RE.match(value.strip())
    if not m:
        return None
    try:
        return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError:
        return None


def require_iso_date(value: str | None, field_name: str = "date") -> date:
    d = parse_iso_date(value)
    if d is None:
        if not value:
            raise ValidationError(f"{field_name} is required")
        raise ValidationError(f"invalid {field_name}: {value!r}")
    return d


def month_range(year: int, month: int) -> tuple[date, date]:
    """First and last day of the month (inclusive)."""
    if not MINYEAR <= int(year) <= MAXYEAR:
        raise ValidationError(f"year must be {MINYEAR}..{MAXYEAR}, got {year!r}")
    if not 1 <= int(month) <= 12:
        raise ValidationError(f"month must be 1..12, got {month!r}")
    last_day = calendar.monthrange(int(year), int(month))[1]
    return date(int(year), int(month), 1), date(int(year), int(month), last_day)


def next_month(year: int, month: int) -> tuple[int, int]:
    if month == 12:
        return year + 1, 1
    return year, month + 1


def diff_in_days(a: date, b: date) -> int:
    """Whole days from b to a (negative if a is before b)."""
    return a.toordinal() - b.toordinal()


def diff_in_months(a: date, b: date) -> int:
    """Whole calendar months from b to a, ignoring the day of month."""
    return (a.year - b.year) * 12 + (a.month - b.month)


def add_days(d: date, n: int) -> date:
    try:
        return d + timedelta(days=n)
    except OverflowError:
        raise ValidationError(f"date out of range: {format_iso_date(d)} {n:+d} days") from None


def iter_days(start: date, end: date) -> Iterator[date]:
    """Every day from start to end, both inclusive."""
    for ordinal in range(start.toordinal(), end.toordinal() + 1):
        yield date.fromordinal(ordinal)
