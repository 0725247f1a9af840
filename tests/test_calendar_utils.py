# tests/test_calendar_utils.py

from __future__ import annotations

from datetime import date

import pytest

from home_organizer.chores.calendar_utils import (
    add_days,
    diff_in_days,
    diff_in_months,
    format_iso_date,
    iter_days,
    month_range,
    next_month,
    parse_iso_date,
    require_iso_date,
)
from home_organizer.chores.chore_models import ValidationError


def test_format_and_parse_iso_date() -> None:
    assert format_iso_date(date(2024, 3, 5)) == "2024-03-05"
    assert parse_iso_date("2024-03-05") == date(2024, 3, 5)
    assert parse_iso_date(" 2024-03-05 ") == date(2024, 3, 5)


@pytest.mark.parametrize("raw", [None, "", "abc", "2024-1-5", "2024-02-30", "2024-13-01", "20240105"])
def test_parse_iso_date_rejects_malformed(raw) -> None:
    assert parse_iso_date(raw) is None


def test_require_iso_date_errors() -> None:
    with pytest.raises(ValidationError, match="date is required"):
        require_iso_date(None)
    with pytest.raises(ValidationError, match="invalid start_date"):
        require_iso_date("2024-02-30", "start_date")


def test_month_range_handles_leap_years() -> None:
    assert month_range(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))
    assert month_range(2023, 2) == (date(2023, 2, 1), date(2023, 2, 28))
    assert month_range(2024, 12) == (date(2024, 12, 1), date(2024, 12, 31))
    with pytest.raises(ValidationError):
        month_range(2024, 13)


def test_day_and_month_differences() -> None:
    # Spans a DST switch in most zones; still exactly one day.
    assert diff_in_days(date(2024, 3, 31), date(2024, 3, 30)) == 1
    assert diff_in_days(date(2024, 1, 1), date(2024, 1, 10)) == -9
    assert diff_in_days(date(2025, 1, 1), date(2024, 1, 1)) == 366

    # Day of month is ignored.
    assert diff_in_months(date(2024, 3, 1), date(2024, 1, 31)) == 2
    assert diff_in_months(date(2025, 1, 15), date(2024, 11, 30)) == 2
    assert diff_in_months(date(2024, 1, 31), date(2024, 1, 1)) == 0


def test_iter_days_is_inclusive() -> None:
    days = list(iter_days(date(2024, 2, 1), date(2024, 2, 29)))
    assert len(days) == 29
    assert days[0] == date(2024, 2, 1)
    assert days[-1] == date(2024, 2, 29)
    assert list(iter_days(date(2024, 2, 2), date(2024, 2, 1))) == []


def test_next_month_and_add_days() -> None:
    assert next_month(2024, 12) == (2025, 1)
    assert next_month(2024, 1) == (2024, 2)
    assert add_days(date(2024, 3, 1), -1) == date(2024, 2, 29)


def test_range_edges_raise_validation_errors() -> None:
    days = list(iter_days(date(9999, 12, 30), date(9999, 12, 31)))
    assert days == [date(9999, 12, 30), date(9999, 12, 31)]

    with pytest.raises(ValidationError):
        add_days(date(1, 1, 1), -1)
    with pytest.raises(ValidationError):
        add_days(date(9999, 12, 31), 1)
    with pytest.raises(ValidationError, match="year"):
        month_range(99999, 1)
    with pytest.raises(ValidationError, match="year"):
        month_range(0, 1)
