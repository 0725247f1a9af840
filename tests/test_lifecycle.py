# tests/test_lifecycle.py

from __future__ import annotations

import pytest

from home_organizer.chores.chore_api import fetch_month
from home_organizer.chores.chore_models import Frequency, NotFoundError, ValidationError
from home_organizer.chores.lifecycle import narrow_end_date, stop_from_date

from .fakes import FakeChoreRepo, make_rule, make_task


def test_narrow_sets_end_to_day_before() -> None:
    rule = make_rule(frequency=Frequency.DAILY)
    assert narrow_end_date(rule, "2024-02-10").end_date == "2024-02-09"
    assert narrow_end_date(rule, "2024-01-01").end_date == "2023-12-31"
    assert narrow_end_date(rule, "2024-03-01").end_date == "2024-02-29"


def test_narrow_never_widens() -> None:
    stopped = make_rule(frequency=Frequency.DAILY, end_date="2024-02-09")

    assert narrow_end_date(stopped, "2024-03-01") is stopped
    assert narrow_end_date(stopped, "2024-02-10").end_date == "2024-02-09"
    assert narrow_end_date(stopped, "2024-02-05").end_date == "2024-02-04"


def test_narrow_rejects_bad_date() -> None:
    with pytest.raises(ValidationError):
        narrow_end_date(make_rule(), "2024-02-31")


def test_stop_from_date_then_resolve() -> None:
    repo = FakeChoreRepo(pairs=[(make_task(1), make_rule(1, Frequency.DAILY, "2024-01-01"))])

    updated = stop_from_date(repo, 1, "2024-02-10")
    assert updated.end_date == "2024-02-09"
    assert repo.end_date_writes == [(1, "2024-02-09")]

    dates = [o.date for o in fetch_month(repo, 2024, 2).occurrences]
    assert dates[-1] == "2024-02-09"
    assert len(dates) == 9
    assert fetch_month(repo, 2024, 3).occurrences == []

    # A later stop is a no-op and writes nothing.
    again = stop_from_date(repo, 1, "2024-03-01")
    assert again.end_date == "2024-02-09"
    assert repo.end_date_writes == [(1, "2024-02-09")]


def test_stop_errors() -> None:
    repo = FakeChoreRepo()
    with pytest.raises(ValidationError):
        stop_from_date(repo, 1, "")
    with pytest.raises(ValidationError):
        stop_from_date(repo, 1, "10/02/2024")
    with pytest.raises(NotFoundError):
        stop_from_date(repo, 1, "2024-02-10")


def test_narrow_before_first_representable_day() -> None:
    with pytest.raises(ValidationError):
        narrow_end_date(make_rule(start_date="0001-01-01"), "0001-01-01")
