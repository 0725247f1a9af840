# tests/test_command_parser.py

from __future__ import annotations

import pytest

from home_organizer.chores.chore_models import Frequency, ValidationError
from home_organizer.chores.command_parser import (
    parse_chore_body,
    parse_chore_command,
    parse_field_assignments,
)


def test_every_n_weeks_with_weekday_and_assignee() -> None:
    draft = parse_chore_command("/chore Water plants every 2 weeks sat assignee=Ann_Lee")
    assert draft is not None
    assert draft.title == "Water plants"
    assert draft.frequency_hint == Frequency.WEEKLY
    assert draft.interval_hint == 2
    assert draft.weekday_hint == "sat"
    assert draft.assignee_name_hint == "Ann Lee"
    assert draft.monthday_hint is None


def test_monthly_with_day() -> None:
    draft = parse_chore_command("/chore Pay rent monthly day=01")
    assert draft is not None
    assert draft.title == "Pay rent"
    assert draft.frequency_hint == Frequency.MONTHLY
    assert draft.monthday_hint == "1"
    assert draft.interval_hint == 1


def test_weekdays_without_frequency() -> None:
    draft = parse_chore_command("/chore Vacuum mon thu MON")
    assert draft is not None
    assert draft.title == "Vacuum"
    assert draft.frequency_hint is None
    assert draft.weekday_hint == "mon,thu"


def test_frequency_word_is_case_insensitive() -> None:
    draft = parse_chore_command("/CHORE Take out trash Daily")
    assert draft is not None
    assert draft.title == "Take out trash"
    assert draft.frequency_hint == Frequency.DAILY


def test_every_day_unit() -> None:
    draft = parse_chore_body("Feed cat every 1 day")
    assert draft is not None
    assert (draft.title, draft.frequency_hint, draft.interval_hint) == ("Feed cat", Frequency.DAILY, 1)


def test_words_containing_weekday_names_stay_in_title() -> None:
    draft = parse_chore_body("Monday sunscreen check")
    assert draft is not None
    assert draft.title == "Monday sunscreen check"
    assert draft.weekday_hint is None


def test_title_falls_back_to_body() -> None:
    draft = parse_chore_body("weekly")
    assert draft is not None
    assert draft.title == "weekly"
    assert draft.frequency_hint == Frequency.WEEKLY


@pytest.mark.parametrize("text", [None, "", "hello", "/chore", "/chore   ", "/chores Dishes"])
def test_non_chore_messages(text) -> None:
    assert parse_chore_command(text) is None


def test_date_range_and_task_options() -> None:
    draft = parse_chore_body(
        "Pay rent monthly day=1 from 2024-02-01 until=2024-04-30 priority=high category=house_bills color=#f00"
    )
    assert draft is not None
    assert draft.title == "Pay rent"
    assert (draft.start_hint, draft.end_hint) == ("2024-02-01", "2024-04-30")
    assert (draft.priority_hint, draft.category_hint, draft.color_hint) == ("high", "house bills", "#f00")


def test_from_needs_a_date_after_a_space() -> None:
    draft = parse_chore_body("Sweep dust from shelves weekly")
    assert draft is not None
    assert draft.title == "Sweep dust from shelves"
    assert draft.start_hint is None


def test_bare_every_sets_interval_only() -> None:
    draft = parse_chore_body("every 3")
    assert draft is not None
    assert (draft.frequency_hint, draft.interval_hint) == (None, 3)

    draft = parse_chore_body("monthly every 2")
    assert draft is not None
    assert (draft.frequency_hint, draft.interval_hint) == (Frequency.MONTHLY, 2)


def test_once_word() -> None:
    draft = parse_chore_body("Defrost freezer once from 2024-03-02")
    assert draft is not None
    assert (draft.title, draft.frequency_hint, draft.start_hint) == ("Defrost freezer", Frequency.ONCE, "2024-03-02")


def test_field_assignments() -> None:
    fields = parse_field_assignments(["title=Take", "out", "trash", "PRIORITY=high", "assignee="])
    assert fields == {"title": "Take out trash", "priority": "high", "assignee": None}


@pytest.mark.parametrize("words", [["owner=Bob"], ["high"], ["id=3"]])
def test_field_assignments_reject_bad_words(words) -> None:
    with pytest.raises(ValidationError):
        parse_field_assignments(words)
