# tests/test_occurrences.py

from __future__ import annotations

from datetime import date

from home_organizer.chores.chore_api import fetch_month, upcoming
from home_organizer.chores.chore_models import Frequency, Instance, InstanceStatus, Person
from home_organizer.chores.occurrences import (
    group_by_date,
    make_month_window,
    resolve,
    select_upcoming,
)

from .fakes import FakeChoreRepo, make_rule, make_task

JAN = make_month_window(2024, 1)


def test_resolve_merges_assignee_and_overrides() -> None:
    ann = Person(id=1, name="Ann", color="#F6C56B")
    task = make_task(5, "Dishes", notes="use the blue sponge", assignee_id=1, priority="high")
    rule = make_rule(5, Frequency.ONCE, "2024-01-03")
    done = Instance(task_id=5, date="2024-01-03", status=InstanceStatus.DONE, notes="done early")

    [occ] = resolve(JAN, [(task, rule)], [done], [ann])

    assert occ.date == "2024-01-03"
    assert occ.task_id == 5
    assert occ.title == "Dishes"
    assert occ.status == InstanceStatus.DONE
    assert occ.notes == "done early"
    assert occ.priority == "high"
    assert (occ.assignee_id, occ.assignee_name, occ.assignee_color) == (1, "Ann", "#F6C56B")


def test_defaults_without_override() -> None:
    task = make_task(1, "Trash", notes="bins by the gate")
    rule = make_rule(1, Frequency.ONCE, "2024-01-09")
    note_only = Instance(task_id=1, date="2024-01-09", status=InstanceStatus.OPEN, notes=None)

    [plain] = resolve(JAN, [(task, rule)], [], [])
    assert plain.status == InstanceStatus.OPEN
    assert plain.notes == "bins by the gate"

    [with_row] = resolve(JAN, [(task, rule)], [note_only], [])
    assert with_row.notes == "bins by the gate"


def test_inactive_or_missing_assignee_keeps_id_only() -> None:
    gone = Person(id=2, name="Bob", color="#000", active=False)
    rule = make_rule(1, Frequency.ONCE, "2024-01-02")

    [occ] = resolve(JAN, [(make_task(1, assignee_id=2), rule)], [], [gone])
    assert occ.assignee_id == 2
    assert occ.assignee_name is None
    assert occ.assignee_color is None

    [occ] = resolve(JAN, [(make_task(1, assignee_id=9), rule)], [], [])
    assert occ.assignee_id == 9
    assert occ.assignee_name is None


def test_inactive_tasks_produce_nothing() -> None:
    rule = make_rule(1, Frequency.DAILY, "2024-01-01")
    assert resolve(JAN, [(make_task(1, active=False), rule)], [], []) == []


def test_output_is_day_major_and_repeatable() -> None:
    pairs = [
        (make_task(1, "A"), make_rule(1, Frequency.DAILY, "2024-01-01")),
        (make_task(2, "B"), make_rule(2, Frequency.DAILY, "2024-01-01")),
    ]
    first = resolve(JAN, pairs, [], [])
    second = resolve(JAN, pairs, [], [])

    assert first == second
    assert len(first) == 62
    assert [(o.date, o.task_id) for o in first[:4]] == [
        ("2024-01-01", 1),
        ("2024-01-01", 2),
        ("2024-01-02", 1),
        ("2024-01-02", 2),
    ]


def test_group_by_date_sorts_by_priority() -> None:
    pairs = [
        (make_task(1, "low", priority="low"), make_rule(1, Frequency.ONCE, "2024-01-05")),
        (make_task(2, "none"), make_rule(2, Frequency.ONCE, "2024-01-05")),
        (make_task(3, "high", priority="High"), make_rule(3, Frequency.ONCE, "2024-01-05")),
        (make_task(4, "medium", priority="medium"), make_rule(4, Frequency.ONCE, "2024-01-02")),
    ]
    grouped = group_by_date(resolve(JAN, pairs, [], []))

    assert list(grouped) == ["2024-01-02", "2024-01-05"]
    assert [o.title for o in grouped["2024-01-05"]] == ["high", "low", "none"]


def test_select_upcoming_bounds_are_inclusive() -> None:
    pairs = [(make_task(1), make_rule(1, Frequency.DAILY, "2024-01-01"))]
    occs = resolve(JAN, pairs, [], [])

    picked = select_upcoming(occs, date(2024, 1, 10), 5)
    assert [o.date for o in picked] == [f"2024-01-{d:02d}" for d in range(10, 16)]


def test_fetch_month_reads_a_fresh_snapshot() -> None:
    ann = Person(id=1, name="Ann", color="#fff")
    repo = FakeChoreRepo(
        people=[ann],
        pairs=[(make_task(1, assignee_id=1), make_rule(1, Frequency.WEEKLY, "2024-01-01"))],
        overrides=[
            Instance(task_id=1, date="2024-02-05", status=InstanceStatus.DONE),
            Instance(task_id=1, date="2024-01-08", status=InstanceStatus.DONE),
        ],
    )

    view = fetch_month(repo, 2024, 2)
    assert (view.range_start, view.range_end) == ("2024-02-01", "2024-02-29")
    assert view.people == [ann]
    assert [(o.date, o.status) for o in view.occurrences] == [
        ("2024-02-05", InstanceStatus.DONE),
        ("2024-02-12", InstanceStatus.OPEN),
        ("2024-02-19", InstanceStatus.OPEN),
        ("2024-02-26", InstanceStatus.OPEN),
    ]

    # Soft-delete shows up on the very next call.
    repo.tasks[1] = make_task(1, assignee_id=1, active=False)
    assert fetch_month(repo, 2024, 2).occurrences == []


def test_fetch_month_defaults_to_today() -> None:
    view = fetch_month(FakeChoreRepo(), today=date(2024, 7, 4))
    assert (view.year, view.month) == (2024, 7)


def test_upcoming_spans_month_boundaries() -> None:
    repo = FakeChoreRepo(pairs=[(make_task(1), make_rule(1, Frequency.DAILY, "2024-01-01"))])

    items = upcoming(repo, date(2024, 1, 20), 30)
    assert len(items) == 31
    assert (items[0].date, items[-1].date) == ("2024-01-20", "2024-02-19")

    # Jan 31 + 30 days reaches into March.
    items = upcoming(repo, date(2024, 1, 31), 30)
    assert len(items) == 31
    assert items[-1].date == "2024-03-01"


def test_last_representable_month_resolves() -> None:
    window = make_month_window(9999, 12)
    pairs = [(make_task(1), make_rule(1, Frequency.DAILY, "9999-12-30"))]
    assert [o.date for o in resolve(window, pairs, [], [])] == ["9999-12-30", "9999-12-31"]
