# chores/occurrences.py

from __future__ import annotations

"""
Occurrence resolver.

Pure functions over a snapshot (people, task+rule pairs, overrides):
- the override merger picks status/notes for a (task, date),
- the assembler builds the denormalized Occurrence,
- resolve() walks every day of the window and every active rule.

Nothing here touches the record store or keeps state between calls.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from datetime import date

from .calendar_utils import add_days, format_iso_date, iter_days, month_range
from .chore_models import (
    Instance,
    InstanceStatus,
    MonthWindow,
    Occurrence,
    Person,
    RecurrenceRule,
    Snapshot,
    Task,
)
from .recurrence import CompiledRule, compile_rule

logger = logging.getLogger(__name__)

OverrideKey = tuple[int, str]

PRIORITY_RANK: dict[str, int] = {"high": 3, "medium": 2, "low": 1}


def make_month_window(year: int, month: int) -> MonthWindow:
    start, end = month_range(year, month)
    return MonthWindow(year=int(year), month=int(month), start=start, end=end)


def index_overrides(overrides: Iterable[Instance]) -> dict[OverrideKey, Instance]:
    return {(o.task_id, o.date): o for o in overrides}


def index_people(people: Iterable[Person]) -> dict[int, Person]:
    return {p.id: p for p in people if p.active}


def merge_override(
    task: Task,
    day_iso: str,
    overrides: Mapping[OverrideKey, Instance],
) -> tuple[InstanceStatus, str | None]:
    """Status and notes for (task, date): the override if one exists, else open + task notes."""
    inst = overrides.get((task.id, day_iso))
    if inst is None:
        return InstanceStatus.OPEN, task.notes
    notes = inst.notes if inst.notes is not None else task.notes
    return inst.status, notes


def assemble_occurrence(
    task: Task,
    day_iso: str,
    status: InstanceStatus,
    notes: str | None,
    people: Mapping[int, Person],
) -> Occurrence:
    # The assignee id is reported even when the person is gone or inactive.
    assignee = people.get(task.assignee_id) if task.assignee_id is not None else None
    return Occurrence(
        date=day_iso,
        task_id=task.id,
        title=task.title,
        status=status,
        notes=notes,
        color=task.color,
        category=task.category,
        priority=task.priority,
        assignee_id=task.assignee_id,
        assignee_name=assignee.name if assignee else None,
        assignee_color=assignee.color if assignee else None,
    )


def resolve(
    window: MonthWindow,
    task_rules: Sequence[tuple[Task, RecurrenceRule]],
    overrides: Iterable[Instance],
    people: Iterable[Person],
) -> list[Occurrence]:
    """
    Expand every active rule across the window (both ends inclusive).

    Output is day-major, then in task_rules order.
    """
    override_index = index_overrides(overrides)
    people_index = index_people(people)

    compiled: list[tuple[Task, CompiledRule]] = []
    for task, rule in task_rules:
        if not task.active:
            continue
        c = compile_rule(rule)
        if c is not None:
            compiled.append((task, c))

    out: list[Occurrence] = []
    for day in iter_days(window.start, window.end):
        day_iso = format_iso_date(day)
        for task, rule in compiled:
            if not rule.matches(day):
                continue
            status, notes = merge_override(task, day_iso, override_index)
            out.append(assemble_occurrence(task, day_iso, status, notes, people_index))

    logger.debug(
        "Resolved %s..%s: rules=%d occurrences=%d",
        window.start,
        window.end,
        len(compiled),
        len(out),
    )
    return out


def resolve_snapshot(window: MonthWindow, snapshot: Snapshot) -> list[Occurrence]:
    return resolve(window, snapshot.task_rules, snapshot.overrides, snapshot.people)


def group_by_date(occurrences: Iterable[Occurrence]) -> dict[str, list[Occurrence]]:
    """
    Date -> occurrences, dates ascending, each day sorted by priority
    (high, medium, low, then none). Ties keep their original order.
    """
    grouped: dict[str, list[Occurrence]] = {}
    for occ in occurrences:
        grouped.setdefault(occ.date, []).append(occ)
    return {
        day: sorted(items, key=lambda o: -PRIORITY_RANK.get((o.priority or "").lower(), 0))
        for day, items in sorted(grouped.items())
    }


def select_upcoming(occurrences: Iterable[Occurrence], today: date, days: int) -> list[Occurrence]:
    """Occurrences dated today .. today+days (inclusive), sorted by date."""
    first = format_iso_date(today)
    last = format_iso_date(add_days(today, max(0, int(days))))
    picked = [o for o in occurrences if first <= o.date <= last]
    picked.sort(key=lambda o: o.date)
    return picked
