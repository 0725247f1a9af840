# src/home_organizer/chores/chore_api.py

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from ..core.ports import ChoreRepo, SnapshotSource
from .calendar_utils import add_days, format_iso_date, next_month, require_iso_date
from .chore_models import (
    ChoreDraft,
    Frequency,
    Instance,
    InstanceStatus,
    MonthView,
    MonthWindow,
    NotFoundError,
    Occurrence,
    Person,
    RecurrenceRule,
    Snapshot,
    ValidationError,
)
from .lifecycle import stop_from_date
from .occurrences import make_month_window, resolve_snapshot, select_upcoming

logger = logging.getLogger(__name__)

DEFAULT_FREQUENCY = Frequency.WEEKLY


def load_snapshot(store: SnapshotSource, window: MonthWindow) -> Snapshot:
    """Fresh read of everything the resolver needs for this window (no caching)."""
    return Snapshot(
        people=store.active_people(),
        task_rules=store.active_task_rule_pairs(),
        overrides=store.overrides_in_range(
            format_iso_date(window.start), format_iso_date(window.end)
        ),
    )


def fetch_month(
    store: SnapshotSource,
    year: int | None = None,
    month: int | None = None,
    *,
    today: date | None = None,
) -> MonthView:
    today = today or date.today()
    window = make_month_window(year or today.year, month or today.month)
    snapshot = load_snapshot(store, window)
    occurrences = resolve_snapshot(window, snapshot)
    return MonthView(
        year=window.year,
        month=window.month,
        range_start=format_iso_date(window.start),
        range_end=format_iso_date(window.end),
        people=snapshot.people,
        occurrences=occurrences,
    )


def upcoming(store: SnapshotSource, today: date | None = None, days: int = 30) -> list[Occurrence]:
    """
    Occurrences from today through today+days.

    Built from consecutive whole-month windows (the current month first),
    each resolved against its own snapshot.
    """
    today = today or date.today()
    days = max(0, int(days))
    last = add_days(today, days)

    collected: list[Occurrence] = []
    year, month = today.year, today.month
    while (year, month) <= (last.year, last.month):
        collected.extend(fetch_month(store, year, month).occurrences)
        year, month = next_month(year, month)

    return select_upcoming(collected, today, days)


def build_rule(
    *,
    frequency: Frequency | str | None = None,
    interval: Any = None,
    by_weekday: str | None = None,
    by_monthday: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
    timezone: str | None = None,
    today: date | None = None,
) -> RecurrenceRule:
    """
    Rule construction shared by structured callers and the chat grammar.

    Absent fields fall back to: weekly, interval 1, start today.
    """
    freq = Frequency.parse(str(frequency)) if frequency else DEFAULT_FREQUENCY

    if interval is None or interval == "":
        interval_value = 1
    else:
        try:
            interval_value = int(interval)
        except (TypeError, ValueError):
            raise ValidationError(f"invalid interval: {interval!r}") from None
        if interval_value < 1:
            raise ValidationError(f"interval must be a positive integer, got {interval_value}")

    if start_date:
        start = format_iso_date(require_iso_date(start_date, "start_date"))
    else:
        start = format_iso_date(today or date.today())
    end = format_iso_date(require_iso_date(end_date, "end_date")) if end_date else None

    return RecurrenceRule(
        task_id=0,
        frequency=freq,
        interval=interval_value,
        by_weekday=by_weekday or None,
        by_monthday=by_monthday or None,
        start_date=start,
        end_date=end,
        timezone=timezone or None,
    )


def create_chore(
    store: ChoreRepo,
    *,
    title: str,
    rule: RecurrenceRule,
    notes: str | None = None,
    assignee_id: int | None = None,
    color: str | None = None,
    category: str | None = None,
    priority: str | None = None,
) -> int:
    if assignee_id is not None:
        _require_active_person(store, assignee_id)
    return store.create_task(
        title=title,
        rule=rule,
        notes=notes,
        assignee_id=assignee_id,
        color=color,
        category=category,
        priority=priority,
    )


def create_chore_from_draft(
    store: ChoreRepo,
    draft: ChoreDraft,
    *,
    message: str | None = None,
    today: date | None = None,
    timezone: str | None = None,
) -> int:
    """
    Create a chore from a parsed chat message.

    The assignee hint is matched against active people by exact name;
    an unknown name leaves the chore unassigned. The raw message is kept as notes.
    """
    assignee_id = None
    if draft.assignee_name_hint:
        person = store.find_active_person_by_name(draft.assignee_name_hint)
        if person is not None:
            assignee_id = person.id
        else:
            logger.info("Chore assignee %r not found; leaving unassigned", draft.assignee_name_hint)

    rule = build_rule(
        frequency=draft.frequency_hint,
        interval=draft.interval_hint,
        by_weekday=draft.weekday_hint,
        by_monthday=draft.monthday_hint,
        start_date=draft.start_hint,
        end_date=draft.end_hint,
        today=today,
        timezone=timezone,
    )
    return create_chore(
        store,
        title=draft.title,
        rule=rule,
        notes=message,
        assignee_id=assignee_id,
        color=draft.color_hint,
        category=draft.category_hint,
        priority=draft.priority_hint,
    )


def _require_active_task(store: ChoreRepo, task_id: int) -> None:
    found = store.get_task_with_rule(int(task_id))
    if found is None or not found[0].active:
        raise NotFoundError(f"task {task_id} not found")


def _require_active_person(store: ChoreRepo, person_id: int) -> Person:
    person = store.get_person(int(person_id))
    if person is None or not person.active:
        raise NotFoundError(f"person {person_id} not found")
    return person


def update_chore(
    store: ChoreRepo,
    task_id: int,
    *,
    recurrence: RecurrenceRule | None = None,
    **fields: Any,
) -> None:
    """Plain field overwrites on the task, plus an optional full rule replacement."""
    _require_active_task(store, task_id)
    if fields.get("assignee_id") is not None:
        _require_active_person(store, fields["assignee_id"])
    if fields:
        store.update_task(int(task_id), **fields)
    if recurrence is not None:
        store.replace_rule(int(task_id), recurrence)


def set_occurrence_status(
    store: ChoreRepo,
    task_id: int,
    day: str,
    status: InstanceStatus | str | None,
    notes: str | None = None,
) -> Instance:
    _require_active_task(store, task_id)
    parsed = InstanceStatus.parse(str(status)) if status else None
    inst = store.upsert_override(int(task_id), day, parsed, notes)
    logger.info("Occurrence task=%s date=%s -> %s", task_id, inst.date, inst.status.value)
    return inst


def stop_chore(store: ChoreRepo, task_id: int, day: str) -> RecurrenceRule:
    require_iso_date(day, "date")
    _require_active_task(store, task_id)
    return stop_from_date(store, int(task_id), day)


def delete_chore(store: ChoreRepo, task_id: int) -> None:
    """Soft-delete: the chore disappears from every later resolution, history stays."""
    _require_active_task(store, task_id)
    store.set_task_active(int(task_id), False)


def edit_chore(store: ChoreRepo, task_id: int, fields: dict[str, str | None]) -> list[str]:
    """
    Field edits coming from chat (`title`, `notes`, `assignee`, `priority`, ...).

    `assignee` is an active person's exact name; None clears any field.
    Returns the names of the changed fields.
    """
    changes: dict[str, Any] = {}
    for key, value in fields.items():
        if key == "assignee":
            changes["assignee_id"] = None
            if value is not None:
                person = store.find_active_person_by_name(value.replace("_", " "))
                if person is None:
                    raise NotFoundError(f"person {value!r} not found")
                changes["assignee_id"] = person.id
        else:
            changes[key] = value
    update_chore(store, task_id, **changes)
    return sorted(fields)


def reschedule_chore(
    store: ChoreRepo,
    task_id: int,
    draft: ChoreDraft,
    *,
    today: date | None = None,
) -> RecurrenceRule:
    """
    Replace a chore's recurrence from parsed chat hints.

    Frequency, start date and timezone are kept from the current rule unless given;
    interval, selectors and end date are taken from the hints only.
    """
    _require_active_task(store, task_id)
    current = store.get_rule(int(task_id))
    rule = build_rule(
        frequency=draft.frequency_hint or (current.frequency if current else None),
        interval=draft.interval_hint,
        by_weekday=draft.weekday_hint,
        by_monthday=draft.monthday_hint,
        start_date=draft.start_hint or (current.start_date if current else None),
        end_date=draft.end_hint,
        timezone=current.timezone if current else None,
        today=today,
    )
    update_chore(store, task_id, recurrence=rule)
    logger.info("Chore %s rescheduled: %s every %s from %s", task_id, rule.frequency, rule.interval, rule.start_date)
    return rule


def edit_person(store: ChoreRepo, person_id: int, *, name: str | None = None, color: str | None = None) -> Person:
    _require_active_person(store, person_id)
    store.update_person(int(person_id), name=name, color=color)
    return _require_active_person(store, person_id)


def remove_person(store: ChoreRepo, person_id: int) -> None:
    """Soft-delete; chores keep the assignee id but no longer show a name."""
    _require_active_person(store, person_id)
    store.deactivate_person(int(person_id))
