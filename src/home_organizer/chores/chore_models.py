# chores/chore_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum


class ValidationError(ValueError):
    """Malformed or missing input (dates, required fields, enum values)."""


class NotFoundError(LookupError):
    """Referenced task / rule / person does not exist (or is inactive)."""


class Frequency(StrEnum):
    ONCE = "once"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @classmethod
    def parse(cls, raw: str | None) -> Frequency:
        """Strict parse for user / programmatic input."""
        value = (raw or "").strip().lower()
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(f"unknown frequency: {raw!r}") from None

    @classmethod
    def from_db(cls, raw: str | None) -> Frequency | None:
        # Unknown values stored by hand never match anything.
        if not raw:
            return None
        try:
            return cls(raw)
        except ValueError:
            return None


class InstanceStatus(StrEnum):
    OPEN = "open"
    DONE = "done"

    @classmethod
    def parse(cls, raw: str | None) -> InstanceStatus:
        value = (raw or "").strip().lower()
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(f"unknown status: {raw!r}") from None

    @classmethod
    def from_db(cls, raw: str | None) -> InstanceStatus:
        if not raw:
            return cls.OPEN
        try:
            return cls(raw)
        except ValueError:
            return cls.OPEN


@dataclass(slots=True, frozen=True)
class Person:
    id: int
    name: str
    color: str
    active: bool = True


@dataclass(slots=True, frozen=True)
class Task:
    id: int
    title: str
    created_at: str

    notes: str | None = None
    assignee_id: int | None = None
    color: str | None = None
    category: str | None = None
    priority: str | None = None
    active: bool = True


@dataclass(slots=True, frozen=True)
class RecurrenceRule:
    """
    Repeating rule owned by exactly one task.

    Selectors are kept as the raw comma-separated text that was stored;
    parsing (and dropping of bad entries) happens in the matcher.
    Dates are ISO strings (YYYY-MM-DD) exactly as persisted.
    """

    task_id: int
    frequency: Frequency | None
    start_date: str

    id: int | None = None
    interval: int = 1
    by_weekday: str | None = None
    by_monthday: str | None = None
    end_date: str | None = None
    timezone: str | None = None


@dataclass(slots=True, frozen=True)
class Instance:
    """Per-date override of an occurrence (status and/or notes)."""

    task_id: int
    date: str
    status: InstanceStatus = InstanceStatus.OPEN

    id: int | None = None
    completed_at: str | None = None
    notes: str | None = None


@dataclass(slots=True, frozen=True)
class Occurrence:
    date: str
    task_id: int
    title: str
    status: InstanceStatus

    notes: str | None = None
    color: str | None = None
    category: str | None = None
    priority: str | None = None
    assignee_id: int | None = None
    assignee_name: str | None = None
    assignee_color: str | None = None


@dataclass(slots=True, frozen=True)
class MonthWindow:
    year: int
    month: int
    start: date
    end: date


@dataclass(slots=True, frozen=True)
class Snapshot:
    """Everything the resolver needs for one call; fetched fresh every time."""

    people: list[Person] = field(default_factory=list)
    task_rules: list[tuple[Task, RecurrenceRule]] = field(default_factory=list)
    overrides: list[Instance] = field(default_factory=list)


@dataclass(slots=True, frozen=True)
class MonthView:
    year: int
    month: int
    range_start: str
    range_end: str
    people: list[Person]
    occurrences: list[Occurrence]


@dataclass(slots=True, frozen=True)
class ChoreDraft:
    """
    Output of the free-text `/chore` grammar.

    Every hint is optional; the creation path applies the same defaults
    as structured input.
    """

    title: str
    assignee_name_hint: str | None = None
    frequency_hint: Frequency | None = None
    interval_hint: int = 1
    weekday_hint: str | None = None
    monthday_hint: str | None = None
    start_hint: str | None = None
    end_hint: str | None = None
    priority_hint: str | None = None
    category_hint: str | None = None
    color_hint: str | None = None
