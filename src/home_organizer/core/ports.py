# src/home_organizer/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The scheduling code depends on Protocols instead of the SQLite store.
This keeps storage swappable and lets tests use in-memory fakes.
"""

from typing import Protocol

from ..chores.chore_models import Instance, InstanceStatus, Person, RecurrenceRule, Task


class SnapshotSource(Protocol):
    """Read side consumed by the resolver (one fresh snapshot per call)."""

    def active_people(self) -> list[Person]: ...
    def active_task_rule_pairs(self) -> list[tuple[Task, RecurrenceRule]]: ...
    def overrides_in_range(self, start_date: str, end_date: str) -> list[Instance]: ...


class ChoreRepo(SnapshotSource, Protocol):
    # Per-date overrides
    def upsert_override(
            self,
            task_id: int,
            date: str,
            status: InstanceStatus | None = None,
            notes: str | None = None,
    ) -> Instance: ...
    def get_instance(self, task_id: int, date: str) -> Instance | None: ...

    # Tasks / rules
    def create_task(
            self,
            *,
            title: str,
            rule: RecurrenceRule,
            notes: str | None = None,
            assignee_id: int | None = None,
            color: str | None = None,
            category: str | None = None,
            priority: str | None = None,
    ) -> int: ...
    def get_task_with_rule(self, task_id: int) -> tuple[Task, RecurrenceRule | None] | None: ...
    def get_rule(self, task_id: int) -> RecurrenceRule | None: ...
    def update_rule_end_date(self, task_id: int, end_date: str | None) -> None: ...
    def set_task_active(self, task_id: int, active: bool) -> None: ...
    def update_task(
            self,
            task_id: int,
            *,
            title: str | None = None,
            notes: str | None = None,
            assignee_id: int | None = None,
            color: str | None = None,
            category: str | None = None,
            priority: str | None = None,
    ) -> None: ...
    def replace_rule(self, task_id: int, rule: RecurrenceRule) -> None: ...

    # People
    def add_person(self, name: str, color: str) -> int: ...
    def get_person(self, person_id: int) -> Person | None: ...
    def find_active_person_by_name(self, name: str) -> Person | None: ...
    def update_person(
            self,
            person_id: int,
            *,
            name: str | None = None,
            color: str | None = None,
            active: bool | None = None,
    ) -> None: ...
    def deactivate_person(self, person_id: int) -> None: ...

