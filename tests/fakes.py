# tests/fakes.py

from __future__ import annotations

from dataclasses import replace

from home_organizer.chores.chore_models import (
    Frequency,
    Instance,
    Person,
    RecurrenceRule,
    Task,
)


def make_task(task_id: int = 1, title: str = "Chore", **kw) -> Task:
    kw.setdefault("created_at", "2024-01-01")
    return Task(id=task_id, title=title, **kw)


def make_rule(
    task_id: int = 1,
    frequency: Frequency | None = Frequency.WEEKLY,
    start_date: str = "2024-01-01",
    **kw,
) -> RecurrenceRule:
    return RecurrenceRule(task_id=task_id, frequency=frequency, start_date=start_date, **kw)


class FakeChoreRepo:
    """
    In-memory record store for resolver / lifecycle tests.

    This avoids SQLite and keeps those tests purely about date logic.
    Only the calls those code paths make are implemented.
    """

    def __init__(
        self,
        people: list[Person] | None = None,
        pairs: list[tuple[Task, RecurrenceRule]] | None = None,
        overrides: list[Instance] | None = None,
    ) -> None:
        self.people = list(people or [])
        self.tasks = {t.id: t for t, _ in (pairs or [])}
        self.rules = {r.task_id: r for _, r in (pairs or [])}
        self.overrides = {(o.task_id, o.date): o for o in (overrides or [])}
        self.end_date_writes: list[tuple[int, str | None]] = []

    def active_people(self) -> list[Person]:
        return [p for p in self.people if p.active]

    def active_task_rule_pairs(self) -> list[tuple[Task, RecurrenceRule]]:
        return [
            (t, self.rules[t.id]) for t in self.tasks.values() if t.active and t.id in self.rules
        ]

    def overrides_in_range(self, start_date: str, end_date: str) -> list[Instance]:
        return [o for o in self.overrides.values() if start_date <= o.date <= end_date]

    def get_rule(self, task_id: int) -> RecurrenceRule | None:
        return self.rules.get(task_id)

    def update_rule_end_date(self, task_id: int, end_date: str | None) -> None:
        self.end_date_writes.append((task_id, end_date))
        self.rules[task_id] = replace(self.rules[task_id], end_date=end_date)
