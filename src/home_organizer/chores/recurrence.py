# chores/recurrence.py

from __future__ import annotations

"""
Frequency matcher.

Decides whether a given calendar date is an occurrence of a recurrence rule.

Order of checks (always the same):
- date >= start_date
- date <= end_date (when set)
- frequency-specific predicate

Interval arithmetic is anchored to the rule's own start date:
- daily:   days since start  % interval == 0
- weekly:  (days since start // 7) % interval == 0, plus weekday selector
- monthly: calendar months since start % interval == 0, plus day-of-month selector

The matcher never looks at the caller's window; windowing belongs to the resolver.
"""

import logging
from dataclasses import dataclass
from datetime import date

from .calendar_utils import diff_in_days, diff_in_months, parse_iso_date
from .chore_models import Frequency, RecurrenceRule

logger = logging.getLogger(__name__)

# Python's date.weekday(): Monday == 0.
WEEKDAY_CODES: dict[str, int] = {
    "mon": 0,
    "tue": 1,
    "wed": 2,
    "thu": 3,
    "fri": 4,
    "sat": 5,
    "sun": 6,
}


def parse_weekday_selector(raw: str | None, fallback: int) -> frozenset[int]:
    """
    "mon,wed" -> {0, 2}. Unknown codes are dropped;
    an empty result falls back to {fallback}.
    """
    if not raw:
        return frozenset({fallback})
    days = {
        WEEKDAY_CODES[p]
        for p in (part.strip().lower() for part in raw.split(","))
        if p in WEEKDAY_CODES
    }
    return frozenset(days) if days else frozenset({fallback})


def parse_monthday_selector(raw: str | None, fallback: int) -> frozenset[int]:
    """
    "1,15" -> {1, 15}. Non-integers and values outside 1..31 are dropped;
    an empty result falls back to {fallback}.
    """
    if not raw:
        return frozenset({fallback})
    days: set[int] = set()
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            value = int(part)
        except ValueError:
            continue
        if 1 <= value <= 31:
            days.add(value)
    return frozenset(days) if days else frozenset({fallback})


def normalize_interval(raw: object) -> int:
    try:
        value = int(raw)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        return 1
    return max(1, value)


@dataclass(slots=True, frozen=True)
class CompiledRule:
    """A rule with its dates and selectors parsed once, ready for per-day checks."""

    frequency: Frequency | None
    interval: int
    start: date
    end: date | None
    weekdays: frozenset[int]
    monthdays: frozenset[int]

    def matches(self, day: date) -> bool:
        if day < self.start:
            return False
        if self.end is not None and day > self.end:
            return False

        if self.frequency == Frequency.ONCE:
            return day == self.start

        if self.frequency == Frequency.DAILY:
            return diff_in_days(day, self.start) % self.interval == 0

        if self.frequency == Frequency.WEEKLY:
            week_bucket = diff_in_days(day, self.start) // 7
            return week_bucket % self.interval == 0 and day.weekday() in self.weekdays

        if self.frequency == Frequency.MONTHLY:
            month_diff = diff_in_months(day, self.start)
            return month_diff % self.interval == 0 and day.day in self.monthdays

        return False


def compile_rule(rule: RecurrenceRule) -> CompiledRule | None:
    """
    Parse a stored rule. Returns None when the start date is unusable
    (such a rule never produces occurrences).

    An unparseable end date is treated as "no end date".
    """
    start = parse_iso_date(rule.start_date)
    if start is None:
        logger.warning(
            "Rule for task %s has invalid start_date=%r; skipped", rule.task_id, rule.start_date
        )
        return None

    end = parse_iso_date(rule.end_date) if rule.end_date else None

    return CompiledRule(
        frequency=rule.frequency,
        interval=normalize_interval(rule.interval),
        start=start,
        end=end,
        weekdays=parse_weekday_selector(rule.by_weekday, start.weekday()),
        monthdays=parse_monthday_selector(rule.by_monthday, start.day),
    )


def matches(rule: RecurrenceRule, candidate: date) -> bool:
    compiled = compile_rule(rule)
    if compiled is None:
        return False
    return compiled.matches(candidate)
