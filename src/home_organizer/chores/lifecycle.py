# chores/lifecycle.py

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from .calendar_utils import add_days, format_iso_date, parse_iso_date, require_iso_date
from .chore_models import NotFoundError, RecurrenceRule

if TYPE_CHECKING:
    from ..core.ports import ChoreRepo

logger = logging.getLogger(__name__)


def narrow_end_date(rule: RecurrenceRule, requested_date: str) -> RecurrenceRule:
    """
    "Stop from date forward": the rule ends the day before requested_date.

    Narrowing only. If the rule already ends before that day it is returned unchanged,
    so a later stop can never re-open days cut off by an earlier one.
    """
    stop_day = require_iso_date(requested_date, "date")
    new_end = add_days(stop_day, -1)

    current_end = parse_iso_date(rule.end_date) if rule.end_date else None
    if current_end is not None and current_end < new_end:
        return rule

    return replace(rule, end_date=format_iso_date(new_end))


def stop_from_date(store: ChoreRepo, task_id: int, requested_date: str) -> RecurrenceRule:
    """
    Apply narrow_end_date to the stored rule of a task.

    Raises ValidationError for a bad date (checked first, nothing is read)
    and NotFoundError when the task has no rule.
    """
    require_iso_date(requested_date, "date")

    rule = store.get_rule(int(task_id))
    if rule is None:
        raise NotFoundError(f"rule not found for task {task_id}")

    updated = narrow_end_date(rule, requested_date)
    if updated.end_date == rule.end_date:
        logger.info(
            "Stop task=%s from %s: no-op (end_date=%s)", task_id, requested_date, rule.end_date
        )
        return rule

    store.update_rule_end_date(int(task_id), updated.end_date)
    logger.info(
        "Stop task=%s from %s: end_date %s -> %s",
        task_id,
        requested_date,
        rule.end_date,
        updated.end_date,
    )
    return updated
