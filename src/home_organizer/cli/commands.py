# src/home_organizer/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date

from ..chores.calendar_utils import format_iso_date
from ..chores.chore_api import (
    create_chore_from_draft,
    delete_chore,
    edit_chore,
    edit_person,
    fetch_month,
    remove_person,
    reschedule_chore,
    set_occurrence_status,
    stop_chore,
    upcoming,
)
from ..chores.chore_models import (
    ChoreDraft,
    InstanceStatus,
    NotFoundError,
    Occurrence,
    ValidationError,
)
from ..chores.command_parser import parse_chore_body, parse_field_assignments
from ..chores.occurrences import group_by_date
from ..core.state import AppState

CommandHandler = Callable[[AppState, list[str], str | None, str | None], str]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by connectors (/help, /month, /chore, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        user_id: str | None = None,
        room_id: str | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.

        ValidationError / NotFoundError raised by a handler become an "Error: ..." reply.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            return handler(state, args, user_id, room_id)
        except (ValidationError, NotFoundError) as e:
            logger.info("/%s rejected: %s", name, e)
            return f"Error: {e}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _today() -> date:
    return date.today()


def _task_id(raw: str) -> int:
    try:
        return int(raw.lstrip("#"))
    except ValueError:
        raise ValidationError(f"invalid task id: {raw!r}") from None


def _person_id(raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"invalid person id: {raw!r}") from None


def _day_arg(args: list[str], index: int) -> str:
    """Optional YYYY-MM-DD argument, defaulting to today."""
    if len(args) > index:
        return args[index]
    return format_iso_date(_today())


def format_occurrence(occ: Occurrence, *, with_date: bool = False) -> str:
    mark = "[x]" if occ.status == InstanceStatus.DONE else "[ ]"
    parts = [mark]
    if with_date:
        parts.append(occ.date)
    parts.append(f"#{occ.task_id} {occ.title}")
    if occ.assignee_name:
        parts.append(f"({occ.assignee_name})")
    if occ.priority:
        parts.append(f"!{occ.priority}")
    return " ".join(parts)


def _format_grouped(occurrences: list[Occurrence]) -> list[str]:
    lines: list[str] = []
    for day, items in group_by_date(occurrences).items():
        lines.append(f"{day}:")
        for occ in items:
            lines.append(f"  {format_occurrence(occ)}")
    return lines


def cmd_help(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
) -> str:
    return registry.build_help()


def cmd_status(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
) -> str:
    people = state.store.active_people()
    chores = state.store.active_task_rule_pairs()
    return (
        "Status:\n"
        f"  Database: {getattr(state.settings, 'db_path', '?')}\n"
        f"  People: {len(people)}\n"
        f"  Active chores: {len(chores)}"
    )


def cmd_month(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
) -> str:
    """
    /month           -> current month
    /month 2024-02   -> given month
    """
    year = month = None
    if args:
        try:
            y, m = args[0].split("-", 1)
            year, month = int(y), int(m)
        except ValueError:
            raise ValidationError(f"expected YYYY-MM, got {args[0]!r}") from None

    view = fetch_month(state.store, year, month, today=_today())
    header = f"Chores for {view.year:04d}-{view.month:02d} ({len(view.occurrences)}):"
    if not view.occurrences:
        return f"{header}\n  (nothing scheduled)"
    return "\n".join([header, *_format_grouped(view.occurrences)])


def cmd_today(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
) -> str:
    today = _today()
    day = format_iso_date(today)
    view = fetch_month(state.store, today.year, today.month, today=today)
    items = group_by_date(o for o in view.occurrences if o.date == day).get(day, [])
    if not items:
        return f"Nothing to do today ({day})."
    return "\n".join([f"Today ({day}):", *(f"  {format_occurrence(o)}" for o in items)])


def cmd_upcoming(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
) -> str:
    days = int(getattr(state.settings, "upcoming_days", 30))
    if args:
        try:
            days = max(0, int(args[0]))
        except ValueError:
            raise ValidationError(f"invalid number of days: {args[0]!r}") from None

    items = upcoming(state.store, _today(), days)
    if not items:
        return f"Nothing scheduled in the next {days} days."
    lines = [f"Upcoming ({days} days):"]
    lines.extend(f"  {format_occurrence(o, with_date=True)}" for o in items)
    return "\n".join(lines)


def cmd_chore(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
) -> str:
    """
    /chore <title> [every N days|weeks|months | daily | weekly | monthly]
           [mon..sun] [day=N] [assignee=Name]
           [from YYYY-MM-DD] [until YYYY-MM-DD] [priority=..] [category=..] [color=..]
    """
    body = " ".join(args)
    draft = parse_chore_body(body)
    if draft is None:
        return "Usage: /chore <title> [weekly|every 2 weeks|monthly day=1] [mon..sun] [assignee=Name]"

    task_id = create_chore_from_draft(
        state.store,
        draft,
        message=f"/chore {body}",
        today=_today(),
        timezone=getattr(state.settings, "timezone", None),
    )
    found = state.store.get_task_with_rule(task_id)
    rule = found[1] if found else None
    logger.debug("Chore created via command id=%s user=%s room=%s", task_id, user_id, room_id)

    desc = ""
    if rule is not None:
        desc = f" ({rule.frequency}, every {rule.interval}, from {rule.start_date})"
    return f"Created chore #{task_id}: {draft.title}{desc}"


def cmd_show(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
) -> str:
    if not args:
        return "Usage: /show <task_id>"
    task_id = _task_id(args[0])
    found = state.store.get_task_with_rule(task_id)
    if found is None:
        raise NotFoundError(f"task {task_id} not found")
    task, rule = found

    lines = [f"#{task.id} {task.title}" + ("" if task.active else " (deleted)")]
    if task.assignee_id is not None:
        person = state.store.get_person(task.assignee_id)
        lines.append(f"  Assignee: {person.name if person else task.assignee_id}")
    for label, value in (
        ("Category", task.category),
        ("Priority", task.priority),
        ("Color", task.color),
        ("Notes", task.notes),
    ):
        if value:
            lines.append(f"  {label}: {value}")
    if rule is None:
        lines.append("  No recurrence rule.")
    else:
        lines.append(f"  Repeats: {rule.frequency}, interval {rule.interval}")
        if rule.by_weekday:
            lines.append(f"  Weekdays: {rule.by_weekday}")
        if rule.by_monthday:
            lines.append(f"  Days of month: {rule.by_monthday}")
        lines.append(f"  From {rule.start_date}" + (f" until {rule.end_date}" if rule.end_date else ""))
    return "\n".join(lines)


def cmd_edit(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
) -> str:
    """
    /edit <task_id> title=.. notes=.. assignee=Name priority=.. category=.. color=..

    Values may span words; an empty value (`color=`) clears the field.
    """
    if len(args) < 2:
        return "Usage: /edit <task_id> field=value ... (title, notes, assignee, priority, category, color)"
    task_id = _task_id(args[0])
    changed = edit_chore(state.store, task_id, parse_field_assignments(args[1:]))
    return f"Updated #{task_id}: {', '.join(changed)}."


def cmd_repeat(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
) -> str:
    """
    /repeat <task_id> [daily|weekly|monthly|once] [every N] [mon..sun] [day=N]
            [from YYYY-MM-DD] [until YYYY-MM-DD]

    Replaces the whole rule; frequency and start are kept when not given.
    """
    if len(args) < 2:
        return (
            "Usage: /repeat <task_id> <daily|weekly|monthly|once> [every N] [mon..sun] [day=N]"
            " [from YYYY-MM-DD] [until YYYY-MM-DD]"
        )
    task_id = _task_id(args[0])
    draft = parse_chore_body(" ".join(args[1:])) or ChoreDraft(title="")

    rule = reschedule_chore(state.store, task_id, draft, today=_today())
    desc = f"{rule.frequency}, every {rule.interval}, from {rule.start_date}"
    if rule.end_date:
        desc += f" until {rule.end_date}"
    return f"#{task_id} now repeats {desc}."


def _set_status(state: AppState, args: list[str], status: InstanceStatus, usage: str) -> str:
    if not args:
        return usage
    task_id = _task_id(args[0])
    day = _day_arg(args, 1)
    inst = set_occurrence_status(state.store, task_id, day, status)
    return f"#{task_id} on {inst.date}: {inst.status.value}"


def cmd_done(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
) -> str:
    return _set_status(state, args, InstanceStatus.DONE, "Usage: /done <task_id> [YYYY-MM-DD]")


def cmd_undo(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
) -> str:
    return _set_status(state, args, InstanceStatus.OPEN, "Usage: /undo <task_id> [YYYY-MM-DD]")


def cmd_note(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
) -> str:
    if len(args) < 3:
        return "Usage: /note <task_id> <YYYY-MM-DD> <text>"
    task_id = _task_id(args[0])
    inst = set_occurrence_status(state.store, task_id, args[1], None, " ".join(args[2:]))
    return f"Note saved for #{task_id} on {inst.date}."


def cmd_stop(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
) -> str:
    """/stop <task_id> <YYYY-MM-DD> -> no occurrences from that day on."""
    if len(args) < 2:
        return "Usage: /stop <task_id> <YYYY-MM-DD>"
    task_id = _task_id(args[0])
    rule = stop_chore(state.store, task_id, args[1])
    return f"#{task_id} now ends on {rule.end_date}."


def cmd_delete(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
) -> str:
    if not args:
        return "Usage: /delete <task_id>"
    task_id = _task_id(args[0])
    delete_chore(state.store, task_id)
    return f"Chore #{task_id} deleted."


def cmd_people(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
) -> str:
    people = state.store.active_people()
    if not people:
        return "No people yet. Use /person add <name> <color>."
    lines = ["People:"]
    lines.extend(f"  {p.id}. {p.name} ({p.color})" for p in people)
    return "\n".join(lines)


def cmd_person(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
) -> str:
    """
    /person add <name> <color>
    /person edit <id> <name> <color>
    /person remove <id>
    """
    usage = "Usage: /person add <name> <color> | /person edit <id> <name> <color> | /person remove <id>"
    if not args:
        return usage

    sub = args[0].lower()
    if sub == "add":
        if len(args) < 3:
            return usage
        name = " ".join(args[1:-1]).replace("_", " ")
        person_id = state.store.add_person(name, args[-1])
        return f"Added {name} (id={person_id})."

    if sub == "edit":
        if len(args) < 4:
            return usage
        person = edit_person(
            state.store,
            _person_id(args[1]),
            name=" ".join(args[2:-1]).replace("_", " "),
            color=args[-1],
        )
        return f"Updated person {person.id}: {person.name} ({person.color})."

    if sub in ("remove", "rm"):
        if len(args) < 2:
            return usage
        person_id = _person_id(args[1])
        remove_person(state.store, person_id)
        return f"Removed person {person_id}."

    return usage


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show database and counts.")
registry.register("month", cmd_month, help_text="Month view: /month [YYYY-MM].")
registry.register("today", cmd_today, help_text="Chores scheduled for today.")
registry.register("upcoming", cmd_upcoming, help_text="Next days: /upcoming [days].")
registry.register(
    "chore",
    cmd_chore,
    help_text="Create: /chore <title> [weekly|every 2 weeks|monthly day=1] [mon..sun] [assignee=Name].",
)
registry.register("show", cmd_show, help_text="Chore details: /show <task_id>.")
registry.register(
    "edit",
    cmd_edit,
    help_text="Change fields: /edit <task_id> title=.. priority=.. category=.. color=.. assignee=Name.",
)
registry.register(
    "repeat",
    cmd_repeat,
    help_text="New schedule: /repeat <task_id> <daily|weekly|monthly|once> [every N] [mon..sun] [day=N] [from D] [until D].",
)
registry.register("done", cmd_done, help_text="Mark done: /done <task_id> [YYYY-MM-DD].")
registry.register("undo", cmd_undo, help_text="Mark open again: /undo <task_id> [YYYY-MM-DD].")
registry.register("note", cmd_note, help_text="Per-day note: /note <task_id> <YYYY-MM-DD> <text>.")
registry.register("stop", cmd_stop, help_text="Stop from a day on: /stop <task_id> <YYYY-MM-DD>.")
registry.register("delete", cmd_delete, help_text="Delete a chore (history is kept): /delete <task_id>.")
registry.register("people", cmd_people, help_text="List household members.")
registry.register(
    "person",
    cmd_person,
    help_text="/person add <name> <color> | /person edit <id> <name> <color> | /person remove <id>.",
)
