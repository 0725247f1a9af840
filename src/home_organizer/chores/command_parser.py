# chores/command_parser.py

"""
Free-text chore grammar used by chat connectors.

    /chore Water plants every 2 weeks sat assignee=Ann_Lee
    /chore Pay rent monthly day=1
    /chore Vacuum mon thu

Recognized pieces (everything else becomes the title):
- assignee=<Name>       underscores stand for spaces
- day=<1..31>           day-of-month selector
- mon..sun              weekday selector (any number)
- every <N> [day|week|month[s]]   a bare `every N` only sets the interval
- once | daily | weekly | monthly
- from YYYY-MM-DD, until YYYY-MM-DD  start / last day (`from=` / `until=` also work)
- priority=, category=, color=        task fields (category underscores stand for spaces)

The parser only produces a ChoreDraft. Defaults and validation are applied
by the creation path, the same way as for structured input.
"""

from __future__ import annotations

import re

from .chore_models import ChoreDraft, Frequency, ValidationError

_PREFIX_RE = re.compile(r"^/chore\b\s*", re.IGNORECASE)
_ASSIGNEE_RE = re.compile(r"assignee=(\S+)", re.IGNORECASE)
_DAY_RE = re.compile(r"day=(\d{1,2})\b", re.IGNORECASE)
_WEEKDAY_RE = re.compile(r"\b(mon|tue|wed|thu|fri|sat|sun)\b", re.IGNORECASE)
_EVERY_RE = re.compile(r"\bevery\s+(\d+)(?:\s+(day|week|month)s?)?\b", re.IGNORECASE)
_FREQ_WORD_RE = re.compile(r"\b(once|daily|weekly|monthly)\b", re.IGNORECASE)
_RANGE_RE = re.compile(r"\b(from|until)(?:=|\s+(?=\d{4}-))(\S*)", re.IGNORECASE)
_OPTION_RE = re.compile(r"\b(priority|category|color)=(\S*)", re.IGNORECASE)

# Task fields settable with `/edit`; values may span several words.
EDITABLE_FIELDS = ("title", "notes", "assignee", "priority", "category", "color")

_UNIT_TO_FREQ = {
    "day": Frequency.DAILY,
    "week": Frequency.WEEKLY,
    "month": Frequency.MONTHLY,
}


def parse_chore_command(text: str | None) -> ChoreDraft | None:
    """Parse a full "/chore ..." message. Returns None if it is not one (or is empty)."""
    if not text:
        return None
    trimmed = text.strip()
    m = _PREFIX_RE.match(trimmed)
    if not m:
        return None
    return parse_chore_body(trimmed[m.end():])


def parse_chore_body(body: str | None) -> ChoreDraft | None:
    body = (body or "").strip()
    if not body:
        return None

    assignee = None
    m = _ASSIGNEE_RE.search(body)
    if m:
        assignee = m.group(1).replace("_", " ").strip() or None

    monthday = None
    m = _DAY_RE.search(body)
    if m:
        monthday = str(int(m.group(1)))

    weekdays = [w.lower() for w in _WEEKDAY_RE.findall(body)]
    weekday_hint = ",".join(dict.fromkeys(weekdays)) or None

    frequency: Frequency | None = None
    interval = 1
    m = _EVERY_RE.search(body)
    if m:
        interval = max(1, int(m.group(1)))
        if m.group(2):
            frequency = _UNIT_TO_FREQ[m.group(2).lower()]
    if frequency is None:
        m = _FREQ_WORD_RE.search(body)
        if m:
            frequency = Frequency(m.group(1).lower())

    options = {k.lower(): v for k, v in _OPTION_RE.findall(body)}
    options.update((k.lower(), v) for k, v in _RANGE_RE.findall(body))

    title = _ASSIGNEE_RE.sub("", body, count=1)
    title = _DAY_RE.sub("", title, count=1)
    title = _EVERY_RE.sub("", title, count=1)
    title = _FREQ_WORD_RE.sub("", title)
    title = _WEEKDAY_RE.sub("", title)
    title = _OPTION_RE.sub("", title)
    title = _RANGE_RE.sub("", title)
    title = " ".join(title.split())

    return ChoreDraft(
        title=title or body,
        assignee_name_hint=assignee,
        frequency_hint=frequency,
        interval_hint=interval,
        weekday_hint=weekday_hint,
        monthday_hint=monthday,
        start_hint=options.get("from") or None,
        end_hint=options.get("until") or None,
        priority_hint=options.get("priority") or None,
        category_hint=(options.get("category") or "").replace("_", " ") or None,
        color_hint=options.get("color") or None,
    )


def parse_field_assignments(words: list[str]) -> dict[str, str | None]:
    """
    `title=Take out trash priority=high assignee=` -> {"title": "Take out trash",
    "priority": "high", "assignee": None}.

    A word that is not `key=` continues the previous value. An empty value clears
    the field. Unknown keys raise ValidationError.
    """
    fields: dict[str, str] = {}
    current: str | None = None
    for word in words:
        key, sep, value = word.partition("=")
        if sep and key.isidentifier():
            key = key.lower()
            if key not in EDITABLE_FIELDS:
                raise ValidationError(f"unknown field: {key!r}")
            current = key
            fields[key] = value
        elif current is None:
            raise ValidationError(f"expected field=value, got {word!r}")
        else:
            fields[current] = f"{fields[current]} {word}".strip()
    return {k: v.strip() or None for k, v in fields.items()}
