# chores/chore_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Any

from .calendar_utils import format_iso_date, parse_iso_date, require_iso_date
from .chore_models import (
    Frequency,
    Instance,
    InstanceStatus,
    NotFoundError,
    Person,
    RecurrenceRule,
    Task,
    ValidationError,
)

logger = logging.getLogger(__name__)

_UNSET: Any = object()

_TASK_COLUMNS = ("title", "notes", "assignee_id", "color", "category", "priority")


def _utc_now_iso() -> str:
    return datetime.now(UTC).isoformat(timespec="seconds")


def _clean_text(value: str | None) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


class ChoreStore:
    """
    SQLite record store for people, tasks, recurrence rules and per-date instances.

    The schema is migration-safe:
    - create tables if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Nothing is ever hard-deleted: tasks and people are deactivated, instances
    are only overwritten.

    Thread-safety:
    - each method opens its own SQLite connection
    - concurrent writes to the same row are last-write-wins
    """

    def __init__(self, db_path: str | Path = "home-organizer.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        try:
            total = self.count_tasks()
        except sqlite3.Error:
            total = -1
        logger.info("ChoreStore ready db=%s tasks=%s", self._db_path, total)

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()

            cur.executescript(
                """
                CREATE TABLE IF NOT EXISTS people (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    color TEXT NOT NULL,
                    active INTEGER NOT NULL DEFAULT 1
                );
                CREATE TABLE IF NOT EXISTS tasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL,
                    notes TEXT,
                    assignee_id INTEGER,
                    color TEXT,
                    category TEXT,
                    priority TEXT,
                    active INTEGER NOT NULL DEFAULT 1,
                    created_at TEXT NOT NULL,
                    FOREIGN KEY (assignee_id) REFERENCES people(id)
                );
                CREATE TABLE IF NOT EXISTS recurrence_rules (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    task_id INTEGER NOT NULL,
                    freq TEXT NOT NULL,
                    interval INTEGER NOT NULL DEFAULT 1,
                    by_weekday TEXT,
                    by_monthday TEXT,
                    start_date TEXT NOT NULL,
                    end_date TEXT,
                    timezone TEXT,
                    FOREIGN KEY (task_id) REFERENCES tasks(id)
                );
                CREATE TABLE IF NOT EXISTS instances (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    task_id INTEGER NOT NULL,
                    date TEXT NOT NULL,
                    status TEXT NOT NULL DEFAULT 'open',
                    completed_at TEXT,
                    notes TEXT,
                    UNIQUE(task_id, date),
                    FOREIGN KEY (task_id) REFERENCES tasks(id)
                );
                """
            )

            # Migrations (safe): add missing columns.
            def add_col(table: str, name: str, decl: str) -> None:
                cur.execute(f"PRAGMA table_info({table})")
                cols = {row["name"] for row in cur.fetchall()}
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE {table} ADD COLUMN {name} {decl}")
                logger.info("ChoreStore migration: added column %s.%s", table, name)

            add_col("tasks", "color", "TEXT")
            add_col("tasks", "category", "TEXT")
            add_col("tasks", "priority", "TEXT")
            add_col("recurrence_rules", "timezone", "TEXT")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_rules_task ON recurrence_rules(task_id)")
            cur.execute("CREATE INDEX IF NOT EXISTS idx_instances_date ON instances(date)")

            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_person(row: sqlite3.Row) -> Person:
        return Person(
            id=int(row["id"]),
            name=str(row["name"] or ""),
            color=str(row["color"] or ""),
            active=bool(row["active"]),
        )

    @staticmethod
    def _row_to_task(row: sqlite3.Row, prefix: str = "") -> Task:
        assignee = row[f"{prefix}assignee_id"]
        return Task(
            id=int(row[f"{prefix}id"]),
            title=str(row[f"{prefix}title"] or ""),
            created_at=str(row[f"{prefix}created_at"] or ""),
            notes=row[f"{prefix}notes"],
            assignee_id=int(assignee) if assignee is not None else None,
            color=row[f"{prefix}color"],
            category=row[f"{prefix}category"],
            priority=row[f"{prefix}priority"],
            active=bool(row[f"{prefix}active"]),
        )

    @staticmethod
    def _row_to_rule(row: sqlite3.Row, prefix: str = "") -> RecurrenceRule:
        interval = row[f"{prefix}interval"]
        return RecurrenceRule(
            id=int(row[f"{prefix}id"]),
            task_id=int(row[f"{prefix}task_id"]),
            frequency=Frequency.from_db(row[f"{prefix}freq"]),
            interval=int(interval) if interval is not None else 1,
            by_weekday=row[f"{prefix}by_weekday"],
            by_monthday=row[f"{prefix}by_monthday"],
            start_date=str(row[f"{prefix}start_date"] or ""),
            end_date=row[f"{prefix}end_date"],
            timezone=row[f"{prefix}timezone"],
        )

    @staticmethod
    def _row_to_instance(row: sqlite3.Row) -> Instance:
        return Instance(
            id=int(row["id"]),
            task_id=int(row["task_id"]),
            date=str(row["date"]),
            status=InstanceStatus.from_db(row["status"]),
            completed_at=row["completed_at"],
            notes=row["notes"],
        )

    @staticmethod
    def _validate_rule(rule: RecurrenceRule) -> tuple[Any, ...]:
        """Validate a rule for writing; returns the column values (without task_id)."""
        if rule.frequency is None:
            raise ValidationError("recurrence frequency is required")
        freq = Frequency.parse(str(rule.frequency))

        try:
            interval = int(rule.interval)
        except (TypeError, ValueError):
            raise ValidationError(f"invalid interval: {rule.interval!r}") from None
        if interval < 1:
            raise ValidationError(f"interval must be a positive integer, got {interval}")

        start = require_iso_date(rule.start_date, "start_date")
        end = require_iso_date(rule.end_date, "end_date") if rule.end_date else None

        return (
            freq.value,
            interval,
            _clean_text(rule.by_weekday),
            _clean_text(rule.by_monthday),
            format_iso_date(start),
            format_iso_date(end) if end else None,
            _clean_text(rule.timezone),
        )

    # ---- snapshot reads (resolver input) ----

    def active_people(self) -> list[Person]:
        conn = self._get_conn()
        try:
            cur = conn.execute("SELECT * FROM people WHERE active = 1 ORDER BY id ASC")
            return [self._row_to_person(r) for r in cur.fetchall()]
        finally:
            conn.close()

    def active_task_rule_pairs(self) -> list[tuple[Task, RecurrenceRule]]:
        """Active tasks joined with their rule; tasks without a rule are left out."""
        conn = self._get_conn()
        try:
            cur = conn.execute(
                """
                SELECT
                    t.id AS t_id, t.title AS t_title, t.notes AS t_notes,
                    t.assignee_id AS t_assignee_id, t.color AS t_color,
                    t.category AS t_category, t.priority AS t_priority,
                    t.active AS t_active, t.created_at AS t_created_at,
                    r.id AS r_id, r.task_id AS r_task_id, r.freq AS r_freq,
                    r.interval AS r_interval, r.by_weekday AS r_by_weekday,
                    r.by_monthday AS r_by_monthday, r.start_date AS r_start_date,
                    r.end_date AS r_end_date, r.timezone AS r_timezone
                FROM tasks t
                JOIN recurrence_rules r
                  ON r.id = (SELECT MIN(id) FROM recurrence_rules WHERE task_id = t.id)
                WHERE t.active = 1
                ORDER BY t.id ASC
                """
            )
            return [
                (self._row_to_task(r, "t_"), self._row_to_rule(r, "r_")) for r in cur.fetchall()
            ]
        finally:
            conn.close()

    def overrides_in_range(self, start_date: str, end_date: str) -> list[Instance]:
        conn = self._get_conn()
        try:
            cur = conn.execute(
                "SELECT * FROM instances WHERE date BETWEEN ? AND ? ORDER BY date ASC, task_id ASC",
                (start_date, end_date),
            )
            return [self._row_to_instance(r) for r in cur.fetchall()]
        finally:
            conn.close()

    # ---- people ----

    def add_person(self, name: str, color: str) -> int:
        name = (name or "").strip()
        color = (color or "").strip()
        if not name or not color:
            raise ValidationError("name and color are required")

        conn = self._get_conn()
        try:
            cur = conn.execute(
                "INSERT INTO people (name, color, active) VALUES (?, ?, 1)", (name, color)
            )
            conn.commit()
            person_id = int(cur.lastrowid or 0)
            logger.info("Person added id=%s name=%s", person_id, name)
            return person_id
        finally:
            conn.close()

    def get_person(self, person_id: int) -> Person | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM people WHERE id = ?", (int(person_id),)).fetchone()
            return self._row_to_person(row) if row else None
        finally:
            conn.close()

    def find_active_person_by_name(self, name: str) -> Person | None:
        name = (name or "").strip()
        if not name:
            return None
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM people WHERE name = ? AND active = 1 ORDER BY id ASC LIMIT 1",
                (name,),
            ).fetchone()
            return self._row_to_person(row) if row else None
        finally:
            conn.close()

    def update_person(
        self,
        person_id: int,
        *,
        name: str | None = None,
        color: str | None = None,
        active: bool | None = None,
    ) -> None:
        existing = self.get_person(person_id)
        if existing is None:
            raise NotFoundError(f"person {person_id} not found")

        conn = self._get_conn()
        try:
            conn.execute(
                "UPDATE people SET name = ?, color = ?, active = ? WHERE id = ?",
                (
                    (name or "").strip() or existing.name,
                    (color or "").strip() or existing.color,
                    int(existing.active if active is None else bool(active)),
                    int(person_id),
                ),
            )
            conn.commit()
        finally:
            conn.close()

    def deactivate_person(self, person_id: int) -> None:
        self.update_person(person_id, active=False)
        logger.info("Person deactivated id=%s", person_id)

    # ---- tasks / rules ----

    def count_tasks(self) -> int:
        conn = self._get_conn()
        try:
            (n,) = conn.execute("SELECT COUNT(*) FROM tasks").fetchone()
            return int(n)
        finally:
            conn.close()

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
        created_at: date | None = None,
    ) -> int:
        """Insert a task together with its rule (one transaction). rule.task_id is ignored."""
        title = (title or "").strip()
        if not title:
            raise ValidationError("title is required")
        rule_values = self._validate_rule(rule)
        created = format_iso_date(created_at or date.today())

        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                INSERT INTO tasks (title, notes, assignee_id, color, category, priority, active, created_at)
                VALUES (?, ?, ?, ?, ?, ?, 1, ?)
                """,
                (
                    title,
                    _clean_text(notes),
                    int(assignee_id) if assignee_id is not None else None,
                    _clean_text(color),
                    _clean_text(category),
                    _clean_text(priority),
                    created,
                ),
            )
            rowid = cur.lastrowid
            if rowid is None:
                raise RuntimeError("SQLite did not return lastrowid for tasks insert")
            task_id = int(rowid)

            cur.execute(
                """
                INSERT INTO recurrence_rules
                    (task_id, freq, interval, by_weekday, by_monthday, start_date, end_date, timezone)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (task_id, *rule_values),
            )
            conn.commit()
            logger.info(
                "Task created id=%s title=%r freq=%s start=%s",
                task_id,
                title,
                rule_values[0],
                rule_values[4],
            )
            return task_id
        finally:
            conn.close()

    def get_task(self, task_id: int) -> Task | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM tasks WHERE id = ?", (int(task_id),)).fetchone()
            return self._row_to_task(row) if row else None
        finally:
            conn.close()

    def get_rule(self, task_id: int) -> RecurrenceRule | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM recurrence_rules WHERE task_id = ? ORDER BY id ASC LIMIT 1",
                (int(task_id),),
            ).fetchone()
            return self._row_to_rule(row) if row else None
        finally:
            conn.close()

    def get_task_with_rule(self, task_id: int) -> tuple[Task, RecurrenceRule | None] | None:
        task = self.get_task(task_id)
        if task is None:
            return None
        return task, self.get_rule(task_id)

    def update_task(
        self,
        task_id: int,
        *,
        title: Any = _UNSET,
        notes: Any = _UNSET,
        assignee_id: Any = _UNSET,
        color: Any = _UNSET,
        category: Any = _UNSET,
        priority: Any = _UNSET,
    ) -> None:
        """Overwrite the given fields. Omitted fields are kept; None clears optional ones."""
        values = {
            "title": title,
            "notes": notes,
            "assignee_id": assignee_id,
            "color": color,
            "category": category,
            "priority": priority,
        }
        fields: list[str] = []
        params: list[Any] = []

        for col in _TASK_COLUMNS:
            value = values[col]
            if value is _UNSET:
                continue
            if col == "title":
                value = (value or "").strip()
                if not value:
                    raise ValidationError("title cannot be empty")
            elif col == "assignee_id":
                value = int(value) if value is not None else None
            else:
                value = _clean_text(value)
            fields.append(f"{col} = ?")
            params.append(value)

        if self.get_task(task_id) is None:
            raise NotFoundError(f"task {task_id} not found")
        if not fields:
            return

        params.append(int(task_id))
        conn = self._get_conn()
        try:
            conn.execute(f"UPDATE tasks SET {', '.join(fields)} WHERE id = ?", params)
            conn.commit()
            logger.debug("Task updated id=%s fields=%s", task_id, [f.split()[0] for f in fields])
        finally:
            conn.close()

    def replace_rule(self, task_id: int, rule: RecurrenceRule) -> None:
        """Full recurrence replacement (plain field overwrite)."""
        rule_values = self._validate_rule(rule)
        conn = self._get_conn()
        try:
            cur = conn.execute(
                """
                UPDATE recurrence_rules
                SET freq = ?, interval = ?, by_weekday = ?, by_monthday = ?,
                    start_date = ?, end_date = ?, timezone = ?
                WHERE task_id = ?
                """,
                (*rule_values, int(task_id)),
            )
            conn.commit()
            if cur.rowcount == 0:
                raise NotFoundError(f"rule not found for task {task_id}")
            logger.info("Rule replaced task=%s freq=%s", task_id, rule_values[0])
        finally:
            conn.close()

    def update_rule_end_date(self, task_id: int, end_date: str | None) -> None:
        if end_date is not None and parse_iso_date(end_date) is None:
            raise ValidationError(f"invalid end_date: {end_date!r}")
        conn = self._get_conn()
        try:
            cur = conn.execute(
                "UPDATE recurrence_rules SET end_date = ? WHERE task_id = ?",
                (end_date, int(task_id)),
            )
            conn.commit()
            if cur.rowcount == 0:
                raise NotFoundError(f"rule not found for task {task_id}")
        finally:
            conn.close()

    def set_task_active(self, task_id: int, active: bool) -> None:
        """Soft-delete / restore. Historical instances are left untouched."""
        conn = self._get_conn()
        try:
            cur = conn.execute(
                "UPDATE tasks SET active = ? WHERE id = ?", (int(bool(active)), int(task_id))
            )
            conn.commit()
            if cur.rowcount == 0:
                raise NotFoundError(f"task {task_id} not found")
            logger.info("Task id=%s active=%s", task_id, bool(active))
        finally:
            conn.close()

    # ---- instances (per-date overrides) ----

    def get_instance(self, task_id: int, date: str) -> Instance | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM instances WHERE task_id = ? AND date = ?", (int(task_id), date)
            ).fetchone()
            return self._row_to_instance(row) if row else None
        finally:
            conn.close()

    def upsert_override(
        self,
        task_id: int,
        date: str,
        status: InstanceStatus | None = None,
        notes: str | None = None,
    ) -> Instance:
        """
        Insert or update the (task, date) instance.

        - status None keeps the stored status (open for a new row)
        - notes None keeps the stored notes
        - completed_at is stamped when the status becomes done and cleared otherwise
        """
        day = format_iso_date(require_iso_date(date, "date"))
        if status is not None:
            status = InstanceStatus.parse(str(status))

        conn = self._get_conn()
        try:
            cur = conn.cursor()
            row = cur.execute(
                "SELECT * FROM instances WHERE task_id = ? AND date = ?", (int(task_id), day)
            ).fetchone()
            existing = self._row_to_instance(row) if row else None

            new_status = status or (existing.status if existing else InstanceStatus.OPEN)
            if new_status == InstanceStatus.DONE:
                if existing is not None and existing.status == InstanceStatus.DONE:
                    completed_at = existing.completed_at or _utc_now_iso()
                else:
                    completed_at = _utc_now_iso()
            else:
                completed_at = None
            new_notes = notes if notes is not None else (existing.notes if existing else None)

            if existing is not None:
                cur.execute(
                    """
                    UPDATE instances SET status = ?, completed_at = ?, notes = ?
                    WHERE task_id = ? AND date = ?
                    """,
                    (new_status.value, completed_at, new_notes, int(task_id), day),
                )
                inst_id = existing.id
            else:
                cur.execute(
                    """
                    INSERT INTO instances (task_id, date, status, completed_at, notes)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (int(task_id), day, new_status.value, completed_at, new_notes),
                )
                inst_id = int(cur.lastrowid or 0)
            conn.commit()
            logger.debug("Instance task=%s date=%s status=%s", task_id, day, new_status.value)
            return Instance(
                id=inst_id,
                task_id=int(task_id),
                date=day,
                status=new_status,
                completed_at=completed_at,
                notes=new_notes,
            )
        finally:
            conn.close()
