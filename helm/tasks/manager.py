"""
Tool: Task Manager
Purpose: Task CRUD that writes every change to the event log

Each mutation appends exactly one event (subtasks created by a breakdown
get their own ``created`` event). Creating and completing a task also bump
the per-day counters.

Usage:
    python -m helm.cli task create --user alice --text "write launch post"
    python -m helm.cli task complete --task-id abc123
    python -m helm.cli task list --user alice

Dependencies:
    - sqlite3 (stdlib)

Output:
    JSON result with success status and data
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from typing import Any

from helm import clock
from helm.learning.events import log_event, update_daily_log
from helm.learning.pattern_analyzer import round_half_up
from helm.logging_config import get_logger
from helm.store import QueryExecutor, connect, generate_id
from helm.tasks import DEFAULT_PRIORITY, FOCUS_LEVELS, PRIORITY_RANGE, TASK_STATUSES
from helm.tasks.recurring import CADENCES, is_valid_recurrence, next_due_date


logger = get_logger(__name__)


# =============================================================================
# Text heuristics
# =============================================================================

BIG_TASK_PATTERNS = (
    re.compile(r"^(build|create|develop|design|write|edit|launch|implement|complete)\s+(a|the|my|our)\s+\w+", re.IGNORECASE),
    re.compile(r"entire|whole|full|complete", re.IGNORECASE),
    re.compile(r"project|system|platform|application|book|novel|course|program", re.IGNORECASE),
)

VAGUE_PATTERNS = (
    re.compile(r"^(think about|consider|look into|explore|research|figure out|work on)", re.IGNORECASE),
    re.compile(r"^(need to|should|want to|have to)\s+(build|create|make|do|start)", re.IGNORECASE),
)

CLEAR_TASK_PATTERN = re.compile(
    r"^(check|send|email|call|reply|review|read|fix|update|schedule|book|buy|pay)", re.IGNORECASE
)

HIGH_FOCUS_PATTERN = re.compile(r"edit|write|develop|build|design|create|analyze|plan|debug|refactor", re.IGNORECASE)
LOW_FOCUS_PATTERN = re.compile(r"check|send|email|call|reply|schedule|book|buy|pay|remind|look|find", re.IGNORECASE)

# Anything this short is a single step, however grand it sounds
SHORT_TASK_WORDS = 5


def needs_breakdown(text: str) -> bool:
    """Whether a task reads like a project rather than a next action."""
    if len(text.split()) <= SHORT_TASK_WORDS:
        return False
    return any(p.search(text) for p in BIG_TASK_PATTERNS)


def is_vague_task(text: str) -> bool:
    if CLEAR_TASK_PATTERN.search(text):
        return False
    return any(p.search(text) for p in VAGUE_PATTERNS)


def infer_focus_level(text: str) -> str:
    """
    Guess how much focus a task needs from its wording.

    Low-focus verbs win over high-focus ones: "send the design doc" is
    still a quick send.
    """
    if LOW_FOCUS_PATTERN.search(text):
        return "low"
    if HIGH_FOCUS_PATTERN.search(text):
        return "high"
    return "medium"


def _validate(
    priority: int | None = None,
    focus_level: str | None = None,
    due_date: str | None = None,
    recurrence: str | None = None,
) -> str | None:
    if priority is not None and not PRIORITY_RANGE[0] <= priority <= PRIORITY_RANGE[1]:
        return f"Invalid priority. Must be between {PRIORITY_RANGE[0]} and {PRIORITY_RANGE[1]}"
    if focus_level is not None and focus_level not in FOCUS_LEVELS:
        return f"Invalid focus level. Must be one of: {FOCUS_LEVELS}"
    if due_date and clock.parse_timestamp(due_date) is None:
        return f"Invalid due date: {due_date}"
    if recurrence and not is_valid_recurrence(recurrence):
        return f"Invalid recurrence: {recurrence}. Use one of {CADENCES} or weekdays like 'mon,thu'"
    return None


# =============================================================================
# CRUD
# =============================================================================

def create_task(
    user_id: str,
    text: str,
    priority: int = DEFAULT_PRIORITY,
    category: str | None = None,
    focus_level: str | None = None,
    due_date: str | None = None,
    parent_task_id: str | None = None,
    recurrence: str | None = None,
    db: QueryExecutor | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    Create a task.

    Args:
        user_id: User who owns the task
        text: What needs doing, as the user said it
        priority: 1-5, higher = more important
        category: Free-form grouping (e.g. "admin")
        focus_level: low/medium/high (inferred from the text when omitted)
        due_date: ISO date
        parent_task_id: Parent task if this is a subtask
        recurrence: Cadence such as "weekly" or "mon,thu"; due today when no due date is given
        db: Executor to use
        now: Creation time (defaults to the clock)

    Returns:
        dict with success status and task data
    """
    if not text or not text.strip():
        return {"success": False, "error": "text is required"}

    error = _validate(priority, focus_level, due_date, recurrence)
    if error:
        return {"success": False, "error": error}

    now = now or clock.now()
    task_id = generate_id()
    recurrence = recurrence.strip().lower() if recurrence else None
    if recurrence and not due_date:
        due_date = now.date().isoformat()
    focus_level = focus_level or infer_focus_level(text)
    big = needs_breakdown(text)
    vague = is_vague_task(text)

    with connect(db) as conn:
        conn.run(
            """
            INSERT INTO tasks
                (id, user_id, text, priority, category, focus_level, due_date, parent_task_id,
                 recurrence, needs_breakdown, is_vague, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (task_id, user_id, text, priority, category, focus_level, due_date, parent_task_id,
             recurrence, int(big), int(vague), now.isoformat()),
        )
        log_event(
            user_id,
            "created",
            task_id,
            {
                "text": text,
                "priority": priority,
                "category": category,
                "focus_level": focus_level,
                "recurrence": recurrence,
            },
            db=conn,
            now=now,
        )
        update_daily_log(user_id, "tasks_created", db=conn, now=now)
        task = conn.first("SELECT * FROM tasks WHERE id = ?", (task_id,))

    logger.info("task_created", user_id=user_id, task_id=task_id, focus_level=focus_level)

    hints = []
    if big:
        hints.append("This looks like a big task. Want to break it down?")
    if vague:
        hints.append("This seems a bit vague. Can you make it more specific?")

    return {
        "success": True,
        "data": {"task_id": task_id, "task": task, "hints": hints},
        "message": f"Task created with ID {task_id}",
    }


def get_task(task_id: str, db: QueryExecutor | None = None) -> dict[str, Any]:
    """Get a task with its subtasks."""
    with connect(db) as conn:
        task = conn.first("SELECT * FROM tasks WHERE id = ?", (task_id,))
        if not task:
            return {"success": False, "error": f"Task not found: {task_id}"}

        task["subtasks"] = conn.all(
            "SELECT * FROM tasks WHERE parent_task_id = ? ORDER BY created_at",
            (task_id,),
        )

    return {"success": True, "data": task}


def list_tasks(
    user_id: str,
    status: str | None = "open",
    category: str | None = None,
    include_snoozed: bool = False,
    limit: int = 50,
    offset: int = 0,
    db: QueryExecutor | None = None,
    today: date | None = None,
) -> dict[str, Any]:
    """
    List tasks for a user with optional filters.

    Snoozed tasks are hidden until their snooze date unless
    ``include_snoozed`` is set.
    """
    if status and status not in TASK_STATUSES:
        return {"success": False, "error": f"Invalid status. Must be one of: {TASK_STATUSES}"}

    conditions = ["user_id = ?"]
    params: list[Any] = [user_id]

    if status:
        conditions.append("status = ?")
        params.append(status)

    if category:
        conditions.append("category = ?")
        params.append(category)

    if not include_snoozed:
        conditions.append("(snoozed_until IS NULL OR snoozed_until <= ?)")
        params.append((today or clock.today()).isoformat())

    where_clause = " AND ".join(conditions)

    with connect(db) as conn:
        tasks = conn.all(
            f"""
            SELECT * FROM tasks
            WHERE {where_clause}
            ORDER BY priority DESC, created_at ASC
            LIMIT ? OFFSET ?
            """,
            params + [limit, offset],
        )
        total = conn.first(f"SELECT COUNT(*) AS count FROM tasks WHERE {where_clause}", params)

    return {
        "success": True,
        "data": {"tasks": tasks, "total": total["count"], "limit": limit, "offset": offset},
    }


def get_open_tasks(user_id: str, db: QueryExecutor | None = None) -> list[dict[str, Any]]:
    """Every open task, snoozed or not. This is what nudges look at."""
    with connect(db) as conn:
        return conn.all(
            "SELECT * FROM tasks WHERE user_id = ? AND status = 'open' ORDER BY priority DESC, created_at ASC",
            (user_id,),
        )


def update_task(
    task_id: str,
    text: str | None = None,
    priority: int | None = None,
    category: str | None = None,
    focus_level: str | None = None,
    due_date: str | None = None,
    recurrence: str | None = None,
    db: QueryExecutor | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    Update task fields.

    Changing the text re-runs the breakdown and vagueness checks. The
    changed fields are the payload of the ``updated`` event. An empty
    ``due_date`` or ``recurrence`` clears it.
    """
    error = _validate(priority, focus_level, due_date, recurrence)
    if error:
        return {"success": False, "error": error}

    changes: dict[str, Any] = {}
    if text:
        changes["text"] = text
        changes["needs_breakdown"] = int(needs_breakdown(text))
        changes["is_vague"] = int(is_vague_task(text))
    if priority is not None:
        changes["priority"] = priority
    if category is not None:
        changes["category"] = category
    if focus_level is not None:
        changes["focus_level"] = focus_level
    if due_date is not None:
        changes["due_date"] = due_date or None
    if recurrence is not None:
        changes["recurrence"] = recurrence.strip().lower() or None

    if not changes:
        return {"success": False, "error": "No fields to update"}

    with connect(db) as conn:
        task = conn.first("SELECT * FROM tasks WHERE id = ?", (task_id,))
        if not task:
            return {"success": False, "error": f"Task not found: {task_id}"}

        # Column names come from the keys above, never from input
        assignments = ", ".join(f"{column} = ?" for column in changes)
        conn.run(f"UPDATE tasks SET {assignments} WHERE id = ?", list(changes.values()) + [task_id])
        log_event(task["user_id"], "updated", task_id, changes, db=conn, now=now)
        updated = conn.first("SELECT * FROM tasks WHERE id = ?", (task_id,))

    return {"success": True, "data": updated, "message": f"Task {task_id} updated"}


def complete_task(
    task_id: str,
    db: QueryExecutor | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    Mark a task as done.

    Args:
        task_id: Task to complete
        db: Executor to use
        now: Completion time (defaults to the clock)

    Returns:
        dict with the completed task and days taken
    """
    now = now or clock.now()

    with connect(db) as conn:
        task = conn.first("SELECT * FROM tasks WHERE id = ?", (task_id,))
        if not task:
            return {"success": False, "error": f"Task not found: {task_id}"}
        if task["status"] == "done":
            return {"success": False, "error": f"Task already completed: {task_id}"}

        conn.run(
            "UPDATE tasks SET status = 'done', completed_at = ? WHERE id = ?",
            (now.isoformat(), task_id),
        )

        created = clock.parse_timestamp(task["created_at"])
        days_to_complete = round_half_up((now - created).total_seconds() / 86400) if created else None

        log_event(
            task["user_id"],
            "completed",
            task_id,
            {
                "text": task["text"],
                "days_to_complete": days_to_complete,
                "focus_level": task["focus_level"],
                "category": task["category"],
            },
            db=conn,
            now=now,
        )
        update_daily_log(task["user_id"], "tasks_completed", db=conn, now=now)

        next_task = _create_next_occurrence(conn, task, now) if task["recurrence"] else None

    logger.info("task_completed", user_id=task["user_id"], task_id=task_id, days=days_to_complete)

    if days_to_complete == 0:
        message = f'Completed: "{task["text"]}" - same-day completion!'
    else:
        message = f'Completed: "{task["text"]}"'

    data = {"task_id": task_id, "days_to_complete": days_to_complete}
    if next_task:
        data["next_task_id"] = next_task["id"]
        data["next_due_date"] = next_task["due_date"]
        message += f' Next occurrence created for {next_task["due_date"]}'

    return {"success": True, "data": data, "message": message}


def _create_next_occurrence(conn: QueryExecutor, task: dict[str, Any], now: datetime) -> dict[str, Any]:
    # Counted as an event, not as a task the user added today
    current = clock.parse_timestamp(task["due_date"])
    next_due = next_due_date(current.date() if current else now.date(), task["recurrence"]).isoformat()
    new_id = generate_id()

    conn.run(
        """
        INSERT INTO tasks
            (id, user_id, text, priority, category, focus_level, due_date, recurrence, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (new_id, task["user_id"], task["text"], task["priority"], task["category"],
         task["focus_level"], next_due, task["recurrence"], now.isoformat()),
    )
    log_event(
        task["user_id"],
        "created",
        new_id,
        {"text": task["text"], "recurrence": task["recurrence"], "source": "recurring"},
        db=conn,
        now=now,
    )
    return {"id": new_id, "due_date": next_due}


def snooze_task(
    task_id: str,
    days: int | None = None,
    until: str | None = None,
    db: QueryExecutor | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Hide a task until a date (``until``), or for ``days`` days (default 1)."""
    now = now or clock.now()

    if until:
        if clock.parse_timestamp(until) is None:
            return {"success": False, "error": f"Invalid date: {until}"}
        snooze_until = until
    else:
        snooze_until = (now.date() + timedelta(days=days or 1)).isoformat()

    with connect(db) as conn:
        task = conn.first("SELECT * FROM tasks WHERE id = ?", (task_id,))
        if not task:
            return {"success": False, "error": f"Task not found: {task_id}"}

        conn.run("UPDATE tasks SET snoozed_until = ? WHERE id = ?", (snooze_until, task_id))
        log_event(task["user_id"], "snoozed", task_id, {"until": snooze_until}, db=conn, now=now)

    return {
        "success": True,
        "data": {"task_id": task_id, "snoozed_until": snooze_until},
        "message": f'Snoozed until {snooze_until}: "{task["text"]}"',
    }


def delete_task(
    task_id: str,
    db: QueryExecutor | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Delete a task. The event log keeps a record of it."""
    with connect(db) as conn:
        task = conn.first("SELECT * FROM tasks WHERE id = ?", (task_id,))
        if not task:
            return {"success": False, "error": f"Task not found: {task_id}"}

        log_event(task["user_id"], "deleted", task_id, {"text": task["text"]}, db=conn, now=now)
        conn.run("DELETE FROM tasks WHERE id = ?", (task_id,))

    return {"success": True, "message": f'Deleted: "{task["text"]}"'}


def log_progress(
    user_id: str,
    description: str,
    task_id: str | None = None,
    minutes_spent: int | None = None,
    db: QueryExecutor | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Record work done, optionally against a task."""
    if not description or not description.strip():
        return {"success": False, "error": "description is required"}

    if minutes_spent is not None and minutes_spent < 0:
        return {"success": False, "error": "minutes_spent cannot be negative"}

    now = now or clock.now()
    log_id = generate_id()

    with connect(db) as conn:
        conn.run(
            """
            INSERT INTO progress_logs (id, user_id, task_id, description, minutes_spent, logged_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (log_id, user_id, task_id, description, minutes_spent, now.isoformat()),
        )
        log_event(
            user_id,
            "progress",
            task_id,
            {"description": description, "minutes_spent": minutes_spent},
            db=conn,
            now=now,
        )

    return {"success": True, "data": {"id": log_id}, "message": f"Logged: {description}"}


def break_down_task(
    task_id: str,
    subtasks: list[str],
    db: QueryExecutor | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    Split a task into subtasks.

    Subtasks inherit the parent's owner, priority and category; each gets
    its own focus level. The parent is no longer flagged for breakdown.
    """
    subtasks = [s.strip() for s in subtasks if s and s.strip()]
    if not subtasks:
        return {"success": False, "error": "At least one subtask is required"}

    now = now or clock.now()

    with connect(db) as conn:
        parent = conn.first("SELECT * FROM tasks WHERE id = ?", (task_id,))
        if not parent:
            return {"success": False, "error": f"Task not found: {task_id}"}

        subtask_ids = []
        for text in subtasks:
            sub_id = generate_id()
            conn.run(
                """
                INSERT INTO tasks (id, user_id, text, priority, category, focus_level, parent_task_id, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (sub_id, parent["user_id"], text, parent["priority"], parent["category"],
                 infer_focus_level(text), task_id, now.isoformat()),
            )
            log_event(parent["user_id"], "created", sub_id, {"text": text, "parent_task": task_id}, db=conn, now=now)
            subtask_ids.append(sub_id)

        conn.run("UPDATE tasks SET needs_breakdown = 0 WHERE id = ?", (task_id,))
        log_event(parent["user_id"], "broken_down", task_id, {"subtask_count": len(subtasks)}, db=conn, now=now)

    return {
        "success": True,
        "data": {"task_id": task_id, "subtask_ids": subtask_ids},
        "message": f"Broke down into {len(subtasks)} subtasks",
    }


__all__ = [
    "break_down_task",
    "complete_task",
    "create_task",
    "delete_task",
    "get_open_tasks",
    "get_task",
    "infer_focus_level",
    "is_vague_task",
    "list_tasks",
    "log_progress",
    "needs_breakdown",
    "snooze_task",
    "update_task",
]
