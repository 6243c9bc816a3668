"""
Tool: Recurring Tasks
Purpose: Recurrence rules, next-occurrence dates and overdue catch-up

A recurrence is one of the named cadences (daily, weekdays, weekly,
biweekly, monthly, yearly) or a comma-separated list of weekday
abbreviations such as "mon,thu". Completing a recurring task creates the
next occurrence (see manager.complete_task); catching up moves overdue
recurring due dates forward without completing anything.

Usage:
    python -m helm.cli task catchup --user alice --dry-run

Dependencies:
    - sqlite3 (stdlib)

Output:
    JSON result with the tasks that were (or would be) moved
"""

from __future__ import annotations

import calendar
from datetime import date, timedelta
from typing import Any

from helm import clock
from helm.learning.events import log_event
from helm.logging_config import get_logger
from helm.store import QueryExecutor, connect


logger = get_logger(__name__)

CADENCES = ("daily", "weekdays", "weekly", "biweekly", "monthly", "yearly")

# "mon" -> 0 ... "sun" -> 6, matching date.weekday()
DAY_ABBREVIATIONS = {name[:3]: index for index, name in enumerate(clock.DAY_NAMES)}


def _target_weekdays(recurrence: str) -> set[int]:
    return {DAY_ABBREVIATIONS[part.strip()] for part in recurrence.split(",") if part.strip() in DAY_ABBREVIATIONS}


def is_valid_recurrence(recurrence: str) -> bool:
    value = recurrence.strip().lower()
    if value in CADENCES:
        return True
    parts = [part.strip() for part in value.split(",")]
    return bool(parts) and all(part in DAY_ABBREVIATIONS for part in parts)


def _add_months(day: date, months: int) -> date:
    # Clamp to the last day of shorter months (Jan 31 -> Feb 28)
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    return day.replace(year=year, month=month, day=min(day.day, calendar.monthrange(year, month)[1]))


def next_due_date(current: date, recurrence: str) -> date:
    """The occurrence after ``current`` for a recurrence rule."""
    value = recurrence.strip().lower()

    if value == "daily":
        return current + timedelta(days=1)
    if value == "weekdays":
        nxt = current + timedelta(days=1)
        while nxt.weekday() >= 5:
            nxt += timedelta(days=1)
        return nxt
    if value == "weekly":
        return current + timedelta(days=7)
    if value == "biweekly":
        return current + timedelta(days=14)
    if value == "monthly":
        return _add_months(current, 1)
    if value == "yearly":
        return _add_months(current, 12)

    targets = _target_weekdays(value)
    if not targets:
        raise ValueError(f"Invalid recurrence: {recurrence!r}")

    nxt = current + timedelta(days=1)
    while nxt.weekday() not in targets:
        nxt += timedelta(days=1)
    return nxt


def caught_up_due_date(current: date, recurrence: str, today: date) -> date:
    """Step ``current`` forward by the rule until it is today or later."""
    due = current
    while due < today:
        due = next_due_date(due, recurrence)
    return due


def catchup_recurring_tasks(
    user_id: str,
    dry_run: bool = False,
    db: QueryExecutor | None = None,
    today: date | None = None,
) -> dict[str, Any]:
    """
    Move overdue recurring tasks to their next due date on or after today.

    Args:
        user_id: User whose tasks to catch up
        dry_run: Report the moves without writing anything
        db: Executor to use
        today: Reference day (defaults to the clock)

    Returns:
        dict with one update per overdue recurring task
    """
    today = today or clock.today()

    with connect(db) as conn:
        overdue = conn.all(
            """
            SELECT * FROM tasks
            WHERE user_id = ? AND status = 'open' AND recurrence IS NOT NULL AND due_date < ?
            ORDER BY due_date
            """,
            (user_id, today.isoformat()),
        )

        updates = []
        for task in overdue:
            old_due = clock.parse_timestamp(task["due_date"])
            if old_due is None or not is_valid_recurrence(task["recurrence"]):
                logger.warning("recurring_task_skipped", task_id=task["id"], due_date=task["due_date"])
                continue
            new_due = caught_up_due_date(old_due.date(), task["recurrence"], today).isoformat()
            updates.append(
                {
                    "task_id": task["id"],
                    "text": task["text"],
                    "old_date": task["due_date"],
                    "new_date": new_due,
                    "recurrence": task["recurrence"],
                }
            )

        if not dry_run:
            for update in updates:
                conn.run("UPDATE tasks SET due_date = ? WHERE id = ?", (update["new_date"], update["task_id"]))
                log_event(
                    user_id,
                    "catchup",
                    update["task_id"],
                    {
                        "old_date": update["old_date"],
                        "new_date": update["new_date"],
                        "recurrence": update["recurrence"],
                    },
                    db=conn,
                )

    if not updates:
        return {
            "success": True,
            "data": {"updates": [], "dry_run": dry_run},
            "message": f"No overdue recurring tasks found for {user_id}",
        }

    if dry_run:
        message = f"{len(updates)} overdue recurring task(s) would be moved. Run without dry_run to apply."
    else:
        logger.info("recurring_tasks_caught_up", user_id=user_id, count=len(updates))
        message = f"Updated {len(updates)} recurring task(s)"

    return {"success": True, "data": {"updates": updates, "dry_run": dry_run}, "message": message}


__all__ = [
    "CADENCES",
    "caught_up_due_date",
    "catchup_recurring_tasks",
    "is_valid_recurrence",
    "next_due_date",
]
