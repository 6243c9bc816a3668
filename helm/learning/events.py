"""
Tool: Event Log
Purpose: Append-only record of task lifecycle events plus per-day counters

Every task-affecting tool call writes exactly one event. The day of week and
time of day at write time are merged into the payload so later analysis
groups by the bucket that was current when it happened.

Usage:
    from helm.learning.events import log_event, update_daily_log

    log_event("alice", "completed", task_id, {"category": "admin"})
    update_daily_log("alice", "tasks_completed")

Dependencies:
    - sqlite3 (stdlib)
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from helm import clock
from helm.learning import DAILY_LOG_FIELDS, EVENT_TYPES
from helm.logging_config import get_logger
from helm.store import QueryExecutor, connect, generate_id


logger = get_logger(__name__)


def log_event(
    user_id: str,
    event_type: str,
    task_id: str | None = None,
    payload: dict[str, Any] | None = None,
    db: QueryExecutor | None = None,
    now: datetime | None = None,
) -> str:
    """
    Append a task event.

    Args:
        user_id: User who owns the task
        event_type: One of EVENT_TYPES
        task_id: Related task, if any
        payload: Free-form event data
        db: Executor to use (defaults to the main database)
        now: Event time (defaults to the clock)

    Returns:
        The new event ID
    """
    if event_type not in EVENT_TYPES:
        raise ValueError(f"Invalid event type {event_type!r}. Must be one of: {EVENT_TYPES}")

    now = now or clock.now()
    event_id = generate_id()
    data = {**(payload or {}), "day": clock.day_of_week(now), "time": clock.time_of_day(now)}

    with connect(db) as conn:
        conn.run(
            """
            INSERT INTO task_events (id, user_id, task_id, event_type, event_data, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (event_id, user_id, task_id, event_type, json.dumps(data), now.isoformat()),
        )

    logger.debug("task_event_logged", user_id=user_id, event_type=event_type, task_id=task_id)
    return event_id


def update_daily_log(
    user_id: str,
    field: str,
    increment: int = 1,
    db: QueryExecutor | None = None,
    now: datetime | None = None,
) -> None:
    """Bump a daily counter, creating today's row when missing."""
    if field not in DAILY_LOG_FIELDS:
        raise ValueError(f"Invalid daily log field {field!r}. Must be one of: {DAILY_LOG_FIELDS}")

    log_date = (now or clock.now()).date().isoformat()
    values = {name: 0 for name in DAILY_LOG_FIELDS}
    values[field] = increment

    # field is whitelisted above, so interpolating it is safe
    with connect(db) as conn:
        conn.run(
            f"""
            INSERT INTO daily_logs (id, user_id, log_date, tasks_completed, tasks_created)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(user_id, log_date) DO UPDATE SET {field} = {field} + excluded.{field}
            """,
            (generate_id(), user_id, log_date, values["tasks_completed"], values["tasks_created"]),
        )


def get_events(
    user_id: str,
    event_type: str | None = None,
    since: datetime | None = None,
    db: QueryExecutor | None = None,
) -> list[dict[str, Any]]:
    """Read events back, newest first, with the payload decoded."""
    conditions = ["user_id = ?"]
    params: list[Any] = [user_id]

    if event_type:
        conditions.append("event_type = ?")
        params.append(event_type)

    if since:
        conditions.append("created_at >= ?")
        params.append(since.isoformat())

    with connect(db) as conn:
        rows = conn.all(
            f"SELECT * FROM task_events WHERE {' AND '.join(conditions)} ORDER BY created_at DESC",
            params,
        )

    for row in rows:
        row["event_data"] = json.loads(row["event_data"]) if row.get("event_data") else {}
    return rows


def get_daily_logs(user_id: str, since: str, db: QueryExecutor | None = None) -> list[dict[str, Any]]:
    with connect(db) as conn:
        return conn.all(
            """
            SELECT log_date, tasks_completed, tasks_created FROM daily_logs
            WHERE user_id = ? AND log_date >= ?
            ORDER BY log_date
            """,
            (user_id, since),
        )


__all__ = ["get_daily_logs", "get_events", "log_event", "update_daily_log"]
