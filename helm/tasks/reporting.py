"""
Tool: Task Reporting
Purpose: Summaries, stats and learned insights over a user's tasks

Usage:
    python -m helm.cli report summary --user alice
    python -m helm.cli report analyze --user alice
    python -m helm.cli report insights --user alice

Output:
    dict with success status and data
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any

from helm import clock
from helm.learning.nudges import generate_enhanced_nudges
from helm.learning.pattern_analyzer import analyze_and_store_patterns, percent
from helm.learning.patterns import Pattern, PatternKind, get_patterns
from helm.store import QueryExecutor, connect
from helm.tasks import COLD_TASK_DAYS
from helm.tasks.manager import get_open_tasks


# How many tasks each challenge bucket lists
CHALLENGE_SAMPLE = 5

HIGH_PRIORITY = 4


def describe_pattern(pattern: Pattern) -> str | None:
    """One-line, user-facing description of a stored task pattern."""
    data = pattern.data
    kind = pattern.kind

    if kind is PatternKind.PEAK_TIME:
        return f"You're most productive in the {data.get('time')}"
    if kind is PatternKind.PEAK_DAY:
        return f"{str(data.get('day', '')).capitalize()}s are your power days"
    if kind is PatternKind.AVG_COMPLETION_DAYS:
        return f"You complete tasks in {data.get('days')} days on average"
    if kind is PatternKind.AVOIDANCE_CATEGORY:
        return f"You tend to delay {data.get('category')} tasks"
    if kind is PatternKind.COMPLETION_RATE and "rate" in data:
        return f"{str(pattern.key.qualifier).capitalize()}-focus tasks: {percent(data['rate'])}% completed"
    return None


def analyze_patterns(
    user_id: str,
    db: QueryExecutor | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Run the pattern analyzer and report what it found."""
    result = analyze_and_store_patterns(user_id, db=db, now=now)

    if not result.insights:
        return {
            "success": True,
            "data": result.to_dict(),
            "message": "Not enough data yet. Keep using the system and check back in a week!",
        }

    return {
        "success": True,
        "data": result.to_dict(),
        "message": f"Found {len(result.insights)} productivity patterns",
    }


def get_insights(
    user_id: str,
    db: QueryExecutor | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Stored patterns described in plain words, plus nudges for right now."""
    with connect(db) as conn:
        patterns = get_patterns(user_id, db=conn)
        if not patterns:
            return {
                "success": True,
                "data": {"insights": [], "nudges": []},
                "message": "No patterns learned yet. Run analyze_patterns after a week of use!",
            }

        open_tasks = get_open_tasks(user_id, db=conn)
        nudges = generate_enhanced_nudges(user_id, patterns, open_tasks, db=conn, now=now)

    insights = [text for text in (describe_pattern(p) for p in patterns) if text]
    return {
        "success": True,
        "data": {
            "insights": insights,
            "nudges": nudges,
            "patterns": [p.to_dict() for p in patterns],
        },
    }


def _suggest_task(open_tasks: list[dict[str, Any]]) -> dict[str, Any] | None:
    # Soonest due, then high priority, then whatever is first
    upcoming = sorted(
        (t for t in open_tasks if clock.parse_timestamp(t.get("due_date"))),
        key=lambda t: clock.parse_timestamp(t["due_date"]),
    )
    if upcoming:
        return upcoming[0]

    for task in open_tasks:
        if (task.get("priority") or 0) >= HIGH_PRIORITY:
            return task

    return open_tasks[0] if open_tasks else None


def get_daily_summary(
    user_id: str,
    db: QueryExecutor | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    Today at a glance.

    Returns:
        dict with completed/progress counts for today, open task count,
        nudges and one suggested task to focus on
    """
    now = now or clock.now()
    today = now.date().isoformat()

    with connect(db) as conn:
        open_tasks = get_open_tasks(user_id, db=conn)
        done = conn.first(
            "SELECT COUNT(*) AS count FROM tasks WHERE user_id = ? AND status = 'done' AND DATE(completed_at) = ?",
            (user_id, today),
        )
        progress = conn.first(
            "SELECT COUNT(*) AS count FROM progress_logs WHERE user_id = ? AND DATE(logged_at) = ?",
            (user_id, today),
        )
        patterns = get_patterns(user_id, db=conn)
        nudges = generate_enhanced_nudges(user_id, patterns, open_tasks, db=conn, now=now)

    return {
        "success": True,
        "data": {
            "day": clock.day_of_week(now),
            "completed_today": done["count"],
            "progress_logged": progress["count"],
            "open_tasks": len(open_tasks),
            "nudges": nudges,
            "suggested_task": _suggest_task(open_tasks),
        },
    }


def weekly_recap(
    user_id: str,
    db: QueryExecutor | None = None,
    today: date | None = None,
) -> dict[str, Any]:
    """Completed and added counts since Monday, with the per-day breakdown."""
    monday = clock.week_start(today or clock.today()).isoformat()

    with connect(db) as conn:
        done = conn.first(
            "SELECT COUNT(*) AS count FROM tasks WHERE user_id = ? AND status = 'done' AND completed_at >= ?",
            (user_id, monday),
        )
        added = conn.first(
            "SELECT COUNT(*) AS count FROM tasks WHERE user_id = ? AND created_at >= ?",
            (user_id, monday),
        )
        by_day = conn.all(
            """
            SELECT log_date, tasks_completed, tasks_created FROM daily_logs
            WHERE user_id = ? AND log_date >= ?
            ORDER BY log_date
            """,
            (user_id, monday),
        )

    return {
        "success": True,
        "data": {
            "week_start": monday,
            "completed": done["count"],
            "added": added["count"],
            "by_day": by_day,
        },
    }


def get_stats(
    user_id: str,
    db: QueryExecutor | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    now = now or clock.now()
    week_ago = (now - timedelta(days=7)).isoformat()

    with connect(db) as conn:
        counts = conn.first(
            """
            SELECT
                COUNT(*) AS total,
                COUNT(CASE WHEN status = 'open' THEN 1 END) AS open,
                COUNT(CASE WHEN status = 'done' THEN 1 END) AS done,
                COUNT(CASE WHEN status = 'done' AND completed_at >= ? THEN 1 END) AS done_last_7_days
            FROM tasks
            WHERE user_id = ?
            """,
            (week_ago, user_id),
        )

    stats = dict(counts)
    stats["completion_rate"] = percent(stats["done"] / stats["total"]) if stats["total"] else None
    return {"success": True, "data": stats}


def get_challenges(
    user_id: str,
    db: QueryExecutor | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Open tasks that are going cold, too vague, or too big."""
    now = now or clock.now()
    cutoff = (now - timedelta(days=COLD_TASK_DAYS)).isoformat()

    with connect(db) as conn:
        cold = conn.all(
            "SELECT * FROM tasks WHERE user_id = ? AND status = 'open' AND created_at <= ? ORDER BY created_at",
            (user_id, cutoff),
        )
        vague = conn.all(
            "SELECT * FROM tasks WHERE user_id = ? AND status = 'open' AND is_vague = 1 ORDER BY created_at",
            (user_id,),
        )
        too_big = conn.all(
            "SELECT * FROM tasks WHERE user_id = ? AND status = 'open' AND needs_breakdown = 1 ORDER BY created_at",
            (user_id,),
        )

    data = {
        "cold": {"count": len(cold), "tasks": cold[:CHALLENGE_SAMPLE]},
        "vague": {"count": len(vague), "tasks": vague[:CHALLENGE_SAMPLE]},
        "needs_breakdown": {"count": len(too_big), "tasks": too_big[:CHALLENGE_SAMPLE]},
    }

    if not (cold or vague or too_big):
        return {"success": True, "data": data, "message": "No challenges right now! Your task list is in good shape."}

    return {"success": True, "data": data}


__all__ = [
    "analyze_patterns",
    "describe_pattern",
    "get_challenges",
    "get_daily_summary",
    "get_insights",
    "get_stats",
    "weekly_recap",
]
