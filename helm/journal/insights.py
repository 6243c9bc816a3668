"""
Tool: Journal Insights
Purpose: Summaries over recent journal entries

Usage:
    from helm.journal.insights import journal_insights, journal_streak

    journal_insights("alice", days=30)
    journal_streak("alice")

Output:
    dict with success status and data
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any

from helm import clock
from helm.journal.streak import get_journal_streak
from helm.learning.pattern_analyzer import WEEKDAY_CASE
from helm.store import QueryExecutor, connect


TOP_ENTITY_LIMIT = 10


def journal_insights(
    user_id: str,
    days: int = 30,
    db: QueryExecutor | None = None,
    today: date | None = None,
) -> dict[str, Any]:
    """
    Mood breakdown, average energy per weekday, most-mentioned entities
    and the current streak over the last ``days`` days.
    """
    today = today or clock.today()
    since = (today - timedelta(days=days)).isoformat()

    with connect(db) as conn:
        moods = conn.all(
            """
            SELECT mood, COUNT(*) AS count FROM journal_entries
            WHERE user_id = ? AND entry_date >= ? AND mood IS NOT NULL
            GROUP BY mood ORDER BY count DESC
            """,
            (user_id, since),
        )
        energy = conn.all(
            f"""
            SELECT {WEEKDAY_CASE} AS day, AVG(energy_level) AS avg_energy
            FROM journal_entries
            WHERE user_id = ? AND entry_date >= ? AND energy_level IS NOT NULL
            GROUP BY day ORDER BY avg_energy DESC
            """,
            (user_id, since),
        )
        entities = conn.all(
            """
            SELECT ent.entity_type, ent.entity_value, COUNT(*) AS count
            FROM journal_entities ent
            JOIN journal_entries je ON ent.entry_id = je.id
            WHERE je.user_id = ? AND je.entry_date >= ?
            GROUP BY ent.entity_type, ent.entity_value
            ORDER BY count DESC
            LIMIT ?
            """,
            (user_id, since, TOP_ENTITY_LIMIT),
        )
        total = conn.first(
            "SELECT COUNT(*) AS count FROM journal_entries WHERE user_id = ? AND entry_date >= ?",
            (user_id, since),
        )
        streak = get_journal_streak(user_id, db=conn, today=today)

    return {
        "success": True,
        "data": {
            "days": days,
            "total_entries": total["count"] if total else 0,
            "mood_breakdown": {row["mood"]: row["count"] for row in moods},
            "energy_by_day": {row["day"]: round(row["avg_energy"], 1) for row in energy},
            "top_entities": entities,
            "streak": streak.to_dict(),
        },
    }


def journal_streak(
    user_id: str,
    db: QueryExecutor | None = None,
    today: date | None = None,
) -> dict[str, Any]:
    """Current streak plus this week's goal-day status."""
    streak = get_journal_streak(user_id, db=db, today=today)

    if streak.goal_met:
        message = "Weekly goal achieved!"
    else:
        remaining = streak.weekly_goal - streak.this_week
        message = f"{remaining} more {'entry' if remaining == 1 else 'entries'} to hit weekly goal"

    return {"success": True, "data": streak.to_dict(), "message": message}


__all__ = ["journal_insights", "journal_streak"]
