"""
Tool: Journal Streak
Purpose: Consecutive-day journaling streak and weekly goal days

The streak counts calendar days ending today that have at least one entry,
walking backward one day at a time until the first gap. The weekly goal
checks this week's designated days (Monday, Wednesday, Friday by default);
the week starts at the most recent Monday.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any

from helm import clock
from helm.learning.config import JournalConfig, load_config
from helm.store import QueryExecutor, connect


@dataclass
class JournalStreak:
    streak: int
    this_week: int
    goal_days: dict[str, bool] = field(default_factory=dict)

    @property
    def monday(self) -> bool:
        return self.goal_days.get("monday", False)

    @property
    def wednesday(self) -> bool:
        return self.goal_days.get("wednesday", False)

    @property
    def friday(self) -> bool:
        return self.goal_days.get("friday", False)

    @property
    def weekly_goal(self) -> int:
        return len(self.goal_days)

    @property
    def goal_met(self) -> bool:
        return self.this_week >= self.weekly_goal

    def to_dict(self) -> dict[str, Any]:
        return {
            "streak": self.streak,
            "this_week": self.this_week,
            "weekly_goal": self.weekly_goal,
            "goal_days": self.goal_days,
            "goal_met": self.goal_met,
        }


def get_journal_streak(
    user_id: str,
    db: QueryExecutor | None = None,
    today: date | None = None,
    config: JournalConfig | None = None,
) -> JournalStreak:
    """
    Compute the current streak and this week's goal-day coverage.

    Args:
        user_id: User identifier
        db: Executor to use (defaults to the main database)
        today: Reference day (defaults to the clock)
        config: Goal days and iteration cap

    Returns:
        JournalStreak
    """
    today = today or clock.today()
    config = config or load_config().journal
    monday = clock.week_start(today)

    with connect(db) as conn:
        rows = conn.all(
            """
            SELECT DISTINCT entry_date FROM journal_entries
            WHERE user_id = ? AND entry_date >= ? AND entry_date <= ?
            """,
            (user_id, monday.isoformat(), today.isoformat()),
        )
        week_dates = {row["entry_date"] for row in rows}

        streak = 0
        check = today
        while streak < config.streak_cap:
            has_entry = conn.first(
                "SELECT 1 AS found FROM journal_entries WHERE user_id = ? AND entry_date = ? LIMIT 1",
                (user_id, check.isoformat()),
            )
            if not has_entry:
                break
            streak += 1
            check -= timedelta(days=1)

    goal_days = {}
    for name in config.goal_days:
        day = monday + timedelta(days=clock.DAY_NAMES.index(name))
        goal_days[name] = day.isoformat() in week_dates

    return JournalStreak(streak=streak, this_week=len(week_dates), goal_days=goal_days)


__all__ = ["JournalStreak", "get_journal_streak"]
