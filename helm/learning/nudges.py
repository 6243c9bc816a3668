"""
Tool: Nudge Generator
Purpose: Turn stored patterns plus live task state into short prompts

``generate_nudges`` is pure: given patterns, open tasks and the current time
it returns the same nudges every time, in a fixed rule order. Nothing is
persisted.

``generate_enhanced_nudges`` appends journal-driven nudges. It reads journal
patterns and today's entry from the store; if that fails the base nudges are
returned unchanged.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from helm import clock
from helm.learning.config import JournalConfig, NudgeConfig, load_config
from helm.learning.pattern_analyzer import percent
from helm.learning.patterns import Pattern, PatternKey, PatternKind, get_journal_patterns
from helm.logging_config import get_logger
from helm.store import QueryExecutor, connect


logger = get_logger(__name__)

# The break-down nudge only looks at the "high" focus level
HIGH_FOCUS_RATE = PatternKey(PatternKind.COMPLETION_RATE, "high")


def _days_until_due(task: dict[str, Any], now: datetime) -> int | None:
    due = clock.parse_timestamp(task.get("due_date"))
    if due is None:
        return None
    return (due.date() - now.date()).days


def _age_days(task: dict[str, Any], now: datetime) -> float | None:
    created = clock.parse_timestamp(task.get("created_at"))
    if created is None:
        return None
    return (now - created).total_seconds() / 86400


def _category(task: dict[str, Any]) -> str:
    return task.get("category") or "uncategorized"


def generate_nudges(
    patterns: Sequence[Pattern],
    open_tasks: Sequence[dict[str, Any]],
    now: datetime | None = None,
    config: NudgeConfig | None = None,
) -> list[str]:
    """
    Build situational nudges from task patterns and open tasks.

    Args:
        patterns: Task-behavior patterns (see get_patterns)
        open_tasks: Currently open task rows
        now: Current time (defaults to the clock)
        config: Nudge thresholds

    Returns:
        Nudge strings, in rule order
    """
    now = now or clock.now()
    config = config or NudgeConfig()
    current_time = clock.time_of_day(now)
    current_day = clock.day_of_week(now)
    nudges: list[str] = []

    for pattern in patterns:
        data = pattern.data

        if pattern.kind is PatternKind.PEAK_TIME:
            if data.get("time") == current_time:
                nudges.append(f"It's your peak time ({current_time}) - tackle something important!")

        elif pattern.kind is PatternKind.PEAK_DAY:
            if data.get("day") == current_day:
                nudges.append(f"{current_day.capitalize()}s are your most productive day - make it count!")

        elif pattern.kind is PatternKind.AVOIDANCE_CATEGORY:
            category = data.get("category")
            piling = [t for t in open_tasks if _category(t) == category]
            if piling:
                nudges.append(f"You have {len(piling)} {category} tasks piling up")

        elif pattern.key == HIGH_FOCUS_RATE:
            rate = data.get("rate")
            if rate is not None and rate < config.breakdown_rate:
                nudges.append(
                    f"Try breaking down high-focus tasks - you complete {percent(rate)}% of them"
                )

    due_soon = []
    for task in open_tasks:
        days = _days_until_due(task, now)
        if days is not None and 0 <= days <= config.due_soon_days:
            due_soon.append(task)
    if due_soon:
        nudges.append(f"{len(due_soon)} task(s) due in the next {config.due_soon_days} days")

    stale = []
    for task in open_tasks:
        age = _age_days(task, now)
        if age is not None and age >= config.stale_age_days:
            stale.append(task)
    if len(stale) >= config.stale_min_count:
        nudges.append(f"{len(stale)} tasks have been open {config.stale_age_days}+ days")

    return nudges


def journal_nudges(
    journal_patterns: Sequence[Pattern],
    has_entry_today: bool,
    now: datetime | None = None,
    config: JournalConfig | None = None,
) -> list[str]:
    """Journal-driven nudges, appended after the task nudges."""
    now = now or clock.now()
    config = config or JournalConfig()
    current_day = clock.day_of_week(now)
    nudges: list[str] = []

    for pattern in journal_patterns:
        data = pattern.data

        if pattern.kind is PatternKind.ENERGY_LOW_DAY and data.get("day") == current_day:
            nudges.append(f"{current_day.capitalize()}s are usually low-energy days - plan accordingly")

        elif pattern.kind is PatternKind.MOOD_DAY and pattern.key.qualifier == current_day:
            nudges.append(f"You often feel {data.get('mood')} on {current_day}s - be kind to yourself")

        elif pattern.kind is PatternKind.PRODUCTIVE_MOOD:
            nudges.append(
                f"You're most productive when {data.get('mood')} - check in with how you're feeling"
            )

    if current_day in config.goal_days and not has_entry_today:
        nudges.append("Today's a journaling day - don't break your streak!")

    return nudges


def generate_enhanced_nudges(
    user_id: str,
    patterns: Sequence[Pattern],
    open_tasks: Sequence[dict[str, Any]],
    db: QueryExecutor | None = None,
    now: datetime | None = None,
) -> list[str]:
    """Task nudges plus journal nudges for ``user_id``."""
    now = now or clock.now()
    config = load_config()
    nudges = generate_nudges(patterns, open_tasks, now=now, config=config.nudges)

    with connect(db) as conn:
        journal_patterns = get_journal_patterns(user_id, db=conn)
        try:
            today_entry = conn.first(
                "SELECT id FROM journal_entries WHERE user_id = ? AND entry_date = ?",
                (user_id, now.date().isoformat()),
            )
        except sqlite3.Error as e:
            logger.warning("journal_nudges_skipped", user_id=user_id, error=str(e))
            return nudges

    return nudges + journal_nudges(
        journal_patterns, has_entry_today=today_entry is not None, now=now, config=config.journal
    )


__all__ = [
    "HIGH_FOCUS_RATE",
    "generate_enhanced_nudges",
    "generate_nudges",
    "journal_nudges",
]
