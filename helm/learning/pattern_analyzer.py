"""
Tool: Pattern Analyzer
Purpose: Derive productivity patterns from the event log, tasks and journal

Scans a trailing window (30 days by default) and upserts one pattern row per
detected signal. Each detection is independent and gated by a minimum sample
so a couple of data points never turn into an "insight".

Detections:
- peak_time: time-of-day bucket with the most completions
- peak_day: weekday with the most completions
- completion_rate_<focus>: done / created per focus level
- avg_completion_days: mean days from creation to completion
- avoidance_category: category with the most week-old open tasks
- mood_day_<day>: recurring negative mood on a weekday (journal)
- energy_high_day / energy_low_day: weekday energy extremes (journal)
- productive_mood / unproductive_mood: mood vs tasks completed (journal)
- entity_positive_<value> / entity_negative_<value>: who/what goes with a mood (journal)

Journal detections may hit a database that has no journal tables yet. A store
error there is recorded as a skipped detection; task-side insights are still
returned.

Usage:
    from helm.learning.pattern_analyzer import analyze_and_store_patterns

    result = analyze_and_store_patterns("alice")
    result.insights   # ["Most productive in the morning", ...]
    result.skipped    # {"entity_sentiment": "no such table: journal_entities"}

Dependencies:
    - sqlite3 (stdlib)
    - structlog
"""

from __future__ import annotations

import math
import sqlite3
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from helm import clock
from helm.learning import NEGATIVE_MOODS, POSITIVE_MOODS
from helm.learning.config import PatternDetectionConfig, load_config
from helm.learning.patterns import PatternKey, PatternKind, upsert_pattern
from helm.logging_config import get_logger
from helm.store import QueryExecutor, connect


logger = get_logger(__name__)

# SQLite strftime('%w') numbers Sunday as 0
WEEKDAY_CASE = """
    CASE CAST(strftime('%w', entry_date) AS INTEGER)
        WHEN 0 THEN 'sunday' WHEN 1 THEN 'monday' WHEN 2 THEN 'tuesday'
        WHEN 3 THEN 'wednesday' WHEN 4 THEN 'thursday' WHEN 5 THEN 'friday'
        WHEN 6 THEN 'saturday'
    END
"""


@dataclass
class Window:
    """The trailing analysis window."""

    now: datetime
    config: PatternDetectionConfig

    @property
    def since(self) -> str:
        return (self.now - timedelta(days=self.config.lookback_days)).isoformat()

    @property
    def since_date(self) -> str:
        return (self.now - timedelta(days=self.config.lookback_days)).date().isoformat()


@dataclass
class Finding:
    """One pattern to store, with the insight text it produced (if any)."""

    key: PatternKey
    data: dict[str, Any]
    confidence: float
    insight: str | None = None


@dataclass
class AnalysisResult:
    user_id: str
    insights: list[str] = field(default_factory=list)
    detected: list[str] = field(default_factory=list)
    skipped: dict[str, str] = field(default_factory=dict)
    patterns_saved: int = 0

    @property
    def degraded(self) -> bool:
        return bool(self.skipped)

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "insights": self.insights,
            "detected": self.detected,
            "skipped": self.skipped,
            "patterns_saved": self.patterns_saved,
        }


def round_half_up(value: float) -> int:
    """Round .5 up, never to even: 12.5 -> 13."""
    return math.floor(value + 0.5)


def percent(rate: float) -> int:
    return round_half_up(rate * 100)


# =============================================================================
# Task detections
# =============================================================================


def _peak_bucket(
    db: QueryExecutor, user_id: str, window: Window, bucket: str, known: tuple[str, ...]
) -> dict | None:
    # bucket is "time" or "day", chosen by the callers below
    rows = db.all(
        f"""
        SELECT json_extract(event_data, '$.{bucket}') AS bucket, COUNT(*) AS count
        FROM task_events
        WHERE user_id = ? AND event_type = 'completed' AND created_at >= ?
            AND json_extract(event_data, '$.{bucket}') IS NOT NULL
        GROUP BY bucket
        ORDER BY count DESC
        """,
        (user_id, window.since),
    )
    # Payloads written outside log_event may carry buckets nothing else understands
    rows = [row for row in rows if row["bucket"] in known]
    if not rows or rows[0]["count"] < window.config.min_peak_count:
        return None
    return rows[0]


def detect_peak_time(db: QueryExecutor, user_id: str, window: Window) -> list[Finding]:
    peak = _peak_bucket(db, user_id, window, "time", clock.TIMES_OF_DAY)
    if peak is None:
        return []
    return [
        Finding(
            key=PatternKey(PatternKind.PEAK_TIME),
            data={"time": peak["bucket"], "count": peak["count"]},
            confidence=peak["count"] / 10,
            insight=f"Most productive in the {peak['bucket']}",
        )
    ]


def detect_peak_day(db: QueryExecutor, user_id: str, window: Window) -> list[Finding]:
    peak = _peak_bucket(db, user_id, window, "day", clock.DAY_NAMES)
    if peak is None:
        return []
    return [
        Finding(
            key=PatternKey(PatternKind.PEAK_DAY),
            data={"day": peak["bucket"], "count": peak["count"]},
            confidence=peak["count"] / 10,
            insight=f"Most productive on {peak['bucket']}s",
        )
    ]


def detect_completion_rates(db: QueryExecutor, user_id: str, window: Window) -> list[Finding]:
    config = window.config
    rows = db.all(
        """
        SELECT
            COALESCE(NULLIF(focus_level, ''), 'medium') AS focus_level,
            COUNT(CASE WHEN status = 'done' THEN 1 END) AS completed,
            COUNT(*) AS total
        FROM tasks
        WHERE user_id = ? AND created_at >= ?
        GROUP BY 1
        """,
        (user_id, window.since),
    )

    findings = []
    for row in rows:
        total = row["total"]
        if total < config.min_focus_sample:
            continue

        rate = row["completed"] / total
        level = row["focus_level"]
        insight = None
        if rate < config.struggling_rate:
            insight = f"Struggling with {level}-focus tasks ({percent(rate)}% completion)"
        elif rate > config.strong_rate:
            insight = f"Great at {level}-focus tasks ({percent(rate)}% completion)"

        findings.append(
            Finding(
                key=PatternKey(PatternKind.COMPLETION_RATE, level),
                data={"rate": rate, "total": total},
                confidence=rate,
                insight=insight,
            )
        )
    return findings


def detect_avg_completion(db: QueryExecutor, user_id: str, window: Window) -> list[Finding]:
    row = db.first(
        """
        SELECT AVG(julianday(completed_at) - julianday(created_at)) AS avg_days
        FROM tasks
        WHERE user_id = ? AND status = 'done' AND completed_at IS NOT NULL AND created_at >= ?
        """,
        (user_id, window.since),
    )
    if not row or row["avg_days"] is None:
        return []

    days = math.floor(row["avg_days"] * 10 + 0.5) / 10
    return [
        Finding(
            key=PatternKey(PatternKind.AVG_COMPLETION_DAYS),
            data={"days": days},
            confidence=0.8,
            insight=f"Average task completion: {days} days",
        )
    ]


def detect_avoidance(db: QueryExecutor, user_id: str, window: Window) -> list[Finding]:
    config = window.config
    cutoff = (window.now - timedelta(days=config.avoidance_age_days)).isoformat()
    rows = db.all(
        """
        SELECT COALESCE(NULLIF(category, ''), 'uncategorized') AS category, COUNT(*) AS count
        FROM tasks
        WHERE user_id = ? AND status = 'open' AND created_at <= ?
        GROUP BY 1
        ORDER BY count DESC
        """,
        (user_id, cutoff),
    )
    if not rows or rows[0]["count"] < config.avoidance_min_count:
        return []

    top = rows[0]
    return [
        Finding(
            key=PatternKey(PatternKind.AVOIDANCE_CATEGORY),
            data={"category": top["category"], "count": top["count"]},
            confidence=0.7,
            insight=f"Tends to delay {top['category']} tasks",
        )
    ]


# =============================================================================
# Journal detections
# =============================================================================


def detect_mood_by_day(db: QueryExecutor, user_id: str, window: Window) -> list[Finding]:
    rows = db.all(
        f"""
        SELECT {WEEKDAY_CASE} AS day_name, mood, COUNT(*) AS count
        FROM journal_entries
        WHERE user_id = ? AND entry_date >= ? AND mood IS NOT NULL
        GROUP BY day_name, mood
        ORDER BY count DESC
        """,
        (user_id, window.since_date),
    )

    # Rows arrive by count descending, so the first seen per day dominates
    dominant: dict[str, dict[str, Any]] = {}
    for row in rows:
        if row["day_name"] not in dominant:
            dominant[row["day_name"]] = {"mood": row["mood"], "count": row["count"]}

    findings = []
    for day, data in dominant.items():
        if data["count"] >= window.config.min_mood_day_count and data["mood"] in NEGATIVE_MOODS:
            findings.append(
                Finding(
                    key=PatternKey(PatternKind.MOOD_DAY, day),
                    data=data,
                    confidence=data["count"] / 5,
                    insight=f"Often feel {data['mood']} on {day}s",
                )
            )
    return findings


def detect_energy_extremes(db: QueryExecutor, user_id: str, window: Window) -> list[Finding]:
    config = window.config
    rows = db.all(
        f"""
        SELECT {WEEKDAY_CASE} AS day_name, AVG(energy_level) AS avg_energy
        FROM journal_entries
        WHERE user_id = ? AND entry_date >= ? AND energy_level IS NOT NULL
        GROUP BY day_name
        """,
        (user_id, window.since_date),
    )
    if len(rows) < config.min_energy_days:
        return []

    ranked = sorted(rows, key=lambda r: r["avg_energy"], reverse=True)
    high, low = ranked[0], ranked[-1]

    findings = []
    if high["avg_energy"] >= config.high_energy:
        findings.append(
            Finding(
                key=PatternKey(PatternKind.ENERGY_HIGH_DAY),
                data={"day": high["day_name"], "avg": high["avg_energy"]},
                confidence=0.7,
                insight=f"Highest energy on {high['day_name']}s (avg {round_half_up(high['avg_energy'])}/10)",
            )
        )
    if low["avg_energy"] <= config.low_energy:
        findings.append(
            Finding(
                key=PatternKey(PatternKind.ENERGY_LOW_DAY),
                data={"day": low["day_name"], "avg": low["avg_energy"]},
                confidence=0.7,
                insight=f"Lowest energy on {low['day_name']}s (avg {round_half_up(low['avg_energy'])}/10)",
            )
        )
    return findings


def detect_mood_productivity(db: QueryExecutor, user_id: str, window: Window) -> list[Finding]:
    config = window.config
    rows = db.all(
        """
        SELECT je.mood AS mood, AVG(dl.tasks_completed) AS avg_tasks, COUNT(*) AS days
        FROM journal_entries je
        JOIN daily_logs dl ON je.entry_date = dl.log_date AND je.user_id = dl.user_id
        WHERE je.user_id = ? AND je.entry_date >= ? AND je.mood IS NOT NULL
        GROUP BY je.mood
        HAVING COUNT(*) >= ?
        """,
        (user_id, window.since_date, config.min_mood_days),
    )
    # Most and least productive only mean something with two moods to compare
    if len(rows) < 2:
        return []

    ranked = sorted(rows, key=lambda r: r["avg_tasks"], reverse=True)
    best, worst = ranked[0], ranked[-1]

    findings = []
    if best["avg_tasks"] >= config.productive_avg_tasks:
        findings.append(
            Finding(
                key=PatternKey(PatternKind.PRODUCTIVE_MOOD),
                data={"mood": best["mood"], "avg_tasks": best["avg_tasks"]},
                confidence=0.8,
                insight=(
                    f"Most productive when feeling {best['mood']} "
                    f"(avg {round_half_up(best['avg_tasks'])} tasks)"
                ),
            )
        )
    if worst["avg_tasks"] <= config.unproductive_avg_tasks and worst["mood"] != best["mood"]:
        findings.append(
            Finding(
                key=PatternKey(PatternKind.UNPRODUCTIVE_MOOD),
                data={"mood": worst["mood"], "avg_tasks": worst["avg_tasks"]},
                confidence=0.6,
                insight=f"Least productive when feeling {worst['mood']}",
            )
        )
    return findings


def detect_entity_sentiment(db: QueryExecutor, user_id: str, window: Window) -> list[Finding]:
    config = window.config
    rows = db.all(
        """
        SELECT ent.entity_value, ent.entity_type, je.mood, COUNT(*) AS mentions
        FROM journal_entities ent
        JOIN journal_entries je ON ent.entry_id = je.id
        WHERE je.user_id = ? AND je.entry_date >= ? AND je.mood IS NOT NULL
        GROUP BY ent.entity_value, ent.entity_type, je.mood
        HAVING COUNT(*) >= ?
        ORDER BY mentions DESC
        LIMIT ?
        """,
        (user_id, window.since_date, config.min_entity_pairs, config.max_entities),
    )

    findings = []
    for row in rows:
        if row["mentions"] < config.min_entity_mentions:
            continue

        value, mood = row["entity_value"], row["mood"]
        if mood in NEGATIVE_MOODS:
            kind = PatternKind.ENTITY_NEGATIVE
            insight = f'Often feel {mood} when "{value}" is mentioned'
        elif mood in POSITIVE_MOODS:
            kind = PatternKind.ENTITY_POSITIVE
            insight = f'Often feel {mood} around "{value}"'
        else:
            continue

        findings.append(
            Finding(
                key=PatternKey(kind, value),
                data=dict(row),
                confidence=row["mentions"] / 5,
                insight=insight,
            )
        )
    return findings


Detector = Callable[[QueryExecutor, str, Window], list[Finding]]

TASK_DETECTORS: tuple[tuple[str, Detector], ...] = (
    ("peak_time", detect_peak_time),
    ("peak_day", detect_peak_day),
    ("completion_rate", detect_completion_rates),
    ("avg_completion_days", detect_avg_completion),
    ("avoidance_category", detect_avoidance),
)

JOURNAL_DETECTORS: tuple[tuple[str, Detector], ...] = (
    ("mood_by_day", detect_mood_by_day),
    ("energy_extremes", detect_energy_extremes),
    ("mood_productivity", detect_mood_productivity),
    ("entity_sentiment", detect_entity_sentiment),
)


def _store(db: QueryExecutor, result: AnalysisResult, findings: list[Finding], now: datetime) -> None:
    for finding in findings:
        if finding.insight:
            result.insights.append(finding.insight)
        upsert_pattern(result.user_id, finding.key, finding.data, finding.confidence, db=db, now=now)
        result.patterns_saved += 1


def analyze_and_store_patterns(
    user_id: str,
    db: QueryExecutor | None = None,
    now: datetime | None = None,
    config: PatternDetectionConfig | None = None,
) -> AnalysisResult:
    """
    Run every detection for a user and store what was found.

    Args:
        user_id: User identifier
        db: Executor to use (defaults to the main database)
        now: End of the analysis window (defaults to the clock)
        config: Detection thresholds (defaults to args/intelligence.yaml)

    Returns:
        AnalysisResult with insights, detections run and detections skipped
    """
    config = config or load_config().pattern_detection
    window = Window(now=now or clock.now(), config=config)
    result = AnalysisResult(user_id=user_id)

    if not config.enabled:
        logger.info("pattern_detection_disabled", user_id=user_id)
        return result

    with connect(db) as conn:
        # Task-side store errors propagate
        for name, detector in TASK_DETECTORS:
            _store(conn, result, detector(conn, user_id, window), window.now)
            result.detected.append(name)

        for name, detector in JOURNAL_DETECTORS:
            try:
                findings = detector(conn, user_id, window)
                _store(conn, result, findings, window.now)
            except (sqlite3.Error, ValueError) as e:
                # Bad store state or malformed journal rows
                logger.warning("journal_detection_skipped", user_id=user_id, detection=name, error=str(e))
                result.skipped[name] = str(e)
                continue
            result.detected.append(name)

    logger.info(
        "patterns_analyzed",
        user_id=user_id,
        insights=len(result.insights),
        patterns_saved=result.patterns_saved,
        skipped=sorted(result.skipped),
    )
    return result


__all__ = [
    "JOURNAL_DETECTORS",
    "TASK_DETECTORS",
    "AnalysisResult",
    "Finding",
    "Window",
    "analyze_and_store_patterns",
    "detect_avg_completion",
    "detect_avoidance",
    "detect_completion_rates",
    "detect_energy_extremes",
    "detect_entity_sentiment",
    "detect_mood_by_day",
    "detect_mood_productivity",
    "detect_peak_day",
    "detect_peak_time",
    "percent",
    "round_half_up",
]
