"""
Tool: Pattern Store
Purpose: Latest derived value and confidence per (user, pattern kind)

A pattern is identified by a kind plus, for some kinds, a qualifier: the
focus level for completion rates, the weekday for mood-by-day, the entity
value for entity sentiment. Lookups compare keys structurally; the flat
``pattern_type`` string (e.g. ``completion_rate_high``) exists only at the
storage boundary.

Task-behavior kinds live in ``user_patterns``; journal-behavior kinds live
in ``journal_patterns``. Both tables share the same upsert contract: one row
per (user, pattern_type), overwritten in place on every recomputation.

Confidence is a ranking strength. Some formulas (count / 10) exceed 1.0 with
enough data and are stored as-is.
"""

from __future__ import annotations

import json
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from helm import clock
from helm.logging_config import get_logger
from helm.store import QueryExecutor, connect, generate_id


logger = get_logger(__name__)


class PatternKind(str, Enum):
    # Task behavior
    PEAK_TIME = "peak_time"
    PEAK_DAY = "peak_day"
    COMPLETION_RATE = "completion_rate"
    AVG_COMPLETION_DAYS = "avg_completion_days"
    AVOIDANCE_CATEGORY = "avoidance_category"
    # Journal behavior
    MOOD_DAY = "mood_day"
    ENERGY_HIGH_DAY = "energy_high_day"
    ENERGY_LOW_DAY = "energy_low_day"
    PRODUCTIVE_MOOD = "productive_mood"
    UNPRODUCTIVE_MOOD = "unproductive_mood"
    ENTITY_POSITIVE = "entity_positive"
    ENTITY_NEGATIVE = "entity_negative"

    @property
    def qualified(self) -> bool:
        return self in QUALIFIED_KINDS

    @property
    def is_journal(self) -> bool:
        return self in JOURNAL_KINDS

    @property
    def table(self) -> str:
        return "journal_patterns" if self.is_journal else "user_patterns"


QUALIFIED_KINDS = frozenset(
    {
        PatternKind.COMPLETION_RATE,
        PatternKind.MOOD_DAY,
        PatternKind.ENTITY_POSITIVE,
        PatternKind.ENTITY_NEGATIVE,
    }
)

JOURNAL_KINDS = frozenset(
    {
        PatternKind.MOOD_DAY,
        PatternKind.ENERGY_HIGH_DAY,
        PatternKind.ENERGY_LOW_DAY,
        PatternKind.PRODUCTIVE_MOOD,
        PatternKind.UNPRODUCTIVE_MOOD,
        PatternKind.ENTITY_POSITIVE,
        PatternKind.ENTITY_NEGATIVE,
    }
)


@dataclass(frozen=True)
class PatternKey:
    """Structural pattern identifier: a kind and, for qualified kinds, its qualifier."""

    kind: PatternKind
    qualifier: str | None = None

    def __post_init__(self):
        if self.kind.qualified and not self.qualifier:
            raise ValueError(f"{self.kind.value} patterns need a qualifier")
        if not self.kind.qualified and self.qualifier is not None:
            raise ValueError(f"{self.kind.value} patterns take no qualifier")

    @property
    def pattern_type(self) -> str:
        if self.qualifier is None:
            return self.kind.value
        return f"{self.kind.value}_{self.qualifier}"

    @classmethod
    def parse(cls, pattern_type: str) -> PatternKey:
        """Decode a stored ``pattern_type`` string."""
        for kind in PatternKind:
            if not kind.qualified and pattern_type == kind.value:
                return cls(kind)
        for kind in QUALIFIED_KINDS:
            prefix = f"{kind.value}_"
            if pattern_type.startswith(prefix) and len(pattern_type) > len(prefix):
                return cls(kind, pattern_type[len(prefix):])
        raise ValueError(f"Unknown pattern type: {pattern_type!r}")

    def __str__(self) -> str:
        return self.pattern_type


@dataclass
class Pattern:
    key: PatternKey
    data: dict[str, Any] = field(default_factory=dict)
    confidence: float = 0.5
    updated_at: str | None = None

    @property
    def kind(self) -> PatternKind:
        return self.key.kind

    @property
    def pattern_type(self) -> str:
        return self.key.pattern_type

    def to_dict(self) -> dict[str, Any]:
        return {
            "pattern_type": self.pattern_type,
            "pattern_data": self.data,
            "confidence": self.confidence,
            "updated_at": self.updated_at,
        }


def upsert_pattern(
    user_id: str,
    key: PatternKey,
    data: dict[str, Any],
    confidence: float,
    db: QueryExecutor | None = None,
    now: datetime | None = None,
) -> None:
    """Insert or overwrite the pattern for (user, key) in a single statement."""
    ts = (now or clock.now()).isoformat()

    # table comes from the enum, never from input
    with connect(db) as conn:
        conn.run(
            f"""
            INSERT INTO {key.kind.table}
                (id, user_id, pattern_type, pattern_data, confidence, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(user_id, pattern_type) DO UPDATE SET
                pattern_data = excluded.pattern_data,
                confidence = excluded.confidence,
                updated_at = excluded.updated_at
            """,
            (generate_id(), user_id, key.pattern_type, json.dumps(data), confidence, ts, ts),
        )


def _row_to_pattern(row: dict[str, Any]) -> Pattern | None:
    try:
        key = PatternKey.parse(row["pattern_type"])
        data = json.loads(row["pattern_data"])
    except (ValueError, TypeError) as e:
        # json.JSONDecodeError is a ValueError
        logger.warning("pattern_row_skipped", pattern_type=row.get("pattern_type"), error=str(e))
        return None

    return Pattern(
        key=key,
        data=data if isinstance(data, dict) else {"value": data},
        confidence=row.get("confidence") or 0.0,
        updated_at=row.get("updated_at"),
    )


def _read_patterns(table: str, user_id: str, db: QueryExecutor | None) -> list[Pattern]:
    try:
        with connect(db) as conn:
            rows = conn.all(
                f"SELECT * FROM {table} WHERE user_id = ? ORDER BY confidence DESC",
                (user_id,),
            )
    except sqlite3.Error as e:
        logger.warning("pattern_read_failed", table=table, user_id=user_id, error=str(e))
        return []

    patterns = []
    for row in rows:
        pattern = _row_to_pattern(row)
        if pattern is not None:
            patterns.append(pattern)
    return patterns


def get_patterns(user_id: str, db: QueryExecutor | None = None) -> list[Pattern]:
    """Task-behavior patterns, strongest first. Never raises on store errors."""
    return _read_patterns("user_patterns", user_id, db)


def get_journal_patterns(user_id: str, db: QueryExecutor | None = None) -> list[Pattern]:
    """Journal-behavior patterns, strongest first. Never raises on store errors."""
    return _read_patterns("journal_patterns", user_id, db)


def find_pattern(patterns: list[Pattern], key: PatternKey) -> Pattern | None:
    for pattern in patterns:
        if pattern.key == key:
            return pattern
    return None


__all__ = [
    "JOURNAL_KINDS",
    "QUALIFIED_KINDS",
    "Pattern",
    "PatternKey",
    "PatternKind",
    "find_pattern",
    "get_journal_patterns",
    "get_patterns",
    "upsert_pattern",
]
