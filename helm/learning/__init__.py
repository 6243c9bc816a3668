"""Learning Tools - Pattern recognition and nudges

Philosophy:
    Learn from behavior, not configuration forms.
    Every task change and journal entry is a data point.
    Patterns emerge from observation and come back as short nudges.

Components:
    events.py: Append-only task event log and daily counters
        - Day and time-of-day are frozen into each event at write time
        - Daily logs hold one row per user per day

    patterns.py: Pattern store keyed by (user, pattern kind)
        - Task-behavior patterns in user_patterns
        - Journal-behavior patterns in journal_patterns
        - Atomic upsert, so re-analysis never duplicates rows

    pattern_analyzer.py: Trailing-window analysis
        - Peak time of day and day of week
        - Completion rate by focus level, average completion latency
        - Avoidance by category
        - Mood, energy, productivity and entity correlations from the journal

    nudges.py: Turn stored patterns plus live tasks into prompts
        - Pure function over (patterns, open tasks, now)
        - Enhanced variant adds journal nudges

Safety Rules:
    1. Thresholds gate every detection - no insight from two data points
    2. Journal infrastructure missing is a skip, not a failure
    3. Confidence is a ranking strength, not a probability

Configuration: args/intelligence.yaml
"""

# Moods treated as negative/positive when correlating journal data
NEGATIVE_MOODS = ("anxious", "frustrated", "sad", "angry", "overwhelmed", "scattered")
POSITIVE_MOODS = ("calm", "excited", "grateful", "hopeful", "content", "focused")

EVENT_TYPES = (
    "created",
    "completed",
    "updated",
    "deleted",
    "snoozed",
    "progress",
    "broken_down",
    "catchup",
)

DAILY_LOG_FIELDS = ("tasks_completed", "tasks_created")

__all__ = [
    "DAILY_LOG_FIELDS",
    "EVENT_TYPES",
    "NEGATIVE_MOODS",
    "POSITIVE_MOODS",
]
