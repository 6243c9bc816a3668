"""Journal - mood, energy and who/what mattered today

Components:
    entries.py: Add, list, view, search, update, delete and link entries
    entities.py: Pull people, projects, topics and places out of free text
    streak.py: Consecutive-day streak and weekly goal days
    insights.py: Mood breakdown, energy by weekday, top mentions

Entries feed the journal half of the pattern analyzer.
"""

MOOD_OPTIONS = (
    "anxious",
    "calm",
    "excited",
    "frustrated",
    "grateful",
    "hopeful",
    "sad",
    "angry",
    "content",
    "overwhelmed",
    "focused",
    "scattered",
)

ENTRY_TYPES = ("freeform", "morning", "evening", "reflection", "braindump")

ENTITY_TYPES = ("person", "project", "topic", "place")

SENTIMENTS = ("positive", "negative", "neutral")

LINK_TYPES = ("task", "launch", "project")

ENERGY_RANGE = (1, 10)

__all__ = [
    "ENERGY_RANGE",
    "ENTITY_TYPES",
    "ENTRY_TYPES",
    "LINK_TYPES",
    "MOOD_OPTIONS",
    "SENTIMENTS",
]
