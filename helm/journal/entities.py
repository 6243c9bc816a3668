"""Entity extraction from journal entries.

Pulls people, projects, topics and places out of free text with phrase
heuristics, and tags each with the sentiment of the words around it.
Also cleans raw entries up into a readable "refined" version.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass
from datetime import datetime

from helm.journal import ENTITY_TYPES, SENTIMENTS


@dataclass
class Entity:
    type: str
    value: str
    sentiment: str = "neutral"

    def __post_init__(self) -> None:
        if self.type not in ENTITY_TYPES:
            raise ValueError(f"Unknown entity type: {self.type!r}")
        if self.sentiment not in SENTIMENTS:
            raise ValueError(f"Unknown sentiment: {self.sentiment!r}")

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


PERSON_PATTERNS = [
    re.compile(
        r"(?:talked to|spoke with|met with|called|emailed|texted|saw|visited|helped|asked|told)"
        r"\s+([A-Z][a-z]+(?:\s+[A-Z][a-z]+)?)"
    ),
    re.compile(
        r"(?i:with|from|by)\s+([A-Z][a-z]+(?:\s+[A-Z][a-z]+)?)"
        r"\s+(?i:today|yesterday|this|last|about|regarding)"
    ),
    re.compile(r"([A-Z][a-z]+)\s+(?:said|told|asked|helped|called|texted|mentioned|suggested)"),
]

PROJECT_PATTERNS = [
    re.compile(
        r"(?:working on|progress on|finished|completed|started|launched)"
        r"\s+(?:the\s+)?([A-Z][a-zA-Z]+(?:\s+[A-Z][a-zA-Z]+)*)"
    ),
    re.compile(r"(?:project|launch|book|app|website|platform|system):\s*([A-Za-z][a-zA-Z ]+)", re.IGNORECASE),
]

PLACE_PATTERN = re.compile(r"(?:at|in|to|from|visited|went to)\s+(?:the\s+)?([A-Z][a-z]+(?:'s)?(?:\s+[A-Z][a-z]+)*)")

PLACE_WORDS = re.compile(r"coffee|cafe|restaurant|gym|office|center|mall|park|church|hospital", re.IGNORECASE)

KNOWN_PLACE_TYPES = (
    "cafe", "restaurant", "office", "home", "gym", "church",
    "store", "park", "library", "hospital", "school",
)

TOPIC_KEYWORDS = {
    "work": ["work", "job", "office", "meeting", "deadline", "project", "client", "boss", "coworker", "career"],
    "health": ["health", "exercise", "workout", "gym", "sleep", "tired", "sick", "doctor", "medicine", "headache", "energy"],
    "family": ["family", "mom", "dad", "parents", "brother", "sister", "kids", "children", "spouse", "wife", "husband"],
    "money": ["money", "budget", "savings", "debt", "bills", "income", "expenses", "financial", "invest", "salary"],
    "relationships": ["friend", "friendship", "dating", "relationship", "partner", "social", "hangout", "conversation"],
    "creativity": ["writing", "creative", "art", "music", "design", "idea", "inspiration", "create", "build"],
    "learning": ["learning", "studying", "reading", "course", "book", "skill", "practice", "improve"],
    "spiritual": ["prayer", "meditation", "church", "faith", "god", "spiritual", "grateful", "blessing"],
}

POSITIVE_WORDS = (
    "happy", "great", "amazing", "wonderful", "love", "excited", "grateful", "thankful",
    "awesome", "good", "excellent", "fantastic", "helpful", "supportive", "kind", "fun", "enjoyed",
)

NEGATIVE_WORDS = (
    "frustrated", "angry", "sad", "annoyed", "upset", "stressed", "worried", "anxious",
    "disappointed", "bad", "terrible", "awful", "difficult", "hard", "struggle", "problem",
    "issue", "conflict",
)

COMMON_WORDS = frozenset("""
    the a an this that these those my your his her its our their
    i you he she it we they me him us them
    what which who whom whose where when why how
    all each every both few more most other some such no not only same so than too very
    just also now here there then once today yesterday tomorrow
    monday tuesday wednesday thursday friday saturday sunday
    morning afternoon evening night week month year
    really actually basically definitely probably maybe perhaps
    think feel know want need like love hate hope wish
    good bad great nice new old big small long short
    first last next many much little lot lots
    time day thing things way life work world people person
    but and or if because as until while although since unless
    about after before between during for from in into of on over through to under up with
""".split())

# Characters either side of a mention that count toward its sentiment
SENTIMENT_WINDOW = 50


def is_common_word(word: str) -> bool:
    return word.lower() in COMMON_WORDS


def detect_sentiment(content: str, term: str) -> str:
    """Compare positive and negative words near the first mention of ``term``."""
    lower = content.lower()
    index = lower.find(term.lower())
    if index == -1:
        return "neutral"

    start = max(0, index - SENTIMENT_WINDOW)
    end = min(len(content), index + len(term) + SENTIMENT_WINDOW)
    context = lower[start:end]

    positive = sum(1 for word in POSITIVE_WORDS if word in context)
    negative = sum(1 for word in NEGATIVE_WORDS if word in context)

    if positive > negative:
        return "positive"
    if negative > positive:
        return "negative"
    return "neutral"


def extract_entities(content: str) -> list[Entity]:
    """Extract unique people, projects, topics and places from journal text."""
    entities: list[Entity] = []
    seen: set[str] = set()

    def add(entity_type: str, value: str) -> None:
        key = f"{entity_type}:{value.lower()}"
        if key in seen or len(value) <= 1:
            return
        seen.add(key)
        entities.append(Entity(entity_type, value, detect_sentiment(content, value)))

    for pattern in PERSON_PATTERNS:
        for match in pattern.finditer(content):
            name = match.group(1).strip()
            if not is_common_word(name):
                add("person", name)

    for pattern in PROJECT_PATTERNS:
        for match in pattern.finditer(content):
            project = match.group(1).strip()
            if not is_common_word(project) and len(project) > 2:
                add("project", project)

    lower = content.lower()
    for topic, keywords in TOPIC_KEYWORDS.items():
        if any(keyword in lower for keyword in keywords):
            add("topic", topic)

    for match in PLACE_PATTERN.finditer(content):
        place = match.group(1).strip()
        if any(kind in place.lower() for kind in KNOWN_PLACE_TYPES) or PLACE_WORDS.search(place):
            add("place", place)

    return entities


ENTRY_HEADERS = {
    "morning": "Morning Entry - {date}",
    "evening": "Evening Entry - {date}",
    "reflection": "Reflection - {date}",
    "braindump": "Brain Dump - {date}, {time}",
}


def refine_content(raw_content: str, entry_type: str, now: datetime | None = None) -> str:
    """Tidy capitalization and punctuation, and prefix a dated header."""
    refined = re.sub(r"\bi\b", "I", raw_content)
    refined = re.sub(r"(\.\s+)([a-z])", lambda m: m.group(1) + m.group(2).upper(), refined)

    sentences = []
    for sentence in re.split(r"(?<=[.!?])\s+", refined):
        sentence = sentence.strip()
        if sentence and sentence[-1] not in ".!?":
            sentence += "."
        sentences.append(sentence)
    refined = re.sub(r"\s+", " ", " ".join(sentences)).strip()

    now = now or datetime.now()
    header = ENTRY_HEADERS.get(entry_type, "{date}").format(
        date=now.strftime("%A, %B %d, %Y"),
        time=now.strftime("%I:%M %p").lstrip("0"),
    )
    return f"{header}\n\n{refined}"


__all__ = [
    "Entity",
    "detect_sentiment",
    "extract_entities",
    "is_common_word",
    "refine_content",
]
