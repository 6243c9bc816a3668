"""
Tool: Journal Entries
Purpose: Store journal entries with mood, energy and extracted entities

Every entry is dated by calendar day (``entry_date``), separately from its
creation timestamp. Entities are re-extracted whenever the content changes.

Usage:
    from helm.journal.entries import add_entry, search_entries

    add_entry("alice", "Talked to Sarah about the launch, feeling hopeful", mood="hopeful", energy=7)
    search_entries("alice", "Sarah")

Dependencies:
    - sqlite3 (stdlib)

Output:
    dict with success status and data
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any

from helm import clock
from helm.journal import ENERGY_RANGE, ENTRY_TYPES, LINK_TYPES, MOOD_OPTIONS
from helm.journal.entities import extract_entities, refine_content
from helm.journal.streak import get_journal_streak
from helm.logging_config import get_logger
from helm.store import QueryExecutor, connect, generate_id


logger = get_logger(__name__)


def _validate(mood: str | None, energy: int | None, entry_type: str | None = None) -> str | None:
    if mood is not None and mood not in MOOD_OPTIONS:
        return f"Invalid mood. Must be one of: {MOOD_OPTIONS}"
    if energy is not None and not ENERGY_RANGE[0] <= energy <= ENERGY_RANGE[1]:
        return f"Invalid energy level. Must be between {ENERGY_RANGE[0]} and {ENERGY_RANGE[1]}"
    if entry_type is not None and entry_type not in ENTRY_TYPES:
        return f"Invalid entry type. Must be one of: {ENTRY_TYPES}"
    return None


def _save_entities(conn: QueryExecutor, entry_id: str, content: str, ts: str) -> list[dict[str, str]]:
    entities = extract_entities(content)
    for entity in entities:
        conn.run(
            """
            INSERT INTO journal_entities (id, entry_id, entity_type, entity_value, sentiment, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (generate_id(), entry_id, entity.type, entity.value, entity.sentiment, ts),
        )
    return [entity.to_dict() for entity in entities]


def add_entry(
    user_id: str,
    content: str,
    entry_type: str = "freeform",
    mood: str | None = None,
    energy: int | None = None,
    entry_date: date | None = None,
    db: QueryExecutor | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    Save a journal entry and its extracted entities.

    Args:
        user_id: Author
        content: Raw entry text
        entry_type: freeform, morning, evening, reflection or braindump
        mood: One of MOOD_OPTIONS
        energy: 1-10
        entry_date: Calendar day the entry is about (defaults to today)
        db: Executor to use
        now: Creation time (defaults to the clock)

    Returns:
        dict with the entry, its entities and the current streak
    """
    if not content or not content.strip():
        return {"success": False, "error": "content is required"}

    error = _validate(mood, energy, entry_type)
    if error:
        return {"success": False, "error": error}

    now = now or clock.now()
    ts = now.isoformat()
    entry_id = generate_id()
    day = (entry_date or now.date()).isoformat()

    with connect(db) as conn:
        conn.run(
            """
            INSERT INTO journal_entries
                (id, user_id, entry_date, entry_type, raw_content, refined_content, mood, energy_level, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (entry_id, user_id, day, entry_type, content, refine_content(content, entry_type, now), mood, energy, ts, ts),
        )
        entities = _save_entities(conn, entry_id, content, ts)
        entry = conn.first("SELECT * FROM journal_entries WHERE id = ?", (entry_id,))
        streak = get_journal_streak(user_id, db=conn, today=now.date())

    logger.info("journal_entry_added", user_id=user_id, entry_id=entry_id, entities=len(entities))

    return {
        "success": True,
        "data": {"entry": entry, "entities": entities, "streak": streak.to_dict()},
        "message": f"Journal entry saved for {day}",
    }


def list_entries(
    user_id: str,
    days: int = 7,
    mood: str | None = None,
    entry_type: str | None = None,
    db: QueryExecutor | None = None,
    today: date | None = None,
) -> dict[str, Any]:
    """List entries from the last ``days`` days, newest first."""
    since = ((today or clock.today()) - timedelta(days=days)).isoformat()

    conditions = ["user_id = ?", "entry_date >= ?"]
    params: list[Any] = [user_id, since]

    if mood:
        conditions.append("mood = ?")
        params.append(mood)

    if entry_type:
        conditions.append("entry_type = ?")
        params.append(entry_type)

    with connect(db) as conn:
        entries = conn.all(
            f"SELECT * FROM journal_entries WHERE {' AND '.join(conditions)} ORDER BY entry_date DESC, created_at DESC",
            params,
        )

    if not entries:
        return {
            "success": True,
            "data": {"entries": [], "total": 0},
            "message": f"No journal entries in the last {days} days",
        }

    return {"success": True, "data": {"entries": entries, "total": len(entries)}}


def get_entry(user_id: str, entry_id: str, db: QueryExecutor | None = None) -> dict[str, Any]:
    """Get one entry with its entities and links."""
    with connect(db) as conn:
        entry = conn.first(
            "SELECT * FROM journal_entries WHERE id = ? AND user_id = ?",
            (entry_id, user_id),
        )
        if not entry:
            return {"success": False, "error": f"Entry not found: {entry_id}"}

        entry["entities"] = conn.all("SELECT * FROM journal_entities WHERE entry_id = ?", (entry_id,))
        entry["links"] = conn.all("SELECT * FROM journal_entry_links WHERE entry_id = ?", (entry_id,))

    return {"success": True, "data": entry}


def search_entries(
    user_id: str,
    query: str,
    days: int = 30,
    limit: int = 10,
    db: QueryExecutor | None = None,
    today: date | None = None,
) -> dict[str, Any]:
    """Search by keyword in content, exact mood, or mentioned entity."""
    since = ((today or clock.today()) - timedelta(days=days)).isoformat()
    like = f"%{query}%"

    with connect(db) as conn:
        content_matches = conn.all(
            """
            SELECT * FROM journal_entries
            WHERE user_id = ? AND entry_date >= ? AND (raw_content LIKE ? OR mood = ?)
            ORDER BY created_at DESC
            """,
            (user_id, since, like, query.lower()),
        )
        entity_matches = conn.all(
            """
            SELECT DISTINCT je.* FROM journal_entries je
            JOIN journal_entities ent ON je.id = ent.entry_id
            WHERE je.user_id = ? AND je.entry_date >= ? AND ent.entity_value LIKE ?
            ORDER BY je.created_at DESC
            """,
            (user_id, since, like),
        )

    seen: set[str] = set()
    results = []
    for entry in content_matches + entity_matches:
        if entry["id"] not in seen:
            seen.add(entry["id"])
            results.append(entry)

    if not results:
        return {
            "success": True,
            "data": {"entries": [], "total": 0},
            "message": f'No entries found matching "{query}"',
        }

    return {"success": True, "data": {"entries": results[:limit], "total": len(results)}}


def update_entry(
    user_id: str,
    entry_id: str,
    content: str | None = None,
    mood: str | None = None,
    energy: int | None = None,
    db: QueryExecutor | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Update mood, energy or content; entities are re-extracted when content changes."""
    error = _validate(mood, energy)
    if error:
        return {"success": False, "error": error}

    now = now or clock.now()
    ts = now.isoformat()

    with connect(db) as conn:
        entry = conn.first(
            "SELECT * FROM journal_entries WHERE id = ? AND user_id = ?",
            (entry_id, user_id),
        )
        if not entry:
            return {"success": False, "error": f"Entry not found: {entry_id}"}

        updates = ["updated_at = ?"]
        params: list[Any] = [ts]

        if mood is not None:
            updates.append("mood = ?")
            params.append(mood)

        if energy is not None:
            updates.append("energy_level = ?")
            params.append(energy)

        if content:
            updates.append("raw_content = ?")
            params.append(content)
            updates.append("refined_content = ?")
            params.append(refine_content(content, entry["entry_type"], now))

        params.append(entry_id)
        conn.run(f"UPDATE journal_entries SET {', '.join(updates)} WHERE id = ?", params)

        if content:
            conn.run("DELETE FROM journal_entities WHERE entry_id = ?", (entry_id,))
            _save_entities(conn, entry_id, content, ts)

        updated = conn.first("SELECT * FROM journal_entries WHERE id = ?", (entry_id,))

    return {"success": True, "data": updated, "message": f"Updated entry from {entry['entry_date']}"}


def delete_entry(user_id: str, entry_id: str, db: QueryExecutor | None = None) -> dict[str, Any]:
    """Delete an entry with its entities and links."""
    with connect(db) as conn:
        entry = conn.first(
            "SELECT * FROM journal_entries WHERE id = ? AND user_id = ?",
            (entry_id, user_id),
        )
        if not entry:
            return {"success": False, "error": f"Entry not found: {entry_id}"}

        conn.run("DELETE FROM journal_entities WHERE entry_id = ?", (entry_id,))
        conn.run("DELETE FROM journal_entry_links WHERE entry_id = ?", (entry_id,))
        conn.run("DELETE FROM journal_entries WHERE id = ?", (entry_id,))

    return {"success": True, "message": f"Deleted entry from {entry['entry_date']}"}


def link_entry(
    user_id: str,
    entry_id: str,
    link_type: str,
    link_id: str,
    db: QueryExecutor | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Link an entry to a task, launch or project."""
    if link_type not in LINK_TYPES:
        return {"success": False, "error": f"Invalid link type. Must be one of: {LINK_TYPES}"}

    with connect(db) as conn:
        entry = conn.first(
            "SELECT id FROM journal_entries WHERE id = ? AND user_id = ?",
            (entry_id, user_id),
        )
        if not entry:
            return {"success": False, "error": f"Entry not found: {entry_id}"}

        link_row_id = generate_id()
        conn.run(
            """
            INSERT INTO journal_entry_links (id, entry_id, link_type, link_id, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (link_row_id, entry_id, link_type, link_id, (now or clock.now()).isoformat()),
        )

    return {
        "success": True,
        "data": {"id": link_row_id, "entry_id": entry_id, "link_type": link_type, "link_id": link_id},
        "message": f"Linked to {link_type}: {link_id}",
    }


__all__ = [
    "add_entry",
    "delete_entry",
    "get_entry",
    "link_entry",
    "list_entries",
    "search_entries",
    "update_entry",
]
