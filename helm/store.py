"""
Tool: Store
Purpose: SQLite connection, schema, and the query executor every module uses

All tools share one database. Tables are created on first connection in
``get_connection()``, so there is no separate migration step.
The journal tables are kept in a separate schema block so a database can
exist without them (older installs); the pattern analyzer degrades
gracefully in that case.

Usage:
    from helm.store import connect

    with connect() as db:
        row = db.first("SELECT * FROM tasks WHERE id = ?", (task_id,))

Dependencies:
    - sqlite3 (stdlib)
"""

from __future__ import annotations

import sqlite3
import uuid
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import helm


TASK_SCHEMA = """
CREATE TABLE IF NOT EXISTS tasks (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    text TEXT NOT NULL,
    status TEXT DEFAULT 'open' CHECK(status IN ('open', 'done')),
    priority INTEGER DEFAULT 3,
    category TEXT,
    focus_level TEXT DEFAULT 'medium',
    due_date TEXT,
    snoozed_until TEXT,
    parent_task_id TEXT,
    recurrence TEXT,
    needs_breakdown INTEGER DEFAULT 0,
    is_vague INTEGER DEFAULT 0,
    created_at TEXT NOT NULL,
    completed_at TEXT
);

CREATE TABLE IF NOT EXISTS task_events (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    task_id TEXT,
    event_type TEXT NOT NULL,
    event_data TEXT,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS daily_logs (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    log_date TEXT NOT NULL,
    tasks_completed INTEGER DEFAULT 0,
    tasks_created INTEGER DEFAULT 0,
    UNIQUE(user_id, log_date)
);

CREATE TABLE IF NOT EXISTS progress_logs (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    task_id TEXT,
    description TEXT NOT NULL,
    minutes_spent INTEGER,
    logged_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS user_patterns (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    pattern_type TEXT NOT NULL,
    pattern_data TEXT NOT NULL,
    confidence REAL DEFAULT 0.5,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    UNIQUE(user_id, pattern_type)
);

CREATE INDEX IF NOT EXISTS idx_tasks_user_status ON tasks(user_id, status);
CREATE INDEX IF NOT EXISTS idx_tasks_created ON tasks(created_at);
CREATE INDEX IF NOT EXISTS idx_task_events_user ON task_events(user_id, event_type, created_at);
CREATE INDEX IF NOT EXISTS idx_progress_logs_user ON progress_logs(user_id, logged_at);
"""

JOURNAL_SCHEMA = """
CREATE TABLE IF NOT EXISTS journal_entries (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    entry_date TEXT NOT NULL,
    entry_type TEXT NOT NULL DEFAULT 'freeform',
    raw_content TEXT NOT NULL,
    refined_content TEXT,
    mood TEXT,
    energy_level INTEGER CHECK(energy_level BETWEEN 1 AND 10 OR energy_level IS NULL),
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS journal_entities (
    id TEXT PRIMARY KEY,
    entry_id TEXT NOT NULL,
    entity_type TEXT NOT NULL,
    entity_value TEXT NOT NULL,
    sentiment TEXT DEFAULT 'neutral',
    created_at TEXT NOT NULL,
    FOREIGN KEY(entry_id) REFERENCES journal_entries(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS journal_entry_links (
    id TEXT PRIMARY KEY,
    entry_id TEXT NOT NULL,
    link_type TEXT NOT NULL,
    link_id TEXT NOT NULL,
    created_at TEXT NOT NULL,
    FOREIGN KEY(entry_id) REFERENCES journal_entries(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS journal_patterns (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    pattern_type TEXT NOT NULL,
    pattern_data TEXT NOT NULL,
    confidence REAL DEFAULT 0.5,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    UNIQUE(user_id, pattern_type)
);

CREATE INDEX IF NOT EXISTS idx_journal_entries_user_date ON journal_entries(user_id, entry_date);
CREATE INDEX IF NOT EXISTS idx_journal_entities_entry ON journal_entities(entry_id);
CREATE INDEX IF NOT EXISTS idx_journal_entities_value ON journal_entities(entity_value);
"""


def generate_id() -> str:
    """Generate a globally unique row ID."""
    return uuid.uuid4().hex


def row_to_dict(row: sqlite3.Row | None) -> dict[str, Any] | None:
    """Convert sqlite3.Row to dictionary."""
    if row is None:
        return None
    return dict(row)


class QueryExecutor:
    """Thin wrapper over a sqlite3 connection with run/first/all helpers.

    Every statement is committed immediately; there is no multi-statement
    transaction in any caller.
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def run(self, sql: str, params: Sequence[Any] = ()) -> int:
        """Execute a write statement and return the number of changed rows."""
        cursor = self.conn.execute(sql, tuple(params))
        self.conn.commit()
        return cursor.rowcount

    def first(self, sql: str, params: Sequence[Any] = ()) -> dict[str, Any] | None:
        cursor = self.conn.execute(sql, tuple(params))
        return row_to_dict(cursor.fetchone())

    def all(self, sql: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
        cursor = self.conn.execute(sql, tuple(params))
        return [dict(row) for row in cursor.fetchall()]

    def close(self) -> None:
        self.conn.close()


def init_schema(conn: sqlite3.Connection, include_journal: bool = True) -> None:
    """Create tables if they do not exist."""
    conn.executescript(TASK_SCHEMA)
    if include_journal:
        conn.executescript(JOURNAL_SCHEMA)
    conn.commit()


def get_connection(db_path: Path | None = None, include_journal: bool = True) -> sqlite3.Connection:
    """Get database connection, creating tables if needed."""
    db_path = Path(db_path or helm.DB_PATH)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    init_schema(conn, include_journal=include_journal)
    return conn


def open_executor(db_path: Path | None = None, include_journal: bool = True) -> QueryExecutor:
    return QueryExecutor(get_connection(db_path, include_journal=include_journal))


@contextmanager
def connect(db: QueryExecutor | None = None) -> Iterator[QueryExecutor]:
    """Yield ``db`` unchanged, or open (and afterwards close) the default database."""
    if db is not None:
        yield db
        return

    executor = open_executor()
    try:
        yield executor
    finally:
        executor.close()


__all__ = [
    "JOURNAL_SCHEMA",
    "TASK_SCHEMA",
    "QueryExecutor",
    "connect",
    "generate_id",
    "get_connection",
    "init_schema",
    "open_executor",
    "row_to_dict",
]
