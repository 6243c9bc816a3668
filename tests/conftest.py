"""Shared test fixtures for Helm tests.

This module provides common fixtures used across all test modules:
- Database isolation with temporary files
- A query executor bound to the temporary database
- A fixed clock and standard test user
- Row builders for tasks and journal entries

Usage:
    def test_something(db, mock_user_id, fixed_now):
        # db is closed and the file removed after the test
        ...
"""

import os
import tempfile
from collections.abc import Callable, Generator
from datetime import datetime
from pathlib import Path
from unittest.mock import patch

import pytest

from helm.store import QueryExecutor, generate_id, open_executor


# ─────────────────────────────────────────────────────────────────────────────
# Path Constants
# ─────────────────────────────────────────────────────────────────────────────

PROJECT_ROOT = Path(__file__).parent.parent
HELM_DIR = PROJECT_ROOT / "helm"


# ─────────────────────────────────────────────────────────────────────────────
# Database Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def temp_db() -> Generator[Path, None, None]:
    """Create a temporary database file for testing.

    The database file is automatically deleted after the test completes.

    Yields:
        Path to the temporary database file
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    yield db_path

    # Cleanup
    if db_path.exists():
        os.unlink(db_path)


@pytest.fixture
def db(temp_db: Path) -> Generator[QueryExecutor, None, None]:
    """Query executor over the temporary database, with every table created."""
    executor = open_executor(temp_db)
    yield executor
    executor.close()


@pytest.fixture
def task_only_db(temp_db: Path) -> Generator[QueryExecutor, None, None]:
    """Query executor over a database that has no journal tables."""
    executor = open_executor(temp_db, include_journal=False)
    yield executor
    executor.close()


@pytest.fixture
def default_db(temp_db: Path) -> Generator[Path, None, None]:
    """Point the default database path at the temporary file.

    For code paths that open their own connection (CLI, db=None calls).
    """
    with patch("helm.DB_PATH", temp_db):
        yield temp_db


# ─────────────────────────────────────────────────────────────────────────────
# User / Clock Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def mock_user_id() -> str:
    """Standard test user ID."""
    return "test_user_123"


@pytest.fixture
def fixed_now() -> datetime:
    """Friday 2026-10-16, 09:30 (morning)."""
    return datetime(2026, 10, 16, 9, 30)


# ─────────────────────────────────────────────────────────────────────────────
# Row Builders
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def insert_task(db: QueryExecutor, mock_user_id: str) -> Callable[..., str]:
    """Insert a task row directly, bypassing the event log.

    Returns:
        Callable taking task column overrides and returning the task ID
    """

    def _insert(
        created_at: datetime,
        status: str = "open",
        focus_level: str | None = "medium",
        category: str | None = None,
        completed_at: datetime | None = None,
        due_date: str | None = None,
        user_id: str | None = None,
        text: str = "sample task",
    ) -> str:
        task_id = generate_id()
        db.run(
            """
            INSERT INTO tasks (id, user_id, text, status, focus_level, category, due_date, created_at, completed_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                task_id,
                user_id or mock_user_id,
                text,
                status,
                focus_level,
                category,
                due_date,
                created_at.isoformat(),
                completed_at.isoformat() if completed_at else None,
            ),
        )
        return task_id

    return _insert


@pytest.fixture
def insert_entry(db: QueryExecutor, mock_user_id: str) -> Callable[..., str]:
    """Insert a journal entry row directly, without entity extraction.

    Returns:
        Callable taking the entry date plus optional mood/energy, returning the entry ID
    """

    def _insert(
        entry_date: str,
        mood: str | None = None,
        energy: int | None = None,
        content: str = "journal entry",
        user_id: str | None = None,
    ) -> str:
        entry_id = generate_id()
        ts = f"{entry_date}T20:00:00"
        db.run(
            """
            INSERT INTO journal_entries
                (id, user_id, entry_date, entry_type, raw_content, mood, energy_level, created_at, updated_at)
            VALUES (?, ?, ?, 'freeform', ?, ?, ?, ?, ?)
            """,
            (entry_id, user_id or mock_user_id, entry_date, content, mood, energy, ts, ts),
        )
        return entry_id

    return _insert
