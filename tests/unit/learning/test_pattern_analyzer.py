"""Tests for helm/learning/pattern_analyzer.py

The analyzer reads the trailing 30 days of events, tasks and journal
entries and upserts one pattern per detected signal. Key behaviors:
- Every detection is gated by a minimum sample
- Re-running never duplicates pattern rows
- Journal-side store errors skip that detection, task insights survive
"""

import sqlite3
from datetime import datetime, timedelta

import pytest

from helm.learning.config import PatternDetectionConfig
from helm.learning.events import log_event, update_daily_log
from helm.learning.pattern_analyzer import analyze_and_store_patterns
from helm.learning.patterns import PatternKey, PatternKind, find_pattern, get_journal_patterns, get_patterns
from helm.store import QueryExecutor, generate_id


def _complete_at(db, user_id, when):
    log_event(user_id, "completed", generate_id(), db=db, now=when)


def _mention(db, entry_id, value, day, entity_type="topic"):
    db.run(
        """
        INSERT INTO journal_entities (id, entry_id, entity_type, entity_value, sentiment, created_at)
        VALUES (?, ?, ?, ?, 'neutral', ?)
        """,
        (generate_id(), entry_id, entity_type, value, f"{day}T20:00:00"),
    )


def _pattern_counts(db, table):
    return db.all(f"SELECT pattern_type, COUNT(*) AS n FROM {table} GROUP BY pattern_type")


class FailingEntityQueries(QueryExecutor):
    """Executor whose journal_entities reads fail as if the table were broken."""

    def all(self, sql, params=()):
        if "journal_entities" in sql:
            raise sqlite3.OperationalError("no such table: journal_entities")
        return super().all(sql, params)


# ─────────────────────────────────────────────────────────────────────────────
# Peak Time / Peak Day
# ─────────────────────────────────────────────────────────────────────────────


class TestPeakDetection:
    """Tests for peak time-of-day and day-of-week."""

    def test_morning_end_to_end(self, db, mock_user_id, fixed_now):
        """5 morning completions and 2 evening ones make morning the peak."""
        for days_ago in range(1, 6):
            _complete_at(db, mock_user_id, (fixed_now - timedelta(days=days_ago)).replace(hour=9))
        for days_ago in range(1, 3):
            _complete_at(db, mock_user_id, (fixed_now - timedelta(days=days_ago)).replace(hour=19))

        result = analyze_and_store_patterns(mock_user_id, db=db, now=fixed_now)

        assert "Most productive in the morning" in result.insights
        peak = find_pattern(get_patterns(mock_user_id, db=db), PatternKey(PatternKind.PEAK_TIME))
        assert peak.data == {"time": "morning", "count": 5}
        assert peak.confidence == 0.5

    def test_highest_bucket_wins_with_count_over_ten_confidence(self, db, mock_user_id, fixed_now):
        buckets = {8: 3, 14: 6, 19: 9}
        for hour, count in buckets.items():
            for i in range(count):
                _complete_at(db, mock_user_id, (fixed_now - timedelta(days=i + 1)).replace(hour=hour))

        analyze_and_store_patterns(mock_user_id, db=db, now=fixed_now)

        peak = find_pattern(get_patterns(mock_user_id, db=db), PatternKey(PatternKind.PEAK_TIME))
        assert peak.data["time"] == "evening"
        assert peak.data["count"] == 9
        assert peak.confidence == pytest.approx(0.9)

    def test_below_three_completions_no_peak(self, db, mock_user_id, fixed_now):
        _complete_at(db, mock_user_id, fixed_now - timedelta(days=1))
        _complete_at(db, mock_user_id, fixed_now - timedelta(days=2))

        result = analyze_and_store_patterns(mock_user_id, db=db, now=fixed_now)

        kinds = {p.kind for p in get_patterns(mock_user_id, db=db)}
        assert PatternKind.PEAK_TIME not in kinds
        assert PatternKind.PEAK_DAY not in kinds
        assert not any(i.startswith("Most productive") for i in result.insights)

    def test_events_outside_window_are_ignored(self, db, mock_user_id, fixed_now):
        for i in range(5):
            _complete_at(db, mock_user_id, fixed_now - timedelta(days=40 + i))

        analyze_and_store_patterns(mock_user_id, db=db, now=fixed_now)

        assert find_pattern(get_patterns(mock_user_id, db=db), PatternKey(PatternKind.PEAK_TIME)) is None

    def test_unknown_buckets_are_ignored(self, db, mock_user_id, fixed_now):
        # Rows written without log_event, carrying buckets outside the known set
        for i in range(5):
            db.run(
                """
                INSERT INTO task_events (id, user_id, task_id, event_type, event_data, created_at)
                VALUES (?, ?, ?, 'completed', '{"time": "brunch", "day": "funday"}', ?)
                """,
                (generate_id(), mock_user_id, generate_id(), (fixed_now - timedelta(days=i + 1)).isoformat()),
            )
        for i in range(3):
            _complete_at(db, mock_user_id, (fixed_now - timedelta(days=i + 1)).replace(hour=9))

        result = analyze_and_store_patterns(mock_user_id, db=db, now=fixed_now)

        assert "Most productive in the morning" in result.insights
        peak = find_pattern(get_patterns(mock_user_id, db=db), PatternKey(PatternKind.PEAK_TIME))
        assert peak.data == {"time": "morning", "count": 3}
        # The three real completions fall on different weekdays
        assert find_pattern(get_patterns(mock_user_id, db=db), PatternKey(PatternKind.PEAK_DAY)) is None

    def test_peak_day(self, db, mock_user_id, fixed_now):
        # Three Fridays inside the window
        for weeks_ago in range(3):
            _complete_at(db, mock_user_id, fixed_now - timedelta(weeks=weeks_ago, hours=1))

        result = analyze_and_store_patterns(mock_user_id, db=db, now=fixed_now)

        assert "Most productive on fridays" in result.insights
        peak = find_pattern(get_patterns(mock_user_id, db=db), PatternKey(PatternKind.PEAK_DAY))
        assert peak.data == {"day": "friday", "count": 3}


# ─────────────────────────────────────────────────────────────────────────────
# Task Detections
# ─────────────────────────────────────────────────────────────────────────────


class TestCompletionRates:
    """Tests for completion rate per focus level."""

    def test_four_tasks_is_below_threshold(self, db, insert_task, mock_user_id, fixed_now):
        for _ in range(4):
            insert_task(
                created_at=fixed_now - timedelta(days=3),
                status="done",
                focus_level="high",
                completed_at=fixed_now - timedelta(days=1),
            )

        result = analyze_and_store_patterns(mock_user_id, db=db, now=fixed_now)

        assert not any("focus tasks" in i for i in result.insights)
        assert find_pattern(
            get_patterns(mock_user_id, db=db), PatternKey(PatternKind.COMPLETION_RATE, "high")
        ) is None

    def test_struggling_insight(self, db, insert_task, mock_user_id, fixed_now):
        created = fixed_now - timedelta(days=5)
        insert_task(created_at=created, status="done", focus_level="high", completed_at=fixed_now - timedelta(days=1))
        for _ in range(4):
            insert_task(created_at=created, focus_level="high")

        result = analyze_and_store_patterns(mock_user_id, db=db, now=fixed_now)

        assert "Struggling with high-focus tasks (20% completion)" in result.insights
        rate = find_pattern(get_patterns(mock_user_id, db=db), PatternKey(PatternKind.COMPLETION_RATE, "high"))
        assert rate.pattern_type == "completion_rate_high"
        assert rate.data == {"rate": 0.2, "total": 5}
        assert rate.confidence == pytest.approx(0.2)

    def test_middle_rate_stored_without_insight(self, db, insert_task, mock_user_id, fixed_now):
        created = fixed_now - timedelta(days=5)
        for _ in range(3):
            insert_task(created_at=created, status="done", focus_level="low", completed_at=fixed_now)
        for _ in range(2):
            insert_task(created_at=created, focus_level="low")

        result = analyze_and_store_patterns(mock_user_id, db=db, now=fixed_now)

        assert not any("low-focus" in i for i in result.insights)
        rate = find_pattern(get_patterns(mock_user_id, db=db), PatternKey(PatternKind.COMPLETION_RATE, "low"))
        assert rate.confidence == pytest.approx(0.6)

    def test_great_at_insight(self, db, insert_task, mock_user_id, fixed_now):
        created = fixed_now - timedelta(days=5)
        for _ in range(5):
            insert_task(created_at=created, status="done", focus_level="low", completed_at=fixed_now)

        result = analyze_and_store_patterns(mock_user_id, db=db, now=fixed_now)

        assert "Great at low-focus tasks (100% completion)" in result.insights


class TestAverageCompletion:
    """Tests for average days to complete."""

    def test_rounded_to_one_decimal(self, db, insert_task, mock_user_id, fixed_now):
        insert_task(created_at=fixed_now - timedelta(days=4), status="done", completed_at=fixed_now - timedelta(days=3))
        insert_task(created_at=fixed_now - timedelta(days=4), status="done", completed_at=fixed_now - timedelta(days=2))

        result = analyze_and_store_patterns(mock_user_id, db=db, now=fixed_now)

        # (1 + 2) / 2
        assert "Average task completion: 1.5 days" in result.insights
        avg = find_pattern(get_patterns(mock_user_id, db=db), PatternKey(PatternKind.AVG_COMPLETION_DAYS))
        assert avg.data == {"days": 1.5}
        assert avg.confidence == 0.8

    def test_no_completed_tasks_no_pattern(self, db, insert_task, mock_user_id, fixed_now):
        insert_task(created_at=fixed_now - timedelta(days=2))

        analyze_and_store_patterns(mock_user_id, db=db, now=fixed_now)

        assert find_pattern(get_patterns(mock_user_id, db=db), PatternKey(PatternKind.AVG_COMPLETION_DAYS)) is None


class TestAvoidance:
    """Tests for the most-avoided category."""

    def test_top_old_category(self, db, insert_task, mock_user_id, fixed_now):
        old = fixed_now - timedelta(days=10)
        for _ in range(3):
            insert_task(created_at=old, category="admin")
        insert_task(created_at=old, category="writing")
        # Too recent to count
        insert_task(created_at=fixed_now - timedelta(days=2), category="writing")
        insert_task(created_at=fixed_now - timedelta(days=2), category="writing")

        result = analyze_and_store_patterns(mock_user_id, db=db, now=fixed_now)

        assert "Tends to delay admin tasks" in result.insights
        avoid = find_pattern(get_patterns(mock_user_id, db=db), PatternKey(PatternKind.AVOIDANCE_CATEGORY))
        assert avoid.data == {"category": "admin", "count": 3}
        assert avoid.confidence == 0.7

    def test_empty_category_is_uncategorized(self, db, insert_task, mock_user_id, fixed_now):
        old = fixed_now - timedelta(days=8)
        insert_task(created_at=old, category=None)
        insert_task(created_at=old, category="")

        result = analyze_and_store_patterns(mock_user_id, db=db, now=fixed_now)

        assert "Tends to delay uncategorized tasks" in result.insights

    def test_single_old_task_is_not_avoidance(self, db, insert_task, mock_user_id, fixed_now):
        insert_task(created_at=fixed_now - timedelta(days=10), category="admin")

        analyze_and_store_patterns(mock_user_id, db=db, now=fixed_now)

        assert find_pattern(get_patterns(mock_user_id, db=db), PatternKey(PatternKind.AVOIDANCE_CATEGORY)) is None


# ─────────────────────────────────────────────────────────────────────────────
# Journal Detections
# ─────────────────────────────────────────────────────────────────────────────


class TestJournalDetections:
    """Tests for mood, energy and entity correlations."""

    def test_negative_mood_on_day(self, db, insert_entry, mock_user_id, fixed_now):
        insert_entry("2026-10-12", mood="anxious")
        insert_entry("2026-10-05", mood="anxious")
        # Positive moods never produce a mood-by-day pattern
        insert_entry("2026-10-13", mood="calm")
        insert_entry("2026-10-06", mood="calm")

        result = analyze_and_store_patterns(mock_user_id, db=db, now=fixed_now)

        assert "Often feel anxious on mondays" in result.insights
        journal = get_journal_patterns(mock_user_id, db=db)
        mood = find_pattern(journal, PatternKey(PatternKind.MOOD_DAY, "monday"))
        assert mood.data == {"mood": "anxious", "count": 2}
        assert mood.confidence == pytest.approx(0.4)
        assert find_pattern(journal, PatternKey(PatternKind.MOOD_DAY, "tuesday")) is None

    def test_energy_extremes(self, db, insert_entry, mock_user_id, fixed_now):
        insert_entry("2026-10-12", energy=8)
        insert_entry("2026-10-13", energy=5)
        insert_entry("2026-10-14", energy=3)

        analyze_and_store_patterns(mock_user_id, db=db, now=fixed_now)

        journal = get_journal_patterns(mock_user_id, db=db)
        high = find_pattern(journal, PatternKey(PatternKind.ENERGY_HIGH_DAY))
        low = find_pattern(journal, PatternKey(PatternKind.ENERGY_LOW_DAY))
        assert high.data["day"] == "monday"
        assert low.data["day"] == "wednesday"
        assert high.confidence == low.confidence == 0.7

    def test_energy_needs_three_days(self, db, insert_entry, mock_user_id, fixed_now):
        insert_entry("2026-10-12", energy=9)
        insert_entry("2026-10-14", energy=1)

        analyze_and_store_patterns(mock_user_id, db=db, now=fixed_now)

        assert get_journal_patterns(mock_user_id, db=db) == []

    def test_mood_productivity(self, db, insert_entry, mock_user_id, fixed_now):
        for day, mood, completed in (
            ("2026-10-12", "focused", 4),
            ("2026-10-13", "focused", 4),
            ("2026-10-14", "sad", 0),
            ("2026-10-15", "sad", 1),
        ):
            insert_entry(day, mood=mood)
            when = datetime.fromisoformat(f"{day}T12:00:00")
            update_daily_log(mock_user_id, "tasks_created", db=db, now=when)
            if completed:
                update_daily_log(mock_user_id, "tasks_completed", increment=completed, db=db, now=when)

        result = analyze_and_store_patterns(mock_user_id, db=db, now=fixed_now)

        assert "Most productive when feeling focused (avg 4 tasks)" in result.insights
        assert "Least productive when feeling sad" in result.insights
        journal = get_journal_patterns(mock_user_id, db=db)
        assert find_pattern(journal, PatternKey(PatternKind.PRODUCTIVE_MOOD)).confidence == 0.8
        assert find_pattern(journal, PatternKey(PatternKind.UNPRODUCTIVE_MOOD)).confidence == 0.6

    def test_entity_negative_association(self, db, insert_entry, mock_user_id, fixed_now):
        for day in ("2026-10-12", "2026-10-13", "2026-10-14"):
            entry_id = insert_entry(day, mood="frustrated")
            db.run(
                """
                INSERT INTO journal_entities (id, entry_id, entity_type, entity_value, sentiment, created_at)
                VALUES (?, ?, 'person', 'Sarah', 'negative', ?)
                """,
                (generate_id(), entry_id, f"{day}T20:00:00"),
            )

        result = analyze_and_store_patterns(mock_user_id, db=db, now=fixed_now)

        assert 'Often feel frustrated when "Sarah" is mentioned' in result.insights
        entity = find_pattern(
            get_journal_patterns(mock_user_id, db=db), PatternKey(PatternKind.ENTITY_NEGATIVE, "Sarah")
        )
        assert entity.data["mentions"] == 3
        assert entity.confidence == pytest.approx(0.6)

    def test_entity_positive_association(self, db, insert_entry, mock_user_id, fixed_now):
        for day in ("2026-10-12", "2026-10-13", "2026-10-14"):
            _mention(db, insert_entry(day, mood="hopeful"), "Sarah", day)

        result = analyze_and_store_patterns(mock_user_id, db=db, now=fixed_now)

        assert result.insights == ['Often feel hopeful around "Sarah"']
        journal = get_journal_patterns(mock_user_id, db=db)
        entity = find_pattern(journal, PatternKey(PatternKind.ENTITY_POSITIVE, "Sarah"))
        assert entity.confidence == pytest.approx(0.6)
        assert find_pattern(journal, PatternKey(PatternKind.ENTITY_NEGATIVE, "Sarah")) is None

    def test_two_mentions_is_below_threshold(self, db, insert_entry, mock_user_id, fixed_now):
        """A pair seen twice passes the grouping but not the mention minimum."""
        for day in ("2026-10-12", "2026-10-13"):
            _mention(db, insert_entry(day, mood="frustrated"), "Sarah", day)

        result = analyze_and_store_patterns(mock_user_id, db=db, now=fixed_now)

        assert result.insights == []
        assert get_journal_patterns(mock_user_id, db=db) == []

    def test_only_top_ten_entities(self, db, insert_entry, mock_user_id, fixed_now):
        days = ("2026-10-12", "2026-10-13", "2026-10-14", "2026-10-15")
        entry_ids = [insert_entry(day, mood="frustrated") for day in days]
        for n in range(1, 11):
            for entry_id, day in zip(entry_ids, days):
                _mention(db, entry_id, f"Topic{n}", day)
        # Three mentions: qualifies on its own but ranks eleventh
        for entry_id, day in zip(entry_ids[:3], days[:3]):
            _mention(db, entry_id, "Topic0", day)

        analyze_and_store_patterns(mock_user_id, db=db, now=fixed_now)

        journal = get_journal_patterns(mock_user_id, db=db)
        negatives = [p for p in journal if p.kind is PatternKind.ENTITY_NEGATIVE]
        assert len(negatives) == 10
        assert find_pattern(journal, PatternKey(PatternKind.ENTITY_NEGATIVE, "Topic0")) is None
        assert all(p.confidence == pytest.approx(0.8) for p in negatives)


# ─────────────────────────────────────────────────────────────────────────────
# Idempotency / Degradation
# ─────────────────────────────────────────────────────────────────────────────


class TestAnalyzeAndStore:
    """Tests for the full analysis run."""

    def test_rerun_updates_in_place(self, db, insert_task, insert_entry, mock_user_id, fixed_now):
        for i in range(4):
            _complete_at(db, mock_user_id, (fixed_now - timedelta(days=i + 1)).replace(hour=10))
        for _ in range(5):
            insert_task(created_at=fixed_now - timedelta(days=9), category="admin", focus_level="high")
        insert_entry("2026-10-12", mood="sad")
        insert_entry("2026-10-05", mood="sad")

        first = analyze_and_store_patterns(mock_user_id, db=db, now=fixed_now)
        second = analyze_and_store_patterns(mock_user_id, db=db, now=fixed_now)

        assert first.insights == second.insights
        for table in ("user_patterns", "journal_patterns"):
            counts = _pattern_counts(db, table)
            assert counts
            assert all(row["n"] == 1 for row in counts)

    def test_missing_journal_tables_keep_task_insights(self, task_only_db, mock_user_id, fixed_now):
        for i in range(3):
            _complete_at(task_only_db, mock_user_id, (fixed_now - timedelta(days=i + 1)).replace(hour=9))

        result = analyze_and_store_patterns(mock_user_id, db=task_only_db, now=fixed_now)

        assert "Most productive in the morning" in result.insights
        assert result.degraded
        assert set(result.skipped) == {"mood_by_day", "energy_extremes", "mood_productivity", "entity_sentiment"}
        assert "peak_time" in result.detected

    def test_malformed_entry_date_skips_only_journal_detection(self, db, insert_entry, mock_user_id, fixed_now):
        for i in range(3):
            _complete_at(db, mock_user_id, (fixed_now - timedelta(days=i + 1)).replace(hour=9))
        # No weekday can be derived from a month of 13
        insert_entry("2026-13-01", mood="anxious")
        insert_entry("2026-13-01", mood="anxious")

        result = analyze_and_store_patterns(mock_user_id, db=db, now=fixed_now)

        assert "Most productive in the morning" in result.insights
        assert "mood_by_day" in result.skipped
        assert "entity_sentiment" in result.detected

    def test_entity_failure_skips_only_that_detection(self, temp_db, mock_user_id, fixed_now):
        from helm.store import get_connection

        failing = FailingEntityQueries(get_connection(temp_db))
        try:
            for i in range(3):
                _complete_at(failing, mock_user_id, (fixed_now - timedelta(days=i + 1)).replace(hour=14))

            result = analyze_and_store_patterns(mock_user_id, db=failing, now=fixed_now)
        finally:
            failing.close()

        assert "Most productive in the afternoon" in result.insights
        assert list(result.skipped) == ["entity_sentiment"]
        assert "mood_by_day" in result.detected

    def test_no_data_no_insights(self, db, mock_user_id, fixed_now):
        result = analyze_and_store_patterns(mock_user_id, db=db, now=fixed_now)

        assert result.insights == []
        assert result.patterns_saved == 0
        assert not result.degraded

    def test_disabled_detection_does_nothing(self, db, mock_user_id, fixed_now):
        for i in range(5):
            _complete_at(db, mock_user_id, fixed_now - timedelta(days=i + 1))

        result = analyze_and_store_patterns(
            mock_user_id, db=db, now=fixed_now, config=PatternDetectionConfig(enabled=False)
        )

        assert result.insights == []
        assert result.detected == []
        assert get_patterns(mock_user_id, db=db) == []
