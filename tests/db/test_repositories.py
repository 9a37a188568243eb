"""Tests for the SQLite repositories."""

import sqlite3
from datetime import date, datetime, timedelta, timezone

import pytest

from health_insights.db.repositories import (
    InsightCacheRepository,
    MuscleUsageRepository,
    ReportRepository,
)
from health_insights.exceptions import DatabaseError
from health_insights.models import (
    Insight,
    InsightCacheEntry,
    InsightKind,
    MuscleUsageRecord,
    ReportSnapshot,
    ShareGrant,
)


NOW = datetime(2024, 3, 15, 12, tzinfo=timezone.utc)


def _insight(title: str) -> Insight:
    return Insight(
        kind=InsightKind.PATTERN,
        detector="test",
        title=title,
        description=f"{title} description",
        confidence=0.8,
        supporting_data={"value": 1.5},
    )


def _entry(user_id: str, titles, generated_at: datetime = NOW, insight_set: str = "all") -> InsightCacheEntry:
    return InsightCacheEntry(
        user_id=user_id,
        insight_set=insight_set,
        insights=[_insight(t) for t in titles],
        generated_at=generated_at,
        valid_until=generated_at + timedelta(hours=6),
    )


def _table_names(repo) -> set:
    with repo._get_connection() as conn:
        rows = conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
        return {row["name"] for row in rows}


class TestInsightCacheRepository:
    """Tests for InsightCacheRepository."""

    @pytest.fixture
    def repo(self, temp_db_path):
        return InsightCacheRepository(db_path=temp_db_path)

    def test_creates_table(self, repo):
        assert "insight_cache" in _table_names(repo)

    def test_get_missing(self, repo):
        assert repo.get("nobody") is None

    def test_upsert_round_trip(self, repo):
        repo.upsert(_entry("user-1", ["A", "B"]))

        entry = repo.get("user-1")

        assert [i.title for i in entry.insights] == ["A", "B"]
        assert entry.insights[0].supporting_data == {"value": 1.5}
        assert entry.generated_at == NOW
        assert entry.valid_until == NOW + timedelta(hours=6)

    def test_upsert_replaces_whole_set(self, repo):
        repo.upsert(_entry("user-1", ["A", "B", "C"]))
        repo.upsert(_entry("user-1", ["D"], generated_at=NOW + timedelta(hours=7)))

        entry = repo.get("user-1")

        assert [i.title for i in entry.insights] == ["D"]
        assert entry.generated_at == NOW + timedelta(hours=7)
        assert len(repo.list_for_user("user-1")) == 1

    def test_naive_timestamps_are_read_back_as_utc(self, repo):
        naive = datetime(2024, 3, 15, 12)
        repo.upsert(_entry("user-1", ["A"], generated_at=naive))

        assert repo.get("user-1").generated_at.tzinfo is not None

    def test_purge_expired(self, repo):
        repo.upsert(_entry("old", ["A"], generated_at=NOW - timedelta(hours=10)))
        repo.upsert(_entry("fresh", ["B"]))

        removed = repo.purge_expired(NOW)

        assert removed == 1
        assert repo.get("old") is None
        assert repo.get("fresh") is not None

    def test_delete(self, repo):
        repo.upsert(_entry("user-1", ["A"]))

        assert repo.delete("user-1") is True
        assert repo.delete("user-1") is False

    def test_sqlite_errors_become_database_errors(self, repo):
        with pytest.raises(DatabaseError) as exc_info:
            with repo._get_connection() as conn:
                conn.execute("SELECT * FROM missing_table")

        assert isinstance(exc_info.value.__cause__, sqlite3.Error)
        assert exc_info.value.status_code == 500


class TestMuscleUsageRepository:
    """Tests for MuscleUsageRepository."""

    @pytest.fixture
    def repo(self, temp_db_path):
        return MuscleUsageRepository(db_path=temp_db_path)

    def _record(self, muscle_id: str, hours_ago: float = 0, **kwargs) -> MuscleUsageRecord:
        values = dict(
            user_id="user-1",
            muscle_id=muscle_id,
            muscle_name=muscle_id.title(),
            last_worked_at=NOW - timedelta(hours=hours_ago),
            intensity=5,
            recovery_window_hours=48,
        )
        values.update(kwargs)
        return MuscleUsageRecord(**values)

    def test_save_and_get(self, repo):
        repo.save(self._record("chest", overuse_streak_cycles=2))

        record = repo.get("user-1", "chest")

        assert record.muscle_name == "Chest"
        assert record.overuse_streak_cycles == 2
        assert record.recovered is False

    def test_save_updates_in_place(self, repo):
        repo.save(self._record("chest", intensity=3))
        repo.save(self._record("chest", intensity=9, recovery_window_hours=96))

        records = repo.list_for_user("user-1")

        assert len(records) == 1
        assert records[0].intensity == 9
        assert records[0].recovery_window_hours == 96

    def test_list_is_most_recent_first(self, repo):
        repo.save(self._record("back", hours_ago=30))
        repo.save(self._record("chest", hours_ago=2))
        repo.save(self._record("legs", hours_ago=50))

        assert [r.muscle_id for r in repo.list_for_user("user-1")] == ["chest", "back", "legs"]

    def test_mark_recovered(self, repo):
        repo.save(self._record("chest"))
        repo.save(self._record("back"))

        assert repo.mark_recovered("user-1", ["chest"]) == 1
        assert repo.get("user-1", "chest").recovered is True
        assert repo.get("user-1", "back").recovered is False
        assert repo.mark_recovered("user-1", []) == 0

    def test_users_are_isolated(self, repo):
        repo.save(self._record("chest"))

        assert repo.get("user-2", "chest") is None
        assert repo.list_for_user("user-2") == []


class TestReportRepository:
    """Tests for ReportRepository."""

    @pytest.fixture
    def repo(self, temp_db_path):
        return ReportRepository(db_path=temp_db_path)

    @pytest.fixture
    def report(self, repo):
        snapshot = ReportSnapshot(
            id="report-1",
            user_id="user-1",
            title="Report",
            period_start=date(2024, 3, 1),
            period_end=date(2024, 3, 7),
            aggregates={"training": {"total_workouts": 3}},
            insights=[_insight("A")],
            generated_at=NOW,
        )
        return repo.save_report(snapshot)

    def test_creates_tables(self, repo):
        assert {"reports", "report_shares"} <= _table_names(repo)

    def test_report_round_trip(self, repo, report):
        assert repo.get_report("report-1") == report

    def test_duplicate_report_id_is_rejected(self, repo, report):
        with pytest.raises(DatabaseError):
            repo.save_report(report)

    def test_list_reports_newest_first(self, repo, report):
        newer = report.model_copy(update={"id": "report-2", "generated_at": NOW + timedelta(days=1)})
        repo.save_report(newer)

        assert [r.id for r in repo.list_reports("user-1")] == ["report-2", "report-1"]

    def test_share_round_trip(self, repo, report):
        grant = ShareGrant(token="a" * 64, report_id="report-1", created_at=NOW, expires_at=NOW + timedelta(hours=1))
        repo.save_share(grant)

        assert repo.get_share("a" * 64) == grant

    def test_increment_access_count(self, repo, report):
        repo.save_share(ShareGrant(token="b" * 64, report_id="report-1", created_at=NOW))

        assert repo.increment_access_count("b" * 64) == 1
        assert repo.increment_access_count("b" * 64) == 2
        assert repo.get_share("b" * 64).access_count == 2

    def test_increment_unknown_token(self, repo):
        assert repo.increment_access_count("missing") is None
