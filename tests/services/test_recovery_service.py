"""Tests for muscle recovery states and injury-risk assessment."""

from datetime import datetime, timedelta, timezone

import pytest

from health_insights.db.repositories import MuscleUsageRepository, ReportRepository
from health_insights.exceptions import ValidationError
from health_insights.models import MuscleState, MuscleUsageRecord, RiskLevel
from health_insights.services.recovery_service import (
    NO_HISTORY_RECOMMENDATION,
    RecoveryService,
    assess_risk,
    muscle_state,
    recovery_window_hours,
    supported_frequency,
)


NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


def _record(
    muscle_id: str,
    hours_ago: float,
    window: int = 48,
    frequency: float = 3.0,
    streak: int = 0,
) -> MuscleUsageRecord:
    return MuscleUsageRecord(
        user_id="user-1",
        muscle_id=muscle_id,
        muscle_name=muscle_id.title(),
        last_worked_at=NOW - timedelta(hours=hours_ago),
        workout_frequency_per_week=frequency,
        intensity=5,
        recovery_window_hours=window,
        overuse_streak_cycles=streak,
    )


def _overused(muscle_id: str, streak: int = 0) -> MuscleUsageRecord:
    # 72h window supports ~2.3 sessions/week; 4/week is too many
    return _record(muscle_id, hours_ago=10, window=72, frequency=4, streak=streak)


class TestRecoveryWindow:
    """Tests for the intensity to recovery window step function."""

    @pytest.mark.parametrize(
        "intensity,hours",
        [(0, 24), (3, 24), (3.1, 48), (6, 48), (6.1, 72), (8, 72), (8.1, 96), (10, 96)],
    )
    def test_breakpoints(self, intensity, hours):
        assert recovery_window_hours(intensity) == hours

    def test_supported_frequency(self):
        assert supported_frequency(24) == 7
        assert supported_frequency(48) == 3.5


class TestMuscleState:
    """Tests for muscle_state()."""

    def test_recovering_inside_window(self):
        status = muscle_state(_record("chest", hours_ago=10), NOW)

        assert status.state == MuscleState.RECOVERING
        assert status.hours_remaining == pytest.approx(38)

    def test_recovered_at_window_boundary(self):
        status = muscle_state(_record("chest", hours_ago=48), NOW)

        assert status.state == MuscleState.RECOVERED
        assert status.hours_remaining == 0

    def test_overused_when_trained_too_often(self):
        status = muscle_state(_overused("quads"), NOW)

        assert status.state == MuscleState.OVERUSED
        assert status.supported_frequency_per_week == pytest.approx(7 * 24 / 72)

    def test_recovered_muscle_is_never_overused(self):
        status = muscle_state(_record("quads", hours_ago=80, window=72, frequency=6), NOW)

        assert status.state == MuscleState.RECOVERED

    def test_declared_frequency_fills_missing_frequency(self):
        record = _record("back", hours_ago=10, window=48, frequency=0)

        assert muscle_state(record, NOW).state == MuscleState.RECOVERING
        assert muscle_state(record, NOW, declared_workout_frequency=5).state == MuscleState.OVERUSED

    def test_streak_only_counts_while_overused(self):
        status = muscle_state(_record("chest", hours_ago=10, streak=3), NOW)

        assert status.state == MuscleState.RECOVERING
        assert status.consecutive_overuse_cycles == 0


class TestAssessRisk:
    """Tests for assess_risk()."""

    def test_no_history_fallback(self):
        assessment = assess_risk([], declared_workout_frequency=3, now=NOW)

        assert assessment.risk_level == RiskLevel.LOW
        assert assessment.overused_muscles == []
        assert assessment.recommendations == [NO_HISTORY_RECOMMENDATION]
        assert assessment.needs_rest_day is False

    def test_low_when_everything_recovered(self):
        records = [_record("chest", hours_ago=60), _record("back", hours_ago=72)]

        assessment = assess_risk(records, now=NOW)

        assert assessment.risk_level == RiskLevel.LOW
        assert assessment.needs_rest_day is False
        assert len(assessment.recommendations) == 1

    def test_moderate_with_one_overused(self):
        records = [
            _overused("quads"),
            _record("chest", hours_ago=60),
            _record("back", hours_ago=60),
        ]

        assessment = assess_risk(records, now=NOW)

        assert assessment.risk_level == RiskLevel.MODERATE
        assert assessment.overused_muscle_names == ["Quads"]
        assert assessment.needs_rest_day is False

    def test_moderate_with_two_overused(self):
        records = [_overused("quads"), _overused("hamstrings")] + [
            _record(m, hours_ago=60) for m in ("chest", "back", "shoulders")
        ]

        assert assess_risk(records, now=NOW).risk_level == RiskLevel.MODERATE

    def test_high_with_three_overused(self):
        records = [_overused("quads"), _overused("hamstrings"), _overused("glutes")]

        assessment = assess_risk(records, now=NOW)

        assert assessment.risk_level == RiskLevel.HIGH
        assert assessment.needs_rest_day is True

    def test_high_with_one_long_overuse(self):
        records = [_overused("quads", streak=2)] + [
            _record(m, hours_ago=60) for m in ("chest", "back", "shoulders")
        ]

        assessment = assess_risk(records, now=NOW)

        assert assessment.risk_level == RiskLevel.HIGH
        assert assessment.needs_rest_day is True

    def test_single_repeat_is_not_long_overuse(self):
        records = [_overused("quads", streak=1)] + [
            _record(m, hours_ago=60) for m in ("chest", "back", "shoulders")
        ]

        assert assess_risk(records, now=NOW).risk_level == RiskLevel.MODERATE

    def test_very_high_with_two_long_overuse(self):
        records = [_overused("quads", streak=2), _overused("hamstrings", streak=3)]

        assert assess_risk(records, now=NOW).risk_level == RiskLevel.VERY_HIGH

    def test_rest_day_when_most_recent_muscles_recovering(self):
        """Low risk can still call for rest if most muscles are mid-recovery."""
        records = [
            _record("chest", hours_ago=10),
            _record("triceps", hours_ago=12),
            _record("back", hours_ago=60),
        ]

        assessment = assess_risk(records, now=NOW)

        assert assessment.risk_level == RiskLevel.LOW
        assert assessment.needs_rest_day is True

    def test_only_recent_muscles_count_toward_rest_day(self):
        records = [
            _record("chest", hours_ago=10),
            _record("back", hours_ago=60),
            # Worked more than a week ago
            _record("calves", hours_ago=24 * 10),
            _record("forearms", hours_ago=24 * 12),
        ]

        assert assess_risk(records, now=NOW).needs_rest_day is False

    def test_exactly_half_recovering_is_not_enough(self):
        records = [_record("chest", hours_ago=10), _record("back", hours_ago=60)]

        assert assess_risk(records, now=NOW).needs_rest_day is False

    def test_recommendations_list_overused_first_by_severity(self):
        records = [_overused("quads", streak=0), _overused("hamstrings", streak=2)]

        assessment = assess_risk(records, now=NOW)

        assert assessment.overused_muscle_names == ["Hamstrings", "Quads"]
        assert len(assessment.recommendations) == 3
        assert "Hamstrings" in assessment.recommendations[0]
        assert "Quads" in assessment.recommendations[1]

    def test_high_declared_frequency_adds_guidance(self):
        records = [_record("chest", hours_ago=60)]

        low = assess_risk(records, declared_workout_frequency=3, now=NOW)
        high = assess_risk(records, declared_workout_frequency=6, now=NOW)

        assert len(high.recommendations) == len(low.recommendations) + 1


@pytest.fixture
def usage_repo(temp_db_path):
    return MuscleUsageRepository(db_path=temp_db_path)


@pytest.fixture
def report_repo(temp_db_path):
    return ReportRepository(db_path=temp_db_path)


@pytest.fixture
def recovery_service(usage_repo, report_repo, settings, clock):
    return RecoveryService(usage_repo, report_repo=report_repo, settings=settings, clock=clock)


class TestRecordMuscleUsage:
    """Tests for RecoveryService.record_muscle_usage()."""

    def test_creates_record_with_default_frequency(self, recovery_service, clock):
        record = recovery_service.record_muscle_usage("user-1", "quads", "Quadriceps", intensity=7)

        assert record.workout_frequency_per_week == 3
        assert record.recovery_window_hours == 72
        assert record.last_worked_at == clock()
        assert record.overuse_streak_cycles == 0

    def test_updates_single_record_in_place(self, recovery_service, usage_repo, clock):
        recovery_service.record_muscle_usage("user-1", "quads", "Quadriceps", intensity=7)
        clock.advance(days=4)
        recovery_service.record_muscle_usage("user-1", "quads", "Quadriceps", intensity=2)

        records = usage_repo.list_for_user("user-1")
        assert len(records) == 1
        assert records[0].intensity == 2
        assert records[0].recovery_window_hours == 24
        assert records[0].last_worked_at == clock()

    def test_retraining_inside_window_extends_streak(self, recovery_service, clock):
        recovery_service.record_muscle_usage("user-1", "quads", "Quadriceps", intensity=9)
        clock.advance(hours=30)
        second = recovery_service.record_muscle_usage("user-1", "quads", "Quadriceps", intensity=9)
        clock.advance(hours=30)
        third = recovery_service.record_muscle_usage("user-1", "quads", "Quadriceps", intensity=9)

        assert second.overuse_streak_cycles == 1
        assert third.overuse_streak_cycles == 2

    def test_training_after_recovery_resets_streak(self, recovery_service, clock):
        recovery_service.record_muscle_usage("user-1", "quads", "Quadriceps", intensity=9)
        clock.advance(hours=30)
        recovery_service.record_muscle_usage("user-1", "quads", "Quadriceps", intensity=9)
        clock.advance(hours=100)
        record = recovery_service.record_muscle_usage("user-1", "quads", "Quadriceps", intensity=9)

        assert record.overuse_streak_cycles == 0

    def test_frequency_kept_unless_given(self, recovery_service):
        recovery_service.record_muscle_usage("user-1", "chest", "Chest", intensity=5, workout_frequency=5)
        kept = recovery_service.record_muscle_usage("user-1", "chest", "Chest", intensity=5)
        changed = recovery_service.record_muscle_usage("user-1", "chest", "Chest", intensity=5, workout_frequency=2)

        assert kept.workout_frequency_per_week == 5
        assert changed.workout_frequency_per_week == 2

    @pytest.mark.parametrize("intensity", [-1, 10.5])
    def test_invalid_intensity_raises(self, recovery_service, intensity):
        with pytest.raises(ValidationError):
            recovery_service.record_muscle_usage("user-1", "chest", "Chest", intensity=intensity)

    def test_missing_muscle_raises(self, recovery_service):
        with pytest.raises(ValidationError):
            recovery_service.record_muscle_usage("user-1", "", "Chest", intensity=5)


class TestAssessUser:
    """Tests for RecoveryService.assess_user()."""

    def test_no_history_returns_fallback_without_report(self, recovery_service, report_repo):
        assessment = recovery_service.assess_user("user-1")

        assert assessment.recommendations == [NO_HISTORY_RECOMMENDATION]
        assert report_repo.list_reports("user-1") == []

    def test_persists_injury_risk_report(self, recovery_service, report_repo):
        recovery_service.record_muscle_usage("user-1", "quads", "Quadriceps", intensity=9, workout_frequency=4)

        assessment = recovery_service.assess_user("user-1")

        assert assessment.risk_level == RiskLevel.MODERATE
        reports = report_repo.list_reports("user-1")
        assert len(reports) == 1
        assert reports[0].report_type == "injury_risk"
        assert reports[0].aggregates["injury_risk"]["risk_level"] == "moderate"

    def test_persist_can_be_disabled(self, recovery_service, report_repo):
        recovery_service.record_muscle_usage("user-1", "quads", "Quadriceps", intensity=5)

        recovery_service.assess_user("user-1", persist=False)

        assert report_repo.list_reports("user-1") == []

    def test_refresh_marks_elapsed_muscles_recovered(self, recovery_service, usage_repo, clock):
        recovery_service.record_muscle_usage("user-1", "chest", "Chest", intensity=2)
        recovery_service.record_muscle_usage("user-1", "legs", "Legs", intensity=9)
        clock.advance(hours=30)

        recovery_service.assess_user("user-1")

        stored = {r.muscle_id: r for r in usage_repo.list_for_user("user-1")}
        assert stored["chest"].recovered is True
        assert stored["legs"].recovered is False
