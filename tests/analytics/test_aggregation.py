"""Tests for daily aggregation and period summaries."""

from datetime import date, datetime, timezone

import pytest

from health_insights.analytics.aggregation import (
    aggregate,
    compare_periods,
    muscle_group_distribution,
    summarize_period,
    to_timed_records,
    volume_by_muscle,
)
from health_insights.exceptions import ValidationError
from health_insights.models import (
    ActivityLog,
    ExerciseSet,
    MetricCategory,
    NutritionLog,
    SessionExercise,
    TimedRecord,
    WorkoutSession,
)


def _ts(day: int, hour: int = 12) -> datetime:
    return datetime(2024, 3, day, hour, tzinfo=timezone.utc)


def _session(session_id: str, day: int, volume: float, muscles=("chest",), sets_per_exercise: int = 3):
    return WorkoutSession(
        id=session_id,
        completed_at=_ts(day),
        duration_minutes=60,
        total_volume=volume,
        exercises=[
            SessionExercise(
                exercise_name=f"{muscle} press",
                muscle_group=muscle,
                sets=[ExerciseSet(reps=10, weight=50) for _ in range(sets_per_exercise)],
                total_volume=volume / len(muscles),
            )
            for muscle in muscles
        ],
    )


class TestAggregate:
    """Tests for aggregate()."""

    def test_empty_input_gives_empty_buckets(self):
        """No records is an empty result, not an error."""
        buckets = aggregate([], date(2024, 3, 1), date(2024, 3, 7))

        assert buckets.is_empty
        assert buckets.series(MetricCategory.CALORIES) == []

    def test_sums_within_day_and_category(self):
        """Records on the same day and category are summed."""
        records = [
            TimedRecord(timestamp=_ts(1, 8), value=500, category=MetricCategory.CALORIES),
            TimedRecord(timestamp=_ts(1, 19), value=700, category=MetricCategory.CALORIES),
            TimedRecord(timestamp=_ts(2, 9), value=400, category=MetricCategory.CALORIES),
            TimedRecord(timestamp=_ts(1, 9), value=30, category=MetricCategory.PROTEIN),
        ]

        buckets = aggregate(records, date(2024, 3, 1), date(2024, 3, 2))

        assert buckets.bucket(MetricCategory.CALORIES) == {"2024-03-01": 1200, "2024-03-02": 400}
        assert buckets.bucket(MetricCategory.PROTEIN) == {"2024-03-01": 30}

    def test_bucket_sum_equals_input_sum(self):
        """Every record is counted exactly once."""
        values = [120.5, 80.0, 300.25, 45.0, 10.0]
        records = [
            TimedRecord(timestamp=_ts(1 + i % 3, 6 + i), value=v, category=MetricCategory.CALORIES)
            for i, v in enumerate(values)
        ]

        buckets = aggregate(records, date(2024, 3, 1), date(2024, 3, 3))

        assert sum(buckets.values(MetricCategory.CALORIES)) == pytest.approx(sum(values))

    def test_groups_by_record_day_not_wall_clock(self):
        """A record late in the day stays on its own calendar day."""
        records = [TimedRecord(timestamp=_ts(5, 23), value=1, category=MetricCategory.STEPS)]

        buckets = aggregate(records, date(2024, 3, 1), date(2024, 3, 31))

        assert list(buckets.bucket(MetricCategory.STEPS)) == ["2024-03-05"]

    def test_inverted_window_raises(self):
        """start after end is a caller error."""
        with pytest.raises(ValidationError):
            aggregate([], date(2024, 3, 7), date(2024, 3, 1))


class TestToTimedRecords:
    """Tests for flattening domain logs."""

    def test_nutrition_log_expands_to_macros(self):
        records = to_timed_records(
            nutrition_logs=[NutritionLog(logged_at=_ts(1), calories=600, protein=40, carbs=50, fat=20)]
        )

        categories = {r.category: r.value for r in records}
        assert categories == {
            MetricCategory.CALORIES: 600,
            MetricCategory.PROTEIN: 40,
            MetricCategory.CARBS: 50,
            MetricCategory.FAT: 20,
        }

    def test_missing_sleep_is_skipped(self):
        """An activity day without sleep does not emit a zero sleep record."""
        records = to_timed_records(activity_logs=[ActivityLog(date=date(2024, 3, 1), steps=9000)])

        assert MetricCategory.SLEEP_HOURS not in {r.category for r in records}
        assert any(r.category == MetricCategory.STEPS and r.value == 9000 for r in records)


class TestSummarizePeriod:
    """Tests for summarize_period()."""

    def test_nutrition_averages_over_tracked_days(self):
        """Averages divide by days with logs, not calendar days."""
        nutrition = [
            NutritionLog(logged_at=_ts(1, 8), calories=1000, protein=50),
            NutritionLog(logged_at=_ts(1, 18), calories=1000, protein=50),
            NutritionLog(logged_at=_ts(3), calories=2400, protein=140),
        ]

        summary = summarize_period(nutrition, [], [], date(2024, 3, 1), date(2024, 3, 7))

        assert summary.nutrition.days_tracked == 2
        assert summary.nutrition.avg_calories == pytest.approx(2200)
        assert summary.nutrition.avg_protein == pytest.approx(120)

    def test_training_summary(self):
        sessions = [_session("a", 1, 5000), _session("b", 3, 7000, muscles=("back", "biceps"))]

        summary = summarize_period([], [], sessions, date(2024, 3, 1), date(2024, 3, 7))
        data = summary.to_dict()

        assert data["training"]["total_workouts"] == 2
        assert data["training"]["total_volume"] == 12000
        assert data["training"]["avg_duration"] == 60
        assert data["nutrition"]["days_tracked"] == 0

    def test_empty_period(self):
        """An empty period summarizes to zeros."""
        summary = summarize_period([], [], [], date(2024, 3, 1), date(2024, 3, 7), period="week")

        assert summary.period == "week"
        assert summary.activity.total_active_days == 0
        assert summary.training.muscle_group_distribution == []


class TestMuscleGroups:
    """Tests for set-share and volume-by-muscle breakdowns."""

    def test_distribution_percentages(self):
        sessions = [
            _session("a", 1, 3000, muscles=("chest",), sets_per_exercise=3),
            _session("b", 2, 3000, muscles=("back",), sets_per_exercise=1),
        ]

        shares = muscle_group_distribution(sessions)

        assert [(s.muscle, s.sets, s.percentage) for s in shares] == [("chest", 3, 75), ("back", 1, 25)]

    def test_volume_by_muscle_tracks_sessions_and_recency(self):
        sessions = [
            _session("a", 1, 4000, muscles=("chest",)),
            _session("b", 4, 6000, muscles=("chest",)),
            _session("c", 2, 2000, muscles=("legs",)),
        ]

        result = {m.muscle: m for m in volume_by_muscle(sessions)}

        assert result["chest"].sessions == 2
        assert result["chest"].total_volume == pytest.approx(10000)
        assert result["chest"].last_trained == date(2024, 3, 4)
        assert result["legs"].total_sets == 3


class TestComparePeriods:
    """Tests for compare_periods()."""

    def test_changes_are_current_minus_previous(self):
        previous = summarize_period(
            [NutritionLog(logged_at=_ts(1), calories=2000, protein=100)],
            [ActivityLog(date=date(2024, 3, 1), steps=6000, sleep_hours=6.5)],
            [_session("a", 1, 4000)],
            date(2024, 3, 1),
            date(2024, 3, 7),
        )
        current = summarize_period(
            [NutritionLog(logged_at=_ts(9), calories=2300, protein=130)],
            [ActivityLog(date=date(2024, 3, 9), steps=9000, sleep_hours=7.5)],
            [_session("b", 9, 5000), _session("c", 10, 5000)],
            date(2024, 3, 8),
            date(2024, 3, 14),
        )

        comparison = compare_periods(current, previous)

        assert comparison.changes["calories"] == pytest.approx(300)
        assert comparison.changes["protein"] == pytest.approx(30)
        assert comparison.changes["steps"] == pytest.approx(3000)
        assert comparison.changes["workouts"] == 1
        assert comparison.changes["volume"] == pytest.approx(6000)
        assert comparison.changes["sleep_hours"] == pytest.approx(1.0)
