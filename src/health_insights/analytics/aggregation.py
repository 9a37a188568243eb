"""
Aggregation of raw health records into daily buckets and period summaries.

The aggregator trusts its input window: callers query records for
``[start, end]`` and hand them over. Records are grouped by their own
calendar day (UTC), never by wall-clock time.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from ..exceptions import ValidationError
from ..models.records import (
    ActivityLog,
    MetricCategory,
    NutritionLog,
    TimedRecord,
    WeightLog,
    WorkoutSession,
)
from ..utils.timeutils import day_key
from .stats import mean


logger = logging.getLogger(__name__)


# Per-day mapping of ISO date -> accumulated total
DailyBucket = Dict[str, float]


@dataclass
class DailyBuckets:
    """Per-category daily totals for one window."""

    start: date
    end: date
    totals: Dict[MetricCategory, DailyBucket] = field(default_factory=dict)

    def bucket(self, category: MetricCategory) -> DailyBucket:
        """Daily totals for ``category`` (empty when nothing was recorded)."""
        return self.totals.get(category, {})

    def series(self, category: MetricCategory) -> List[Tuple[str, float]]:
        """Chronological ``(iso_date, total)`` pairs for ``category``."""
        return sorted(self.bucket(category).items())

    def values(self, category: MetricCategory) -> List[float]:
        return [value for _, value in self.series(category)]

    def days_tracked(self, category: MetricCategory) -> int:
        return len(self.bucket(category))

    @property
    def is_empty(self) -> bool:
        return not any(self.totals.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "totals": {
                category.value: dict(sorted(bucket.items()))
                for category, bucket in self.totals.items()
            },
        }


def _as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def aggregate(
    records: Iterable[TimedRecord],
    start: date | datetime,
    end: date | datetime,
) -> DailyBuckets:
    """
    Sum record values per (calendar day, category).

    Args:
        records: Records already restricted to ``[start, end]`` by the caller
        start: First day of the window
        end: Last day of the window

    Returns:
        DailyBuckets; empty input yields empty buckets.

    Raises:
        ValidationError: If ``start`` is after ``end``
    """
    start_day = _as_date(start)
    end_day = _as_date(end)
    if start_day > end_day:
        raise ValidationError(
            "Aggregation window start must not be after its end",
            field="start",
            details={"start": start_day.isoformat(), "end": end_day.isoformat()},
        )

    totals: Dict[MetricCategory, DailyBucket] = defaultdict(lambda: defaultdict(float))
    count = 0
    for record in records:
        totals[record.category][day_key(record.timestamp)] += record.value
        count += 1

    logger.debug("Aggregated %d records into %d categories", count, len(totals))

    return DailyBuckets(
        start=start_day,
        end=end_day,
        totals={category: dict(bucket) for category, bucket in totals.items()},
    )


def to_timed_records(
    nutrition_logs: Sequence[NutritionLog] = (),
    activity_logs: Sequence[ActivityLog] = (),
    sessions: Sequence[WorkoutSession] = (),
    weight_logs: Sequence[WeightLog] = (),
) -> List[TimedRecord]:
    """Flatten domain logs into TimedRecords for the aggregator."""
    records: List[TimedRecord] = []

    for log in nutrition_logs:
        for category, value in (
            (MetricCategory.CALORIES, log.calories),
            (MetricCategory.PROTEIN, log.protein),
            (MetricCategory.CARBS, log.carbs),
            (MetricCategory.FAT, log.fat),
        ):
            records.append(TimedRecord(timestamp=log.logged_at, value=value, category=category))

    for log in activity_logs:
        # Activity logs are per day; anchor them at midnight UTC
        ts = datetime.combine(log.date, time.min, tzinfo=timezone.utc)
        records.append(TimedRecord(timestamp=ts, value=log.steps, category=MetricCategory.STEPS))
        records.append(TimedRecord(timestamp=ts, value=log.calories_burned, category=MetricCategory.CALORIES_BURNED))
        records.append(TimedRecord(timestamp=ts, value=log.water_intake, category=MetricCategory.WATER_INTAKE))
        if log.sleep_hours is not None:
            records.append(TimedRecord(timestamp=ts, value=log.sleep_hours, category=MetricCategory.SLEEP_HOURS))

    for session in sessions:
        records.append(
            TimedRecord(
                timestamp=session.completed_at,
                value=session.total_volume,
                category=MetricCategory.TRAINING_VOLUME,
            )
        )

    for log in weight_logs:
        records.append(TimedRecord(timestamp=log.recorded_at, value=log.weight, category=MetricCategory.WEIGHT))

    return records


# ==============================================================================
# Period summaries
# ==============================================================================

@dataclass
class NutritionSummary:
    avg_calories: float = 0.0
    avg_protein: float = 0.0
    avg_carbs: float = 0.0
    avg_fat: float = 0.0
    days_tracked: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "avg_calories": round(self.avg_calories),
            "avg_protein": round(self.avg_protein),
            "avg_carbs": round(self.avg_carbs),
            "avg_fat": round(self.avg_fat),
            "days_tracked": self.days_tracked,
        }


@dataclass
class ActivitySummary:
    avg_steps: float = 0.0
    avg_calories_burned: float = 0.0
    avg_water_intake: float = 0.0
    avg_sleep_hours: float = 0.0
    total_active_days: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "avg_steps": round(self.avg_steps),
            "avg_calories_burned": round(self.avg_calories_burned),
            "avg_water_intake": round(self.avg_water_intake),
            "avg_sleep_hours": round(self.avg_sleep_hours, 1),
            "total_active_days": self.total_active_days,
        }


@dataclass
class MuscleGroupShare:
    """Share of all completed sets that hit one muscle group."""
    muscle: str
    sets: int
    percentage: int

    def to_dict(self) -> Dict[str, Any]:
        return {"muscle": self.muscle, "sets": self.sets, "percentage": self.percentage}


@dataclass
class TrainingSummary:
    total_workouts: int = 0
    total_volume: float = 0.0
    avg_duration: float = 0.0
    muscle_group_distribution: List[MuscleGroupShare] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_workouts": self.total_workouts,
            "total_volume": round(self.total_volume),
            "avg_duration": round(self.avg_duration),
            "muscle_group_distribution": [m.to_dict() for m in self.muscle_group_distribution],
        }


@dataclass
class PeriodSummary:
    """Nutrition, activity and training averages for one period."""
    period: str
    start: date
    end: date
    nutrition: NutritionSummary
    activity: ActivitySummary
    training: TrainingSummary

    def to_dict(self) -> Dict[str, Any]:
        return {
            "period": self.period,
            "start_date": self.start.isoformat(),
            "end_date": self.end.isoformat(),
            "nutrition": self.nutrition.to_dict(),
            "activity": self.activity.to_dict(),
            "training": self.training.to_dict(),
        }


def muscle_group_distribution(sessions: Sequence[WorkoutSession]) -> List[MuscleGroupShare]:
    """Completed sets per muscle group as a share of all sets, most-trained first."""
    sets_by_muscle: Dict[str, int] = defaultdict(int)
    for session in sessions:
        for exercise in session.exercises:
            sets_by_muscle[exercise.muscle_group] += exercise.set_count

    total_sets = sum(sets_by_muscle.values())
    shares = [
        MuscleGroupShare(
            muscle=muscle,
            sets=sets,
            percentage=round(sets / total_sets * 100) if total_sets > 0 else 0,
        )
        for muscle, sets in sets_by_muscle.items()
    ]
    return sorted(shares, key=lambda s: (-s.sets, s.muscle))


def summarize_period(
    nutrition_logs: Sequence[NutritionLog],
    activity_logs: Sequence[ActivityLog],
    sessions: Sequence[WorkoutSession],
    start: date | datetime,
    end: date | datetime,
    period: str = "custom",
) -> PeriodSummary:
    """
    Build the nutrition/activity/training summary for a period.

    Nutrition averages are taken over tracked days (days with at least one
    log), activity averages over logged activity days.
    """
    buckets = aggregate(to_timed_records(nutrition_logs=nutrition_logs), start, end)
    days_tracked = buckets.days_tracked(MetricCategory.CALORIES)

    nutrition = NutritionSummary(days_tracked=days_tracked)
    if days_tracked > 0:
        nutrition.avg_calories = mean(buckets.values(MetricCategory.CALORIES))
        nutrition.avg_protein = mean(buckets.values(MetricCategory.PROTEIN))
        nutrition.avg_carbs = mean(buckets.values(MetricCategory.CARBS))
        nutrition.avg_fat = mean(buckets.values(MetricCategory.FAT))

    activity = ActivitySummary(total_active_days=len(activity_logs))
    if activity_logs:
        activity.avg_steps = mean([a.steps for a in activity_logs])
        activity.avg_calories_burned = mean([a.calories_burned for a in activity_logs])
        activity.avg_water_intake = mean([a.water_intake for a in activity_logs])
        activity.avg_sleep_hours = mean([a.sleep_hours or 0.0 for a in activity_logs])

    training = TrainingSummary(
        total_workouts=len(sessions),
        total_volume=sum(s.total_volume for s in sessions),
        avg_duration=mean([s.duration_minutes for s in sessions]),
        muscle_group_distribution=muscle_group_distribution(sessions),
    )

    return PeriodSummary(
        period=period,
        start=buckets.start,
        end=buckets.end,
        nutrition=nutrition,
        activity=activity,
        training=training,
    )


@dataclass
class PeriodComparison:
    """Two period summaries and the differences ``current - previous``."""
    current: PeriodSummary
    previous: PeriodSummary
    changes: Dict[str, float]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "period1": self.current.to_dict(),
            "period2": self.previous.to_dict(),
            "changes": {k: round(v, 1) for k, v in self.changes.items()},
        }


def compare_periods(current: PeriodSummary, previous: PeriodSummary) -> PeriodComparison:
    """Difference two period summaries metric by metric."""
    changes = {
        "calories": current.nutrition.avg_calories - previous.nutrition.avg_calories,
        "protein": current.nutrition.avg_protein - previous.nutrition.avg_protein,
        "steps": current.activity.avg_steps - previous.activity.avg_steps,
        "workouts": float(current.training.total_workouts - previous.training.total_workouts),
        "volume": current.training.total_volume - previous.training.total_volume,
        "sleep_hours": current.activity.avg_sleep_hours - previous.activity.avg_sleep_hours,
    }
    return PeriodComparison(current=current, previous=previous, changes=changes)


# ==============================================================================
# Training volume by muscle group
# ==============================================================================

@dataclass
class MuscleVolume:
    muscle: str
    total_sets: int
    total_volume: float
    sessions: int
    last_trained: Optional[date]
    percentage: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "muscle": self.muscle,
            "total_sets": self.total_sets,
            "total_volume": round(self.total_volume),
            "sessions": self.sessions,
            "last_trained": self.last_trained.isoformat() if self.last_trained else None,
            "percentage": self.percentage,
        }


def volume_by_muscle(sessions: Sequence[WorkoutSession]) -> List[MuscleVolume]:
    """Sets, volume, session count and recency per muscle group, most sets first."""
    sets: Dict[str, int] = defaultdict(int)
    volume: Dict[str, float] = defaultdict(float)
    session_ids: Dict[str, set] = defaultdict(set)
    last_trained: Dict[str, datetime] = {}

    for session in sessions:
        for exercise in session.exercises:
            muscle = exercise.muscle_group
            sets[muscle] += exercise.set_count
            volume[muscle] += exercise.total_volume
            session_ids[muscle].add(session.id)
            if muscle not in last_trained or session.completed_at > last_trained[muscle]:
                last_trained[muscle] = session.completed_at

    total_sets = sum(sets.values()) or 1

    result = [
        MuscleVolume(
            muscle=muscle,
            total_sets=sets[muscle],
            total_volume=volume[muscle],
            sessions=len(session_ids[muscle]),
            last_trained=last_trained[muscle].date() if muscle in last_trained else None,
            percentage=round(sets[muscle] / total_sets * 100),
        )
        for muscle in sets
    ]
    return sorted(result, key=lambda m: (-m.total_sets, m.muscle))
