"""
Metric Trend Analysis

Turn a single metric's daily series into summary statistics and a
direction. Values are kept at full precision; ``to_dict`` rounds to one
decimal place for display.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..exceptions import ValidationError
from ..models.records import (
    ActivityLog,
    MetricCategory,
    NutritionLog,
    WeightLog,
    WorkoutSession,
)
from .aggregation import aggregate, to_timed_records
from .stats import mean, percent_change, round1


# Relative change (fraction of the first value) needed to call a direction
DIRECTION_THRESHOLD = 0.01


class TrendDirection(str, Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


SeriesPoint = Tuple[str, float]


@dataclass(frozen=True)
class TrendSummary:
    """Summary statistics for one metric over a window."""

    metric: str
    series: Tuple[SeriesPoint, ...] = field(default_factory=tuple)
    average: float = 0.0
    minimum: float = 0.0
    maximum: float = 0.0
    absolute_change: float = 0.0
    percent_change: float = 0.0
    direction: TrendDirection = TrendDirection.STABLE
    # True for the zeroed sentinel: no points, not a measurement of zero
    insufficient_data: bool = False

    @property
    def first_value(self) -> Optional[float]:
        return self.series[0][1] if self.series else None

    @property
    def last_value(self) -> Optional[float]:
        return self.series[-1][1] if self.series else None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "metric": self.metric,
            "data": [{"date": d, "value": v} for d, v in self.series],
            "average": round1(self.average),
            "min": round1(self.minimum),
            "max": round1(self.maximum),
            "change": round1(self.absolute_change),
            "change_percent": round1(self.percent_change),
            "trend": self.direction.value,
            "insufficient_data": self.insufficient_data,
        }


def _point_key(value: date | datetime | str) -> str:
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def classify_direction(change: float, first_value: float) -> TrendDirection:
    """up iff change > 1% of the first value, down iff below -1%, else stable."""
    if change > DIRECTION_THRESHOLD * first_value:
        return TrendDirection.UP
    if change < -DIRECTION_THRESHOLD * first_value:
        return TrendDirection.DOWN
    return TrendDirection.STABLE


def analyze_trend(
    metric: str,
    series: Sequence[Tuple[date | datetime | str, float]],
) -> TrendSummary:
    """
    Summarize a metric's series.

    The series is sorted by date internally, so input order does not
    matter; change and direction compare the first and last points.

    Args:
        metric: Metric name carried through to the result
        series: ``(date, value)`` pairs, already aggregated to one per day
            where the metric is additive

    Returns:
        TrendSummary; the zeroed sentinel with ``insufficient_data=True``
        when the series is empty
    """
    if not series:
        return TrendSummary(metric=metric, insufficient_data=True)

    points = sorted(((_point_key(d), float(v)) for d, v in series), key=lambda p: p[0])
    values = [v for _, v in points]

    first = values[0]
    last = values[-1]
    change = last - first

    return TrendSummary(
        metric=metric,
        series=tuple(points),
        average=mean(values),
        minimum=min(values),
        maximum=max(values),
        absolute_change=change,
        percent_change=percent_change(first, last),
        direction=classify_direction(change, first),
    )


# Metrics summed per day vs. metrics reported as one reading per log
_AGGREGATED_METRICS = {
    "calories": MetricCategory.CALORIES,
    "protein": MetricCategory.PROTEIN,
    "carbs": MetricCategory.CARBS,
    "fat": MetricCategory.FAT,
    "volume": MetricCategory.TRAINING_VOLUME,
}
SUPPORTED_METRICS = tuple(_AGGREGATED_METRICS) + ("weight", "steps", "sleep")


def metric_series(
    metric: str,
    start: date | datetime,
    end: date | datetime,
    nutrition_logs: Sequence[NutritionLog] = (),
    activity_logs: Sequence[ActivityLog] = (),
    sessions: Sequence[WorkoutSession] = (),
    weight_logs: Sequence[WeightLog] = (),
) -> List[SeriesPoint]:
    """
    Build the series a trend query for ``metric`` should analyze.

    Nutrition and training volume go through the aggregator (daily sums);
    weight, steps and sleep are one reading per log.
    """
    category = _AGGREGATED_METRICS.get(metric)
    if category is not None:
        records = to_timed_records(
            nutrition_logs=nutrition_logs if category != MetricCategory.TRAINING_VOLUME else (),
            sessions=sessions if category == MetricCategory.TRAINING_VOLUME else (),
        )
        return aggregate(records, start, end).series(category)

    if metric == "weight":
        ordered = sorted(weight_logs, key=lambda w: w.recorded_at)
        return [(w.recorded_at.date().isoformat(), w.weight) for w in ordered]
    if metric == "steps":
        return [(a.date.isoformat(), float(a.steps)) for a in sorted(activity_logs, key=lambda a: a.date)]
    if metric == "sleep":
        return [
            (a.date.isoformat(), a.sleep_hours)
            for a in sorted(activity_logs, key=lambda a: a.date)
            if a.sleep_hours is not None
        ]

    raise ValidationError(
        f"Unknown trend metric '{metric}'",
        field="metric",
        details={"supported": list(SUPPORTED_METRICS)},
    )
