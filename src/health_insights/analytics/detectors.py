"""
Insight detectors.

Each detector inspects one slice of a user's recent history and returns at
most one Insight. A detector that finds no signal (or does not have enough
data to look for one) returns None; it never emits a negative or zero
insight. Thresholds here are fixed contracts, not tuning knobs.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ..models.insights import Insight, InsightKind
from ..models.records import ActivityLog, NutritionLog, WeightLog, WorkoutSession
from ..utils.timeutils import day_key
from .stats import coefficient_of_variation, iso_week, linear_regression, mean


logger = logging.getLogger(__name__)


# Nutrition consistency
MIN_NUTRITION_LOGS = 7
MIN_NUTRITION_DAYS = 5
CONSISTENT_CV = 0.15
INCONSISTENT_CV = 0.40

# Training frequency (sessions per ISO week)
MIN_SESSIONS_FOR_FREQUENCY = 3
HIGH_FREQUENCY_PER_WEEK = 4
SOLID_FREQUENCY_PER_WEEK = 3

# Sleep vs. performance
MIN_ACTIVITY_DAYS_FOR_SLEEP = 7
MIN_SESSIONS_FOR_SLEEP = 3
GOOD_SLEEP_HOURS = 7.0
SLEEP_VOLUME_BOOST_PCT = 10.0

# Weight projection
MIN_WEIGHT_READINGS = 5
PROJECTION_STEPS = 30
MIN_PROJECTED_CHANGE_KG = 0.3

# Protein adherence
LOW_PROTEIN_FRACTION = 0.7
LOW_PROTEIN_DAYS_PCT = 40.0

# Volume progression
MIN_SESSIONS_FOR_PROGRESSION = 6
VOLUME_CHANGE_PCT = 10.0


@dataclass
class InsightInputs:
    """The bounded window of history the detectors run against."""
    nutrition_logs: Sequence[NutritionLog] = field(default_factory=list)
    activity_logs: Sequence[ActivityLog] = field(default_factory=list)
    sessions: Sequence[WorkoutSession] = field(default_factory=list)
    weight_logs: Sequence[WeightLog] = field(default_factory=list)

    def within_window(self, days: int, now: datetime) -> "InsightInputs":
        """Only the records from the last ``days`` days up to ``now``."""
        cutoff = now - timedelta(days=days)
        return InsightInputs(
            nutrition_logs=[n for n in self.nutrition_logs if cutoff <= n.logged_at <= now],
            activity_logs=[a for a in self.activity_logs if cutoff.date() <= a.date <= now.date()],
            sessions=[s for s in self.sessions if cutoff <= s.completed_at <= now],
            weight_logs=[w for w in self.weight_logs if cutoff <= w.recorded_at <= now],
        )


def _daily_totals(logs: Sequence[NutritionLog], attr: str) -> Dict[str, float]:
    totals: Dict[str, float] = defaultdict(float)
    for log in logs:
        totals[day_key(log.logged_at)] += getattr(log, attr)
    return dict(totals)


def detect_nutrition_consistency(inputs: InsightInputs) -> Optional[Insight]:
    """Flag very steady or very erratic daily calorie intake."""
    logs = inputs.nutrition_logs
    if len(logs) < MIN_NUTRITION_LOGS:
        return None

    values = list(_daily_totals(logs, "calories").values())
    if len(values) < MIN_NUTRITION_DAYS:
        return None

    cv = coefficient_of_variation(values)
    if cv is None:
        # No calories logged at all; variability is undefined
        return None

    supporting = {"coefficient_of_variation": round(cv, 3), "days": len(values)}

    if cv < CONSISTENT_CV:
        return Insight(
            kind=InsightKind.PATTERN,
            detector="nutrition_consistency",
            title="Consistent Nutrition",
            description=(
                f"Your calorie intake has been very consistent over the past {len(values)} days, "
                f"varying by only {round(cv * 100)}%. Great discipline!"
            ),
            confidence=0.90,
            supporting_data=supporting,
        )
    if cv > INCONSISTENT_CV:
        return Insight(
            kind=InsightKind.PATTERN,
            detector="nutrition_consistency",
            title="Inconsistent Calorie Intake",
            description=(
                f"Your daily calories vary by {round(cv * 100)}%. "
                "Try to keep intake more consistent for better results."
            ),
            confidence=0.85,
            supporting_data=supporting,
        )
    return None


def detect_training_frequency(inputs: InsightInputs) -> Optional[Insight]:
    """Average sessions per ISO week: warn when very high, praise when solid."""
    sessions = inputs.sessions
    if len(sessions) < MIN_SESSIONS_FOR_FREQUENCY:
        return None

    per_week: Dict[Tuple[int, int], int] = defaultdict(int)
    for session in sessions:
        per_week[iso_week(session.completed_at)] += 1

    avg_per_week = mean(list(per_week.values()))
    supporting = {"avg_per_week": round(avg_per_week, 1), "weeks": len(per_week)}

    if avg_per_week >= HIGH_FREQUENCY_PER_WEEK:
        return Insight(
            kind=InsightKind.PATTERN,
            detector="training_frequency",
            title="High Training Frequency",
            description=(
                f"You are averaging {avg_per_week:.1f} workouts per week. "
                "Make sure you are getting enough rest between sessions."
            ),
            confidence=0.85,
            supporting_data=supporting,
        )
    if avg_per_week >= SOLID_FREQUENCY_PER_WEEK:
        return Insight(
            kind=InsightKind.PATTERN,
            detector="training_frequency",
            title="Solid Training Routine",
            description=(
                f"You are averaging {avg_per_week:.1f} workouts per week. "
                "This is a great frequency for progress."
            ),
            confidence=0.85,
            supporting_data=supporting,
        )
    return None


def detect_sleep_performance(inputs: InsightInputs) -> Optional[Insight]:
    """Compare session volume after nights of 7h+ sleep with shorter nights."""
    if len(inputs.activity_logs) < MIN_ACTIVITY_DAYS_FOR_SLEEP or len(inputs.sessions) < MIN_SESSIONS_FOR_SLEEP:
        return None

    sleep_by_day = {
        log.date.isoformat(): log.sleep_hours
        for log in inputs.activity_logs
        if log.sleep_hours
    }

    good: List[float] = []
    poor: List[float] = []
    for session in inputs.sessions:
        previous_day = (session.completed_at.date() - timedelta(days=1)).isoformat()
        sleep = sleep_by_day.get(previous_day)
        if sleep is None:
            continue
        if sleep >= GOOD_SLEEP_HOURS:
            good.append(session.total_volume)
        else:
            poor.append(session.total_volume)

    if not good or not poor:
        return None

    avg_good = mean(good)
    avg_poor = mean(poor)
    if avg_poor <= 0:
        return None

    diff = (avg_good - avg_poor) / avg_poor * 100
    if diff <= SLEEP_VOLUME_BOOST_PCT:
        return None

    return Insight(
        kind=InsightKind.CORRELATION,
        detector="sleep_performance",
        title="Sleep Boosts Performance",
        description=(
            f"When you sleep 7+ hours, your training volume is {round(diff)}% higher. "
            "Prioritize sleep for better gains!"
        ),
        confidence=0.75,
        supporting_data={
            "avg_good_sleep_volume": round(avg_good),
            "avg_poor_sleep_volume": round(avg_poor),
            "difference_pct": round(diff, 1),
            "good_sleep_sessions": len(good),
            "poor_sleep_sessions": len(poor),
        },
    )


def predict_weight(inputs: InsightInputs) -> Optional[Insight]:
    """Project body weight 30 readings ahead with a least-squares line."""
    logs = sorted(inputs.weight_logs, key=lambda w: w.recorded_at)
    if len(logs) < MIN_WEIGHT_READINGS:
        return None

    weights = [w.weight for w in logs]
    slope, intercept = linear_regression(weights)

    last_index = len(weights) - 1
    projected = intercept + slope * (last_index + PROJECTION_STEPS)
    current = weights[-1]
    change = projected - current

    if abs(change) < MIN_PROJECTED_CHANGE_KG:
        return None

    direction = "gain" if change > 0 else "lose"
    return Insight(
        kind=InsightKind.PREDICTION,
        detector="weight_projection",
        title="Weight Projection",
        description=(
            f"Based on your trend, you're projected to {direction} {abs(change):.1f} kg "
            f"in the next {PROJECTION_STEPS} days (reaching ~{projected:.1f} kg)."
        ),
        confidence=0.70,
        supporting_data={
            "current_weight": current,
            "predicted_weight": round(projected, 1),
            "days_out": PROJECTION_STEPS,
            "slope_per_reading": round(slope, 4),
        },
    )


def detect_protein_adherence(inputs: InsightInputs) -> Optional[Insight]:
    """Flag when too many days fall well short of the period's mean protein."""
    logs = inputs.nutrition_logs
    if len(logs) < MIN_NUTRITION_LOGS:
        return None

    values = list(_daily_totals(logs, "protein").values())
    if len(values) < MIN_NUTRITION_DAYS:
        return None

    avg = mean(values)
    low_days = sum(1 for v in values if v < avg * LOW_PROTEIN_FRACTION)
    low_pct = low_days / len(values) * 100

    if low_pct <= LOW_PROTEIN_DAYS_PCT:
        return None

    return Insight(
        kind=InsightKind.PATTERN,
        detector="protein_adherence",
        title="Protein Gaps Detected",
        description=(
            f"{round(low_pct)}% of your days had below-average protein intake. "
            "Consistent protein is key for muscle recovery."
        ),
        confidence=0.80,
        supporting_data={
            "low_days": low_days,
            "tracked_days": len(values),
            "avg_protein": round(avg, 1),
        },
    )


def detect_volume_progression(inputs: InsightInputs) -> Optional[Insight]:
    """Compare mean session volume between the two chronological halves."""
    sessions = sorted(inputs.sessions, key=lambda s: s.completed_at)
    if len(sessions) < MIN_SESSIONS_FOR_PROGRESSION:
        return None

    half = len(sessions) // 2
    avg_first = mean([s.total_volume for s in sessions[:half]])
    avg_second = mean([s.total_volume for s in sessions[half:]])
    if avg_first == 0:
        return None

    change = (avg_second - avg_first) / avg_first * 100
    supporting = {
        "avg_first_half": round(avg_first),
        "avg_second_half": round(avg_second),
        "change_pct": round(change, 1),
    }

    if change > VOLUME_CHANGE_PCT:
        return Insight(
            kind=InsightKind.PATTERN,
            detector="volume_progression",
            title="Volume Increasing",
            description=(
                f"Your training volume has increased by {round(change)}% in the latter half "
                "of this period. Great progressive overload!"
            ),
            confidence=0.80,
            supporting_data=supporting,
        )
    if change < -VOLUME_CHANGE_PCT:
        return Insight(
            kind=InsightKind.PATTERN,
            detector="volume_progression",
            title="Volume Declining",
            description=(
                f"Your training volume has decreased by {abs(round(change))}%. "
                "This could be a deload or a sign you need more motivation."
            ),
            confidence=0.75,
            supporting_data=supporting,
        )
    return None


Detector = Callable[[InsightInputs], Optional[Insight]]

# Evaluation order is the order insights appear in a generated set
DETECTORS: Tuple[Detector, ...] = (
    detect_nutrition_consistency,
    detect_training_frequency,
    detect_sleep_performance,
    predict_weight,
    detect_protein_adherence,
    detect_volume_progression,
)


def run_detectors(
    inputs: InsightInputs,
    detectors: Sequence[Detector] = DETECTORS,
) -> List[Insight]:
    """Evaluate detectors in order, keeping the ones that found a signal."""
    results = (detector(inputs) for detector in detectors)
    return [insight for insight in results if insight is not None]
