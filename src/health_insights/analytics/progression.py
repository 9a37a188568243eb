"""Per-exercise strength progression tracking."""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence

from ..exceptions import ValidationError
from ..models.records import WorkoutSession
from ..utils.timeutils import ensure_utc
from .trends import TrendDirection


logger = logging.getLogger(__name__)


# Change in estimated 1RM (same unit as weight) below which the trend is stable
ONE_REP_MAX_STABLE_THRESHOLD = 0.5


def estimate_one_rep_max(weight: float, reps: int) -> float:
    """
    Epley-style one-rep-max estimate.

    1RM = weight × (1 + reps / 30)
    """
    return weight * (1 + reps / 30)


@dataclass
class ProgressionPoint:
    """Best performance on the exercise in one session."""
    date: date
    max_weight: float
    max_reps: int
    total_volume: float
    estimated_one_rep_max: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "max_weight": self.max_weight,
            "max_reps": self.max_reps,
            "total_volume": self.total_volume,
            "estimated_one_rep_max": round(self.estimated_one_rep_max, 1),
        }


@dataclass
class PersonalBest:
    weight: float = 0.0
    reps: int = 0
    volume: float = 0.0
    one_rep_max: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "weight": round(self.weight, 1),
            "reps": self.reps,
            "volume": round(self.volume),
            "one_rep_max": round(self.one_rep_max, 1),
        }


@dataclass
class ProgressionResult:
    exercise_name: str
    data_points: List[ProgressionPoint] = field(default_factory=list)
    personal_best: PersonalBest = field(default_factory=PersonalBest)
    trend: TrendDirection = TrendDirection.STABLE

    @property
    def insufficient_data(self) -> bool:
        return not self.data_points

    def to_dict(self) -> Dict[str, Any]:
        return {
            "exercise_name": self.exercise_name,
            "data_points": [p.to_dict() for p in self.data_points],
            "personal_best": self.personal_best.to_dict(),
            "trend": self.trend.value,
        }


def analyze_progression(
    exercise_name: str,
    sessions: Sequence[WorkoutSession],
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> ProgressionResult:
    """
    Track an exercise across sessions.

    Exercises match when ``exercise_name`` is a case-insensitive substring
    of the logged name. The trend compares the first and last 1RM
    estimates, not a regression.

    Args:
        exercise_name: Name (or part of it) to match
        sessions: Completed sessions, in any order
        start: Optional inclusive lower bound on ``completed_at``
        end: Optional inclusive upper bound on ``completed_at``

    Returns:
        ProgressionResult; empty with zeroed personal bests when nothing matches

    Raises:
        ValidationError: If ``exercise_name`` is blank
    """
    if not exercise_name or not exercise_name.strip():
        raise ValidationError("exercise_name is required", field="exercise_name")

    needle = exercise_name.strip().lower()
    lower = ensure_utc(start) if start is not None else None
    upper = ensure_utc(end) if end is not None else None

    points: List[ProgressionPoint] = []
    for session in sorted(sessions, key=lambda s: s.completed_at):
        if lower is not None and session.completed_at < lower:
            continue
        if upper is not None and session.completed_at > upper:
            continue
        for exercise in session.exercises:
            if needle not in exercise.exercise_name.lower():
                continue
            points.append(
                ProgressionPoint(
                    date=session.completed_at.date(),
                    max_weight=exercise.max_weight,
                    max_reps=exercise.max_reps,
                    total_volume=exercise.total_volume,
                    estimated_one_rep_max=estimate_one_rep_max(exercise.max_weight, exercise.max_reps),
                )
            )

    if not points:
        logger.debug("No sessions matched exercise %r", exercise_name)
        return ProgressionResult(exercise_name=exercise_name)

    personal_best = PersonalBest(
        weight=max(p.max_weight for p in points),
        reps=max(p.max_reps for p in points),
        volume=max(p.total_volume for p in points),
        one_rep_max=max(p.estimated_one_rep_max for p in points),
    )

    change = points[-1].estimated_one_rep_max - points[0].estimated_one_rep_max
    if change > ONE_REP_MAX_STABLE_THRESHOLD:
        trend = TrendDirection.UP
    elif change < -ONE_REP_MAX_STABLE_THRESHOLD:
        trend = TrendDirection.DOWN
    else:
        trend = TrendDirection.STABLE

    return ProgressionResult(
        exercise_name=exercise_name,
        data_points=points,
        personal_best=personal_best,
        trend=trend,
    )
