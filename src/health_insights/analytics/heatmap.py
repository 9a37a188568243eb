"""Training load heatmap over a complete calendar grid."""

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Sequence

from ..exceptions import ValidationError
from ..models.records import WorkoutSession
from ..utils.timeutils import utcnow


@dataclass
class HeatmapDay:
    """One cell of the heatmap grid."""
    date: date
    intensity: int  # 0-100, relative to the heaviest day in the window
    workouts: int = 0
    total_volume: float = 0.0

    @property
    def weekday(self) -> int:
        """ISO weekday, Monday = 1."""
        return self.date.isoweekday()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "weekday": self.weekday,
            "intensity": self.intensity,
            "workouts": self.workouts,
            "total_volume": round(self.total_volume),
        }


def build_heatmap(
    sessions: Sequence[WorkoutSession],
    weeks: int,
    today: Optional[date] = None,
) -> List[HeatmapDay]:
    """
    Bucket session volume per day over ``weeks × 7`` trailing days.

    Each day's volume is normalized against the heaviest day in the window
    (floor of 1) to an integer percentage. Days without a session are
    present with intensity 0, so the result always has ``weeks × 7`` cells
    in chronological order ending at ``today``.

    Raises:
        ValidationError: If ``weeks`` is less than 1
    """
    if weeks < 1:
        raise ValidationError("weeks must be at least 1", field="weeks")

    end = today or utcnow().date()
    start = end - timedelta(days=weeks * 7 - 1)

    volume: Dict[date, float] = defaultdict(float)
    workouts: Dict[date, int] = defaultdict(int)
    for session in sessions:
        day = session.completed_at.date()
        if start <= day <= end:
            volume[day] += session.total_volume
            workouts[day] += 1

    max_volume = max(max(volume.values(), default=0.0), 1.0)

    grid: List[HeatmapDay] = []
    for offset in range(weeks * 7):
        day = start + timedelta(days=offset)
        grid.append(
            HeatmapDay(
                date=day,
                intensity=round(volume.get(day, 0.0) / max_volume * 100),
                workouts=workouts.get(day, 0),
                total_volume=volume.get(day, 0.0),
            )
        )
    return grid
