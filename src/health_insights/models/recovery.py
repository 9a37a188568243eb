"""Muscle recovery and injury-risk models."""

from datetime import datetime
from enum import Enum
from typing import List

from pydantic import BaseModel, Field, field_validator

from ..utils.timeutils import ensure_utc, utcnow


class MuscleState(str, Enum):
    """Recovery state of a single muscle group."""
    RECOVERING = "recovering"  # Worked within its recovery window
    RECOVERED = "recovered"    # Recovery window has elapsed
    OVERUSED = "overused"      # Recovering and trained more often than the window allows


class RiskLevel(str, Enum):
    """Aggregate injury risk level."""
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    VERY_HIGH = "very_high"


class MuscleUsageRecord(BaseModel):
    """Current recovery state of one muscle for one user.

    There is exactly one logical record per (user, muscle); every new
    session touching the muscle updates it in place.
    """
    user_id: str
    muscle_id: str
    muscle_name: str
    last_worked_at: datetime
    workout_frequency_per_week: float = Field(default=3.0, ge=0)
    intensity: float = Field(..., ge=0, le=10)
    recovery_window_hours: int = Field(..., gt=0)
    recovered: bool = False
    # Consecutive sessions that hit this muscle before its window elapsed
    overuse_streak_cycles: int = Field(default=0, ge=0)

    @field_validator("last_worked_at")
    @classmethod
    def _normalize_timestamp(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class MuscleRecoveryStatus(BaseModel):
    """Recovery state of one muscle evaluated at a point in time."""
    muscle_id: str
    muscle_name: str
    state: MuscleState
    hours_since_worked: float
    hours_remaining: float
    recovery_window_hours: int
    workout_frequency_per_week: float
    supported_frequency_per_week: float
    consecutive_overuse_cycles: int = 0

    @property
    def is_long_overuse(self) -> bool:
        """Overused for more than one full recovery cycle in a row."""
        return self.state == MuscleState.OVERUSED and self.consecutive_overuse_cycles > 1


class InjuryRiskAssessment(BaseModel):
    """Aggregate injury-risk assessment across all tracked muscles."""
    risk_level: RiskLevel
    overused_muscles: List[MuscleRecoveryStatus] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    needs_rest_day: bool = False
    assessed_at: datetime = Field(default_factory=utcnow)

    @property
    def overused_muscle_names(self) -> List[str]:
        return [m.muscle_name for m in self.overused_muscles]
