"""Raw health record models consumed by the analytics layer.

These are the already-queried rows handed over by the persistence
collaborator: nutrition entries, daily activity samples, workout sessions,
weight readings and biomarker readings. ``TimedRecord`` is the universal
unit the aggregator works on.
"""

from datetime import date as date_type, datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from ..utils.timeutils import ensure_utc


class MetricCategory(str, Enum):
    """Metric families a TimedRecord can belong to."""
    CALORIES = "calories"
    PROTEIN = "protein"
    CARBS = "carbs"
    FAT = "fat"
    STEPS = "steps"
    CALORIES_BURNED = "calories_burned"
    WATER_INTAKE = "water_intake"
    SLEEP_HOURS = "sleep_hours"
    TRAINING_VOLUME = "training_volume"
    WEIGHT = "weight"


class TimedRecord(BaseModel):
    """A single time-stamped value for one metric category."""
    timestamp: datetime
    value: float
    category: MetricCategory

    @field_validator("timestamp")
    @classmethod
    def _normalize_timestamp(cls, value: datetime) -> datetime:
        return ensure_utc(value)


# ==============================================================================
# Nutrition & Activity
# ==============================================================================

class NutritionLog(BaseModel):
    """A logged meal or food entry."""
    logged_at: datetime
    calories: float = Field(default=0.0, ge=0)
    protein: float = Field(default=0.0, ge=0)
    carbs: float = Field(default=0.0, ge=0)
    fat: float = Field(default=0.0, ge=0)

    @field_validator("calories", "protein", "carbs", "fat", mode="before")
    @classmethod
    def _missing_macro_is_zero(cls, value):
        return 0.0 if value is None else value

    @field_validator("logged_at")
    @classmethod
    def _normalize_timestamp(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class ActivityLog(BaseModel):
    """One day of activity data from a wearable or manual entry."""
    date: date_type
    steps: int = Field(default=0, ge=0)
    calories_burned: float = Field(default=0.0, ge=0)
    water_intake: float = Field(default=0.0, ge=0)
    sleep_hours: Optional[float] = Field(default=None, ge=0, le=24)


# ==============================================================================
# Training
# ==============================================================================

class ExerciseSet(BaseModel):
    """A single completed set."""
    reps: int = Field(..., ge=0)
    weight: float = Field(default=0.0, ge=0)


class SessionExercise(BaseModel):
    """An exercise performed within a workout session."""
    exercise_name: str
    muscle_group: str
    sets: List[ExerciseSet] = Field(default_factory=list)
    max_weight: float = Field(default=0.0, ge=0)
    max_reps: int = Field(default=0, ge=0)
    total_volume: float = Field(default=0.0, ge=0)

    @property
    def set_count(self) -> int:
        return len(self.sets)


class WorkoutSession(BaseModel):
    """A completed workout session."""
    id: str
    completed_at: datetime
    duration_minutes: float = Field(default=0.0, ge=0)
    total_volume: float = Field(default=0.0, ge=0)
    exercises: List[SessionExercise] = Field(default_factory=list)

    @field_validator("completed_at")
    @classmethod
    def _normalize_timestamp(cls, value: datetime) -> datetime:
        return ensure_utc(value)


# ==============================================================================
# Body measurements
# ==============================================================================

class WeightLog(BaseModel):
    """A body weight reading in kilograms."""
    recorded_at: datetime
    weight: float = Field(..., gt=0)

    @field_validator("recorded_at")
    @classmethod
    def _normalize_timestamp(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class BiomarkerReading(BaseModel):
    """A biomarker measurement (blood pressure, glucose, body fat...)."""
    type: str
    value: float
    value2: Optional[float] = None  # e.g. diastolic for blood_pressure
    unit: str
    recorded_at: datetime
    notes: Optional[str] = None
    source: str = "manual"

    @field_validator("recorded_at")
    @classmethod
    def _normalize_timestamp(cls, value: datetime) -> datetime:
        return ensure_utc(value)
