"""Data models for the Health Insights engine."""

from .insights import Insight, InsightCacheEntry, InsightKind
from .records import (
    ActivityLog,
    BiomarkerReading,
    ExerciseSet,
    MetricCategory,
    NutritionLog,
    SessionExercise,
    TimedRecord,
    WeightLog,
    WorkoutSession,
)
from .recovery import (
    InjuryRiskAssessment,
    MuscleRecoveryStatus,
    MuscleState,
    MuscleUsageRecord,
    RiskLevel,
)
from .reports import HealthSummary, ReportSnapshot, ShareGrant, UserContext

__all__ = [
    # Records
    "ActivityLog",
    "BiomarkerReading",
    "ExerciseSet",
    "MetricCategory",
    "NutritionLog",
    "SessionExercise",
    "TimedRecord",
    "WeightLog",
    "WorkoutSession",
    # Insights
    "Insight",
    "InsightCacheEntry",
    "InsightKind",
    # Recovery
    "InjuryRiskAssessment",
    "MuscleRecoveryStatus",
    "MuscleState",
    "MuscleUsageRecord",
    "RiskLevel",
    # Reports
    "HealthSummary",
    "ReportSnapshot",
    "ShareGrant",
    "UserContext",
]
